"""
Query crafting and URL helpers shared by provider adapters.

Providers turn the orientation / quality hint into their own query
syntax; these helpers keep the wallpaper-oriented defaults in one place.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from parallax_search.domain.entities import Orientation

MAX_URL_LENGTH = 2000

_IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|bmp|svg)(\?|$)", re.IGNORECASE)
_KNOWN_IMAGE_HOSTS_RE = re.compile(r"\b(gstatic|imgur|unsplash|pexels|pixabay|flickr)\b", re.IGNORECASE)

_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
}

# Terms excluded from wallpaper searches (thumbnails, logos, stock watermarks)
EXCLUDE_TERMS = (
    "screenshot", "thumbnail", "preview", "icon", "logo",
    "clipart", "avatar", "profile", "pinterest", "getty",
)


def is_valid_image_url(url: str | None) -> bool:
    """
    Whether *url* looks like a directly loadable image.

    Must be http(s), at most 2000 characters, and either end in a known
    image extension or point at a known image host.
    """
    if not url or not isinstance(url, str):
        return False
    if len(url) > MAX_URL_LENGTH:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return False
    return bool(_IMAGE_EXTENSION_RE.search(url) or _KNOWN_IMAGE_HOSTS_RE.search(url))


def _extension(url: str) -> str:
    path = url.split("?", 1)[0]
    tail = path.rsplit("/", 1)[-1]
    if "." not in tail:
        return ""
    return tail.rsplit(".", 1)[-1].lower()


def mime_type_from_url(url: str) -> str:
    """MIME type guessed from the file extension, image/jpeg when unknown."""
    return _MIME_TYPES.get(_extension(url), "image/jpeg")


def file_format_from_url(url: str) -> str:
    """File extension of *url*, "jpg" when there is none."""
    return _extension(url) or "jpg"


def build_quality_hint(orientation: Orientation = Orientation.UNSET) -> str:
    """
    Google-style ``tbs`` filter string for large colour photos.

    Example:
        >>> build_quality_hint(Orientation.PORTRAIT)
        'isz:lt,islt:2mp,itp:photo,ic:color,imgar:t'
    """
    params = ["isz:lt", "islt:2mp", "itp:photo", "ic:color"]
    if orientation is Orientation.PORTRAIT:
        params.append("imgar:t")
    elif orientation is Orientation.LANDSCAPE:
        params.append("imgar:w")
    return ",".join(params)


def craft_wallpaper_query(
    query: str,
    orientation: Orientation = Orientation.UNSET,
    *,
    exclude: bool = False,
) -> str:
    """
    Append wallpaper quality and orientation terms to a user query.

    With ``exclude=True`` the common non-wallpaper terms are negated,
    for providers that understand ``-term`` operators.
    """
    parts = [query.strip(), "wallpaper"]
    if orientation is Orientation.PORTRAIT:
        parts.append("mobile")
    elif orientation is Orientation.LANDSCAPE:
        parts.append("widescreen")
    if exclude:
        parts.extend(f"-{term}" for term in EXCLUDE_TERMS)
    return " ".join(parts)


def matches_orientation(width: int, height: int, orientation: Orientation) -> bool:
    """True when the dimensions fit *orientation* (always True when unset)."""
    if not orientation.is_set:
        return True
    is_landscape = width > height
    return is_landscape if orientation is Orientation.LANDSCAPE else not is_landscape
