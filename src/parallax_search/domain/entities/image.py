"""
Domain Entity: ImageResult

Provider-agnostic image search result.
Pure domain entity; provider mapping is handled by the adapters in
the infrastructure layer.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ImageResult:
    """
    Normalized image search result.

    ``image_url`` identifies the image across providers and is the
    deduplication key.
    """

    id: str
    image_url: str
    title: str = ""
    thumbnail_url: str = ""
    source_page_url: str = ""
    source_domain: str = ""
    description: str = ""
    width: int = 0
    height: int = 0
    byte_size: int | None = None
    mime_type: str = "image/jpeg"
    file_format: str = "jpg"
    origin_provider: str = ""

    @property
    def resolution(self) -> int:
        """Pixel count, 0 when either dimension is unknown."""
        if not self.width or not self.height or self.width < 0 or self.height < 0:
            return 0
        return self.width * self.height

    def with_id(self, new_id: str) -> ImageResult:
        """Copy with a position-dependent identifier."""
        return dataclasses.replace(self, id=new_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize as the UI record."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.image_url,
            "thumbnailUrl": self.thumbnail_url,
            "sourceUrl": self.source_page_url,
            "sourceDomain": self.source_domain,
            "description": self.description,
            "width": self.width,
            "height": self.height,
            "fileSize": self.byte_size,
            "mimeType": self.mime_type,
            "fileFormat": self.file_format,
            "sourceEngine": self.origin_provider,
        }
