"""
Image search provider adapters.

- ImageSearchProvider: capability contract
- PagedImageProvider / BulkImageProvider: the two paging strategies
- GoogleImageProvider (paged), SerperImageProvider (bulk),
  BraveImageProvider (bulk), MockImageProvider (paged, offline)
"""

from .base import BulkImageProvider, ImageSearchProvider, PagedImageProvider
from .brave import BraveImageProvider
from .google import GoogleImageProvider
from .mock import MockImageProvider
from .registry import build_provider_registry
from .serper import SerperImageProvider

__all__ = [
    "BraveImageProvider",
    "BulkImageProvider",
    "GoogleImageProvider",
    "ImageSearchProvider",
    "MockImageProvider",
    "PagedImageProvider",
    "SerperImageProvider",
    "build_provider_registry",
]
