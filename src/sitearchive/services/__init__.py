"""Service layer entry points for the site archiver."""

from __future__ import annotations

from .archiver import ArchiveContext, SiteArchiver  # noqa: F401
from .extractor import (  # noqa: F401
    extract_images,
    extract_title,
    is_valid_image_extension,
    rewrite_image_sources,
)
from .transport import ProxyTransport  # noqa: F401

__all__ = [
    "ArchiveContext",
    "ProxyTransport",
    "SiteArchiver",
    "extract_images",
    "extract_title",
    "is_valid_image_extension",
    "rewrite_image_sources",
]
