"""Domain models used across the application."""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator


class Image(BaseModel):
    """An image referenced by a site page."""

    url: str = Field(..., description="Path of the image relative to the site archive directory")
    fetch_success: bool = Field(default=False)


class Site(BaseModel):
    """A target page together with its archive progress."""

    url: str = Field(..., description="Address of the page, also used as the archive key")
    title: str = Field(default="")
    fetch_success: bool = Field(default=False)
    images: List[Image] = Field(default_factory=list)

    @field_validator("images", mode="before")
    @classmethod
    def _null_images(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("title", mode="before")
    @classmethod
    def _null_title(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def base_url(self) -> str:
        """Return the site URL without trailing slashes."""

        return self.url.rstrip("/")

    def image_url(self, image: Image) -> str:
        """Return the network address of ``image``."""

        return f"{self.base_url}/{image.url}"

    def count_fetched_images(self) -> int:
        return sum(1 for image in self.images if image.fetch_success)


class CheckpointDocument(BaseModel):
    """Full crawl state persisted between runs."""

    sites: List[Site] = Field(default_factory=list)


class SiteStatus(str, Enum):
    """How a single site ended up after :meth:`SiteArchiver.archive_site`."""

    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    FAILED = "failed"
    SKIPPED = "skipped"


class SiteOutcome(BaseModel):
    """Updated site value returned from archiving a single site."""

    site: Site
    status: SiteStatus
    reused: bool = False
    images_downloaded: int = 0
    images_existing: int = 0
    images_failed: int = 0


class RunSummary(BaseModel):
    """Aggregate counters for a complete archive run."""

    sites_total: int = 0
    sites_complete: int = 0
    sites_incomplete: int = 0
    sites_failed: int = 0
    sites_skipped: int = 0
    images_downloaded: int = 0
    images_existing: int = 0
    images_failed: int = 0
    requests: int = 0

    def add(self, outcome: SiteOutcome) -> None:
        self.sites_total += 1
        if outcome.status is SiteStatus.COMPLETE:
            self.sites_complete += 1
        elif outcome.status is SiteStatus.INCOMPLETE:
            self.sites_incomplete += 1
        elif outcome.status is SiteStatus.FAILED:
            self.sites_failed += 1
        else:
            self.sites_skipped += 1
        self.images_downloaded += outcome.images_downloaded
        self.images_existing += outcome.images_existing
        self.images_failed += outcome.images_failed
