"""Resumable archiver that mirrors each configured site into the archive tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from sitearchive import storage
from sitearchive.checkpoint import CheckpointStore
from sitearchive.config import ArchiverSettings
from sitearchive.diagnostics import Diagnostics, EventKind
from sitearchive.errors import ArchiveWriteError, FetchError
from sitearchive.models import (
    CheckpointDocument,
    Image,
    RunSummary,
    Site,
    SiteOutcome,
    SiteStatus,
)
from sitearchive.services.extractor import (
    decode_markup,
    encode_markup,
    extract_images,
    extract_title,
    rewrite_image_sources,
)
from sitearchive.services.transport import ProxyTransport

__all__ = ["ArchiveContext", "SiteArchiver"]

logger = logging.getLogger(__name__)


@dataclass
class ArchiveContext:
    """Everything a run needs, built once at startup and passed explicitly."""

    settings: ArchiverSettings
    transport: ProxyTransport
    store: CheckpointStore
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def archive_root(self) -> Path:
        return self.settings.archive_root


class SiteArchiver:
    """Fetch pages and images for every site, checkpointing after each one."""

    def __init__(self, context: ArchiveContext) -> None:
        self.context = context

    @property
    def diagnostics(self) -> Diagnostics:
        return self.context.diagnostics

    def run(self, document: CheckpointDocument) -> RunSummary:
        """Archive every site of ``document`` in order.

        Each site is replaced in ``document`` by its updated value and the whole
        document is saved before the next site starts.
        """

        summary = RunSummary()
        requests_before = self.context.transport.request_count
        total = len(document.sites)

        for index in range(total):
            site = document.sites[index]
            logger.info("Getting site %d of %d - %s...", index + 1, total, site.url)
            outcome = self.archive_site(site)
            document.sites[index] = outcome.site
            summary.add(outcome)
            self.context.store.save(document)

        self.context.store.save(document)
        summary.requests = self.context.transport.request_count - requests_before

        logger.info(
            "Archived %d sites: %d complete, %d incomplete, %d failed, %d skipped",
            summary.sites_total,
            summary.sites_complete,
            summary.sites_incomplete,
            summary.sites_failed,
            summary.sites_skipped,
        )
        logger.info(
            "Images: %d downloaded, %d already on disk, %d failed (%d requests)",
            summary.images_downloaded,
            summary.images_existing,
            summary.images_failed,
            summary.requests,
        )
        return summary

    def archive_site(self, site: Site) -> SiteOutcome:
        """Archive one site and return its updated value.

        ``site`` itself is left untouched.
        """

        site = site.model_copy(deep=True)
        directory = storage.site_dir(site.url, self.context.archive_root)
        index_file = storage.page_path(directory)
        fetch_page = not site.fetch_success

        if fetch_page:
            try:
                content = self.context.transport.get(site.url)
            except FetchError as exc:
                site.fetch_success = False
                self.diagnostics.record(
                    EventKind.PAGE_FETCH_FAILED,
                    "Unable to fetch site %s: %s",
                    site.url,
                    exc.reason,
                    level=logging.WARNING,
                    url=site.url,
                )
                return SiteOutcome(site=site, status=SiteStatus.FAILED)
            self.diagnostics.record(
                EventKind.PAGE_FETCHED, "Fetched site %s", site.url, level=logging.DEBUG, url=site.url
            )
        else:
            try:
                content = index_file.read_bytes()
            except OSError as exc:
                self.diagnostics.record(
                    EventKind.PAGE_MISSING,
                    "Site index.html was not found for %s: %s",
                    site.url,
                    exc,
                    level=logging.WARNING,
                    url=site.url,
                )
                return SiteOutcome(site=site, status=SiteStatus.SKIPPED, reused=True)
            self.diagnostics.record(
                EventKind.SITE_REUSED, "Site already fetched: %s", site.url, url=site.url
            )

        markup, encoding = decode_markup(content)
        self._ensure_dir(directory)

        site.title = extract_title(markup)
        if fetch_page or not site.images:
            site.images = extract_images(markup, site.url, self.diagnostics)

        rewritten = rewrite_image_sources(
            markup, site.url, absolute=self.context.settings.use_absolute_paths
        )
        # Untouched pages are stored byte for byte.
        page = content if rewritten is markup else encode_markup(rewritten, encoding)

        outcome = SiteOutcome(site=site, status=SiteStatus.INCOMPLETE, reused=not fetch_page)
        total = len(site.images)
        downloaded = 0
        for position, image in enumerate(site.images, start=1):
            result = self._archive_image(site, image, directory, position, total)
            if image.fetch_success:
                downloaded += 1
            if result is EventKind.IMAGE_DOWNLOADED:
                outcome.images_downloaded += 1
            elif result is EventKind.IMAGE_EXISTS:
                outcome.images_existing += 1
            elif result is not EventKind.IMAGE_CACHED:
                outcome.images_failed += 1

        site.fetch_success = downloaded == total
        self._write_page(index_file, page)

        if site.fetch_success:
            outcome.status = SiteStatus.COMPLETE
            self.diagnostics.record(
                EventKind.SITE_COMPLETE,
                "Site %s archived with %d images",
                site.url,
                total,
                url=site.url,
            )
        else:
            self.diagnostics.record(
                EventKind.SITE_INCOMPLETE,
                "Site %s is missing %d of %d images",
                site.url,
                total - downloaded,
                total,
                level=logging.WARNING,
                url=site.url,
            )
        return outcome

    def _archive_image(
        self, site: Site, image: Image, directory: Path, position: int, total: int
    ) -> EventKind:
        """Make sure ``image`` exists on disk and return the recorded event kind."""

        if image.fetch_success:
            return self.diagnostics.record(
                EventKind.IMAGE_CACHED,
                "Image already fetched: %s",
                image.url,
                level=logging.DEBUG,
                url=image.url,
            ).kind

        url = site.image_url(image)
        try:
            target = storage.image_path(directory, image.url)
        except ValueError as exc:
            return self.diagnostics.record(
                EventKind.IMAGE_PATH_REJECTED,
                "Refusing to store image %s: %s",
                url,
                exc,
                level=logging.WARNING,
                url=url,
            ).kind

        if target.exists():
            image.fetch_success = True
            return self.diagnostics.record(
                EventKind.IMAGE_EXISTS,
                "Image %d of %d already exists - %s",
                position,
                total,
                url,
                url=url,
            ).kind

        logger.info("Downloading image %d of %d - %s...", position, total, url)
        try:
            size = self.context.transport.download(url, target)
        except (FetchError, OSError) as exc:
            return self.diagnostics.record(
                EventKind.IMAGE_FETCH_FAILED,
                "Unable to download image %s: %s",
                url,
                exc,
                level=logging.WARNING,
                url=url,
            ).kind

        image.fetch_success = True
        return self.diagnostics.record(
            EventKind.IMAGE_DOWNLOADED,
            "Stored image %s (%d bytes)",
            target,
            size,
            level=logging.DEBUG,
            url=url,
        ).kind

    def _ensure_dir(self, directory: Path) -> None:
        try:
            storage.ensure_dir(directory, self.context.settings.dir_mode)
        except OSError as exc:
            raise ArchiveWriteError(f"Unable to create site directory {directory}: {exc}") from exc

    def _write_page(self, path: Path, page: bytes) -> None:
        try:
            path.write_bytes(page)
        except OSError as exc:
            raise ArchiveWriteError(f"Unable to save site content {path}: {exc}") from exc
