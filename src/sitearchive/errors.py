"""Exception types raised by the archiver."""

from __future__ import annotations

__all__ = [
    "ArchiveWriteError",
    "ArchiverError",
    "CheckpointError",
    "EmptySiteListError",
    "FetchError",
    "ProxyError",
]


class ArchiverError(Exception):
    """Base class for errors that stop an archive run."""


class CheckpointError(ArchiverError):
    """The checkpoint document could not be read, parsed or written."""


class EmptySiteListError(CheckpointError):
    """The checkpoint document does not list any sites."""


class ProxyError(ArchiverError):
    """The SOCKS proxy is misconfigured or unreachable."""


class ArchiveWriteError(ArchiverError):
    """A site directory or page file could not be written."""


class FetchError(Exception):
    """A single network fetch failed.

    Unlike :class:`ArchiverError` this is recoverable: the archiver records the
    failure on the affected site or image and moves on.
    """

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
