"""Structured diagnostic events emitted while archiving."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List

from pydantic import BaseModel

__all__ = ["DiagnosticEvent", "Diagnostics", "EventKind"]

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    SITE_REUSED = "site_reused"
    PAGE_MISSING = "page_missing"
    PAGE_FETCHED = "page_fetched"
    PAGE_FETCH_FAILED = "page_fetch_failed"
    IMAGE_CACHED = "image_cached"
    IMAGE_EXISTS = "image_exists"
    IMAGE_DOWNLOADED = "image_downloaded"
    IMAGE_FETCH_FAILED = "image_fetch_failed"
    IMAGE_REJECTED = "image_rejected"
    IMAGE_PATH_REJECTED = "image_path_rejected"
    SITE_COMPLETE = "site_complete"
    SITE_INCOMPLETE = "site_incomplete"


class DiagnosticEvent(BaseModel):
    kind: EventKind
    level: int
    message: str
    url: str | None = None


class Diagnostics:
    """Collects classified events and forwards each one to :mod:`logging`."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger
        self.events: List[DiagnosticEvent] = []

    def record(
        self,
        kind: EventKind,
        message: str,
        *args: object,
        level: int = logging.INFO,
        url: str | None = None,
    ) -> DiagnosticEvent:
        """Store an event and log ``message % args`` at ``level``."""

        event = DiagnosticEvent(
            kind=kind,
            level=level,
            message=message % args if args else message,
            url=url,
        )
        self.events.append(event)
        self._logger.log(level, message, *args)
        return event

    def kinds(self) -> List[EventKind]:
        return [event.kind for event in self.events]

    def of_kind(self, kind: EventKind) -> List[DiagnosticEvent]:
        return [event for event in self.events if event.kind is kind]

    def clear(self) -> None:
        self.events.clear()
