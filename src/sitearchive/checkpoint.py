"""Persistence of the checkpoint document that drives resumable runs."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from sitearchive.errors import CheckpointError, EmptySiteListError
from sitearchive.models import CheckpointDocument

__all__ = ["CheckpointStore", "load_checkpoint", "save_checkpoint"]

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Read and rewrite the checkpoint document at ``path``.

    Every :meth:`save` writes a complete snapshot. The data is first written to
    a sibling temporary file which then replaces the document, so readers only
    ever see the previous snapshot or the new one.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self, *, allow_empty: bool = False) -> CheckpointDocument:
        """Load the document, raising :class:`CheckpointError` on any failure."""

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise CheckpointError(f"Checkpoint file not found: {self.path}") from exc
        except OSError as exc:
            raise CheckpointError(f"Unable to read checkpoint file {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CheckpointError(f"Invalid JSON in checkpoint file: {self.path}") from exc

        try:
            document = CheckpointDocument.model_validate(data)
        except ValidationError as exc:
            raise CheckpointError(f"Checkpoint file is invalid: {self.path}\n{exc}") from exc

        if not document.sites and not allow_empty:
            raise EmptySiteListError(f"Site list is empty: {self.path}")

        logger.debug("Loaded %d sites from %s", len(document.sites), self.path)
        return document

    def save(self, document: CheckpointDocument) -> None:
        """Persist ``document`` in full, raising :class:`CheckpointError` on failure."""

        payload = document.model_dump_json(indent=2)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            tmp_path.write_text(payload + "\n", encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise CheckpointError(f"Unable to save checkpoint file {self.path}: {exc}") from exc

        logger.debug("Saved checkpoint %s", self.path)


def load_checkpoint(path: Path | str) -> CheckpointDocument:
    """Convenience wrapper around :meth:`CheckpointStore.load`."""

    return CheckpointStore(path).load()


def save_checkpoint(document: CheckpointDocument, path: Path | str) -> None:
    """Convenience wrapper around :meth:`CheckpointStore.save`."""

    CheckpointStore(path).save(document)
