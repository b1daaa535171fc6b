"""Site archiver package exposing configuration, models and the checkpoint store."""

from __future__ import annotations

from pathlib import Path

from .config import load_env_file

# A checkout keeps its ``.env`` next to ``pyproject.toml``.
load_env_file(Path(__file__).resolve().parents[2] / ".env")

from .checkpoint import CheckpointStore  # noqa: E402,F401
from .config import ArchiverSettings  # noqa: E402,F401
from .models import CheckpointDocument, Image, Site  # noqa: E402,F401

__all__ = ["ArchiverSettings", "CheckpointDocument", "CheckpointStore", "Image", "Site"]
