"""Utilities for working with the local archive tree written by the archiver."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path, PurePosixPath
from typing import Union

from slugify import slugify

from sitearchive.config import DEFAULT_ARCHIVE_DIRNAME, DEFAULT_DIR_MODE

#: File name of the saved page inside every site directory.
PAGE_FILENAME = "index.html"

_Pathish = Union[str, Path]

_STRIPPED_URL_PARTS = ("http://", "https://", ".onion")


def resolve_archive_root(archive_root: _Pathish | None = None) -> Path:
    """Return a :class:`Path` pointing at the archive root.

    When ``archive_root`` is ``None`` the ``sites`` directory below the current
    working directory is returned. The path is not created on disk.
    """

    if archive_root is None:
        return Path.cwd() / DEFAULT_ARCHIVE_DIRNAME
    if isinstance(archive_root, Path):
        return archive_root
    return Path(archive_root)


def site_dir_name(url: str) -> str:
    """Derive a filesystem safe directory name from a site URL.

    >>> site_dir_name("http://example.onion/")
    'example'
    """

    name = url
    for part in _STRIPPED_URL_PARTS:
        name = name.replace(part, "")
    slug = slugify(name)
    if slug:
        return slug
    # Nothing survives slugification (e.g. a bare scheme); fall back to a digest.
    return hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]


def site_dir(url: str, archive_root: _Pathish | None = None) -> Path:
    return resolve_archive_root(archive_root) / site_dir_name(url)


def page_path(directory: Path) -> Path:
    return directory / PAGE_FILENAME


def image_path(directory: Path, relative_url: str) -> Path:
    """Return where the image ``relative_url`` is stored inside ``directory``.

    Leading slashes are dropped so the path always stays below ``directory``.
    Raises :class:`ValueError` for ``..`` segments or an empty reference.
    """

    relative = PurePosixPath(relative_url.lstrip("/"))
    if ".." in relative.parts or not relative.parts:
        raise ValueError(f"image path escapes the site directory: {relative_url!r}")
    return directory.joinpath(*relative.parts)


def ensure_dir(path: Path, mode: int = DEFAULT_DIR_MODE) -> Path:
    """Create ``path`` and any missing parents with ``mode``."""

    os.makedirs(path, mode=mode, exist_ok=True)
    return path


__all__ = [
    "PAGE_FILENAME",
    "ensure_dir",
    "image_path",
    "page_path",
    "resolve_archive_root",
    "site_dir",
    "site_dir_name",
]
