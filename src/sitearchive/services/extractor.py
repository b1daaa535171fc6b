"""HTML helpers: title and image extraction plus image reference rewriting."""

from __future__ import annotations

import logging
import os
from typing import List

from bs4 import BeautifulSoup, UnicodeDammit

from sitearchive.diagnostics import Diagnostics, EventKind
from sitearchive.models import Image

__all__ = [
    "IMAGE_EXTENSIONS",
    "decode_markup",
    "encode_markup",
    "extract_images",
    "extract_title",
    "is_valid_image_extension",
    "normalize_image_reference",
    "rewrite_image_sources",
]

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "ico", "svg"})

# Extraction and rewriting must agree on every attribute value, so both use one parser.
PARSER = "lxml"


def is_valid_image_extension(extension: str, diagnostics: Diagnostics | None = None) -> bool:
    """Return ``True`` when ``extension`` names an archived image type.

    The check is case-insensitive and the leading dot is optional.
    """

    normalized = extension.replace(".", "").lower()
    if normalized in IMAGE_EXTENSIONS:
        return True

    if diagnostics is not None:
        diagnostics.record(
            EventKind.IMAGE_REJECTED,
            "Image extension is invalid: %s",
            extension,
            level=logging.DEBUG,
        )
    else:
        logger.debug("Image extension is invalid: %s", extension)
    return False


def decode_markup(content: bytes) -> tuple[str, str]:
    """Decode raw page bytes and return the text with the encoding that was used.

    The encoding is needed to write a rewritten page back in the charset its
    own markup declares.
    """

    dammit = UnicodeDammit(content, is_html=True)
    if dammit.unicode_markup is None or not dammit.original_encoding:
        return content.decode("utf-8", errors="replace"), "utf-8"
    return dammit.unicode_markup, dammit.original_encoding


def encode_markup(html: str, encoding: str) -> bytes:
    """Encode ``html`` for disk, escaping characters ``encoding`` cannot hold."""

    return html.encode(encoding, errors="xmlcharrefreplace")


def extract_title(html: str) -> str:
    """Return the page title, or an empty string when there is none."""

    try:
        soup = BeautifulSoup(html, PARSER)
    except Exception as exc:  # noqa: BLE001 - unparsable markup has no title
        logger.debug("Unable to parse markup for title: %s", exc)
        return ""
    return soup.title.get_text(strip=True) if soup.title else ""


def normalize_image_reference(src: str, site_url: str) -> str:
    """Return ``src`` relative to the site archive root."""

    prefix = site_url.rstrip("/") + "/"
    # Protocol-relative references ('//host/a.png') lose every leading slash.
    return src.removeprefix(prefix).lstrip("/")


def _qualifying_reference(src: str | None, diagnostics: Diagnostics | None) -> str | None:
    if not src:
        return None
    src = src.strip()
    if not src:
        return None
    extension = os.path.splitext(src)[1]
    if not is_valid_image_extension(extension, diagnostics):
        return None
    return src


def extract_images(
    html: str, site_url: str, diagnostics: Diagnostics | None = None
) -> List[Image]:
    """Return one :class:`Image` per qualifying ``<img src>`` in document order.

    Repeated references are kept. Markup that cannot be parsed yields an empty
    list.
    """

    try:
        soup = BeautifulSoup(html, PARSER)
    except Exception as exc:  # noqa: BLE001 - unparsable markup has no images
        logger.debug("Unable to parse markup for images: %s", exc)
        return []

    images: List[Image] = []
    for tag in soup.find_all("img"):
        src = _qualifying_reference(tag.get("src"), diagnostics)
        if src is None:
            continue
        relative = normalize_image_reference(src, site_url)
        if relative:
            images.append(Image(url=relative))
    return images


def rewrite_image_sources(html: str, site_url: str, *, absolute: bool = False) -> str:
    """Point every archived ``<img src>`` at its local copy in one pass.

    In relative mode the attribute becomes the path stored on the matching
    :class:`Image`; in absolute mode it is prefixed with the site URL. Applying
    the rewrite again yields the same markup. When nothing changes the input is
    returned as is, so unrelated markup is never re-serialised.
    """

    try:
        soup = BeautifulSoup(html, PARSER)
    except Exception as exc:  # noqa: BLE001 - leave unparsable markup alone
        logger.debug("Unable to parse markup for rewriting: %s", exc)
        return html

    base_url = site_url.rstrip("/")
    changed = False
    for tag in soup.find_all("img"):
        src = _qualifying_reference(tag.get("src"), None)
        if src is None:
            continue
        relative = normalize_image_reference(src, site_url)
        if not relative:
            continue
        target = f"{base_url}/{relative}" if absolute else relative
        if tag["src"] != target:
            tag["src"] = target
            changed = True

    if not changed:
        return html
    # Keep any <meta charset> as written; the caller encodes with the detected charset.
    return soup.decode(eventual_encoding=None)
