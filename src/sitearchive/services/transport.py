"""HTTP transport routed through a SOCKS5 proxy."""

from __future__ import annotations

import logging
import os
import socket
from pathlib import Path

import requests

from sitearchive.config import ArchiverSettings
from sitearchive.errors import FetchError, ProxyError
from sitearchive.storage import ensure_dir

__all__ = ["DEFAULT_HEADERS", "ProxyTransport"]

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; rv:128.0) Gecko/20100101 Firefox/128.0",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class ProxyTransport:
    """Blocking GET requests over the configured SOCKS5 endpoint.

    There is no retry policy: a failed request raises :class:`FetchError` and the
    caller decides what to record.
    """

    def __init__(
        self,
        settings: ArchiverSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.timeout = settings.timeout
        self.request_count = 0
        self._session = session or requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)
        self._session.proxies.update(
            {"http": settings.proxy_url, "https": settings.proxy_url}
        )

    def verify(self) -> None:
        """Raise :class:`ProxyError` unless the proxy accepts TCP connections."""

        host, port = self.settings.proxy_address
        try:
            with socket.create_connection((host, port), timeout=self.timeout):
                pass
        except OSError as exc:
            raise ProxyError(
                f"Unable to reach proxy {self.settings.proxy_url}: {exc}"
            ) from exc
        logger.debug("Proxy %s is reachable", self.settings.proxy_url)

    def get(self, url: str) -> bytes:
        """Return the body of ``url``."""

        self.request_count += 1
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.content
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc

    def download(self, url: str, path: Path) -> int:
        """Fetch ``url`` into ``path`` and return the number of bytes written.

        The body is written to a ``.part`` sibling first and moved into place, so
        ``path`` only ever exists as a complete file.
        """

        content = self.get(url)
        ensure_dir(path.parent, self.settings.dir_mode)
        part_path = path.with_name(f"{path.name}.part")
        try:
            part_path.write_bytes(content)
            os.replace(part_path, path)
        except OSError:
            part_path.unlink(missing_ok=True)
            raise
        return len(content)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ProxyTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
