from __future__ import annotations

import os
import socket
from pathlib import Path
from types import SimpleNamespace

import pytest
import requests

from sitearchive.config import ArchiverSettings
from sitearchive.errors import FetchError, ProxyError
from sitearchive.services.transport import ProxyTransport


class DummyResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def make_transport(responses: dict[str, object], calls: list | None = None) -> ProxyTransport:
    transport = ProxyTransport(ArchiverSettings(timeout=7))

    def fake_get(url, timeout):
        if calls is not None:
            calls.append((url, timeout))
        response = responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    transport._session = SimpleNamespace(get=fake_get, close=lambda: None)
    return transport


def test_session_routes_through_socks_proxy() -> None:
    transport = ProxyTransport(ArchiverSettings())

    assert transport._session.proxies["http"] == "socks5h://127.0.0.1:9050"
    assert transport._session.proxies["https"] == "socks5h://127.0.0.1:9050"
    assert "User-Agent" in transport._session.headers
    transport.close()


def test_get_returns_body_and_counts_requests() -> None:
    calls: list = []
    transport = make_transport({"http://alpha.onion": DummyResponse(b"<html></html>")}, calls)

    assert transport.get("http://alpha.onion") == b"<html></html>"
    assert calls == [("http://alpha.onion", 7)]
    assert transport.request_count == 1


@pytest.mark.parametrize(
    "response",
    [DummyResponse(b"missing", status_code=404), requests.ConnectionError("refused"), requests.Timeout("slow")],
)
def test_get_failures_raise_fetch_error(response: object) -> None:
    transport = make_transport({"http://alpha.onion": response})

    with pytest.raises(FetchError) as excinfo:
        transport.get("http://alpha.onion")

    assert excinfo.value.url == "http://alpha.onion"
    assert transport.request_count == 1


def test_download_writes_file(tmp_path: Path) -> None:
    transport = make_transport({"http://alpha.onion/img/a.png": DummyResponse(b"PNG")})
    target = tmp_path / "alpha" / "img" / "a.png"

    assert transport.download("http://alpha.onion/img/a.png", target) == 3
    assert target.read_bytes() == b"PNG"
    assert not (target.parent / "a.png.part").exists()


def test_interrupted_download_leaves_no_partial_file(tmp_path: Path, monkeypatch) -> None:
    transport = make_transport({"http://alpha.onion/a.png": DummyResponse(b"PNG")})
    target = tmp_path / "a.png"

    def refuse(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", refuse)

    with pytest.raises(OSError, match="disk full"):
        transport.download("http://alpha.onion/a.png", target)

    assert not target.exists()
    assert not (tmp_path / "a.png.part").exists()


def test_failed_download_leaves_no_file(tmp_path: Path) -> None:
    transport = make_transport({"http://alpha.onion/a.png": requests.ConnectionError("reset")})
    target = tmp_path / "a.png"

    with pytest.raises(FetchError):
        transport.download("http://alpha.onion/a.png", target)

    assert not target.exists()


def test_verify_reports_unreachable_proxy(monkeypatch) -> None:
    def refuse(address, timeout):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(socket, "create_connection", refuse)
    transport = ProxyTransport(ArchiverSettings())

    with pytest.raises(ProxyError, match="127.0.0.1:9050"):
        transport.verify()


def test_verify_accepts_reachable_proxy(monkeypatch) -> None:
    opened: list = []

    class DummySocket:
        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return None

    def connect(address, timeout):
        opened.append(address)
        return DummySocket()

    monkeypatch.setattr(socket, "create_connection", connect)

    ProxyTransport(ArchiverSettings()).verify()

    assert opened == [("127.0.0.1", 9050)]
