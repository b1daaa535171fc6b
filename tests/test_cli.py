"""Tests for the command line entry point in :mod:`sitearchive.cli`."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sitearchive import cli
from sitearchive.errors import FetchError

ALPHA = "http://alpha.onion"


class DummyTransport:
    def __init__(self, responses: dict[str, bytes]) -> None:
        self.responses = responses
        self.request_count = 0
        self.verified = False
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def verify(self) -> None:
        self.verified = True

    def get(self, url: str) -> bytes:
        self.request_count += 1
        if url not in self.responses:
            raise FetchError(url, "unreachable")
        return self.responses[url]

    def download(self, url: str, path: Path) -> int:
        content = self.get(url)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return len(content)


@pytest.fixture
def archive_env(tmp_path: Path, monkeypatch) -> Path:
    """Point the archive root at a temporary directory."""

    root = tmp_path / "sites"
    monkeypatch.setenv("SITEARCHIVE_ARCHIVE_ROOT", str(root))
    monkeypatch.delenv("SITEARCHIVE_PROXY_URL", raising=False)
    monkeypatch.delenv("SITEARCHIVE_VERIFY_PROXY", raising=False)
    return root


@pytest.mark.parametrize("argv", [[], ["one.json", "two.json"]])
def test_wrong_arity_prints_usage_and_exits_cleanly(argv: list[str], capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 0
    assert "usage: sitearchive" in capsys.readouterr().out


def test_run_archives_sites(tmp_path: Path, archive_env: Path, monkeypatch) -> None:
    checkpoint = tmp_path / "sites.json"
    checkpoint.write_text(json.dumps({"sites": [{"url": ALPHA}]}), encoding="utf-8")
    transport = DummyTransport(
        {ALPHA: b'<title>Alpha</title><img src="/logo.png">', f"{ALPHA}/logo.png": b"PNG"}
    )
    monkeypatch.setattr(cli, "ProxyTransport", lambda settings: transport)

    assert cli.main([str(checkpoint)]) == 0

    saved = json.loads(checkpoint.read_text(encoding="utf-8"))
    assert saved["sites"][0]["fetch_success"] is True
    assert saved["sites"][0]["images"] == [{"url": "logo.png", "fetch_success": True}]
    assert (archive_env / "alpha" / "logo.png").read_bytes() == b"PNG"
    assert transport.verified is True
    assert transport.closed is True


def test_empty_site_list_stops_before_creating_directories(
    tmp_path: Path, archive_env: Path, monkeypatch, caplog
) -> None:
    checkpoint = tmp_path / "sites.json"
    checkpoint.write_text('{"sites": []}', encoding="utf-8")

    def fail(settings):
        raise AssertionError("transport should not be created")

    monkeypatch.setattr(cli, "ProxyTransport", fail)

    assert cli.main([str(checkpoint)]) == 0

    assert not archive_env.exists()
    assert "Site list is empty" in caplog.text


def test_unreadable_checkpoint_is_fatal(tmp_path: Path, archive_env: Path, caplog) -> None:
    checkpoint = tmp_path / "sites.json"
    checkpoint.write_text("{broken", encoding="utf-8")

    assert cli.main([str(checkpoint)]) == 0

    assert "Invalid JSON" in caplog.text
    assert not archive_env.exists()


def test_invalid_settings_are_fatal(tmp_path: Path, monkeypatch, caplog) -> None:
    monkeypatch.setenv("SITEARCHIVE_PROXY_URL", "http://127.0.0.1:3128")
    checkpoint = tmp_path / "sites.json"
    checkpoint.write_text(json.dumps({"sites": [{"url": ALPHA}]}), encoding="utf-8")

    assert cli.main([str(checkpoint)]) == 0

    assert "proxy URL" in caplog.text
    assert json.loads(checkpoint.read_text(encoding="utf-8")) == {"sites": [{"url": ALPHA}]}


def test_skipping_proxy_verification(tmp_path: Path, archive_env: Path, monkeypatch) -> None:
    monkeypatch.setenv("SITEARCHIVE_VERIFY_PROXY", "false")
    checkpoint = tmp_path / "sites.json"
    checkpoint.write_text(json.dumps({"sites": [{"url": ALPHA}]}), encoding="utf-8")
    transport = DummyTransport({})
    monkeypatch.setattr(cli, "ProxyTransport", lambda settings: transport)

    assert cli.main([str(checkpoint)]) == 0

    assert transport.verified is False
    saved = json.loads(checkpoint.read_text(encoding="utf-8"))
    assert saved["sites"][0]["fetch_success"] is False
