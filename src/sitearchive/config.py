"""Runtime settings for the archiver."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Mapping, MutableMapping
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

__all__ = [
    "ArchiverSettings",
    "DEFAULT_ARCHIVE_DIRNAME",
    "DEFAULT_DIR_MODE",
    "DEFAULT_PROXY_URL",
    "DEFAULT_TIMEOUT",
    "ENV_PREFIX",
    "load_env_file",
]

ENV_PREFIX = "SITEARCHIVE_"

DEFAULT_PROXY_URL = "socks5h://127.0.0.1:9050"
DEFAULT_TIMEOUT = 30.0
DEFAULT_DIR_MODE = 0o777
DEFAULT_ARCHIVE_DIRNAME = "sites"

_PROXY_SCHEMES = {"socks5", "socks5h"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def load_env_file(path: Path, environ: MutableMapping[str, str] | None = None) -> List[str]:
    """Copy ``KEY=value`` lines from ``path`` into ``environ``.

    Variables that are already set win over the file. Blank lines, comments and
    an optional ``export`` prefix are accepted; surrounding quotes are removed.
    Returns the names that were applied.
    """

    target = os.environ if environ is None else environ
    if not path.is_file():
        return []

    applied: List[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if line.startswith("#") or not sep or not key or key in target:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        target[key] = value
        applied.append(key)
    return applied


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


class ArchiverSettings(BaseModel):
    """Settings shared by the transport, the archive layout and the CLI."""

    proxy_url: str = Field(
        default=DEFAULT_PROXY_URL,
        description="SOCKS5 endpoint all requests are routed through",
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-request timeout in seconds")
    dir_mode: int = Field(default=DEFAULT_DIR_MODE, ge=0, le=0o777)
    use_absolute_paths: bool = Field(
        default=False,
        description=(
            "Rewrite image references in saved pages to point at the live site instead of "
            "the local archive copy."
        ),
    )
    archive_root: Path = Field(default_factory=lambda: Path.cwd() / DEFAULT_ARCHIVE_DIRNAME)
    verify_proxy: bool = Field(
        default=True,
        description="Check that the proxy accepts TCP connections before crawling",
    )
    log_level: str = Field(default="INFO")

    @field_validator("proxy_url")
    @classmethod
    def _check_proxy_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in _PROXY_SCHEMES:
            raise ValueError(f"proxy URL must use one of {sorted(_PROXY_SCHEMES)}: {value}")
        if not parsed.hostname or parsed.port is None:
            raise ValueError(f"proxy URL must include a host and port: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def proxy_address(self) -> tuple[str, int]:
        """Return the ``(host, port)`` pair of the proxy endpoint."""

        parsed = urlparse(self.proxy_url)
        return parsed.hostname or "", parsed.port or 0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ArchiverSettings":
        """Build settings from ``SITEARCHIVE_*`` environment variables."""

        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        def lookup(key: str) -> str | None:
            return env.get(ENV_PREFIX + key)

        if (raw := lookup("PROXY_URL")) is not None:
            values["proxy_url"] = raw.strip()
        if (raw := lookup("TIMEOUT")) is not None:
            try:
                values["timeout"] = float(raw)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}TIMEOUT must be a number, got {raw!r}") from exc
        if (raw := lookup("DIR_MODE")) is not None:
            try:
                values["dir_mode"] = int(raw, 8)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}DIR_MODE must be an octal mode, got {raw!r}") from exc
        if (raw := lookup("ABSOLUTE_PATHS")) is not None:
            values["use_absolute_paths"] = _parse_bool(f"{ENV_PREFIX}ABSOLUTE_PATHS", raw)
        if (raw := lookup("ARCHIVE_ROOT")) is not None:
            values["archive_root"] = Path(raw).expanduser()
        if (raw := lookup("VERIFY_PROXY")) is not None:
            values["verify_proxy"] = _parse_bool(f"{ENV_PREFIX}VERIFY_PROXY", raw)
        if (raw := lookup("LOG_LEVEL")) is not None:
            values["log_level"] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ValueError(f"Invalid archiver settings in environment\n{exc}") from exc
