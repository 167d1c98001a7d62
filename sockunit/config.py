"""Factory configuration and sockunit.toml loading."""
from __future__ import annotations

import math
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

from sockunit.errors import InvalidConfig

DEFAULT_TIMEOUT = 2.0
DEFAULT_PARAMS: dict[str, Any] = {"transports": ["websocket", "polling"]}
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class FactoryConfig:
    url: str
    ack_handler: Callable[..., Any]
    timeout: float = DEFAULT_TIMEOUT  # seconds
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.url or not isinstance(self.url, str):
            raise InvalidConfig(f"Invalid url {self.url!r}")
        if not callable(self.ack_handler):
            raise InvalidConfig("Invalid ack_handler: must be callable")
        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or not math.isfinite(self.timeout)
            or self.timeout <= 0
        ):
            raise InvalidConfig(f"Invalid timeout {self.timeout!r}")
        if not isinstance(self.params, Mapping):
            raise InvalidConfig(f"Invalid params {self.params!r}")
        # Detach from the caller's mapping so later mutation cannot leak in.
        object.__setattr__(self, "params", dict(self.params))

    def merged_params(self) -> dict[str, Any]:
        """Defaults overlaid with the configured params; caller keys win."""
        merged = {k: list(v) if isinstance(v, list) else v for k, v in DEFAULT_PARAMS.items()}
        merged.update(self.params)
        return merged


@dataclass
class Settings:
    url: str
    timeout: float = DEFAULT_TIMEOUT
    params: dict[str, Any] = field(default_factory=dict)

    def factory_config(self, ack_handler: Callable[..., Any]) -> FactoryConfig:
        return FactoryConfig(
            url=self.url,
            ack_handler=ack_handler,
            timeout=self.timeout,
            params=self.params,
        )


def load(project_root: Path | None = None) -> Settings:
    """Load settings from sockunit.toml; all fields have defaults.

    SOCKET_URL overrides the file. SOCKET_PORT is used only when no URL is
    configured anywhere.
    """
    if project_root is None:
        project_root = Path.cwd()

    toml_path = project_root / "sockunit.toml"
    data: dict = {}
    if toml_path.exists():
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)

    server = data.get("server", {})
    connect = data.get("connect", {})

    url = os.environ.get("SOCKET_URL") or server.get("url")
    if not url:
        port = os.environ.get("SOCKET_PORT") or server.get("port", DEFAULT_PORT)
        url = f"http://localhost:{port}"

    return Settings(
        url=url,
        timeout=connect.get("timeout", DEFAULT_TIMEOUT),
        params=dict(connect.get("params", {})),
    )
