"""Device configuration and YAML loading.

A config file holds either a single device mapping or a ``devices:`` list:

    devices:
      - host: 192.168.1.20
        name: Living room
        ssl: true
        key_file: keys/living-room
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .correlation import REQUEST_TIMEOUT
from .protocol import DEFAULT_PORT, DEFAULT_SSL_PORT

DEFAULT_NAME = "LG TV"
DEFAULT_CLIENT_NAME = "lgwebos-core"


@dataclass(frozen=True)
class WebOsConfig:
    """Connection settings for one device.

    Attributes:
        host: Device hostname or IP
        key_file: File holding the pairing key
        name: Device name used in logs and events
        ssl: Use the TLS socket
        port: Override for the websocket port
        reconnect_delay: Constant delay before reconnecting (seconds)
        request_timeout: Window for request responses (seconds)
        heartbeat_interval: Ping interval while paired (seconds)
        settle_delay: Pause between list and status subscriptions (seconds)
        connect_timeout: Socket open timeout (seconds)
        use_processing_hints: Derive power from the ``processing`` hint too
        client_name: Application name shown on the pairing prompt
    """

    host: str
    key_file: Path
    name: str = DEFAULT_NAME
    ssl: bool = False
    port: int | None = None
    reconnect_delay: float = 5.0
    request_timeout: float = REQUEST_TIMEOUT
    heartbeat_interval: float = 3.0
    settle_delay: float = 2.0
    connect_timeout: float = 15.0
    use_processing_hints: bool = False
    client_name: str = DEFAULT_CLIENT_NAME

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("host is required")
        object.__setattr__(self, "key_file", Path(self.key_file))
        if self.port is not None and not 1 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")
        for name in (
            "reconnect_delay",
            "request_timeout",
            "heartbeat_interval",
            "connect_timeout",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.settle_delay < 0:
            raise ValueError("settle_delay must not be negative")

    @property
    def ws_port(self) -> int:
        if self.port is not None:
            return self.port
        return DEFAULT_SSL_PORT if self.ssl else DEFAULT_PORT

    @property
    def url(self) -> str:
        scheme = "wss" if self.ssl else "ws"
        return f"{scheme}://{self.host}:{self.ws_port}"


_FIELDS = {f.name for f in dataclasses.fields(WebOsConfig)}


def config_from_mapping(data: dict[str, Any], *, base_dir: Path) -> WebOsConfig:
    """Build a WebOsConfig from one YAML device mapping.

    Unknown keys are ignored. Relative key files resolve against ``base_dir``.
    """
    host = data.get("host")
    if not host:
        raise ValueError("Device entry is missing 'host'")

    values = {key: value for key, value in data.items() if key in _FIELDS}
    key_file = Path(values.get("key_file") or Path("keys") / str(host))
    if not key_file.is_absolute():
        key_file = base_dir / key_file
    values["key_file"] = key_file
    return WebOsConfig(**values)


def load_config(path: str | Path) -> list[WebOsConfig]:
    """Load device configs from a YAML file.

    Raises:
        ValueError: If the file does not describe at least one device
    """
    config_path = Path(path)
    with config_path.open(encoding="utf-8") as handle:
        raw = yaml.safe_load(handle)

    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a mapping")

    entries = raw.get("devices", [raw])
    if not isinstance(entries, list) or not entries:
        raise ValueError(f"{config_path} has no devices")

    base_dir = config_path.parent
    configs: list[WebOsConfig] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid device entry: {entry!r}")
        configs.append(config_from_mapping(entry, base_dir=base_dir))
    return configs
