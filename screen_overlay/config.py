"""Configuration helpers for the Screen Overlay client."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit

from screen_overlay.reconnect import ReconnectPolicy

URL_ENV_VAR = "SCREEN_OVERLAY_WS_URL"
SCALE_ENV_VAR = "SCREEN_OVERLAY_SCALE"
SURFACE_HEIGHT_ENV_VAR = "SCREEN_OVERLAY_SURFACE_HEIGHT"

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8000
DEFAULT_PATH = "/ws"


@dataclass(frozen=True)
class Endpoint:
    """Connection target for the bounding box stream."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    path: str = DEFAULT_PATH
    scheme: str = "ws"

    @property
    def url(self) -> str:
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"{self.scheme}://{self.host}:{self.port}{path}"

    @classmethod
    def from_url(cls, url: str) -> "Endpoint":
        parts = urlsplit(url.strip())
        if parts.scheme not in {"ws", "wss"}:
            raise ValueError(f"Unsupported endpoint scheme in {url!r}; expected ws:// or wss://")
        if not parts.hostname:
            raise ValueError(f"Endpoint URL {url!r} has no host")
        try:
            port = parts.port
        except ValueError as exc:
            raise ValueError(f"Endpoint URL {url!r} has an invalid port") from exc
        if port is None:
            port = 443 if parts.scheme == "wss" else 80
        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        return cls(host=parts.hostname, port=port, path=path, scheme=parts.scheme)

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class StreamSettings:
    """Values used to bootstrap the stream client and the box overlay."""

    endpoint: Endpoint = field(default_factory=Endpoint)
    surface_height: Optional[float] = None
    scale: float = 1.0
    render_all: bool = False
    open_timeout: float = 5.0
    reconnect: ReconnectPolicy = field(default_factory=ReconnectPolicy)
    log_retention: int = 5
    watermark: str = "JARVIS"


def _coerce_positive_float(value: Any, fallback: Optional[float]) -> Optional[float]:
    if value is None:
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    if numeric <= 0.0:
        return fallback
    return numeric


def load_settings(settings_path: Path) -> StreamSettings:
    """Read overlay_settings.json if it exists, falling back to defaults per value."""
    defaults = StreamSettings()
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return defaults

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return defaults
    if not isinstance(data, dict):
        return defaults

    endpoint = defaults.endpoint
    url_value = data.get("url")
    if isinstance(url_value, str) and url_value.strip():
        try:
            endpoint = Endpoint.from_url(url_value)
        except ValueError:
            endpoint = defaults.endpoint
    else:
        host = data.get("host")
        port = data.get("port")
        path = data.get("path")
        try:
            port_value = int(port) if port is not None else defaults.endpoint.port
        except (TypeError, ValueError):
            port_value = defaults.endpoint.port
        endpoint = Endpoint(
            host=str(host) if isinstance(host, str) and host else defaults.endpoint.host,
            port=port_value if 0 < port_value < 65536 else defaults.endpoint.port,
            path=str(path) if isinstance(path, str) and path else defaults.endpoint.path,
        )

    retention = defaults.log_retention
    try:
        retention = int(data.get("log_retention", retention))
    except (TypeError, ValueError):
        retention = defaults.log_retention

    reconnect_block = data.get("reconnect")
    reconnect = (
        ReconnectPolicy.from_mapping(reconnect_block) if isinstance(reconnect_block, Mapping) else defaults.reconnect
    )
    watermark = data.get("watermark")

    return StreamSettings(
        endpoint=endpoint,
        surface_height=_coerce_positive_float(data.get("surface_height"), defaults.surface_height),
        scale=_coerce_positive_float(data.get("scale"), defaults.scale) or defaults.scale,
        render_all=bool(data.get("render_all", defaults.render_all)),
        open_timeout=_coerce_positive_float(data.get("open_timeout"), defaults.open_timeout) or defaults.open_timeout,
        reconnect=reconnect,
        log_retention=max(1, retention),
        watermark=watermark if isinstance(watermark, str) else defaults.watermark,
    )


def apply_env_overrides(settings: StreamSettings, env: Optional[Mapping[str, str]] = None) -> StreamSettings:
    """Layer SCREEN_OVERLAY_* environment values over loaded settings."""
    source: Mapping[str, str] = os.environ if env is None else env
    updates: Dict[str, Any] = {}
    url_value = source.get(URL_ENV_VAR)
    if url_value:
        updates["endpoint"] = Endpoint.from_url(url_value)
    scale = _coerce_positive_float(source.get(SCALE_ENV_VAR), None)
    if scale is not None:
        updates["scale"] = scale
    surface_height = _coerce_positive_float(source.get(SURFACE_HEIGHT_ENV_VAR), None)
    if surface_height is not None:
        updates["surface_height"] = surface_height
    if not updates:
        return settings
    return replace(settings, **updates)
