"""Runtime configuration for the backend server and the relay.

Settings come from a YAML file (``config/explorer.yaml`` by default); every
key is optional and falls back to the constants below. CLI flags override
file values.

Example:
    data_dir: data
    datasets: [movies.json, sales.json, weather.json]
    server:
      host: 127.0.0.1
      port: 3001
    relay:
      backend_url: http://127.0.0.1:3001
      timeout_sec: 30
      protocol_version: "2025-11-21"
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from data_explorer.core.store import discover_dataset_files
from data_explorer.relay.relay import DEFAULT_PROTOCOL_VERSION, DEFAULT_TIMEOUT_SEC, HOST_NAME

DEFAULT_CONFIG_PATH = Path("config/explorer.yaml")
DEFAULT_DATA_DIR = Path("data")
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001


@dataclass(frozen=True)
class ExplorerConfig:
    """Resolved settings.

    Attributes:
        data_dir: Directory holding dataset files.
        datasets: Explicit dataset file names (relative to data_dir). Empty
            means every .json/.csv file in data_dir.
        host / port: Bind address of the backend HTTP server.
        backend_url: Base URL the relay forwards tool calls to.
        timeout_sec: Per-request bound on relay handlers.
        protocol_version: Version announced when the app does not ask for one.
        host_name: Name reported in ``hostInfo``.
    """

    data_dir: Path = DEFAULT_DATA_DIR
    datasets: Tuple[str, ...] = field(default_factory=tuple)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    backend_url: str = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    host_name: str = HOST_NAME

    def dataset_paths(self) -> List[Path]:
        if self.datasets:
            return [self.data_dir / name for name in self.datasets]
        return discover_dataset_files(self.data_dir)

    def with_overrides(self, **overrides: Any) -> "ExplorerConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a mapping")
    return value


def load_config(path: Optional[Path] = None) -> ExplorerConfig:
    """Load settings from YAML.

    A missing default file yields the defaults; a missing explicit path
    raises FileNotFoundError.
    """
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return ExplorerConfig()

    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    server = _section(data, "server")
    relay = _section(data, "relay")
    defaults = ExplorerConfig()

    data_dir = Path(data.get("data_dir") or defaults.data_dir)
    host = str(server.get("host") or defaults.host)
    port = int(server.get("port") or defaults.port)
    return ExplorerConfig(
        data_dir=data_dir,
        datasets=tuple(str(d) for d in (data.get("datasets") or [])),
        host=host,
        port=port,
        backend_url=str(relay.get("backend_url") or f"http://{host}:{port}"),
        timeout_sec=float(relay.get("timeout_sec") or defaults.timeout_sec),
        protocol_version=str(relay.get("protocol_version") or defaults.protocol_version),
        host_name=str(relay.get("host_name") or defaults.host_name),
    )
