"""
Client configuration.

Resolution order (later wins):
    defaults  <-  YAML file  <-  environment

The YAML file is ``~/.livetype/config.yaml`` unless a path is passed in:

    server_url: ws://localhost:8080
    display_name: alice
    reconnect_delay: 3.0
    ping_interval: 15
    ping_timeout: 45
    log_level: INFO
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shared.log import get_logger
from shared.utils import is_ws_url, is_number

logger = get_logger(__name__)

DEFAULT_SERVER_URL = "ws://localhost:8080"
DEFAULT_RECONNECT_DELAY = 3.0
DEFAULT_CONFIG_PATH = Path.home() / ".livetype" / "config.yaml"

ENV_SERVER = "LIVETYPE_SERVER"
ENV_NAME = "LIVETYPE_NAME"
ENV_RECONNECT_DELAY = "LIVETYPE_RECONNECT_DELAY"


class ConfigError(Exception):
    """Raised when the configuration file or environment is unusable."""
    pass


@dataclass
class ClientConfig:
    server_url: str = DEFAULT_SERVER_URL
    display_name: Optional[str] = None
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    ping_interval: Optional[float] = 15.0
    ping_timeout: Optional[float] = 45.0
    log_level: str = "INFO"

    def validate(self) -> None:
        if not is_ws_url(self.server_url):
            raise ConfigError(f"server_url must be a ws:// or wss:// URL, got {self.server_url!r}")
        if not is_number(self.reconnect_delay) or self.reconnect_delay < 0:
            raise ConfigError(f"reconnect_delay must be a non-negative number, got {self.reconnect_delay!r}")
        for name in ("ping_interval", "ping_timeout"):
            value = getattr(self, name)
            if value is not None and (not is_number(value) or value <= 0):
                raise ConfigError(f"{name} must be a positive number or null, got {value!r}")
        if self.display_name is not None and not isinstance(self.display_name, str):
            raise ConfigError("display_name must be a string")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> ClientConfig:
    """
    Build the client configuration.

    An explicit ``path`` must exist; the default path is optional.
    """
    env = os.environ if env is None else env
    values: Dict[str, Any] = {}

    if path is not None:
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        values.update(_read_yaml(path))
    elif DEFAULT_CONFIG_PATH.exists():
        values.update(_read_yaml(DEFAULT_CONFIG_PATH))

    if env.get(ENV_SERVER):
        values["server_url"] = env[ENV_SERVER]
    if env.get(ENV_NAME):
        values["display_name"] = env[ENV_NAME]
    if env.get(ENV_RECONNECT_DELAY):
        try:
            values["reconnect_delay"] = float(env[ENV_RECONNECT_DELAY])
        except ValueError:
            raise ConfigError(f"{ENV_RECONNECT_DELAY} must be a number")

    known = {f.name for f in fields(ClientConfig)}
    unknown = set(values) - known
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

    config = ClientConfig(**{k: v for k, v in values.items() if k in known})
    config.validate()
    return config


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error reading {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    logger.debug("Loaded config from %s", path)
    return data
