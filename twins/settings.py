"""
Configuration loading - reads config/config.json
"""
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigError
from .rolling_buffer import DEFAULT_CAPACITY

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config", "config.json")
DEFAULT_ENDPOINT = "https://ligr2u0axj.execute-api.ap-south-1.amazonaws.com/"

DEFAULT_CONFIG: Dict[str, Any] = {
    "endpoint": DEFAULT_ENDPOINT,
    "request_timeout": 3.0,
    "history_size": DEFAULT_CAPACITY,
    "log_level": "INFO",
    "log_file": None,
    "twins": [],
    "alarm_settings": {"enable_notifications": False, "webhook_url": ""},
    "remote_console": {"enabled": True, "host": "localhost", "port": 8765},
}


def load_config(path: Optional[str] = None) -> dict:
    """
    Load configuration from config.json

    A missing file falls back to the defaults; a file that is not valid JSON
    raises ConfigError.
    """
    config_path = path or DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("config.json not found at %s. Using defaults.", config_path)
        return json.loads(json.dumps(DEFAULT_CONFIG))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")
    return data


def _section(config: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = config.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{key} must be a JSON object, got {section!r}")
    return section


def _flag(section: Dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


@dataclass
class MonitorSettings:
    """Typed view of the monitor configuration"""
    endpoint: str = DEFAULT_ENDPOINT
    request_timeout: float = 3.0
    history_size: int = DEFAULT_CAPACITY
    log_level: str = "INFO"
    log_file: Optional[str] = None
    twins: List[str] = field(default_factory=list)
    enable_notifications: bool = False
    webhook_url: str = ""
    console_enabled: bool = True
    console_host: str = "localhost"
    console_port: int = 8765

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "MonitorSettings":
        alarm_settings = _section(config, "alarm_settings")
        console_config = _section(config, "remote_console")
        twins = config.get("twins") or []
        if not isinstance(twins, list):
            raise ConfigError(f"twins must be a JSON array, got {twins!r}")
        try:
            settings = cls(
                endpoint=config.get("endpoint", DEFAULT_ENDPOINT),
                request_timeout=float(config.get("request_timeout", 3.0)),
                history_size=int(config.get("history_size", DEFAULT_CAPACITY)),
                log_level=str(config.get("log_level", "INFO")).upper(),
                log_file=config.get("log_file"),
                twins=list(twins),
                enable_notifications=_flag(alarm_settings, "enable_notifications", False),
                webhook_url=alarm_settings.get("webhook_url", ""),
                console_enabled=_flag(console_config, "enabled", True),
                console_host=console_config.get("host", "localhost"),
                console_port=int(console_config.get("port", 8765)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

        if settings.history_size < 1:
            raise ConfigError(f"history_size must be positive, got {settings.history_size}")
        if not settings.endpoint:
            raise ConfigError("endpoint must not be empty")
        return settings

    @property
    def log_level_value(self) -> int:
        level = getattr(logging, self.log_level, None)
        return level if isinstance(level, int) else logging.INFO
