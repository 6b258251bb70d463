"""
Error taxonomy for the twin monitor
"""
from enum import Enum


class TwinMonitorError(Exception):
    """Base class for all twin monitor errors"""


class FetchErrorKind(Enum):
    """Why a single fetch attempt failed"""
    TRANSPORT = "transport"
    DECODE = "decode"


class FetchError(TwinMonitorError):
    """One failed request/response exchange with the telemetry source"""

    def __init__(self, kind: FetchErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value} error: {detail}" if detail else f"{kind.value} error")


class InvalidArgumentError(TwinMonitorError, ValueError):
    """Raised for invalid caller input, e.g. an empty twin name"""


class TwinNotFoundError(TwinMonitorError, LookupError):
    """Raised when a twin id is not registered"""

    def __init__(self, twin_id: str):
        self.twin_id = twin_id
        super().__init__(f"Twin not found: {twin_id}")


class ConfigError(TwinMonitorError):
    """Raised when config.json cannot be parsed"""
