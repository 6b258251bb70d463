"""
Twin Data Models, Rolling History and Registry
"""
from .errors import (
    TwinMonitorError,
    FetchError,
    FetchErrorKind,
    InvalidArgumentError,
    TwinNotFoundError,
    ConfigError
)
from .twin_data import (
    Snapshot,
    HealthState,
    TerminalFailure,
    classify,
    kelvin_to_celsius,
    parse_snapshot
)
from .rolling_buffer import RollingBuffer
from .twin_registry import Twin, TwinRegistry

__all__ = [
    'TwinMonitorError',
    'FetchError',
    'FetchErrorKind',
    'InvalidArgumentError',
    'TwinNotFoundError',
    'ConfigError',
    'Snapshot',
    'HealthState',
    'TerminalFailure',
    'classify',
    'kelvin_to_celsius',
    'parse_snapshot',
    'RollingBuffer',
    'Twin',
    'TwinRegistry'
]
