"""
Twin Telemetry Data Models and Health Logic
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import FetchError, FetchErrorKind

KELVIN_OFFSET = 273.15
HEALTHY_STATUS = "No Failure"
FAILURE_MESSAGE = "Failed to fetch data after multiple attempts. Please try again later."

# Wire spellings for each field: (original integration, compact)
SENT_DATA_KEYS = ("Sent data", "SentData")
API_RESPONSE_KEYS = ("API Response", "APIResponse")
HEALTH_STATUS_KEYS = ("Health Status", "HealthStatus")
MEASUREMENT_KEYS = {
    "air_temp": ("Air Temp", "AirTemp"),
    "process_temp": ("Process Temp", "ProcessTemp"),
    "rotational_speed": ("Rotational Speed", "RotationalSpeed"),
    "torque": ("Torque",),
    "tool_wear": ("Tool Wear", "ToolWear"),
}
TYPE_KEYS = ("Type",)


class HealthState(Enum):
    """Binary health signal derived from a snapshot"""
    HEALTHY = "Healthy"
    UNHEALTHY = "Unhealthy"


def kelvin_to_celsius(kelvin: float) -> float:
    """Convert Kelvin to Celsius, rounded to 2 decimal places"""
    return round(kelvin - KELVIN_OFFSET, 2)


@dataclass(frozen=True)
class Snapshot:
    """One telemetry sample for a twin"""
    machine_type: str
    air_temp: float  # K
    process_temp: float  # K
    rotational_speed: float  # RPM
    torque: float  # Nm
    tool_wear: float  # min
    health_status: str
    timestamp: datetime

    @property
    def air_temp_celsius(self) -> float:
        return kelvin_to_celsius(self.air_temp)

    @property
    def process_temp_celsius(self) -> float:
        return kelvin_to_celsius(self.process_temp)

    @property
    def health(self) -> "HealthState":
        return classify(self)


@dataclass(frozen=True)
class TerminalFailure:
    """Outcome of a poll cycle whose retry budget ran out"""
    attempts: int
    last_error: FetchError
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def message(self) -> str:
        return FAILURE_MESSAGE


def classify(snapshot: Snapshot) -> HealthState:
    """
    Map a snapshot to a health signal.

    Only the status label reported by the source is considered; the numeric
    measurements are never inspected.
    """
    if snapshot.health_status == HEALTHY_STATUS:
        return HealthState.HEALTHY
    return HealthState.UNHEALTHY


def _pick(section: Dict[str, Any], keys: tuple, what: str) -> Any:
    for key in keys:
        if key in section:
            return section[key]
    raise FetchError(FetchErrorKind.DECODE, f"missing field {what!r}")


def _number(value: Any, what: str) -> float:
    # bool is an int subclass but never a valid measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FetchError(FetchErrorKind.DECODE, f"field {what!r} is not numeric: {value!r}")
    return float(value)


def _text(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise FetchError(FetchErrorKind.DECODE, f"field {what!r} is not a string: {value!r}")
    return value


def parse_snapshot(payload: Any, timestamp: datetime) -> Snapshot:
    """
    Build a Snapshot from a decoded JSON body.

    Raises FetchError(DECODE) when the body does not have the expected shape.
    """
    if not isinstance(payload, dict):
        raise FetchError(FetchErrorKind.DECODE, "response body is not a JSON object")

    sent_data = _pick(payload, SENT_DATA_KEYS, "Sent data")
    api_response = _pick(payload, API_RESPONSE_KEYS, "API Response")
    if not isinstance(sent_data, dict) or not isinstance(api_response, dict):
        raise FetchError(FetchErrorKind.DECODE, "response sections must be JSON objects")

    measurements = {
        name: _number(_pick(sent_data, keys, keys[0]), keys[0])
        for name, keys in MEASUREMENT_KEYS.items()
    }
    return Snapshot(
        machine_type=_text(_pick(sent_data, TYPE_KEYS, "Type"), "Type"),
        health_status=_text(_pick(api_response, HEALTH_STATUS_KEYS, "Health Status"), "Health Status"),
        timestamp=timestamp,
        **measurements
    )


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    """Serialise a snapshot for the remote console"""
    return {
        "type": snapshot.machine_type,
        "air_temp": snapshot.air_temp,
        "air_temp_celsius": snapshot.air_temp_celsius,
        "process_temp": snapshot.process_temp,
        "process_temp_celsius": snapshot.process_temp_celsius,
        "rotational_speed": snapshot.rotational_speed,
        "torque": snapshot.torque,
        "tool_wear": snapshot.tool_wear,
        "health_status": snapshot.health_status,
        "health": snapshot.health.value,
        "timestamp": snapshot.timestamp.isoformat(),
    }


def history_to_dicts(snapshots: List[Snapshot]) -> List[Dict[str, Any]]:
    return [snapshot_to_dict(s) for s in snapshots]


def failure_to_dict(failure: Optional[TerminalFailure]) -> Optional[Dict[str, Any]]:
    if failure is None:
        return None
    return {
        "attempts": failure.attempts,
        "kind": failure.last_error.kind.value,
        "detail": failure.last_error.detail,
        "message": failure.message,
        "timestamp": failure.timestamp.isoformat(),
    }
