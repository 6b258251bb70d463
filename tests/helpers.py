"""
Test helpers: snapshot factory, stub fetchers and a manual clock
"""
import threading
from datetime import datetime, timedelta

from twins.errors import FetchError, FetchErrorKind
from twins.twin_data import Snapshot


def make_snapshot(**overrides) -> Snapshot:
    fields = {
        "machine_type": "M",
        "air_temp": 300.0,
        "process_temp": 310.0,
        "rotational_speed": 1500.0,
        "torque": 40.0,
        "tool_wear": 0.0,
        "health_status": "No Failure",
        "timestamp": datetime(2024, 1, 1, 12, 0, 0),
    }
    fields.update(overrides)
    return Snapshot(**fields)


class CountingFetcher:
    """Fails `failures` times with a transport error, then returns snapshots"""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0
        self.lock = threading.Lock()

    def __call__(self, twin) -> Snapshot:
        with self.lock:
            self.calls += 1
            call = self.calls
        if call <= self.failures:
            raise FetchError(FetchErrorKind.TRANSPORT, "503")
        return make_snapshot(tool_wear=float(call))


class ManualClock:
    """Scheduler clock whose timer only fires when the test calls advance()"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.current = start
        self.waits = []
        self._ticks = threading.Semaphore(0)

    def now(self) -> datetime:
        return self.current

    def advance(self, ticks: int = 1):
        for _ in range(ticks):
            self._ticks.release()

    def wait(self, stop_event: threading.Event, timeout: float) -> bool:
        self.waits.append(timeout)
        while not stop_event.is_set():
            if self._ticks.acquire(timeout=0.01):
                self.current += timedelta(seconds=timeout)
                return stop_event.is_set()
        return True


def no_sleep(seconds: float):
    pass
