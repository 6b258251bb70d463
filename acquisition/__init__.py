"""
Telemetry Acquisition
Fetches snapshots from the telemetry source, retries failed fetches and
schedules poll cycles for every registered twin
"""
from .twin_fetcher import TwinDataFetcher
from .retry import RetryController
from .poll_scheduler import PollScheduler, SystemClock

__all__ = [
    'TwinDataFetcher',
    'RetryController',
    'PollScheduler',
    'SystemClock'
]
