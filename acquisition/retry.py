"""
Retry Controller - bounded, fixed-delay retries around the Snapshot Fetcher
"""
import logging
import time
from datetime import datetime
from typing import Callable, Optional, Union

from twins.errors import FetchError, InvalidArgumentError
from twins.twin_data import Snapshot, TerminalFailure
from twins.twin_registry import Twin

logger = logging.getLogger(__name__)

# The source is polled every 5 s; attempts x delay stays well below that.
MAX_ATTEMPTS = 3
RETRY_DELAY = 1.0


class RetryController:
    """
    Runs up to MAX_ATTEMPTS fetches with RETRY_DELAY seconds between them.

    Args:
        fetch: callable taking a Twin and returning a Snapshot or raising FetchError
        sleep: called with the delay between attempts
        clock: returns the timestamp stamped on a TerminalFailure
    """

    def __init__(self, fetch: Callable[[Twin], Snapshot],
                 max_attempts: int = MAX_ATTEMPTS, delay: float = RETRY_DELAY,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], datetime] = datetime.now):
        if max_attempts < 1:
            raise InvalidArgumentError(f"max_attempts must be at least 1, got {max_attempts}")
        self.fetch = fetch
        self.max_attempts = max_attempts
        self.delay = delay
        self.sleep = sleep
        self.clock = clock

    def acquire(self, twin: Twin) -> Union[Snapshot, TerminalFailure]:
        """Return the first successful snapshot, or a TerminalFailure once attempts run out"""
        retries = self.max_attempts
        last_error: Optional[FetchError] = None
        while retries > 0:
            try:
                return self.fetch(twin)
            except FetchError as e:
                last_error = e
                retries -= 1
                attempt = self.max_attempts - retries
                if retries > 0:
                    logger.warning("Twin %s (%s): attempt %d/%d failed: %s",
                                   twin.id, twin.name, attempt, self.max_attempts, e)
                    self.sleep(self.delay)

        logger.error("Twin %s (%s): giving up after %d attempts: %s",
                     twin.id, twin.name, self.max_attempts, last_error)
        return TerminalFailure(attempts=self.max_attempts, last_error=last_error,
                               timestamp=self.clock())
