"""
Snapshot Fetcher - one HTTP request/response exchange with the telemetry source

Communication Architecture:
- TwinDataFetcher: issues a single GET to the fixed telemetry endpoint
- Content negotiation: always sends accept: application/json
- Addressing: the endpoint serves every twin identically, no per-twin query
- Frame Format: JSON object with "Sent data" and "API Response" sections
- Timestamps: assigned here at receipt time, never taken from the source
- No retries: a failed exchange raises FetchError for the Retry Controller
"""
import logging
from datetime import datetime
from typing import Callable, Optional

import requests

from twins.errors import FetchError, FetchErrorKind
from twins.twin_data import Snapshot, parse_snapshot
from twins.twin_registry import Twin

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3.0
REQUEST_HEADERS = {"accept": "application/json"}


class TwinDataFetcher:
    """
    Fetches one telemetry snapshot per call

    Args:
        endpoint: URL of the telemetry source
        timeout: seconds to wait for the source before giving up
        session: optional requests session (or compatible object); by default
            each fetch uses a module-level requests.get, so worker threads
            never share a session
        clock: returns the timestamp stamped on each snapshot
    """

    def __init__(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session
        self.clock = clock

    def fetch(self, twin: Twin) -> Snapshot:
        """
        Fetch a snapshot for the given twin

        Raises:
            FetchError: TRANSPORT for network failures and non-2xx statuses,
                DECODE for bodies that are not a valid snapshot
        """
        try:
            http = self.session if self.session is not None else requests
            response = http.get(self.endpoint, headers=REQUEST_HEADERS,
                                 timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(FetchErrorKind.TRANSPORT, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise FetchError(FetchErrorKind.TRANSPORT, str(response.status_code))

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(FetchErrorKind.DECODE, f"invalid JSON: {e}") from e

        snapshot = parse_snapshot(payload, timestamp=self.clock())
        logger.debug("Twin %s (%s): received %s", twin.id, twin.name, snapshot.health_status)
        return snapshot

    def close(self):
        if self.session is not None:
            self.session.close()
