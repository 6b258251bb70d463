"""
Poll Scheduler - periodic, concurrent fetch-and-record cycles for every twin
Uses one timer thread plus one worker thread per twin per tick

Scheduling Architecture:
- PollScheduler: owns the Registry reference and the Retry Controller
- Timer Thread: waits POLL_INTERVAL on the injected clock, then fires a tick
- Worker Threads: one per twin per tick, so a slow twin never delays another
  twin or the next tick
- Overlapping cycles for the same twin are allowed; each Twin serialises its
  own buffer mutation, so appends follow completion order
- Callbacks: notified after each cycle is recorded (snapshot or failure)
"""
import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional, Set, Union

from twins.errors import TwinNotFoundError
from twins.twin_data import Snapshot, TerminalFailure
from twins.twin_registry import Twin, TwinRegistry

from .retry import RetryController

logger = logging.getLogger(__name__)

POLL_INTERVAL = 5.0


class SystemClock:
    """Real time source for the scheduler"""

    def now(self) -> datetime:
        return datetime.now()

    def wait(self, stop_event: threading.Event, timeout: float) -> bool:
        """Block for timeout seconds or until stop_event is set; True means stop"""
        return stop_event.wait(timeout)


class PollScheduler:
    """
    Fires a poll cycle for every registered twin every `interval` seconds.

    There is a single armed state: once started the scheduler ticks until
    stop() is called at shutdown.
    """

    def __init__(self, registry: TwinRegistry, controller: RetryController,
                 interval: float = POLL_INTERVAL, clock: Optional[SystemClock] = None):
        self.registry = registry
        self.controller = controller
        self.interval = interval
        self.clock = clock or SystemClock()
        self.snapshot_callbacks: List[Callable[[Twin, Snapshot], None]] = []
        self.failure_callbacks: List[Callable[[Twin, TerminalFailure], None]] = []
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._workers: Set[threading.Thread] = set()
        self.lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._timer_thread is not None and self._timer_thread.is_alive()

    def register_snapshot_callback(self, callback: Callable[[Twin, Snapshot], None]):
        with self.lock:
            self.snapshot_callbacks.append(callback)

    def register_failure_callback(self, callback: Callable[[Twin, TerminalFailure], None]):
        with self.lock:
            self.failure_callbacks.append(callback)

    def start(self):
        """Start the timer thread"""
        if self.running:
            return
        self._stop_event.clear()
        self._timer_thread = threading.Thread(target=self._timer_loop, name="poll-scheduler",
                                              daemon=True)
        self._timer_thread.start()
        logger.info("Poll scheduler started (interval %.1fs)", self.interval)

    def stop(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the periodic trigger

        Args:
            wait: also wait for in-flight cycles to finish
            timeout: per-thread join timeout; in-flight cycles still running
                afterwards are abandoned
        """
        self._stop_event.set()
        if self._timer_thread:
            self._timer_thread.join(timeout=timeout)
        self._timer_thread = None
        if wait:
            self.join_workers(timeout=timeout)
        logger.info("Poll scheduler stopped")

    def join_workers(self, timeout: Optional[float] = None):
        """Wait for the worker threads that are currently in flight"""
        with self.lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(timeout=timeout)

    def _timer_loop(self):
        while not self.clock.wait(self._stop_event, self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Poll tick failed")

    def tick(self) -> List[threading.Thread]:
        """Start one independent cycle per currently registered twin"""
        twins = self.registry.list()
        threads = []
        for twin in twins:
            worker = threading.Thread(target=self._worker, args=(twin.id,),
                                      name=f"poll-twin-{twin.id}", daemon=True)
            with self.lock:
                self._workers.add(worker)
            worker.start()
            threads.append(worker)
        logger.debug("Tick: started %d poll cycle(s)", len(threads))
        return threads

    def _worker(self, twin_id: str):
        try:
            self.run_cycle(twin_id)
        except Exception:
            logger.exception("Poll cycle for twin %s failed", twin_id)
        finally:
            with self.lock:
                self._workers.discard(threading.current_thread())

    def run_cycle(self, twin_id: str) -> Optional[Union[Snapshot, TerminalFailure]]:
        """
        Acquire one snapshot for a twin and record the outcome

        Returns the outcome, or None if the twin is not registered.
        """
        try:
            twin = self.registry.get(twin_id)
        except TwinNotFoundError:
            logger.warning("Skipping poll cycle: twin %s is not registered", twin_id)
            return None

        outcome = self.controller.acquire(twin)

        try:
            if isinstance(outcome, TerminalFailure):
                self.registry.record_failure(twin_id, outcome)
            else:
                self.registry.record_success(twin_id, outcome)
        except TwinNotFoundError:
            logger.warning("Dropping poll result: twin %s is not registered", twin_id)
            return None

        self._notify(twin, outcome)
        return outcome

    def _notify(self, twin: Twin, outcome: Union[Snapshot, TerminalFailure]):
        with self.lock:
            if isinstance(outcome, TerminalFailure):
                callbacks = list(self.failure_callbacks)
            else:
                callbacks = list(self.snapshot_callbacks)
        for callback in callbacks:
            try:
                callback(twin, outcome)
            except Exception:
                logger.exception("Callback error for twin %s", twin.id)
