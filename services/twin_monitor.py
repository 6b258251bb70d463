"""
Twin Monitor Application - wires the registry, acquisition engine and services together
"""
import logging
from typing import Optional

from acquisition.poll_scheduler import POLL_INTERVAL, PollScheduler, SystemClock
from acquisition.retry import RetryController
from acquisition.twin_fetcher import TwinDataFetcher
from twins.settings import MonitorSettings
from twins.twin_registry import Twin, TwinRegistry

from .failure_notifications import NotificationManager
from .remote_console import RemoteConsoleServer

logger = logging.getLogger(__name__)


class TwinMonitor:
    """Headless monitoring application"""

    def __init__(self, settings: MonitorSettings, fetcher: Optional[TwinDataFetcher] = None,
                 clock: Optional[SystemClock] = None, interval: float = POLL_INTERVAL):
        self.settings = settings
        self.clock = clock or SystemClock()
        self.registry = TwinRegistry(history_size=settings.history_size)
        self.fetcher = fetcher or TwinDataFetcher(
            endpoint=settings.endpoint,
            timeout=settings.request_timeout,
            clock=self.clock.now
        )
        self.controller = RetryController(self.fetcher.fetch, clock=self.clock.now)
        self.scheduler = PollScheduler(self.registry, self.controller,
                                       interval=interval, clock=self.clock)

        self.notification_manager = NotificationManager({
            "alarm_settings": {
                "enable_notifications": settings.enable_notifications,
                "webhook_url": settings.webhook_url
            }
        })
        self.scheduler.register_failure_callback(self.notification_manager.send_notification)
        self.scheduler.register_snapshot_callback(self._log_snapshot)

        self.remote_console = None
        if settings.console_enabled:
            self.remote_console = RemoteConsoleServer(
                self.registry,
                host=settings.console_host,
                port=settings.console_port
            )

        for name in settings.twins:
            self.add_twin(name)

    def add_twin(self, name: str) -> Twin:
        return self.registry.register(name)

    def _log_snapshot(self, twin: Twin, snapshot):
        logger.info("%s (twin %s): %s, air %.2f°C, process %.2f°C, %.2f RPM, %.2f Nm, %.2f min",
                    twin.name, twin.id, snapshot.health_status,
                    snapshot.air_temp_celsius, snapshot.process_temp_celsius,
                    snapshot.rotational_speed, snapshot.torque, snapshot.tool_wear)

    def start(self):
        """Start polling and, if enabled, the remote console"""
        if self.remote_console:
            self.remote_console.run_in_thread()
        self.scheduler.start()
        logger.info("Monitoring %d twin(s) from %s", len(self.registry), self.settings.endpoint)

    def stop(self, timeout: Optional[float] = 5.0):
        """Stop polling; in-flight cycles get `timeout` seconds to finish"""
        self.scheduler.stop(wait=True, timeout=timeout)
        if self.remote_console:
            self.remote_console.stop()
        self.fetcher.close()
