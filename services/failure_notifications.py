"""
Failure Notification System - logs terminal poll failures and posts them to a webhook
"""
import logging
from typing import Dict

import requests

from twins.twin_data import TerminalFailure
from twins.twin_registry import Twin

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT = 5


class NotificationManager:
    """Manages terminal-failure notifications"""

    def __init__(self, config: Dict):
        self.config = config.get("alarm_settings", {})
        self.enabled = self.config.get("enable_notifications", False)
        self.webhook_url = self.config.get("webhook_url", "")
        self.sent_count = 0

    def send_notification(self, twin: Twin, failure: TerminalFailure):
        """Send all enabled notifications for a terminal failure"""
        logger.error(self._format_failure_message(twin, failure))

        if not self.enabled or not self.webhook_url:
            return

        if self.send_webhook(twin, failure):
            self.sent_count += 1

    def _format_failure_message(self, twin: Twin, failure: TerminalFailure) -> str:
        return (f"{twin.name} (twin {twin.id}): {failure.message} "
                f"[{failure.attempts} attempts, last error: {failure.last_error}]")

    def send_webhook(self, twin: Twin, failure: TerminalFailure) -> bool:
        """Send webhook POST notification"""
        payload = {
            "event_type": "poll_failure",
            "timestamp": failure.timestamp.isoformat(),
            "twin_id": twin.id,
            "twin_name": twin.name,
            "attempts": failure.attempts,
            "error_kind": failure.last_error.kind.value,
            "error_detail": failure.last_error.detail,
            "message": failure.message
        }
        try:
            response = requests.post(self.webhook_url, json=payload, timeout=WEBHOOK_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("Webhook notification error: %s", e)
            return False
        return response.status_code in [200, 201, 202]
