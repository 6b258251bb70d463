"""
Services
Failure notifications, remote console, etc.
"""
from .failure_notifications import NotificationManager
from .remote_console import RemoteConsoleServer

__all__ = [
    'NotificationManager',
    'RemoteConsoleServer'
]
