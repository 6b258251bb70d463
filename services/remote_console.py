"""
Remote Twin Console - WebSocket server exposing twin state to remote operators

Messages are JSON objects: {"type": "command", "command": <name>, "data": {...}}
Every command gets exactly one JSON reply.
"""
import asyncio
import json
import logging
import threading
from datetime import datetime
from typing import Dict, Optional

import websockets

from twins.errors import InvalidArgumentError, TwinNotFoundError
from twins.rolling_buffer import DEFAULT_CAPACITY
from twins.twin_data import failure_to_dict, history_to_dicts, snapshot_to_dict
from twins.twin_registry import Twin, TwinRegistry

logger = logging.getLogger(__name__)


class RemoteConsoleServer:
    """WebSocket server for the remote twin console"""

    def __init__(self, registry: TwinRegistry, host: str = "localhost", port: int = 8765):
        self.registry = registry
        self.host = host
        self.port = port
        self.clients = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stopped: Optional[asyncio.Event] = None
        self.command_handlers = {
            "get_status": self.handle_get_status,
            "get_twins": self.handle_get_twins,
            "get_twin": self.handle_get_twin,
            "add_twin": self.handle_add_twin
        }

    def _twin_summary(self, twin: Twin) -> Dict:
        latest = twin.latest()
        health = twin.health()
        return {
            "id": twin.id,
            "name": twin.name,
            "samples": len(twin.buffer),
            "health": health.value if health else None,
            "latest": snapshot_to_dict(latest) if latest else None,
            "error": failure_to_dict(twin.error)
        }

    async def handle_get_status(self, data: Dict) -> Dict:
        """Handle get_status command"""
        twins = self.registry.list()
        return {
            "type": "status",
            "twin_count": len(twins),
            "failing_count": sum(1 for twin in twins if twin.error is not None),
            "connected_clients": len(self.clients),
            "timestamp": datetime.now().isoformat()
        }

    async def handle_get_twins(self, data: Dict) -> Dict:
        """Handle get_twins command"""
        return {
            "type": "twins",
            "twins": [self._twin_summary(twin) for twin in self.registry.list()]
        }

    async def handle_get_twin(self, data: Dict) -> Dict:
        """Handle get_twin command - latest snapshot plus recent history"""
        twin = self.registry.get(str(data.get("id", "")))
        limit = data.get("limit", DEFAULT_CAPACITY)
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidArgumentError(f"limit must be an integer, got {limit!r}")
        detail = self._twin_summary(twin)
        detail["history"] = history_to_dicts(twin.buffer.recent(limit))
        return {
            "type": "twin",
            "twin": detail
        }

    async def handle_add_twin(self, data: Dict) -> Dict:
        """Handle add_twin command - operator registration of a new twin"""
        twin = self.registry.register(data.get("name", ""))
        return {
            "type": "twin_added",
            "twin": self._twin_summary(twin)
        }

    async def process_command(self, message: Dict) -> Dict:
        """Dispatch one command message and build the reply"""
        command = message.get("command", "")
        data = message.get("data") or {}
        handler = self.command_handlers.get(command)
        if handler is None:
            return {"type": "error", "message": f"Unknown command: {command}"}
        if not isinstance(data, dict):
            return {"type": "error", "message": "Command data must be a JSON object"}
        try:
            return await handler(data)
        except (InvalidArgumentError, TwinNotFoundError) as e:
            return {"type": "error", "message": str(e)}
        except Exception as e:
            logger.exception("Console command %r failed", command)
            return {"type": "error", "message": str(e)}

    async def handle_client(self, websocket):
        """Handle client connection"""
        self.clients.add(websocket)
        logger.info("Console client connected: %s", websocket.remote_address)
        try:
            await websocket.send(json.dumps({
                "type": "welcome",
                "message": "Connected to Remote Twin Console"
            }))

            async for message in websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    await websocket.send(json.dumps({"type": "error", "message": "Invalid JSON"}))
                    continue

                msg_type = data.get("type", "") if isinstance(data, dict) else ""
                if msg_type == "command":
                    reply = await self.process_command(data)
                else:
                    reply = {"type": "error", "message": f"Unknown message type: {msg_type}"}
                await websocket.send(json.dumps(reply))
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self.clients.discard(websocket)
            logger.info("Console client disconnected: %s", websocket.remote_address)

    async def start(self):
        """Start the WebSocket server and serve until stop() is called"""
        self._loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()
        async with websockets.serve(
            self.handle_client,
            self.host,
            self.port,
            ping_interval=20,
            ping_timeout=10
        ):
            logger.info("Remote Twin Console running on ws://%s:%s", self.host, self.port)
            await self._stopped.wait()

    def stop(self):
        """Ask a running server to shut down (safe from any thread)"""
        if self._loop is not None and self._stopped is not None:
            self._loop.call_soon_threadsafe(self._stopped.set)

    def run(self):
        """Run the server (blocking)"""
        asyncio.run(self.start())

    def run_in_thread(self) -> threading.Thread:
        """Run the server on its own event loop in a daemon thread"""
        def run_console():
            try:
                self.run()
            except OSError as e:
                logger.error("Remote console error: %s", e)

        thread = threading.Thread(target=run_console, name="remote-console", daemon=True)
        thread.start()
        return thread
