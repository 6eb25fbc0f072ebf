"""
WebSocket Status Adapter

Broadcasts pipeline status messages to every connected aiohttp websocket
client. Delivery is best effort: there is no acknowledgement and no
backpressure, and a client that cannot be written to is dropped.
"""

import asyncio
import logging
from typing import Set

from aiohttp import web

logger = logging.getLogger(__name__)


class WebSocketStatusAdapter:
    """Fire-and-forget status broadcast over websockets"""

    def __init__(self):
        self._clients: Set[web.WebSocketResponse] = set()
        self._sends: Set[asyncio.Task] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def pending_sends(self) -> int:
        return len(self._sends)

    def is_enabled(self) -> bool:
        return True

    def notify(self, message: str) -> None:
        if not self._clients:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called outside the event loop; nothing can be sent from here
            return
        for ws in list(self._clients):
            if ws.closed:
                self._clients.discard(ws)
                continue
            task = loop.create_task(self._send(ws, message))
            self._sends.add(task)
            task.add_done_callback(self._send_done)

    async def _send(self, ws: web.WebSocketResponse, message: str) -> None:
        try:
            await ws.send_str(message)
        except (ConnectionResetError, RuntimeError) as e:
            logger.debug("Dropping status client: %s", e)
            self._clients.discard(ws)

    def _send_done(self, task: asyncio.Task) -> None:
        self._sends.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Status broadcast failed: %s", task.exception())

    async def handle(self, request: web.Request) -> web.WebSocketResponse:
        """aiohttp handler that subscribes a client until it disconnects"""
        ws = web.WebSocketResponse(heartbeat=30)
        await ws.prepare(request)
        self._clients.add(ws)
        logger.info("Status client connected (%d total)", len(self._clients))
        try:
            async for _ in ws:
                # Clients only listen; incoming messages are ignored
                pass
        finally:
            self._clients.discard(ws)
            logger.info("Status client disconnected (%d total)", len(self._clients))
        return ws

    async def close(self) -> None:
        if self._sends:
            await asyncio.gather(*self._sends, return_exceptions=True)
        for ws in list(self._clients):
            await ws.close()
        self._clients.clear()
