"""
ASGI adapter - bridges ASGI events to Trellis requests and responses.

Supports:
- HTTP: one ServerRequest/HTTPServerResponse pair per request; the client
  disconnecting mid-request cancels the response's token
- WebSocket: JSON request frames answered by JSON response frames
- Lifespan: startup/shutdown acknowledgement
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional
import asyncio
import contextlib
import json
import logging

from .http import (
    HTTPServerResponse,
    ServerRequest,
    ServerResponse,
    WebSocketServerRequest,
    WebSocketServerResponse,
)
from .server import HTTPServer

Scope = Dict[str, Any]
Receive = Callable[[], Awaitable[Dict[str, Any]]]
Send = Callable[[Dict[str, Any]], Awaitable[None]]


class WebSocketConnection:
    """State shared by every request frame of one WebSocket connection."""

    __slots__ = ("scope", "send", "state")

    def __init__(self, scope: Scope, send: Send):
        self.scope = scope
        self.send = send
        self.state: Dict[str, Any] = {}

    @property
    def path(self) -> str:
        return self.scope.get("path", "/")


class ASGIAdapter:
    """
    ASGI application wrapping an :class:`HTTPServer`.

    Args:
        server: Top-level request handler
        websockets: Accept WebSocket connections (otherwise they are refused)
    """

    __slots__ = ("server", "websockets", "logger")

    def __init__(self, server: HTTPServer, *, websockets: bool = False):
        self.server = server
        self.websockets = websockets
        self.logger = logging.getLogger("trellis.asgi")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        scope_type = scope["type"]
        if scope_type == "http":
            await self._handle_http(scope, receive, send)
        elif scope_type == "websocket":
            await self._handle_websocket(scope, receive, send)
        elif scope_type == "lifespan":
            await self._handle_lifespan(receive, send)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _handle_http(self, scope: Scope, receive: Receive, send: Send) -> None:
        body = await self._read_body(receive)
        if body is None:
            self.logger.debug("Client disconnected before the request body arrived")
            return

        request = ServerRequest.from_scope(scope, body)
        response = HTTPServerResponse(send)

        watcher = asyncio.ensure_future(self._watch_disconnect(receive, response))
        try:
            await self.server.handle(request, response)
        finally:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    async def _read_body(self, receive: Receive) -> Optional[bytes]:
        chunks = []
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return None
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                return b"".join(chunks)

    async def _watch_disconnect(self, receive: Receive, response: ServerResponse) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                if not response.ended:
                    response.close("client disconnected")
                return

    # ------------------------------------------------------------------
    # WebSocket
    # ------------------------------------------------------------------

    async def _handle_websocket(self, scope: Scope, receive: Receive, send: Send) -> None:
        message = await receive()
        if message["type"] != "websocket.connect":
            return

        if not self.websockets:
            await send({"type": "websocket.close", "code": 1003})
            return

        await send({"type": "websocket.accept"})
        connection = WebSocketConnection(scope, send)

        while True:
            message = await receive()
            if message["type"] == "websocket.disconnect":
                break
            if message["type"] != "websocket.receive":
                continue
            await self._handle_frame(message, connection)

    async def _handle_frame(self, message: Dict[str, Any], connection: WebSocketConnection) -> None:
        text = message.get("text")
        if text is None:
            text = (message.get("bytes") or b"").decode("utf-8", errors="replace")

        frame: Any = None
        try:
            frame = json.loads(text)
            request = WebSocketServerRequest.from_message(frame, connection)
        except (ValueError, TypeError) as exc:
            request_id = frame.get("id") if isinstance(frame, dict) else None
            await connection.send({
                "type": "websocket.send",
                "text": json.dumps({
                    "id": request_id,
                    "status": 400,
                    "headers": {},
                    "body": {"error": str(exc)},
                }),
            })
            return

        response = WebSocketServerResponse(connection.send, request.id)
        await self.server.handle(request, response)

    # ------------------------------------------------------------------
    # Lifespan
    # ------------------------------------------------------------------

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self.logger.info("Trellis application starting")
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                self.logger.info("Trellis application stopping")
                await send({"type": "lifespan.shutdown.complete"})
                return
