"""
Server responses - the contract the render pipeline writes to.

    response.head(201, {"location": "/users/7"})
    response.body("created")
    await response.end()

``end()`` terminates the request and may be called exactly once. When the
client has already gone away the response is still marked ended but nothing
is written to the transport.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
import json
import logging

from ..faults import ResponseEndedError
from ..views.stack import CancelToken

logger = logging.getLogger("trellis.http")

Send = Callable[[Dict[str, Any]], Awaitable[None]]

DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"


class ServerResponse:
    """
    Base response: buffers status, headers and body until ``end()``.

    Subclasses implement :meth:`_send` for their transport.
    """

    def __init__(self):
        self.status = 200
        self.headers: Dict[str, str] = {}
        self._chunks: List[bytes] = []
        self.ended = False
        self.cancel_token = CancelToken()

    def head(self, status: int, headers: Optional[Mapping[str, str]] = None) -> None:
        """
        Set the status code and merge headers.

        Raises:
            ValueError: If a header name or value is not a latin-1 string
        """
        self._check_open()
        if headers:
            for name, value in headers.items():
                for part in (name, value):
                    if not isinstance(part, str):
                        raise ValueError(f"Header {name!r}: expected str, got {type(part).__name__}")
                    try:
                        part.encode("latin-1")
                    except UnicodeEncodeError:
                        raise ValueError(f"Header {name!r} is not latin-1 encodable") from None
        self.status = status
        if headers:
            for name, value in headers.items():
                self.headers[name.lower()] = value

    def body(self, content: str | bytes) -> None:
        """Append body content."""
        self._check_open()
        if isinstance(content, str):
            content = content.encode("utf-8")
        elif not isinstance(content, (bytes, bytearray)):
            raise TypeError(f"Response body must be str or bytes, not {type(content).__name__}")
        self._chunks.append(bytes(content))

    def discard_body(self) -> None:
        """Drop buffered body content (used before error responses)."""
        self._chunks.clear()

    @property
    def content(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def closed(self) -> bool:
        """True once the client connection is gone."""
        return self.cancel_token.cancelled

    def close(self, reason: Optional[str] = None) -> None:
        """Mark the client connection as gone."""
        self.cancel_token.cancel(reason)

    async def end(self, status: Optional[int] = None) -> None:
        """
        Finish the response.

        Raises:
            ResponseEndedError: If the response already ended
        """
        if self.ended:
            raise ResponseEndedError()
        if status is not None:
            self.status = status
        self.ended = True

        if self.closed:
            logger.debug("Client gone; dropping %s response", self.status)
            return

        await self._send()

    async def _send(self) -> None:
        raise NotImplementedError

    def _check_open(self) -> None:
        if self.ended:
            raise ResponseEndedError()


class HTTPServerResponse(ServerResponse):
    """Response written through an ASGI ``send`` callable."""

    def __init__(self, send: Send):
        super().__init__()
        self._asgi_send = send

    async def _send(self) -> None:
        content = self.content
        headers = dict(self.headers)
        if content and "content-type" not in headers:
            headers["content-type"] = DEFAULT_CONTENT_TYPE
        headers["content-length"] = str(len(content))

        await self._asgi_send({
            "type": "http.response.start",
            "status": self.status,
            "headers": [
                (name.encode("latin-1"), value.encode("latin-1"))
                for name, value in headers.items()
            ],
        })
        await self._asgi_send({
            "type": "http.response.body",
            "body": content,
        })


class WebSocketServerResponse(ServerResponse):
    """
    Response delivered as one JSON frame over a WebSocket.

    JSON bodies are embedded as values, anything else as text.
    """

    def __init__(self, send: Send, request_id: Any = None):
        super().__init__()
        self._asgi_send = send
        self.request_id = request_id

    def to_frame(self) -> Dict[str, Any]:
        content = self.content
        body: Any = None
        if content:
            text = content.decode("utf-8", errors="replace")
            if self.headers.get("content-type", "").startswith("application/json"):
                body = json.loads(text)
            else:
                body = text
        return {
            "id": self.request_id,
            "status": self.status,
            "headers": dict(self.headers),
            "body": body,
        }

    async def _send(self) -> None:
        await self._asgi_send({
            "type": "websocket.send",
            "text": json.dumps(self.to_frame()),
        })
