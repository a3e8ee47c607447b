"""
Server requests - transport-neutral view of an inbound request.

The body is fully received before a request is dispatched, so body accessors
are synchronous.
"""

from __future__ import annotations

from functools import cached_property
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qs
import json


class ServerRequest:
    """
    HTTP request as seen by routers and controllers.

    Attributes:
        method: Upper-case HTTP method
        path: Request path (no query string)
        query_string: Raw query string
        headers: Lower-cased header mapping
        body: Raw body bytes
        client: (host, port) of the peer, if known
        state: Per-request scratch space
    """

    def __init__(
        self,
        method: str,
        path: str,
        *,
        query_string: str | bytes = "",
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        client: Optional[Tuple[str, int]] = None,
        scheme: str = "http",
    ):
        self.method = method.upper()
        self.path = path or "/"
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        self.query_string = query_string
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = body
        self.client = client
        self.scheme = scheme
        self.state: Dict[str, Any] = {}

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any], body: bytes = b"") -> "ServerRequest":
        """Build a request from an ASGI HTTP scope."""
        headers = {
            name.decode("latin-1"): value.decode("latin-1")
            for name, value in scope.get("headers", [])
        }
        return cls(
            scope.get("method", "GET"),
            scope.get("path", "/"),
            query_string=scope.get("query_string", b""),
            headers=headers,
            body=body,
            client=tuple(scope["client"]) if scope.get("client") else None,
            scheme=scope.get("scheme", "http"),
        )

    @cached_property
    def query(self) -> Dict[str, List[str]]:
        """Parsed query parameters."""
        return parse_qs(self.query_string, keep_blank_values=True)

    def query_param(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self.query.get(key)
        return values[0] if values else default

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").split(";", 1)[0].strip().lower()

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)

    def json(self) -> Any:
        """
        Parse body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        if not self.body:
            return None
        return json.loads(self.body)

    def form(self) -> Dict[str, List[str]]:
        """Parse an ``application/x-www-form-urlencoded`` body."""
        if self.content_type != "application/x-www-form-urlencoded":
            return {}
        return parse_qs(self.body.decode("latin-1"), keep_blank_values=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.method} {self.path}>"


class WebSocketServerRequest(ServerRequest):
    """
    Request carried as a JSON frame over a WebSocket.

    Frame shape::

        {"id": 7, "method": "GET", "path": "/users?page=2",
         "headers": {...}, "body": <str | object>}

    Attributes:
        id: Correlation id echoed in the response frame
        socket: Connection-level state shared by every frame on the socket
    """

    def __init__(self, *args: Any, request_id: Any = None, socket: Any = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.id = request_id
        self.socket = socket

    @classmethod
    def from_message(cls, message: Mapping[str, Any], socket: Any = None) -> "WebSocketServerRequest":
        """
        Build a request from a decoded frame.

        Raises:
            ValueError: If the frame has no path or malformed headers
        """
        if not isinstance(message, Mapping):
            raise ValueError("Request frame must be a JSON object")

        target = message.get("path")
        if not isinstance(target, str) or not target:
            raise ValueError("Request frame is missing 'path'")

        path, _, query_string = target.partition("?")
        raw_headers = message.get("headers") or {}
        if not isinstance(raw_headers, Mapping):
            raise ValueError("Request frame 'headers' must be a JSON object")
        headers = {str(name): str(value) for name, value in raw_headers.items()}

        body = message.get("body")
        if body is None:
            raw = b""
        elif isinstance(body, str):
            raw = body.encode("utf-8")
        else:
            raw = json.dumps(body).encode("utf-8")
            headers.setdefault("content-type", "application/json")

        return cls(
            str(message.get("method", "GET")),
            path,
            query_string=query_string,
            headers=headers,
            body=raw,
            request_id=message.get("id"),
            socket=socket,
            scheme="ws",
        )
