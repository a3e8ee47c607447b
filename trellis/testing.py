"""
Trellis Testing - request/response factories for controller tests.

    request = make_request("GET", "/users?page=2")
    response = TestResponse()
    await server.handle(request, response)
    assert response.status == 200 and response.end_calls == 1
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .http import ServerRequest, ServerResponse


def make_test_scope(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[Sequence[Tuple[Any, Any]]] = None,
    scheme: str = "http",
    client: Optional[tuple] = None,
    scope_type: str = "http",
) -> dict:
    """
    Build a minimal ASGI scope.

    Args:
        headers: ``(name, value)`` tuples (strings or bytes)
    """
    raw_headers: List[Tuple[bytes, bytes]] = []
    for name, value in headers or ():
        raw_headers.append((
            name.encode("latin-1") if isinstance(name, str) else name,
            value.encode("latin-1") if isinstance(value, str) else value,
        ))

    return {
        "type": scope_type,
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": query_string.encode("utf-8"),
        "headers": raw_headers,
        "scheme": scheme,
        "server": ("127.0.0.1", 8000),
        "client": client or ("127.0.0.1", 12345),
        "root_path": "",
    }


def make_test_receive(
    body: bytes = b"",
    *,
    chunks: Optional[List[bytes]] = None,
    connected: bool = True,
):
    """
    ASGI ``receive`` yielding the request body.

    Afterwards it blocks while the client stays ``connected``, otherwise it
    answers ``http.disconnect``.
    """
    if chunks:
        messages = [
            {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
            for i, chunk in enumerate(chunks)
        ]
    else:
        messages = [{"type": "http.request", "body": body, "more_body": False}]

    idx = 0

    async def receive():
        nonlocal idx
        if idx < len(messages):
            msg = messages[idx]
            idx += 1
            return msg
        if connected:
            await asyncio.Event().wait()
        return {"type": "http.disconnect"}

    return receive


def make_request(
    method: str = "GET",
    target: str = "/",
    *,
    headers: Optional[Mapping[str, str]] = None,
    body: bytes | str = b"",
) -> ServerRequest:
    """
    Build a :class:`ServerRequest`.

    ``target`` may carry a query string: ``make_request("GET", "/users?page=2")``.
    """
    path, _, query_string = target.partition("?")
    if isinstance(body, str):
        body = body.encode("utf-8")
    return ServerRequest(method, path, query_string=query_string, headers=headers, body=body)


class TestResponse(ServerResponse):
    """
    Response that records what reaches the transport.

    Attributes:
        end_calls: Number of ``end()`` calls, including rejected ones
        sent: ``(status, headers, body)`` tuples actually delivered
    """

    __test__ = False

    def __init__(self):
        super().__init__()
        self.end_calls = 0
        self.sent: List[Tuple[int, Dict[str, str], bytes]] = []

    async def end(self, status: Optional[int] = None) -> None:
        self.end_calls += 1
        await super().end(status)

    async def _send(self) -> None:
        self.sent.append((self.status, dict(self.headers), self.content))

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")
