"""
Trellis transport adapters: requests and responses.
"""

from .request import ServerRequest, WebSocketServerRequest
from .response import (
    ServerResponse,
    HTTPServerResponse,
    WebSocketServerResponse,
)

__all__ = [
    "ServerRequest",
    "WebSocketServerRequest",
    "ServerResponse",
    "HTTPServerResponse",
    "WebSocketServerResponse",
]
