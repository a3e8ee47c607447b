"""
HTTP server & responses (server.py, http/)

Tests the top-level handler's error mapping, access logging and the
response contract.
"""

import json
import logging
from typing import Annotated, Any

import pytest

from trellis.controller import ApiController, ControllerFactory
from trellis.di import Inject, ServiceContainer, base
from trellis.faults import ResponseEndedError
from trellis.http import HTTPServerResponse, ServerRequest, WebSocketServerRequest, WebSocketServerResponse
from trellis.routing import Router
from trellis.server import HTTPServer
from trellis.testing import TestResponse, make_request


class OrdersController(ApiController):

    async def index(self):
        await self.send([{"id": 1}])

    async def crash(self):
        raise RuntimeError("database unavailable")

    async def partial(self):
        self.response.body("half written")
        raise RuntimeError("boom after body")

    async def forgetful(self):
        self.response.body("never sent")

    async def twice(self):
        await self.send({"first": True})
        await self.send({"second": True})

    async def relocate(self):
        await self.redirect("/bestellungen/\u20ac")


class NeedyController(ApiController):

    def __init__(self, db: Annotated[Any, Inject("$db")]):
        base(ApiController, self)
        self.db = db

    async def index(self):
        await self.send({"db": str(self.db)})


@pytest.fixture
def server():
    factory = ControllerFactory(".", ServiceContainer())
    factory.register("Orders", OrdersController)
    router = Router(factory)
    router.add_route("/:controller/:action")
    return HTTPServer(router)


# ============================================================================
# Top-level Handler
# ============================================================================

class TestHTTPServer:

    @pytest.mark.asyncio
    async def test_successful_request(self, server):
        response = TestResponse()
        await server.handle(make_request("GET", "/orders/index"), response)
        assert response.status == 200
        assert json.loads(response.text) == [{"id": 1}]
        assert response.end_calls == 1

    @pytest.mark.asyncio
    async def test_unhandled_error_maps_to_500(self, server, caplog):
        response = TestResponse()
        with caplog.at_level(logging.ERROR, logger="trellis.server"):
            await server.handle(make_request("GET", "/orders/crash"), response)

        assert response.status == 500
        assert response.end_calls == 1
        assert any("database unavailable" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_partial_body_discarded_on_error(self, server):
        response = TestResponse()
        await server.handle(make_request("GET", "/orders/partial"), response)
        assert response.status == 500
        assert response.sent == [(500, {}, b"")]

    @pytest.mark.asyncio
    async def test_fault_status_used(self, server):
        response = TestResponse()
        await server.handle(make_request("GET", "/orders/missing"), response)
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_unknown_controller_is_404(self, server):
        response = TestResponse()
        await server.handle(make_request("GET", "/ghosts/index"), response)
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_di_failure_is_500(self, server):
        server.router.controller_factory.register("Needy", NeedyController)

        response = TestResponse()
        await server.handle(make_request("GET", "/needy/index"), response)
        assert response.status == 500
        assert response.end_calls == 1

    @pytest.mark.asyncio
    async def test_action_that_never_ends(self, server, caplog):
        response = TestResponse()
        with caplog.at_level(logging.ERROR, logger="trellis.server"):
            await server.handle(make_request("GET", "/orders/forgetful"), response)
        assert response.status == 500
        assert response.end_calls == 1
        assert any("without ending" in r.getMessage() for r in caplog.records)
        assert response.sent == [(500, {}, b"")]

    @pytest.mark.asyncio
    async def test_second_send_does_not_touch_sent_response(self, server):
        response = TestResponse()
        await server.handle(make_request("GET", "/orders/twice"), response)
        assert response.end_calls == 1
        assert response.status == 200
        assert len(response.sent) == 1
        assert json.loads(response.sent[0][2]) == {"first": True}

    @pytest.mark.asyncio
    async def test_access_log_line(self, server, caplog):
        with caplog.at_level(logging.INFO, logger="trellis.server"):
            await server.handle(make_request("GET", "/orders/index"), TestResponse())
        assert any(r.getMessage().startswith("GET /orders/index -> 200") for r in caplog.records)

    @pytest.mark.asyncio
    async def test_unencodable_header_becomes_500(self, server):
        response = TestResponse()
        await server.handle(make_request("GET", "/orders/relocate"), response)
        assert response.end_calls == 1
        assert response.sent == [(500, {}, b"")]


# ============================================================================
# Response Contract
# ============================================================================

class TestServerResponse:

    @pytest.mark.asyncio
    async def test_end_twice_raises(self):
        response = TestResponse()
        await response.end()
        with pytest.raises(ResponseEndedError):
            await response.end()

    @pytest.mark.asyncio
    async def test_writes_after_end_raise(self):
        response = TestResponse()
        await response.end()
        with pytest.raises(ResponseEndedError):
            response.body("late")
        with pytest.raises(ResponseEndedError):
            response.head(404)

    def test_headers_lower_cased(self):
        response = TestResponse()
        response.head(201, {"Location": "/orders/1"})
        assert response.headers == {"location": "/orders/1"}
        assert response.status == 201

    @pytest.mark.parametrize("headers", [
        {"location": "/caf\u00e9/\u20ac"},
        {"x-count": 3},
        {"x-na\u0131me": "v"},
    ])
    def test_invalid_header_rejected_before_end(self, headers):
        response = TestResponse()
        with pytest.raises(ValueError):
            response.head(302, headers)
        assert response.status == 200
        assert response.headers == {}
        assert not response.ended

    @pytest.mark.asyncio
    async def test_latin1_header_reaches_transport(self):
        sent = []

        async def send(message):
            sent.append(message)

        response = HTTPServerResponse(send)
        response.head(302, {"Location": "/caf\u00e9"})
        await response.end()
        assert (b"location", "/caf\u00e9".encode("latin-1")) in sent[0]["headers"]

    def test_body_type_checked(self):
        with pytest.raises(TypeError):
            TestResponse().body(42)

    @pytest.mark.asyncio
    async def test_closed_response_counts_as_ended(self):
        response = TestResponse()
        response.close("client disconnected")
        await response.end(200)
        assert response.ended
        assert response.sent == []


# ============================================================================
# Requests
# ============================================================================

class TestRequests:

    def test_from_scope(self):
        request = ServerRequest.from_scope({
            "type": "http",
            "method": "post",
            "path": "/orders",
            "query_string": b"page=2&tag=a&tag=b",
            "headers": [(b"content-type", b"application/x-www-form-urlencoded")],
            "client": ("10.0.0.1", 5000),
        }, b"name=Ada")

        assert request.method == "POST"
        assert request.query_param("page") == "2"
        assert request.query["tag"] == ["a", "b"]
        assert request.form() == {"name": ["Ada"]}
        assert request.client == ("10.0.0.1", 5000)

    def test_json_body(self):
        request = make_request("POST", "/orders", body='{"id": 3}')
        assert request.json() == {"id": 3}
        assert make_request("POST", "/orders").json() is None

    def test_websocket_frame(self):
        request = WebSocketServerRequest.from_message(
            {"id": 9, "method": "put", "path": "/orders/3?notify=1", "body": {"qty": 2}},
        )
        assert request.id == 9
        assert request.method == "PUT"
        assert request.path == "/orders/3"
        assert request.query_param("notify") == "1"
        assert request.json() == {"qty": 2}
        assert request.content_type == "application/json"

    @pytest.mark.parametrize("frame", [[], {"id": 1}, {"path": ""}, {"path": "/x", "headers": 5}])
    def test_invalid_websocket_frames(self, frame):
        with pytest.raises(ValueError):
            WebSocketServerRequest.from_message(frame)

    @pytest.mark.asyncio
    async def test_websocket_response_frame(self):
        sent = []

        async def send(message):
            sent.append(message)

        response = WebSocketServerResponse(send, request_id=4)
        response.head(200, {"content-type": "application/json"})
        response.body('{"ok": true}')
        await response.end()

        assert sent[0]["type"] == "websocket.send"
        assert json.loads(sent[0]["text"]) == {
            "id": 4,
            "status": 200,
            "headers": {"content-type": "application/json"},
            "body": {"ok": True},
        }
