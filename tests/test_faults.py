"""
Faults (faults/)

Tests the fault taxonomy: codes, domains, severities and HTTP statuses.
"""

import pytest

from trellis.faults import (
    ActionNotFoundError,
    ConfigError,
    ControllerNotFoundError,
    DependencyCycleError,
    DuplicateServiceError,
    Fault,
    FaultDomain,
    NotInjectableError,
    RenderCancelledError,
    RenderStateError,
    ResponseEndedError,
    RouteNotMatchedError,
    Severity,
    UnknownServiceError,
    ViewRenderError,
)


class TestFault:

    def test_requires_code_message_domain(self):
        with pytest.raises(TypeError):
            Fault(code="X", message="m")

    def test_domain_defaults(self):
        fault = Fault(code="X", message="m", domain=FaultDomain.ROUTING)
        assert fault.severity is Severity.INFO
        assert fault.status == 404

    def test_explicit_status_wins(self):
        fault = Fault(code="QUOTA", message="m", domain=FaultDomain.FLOW, status=413)
        assert fault.status == 413

    def test_to_dict(self):
        data = UnknownServiceError("$db").to_dict()
        assert data["code"] == "UNKNOWN_SERVICE"
        assert data["domain"] == "di"
        assert data["metadata"]["name"] == "$db"

    def test_str_carries_code(self):
        assert str(ResponseEndedError()) == "[RESPONSE_ENDED] Response has already ended"


class TestStatuses:

    @pytest.mark.parametrize("fault,status", [
        (UnknownServiceError("$db"), 500),
        (DuplicateServiceError("$db"), 500),
        (DependencyCycleError(["a", "a"]), 500),
        (NotInjectableError(object()), 500),
        (ControllerNotFoundError("Users"), 404),
        (ActionNotFoundError("Users", "nope"), 404),
        (RouteNotMatchedError("GET", "/"), 404),
        (ViewRenderError("templates/x", RuntimeError("boom")), 500),
        (RenderCancelledError("templates/x"), 499),
        (RenderStateError("done", "render"), 500),
        (ResponseEndedError(), 500),
        (ConfigError("bad"), 500),
    ])
    def test_status(self, fault, status):
        assert fault.status == status
        assert isinstance(fault, Fault)

    def test_view_render_error_keeps_cause(self):
        cause = RuntimeError("boom")
        fault = ViewRenderError("templates/x", cause)
        assert fault.cause is cause
        assert fault.domain == FaultDomain.VIEW
