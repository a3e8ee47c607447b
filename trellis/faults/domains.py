"""
Trellis faults - domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- DI faults
- ROUTING faults
- VIEW faults
- FLOW faults
"""

from typing import Any, List, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigError(Fault):
    """Configuration could not be loaded or validated."""

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(
            code="CONFIG_INVALID",
            message=message,
            domain=FaultDomain.CONFIG,
            metadata={"key": key},
        )


# ============================================================================
# DI Faults
# ============================================================================

class DIError(Fault):
    """Base class for dependency injection faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.DI,
            severity=severity,
            metadata=metadata,
        )


class UnknownServiceError(DIError):
    """No binding or factory matches the requested service."""

    def __init__(
        self,
        name: str,
        service_type: Optional[str] = None,
        requested_by: Optional[str] = None,
    ):
        self.name = name
        self.service_type = service_type
        self.requested_by = requested_by

        if service_type:
            msg = f"No handler registered for service type '{service_type}' (argument '{name}')"
        else:
            msg = f"Unknown service '{name}'"
        if requested_by:
            msg += f" requested by {requested_by}"

        super().__init__(
            "UNKNOWN_SERVICE",
            msg,
            metadata={"name": name, "type": service_type, "requested_by": requested_by},
        )


class DuplicateServiceError(DIError):
    """A different service is already bound under the name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            "DUPLICATE_SERVICE",
            f"Service '{name}' is already registered",
            severity=Severity.FATAL,
            metadata={"name": name},
        )


class DependencyCycleError(DIError):
    """A service was requested while it was still being constructed."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(
            "DEPENDENCY_CYCLE",
            "Detected dependency cycle: " + " -> ".join(cycle),
            metadata={"cycle": cycle},
        )


class NotInjectableError(DIError):
    """Object was not constructed by a service container."""

    def __init__(self, instance: Any):
        super().__init__(
            "NOT_INJECTABLE",
            f"{type(instance).__name__} is not a dependency injection participant",
        )


# ============================================================================
# ROUTING Faults
# ============================================================================

class RoutingFault(Fault):
    """Base class for routing faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status: int = 404,
        public: bool = True,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.ROUTING,
            status=status,
            public=public,
            metadata=metadata,
        )


class RouteNotMatchedError(RoutingFault):
    """No registered pattern matches the request."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(
            "ROUTE_NOT_MATCHED",
            f"No route matches {method} {path}",
            metadata={"method": method, "path": path},
        )


class ControllerNotFoundError(RoutingFault):
    """Controller module or class could not be located."""

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        msg = f"Controller '{name}' not found"
        if reason:
            msg += f": {reason}"
        super().__init__(
            "CONTROLLER_NOT_FOUND",
            msg,
            metadata={"controller": name},
        )


class ActionNotFoundError(RoutingFault):
    """Controller has no public action of the requested name."""

    def __init__(self, controller: str, action: str):
        self.controller = controller
        self.action = action
        super().__init__(
            "ACTION_NOT_FOUND",
            f"Controller '{controller}' has no action '{action}'",
            metadata={"controller": controller, "action": action},
        )


class PatternInvalidError(RoutingFault):
    """Route pattern or target is malformed."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(
            "PATTERN_INVALID",
            f"Invalid route '{pattern}': {reason}",
            status=500,
            public=False,
            metadata={"pattern": pattern, "reason": reason},
        )


# ============================================================================
# VIEW Faults
# ============================================================================

class ViewFault(Fault):
    """Base class for view stack faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status: int = 500,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.VIEW,
            status=status,
            metadata=metadata,
        )


class ViewRenderError(ViewFault):
    """Template engine failed to render a view."""

    def __init__(self, template_path: str, cause: BaseException):
        self.template_path = template_path
        self.cause = cause
        super().__init__(
            "VIEW_RENDER_FAILED",
            f"Failed to render '{template_path}': {cause}",
            metadata={"template": template_path},
        )


class RenderCancelledError(ViewFault):
    """Rendering was abandoned because the client went away."""

    def __init__(self, template_path: str):
        self.template_path = template_path
        super().__init__(
            "RENDER_CANCELLED",
            f"Rendering cancelled before '{template_path}'",
            status=499,
            metadata={"template": template_path},
        )


class RenderStateError(ViewFault):
    """Render pipeline used out of order (e.g. rendered twice)."""

    def __init__(self, state: str, operation: str):
        super().__init__(
            "RENDER_STATE",
            f"Cannot {operation} while pipeline is '{state}'",
            metadata={"state": state, "operation": operation},
        )


# ============================================================================
# FLOW Faults
# ============================================================================

class ResponseEndedError(Fault):
    """end() was called on a response that has already ended."""

    def __init__(self):
        super().__init__(
            code="RESPONSE_ENDED",
            message="Response has already ended",
            domain=FaultDomain.FLOW,
        )
