"""
Trellis faults.

Every framework error is a typed ``Fault`` carrying a stable code, a domain,
a severity and the HTTP status the server answers with when the fault
escapes a request.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigError,
    DIError,
    UnknownServiceError,
    DuplicateServiceError,
    DependencyCycleError,
    NotInjectableError,
    RoutingFault,
    RouteNotMatchedError,
    ControllerNotFoundError,
    ActionNotFoundError,
    PatternInvalidError,
    ViewFault,
    ViewRenderError,
    RenderCancelledError,
    RenderStateError,
    ResponseEndedError,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Config
    "ConfigError",

    # DI
    "DIError",
    "UnknownServiceError",
    "DuplicateServiceError",
    "DependencyCycleError",
    "NotInjectableError",

    # Routing
    "RoutingFault",
    "RouteNotMatchedError",
    "ControllerNotFoundError",
    "ActionNotFoundError",
    "PatternInvalidError",

    # Views
    "ViewFault",
    "ViewRenderError",
    "RenderCancelledError",
    "RenderStateError",

    # Flow
    "ResponseEndedError",
]
