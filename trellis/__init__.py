"""
Trellis - MVC web framework with constructor injection and layered views.

- DI: name-keyed lazy singletons, ``Annotated[T, Inject(...)]`` declarations
- Controllers: created per dispatch, located by convention or registration
- Views: page templates wrapped by layouts, rendered with Jinja2
- Routing: first-match-wins patterns, dynamic ``:controller/:action`` routes
- Transports: ASGI HTTP and a JSON request/response protocol over WebSocket
"""

__version__ = "0.1.0"

# ============================================================================
# Application
# ============================================================================

from .app import Application, create, create_application
from .config import ConfigLoader, TrellisConfig

# ============================================================================
# Dependency Injection
# ============================================================================

from .di import (
    ServiceContainer,
    ServiceState,
    Inject,
    include,
    depends,
    base,
)

# ============================================================================
# Controllers, Views & Routing
# ============================================================================

from .controller import (
    Controller,
    ApiController,
    ViewController,
    RenderState,
    ControllerFactory,
)
from .views import View, ViewStack, ViewStackFactory, CancelToken
from .routing import Router, Route, RouteMatch
from .templates import TemplateEngine, TemplateLoader

# ============================================================================
# Transports
# ============================================================================

from .http import (
    ServerRequest,
    ServerResponse,
    HTTPServerResponse,
    WebSocketServerRequest,
    WebSocketServerResponse,
)
from .server import HTTPServer
from .asgi import ASGIAdapter

# ============================================================================
# Faults
# ============================================================================

from .faults import (
    Fault,
    FaultDomain,
    Severity,
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
    "__version__",
    # Application
    "Application",
    "create",
    "create_application",
    "ConfigLoader",
    "TrellisConfig",
    # DI
    "ServiceContainer",
    "ServiceState",
    "Inject",
    "include",
    "depends",
    "base",
    # Controllers, views, routing
    "Controller",
    "ApiController",
    "ViewController",
    "RenderState",
    "ControllerFactory",
    "View",
    "ViewStack",
    "ViewStackFactory",
    "CancelToken",
    "Router",
    "Route",
    "RouteMatch",
    "TemplateEngine",
    "TemplateLoader",
    # Transports
    "ServerRequest",
    "ServerResponse",
    "HTTPServerResponse",
    "WebSocketServerRequest",
    "WebSocketServerResponse",
    "HTTPServer",
    "ASGIAdapter",
    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigError",
    "DIError",
    "UnknownServiceError",
    "DuplicateServiceError",
    "DependencyCycleError",
    "NotInjectableError",
    "RoutingFault",
    "RouteNotMatchedError",
    "ControllerNotFoundError",
    "ActionNotFoundError",
    "PatternInvalidError",
    "ViewFault",
    "ViewRenderError",
    "RenderCancelledError",
    "RenderStateError",
    "ResponseEndedError",
]
