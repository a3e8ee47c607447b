"""
Router - maps requests to typed handlers or controller actions.

Routes are tried in registration order and the first match wins. Dispatch
does not catch errors raised by factories, DI or actions; the server's
top-level handler turns them into responses.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, TYPE_CHECKING
import inspect
import logging

from ..controller.base import ApiController, Controller
from ..controller.view import ViewController
from ..faults import ActionNotFoundError, PatternInvalidError, RouteNotMatchedError
from .route import DYNAMIC, ControllerTarget, Route, RouteMatch, split_pattern

if TYPE_CHECKING:
    from trellis.controller import ControllerFactory
    from trellis.http import ServerRequest, ServerResponse

logger = logging.getLogger("trellis.router")

# Framework methods that are never dispatchable as actions
_RESERVED_ACTIONS = frozenset(
    name
    for cls in (Controller, ApiController, ViewController)
    for name in dir(cls)
)

RouteHandler = Callable[..., Any]


class Router:
    """
    First-match-wins request router.

    Example:
        router = Router(controller_factory)
        router.set_route_type_handler("static", lambda rel: StaticFiles(app_path / rel))
        router.set_routes({
            "/": "Welcome:index",
            "/users/:id": "Users:show",
            "/assets/*": {"type": "static", "target": "public"},
            "/:controller/:action": None,
        })
    """

    def __init__(self, controller_factory: Optional["ControllerFactory"] = None):
        self.controller_factory = controller_factory
        self._routes: List[Route] = []
        self._type_handlers: Dict[str, Callable[[str], RouteHandler]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_route_type_handler(self, route_type: str, factory: Callable[[str], RouteHandler]) -> None:
        """
        Register a route type.

        ``factory(target)`` is called once per route of that type, at
        registration time, and returns the handler invoked as
        ``handler(request, response, *params)``.
        """
        if route_type == DYNAMIC:
            raise ValueError(f"Route type '{DYNAMIC}' is reserved for controller routes")
        self._type_handlers[route_type] = factory

    def add_route(self, pattern: str, target: Any = None, route_type: str = DYNAMIC) -> Route:
        """
        Register a route.

        Raises:
            PatternInvalidError: On malformed patterns, incomplete controller
                targets or unknown route types
        """
        methods, path = split_pattern(pattern)

        if route_type == DYNAMIC:
            if not isinstance(target, ControllerTarget):
                target = ControllerTarget.parse(target)
            route = Route(DYNAMIC, pattern, path, methods, target)
            if not target.controller and "controller" not in route.param_names:
                raise PatternInvalidError(pattern, "no controller in target or pattern")
            if not target.action and "action" not in route.param_names:
                raise PatternInvalidError(pattern, "no action in target or pattern")
        else:
            factory = self._type_handlers.get(route_type)
            if factory is None:
                raise PatternInvalidError(pattern, f"no handler for route type '{route_type}'")
            route = Route(route_type, pattern, path, methods, target, handler=factory(target))

        self._routes.append(route)
        logger.debug("Registered %s route %s -> %s", route.type, pattern, target)
        return route

    def set_routes(self, routes: Mapping[str, Any]) -> None:
        """
        Register routes from a mapping, in mapping order.

        Values are ``"Controller:action"`` strings, ``None`` (everything
        captured from the pattern) or ``{"type": ..., "target": ...}``.
        """
        for pattern, spec in routes.items():
            if isinstance(spec, Mapping):
                self.add_route(pattern, spec.get("target"), spec.get("type", DYNAMIC))
            else:
                self.add_route(pattern, spec)

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """First matching route, or None."""
        method = method.upper()
        for route in self._routes:
            params = route.match(method, path)
            if params is not None:
                return RouteMatch(route, params)
        return None

    def resolve(self, method: str, path: str) -> RouteMatch:
        """
        Like :meth:`match` but raising.

        Raises:
            RouteNotMatchedError: If no route matches
        """
        match = self.match(method, path)
        if match is None:
            raise RouteNotMatchedError(method, path)
        return match

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, request: "ServerRequest", response: "ServerResponse") -> None:
        """
        Route one request.

        Unmatched requests end with 404. Typed routes run their handler;
        dynamic routes build the controller, bind it and call the action
        with the captured parameters.
        """
        match = self.match(request.method, request.path)
        if match is None:
            logger.info("No route for %s %s", request.method, request.path)
            await response.end(404)
            return

        route = match.route
        if route.type != DYNAMIC:
            await _call(route.handler, request, response, *match.args)
            return

        controller_name = match.controller
        action_name = match.action

        controller = self.controller_factory.create(controller_name)
        self.controller_factory.bind_to_request(controller, request, response)
        controller.action = action_name

        action = _lookup_action(controller, action_name)
        await _call(action, *match.args)


def _lookup_action(controller: Controller, action_name: str) -> Callable[..., Any]:
    if action_name.startswith("_") or action_name in _RESERVED_ACTIONS:
        raise ActionNotFoundError(controller.name, action_name)
    # Actions are functions defined on the class; instance attributes never dispatch
    if not inspect.isfunction(getattr(type(controller), action_name, None)) or action_name in vars(controller):
        raise ActionNotFoundError(controller.name, action_name)
    return getattr(controller, action_name)


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
