"""
Route descriptors and pattern compilation.

Pattern syntax:
    /users                 literal
    /users/:id             named segment
    /:controller/:action   controller and action taken from the path
    /assets/*              trailing wildcard, captured as ``path``
    POST /users            method-restricted (comma-separated methods allowed)
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Pattern, Tuple
import re

from ..faults import PatternInvalidError

DYNAMIC = "dynamic"

# Captures with framework meaning; not passed to actions
CONTROLLER_PARAM = "controller"
ACTION_PARAM = "action"

_TOKEN = re.compile(r":(?P<name>[A-Za-z_][A-Za-z0-9_]*)|(?P<wild>\*)")
_METHOD_PREFIX = re.compile(r"^(?P<methods>[A-Z]+(?:,[A-Z]+)*)\s+(?P<path>\S+)$")


@dataclass(frozen=True)
class ControllerTarget:
    """``Users:index`` -> controller ``Users``, action ``index``; blanks come from captures."""

    controller: Optional[str] = None
    action: Optional[str] = None

    @classmethod
    def parse(cls, target: Optional[str]) -> "ControllerTarget":
        if not target:
            return cls()
        controller, _, action = target.partition(":")
        return cls(controller or None, action or None)

    def __str__(self) -> str:
        return f"{self.controller or ':controller'}:{self.action or ':action'}"


@dataclass
class Route:
    """
    One registered route.

    Attributes:
        type: ``dynamic`` for controller routes, otherwise a route type
            registered with ``Router.set_route_type_handler``
        pattern: Pattern as registered
        path: Path part of the pattern
        methods: Allowed methods (None = any)
        target: ControllerTarget for dynamic routes, the raw target otherwise
        handler: Prebuilt handler for typed routes
    """

    type: str
    pattern: str
    path: str
    methods: Optional[FrozenSet[str]]
    target: Any
    handler: Optional[Callable[..., Any]] = None
    regex: Pattern = field(init=False, repr=False)
    param_names: Tuple[str, ...] = field(init=False)

    def __post_init__(self):
        self.regex, self.param_names = compile_path(self.path, self.pattern)

    def match(self, method: str, path: str) -> Optional[Dict[str, str]]:
        """Captured params (in pattern order) or None."""
        if self.methods is not None and method not in self.methods:
            if not (method == "HEAD" and "GET" in self.methods):
                return None
        m = self.regex.match(path)
        if m is None:
            return None
        return {name: m.group(name) for name in self.param_names}


@dataclass
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    params: Dict[str, str]

    @property
    def args(self) -> List[str]:
        """Positional arguments for the handler/action."""
        if self.route.type != DYNAMIC:
            return list(self.params.values())
        return [
            value for name, value in self.params.items()
            if name not in (CONTROLLER_PARAM, ACTION_PARAM)
        ]

    @property
    def controller(self) -> Optional[str]:
        target = self.route.target
        return target.controller or self.params.get(CONTROLLER_PARAM)

    @property
    def action(self) -> Optional[str]:
        target = self.route.target
        return target.action or self.params.get(ACTION_PARAM)


def split_pattern(pattern: str) -> Tuple[Optional[FrozenSet[str]], str]:
    """``"GET,POST /users"`` -> (frozenset({"GET", "POST"}), "/users")"""
    pattern = pattern.strip()
    m = _METHOD_PREFIX.match(pattern)
    if m:
        return frozenset(m.group("methods").split(",")), m.group("path")
    return None, pattern


def compile_path(path: str, pattern: Optional[str] = None) -> Tuple[Pattern, Tuple[str, ...]]:
    """
    Compile a route path into an anchored regex.

    Raises:
        PatternInvalidError: On malformed patterns
    """
    pattern = pattern or path
    if not path.startswith("/"):
        raise PatternInvalidError(pattern, "path must start with '/'")

    names: List[str] = []
    parts = ["^"]
    pos = 0

    for m in _TOKEN.finditer(path):
        parts.append(re.escape(path[pos:m.start()]))
        if m.group("wild"):
            if m.end() != len(path):
                raise PatternInvalidError(pattern, "'*' is only allowed at the end")
            name, expr = "path", "(?P<path>.*)"
        else:
            name = m.group("name")
            expr = f"(?P<{name}>[^/]+)"
        if name in names:
            raise PatternInvalidError(pattern, f"duplicate parameter '{name}'")
        names.append(name)
        parts.append(expr)
        pos = m.end()

    parts.append(re.escape(path[pos:]))
    if path != "/" and not path.endswith(("*", "/")):
        parts.append("/?")
    parts.append("$")

    return re.compile("".join(parts)), tuple(names)
