"""
Dependency declarations.

A constructor declares the services it needs as its *leading* parameters.
Each one is described by a ``Dependency(name, type)`` descriptor:

    class UsersController(ViewController):
        def __init__(
            self,
            config: Annotated[TrellisConfig, Inject("$config")],
            users: Annotated[Any, include("models/users")],
        ):
            base(ViewController, self)
            self.config = config
            self.users = users

or, without annotations:

    class Mailer:
        @depends("$config", "include:lib/smtp")
        def __init__(self, config, smtp):
            ...

The parser reads one ``__init__`` at a time, so every class level in a
hierarchy exposes its own list.
"""

from typing import Annotated, Any, Callable, Dict, Optional, Tuple, get_args, get_origin, get_type_hints
from dataclasses import dataclass
import inspect


@dataclass(frozen=True)
class Dependency:
    """One declared dependency: a service name, or an argument for a service type."""

    name: str
    type: Optional[str] = None

    @property
    def key(self) -> str:
        """Cache key used by the service container."""
        if self.type:
            return f"{self.type}:{self.name}"
        return self.name

    @classmethod
    def parse(cls, spec: "str | Dependency | Inject") -> "Dependency":
        """
        Build a dependency from a declaration.

        ``"name"`` is a named service, ``"type:argument"`` a typed one.
        Names starting with ``$`` never carry a type.
        """
        if isinstance(spec, Dependency):
            return spec
        if isinstance(spec, Inject):
            return cls(spec.name, spec.type)
        if ":" in spec and not spec.startswith("$"):
            service_type, name = spec.split(":", 1)
            return cls(name, service_type)
        return cls(spec)


@dataclass(frozen=True)
class Inject:
    """
    Injection metadata marker.

    Usage:
        def __init__(self, config: Annotated[TrellisConfig, Inject("$config")]):
            ...
    """

    name: str
    type: Optional[str] = None


def include(relative_path: str) -> Inject:
    """Marker for a module loaded through the ``include`` service type."""
    return Inject(relative_path, type="include")


def depends(*specs: "str | Inject") -> Callable[[Callable], Callable]:
    """Declare the dependency list of an ``__init__`` without annotations."""
    def decorator(func: Callable) -> Callable:
        func.__dependencies__ = tuple(Dependency.parse(s) for s in specs)
        return func

    return decorator


class DeclarationParser:
    """
    Extracts ordered dependency lists from constructors.

    Results are cached per function; constructors do not change at runtime.
    """

    _cache: Dict[Any, Tuple[Dependency, ...]] = {}

    @classmethod
    def parse(cls, target: Any) -> Tuple[Dependency, ...]:
        """
        Return the dependency list of a class's ``__init__`` (or of a function).

        Args:
            target: Class or constructor function

        Returns:
            Tuple of dependencies in parameter order
        """
        func = target.__init__ if isinstance(target, type) else target
        if func is object.__init__:
            return ()

        cached = cls._cache.get(func)
        if cached is not None:
            return cached

        declared = getattr(func, "__dependencies__", None)
        if declared is not None:
            result = tuple(declared)
        else:
            result = cls._from_signature(func)

        cls._cache[func] = result
        return result

    @staticmethod
    def _from_signature(func: Callable) -> Tuple[Dependency, ...]:
        try:
            hints = get_type_hints(func, include_extras=True)
        except Exception:
            hints = {}

        sig = inspect.signature(func)
        params = list(sig.parameters.values())[1:]  # skip self
        deps = []

        for param in params:
            if param.kind not in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
                break
            marker = _find_marker(hints.get(param.name, param.annotation))
            if marker is None:
                # Dependencies are leading parameters only
                break
            deps.append(Dependency(marker.name, marker.type))

        return tuple(deps)


def _find_marker(annotation: Any) -> Optional[Inject]:
    if get_origin(annotation) is not Annotated:
        return None
    for meta in get_args(annotation)[1:]:
        if isinstance(meta, Inject):
            return meta
    return None
