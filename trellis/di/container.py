"""
Service container - named singleton registry with lazy factories.

Services are constructed in first-use order rather than a precomputed
topological order. Each key moves through an explicit state machine:

    UNRESOLVED -> RESOLVING -> RESOLVED

A key requested again while RESOLVING is a dependency cycle and fails fast.
"""

from typing import Any, Callable, Dict, List, Optional, Type, TypeVar
from enum import Enum
import inspect
import logging

from ..faults import (
    DependencyCycleError,
    DuplicateServiceError,
    NotInjectableError,
    UnknownServiceError,
)
from .declarations import DeclarationParser

logger = logging.getLogger("trellis.di")

T = TypeVar("T")

_MISSING = object()


class ServiceState(str, Enum):
    """Resolution state of a service key."""
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class ServiceContainer:
    """
    DI container - manages named services for the application's lifetime.

    Three kinds of bindings:
    - ``set_service``: a pre-built instance
    - ``set_factory``: a named factory, called on first ``get``
    - ``set_service_type_handler``: a factory per *type* of dependency,
      called with the dependency's argument (e.g. ``include`` + a path)

    Example:
        services = ServiceContainer()
        services.set_service("$config", config)
        services.set_factory("$db", lambda c: Database(c.get("$config").dsn))

        db = services.get("$db")
        assert services.get("$db") is db
    """

    __slots__ = ("_instances", "_factories", "_type_handlers", "_resolving")

    def __init__(self):
        self._instances: Dict[str, Any] = {}  # {key: instance}
        self._factories: Dict[str, Callable[..., Any]] = {}  # {name: factory}
        self._type_handlers: Dict[str, Callable[[str], Any]] = {}  # {type: factory}
        self._resolving: List[str] = []  # keys mid-construction, in order

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_service(self, name: str, instance: Any) -> None:
        """
        Register a pre-built singleton.

        Re-registering the identical instance is a no-op.

        Raises:
            DuplicateServiceError: If a different instance or a factory is
                already bound under ``name``
        """
        existing = self._instances.get(name, _MISSING)
        if existing is not _MISSING:
            if existing is instance:
                return
            raise DuplicateServiceError(name)
        if name in self._factories:
            raise DuplicateServiceError(name)

        self._instances[name] = instance

    def set_factory(self, name: str, factory: Callable[..., Any]) -> None:
        """
        Register a lazy factory for ``name``.

        The factory takes no argument or the container itself, and runs at
        most once.
        """
        existing = self._factories.get(name)
        if existing is factory:
            return
        if existing is not None or name in self._instances:
            raise DuplicateServiceError(name)

        self._factories[name] = factory

    def set_service_type_handler(self, service_type: str, factory: Callable[[str], Any]) -> None:
        """
        Register a factory for dependencies declared with ``service_type``.

        Nothing is constructed until a dependency of that type is resolved.
        """
        existing = self._type_handlers.get(service_type)
        if existing is factory:
            return
        if existing is not None:
            raise DuplicateServiceError(f"{service_type}:*")

        self._type_handlers[service_type] = factory

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def get(self, name: str, service_type: Optional[str] = None) -> Any:
        """
        Resolve a service (hot path: a single dict lookup once resolved).

        Args:
            name: Service name, or the argument for ``service_type``
            service_type: Optional service type tag

        Returns:
            The singleton instance

        Raises:
            UnknownServiceError: If no binding or factory matches
            DependencyCycleError: If the key is already being constructed
        """
        return self._resolve(name, service_type, None)

    def has(self, name: str) -> bool:
        """Check whether ``name`` has an instance or factory."""
        return name in self._instances or name in self._factories

    def state(self, name: str, service_type: Optional[str] = None) -> ServiceState:
        """Current resolution state of a key."""
        key = _make_key(name, service_type)
        if key in self._instances:
            return ServiceState.RESOLVED
        if key in self._resolving:
            return ServiceState.RESOLVING
        return ServiceState.UNRESOLVED

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def _resolve(self, name: str, service_type: Optional[str], requested_by: Optional[str]) -> Any:
        key = _make_key(name, service_type)

        instance = self._instances.get(key, _MISSING)
        if instance is not _MISSING:
            return instance

        if key in self._resolving:
            start = self._resolving.index(key)
            raise DependencyCycleError(self._resolving[start:] + [key])

        if service_type is None:
            factory = self._factories.get(name)
            if factory is None:
                raise UnknownServiceError(name, requested_by=requested_by)
            build = lambda: _call_factory(factory, self)
        else:
            handler = self._type_handlers.get(service_type)
            if handler is None:
                raise UnknownServiceError(name, service_type, requested_by=requested_by)
            build = lambda: handler(name)

        self._resolving.append(key)
        try:
            instance = build()
        finally:
            self._resolving.pop()

        self._instances[key] = instance
        logger.debug("Constructed service %s (%s)", key, type(instance).__name__)
        return instance

    # ------------------------------------------------------------------
    # Injection
    # ------------------------------------------------------------------

    def inject(self, constructor: type, instance: Any, *args: Any) -> None:
        """
        Run ``constructor.__init__`` on ``instance`` with resolved dependencies.

        Declared dependencies are resolved in order and passed first,
        followed by ``args``.
        """
        deps = DeclarationParser.parse(constructor)
        requested_by = constructor.__qualname__
        resolved = [self._resolve(dep.name, dep.type, requested_by) for dep in deps]
        constructor.__init__(instance, *resolved, *args)

    def create(self, cls: Type[T], *args: Any) -> T:
        """
        Instantiate ``cls`` as a dependency injection participant.

        The instance remembers its container so that base classes can be
        initialised through :func:`base`.
        """
        instance = cls.__new__(cls)
        instance.__injector__ = self
        self.inject(cls, instance, *args)
        return instance


def base(constructor: type, instance: Any, *args: Any) -> None:
    """
    Initialise a base class of a DI participant.

    Example:
        class UsersController(ViewController):
            def __init__(self, users: Annotated[Any, include("models/users")]):
                base(ViewController, self)
                self.users = users

    Raises:
        NotInjectableError: If ``instance`` was not built by a container
    """
    injector = getattr(instance, "__injector__", None)
    if injector is None:
        raise NotInjectableError(instance)

    injector.inject(constructor, instance, *args)


def _make_key(name: str, service_type: Optional[str]) -> str:
    if service_type:
        return f"{service_type}:{name}"
    return name


def _call_factory(factory: Callable[..., Any], container: ServiceContainer) -> Any:
    try:
        params = inspect.signature(factory).parameters.values()
    except (TypeError, ValueError):
        return factory()

    required = [
        p for p in params
        if p.default is p.empty and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if required:
        return factory(container)
    return factory()
