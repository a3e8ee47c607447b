"""
Controller factory - locates controller classes and builds them through DI.

Lookup order for a controller name:
1. Classes registered with :meth:`ControllerFactory.register`
2. The application convention: ``<app_path>/controllers/<snake_name>.py``
   defining ``<PascalName>Controller``

Classes found by convention are cached, so each module loads once.
"""

from pathlib import Path
from typing import Dict, Optional, Type, TYPE_CHECKING
import logging
import re

from ..faults import ControllerNotFoundError
from ..utils import load_module, module_name_for, resolve_module_path
from .base import Controller

if TYPE_CHECKING:
    from trellis.di import ServiceContainer
    from trellis.http import ServerRequest, ServerResponse

logger = logging.getLogger("trellis.controller")

_NAME_SPLIT = re.compile(r"[_\-\s]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def canonical_name(name: str) -> str:
    """``user_profiles`` / ``userProfiles`` / ``UserProfiles`` -> ``UserProfiles``"""
    if name.endswith("Controller") and name != "Controller":
        name = name[: -len("Controller")]
    return "".join(part[:1].upper() + part[1:] for part in _NAME_SPLIT.split(name) if part)


def module_stem(name: str) -> str:
    """``UserProfiles`` -> ``user_profiles``"""
    return _CAMEL_BOUNDARY.sub("_", canonical_name(name)).lower()


class ControllerFactory:
    """
    Factory for per-dispatch controller instances.

    Args:
        app_path: Application root directory
        services: Service container used for constructor injection
        controller_dir: Directory (relative to ``app_path``) holding controllers
    """

    def __init__(
        self,
        app_path: str | Path,
        services: "ServiceContainer",
        *,
        controller_dir: str = "controllers",
    ):
        self.app_path = Path(app_path)
        self.services = services
        self.controller_dir = controller_dir
        self._classes: Dict[str, Type[Controller]] = {}

    def register(self, name: str, controller_class: Type[Controller]) -> None:
        """Map ``name`` to a controller class ahead of any request."""
        if not (isinstance(controller_class, type) and issubclass(controller_class, Controller)):
            raise TypeError(f"{controller_class!r} is not a Controller subclass")
        self._classes[canonical_name(name)] = controller_class

    def resolve_class(self, name: str) -> Type[Controller]:
        """
        Find the controller class for ``name``.

        Raises:
            ControllerNotFoundError: If neither a registration nor a module matches
        """
        canonical = canonical_name(name)
        if not canonical.isidentifier():
            raise ControllerNotFoundError(name, "not a valid controller name")

        cls = self._classes.get(canonical)
        if cls is None:
            cls = self._load_class(canonical)
            self._classes[canonical] = cls
        return cls

    def create(self, name: str) -> Controller:
        """
        Instantiate the controller for ``name`` with its dependencies injected.

        The controller is not bound to any request yet.

        Raises:
            ControllerNotFoundError: If the controller cannot be located
            UnknownServiceError: If a declared dependency is missing
        """
        cls = self.resolve_class(name)
        controller = self.services.create(cls)
        controller.name = canonical_name(name)
        return controller

    def bind_to_request(
        self,
        controller: Controller,
        request: "ServerRequest",
        response: "ServerResponse",
    ) -> None:
        controller.bind(request, response)

    def _load_class(self, canonical: str) -> Type[Controller]:
        relative = f"{self.controller_dir}/{module_stem(canonical)}"
        path = resolve_module_path(self.app_path, relative)
        if path is None:
            raise ControllerNotFoundError(canonical, f"no module {relative}.py")

        module = load_module(path, module_name_for(self.app_path, relative))
        class_name = f"{canonical}Controller"
        cls: Optional[type] = getattr(module, class_name, None)

        if not (isinstance(cls, type) and issubclass(cls, Controller)):
            raise ControllerNotFoundError(canonical, f"{relative}.py defines no {class_name}")

        logger.debug("Loaded controller %s from %s", class_name, path)
        return cls
