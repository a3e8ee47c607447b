"""
View stack factory - the process-wide source of view stacks.

Owns the template engine and the helper registry. Helpers may be added while
the application is being assembled; once the first stack has been handed
out the registry is sealed.
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from .helpers import DEFAULT_HELPERS
from .stack import ViewStack

if TYPE_CHECKING:
    from trellis.templates import TemplateEngine


class ViewStackFactory:
    """
    Creates one :class:`ViewStack` per render pipeline.

    Args:
        engine: Template engine shared by all stacks
        helpers: Initial helpers (default: :data:`DEFAULT_HELPERS`)
        template_root: Default template root for view controllers
        default_layout: Default layout for view controllers
    """

    def __init__(
        self,
        engine: "TemplateEngine",
        helpers: Optional[Mapping[str, Any]] = None,
        *,
        template_root: str = "templates",
        default_layout: Optional[str] = "@layout",
    ):
        self.engine = engine
        self.template_root = template_root
        self.default_layout = default_layout
        self._helpers: Dict[str, Any] = dict(DEFAULT_HELPERS if helpers is None else helpers)
        self._sealed = False

    @property
    def helpers(self) -> Mapping[str, Any]:
        """Read-only view of the helper registry."""
        return MappingProxyType(self._helpers)

    def add_helper(self, name: str, helper: Any) -> None:
        """Register a helper (only before the first stack is created)."""
        if self._sealed:
            raise RuntimeError(f"Cannot add helper '{name}': view helpers are sealed once rendering starts")
        self._helpers[name] = helper

    def create(self) -> ViewStack:
        self._sealed = True
        return ViewStack(self.engine, self.helpers)
