"""
View - one template bound to a data context.
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING
from markupsafe import Markup

if TYPE_CHECKING:
    from trellis.templates import TemplateEngine


# Binding under which an outer view receives the inner view's rendering
CONTENT_KEY = "content"


class View:
    """
    A template path plus the data it renders with.

    ``data`` is a read-only view of the mapping given at construction.
    Render-time values are added with :meth:`bind`; they take precedence over
    ``data``, and the inner rendering (``content``) takes precedence over both.

    Attributes:
        template_path: View path, relative to the template loader root
    """

    __slots__ = ("template_path", "_data", "_bindings")

    def __init__(self, template_path: str, data: Optional[Mapping[str, Any]] = None):
        self.template_path = template_path
        self._data = data if data is not None else {}
        self._bindings: Dict[str, Any] = {}

    @property
    def data(self) -> Mapping[str, Any]:
        return MappingProxyType(self._data)

    def bind(self, key: str, value: Any) -> None:
        """Add a render-time binding."""
        self._bindings[key] = value

    def build_context(
        self,
        helpers: Optional[Mapping[str, Any]] = None,
        content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Merge helpers, data, bindings and inner content into one context.

        Priority: content > bindings > data > helpers
        """
        context: Dict[str, Any] = {}
        if helpers:
            context.update(helpers)
        context.update(self._data)
        context.update(self._bindings)
        if content is not None:
            context[CONTENT_KEY] = Markup(content)
        return context

    async def render(
        self,
        engine: "TemplateEngine",
        helpers: Optional[Mapping[str, Any]] = None,
        content: Optional[str] = None,
    ) -> str:
        """Render through ``engine`` with the merged context."""
        return await engine.render(self.template_path, self.build_context(helpers, content))

    def __repr__(self) -> str:
        return f"View({self.template_path!r})"
