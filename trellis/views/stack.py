"""
View stack - ordered page/layout composition.

Views are pushed innermost first (the page), then each wrapping layout.
Execution renders them strictly in push order, one at a time, and feeds each
rendering to the next view as ``content``; the outermost rendering is the
response body:

    stack.push_view(View("templates/UsersController/index", data))
    stack.push_view(View("templates/@layout", data))
    html = await stack.execute()
"""

from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, TYPE_CHECKING
import logging
import time

from ..faults import RenderCancelledError, RenderStateError, ViewRenderError
from .view import View

if TYPE_CHECKING:
    from trellis.templates import TemplateEngine

logger = logging.getLogger("trellis.views")


class CancelToken:
    """
    Cooperative cancellation flag.

    Transports cancel the token when the client disconnects; the view stack
    checks it before starting each view.
    """

    __slots__ = ("_cancelled", "reason")

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ViewStack:
    """
    Ordered, single-use composition of views.

    Also carries the data shared by every view of a controller
    (``stack["title"] = "Users"``).

    Args:
        engine: Template engine used for every view
        helpers: Read-only helper mapping exposed to every view
    """

    def __init__(
        self,
        engine: "TemplateEngine",
        helpers: Optional[Mapping[str, Any]] = None,
    ):
        self.engine = engine
        self.helpers: Mapping[str, Any] = helpers if helpers is not None else MappingProxyType({})
        self.data: Dict[str, Any] = {}
        self._views: List[View] = []
        self._executed = False

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def push_view(self, view: View) -> None:
        """Append a view; nothing renders until :meth:`execute`."""
        if self._executed:
            raise RenderStateError("executed", "push a view")
        self._views.append(view)

    @property
    def views(self) -> Tuple[View, ...]:
        return tuple(self._views)

    @property
    def root(self) -> Optional[View]:
        """Outermost view (its rendering is the final result)."""
        return self._views[-1] if self._views else None

    def __len__(self) -> int:
        return len(self._views)

    def __iter__(self) -> Iterator[View]:
        return iter(tuple(self._views))

    # Shared data

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def update(self, values: Mapping[str, Any]) -> None:
        self.data.update(values)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, token: Optional[CancelToken] = None) -> str:
        """
        Render every view innermost to outermost.

        Each view starts only after the previous one finished. The first
        failure stops execution; later views are never rendered.

        Args:
            token: Optional cancellation token checked before each view

        Returns:
            The outermost view's rendering ("" for an empty stack)

        Raises:
            ViewRenderError: Wrapping the first template failure
            RenderCancelledError: If ``token`` was cancelled
            RenderStateError: If the stack was already executed
        """
        if self._executed:
            raise RenderStateError("executed", "execute")
        self._executed = True

        views = tuple(self._views)
        rendering: Optional[str] = None

        for view in views:
            if token is not None and token.cancelled:
                raise RenderCancelledError(view.template_path)

            started = time.perf_counter()
            try:
                rendering = await view.render(self.engine, self.helpers, rendering)
            except Exception as exc:
                raise ViewRenderError(view.template_path, exc) from exc

            logger.debug(
                "Rendered %s in %.1fms",
                view.template_path,
                (time.perf_counter() - started) * 1000,
            )

        return rendering if rendering is not None else ""
