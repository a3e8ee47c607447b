"""
ViewController - controllers that answer with rendered templates.

Render pipeline, per controller instance:

    idle -> prepared -> rendering -> done | failed

The page template lives at ``<template_root>/<Name>Controller/<action>``
and is wrapped by the layout ``<template_root>/<layout_name>`` (default
``@layout``) unless the layout is switched off with ``set_layout(None)``.
"""

from enum import Enum
from typing import Annotated, Optional
import logging
import posixpath

from ..di import Inject, base
from ..faults import RenderCancelledError, RenderStateError
from ..views import View, ViewStackFactory
from .base import Controller

logger = logging.getLogger("trellis.controller")


class RenderState(str, Enum):
    IDLE = "idle"
    PREPARED = "prepared"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


class ViewController(Controller):
    """
    Controller with a view stack and a render pipeline.

    Attributes:
        view: The controller's view stack; item assignment sets data shared
            by the page and its layouts (``self.view["title"] = "Users"``)
        template_root: Root of this controller's templates
        state: Current render pipeline state

    Example:
        class UsersController(ViewController):
            def __init__(self, users: Annotated[Any, include("models/users")]):
                base(ViewController, self)
                self.users = users

            async def index(self):
                self.view["users"] = self.users.all()
                await self.render()
    """

    def __init__(self, view_stacks: Annotated[ViewStackFactory, Inject("$view_stacks")]):
        base(Controller, self)
        self.view = view_stacks.create()
        self.template_root = view_stacks.template_root
        self.layout_name: Optional[str] = view_stacks.default_layout
        self.page_template_path: Optional[str] = None
        self.state = RenderState.IDLE

    def set_template_root(self, template_root: str) -> None:
        self.template_root = template_root

    def set_template_path(self, page_template_path: Optional[str]) -> None:
        """Override the conventional page template (relative to the root)."""
        self.page_template_path = page_template_path

    def get_layout(self) -> Optional[str]:
        return self.layout_name

    def set_layout(self, layout_name: Optional[str]) -> None:
        """Set the layout; any falsy value disables it."""
        self.layout_name = layout_name or None

    def create_view(self, relative_path: str) -> View:
        """View for a template under :attr:`template_root`, sharing the stack data."""
        return View(posixpath.join(self.template_root, relative_path), self.view.data)

    def before_render(self) -> None:
        """
        Push the page view, then the layout view if it is a different template.

        Raises:
            RenderStateError: If the pipeline is not idle or no action is set
        """
        if self.state is not RenderState.IDLE:
            raise RenderStateError(self.state.value, "prepare views")
        if not self.action and not self.page_template_path:
            raise RenderStateError(self.state.value, "render without an action")

        page_path = self.page_template_path or posixpath.join(f"{self.name}Controller", self.action)
        page_view = self.create_view(page_path)

        layout_name = self.get_layout()
        root_view = self.create_view(layout_name) if layout_name else page_view

        self.view.push_view(page_view)
        if root_view.template_path != page_view.template_path:
            self.view.push_view(root_view)

        self.state = RenderState.PREPARED

    async def render(self, status: Optional[int] = None) -> None:
        """
        Render the view stack and end the response.

        On success the optional ``status`` is applied and the rendering is
        written as the body. On failure the error is logged and the response
        ends with 500 and no body; a client that went away ends it with 499.
        Either way ``end()`` is called once.

        Raises:
            RenderStateError: If called more than once
        """
        if self.state is not RenderState.IDLE:
            raise RenderStateError(self.state.value, "render")

        self.before_render()
        self.state = RenderState.RENDERING

        try:
            rendering = await self.view.execute(self.response.cancel_token)
        except RenderCancelledError as exc:
            self.state = RenderState.FAILED
            logger.info("Rendering %s.%s abandoned: %s", self.name, self.action, exc)
            self.response.discard_body()
            await self.response.end(exc.status)
            return
        except Exception as exc:
            self.state = RenderState.FAILED
            logger.error(
                "Rendering %s.%s failed: %s",
                self.name,
                self.action,
                exc,
                exc_info=exc,
            )
            self.response.discard_body()
            await self.response.end(500)
            return

        if status:
            self.response.head(status)
        self.response.body(rendering)
        await self.response.end()
        self.state = RenderState.DONE
