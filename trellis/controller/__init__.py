"""
Trellis controllers.

Example:
    from trellis.controller import ViewController

    class WelcomeController(ViewController):
        async def index(self):
            self.view["name"] = self.request.query_param("name", "world")
            await self.render()
"""

from .base import Controller, ApiController
from .view import ViewController, RenderState
from .factory import ControllerFactory, canonical_name

__all__ = [
    "Controller",
    "ApiController",
    "ViewController",
    "RenderState",
    "ControllerFactory",
    "canonical_name",
]
