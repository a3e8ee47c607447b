"""
Controller base classes.

A controller is created per dispatch by the :class:`ControllerFactory`,
bound to the request/response pair, and asked to run one action. The action
must end the response exactly once, directly or through a helper such as
:meth:`ApiController.send` or :meth:`ViewController.render`.
"""

from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING
import json

if TYPE_CHECKING:
    from trellis.http import ServerRequest, ServerResponse


class Controller:
    """
    Base Controller class.

    Attributes:
        name: Canonical controller name (``Users`` for ``UsersController``)
        action: Action being dispatched
        request: Bound request (None until bound)
        response: Bound response (None until bound)

    Example:
        class HealthController(Controller):
            async def index(self):
                self.response.body("ok")
                await self.response.end()
    """

    def __init__(self):
        self.name = _default_name(type(self))
        self.action: Optional[str] = None
        self.request: Optional["ServerRequest"] = None
        self.response: Optional["ServerResponse"] = None

    def bind(self, request: "ServerRequest", response: "ServerResponse") -> None:
        """Attach the per-request pair."""
        self.request = request
        self.response = response

    def get_name(self) -> str:
        return self.name

    def get_action(self) -> Optional[str]:
        return self.action

    async def end(self, status: Optional[int] = None) -> None:
        """End the response without a body."""
        await self.response.end(status)

    async def redirect(self, location: str, status: int = 302) -> None:
        self.response.head(status, {"location": location})
        await self.response.end()


class ApiController(Controller):
    """
    Controller answering with JSON.

    Example:
        class UsersController(ApiController):
            async def show(self, user_id):
                await self.send({"id": int(user_id)})
    """

    async def send(
        self,
        data: Any,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Serialize ``data`` as JSON and end the response."""
        merged: Dict[str, str] = {"content-type": "application/json; charset=utf-8"}
        if headers:
            merged.update(headers)
        self.response.head(status, merged)
        self.response.body(json.dumps(data, default=str))
        await self.response.end()

    async def send_error(self, status: int, message: str) -> None:
        await self.send({"error": message}, status=status)


def _default_name(cls: type) -> str:
    name = cls.__name__
    if name.endswith("Controller") and name != "Controller":
        return name[: -len("Controller")]
    return name
