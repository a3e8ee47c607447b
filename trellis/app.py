"""
Application assembly - wires the container, controllers, views and router.

    app = create("/srv/blog", ws=True)
    app.router.set_routes({
        "/": "Posts:index",
        "/:controller/:action": None,
    })
    app.run()

``create_application`` builds everything needed to dispatch requests;
``create`` adds the HTTP server and the ASGI adapter on top.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .config import ConfigLoader, TrellisConfig
from .controller import ControllerFactory
from .di import ServiceContainer
from .faults import UnknownServiceError
from .routing import Router
from .templates import TemplateEngine, TemplateLoader
from .utils import load_module, module_name_for, resolve_module_path
from .views import ViewStackFactory

logger = logging.getLogger("trellis")


@dataclass
class Application:
    """
    An assembled Trellis application.

    ``server`` and ``adapter`` are only set by :func:`create`.
    """

    app_path: Path
    config: TrellisConfig
    services: ServiceContainer
    controller_factory: ControllerFactory
    view_stacks: ViewStackFactory
    router: Router
    server: Any = None
    adapter: Any = None

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        """ASGI entry point, so the application can be served directly."""
        if self.adapter is None:
            raise RuntimeError("Application has no ASGI adapter; build it with trellis.create()")
        await self.adapter(scope, receive, send)

    def run(self, host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
        """
        Run the development server.

        Args:
            host: Host to bind to (default: ``config.host``)
            port: Port to bind to (default: ``config.port``)
            reload: Enable auto-reload
        """
        import uvicorn

        if self.adapter is None:
            raise RuntimeError("Application has no ASGI adapter; build it with trellis.create()")

        host = host or self.config.host
        port = port or self.config.port
        log_level = self.config.log_level.lower()

        logging.basicConfig(
            level=getattr(logging, self.config.log_level.upper(), logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        logger.info("Starting uvicorn server on %s:%s", host, port)
        uvicorn.run(self.adapter, host=host, port=port, reload=reload, log_level=log_level)


def create_application(
    app_path: str | Path,
    config: Optional[TrellisConfig] = None,
) -> Application:
    """
    Build the container, controller factory, view stack factory and router.

    Registered services:
        ``$view_stacks``: the :class:`ViewStackFactory`
        ``$config``: the :class:`TrellisConfig`
        ``include:<path>``: the module at ``<app_path>/<path>.py``

    Args:
        app_path: Application root directory
        config: Configuration (default: loaded with :class:`ConfigLoader`)
    """
    app_path = Path(app_path)
    if config is None:
        config = ConfigLoader.load(app_path).to_config()

    logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    services = ServiceContainer()

    engine = TemplateEngine(
        TemplateLoader([app_path]),
        autoescape=config.autoescape,
        sandbox=config.sandbox,
        default_extension=config.template_extension,
    )
    view_stacks = ViewStackFactory(
        engine,
        template_root=config.template_root,
        default_layout=config.default_layout,
    )

    services.set_service("$view_stacks", view_stacks)
    services.set_service("$config", config)
    services.set_service_type_handler("include", _module_includer(app_path))

    controller_factory = ControllerFactory(
        app_path,
        services,
        controller_dir=config.controller_dir,
    )
    router = Router(controller_factory)

    logger.debug("Application assembled at %s", app_path)
    return Application(
        app_path=app_path,
        config=config,
        services=services,
        controller_factory=controller_factory,
        view_stacks=view_stacks,
        router=router,
    )


def create(
    app_path: str | Path,
    *,
    ws: Optional[bool] = None,
    config: Optional[TrellisConfig] = None,
) -> Application:
    """
    Build a servable application.

    Args:
        app_path: Application root directory
        ws: Accept JSON-over-WebSocket requests (default: ``config.websockets``)
        config: Configuration (default: loaded with :class:`ConfigLoader`)
    """
    from .asgi import ASGIAdapter
    from .server import HTTPServer

    app = create_application(app_path, config)
    websockets = app.config.websockets if ws is None else ws

    app.server = HTTPServer(app.router)
    app.adapter = ASGIAdapter(app.server, websockets=websockets)
    app.services.set_service("$server", app.server)
    return app


def _module_includer(app_path: Path):
    def include_module(relative: str) -> Any:
        path = resolve_module_path(app_path, relative)
        if path is None:
            raise UnknownServiceError(f"include:{relative}")
        return load_module(path, module_name_for(app_path, relative))

    return include_module
