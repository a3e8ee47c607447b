"""
Template engine - async Jinja2 rendering for views.

The view stack only needs one operation from the engine:

    rendered = await engine.render(template_path, context)

Everything else here (sandboxing, caching, extension defaults) is
configuration of the underlying Jinja2 environment.
"""

from typing import Any, Callable, Dict, Mapping, Optional
import logging
import posixpath
from jinja2 import Environment, Template, select_autoescape
from jinja2.sandbox import SandboxedEnvironment

from .loader import TemplateLoader
from .bytecode_cache import InMemoryBytecodeCache

logger = logging.getLogger("trellis.templates")


class TemplateEngine:
    """
    Async-capable Jinja2 template engine.

    Args:
        loader: Template loader
        bytecode_cache: Bytecode cache (default: in-memory LRU)
        autoescape: Enable HTML autoescaping
        sandbox: Render with Jinja2's SandboxedEnvironment
        default_extension: Appended to template paths without a suffix
        globals: Extra global variables/functions
        filters: Extra filters

    Example:
        engine = TemplateEngine(TemplateLoader(["/srv/app"]))
        html = await engine.render("templates/UsersController/index", {"users": users})
    """

    def __init__(
        self,
        loader: TemplateLoader,
        *,
        bytecode_cache: Optional[InMemoryBytecodeCache] = None,
        autoescape: bool = True,
        sandbox: bool = False,
        default_extension: str = ".html",
        globals: Optional[Dict[str, Any]] = None,
        filters: Optional[Dict[str, Callable]] = None,
    ):
        self.loader = loader
        self.bytecode_cache = bytecode_cache or InMemoryBytecodeCache()
        self.sandbox = sandbox
        self.default_extension = default_extension

        env_class = SandboxedEnvironment if sandbox else Environment
        self.env = env_class(
            loader=self.loader,
            bytecode_cache=self.bytecode_cache,
            autoescape=select_autoescape(
                enabled_extensions=("html", "htm", "xml"),
                default_for_string=True,
            ) if autoescape else False,
            enable_async=True,
        )

        if filters:
            self.env.filters.update(filters)
        if globals:
            self.env.globals.update(globals)

    def resolve_name(self, template_path: str) -> str:
        """
        Normalise a view path into a loader template name.

        ``templates/UsersController/index`` -> ``templates/UsersController/index.html``
        """
        name = posixpath.normpath(template_path.replace("\\", "/"))
        if self.default_extension and not posixpath.splitext(name)[1]:
            name += self.default_extension
        return name

    def get_template(self, template_path: str) -> Template:
        """Load (and compile) a template by view path."""
        return self.env.get_template(self.resolve_name(template_path))

    async def render(
        self,
        template_path: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Render template asynchronously.

        Raises:
            TemplateNotFound: If the template doesn't exist
            TemplateSyntaxError: If the template has syntax errors
        """
        template = self.get_template(template_path)
        return await template.render_async(**dict(context or {}))

    def register_filter(self, name: str, func: Callable) -> None:
        self.env.filters[name] = func

    def register_global(self, name: str, value: Any) -> None:
        self.env.globals[name] = value

    def invalidate_cache(self) -> None:
        """Drop compiled templates (e.g. after editing sources in dev)."""
        if self.env.cache is not None:
            self.env.cache.clear()
        self.bytecode_cache.clear()
        logger.debug("Template caches cleared")
