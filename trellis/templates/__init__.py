"""
Trellis templates - Jinja2 rendering used by views.

Example:
    from trellis.templates import TemplateEngine, TemplateLoader

    engine = TemplateEngine(TemplateLoader(["/srv/app"]))
    html = await engine.render("templates/@layout", {"content": "hi"})
"""

from .engine import TemplateEngine
from .loader import TemplateLoader
from .bytecode_cache import InMemoryBytecodeCache

__all__ = [
    "TemplateEngine",
    "TemplateLoader",
    "InMemoryBytecodeCache",
]
