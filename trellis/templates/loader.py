"""
Template loader - resolves view template paths against application roots.

View paths are POSIX-style names relative to a search path, e.g.
``templates/UsersController/index.html`` or ``templates/@layout.html``.
"""

from typing import Any, Callable, List, Optional, Tuple
from pathlib import Path
import os
from jinja2 import BaseLoader, TemplateNotFound
from jinja2.loaders import FileSystemLoader


TEMPLATE_EXTENSIONS = (".html", ".htm", ".xml", ".txt", ".jinja", ".jinja2", ".j2")


class TemplateLoader(BaseLoader):
    """
    Filesystem loader over an ordered list of search paths.

    The first search path containing the template wins.

    Args:
        search_paths: Template root directories (usually the app path)
        encoding: Source file encoding
    """

    def __init__(self, search_paths: Optional[List[str]] = None, encoding: str = "utf-8"):
        self.search_paths = [Path(p) for p in (search_paths or [])]
        self._fs_loaders = [
            FileSystemLoader(str(path), encoding=encoding)
            for path in self.search_paths
        ]

    def get_source(
        self,
        environment: Any,
        template: str,
    ) -> Tuple[str, Optional[str], Optional[Callable[[], bool]]]:
        """
        Load template source.

        Raises:
            TemplateNotFound: If no search path has the template
        """
        name = template.lstrip("/")
        for loader in self._fs_loaders:
            try:
                return loader.get_source(environment, name)
            except TemplateNotFound:
                continue

        raise TemplateNotFound(template)

    def list_templates(self) -> List[str]:
        """List template names (relative to their search path)."""
        templates = set()

        for path in self.search_paths:
            if not path.exists():
                continue
            for root, _dirs, files in os.walk(path):
                for filename in files:
                    if filename.endswith(TEMPLATE_EXTENSIONS):
                        relative = (Path(root) / filename).relative_to(path)
                        templates.add(relative.as_posix())

        return sorted(templates)
