"""
Shared test fixtures and helpers for Trellis test suite.
"""

import textwrap
from pathlib import Path
from typing import Dict

import pytest

from trellis import TrellisConfig, create, create_application
from trellis.di import ServiceContainer
from trellis.templates import TemplateEngine, TemplateLoader
from trellis.views import ViewStackFactory


# ============================================================================
# Application Tree Helpers
# ============================================================================


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Write ``{relative_path: source}`` under ``root``."""
    for relative, source in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).strip("\n"), encoding="utf-8")
    return root


BLOG_FILES = {
    "templates/@layout.html": "<body>{{ content }}</body>",
    "templates/PostsController/index.html": "hello {{ name }}",
    "templates/PostsController/show.html": "post {{ post_id }}",
    "templates/PostsController/broken.html": "{{ missing.attribute.deeper }}",
    "templates/bare.html": "bare {{ title }}",
    "models/posts.py": """
        POSTS = {"1": "First post", "2": "Second post"}

        def title(post_id):
            return POSTS[post_id]
    """,
    "controllers/posts.py": """
        from typing import Annotated, Any

        from trellis import ViewController, base, include


        class PostsController(ViewController):
            def __init__(self, posts: Annotated[Any, include("models/posts")]):
                base(ViewController, self)
                self.posts = posts

            async def index(self):
                self.view["name"] = self.request.query_param("name", "Ada")
                await self.render()

            async def show(self, post_id):
                self.view["post_id"] = post_id
                self.view["title"] = self.posts.title(post_id)
                await self.render()

            async def broken(self):
                await self.render()

            async def bare(self):
                self.set_layout(None)
                self.set_template_path("bare")
                self.view["title"] = "no layout"
                await self.render()
    """,
    "controllers/status.py": """
        from trellis import ApiController


        class StatusController(ApiController):
            async def ping(self):
                await self.send({"pong": True})

            async def echo(self):
                await self.send(self.request.json(), status=201)

            def forgetful(self):
                return None
    """,
}


@pytest.fixture
def write_files():
    """The tree writer, for tests that build their own application."""
    return write_tree


@pytest.fixture
def blog_path(tmp_path):
    """A small application tree with templates, models and controllers."""
    return write_tree(tmp_path, BLOG_FILES)


@pytest.fixture
def blog_app(blog_path):
    """A servable application with conventional routes."""
    app = create(blog_path, config=TrellisConfig(app_path=str(blog_path)))
    app.router.set_routes({
        "/": "Posts:index",
        "/post/:post_id": "Posts:show",
        "/:controller/:action": None,
    })
    return app


@pytest.fixture
def bare_app(tmp_path):
    """Application without server/adapter."""
    return create_application(tmp_path, TrellisConfig(app_path=str(tmp_path)))


@pytest.fixture
def view_stacks(blog_path):
    engine = TemplateEngine(TemplateLoader([blog_path]))
    return ViewStackFactory(engine)


@pytest.fixture
def services(view_stacks):
    container = ServiceContainer()
    container.set_service("$view_stacks", view_stacks)
    return container
