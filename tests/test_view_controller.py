"""
ViewController render pipeline (controller/view.py)

Tests stack composition, the render states and the guarantee that every
render ends the response exactly once.
"""

import logging

import pytest

from trellis.controller import RenderState, ViewController
from trellis.di import ServiceContainer
from trellis.faults import RenderStateError
from trellis.testing import TestResponse, make_request
from trellis.views import ViewStackFactory


class StaticEngine:
    """Engine answering from an in-memory table of ``str.format`` templates."""

    def __init__(self, templates, fail=False):
        self.templates = templates
        self.fail = fail
        self.calls = []

    async def render(self, template_path, context):
        self.calls.append(template_path)
        if self.fail:
            raise RuntimeError("template engine exploded")
        return self.templates[template_path].format(**context)


class UsersController(ViewController):

    async def index(self):
        await self.render()


def make_controller(engine, action="index", **factory_options):
    services = ServiceContainer()
    services.set_service("$view_stacks", ViewStackFactory(engine, **factory_options))
    controller = services.create(UsersController)
    controller.bind(make_request("GET", "/users"), TestResponse())
    controller.action = action
    return controller


# ============================================================================
# Stack Composition
# ============================================================================

class TestBeforeRender:

    def test_page_then_layout(self):
        controller = make_controller(StaticEngine({}))
        controller.before_render()

        paths = [view.template_path for view in controller.view.views]
        assert paths == ["templates/UsersController/index", "templates/@layout"]
        assert controller.state is RenderState.PREPARED

    def test_layout_disabled(self):
        controller = make_controller(StaticEngine({}))
        controller.set_layout(None)
        controller.before_render()

        paths = [view.template_path for view in controller.view.views]
        assert paths == ["templates/UsersController/index"]

    @pytest.mark.parametrize("falsy", ["", None, False])
    def test_falsy_layout_means_none(self, falsy):
        controller = make_controller(StaticEngine({}))
        controller.set_layout(falsy)
        assert controller.get_layout() is None

    def test_layout_same_as_page_pushed_once(self):
        controller = make_controller(StaticEngine({}))
        controller.set_layout("UsersController/index")
        controller.before_render()
        assert len(controller.view) == 1

    def test_custom_template_root(self):
        controller = make_controller(StaticEngine({}))
        controller.set_template_root("themes/dark")
        controller.before_render()

        paths = [view.template_path for view in controller.view.views]
        assert paths == ["themes/dark/UsersController/index", "themes/dark/@layout"]

    def test_factory_defaults(self):
        controller = make_controller(StaticEngine({}), template_root="views", default_layout="base")
        controller.before_render()

        paths = [view.template_path for view in controller.view.views]
        assert paths == ["views/UsersController/index", "views/base"]

    def test_views_share_controller_data(self):
        controller = make_controller(StaticEngine({}))
        controller.view["title"] = "Users"
        controller.before_render()

        for view in controller.view.views:
            assert view.data["title"] == "Users"

    def test_requires_action(self):
        controller = make_controller(StaticEngine({}), action=None)
        with pytest.raises(RenderStateError):
            controller.before_render()


# ============================================================================
# Rendering
# ============================================================================

class TestRender:

    @pytest.mark.asyncio
    async def test_page_with_data(self):
        engine = StaticEngine({"templates/UsersController/index": "hello {name}"})
        controller = make_controller(engine)
        controller.set_layout(None)
        controller.view["name"] = "Ada"

        await controller.render()

        response = controller.response
        assert response.text == "hello Ada"
        assert response.status == 200
        assert response.end_calls == 1
        assert controller.state is RenderState.DONE

    @pytest.mark.asyncio
    async def test_layout_wraps_page(self):
        engine = StaticEngine({
            "templates/UsersController/index": "hi",
            "templates/@layout": "<body>{content}</body>",
        })
        controller = make_controller(engine)

        await controller.render()

        assert controller.response.text == "<body>hi</body>"
        assert engine.calls == ["templates/UsersController/index", "templates/@layout"]
        assert controller.response.end_calls == 1

    @pytest.mark.asyncio
    async def test_status_applied_on_success(self):
        engine = StaticEngine({"templates/UsersController/index": "created"})
        controller = make_controller(engine)
        controller.set_layout(None)

        await controller.render(201)
        assert controller.response.status == 201

    @pytest.mark.asyncio
    async def test_engine_failure_ends_with_500(self, caplog):
        controller = make_controller(StaticEngine({}, fail=True))

        with caplog.at_level(logging.ERROR, logger="trellis"):
            await controller.render()

        response = controller.response
        assert response.status == 500
        assert response.content == b""
        assert response.end_calls == 1
        assert controller.state is RenderState.FAILED

        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert "Users.index" in errors[0].getMessage()

    @pytest.mark.asyncio
    async def test_render_twice_raises(self):
        engine = StaticEngine({"templates/UsersController/index": "x"})
        controller = make_controller(engine)
        controller.set_layout(None)
        await controller.render()

        with pytest.raises(RenderStateError):
            await controller.render()
        assert controller.response.end_calls == 1

    @pytest.mark.asyncio
    async def test_disconnected_client_skips_rendering(self):
        engine = StaticEngine({"templates/UsersController/index": "x"})
        controller = make_controller(engine)
        controller.response.close("client disconnected")

        await controller.render()

        assert engine.calls == []
        assert controller.response.end_calls == 1
        assert controller.response.sent == []
        assert controller.response.status == 499
        assert controller.state is RenderState.FAILED

    @pytest.mark.asyncio
    async def test_render_with_jinja_templates(self, blog_path):
        from trellis.templates import TemplateEngine, TemplateLoader

        controller = make_controller(TemplateEngine(TemplateLoader([blog_path])))
        controller.name = "Posts"
        controller.view["name"] = "Ada"

        await controller.render()
        assert controller.response.text == "<body>hello Ada</body>"
