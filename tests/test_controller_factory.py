"""
Controller Factory (controller/factory.py)

Tests name canonicalisation, registration, convention loading and
constructor injection.
"""

import pytest

from trellis.controller import Controller, ControllerFactory, ViewController, canonical_name
from trellis.controller.factory import module_stem
from trellis.di import ServiceContainer
from trellis.faults import ControllerNotFoundError, UnknownServiceError


# ============================================================================
# Names
# ============================================================================

class TestNames:

    @pytest.mark.parametrize("name", ["user_profiles", "userProfiles", "UserProfiles", "UserProfilesController"])
    def test_canonical_name(self, name):
        assert canonical_name(name) == "UserProfiles"

    def test_module_stem(self):
        assert module_stem("UserProfiles") == "user_profiles"
        assert module_stem("posts") == "posts"


# ============================================================================
# Lookup
# ============================================================================

class TestLookup:

    def test_registered_class_wins(self, blog_path, services):
        class PostsController(Controller):
            pass

        factory = ControllerFactory(blog_path, services)
        factory.register("Posts", PostsController)
        assert factory.resolve_class("posts") is PostsController

    def test_register_rejects_non_controllers(self, blog_path, services):
        factory = ControllerFactory(blog_path, services)
        with pytest.raises(TypeError):
            factory.register("Thing", object)

    def test_convention_loading(self, blog_path, services):
        factory = ControllerFactory(blog_path, services)
        cls = factory.resolve_class("posts")
        assert cls.__name__ == "PostsController"
        assert issubclass(cls, ViewController)

    def test_convention_class_cached(self, blog_path, services):
        factory = ControllerFactory(blog_path, services)
        assert factory.resolve_class("Posts") is factory.resolve_class("posts")

    def test_missing_module(self, blog_path, services):
        factory = ControllerFactory(blog_path, services)
        with pytest.raises(ControllerNotFoundError) as exc_info:
            factory.resolve_class("comments")
        assert exc_info.value.status == 404

    @pytest.mark.parametrize("name", ["..", ".", "posts/..", "../controllers/posts"])
    def test_non_identifier_names_rejected(self, blog_path, services, name):
        factory = ControllerFactory(blog_path, services)
        with pytest.raises(ControllerNotFoundError) as exc_info:
            factory.resolve_class(name)
        assert exc_info.value.status == 404

    def test_module_without_class(self, tmp_path, services, write_files):
        write_files(tmp_path, {"controllers/empty.py": "VALUE = 1"})
        factory = ControllerFactory(tmp_path, services)
        with pytest.raises(ControllerNotFoundError) as exc_info:
            factory.resolve_class("empty")
        assert "EmptyController" in exc_info.value.message

    def test_custom_controller_dir(self, tmp_path, services, write_files):
        write_files(tmp_path, {
            "app/handlers/health.py": """
                from trellis import Controller


                class HealthController(Controller):
                    async def index(self):
                        await self.end(204)
            """,
        })
        factory = ControllerFactory(tmp_path, services, controller_dir="app/handlers")
        assert factory.resolve_class("health").__name__ == "HealthController"


# ============================================================================
# Construction
# ============================================================================

class TestCreate:

    def test_create_injects_view_stack(self, blog_path, services, view_stacks):
        services.set_service_type_handler("include", lambda path: {"title": lambda pid: pid})
        factory = ControllerFactory(blog_path, services)

        controller = factory.create("posts")
        assert controller.name == "Posts"
        assert controller.view.engine is view_stacks.engine
        assert controller.template_root == "templates"
        assert controller.get_layout() == "@layout"
        assert controller.request is None

    def test_fresh_instance_per_create(self, blog_path, services):
        class PingController(Controller):
            pass

        factory = ControllerFactory(blog_path, services)
        factory.register("ping", PingController)
        assert factory.create("ping") is not factory.create("ping")

    def test_missing_dependency_propagates(self, blog_path, services):
        factory = ControllerFactory(blog_path, services)
        with pytest.raises(UnknownServiceError):
            factory.create("posts")

    def test_bind_to_request(self, blog_path, services):
        class PingController(Controller):
            pass

        factory = ControllerFactory(blog_path, services)
        factory.register("ping", PingController)
        controller = factory.create("ping")
        factory.bind_to_request(controller, "request", "response")
        assert controller.request == "request"
        assert controller.response == "response"
