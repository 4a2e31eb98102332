"""Tests for core/templates.py."""

import pytest

from scaffolder.core.errors import GeneratorError
from scaffolder.core.templates import TemplateRenderer, camel_case, kebab_case, pascal_case, snake_case


class TestCaseFilters:

    @pytest.mark.parametrize("value, kebab, snake, pascal, camel", [
        ("myCoolApp", "my-cool-app", "my_cool_app", "MyCoolApp", "myCoolApp"),
        ("my-app", "my-app", "my_app", "MyApp", "myApp"),
        ("My App 2", "my-app-2", "my_app_2", "MyApp2", "myApp2"),
    ])
    def test_conversions(self, value, kebab, snake, pascal, camel):
        assert kebab_case(value) == kebab
        assert snake_case(value) == snake
        assert pascal_case(value) == pascal
        assert camel_case(value) == camel


class TestTemplateRenderer:

    def test_renders_variables(self):
        assert TemplateRenderer().render("# {{ name }}", {"name": "demo"}) == "# demo"

    def test_keeps_trailing_newline(self):
        assert TemplateRenderer().render("{{ name }}\n", {"name": "demo"}) == "demo\n"

    def test_does_not_escape(self):
        assert TemplateRenderer().render("{{ html }}", {"html": "<div>"}) == "<div>"

    def test_filters(self):
        result = TemplateRenderer().render("{{ name | pascal_case }}", {"name": "my-app"})
        assert result == "MyApp"

    def test_missing_values_render_empty(self):
        assert TemplateRenderer().render("[{{ plugins.redis.port }}]", {"plugins": {}}) == "[]"

    def test_conditionals_on_plugins(self):
        source = "{% if 'docker' in enabled %}docker{% else %}none{% endif %}"
        renderer = TemplateRenderer()
        assert renderer.render(source, {"enabled": ["docker"]}) == "docker"
        assert renderer.render(source, {"enabled": []}) == "none"

    def test_pure(self):
        renderer = TemplateRenderer()
        data = {"name": "demo"}
        assert renderer.render("{{ name }}", data) == renderer.render("{{ name }}", data)

    def test_syntax_error(self):
        with pytest.raises(GeneratorError, match="Template rendering failed"):
            TemplateRenderer().render("{% if %}", {})
