"""Tests for core/conditions.py."""

import pytest

from scaffolder.core.conditions import ALWAYS, Always, HasPlugin, NotHasPlugin, parse_condition


class TestConditions:

    def test_always(self):
        assert ALWAYS.evaluate(set())
        assert str(ALWAYS) == "always"

    def test_has_plugin(self):
        condition = HasPlugin("docker")
        assert condition.evaluate({"docker", "redis"})
        assert not condition.evaluate({"redis"})
        assert str(condition) == "has:docker"

    def test_not_has_plugin(self):
        condition = NotHasPlugin("docker")
        assert condition.evaluate([])
        assert not condition.evaluate(["docker"])
        assert str(condition) == "!has:docker"


class TestParseCondition:

    @pytest.mark.parametrize("value", [None, "", "always", "  always  "])
    def test_always_forms(self, value):
        assert parse_condition(value) == Always()

    def test_has(self):
        assert parse_condition("has:redis") == HasPlugin("redis")

    def test_not_has(self):
        assert parse_condition("!has:redis") == NotHasPlugin("redis")

    def test_structured_passthrough(self):
        condition = HasPlugin("x")
        assert parse_condition(condition) is condition

    @pytest.mark.parametrize("value", ["has:", "!has:", "maybe", "plugin:redis"])
    def test_invalid_strings(self, value):
        with pytest.raises(ValueError, match="Invalid condition"):
            parse_condition(value)

    def test_invalid_type(self):
        with pytest.raises(ValueError, match="Unsupported condition type"):
            parse_condition(42)

    def test_string_and_structured_forms_agree(self):
        enabled = {"docker"}
        for text, structured in [("has:docker", HasPlugin("docker")), ("!has:docker", NotHasPlugin("docker"))]:
            assert parse_condition(text).evaluate(enabled) == structured.evaluate(enabled)
