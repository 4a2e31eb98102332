"""Tests for cli_extensions/info_commands.py."""

import argparse
import json
import subprocess
from unittest.mock import Mock, patch

import pytest

from scaffolder import __version__
from scaffolder.cli_extensions.info_commands import InfoCommands, tool_version
from scaffolder.core.catalog import Plugin
from scaffolder.core.defaults import PROJECT_TEMPLATES
from scaffolder.core.loader import LoadedPlugins, load_plugins
from scaffolder.plugins.generators import build_generator_table


def _list_args(what="plugins", **overrides):
    base = {"command": "list", "what": what, "category": None, "app_type": None, "search": None, "json": False}
    base.update(overrides)
    return argparse.Namespace(**base)


def _info_args(topic="version", **overrides):
    base = {"command": "info", "topic": topic, "cwd": None, "json": False}
    base.update(overrides)
    return argparse.Namespace(**base)


@pytest.fixture
def messages():
    collected = []

    def record(text, *args, **kwargs):
        collected.append(text)

    with patch("scaffolder.cli_extensions.info_commands.message", side_effect=record), \
         patch("scaffolder.config.config.message"):
        yield collected


@pytest.fixture
def commands():
    return InfoCommands(load_plugins(discover=False))


# ===========================================================================
# CLI registration
# ===========================================================================
class TestInfoCommandsAddCliArguments:

    def test_adds_list_and_info(self):
        mock_subparsers = Mock()
        mock_subparsers.add_parser.return_value = Mock()

        InfoCommands.add_cli_arguments(mock_subparsers)

        calls = [c[0][0] for c in mock_subparsers.add_parser.call_args_list]
        assert calls == ["list", "info"]

    def test_defaults_with_real_parser(self):
        parser = argparse.ArgumentParser()
        InfoCommands.add_cli_arguments(parser.add_subparsers(dest="command"))

        assert parser.parse_args(["list"]).what == "plugins"
        assert parser.parse_args(["info"]).topic == "version"


# ===========================================================================
# list
# ===========================================================================
class TestListPlugins:

    def test_groups_by_category(self, commands, messages):
        commands.process_cli_command(_list_args())

        assert "\n=== Core ===" in messages
        assert "\n=== Ui ===" in messages
        assert any(m.startswith("  typescript") for m in messages)

    def test_filter_by_category(self, commands, messages):
        commands.process_cli_command(_list_args(category="ui", json=True))

        ids = [p["id"] for p in json.loads(messages[0])]
        assert sorted(ids) == ["next-themes", "radix-ui", "shadcn-ui", "tailwindcss"]

    def test_filter_by_app_type(self, commands, messages):
        commands.process_cli_command(_list_args(app_type="astro", json=True))

        ids = [p["id"] for p in json.loads(messages[0])]
        assert "postgresql" not in ids
        assert "tailwindcss" in ids

    def test_search(self, commands, messages):
        commands.process_cli_command(_list_args(search="orm", json=True))

        ids = {p["id"] for p in json.loads(messages[0])}
        assert {"drizzle", "prisma"} <= ids

    def test_no_match(self, commands, messages):
        commands.process_cli_command(_list_args(search="zzzzzz"))

        assert messages == ["No plugins match."]

    def test_marks_external_plugins(self, messages):
        base = load_plugins(discover=False)
        base.catalog.register(Plugin("stripe", "Stripe", "Payments", "integration"))
        plugins = LoadedPlugins(base.catalog, build_generator_table(), external=("stripe",))

        InfoCommands(plugins).process_cli_command(_list_args())

        assert any(m.startswith(" *stripe") for m in messages)
        assert "\n* installed from an external package" in messages


class TestListOther:

    def test_templates_json(self, commands, messages):
        commands.process_cli_command(_list_args("templates", json=True))

        data = json.loads(messages[0])
        assert [t["id"] for t in data] == [t.id for t in PROJECT_TEMPLATES]

    def test_templates_text(self, commands, messages):
        commands.process_cli_command(_list_args("templates"))

        assert "\n=== API Server (api) ===" in messages

    def test_categories(self, commands, messages):
        commands.process_cli_command(_list_args("categories", json=True))

        counts = json.loads(messages[0])
        assert counts["ui"] == 4

    def test_app_types(self, commands, messages):
        commands.process_cli_command(_list_args("app-types", json=True))

        data = json.loads(messages[0])
        assert [a["id"] for a in data] == ["nestjs", "nextjs", "fumadocs", "express", "fastify", "astro"]
        assert data[0]["required_plugins"] == ["typescript"]


# ===========================================================================
# info
# ===========================================================================
class TestToolVersion:

    @patch("scaffolder.cli_extensions.info_commands.subprocess.run")
    def test_parses_version(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="v20.11.1\n")
        assert tool_version("node") == "20.11.1"

    @patch("scaffolder.cli_extensions.info_commands.subprocess.run")
    def test_missing_tool(self, mock_run):
        mock_run.side_effect = FileNotFoundError("node")
        assert tool_version("node") is None

    @patch("scaffolder.cli_extensions.info_commands.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired("node", 10)
        assert tool_version("node") is None

    @patch("scaffolder.cli_extensions.info_commands.subprocess.run")
    def test_non_zero_exit(self, mock_run):
        mock_run.return_value = Mock(returncode=1, stdout="")
        assert tool_version("node") is None

    @patch("scaffolder.cli_extensions.info_commands.subprocess.run")
    def test_unparseable_output(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="custom build\n")
        assert tool_version("git") == "custom build"


class TestInfo:

    def test_version(self, commands, messages):
        commands.process_cli_command(_info_args())
        assert messages == [f"scaffolder {__version__}"]

    def test_version_json(self, commands, messages):
        commands.process_cli_command(_info_args(json=True))
        assert json.loads(messages[0]) == {"version": __version__}

    def test_env_json(self, commands, messages):
        with patch("scaffolder.cli_extensions.info_commands.tool_version", return_value="1.0.0"):
            commands.process_cli_command(_info_args("env", json=True))

        data = json.loads(messages[0])
        assert data["tools"]["node"] == "1.0.0"
        assert set(data["tools"]) == {"node", "bun", "npm", "pnpm", "yarn", "git"}
        assert data["scaffolder"]["version"] == __version__

    def test_env_text_reports_missing_tools(self, commands, messages):
        with patch("scaffolder.cli_extensions.info_commands.tool_version", return_value=None):
            commands.process_cli_command(_info_args("env"))

        assert any("node:" in m and "not found" in m for m in messages)

    def test_stats(self, commands, messages):
        commands.process_cli_command(_info_args("stats", json=True))

        stats = json.loads(messages[0])
        assert stats["plugins"] == 25
        assert stats["generators"] == 22
        assert stats["external_plugins"] == 0
        assert stats["app_types"] == 6
        assert stats["templates"] == len(PROJECT_TEMPLATES)

    def test_project_not_found(self, commands, messages, tmp_path):
        with patch("scaffolder.cli_extensions.info_commands.detect_project_root", return_value=None):
            commands.process_cli_command(_info_args("project", cwd=str(tmp_path)))

        assert any(m.startswith("No project found") for m in messages)

    def test_project_unmanaged_monorepo(self, commands, messages, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"name": "mono", "workspaces": ["apps/*"]}))

        commands.process_cli_command(_info_args("project", cwd=str(tmp_path), json=True))

        info = json.loads(messages[0])
        assert info["managed"] is False
        assert info["monorepo"] is True

    def test_project_managed(self, commands, messages, tmp_path):
        (tmp_path / "scaffold.yaml").write_text("name: web\napp_type: nextjs\nplugins: [zod]\n")

        commands.process_cli_command(_info_args("project", cwd=str(tmp_path), json=True))

        info = json.loads(messages[0])
        assert info["managed"] is True
        assert info["name"] == "web"
        assert info["plugins"] == ["zod"]
        assert info["auto_enabled"] == ["typescript"]
        assert info["generated_files"] == 0
        assert info["monorepo"] is False
