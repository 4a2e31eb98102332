"""Tests for cli_extensions/plugin_commands.py."""

import argparse
import json
from unittest.mock import Mock, patch

import pytest
import yaml

from scaffolder.cli_extensions.create_commands import CreateCommands
from scaffolder.cli_extensions.plugin_commands import PluginCommands
from scaffolder.core.guards import GuardRunResult
from scaffolder.core.loader import load_plugins
from scaffolder.core.manifest import find_entry, read_manifest


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _create_project(tmp_path, plugins="typescript,eslint,prettier,zod"):
    """Scaffold a real project to add plugins to and remove them from."""
    args = argparse.Namespace(
        command="create", name="demo", template=None, plugins=plugins, app_type=None,
        output=str(tmp_path / "demo"), description="", author="", package_manager=None,
        git_init=False, dry_run=False, force=False, yes=True, skip_install=True,
    )
    with patch("scaffolder.cli_extensions.create_commands.message"):
        CreateCommands(load_plugins(discover=False)).process_cli_command(args)
    return (tmp_path / "demo").resolve()


def _args(command, plugin_id, root, **overrides):
    base = {
        "command": command,
        "plugin_id": plugin_id,
        "cwd": str(root),
        "dry_run": False,
        "force": False,
        "yes": True,
    }
    if command == "add":
        base["skip_install"] = True
    else:
        base["keep_files"] = False
    base.update(overrides)
    return argparse.Namespace(**base)


def _saved_plugins(root):
    return yaml.safe_load((root / "scaffold.yaml").read_text())["plugins"]


@pytest.fixture(autouse=True)
def passing_guards():
    with patch("scaffolder.core.orchestrator.GuardRunner") as mock_runner_class:
        mock_runner_class.return_value.run_guards.return_value = GuardRunResult(True, False, [], "")
        yield mock_runner_class


@pytest.fixture
def messages():
    collected = []

    def record(text, *args, **kwargs):
        collected.append(text)

    with patch("scaffolder.cli_extensions.plugin_commands.message", side_effect=record), \
         patch("scaffolder.cli_extensions.common.message", side_effect=record):
        yield collected


@pytest.fixture
def commands():
    return PluginCommands(load_plugins(discover=False))


# ===========================================================================
# CLI registration
# ===========================================================================
class TestPluginCommandsAddCliArguments:

    def test_adds_add_and_remove_parsers(self):
        mock_subparsers = Mock()
        mock_subparsers.add_parser.return_value = Mock()

        PluginCommands.add_cli_arguments(mock_subparsers)

        calls = [c[0][0] for c in mock_subparsers.add_parser.call_args_list]
        assert calls == ["add", "remove"]

    def test_parses_with_real_parser(self):
        parser = argparse.ArgumentParser()
        PluginCommands.add_cli_arguments(parser.add_subparsers(dest="command"))

        args = parser.parse_args(["remove", "zod", "--keep-files", "-y"])

        assert args.plugin_id == "zod"
        assert args.keep_files is True
        assert args.force is False


class TestPluginCommandsProcess:

    def test_dispatches(self, commands):
        with patch.object(PluginCommands, "add") as mock_add, patch.object(PluginCommands, "remove") as mock_remove:
            commands.process_cli_command(argparse.Namespace(command="add"))
            commands.process_cli_command(argparse.Namespace(command="remove"))

        mock_add.assert_called_once()
        mock_remove.assert_called_once()


# ===========================================================================
# add
# ===========================================================================
class TestAddPlugin:

    def test_adds_plugin(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="typescript,eslint,prettier")

        commands.add(_args("add", "zod", root))

        assert (root / "src" / "env.ts").exists()
        assert _saved_plugins(root) == ["typescript", "eslint", "prettier", "zod"]

        package = json.loads((root / "package.json").read_text())
        assert "zod" in package["dependencies"]
        assert "typescript" in package["devDependencies"]

        entry = find_entry(read_manifest(root), "src/env.ts")
        assert entry["plugins"] == ["zod"]
        assert "Plugin 'zod' added" in messages

    def test_auto_enabled_dependency_not_added_again(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="drizzle")

        commands.add(_args("add", "eslint", root))

        assert not any("requires:" in m for m in messages)
        assert _saved_plugins(root) == ["drizzle", "typescript", "eslint"]
        assert find_entry(read_manifest(root), "eslint.config.js")["plugins"] == ["eslint"]

    def test_installs_dependencies(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="typescript")

        with patch("scaffolder.cli_extensions.plugin_commands.install_dependencies") as mock_install:
            commands.add(_args("add", "zod", root, skip_install=False))

        mock_install.assert_called_once_with(root, "bun")

    def test_dry_run_changes_nothing(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="typescript")

        commands.add(_args("add", "zod", root, dry_run=True))

        assert not (root / "src" / "env.ts").exists()
        assert _saved_plugins(root) == ["typescript"]
        assert any("Would create: src/env.ts" in m for m in messages)

    def test_unknown_plugin(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="typescript")

        with pytest.raises(SystemExit):
            commands.add(_args("add", "zodd", root))

        assert any("zodd" in m and "not found" in m for m in messages)

    def test_already_installed(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        commands.add(_args("add", "zod", root))

        assert "Plugin 'zod' is already installed" in messages
        assert "Use --force to regenerate it" in messages

    def test_missing_dependencies_declined(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="typescript")

        with patch("scaffolder.cli_extensions.plugin_commands.confirm", return_value=False):
            with pytest.raises(SystemExit):
                commands.add(_args("add", "better-auth", root, yes=False))

        assert "Plugin 'better-auth' requires: drizzle" in messages
        assert _saved_plugins(root) == ["typescript"]

    def test_conflict_fails_without_force(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="typescript,jest")

        with pytest.raises(SystemExit):
            commands.add(_args("add", "vitest", root))

        assert any(m.startswith("Cannot add plugin 'vitest'") for m in messages)
        assert not (root / "vitest.config.ts").exists()

    def test_conflict_with_force(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="typescript,jest")

        commands.add(_args("add", "vitest", root, force=True))

        assert (root / "vitest.config.ts").exists()
        assert "vitest" in _saved_plugins(root)
        assert "Proceeding anyway due to --force" in messages

    def test_no_project(self, commands, messages, tmp_path):
        with patch("scaffolder.cli_extensions.common.detect_project_root", return_value=None):
            with pytest.raises(SystemExit):
                commands.add(_args("add", "zod", tmp_path))

        assert any("Could not find a project" in m for m in messages)


# ===========================================================================
# remove
# ===========================================================================
class TestRemovePlugin:

    def test_removes_files_and_config(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        commands.remove(_args("remove", "zod", root))

        assert not (root / "src" / "env.ts").exists()
        assert not (root / "src").exists()
        assert _saved_plugins(root) == ["typescript", "eslint", "prettier"]
        ownership = read_manifest(root)
        assert find_entry(ownership, "src/env.ts") is None
        assert "zod" not in ownership["plugins"]
        assert "Plugin 'zod' removed (1 file(s) deleted)" in messages

    def test_lists_possibly_unused_packages(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        commands.remove(_args("remove", "zod", root, dry_run=True))

        assert any(m.startswith("Packages that may now be unused: zod") for m in messages)

    def test_dry_run(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        commands.remove(_args("remove", "zod", root, dry_run=True))

        assert (root / "src" / "env.ts").exists()
        assert "zod" in _saved_plugins(root)
        assert "  src/env.ts" in messages

    def test_keep_files(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        commands.remove(_args("remove", "zod", root, keep_files=True))

        assert (root / "src" / "env.ts").exists()
        assert "zod" not in _saved_plugins(root)

    def test_modified_file_kept(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)
        (root / "src" / "env.ts").write_text("// edited by hand\n")

        commands.remove(_args("remove", "zod", root))

        assert (root / "src" / "env.ts").read_text() == "// edited by hand\n"
        assert "Keeping src/env.ts: modified since it was generated" in messages

    def test_modified_file_removed_with_force(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)
        (root / "src" / "env.ts").write_text("// edited by hand\n")

        commands.remove(_args("remove", "zod", root, force=True))

        assert not (root / "src" / "env.ts").exists()

    def test_declined(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        with patch("scaffolder.cli_extensions.plugin_commands.confirm", return_value=False):
            commands.remove(_args("remove", "zod", root, yes=False))

        assert "Aborted" in messages
        assert (root / "src" / "env.ts").exists()

    def test_required_by_other_plugins(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        with pytest.raises(SystemExit):
            commands.remove(_args("remove", "typescript", root))

        assert any(m.startswith("Cannot remove 'typescript' - required by:") for m in messages)
        assert (root / "tsconfig.json").exists()

    def test_auto_enabled_dependency_is_installed(self, commands, messages, tmp_path):
        root = _create_project(tmp_path, plugins="drizzle")

        with pytest.raises(SystemExit):
            commands.remove(_args("remove", "typescript", root))
        assert "Cannot remove 'typescript' - required by: drizzle" in messages

        commands.remove(_args("remove", "drizzle", root))
        commands.remove(_args("remove", "typescript", root))

        assert not (root / "tsconfig.json").exists()
        assert any(m.startswith("Plugin 'typescript' removed") for m in messages)

    def test_not_installed(self, commands, messages, tmp_path):
        root = _create_project(tmp_path)

        with pytest.raises(SystemExit):
            commands.remove(_args("remove", "docker", root))

        assert "Plugin 'docker' is not installed" in messages

    def test_required_by_app_type(self, commands, messages, tmp_path):
        (tmp_path / "scaffold.yaml").write_text("name: web\napp_type: nextjs\nplugins:\n  - zod\n")

        with pytest.raises(SystemExit):
            commands.remove(_args("remove", "typescript", tmp_path))

        assert "Plugin 'typescript' is required by app type 'nextjs' and cannot be removed" in messages
