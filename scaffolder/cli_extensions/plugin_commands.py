"""CLI commands for adding plugins to and removing them from a project.

``add`` regenerates only the new plugin and the dependencies it pulls
in; existing files are merged into, not replaced. ``remove`` deletes the
files the ownership manifest attributes solely to the plugin.
"""

import argparse
from dataclasses import replace
from pathlib import Path

from scaffolder.cli_extensions.common import confirm, fail, install_dependencies, print_result, require_project
from scaffolder.config import Config, ConfigError
from scaffolder.core.app_types import AppTypeRegistry
from scaffolder.core.errors import PluginNotFoundError, ScaffoldError, ScaffoldIOError
from scaffolder.core.filesystem import FileSystem
from scaffolder.core.loader import LoadedPlugins
from scaffolder.core.manifest import (
    forget_plugin,
    is_unmodified,
    read_manifest,
    remove_empty_dirs,
    write_manifest,
)
from scaffolder.core.orchestrator import GeneratorOrchestrator, ScaffoldOptions
from scaffolder.core.project import ProjectConfig
from scaffolder.core.resolver import PluginResolver
from scaffolder.output import MessageType, VerbosityLevel, message
from scaffolder.plugins.generators import GeneratorContext

PREVIEW_LIMIT = 10


class PluginCommands:
    """Implements ``scaffolder add`` and ``scaffolder remove``."""

    def __init__(self, plugins: LoadedPlugins, fs: FileSystem | None = None):
        self.plugins = plugins
        self.app_types = AppTypeRegistry(plugins.catalog)
        self.resolver = PluginResolver(plugins.catalog)
        self.fs = fs or FileSystem()

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``add`` and ``remove`` commands."""
        add_parser = subparsers.add_parser("add", help="Add a plugin to an existing project")
        add_parser.add_argument("plugin_id", help="Plugin to add")
        add_parser.add_argument("--cwd", help="Project directory (default: current directory)")
        add_parser.add_argument("--dry-run", action="store_true", help="Show what would change")
        add_parser.add_argument(
            "--force", action="store_true",
            help="Proceed despite conflicts, or regenerate an installed plugin",
        )
        add_parser.add_argument("--yes", "-y", action="store_true", help="Add missing dependencies without asking")
        add_parser.add_argument("--skip-install", action="store_true", help="Do not install dependencies")

        rm_parser = subparsers.add_parser("remove", help="Remove a plugin from an existing project")
        rm_parser.add_argument("plugin_id", help="Plugin to remove")
        rm_parser.add_argument("--cwd", help="Project directory (default: current directory)")
        rm_parser.add_argument("--dry-run", action="store_true", help="Show what would be removed")
        rm_parser.add_argument(
            "--force", action="store_true",
            help="Remove even when other plugins depend on it, and delete modified files",
        )
        rm_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
        rm_parser.add_argument("--keep-files", action="store_true", help="Only update the configuration")

    def process_cli_command(self, args: argparse.Namespace) -> None:
        if args.command == "add":
            self.add(args)
        elif args.command == "remove":
            self.remove(args)

    def _load_project(self, config: Config) -> ProjectConfig:
        try:
            return config.resolve(self.app_types)
        except ConfigError as e:
            fail(f"Invalid configuration - {e}")

    # ------------------------------------------------------------------
    # add
    # ------------------------------------------------------------------
    def add(self, args: argparse.Namespace) -> None:
        """Add ``args.plugin_id`` and its missing dependencies."""
        plugin_id = args.plugin_id
        root, config = require_project(args.cwd)

        try:
            plugin = self.plugins.catalog.require(plugin_id)
        except PluginNotFoundError as e:
            message(str(e), MessageType.ERROR, VerbosityLevel.ALWAYS)
            fail("Run 'scaffolder list plugins' to see available plugins")

        project = self._load_project(config)
        installed = project.all_plugin_ids()
        message(f"Adding '{plugin.id}' to {root}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        if plugin_id in installed:
            message(f"Plugin '{plugin_id}' is already installed", MessageType.WARNING, VerbosityLevel.ALWAYS)
            if not args.force:
                message("Use --force to regenerate it", MessageType.INFO, VerbosityLevel.ALWAYS)
                return

        missing = [dep for dep in self.resolver.get_all_dependencies(plugin_id) if dep not in installed]
        if missing:
            message(
                f"Plugin '{plugin_id}' requires: {', '.join(missing)}",
                MessageType.WARNING,
                VerbosityLevel.ALWAYS,
            )
            if not args.yes and not confirm("Add the missing dependencies too?"):
                fail("Cannot proceed without dependencies")

        check = self.resolver.can_add(installed, plugin_id)
        if not check.can_add:
            message(f"Cannot add plugin '{plugin_id}': {check.reason}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            if not args.force:
                fail("Use --force to add it anyway")
            message("Proceeding anyway due to --force", MessageType.WARNING, VerbosityLevel.ALWAYS)

        new_ids = [*missing, plugin_id]
        updated = replace(project, plugin_ids=list(dict.fromkeys([*project.plugin_ids, *new_ids])))

        orchestrator = GeneratorOrchestrator(self.plugins.catalog, generators=self.plugins.generators)
        result = orchestrator.scaffold(
            updated,
            ScaffoldOptions(
                output_path=root,
                dry_run=args.dry_run,
                force=args.force,
                only_plugins=tuple(new_ids),
            ),
        )
        print_result(result)

        if not result.success:
            fail(f"Failed to add '{plugin_id}'")

        if args.dry_run:
            message("\nDry run - no changes made", MessageType.INFO, VerbosityLevel.ALWAYS)
            return

        try:
            for pid in new_ids:
                config.add_plugin(pid)
        except ConfigError as e:
            fail(f"Failed to update configuration - {e}")

        if not args.skip_install:
            install_dependencies(root, project.package_manager)

        message(f"Plugin '{plugin_id}' added", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    # ------------------------------------------------------------------
    # remove
    # ------------------------------------------------------------------
    def _unused_dependencies(self, project: ProjectConfig, root: Path, plugin_id: str) -> list[str]:
        generator = self.plugins.generators.get(plugin_id)
        if generator is None:
            return []
        ctx = GeneratorContext(project=project, project_path=root, enabled_plugins=tuple(project.all_plugin_ids()))
        try:
            return [dep.name for dep in generator.get_dependencies(ctx)]
        except Exception as e:
            message(f"Could not list dependencies of '{plugin_id}': {e}", MessageType.DEBUG, VerbosityLevel.DEBUG)
            return []

    def remove(self, args: argparse.Namespace) -> None:
        """Remove ``args.plugin_id`` and the files only it produced."""
        plugin_id = args.plugin_id
        root, config = require_project(args.cwd)
        project = self._load_project(config)
        installed = project.all_plugin_ids()

        if plugin_id not in project.plugin_ids:
            if plugin_id in project.auto_enabled_plugins:
                fail(f"Plugin '{plugin_id}' is required by app type '{project.app_type}' and cannot be removed")
            fail(f"Plugin '{plugin_id}' is not installed")

        check = self.resolver.can_remove(installed, plugin_id)
        if not check.can_remove:
            message(
                f"Cannot remove '{plugin_id}' - required by: {', '.join(check.dependents)}",
                MessageType.ERROR,
                VerbosityLevel.ALWAYS,
            )
            if not args.force:
                fail("Use --force to remove it anyway (dependent plugins may break)")
            message("Proceeding anyway due to --force", MessageType.WARNING, VerbosityLevel.ALWAYS)

        generated = read_manifest(root)
        ownership = read_manifest(root)
        orphaned = forget_plugin(ownership, plugin_id)
        files = [] if args.keep_files else orphaned

        message("\nChanges to be made:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if files:
            message("Files to remove:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for name in files[:PREVIEW_LIMIT]:
                message(f"  {name}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if len(files) > PREVIEW_LIMIT:
                message(f"  ... and {len(files) - PREVIEW_LIMIT} more", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        else:
            message("Files: none to remove", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Remove '{plugin_id}' from scaffold.yaml", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        unused = self._unused_dependencies(project, root, plugin_id)
        if unused:
            message(
                f"Packages that may now be unused: {', '.join(unused)} "
                f"(run '{project.package_manager} remove <name>' to drop them)",
                MessageType.INFO,
                VerbosityLevel.ALWAYS,
            )

        if args.dry_run:
            message("\nDry run - no changes made", MessageType.INFO, VerbosityLevel.ALWAYS)
            return

        if not args.yes and not confirm("Proceed with removal?", default=False):
            message("Aborted", MessageType.INFO, VerbosityLevel.ALWAYS)
            return

        removed: list[str] = []
        for name in files:
            path = root / name
            if not self.fs.exists(path):
                continue
            if not args.force and not is_unmodified(generated, root, name):
                message(f"Keeping {name}: modified since it was generated", MessageType.WARNING, VerbosityLevel.ALWAYS)
                continue
            try:
                self.fs.remove_file(path)
                removed.append(name)
                message(f"  Removed {name}", MessageType.NORMAL, VerbosityLevel.VERBOSE)
            except ScaffoldIOError as e:
                message(f"Failed to remove {name}: {e}", MessageType.WARNING, VerbosityLevel.ALWAYS)

        for directory in remove_empty_dirs(root, removed):
            message(f"  Removed empty directory {directory}", MessageType.NORMAL, VerbosityLevel.VERBOSE)

        try:
            write_manifest(root, ownership)
            config.remove_plugin(plugin_id)
        except (ConfigError, ScaffoldError, OSError) as e:
            fail(f"Failed to update project files - {e}")

        message(
            f"Plugin '{plugin_id}' removed ({len(removed)} file(s) deleted)",
            MessageType.SUCCESS,
            VerbosityLevel.ALWAYS,
        )
