"""CLI command for validating a project's configuration."""

import argparse

from scaffolder.cli_extensions.common import fail, require_project
from scaffolder.config import Config, ConfigError
from scaffolder.core.app_types import AppTypeRegistry
from scaffolder.core.defaults import ScaffoldDefaults
from scaffolder.core.loader import LoadedPlugins
from scaffolder.core.resolver import PluginResolver
from scaffolder.output import MessageType, VerbosityLevel, message


class ProjectCommands:
    """Implements ``scaffolder validate``."""

    def __init__(self, plugins: LoadedPlugins):
        self.plugins = plugins
        self.app_types = AppTypeRegistry(plugins.catalog)

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        parser = subparsers.add_parser("validate", help="Validate the project configuration")
        parser.add_argument("--cwd", help="Project directory (default: current directory)")

    def check(self, config: Config) -> tuple[list[str], list[str]]:
        """Collect problems with the project at *config*.

        Returns:
            ``(errors, warnings)``
        """
        errors: list[str] = []
        warnings: list[str] = []

        try:
            data = config.read()
            warnings.extend(Config.validate(data, self.plugins.catalog, self.app_types))
            project = config.resolve(self.app_types, config=data)
        except ConfigError as e:
            return e.errors, warnings

        defaults = ScaffoldDefaults().with_overrides(project.defaults)
        resolver = PluginResolver(self.plugins.catalog, defaults.warning_pairings)
        resolution = resolver.auto_resolve(project.all_plugin_ids())
        errors.extend(resolution.problems())

        if resolution.auto_enabled:
            warnings.append(
                f"Dependencies not listed in scaffold.yaml will be auto-enabled: {', '.join(resolution.auto_enabled)}"
            )
        warnings.extend(resolver.generate_warnings(resolution.resolved))

        for pid in resolution.resolved:
            if pid not in self.plugins.generators:
                warnings.append(f"Plugin '{pid}' has no generator and produces no files")

        return errors, warnings

    def process_cli_command(self, args: argparse.Namespace) -> None:
        root, config = require_project(getattr(args, "cwd", None))
        message(f"Validating {config.config_file}", MessageType.INFO, VerbosityLevel.VERBOSE)

        errors, warnings = self.check(config)
        for warning in warnings:
            message(f"Warning: {warning}", MessageType.WARNING, VerbosityLevel.ALWAYS)

        if errors:
            for error in errors:
                message(f"  - {error}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            fail(f"Configuration in {root} has {len(errors)} problem(s)")

        message("Configuration is valid", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
