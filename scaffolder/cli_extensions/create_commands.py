"""CLI command for creating a new project."""

import argparse
from pathlib import Path
from typing import Any

from scaffolder.cli_extensions.common import confirm, fail, install_dependencies, print_result
from scaffolder.config import Config, ConfigError
from scaffolder.config.config import PACKAGE_MANAGERS
from scaffolder.core.app_types import AppTypeRegistry
from scaffolder.core.defaults import PROJECT_TEMPLATES, get_template
from scaffolder.core.loader import LoadedPlugins
from scaffolder.core.orchestrator import GeneratorOrchestrator, ScaffoldOptions
from scaffolder.core.templates import kebab_case
from scaffolder.output import MessageType, VerbosityLevel, message
from scaffolder.utils.git import init_repository


class CreateCommands:
    """Implements ``scaffolder create``."""

    def __init__(self, plugins: LoadedPlugins):
        self.plugins = plugins
        self.app_types = AppTypeRegistry(plugins.catalog)

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``create`` command."""
        templates = ", ".join(t.id for t in PROJECT_TEMPLATES)
        parser = subparsers.add_parser("create", help="Create a new project")
        parser.add_argument("name", help="Project name")
        parser.add_argument("--template", "-t", help=f"Project template ({templates})")
        parser.add_argument(
            "--plugins", "-p",
            help="Comma-separated plugin ids (replaces the template's plugins)",
        )
        parser.add_argument("--app-type", dest="app_type", help="Target application type")
        parser.add_argument("--output", "-o", help="Target directory (default: ./<name>)")
        parser.add_argument("--description", default="", help="Project description")
        parser.add_argument("--author", default="", help="Project author")
        parser.add_argument(
            "--package-manager",
            dest="package_manager",
            choices=PACKAGE_MANAGERS,
            help="Package manager (default: bun)",
        )
        parser.add_argument("--no-git", dest="git_init", action="store_false", help="Skip git init")
        parser.add_argument("--dry-run", action="store_true", help="Show what would be generated")
        parser.add_argument(
            "--force", action="store_true",
            help="Generate into a non-empty directory and overwrite existing files",
        )
        parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
        parser.add_argument("--skip-install", action="store_true", help="Do not install dependencies")

    def build_config_data(self, args: argparse.Namespace) -> dict[str, Any]:
        """Turn command-line options into ``scaffold.yaml`` content."""
        data: dict[str, Any] = {"name": args.name}
        if args.description:
            data["description"] = args.description
        if args.author:
            data["author"] = args.author
        if args.package_manager:
            data["package_manager"] = args.package_manager

        template = get_template(args.template) if args.template else None
        if args.template:
            data["template"] = args.template

        app_type = args.app_type or (template.app_type if template else None)
        if app_type:
            data["app_type"] = app_type

        if args.plugins:
            data["plugins"] = [pid.strip() for pid in args.plugins.split(",") if pid.strip()]
        elif template is not None:
            data["plugins"] = list(template.plugins)
        elif app_type:
            data["plugins"] = self.plugins.catalog.defaults_for_app_type(app_type)
        else:
            data["plugins"] = []

        data["git"] = {"init": args.git_init, "gitignore": True}
        return data

    def process_cli_command(self, args: argparse.Namespace) -> None:
        """Create the project described by *args*."""
        output = Path(args.output) if args.output else Path.cwd() / kebab_case(args.name)
        output = output.resolve()

        if output.exists() and any(output.iterdir()) and not args.force:
            fail(f"Directory {output} is not empty. Use --force to generate into it anyway.")

        data = self.build_config_data(args)
        config = Config(output)
        try:
            for warning in Config.validate(data, self.plugins.catalog, self.app_types):
                message(f"Warning: {warning}", MessageType.WARNING, VerbosityLevel.ALWAYS)
            project = config.resolve(self.app_types, config=data)
        except ConfigError as e:
            fail(f"Invalid project options - {e}")

        message(f"Project: {project.name}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"Location: {output}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if project.app_type:
            message(f"App type: {project.app_type}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(
            f"Plugins: {', '.join(project.all_plugin_ids()) or 'none'}",
            MessageType.NORMAL,
            VerbosityLevel.ALWAYS,
        )

        if not (args.yes or args.dry_run) and not confirm("Create this project?"):
            message("Aborted", MessageType.INFO, VerbosityLevel.ALWAYS)
            return

        orchestrator = GeneratorOrchestrator(self.plugins.catalog, generators=self.plugins.generators)
        result = orchestrator.scaffold(
            project,
            ScaffoldOptions(output_path=output, dry_run=args.dry_run, overwrite=args.force, force=args.force),
        )
        print_result(result)

        if not result.success:
            fail(f"Failed to create '{project.name}'")

        if args.dry_run:
            message("\nDry run - no files were written", MessageType.INFO, VerbosityLevel.ALWAYS)
            return

        # Dependencies pulled in during resolution are installed too; app-type
        # requirements stay implicit
        pulled_in = [pid for pid in result.auto_enabled if pid not in project.auto_enabled_plugins]
        data["plugins"] = list(dict.fromkeys([*data["plugins"], *pulled_in]))

        try:
            config.write(data)
        except ConfigError as e:
            fail(str(e))

        if project.git_init:
            init_repository(output, project.git_branch)

        if not args.skip_install:
            install_dependencies(output, project.package_manager)

        message(f"\nProject '{project.name}' created", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        message("Next steps:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  cd {output}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if args.skip_install:
            message(f"  {project.package_manager} install", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  {project.package_manager} run dev", MessageType.NORMAL, VerbosityLevel.ALWAYS)
