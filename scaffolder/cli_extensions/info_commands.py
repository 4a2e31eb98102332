"""CLI commands that describe plugins, templates and the environment."""

import argparse
import json
import platform
import subprocess
import sys
from pathlib import Path
from typing import Any

from scaffolder import __version__
from scaffolder.config import Config, ConfigError, detect_project_root
from scaffolder.core.app_types import AppTypeRegistry
from scaffolder.core.catalog import CATEGORIES
from scaffolder.core.defaults import PROJECT_TEMPLATES
from scaffolder.core.guards import CHECK_TIMEOUT, VERSION_COMMANDS, parse_tool_version
from scaffolder.core.loader import LoadedPlugins
from scaffolder.core.manifest import read_manifest
from scaffolder.output import MessageType, VerbosityLevel, message

ENV_TOOLS = ("node", "bun", "npm", "pnpm", "yarn", "git")


def tool_version(tool: str) -> str | None:
    """Return the installed version of *tool*, or None if it cannot be run."""
    command = VERSION_COMMANDS.get(tool, [tool, "--version"])
    try:
        proc = subprocess.run(command, capture_output=True, text=True, timeout=CHECK_TIMEOUT, check=False)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if proc.returncode != 0:
        return None
    try:
        return str(parse_tool_version(proc.stdout))
    except ValueError:
        return proc.stdout.strip() or None


def _emit_json(data: Any) -> None:
    message(json.dumps(data, indent=2), MessageType.NORMAL, VerbosityLevel.ALWAYS)


def _key_value(key: str, value: Any) -> None:
    message(f"  {key + ':':<20} {value}", MessageType.NORMAL, VerbosityLevel.ALWAYS)


class InfoCommands:
    """Implements ``scaffolder list`` and ``scaffolder info``."""

    def __init__(self, plugins: LoadedPlugins):
        self.plugins = plugins
        self.app_types = AppTypeRegistry(plugins.catalog)

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``list`` and ``info`` commands."""
        list_parser = subparsers.add_parser("list", help="List plugins, templates, categories or app types")
        list_parser.add_argument(
            "what",
            nargs="?",
            default="plugins",
            choices=["plugins", "templates", "categories", "app-types"],
            help="What to list (default: plugins)",
        )
        list_parser.add_argument("--category", choices=CATEGORIES, help="Only plugins in this category")
        list_parser.add_argument("--app-type", dest="app_type", help="Only plugins supporting this app type")
        list_parser.add_argument("--search", help="Only plugins matching this text")
        list_parser.add_argument("--json", action="store_true", help="Output as JSON")

        info_parser = subparsers.add_parser("info", help="Show version, environment or project information")
        info_parser.add_argument(
            "topic",
            nargs="?",
            default="version",
            choices=["version", "env", "project", "stats"],
            help="What to show (default: version)",
        )
        info_parser.add_argument("--cwd", help="Project directory for 'info project'")
        info_parser.add_argument("--json", action="store_true", help="Output as JSON")

    def process_cli_command(self, args: argparse.Namespace) -> None:
        if args.command == "list":
            handler = {
                "plugins": self.list_plugins,
                "templates": self.list_templates,
                "categories": self.list_categories,
                "app-types": self.list_app_types,
            }[args.what]
        else:
            handler = {
                "version": self.show_version,
                "env": self.show_env,
                "project": self.show_project,
                "stats": self.show_stats,
            }[args.topic]
        handler(args)

    # ------------------------------------------------------------------
    # list
    # ------------------------------------------------------------------
    def list_plugins(self, args: argparse.Namespace) -> None:
        catalog = self.plugins.catalog
        plugins = catalog.search(args.search) if getattr(args, "search", None) else catalog.all()
        if getattr(args, "category", None):
            plugins = [p for p in plugins if p.category == args.category]
        if getattr(args, "app_type", None):
            plugins = [p for p in plugins if p.supports_app(args.app_type)]

        if getattr(args, "json", False):
            _emit_json([p.to_dict() for p in plugins])
            return

        if not plugins:
            message("No plugins match.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        for category in CATEGORIES:
            members = [p for p in plugins if p.category == category]
            if not members:
                continue
            message(f"\n=== {category.title()} ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for plugin in sorted(members, key=lambda p: p.id):
                marker = "*" if plugin.id in self.plugins.external else " "
                message(f" {marker}{plugin.id:<22} {plugin.description}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                if plugin.dependencies:
                    message(
                        f"    requires: {', '.join(plugin.dependencies)}",
                        MessageType.INFO,
                        VerbosityLevel.VERBOSE,
                    )
                if plugin.conflicts:
                    message(
                        f"    conflicts: {', '.join(plugin.conflicts)}",
                        MessageType.INFO,
                        VerbosityLevel.VERBOSE,
                    )

        if self.plugins.external:
            message("\n* installed from an external package", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    def list_templates(self, args: argparse.Namespace) -> None:
        if getattr(args, "json", False):
            _emit_json([
                {
                    "id": t.id,
                    "name": t.name,
                    "description": t.description,
                    "app_type": t.app_type,
                    "plugins": list(t.plugins),
                }
                for t in PROJECT_TEMPLATES
            ])
            return

        for template in PROJECT_TEMPLATES:
            message(f"\n=== {template.name} ({template.id}) ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message(f"  {template.description}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if template.app_type:
                _key_value("App type", template.app_type)
            _key_value("Plugins", ", ".join(template.plugins))

    def list_categories(self, args: argparse.Namespace) -> None:
        counts = self.plugins.catalog.categories()
        if getattr(args, "json", False):
            _emit_json(counts)
            return
        for category in CATEGORIES:
            message(f"  {category:<16} {counts.get(category, 0)}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    def list_app_types(self, args: argparse.Namespace) -> None:
        app_types = self.app_types.all()
        if getattr(args, "json", False):
            _emit_json([
                {
                    "id": a.id,
                    "name": a.name,
                    "description": a.description,
                    "required_plugins": list(a.required_plugins),
                }
                for a in app_types
            ])
            return
        for app_type in app_types:
            message(f"  {app_type.id:<12} {app_type.description}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    # ------------------------------------------------------------------
    # info
    # ------------------------------------------------------------------
    def show_version(self, args: argparse.Namespace) -> None:
        if getattr(args, "json", False):
            _emit_json({"version": __version__})
            return
        message(f"scaffolder {__version__}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    def show_env(self, args: argparse.Namespace) -> None:
        info = {
            "os": {
                "platform": platform.system(),
                "release": platform.release(),
                "architecture": platform.machine(),
            },
            "python": {"version": platform.python_version(), "executable": sys.executable},
            "tools": {tool: tool_version(tool) for tool in ENV_TOOLS},
            "user": {"home": str(Path.home()), "cwd": str(Path.cwd())},
            "scaffolder": {"version": __version__},
        }
        if getattr(args, "json", False):
            _emit_json(info)
            return

        message("\n=== System ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        _key_value("Platform", info["os"]["platform"])
        _key_value("Release", info["os"]["release"])
        _key_value("Architecture", info["os"]["architecture"])
        message("\n=== Runtime ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        _key_value("Python", info["python"]["version"])
        for tool, version in info["tools"].items():
            _key_value(tool, version or "not found")
        message("\n=== User ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        _key_value("Home", info["user"]["home"])
        _key_value("Current directory", info["user"]["cwd"])
        message("\n=== Scaffolder ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        _key_value("Version", __version__)

    def show_project(self, args: argparse.Namespace) -> None:
        start = Path(args.cwd) if getattr(args, "cwd", None) else Path.cwd()
        root = detect_project_root(start)
        if root is None:
            message(f"No project found at or above {start}", MessageType.WARNING, VerbosityLevel.ALWAYS)
            return

        info: dict[str, Any] = {"root": str(root), "managed": False}
        config = Config(root)
        if config.exists():
            try:
                project = config.resolve(self.app_types)
            except ConfigError as e:
                message(f"Invalid configuration - {e}", MessageType.WARNING, VerbosityLevel.ALWAYS)
            else:
                ownership = read_manifest(root)
                info.update({
                    "managed": True,
                    "config_file": config.config_file.name,
                    "name": project.name,
                    "app_type": project.app_type,
                    "package_manager": project.package_manager,
                    "plugins": project.plugin_ids,
                    "auto_enabled": project.auto_enabled_plugins,
                    "generated_files": len(ownership.get("files", [])),
                    "generated_at": ownership.get("generated_at"),
                })
        info["monorepo"] = (root / "turbo.json").exists() or _has_workspaces(root)

        if getattr(args, "json", False):
            _emit_json(info)
            return

        message("\n=== Project ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for key, value in info.items():
            if isinstance(value, list):
                value = ", ".join(value) or "none"
            _key_value(key.replace("_", " ").capitalize(), value)

    def show_stats(self, args: argparse.Namespace) -> None:
        catalog = self.plugins.catalog
        stats = {
            "plugins": len(catalog),
            "generators": len(self.plugins.generators),
            "external_plugins": len(self.plugins.external),
            "categories": catalog.categories(),
            "app_types": len(self.app_types.all()),
            "templates": len(PROJECT_TEMPLATES),
        }
        if getattr(args, "json", False):
            _emit_json(stats)
            return

        message("\n=== Catalog ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        _key_value("Plugins", stats["plugins"])
        _key_value("Generators", stats["generators"])
        _key_value("External plugins", stats["external_plugins"])
        _key_value("App types", stats["app_types"])
        _key_value("Templates", stats["templates"])
        for category, count in stats["categories"].items():
            _key_value(f"  {category}", count)


def _has_workspaces(root: Path) -> bool:
    package_json = root / "package.json"
    if not package_json.exists():
        return False
    try:
        return "workspaces" in json.loads(package_json.read_text())
    except (OSError, ValueError):
        return False
