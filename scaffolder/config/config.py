"""Project configuration for scaffolder.

A scaffolded project is described by ``scaffold.yaml`` at its root.
Older projects may carry ``scaffold.json`` instead; it is read and
written back in its own format.

Plugins may be listed in either of two equivalent forms::

    plugins: [typescript, drizzle]

    plugins:
      typescript: true
      drizzle:
        enabled: true
        dialect: postgresql
"""

import json
from pathlib import Path
from typing import Any, TypedDict

import yaml

from scaffolder.core.app_types import AppTypeRegistry
from scaffolder.core.catalog import PluginCatalog
from scaffolder.core.defaults import PROJECT_TEMPLATES, get_template
from scaffolder.core.project import DEFAULT_PORTS, ProjectConfig
from scaffolder.output import MessageType, VerbosityLevel, message

CONFIG_FILE = "scaffold.yaml"
LEGACY_CONFIG_FILE = "scaffold.json"

PROJECT_MARKERS = (CONFIG_FILE, LEGACY_CONFIG_FILE, "turbo.json", "package.json")

PACKAGE_MANAGERS = ("bun", "npm", "pnpm", "yarn")
DEFAULT_PACKAGE_MANAGER = "bun"

# Checked in order; the first lockfile found wins
LOCKFILES = (
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
)

DEFAULTS_KEYS = ("priorities", "versions", "default_priority", "warning_pairings")


class PluginOptions(TypedDict, total=False):
    """Per-plugin entry in the mapping form of ``plugins``."""

    enabled: bool


class GitSettings(TypedDict, total=False):
    init: bool
    gitignore: bool
    branch: str


class ConfigData(TypedDict, total=False):
    """Type definition for ``scaffold.yaml``."""

    name: str
    description: str
    author: str
    license: str
    package_manager: str
    template: str
    app_type: str
    plugins: list[str] | dict[str, bool | PluginOptions]
    ports: dict[str, int]
    git: GitSettings
    defaults: dict[str, Any]


class ConfigError(Exception):
    """Exception raised for configuration validation errors.

    Can contain multiple error messages.
    """

    def __init__(self, errors: str | list[str]):
        if isinstance(errors, str):
            self.errors = [errors]
        else:
            self.errors = errors
        super().__init__(self._format_errors())

    def _format_errors(self) -> str:
        if len(self.errors) == 1:
            return self.errors[0]
        error_list = "\n".join(f"  - {err}" for err in self.errors)
        return f"Configuration has {len(self.errors)} errors:\n{error_list}"


def _plugin_enabled(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, dict):
        return value.get("enabled", True) is not False
    return True


def normalize_plugins(value: Any) -> list[str]:
    """Return the enabled plugin ids from either plugin-list form.

    Duplicates are dropped and first-seen order is kept, so
    ``[a, b]`` and ``{a: true, b: {enabled: true}}`` give the same result.

    Raises:
        ConfigError: If *value* is neither a list nor a mapping of ids
    """
    if value is None:
        return []

    if isinstance(value, list):
        ids = value
    elif isinstance(value, dict):
        ids = [pid for pid, entry in value.items() if _plugin_enabled(entry)]
    else:
        raise ConfigError(f"'plugins' must be a list or a mapping, got {type(value).__name__}")

    for pid in ids:
        if not isinstance(pid, str) or not pid:
            raise ConfigError(f"Plugin ids must be non-empty strings, got {pid!r}")
    return list(dict.fromkeys(ids))


def plugin_options(value: Any) -> dict[str, dict[str, Any]]:
    """Extract per-plugin options from the mapping form of ``plugins``."""
    if not isinstance(value, dict):
        return {}
    return {
        pid: {k: v for k, v in entry.items() if k != "enabled"}
        for pid, entry in value.items()
        if isinstance(entry, dict) and _plugin_enabled(entry)
    }


def detect_package_manager(project_dir: Path) -> str:
    """Guess the package manager from lockfiles in *project_dir*."""
    for lockfile, manager in LOCKFILES:
        if (project_dir / lockfile).exists():
            message(f"Detected {manager} from {lockfile}", MessageType.DEBUG, VerbosityLevel.DEBUG)
            return manager
    return DEFAULT_PACKAGE_MANAGER


def detect_project_root(start: Path | None = None) -> Path | None:
    """Walk up from *start* to the nearest directory that looks like a project.

    Args:
        start: Directory to begin at. Defaults to the current directory

    Returns:
        The project root, or None if no marker file is found
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for marker in PROJECT_MARKERS:
            if (directory / marker).is_file():
                message(f"Project root {directory} (found {marker})", MessageType.DEBUG, VerbosityLevel.DEBUG)
                return directory
    return None


class Config:
    """Reads and updates a project's ``scaffold.yaml``."""

    def __init__(self, project_dir: Path):
        self.project_dir = project_dir

    @property
    def config_file(self) -> Path:
        """The file in use: ``scaffold.yaml``, else an existing ``scaffold.json``."""
        yaml_file = self.project_dir / CONFIG_FILE
        legacy_file = self.project_dir / LEGACY_CONFIG_FILE
        if not yaml_file.exists() and legacy_file.exists():
            return legacy_file
        return yaml_file

    def exists(self) -> bool:
        return self.config_file.exists()

    @staticmethod
    def validate(
        config: dict[str, Any],
        catalog: PluginCatalog | None = None,
        app_types: AppTypeRegistry | None = None,
    ) -> list[str]:
        """Validate a configuration mapping.

        Collects all errors before raising. Plugin ids and the app type
        are only checked against a catalog and registry when given.

        Args:
            config: The configuration dictionary to validate
            catalog: Known plugins
            app_types: Known app types

        Returns:
            List of warnings (non-fatal issues)

        Raises:
            ConfigError: If the configuration is invalid, with all errors
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not isinstance(config, dict):
            raise ConfigError("Configuration must be a mapping")

        name = config.get("name")
        if name is None:
            errors.append("Configuration must contain 'name'")
        elif not isinstance(name, str) or not name.strip():
            errors.append("'name' must be a non-empty string")

        for key in ("description", "author", "license"):
            if key in config and not isinstance(config[key], str):
                errors.append(f"'{key}' must be a string, got {type(config[key]).__name__}")

        manager = config.get("package_manager")
        if manager is not None and manager not in PACKAGE_MANAGERS:
            errors.append(f"'package_manager' must be one of {', '.join(PACKAGE_MANAGERS)}, got '{manager}'")

        template = config.get("template")
        if template is not None and get_template(template) is None:
            known = ", ".join(t.id for t in PROJECT_TEMPLATES)
            errors.append(f"Unknown template '{template}' (available: {known})")

        app_type = config.get("app_type")
        if app_type is not None:
            if not isinstance(app_type, str):
                errors.append("'app_type' must be a string")
            elif app_types is not None and not app_types.is_valid(app_type):
                errors.append(f"Unknown app type '{app_type}'")

        plugin_ids: list[str] = []
        try:
            plugin_ids = normalize_plugins(config.get("plugins"))
        except ConfigError as e:
            errors.extend(e.errors)

        if catalog is not None:
            for pid in plugin_ids:
                if pid in catalog:
                    plugin = catalog.get(pid)
                    if isinstance(app_type, str) and not plugin.supports_app(app_type):
                        warnings.append(f"Plugin '{pid}' does not list '{app_type}' as a supported app type")
                    continue
                suggestions = catalog.suggest(pid)
                hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
                errors.append(f"Unknown plugin '{pid}'.{hint}")

        ports = config.get("ports")
        if ports is not None:
            if not isinstance(ports, dict):
                errors.append("'ports' must be a mapping")
            else:
                for port_name, port in ports.items():
                    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
                        errors.append(f"Port '{port_name}' must be an integer between 1 and 65535")

        git_settings = config.get("git")
        if git_settings is not None:
            if not isinstance(git_settings, dict):
                errors.append("'git' must be a mapping")
            else:
                for key in ("init", "gitignore"):
                    if key in git_settings and not isinstance(git_settings[key], bool):
                        errors.append(f"'git.{key}' must be true or false")
                if "branch" in git_settings and not isinstance(git_settings["branch"], str):
                    errors.append("'git.branch' must be a string")

        defaults = config.get("defaults")
        if defaults is not None:
            if not isinstance(defaults, dict):
                errors.append("'defaults' must be a mapping")
            else:
                for key in defaults:
                    if key not in DEFAULTS_KEYS:
                        errors.append(f"Unknown key 'defaults.{key}' (expected one of {', '.join(DEFAULTS_KEYS)})")

        if errors:
            raise ConfigError(errors)

        return warnings

    def read(self) -> ConfigData:
        """Load and validate the project file.

        Returns:
            The configuration mapping

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        path = self.config_file
        try:
            with open(path) as f:
                if path.suffix == ".json":
                    config = json.load(f)
                else:
                    config = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {path}") from None
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse {path.name}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read {path}: {e}") from e

        if config is None:
            raise ConfigError(f"Configuration file {path} is empty")

        for warning in self.validate(config):
            message(f"Warning: {warning}", MessageType.WARNING, VerbosityLevel.ALWAYS)

        message(f"Configuration loaded from {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return config

    def write(self, config: ConfigData) -> None:
        """Validate *config* and write it in the current file's format.

        Raises:
            ConfigError: If the configuration is invalid or cannot be written
        """
        self.validate(config)
        path = self.config_file
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                if path.suffix == ".json":
                    json.dump(config, f, indent=2)
                    f.write("\n")
                else:
                    yaml.dump(dict(config), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Failed to write {path}: {e}") from e
        message(f"Configuration saved to {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    def resolve(
        self,
        app_types: AppTypeRegistry | None = None,
        config: ConfigData | None = None,
    ) -> ProjectConfig:
        """Turn the project file into a ``ProjectConfig``.

        A template supplies the app type and plugins when the file does
        not list them. Plugins the app type requires but the file omits
        become ``auto_enabled_plugins``.

        Args:
            app_types: Registry used to look up required plugins
            config: Already-loaded configuration; read from disk if omitted

        Returns:
            The resolved project configuration
        """
        if config is None:
            config = self.read()

        template = get_template(config["template"]) if config.get("template") else None
        app_type = config.get("app_type") or (template.app_type if template else None)

        plugin_ids = normalize_plugins(config.get("plugins"))
        if not plugin_ids and template is not None:
            plugin_ids = list(template.plugins)

        auto_enabled: list[str] = []
        if app_type and app_types is not None:
            auto_enabled = [pid for pid in app_types.required_plugins(app_type) if pid not in plugin_ids]

        git_settings = config.get("git") or {}
        return ProjectConfig(
            name=config["name"],
            description=config.get("description", ""),
            author=config.get("author", ""),
            license=config.get("license") or "MIT",
            package_manager=config.get("package_manager") or detect_package_manager(self.project_dir),
            template=config.get("template"),
            app_type=app_type,
            plugin_ids=plugin_ids,
            auto_enabled_plugins=auto_enabled,
            plugin_configs=plugin_options(config.get("plugins")),
            ports={**DEFAULT_PORTS, **(config.get("ports") or {})},
            git_init=git_settings.get("init", True),
            git_branch=git_settings.get("branch", "main"),
            gitignore=git_settings.get("gitignore", True),
            defaults=config.get("defaults") or {},
        )

    def add_plugin(self, plugin_id: str) -> bool:
        """Enable *plugin_id*, keeping the file's plugin-list form.

        Returns:
            False if the plugin was already enabled
        """
        config = self.read()
        plugins = config.get("plugins")
        if plugin_id in normalize_plugins(plugins):
            return False

        if isinstance(plugins, dict):
            entry = plugins.get(plugin_id)
            if isinstance(entry, dict):
                entry["enabled"] = True
            else:
                plugins[plugin_id] = True
        else:
            config["plugins"] = [*(plugins or []), plugin_id]

        self.write(config)
        return True

    def remove_plugin(self, plugin_id: str) -> bool:
        """Drop *plugin_id* from the plugin list.

        Returns:
            False if the plugin was not listed
        """
        config = self.read()
        plugins = config.get("plugins")

        if isinstance(plugins, dict):
            if plugin_id not in plugins:
                return False
            del plugins[plugin_id]
        elif isinstance(plugins, list) and plugin_id in plugins:
            config["plugins"] = [pid for pid in plugins if pid != plugin_id]
        else:
            return False

        self.write(config)
        return True
