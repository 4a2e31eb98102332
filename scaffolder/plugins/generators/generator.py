"""Base class and data types for plugin generators.

A generator turns one enabled plugin into file specs, package
dependencies, scripts, setup commands and guards. Generators must be
stateless: a single instance is shared by every scaffold run in the
process, so all inputs come from the ``GeneratorContext`` argument.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from scaffolder.core.catalog import Plugin
from scaffolder.core.commands import CommandSpec
from scaffolder.core.conditions import Condition
from scaffolder.core.guards import GuardSpec
from scaffolder.core.project import ProjectConfig

if TYPE_CHECKING:
    from scaffolder.core.contributions import FileContribution

DEPENDENCY_TYPES = ("prod", "dev", "peer")


@dataclass
class FileSpec:
    """A file a generator wants to produce.

    ``merge_strategy`` and ``priority`` default to the path's default
    strategy and the plugin's priority. When ``template`` is true the
    content is rendered with the project's template data first.
    """

    path: str
    content: str
    template: bool = False
    merge_strategy: str | None = None
    priority: int | None = None
    marker: str | None = None
    section: str | None = None
    ast_transform: str | None = None
    condition: str | Condition | None = None
    skip_if_exists: bool = False


@dataclass
class DependencySpec:
    name: str
    version: str
    type: str = "prod"

    def __post_init__(self) -> None:
        if self.type not in DEPENDENCY_TYPES:
            raise ValueError(f"Dependency '{self.name}' has unknown type '{self.type}'")


@dataclass
class ScriptSpec:
    name: str
    command: str
    description: str = ""


@dataclass
class GeneratorContext:
    """Per-run inputs shared with every generator.

    ``existing_contributions`` is updated by the orchestrator after each
    plugin, so later generators can see what earlier ones produced.
    """

    project: ProjectConfig
    project_path: Path
    enabled_plugins: tuple[str, ...]
    dry_run: bool = False
    versions: Mapping[str, str] = field(default_factory=dict)
    existing_contributions: dict[str, list[FileContribution]] = field(default_factory=dict)

    def has(self, plugin_id: str) -> bool:
        return plugin_id in self.enabled_plugins

    def version(self, plugin_id: str, fallback: str) -> str:
        return self.versions.get(plugin_id, fallback)

    def plugin_config(self, plugin_id: str) -> dict[str, Any]:
        return self.project.plugin_configs.get(plugin_id, {})

    def template_data(self) -> dict[str, Any]:
        """Data passed to the template renderer."""
        has = {pid: True for pid in self.enabled_plugins}
        has["database"] = any(pid in has for pid in ("drizzle", "prisma", "postgresql"))
        has["auth"] = "better-auth" in has
        return {
            "project": self.project.as_template_data(),
            "plugins": list(self.enabled_plugins),
            "has": has,
        }


class AbstractGenerator(ABC):
    """Produces the output for a single plugin.

    Subclasses set ``plugin_id`` and implement ``get_files``; the other
    capabilities default to producing nothing. Generators shipped outside
    this package also set ``plugin`` so the catalog learns about them.
    """

    plugin_id: str = ""
    plugin: Plugin | None = None

    @abstractmethod
    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        """Return the files this plugin contributes."""

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return []

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return []

    def get_commands(self, ctx: GeneratorContext) -> list[CommandSpec]:
        return []

    def get_guards(self, ctx: GeneratorContext) -> list[GuardSpec]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.plugin_id!r})"
