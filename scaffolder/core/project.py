"""Resolved project configuration handed to the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_PORTS = {"api": 3001, "web": 3000, "db": 5432, "redis": 6379}


@dataclass
class ProjectConfig:
    """Everything the orchestrator needs to know about the project.

    ``plugin_ids`` is the canonical, de-duplicated list of explicitly
    enabled plugins; ``auto_enabled_plugins`` are ids required by the app
    type that the user did not list.
    """

    name: str
    description: str = ""
    author: str = ""
    license: str = "MIT"
    package_manager: str = "bun"
    template: str | None = None
    app_type: str | None = None
    plugin_ids: list[str] = field(default_factory=list)
    auto_enabled_plugins: list[str] = field(default_factory=list)
    plugin_configs: dict[str, dict[str, Any]] = field(default_factory=dict)
    ports: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_PORTS))
    git_init: bool = True
    git_branch: str = "main"
    gitignore: bool = True
    defaults: dict[str, Any] = field(default_factory=dict)

    def all_plugin_ids(self) -> list[str]:
        return list(dict.fromkeys([*self.auto_enabled_plugins, *self.plugin_ids]))

    def as_template_data(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "author": self.author,
            "license": self.license or "MIT",
            "package_manager": self.package_manager,
            "app_type": self.app_type,
            "ports": dict(self.ports),
        }
