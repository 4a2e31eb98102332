"""App archetype registry.

A thin lookup over which app types exist and which plugins each one
requires. Plugin support is answered by the catalog's ``supported_apps``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from scaffolder.core.catalog import PluginCatalog


@dataclass(frozen=True)
class AppType:
    """A category of target application."""

    id: str
    name: str
    description: str = ""
    required_plugins: tuple[str, ...] = ()


BUILTIN_APP_TYPES: tuple[AppType, ...] = (
    AppType("nestjs", "NestJS", "Backend API server with NestJS", ("typescript",)),
    AppType("nextjs", "Next.js", "Full-stack React framework", ("typescript",)),
    AppType("fumadocs", "Fumadocs", "Documentation site built on Next.js", ("typescript",)),
    AppType("express", "Express", "Minimal Node.js web server", ("typescript",)),
    AppType("fastify", "Fastify", "Fast and low overhead Node.js web server", ("typescript",)),
    AppType("astro", "Astro", "Content-focused web framework", ("typescript",)),
)


class AppTypeRegistry:
    """Lookup table of app archetypes."""

    def __init__(self, catalog: PluginCatalog, app_types: Iterable[AppType] = BUILTIN_APP_TYPES):
        self.catalog = catalog
        self._app_types: dict[str, AppType] = {}
        for app_type in app_types:
            self.register(app_type)

    def register(self, app_type: AppType) -> None:
        """Add or replace a custom app type."""
        self._app_types[app_type.id] = app_type

    def get(self, app_type_id: str) -> AppType | None:
        return self._app_types.get(app_type_id)

    def all(self) -> list[AppType]:
        return list(self._app_types.values())

    def is_valid(self, app_type_id: str) -> bool:
        return app_type_id in self._app_types

    def supports_plugin(self, app_type_id: str, plugin_id: str) -> bool:
        plugin = self.catalog.get(plugin_id)
        return plugin is not None and self.is_valid(app_type_id) and plugin.supports_app(app_type_id)

    def supported_plugins(self, app_type_id: str) -> list[str]:
        if not self.is_valid(app_type_id):
            return []
        return [p.id for p in self.catalog.for_app_type(app_type_id)]

    def required_plugins(self, app_type_id: str) -> list[str]:
        app_type = self._app_types.get(app_type_id)
        return list(app_type.required_plugins) if app_type else []

    def app_types_supporting(self, plugin_id: str) -> list[str]:
        return [a.id for a in self._app_types.values() if self.supports_plugin(a.id, plugin_id)]

    def compatibility_matrix(self) -> dict[str, dict[str, bool]]:
        """Return ``{plugin_id: {app_type_id: supported}}`` for every plugin."""
        return {
            plugin.id: {a.id: plugin.supports_app(a.id) for a in self._app_types.values()}
            for plugin in self.catalog
        }
