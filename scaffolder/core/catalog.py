"""Plugin catalog: the in-memory table of plugin definitions.

The catalog is an explicit object built once at startup and handed to
the resolver and orchestrator. Plugins are immutable once registered.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass
from typing import Any

from scaffolder.core.errors import PluginNotFoundError
from scaffolder.output import MessageType, VerbosityLevel, message

ALL_APPS = "*"
CATEGORIES = ("core", "feature", "infrastructure", "ui", "integration")


@dataclass(frozen=True)
class Plugin:
    """A single toggleable feature unit.

    Attributes:
        id: Unique plugin id
        name: Display name
        description: One-line description
        category: One of ``CATEGORIES``
        dependencies: Plugin ids that must also be enabled
        conflicts: Plugin ids that must not be enabled at the same time
        supported_apps: ``"*"`` or a tuple of app-type ids
        default: Whether the plugin is pre-selected
        tags: Free-form search tags
    """

    id: str
    name: str
    description: str = ""
    category: str = "feature"
    dependencies: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()
    supported_apps: str | tuple[str, ...] = ALL_APPS
    default: bool = False
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept lists from YAML / entry points but store tuples
        for name in ("dependencies", "conflicts", "tags"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        if self.supported_apps != ALL_APPS:
            object.__setattr__(self, "supported_apps", tuple(self.supported_apps))

        if not self.id:
            raise ValueError("Plugin id cannot be empty")
        if self.category not in CATEGORIES:
            raise ValueError(
                f"Plugin '{self.id}' has unknown category '{self.category}' "
                f"(expected one of: {', '.join(CATEGORIES)})"
            )
        if self.id in self.dependencies:
            raise ValueError(f"Plugin '{self.id}' cannot depend on itself")
        if self.id in self.conflicts:
            raise ValueError(f"Plugin '{self.id}' cannot conflict with itself")

    def supports_app(self, app_type: str) -> bool:
        """Return ``True`` if this plugin can be used in *app_type*."""
        return self.supported_apps == ALL_APPS or app_type in self.supported_apps

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Plugin:
        """Build a plugin from a plain mapping (YAML or entry point data)."""
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            category=data.get("category", "feature"),
            dependencies=data.get("dependencies", ()),
            conflicts=data.get("conflicts", ()),
            supported_apps=data.get("supported_apps", ALL_APPS),
            default=bool(data.get("default", False)),
            tags=data.get("tags", ()),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("dependencies", "conflicts", "tags"):
            data[key] = list(data[key])
        if data["supported_apps"] != ALL_APPS:
            data["supported_apps"] = list(data["supported_apps"])
        return data


def _similarity(s1: str, s2: str) -> float:
    """Dice coefficient over character bigrams."""
    if s1 == s2:
        return 1.0
    if len(s1) < 2 or len(s2) < 2:
        return 0.0

    bigrams = {s1[i:i + 2] for i in range(len(s1) - 1)}
    intersection = sum(1 for i in range(len(s2) - 1) if s2[i:i + 2] in bigrams)
    return (2 * intersection) / (len(s1) + len(s2) - 2)


class PluginCatalog:
    """Registry of plugin definitions keyed by id."""

    def __init__(self, plugins: Iterable[Plugin] = ()):
        self._plugins: dict[str, Plugin] = {}
        for plugin in plugins:
            self.register(plugin)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self, plugin: Plugin, replace: bool = False) -> None:
        """Add a plugin to the catalog.

        Args:
            plugin: Plugin definition
            replace: Overwrite an existing plugin with the same id

        Raises:
            ValueError: If the id is already registered and *replace* is False
        """
        if plugin.id in self._plugins and not replace:
            raise ValueError(f"Plugin '{plugin.id}' is already registered")
        self._plugins[plugin.id] = plugin
        message(f"Registered plugin: {plugin.id}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get(self, plugin_id: str) -> Plugin | None:
        return self._plugins.get(plugin_id)

    def require(self, plugin_id: str) -> Plugin:
        """Return the plugin or raise ``PluginNotFoundError`` with suggestions."""
        plugin = self._plugins.get(plugin_id)
        if plugin is None:
            raise PluginNotFoundError(plugin_id, self.suggest(plugin_id))
        return plugin

    def has(self, plugin_id: str) -> bool:
        return plugin_id in self._plugins

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins

    def __iter__(self) -> Iterator[Plugin]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def all(self) -> list[Plugin]:
        return list(self._plugins.values())

    def ids(self) -> list[str]:
        return list(self._plugins.keys())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def by_category(self, category: str) -> list[Plugin]:
        return [p for p in self._plugins.values() if p.category == category]

    def categories(self) -> dict[str, int]:
        """Return plugin counts per category, in canonical category order."""
        counts = {category: 0 for category in CATEGORIES}
        for plugin in self._plugins.values():
            counts[plugin.category] += 1
        return counts

    def for_app_type(self, app_type: str) -> list[Plugin]:
        return [p for p in self._plugins.values() if p.supports_app(app_type)]

    def defaults_for_app_type(self, app_type: str) -> list[str]:
        return [p.id for p in self.for_app_type(app_type) if p.default]

    def validate_for_app(self, plugin_id: str, app_type: str) -> tuple[bool, str | None]:
        """Check whether *plugin_id* may be used in an *app_type* app.

        Returns:
            ``(True, None)`` when valid, otherwise ``(False, reason)``
        """
        plugin = self._plugins.get(plugin_id)
        if plugin is None:
            return False, f"Plugin '{plugin_id}' not found"
        if not plugin.supports_app(app_type):
            supported = ", ".join(plugin.supported_apps)
            return False, f"Plugin '{plugin_id}' does not support '{app_type}' apps (supports: {supported})"
        return True, None

    def search(self, query: str) -> list[Plugin]:
        """Case-insensitive search over id, name, description and tags."""
        needle = query.lower()
        results = []
        for plugin in self._plugins.values():
            haystack = [plugin.id, plugin.name, plugin.description, *plugin.tags]
            if any(needle in item.lower() for item in haystack):
                results.append(plugin)
        return results

    def suggest(self, plugin_id: str, limit: int = 3) -> list[str]:
        """Return up to *limit* known ids that look like *plugin_id*."""
        needle = plugin_id.lower()
        scored = [
            (_similarity(needle, known.lower()), known)
            for known in self._plugins
        ]
        scored = [item for item in scored if item[0] > 0.3]
        scored.sort(key=lambda item: -item[0])
        return [known for _, known in scored[:limit]]


# ------------------------------------------------------------------
# Built-in plugins
# ------------------------------------------------------------------
_SERVER_APPS = ("nestjs", "nextjs", "express", "fastify")

BUILTIN_PLUGINS: tuple[Plugin, ...] = (
    # core
    Plugin("typescript", "TypeScript", "TypeScript configuration and compiler setup", "core",
           default=True, tags=("typescript", "compiler", "types")),
    Plugin("eslint", "ESLint", "ESLint configuration with TypeScript support", "core",
           dependencies=("typescript",), default=True, tags=("eslint", "linting", "code-quality")),
    Plugin("prettier", "Prettier", "Code formatting with Prettier", "core",
           default=True, tags=("prettier", "formatting")),
    Plugin("vitest", "Vitest", "Unit testing with Vitest", "core",
           dependencies=("typescript",), conflicts=("jest",), default=True,
           tags=("vitest", "testing", "unit-tests")),
    Plugin("jest", "Jest", "Unit testing with Jest", "core",
           conflicts=("vitest",), tags=("jest", "testing", "unit-tests")),
    Plugin("turborepo", "Turborepo", "Monorepo build system", "core",
           default=True, tags=("turborepo", "monorepo", "build")),
    Plugin("zod", "Zod", "Schema validation with Zod", "core",
           dependencies=("typescript",), default=True, tags=("zod", "validation", "schema")),
    # feature
    Plugin("better-auth", "Better Auth", "Authentication with Better Auth", "feature",
           dependencies=("drizzle",), conflicts=("next-auth",), supported_apps=("nestjs", "nextjs"),
           tags=("auth", "authentication", "better-auth")),
    Plugin("orpc", "ORPC", "Type-safe RPC with ORPC", "feature",
           dependencies=("typescript", "zod"), conflicts=("trpc",), supported_apps=("nestjs",),
           tags=("orpc", "rpc", "api", "type-safe")),
    Plugin("drizzle", "Drizzle ORM", "Type-safe database ORM", "feature",
           dependencies=("typescript",), conflicts=("prisma", "typeorm"), supported_apps=_SERVER_APPS,
           tags=("drizzle", "orm", "database")),
    Plugin("prisma", "Prisma", "Database ORM with Prisma", "feature",
           dependencies=("typescript",), conflicts=("drizzle",), supported_apps=_SERVER_APPS,
           tags=("prisma", "orm", "database")),
    Plugin("react-query", "React Query", "Server state management with TanStack Query", "feature",
           conflicts=("swr",), supported_apps=("nextjs", "astro"), tags=("react-query", "tanstack", "state")),
    Plugin("zustand", "Zustand", "Client state management with Zustand", "feature",
           conflicts=("redux", "jotai"), supported_apps=("nextjs", "astro"),
           tags=("zustand", "state", "client-state")),
    Plugin("declarative-routing", "Declarative Routing", "Type-safe declarative routing for Next.js", "feature",
           dependencies=("typescript",), supported_apps=("nextjs",), tags=("routing", "next.js", "type-safe")),
    # infrastructure
    Plugin("docker", "Docker", "Docker configuration and compose files", "infrastructure",
           default=True, tags=("docker", "containers", "devops")),
    Plugin("postgresql", "PostgreSQL", "PostgreSQL database setup", "infrastructure",
           dependencies=("docker",), conflicts=("mysql", "mongodb"), supported_apps=_SERVER_APPS,
           tags=("postgresql", "database", "sql")),
    Plugin("redis", "Redis", "Redis cache setup", "infrastructure",
           dependencies=("docker",), supported_apps=_SERVER_APPS, tags=("redis", "cache", "key-value")),
    Plugin("github-actions", "GitHub Actions", "CI/CD with GitHub Actions", "infrastructure",
           conflicts=("gitlab-ci",), tags=("github", "ci", "cd", "actions")),
    # ui
    Plugin("tailwindcss", "Tailwind CSS", "Utility-first CSS framework", "ui",
           default=True, supported_apps=("nextjs", "fumadocs", "astro"), tags=("tailwind", "css", "styling")),
    Plugin("shadcn-ui", "shadcn/ui", "Beautifully designed components", "ui",
           dependencies=("tailwindcss",), supported_apps=("nextjs",), tags=("shadcn", "ui", "components")),
    Plugin("radix-ui", "Radix UI", "Unstyled accessible components", "ui",
           supported_apps=("nextjs",), tags=("radix", "ui", "accessibility")),
    Plugin("next-themes", "Next Themes", "Theme switching for Next.js", "ui",
           supported_apps=("nextjs", "fumadocs"), tags=("themes", "dark-mode", "next.js")),
    # integration
    Plugin("fumadocs", "Fumadocs", "Documentation with Fumadocs", "integration",
           dependencies=("tailwindcss",), conflicts=("nextra",), supported_apps=("fumadocs",),
           tags=("docs", "documentation", "fumadocs")),
    Plugin("swagger", "Swagger/OpenAPI", "API documentation with Swagger", "integration",
           supported_apps=("nestjs", "express", "fastify"), tags=("swagger", "openapi", "api-docs")),
    Plugin("sentry", "Sentry", "Error tracking with Sentry", "integration",
           tags=("sentry", "monitoring", "errors")),
)


def build_default_catalog(extra: Iterable[Plugin] = ()) -> PluginCatalog:
    """Build a catalog holding the built-in plugins plus *extra*.

    Extra plugins with an id that is already built in replace the
    built-in definition.

    Args:
        extra: Additional plugin definitions (custom or discovered)

    Returns:
        A populated ``PluginCatalog``
    """
    catalog = PluginCatalog(BUILTIN_PLUGINS)
    for plugin in extra:
        if plugin.id in catalog:
            message(f"Overriding built-in plugin '{plugin.id}'", MessageType.INFO, VerbosityLevel.VERBOSE)
        catalog.register(plugin, replace=True)
    return catalog
