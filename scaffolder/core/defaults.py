"""Configurable defaults for resolution, ordering and manifest generation.

These values encode product choices (which plugin's output lands first,
which combinations deserve a hint, which versions to pin), not engine
invariants, so a project file may override any of them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

DEFAULT_PRIORITY = 1000

DEFAULT_PLUGIN_PRIORITIES: Mapping[str, int] = MappingProxyType({
    # Core tooling
    "typescript": 10,
    "eslint": 20,
    "prettier": 30,
    # Frameworks
    "nextjs": 100,
    "nestjs": 100,
    "react": 110,
    # Database
    "drizzle": 200,
    "prisma": 200,
    "postgresql": 210,
    # Features
    "better-auth": 300,
    "orpc": 310,
    "tanstack-query": 320,
    "react-query": 320,
    # UI
    "tailwindcss": 400,
    "shadcn-ui": 410,
    # Infrastructure
    "docker": 500,
    "github-actions": 510,
    # Documentation
    "fumadocs": 600,
})


@dataclass(frozen=True)
class WarningPairing:
    """Advisory hint: when *plugin* is enabled without *suggests*, say *reason*."""

    plugin: str
    suggests: str
    reason: str

    def text(self) -> str:
        return f"Consider adding '{self.suggests}' {self.reason}"


DEFAULT_WARNING_PAIRINGS: tuple[WarningPairing, ...] = (
    WarningPairing("tailwindcss", "shadcn-ui", "for pre-built Tailwind components"),
    WarningPairing("drizzle", "docker", "for easy database development setup"),
    WarningPairing("better-auth", "redis", "for session storage with Better Auth"),
)

DEFAULT_VERSIONS: Mapping[str, str] = MappingProxyType({
    "typescript": "^5.0.0",
    "eslint": "^9.0.0",
    "prettier": "^3.0.0",
    "vitest": "^2.0.0",
    "jest": "^29.0.0",
    "zod": "^3.23.0",
    "tailwindcss": "^4.0.0",
    "nextjs": "^15.0.0",
    "nestjs": "^10.0.0",
    "react": "^19.0.0",
    "drizzle": "^0.40.0",
    "prisma": "^6.0.0",
    "better-auth": "^1.3.0",
    "orpc": "^1.7.0",
    "tanstack-query": "^5.0.0",
    "react-query": "^5.0.0",
})


@dataclass(frozen=True)
class ProjectTemplate:
    """A named starting point for ``create``."""

    id: str
    name: str
    description: str
    app_type: str | None
    plugins: tuple[str, ...]


PROJECT_TEMPLATES: tuple[ProjectTemplate, ...] = (
    ProjectTemplate("minimal", "Minimal", "TypeScript with linting and formatting", None,
                    ("typescript", "eslint", "prettier")),
    ProjectTemplate("api", "API Server", "NestJS API with Drizzle, PostgreSQL and Docker", "nestjs",
                    ("typescript", "eslint", "prettier", "vitest", "zod", "drizzle", "docker", "postgresql")),
    ProjectTemplate("web", "Web App", "Next.js app with Tailwind and shadcn/ui", "nextjs",
                    ("typescript", "eslint", "prettier", "tailwindcss", "shadcn-ui", "react-query")),
    ProjectTemplate("fullstack", "Full Stack", "Next.js app with auth, database and CI", "nextjs",
                    ("typescript", "eslint", "prettier", "vitest", "zod", "drizzle", "postgresql",
                     "docker", "better-auth", "tailwindcss", "shadcn-ui", "github-actions")),
    ProjectTemplate("docs", "Documentation", "Documentation site with Fumadocs", "fumadocs",
                    ("typescript", "tailwindcss", "fumadocs")),
)


def get_template(template_id: str) -> ProjectTemplate | None:
    for template in PROJECT_TEMPLATES:
        if template.id == template_id:
            return template
    return None


@dataclass(frozen=True)
class ScaffoldDefaults:
    """Bundle of tunable defaults passed to the resolver and orchestrator."""

    priorities: Mapping[str, int] = field(default_factory=lambda: DEFAULT_PLUGIN_PRIORITIES)
    default_priority: int = DEFAULT_PRIORITY
    warning_pairings: tuple[WarningPairing, ...] = DEFAULT_WARNING_PAIRINGS
    versions: Mapping[str, str] = field(default_factory=lambda: DEFAULT_VERSIONS)

    def priority_for(self, plugin_id: str) -> int:
        """Return the ordering priority for *plugin_id* (lower runs first)."""
        return self.priorities.get(plugin_id, self.default_priority)

    def versions_for(self, plugin_ids: list[str]) -> dict[str, str]:
        return {pid: self.versions[pid] for pid in plugin_ids if pid in self.versions}

    def with_overrides(self, overrides: dict[str, Any] | None) -> ScaffoldDefaults:
        """Return a copy with values from a project file's ``defaults`` section.

        Recognised keys: ``priorities`` and ``versions`` (merged over the
        current tables), ``default_priority`` and ``warning_pairings``
        (a list of ``{plugin, suggests, reason}`` mappings, replacing
        the current pairings).
        """
        if not overrides:
            return self

        changes: dict[str, Any] = {}
        if "priorities" in overrides:
            changes["priorities"] = MappingProxyType({**self.priorities, **overrides["priorities"]})
        if "versions" in overrides:
            changes["versions"] = MappingProxyType({**self.versions, **overrides["versions"]})
        if "default_priority" in overrides:
            changes["default_priority"] = int(overrides["default_priority"])
        if "warning_pairings" in overrides:
            changes["warning_pairings"] = tuple(
                WarningPairing(p["plugin"], p["suggests"], p.get("reason", ""))
                for p in overrides["warning_pairings"]
            )
        return replace(self, **changes)
