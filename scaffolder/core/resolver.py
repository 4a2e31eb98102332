"""Plugin resolver: dependency/conflict validation and install ordering.

Everything here is pure computation over a ``PluginCatalog``. Data-level
problems (unknown ids, conflicts, missing dependencies) are returned in
a ``ResolutionResult``; only ``resolve_or_throw`` raises.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from scaffolder.core.catalog import Plugin, PluginCatalog
from scaffolder.core.defaults import DEFAULT_WARNING_PAIRINGS, WarningPairing
from scaffolder.core.errors import PluginConflictError, PluginDependencyError, PluginNotFoundError
from scaffolder.output import MessageType, VerbosityLevel, message


@dataclass(frozen=True)
class ConflictInfo:
    """Two enabled plugins that cannot coexist."""

    plugin_id: str
    conflicts_with: str
    reason: str = ""


@dataclass(frozen=True)
class MissingDependency:
    """A plugin whose dependency was not requested."""

    plugin: str
    dependency: str


@dataclass
class ResolutionResult:
    """Outcome of resolving a requested plugin set.

    Attributes:
        resolved: Found plugin ids in dependency-first order
        auto_enabled: Ids pulled in transitively by ``auto_resolve``
        unresolved: Requested ids with no catalog entry
        conflicts: Deduplicated conflicting pairs
        missing_dependencies: ``(plugin, dependency)`` pairs
    """

    resolved: list[str] = field(default_factory=list)
    auto_enabled: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    conflicts: list[ConflictInfo] = field(default_factory=list)
    missing_dependencies: list[MissingDependency] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not (self.unresolved or self.conflicts or self.missing_dependencies)

    def problems(self) -> list[str]:
        """Human-readable description of everything that makes this invalid."""
        lines = [f"Unknown plugin: {pid}" for pid in self.unresolved]
        lines += [f"Plugin '{m.plugin}' requires '{m.dependency}'" for m in self.missing_dependencies]
        lines += [f"Plugin '{c.plugin_id}' conflicts with '{c.conflicts_with}'" for c in self.conflicts]
        return lines


@dataclass(frozen=True)
class AddCheck:
    can_add: bool
    reason: str | None = None


@dataclass(frozen=True)
class RemoveCheck:
    can_remove: bool
    dependents: tuple[str, ...] = ()


class PluginResolver:
    """Validates plugin selections against a catalog."""

    def __init__(self, catalog: PluginCatalog, warning_pairings: Iterable[WarningPairing] = DEFAULT_WARNING_PAIRINGS):
        self.catalog = catalog
        self.warning_pairings = tuple(warning_pairings)

    # ------------------------------------------------------------------
    # Full resolution
    # ------------------------------------------------------------------
    def resolve(self, plugin_ids: Iterable[str]) -> ResolutionResult:
        """Validate *plugin_ids* and compute a dependency-first order.

        Dependencies are checked against the requested set only; a
        dependency that merely exists in the catalog does not count.

        Args:
            plugin_ids: Requested plugin ids (duplicates allowed)

        Returns:
            A ``ResolutionResult``; never raises for data-level problems
        """
        requested = list(plugin_ids)
        requested_set = set(requested)
        result = ResolutionResult()

        found: dict[str, Plugin] = {}
        for pid in requested:
            plugin = self.catalog.get(pid)
            if plugin is None:
                if pid not in result.unresolved:
                    result.unresolved.append(pid)
            else:
                found.setdefault(pid, plugin)

        for plugin in found.values():
            for dep in plugin.dependencies:
                if dep not in requested_set:
                    result.missing_dependencies.append(MissingDependency(plugin.id, dep))

        seen_pairs: set[frozenset[str]] = set()
        for plugin in found.values():
            for other in plugin.conflicts:
                pair = frozenset((plugin.id, other))
                if other in found and pair not in seen_pairs:
                    seen_pairs.add(pair)
                    result.conflicts.append(ConflictInfo(
                        plugin.id, other, f"'{plugin.id}' and '{other}' cannot be enabled together",
                    ))

        visited: set[str] = set()

        def visit(pid: str) -> None:
            if pid in visited:
                return
            visited.add(pid)
            plugin = found.get(pid)
            if plugin is None:
                return
            for dep in plugin.dependencies:
                visit(dep)
            result.resolved.append(pid)

        for pid in found:
            visit(pid)

        message(
            f"Resolved {len(result.resolved)} plugin(s): {', '.join(result.resolved)}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return result

    def auto_resolve(self, plugin_ids: Iterable[str]) -> ResolutionResult:
        """Resolve after pulling in every transitive dependency.

        Dependencies absent from the catalog are not pulled in, so they
        still surface as missing dependencies of the plugin that needs them.
        """
        requested = list(dict.fromkeys(plugin_ids))
        all_ids = list(requested)
        included = set(requested)
        auto_enabled: list[str] = []
        stack = list(requested)
        processed: set[str] = set()

        while stack:
            pid = stack.pop()
            if pid in processed:
                continue
            processed.add(pid)

            plugin = self.catalog.get(pid)
            if plugin is None:
                continue
            for dep in plugin.dependencies:
                if dep not in included and dep in self.catalog:
                    included.add(dep)
                    all_ids.append(dep)
                    auto_enabled.append(dep)
                    stack.append(dep)

        result = self.resolve(all_ids)
        result.auto_enabled = auto_enabled
        if auto_enabled:
            message(
                f"Auto-enabled dependencies: {', '.join(auto_enabled)}",
                MessageType.INFO,
                VerbosityLevel.VERBOSE,
            )
        return result

    def resolve_or_throw(self, plugin_ids: Iterable[str]) -> list[str]:
        """Resolve and raise on the first problem.

        Raises:
            PluginNotFoundError: For the first unknown id
            PluginDependencyError: For the first missing dependency
            PluginConflictError: For the first conflict
        """
        result = self.resolve(plugin_ids)
        if result.unresolved:
            pid = result.unresolved[0]
            raise PluginNotFoundError(pid, self.catalog.suggest(pid))
        if result.missing_dependencies:
            missing = result.missing_dependencies[0]
            raise PluginDependencyError(missing.plugin, missing.dependency)
        if result.conflicts:
            conflict = result.conflicts[0]
            raise PluginConflictError(conflict.plugin_id, conflict.conflicts_with)
        return result.resolved

    @staticmethod
    def is_valid(result: ResolutionResult) -> bool:
        return result.valid

    # ------------------------------------------------------------------
    # Point queries
    # ------------------------------------------------------------------
    def can_add(self, existing_ids: Iterable[str], new_id: str) -> AddCheck:
        """Check whether *new_id* can join *existing_ids* without conflict."""
        new_plugin = self.catalog.get(new_id)
        if new_plugin is None:
            return AddCheck(False, f"Plugin '{new_id}' not found")

        for existing_id in existing_ids:
            existing = self.catalog.get(existing_id)
            if existing is not None and new_id in existing.conflicts:
                return AddCheck(False, f"'{existing_id}' conflicts with '{new_id}'")
            if existing_id in new_plugin.conflicts:
                return AddCheck(False, f"'{new_id}' conflicts with '{existing_id}'")

        return AddCheck(True)

    def can_remove(self, existing_ids: Iterable[str], remove_id: str) -> RemoveCheck:
        """Check whether *remove_id* can leave *existing_ids*."""
        dependents = self.get_dependents(remove_id, existing_ids)
        if dependents:
            return RemoveCheck(False, tuple(dependents))
        return RemoveCheck(True)

    def get_dependents(self, plugin_id: str, existing_ids: Iterable[str]) -> list[str]:
        """Return members of *existing_ids* that directly depend on *plugin_id*."""
        dependents = []
        for pid in existing_ids:
            if pid == plugin_id:
                continue
            plugin = self.catalog.get(pid)
            if plugin is not None and plugin_id in plugin.dependencies:
                dependents.append(pid)
        return dependents

    def get_all_dependencies(self, plugin_id: str) -> list[str]:
        """Return the transitive dependency closure of *plugin_id*, excluding itself."""
        collected: list[str] = []
        seen = {plugin_id}
        stack = [plugin_id]
        while stack:
            plugin = self.catalog.get(stack.pop())
            if plugin is None:
                continue
            for dep in plugin.dependencies:
                if dep not in seen:
                    seen.add(dep)
                    collected.append(dep)
                    stack.append(dep)
        return collected

    def generate_warnings(self, plugins: Iterable[str | Plugin]) -> list[str]:
        """Return advisory "consider also enabling" hints for *plugins*."""
        enabled = {p.id if isinstance(p, Plugin) else p for p in plugins}
        return [
            pairing.text()
            for pairing in self.warning_pairings
            if pairing.plugin in enabled and pairing.suggests not in enabled
        ]
