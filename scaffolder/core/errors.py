"""Error taxonomy for the scaffolding engine.

Resolution problems (not-found, dependency, conflict) are normally
reported as data in a ``ResolutionResult``; these exceptions exist for
callers that want fail-fast behaviour and for orchestration failures.
"""

from typing import Any


class ScaffoldError(Exception):
    """Base class for all scaffolder errors.

    Attributes:
        kind: Short machine-readable error kind
        plugin_id: Plugin the error relates to, if any
        details: Extra structured information
    """

    kind = "scaffold"

    def __init__(self, message: str, *, plugin_id: str | None = None, details: dict[str, Any] | None = None):
        self.plugin_id = plugin_id
        self.details = details or {}
        super().__init__(message)


class PluginNotFoundError(ScaffoldError):
    """Raised when a plugin id has no catalog entry."""

    kind = "not-found"

    def __init__(self, plugin_id: str, suggestions: list[str] | None = None):
        self.suggestions = suggestions or []
        text = f"Plugin '{plugin_id}' not found"
        if self.suggestions:
            text += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(text, plugin_id=plugin_id)


class PluginDependencyError(ScaffoldError):
    """Raised when a plugin requires a dependency that is not enabled."""

    kind = "dependency"

    def __init__(self, plugin_id: str, dependency: str):
        self.dependency = dependency
        super().__init__(
            f"Plugin '{plugin_id}' requires '{dependency}' which is not enabled",
            plugin_id=plugin_id,
            details={"dependency": dependency},
        )


class PluginConflictError(ScaffoldError):
    """Raised when two mutually exclusive plugins are enabled together."""

    kind = "conflict"

    def __init__(self, plugin_id: str, conflicts_with: str):
        self.conflicts_with = conflicts_with
        super().__init__(
            f"Plugin '{plugin_id}' conflicts with '{conflicts_with}'",
            plugin_id=plugin_id,
            details={"conflicts_with": conflicts_with},
        )


class PluginResolutionError(ScaffoldError):
    """Raised by the orchestrator when the requested plugin set is invalid."""

    kind = "plugin-resolution"


class GuardFailedError(ScaffoldError):
    """Raised when one or more blocking guards fail."""

    kind = "guard-failed"

    def __init__(self, message: str, failures: list[Any] | None = None):
        self.failures = failures or []
        super().__init__(message)


class GeneratorError(ScaffoldError):
    """Raised when a plugin generator fails to produce its output."""

    kind = "generation"


class MergeError(ScaffoldError):
    """Raised when a contribution cannot be merged into a file."""

    kind = "merge"

    def __init__(self, message: str, path: str | None = None, plugin_id: str | None = None):
        self.path = path
        super().__init__(message, plugin_id=plugin_id, details={"path": path})


class ScaffoldIOError(ScaffoldError):
    """Raised when a file-system operation fails."""

    kind = "io"

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message, details={"path": path})


class CommandError(ScaffoldError):
    """Raised when a critical setup command fails."""

    kind = "command"
