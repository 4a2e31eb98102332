"""Core engine for scaffolder: catalog, resolution, merging and guards.

The orchestrator and plugin loader depend on the generator package and
are imported from their own modules.
"""

from .app_types import AppType, AppTypeRegistry
from .catalog import Plugin, PluginCatalog, build_default_catalog
from .conditions import ALWAYS, HasPlugin, NotHasPlugin, parse_condition
from .contributions import FileContribution, MergeResult, merge_contributions
from .defaults import ScaffoldDefaults
from .errors import (
    CommandError,
    GeneratorError,
    GuardFailedError,
    MergeError,
    PluginConflictError,
    PluginDependencyError,
    PluginNotFoundError,
    PluginResolutionError,
    ScaffoldError,
    ScaffoldIOError,
)
from .merger_registry import MergerRegistry
from .mergers import create_default_merger_registry
from .project import ProjectConfig
from .resolver import PluginResolver, ResolutionResult
from .safety import ClobberAction, check_clobber

__all__ = [
    "ALWAYS",
    "AppType",
    "AppTypeRegistry",
    "ClobberAction",
    "CommandError",
    "FileContribution",
    "GeneratorError",
    "GuardFailedError",
    "HasPlugin",
    "MergeError",
    "MergeResult",
    "MergerRegistry",
    "NotHasPlugin",
    "Plugin",
    "PluginCatalog",
    "PluginConflictError",
    "PluginDependencyError",
    "PluginNotFoundError",
    "PluginResolutionError",
    "PluginResolver",
    "ProjectConfig",
    "ResolutionResult",
    "ScaffoldDefaults",
    "ScaffoldError",
    "ScaffoldIOError",
    "build_default_catalog",
    "check_clobber",
    "create_default_merger_registry",
    "merge_contributions",
    "parse_condition",
]
