"""File contributions and the per-path contribution merger."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from scaffolder.core.conditions import ALWAYS, Condition
from scaffolder.core.defaults import DEFAULT_PRIORITY
from scaffolder.core.errors import MergeError
from scaffolder.core.merger_registry import MergerRegistry
from scaffolder.core.mergers import create_default_merger_registry
from scaffolder.output import MessageType, VerbosityLevel, message


@dataclass
class FileContribution:
    """One plugin's proposed output for one file.

    Attributes:
        plugin_id: Contributing plugin
        path: Destination path relative to the project root
        content: Rendered content
        merge_strategy: Name of the merge strategy to apply
        priority: Lower values merge first
        marker: Regex anchor for insert-after / insert-before
        section: Section name for section-merge
        ast_transform: Transform name for ast-transform
        condition: Predicate over the enabled plugin set
        skip_if_exists: Leave the file alone when it already exists
    """

    plugin_id: str
    path: str
    content: str
    merge_strategy: str = "replace"
    priority: int = DEFAULT_PRIORITY
    marker: str | None = None
    section: str | None = None
    ast_transform: str | None = None
    condition: Condition = ALWAYS
    skip_if_exists: bool = False


@dataclass
class MergeResult:
    """Outcome of merging every contribution for one path."""

    content: str
    success: bool = True
    contributors: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


_default_registry: MergerRegistry | None = None


def default_registry() -> MergerRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_merger_registry()
    return _default_registry


def get_default_merge_strategy(path: str, registry: MergerRegistry | None = None) -> str:
    """Return the merge strategy used for *path* when none is declared."""
    return (registry or default_registry()).get_default_strategy(path)


def group_by_path(contributions: Iterable[FileContribution]) -> dict[str, list[FileContribution]]:
    """Group contributions by destination path, keeping first-seen path order."""
    grouped: dict[str, list[FileContribution]] = {}
    for contribution in contributions:
        grouped.setdefault(contribution.path, []).append(contribution)
    return grouped


def merge_contributions(
    contributions: Iterable[FileContribution],
    existing_content: str | None = None,
    registry: MergerRegistry | None = None,
) -> MergeResult:
    """Merge all contributions for a single path.

    Contributions are applied in ascending priority order (stable for
    equal priorities). A failing contribution is recorded in ``errors``
    and skipped, so the result keeps the last successfully merged content.

    Args:
        contributions: Contributions targeting the same path
        existing_content: Current file content, if the file exists
        registry: Merger registry (defaults to the built-in one)

    Returns:
        A ``MergeResult`` with the merged content and any errors
    """
    registry = registry or default_registry()
    ordered = sorted(contributions, key=lambda c: c.priority)
    result = MergeResult(content=existing_content or "")

    for contribution in ordered:
        try:
            merger = registry.get_merger(contribution.merge_strategy)
            result.content = merger.merge(result.content, contribution)
            result.contributors.append(contribution.plugin_id)
            message(
                f"  Applied {contribution.merge_strategy} from {contribution.plugin_id} to {contribution.path}",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
        except MergeError as e:
            text = f"Failed to apply contribution from {contribution.plugin_id} to {contribution.path}: {e}"
            result.errors.append(text)
            result.success = False
            message(text, MessageType.WARNING, VerbosityLevel.VERBOSE)

    return result


def validate_contributions(contributions: Iterable[FileContribution]) -> list[str]:
    """Report paths whose contributions will override each other.

    Returns:
        List of issue descriptions (empty when nothing is suspicious)
    """
    issues: list[str] = []
    for path, items in group_by_path(contributions).items():
        strategies = [c.merge_strategy for c in items]
        replace_count = strategies.count("replace")
        if replace_count > 1:
            issues.append(
                f"File '{path}' has {replace_count} contributions with 'replace' strategy; "
                f"only the highest priority one takes effect"
            )
        if replace_count and len(set(strategies)) > 1:
            issues.append(
                f"File '{path}' mixes 'replace' with other strategies; "
                f"the 'replace' contribution overrides earlier ones by priority"
            )
    return issues
