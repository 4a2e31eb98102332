"""Merge strategies for file contributions.

Each strategy is a ``Merger`` subclass whose ``merge`` classmethod takes
the current content of a file and one contribution and returns the new
content. Mergers raise ``MergeError`` when they cannot apply a
contribution; the caller decides what to do with the failure.

Text insertions skip content that is already present so running the
same contributions over already-merged output changes nothing.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from scaffolder.core.errors import MergeError
from scaffolder.core.merger_registry import MergerRegistry

if TYPE_CHECKING:
    from scaffolder.core.contributions import FileContribution


class Merger(ABC):
    """Base class for merge strategies."""

    STRATEGY: str = ""

    @classmethod
    @abstractmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        """Apply *contribution* on top of *existing* and return the result."""

    @classmethod
    def _fail(cls, text: str, contribution: FileContribution) -> MergeError:
        return MergeError(f"{cls.STRATEGY}: {text}", path=contribution.path, plugin_id=contribution.plugin_id)


def _contains(existing: str, content: str) -> bool:
    # Blank content has nothing to add
    snippet = content.strip()
    return not snippet or snippet in existing


# ------------------------------------------------------------------
# Whole-file
# ------------------------------------------------------------------
class ReplaceMerger(Merger):
    STRATEGY = "replace"

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        return contribution.content


# ------------------------------------------------------------------
# JSON
# ------------------------------------------------------------------
def _dump_json(data: Any) -> str:
    return json.dumps(data, indent=2) + "\n"


def deep_merge(target: Any, source: Any) -> Any:
    """Recursively merge *source* into *target*.

    Objects are unioned key by key, arrays are concatenated without
    repeating items already present, and any other value in *source*
    wins.
    """
    if source is None:
        return target
    if isinstance(source, list):
        if isinstance(target, list):
            combined = list(target)
            for item in source:
                if item not in combined:
                    combined.append(item)
            return combined
        return source
    if isinstance(source, dict) and isinstance(target, dict):
        merged = dict(target)
        for key, value in source.items():
            merged[key] = deep_merge(target.get(key), value)
        return merged
    return source


class JsonMerger(Merger):
    """Shallow merge: top-level keys from the contribution win."""

    STRATEGY = "json-merge"
    deep = False

    @classmethod
    def _load(cls, text: str, what: str, contribution: FileContribution) -> Any:
        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise cls._fail(f"invalid JSON in {what} content ({e})", contribution) from e

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        current = cls._load(existing, "existing", contribution)
        incoming = cls._load(contribution.content, "contributed", contribution)
        if not isinstance(current, dict) or not isinstance(incoming, dict):
            raise cls._fail("both sides must be JSON objects", contribution)

        if cls.deep:
            return _dump_json(deep_merge(current, incoming))
        return _dump_json({**current, **incoming})


class JsonDeepMerger(JsonMerger):
    STRATEGY = "json-merge-deep"
    deep = True


# ------------------------------------------------------------------
# Text
# ------------------------------------------------------------------
class AppendMerger(Merger):
    STRATEGY = "append"

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        if not existing:
            return contribution.content
        if _contains(existing, contribution.content):
            return existing
        return existing.rstrip() + "\n" + contribution.content


class PrependMerger(Merger):
    STRATEGY = "prepend"

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        if not existing:
            return contribution.content
        if _contains(existing, contribution.content):
            return existing
        return contribution.content.rstrip("\n") + "\n" + existing.lstrip()


class InsertAfterMerger(Merger):
    """Insert content on the line after the first match of ``marker``."""

    STRATEGY = "insert-after"

    @classmethod
    def _find(cls, existing: str, contribution: FileContribution) -> re.Match[str]:
        if not contribution.marker:
            raise cls._fail("a marker is required", contribution)
        try:
            match = re.search(contribution.marker, existing, re.MULTILINE)
        except re.error as e:
            raise cls._fail(f"invalid marker pattern '{contribution.marker}' ({e})", contribution) from e
        if match is None:
            raise cls._fail(f"marker '{contribution.marker}' not found", contribution)
        return match

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        match = cls._find(existing, contribution)
        if _contains(existing, contribution.content):
            return existing
        pos = match.end()
        return existing[:pos] + "\n" + contribution.content.rstrip("\n") + existing[pos:]


class InsertBeforeMerger(InsertAfterMerger):
    """Insert content just before the first match of ``marker``."""

    STRATEGY = "insert-before"

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        match = cls._find(existing, contribution)
        if _contains(existing, contribution.content):
            return existing
        pos = match.start()
        return existing[:pos] + contribution.content.rstrip("\n") + "\n" + existing[pos:]


class LineMerger(Merger):
    """Add lines not already present (ignore files and similar)."""

    STRATEGY = "line-merge"

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        present = {line.strip() for line in existing.splitlines() if line.strip()}
        new_lines = []
        for line in contribution.content.splitlines():
            stripped = line.strip()
            if stripped and stripped not in present:
                present.add(stripped)
                new_lines.append(stripped)

        if not new_lines:
            return existing
        if not existing.strip():
            return "\n".join(new_lines) + "\n"
        return existing.rstrip() + "\n" + "\n".join(new_lines) + "\n"


SECTION_START = "# --- SECTION: {name} ---"
SECTION_END = "# --- END SECTION: {name} ---"


class SectionMerger(Merger):
    """Own a named, delimited section of a file and replace its body."""

    STRATEGY = "section-merge"

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        if not contribution.section:
            raise cls._fail("a section name is required", contribution)

        start = SECTION_START.format(name=contribution.section)
        end = SECTION_END.format(name=contribution.section)
        body = contribution.content.strip("\n")

        start_idx = existing.find(start)
        if start_idx == -1:
            block = f"{start}\n{body}\n{end}\n"
            if not existing.strip():
                return block
            return existing.rstrip() + "\n\n" + block

        after_start = start_idx + len(start)
        end_idx = existing.find(end, after_start)
        if end_idx == -1:
            raise cls._fail(f"section '{contribution.section}' has no end marker", contribution)

        return existing[:after_start] + "\n" + body + "\n" + existing[end_idx:]


# ------------------------------------------------------------------
# Source transforms
# ------------------------------------------------------------------
_IMPORT_FROM = re.compile(r"""from\s+['"]([^'"]+)['"]""")
_EXPORT_TARGET = re.compile(r"""export\s+\*?\s*(?:from\s+)?['"]?([^'";\s]+)""")


class AstTransformMerger(Merger):
    """Small line-based source edits selected by ``ast_transform``.

    Supported transforms:
        add-import: insert an import after the last existing import
        add-export: insert an export after the last existing export
        add-array-item: ``"name:value"`` appends *value* to array *name*
    """

    STRATEGY = "ast-transform"

    @classmethod
    def merge(cls, existing: str, contribution: FileContribution) -> str:
        transform = contribution.ast_transform
        if transform == "add-import":
            return cls._add_import(existing, contribution.content.strip())
        if transform == "add-export":
            return cls._add_export(existing, contribution.content.strip())
        if transform == "add-array-item":
            return cls._add_array_item(existing, contribution)
        raise cls._fail(f"unsupported transform '{transform}'", contribution)

    @staticmethod
    def _add_import(existing: str, statement: str) -> str:
        match = _IMPORT_FROM.search(statement)
        if match:
            module = match.group(1)
            if f"from '{module}'" in existing or f'from "{module}"' in existing:
                return existing
        elif statement in existing:
            return existing

        lines = existing.split("\n")
        last_import = -1
        for idx, line in enumerate(lines):
            if line.lstrip().startswith("import "):
                last_import = idx

        if last_import == -1:
            return statement + "\n" + existing
        lines.insert(last_import + 1, statement)
        return "\n".join(lines)

    @staticmethod
    def _add_export(existing: str, statement: str) -> str:
        match = _EXPORT_TARGET.search(statement)
        if (match and match.group(1) in existing) or statement in existing:
            return existing

        lines = existing.split("\n")
        insert_at = len(lines)
        for idx in range(len(lines) - 1, -1, -1):
            if lines[idx].lstrip().startswith("export "):
                insert_at = idx + 1
                break
        else:
            # Keep a trailing newline at the end of the file
            if lines and lines[-1] == "":
                insert_at = len(lines) - 1

        lines.insert(insert_at, statement)
        return "\n".join(lines)

    @classmethod
    def _add_array_item(cls, existing: str, contribution: FileContribution) -> str:
        name, sep, value = contribution.content.partition(":")
        name, value = name.strip(), value.strip()
        if not sep or not name or not value:
            raise cls._fail("array item must be formatted as 'arrayName:value'", contribution)

        pattern = re.compile(rf"({re.escape(name)}\s*[=:]\s*\[)([^\]]*)\]", re.DOTALL)
        match = pattern.search(existing)
        if match is None:
            raise cls._fail(f"array '{name}' not found", contribution)

        items = match.group(2)
        if value in [item.strip() for item in items.split(",")]:
            return existing
        if items.strip():
            new_items = items.rstrip().rstrip(",") + ",\n  " + value + "\n"
        else:
            new_items = "\n  " + value + "\n"
        return existing[:match.start(2)] + new_items + existing[match.end(2):]


# ------------------------------------------------------------------
# Registry setup
# ------------------------------------------------------------------
MERGER_CLASSES: tuple[type[Merger], ...] = (
    ReplaceMerger,
    JsonMerger,
    JsonDeepMerger,
    AppendMerger,
    PrependMerger,
    InsertAfterMerger,
    InsertBeforeMerger,
    LineMerger,
    SectionMerger,
    AstTransformMerger,
)


def create_default_merger_registry() -> MergerRegistry:
    """Create a registry with every built-in strategy and the file-type defaults.

    Returns:
        A ``MergerRegistry`` mapping JSON to ``json-merge``, ignore files to
        ``line-merge``, stylesheets and Markdown to ``append`` and
        everything else to ``replace``
    """
    registry = MergerRegistry()
    for merger_class in MERGER_CLASSES:
        registry.register_strategy(merger_class)

    for name in (".gitignore", ".npmignore", ".dockerignore"):
        registry.register_filename(name, "line-merge")

    registry.register_extension(".json", "json-merge")
    for ext in (".ts", ".tsx", ".js", ".jsx"):
        registry.register_extension(ext, "replace")
    for ext in (".css", ".scss", ".sass", ".md"):
        registry.register_extension(ext, "append")

    registry.set_default("replace")
    return registry
