"""File-system service used by the orchestrator.

Every operation wraps ``OSError`` in ``ScaffoldIOError`` so callers deal
with a single error type.
"""

import json
from pathlib import Path
from typing import Any

from scaffolder.core.errors import ScaffoldIOError
from scaffolder.output import MessageType, VerbosityLevel, message


class FileSystem:
    """Thin wrapper over ``pathlib`` with domain-specific errors."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def read_file(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ScaffoldIOError(f"Failed to read {path}: {e}", path=str(path)) from e

    def write_file(self, path: Path, content: str) -> None:
        """Write *content* to *path*, creating parent directories."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ScaffoldIOError(f"Failed to write {path}: {e}", path=str(path)) from e
        message(f"  Wrote {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    def ensure_dir(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ScaffoldIOError(f"Failed to create directory {path}: {e}", path=str(path)) from e

    def remove_file(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            raise ScaffoldIOError(f"Failed to remove {path}: {e}", path=str(path)) from e

    def write_manifest(self, path: Path, data: dict[str, Any]) -> None:
        """Write a JSON manifest (``package.json`` and similar)."""
        self.write_file(path, json.dumps(data, indent=2) + "\n")


class RecordingFileSystem(FileSystem):
    """File system that reads from disk but records writes instead of performing them.

    Useful for previews and tests that must prove nothing was written.
    """

    def __init__(self):
        self.writes: dict[Path, str] = {}
        self.created_dirs: list[Path] = []
        self.removed: list[Path] = []

    def exists(self, path: Path) -> bool:
        return path in self.writes or path.exists()

    def read_file(self, path: Path) -> str:
        if path in self.writes:
            return self.writes[path]
        return super().read_file(path)

    def write_file(self, path: Path, content: str) -> None:
        self.writes[path] = content

    def ensure_dir(self, path: Path) -> None:
        self.created_dirs.append(path)

    def remove_file(self, path: Path) -> None:
        self.removed.append(path)
