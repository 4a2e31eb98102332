"""Clobber detection for files the scaffolder is about to overwrite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from scaffolder.core.manifest import is_managed, is_unmodified
from scaffolder.utils.git import is_recoverable


class ClobberAction:
    """What overwriting a given file would mean for the user."""

    NEW_FILE = "new_file"
    SAFE = "safe"
    CLOBBER_RECOVERABLE = "clobber_recoverable"
    CLOBBER_RISKY = "clobber_risky"

    def __init__(self, action: str, file_name: str, reason: str = ""):
        self.action = action
        self.file_name = file_name
        self.reason = reason

    @property
    def is_safe(self) -> bool:
        return self.action in (self.SAFE, self.NEW_FILE)

    def __repr__(self) -> str:
        return f"ClobberAction({self.action!r}, {self.file_name!r})"


def check_clobber(file_name: str, project_path: Path, manifest: dict[str, Any]) -> ClobberAction:
    """Classify overwriting *file_name* inside *project_path*.

    * missing file: ``NEW_FILE``
    * generated by us and untouched since: ``SAFE``
    * otherwise tracked and clean in git: ``CLOBBER_RECOVERABLE``
    * anything else: ``CLOBBER_RISKY``
    """
    path = project_path / file_name
    if not path.exists():
        return ClobberAction(ClobberAction.NEW_FILE, file_name)

    if is_managed(manifest, file_name) and is_unmodified(manifest, project_path, file_name):
        return ClobberAction(ClobberAction.SAFE, file_name, "generated and unmodified")

    if is_recoverable(path):
        return ClobberAction(ClobberAction.CLOBBER_RECOVERABLE, file_name, "tracked by git with no local changes")

    return ClobberAction(ClobberAction.CLOBBER_RISKY, file_name, "modified or untracked; changes would be lost")


def should_overwrite(clobber: ClobberAction, *, force: bool = False) -> bool:
    """Decide whether an overwrite may go ahead without asking."""
    if clobber.is_safe or clobber.action == ClobberAction.CLOBBER_RECOVERABLE:
        return True
    return force
