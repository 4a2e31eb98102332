"""Registry mapping merge strategies and file types to merger classes."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from scaffolder.core.errors import MergeError
from scaffolder.output import MessageType, VerbosityLevel, message

if TYPE_CHECKING:
    from scaffolder.core.mergers import Merger


class MergerRegistry:
    """Looks up mergers by strategy name and default strategies by path.

    Filename registrations take precedence over extension registrations;
    anything unmatched uses ``default_merger``.
    """

    def __init__(self):
        self.strategies: dict[str, type[Merger]] = {}
        self.filename_mergers: dict[str, str] = {}
        self.extension_mergers: dict[str, str] = {}
        self.default_merger = "replace"

    def register_strategy(self, merger_class: type[Merger]) -> None:
        """Register *merger_class* under its ``STRATEGY`` name."""
        self.strategies[merger_class.STRATEGY] = merger_class
        message(
            f"Registered merger {merger_class.__name__} for '{merger_class.STRATEGY}'",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )

    def register_filename(self, filename: str, strategy: str) -> None:
        self.filename_mergers[filename.lower()] = strategy

    def register_extension(self, extension: str, strategy: str) -> None:
        if not extension.startswith("."):
            extension = f".{extension}"
        self.extension_mergers[extension.lower()] = strategy

    def set_default(self, strategy: str) -> None:
        self.default_merger = strategy

    def get_merger(self, strategy: str) -> type[Merger]:
        """Return the merger class for *strategy*.

        Raises:
            MergeError: If no merger handles *strategy*
        """
        merger_class = self.strategies.get(strategy)
        if merger_class is None:
            raise MergeError(f"Unknown merge strategy: {strategy}")
        return merger_class

    def get_default_strategy(self, path: str) -> str:
        """Return the strategy used for *path* when a contribution names none."""
        file_path = PurePosixPath(path)
        name = file_path.name.lower()
        if name in self.filename_mergers:
            return self.filename_mergers[name]
        suffix = file_path.suffix.lower()
        if suffix in self.extension_mergers:
            return self.extension_mergers[suffix]
        return self.default_merger

    def list_registered_mergers(self) -> dict[str, object]:
        return {
            "strategies": sorted(self.strategies),
            "filenames": dict(self.filename_mergers),
            "extensions": dict(self.extension_mergers),
            "default": self.default_merger,
        }
