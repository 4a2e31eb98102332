"""Predicates that decide whether a file contribution applies.

Conditions are evaluated against the set of enabled plugin ids. The
string forms ``"has:<id>"`` and ``"!has:<id>"`` are accepted for
generators written against the older format and converted on entry.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass


@dataclass(frozen=True)
class Always:
    """Condition that is always true."""

    def evaluate(self, enabled_plugins: Collection[str]) -> bool:
        return True

    def __str__(self) -> str:
        return "always"


@dataclass(frozen=True)
class HasPlugin:
    """True when *plugin_id* is enabled."""

    plugin_id: str

    def evaluate(self, enabled_plugins: Collection[str]) -> bool:
        return self.plugin_id in enabled_plugins

    def __str__(self) -> str:
        return f"has:{self.plugin_id}"


@dataclass(frozen=True)
class NotHasPlugin:
    """True when *plugin_id* is not enabled."""

    plugin_id: str

    def evaluate(self, enabled_plugins: Collection[str]) -> bool:
        return self.plugin_id not in enabled_plugins

    def __str__(self) -> str:
        return f"!has:{self.plugin_id}"


Condition = Always | HasPlugin | NotHasPlugin

ALWAYS = Always()


def parse_condition(value: str | Condition | None) -> Condition:
    """Convert *value* into a structured condition.

    Args:
        value: ``None``, an existing condition, or a legacy string

    Returns:
        The equivalent condition object

    Raises:
        ValueError: If a string cannot be interpreted
    """
    if value is None:
        return ALWAYS
    if isinstance(value, (Always, HasPlugin, NotHasPlugin)):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported condition type: {type(value).__name__}")

    text = value.strip()
    if text in ("", "always"):
        return ALWAYS
    if text.startswith("!has:") and len(text) > 5:
        return NotHasPlugin(text[5:])
    if text.startswith("has:") and len(text) > 4:
        return HasPlugin(text[4:])
    raise ValueError(f"Invalid condition: '{value}'")
