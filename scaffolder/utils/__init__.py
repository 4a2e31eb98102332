"""Utility functions for scaffolder."""

from .discovery import discover_external_plugins, load_plugin_class

__all__ = ["discover_external_plugins", "load_plugin_class"]
