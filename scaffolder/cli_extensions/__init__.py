"""CLI command extensions for scaffolder."""

from .create_commands import CreateCommands
from .info_commands import InfoCommands
from .plugin_commands import PluginCommands
from .project_commands import ProjectCommands

__all__ = [
    "CreateCommands",
    "InfoCommands",
    "PluginCommands",
    "ProjectCommands",
]
