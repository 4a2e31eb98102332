#!/usr/bin/env python

"""Plugin-based project scaffolder."""

import argparse
import sys

from scaffolder.cli_extensions import CreateCommands, InfoCommands, PluginCommands, ProjectCommands
from scaffolder.config import ConfigError
from scaffolder.core.errors import ScaffoldError
from scaffolder.core.loader import load_plugins
from scaffolder.output import MessageType, VerbosityLevel, get_output, message

# Grouped command help text
COMMAND_GROUPS = """
project commands:
  create              Create a new project
  add                 Add a plugin to an existing project
  remove              Remove a plugin from an existing project
  validate            Validate the project configuration

discovery commands:
  list                List plugins, templates, categories or app types
  info                Show version, environment or project information
"""


class GroupedHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Formatter that lists commands in the epilog instead of as choices."""

    def _metavar_formatter(self, action, default_metavar):
        if action.choices is not None and isinstance(action, argparse._SubParsersAction):
            result = action.metavar if action.metavar is not None else ""

            def format_fn(tuple_size):
                if isinstance(result, tuple):
                    return result
                return (result,) * tuple_size

            return format_fn
        return super()._metavar_formatter(action, default_metavar)

    def _format_action(self, action):
        if isinstance(action, argparse._SubParsersAction):
            return ""
        return super()._format_action(action)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scaffolder",
        description="Generate and extend projects from composable plugins",
        formatter_class=GroupedHelpFormatter,
        epilog=COMMAND_GROUPS,
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v, -vv, -vvv)",
    )
    parser.add_argument(
        "--no-color", action="store_true",
        help="Disable colored output",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    CreateCommands.add_cli_arguments(subparsers)   # create
    PluginCommands.add_cli_arguments(subparsers)   # add + remove
    ProjectCommands.add_cli_arguments(subparsers)  # validate
    InfoCommands.add_cli_arguments(subparsers)     # list + info
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the scaffolder CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    output_mgr = get_output()
    output_mgr.verbosity = args.verbose
    output_mgr.use_color = not args.no_color and sys.stdout.isatty()

    message(f"Verbosity level: {args.verbose}", MessageType.DEBUG, VerbosityLevel.DEBUG)
    message(f"Command: {args.command}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    if args.command is None:
        parser.print_help()
        return

    try:
        plugins = load_plugins()

        if args.command == "create":
            CreateCommands(plugins).process_cli_command(args)
        elif args.command in ("add", "remove"):
            PluginCommands(plugins).process_cli_command(args)
        elif args.command == "validate":
            ProjectCommands(plugins).process_cli_command(args)
        elif args.command in ("list", "info"):
            InfoCommands(plugins).process_cli_command(args)
        else:
            parser.print_help()
            sys.exit(1)
    except (ScaffoldError, ConfigError) as e:
        message(str(e), MessageType.ERROR, VerbosityLevel.ALWAYS)
        sys.exit(1)
    except KeyboardInterrupt:
        message("\nInterrupted", MessageType.WARNING, VerbosityLevel.ALWAYS)
        sys.exit(1)


if __name__ == "__main__":
    main()
