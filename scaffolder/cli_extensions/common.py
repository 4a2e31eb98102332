"""Helpers shared by the CLI command classes."""

import sys
from pathlib import Path

from scaffolder.config import Config, detect_project_root
from scaffolder.core.commands import CommandRunner, CommandSpec
from scaffolder.core.orchestrator import ScaffoldResult
from scaffolder.output import MessageType, VerbosityLevel, message

INSTALL_TIMEOUT = 600


def fail(text: str) -> None:
    """Report an unrecoverable error and exit with status 1."""
    message(text, MessageType.ERROR, VerbosityLevel.ALWAYS)
    sys.exit(1)


def confirm(question: str, default: bool = True) -> bool:
    """Ask a yes/no question on stdin.

    An empty answer or a closed stdin returns *default*.
    """
    suffix = "[Y/n]" if default else "[y/N]"
    try:
        answer = input(f"{question} {suffix} ").strip().lower()
    except EOFError:
        return default
    if not answer:
        return default
    return answer in ("y", "yes")


def require_project(cwd: str | None) -> tuple[Path, Config]:
    """Locate the project around *cwd* and its configuration, or exit."""
    start = Path(cwd) if cwd else Path.cwd()
    root = detect_project_root(start)
    if root is None:
        fail(f"Could not find a project at or above {start}. Run 'scaffolder create' first.")

    config = Config(root)
    if not config.exists():
        fail(f"No scaffold.yaml found in {root}. Run 'scaffolder create' first.")
    return root, config


def install_dependencies(project_path: Path, package_manager: str) -> bool:
    """Run ``<package_manager> install``; a failure is only a warning."""
    spec = CommandSpec(
        name="install dependencies",
        command=package_manager,
        args=["install"],
        timeout=INSTALL_TIMEOUT,
        critical=False,
    )
    message(f"Installing dependencies with {package_manager}...", MessageType.INFO, VerbosityLevel.ALWAYS)
    result = CommandRunner().run(spec, project_path)
    if result.success:
        message("Dependencies installed", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        return True
    message(
        f"Dependency install failed: {result.error}. Run '{spec.display()}' manually.",
        MessageType.WARNING,
        VerbosityLevel.ALWAYS,
    )
    return False


def print_result(result: ScaffoldResult) -> None:
    """Print the file and warning summary of a scaffold run."""
    prefix = "Would create" if result.dry_run else "Created"
    for path in result.files_created:
        message(f"  {prefix}: {path}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    prefix = "Would modify" if result.dry_run else "Modified"
    for path in result.files_modified:
        message(f"  {prefix}: {path}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    for path in result.files_skipped:
        message(f"  Skipped: {path}", MessageType.INFO, VerbosityLevel.VERBOSE)

    if result.auto_enabled:
        message(f"Auto-enabled: {', '.join(result.auto_enabled)}", MessageType.INFO, VerbosityLevel.ALWAYS)

    for warning in result.warnings:
        message(f"Warning: {warning}", MessageType.WARNING, VerbosityLevel.ALWAYS)

    message(
        f"{len(result.files_created)} created, {len(result.files_modified)} modified, "
        f"{len(result.files_skipped)} skipped in {result.duration:.2f}s",
        MessageType.INFO,
        VerbosityLevel.VERBOSE,
    )
