"""One-shot setup commands declared by plugins (``shadcn init``, ``prisma init``...)."""

from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path

from scaffolder.core.conditions import ALWAYS, Condition
from scaffolder.output import MessageType, VerbosityLevel, message

DEFAULT_TIMEOUT = 300
DEFAULT_COMMAND_PRIORITY = 100


@dataclass
class CommandSpec:
    """A command a plugin wants run after its files are collected.

    Attributes:
        name: Display name
        command: Executable to run
        args: Arguments
        cwd: Working directory relative to the project root
        env: Extra environment variables
        timeout: Seconds before the command is killed
        critical: A failure stops the scaffold run
        priority: Lower runs first
        plugin_id: Declaring plugin
        condition: Predicate over the enabled plugin set
    """

    name: str
    command: str
    args: list[str] = field(default_factory=list)
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    critical: bool = False
    priority: int = DEFAULT_COMMAND_PRIORITY
    plugin_id: str | None = None
    condition: Condition = ALWAYS

    def display(self) -> str:
        return " ".join([self.command, *self.args])


@dataclass
class CommandResult:
    spec: CommandSpec
    success: bool
    skipped: bool = False
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    error: str | None = None


class CommandRunner:
    """Runs ``CommandSpec`` lists sequentially."""

    def run(self, spec: CommandSpec, project_path: Path) -> CommandResult:
        """Run a single command and capture its outcome."""
        cwd = project_path / spec.cwd if spec.cwd else project_path
        env = {**os.environ, **spec.env}
        started = time.monotonic()

        message(f"Running: {spec.display()}", MessageType.INFO, VerbosityLevel.VERBOSE)
        try:
            proc = subprocess.run(
                [spec.command, *spec.args],
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=spec.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                spec, False, duration=time.monotonic() - started,
                error=f"'{spec.display()}' timed out after {spec.timeout}s",
            )
        except OSError as e:
            return CommandResult(
                spec, False, duration=time.monotonic() - started,
                error=f"'{spec.display()}' could not be started: {e}",
            )

        result = CommandResult(
            spec,
            success=proc.returncode == 0,
            exit_code=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
            duration=time.monotonic() - started,
        )
        if not result.success:
            detail = proc.stderr.strip().splitlines()[-1] if proc.stderr.strip() else ""
            result.error = f"'{spec.display()}' exited with code {proc.returncode}"
            if detail:
                result.error += f": {detail}"
        return result

    def run_all(self, specs: list[CommandSpec], project_path: Path, dry_run: bool = False) -> list[CommandResult]:
        """Run *specs* in priority order.

        Under *dry_run* nothing is executed and every command is reported
        as skipped. Execution stops after the first critical failure.

        Returns:
            One result per command that was run or skipped
        """
        ordered = sorted(specs, key=lambda s: s.priority)
        results: list[CommandResult] = []

        for spec in ordered:
            if dry_run:
                message(f"Would run: {spec.display()}", MessageType.INFO, VerbosityLevel.VERBOSE)
                results.append(CommandResult(spec, True, skipped=True))
                continue

            result = self.run(spec, project_path)
            results.append(result)
            if result.success:
                message(f"✓ {spec.name}", MessageType.SUCCESS, VerbosityLevel.VERBOSE)
                continue

            message(f"✗ {spec.name}: {result.error}", MessageType.WARNING, VerbosityLevel.ALWAYS)
            if spec.critical:
                break

        return results
