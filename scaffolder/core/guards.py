"""Guard runner: precondition checks executed before and during scaffolding.

A guard is a small declarative check (tool version, command available,
file present, environment variable set, ...). Each check returns a
``GuardResult``; a failed result blocks generation only when the guard
is blocking, not optional, and the failure has ``error`` severity.
"""

from __future__ import annotations

import json
import os
import re
import subprocess
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import git
from packaging.version import InvalidVersion, Version

from scaffolder.output import MessageType, VerbosityLevel, message

GUARD_TYPES = (
    "version",
    "command",
    "file-exists",
    "file-missing",
    "env-var",
    "plugin",
    "dependency",
    "custom",
    "git-clean",
)

# Tools whose version flag differs from plain ``--version``
VERSION_COMMANDS: dict[str, list[str]] = {
    "node": ["node", "--version"],
    "bun": ["bun", "--version"],
    "npm": ["npm", "--version"],
    "pnpm": ["pnpm", "--version"],
    "yarn": ["yarn", "--version"],
}

CHECK_TIMEOUT = 5

_VERSION_RE = re.compile(r"(\d+(?:\.\d+)*)")


@dataclass
class GuardSpec:
    """Declarative precondition.

    Attributes:
        name: Display name
        type: One of ``GUARD_TYPES``
        config: Type-specific settings
        blocking: Failure with ``error`` severity stops generation
        optional: Failure never stops generation
        plugin_id: Plugin that declared the guard, if any
    """

    name: str
    type: str
    config: dict[str, Any] = field(default_factory=dict)
    blocking: bool = True
    optional: bool = False
    plugin_id: str | None = None


@dataclass
class GuardResult:
    guard: GuardSpec
    passed: bool
    message: str = ""
    severity: str = "info"
    suggestion: str | None = None

    @property
    def blocks(self) -> bool:
        return (
            not self.passed
            and self.severity == "error"
            and self.guard.blocking
            and not self.guard.optional
        )


@dataclass
class GuardEnvironment:
    """Everything a guard may look at."""

    project_path: Path
    enabled_plugins: Collection[str] = ()
    package_manager: str = "bun"
    env: Mapping[str, str] = field(default_factory=lambda: os.environ)


@dataclass
class GuardRunResult:
    passed: bool
    has_blocking: bool
    results: list[GuardResult]
    summary: str

    @property
    def failures(self) -> list[GuardResult]:
        return [r for r in self.results if r.blocks]


def node_version_guard(min_version: str = "18.0.0", *, optional: bool = False) -> GuardSpec:
    """Guard requiring Node.js *min_version* or newer."""
    return GuardSpec(
        name="Node.js Version Check",
        type="version",
        config={"tool": "node", "min_version": min_version},
        blocking=True,
        optional=optional,
    )


def parse_tool_version(output: str) -> Version:
    """Extract a version from tool output such as ``v20.11.0`` or ``git version 2.43.0``.

    Raises:
        InvalidVersion: If no version number can be found
    """
    match = _VERSION_RE.search(output)
    if match is None:
        raise InvalidVersion(f"no version found in '{output.strip()}'")
    return Version(match.group(1))


class GuardRunner:
    """Executes guard specs against a ``GuardEnvironment``."""

    def __init__(self, custom_checks: Mapping[str, Callable[..., GuardResult | bool]] | None = None):
        self.custom_checks: dict[str, Callable[..., GuardResult | bool]] = dict(custom_checks or {})
        self._checks: dict[str, Callable[[GuardSpec, GuardEnvironment], GuardResult]] = {
            "version": self._check_version,
            "command": self._check_command,
            "file-exists": self._check_file_exists,
            "file-missing": self._check_file_missing,
            "env-var": self._check_env_var,
            "plugin": self._check_plugin,
            "dependency": self._check_dependency,
            "custom": self._check_custom,
            "git-clean": self._check_git_clean,
        }

    def register_custom(self, name: str, check: Callable[..., GuardResult | bool]) -> None:
        self.custom_checks[name] = check

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------
    def run_guards(self, specs: list[GuardSpec], environment: GuardEnvironment) -> GuardRunResult:
        """Run every guard in *specs* and aggregate the results."""
        results: list[GuardResult] = []
        has_blocking = False

        for spec in specs:
            result = self.run_guard(spec, environment)
            results.append(result)

            if result.passed:
                message(f"Guard passed: {spec.name}", MessageType.DEBUG, VerbosityLevel.DEBUG)
            elif result.blocks:
                has_blocking = True
                message(f"Guard failed: {spec.name} - {result.message}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            elif result.severity in ("error", "warning"):
                message(f"Guard warning: {spec.name} - {result.message}", MessageType.WARNING, VerbosityLevel.ALWAYS)
            else:
                message(f"Guard info: {spec.name} - {result.message}", MessageType.INFO, VerbosityLevel.VERBOSE)

        summary = self.summarize(results)
        message(summary, MessageType.INFO, VerbosityLevel.VERBOSE)
        return GuardRunResult(
            passed=not has_blocking,
            has_blocking=has_blocking,
            results=results,
            summary=summary,
        )

    def run_guard(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        check = self._checks.get(spec.type)
        if check is None:
            return GuardResult(spec, False, f"Unknown guard type: {spec.type}", "error")
        try:
            return check(spec, environment)
        except Exception as e:
            return GuardResult(spec, False, f"Guard error: {e}", "error")

    @staticmethod
    def summarize(results: list[GuardResult]) -> str:
        passed = sum(1 for r in results if r.passed)
        failed = sum(1 for r in results if not r.passed and r.severity == "error")
        warnings = sum(1 for r in results if not r.passed and r.severity == "warning")
        return f"Guards: {passed} passed, {failed} failed, {warnings} warnings"

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def _check_version(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        tool = spec.config["tool"]
        command = VERSION_COMMANDS.get(tool, [tool, "--version"])

        try:
            proc = subprocess.run(command, capture_output=True, text=True, timeout=CHECK_TIMEOUT, check=False)
            if proc.returncode != 0:
                raise OSError(proc.stderr.strip() or f"exit code {proc.returncode}")
            current = parse_tool_version(proc.stdout)
        except (OSError, subprocess.TimeoutExpired, InvalidVersion) as e:
            return GuardResult(
                spec, False, f"Could not determine {tool} version ({e})", "error",
                suggestion=f"Ensure {tool} is installed and in your PATH",
            )

        min_version = spec.config.get("min_version")
        if min_version and current < Version(min_version):
            return GuardResult(
                spec, False, f"{tool} version {current} does not meet minimum {min_version}", "error",
                suggestion=f"Upgrade {tool} to {min_version} or later",
            )

        max_version = spec.config.get("max_version")
        if max_version and current > Version(max_version):
            return GuardResult(spec, False, f"{tool} version {current} exceeds maximum {max_version}", "warning")

        return GuardResult(spec, True, f"{tool} {current}")

    def _check_command(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        command = spec.config["command"]
        args = spec.config.get("args", ["--version"])
        expected = spec.config.get("exit_code", 0)

        try:
            proc = subprocess.run(
                [command, *args], capture_output=True, text=True, timeout=CHECK_TIMEOUT, check=False,
            )
        except (OSError, subprocess.TimeoutExpired):
            return GuardResult(
                spec, False, f"Command '{command}' is not available", "error",
                suggestion=f"Install {command} and ensure it's in your PATH",
            )

        if proc.returncode != expected:
            return GuardResult(
                spec, False, f"Command '{command}' returned exit code {proc.returncode}, expected {expected}", "error",
            )
        return GuardResult(spec, True)

    def _check_file_exists(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        rel = spec.config["path"]
        path = environment.project_path / rel
        if not path.exists():
            return GuardResult(
                spec, False, f"Required file not found: {rel}", "error", suggestion=f"Create the file at {rel}",
            )

        pattern = spec.config.get("content_pattern")
        if pattern and not re.search(pattern, path.read_text()):
            return GuardResult(spec, False, f"File {rel} does not contain required pattern", "warning")
        return GuardResult(spec, True)

    def _check_file_missing(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        rel = spec.config["path"]
        if (environment.project_path / rel).exists():
            return GuardResult(
                spec, False, f"File should not exist: {rel}", "warning",
                suggestion="Remove the file or skip this generator",
            )
        return GuardResult(spec, True)

    def _check_env_var(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        name = spec.config["name"]
        value = environment.env.get(name)
        if value is None:
            return GuardResult(
                spec, False, f"Environment variable '{name}' is not set", "error",
                suggestion=f"Set the environment variable: export {name}=<value>",
            )

        expected = spec.config.get("value")
        if expected is not None and value != expected:
            return GuardResult(
                spec, False, f"Environment variable '{name}' has value '{value}', expected '{expected}'", "warning",
            )

        pattern = spec.config.get("pattern")
        if pattern and not re.search(pattern, value):
            return GuardResult(spec, False, f"Environment variable '{name}' value does not match pattern", "warning")
        return GuardResult(spec, True)

    def _check_plugin(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        plugin_id = spec.config["plugin_id"]
        mode = spec.config.get("mode", "enabled")
        enabled = plugin_id in environment.enabled_plugins

        if mode == "enabled" and not enabled:
            return GuardResult(
                spec, False, f"Required plugin '{plugin_id}' is not enabled", "error",
                suggestion=f"Enable the '{plugin_id}' plugin in your configuration",
            )
        if mode == "disabled" and enabled:
            return GuardResult(spec, False, f"Plugin '{plugin_id}' should not be enabled", "warning")
        return GuardResult(spec, True)

    def _check_dependency(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        package = spec.config["package"]
        dev = spec.config.get("dev", False)
        manifest_path = environment.project_path / "package.json"

        if not manifest_path.exists():
            return GuardResult(
                spec, False, f"package.json not found at {manifest_path}", "error",
                suggestion="Initialize the project with a package.json first",
            )

        try:
            data = json.loads(manifest_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            return GuardResult(spec, False, f"Failed to read package.json: {e}", "error")

        section = data.get("devDependencies" if dev else "dependencies", {})
        declared = section.get(package)
        if not declared:
            flag = "-D " if dev else ""
            return GuardResult(
                spec, False, f"Package '{package}' is not installed", "error",
                suggestion=f"Install with: {environment.package_manager} add {flag}{package}",
            )

        min_version = spec.config.get("min_version")
        if min_version:
            try:
                ok = parse_tool_version(declared) >= Version(min_version)
            except InvalidVersion:
                ok = False
            if not ok:
                return GuardResult(
                    spec, False,
                    f"Package '{package}' version {declared} does not satisfy minimum {min_version}", "warning",
                )
        return GuardResult(spec, True)

    def _check_custom(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        name = spec.config["fn"]
        check = self.custom_checks.get(name)
        if check is None:
            return GuardResult(spec, False, f"Custom guard function '{name}' not found", "error")

        try:
            outcome = check(spec.config.get("args", []), environment)
        except Exception as e:
            return GuardResult(spec, False, f"Custom guard '{name}' raised: {e}", "error")

        if isinstance(outcome, GuardResult):
            return outcome
        if outcome:
            return GuardResult(spec, True)
        return GuardResult(spec, False, f"Custom guard '{name}' failed", "error")

    def _check_git_clean(self, spec: GuardSpec, environment: GuardEnvironment) -> GuardResult:
        try:
            repo = git.Repo(environment.project_path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return GuardResult(spec, True, "Not a git repository")

        if repo.is_dirty(untracked_files=spec.config.get("untracked", False)):
            return GuardResult(
                spec, False, f"Git working tree at {repo.working_dir} has uncommitted changes",
                spec.config.get("severity", "warning"),
                suggestion="Commit or stash your changes first",
            )
        return GuardResult(spec, True)
