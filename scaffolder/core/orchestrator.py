"""Generation orchestrator: the multi-phase scaffold pipeline.

A single ``scaffold()`` call runs these phases strictly in order:

1. resolve the plugin set (with transitive dependencies)
2. pre-scaffold guards, before anything is written
3. collect contributions from each plugin's generator
4. plugin guards
5. one-shot setup commands
6. merge contributions by path and write files
7. baseline project files
8. package manifest

Any phase may fail; the run is then marked unsuccessful, the error is
appended to ``warnings`` and everything gathered so far is returned.
Files already written are not rolled back.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from scaffolder.core.catalog import PluginCatalog
from scaffolder.core.commands import CommandResult, CommandRunner, CommandSpec
from scaffolder.core.conditions import parse_condition
from scaffolder.core.contributions import (
    FileContribution,
    get_default_merge_strategy,
    group_by_path,
    merge_contributions,
)
from scaffolder.core.core_files import core_file_templates, core_template_data
from scaffolder.core.defaults import ScaffoldDefaults
from scaffolder.core.errors import (
    CommandError,
    GeneratorError,
    GuardFailedError,
    PluginResolutionError,
    ScaffoldError,
    ScaffoldIOError,
)
from scaffolder.core.filesystem import FileSystem
from scaffolder.core.guards import GuardEnvironment, GuardResult, GuardRunner, GuardSpec, node_version_guard
from scaffolder.core.manifest import dump_manifest, manifest_path, read_manifest, record_file
from scaffolder.core.merger_registry import MergerRegistry
from scaffolder.core.mergers import create_default_merger_registry
from scaffolder.core.package_manifest import build_package_manifest
from scaffolder.core.project import ProjectConfig
from scaffolder.core.resolver import PluginResolver
from scaffolder.core.safety import check_clobber, should_overwrite
from scaffolder.core.templates import TemplateRenderer
from scaffolder.output import MessageType, VerbosityLevel, message
from scaffolder.plugins.generators import GENERATORS, AbstractGenerator, GeneratorContext
from scaffolder.plugins.generators.generator import DependencySpec, ScriptSpec

MIN_NODE_VERSION = "18.0.0"

# Extra environment requirements per app type
APP_TYPE_GUARDS: Mapping[str, tuple[GuardSpec, ...]] = {
    "nextjs": (node_version_guard("20.0.0"),),
}

CORE_OWNER = "core"


@dataclass
class ScaffoldOptions:
    """Per-run switches.

    Attributes:
        output_path: Project root to generate into
        dry_run: Compute everything but write nothing and run no commands
        overwrite: Regenerate baseline files that already exist
        force: Overwrite even files with unrecoverable local changes, and
            proceed when the only resolution problems are conflicts
        only_plugins: When set, only these plugins contribute output; the
            rest of the resolved set is still visible to generators
    """

    output_path: Path
    dry_run: bool = False
    overwrite: bool = False
    force: bool = False
    only_plugins: tuple[str, ...] | None = None


@dataclass
class PluginResult:
    """What a single plugin contributed."""

    plugin_id: str
    files: list[str] = field(default_factory=list)
    dependencies: list[DependencySpec] = field(default_factory=list)
    scripts: list[ScriptSpec] = field(default_factory=list)
    commands: list[CommandSpec] = field(default_factory=list)
    guards: list[GuardSpec] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class ScaffoldResult:
    """Outcome of one ``scaffold()`` call.

    ``files`` holds the final (or, under dry-run, would-be) content of
    every generated path.
    """

    output_path: Path
    success: bool = True
    dry_run: bool = False
    plugins: list[str] = field(default_factory=list)
    auto_enabled: list[str] = field(default_factory=list)
    plugin_results: dict[str, PluginResult] = field(default_factory=dict)
    files: dict[str, str] = field(default_factory=dict)
    files_created: list[str] = field(default_factory=list)
    files_modified: list[str] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)
    dependencies: list[DependencySpec] = field(default_factory=list)
    scripts: list[ScriptSpec] = field(default_factory=list)
    guard_results: list[GuardResult] = field(default_factory=list)
    command_results: list[CommandResult] = field(default_factory=list)
    package_manifest: dict[str, Any] | None = None
    warnings: list[str] = field(default_factory=list)
    error_kind: str | None = None
    duration: float = 0.0


@dataclass
class _RunState:
    """Mutable per-run data shared between phases."""

    config: ProjectConfig
    options: ScaffoldOptions
    defaults: ScaffoldDefaults
    result: ScaffoldResult
    context: GeneratorContext | None = None
    contributions: list[FileContribution] = field(default_factory=list)
    commands: list[CommandSpec] = field(default_factory=list)
    guards: list[GuardSpec] = field(default_factory=list)
    owners: dict[str, list[str]] = field(default_factory=dict)


class GeneratorOrchestrator:
    """Drives a scaffold run over a plugin catalog and generator table."""

    def __init__(
        self,
        catalog: PluginCatalog,
        *,
        fs: FileSystem | None = None,
        renderer: TemplateRenderer | None = None,
        guard_runner: GuardRunner | None = None,
        command_runner: CommandRunner | None = None,
        generators: Mapping[str, AbstractGenerator] = GENERATORS,
        defaults: ScaffoldDefaults | None = None,
        merger_registry: MergerRegistry | None = None,
    ):
        self.catalog = catalog
        self.fs = fs or FileSystem()
        self.renderer = renderer or TemplateRenderer()
        self.guard_runner = guard_runner or GuardRunner()
        self.command_runner = command_runner or CommandRunner()
        self.generators = generators
        self.defaults = defaults or ScaffoldDefaults()
        self.merger_registry = merger_registry or create_default_merger_registry()

    def scaffold(self, config: ProjectConfig, options: ScaffoldOptions) -> ScaffoldResult:
        """Run the full pipeline for *config*.

        Args:
            config: Resolved project configuration
            options: Output location and run switches

        Returns:
            A ``ScaffoldResult``; ``success`` is False if any phase failed
        """
        started = time.monotonic()
        result = ScaffoldResult(output_path=options.output_path, dry_run=options.dry_run)
        state = _RunState(
            config=config,
            options=options,
            defaults=self.defaults.with_overrides(config.defaults),
            result=result,
        )

        mode = " (dry run)" if options.dry_run else ""
        message(f"\n=== Scaffolding '{config.name}'{mode} ===", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        try:
            self._resolve(state)
            self._run_pre_scaffold_guards(state)
            self._collect_contributions(state)
            self._run_plugin_guards(state)
            self._run_commands(state)
            self._merge_and_write(state)
            self._generate_core_files(state)
            self._generate_package_manifest(state)
            self._record_ownership(state)
        except ScaffoldError as e:
            self._fail(result, str(e), e.kind)
        except Exception as e:
            self._fail(result, f"Unexpected error: {e}", "scaffold")

        result.duration = time.monotonic() - started
        return result

    @staticmethod
    def _fail(result: ScaffoldResult, text: str, kind: str) -> None:
        result.success = False
        result.error_kind = kind
        result.warnings.append(text)
        message(f"Scaffold failed: {text}", MessageType.ERROR, VerbosityLevel.ALWAYS)

    # ------------------------------------------------------------------
    # Phase 1: resolve
    # ------------------------------------------------------------------
    def _resolve(self, state: _RunState) -> None:
        resolver = PluginResolver(self.catalog, state.defaults.warning_pairings)
        requested = state.config.all_plugin_ids()
        resolution = resolver.auto_resolve(requested)

        if not resolution.valid:
            only_conflicts = not (resolution.unresolved or resolution.missing_dependencies)
            if not (state.options.force and only_conflicts):
                raise PluginResolutionError("Plugin resolution failed: " + "; ".join(resolution.problems()))
            state.result.warnings.extend(f"Ignored: {problem}" for problem in resolution.problems())

        result = state.result
        result.plugins = list(resolution.resolved)
        pre_enabled = [p for p in state.config.auto_enabled_plugins if p not in state.config.plugin_ids]
        result.auto_enabled = list(dict.fromkeys([*pre_enabled, *resolution.auto_enabled]))
        result.warnings.extend(resolver.generate_warnings(result.plugins))

        message(f"Plugins: {', '.join(result.plugins)}", MessageType.INFO, VerbosityLevel.VERBOSE)

    # ------------------------------------------------------------------
    # Phase 2 and 4: guards
    # ------------------------------------------------------------------
    def _guard_environment(self, state: _RunState) -> GuardEnvironment:
        return GuardEnvironment(
            project_path=state.options.output_path,
            enabled_plugins=tuple(state.result.plugins),
            package_manager=state.config.package_manager,
        )

    def _run_guard_phase(self, state: _RunState, specs: list[GuardSpec], label: str) -> None:
        if not specs:
            return
        outcome = self.guard_runner.run_guards(specs, self._guard_environment(state))
        state.result.guard_results.extend(outcome.results)

        for guard_result in outcome.results:
            if not guard_result.passed and not guard_result.blocks:
                state.result.warnings.append(f"{guard_result.guard.name}: {guard_result.message}")

        if outcome.has_blocking:
            failures = outcome.failures
            details = "; ".join(f"{r.guard.name}: {r.message}" for r in failures)
            raise GuardFailedError(f"{label} guards failed: {details}", failures)

    def _run_pre_scaffold_guards(self, state: _RunState) -> None:
        specs = [node_version_guard(MIN_NODE_VERSION)]
        if state.config.app_type:
            specs.extend(APP_TYPE_GUARDS.get(state.config.app_type, ()))
        self._run_guard_phase(state, specs, "Pre-scaffold")

    def _run_plugin_guards(self, state: _RunState) -> None:
        self._run_guard_phase(state, state.guards, "Plugin")

    # ------------------------------------------------------------------
    # Phase 3: collect contributions
    # ------------------------------------------------------------------
    def _collect_contributions(self, state: _RunState) -> None:
        result = state.result
        enabled = tuple(result.plugins)
        ctx = GeneratorContext(
            project=state.config,
            project_path=state.options.output_path,
            enabled_plugins=enabled,
            dry_run=state.options.dry_run,
            versions=state.defaults.versions,
        )
        state.context = ctx
        template_data = ctx.template_data()
        script_owners: dict[str, str] = {}
        dependency_versions: dict[str, tuple[str, str]] = {}

        for plugin_id in enabled:
            if state.options.only_plugins is not None and plugin_id not in state.options.only_plugins:
                continue

            plugin_result = PluginResult(plugin_id)
            result.plugin_results[plugin_id] = plugin_result

            generator = self.generators.get(plugin_id)
            if generator is None:
                message(f"No generator for '{plugin_id}'", MessageType.DEBUG, VerbosityLevel.DEBUG)
                continue

            message(f"Collecting contributions from {plugin_id}", MessageType.INFO, VerbosityLevel.VERBOSE)
            priority = state.defaults.priority_for(plugin_id)

            try:
                file_specs = generator.get_files(ctx)
                dependencies = generator.get_dependencies(ctx)
                scripts = generator.get_scripts(ctx)
                commands = generator.get_commands(ctx)
                guards = generator.get_guards(ctx)
            except ScaffoldError:
                raise
            except Exception as e:
                raise GeneratorError(f"Generator for '{plugin_id}' failed: {e}", plugin_id=plugin_id) from e

            for spec in file_specs:
                try:
                    condition = parse_condition(spec.condition)
                except ValueError as e:
                    raise GeneratorError(f"Plugin '{plugin_id}' file {spec.path}: {e}", plugin_id=plugin_id) from e
                if not condition.evaluate(enabled):
                    message(
                        f"  Skipping {spec.path} from {plugin_id} ({condition})",
                        MessageType.DEBUG,
                        VerbosityLevel.DEBUG,
                    )
                    continue

                content = self.renderer.render(spec.content, template_data) if spec.template else spec.content
                contribution = FileContribution(
                    plugin_id=plugin_id,
                    path=spec.path,
                    content=content,
                    merge_strategy=spec.merge_strategy or get_default_merge_strategy(spec.path, self.merger_registry),
                    priority=spec.priority if spec.priority is not None else priority,
                    marker=spec.marker,
                    section=spec.section,
                    ast_transform=spec.ast_transform,
                    condition=condition,
                    skip_if_exists=spec.skip_if_exists,
                )
                state.contributions.append(contribution)
                ctx.existing_contributions.setdefault(spec.path, []).append(contribution)
                if spec.path not in plugin_result.files:
                    plugin_result.files.append(spec.path)

            for dep in dependencies:
                previous = dependency_versions.get(dep.name)
                if previous and previous[1] != dep.version:
                    plugin_result.warnings.append(
                        f"Dependency '{dep.name}' {dep.version} from {plugin_id} "
                        f"overrides {previous[1]} from {previous[0]}"
                    )
                dependency_versions[dep.name] = (plugin_id, dep.version)
                plugin_result.dependencies.append(dep)
                result.dependencies.append(dep)

            for script in scripts:
                owner = script_owners.get(script.name)
                if owner and owner != plugin_id:
                    plugin_result.warnings.append(f"Script '{script.name}' from {plugin_id} overrides {owner}")
                script_owners[script.name] = plugin_id
                plugin_result.scripts.append(script)
                result.scripts.append(script)

            for command in commands:
                if parse_condition(command.condition).evaluate(enabled):
                    command = replace(command, plugin_id=command.plugin_id or plugin_id)
                    plugin_result.commands.append(command)
                    state.commands.append(command)

            for guard in guards:
                guard = replace(guard, plugin_id=guard.plugin_id or plugin_id)
                plugin_result.guards.append(guard)
                state.guards.append(guard)

            result.warnings.extend(plugin_result.warnings)

        message(
            f"Collected {len(state.contributions)} contribution(s) for "
            f"{len(ctx.existing_contributions)} file(s)",
            MessageType.INFO,
            VerbosityLevel.VERBOSE,
        )

    # ------------------------------------------------------------------
    # Phase 5: setup commands
    # ------------------------------------------------------------------
    def _run_commands(self, state: _RunState) -> None:
        if not state.commands:
            return
        if not state.options.dry_run:
            self.fs.ensure_dir(state.options.output_path)

        results = self.command_runner.run_all(state.commands, state.options.output_path, state.options.dry_run)
        state.result.command_results.extend(results)

        for command_result in results:
            if command_result.success or command_result.skipped:
                continue
            if command_result.spec.critical:
                raise CommandError(
                    f"Required command '{command_result.spec.name}' failed: {command_result.error}",
                    plugin_id=command_result.spec.plugin_id,
                )
            state.result.warnings.append(f"Command '{command_result.spec.name}' failed: {command_result.error}")

    # ------------------------------------------------------------------
    # Phase 6: merge and write
    # ------------------------------------------------------------------
    def _merge_and_write(self, state: _RunState) -> None:
        result = state.result
        output = state.options.output_path
        if not state.options.dry_run:
            self.fs.ensure_dir(output)

        for path, items in group_by_path(state.contributions).items():
            target = output / path
            existed = self.fs.exists(target)

            if existed:
                items = [c for c in items if not c.skip_if_exists]
                if not items:
                    result.files_skipped.append(path)
                    message(f"  Skipped {path} (exists)", MessageType.INFO, VerbosityLevel.VERBOSE)
                    continue

            existing = self.fs.read_file(target) if existed else None
            merged = merge_contributions(items, existing, self.merger_registry)
            result.warnings.extend(merged.errors)
            result.files[path] = merged.content
            state.owners[path] = merged.contributors

            if not state.options.dry_run:
                self.fs.write_file(target, merged.content)

            if existed:
                result.files_modified.append(path)
                message(f"  Modified {path}", MessageType.NORMAL, VerbosityLevel.VERBOSE)
            else:
                result.files_created.append(path)
                message(f"  Created {path}", MessageType.NORMAL, VerbosityLevel.VERBOSE)

    # ------------------------------------------------------------------
    # Phase 7: baseline files
    # ------------------------------------------------------------------
    def _generate_core_files(self, state: _RunState) -> None:
        result = state.result
        output = state.options.output_path
        data = {**state.context.template_data(), **core_template_data(state.config)}
        ownership = read_manifest(output)

        for path, source in core_file_templates(state.config):
            # Plugin output for the same path wins
            if path in result.files:
                continue

            target = output / path
            existed = self.fs.exists(target)
            if existed:
                if not state.options.overwrite:
                    result.files_skipped.append(path)
                    continue
                clobber = check_clobber(path, output, ownership)
                if not should_overwrite(clobber, force=state.options.force):
                    result.files_skipped.append(path)
                    result.warnings.append(f"Not overwriting {path}: {clobber.reason}")
                    continue

            content = self.renderer.render(source, data)
            result.files[path] = content
            state.owners[path] = [CORE_OWNER]
            if not state.options.dry_run:
                self.fs.write_file(target, content)
            (result.files_modified if existed else result.files_created).append(path)

    # ------------------------------------------------------------------
    # Phase 8: package manifest
    # ------------------------------------------------------------------
    def _generate_package_manifest(self, state: _RunState) -> None:
        result = state.result
        target = state.options.output_path / "package.json"
        existed = self.fs.exists(target)

        existing = None
        # Plugin contributions merged earlier are not on disk under dry-run
        merged = result.files.get("package.json")
        if merged is not None or existed:
            try:
                existing = json.loads(merged if merged is not None else self.fs.read_file(target))
            except (ScaffoldIOError, json.JSONDecodeError) as e:
                result.warnings.append(f"Ignoring unreadable package.json: {e}")
            if existing is not None and not isinstance(existing, dict):
                result.warnings.append(
                    f"Ignoring unreadable package.json: expected an object, got {type(existing).__name__}"
                )
                existing = None

        manifest = build_package_manifest(state.config, result.dependencies, result.scripts, existing)
        result.package_manifest = manifest
        result.files["package.json"] = json.dumps(manifest, indent=2) + "\n"
        state.owners["package.json"] = [CORE_OWNER]

        if not state.options.dry_run:
            self.fs.write_manifest(target, manifest)
        if "package.json" not in result.files_created and "package.json" not in result.files_modified:
            (result.files_modified if existed else result.files_created).append("package.json")

    def _record_ownership(self, state: _RunState) -> None:
        if state.options.dry_run:
            return
        output = state.options.output_path
        ownership = read_manifest(output)
        for path, owners in state.owners.items():
            record_file(ownership, path, owners, state.result.files[path])
        ownership["plugins"] = list(state.result.plugins)
        self.fs.write_file(manifest_path(output), dump_manifest(ownership))
