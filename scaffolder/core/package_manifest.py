"""Build the project's ``package.json`` from collected declarations."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from scaffolder.core.project import ProjectConfig
from scaffolder.core.templates import kebab_case
from scaffolder.plugins.generators.generator import DependencySpec, ScriptSpec

PACKAGE_VERSION = "0.1.0"

DEPENDENCY_SECTIONS = {
    "prod": "dependencies",
    "dev": "devDependencies",
    "peer": "peerDependencies",
}


def group_dependencies(dependencies: Iterable[DependencySpec]) -> dict[str, dict[str, str]]:
    """Group dependencies by manifest section, sorted by package name."""
    grouped: dict[str, dict[str, str]] = {section: {} for section in DEPENDENCY_SECTIONS.values()}
    for dep in dependencies:
        grouped[DEPENDENCY_SECTIONS[dep.type]][dep.name] = dep.version
    return {section: dict(sorted(deps.items())) for section, deps in grouped.items()}


def _section(existing: dict[str, Any], key: str) -> dict[str, Any]:
    value = existing.get(key)
    return value if isinstance(value, dict) else {}


def build_package_manifest(
    project: ProjectConfig,
    dependencies: Iterable[DependencySpec],
    scripts: Iterable[ScriptSpec],
    existing: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Assemble ``package.json`` content.

    When *existing* is given (re-running over a project), its identity
    fields, extra keys, scripts and pinned versions are kept and only new
    entries are added.

    Args:
        project: Resolved project configuration
        dependencies: All collected dependency declarations
        scripts: All collected scripts
        existing: Current ``package.json`` content, if any

    Returns:
        Manifest dictionary ready to serialise
    """
    manifest: dict[str, Any] = {
        "name": kebab_case(project.name),
        "version": PACKAGE_VERSION,
        "private": True,
    }
    if project.description:
        manifest["description"] = project.description
    if project.author:
        manifest["author"] = project.author
    manifest["license"] = project.license or "MIT"

    manifest["scripts"] = {script.name: script.command for script in scripts}
    for section, deps in group_dependencies(dependencies).items():
        if deps:
            manifest[section] = deps

    if not existing:
        return manifest

    merged = {**manifest, **{k: v for k, v in existing.items() if k not in ("scripts", *DEPENDENCY_SECTIONS.values())}}
    merged["scripts"] = {**manifest.get("scripts", {}), **_section(existing, "scripts")}
    for section in DEPENDENCY_SECTIONS.values():
        combined = {**manifest.get(section, {}), **_section(existing, section)}
        if combined:
            merged[section] = dict(sorted(combined.items()))
    return merged
