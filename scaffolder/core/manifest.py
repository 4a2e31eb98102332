"""Ownership manifest: which plugins produced which files.

Each scaffolded project gets a ``.scaffolder/manifest`` YAML file that
lists every generated file with the plugins that contributed to it and
a content hash taken when it was written. ``remove`` uses it to find the
files a plugin owns and to tell whether the user has edited them.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from scaffolder.output import MessageType, VerbosityLevel, message

MANIFEST_DIR = ".scaffolder"
MANIFEST_FILE = "manifest"


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def file_hash(path: Path) -> str:
    """SHA-256 of a file on disk, or ``""`` when it cannot be read."""
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError:
        return ""


def empty_manifest() -> dict[str, Any]:
    return {"generated_at": None, "plugins": [], "files": []}


def manifest_path(project_path: Path) -> Path:
    return project_path / MANIFEST_DIR / MANIFEST_FILE


def read_manifest(project_path: Path) -> dict[str, Any]:
    """Load the manifest, returning an empty one when missing or unreadable."""
    path = manifest_path(project_path)
    if not path.exists():
        return empty_manifest()

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        message(f"Warning: could not read manifest at {path}: {exc}", MessageType.WARNING, VerbosityLevel.ALWAYS)
        return empty_manifest()

    if not isinstance(data, dict):
        return empty_manifest()
    data.setdefault("generated_at", None)
    data.setdefault("plugins", [])
    data.setdefault("files", [])
    return data


def dump_manifest(manifest: dict[str, Any]) -> str:
    """Stamp ``generated_at`` and serialise *manifest* to YAML."""
    manifest["generated_at"] = datetime.now(tz=UTC).isoformat(timespec="seconds")
    return yaml.dump(manifest, default_flow_style=False, sort_keys=False)


def write_manifest(project_path: Path, manifest: dict[str, Any]) -> None:
    """Stamp ``generated_at`` and write the manifest under *project_path*."""
    path = manifest_path(project_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_manifest(manifest))
    message(f"Manifest written to {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)


# ------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------
def find_entry(manifest: dict[str, Any], file_name: str) -> dict[str, Any] | None:
    return next((e for e in manifest.get("files", []) if e.get("name") == file_name), None)


def is_managed(manifest: dict[str, Any], file_name: str) -> bool:
    return find_entry(manifest, file_name) is not None


def files_owned_by(manifest: dict[str, Any], plugin_id: str) -> list[str]:
    """Files that only *plugin_id* contributed to."""
    return [e["name"] for e in manifest.get("files", []) if e.get("plugins") == [plugin_id]]


def is_unmodified(manifest: dict[str, Any], project_path: Path, file_name: str) -> bool:
    """True when the file on disk still matches the hash recorded at write time."""
    entry = find_entry(manifest, file_name)
    if entry is None or not entry.get("hash"):
        return False
    return file_hash(project_path / file_name) == entry["hash"]


# ------------------------------------------------------------------
# Updates
# ------------------------------------------------------------------
def record_file(manifest: dict[str, Any], file_name: str, plugin_ids: list[str], content: str) -> None:
    """Record that *plugin_ids* produced *content* at *file_name*.

    Plugins already listed for the file are kept; new ones are appended.
    """
    entry = find_entry(manifest, file_name)
    if entry is None:
        manifest.setdefault("files", []).append({
            "name": file_name,
            "plugins": list(dict.fromkeys(plugin_ids)),
            "hash": content_hash(content),
        })
        return

    plugins = entry.setdefault("plugins", [])
    for plugin_id in plugin_ids:
        if plugin_id not in plugins:
            plugins.append(plugin_id)
    entry["hash"] = content_hash(content)


def forget_plugin(manifest: dict[str, Any], plugin_id: str) -> list[str]:
    """Drop *plugin_id* from every entry and from the plugin list.

    Entries left with no plugins are removed.

    Returns:
        Names of the entries that were removed entirely
    """
    orphaned: list[str] = []
    kept: list[dict[str, Any]] = []
    for entry in manifest.get("files", []):
        plugins = [p for p in entry.get("plugins", []) if p != plugin_id]
        if plugins:
            entry["plugins"] = plugins
            kept.append(entry)
        else:
            orphaned.append(entry["name"])
    manifest["files"] = kept
    manifest["plugins"] = [p for p in manifest.get("plugins", []) if p != plugin_id]
    return orphaned


def remove_empty_dirs(project_path: Path, file_names: list[str]) -> list[str]:
    """Delete directories left empty after removing *file_names*.

    Walks up from each file's parent, stopping at *project_path*.

    Returns:
        Relative paths of the directories removed
    """
    removed: list[str] = []
    root = project_path.resolve()
    for name in file_names:
        directory = (project_path / name).parent.resolve()
        while directory != root and root in directory.parents:
            try:
                if any(directory.iterdir()):
                    break
                directory.rmdir()
            except OSError:
                break
            removed.append(str(directory.relative_to(root)))
            directory = directory.parent
    return removed
