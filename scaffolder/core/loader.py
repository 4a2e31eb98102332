"""Loading of built-in and externally installed plugins.

External plugins are generator classes exposed either through the
``scaffolder.plugins`` entry-point group or as a ``Generator`` class in
a distribution named ``scaffolder-plugin-<id>``. A generator class that
sets ``plugin`` also adds (or replaces) the matching catalog entry.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from scaffolder.core.catalog import PluginCatalog, build_default_catalog
from scaffolder.output import MessageType, VerbosityLevel, message
from scaffolder.plugins.generators import AbstractGenerator, build_generator_table
from scaffolder.utils.discovery import discover_external_plugins, load_plugin_class

ENTRY_POINT_GROUP = "scaffolder.plugins"
PLUGIN_PACKAGE_PREFIX = "scaffolder_plugin_"


@dataclass(frozen=True)
class LoadedPlugins:
    catalog: PluginCatalog
    generators: Mapping[str, AbstractGenerator]
    external: tuple[str, ...] = ()


def discover_generator_plugins() -> dict[str, dict]:
    """Find installed generator plugins without loading package-prefix ones."""
    return discover_external_plugins(
        plugin_type="generator",
        package_prefix=PLUGIN_PACKAGE_PREFIX,
        entry_point_group=ENTRY_POINT_GROUP,
        base_class=AbstractGenerator,
    )


def load_plugins(discover: bool = True) -> LoadedPlugins:
    """Build the catalog and generator table for this process.

    Args:
        discover: Look for installed external plugins as well

    Returns:
        ``LoadedPlugins`` with the catalog, the read-only generator
        table and the ids contributed by external packages
    """
    generators: list[AbstractGenerator] = []

    if discover:
        for name, info in discover_generator_plugins().items():
            try:
                generator_class = load_plugin_class(info, "Generator")
                generator = generator_class()
            except Exception as e:
                message(f"Failed to load plugin '{name}': {e}", MessageType.WARNING, VerbosityLevel.ALWAYS)
                continue

            if not isinstance(generator, AbstractGenerator) or not generator.plugin_id:
                message(
                    f"Plugin '{name}' does not provide a usable generator, ignoring",
                    MessageType.WARNING,
                    VerbosityLevel.VERBOSE,
                )
                continue
            generators.append(generator)

    catalog = build_default_catalog(g.plugin for g in generators if g.plugin is not None)
    for generator in generators:
        if generator.plugin_id not in catalog:
            message(
                f"Generator '{generator.plugin_id}' has no catalog entry and will never run",
                MessageType.WARNING,
                VerbosityLevel.VERBOSE,
            )

    return LoadedPlugins(
        catalog=catalog,
        generators=build_generator_table(generators),
        external=tuple(g.plugin_id for g in generators),
    )
