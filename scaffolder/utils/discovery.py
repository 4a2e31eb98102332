"""Discovery of third-party scaffolder plugins installed in the environment."""

import importlib
import importlib.metadata

from scaffolder.output import MessageType, VerbosityLevel, message


def discover_external_plugins(
    plugin_type: str,
    package_prefix: str | None = None,
    entry_point_group: str | None = None,
    base_class: type | None = None,
) -> dict[str, dict]:
    """Find plugins by distribution-name prefix and/or entry-point group.

    Entry points win over prefix matches with the same name, since they
    already carry the loaded class.

    Args:
        plugin_type: Human-readable kind used in log messages (e.g. "generator")
        package_prefix: Distribution name prefix, e.g. ``scaffolder_plugin_``
        entry_point_group: Entry point group, e.g. ``scaffolder.plugins``
        base_class: Loaded entry points must be subclasses of this

    Returns:
        Mapping of plugin name to info dict with ``package_name``,
        ``source`` (``"package"`` or ``"entry_point"``) and, for entry
        points, the loaded ``class``
    """
    plugins: dict[str, dict] = {}

    if package_prefix:
        plugins.update(_discover_by_package_prefix(plugin_type, package_prefix))

    if entry_point_group:
        plugins.update(_discover_by_entry_points(plugin_type, entry_point_group, base_class))

    return plugins


def _discover_by_package_prefix(plugin_type: str, package_prefix: str) -> dict[str, dict]:
    plugins = {}

    try:
        for dist in importlib.metadata.distributions():
            package_name = dist.name.replace("-", "_")
            if not package_name.startswith(package_prefix):
                continue

            plugin_name = package_name[len(package_prefix) :].replace("_", "-")
            plugins[plugin_name] = {"package_name": package_name, "source": "package"}
            message(
                f"Discovered {plugin_type} package: {plugin_name} ({package_name})",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
    except Exception as e:
        message(f"Failed to scan installed {plugin_type} packages: {e}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    return plugins


def _discover_by_entry_points(
    plugin_type: str,
    entry_point_group: str,
    base_class: type | None = None,
) -> dict[str, dict]:
    plugins = {}

    try:
        eps = importlib.metadata.entry_points().select(group=entry_point_group)
    except Exception as e:
        message(
            f"Failed to read entry points for {entry_point_group}: {e}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return plugins

    for ep in eps:
        try:
            loaded = ep.load()
        except Exception as e:
            message(f"Failed to load {plugin_type} '{ep.name}': {e}", MessageType.WARNING, VerbosityLevel.VERBOSE)
            continue

        if base_class is not None and not (isinstance(loaded, type) and issubclass(loaded, base_class)):
            message(
                f"Entry point '{ep.name}' is not a {base_class.__name__} subclass, ignoring",
                MessageType.WARNING,
                VerbosityLevel.VERBOSE,
            )
            continue

        plugins[ep.name] = {
            "package_name": ep.value.split(":")[0],
            "class": loaded,
            "source": "entry_point",
        }
        message(f"Discovered {plugin_type} entry point: {ep.name}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    return plugins


def load_plugin_class(plugin_info: dict, class_name: str):
    """Return the plugin class described by *plugin_info*.

    Raises:
        ImportError: If the module cannot be imported
        AttributeError: If the module has no *class_name*
    """
    if "class" in plugin_info:
        return plugin_info["class"]

    module = importlib.import_module(plugin_info["package_name"])
    return getattr(module, class_name)
