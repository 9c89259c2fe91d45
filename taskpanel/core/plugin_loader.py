import importlib
from typing import Any, Dict, List, Optional

PLUGIN_MODULES = [
    "taskpanel.plugins.core.event_manager",
    "taskpanel.plugins.essential.panel_position.panel_position",
    "taskpanel.plugins.essential.taskbar.taskbar",
]


class PluginLoader:
    """
    Imports, orders, enables and disables the panel's plugins.

    Each plugin module exposes ``get_plugin_metadata(panel_instance)`` and
    ``get_plugin_class()``. Modules are ordered with a topological sort over
    their ``deps``, ties broken by ``priority`` (highest first). Plugins are
    enabled in that order and disabled in reverse.
    """

    def __init__(self, panel_instance, modules: Optional[List[str]] = None):
        self.panel_instance = panel_instance
        self.logger = panel_instance.logger
        self.modules = list(modules if modules is not None else PLUGIN_MODULES)
        self.plugins: Dict[str, Any] = {}
        self.plugin_metadata_map: Dict[str, Dict[str, Any]] = {}
        self.load_order: List[str] = []
        self.disabled_plugins = (
            panel_instance.config_handler.get_root_setting(["plugins", "disabled"], [])
            or []
        )

    @staticmethod
    def plugin_name(metadata: Dict[str, Any]) -> str:
        return metadata["id"].split(".")[-1]

    def load_plugins(self) -> List[str]:
        """
        Imports every registered module and instantiates its plugin class.
        Returns:
            Plugin names in the order they will be enabled.
        """
        candidates: Dict[str, Any] = {}
        for module_path in self.modules:
            try:
                module = importlib.import_module(module_path)
                metadata = module.get_plugin_metadata(self.panel_instance)
            except Exception as e:
                self.logger.error(
                    f"Failed to import plugin module '{module_path}': {e}",
                    exc_info=True,
                )
                continue
            name = self.plugin_name(metadata)
            if not metadata.get("enabled", True):
                self.logger.info(f"Plugin '{name}' is disabled by its metadata.")
                continue
            if name in self.disabled_plugins and not metadata.get("core", False):
                self.logger.info(f"Plugin '{name}' is disabled in the configuration.")
                continue
            candidates[name] = module
            self.plugin_metadata_map[name] = metadata

        for name in self._sort_plugins(candidates):
            module = candidates[name]
            try:
                self.plugins[name] = module.get_plugin_class()(self.panel_instance)
            except Exception as e:
                self.logger.error(
                    f"Failed to initialize plugin '{name}': {e}", exc_info=True
                )
                continue
            self.load_order.append(name)
            self.logger.info(f"Initialized plugin: {name}")
        return list(self.load_order)

    def _sort_plugins(self, candidates: Dict[str, Any]) -> List[str]:
        in_degree = {name: 0 for name in candidates}
        adj_list: Dict[str, List[str]] = {name: [] for name in candidates}
        for name in candidates:
            for dep in self.plugin_metadata_map[name].get("deps", []):
                if dep in candidates:
                    adj_list[dep].append(name)
                    in_degree[name] += 1
                else:
                    self.logger.warning(
                        f"Plugin '{name}' declares dependency '{dep}' which was not found among loaded plugins."
                    )

        def sort_key(plugin: str):
            return -self.plugin_metadata_map[plugin].get("priority", 0)

        ready_to_load = sorted(
            (name for name, degree in in_degree.items() if degree == 0), key=sort_key
        )
        sorted_names: List[str] = []
        while ready_to_load:
            current = ready_to_load.pop(0)
            sorted_names.append(current)
            for dependent in adj_list[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    ready_to_load.append(dependent)
                    ready_to_load.sort(key=sort_key)

        if len(sorted_names) != len(candidates):
            cyclical = [name for name, degree in in_degree.items() if degree > 0]
            self.logger.error(
                f"Circular dependency detected among plugins: {', '.join(cyclical)}. "
                "These plugins will NOT be initialized."
            )
        return sorted_names

    def enable_all(self) -> None:
        for name in self.load_order:
            self.plugins[name].enable()

    def disable_all(self) -> None:
        for name in reversed(self.load_order):
            self.plugins[name].disable()

    def enable_plugin(self, name: str) -> bool:
        plugin = self.plugins.get(name)
        if plugin is None:
            self.logger.warning(f"Unknown plugin '{name}'.")
            return False
        return plugin.enable()

    def disable_plugin(self, name: str) -> bool:
        plugin = self.plugins.get(name)
        if plugin is None:
            self.logger.warning(f"Unknown plugin '{name}'.")
            return False
        if self.plugin_metadata_map[name].get("core", False):
            self.logger.warning(f"Core plugin '{name}' cannot be disabled.")
            return False
        return plugin.disable()
