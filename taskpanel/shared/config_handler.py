import copy
import os
import time
import toml
from pathlib import Path
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from typing import Any, List, Optional, Dict, Union
from taskpanel.shared import config_template

_MISSING_SETTING_SENTINEL = object()


class ConfigReloadHandler(FileSystemEventHandler):
    def __init__(self, callback, watched_path, debounce: float = 1.0):
        super().__init__()
        self.callback = callback
        self.debounce = debounce
        self.last = 0.0
        self._watched = Path(watched_path).resolve()

    def on_modified(self, event):
        if Path(event.src_path).resolve() != self._watched:
            return
        now = time.monotonic()
        if now - self.last > self.debounce:
            self.last = now
            self.callback()

    on_created = on_modified


class ConfigHandler:
    """
    Manages the application's configuration file (config.toml) and provides
    a layered access interface: root settings addressed by key path, and
    plugin settings scoped under the plugin id.
    Missing keys are merged in from ``config_template`` and written back.
    """

    def __init__(
        self,
        panel_instance: Any,
        config_dir: Optional[str] = None,
    ):
        """
        Args:
            panel_instance: The main panel instance, used for the logger.
            config_dir: Overrides the XDG config directory.
        """
        self.logger = panel_instance.logger
        self.panel_instance = panel_instance
        self.default_config = copy.deepcopy(config_template.default_config)
        self.config_path = config_dir or self.setup_config_path()
        self.config_file = Path(self.config_path) / "config.toml"
        self.config_monitor: Optional[Any] = None
        self._load_successful: bool = False
        self._last_mod_time: float = 0.0
        self.config_data = self.load_config()

    def setup_config_path(self) -> str:
        """Returns ``$XDG_CONFIG_HOME/taskpanel``, created if needed."""
        config_home = os.getenv("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
        config_path = os.path.join(config_home, "taskpanel")
        os.makedirs(config_path, exist_ok=True)
        return config_path

    def _strip_hints(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Drops every ``*_hint`` key, recursively. Hints never reach the file."""
        return {
            key: self._strip_hints(value) if isinstance(value, dict) else value
            for key, value in data.items()
            if not key.endswith("_hint")
        }

    @property
    def default_config_stripped(self) -> Dict[str, Any]:
        return self._strip_hints(self.default_config)

    def _recursive_merge(
        self, user_config: Dict[str, Any], default_config: Dict[str, Any]
    ) -> bool:
        """
        Fills keys missing from ``user_config`` with copies from
        ``default_config``; existing user values always win.
        Returns:
            True if anything was filled in.
        """
        changed = False
        for key, fallback in default_config.items():
            current = user_config.get(key)
            if key not in user_config:
                user_config[key] = copy.deepcopy(fallback)
                changed = True
            elif isinstance(fallback, dict) and isinstance(current, dict):
                changed = self._recursive_merge(current, fallback) or changed
        return changed

    def load_config(self) -> Dict[str, Any]:
        """
        Reads config.toml and fills in defaults. A missing file is written
        out; an unreadable one is left alone and only the defaults are used.
        """
        user_config: Dict[str, Any] = {}
        create_file = not self.config_file.exists()
        self._load_successful = True
        if create_file:
            self.logger.info(f"Creating {self.config_file} with default settings.")
        else:
            try:
                user_config = toml.loads(self.config_file.read_text())
                self._last_mod_time = self.config_file.stat().st_mtime
            except (OSError, toml.TomlDecodeError) as e:
                self.logger.error(
                    f"Cannot read {self.config_file}: {e}. Running on defaults; the file will not be overwritten."
                )
                self._load_successful = False
        self._recursive_merge(user_config, self.default_config_stripped)
        self.config_data = user_config
        if create_file:
            self.save_config()
        return user_config

    def save_config(self) -> None:
        if not self._load_successful:
            self.logger.warning(
                f"Not saving settings: {self.config_file} could not be parsed and needs a manual fix."
            )
            return
        try:
            self.config_file.write_text(toml.dumps(self.config_data))
            self._last_mod_time = self.config_file.stat().st_mtime
            self.logger.debug(f"Settings written to {self.config_file}.")
        except OSError as e:
            self.logger.error(f"Cannot write {self.config_file}: {e}")

    def reload_config(self) -> None:
        self.config_data = self.load_config()
        self.logger.info("Settings reloaded after an external change.")

    def start_watcher(self, on_change=None, scheduler=None) -> None:
        """
        Watches the config directory with watchdog and reloads on change.
        Args:
            on_change: Called after each reload.
            scheduler: When given, reloads run through its ``idle_add`` on the
                main loop instead of the watchdog thread.
        """
        handler = ConfigReloadHandler(
            lambda: self._dispatch_change(on_change, scheduler), self.config_file
        )
        self.config_monitor = Observer()
        self.config_monitor.schedule(handler, str(self.config_path), recursive=False)
        self.config_monitor.daemon = True
        self.config_monitor.start()

    def stop_watcher(self) -> None:
        if self.config_monitor is None:
            return
        self.config_monitor.stop()
        self.config_monitor.join(timeout=1.0)
        self.config_monitor = None

    def _dispatch_change(self, on_change, scheduler) -> None:
        if scheduler is None:
            self._on_config_file_changed(on_change)
            return

        def run_once():
            self._on_config_file_changed(on_change)
            return False

        scheduler.idle_add(run_once)

    def _on_config_file_changed(self, on_change=None) -> None:
        try:
            current_mod_time = os.path.getmtime(self.config_file)
        except FileNotFoundError:
            self.logger.warning("Config file not found during change check.")
            return
        if current_mod_time <= self._last_mod_time:
            return
        self.reload_config()
        if on_change:
            on_change()

    def get_root_setting(self, key_path: List[str], default_value: Any = None) -> Any:
        """
        Looks up a value by path from the configuration root.
        Args:
            key_path: e.g. ['org.taskpanel.panel', 'primary_output', 'name'].
            default_value: Returned when any part of the path is missing.
        """
        node: Any = self.config_data
        for part in key_path:
            if not isinstance(node, dict) or part not in node:
                return default_value
            node = node[part]
        return node

    def set_root_setting(self, key_path: List[str], new_value: Any) -> bool:
        """Stores a value by path, creating missing sections, then saves."""
        if not key_path:
            self.logger.error("Refusing to set a setting with an empty key path.")
            return False
        *sections, leaf = key_path
        node = self.config_data
        for part in sections:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = new_value
        self.save_config()
        return True

    def _plugin_key_path(
        self, plugin_id: str, key: Optional[Union[str, List[str]]]
    ) -> List[str]:
        key_path = [plugin_id]
        if isinstance(key, str):
            key_path.append(key)
        elif isinstance(key, list):
            key_path.extend(key)
        return key_path

    def get_plugin_setting(
        self,
        plugin_id: Optional[str],
        key: Optional[Union[str, List[str]]] = None,
        default_value: Any = None,
    ) -> Any:
        """
        Retrieves a value from this plugin's section. A missing value with a
        default is written to the configuration.
        """
        if not plugin_id:
            return default_value
        key_path = self._plugin_key_path(plugin_id, key)
        result = self.get_root_setting(key_path, _MISSING_SETTING_SENTINEL)
        if result is _MISSING_SETTING_SENTINEL:
            if default_value is not None:
                self.set_root_setting(key_path, default_value)
            return default_value
        return result

    def set_plugin_setting(
        self, plugin_id: Optional[str], key: Union[str, List[str]], value: Any
    ) -> None:
        if not plugin_id:
            self.logger.error("Plugin ID is not set, cannot save setting.")
            return
        self.set_root_setting(self._plugin_key_path(plugin_id, key), value)

    def set_setting_hint(self, key_path: List[str], hint: str) -> None:
        """Records a hint for a setting in ``default_config`` (never written to disk)."""
        current = self.default_config
        for key in key_path[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[f"{key_path[-1]}_hint"] = hint
