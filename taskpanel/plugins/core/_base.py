import sys
from functools import partialmethod
import lazy_loader as lazy
from typing import Any, Dict, List, Optional, Union

IMPORTLIB_MODULE = lazy.load("importlib")


class PluginLogAdapter:
    """
    Wraps the panel's structlog logger for one plugin. Every event carries
    the plugin id and a ``caller`` field (``module:function:line``) of the
    code that logged it, so plugin helpers that share the logger stay
    distinguishable in the JSON log.
    """

    def __init__(self, logger, plugin_id: Optional[str] = None):
        self._logger = logger
        self.plugin_id = plugin_id

    @staticmethod
    def _caller() -> Optional[str]:
        frame = sys._getframe(1)
        try:
            while frame is not None and frame.f_globals.get("__name__") == __name__:
                frame = frame.f_back
            if frame is None:
                return None
            module = frame.f_globals.get("__name__", "?")
            return f"{module}:{frame.f_code.co_name}:{frame.f_lineno}"
        finally:
            del frame

    def _log(self, level: str, message: str, **kwargs):
        caller = self._caller()
        if caller:
            kwargs.setdefault("caller", caller)
        if self.plugin_id:
            kwargs.setdefault("plugin", self.plugin_id)
        getattr(self._logger, level)(message, **kwargs)

    debug = partialmethod(_log, "debug")
    info = partialmethod(_log, "info")
    warning = partialmethod(_log, "warning")
    error = partialmethod(_log, "error")
    exception = partialmethod(_log, "exception")

    def __getattr__(self, name):
        return getattr(self._logger, name)


class BasePlugin:
    """
    Base class for all taskpanel plugins.

    A plugin is constructed once by the loader and then enabled and disabled
    any number of times. Subclasses put their work in ``on_enable`` and
    ``on_disable``; ``enable``/``disable`` guard against repeated calls and
    log failures instead of taking the whole panel down.
    """

    def __init__(self, panel_instance: Any):
        self._panel_instance = panel_instance
        self._loaded_modules: Dict[str, Any] = {}
        self.enabled = False
        metadata = self.get_plugin_metadata()
        self.plugin_id: Optional[str] = metadata.get("id") if metadata else None
        self._logger_adapter = PluginLogAdapter(panel_instance.logger, self.plugin_id)

    def get_plugin_metadata(self) -> Optional[Dict[str, Any]]:
        module_object = sys.modules.get(self.__module__)
        if module_object is None or not hasattr(module_object, "get_plugin_metadata"):
            return None
        return module_object.get_plugin_metadata(self._panel_instance)

    @property
    def logger(self) -> PluginLogAdapter:
        return self._logger_adapter

    @property
    def shell(self) -> Any:
        return self._panel_instance.shell

    @property
    def config_handler(self) -> Any:
        return self._panel_instance.config_handler

    @property
    def scheduler(self) -> Any:
        return self._panel_instance.scheduler

    def get_plugin_setting(
        self, key: Optional[Union[str, List[str]]] = None, default_value: Any = None
    ) -> Any:
        return self.config_handler.get_plugin_setting(
            self.plugin_id, key, default_value
        )

    def get_plugin_setting_add_hint(
        self, key: Union[str, List[str]], default_value: Any, hint: str
    ) -> Any:
        """
        Reads a plugin setting, writing ``default_value`` if it is missing, and
        records ``hint`` as its documentation.
        Args:
            key: Setting name or path inside the plugin section.
            default_value: Value used when the setting is absent.
            hint: Human readable description of the setting.
        """
        key_path = [key] if isinstance(key, str) else list(key)
        if self.plugin_id:
            self.config_handler.set_setting_hint([self.plugin_id] + key_path, hint)
        return self.get_plugin_setting(key_path, default_value)

    def lazy_load_module(self, module_name: str) -> Optional[Any]:
        """
        Lazily imports a module by name and caches it on the plugin.
        Returns:
            The module, or None when it cannot be imported.
        """
        if module_name in self._loaded_modules:
            return self._loaded_modules[module_name]
        try:
            module = IMPORTLIB_MODULE.import_module(module_name)  # pyright: ignore
        except ImportError as e:
            self.logger.error(
                f"Failed to lazy-load module '{module_name}'. Check if it is installed. Error: {e}"
            )
            return None
        self._loaded_modules[module_name] = module
        return module

    def enable(self) -> bool:
        if self.enabled:
            return True
        try:
            self.on_enable()
        except Exception as e:
            self.logger.error(
                f"Plugin '{self.plugin_id}' failed to enable: {e}", exc_info=True
            )
            return False
        self.enabled = True
        self.logger.info(f"Plugin '{self.plugin_id}' enabled.")
        return True

    def disable(self) -> bool:
        if not self.enabled:
            return True
        try:
            self.on_disable()
        except Exception as e:
            self.logger.error(
                f"Plugin '{self.plugin_id}' failed to disable: {e}", exc_info=True
            )
            return False
        finally:
            self.enabled = False
        self.logger.info(f"Plugin '{self.plugin_id}' disabled.")
        return True

    def on_enable(self) -> None:
        pass

    def on_disable(self) -> None:
        pass
