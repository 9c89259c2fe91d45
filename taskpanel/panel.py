import lazy_loader as lazy
from gi.repository import Adw  # pyright: ignore
from taskpanel.core.scheduler import GLibScheduler
from taskpanel.core.shell import create_shell
from taskpanel.shared.config_handler import ConfigHandler

IPC_MODULE = lazy.load("taskpanel.core.compositor.ipc")
BACKEND_MODULE = lazy.load("taskpanel.core.compositor.wayfire_backend")
EVENT_READER_MODULE = lazy.load("taskpanel.core.compositor.event_reader")
GTK_VIEW_MODULE = lazy.load("taskpanel.core.gtk_view")
PLUGIN_LOADER_MODULE = lazy.load("taskpanel.core.plugin_loader")


class Panel(Adw.Application):
    def __init__(self, logger, application_id="org.taskpanel.Panel"):
        """
        Builds the shell model, the compositor backend and the configuration.
        Plugins, the panel window and the event reader start on ``activate``.
        Args:
            logger: The structlog logger from ``setup_logging``.
            application_id (str): The application ID.
        """
        super().__init__(application_id=application_id)
        self.logger = logger
        self.config_handler = ConfigHandler(self)
        self.scheduler = GLibScheduler()
        self.ipc = IPC_MODULE.IPC()  # pyright: ignore
        self.backend = BACKEND_MODULE.WayfireBackend(  # pyright: ignore
            self.ipc,
            self.config_handler.get_root_setting(
                ["org.taskpanel.panel", "primary_output", "name"]
            ),
        )
        self.shell = create_shell(actions=self.backend)
        self.backend.bind(self.shell)
        self.plugin_loader = None
        self.event_reader = None
        self.window = None
        self.connect("activate", self.on_activate)
        self.connect("shutdown", self.on_shutdown)

    @property
    def plugins(self):
        return self.plugin_loader.plugins if self.plugin_loader else {}

    def on_activate(self, *__):
        if self.window is not None:
            self.window.present()
            return
        if self.ipc.is_connected():
            self.backend.populate()
        else:
            self.logger.error("No compositor connection; the taskbar starts empty.")

        GTK_VIEW_MODULE.load_css()  # pyright: ignore
        height = self.config_handler.get_root_setting(
            ["org.taskpanel.panel", "height"], 32
        )
        self.window = GTK_VIEW_MODULE.PanelWindow(self, self.shell, height)  # pyright: ignore
        self.window.present()

        self._load_plugins()
        self.event_reader = EVENT_READER_MODULE.EventReader(  # pyright: ignore
            self._on_compositor_event, self.scheduler
        )
        self.event_reader.start()
        self.scheduler.timeout_add(1000, self.ipc.ensure_ipc_connection)
        self.config_handler.start_watcher(self._on_config_reloaded, self.scheduler)

    def _load_plugins(self):
        self.plugin_loader = PLUGIN_LOADER_MODULE.PluginLoader(self)  # pyright: ignore
        self.plugin_loader.load_plugins()
        event_manager = self.plugins.get("event_manager")
        if event_manager is not None:
            self.backend.subscribe(event_manager)
        else:
            self.logger.error("Event manager plugin missing; compositor events are ignored.")
        self.plugin_loader.enable_all()

    def _on_compositor_event(self, msg):
        event_manager = self.plugins.get("event_manager")
        if event_manager is not None:
            event_manager.handle_event(msg)
        return False

    def _on_config_reloaded(self):
        for plugin in self.plugins.values():
            if hasattr(plugin, "on_config_reloaded"):
                plugin.on_config_reloaded()

    def on_shutdown(self, *__):
        self.logger.info("Shutting down taskpanel.")
        if self.event_reader is not None:
            self.event_reader.stop()
        event_manager = self.plugins.get("event_manager")
        if event_manager is not None:
            self.backend.unsubscribe(event_manager)
        if self.plugin_loader is not None:
            self.plugin_loader.disable_all()
        self.config_handler.stop_watcher()
