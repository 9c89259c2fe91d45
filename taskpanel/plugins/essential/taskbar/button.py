from taskpanel.core.input_events import BUTTON_MIDDLE, BUTTON_PRIMARY
from taskpanel.core.panel_menu import AppMenu, Icon, PanelButton
from taskpanel.core.signals import EVENT_PROPAGATE, EVENT_STOP

from .state import WindowStateTracker


class TaskButton(PanelButton):
    """
    A panel button bound to one window.

    Registers itself in the panel's left status area, follows the window's
    focus, attention and workspace through ``WindowStateTracker`` and destroys
    itself when the window unmanages.
    """

    def __init__(self, window, shell, config, logger=None):
        super().__init__()
        self.window = window
        self.shell = shell
        self.config = config
        self.logger = logger
        self.window_on_top = None
        self.registered = False

        self.add_style_class_name("task-button")
        self._make_button_box()

        self.state = WindowStateTracker(self, window, shell, config)
        self.state.update_app()
        self.state.update_visibility()

        self.role = self.role_for(window)
        if self.role not in self.shell.panel.status_area:
            self.shell.panel.add_to_status_area(
                self.role, self, self.config.status_area_priority, "left"
            )
            self.registered = True
            self._connect_signals()
        elif self.logger:
            self.logger.debug(f"Status area '{self.role}' already registered.")

    @staticmethod
    def role_for(window) -> str:
        return f"task-button-{window}"

    @property
    def app(self):
        return self.state.app

    def _connect_signals(self):
        self.shell.workspace_manager.connect(
            "active-workspace-changed",
            lambda *_: self.state.update_visibility(),
            owner=self,
        )

        window_handlers = {
            "notify::appears-focused": self.state.update_focus,
            "notify::demands-attention": self.state.update_demands_attention,
            "notify::gtk-application-id": self.state.update_app,
            "notify::skip-taskbar": self.state.update_visibility,
            "notify::urgent": self.state.update_demands_attention,
            "notify::wm-class": self.state.update_app,
            "unmanaging": self.destroy,
            "workspace-changed": self.state.update_visibility,
        }
        for signal, handler in window_handlers.items():
            self.window.connect(
                signal, lambda *_, handler=handler: handler(), owner=self, after=True
            )

        self.connect("notify::hover", lambda *_: self._on_hover(), owner=self)
        self.connect(
            "button-press-event", lambda _, event: self._on_click(event), owner=self
        )

    def _disconnect_signals(self):
        self.shell.workspace_manager.disconnect_object(self)
        if self.window is not None:
            self.window.disconnect_object(self)

    def _make_button_box(self):
        self.icon = Icon()
        self.add_child(self.icon)
        self.set_menu(AppMenu(self))

    def _toggle_window(self):
        self.window_on_top = None
        window = self.window
        if window is not None:
            now = self.shell.display.get_current_time()
            if window.has_focus():
                if window.can_minimize() and not self.shell.overview.visible:
                    window.minimize()
            else:
                window.activate(now)
                window.focus(now)
        self.shell.overview.hide()

    def _on_click(self, event):
        button = event.get_button() if event is not None else None

        if button == BUTTON_PRIMARY:
            if self.menu is not None:
                self.menu.close()
            self._toggle_window()
            return EVENT_STOP

        if button == BUTTON_MIDDLE:
            if self.menu is not None:
                self.menu.close()
            app = self.app
            if app is not None and app.can_open_new_window():
                app.open_new_window(-1)
            self.shell.overview.hide()
            return EVENT_STOP

        return EVENT_PROPAGATE

    def _on_hover(self):
        if self.shell.overview.visible or not self.shell.wm.can_scroll:
            return
        window = self.window
        if window is None:
            return

        if self.get_hover():
            workspace = window.get_workspace()
            if workspace is None:
                return
            monitor_index = window.get_monitor()
            monitor_windows = [
                w
                for w in workspace.list_windows()
                if not w.minimized and w.get_monitor() == monitor_index
            ]
            stacked = self.shell.display.sort_windows_by_stacking(monitor_windows)
            self.window_on_top = stacked[-1] if stacked else None
            window.raise_()
        else:
            window_on_top, self.window_on_top = self.window_on_top, None
            if window_on_top is not None and not window_on_top.unmanaged:
                window_on_top.raise_()

    def destroy(self):
        if self.destroyed:
            return
        self._disconnect_signals()
        self.state.release()
        self.window = None
        self.window_on_top = None
        super().destroy()
