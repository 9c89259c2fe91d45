from taskpanel.core.compositor.model import WindowType
from taskpanel.core.scheduler import SOURCE_REMOVE

from .button import TaskButton


class Taskbar:
    """
    Creates and tears down task buttons for the compositor's windows.

    Startup is two-phase: after ``startup_delay_ms`` every existing window is
    enumerated, and only then the ``window-created`` subscription is made, so
    a window can never be both enumerated and notified.
    """

    def __init__(self, shell, config, scheduler, logger=None):
        self.shell = shell
        self.config = config
        self.scheduler = scheduler
        self.logger = logger
        self._make_taskbar_timeout = None
        self._make_taskbar()

    @property
    def buttons(self):
        return [
            child
            for child in self.shell.panel.left_box.get_children()
            if isinstance(child, TaskButton)
        ]

    def _connect_signals(self):
        self.shell.display.connect(
            "window-created",
            lambda _display, window: self._make_task_button(window),
            owner=self,
        )
        self.shell.panel.connect(
            "scroll-event",
            lambda _panel, event: self.shell.wm.handle_workspace_scroll(event),
            owner=self,
        )

    def _disconnect_signals(self):
        self.shell.display.disconnect_object(self)
        self.shell.panel.disconnect_object(self)

    def _make_task_button(self, window):
        if (
            window is None
            or window.is_skip_taskbar()
            or window.get_window_type() == WindowType.MODAL_DIALOG
        ):
            return None
        if TaskButton.role_for(window) in self.shell.panel.status_area:
            return None
        return TaskButton(window, self.shell, self.config, self.logger)

    def _make_taskbar(self):
        self._make_taskbar_timeout = self.scheduler.timeout_add(
            self.config.startup_delay_ms, self._on_make_taskbar_timeout
        )

    def _on_make_taskbar_timeout(self):
        workspace_manager = self.shell.workspace_manager
        for workspace_index in range(workspace_manager.n_workspaces):
            workspace = workspace_manager.get_workspace_by_index(workspace_index)
            windows = workspace.list_windows() if workspace is not None else []
            for window in windows:
                self._make_task_button(window)

        self._connect_signals()
        self._make_taskbar_timeout = None
        if self.logger:
            self.logger.info(f"Taskbar ready with {len(self.buttons)} buttons.")
        return SOURCE_REMOVE

    def _destroy_taskbar(self):
        if self._make_taskbar_timeout:
            self.scheduler.source_remove(self._make_taskbar_timeout)
            self._make_taskbar_timeout = None

        for child in self.shell.panel.left_box.get_children():
            if isinstance(child, TaskButton):
                child.destroy()

    def destroy(self):
        self._disconnect_signals()
        self._destroy_taskbar()
