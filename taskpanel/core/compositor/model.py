"""
Local mirror of the compositor's window state.

The panel never talks to the compositor from its widgets: every window,
workspace and the stacking order live here as observable objects. A backend
(see ``wayfire_backend``) keeps the mirror in sync with compositor events and
receives the requests the panel makes (activate, minimize, raise).
"""

import enum
import time
from typing import Any, Dict, List, Optional

import structlog

from taskpanel.core.signals import NotifyProperty, SignalEmitter

logger = structlog.get_logger()


class WindowType(enum.Enum):
    NORMAL = "normal"
    DIALOG = "dialog"
    MODAL_DIALOG = "modal-dialog"
    UTILITY = "utility"
    SPLASHSCREEN = "splashscreen"


class Window(SignalEmitter):
    """One compositor window (a Wayfire toplevel view)."""

    title = NotifyProperty("")
    appears_focused = NotifyProperty(False)
    demands_attention = NotifyProperty(False)
    urgent = NotifyProperty(False)
    skip_taskbar = NotifyProperty(False)
    wm_class = NotifyProperty(None)
    gtk_application_id = NotifyProperty(None)
    minimized = NotifyProperty(False)

    def __init__(
        self,
        window_id: int,
        display: "Display",
        workspace: Optional["Workspace"] = None,
        monitor: int = 0,
        window_type: WindowType = WindowType.NORMAL,
        minimizable: bool = True,
        **props: Any,
    ):
        super().__init__()
        self.id = window_id
        self.display = display
        self.window_type = window_type
        self.minimizable = minimizable
        self.unmanaged = False
        self._workspace = workspace
        self._monitor = monitor
        for name, value in props.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        return f"<Window {self.id} {self.wm_class!r}>"

    def __str__(self) -> str:
        return str(self.id)

    def get_workspace(self) -> Optional["Workspace"]:
        return self._workspace

    def get_monitor(self) -> int:
        return self._monitor

    def get_window_type(self) -> WindowType:
        return self.window_type

    def is_skip_taskbar(self) -> bool:
        return bool(self.skip_taskbar)

    def located_on_workspace(self, workspace: Optional["Workspace"]) -> bool:
        return workspace is not None and self._workspace is workspace

    def has_focus(self) -> bool:
        return self.display.focus_window is self

    def can_minimize(self) -> bool:
        return self.minimizable

    def change_workspace(self, workspace: Optional["Workspace"]) -> None:
        if workspace is self._workspace:
            return
        self._workspace = workspace
        self.emit("workspace-changed")

    def set_monitor(self, monitor: int) -> None:
        self._monitor = monitor

    def minimize(self) -> None:
        if not self.can_minimize():
            return
        self.minimized = True
        if self.has_focus():
            self.display.set_focus_window(None)
        self.display.request("minimize", self)

    def unminimize(self) -> None:
        self.minimized = False
        self.display.request("unminimize", self)

    def activate(self, timestamp: int) -> None:
        """Unminimize, raise and focus, switching to the window's workspace."""
        if self.minimized:
            self.minimized = False
        self.display.restack_to_top(self)
        self.display.set_focus_window(self)
        self.display.request("activate", self, timestamp)

    def focus(self, timestamp: int) -> None:
        self.display.set_focus_window(self)
        self.display.request("focus", self, timestamp)

    def raise_(self) -> None:
        self.display.restack_to_top(self)
        self.display.request("raise", self)


class Workspace:
    def __init__(self, index: int, display: "Display"):
        self.index = index
        self.display = display

    def __repr__(self) -> str:
        return f"<Workspace {self.index}>"

    def list_windows(self) -> List[Window]:
        return [w for w in self.display.list_windows() if w.get_workspace() is self]


class WorkspaceManager(SignalEmitter):
    def __init__(self, display: "Display", n_workspaces: int = 1):
        super().__init__()
        self.display = display
        self._workspaces: List[Workspace] = []
        self._active_index = 0
        self.set_n_workspaces(n_workspaces)

    @property
    def n_workspaces(self) -> int:
        return len(self._workspaces)

    def set_n_workspaces(self, count: int) -> None:
        count = max(1, count)
        while len(self._workspaces) < count:
            self._workspaces.append(Workspace(len(self._workspaces), self.display))
        del self._workspaces[count:]
        if self._active_index >= count:
            self.activate(count - 1)

    def get_workspace_by_index(self, index: int) -> Optional[Workspace]:
        if 0 <= index < len(self._workspaces):
            return self._workspaces[index]
        return None

    def get_active_workspace(self) -> Workspace:
        return self._workspaces[self._active_index]

    def get_active_workspace_index(self) -> int:
        return self._active_index

    def activate(self, index: int) -> None:
        """Mark ``index`` as active. Out of range indexes are ignored."""
        if not 0 <= index < len(self._workspaces) or index == self._active_index:
            return
        self._active_index = index
        self.emit("active-workspace-changed")


class Display(SignalEmitter):
    """
    Owns every managed window, the focused window and the stacking order.

    Signals:
        window-created(window): a window started being managed.
        workareas-changed: monitor layout or reserved areas changed.
        restacked: the stacking order changed.
    """

    def __init__(self, actions: Optional[Any] = None):
        super().__init__()
        self.actions = actions
        self.focus_window: Optional[Window] = None
        self._windows: Dict[int, Window] = {}
        self._stack: List[int] = []

    def get_current_time(self) -> int:
        return int(time.monotonic() * 1000)

    def list_windows(self) -> List[Window]:
        return list(self._windows.values())

    def get_window(self, window_id: int) -> Optional[Window]:
        return self._windows.get(window_id)

    def add_window(self, window: Window) -> Window:
        if window.id in self._windows:
            return self._windows[window.id]
        self._windows[window.id] = window
        self._stack.append(window.id)
        logger.debug(f"Window managed: {window!r}")
        self.emit("window-created", window)
        return window

    def remove_window(self, window_id: int) -> None:
        window = self._windows.pop(window_id, None)
        if window is None:
            return
        if window.id in self._stack:
            self._stack.remove(window.id)
        if self.focus_window is window:
            self.focus_window = None
        window.unmanaged = True
        logger.debug(f"Window unmanaging: {window!r}")
        window.emit("unmanaging")

    def set_focus_window(self, window: Optional[Window]) -> None:
        previous = self.focus_window
        if previous is window:
            return
        self.focus_window = window
        if previous is not None:
            previous.appears_focused = False
        if window is not None:
            window.appears_focused = True

    def restack_to_top(self, window: Window) -> None:
        if window.id not in self._stack or self._stack[-1] == window.id:
            return
        self._stack.remove(window.id)
        self._stack.append(window.id)
        self.emit("restacked")

    def stacking_order(self) -> List[Window]:
        return [self._windows[i] for i in self._stack if i in self._windows]

    def sort_windows_by_stacking(self, windows: List[Window]) -> List[Window]:
        """Return ``windows`` ordered bottom to top."""
        position = {wid: i for i, wid in enumerate(self._stack)}
        return sorted(
            (w for w in windows if w.id in position), key=lambda w: position[w.id]
        )

    def request(self, action: str, window: Window, *args: Any) -> None:
        """Forward a window request to the compositor backend, if any."""
        if self.actions is None:
            return
        handler = getattr(self.actions, f"{action}_window", None)
        if handler is None:
            logger.warning(f"Compositor backend does not support '{action}'")
            return
        handler(window, *args)
