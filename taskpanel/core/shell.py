from dataclasses import dataclass
from typing import Any, List, Optional

import structlog

from taskpanel.core.input_events import ScrollDirection, ScrollEvent
from taskpanel.core.signals import EVENT_PROPAGATE, EVENT_STOP, NotifyProperty, SignalEmitter

logger = structlog.get_logger()


@dataclass
class Monitor:
    x: int
    y: int
    width: int
    height: int
    geometry_scale: float = 1.0
    name: str = ""
    index: int = 0


class PanelBox(SignalEmitter):
    """The positioned container that holds the panel. Emits ``notify::height``."""

    height = NotifyProperty(0)

    def __init__(self, height: int = 0):
        super().__init__()
        self.x = 0
        self.y = 0
        self.height = height

    def set_position(self, x: int, y: int) -> None:
        if (x, y) == (self.x, self.y):
            return
        self.x, self.y = x, y
        self.emit("position-changed")

    def get_position(self):
        return self.x, self.y


class LayoutManager(SignalEmitter):
    """Monitor layout plus the panel box. Emits ``monitors-changed``."""

    def __init__(self, panel_box: Optional[PanelBox] = None):
        super().__init__()
        self.panel_box = panel_box or PanelBox()
        self.monitors: List[Monitor] = []
        self.primary_monitor: Optional[Monitor] = None

    def set_monitors(
        self, monitors: List[Monitor], primary_name: Optional[str] = None
    ) -> None:
        """
        Replace the monitor list and pick the primary one.
        Args:
            monitors: Every connected monitor.
            primary_name: Preferred output name; the first monitor is used
                when it is missing or not connected.
        """
        self.monitors = list(monitors)
        primary = None
        if primary_name:
            primary = next((m for m in self.monitors if m.name == primary_name), None)
            if primary is None and self.monitors:
                logger.warning(
                    f"Configured primary output '{primary_name}' not found. Falling back to the first monitor."
                )
        if primary is None and self.monitors:
            primary = self.monitors[0]
        self.primary_monitor = primary
        self.emit("monitors-changed")


class Overview(SignalEmitter):
    """Expose/scale mode. While visible, click-to-minimize is suspended."""

    visible = NotifyProperty(False)

    def __init__(self, actions: Optional[Any] = None):
        super().__init__()
        self.actions = actions

    def hide(self) -> None:
        if not self.visible:
            return
        self.visible = False
        if self.actions is not None:
            self.actions.hide_overview()


class WindowManager(SignalEmitter):
    """Workspace switching policy shared by the whole shell."""

    can_scroll = NotifyProperty(True)

    def __init__(self, workspace_manager, actions: Optional[Any] = None):
        super().__init__()
        self.workspace_manager = workspace_manager
        self.actions = actions

    def handle_workspace_scroll(self, event: ScrollEvent) -> bool:
        if not self.can_scroll:
            return EVENT_PROPAGATE
        if event.direction in (ScrollDirection.UP, ScrollDirection.LEFT):
            step = -1
        else:
            step = 1
        current = self.workspace_manager.get_active_workspace_index()
        target = current + step
        if not 0 <= target < self.workspace_manager.n_workspaces:
            return EVENT_STOP
        self.workspace_manager.activate(target)
        if self.actions is not None:
            self.actions.switch_workspace(target)
        return EVENT_STOP


@dataclass
class ShellContext:
    """Everything a plugin may touch, passed explicitly instead of globals."""

    display: Any
    workspace_manager: Any
    window_tracker: Any
    layout_manager: LayoutManager
    overview: Overview
    wm: WindowManager
    panel: Any


def create_shell(
    actions: Optional[Any] = None,
    window_tracker: Optional[Any] = None,
    n_workspaces: int = 1,
    panel_height: int = 0,
) -> ShellContext:
    """
    Build a complete shell model.
    Args:
        actions: Compositor backend receiving window and workspace requests.
        window_tracker: Application resolver; the desktop-entry one by default.
        n_workspaces: Initial workspace count.
        panel_height: Initial panel box height in pixels.
    """
    from taskpanel.core.app_tracker import WindowTracker
    from taskpanel.core.compositor.model import Display, WorkspaceManager
    from taskpanel.core.panel import Panel

    display = Display(actions)
    workspace_manager = WorkspaceManager(display, n_workspaces)
    return ShellContext(
        display=display,
        workspace_manager=workspace_manager,
        window_tracker=window_tracker or WindowTracker(),
        layout_manager=LayoutManager(PanelBox(panel_height)),
        overview=Overview(actions),
        wm=WindowManager(workspace_manager, actions),
        panel=Panel(),
    )
