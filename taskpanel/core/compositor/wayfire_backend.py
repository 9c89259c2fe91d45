"""
Keeps the compositor model in sync with Wayfire and carries the panel's
window requests back to it.
"""

from typing import Any, Dict, List, Optional

import structlog

from taskpanel.core.compositor.model import Window, WindowType
from taskpanel.core.shell import Monitor

logger = structlog.get_logger()

OVERVIEW_PLUGINS = ("scale", "expo")


class WayfireBackend:
    EVENTS = [
        "view-mapped",
        "view-unmapped",
        "view-closed",
        "view-focused",
        "view-minimized",
        "view-app-id-changed",
        "view-title-changed",
        "view-workspace-changed",
        "view-set-output",
        "wset-workspace-changed",
        "output-added",
        "output-removed",
        "output-layout-changed",
        "plugin-activation-state-changed",
    ]

    def __init__(self, ipc, primary_output_name: Optional[str] = None):
        self.ipc = ipc
        self.primary_output_name = primary_output_name or None
        self.shell: Any = None
        self.grid_width = 1
        self.grid_height = 1
        self._output_index: Dict[int, int] = {}
        self._overview_outputs: Dict[Any, str] = {}
        self._handlers = {
            "view-mapped": self._on_view_mapped,
            "view-unmapped": self._on_view_unmapped,
            "view-closed": self._on_view_unmapped,
            "view-focused": self._on_view_focused,
            "view-minimized": self._on_view_minimized,
            "view-app-id-changed": self._on_view_app_id_changed,
            "view-title-changed": self._on_view_title_changed,
            "view-workspace-changed": self._on_view_workspace_changed,
            "view-set-output": self._on_view_set_output,
            "wset-workspace-changed": self._on_wset_workspace_changed,
            "output-added": self._on_outputs_changed,
            "output-removed": self._on_outputs_changed,
            "output-layout-changed": self._on_outputs_changed,
            "plugin-activation-state-changed": self._on_plugin_activation_changed,
        }

    def bind(self, shell) -> None:
        self.shell = shell

    def subscribe(self, event_manager) -> None:
        for event_type in self.EVENTS:
            event_manager.subscribe_to_event(
                event_type, self.handle_event, "wayfire_backend"
            )

    def unsubscribe(self, event_manager) -> None:
        event_manager.unsubscribe_plugin("wayfire_backend")

    @property
    def display(self):
        return self.shell.display

    @property
    def workspace_manager(self):
        return self.shell.workspace_manager

    # Model population

    def populate(self) -> None:
        """Mirror the compositor's current outputs, workspaces and views."""
        self._refresh_outputs()
        focused_output = self.ipc.get_focused_output() or {}
        workspace = focused_output.get("workspace") or {}
        self.grid_width = max(1, workspace.get("grid_width", 1))
        self.grid_height = max(1, workspace.get("grid_height", 1))
        self.workspace_manager.set_n_workspaces(self.grid_width * self.grid_height)
        self.workspace_manager.activate(
            self.workspace_index(workspace.get("x", 0), workspace.get("y", 0))
        )
        views = self.ipc.list_views() or []
        for view in views:
            if self.is_taskbar_view(view):
                self._add_view(view)
        logger.info(
            f"Compositor state loaded: {len(self.display.list_windows())} windows, "
            f"{self.workspace_manager.n_workspaces} workspaces."
        )

    def workspace_index(self, x: int, y: int) -> int:
        return y * self.grid_width + x

    def workspace_coords(self, index: int):
        return index % self.grid_width, index // self.grid_width

    @staticmethod
    def is_taskbar_view(view: Optional[Dict[str, Any]]) -> bool:
        if not isinstance(view, dict):
            return False
        if view.get("pid", -1) == -1 or view.get("role") != "toplevel":
            return False
        if view.get("mapped") is False:
            return False
        return view.get("app-id") not in ("", "nil")

    @staticmethod
    def window_type_for(view: Dict[str, Any]) -> WindowType:
        parent = view.get("parent", -1)
        if parent not in (None, -1):
            return WindowType.MODAL_DIALOG
        return WindowType.NORMAL

    def _workspace_for(self, view: Dict[str, Any]):
        if view.get("sticky"):
            return self.workspace_manager.get_active_workspace()
        coords = self.ipc.get_workspace_from_view(view["id"])
        if not coords:
            return self.workspace_manager.get_active_workspace()
        index = self.workspace_index(coords.get("x", 0), coords.get("y", 0))
        workspace = self.workspace_manager.get_workspace_by_index(index)
        return workspace or self.workspace_manager.get_active_workspace()

    def _add_view(self, view: Dict[str, Any]) -> Window:
        app_id = view.get("app-id")
        window = Window(
            view["id"],
            self.display,
            workspace=self._workspace_for(view),
            monitor=self._output_index.get(view.get("output-id"), 0),
            window_type=self.window_type_for(view),
            title=view.get("title", ""),
            wm_class=app_id,
            gtk_application_id=app_id,
            minimized=bool(view.get("minimized", False)),
        )
        window = self.display.add_window(window)
        if view.get("activated"):
            self.display.set_focus_window(window)
        return window

    def _refresh_outputs(self) -> None:
        outputs = self.ipc.list_outputs() or []
        monitors: List[Monitor] = []
        self._output_index = {}
        for index, output in enumerate(outputs):
            geometry = output.get("geometry", {})
            monitors.append(
                Monitor(
                    x=geometry.get("x", 0),
                    y=geometry.get("y", 0),
                    width=geometry.get("width", 0),
                    height=geometry.get("height", 0),
                    name=output.get("name", ""),
                    index=index,
                )
            )
            self._output_index[output.get("id")] = index
        self.shell.layout_manager.set_monitors(monitors, self.primary_output_name)

    # Events

    def handle_event(self, msg: Dict[str, Any]) -> None:
        handler = self._handlers.get(msg.get("event"))
        if handler is not None:
            handler(msg)

    def _window_for(self, msg: Dict[str, Any]) -> Optional[Window]:
        view = msg.get("view")
        if not isinstance(view, dict):
            return None
        return self.display.get_window(view.get("id"))

    def _on_view_mapped(self, msg):
        view = msg.get("view")
        if not self.is_taskbar_view(view) or self.display.get_window(view["id"]):
            return
        self._add_view(view)

    def _on_view_unmapped(self, msg):
        window = self._window_for(msg)
        if window is not None:
            self.display.remove_window(window.id)

    def _on_view_focused(self, msg):
        view = msg.get("view")
        if view is None:
            self.display.set_focus_window(None)
            return
        window = self._window_for(msg)
        if window is None:
            return
        self.display.restack_to_top(window)
        self.display.set_focus_window(window)

    def _on_view_minimized(self, msg):
        window = self._window_for(msg)
        if window is None:
            return
        window.minimized = bool(msg["view"].get("minimized", False))
        if window.minimized and window.has_focus():
            self.display.set_focus_window(None)

    def _on_view_app_id_changed(self, msg):
        window = self._window_for(msg)
        if window is None:
            return
        app_id = msg["view"].get("app-id")
        window.wm_class = app_id
        window.gtk_application_id = app_id

    def _on_view_title_changed(self, msg):
        window = self._window_for(msg)
        if window is not None:
            window.title = msg["view"].get("title", "")

    def _on_view_workspace_changed(self, msg):
        window = self._window_for(msg)
        target = msg.get("to")
        if window is None or not isinstance(target, dict):
            return
        index = self.workspace_index(target.get("x", 0), target.get("y", 0))
        workspace = self.workspace_manager.get_workspace_by_index(index)
        if workspace is not None:
            window.change_workspace(workspace)

    def _on_view_set_output(self, msg):
        window = self._window_for(msg)
        if window is None:
            return
        window.set_monitor(self._output_index.get(msg["view"].get("output-id"), 0))
        window.change_workspace(self._workspace_for(msg["view"]))

    def _on_wset_workspace_changed(self, msg):
        target = msg.get("new-workspace")
        if not isinstance(target, dict):
            return
        self.workspace_manager.activate(
            self.workspace_index(target.get("x", 0), target.get("y", 0))
        )

    def _on_outputs_changed(self, msg):
        self._refresh_outputs()
        self.display.emit("workareas-changed")

    def _on_plugin_activation_changed(self, msg):
        plugin = msg.get("plugin")
        if plugin not in OVERVIEW_PLUGINS:
            return
        output = msg.get("output")
        if msg.get("state"):
            self._overview_outputs[output] = plugin
        else:
            self._overview_outputs.pop(output, None)
        self.shell.overview.visible = bool(self._overview_outputs)

    # Requests from the panel

    def activate_window(self, window: Window, timestamp: int = 0) -> None:
        self.ipc.set_view_minimized(window.id, False)
        self.ipc.go_workspace_set_focus(window.id)

    def focus_window(self, window: Window, timestamp: int = 0) -> None:
        self.ipc.set_focus(window.id)

    def minimize_window(self, window: Window) -> None:
        self.ipc.set_view_minimized(window.id, True)

    def unminimize_window(self, window: Window) -> None:
        self.ipc.set_view_minimized(window.id, False)

    def raise_window(self, window: Window) -> None:
        # Wayfire IPC cannot raise without focusing; the preview stays local.
        logger.debug(f"Raise of view {window.id} kept in the local stacking order.")

    def hide_overview(self) -> None:
        for output, plugin in list(self._overview_outputs.items()):
            if plugin == "scale":
                self.ipc.scale_toggle(output)
            else:
                logger.debug(f"Cannot hide '{plugin}' on output {output} over IPC.")
        self._overview_outputs.clear()

    def switch_workspace(self, index: int) -> None:
        x, y = self.workspace_coords(index)
        self.ipc.set_workspace(x, y)
