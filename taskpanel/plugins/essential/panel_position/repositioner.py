import enum
from dataclasses import dataclass
from typing import Optional

from taskpanel.core.panel_menu import Side


class PanelPosition(enum.Enum):
    TOP = 0
    BOTTOM = 1

    @classmethod
    def from_setting(cls, value: str) -> "PanelPosition":
        return cls.BOTTOM if str(value).lower() == "bottom" else cls.TOP


@dataclass
class MonitorInfo:
    x: int
    y: int
    width: int
    height: int
    geometry_scale: float


class PanelRepositioner:
    """
    Moves the panel box between the top and the bottom edge of the primary
    monitor.

    While at the bottom it listens to ``workareas-changed`` on the display and
    ``notify::height`` on the panel box and re-applies the placement on each.
    Those two subscriptions exist only while the position is BOTTOM.
    """

    def __init__(self, shell, logger=None):
        self.shell = shell
        self.logger = logger
        self.panel_position = PanelPosition.TOP
        self._workareas_changed_signal: Optional[int] = None
        self._panel_height_signal: Optional[int] = None

    def set_position(self, position: PanelPosition, force: bool = False) -> None:
        """
        Move the panel to ``position``.
        Args:
            position: Target edge.
            force: Re-apply the placement even if already at ``position``.
        """
        monitor_info = self.monitor_get_info()
        panel_box = self.shell.layout_manager.panel_box

        if not force and position == self.panel_position:
            return

        if position == PanelPosition.TOP:
            self.panel_position = PanelPosition.TOP
            self._disconnect_signals()
            top_x = monitor_info.x if monitor_info else 0
            top_y = monitor_info.y if monitor_info else 0
            panel_box.set_position(top_x, top_y)
            self._fix_panel_menu_side(Side.TOP)
            self._log(f"Panel moved to top at ({top_x}, {top_y}).")
            return

        self.panel_position = PanelPosition.BOTTOM

        if monitor_info:
            bottom_x = monitor_info.x
            bottom_y = monitor_info.y + monitor_info.height - panel_box.height
            panel_box.set_position(bottom_x, bottom_y)
            self._log(f"Panel moved to bottom at ({bottom_x}, {bottom_y}).")
        else:
            self._log("No primary monitor; keeping the last panel placement.")

        if self._workareas_changed_signal is None:
            self._workareas_changed_signal = self.shell.display.connect(
                "workareas-changed",
                lambda *_: self.set_position(PanelPosition.BOTTOM, True),
            )

        if self._panel_height_signal is None:
            self._panel_height_signal = panel_box.connect(
                "notify::height",
                lambda *_: self.set_position(PanelPosition.BOTTOM, True),
            )

        self._fix_panel_menu_side(Side.BOTTOM)

    def monitor_get_info(self) -> Optional[MonitorInfo]:
        primary = self.shell.layout_manager.primary_monitor
        if primary is None:
            return None
        return MonitorInfo(
            x=primary.x,
            y=primary.y,
            width=primary.width,
            height=primary.height,
            geometry_scale=primary.geometry_scale,
        )

    def _disconnect_signals(self):
        if self._workareas_changed_signal is not None:
            self.shell.display.disconnect(self._workareas_changed_signal)
            self._workareas_changed_signal = None
        if self._panel_height_signal is not None:
            self.shell.layout_manager.panel_box.disconnect(self._panel_height_signal)
            self._panel_height_signal = None

    def _fix_panel_menu_side(self, side: Side):
        # Controls attached later only follow the side while it is BOTTOM.
        self.shell.panel.arrow_policy.set_side(side, override=side != Side.TOP)

    def _log(self, message: str):
        if self.logger:
            self.logger.debug(message)
