from typing import Dict, Optional

import structlog

from taskpanel.core.panel_menu import ArrowSidePolicy, Control, PanelButton

logger = structlog.get_logger()


class Panel(Control):
    """
    The shared panel: three boxes plus the named status area registry.

    Signals:
        scroll-event(event): a scroll happened anywhere on the panel.
    """

    def __init__(self, arrow_policy: Optional[ArrowSidePolicy] = None):
        super().__init__()
        self.arrow_policy = arrow_policy or ArrowSidePolicy()
        self.left_box = Control()
        self.center_box = Control()
        self.right_box = Control()
        for box in (self.left_box, self.center_box, self.right_box):
            self.add_child(box)
        self.status_area: Dict[str, Control] = {}

    def get_box(self, name: str) -> Control:
        boxes = {
            "left": self.left_box,
            "center": self.center_box,
            "right": self.right_box,
        }
        if name not in boxes:
            raise ValueError(f"Unknown panel box '{name}'")
        return boxes[name]

    def add_to_status_area(
        self, role: str, control: Control, position: int = 0, box: str = "right"
    ) -> Control:
        """
        Register ``control`` under ``role`` and attach it to ``box``.

        ``position`` is the insertion index inside the box, clamped to its
        end. A role that is already registered is rejected.
        """
        if role in self.status_area:
            raise ValueError(
                f"Extension point conflict: there is already a status indicator for role {role}"
            )
        self.get_box(box).add_child(control, position)
        self.status_area[role] = control
        if isinstance(control, PanelButton):
            self.arrow_policy.register(control)
        control.connect(
            "destroy",
            lambda *_: self._on_control_destroyed(role, control),
            owner=self,
        )
        logger.debug(f"Status area '{role}' added to the {box} box")
        return control

    def _on_control_destroyed(self, role: str, control: Control) -> None:
        if self.status_area.get(role) is control:
            del self.status_area[role]
