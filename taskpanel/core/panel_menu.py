"""
Panel controls and their popup menus.

``ArrowSidePolicy`` replaces patching a shared attach-menu routine: every
control that can own a menu joins the policy's registry when it is added to
the panel, and ``set_side`` broadcasts the current side to all of them.
Controls that get their menu later ask the policy on ``set_menu``.
"""

import enum
from typing import Any, List, Optional, Set

import structlog

from taskpanel.core.signals import NotifyProperty, SignalEmitter

logger = structlog.get_logger()


class Side(enum.Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class BoxPointer:
    """The anchor element of a popup; ``user_arrow_side`` overrides the default."""

    default_side = Side.TOP

    def __init__(self):
        self.user_arrow_side: Optional[Side] = None

    @property
    def arrow_side(self) -> Side:
        return self.user_arrow_side or self.default_side


class PopupMenu(SignalEmitter):
    is_open = NotifyProperty(False)

    def __init__(self, source_control: Optional["Control"] = None):
        super().__init__()
        self.source_control = source_control
        self.box_pointer = BoxPointer()

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def toggle(self) -> None:
        if self.is_open:
            self.close()
        else:
            self.open()

    def destroy(self) -> None:
        self.close()
        self.source_control = None


class AppMenu(PopupMenu):
    """Menu bound to an application: new window and per-app actions."""

    def __init__(self, source_control: Optional["Control"] = None):
        super().__init__(source_control)
        self.app: Optional[Any] = None

    def set_app(self, app: Optional[Any]) -> None:
        if app is self.app:
            return
        self.app = app
        self.emit("app-changed")

    def items(self) -> List[str]:
        if self.app is None:
            return []
        items = []
        if self.app.can_open_new_window():
            items.append("new-window")
        items.extend(self.app.actions)
        return items


class Control(SignalEmitter):
    """A node in the panel's widget tree, mirrored to Gtk by ``gtk_view``."""

    visible = NotifyProperty(True)
    opacity = NotifyProperty(255)
    hover = NotifyProperty(False)

    def __init__(self):
        super().__init__()
        self.parent: Optional["Control"] = None
        self.destroyed = False
        self._children: List["Control"] = []
        self._style_classes: Set[str] = set()

    def add_child(self, child: "Control", index: Optional[int] = None) -> None:
        if child.parent is not None:
            child.parent.remove_child(child)
        if index is None or index >= len(self._children):
            self._children.append(child)
        else:
            self._children.insert(max(index, 0), child)
        child.parent = self
        self.emit("child-added", child)

    def remove_child(self, child: "Control") -> None:
        if child not in self._children:
            return
        self._children.remove(child)
        child.parent = None
        self.emit("child-removed", child)

    def get_children(self) -> List["Control"]:
        return list(self._children)

    def add_style_class_name(self, name: str) -> None:
        if name not in self._style_classes:
            self._style_classes.add(name)
            self.emit("style-changed")

    def remove_style_class_name(self, name: str) -> None:
        if name in self._style_classes:
            self._style_classes.discard(name)
            self.emit("style-changed")

    def has_style_class_name(self, name: str) -> bool:
        return name in self._style_classes

    def get_style_classes(self) -> List[str]:
        return sorted(self._style_classes)

    def get_hover(self) -> bool:
        return self.hover

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        for child in self.get_children():
            child.destroy()
        self.emit("destroy")
        if self.parent is not None:
            self.parent.remove_child(self)
        self._handlers.clear()


class Icon(Control):
    def __init__(self):
        super().__init__()
        self.icon_name: Optional[str] = None
        self.icon_size = 16

    def set_icon_name(self, name: Optional[str]) -> None:
        if name == self.icon_name:
            return
        self.icon_name = name
        self.emit("icon-changed")

    def set_icon_size(self, size: int) -> None:
        if size == self.icon_size:
            return
        self.icon_size = size
        self.emit("icon-changed")


class PanelButton(Control):
    """A panel control that may own a popup menu."""

    def __init__(self):
        super().__init__()
        self.menu: Optional[PopupMenu] = None
        self.arrow_policy: Optional["ArrowSidePolicy"] = None

    def set_menu(self, menu: Optional[PopupMenu]) -> None:
        if self.menu is not None and self.menu is not menu:
            self.menu.destroy()
        self.menu = menu
        if menu is not None and self.arrow_policy is not None:
            self.arrow_policy.apply(self)
        self.emit("menu-changed")

    def destroy(self) -> None:
        if self.destroyed:
            return
        if self.arrow_policy is not None:
            self.arrow_policy.unregister(self)
        if self.menu is not None:
            self.menu.destroy()
        super().destroy()


class ArrowSidePolicy:
    """
    Flat registry of menu-owning controls and the arrow side their menus use.

    ``side`` is ``None`` while no override is active; registered controls then
    keep whatever arrow side their menu already has.
    """

    def __init__(self):
        self.side: Optional[Side] = None
        self._controls: List[PanelButton] = []

    @property
    def is_overriding(self) -> bool:
        return self.side is not None

    def __len__(self) -> int:
        return len(self._controls)

    def __contains__(self, control) -> bool:
        return control in self._controls

    def register(self, control: PanelButton) -> None:
        if control in self._controls:
            return
        self._controls.append(control)
        control.arrow_policy = self
        self.apply(control)

    def unregister(self, control: PanelButton) -> None:
        if control in self._controls:
            self._controls.remove(control)
        if control.arrow_policy is self:
            control.arrow_policy = None

    def apply(self, control: PanelButton) -> None:
        if self.side is None:
            return
        self._set_arrow_side(control, self.side)

    def set_side(self, side: Side, override: bool = True) -> None:
        """
        Broadcast ``side`` to every registered control that owns a menu.
        Args:
            side: The edge the panel now sits against.
            override: Keep applying ``side`` to controls registered or given a
                menu later. ``False`` broadcasts once and clears the override.
        """
        for control in list(self._controls):
            self._set_arrow_side(control, side)
        self.side = side if override else None
        logger.debug(
            f"Menu arrow side set to {side.value} for {len(self._controls)} controls (override={override})"
        )

    @staticmethod
    def _set_arrow_side(control: PanelButton, side: Side) -> None:
        menu = getattr(control, "menu", None)
        box_pointer = getattr(menu, "box_pointer", None)
        if box_pointer is None:
            return
        if box_pointer.user_arrow_side is not side:
            box_pointer.user_arrow_side = side
            menu.emit("arrow-side-changed")
