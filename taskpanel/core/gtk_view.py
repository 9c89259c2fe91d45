"""
GTK4 rendering of the panel model.

Every ``Control`` gets a ``ControlView`` that mirrors its children, style
classes, visibility, opacity and icon into Gtk widgets and feeds pointer
input back as ``button-press-event`` and ``hover``. ``PanelWindow`` is the
gtk4-layer-shell surface holding the three panel boxes.
"""

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
gi.require_version("Gtk4LayerShell", "1.0")
from gi.repository import Gdk, Gio, Gtk  # pyright: ignore
from gi.repository import Gtk4LayerShell as LayerShell  # pyright: ignore

import structlog

from taskpanel.core.input_events import BUTTON_SECONDARY, ButtonEvent, ScrollEvent
from taskpanel.core.panel_menu import Control, Icon, PanelButton, Side

logger = structlog.get_logger()

PANEL_CSS = """
.taskpanel { min-height: 0; }
.task-button { padding: 2px 6px; border-radius: 4px; }
.task-button.task-demands-attention { background-color: alpha(@warning_color, 0.35); }
"""

POPOVER_POSITIONS = {
    Side.TOP: Gtk.PositionType.BOTTOM,
    Side.BOTTOM: Gtk.PositionType.TOP,
    Side.LEFT: Gtk.PositionType.RIGHT,
    Side.RIGHT: Gtk.PositionType.LEFT,
}


def load_css() -> None:
    display = Gdk.Display.get_default()
    if display is None:
        return
    css_provider = Gtk.CssProvider()
    css_provider.load_from_string(PANEL_CSS)
    Gtk.StyleContext.add_provider_for_display(
        display, css_provider, Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION
    )


class ControlView:
    """Keeps one Gtk widget in sync with one ``Control``."""

    def __init__(self, control: Control):
        self.control = control
        self.child_views = {}
        self.widget, self.container = self._create_widget()
        self._popover = None
        self._applied_classes = set()

        control.connect("notify::visible", lambda *_: self._sync_visible(), owner=self)
        control.connect("notify::opacity", lambda *_: self._sync_opacity(), owner=self)
        control.connect("style-changed", lambda *_: self._sync_style(), owner=self)
        control.connect("child-added", self._on_child_added, owner=self)
        control.connect("child-removed", self._on_child_removed, owner=self)
        control.connect("destroy", lambda *_: self._on_destroy(), owner=self)
        if isinstance(control, Icon):
            control.connect("icon-changed", lambda *_: self._sync_icon(), owner=self)
        if isinstance(control, PanelButton):
            self._setup_input()

        for child in control.get_children():
            self._on_child_added(control, child)
        self._sync_visible()
        self._sync_opacity()
        self._sync_style()
        if isinstance(control, Icon):
            self._sync_icon()

    def _create_widget(self):
        if isinstance(self.control, Icon):
            image = Gtk.Image()
            return image, None
        box = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=4)
        if isinstance(self.control, PanelButton):
            button = Gtk.Button()
            button.set_has_frame(False)
            button.set_child(box)
            return button, box
        return box, box

    def _setup_input(self):
        click = Gtk.GestureClick()
        click.set_button(0)
        click.set_propagation_phase(Gtk.PropagationPhase.CAPTURE)
        click.connect("pressed", self._on_pressed)
        self.widget.add_controller(click)

        motion = Gtk.EventControllerMotion()
        motion.connect("enter", lambda *_: setattr(self.control, "hover", True))
        motion.connect("leave", lambda *_: setattr(self.control, "hover", False))
        self.widget.add_controller(motion)

        self.control.connect("menu-changed", lambda *_: self._bind_menu(), owner=self)
        self._bind_menu()

    def _on_pressed(self, gesture, n_press, x, y):
        event = ButtonEvent(gesture.get_current_button(), gesture.get_current_event_time())
        if self.control.emit("button-press-event", event):
            gesture.set_state(Gtk.EventSequenceState.CLAIMED)
            return
        menu = self.control.menu
        if event.get_button() == BUTTON_SECONDARY and menu is not None:
            menu.toggle()
            gesture.set_state(Gtk.EventSequenceState.CLAIMED)

    # Menus

    def _bind_menu(self):
        menu = self.control.menu
        if self._popover is not None:
            self._popover.unparent()
            self._popover = None
        if menu is None:
            return
        self._popover = Gtk.PopoverMenu()
        self._popover.set_parent(self.widget)
        self._popover.connect("closed", lambda *_: menu.close())
        menu.connect("notify::is-open", lambda *_: self._sync_menu_open(), owner=self)
        menu.connect("arrow-side-changed", lambda *_: self._sync_menu_side(), owner=self)
        menu.connect("app-changed", lambda *_: self._sync_menu_model(), owner=self)
        self._sync_menu_model()
        self._sync_menu_side()

    def _sync_menu_model(self):
        menu = self.control.menu
        app = getattr(menu, "app", None)
        model = Gio.Menu()
        group = Gio.SimpleActionGroup()
        for item in menu.items() if hasattr(menu, "items") else []:
            action = Gio.SimpleAction.new(item.replace(".", "-"), None)
            if item == "new-window":
                model.append("New Window", f"task.{item}")
                action.connect("activate", lambda *_: app.open_new_window())
            else:
                model.append(item.replace("-", " ").title(), f"task.{action.get_name()}")
                action.connect(
                    "activate", lambda _a, _p, name=item: app.launch_action(name)
                )
            group.add_action(action)
        self.widget.insert_action_group("task", group)
        self._popover.set_menu_model(model)

    def _sync_menu_side(self):
        side = self.control.menu.box_pointer.arrow_side
        self._popover.set_position(POPOVER_POSITIONS[side])

    def _sync_menu_open(self):
        if self.control.menu.is_open:
            self._popover.popup()
        else:
            self._popover.popdown()

    # Model to widget

    def _sync_visible(self):
        self.widget.set_visible(bool(self.control.visible))

    def _sync_opacity(self):
        self.widget.set_opacity(self.control.opacity / 255)

    def _sync_style(self):
        classes = set(self.control.get_style_classes())
        for name in self._applied_classes - classes:
            self.widget.remove_css_class(name)
        for name in classes - self._applied_classes:
            self.widget.add_css_class(name)
        self._applied_classes = classes

    def _sync_icon(self):
        self.widget.set_from_icon_name(self.control.icon_name)
        self.widget.set_pixel_size(self.control.icon_size)

    def _on_child_added(self, _control, child):
        if self.container is None or child in self.child_views:
            return
        view = ControlView(child)
        self.child_views[child] = view
        children = self.control.get_children()
        index = children.index(child)
        sibling = None
        for previous in reversed(children[:index]):
            if previous in self.child_views:
                sibling = self.child_views[previous].widget
                break
        self.container.insert_child_after(view.widget, sibling)

    def _on_child_removed(self, _control, child):
        view = self.child_views.pop(child, None)
        if view is not None and self.container is not None:
            self.container.remove(view.widget)

    def _on_destroy(self):
        if self._popover is not None:
            self._popover.unparent()
            self._popover = None
        menu = getattr(self.control, "menu", None)
        if menu is not None:
            menu.disconnect_object(self)
        self.control.disconnect_object(self)


class PanelWindow(Gtk.ApplicationWindow):
    """
    The layer-shell surface of the panel.

    Anchored to the left and right edges plus the TOP or BOTTOM edge,
    whichever the panel box position is closer to on the primary monitor.
    """

    def __init__(self, application, shell, height: int):
        super().__init__(application=application)
        self.shell = shell
        self.panel_box = shell.layout_manager.panel_box
        self.panel_box.height = height
        self.add_css_class("taskpanel")

        LayerShell.init_for_window(self)
        LayerShell.set_namespace(self, "taskpanel")
        LayerShell.set_layer(self, LayerShell.Layer.TOP)
        LayerShell.set_anchor(self, LayerShell.Edge.LEFT, True)
        LayerShell.set_anchor(self, LayerShell.Edge.RIGHT, True)
        LayerShell.auto_exclusive_zone_enable(self)
        self.set_default_size(-1, height)

        panel = shell.panel
        self.left_view = ControlView(panel.left_box)
        self.center_view = ControlView(panel.center_box)
        self.right_view = ControlView(panel.right_box)
        center_box = Gtk.CenterBox()
        center_box.set_start_widget(self.left_view.widget)
        center_box.set_center_widget(self.center_view.widget)
        center_box.set_end_widget(self.right_view.widget)
        self.set_child(center_box)

        scroll = Gtk.EventControllerScroll.new(
            Gtk.EventControllerScrollFlags.BOTH_AXES
            | Gtk.EventControllerScrollFlags.DISCRETE
        )
        scroll.connect("scroll", self._on_scroll)
        self.add_controller(scroll)

        self.panel_box.connect(
            "position-changed", lambda *_: self.update_anchor(), owner=self
        )
        shell.layout_manager.connect(
            "monitors-changed", lambda *_: self.update_monitor(), owner=self
        )
        self.update_monitor()
        self.update_anchor()

    def _on_scroll(self, _controller, dx, dy):
        return self.shell.panel.emit("scroll-event", ScrollEvent.from_deltas(dx, dy))

    def update_monitor(self):
        primary = self.shell.layout_manager.primary_monitor
        display = Gdk.Display.get_default()
        if primary is None or display is None:
            return
        for gdk_monitor in display.get_monitors():
            if gdk_monitor.get_connector() == primary.name:
                LayerShell.set_monitor(self, gdk_monitor)
                return

    def update_anchor(self):
        primary = self.shell.layout_manager.primary_monitor
        _, y = self.panel_box.get_position()
        at_bottom = primary is not None and y > primary.y + primary.height // 2
        LayerShell.set_anchor(self, LayerShell.Edge.BOTTOM, at_bottom)
        LayerShell.set_anchor(self, LayerShell.Edge.TOP, not at_bottom)
        logger.debug(f"Panel anchored to the {'bottom' if at_bottom else 'top'} edge.")
