import pytest

from taskpanel.core.panel import Panel
from taskpanel.core.panel_menu import (
    AppMenu,
    ArrowSidePolicy,
    Control,
    PanelButton,
    PopupMenu,
    Side,
)


def make_button():
    button = PanelButton()
    button.set_menu(PopupMenu(button))
    return button


def test_broadcast_reaches_every_registered_menu():
    policy = ArrowSidePolicy()
    buttons = [make_button() for _ in range(3)]
    for button in buttons:
        policy.register(button)

    policy.set_side(Side.BOTTOM)

    assert all(b.menu.box_pointer.user_arrow_side is Side.BOTTOM for b in buttons)
    assert policy.is_overriding


def test_override_applies_to_late_registrations_and_late_menus():
    policy = ArrowSidePolicy()
    policy.set_side(Side.BOTTOM)

    registered_late = make_button()
    policy.register(registered_late)
    menu_late = PanelButton()
    policy.register(menu_late)
    menu_late.set_menu(PopupMenu(menu_late))

    assert registered_late.menu.box_pointer.user_arrow_side is Side.BOTTOM
    assert menu_late.menu.box_pointer.user_arrow_side is Side.BOTTOM


def test_top_broadcast_clears_the_override():
    policy = ArrowSidePolicy()
    existing = make_button()
    policy.register(existing)
    policy.set_side(Side.BOTTOM)

    policy.set_side(Side.TOP, override=False)
    late = make_button()
    policy.register(late)

    assert existing.menu.box_pointer.user_arrow_side is Side.TOP
    assert late.menu.box_pointer.user_arrow_side is None
    assert late.menu.box_pointer.arrow_side is Side.TOP
    assert not policy.is_overriding


def test_destroyed_buttons_leave_the_registry():
    policy = ArrowSidePolicy()
    button = make_button()
    policy.register(button)

    button.destroy()

    assert button not in policy
    assert len(policy) == 0


def test_arrow_side_change_is_announced_once():
    policy = ArrowSidePolicy()
    button = make_button()
    policy.register(button)
    changes = []
    button.menu.connect("arrow-side-changed", lambda *_: changes.append(1))

    policy.set_side(Side.BOTTOM)
    policy.set_side(Side.BOTTOM)

    assert changes == [1]


def test_status_area_rejects_duplicate_roles():
    panel = Panel()
    panel.add_to_status_area("task-button-1", Control(), 0, "left")

    with pytest.raises(ValueError):
        panel.add_to_status_area("task-button-1", Control(), 0, "left")


def test_status_area_position_is_clamped_and_registers_buttons():
    panel = Panel()
    first, second = make_button(), make_button()

    panel.add_to_status_area("a", first, 99, "left")
    panel.add_to_status_area("b", second, 0, "left")

    assert panel.left_box.get_children() == [second, first]
    assert first in panel.arrow_policy and second in panel.arrow_policy


def test_destroy_frees_the_status_area_role():
    panel = Panel()
    button = make_button()
    panel.add_to_status_area("role", button, 0, "right")

    button.destroy()

    assert "role" not in panel.status_area
    assert panel.right_box.get_children() == []


def test_unknown_box_is_an_error():
    with pytest.raises(ValueError):
        Panel().get_box("middle")


def test_app_menu_items(app_registry):
    menu = AppMenu()
    assert menu.items() == []

    menu.set_app(app_registry["firefox"])
    assert menu.items() == ["new-window", "new-private-window"]

    menu.set_app(app_registry["org.gnome.Settings"])
    assert menu.items() == []
