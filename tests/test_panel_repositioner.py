import pytest

from taskpanel.core.panel_menu import PanelButton, PopupMenu, Side
from taskpanel.core.shell import Monitor
from taskpanel.plugins.essential.panel_position.repositioner import (
    PanelPosition,
    PanelRepositioner,
)


@pytest.fixture
def repositioner(shell):
    return PanelRepositioner(shell)


def menu_button():
    button = PanelButton()
    button.set_menu(PopupMenu(button))
    return button


def subscription_counts(shell):
    return (
        shell.display.handler_count("workareas-changed"),
        shell.layout_manager.panel_box.handler_count("notify::height"),
    )


def test_bottom_places_panel_at_monitor_bottom(shell, repositioner):
    repositioner.set_position(PanelPosition.BOTTOM)

    assert shell.layout_manager.panel_box.get_position() == (0, 1048)
    assert subscription_counts(shell) == (1, 1)


def test_bottom_twice_keeps_single_subscriptions(shell, repositioner):
    repositioner.set_position(PanelPosition.BOTTOM)
    repositioner.set_position(PanelPosition.BOTTOM)
    repositioner.set_position(PanelPosition.BOTTOM, force=True)

    assert shell.layout_manager.panel_box.get_position() == (0, 1048)
    assert subscription_counts(shell) == (1, 1)


def test_height_change_re_applies_bottom(shell, repositioner):
    repositioner.set_position(PanelPosition.BOTTOM)

    shell.layout_manager.panel_box.height = 48

    assert shell.layout_manager.panel_box.get_position() == (0, 1032)


def test_workarea_change_re_applies_bottom(shell, repositioner):
    repositioner.set_position(PanelPosition.BOTTOM)
    shell.layout_manager.set_monitors(
        [Monitor(x=1920, y=0, width=2560, height=1440, name="DP-2")]
    )

    shell.display.emit("workareas-changed")

    assert shell.layout_manager.panel_box.get_position() == (1920, 1408)


def test_bottom_then_top_revokes_subscriptions(shell, repositioner):
    repositioner.set_position(PanelPosition.BOTTOM)
    repositioner.set_position(PanelPosition.TOP)

    assert subscription_counts(shell) == (0, 0)
    assert repositioner._workareas_changed_signal is None
    assert repositioner._panel_height_signal is None
    assert shell.layout_manager.panel_box.get_position() == (0, 0)

    shell.layout_manager.panel_box.height = 64
    assert shell.layout_manager.panel_box.get_position() == (0, 0)


def test_menus_follow_the_panel_edge(shell, repositioner):
    existing = menu_button()
    shell.panel.add_to_status_area("existing", existing)

    repositioner.set_position(PanelPosition.BOTTOM)
    attached_while_bottom = menu_button()
    shell.panel.add_to_status_area("bottom", attached_while_bottom)

    assert existing.menu.box_pointer.user_arrow_side is Side.BOTTOM
    assert attached_while_bottom.menu.box_pointer.user_arrow_side is Side.BOTTOM

    repositioner.set_position(PanelPosition.TOP)
    attached_while_top = menu_button()
    shell.panel.add_to_status_area("top", attached_while_top)

    assert existing.menu.box_pointer.user_arrow_side is Side.TOP
    assert attached_while_top.menu.box_pointer.user_arrow_side is None


def test_without_primary_monitor_geometry_is_skipped(shell, repositioner):
    shell.layout_manager.panel_box.set_position(5, 5)
    shell.layout_manager.set_monitors([])

    assert repositioner.monitor_get_info() is None
    repositioner.set_position(PanelPosition.BOTTOM)

    assert shell.layout_manager.panel_box.get_position() == (5, 5)
    assert subscription_counts(shell) == (1, 1)

    repositioner.set_position(PanelPosition.TOP)
    assert shell.layout_manager.panel_box.get_position() == (0, 0)


def test_monitor_info_reports_primary_geometry(repositioner):
    info = repositioner.monitor_get_info()

    assert (info.x, info.y, info.width, info.height) == (0, 0, 1920, 1080)
    assert info.geometry_scale == 1.0


@pytest.mark.parametrize(
    "value, expected",
    [("bottom", PanelPosition.BOTTOM), ("BOTTOM", PanelPosition.BOTTOM), ("top", PanelPosition.TOP), ("", PanelPosition.TOP)],
)
def test_position_from_setting(value, expected):
    assert PanelPosition.from_setting(value) is expected
