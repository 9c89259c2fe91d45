import pytest

from taskpanel.core.input_events import ScrollDirection, ScrollEvent
from taskpanel.core.shell import LayoutManager, Monitor
from taskpanel.core.signals import EVENT_PROPAGATE, EVENT_STOP


@pytest.mark.parametrize(
    "direction, start, expected",
    [
        (ScrollDirection.DOWN, 0, 1),
        (ScrollDirection.RIGHT, 0, 1),
        (ScrollDirection.UP, 1, 0),
        (ScrollDirection.LEFT, 1, 0),
        (ScrollDirection.UP, 0, 0),
        (ScrollDirection.DOWN, 1, 1),
    ],
)
def test_workspace_scroll(shell, direction, start, expected):
    shell.workspace_manager.activate(start)

    result = shell.wm.handle_workspace_scroll(ScrollEvent(direction))

    assert result is EVENT_STOP
    assert shell.workspace_manager.get_active_workspace_index() == expected


def test_workspace_scroll_disabled(shell, actions):
    shell.wm.can_scroll = False

    result = shell.wm.handle_workspace_scroll(ScrollEvent(ScrollDirection.DOWN))

    assert result is EVENT_PROPAGATE
    assert shell.workspace_manager.get_active_workspace_index() == 0
    actions.switch_workspace.assert_not_called()


@pytest.mark.parametrize(
    "dx, dy, direction",
    [
        (0, 1, ScrollDirection.DOWN),
        (0, -1, ScrollDirection.UP),
        (2, 1, ScrollDirection.RIGHT),
        (-2, 0, ScrollDirection.LEFT),
    ],
)
def test_scroll_event_from_deltas(dx, dy, direction):
    assert ScrollEvent.from_deltas(dx, dy).direction is direction


def test_primary_monitor_by_name():
    layout = LayoutManager()
    monitors = [
        Monitor(0, 0, 1920, 1080, name="DP-1"),
        Monitor(1920, 0, 2560, 1440, name="HDMI-A-1", index=1),
    ]

    layout.set_monitors(monitors, "HDMI-A-1")
    assert layout.primary_monitor is monitors[1]

    layout.set_monitors(monitors, "DP-9")
    assert layout.primary_monitor is monitors[0]

    layout.set_monitors([], "DP-1")
    assert layout.primary_monitor is None


def test_workspace_count_shrinks_active_index(shell):
    shell.workspace_manager.activate(1)
    changes = []
    shell.workspace_manager.connect("active-workspace-changed", lambda *_: changes.append(1))

    shell.workspace_manager.set_n_workspaces(1)

    assert shell.workspace_manager.get_active_workspace_index() == 0
    assert changes == [1]


def test_minimize_respects_minimizable(shell, actions, make_window):
    window = make_window(1, minimizable=False)

    window.minimize()

    assert not window.minimized
    actions.minimize_window.assert_not_called()
