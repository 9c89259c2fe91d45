from unittest.mock import Mock

import pytest

from taskpanel.core.compositor.model import WindowType
from taskpanel.core.compositor.wayfire_backend import WayfireBackend
from taskpanel.core.shell import create_shell


def view(view_id, **overrides):
    data = {
        "id": view_id,
        "pid": 1000 + view_id,
        "role": "toplevel",
        "mapped": True,
        "app-id": "firefox",
        "title": f"Window {view_id}",
        "minimized": False,
        "activated": False,
        "parent": -1,
        "output-id": 1,
    }
    data.update(overrides)
    return data


@pytest.fixture
def ipc():
    ipc = Mock()
    ipc.list_outputs.return_value = [
        {"id": 1, "name": "DP-1", "geometry": {"x": 0, "y": 0, "width": 1920, "height": 1080}},
        {"id": 2, "name": "HDMI-A-1", "geometry": {"x": 1920, "y": 0, "width": 2560, "height": 1440}},
    ]
    ipc.get_focused_output.return_value = {
        "id": 1,
        "workspace": {"x": 1, "y": 0, "grid_width": 3, "grid_height": 2},
    }
    ipc.list_views.return_value = [
        view(1, activated=True),
        view(2, **{"app-id": "org.gnome.Nautilus"}),
        view(3, pid=-1),
        view(4, role="desktop-environment"),
        view(5, parent=2),
        view(6, **{"app-id": "nil"}),
    ]
    ipc.get_workspace_from_view.side_effect = lambda view_id: {"x": 1, "y": 0}
    return ipc


@pytest.fixture
def backend(ipc, window_tracker):
    backend = WayfireBackend(ipc, "HDMI-A-1")
    backend.bind(create_shell(actions=backend, window_tracker=window_tracker))
    return backend


@pytest.fixture
def populated(backend):
    backend.populate()
    return backend


def test_populate_mirrors_workspace_grid(populated):
    workspace_manager = populated.shell.workspace_manager

    assert workspace_manager.n_workspaces == 6
    assert workspace_manager.get_active_workspace_index() == 1
    assert populated.workspace_coords(4) == (1, 1)


def test_populate_picks_configured_primary_output(populated):
    primary = populated.shell.layout_manager.primary_monitor

    assert primary.name == "HDMI-A-1"
    assert (primary.x, primary.width, primary.height) == (1920, 2560, 1440)


def test_populate_keeps_only_toplevel_views(populated):
    display = populated.shell.display

    assert sorted(w.id for w in display.list_windows()) == [1, 2, 5]
    assert display.focus_window is display.get_window(1)
    assert display.get_window(5).get_window_type() is WindowType.MODAL_DIALOG
    assert display.get_window(2).wm_class == "org.gnome.Nautilus"
    assert display.get_window(2).get_workspace().index == 1


def test_view_mapped_and_unmapped(populated):
    display = populated.shell.display
    created = []
    display.connect("window-created", lambda _d, w: created.append(w.id))

    populated.handle_event({"event": "view-mapped", "view": view(9)})
    populated.handle_event({"event": "view-mapped", "view": view(9)})
    assert created == [9]

    window = display.get_window(9)
    unmanaged = []
    window.connect("unmanaging", lambda *_: unmanaged.append(True))
    populated.handle_event({"event": "view-unmapped", "view": view(9)})

    assert display.get_window(9) is None
    assert window.unmanaged
    assert unmanaged == [True]


def test_view_focused_updates_focus_and_stacking(populated):
    display = populated.shell.display

    populated.handle_event({"event": "view-focused", "view": view(2)})
    assert display.focus_window is display.get_window(2)
    assert display.stacking_order()[-1] is display.get_window(2)

    populated.handle_event({"event": "view-focused", "view": None})
    assert display.focus_window is None


def test_view_property_events(populated):
    window = populated.shell.display.get_window(1)

    populated.handle_event({"event": "view-title-changed", "view": view(1, title="Docs")})
    populated.handle_event(
        {"event": "view-app-id-changed", "view": view(1, **{"app-id": "librewolf"})}
    )
    populated.handle_event({"event": "view-minimized", "view": view(1, minimized=True)})

    assert window.title == "Docs"
    assert window.wm_class == "librewolf"
    assert window.gtk_application_id == "librewolf"
    assert window.minimized
    assert not window.has_focus()


def test_view_workspace_changed(populated):
    window = populated.shell.display.get_window(2)

    populated.handle_event(
        {"event": "view-workspace-changed", "view": view(2), "to": {"x": 2, "y": 1}}
    )

    assert window.get_workspace().index == 5


def test_wset_workspace_changed_activates_workspace(populated):
    populated.handle_event(
        {"event": "wset-workspace-changed", "new-workspace": {"x": 0, "y": 1}}
    )

    assert populated.shell.workspace_manager.get_active_workspace_index() == 3


def test_output_change_emits_workareas_changed(populated, ipc):
    changes = []
    populated.shell.display.connect("workareas-changed", lambda *_: changes.append(1))
    ipc.list_outputs.return_value = ipc.list_outputs.return_value[:1]

    populated.handle_event({"event": "output-removed"})

    assert changes == [1]
    assert populated.shell.layout_manager.primary_monitor.name == "DP-1"


def test_scale_activation_drives_overview(populated, ipc):
    overview = populated.shell.overview

    populated.handle_event(
        {"event": "plugin-activation-state-changed", "plugin": "scale", "state": True, "output": 1}
    )
    assert overview.visible

    overview.hide()

    assert not overview.visible
    ipc.scale_toggle.assert_called_once_with(1)


def test_other_plugins_do_not_affect_overview(populated):
    populated.handle_event(
        {"event": "plugin-activation-state-changed", "plugin": "move", "state": True, "output": 1}
    )

    assert not populated.shell.overview.visible


def test_window_requests_reach_the_compositor(populated, ipc):
    window = populated.shell.display.get_window(2)

    window.activate(0)
    ipc.set_view_minimized.assert_called_with(2, False)
    ipc.go_workspace_set_focus.assert_called_once_with(2)

    window.minimize()
    ipc.set_view_minimized.assert_called_with(2, True)

    window.focus(0)
    ipc.set_focus.assert_called_once_with(2)


def test_raise_stays_local(populated, ipc):
    display = populated.shell.display
    window = display.get_window(1)

    window.raise_()

    assert display.stacking_order()[-1] is window
    ipc.set_focus.assert_not_called()


def test_workspace_scroll_switches_compositor_workspace(populated, ipc):
    from taskpanel.core.input_events import ScrollDirection, ScrollEvent

    populated.shell.wm.handle_workspace_scroll(ScrollEvent(ScrollDirection.DOWN))

    ipc.set_workspace.assert_called_once_with(2, 0)


def test_subscribe_registers_every_event(backend):
    event_manager = Mock()

    backend.subscribe(event_manager)

    subscribed = [c.args[0] for c in event_manager.subscribe_to_event.call_args_list]
    assert subscribed == WayfireBackend.EVENTS


def test_unsubscribe_drops_every_event(backend):
    event_manager = Mock()
    backend.subscribe(event_manager)

    backend.unsubscribe(event_manager)

    event_manager.unsubscribe_plugin.assert_called_once_with("wayfire_backend")
    assert {c.args[2] for c in event_manager.subscribe_to_event.call_args_list} == {
        "wayfire_backend"
    }


def test_unknown_events_are_ignored(populated):
    populated.handle_event({"event": "view-geometry-changed", "view": view(1)})
    populated.handle_event({"event": "view-title-changed", "view": view(99)})
