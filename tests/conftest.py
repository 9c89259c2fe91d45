from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from taskpanel.core.app_tracker import App, WindowTracker
from taskpanel.core.compositor.model import Window
from taskpanel.core.shell import Monitor, create_shell
from taskpanel.shared.config_handler import ConfigHandler


class FakeScheduler:
    """Records timeouts and idle callbacks instead of running a GLib loop."""

    def __init__(self):
        self._next_id = 1
        self.timeouts = {}
        self.idle = []
        self.removed = []

    def timeout_add(self, interval_ms, callback):
        source_id = self._next_id
        self._next_id += 1
        self.timeouts[source_id] = (interval_ms, callback)
        return source_id

    def idle_add(self, callback, *args):
        self.idle.append((callback, args))
        return len(self.idle)

    def source_remove(self, source_id):
        self.removed.append(source_id)
        self.timeouts.pop(source_id, None)

    def fire_all(self):
        for source_id, (_, callback) in list(self.timeouts.items()):
            if not callback():
                self.timeouts.pop(source_id, None)

    def run_idle(self):
        pending, self.idle = self.idle, []
        for callback, args in pending:
            callback(*args)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def taskbar_config():
    return SimpleNamespace(
        startup_delay_ms=500,
        icon_size=20,
        unfocused_opacity=128,
        status_area_priority=99,
        browser_icon_prefixes=["chrome"],
    )


@pytest.fixture
def app_registry():
    firefox_info = Mock()
    return {
        "firefox": App(
            "firefox",
            name="Firefox",
            icon="firefox",
            app_info=firefox_info,
            actions=["new-private-window"],
        ),
        "org.gnome.Settings": App(
            "org.gnome.Settings",
            name="Settings",
            icon="org.gnome.Settings",
            app_info=Mock(),
            single_window=True,
        ),
        "google-chrome": App(
            "google-chrome", name="Chrome", icon="google-chrome", app_info=Mock()
        ),
    }


@pytest.fixture
def window_tracker(app_registry):
    return WindowTracker(lookup=app_registry.get)


@pytest.fixture
def actions():
    return Mock()


@pytest.fixture
def shell(actions, window_tracker):
    shell = create_shell(
        actions=actions, window_tracker=window_tracker, n_workspaces=2, panel_height=32
    )
    shell.layout_manager.set_monitors(
        [Monitor(x=0, y=0, width=1920, height=1080, name="DP-1")]
    )
    return shell


@pytest.fixture
def make_window(shell):
    """Adds a window to the display on the given workspace index."""

    def factory(window_id, workspace=0, **props):
        props.setdefault("wm_class", "firefox")
        window = Window(
            window_id,
            shell.display,
            workspace=shell.workspace_manager.get_workspace_by_index(workspace),
            **props,
        )
        return shell.display.add_window(window)

    return factory


@pytest.fixture
def logger():
    return Mock()


@pytest.fixture
def panel_instance(tmp_path, shell, scheduler, logger):
    panel = SimpleNamespace(
        logger=logger, shell=shell, scheduler=scheduler, plugin_loader=None
    )
    panel.config_handler = ConfigHandler(panel, config_dir=str(tmp_path))
    return panel
