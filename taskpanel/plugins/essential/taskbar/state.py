FULL_OPACITY = 255
DEMANDS_ATTENTION_CLASS = "task-demands-attention"


class WindowStateTracker:
    """
    Derives what a task button shows from its window's state: opacity from
    focus, the urgent style from attention, and visibility from the taskbar
    flag and the active workspace.

    Every update is a no-op once ``release()`` cleared the window.
    """

    def __init__(self, button, window, shell, config):
        self.button = button
        self.window = window
        self.shell = shell
        self.config = config
        self.app = None
        self.active_workspace = None
        self.window_is_on_active_workspace = False

    def release(self):
        self.window = None

    def update_focus(self):
        if self.window is None:
            return
        if self.window.appears_focused:
            self.button.opacity = FULL_OPACITY
        else:
            self.button.opacity = self.config.unfocused_opacity

    def update_demands_attention(self):
        if self.window is None:
            return
        if self.window.demands_attention or self.window.urgent:
            self.button.opacity = FULL_OPACITY
            self.button.add_style_class_name(DEMANDS_ATTENTION_CLASS)
            self.button.visible = True
        else:
            self.button.remove_style_class_name(DEMANDS_ATTENTION_CLASS)
            self.update_visibility()

    def update_workspace(self):
        if self.window is None:
            return
        self.active_workspace = self.shell.workspace_manager.get_active_workspace()
        self.window_is_on_active_workspace = self.window.located_on_workspace(
            self.active_workspace
        )

    def update_visibility(self):
        if self.window is None:
            return
        self.update_focus()
        self.update_workspace()
        self.button.visible = (
            not self.window.is_skip_taskbar() and self.window_is_on_active_workspace
        )

    def update_app(self):
        if self.window is None:
            return
        self.app = self.shell.window_tracker.get_window_app(self.window)
        wm_class = self.window.wm_class
        if self.app is not None:
            # Browser profiles share one desktop entry but install per-profile icons.
            if wm_class and wm_class.startswith(tuple(self.config.browser_icon_prefixes)):
                self.button.icon.set_icon_name(wm_class)
            else:
                self.button.icon.set_icon_name(self.app.icon)
            self.button.menu.set_app(self.app)
        self.button.icon.set_icon_size(self.config.icon_size)
