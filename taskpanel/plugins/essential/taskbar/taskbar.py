def get_plugin_metadata(_):
    about = """
            Shows one button per window in the panel's left box. Clicking a
            button activates or minimizes its window, the middle button opens
            a new window of the same application, hovering previews the window
            by raising it, and scrolling on the panel switches workspaces.
            """
    return {
        "id": "org.taskpanel.plugin.taskbar",
        "name": "Taskbar",
        "version": "1.0.0",
        "enabled": True,
        "priority": 10,
        "deps": ["event_manager", "panel_position"],
        "description": about,
    }


def get_plugin_class():
    from taskpanel.plugins.core._base import BasePlugin
    from taskpanel.plugins.essential.taskbar.config import TaskbarConfig
    from taskpanel.plugins.essential.taskbar.manager import Taskbar

    class TaskbarPlugin(BasePlugin):
        def __init__(self, panel_instance):
            super().__init__(panel_instance)
            self.config = TaskbarConfig(self).register_settings()
            self.taskbar = None

        def on_enable(self):
            self.taskbar = Taskbar(self.shell, self.config, self.scheduler, self.logger)

        def on_disable(self):
            if self.taskbar is not None:
                self.taskbar.destroy()
                self.taskbar = None

    return TaskbarPlugin
