class TaskbarConfig:
    """Handles all taskbar settings registration and central retrieval."""

    def __init__(self, plugin_instance):
        """Initializes the config handler with the plugin instance.

        Args:
            plugin_instance: The TaskbarPlugin instance.
        """
        self.plugin = plugin_instance
        self.h = self.plugin.get_plugin_setting_add_hint

    def register_settings(self):
        """Registers all settings with hints."""
        self.startup_delay_ms = self.h(
            ["startup", "delay_ms"],
            500,
            "Milliseconds to wait before listing existing windows at startup.",
        )
        self.icon_size = self.h(["layout", "icon_size"], 20, "Icon size in pixels.")
        self.unfocused_opacity = self.h(
            ["layout", "unfocused_opacity"],
            128,
            "Button opacity (0-255) for windows without focus.",
        )
        self.status_area_priority = self.h(
            ["layout", "status_area_priority"],
            99,
            "Insertion position of task buttons inside the panel's left box.",
        )
        self.browser_icon_prefixes = self.h(
            ["icons", "browser_icon_prefixes"],
            ["chrome"],
            "Window classes starting with these prefixes use their own class as icon name.",
        )
        return self
