def get_plugin_metadata(_):
    return {
        "id": "org.taskpanel.plugin.panel_position",
        "name": "Panel Position",
        "version": "1.0.0",
        "enabled": True,
        "priority": 50,
        "description": "Moves the panel to the bottom edge of the primary monitor.",
    }


def get_plugin_class():
    from taskpanel.plugins.core._base import BasePlugin
    from taskpanel.plugins.essential.panel_position.repositioner import (
        PanelPosition,
        PanelRepositioner,
    )

    class PanelPositionPlugin(BasePlugin):
        def __init__(self, panel_instance):
            super().__init__(panel_instance)
            self.repositioner = PanelRepositioner(self.shell, self.logger)

        @property
        def configured_position(self):
            value = self.get_plugin_setting_add_hint(
                "position",
                "bottom",
                "Screen edge for the panel while this plugin is enabled: 'top' or 'bottom'.",
            )
            return PanelPosition.from_setting(value)

        def on_enable(self):
            self.repositioner.set_position(self.configured_position)

        def on_disable(self):
            self.repositioner.set_position(PanelPosition.TOP)

        def on_config_reloaded(self):
            if self.enabled:
                self.repositioner.set_position(self.configured_position)

    return PanelPositionPlugin
