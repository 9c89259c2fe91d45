default_config = {
    "_section_hint": (
        "General configuration for taskpanel, a window taskbar panel "
        "for the Wayfire compositor."
    ),
    "plugins": {
        "_section_hint": "Configuration for loading taskpanel plugins.",
        "disabled": [],
        "disabled_hint": (
            "Plugins listed here (e.g., 'taskbar') are skipped at startup."
        ),
    },
    "org.taskpanel.panel": {
        "_section_hint": "Global settings for the panel window.",
        "height": 32,
        "height_hint": "Height of the panel in pixels.",
        "primary_output": {
            "_section_hint": "Settings for the main display output/monitor.",
            "name": "",
            "name_hint": (
                "The name of your main output as the compositor reports it "
                "(e.g., DP-1, HDMI-A-1). Empty uses the first output."
            ),
        },
    },
    "org.taskpanel.plugin.taskbar": {
        "_section_hint": "One button per window, shown in the panel's left box.",
    },
    "org.taskpanel.plugin.panel_position": {
        "_section_hint": "Which screen edge the panel sits on.",
    },
}
