#!/usr/bin/env python3
import logging
import os
import sys
import threading
from ctypes.util import find_library
import gi
from taskpanel.core.log_setup import setup_logging

REQUIRED_WAYFIRE_PLUGINS = ("ipc", "ipc-rules", "wm-actions", "scale", "vswitch")

logger = setup_logging(
    level=logging.DEBUG if os.getenv("TASKPANEL_DEBUG") else logging.INFO
)


def global_exception_handler(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger.error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback),
        thread_name=threading.current_thread().name,
    )


sys.excepthook = global_exception_handler


def verify_required_wayfire_plugins(ipc):
    """Enables the Wayfire plugins the panel relies on if they are missing."""
    val = ipc.get_option_value("core/plugins")
    enabled = []
    if isinstance(val, dict) and "value" in val:
        enabled = str(val["value"]).split()
    elif isinstance(val, str):
        enabled = val.split()
    missing = [p for p in REQUIRED_WAYFIRE_PLUGINS if p not in enabled]
    if not missing:
        return
    logger.warning(f"Enabling missing Wayfire plugins: {', '.join(missing)}")
    ipc.set_option_values({"core/plugins": " ".join(enabled + missing)})


def ensure_layer_shell_preload():
    """
    gtk4-layer-shell must be loaded before libwayland-client; re-exec with
    LD_PRELOAD when it is not.
    """
    preload = os.environ.get("LD_PRELOAD", "")
    if "gtk4-layer-shell" in preload:
        return
    library = find_library("gtk4-layer-shell")
    if library is None:
        logger.warning("libgtk4-layer-shell not found; the panel may not anchor.")
        return
    os.environ["LD_PRELOAD"] = " ".join(p for p in (library, preload) if p)
    os.execv(sys.executable, [sys.executable] + sys.argv)


def load_panel():
    for ver, ver_num in [
        ("Gio", "2.0"),
        ("Gtk4LayerShell", "1.0"),
        ("Gtk", "4.0"),
        ("Gdk", "4.0"),
        ("Adw", "1"),
    ]:
        gi.require_version(ver, ver_num)

    from taskpanel.panel import Panel

    return Panel(logger=logger)


def main():
    if not os.getenv("WAYFIRE_SOCKET"):
        logger.critical("WAYFIRE_SOCKET is not set; taskpanel needs a running Wayfire.")
        sys.exit(1)
    ensure_layer_shell_preload()
    try:
        panel = load_panel()
        verify_required_wayfire_plugins(panel.ipc)
        panel.run(["taskpanel"])
    except Exception:
        logger.critical("Fatal error during initialization", exc_info=True)
        raise


if __name__ == "__main__":
    main()
