import os
import socket
from functools import wraps
from typing import Any, Dict, List, Optional

import structlog

logger = structlog.get_logger()

CONNECTION_ERRORS = (socket.error, ConnectionRefusedError, BrokenPipeError)


def ipc_request(default: Any = None):
    """
    Wraps an IPC call so that failures never reach the GTK main loop.

    A lost connection drops the socket (``ensure_ipc_connection`` reconnects
    later); any other error is logged. Both return ``default``.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            if self.socket is None:
                return default
            try:
                return func(self, *args, **kwargs)
            except CONNECTION_ERRORS as e:
                logger.error(f"Compositor connection lost during {func.__name__}: {e}")
                self.drop_connection()
            except Exception as e:
                logger.error(f"Compositor request {func.__name__} failed: {e}")
            return default

        return wrapper

    return decorator


class IPC:
    """
    Requests to Wayfire over ``$WAYFIRE_SOCKET``.

    The socket comes from ``wayfire.WayfireSocket``; workspace helpers that
    need several round trips go through ``wayfire.extra.ipc_utils.WayfireUtils``.
    """

    def __init__(self, sock: Optional[Any] = None, utils: Optional[Any] = None):
        """
        Args:
            sock: A connected ``WayfireSocket``. Opened from the environment
                when omitted.
            utils: The ``WayfireUtils`` bound to ``sock``.
        """
        self.socket = sock
        self.utils = utils
        if sock is None:
            self.connect_wayfire_ipc()

    def connect_wayfire_ipc(self) -> bool:
        if not os.getenv("WAYFIRE_SOCKET"):
            logger.error("WAYFIRE_SOCKET is unset. Is Wayfire running with the ipc plugin?")
            self.drop_connection()
            return False
        try:
            from wayfire import WayfireSocket
            from wayfire.extra.ipc_utils import WayfireUtils

            self.socket = WayfireSocket()
            self.utils = WayfireUtils(self.socket)
        except Exception as e:
            logger.error(f"Cannot open the Wayfire socket: {e}")
            self.drop_connection()
            return False
        return True

    def drop_connection(self) -> None:
        self.socket = None
        self.utils = None

    def ensure_ipc_connection(self) -> bool:
        """Reconnects when needed. Always True, for use as a GLib timeout."""
        if not self.is_connected():
            logger.warning("No compositor connection, reconnecting.")
            self.connect_wayfire_ipc()
        return True

    def is_connected(self) -> bool:
        return self.socket is not None and bool(self.socket.is_connected())

    # Queries

    @ipc_request(default=[])
    def list_views(self) -> List[Dict[str, Any]]:
        return self.socket.list_views()

    @ipc_request(default=[])
    def list_outputs(self) -> List[Dict[str, Any]]:
        return self.socket.list_outputs()

    @ipc_request()
    def get_focused_output(self) -> Optional[Dict[str, Any]]:
        return self.socket.get_focused_output()

    @ipc_request()
    def get_workspace_from_view(self, view_id: int) -> Optional[Dict[str, int]]:
        """Workspace ``{"x", "y"}`` holding the center of the view."""
        return self.utils.get_workspace_from_view(view_id)

    @ipc_request()
    def get_option_value(self, option: str) -> Any:
        return self.socket.get_option_value(option)

    # Commands

    @ipc_request()
    def set_focus(self, view_id: int) -> Any:
        return self.socket.set_focus(view_id)

    @ipc_request()
    def go_workspace_set_focus(self, view_id: int) -> Any:
        """Switches to the view's workspace, then focuses it."""
        return self.utils.go_workspace_set_focus(view_id)

    @ipc_request()
    def set_view_minimized(self, view_id: int, minimized: bool) -> Any:
        return self.socket.set_view_minimized(view_id, minimized)

    @ipc_request()
    def set_workspace(self, x: int, y: int) -> Any:
        return self.socket.set_workspace(x, y)

    @ipc_request()
    def scale_toggle(self, output_id: Optional[int] = None) -> Any:
        if output_id is None:
            return self.socket.scale_toggle()
        return self.socket.scale_toggle(output_id)

    @ipc_request()
    def set_option_values(self, options: Dict[str, Any]) -> Any:
        return self.socket.set_option_values(options)

    # Event stream

    @ipc_request()
    def watch(self, events: Optional[List[str]] = None) -> Any:
        return self.socket.watch(events)

    @ipc_request()
    def read_next_event(self) -> Optional[Dict[str, Any]]:
        """Blocks until the compositor sends the next event."""
        return self.socket.read_next_event()

    def close(self) -> None:
        if self.socket is None:
            return
        try:
            self.socket.close()
        except CONNECTION_ERRORS as e:
            logger.debug(f"Closing the compositor socket: {e}")
        self.drop_connection()
