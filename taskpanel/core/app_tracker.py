from typing import Any, Callable, Dict, List, Optional, Set

import structlog

logger = structlog.get_logger()

FALLBACK_ICON = "application-x-executable"


class App:
    """An application as the panel sees it: identity, icon and launch actions."""

    def __init__(
        self,
        app_id: str,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        app_info: Optional[Any] = None,
        single_window: bool = False,
        actions: Optional[List[str]] = None,
    ):
        self.id = app_id
        self.name = name or app_id
        self.icon = icon or FALLBACK_ICON
        self.app_info = app_info
        self.single_window = single_window
        self.actions = list(actions or [])

    def __repr__(self) -> str:
        return f"<App {self.id}>"

    def can_open_new_window(self) -> bool:
        return self.app_info is not None and not self.single_window

    def open_new_window(self, workspace: int = -1) -> bool:
        """
        Launch a new instance from the desktop entry.
        Args:
            workspace: Target workspace index, ``-1`` for the active one. Kept
                for the compositor; Wayfire places new views itself.
        Returns:
            True if the launch request was issued.
        """
        if not self.can_open_new_window():
            return False
        try:
            self.app_info.launch([], None)
            logger.info(f"Requested a new window for {self.id} (workspace {workspace})")
            return True
        except Exception as e:
            logger.error(f"Failed to open a new window for {self.id}: {e}")
            return False

    def launch_action(self, action: str) -> bool:
        """Run a desktop entry action such as ``new-private-window``."""
        if self.app_info is None or action not in self.actions:
            return False
        try:
            self.app_info.launch_action(action, None)
            return True
        except Exception as e:
            logger.error(f"Failed to launch action '{action}' of {self.id}: {e}")
            return False


def desktop_app_lookup(identity: str) -> Optional[App]:
    """Resolve ``identity`` through installed desktop entries (Gio.DesktopAppInfo)."""
    from gi.repository import Gio  # pyright: ignore

    candidates = [identity, identity.lower()]
    app_info = None
    for candidate in candidates:
        try:
            app_info = Gio.DesktopAppInfo.new(f"{candidate}.desktop")
        except TypeError:
            app_info = None
        if app_info:
            break
    if not app_info:
        for group in Gio.DesktopAppInfo.search(identity) or []:
            for desktop_id in group:
                app_info = Gio.DesktopAppInfo.new(desktop_id)
                if app_info:
                    break
            if app_info:
                break
    if not app_info:
        return None
    icon = app_info.get_icon()
    icon_name = icon.to_string() if icon else None
    single_window = app_info.get_boolean("SingleMainWindow") or app_info.get_boolean(
        "X-GNOME-SingleWindow"
    )
    return App(
        app_id=(app_info.get_id() or identity).removesuffix(".desktop"),
        name=app_info.get_name(),
        icon=icon_name,
        app_info=app_info,
        single_window=single_window,
        actions=list(app_info.list_actions()),
    )


class WindowTracker:
    """
    Maps windows to applications.

    The application id (Wayland app-id) is tried first, then the window class.
    Windows that resolve to nothing get a window-backed ``App`` named after
    their class, which cannot open new windows.
    """

    def __init__(self, lookup: Optional[Callable[[str], Optional[App]]] = None):
        self._lookup = lookup or desktop_app_lookup
        self._cache: Dict[str, App] = {}
        self._misses: Set[str] = set()

    def get_window_app(self, window) -> Optional[App]:
        if window is None:
            return None
        identities = [
            i for i in (window.gtk_application_id, window.wm_class) if i
        ]
        for identity in identities:
            app = self._resolve(identity)
            if app is not None:
                return app
        if not identities:
            return None
        fallback = App(app_id=f"window:{identities[0]}", icon=identities[0])
        self._cache.setdefault(fallback.id, fallback)
        return self._cache[fallback.id]

    def _resolve(self, identity: str) -> Optional[App]:
        if identity in self._cache:
            return self._cache[identity]
        if identity in self._misses:
            return None
        try:
            app = self._lookup(identity)
        except Exception as e:
            logger.error(f"Application lookup failed for '{identity}': {e}")
            return None
        if app is None:
            self._misses.add(identity)
        else:
            self._cache[identity] = app
        return app
