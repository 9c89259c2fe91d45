from typing import Callable

SOURCE_REMOVE = False


class GLibScheduler:
    """Timer seam over the GLib main loop: ``timeout_add`` / ``source_remove``."""

    def timeout_add(self, interval_ms: int, callback: Callable[[], bool]) -> int:
        from gi.repository import GLib  # pyright: ignore

        return GLib.timeout_add(interval_ms, callback)

    def idle_add(self, callback: Callable, *args) -> int:
        from gi.repository import GLib  # pyright: ignore

        return GLib.idle_add(callback, *args)

    def source_remove(self, source_id: int) -> None:
        from gi.repository import GLib  # pyright: ignore

        GLib.source_remove(source_id)
