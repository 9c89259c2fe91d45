import threading
import time
from typing import Any, Callable, Dict, Optional

import structlog

from taskpanel.core.compositor.ipc import IPC

logger = structlog.get_logger()


class EventReader:
    """
    Reads compositor events on a daemon thread and hands each one to the main
    loop through ``scheduler.idle_add``.

    ``read_next_event`` blocks, so the reader owns a dedicated watch
    connection separate from the one used for requests.
    """

    def __init__(
        self,
        on_event: Callable[[Dict[str, Any]], Any],
        scheduler,
        ipc_factory: Callable[[], IPC] = IPC,
        retry_interval: float = 1.0,
    ):
        self.on_event = on_event
        self.scheduler = scheduler
        self.ipc_factory = ipc_factory
        self.retry_interval = retry_interval
        self.ipc: Optional[IPC] = None
        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._running.set()
        self._thread = threading.Thread(
            target=self.read_events, name="TaskpanelEventReader", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._running.clear()
        if self.ipc is not None:
            self.ipc.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def connect(self) -> bool:
        self.ipc = self.ipc_factory()
        if not self.ipc.is_connected():
            return False
        self.ipc.watch()
        logger.info("Watching compositor events.")
        return True

    def read_once(self) -> bool:
        """
        Reads one event and schedules its delivery.
        Returns:
            False when the connection is gone and must be re-established.
        """
        if self.ipc is None or not self.ipc.is_connected():
            return False
        event = self.ipc.read_next_event()
        if event is None:
            return False
        self.scheduler.idle_add(self.on_event, event)
        return True

    def read_events(self) -> None:
        while self._running.is_set():
            if self.read_once():
                continue
            if not self._running.is_set():
                break
            if self.ipc is not None:
                logger.warning("Compositor event connection lost, reconnecting.")
            try:
                if self.connect():
                    if not self._running.is_set():
                        self.ipc.close()
                        break
                    continue
            except Exception as e:
                logger.error(f"Reconnecting to the compositor failed: {e}")
            time.sleep(self.retry_interval)
