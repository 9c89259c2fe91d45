import itertools
from typing import Any, Callable, Dict, List, Optional

import structlog

logger = structlog.get_logger()

EVENT_STOP = True
EVENT_PROPAGATE = False

_handler_ids = itertools.count(1)


class _Handler:
    __slots__ = ("handler_id", "signal", "callback", "owner", "after")

    def __init__(self, signal, callback, owner, after):
        self.handler_id = next(_handler_ids)
        self.signal = signal
        self.callback = callback
        self.owner = owner
        self.after = after


class SignalEmitter:
    """
    Minimal observer hub shared by every model object (windows, workspaces,
    panel controls, menus).

    Handlers are stored per signal in connection order. One emission runs the
    normal handlers first and the ``after`` handlers second, so an ``after``
    handler always observes state already mutated by the emitter and by the
    normal handlers.

    Handlers may be keyed by an ``owner`` object; ``disconnect_object(owner)``
    removes exactly that owner's handlers and leaves everyone else's alone.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[_Handler]] = {}

    def connect(
        self,
        signal: str,
        callback: Callable[..., Any],
        owner: Optional[Any] = None,
        after: bool = False,
    ) -> int:
        """
        Subscribe ``callback`` to ``signal``.
        Args:
            signal: Signal name, e.g. ``"notify::appears-focused"``.
            callback: Called as ``callback(emitter, *args)``.
            owner: Optional key used by ``disconnect_object``.
            after: Run in the second (after) phase of the emission.
        Returns:
            The handler id, usable with ``disconnect``.
        """
        handler = _Handler(signal, callback, owner, after)
        self._handlers.setdefault(signal, []).append(handler)
        return handler.handler_id

    def connect_after(self, signal, callback, owner=None) -> int:
        return self.connect(signal, callback, owner=owner, after=True)

    def disconnect(self, handler_id: int) -> bool:
        for signal, handlers in self._handlers.items():
            for handler in handlers:
                if handler.handler_id == handler_id:
                    handlers.remove(handler)
                    return True
        return False

    def disconnect_object(self, owner: Any) -> int:
        """Remove every handler connected with ``owner``. Returns the count removed."""
        removed = 0
        for signal in list(self._handlers):
            kept = [h for h in self._handlers[signal] if h.owner is not owner]
            removed += len(self._handlers[signal]) - len(kept)
            self._handlers[signal] = kept
        return removed

    def handler_count(
        self, signal: Optional[str] = None, owner: Optional[Any] = None
    ) -> int:
        count = 0
        for name, handlers in self._handlers.items():
            if signal is not None and name != signal:
                continue
            for handler in handlers:
                if owner is None or handler.owner is owner:
                    count += 1
        return count

    def emit(self, signal: str, *args: Any) -> bool:
        """
        Deliver ``signal`` to its handlers.

        The handler list is snapshotted first, so handlers may connect,
        disconnect or destroy the emitter while the emission runs. A handler
        that was disconnected by an earlier handler of the same emission is
        skipped.
        Returns:
            ``EVENT_STOP`` as soon as a handler returns it, else ``EVENT_PROPAGATE``.
        """
        handlers = list(self._handlers.get(signal, ()))
        if not handlers:
            return EVENT_PROPAGATE
        ordered = [h for h in handlers if not h.after] + [
            h for h in handlers if h.after
        ]
        for handler in ordered:
            if handler not in self._handlers.get(signal, ()):
                continue
            try:
                result = handler.callback(self, *args)
            except Exception as e:
                logger.error(
                    f"Error executing handler for signal '{signal}': {e}",
                    exc_info=True,
                )
                continue
            if result is EVENT_STOP:
                return EVENT_STOP
        return EVENT_PROPAGATE

    def notify(self, property_name: str) -> None:
        self.emit(f"notify::{property_name.replace('_', '-')}")


class NotifyProperty:
    """
    Descriptor for observable attributes: the new value is stored first and
    ``notify::<name>`` is emitted afterwards, only when the value changed.
    """

    def __init__(self, default: Any = None):
        self.default = default
        self.name = ""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self.name, self.default)

    def __set__(self, instance, value):
        old = instance.__dict__.get(self.name, self.default)
        instance.__dict__[self.name] = value
        if old != value:
            instance.notify(self.name)
