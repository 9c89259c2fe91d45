import logging


def get_plugin_metadata(_):
    return {
        "id": "org.taskpanel.plugin.event_manager",
        "name": "Event Manager",
        "version": "1.0.0",
        "enabled": True,
        "core": True,
        "priority": 100,
        "description": "Dispatches raw compositor events to subscribed components.",
    }


def get_plugin_class():
    from taskpanel.plugins.core._base import BasePlugin

    class EventManagerPlugin(BasePlugin):
        def __init__(self, panel_instance):
            """Initialize the Event Manager Plugin.

            Compositor events arrive on the main loop through ``handle_event``
            and are handed to every callback subscribed to their type.
            """
            super().__init__(panel_instance)
            self.event_subscribers = {}
            self.orjson = self.lazy_load_module("orjson")

        def on_disable(self):
            self.event_subscribers.clear()

        def handle_event(self, msg) -> bool:
            """
            Deliver one compositor event to its subscribers.

            Args:
                msg (dict): The event message, ``{"event": <type>, ...}``.
            Returns:
                False, so it can be scheduled with ``idle_add``.
            """
            if not self._validate_event(msg):
                return False
            event_type = msg["event"]
            if self.orjson is not None and self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(f"Compositor event: {self.orjson.dumps(msg).decode()}")
            for callback, plugin_name in list(self.event_subscribers.get(event_type, [])):
                try:
                    callback(msg)
                except Exception as e:
                    self.logger.error(
                        f"Error executing callback for event '{event_type}' ({plugin_name}): {e}",
                        exc_info=True,
                    )
            return False

        def _validate_event(self, msg) -> bool:
            if not isinstance(msg, dict):
                self.logger.warning("Invalid event message: Not a dictionary.")
                return False
            if "event" not in msg:
                self.logger.warning("Invalid event message: Missing 'event' key.")
                return False
            return True

        def subscribe_to_event(self, event_type, callback, plugin_name=None) -> None:
            """
            Subscribe to a specific compositor event type.

            Args:
                event_type (str): e.g. "view-mapped".
                callback (callable): Called with the event message.
                plugin_name (str): Name of the subscriber, for logging.
            """
            self.event_subscribers.setdefault(event_type, []).append(
                (callback, plugin_name)
            )
            self.logger.debug(f"'{plugin_name}' subscribed to '{event_type}'.")

        def unsubscribe_plugin(self, plugin_name) -> None:
            for event_type, subscribers in self.event_subscribers.items():
                self.event_subscribers[event_type] = [
                    (cb, name) for cb, name in subscribers if name != plugin_name
                ]

    return EventManagerPlugin
