import logging
from typing import Any, Callable, Dict, List

class EventBus:
    """
    Synchronous publish/subscribe channel shared by all components.
    Handlers run in subscription order on the emitting thread; a failing
    handler is logged and does not stop the others.
    """
    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_name: str, callback: Callable):
        if event_name not in self._subscribers:
            self._subscribers[event_name] = []
        self._subscribers[event_name].append(callback)

    def unsubscribe(self, event_name: str, callback: Callable):
        callbacks = self._subscribers.get(event_name, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def has_subscribers(self, event_name: str) -> bool:
        return bool(self._subscribers.get(event_name))

    def emit(self, event_name: str, data: Any = None, **kwargs):
        # Copy so a handler may unsubscribe itself mid-dispatch
        for callback in list(self._subscribers.get(event_name, [])):
            try:
                if data is None and kwargs:
                    callback(kwargs)
                elif isinstance(data, dict) and kwargs:
                    callback({**data, **kwargs})
                elif data is not None:
                    callback(data)
                else:
                    callback({})
            except Exception as e:
                logging.error(f"Error in event handler for {event_name}: {e}")
