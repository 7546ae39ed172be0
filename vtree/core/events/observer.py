from loguru import logger
from typing import Callable, List


class Signal:
    """
    A simple observer pattern implementation (Synchronous).
    Subscribers are called in connection order, on the emitting call stack.
    A subscriber must not mutate the emitter's owner from inside its handler.

    Subscriber errors are logged and delivery continues. Subscribers connected
    with ``propagate_errors=True`` have their first error re-raised from
    ``emit`` once every subscriber has been called.
    """
    def __init__(self, name: str = "Signal"):
        self.name = name
        self._subscribers: List[Callable] = []
        self._propagating: List[Callable] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def connect(self, callback: Callable, propagate_errors: bool = False) -> Callable[[], None]:
        """
        Connect a callback function to this signal.

        Returns:
            A no-argument callable that disconnects the callback again.
        """
        if callback not in self._subscribers:
            self._subscribers.append(callback)
        if propagate_errors and callback not in self._propagating:
            self._propagating.append(callback)
        return lambda: self.disconnect(callback)

    def disconnect(self, callback: Callable):
        """Disconnect a callback function from this signal."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)
        if callback in self._propagating:
            self._propagating.remove(callback)

    def clear(self):
        """Drop every subscriber."""
        self._subscribers.clear()
        self._propagating.clear()

    def emit(self, *args, **kwargs):
        """Broadcast arguments to all subscribers synchronously."""
        error = None
        # Snapshot so a subscriber may disconnect itself while being notified
        for sub in list(self._subscribers):
            try:
                sub(*args, **kwargs)
            except Exception as e:
                logger.error(f"Signal '{self.name}' error in subscriber '{sub}': {e}")
                if error is None and sub in self._propagating:
                    error = e
        if error is not None:
            raise error
