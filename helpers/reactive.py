import logging
import threading
from typing import Any, Callable, Iterable, List


class Ref:
    """
    A mutable reactive value.

    Subscribers are called synchronously with the new value whenever set()
    stores something different from the current value. Writing the same
    value again is a no-op and notifies nobody.
    """

    def __init__(self, value: Any = None):
        self._value = value
        self._version = 0
        self._subscribers: List[Callable[[Any], None]] = []
        self._lock = threading.Lock()

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any):
        self.set(new_value)

    @property
    def version(self) -> int:
        return self._version

    def set(self, new_value: Any) -> bool:
        with self._lock:
            if new_value == self._value:
                return False
            self._value = new_value
            self._version += 1
            subscribers = list(self._subscribers)

        # Deliver outside the lock so subscribers may read or write refs
        for callback in subscribers:
            callback(new_value)
        return True

    def subscribe(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register a change callback. Returns a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def __repr__(self):
        return f"Ref({self._value!r})"


class Computed:
    """
    A read-only value derived from other reactive values.

    The value is recomputed on read whenever a dependency's version has
    moved since the last computation, so every read reflects the latest
    inputs, including reads made from inside another subscriber's callback.
    Subscribers only hear about it when the derived value itself changes.
    """

    def __init__(self, fn: Callable[[], Any], deps: Iterable[Any]):
        self._fn = fn
        self._deps = list(deps)
        self._value = None
        self._seen = None
        self._lock = threading.Lock()

    @property
    def version(self) -> tuple:
        return tuple(dep.version for dep in self._deps)

    @property
    def value(self) -> Any:
        with self._lock:
            # an input moving mid-compute leaves _seen behind, so the next read redoes it
            version = self.version
            if version != self._seen:
                self._value = self._fn()
                self._seen = version
                logging.debug(f"[Reactive] Recomputed value: {self._value!r}")
            return self._value

    def subscribe(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        last = [self.value]
        last_lock = threading.Lock()

        def on_dependency_change(_new_value):
            value = self.value
            with last_lock:
                if value == last[0]:
                    return
                last[0] = value
            callback(value)

        unsubscribers = [dep.subscribe(on_dependency_change) for dep in self._deps]

        def unsubscribe():
            for remove in unsubscribers:
                remove()

        return unsubscribe

    def __repr__(self):
        return f"Computed({self.value!r})"
