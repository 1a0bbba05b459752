"""
Binder notifications

Ordered, instance-owned handler lists for the reconcile outcome. Handlers run
synchronously in registration order; a handler exception propagates to the
caller of `notify`.
"""

from typing import Any, Callable, List


class Notifier:
    """Synchronous ordered list of handlers for one notification."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Callable[..., Any]] = []

    def subscribe(self, handler: Callable[..., Any]) -> None:
        self._handlers.append(handler)

    # list-style registration, e.g. `binder.on_after_success.append(handler)`
    append = subscribe

    def unsubscribe(self, handler: Callable[..., Any]) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def notify(self, *args: Any) -> None:
        for handler in list(self._handlers):
            handler(*args)

    __call__ = notify

    def clear(self) -> None:
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self):
        return iter(list(self._handlers))

    def __repr__(self):
        return f"<Notifier {self.name} handlers={len(self._handlers)}>"
