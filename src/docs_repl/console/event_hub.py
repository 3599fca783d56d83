"""Named-event publish/subscribe surface for console signals.

// [LAW:single-enforcer] emit() is the sole delivery path to subscribers.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[object], None]


class EventHub:
    """Subscribers are called synchronously, in subscription order."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, name: str, listener: Listener) -> Callable[[], None]:
        self._listeners[name].append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(name, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def emit(self, name: str, payload: object = None) -> None:
        # Copy: a listener may unsubscribe while we iterate.
        for listener in list(self._listeners.get(name, ())):
            try:
                listener(payload)
            except Exception:
                logger.exception("listener for %r failed", name)
