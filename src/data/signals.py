"""In-process named signals for provider data notifications."""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

DATA_CHANGED = "providerDataChanged"
DATA_SYNCED = "providerDataSynced"

Listener = Callable[[Dict[str, Any]], None]


class SignalBus:
    """Dispatch ``detail`` payloads to listeners registered by signal name.

    A failing listener is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def connect(self, name: str, listener: Listener) -> Callable[[], None]:
        self._listeners[name].append(listener)

        def disconnect() -> None:
            if listener in self._listeners[name]:
                self._listeners[name].remove(listener)

        return disconnect

    def emit(self, name: str, detail: Dict[str, Any]) -> int:
        """Deliver ``detail`` to every listener of ``name``; returns the count."""
        listeners = list(self._listeners.get(name, ()))
        for listener in listeners:
            try:
                listener(detail)
            except Exception:
                logger.exception(f"Listener for '{name}' failed")
        return len(listeners)
