"""
Storage channel adapters for provider synchronization.

Three independent channels hold provider snapshots:

- a persistent channel shared by every session served from the same process
  (:class:`JsonFileChannel`, backed by a JSON file on disk),
- a session-scoped channel cleared when the browser session ends
  (:class:`SessionStateChannel`, backed by ``st.session_state``),
- a shared-state channel encoded into the page address
  (:class:`AddressChannel`, backed by ``st.query_params``).

Every channel exposes ``get``/``set``/``subscribe``. :class:`MemoryChannel` is
the in-memory variant used by demo contexts and tests.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, MutableMapping, Optional

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class ChannelWriteError(RuntimeError):
    """Raised by a channel that cannot store a value (e.g. capacity exceeded)."""


class StorageChannel:
    """Base class: string key/value storage with change subscriptions."""

    name = "channel"

    def __init__(self):
        self._listeners: List[ChangeCallback] = []
        self._seen: Dict[str, Optional[str]] = {}

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback(key)``; returns a function that detaches it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def publish(self, key: str) -> None:
        """Tell every subscriber that ``key`` changed."""
        for callback in list(self._listeners):
            try:
                callback(key)
            except Exception:
                logger.exception(f"{self.name} change listener failed for key '{key}'")

    def poll(self, *keys: str) -> List[str]:
        """Publish and return the keys whose value changed since last seen.

        The first poll of a key only records its value. Values written through
        this instance count as seen.
        """
        changed = []
        for key in keys:
            current = self.get(key)
            if key not in self._seen:
                self._seen[key] = current
                continue
            if current != self._seen[key]:
                self._seen[key] = current
                changed.append(key)
        for key in changed:
            self.publish(key)
        return changed

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)


class MemoryChannel(StorageChannel):
    """Dict-backed channel with an optional capacity in characters."""

    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None, capacity: Optional[int] = None):
        super().__init__()
        self._values: Dict[str, str] = dict(initial or {})
        self.capacity = capacity

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if self.capacity is not None and len(value) > self.capacity:
            raise ChannelWriteError(f"value for '{key}' exceeds capacity ({len(value)} > {self.capacity})")
        self._values[key] = value

    def external_write(self, key: str, value: str) -> None:
        """Write as another context would, then notify subscribers."""
        self._values[key] = value
        self.publish(key)

    def clear(self) -> None:
        self._values.clear()


class JsonFileChannel(StorageChannel):
    """Persistent channel stored as one JSON object on disk.

    The file is re-read on every ``get`` so writes from other sessions are
    always visible. Writes go through a temporary file and ``os.replace``.
    Other sessions' writes reach subscribers through :meth:`poll`.
    """

    name = "persistent"

    def __init__(self, path):
        super().__init__()
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read persistent channel {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Persistent channel {self.path} does not hold a JSON object; ignoring")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise ChannelWriteError(f"could not write {self.path}: {e}") from e
        self._seen[key] = value


class SessionStateChannel(StorageChannel):
    """Session-scoped channel stored in a Streamlit session state mapping."""

    name = "session"

    def __init__(self, state: MutableMapping, namespace: str = "channel"):
        super().__init__()
        self._state = state
        self._namespace = namespace

    def _slot(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def get(self, key: str) -> Optional[str]:
        value = self._state.get(self._slot(key))
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._state[self._slot(key)] = value


class AddressChannel(StorageChannel):
    """Shared-state channel kept in the page address (query parameters).

    Writing replaces the parameter in place, the way ``history.replaceState``
    rewrites a fragment, so no navigation or notification happens. Changes made
    by anything else are picked up by :meth:`poll`.
    """

    name = "address"

    def __init__(self, params: MutableMapping, capacity: Optional[int] = 8000):
        super().__init__()
        self._params = params
        self.capacity = capacity

    def get(self, key: str) -> Optional[str]:
        value = self._params.get(key)
        if isinstance(value, list):
            value = value[-1] if value else None
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        if self.capacity is not None and len(value) > self.capacity:
            raise ChannelWriteError(f"address parameter '{key}' too long ({len(value)} > {self.capacity})")
        self._params[key] = value
        self._seen[key] = value

