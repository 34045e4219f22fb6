"""
Periodic and event-driven provider reconciliation.

``SyncScheduler`` has two states. ``init()`` moves it from idle to active: one
immediate load, a repeating timer, and listeners on the persistent channel
(storage changes from other sessions) and the address channel (shared-state
changes). Every trigger goes through ``tick()``, which reloads the store and
broadcasts a ``providerDataSynced`` signal. ``stop()`` returns to idle and may
be called at any time.

Tests drive ``tick()`` directly or use :class:`ManualTimer`.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .reconciliation import ReconciledSet, ReconciliationStore
from .signals import DATA_SYNCED

logger = logging.getLogger(__name__)

IDLE = "idle"
ACTIVE = "active"


class IntervalTimer:
    """Timer adapter interface: call ``callback`` every ``interval`` seconds."""

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        raise NotImplementedError


class AsyncioIntervalTimer(IntervalTimer):
    """Repeating timer on an asyncio event loop.

    Each run is scheduled with ``call_later`` after the previous callback
    returns, so callbacks never overlap.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._interval = 0.0
        self._callback: Optional[Callable[[], None]] = None

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        self.cancel()
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._interval = interval
        self._callback = callback
        self._handle = self._loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        callback = self._callback
        if callback is None:
            return
        try:
            callback()
        except Exception:
            logger.exception("Sync timer callback failed")
        if self._callback is callback and self._loop is not None:
            self._handle = self._loop.call_later(self._interval, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None

    @property
    def armed(self) -> bool:
        return self._handle is not None


class ManualTimer(IntervalTimer):
    """Timer that only fires when :meth:`fire` is called."""

    def __init__(self):
        self.interval: Optional[float] = None
        self._callback: Optional[Callable[[], None]] = None

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    @property
    def armed(self) -> bool:
        return self._callback is not None

    def fire(self) -> bool:
        if self._callback is None:
            return False
        self._callback()
        return True


class SyncScheduler:
    """Keeps a :class:`ReconciliationStore` fresh and announces each pass."""

    def __init__(
        self,
        store: ReconciliationStore,
        timer: Optional[IntervalTimer] = None,
        interval_seconds: float = 3.0,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.timer = timer or AsyncioIntervalTimer()
        self.interval_seconds = interval_seconds
        self._clock = clock
        self.state = IDLE
        self._detach_storage: Optional[Callable[[], None]] = None
        self._detach_shared: Optional[Callable[[], None]] = None

    @property
    def is_active(self) -> bool:
        return self.state == ACTIVE

    def init(self) -> ReconciledSet:
        """Load once, arm the timer and attach channel listeners."""
        if self.is_active:
            return self.store.current
        logger.info("Initializing provider data sync")
        providers = self.store.load()
        self.state = ACTIVE
        self.timer.start(self.interval_seconds, self._on_timer)
        self._detach_storage = self.store.persistent.subscribe(self._on_storage_change)
        self._detach_shared = self.store.shared.subscribe(self._on_shared_change)
        return providers

    def stop(self) -> None:
        """Disarm the timer and detach listeners. Safe to call repeatedly."""
        self.timer.cancel()
        for detach in (self._detach_storage, self._detach_shared):
            if detach is not None:
                detach()
        self._detach_storage = None
        self._detach_shared = None
        if self.is_active:
            logger.info("Provider data sync stopped")
        self.state = IDLE

    def tick(self) -> Optional[ReconciledSet]:
        """Reload the store and broadcast the result; ignored while idle."""
        if not self.is_active:
            return None
        providers = self.store.load()
        self.store.bus.emit(
            DATA_SYNCED,
            {"providers": list(providers.values()), "timestamp": int(self._clock() * 1000)},
        )
        return providers

    def _on_timer(self) -> None:
        logger.debug("Periodic sync check")
        self.tick()

    def _on_storage_change(self, key: str) -> None:
        if key == self.store.storage_key:
            logger.debug("Persistent storage changed, syncing")
            self.tick()

    def _on_shared_change(self, key: str) -> None:
        if key == self.store.shared_state_key:
            logger.debug("Shared state changed, syncing")
            self.tick()
