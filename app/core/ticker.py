"""Tick producers that drive countdown timers."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickSource(ABC):
    """Abstract base class for periodic tick producers.

    A source holds at most one registration. Starting an active source
    replaces the previous registration, and stopping is idempotent.
    """

    @abstractmethod
    def start(self, callback: TickCallback) -> None:
        """Begin delivering ticks to ``callback``."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering ticks."""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Check if the source is currently producing ticks."""
        pass


class ManualTickSource(TickSource):
    """Tick source advanced explicitly by the caller."""

    def __init__(self):
        self._callback: Optional[TickCallback] = None
        self.starts = 0

    def start(self, callback: TickCallback) -> None:
        self.stop()
        self._callback = callback
        self.starts += 1

    def stop(self) -> None:
        self._callback = None

    @property
    def is_active(self) -> bool:
        return self._callback is not None

    def advance(self, ticks: int = 1) -> int:
        """Deliver up to ``ticks`` ticks; returns how many were delivered."""
        delivered = 0
        for _ in range(ticks):
            if self._callback is None:
                break
            self._callback()
            delivered += 1
        return delivered


class AsyncioTickSource(TickSource):
    """Tick source scheduled on an asyncio event loop."""

    def __init__(self, interval: float = 1.0, loop: Optional[asyncio.AbstractEventLoop] = None):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.interval = interval
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._callback: Optional[TickCallback] = None
        self._deadline = 0.0

    def start(self, callback: TickCallback) -> None:
        self.stop()
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self._callback = callback
        self._deadline = loop.time() + self.interval
        self._handle = loop.call_at(self._deadline, self._fire)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    @property
    def is_active(self) -> bool:
        return self._handle is not None

    def _fire(self) -> None:
        callback = self._callback
        if callback is None:
            return

        # Schedule from the previous deadline so ticks don't drift.
        self._deadline += self.interval
        self._handle = self._loop.call_at(self._deadline, self._fire)

        try:
            callback()
        except Exception as e:
            logger.error(f"Tick callback failed: {e}")


def create_tick_source(mode: str = "asyncio", interval: float = 1.0) -> TickSource:
    """Create a tick source for the given mode."""
    if mode == "manual":
        return ManualTickSource()
    if mode == "asyncio":
        return AsyncioTickSource(interval=interval)
    raise ValueError(f"Unknown tick mode: {mode}")
