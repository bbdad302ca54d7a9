"""Registry of live countdown timers hosted by the API."""

import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .effects import CompletionEffects
from .ticker import TickSource, create_tick_source
from .timer import CountdownTimer, validate_duration

logger = logging.getLogger(__name__)


class RegistryFullError(Exception):
    """Raised when the live timer limit is reached."""


@dataclass
class LiveTimer:
    """A hosted countdown and where it came from."""
    id: str
    timer: CountdownTimer
    source: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        data = self.timer.to_dict()
        data.update({
            "id": self.id,
            "source": self.source,
            "created_at": self.created_at.isoformat()
        })
        return data


class TimerRegistry:
    """Creates, tracks and tears down live timers."""

    def __init__(
        self,
        effects: Optional[CompletionEffects] = None,
        tick_source_factory: Optional[Callable[[], TickSource]] = None,
        max_timers: int = 50,
        request_permission_on_start: bool = True
    ):
        self.effects = effects or CompletionEffects()
        self.tick_source_factory = tick_source_factory or create_tick_source
        self.max_timers = max_timers
        self.request_permission_on_start = request_permission_on_start
        self._timers: Dict[str, LiveTimer] = {}
        self.completed_count = 0

    def create(
        self,
        minutes: int = 0,
        seconds: int = 0,
        title: str = "Timer",
        source: Optional[str] = None
    ) -> LiveTimer:
        validate_duration(minutes, seconds)
        if len(self._timers) >= self.max_timers:
            raise RegistryFullError(f"At most {self.max_timers} live timers are allowed")

        timer_id = uuid.uuid4().hex
        timer = CountdownTimer(
            initial_minutes=minutes,
            initial_seconds=seconds,
            title=title,
            on_complete=lambda: self._on_complete(timer_id),
            tick_source=self.tick_source_factory(),
            effects=self.effects,
            request_permission_on_start=self.request_permission_on_start
        )
        live = LiveTimer(id=timer_id, timer=timer, source=source)
        self._timers[timer_id] = live
        logger.info(f"Live timer {timer_id} created: '{title}' {timer.display}")
        return live

    def _on_complete(self, timer_id: str) -> None:
        self.completed_count += 1
        logger.info(f"Live timer {timer_id} finished")

    def get(self, timer_id: str) -> Optional[LiveTimer]:
        return self._timers.get(timer_id)

    def list_timers(self) -> List[LiveTimer]:
        return sorted(self._timers.values(), key=lambda t: t.created_at)

    def remove(self, timer_id: str) -> bool:
        live = self._timers.pop(timer_id, None)
        if live is None:
            return False
        live.timer.close()
        logger.info(f"Live timer {timer_id} removed")
        return True

    def close_all(self) -> None:
        for timer_id in list(self._timers):
            self.remove(timer_id)

    def __len__(self) -> int:
        return len(self._timers)
