"""Named timers saved for reuse."""

import json
import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from config.settings import MESSAGE_TEMPLATES
from .timer import validate_duration

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SavedTimer:
    """A named duration that can seed a live countdown."""
    id: str
    name: str
    minutes: int
    seconds: int
    created_at: datetime = field(default_factory=_utcnow)
    is_active: bool = True

    @property
    def duration_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "minutes": self.minutes,
            "seconds": self.seconds,
            "duration": self.duration_seconds,
            "created_at": self.created_at.isoformat(),
            "is_active": self.is_active
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedTimer":
        created_at = data.get("created_at")
        return cls(
            id=data["id"],
            name=data["name"],
            minutes=data.get("minutes", 0),
            seconds=data.get("seconds", 0),
            created_at=datetime.fromisoformat(created_at) if created_at else _utcnow(),
            is_active=data.get("is_active", True)
        )


class SavedTimerStore:
    """
    Keeps saved timers in memory, optionally mirrored to a JSON file.

    Validation failures raise ``ValueError`` (``DurationValidationError`` for
    out-of-range durations); a zero duration is rejected too. Lookups of
    unknown ids return None.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._timers: Dict[str, SavedTimer] = {}
        if self.path is not None and self.path.exists():
            self._load()

    def _load(self) -> None:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self._timers = {item["id"]: SavedTimer.from_dict(item) for item in data}
        logger.info(f"Loaded {len(self._timers)} saved timers from {self.path}")

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump([t.to_dict() for t in self._timers.values()], f, indent=2)
        tmp_path.replace(self.path)

    @staticmethod
    def _check_duration(minutes: int, seconds: int) -> None:
        validate_duration(minutes, seconds)
        if minutes * 60 + seconds == 0:
            raise ValueError(MESSAGE_TEMPLATES["duration_required"])

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValueError(MESSAGE_TEMPLATES["name_required"])
        return name

    def create(self, name: str, minutes: int, seconds: int) -> SavedTimer:
        name = self._clean_name(name)
        self._check_duration(minutes, seconds)
        timer = SavedTimer(id=uuid.uuid4().hex, name=name, minutes=minutes, seconds=seconds)
        self._timers[timer.id] = timer
        self._flush()
        logger.info(f"Saved timer '{name}' ({minutes}m {seconds}s)")
        return timer

    def list_timers(self) -> List[SavedTimer]:
        """Active timers, newest first."""
        timers = [t for t in self._timers.values() if t.is_active]
        return list(reversed(sorted(timers, key=lambda t: t.created_at)))

    def get(self, timer_id: str) -> Optional[SavedTimer]:
        return self._timers.get(timer_id)

    def find_by_name(self, name: str) -> Optional[SavedTimer]:
        name_lower = name.lower().strip()
        for timer in self.list_timers():
            if timer.name.lower() == name_lower:
                return timer
        return None

    def update(
        self,
        timer_id: str,
        name: Optional[str] = None,
        minutes: Optional[int] = None,
        seconds: Optional[int] = None,
        is_active: Optional[bool] = None
    ) -> Optional[SavedTimer]:
        timer = self._timers.get(timer_id)
        if timer is None:
            return None

        new_name = self._clean_name(name) if name is not None else timer.name
        new_minutes = minutes if minutes is not None else timer.minutes
        new_seconds = seconds if seconds is not None else timer.seconds
        self._check_duration(new_minutes, new_seconds)

        timer.name = new_name
        timer.minutes = new_minutes
        timer.seconds = new_seconds
        if is_active is not None:
            timer.is_active = is_active
        self._flush()
        return timer

    def delete(self, timer_id: str) -> bool:
        if self._timers.pop(timer_id, None) is None:
            return False
        self._flush()
        logger.info(f"Deleted saved timer {timer_id}")
        return True

    def __len__(self) -> int:
        return len(self._timers)
