"""Countdown timer state machine."""

import re
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Callable, Optional, Tuple, Union

from config.settings import MESSAGE_TEMPLATES
from .effects import CompletionEffects
from .ticker import TickSource, ManualTickSource

logger = logging.getLogger(__name__)

DurationField = Union[int, str, None]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class TimerError(Exception):
    """Base class for timer errors."""


class DurationValidationError(TimerError, ValueError):
    """Raised when a duration is out of range."""


class TimerPhase(str, Enum):
    """Observable state of a countdown timer."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    EDITING = "editing"


def parse_duration_field(value: DurationField) -> int:
    """Parse a minutes/seconds input the way a number field does.

    Integers pass through; strings yield their leading integer, and anything
    unparseable counts as 0.
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def validate_duration(minutes: int, seconds: int) -> Tuple[int, int]:
    """Check that ``minutes >= 0`` and ``0 <= seconds < 60``."""
    if minutes < 0 or seconds < 0 or seconds >= 60:
        raise DurationValidationError(MESSAGE_TEMPLATES["invalid_time"])
    return minutes, seconds


def format_time(value: int) -> str:
    return str(value).rjust(2, "0")


@dataclass
class TimerState:
    """In-memory state of a single countdown."""
    remaining_minutes: int = 0
    remaining_seconds: int = 0
    initial_minutes: int = 0
    initial_seconds: int = 0
    is_running: bool = False
    is_completed: bool = False
    is_editing: bool = False

    @property
    def remaining(self) -> Tuple[int, int]:
        return self.remaining_minutes, self.remaining_seconds

    @property
    def initial(self) -> Tuple[int, int]:
        return self.initial_minutes, self.initial_seconds

    @property
    def is_zero(self) -> bool:
        return self.remaining == (0, 0)

    def to_dict(self) -> dict:
        return asdict(self)


class CountdownTimer:
    """
    A single countdown with start/pause, reset and edit affordances.

    Transitions that are not allowed in the current state are no-ops and
    return False. The tick source is held only while running and is released
    on every way out of the running state.
    """

    def __init__(
        self,
        initial_minutes: int = 0,
        initial_seconds: int = 0,
        title: str = "Timer",
        on_complete: Optional[Callable[[], None]] = None,
        tick_source: Optional[TickSource] = None,
        effects: Optional[CompletionEffects] = None,
        request_permission_on_start: bool = True
    ):
        validate_duration(initial_minutes, initial_seconds)
        self.title = title
        self.on_complete = on_complete
        self.tick_source = tick_source or ManualTickSource()
        self.effects = effects or CompletionEffects()
        self.request_permission_on_start = request_permission_on_start

        self.state = TimerState(
            remaining_minutes=initial_minutes,
            remaining_seconds=initial_seconds,
            initial_minutes=initial_minutes,
            initial_seconds=initial_seconds
        )
        self.validation_error: Optional[str] = None
        self.completions = 0
        self._closed = False

    def __enter__(self) -> "CountdownTimer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def phase(self) -> TimerPhase:
        state = self.state
        if state.is_editing:
            return TimerPhase.EDITING
        if state.is_running:
            return TimerPhase.RUNNING
        if state.is_completed:
            return TimerPhase.COMPLETED
        if state.remaining != state.initial:
            return TimerPhase.PAUSED
        return TimerPhase.IDLE

    @property
    def display(self) -> str:
        """Remaining time as ``MM:SS``."""
        return f"{format_time(self.state.remaining_minutes)}:{format_time(self.state.remaining_seconds)}"

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> bool:
        state = self.state
        if self._closed or state.is_running or state.is_editing:
            logger.debug(f"Ignoring start for '{self.title}' in phase {self.phase.value}")
            return False

        if state.is_completed or state.is_zero:
            # Restart from the configured duration
            state.remaining_minutes, state.remaining_seconds = state.initial
            state.is_completed = False
            if state.is_zero:
                return False

        if self.request_permission_on_start:
            self.effects.request_permission()

        state.is_running = True
        self.tick_source.stop()
        self.tick_source.start(self.tick)
        logger.info(f"Timer '{self.title}' started at {self.display}")
        return True

    def pause(self) -> bool:
        if not self.state.is_running:
            return False
        self._release()
        logger.info(f"Timer '{self.title}' paused at {self.display}")
        return True

    def toggle(self) -> bool:
        """Start/pause button: pause when running, otherwise start."""
        if self.state.is_running:
            return self.pause()
        return self.start()

    def tick(self) -> None:
        state = self.state
        if self._closed or not state.is_running:
            logger.debug(f"Ignoring stray tick for '{self.title}'")
            return

        if state.remaining_seconds > 0:
            state.remaining_seconds -= 1
        elif state.remaining_minutes > 0:
            state.remaining_minutes -= 1
            state.remaining_seconds = 59

        if state.is_zero:
            self._complete()

    def reset(self) -> bool:
        state = self.state
        if not state.is_running and not state.is_completed and state.remaining == state.initial:
            return False
        self._release()
        state.is_completed = False
        state.remaining_minutes, state.remaining_seconds = state.initial
        logger.info(f"Timer '{self.title}' reset to {self.display}")
        return True

    def edit(self) -> bool:
        if self._closed or self.state.is_running or self.state.is_editing:
            return False
        self.state.is_editing = True
        self.validation_error = None
        return True

    def save(self, minutes: DurationField, seconds: DurationField) -> bool:
        """Apply an edited duration; on invalid input stay in edit mode."""
        state = self.state
        if not state.is_editing:
            return False

        try:
            new_minutes, new_seconds = validate_duration(
                parse_duration_field(minutes),
                parse_duration_field(seconds)
            )
        except DurationValidationError as e:
            self.validation_error = str(e)
            self.effects.messages.error(str(e))
            return False

        self._release()
        state.initial_minutes = state.remaining_minutes = new_minutes
        state.initial_seconds = state.remaining_seconds = new_seconds
        state.is_editing = False
        state.is_completed = False
        self.validation_error = None
        logger.info(f"Timer '{self.title}' set to {self.display}")
        return True

    def cancel(self) -> bool:
        if not self.state.is_editing:
            return False
        self.state.is_editing = False
        self.validation_error = None
        return True

    def close(self) -> None:
        """Release the tick source; the timer ignores ticks afterwards."""
        self._release()
        self._closed = True

    def _release(self) -> None:
        self.tick_source.stop()
        self.state.is_running = False

    def _complete(self) -> None:
        self._release()
        self.state.is_completed = True
        self.completions += 1
        logger.info(f"Timer '{self.title}' completed")

        try:
            self.effects.fire(self.title)
        except Exception:
            logger.exception(f"Completion effects failed for '{self.title}'")

        if self.on_complete is not None:
            try:
                self.on_complete()
            except Exception:
                logger.exception(f"Completion callback failed for '{self.title}'")

    def to_dict(self) -> dict:
        data = self.state.to_dict()
        data.update({
            "title": self.title,
            "phase": self.phase.value,
            "display": self.display,
            "validation_error": self.validation_error,
            "completions": self.completions
        })
        return data
