"""Core application modules."""

from .timer import CountdownTimer, TimerState, TimerPhase, DurationValidationError
from .ticker import TickSource, ManualTickSource, AsyncioTickSource
from .effects import CompletionEffects, NotificationCenter, MessageBoard
from .registry import TimerRegistry
from .saved_timers import SavedTimerStore
from .data_loader import DataLoader, Recipe
from .shopping_lists import ShoppingListStore, ShoppingList

__all__ = [
    "CountdownTimer",
    "TimerState",
    "TimerPhase",
    "DurationValidationError",
    "TickSource",
    "ManualTickSource",
    "AsyncioTickSource",
    "CompletionEffects",
    "NotificationCenter",
    "MessageBoard",
    "TimerRegistry",
    "SavedTimerStore",
    "DataLoader",
    "Recipe",
    "ShoppingListStore",
    "ShoppingList"
]
