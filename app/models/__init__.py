"""API models for the Kitchen Timer application."""

from .schemas import (
    LiveTimerCreate,
    LiveTimerResponse,
    SaveDurationRequest,
    TransitionResponse,
    SavedTimerCreate,
    SavedTimerUpdate,
    SavedTimerResponse,
    HealthResponse
)

__all__ = [
    "LiveTimerCreate",
    "LiveTimerResponse",
    "SaveDurationRequest",
    "TransitionResponse",
    "SavedTimerCreate",
    "SavedTimerUpdate",
    "SavedTimerResponse",
    "HealthResponse"
]
