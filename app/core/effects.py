"""Completion side effects: audio cue, notifications and in-app messages."""

import sys
import logging
import itertools
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, TextIO

from cachetools import TTLCache

from config.settings import MESSAGE_TEMPLATES

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a system notification cannot be delivered."""


class NotificationPermission(str, Enum):
    """Notification permission state."""
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class AudioCue(ABC):
    """Abstract base class for audible completion cues."""

    @abstractmethod
    def play(self) -> None:
        """Play the cue. May raise; callers treat failures as non-fatal."""
        pass


class SilentAudioCue(AudioCue):
    """Audio cue that makes no sound."""

    def play(self) -> None:
        pass


class TerminalBellCue(AudioCue):
    """Rings the terminal bell."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def play(self) -> None:
        stream = self._stream or sys.stdout
        stream.write("\a")
        stream.flush()


class SoundFileCue(AudioCue):
    """
    Plays a fixed sound asset.

    The asset is read once when the cue is built and every play hands the
    same bytes to ``player``, so each completion restarts the sound from the
    beginning. A missing or unreadable asset is logged and the cue stays
    silent.
    """

    def __init__(self, path: str, player: Optional[Callable[[bytes], None]] = None):
        self.path = Path(path)
        self.player = player
        self.data: Optional[bytes] = None

        try:
            self.data = self.path.read_bytes()
            logger.info(f"Loaded sound asset {self.path} ({len(self.data)} bytes)")
        except OSError as e:
            logger.error(f"Error loading sound {self.path}: {e}")

    @property
    def loaded(self) -> bool:
        return self.data is not None

    def play(self) -> None:
        if self.data is None:
            return
        if self.player is None:
            logger.debug(f"No audio player configured for {self.path}")
            return
        self.player(self.data)


@dataclass
class Notification:
    """A delivered system notification."""
    title: str
    body: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "body": self.body,
            "created_at": self.created_at.isoformat()
        }


class NotificationCenter:
    """Platform notification capability with a permission state."""

    def __init__(
        self,
        permission: NotificationPermission = NotificationPermission.DEFAULT,
        grant_on_request: bool = True,
        history_size: int = 50
    ):
        self.permission = NotificationPermission(permission)
        self.grant_on_request = grant_on_request
        self._delivered: deque = deque(maxlen=history_size)

    def request_permission(self) -> NotificationPermission:
        """Ask for permission. Only a ``default`` state can change."""
        if self.permission is NotificationPermission.DEFAULT:
            self.permission = (
                NotificationPermission.GRANTED if self.grant_on_request
                else NotificationPermission.DENIED
            )
            logger.info(f"Notification permission is now {self.permission.value}")
        return self.permission

    def notify(self, title: str, body: str) -> Notification:
        if self.permission is not NotificationPermission.GRANTED:
            raise NotificationError(f"Notification permission is {self.permission.value}")
        notification = Notification(title=title, body=body)
        self._delivered.append(notification)
        return notification

    @property
    def delivered(self) -> List[Notification]:
        return list(self._delivered)


@dataclass
class Message:
    """An in-app transient message."""
    id: int
    level: str
    text: str

    def to_dict(self) -> dict:
        return {"id": self.id, "level": self.level, "text": self.text}


class MessageBoard:
    """In-app transient messages that expire after a TTL."""

    def __init__(self, maxsize: int = 100, ttl: float = 10):
        self._messages: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._ids = itertools.count(1)

    def post(self, level: str, text: str) -> Message:
        message = Message(id=next(self._ids), level=level, text=text)
        self._messages[message.id] = message
        return message

    def success(self, text: str) -> Message:
        return self.post("success", text)

    def error(self, text: str) -> Message:
        return self.post("error", text)

    def recent(self) -> List[Message]:
        """Messages that have not expired yet, oldest first."""
        with self._messages.timer as now:
            self._messages.expire(now)
            messages = list(self._messages.values())
        return sorted(messages, key=lambda m: m.id)

    def clear(self) -> None:
        self._messages.clear()


class CompletionEffects:
    """
    Bundle of side effects fired when a timer completes.

    Every step is isolated: a failing audio cue or notification is logged and
    never prevents the remaining steps.
    """

    def __init__(
        self,
        audio: Optional[AudioCue] = None,
        notifier: Optional[NotificationCenter] = None,
        messages: Optional[MessageBoard] = None
    ):
        self.audio = audio or SilentAudioCue()
        self.notifier = notifier or NotificationCenter()
        self.messages = messages or MessageBoard()

    def fire(self, title: str) -> None:
        body = MESSAGE_TEMPLATES["completed_body"].format(title=title)

        try:
            self.audio.play()
        except Exception as e:
            logger.error(f"Error playing sound: {e}")

        if self.notifier.permission is NotificationPermission.GRANTED:
            try:
                self.notifier.notify(MESSAGE_TEMPLATES["completed_title"], body)
                return
            except Exception as e:
                logger.error(f"Error showing notification: {e}")
        self.messages.success(body)

    def request_permission(self) -> None:
        """Best-effort permission prompt on a user gesture."""
        if self.notifier.permission is not NotificationPermission.DEFAULT:
            return
        try:
            if self.notifier.request_permission() is NotificationPermission.GRANTED:
                self.messages.success(MESSAGE_TEMPLATES["notifications_enabled"])
        except Exception as e:
            logger.error(f"Error requesting notification permission: {e}")
