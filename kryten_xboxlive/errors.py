"""Error kinds raised by the Xbox Live lookup core.

Every failure is an ``XboxLiveError`` subclass tagged with an ``ErrorKind``.
Callers compare by ``kind`` (or catch the subclass), never by instance.

Soft kinds are converted into chat replies by the resolver. Hard kinds
propagate to the transport layer, which logs them. A hard error may still
carry a ``reply`` for the user (``NoAchievements`` does), in which case the
reply is sent and the error is logged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    USER_NOT_FOUND = "user_not_found"
    NO_TITLES = "no_titles"
    NO_ACHIEVEMENTS = "no_achievements"
    REMOTE = "remote"
    WRITE = "write"
    STORE = "store"


class XboxLiveError(Exception):
    """Base exception for all lookup failures.

    Attributes:
        message: Human-readable error description.
        operation: Name of the failing operation (e.g. "player_summary").
        target: Username, xuid or nick the operation was working on.
        reply: Optional user-facing text to send despite the failure.
        context: Extra key-value pairs for logging.
    """

    kind: ErrorKind = ErrorKind.REMOTE

    def __init__(
        self,
        message: str = "",
        *,
        operation: str | None = None,
        target: str | None = None,
        reply: str | None = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.operation = operation
        self.target = target
        self.reply = reply
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.operation:
            parts.append(f"[operation={self.operation}]")
        if self.target:
            parts.append(f"[target={self.target}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)


class UserNotFound(XboxLiveError):
    """The profile service returned no match for a username."""

    kind = ErrorKind.USER_NOT_FOUND


class NoTitles(XboxLiveError):
    """The profile has no title history."""

    kind = ErrorKind.NO_TITLES


class NoAchievements(XboxLiveError):
    """The selected title has no unlocked achievements."""

    kind = ErrorKind.NO_ACHIEVEMENTS


class RemoteError(XboxLiveError):
    """Transport failure, non-2xx status or malformed response."""

    kind = ErrorKind.REMOTE


class WriteError(XboxLiveError):
    """The identity store could not persist a mapping."""

    kind = ErrorKind.WRITE


class StoreError(XboxLiveError):
    """The identity store could not be read."""

    kind = ErrorKind.STORE
