"""
Admin Toast Board
Short-lived, in-memory confirmations shown in the moderation console
"""

import itertools
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Any, List

from app.config.settings import TOAST_TTL_SECONDS


@dataclass(frozen=True)
class Toast:
    id: int
    message: str
    created_at: datetime
    expires_at: float  # clock() reading after which the toast is gone

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "message": self.message, "created_at": self.created_at.isoformat()}


class ToastBoard:
    """
    Append-only list whose entries disappear after a fixed delay.

    Nothing is persisted or delivered anywhere; a restart loses every toast.
    """

    def __init__(self, ttl_seconds: float = TOAST_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._ids = itertools.count(1)
        self._toasts: List[Toast] = []

    def _prune(self) -> None:
        now = self._clock()
        self._toasts = [t for t in self._toasts if t.expires_at > now]

    def push(self, message: str) -> Toast:
        self._prune()
        toast = Toast(
            id=next(self._ids),
            message=message,
            created_at=datetime.now(timezone.utc),
            expires_at=self._clock() + self.ttl_seconds,
        )
        self._toasts.append(toast)
        return toast

    def active(self) -> List[Toast]:
        """Drop expired toasts and return the rest, oldest first"""
        self._prune()
        return list(self._toasts)

    def clear(self) -> None:
        self._toasts.clear()


# Global instance
toast_board = ToastBoard()
