"""
Notification sinks.

The core only ever calls ``notify(message, severity, duration_ms)`` and
never waits on or inspects the result.
"""

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from vlogsphere.config import CONFIG
from vlogsphere.logger import get_logger

logger = get_logger(__name__)


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass
class Toast:
    message: str
    severity: Severity
    duration_ms: int
    created_at: datetime


class Notifier(ABC):
    """Fire-and-forget transient message display."""

    @abstractmethod
    def notify(
        self, message: str, severity: Severity, duration_ms: Optional[int] = None
    ) -> None:
        pass


class ToastQueue(Notifier):
    """
    Keeps recent toasts in a bounded deque for a UI to drain.
    """

    def __init__(self, maxlen: int = 20):
        self._pending: deque[Toast] = deque(maxlen=maxlen)

    def notify(
        self, message: str, severity: Severity, duration_ms: Optional[int] = None
    ) -> None:
        toast = Toast(
            message=message,
            severity=Severity(severity),
            duration_ms=duration_ms or CONFIG.TOAST_DURATION_MS,
            created_at=datetime.now(),
        )
        self._pending.append(toast)
        logger.debug(f"Toast [{toast.severity.value}] {message}")

    def drain(self) -> list[Toast]:
        """Drain and return all pending toasts."""
        toasts = list(self._pending)
        self._pending.clear()
        return toasts

    def __len__(self) -> int:
        return len(self._pending)
