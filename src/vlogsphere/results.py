"""Outcome type returned by every session and mutation action."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ActionResult:
    """
    Discriminated success/error outcome.

    Actions report failure through this value and a notification; they do
    not raise. ``suppressed`` marks a call that was dropped as a duplicate
    of one already in flight.
    """

    ok: bool
    error: Optional[str] = None
    suppressed: bool = False

    @classmethod
    def success(cls) -> "ActionResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str) -> "ActionResult":
        return cls(ok=False, error=message)

    @classmethod
    def skipped(cls) -> "ActionResult":
        return cls(ok=True, suppressed=True)
