"""
Renewal timer: silent credential renewal at a fixed interval.

A single cancellable asyncio task owned by the session manager. It sleeps
for the interval, then awaits the renewal callback, and repeats until
stopped.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Optional

from vlogsphere.config import CONFIG
from vlogsphere.logger import get_logger

logger = get_logger(__name__)


class RenewalTimer:
    """
    Runs ``callback`` every ``interval_minutes`` until stopped.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval_minutes: Optional[float] = None,
    ):
        self.interval_minutes = (
            CONFIG.RENEWAL_INTERVAL_MINUTES if interval_minutes is None else interval_minutes
        )
        self._callback = callback
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._last_run_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    def start(self) -> None:
        """Arm the timer. Restarts the interval if it was already armed."""
        self.cancel()
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.debug(f"Renewal timer armed (every {self.interval_minutes}m)")

    def cancel(self) -> Optional[asyncio.Task]:
        """
        Disarm the timer without waiting for the task to finish.

        Safe to call from inside the callback: the running loop is not
        cancelled, it simply exits once the callback returns.

        Returns:
            The cancelled task, if one was cancelled.
        """
        self._running = False
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            return None
        task.cancel()
        return task

    async def stop(self) -> None:
        """Disarm the timer and wait for the loop to unwind."""
        task = self.cancel()
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Renewal timer disarmed")

    async def _run_loop(self):
        """Main loop: wait one interval, then renew."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_minutes * 60)
            except asyncio.CancelledError:
                break

            if not self._running:
                break

            self._last_run_at = datetime.now()
            try:
                await self._callback()
                self._last_error = None
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Renewal callback error: {e}")
                self._last_error = str(e)

    def get_status(self) -> dict:
        """Return current timer status."""
        return {
            "running": self.running,
            "interval_minutes": self.interval_minutes,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
            "last_error": self._last_error,
        }
