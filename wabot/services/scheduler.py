"""
WaBot - Reminder Scheduler Service
==================================

Managed delayed callbacks for the reminder command.

DESIGN:
    Each reminder is an asyncio task owned by the scheduler: it sleeps for
    the delay, then awaits its callback. Tasks remove themselves from the
    registry when they finish. stop() cancels everything still pending and
    waits for the cancellations, so no reminder fires after shutdown.
    Reminders are not persisted; a restart drops them.
"""

import asyncio
import itertools
from typing import Awaitable, Callable, Dict, Optional

from wabot.core.logger import logger


ReminderCallback = Callable[[], Awaitable[None]]


# =============================================================================
# Reminder Scheduler
# =============================================================================

class ReminderScheduler:
    """
    Owner of all pending reminder tasks.

    Attributes:
        running: False once stop() has been called.
    """

    def __init__(self) -> None:
        self._tasks: Dict[int, asyncio.Task] = {}
        self._ids = itertools.count(1)
        self.running: bool = True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def schedule(
        self,
        delay: float,
        callback: ReminderCallback,
        label: str = "Reminder",
    ) -> int:
        """
        Run callback after delay seconds.

        Args:
            delay: Seconds to wait.
            callback: Zero-argument coroutine function.
            label: Name used in logs.

        Returns:
            Reminder id usable with cancel().

        Raises:
            RuntimeError: If the scheduler has been stopped.
        """
        if not self.running:
            raise RuntimeError("Scheduler is stopped")

        reminder_id = next(self._ids)
        self._tasks[reminder_id] = asyncio.create_task(
            self._run(reminder_id, delay, callback, label)
        )

        logger.tree("Reminder Scheduled", [
            ("ID", str(reminder_id)),
            ("Label", label[:50]),
            ("Delay", f"{delay:g}s"),
            ("Pending", str(len(self._tasks))),
        ], emoji="⏰")
        return reminder_id

    async def _run(
        self,
        reminder_id: int,
        delay: float,
        callback: ReminderCallback,
        label: str,
    ) -> None:
        try:
            await asyncio.sleep(delay)
            await callback()
            logger.tree("Reminder Fired", [
                ("ID", str(reminder_id)),
                ("Label", label[:50]),
            ], emoji="🔔")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Reminder Failed", [
                ("ID", str(reminder_id)),
                ("Label", label[:50]),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
        finally:
            self._tasks.pop(reminder_id, None)

    def cancel(self, reminder_id: int) -> bool:
        """Cancel one pending reminder. Returns False if it is not pending."""
        task: Optional[asyncio.Task] = self._tasks.pop(reminder_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def stop(self) -> None:
        """Cancel every pending reminder and wait for the tasks to unwind."""
        self.running = False
        tasks = list(self._tasks.values())
        self._tasks.clear()

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.tree("Reminder Scheduler Stopped", [
            ("Cancelled", str(len(tasks))),
        ], emoji="⏰")


__all__ = ["ReminderScheduler"]
