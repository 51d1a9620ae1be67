"""
Background rotation of attendance codes.

One asyncio task per active class. Every interval the task writes a new code to
the class's session row. When the row is gone (session closed) the task removes
itself from the registry and ends; storage errors are logged and the task waits
for the next tick.
"""

import asyncio
import logging
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.attendance_code import generate_attendance_code

from . import store

logger = logging.getLogger(__name__)


class CodeRotationScheduler:
    """Owns the class_id -> rotation task registry. No other component touches it."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], interval_seconds: float) -> None:
        self._session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._tasks: Dict[int, asyncio.Task] = {}

    def start(self, class_id: int) -> None:
        """Start rotation for a class, replacing any running timer so the next tick is a full interval away."""
        existing = self._tasks.pop(class_id, None)
        if existing is not None and not existing.done():
            existing.cancel()
        task = asyncio.create_task(self._run(class_id), name=f"code-rotation-{class_id}")
        self._tasks[class_id] = task
        logger.info("Code rotation started for class %s (every %ss)", class_id, self.interval_seconds)

    def ensure_running(self, class_id: int) -> bool:
        """Start rotation only if no live timer exists. Returns True if a timer was started."""
        if self.is_running(class_id):
            return False
        self.start(class_id)
        return True

    def stop(self, class_id: int) -> bool:
        task = self._tasks.pop(class_id, None)
        if task is None:
            return False
        task.cancel()
        logger.info("Code rotation stopped for class %s", class_id)
        return True

    def is_running(self, class_id: int) -> bool:
        task = self._tasks.get(class_id)
        return task is not None and not task.done()

    def active_classes(self) -> List[int]:
        return [class_id for class_id, task in self._tasks.items() if not task.done()]

    async def shutdown(self) -> None:
        """Cancel every rotation task and wait for them to finish."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, class_id: int) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            if not await self.rotate_once(class_id):
                self._forget(class_id)
                logger.info("Attendance session for class %s has ended, rotation stopped", class_id)
                return

    async def rotate_once(self, class_id: int) -> bool:
        """
        Run a single rotation tick.
        Returns False only when the session row no longer exists; a failed write
        (database error, refused or dropped connection, timeout) counts as alive.
        """
        new_code = generate_attendance_code()
        try:
            async with self._session_factory() as db:
                updated = await store.update_code(db, class_id, new_code)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError):
            logger.exception("Failed to rotate attendance code for class %s, retrying next tick", class_id)
            return True
        if updated:
            logger.debug("Attendance code for class %s rotated", class_id)
        return updated

    def _forget(self, class_id: int) -> None:
        # A newer timer may already own this class; only drop our own entry.
        if self._tasks.get(class_id) is asyncio.current_task():
            del self._tasks[class_id]
