"""
Background task registry for campaign dispatch.

Dispatch runs after the start request has returned. Every run is registered
under its campaign id so it can be awaited, polled, and never started twice.
"""
import asyncio
import logging
from typing import Coroutine, Any, Dict, Optional

from affiliate_outreach.core.exceptions import InvalidStateTransitionError

logger = logging.getLogger(__name__)


class TaskState:
    UNKNOWN = "unknown"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class DispatchRegistry:
    """One live asyncio.Task per key, with failures logged and kept for polling."""

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}
        self._errors: Dict[str, str] = {}
        self._failures: Dict[str, int] = {}

    async def _safe_wrapper(self, key: str, coro: Coroutine) -> Any:
        try:
            return await coro
        except asyncio.CancelledError:
            logger.debug(f"Dispatch task cancelled: {key}")
            raise
        except Exception as e:
            self._failures[key] = self._failures.get(key, 0) + 1
            self._errors[key] = f"{type(e).__name__}: {e}"
            logger.error(
                f"Dispatch task '{key}' failed: {e}",
                exc_info=True,
                extra={"task_name": key, "error_type": type(e).__name__}
            )
            return None

    def is_running(self, key: str) -> bool:
        task = self._tasks.get(str(key))
        return task is not None and not task.done()

    def submit(self, key, coro: Coroutine) -> asyncio.Task:
        """
        Schedule `coro` under `key`.

        Raises:
            InvalidStateTransitionError: a task for this key is still running.
        """
        key = str(key)
        if self.is_running(key):
            coro.close()
            raise InvalidStateTransitionError(f"Dispatch for campaign {key}", TaskState.RUNNING, TaskState.RUNNING)

        self._errors.pop(key, None)
        task = asyncio.create_task(self._safe_wrapper(key, coro), name=f"dispatch:{key}")
        self._tasks[key] = task
        logger.info(f"Dispatch task scheduled for campaign {key}")
        return task

    def status(self, key) -> Dict[str, Optional[str]]:
        """{"state": unknown|running|completed|failed, "error": str|None}"""
        key = str(key)
        task = self._tasks.get(key)
        if task is None:
            return {"state": TaskState.UNKNOWN, "error": None}
        if not task.done():
            return {"state": TaskState.RUNNING, "error": None}
        if key in self._errors:
            return {"state": TaskState.FAILED, "error": self._errors[key]}
        return {"state": TaskState.COMPLETED, "error": None}

    async def wait(self, key, timeout: Optional[float] = None) -> Any:
        """Await the task for `key`; returns its result (None for unknown keys or failures)."""
        task = self._tasks.get(str(key))
        if task is None:
            return None
        return await asyncio.wait_for(asyncio.shield(task), timeout=timeout)

    def failure_counts(self) -> Dict[str, int]:
        return self._failures.copy()


dispatch_registry = DispatchRegistry()
