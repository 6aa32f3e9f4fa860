"""
Background dispatcher for fire-and-forget notifications
"""
import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set

logger = logging.getLogger("cinepay.notifications")


class NotificationDispatcher:
    """
    Runs notification coroutines as tasks on the running event loop.

    Submitting never raises and never waits for delivery. Failures are logged
    and kept in a bounded in-memory log for the health endpoint.
    """

    def __init__(self, max_failures: int = 100):
        self._tasks: Set[asyncio.Task] = set()
        self._failures: Deque[Dict[str, Any]] = deque(maxlen=max_failures)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def failures(self) -> List[Dict[str, Any]]:
        return list(self._failures)

    def _record_failure(self, name: str, error: str) -> None:
        self._failures.append({
            "notification": name,
            "error": error,
            "at": datetime.now(timezone.utc).isoformat(),
        })

    def submit(self, name: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; dropping notification %s", name)
            self._record_failure(name, "no running event loop")
            return None

        task = loop.create_task(self._run(name, func, *args))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        try:
            await func(*args)
            logger.info("Notification %s delivered", name)
        except asyncio.CancelledError:
            logger.debug("Notification %s cancelled", name)
            raise
        except Exception as exc:
            logger.exception("Notification %s failed", name)
            self._record_failure(name, str(exc))

    async def drain(self, timeout: float = 2.0) -> None:
        """Wait briefly for in-flight notifications, then cancel the rest."""
        tasks = list(self._tasks)
        if not tasks:
            return
        logger.info("Waiting for %d notification(s) to finish...", len(tasks))
        done, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.info("Cancelled %d unfinished notification(s)", len(still_running))


dispatcher = NotificationDispatcher()
