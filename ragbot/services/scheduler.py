"""Cancellable background tasks owned by the process lifecycle."""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

# Return True from the action to stop the loop
PeriodicAction = Callable[[], Union[Optional[bool], Awaitable[Optional[bool]]]]


class PeriodicTask:
    """Runs an action every ``interval`` seconds until cancelled.

    The action may be sync or async. Exceptions are logged and do not stop
    the loop. Returning ``True`` ends the loop (self-cancellation).
    """

    def __init__(
        self,
        name: str,
        interval: float,
        action: PeriodicAction,
        initial_delay: Optional[float] = None,
    ):
        self._name = name
        self._interval = interval
        self._action = action
        self._initial_delay = interval if initial_delay is None else initial_delay
        self._task: Optional[asyncio.Task] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self._name)
        logger.debug(f"Started periodic task '{self._name}' (every {self._interval}s)")

    async def _run(self) -> None:
        await asyncio.sleep(self._initial_delay)
        while True:
            try:
                result = self._action()
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                logger.exception(f"Periodic task '{self._name}' failed")
                result = None

            if result is True:
                logger.info(f"Periodic task '{self._name}' finished")
                return
            await asyncio.sleep(self._interval)

    async def wait(self) -> None:
        """Wait for the loop to finish on its own."""
        if self._task is not None:
            await self._task

    async def cancel(self) -> None:
        """Cancel the loop and wait for it to unwind."""
        if self._task is None:
            return
        task, self._task = self._task, None
        if task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"Cancelled periodic task '{self._name}'")
