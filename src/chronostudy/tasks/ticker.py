"""Shared repaint tick — calls subscribers with the current time every interval."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

TickListener = Callable[[datetime], None]


class Ticker:
    """Periodic "now" event for display only; never does I/O itself."""

    def __init__(
        self,
        interval: float = 1.0,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._interval = interval
        self._clock = clock
        self._listeners: list[TickListener] = []
        self._task: asyncio.Task | None = None
        self.now = clock()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: TickListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    def tick(self) -> datetime:
        """Advance ``now`` and notify subscribers once."""
        self.now = self._clock()
        for listener in list(self._listeners):
            try:
                listener(self.now)
            except Exception:
                logger.exception("Tick listener failed")
        return self.now

    async def _run(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self._interval)
