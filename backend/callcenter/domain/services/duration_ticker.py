"""
Duration Ticker
Repeating per-second counter for the live call timer
"""
import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class DurationTicker:
    """
    Counts elapsed ticks while a call is CONNECTED.

    Backed by a single asyncio task; stop() cancels it so no tick lands
    after the call has ended. Usable as an async context manager when the
    connected phase is scoped to one block.

    Usage:
        ticker = DurationTicker(interval=1.0)
        ticker.start()
        ...
        ticker.stop()
        seconds = ticker.elapsed
    """

    def __init__(self, interval: float = 1.0):
        if interval <= 0:
            raise ValueError("Ticker interval must be positive")
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self.elapsed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start counting from zero (restarts if already running)."""
        self.stop()
        self.elapsed = 0
        self._task = asyncio.create_task(self._run())

    def stop(self) -> int:
        """Cancel the ticker; returns the final tick count."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        return self.elapsed

    def reset(self) -> None:
        self.stop()
        self.elapsed = 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.elapsed += 1

    async def __aenter__(self) -> "DurationTicker":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()
