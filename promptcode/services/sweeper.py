"""
Background sweeper that evicts old artifacts from the temp file store.
"""

import asyncio

from structlog import get_logger

from promptcode.storage.store import TempFileStore

logger = get_logger()


class FileSweeper:
    """
    Runs ``TempFileStore.sweep`` once at start and then every ``interval``
    seconds until stopped.
    """

    def __init__(self, store: TempFileStore, max_age_seconds: float, interval_seconds: float):
        self._store = store
        self.max_age_seconds = max_age_seconds
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the sweep loop."""
        if self.running:
            logger.warning("File sweeper already running")
            return

        self._task = asyncio.create_task(self._main_loop())
        logger.info(
            "File sweeper started",
            max_age_seconds=self.max_age_seconds,
            interval_seconds=self.interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to end."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("File sweeper stopped")

    async def run_once(self) -> int:
        """Sweep now; returns the number of removed files."""
        removed = await self._store.sweep(self.max_age_seconds)
        if removed:
            logger.info("Sweep finished", removed=removed)
        return removed

    async def _main_loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error in sweep loop", error=str(e), exc_info=True)
            await asyncio.sleep(self.interval_seconds)
