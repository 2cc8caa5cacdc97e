"""Fixed-delay pacing between Google Books requests."""
import asyncio
import time
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class RateGovernor:
    """
    Enforces a fixed pause between consecutive page fetches.

    The pipeline fetches strictly one page at a time, so a plain sleep
    between iterations is enough. Response headers are not consulted.
    """

    def __init__(self, interval: float = 1.0, sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            interval: Seconds to wait before the next request
            sleep: Blocking sleep function (swapped out in tests)
        """
        self.interval = max(0.0, interval)
        self._sleep = sleep

    def wait(self):
        """Block the caller for the configured interval."""
        if self.interval:
            logger.debug(f"Waiting {self.interval:.2f}s before next request")
            self._sleep(self.interval)

    async def wait_async(self):
        """Suspend the calling coroutine for the configured interval."""
        if self.interval:
            logger.debug(f"Waiting {self.interval:.2f}s before next request")
            await asyncio.sleep(self.interval)
