import asyncio
import logging
import time
from typing import Optional

import cancellation
from config import RATE_LIMIT_SECONDS
from errors import OperationCancelled, ThrottleCancelledError

logger = logging.getLogger("opentrivia.rate_limit")


# =========================
# Single-Slot Throttle
# =========================

class RateThrottle:
    """
    Spaces question requests at least `interval_seconds` apart.

    Only one caller at a time may read or update the last request time,
    and it sleeps while holding the slot. The timestamp is written right
    before the slot is released, so the next waiter measures from the
    previous request rather than from when it started queueing.
    """

    def __init__(self, interval_seconds: float = RATE_LIMIT_SECONDS):
        self.interval_seconds = interval_seconds
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def last_request(self) -> Optional[float]:
        return self._last_request

    async def acquire_and_wait(self, cancel: Optional[asyncio.Event] = None) -> None:
        """
        Wait for this caller's turn.

        Raises:
            ThrottleCancelledError: `cancel` fired while queueing or sleeping
        """
        try:
            await cancellation.run_until_cancelled(self._lock.acquire(), cancel)
        except OperationCancelled as e:
            logger.warning("Rate limit wait was canceled before acquiring the slot")
            raise ThrottleCancelledError("Rate limit delay was canceled") from e

        try:
            if self._last_request is not None:
                elapsed = time.monotonic() - self._last_request

                if elapsed < self.interval_seconds:
                    delay = self.interval_seconds - elapsed
                    logger.debug(f"Rate limit active. Waiting {delay * 1000:.0f}ms before making request")
                    await cancellation.sleep(delay, cancel)

            self._last_request = time.monotonic()

        except OperationCancelled as e:
            logger.warning("Rate limit delay was canceled")
            raise ThrottleCancelledError("Rate limit delay was canceled") from e

        finally:
            self._lock.release()
