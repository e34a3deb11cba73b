import asyncio
import logging

logger = logging.getLogger(__name__)


class HealthGauge:
    """
    Failure counter backing the readiness probe.

    Failed configuration reloads womp the gauge and the health task ticks it back down every
    30 seconds. A file that stays broken for several reload intervals in a row pushes the
    value past the threshold and readiness starts failing, while the service keeps answering
    from the last good snapshot.
    """

    def __init__(self, value: int = 0, health_threshold: int = 10) -> None:
        self._value = value
        self._health_threshold = health_threshold
        self._lock = asyncio.Lock()

    async def womp(self, d=1) -> int:
        async with self._lock:
            was_healthy = self._value <= self._health_threshold
            self._value += int(d)
            if was_healthy and self._value > self._health_threshold:
                logger.warning(
                    "Health gauge at %d, above threshold %d",
                    self._value,
                    self._health_threshold,
                )
            return self._value

    async def tick(self) -> None:
        async with self._lock:
            if self._value > 0:
                self._value -= 1

    async def is_healthy(self) -> bool:
        async with self._lock:
            return self._value <= self._health_threshold
