"""Real-time clock backed by the anyio event loop."""

from typing import final

import anyio
import pendulum


def get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return pendulum.now("UTC").to_iso8601_string()


@final
class MonotonicClock:
    """Clock using the event loop's monotonic time."""

    __slots__ = ()

    def now(self) -> float:
        return anyio.current_time()

    async def sleep(self, seconds: float) -> None:
        await anyio.sleep(max(0.0, seconds))
