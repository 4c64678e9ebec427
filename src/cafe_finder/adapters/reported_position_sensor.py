"""Position sensor fed by readings the browser reports to the API."""

import asyncio
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

from cafe_finder.domain.location import Coordinate, LocationFailure, SensorOptions
from cafe_finder.errors import LocationError
from cafe_finder.services.location import PositionSensor


@dataclass
class ReportedPositionSensor(PositionSensor):
    """Bridges client-side geolocation callbacks into awaitable reads.

    The client posts each success or error callback it receives; one-shot
    reads wait for the next report (or reuse one younger than ``max_age``)
    and watchers receive every report until they are closed.
    """

    clock: Callable[[], float] = time.monotonic
    _latest: tuple[float, Coordinate] | None = None
    _waiters: list[asyncio.Future[Coordinate]] = field(default_factory=list)
    _subscribers: set[asyncio.Queue[Coordinate | LocationError]] = field(
        default_factory=set
    )

    @property
    def subscriber_count(self) -> int:
        """Return the number of open watch subscriptions."""
        return len(self._subscribers)

    def report(self, coordinate: Coordinate) -> None:
        """Record a successful reading from the client."""
        self._latest = (self.clock(), coordinate)
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(coordinate)
        self._waiters.clear()
        for queue in self._subscribers:
            queue.put_nowait(coordinate)

    def report_error(self, failure: LocationFailure) -> None:
        """Record a failed reading from the client."""
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_exception(LocationError(failure))
        self._waiters.clear()
        for queue in self._subscribers:
            queue.put_nowait(LocationError(failure))

    async def get_position(self, options: SensorOptions) -> Coordinate:
        """Return a fresh enough reading, waiting for one if needed."""
        cached = self._fresh(options.max_age_seconds)
        if cached is not None:
            return cached
        waiter: asyncio.Future[Coordinate] = (
            asyncio.get_running_loop().create_future()
        )
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout=options.timeout_seconds)
        except TimeoutError as exc:
            raise LocationError(LocationFailure.TIMEOUT) from exc
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    async def watch(self, options: SensorOptions) -> AsyncIterator[Coordinate]:
        """Yield readings as they are reported until closed."""
        queue: asyncio.Queue[Coordinate | LocationError] = asyncio.Queue()
        self._subscribers.add(queue)
        try:
            cached = self._fresh(options.max_age_seconds)
            if cached is not None:
                yield cached
            while True:
                item = await queue.get()
                if isinstance(item, LocationError):
                    raise item
                yield item
        finally:
            self._subscribers.discard(queue)

    def _fresh(self, max_age_seconds: float) -> Coordinate | None:
        if self._latest is None:
            return None
        reported_at, coordinate = self._latest
        if self.clock() - reported_at <= max_age_seconds:
            return coordinate
        return None
