"""Resolution of the user's coordinate from a sensor, a geocoder or a preset."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from cafe_finder.domain.location import (
    HIGH_ACCURACY,
    PRESET_LOCATIONS,
    RELAXED_ACCURACY,
    Coordinate,
    LocationFailure,
    LocationStatus,
    SensorOptions,
)
from cafe_finder.errors import LocationError
from cafe_finder.services.cache import Cache

_logger = logging.getLogger(__name__)

_NO_FALLBACK = {LocationFailure.PERMISSION_DENIED, LocationFailure.UNSUPPORTED}


class PositionSensor(Protocol):
    """Interface for device position readings."""

    async def get_position(self, options: SensorOptions) -> Coordinate:
        """Return one position reading or raise LocationError."""

    def watch(self, options: SensorOptions) -> AsyncIterator[Coordinate]:
        """Yield position readings until the iterator is closed."""


class Geocoder(Protocol):
    """Interface for free-text address lookups."""

    async def search(self, query: str, limit: int = 1) -> list[Coordinate]:
        """Return ranked coordinates for the query."""


@dataclass
class LocationService:
    """Owns the resolved user coordinate and its lifecycle.

    Every resolution takes a new generation number; a completion that is no
    longer the latest request is dropped so an older, slower lookup cannot
    overwrite a newer coordinate. Tracking runs as a task that can be
    cancelled at any time and releases the sensor subscription when it ends.
    """

    sensor: PositionSensor | None
    geocoder: Geocoder
    cache: Cache
    geocode_ttl_seconds: int = 86400
    status: LocationStatus = LocationStatus.UNRESOLVED
    coordinate: Coordinate | None = None
    failure: LocationFailure | None = None
    _generation: int = 0
    _tracking_task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def tracking(self) -> bool:
        """Return True while continuous tracking is active."""
        return self._tracking_task is not None and not self._tracking_task.done()

    async def locate_device(self) -> Coordinate:
        """Resolve from the sensor, retrying once with relaxed accuracy."""
        token = self._begin()
        if self.sensor is None:
            raise self._fail(token, LocationError(LocationFailure.UNSUPPORTED))
        try:
            coordinate = await self._read_sensor(HIGH_ACCURACY)
        except LocationError as exc:
            if exc.failure in _NO_FALLBACK:
                raise self._fail(token, exc) from exc
            _logger.info(
                "High accuracy position failed (%s), retrying relaxed", exc.failure
            )
            try:
                coordinate = await self._read_sensor(RELAXED_ACCURACY)
            except LocationError as fallback_exc:
                raise self._fail(token, fallback_exc) from fallback_exc
        self._complete(token, coordinate)
        return coordinate

    async def resolve_address(self, query: str) -> Coordinate:
        """Resolve a free-text address using the first geocoder result."""
        cleaned = query.strip()
        if not cleaned:
            raise ValueError("Location query must not be empty")
        token = self._begin()
        cache_key = f"geocode:{cleaned.casefold()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, Coordinate):
            self._complete(token, cached)
            return cached

        try:
            results = await self.geocoder.search(cleaned, limit=1)
        except httpx.HTTPError as exc:
            _logger.warning("Geocoding failed for %r: %s", cleaned, exc)
            raise self._fail(
                token, LocationError(LocationFailure.LOOKUP_TRANSPORT_ERROR, str(exc))
            ) from exc
        if not results:
            raise self._fail(token, LocationError(LocationFailure.LOOKUP_ZERO_RESULTS))

        coordinate = results[0]
        self.cache.set(cache_key, coordinate, ttl_seconds=self.geocode_ttl_seconds)
        self._complete(token, coordinate)
        return coordinate

    def use_preset(self, name: str) -> Coordinate:
        """Resolve immediately to a named preset location."""
        preset = PRESET_LOCATIONS.get(name)
        if preset is None:
            raise ValueError(f"Unknown preset location: {name}")
        token = self._begin()
        self._complete(token, preset)
        return preset

    def start_tracking(self, options: SensorOptions = HIGH_ACCURACY) -> None:
        """Begin continuous updates from the sensor."""
        if self.sensor is None:
            self.failure = LocationFailure.UNSUPPORTED
            raise LocationError(LocationFailure.UNSUPPORTED)
        self._cancel_tracking()
        if self.coordinate is None:
            self.status = LocationStatus.RESOLVING
        self._generation += 1
        self._tracking_task = asyncio.create_task(
            self._track(self.sensor, options, self._generation)
        )

    async def stop_tracking(self) -> None:
        """Cancel tracking, keeping the last known coordinate."""
        task = self._tracking_task
        self._cancel_tracking()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self.status is LocationStatus.RESOLVING and self.coordinate is None:
            self.status = LocationStatus.UNRESOLVED

    async def close(self) -> None:
        """Release the sensor subscription on teardown."""
        await self.stop_tracking()

    async def _track(
        self, sensor: PositionSensor, options: SensorOptions, token: int
    ) -> None:
        async with aclosing(sensor.watch(options)) as readings:
            try:
                async for coordinate in readings:
                    self._complete(token, coordinate)
            except LocationError as exc:
                _logger.warning("Location tracking stopped: %s", exc.failure)
                self.failure = exc.failure
                if self.coordinate is None and token == self._generation:
                    self.status = LocationStatus.FAILED

    async def _read_sensor(self, options: SensorOptions) -> Coordinate:
        assert self.sensor is not None
        try:
            return await asyncio.wait_for(
                self.sensor.get_position(options), timeout=options.timeout_seconds
            )
        except TimeoutError as exc:
            raise LocationError(LocationFailure.TIMEOUT) from exc

    def _begin(self) -> int:
        self._cancel_tracking()
        self._generation += 1
        self.status = LocationStatus.RESOLVING
        self.failure = None
        return self._generation

    def _complete(self, token: int, coordinate: Coordinate) -> bool:
        if token != self._generation:
            _logger.debug("Discarding stale location result (token=%s)", token)
            return False
        self.coordinate = coordinate
        self.status = LocationStatus.RESOLVED
        self.failure = None
        return True

    def _fail(self, token: int, error: LocationError) -> LocationError:
        if token == self._generation:
            self.status = LocationStatus.FAILED
            self.failure = error.failure
        return error

    def _cancel_tracking(self) -> None:
        if self._tracking_task is not None and not self._tracking_task.done():
            self._tracking_task.cancel()
        self._tracking_task = None
