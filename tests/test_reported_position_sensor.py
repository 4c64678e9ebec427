"""Tests for the client-fed position sensor."""

import asyncio
from contextlib import aclosing

import pytest

from cafe_finder.adapters.reported_position_sensor import ReportedPositionSensor
from cafe_finder.domain.location import Coordinate, LocationFailure, SensorOptions
from cafe_finder.errors import LocationError

FAST = SensorOptions(high_accuracy=True, timeout_seconds=0.05, max_age_seconds=60)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_recent_reading_is_reused() -> None:
    clock = FakeClock()
    sensor = ReportedPositionSensor(clock=clock)
    sensor.report(Coordinate(1.0, 2.0))
    clock.now += 30

    assert asyncio.run(sensor.get_position(FAST)) == Coordinate(1.0, 2.0)


def test_expired_reading_times_out() -> None:
    clock = FakeClock()
    sensor = ReportedPositionSensor(clock=clock)
    sensor.report(Coordinate(1.0, 2.0))
    clock.now += 61

    with pytest.raises(LocationError) as excinfo:
        asyncio.run(sensor.get_position(FAST))

    assert excinfo.value.failure is LocationFailure.TIMEOUT


def test_waiting_read_receives_next_report() -> None:
    sensor = ReportedPositionSensor()

    async def scenario() -> Coordinate:
        pending = asyncio.create_task(
            sensor.get_position(
                SensorOptions(high_accuracy=True, timeout_seconds=1, max_age_seconds=0)
            )
        )
        await asyncio.sleep(0)
        sensor.report(Coordinate(5.0, 6.0))
        return await pending

    assert asyncio.run(scenario()) == Coordinate(5.0, 6.0)


def test_waiting_read_receives_reported_error() -> None:
    sensor = ReportedPositionSensor()

    async def scenario() -> None:
        pending = asyncio.create_task(sensor.get_position(FAST))
        await asyncio.sleep(0)
        sensor.report_error(LocationFailure.PERMISSION_DENIED)
        await pending

    with pytest.raises(LocationError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.failure is LocationFailure.PERMISSION_DENIED


def test_watch_yields_reports_and_unsubscribes_on_close() -> None:
    sensor = ReportedPositionSensor()
    sensor.report(Coordinate(0.0, 0.0))
    received: list[Coordinate] = []

    async def scenario() -> None:
        async with aclosing(sensor.watch(FAST)) as readings:
            received.append(await anext(readings))
            assert sensor.subscriber_count == 1
            sensor.report(Coordinate(1.0, 1.0))
            received.append(await anext(readings))

    asyncio.run(scenario())

    assert received == [Coordinate(0.0, 0.0), Coordinate(1.0, 1.0)]
    assert sensor.subscriber_count == 0
