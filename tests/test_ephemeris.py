"""Tests for the skyfield ephemeris adapter.

Sun position tests need the DE421 kernel in resources/ and are skipped when
it has not been downloaded.
"""

from __future__ import annotations

import math
from datetime import datetime
from pathlib import Path

import pytest
from pytz import utc

from sunshadows.compute import compute_solar_position, is_night
from sunshadows.ephemeris import SkyfieldEphemeris, as_utc, localize_at

_KERNEL = Path(__file__).parent.parent / "resources" / "de421.bsp"
needs_kernel = pytest.mark.skipif(
    not _KERNEL.exists(), reason="de421.bsp not downloaded"
)


def test_as_utc_handles_naive_and_aware() -> None:
    naive = datetime(2024, 3, 1, 12, 0)
    aware = localize_at(datetime(2024, 3, 1, 21, 0), 37.5665, 126.978)

    assert as_utc(naive) == datetime(2024, 3, 1, 12, 0, tzinfo=utc)
    assert as_utc(aware) == datetime(2024, 3, 1, 12, 0, tzinfo=utc)


def test_local_day_bounds_follow_location_timezone() -> None:
    eph = SkyfieldEphemeris()
    # 20:00 UTC on Mar 1 is already Mar 2 in Seoul (UTC+9)
    start, end = eph.local_day_bounds(
        datetime(2024, 3, 1, 20, 0, tzinfo=utc), 37.5665, 126.978
    )

    assert start == datetime(2024, 3, 1, 15, 0, tzinfo=utc)
    assert end == datetime(2024, 3, 2, 15, 0, tzinfo=utc)


def test_local_day_bounds_open_ocean_uses_longitude_offset() -> None:
    eph = SkyfieldEphemeris()
    start, end = eph.local_day_bounds(
        datetime(2024, 3, 1, 12, 0, tzinfo=utc), -40.0, -150.0
    )

    assert start == datetime(2024, 3, 1, 10, 0, tzinfo=utc)
    assert (end - start).total_seconds() == 24 * 3600


@needs_kernel
def test_equinox_noon_on_equator_sun_is_high() -> None:
    eph = SkyfieldEphemeris(directory=_KERNEL.parent)
    sun = compute_solar_position(0.0, 0.0, datetime(2024, 3, 20, 12, 0, tzinfo=utc), eph)

    assert sun.polar_angle < math.radians(10)
    assert 0.0 <= sun.azimuthal_angle < 2 * math.pi


@needs_kernel
def test_new_york_afternoon_sun_is_southwest() -> None:
    eph = SkyfieldEphemeris(directory=_KERNEL.parent)
    instant = datetime(2024, 6, 21, 20, 0, tzinfo=utc)  # 16:00 EDT
    sun = compute_solar_position(40.7128, -74.006, instant, eph)

    assert math.radians(180) < sun.azimuthal_angle < math.radians(300)
    assert sun.polar_angle < math.pi / 2
    assert is_night(40.7128, -74.006, instant, eph) is False
    assert is_night(40.7128, -74.006, datetime(2024, 6, 21, 7, 0, tzinfo=utc), eph)


@needs_kernel
def test_polar_night_has_no_sunrise() -> None:
    eph = SkyfieldEphemeris(directory=_KERNEL.parent)
    instant = datetime(2024, 12, 21, 12, 0, tzinfo=utc)
    times = eph.times_of(instant, 78.2232, 15.6267)

    assert times.sunrise is None
    assert is_night(78.2232, 15.6267, instant, eph) is False


@needs_kernel
def test_sunset_after_local_midnight_pairs_with_sunrise() -> None:
    eph = SkyfieldEphemeris(directory=_KERNEL.parent)
    # 68N 110E keeps UTC+9 clocks, so the July sunset lands after 00:00 local
    lat, lng = 68.0, 110.0
    noon = datetime(2024, 7, 27, 3, 0, tzinfo=utc)
    times = eph.times_of(noon, lat, lng)

    assert times.sunrise is not None and times.sunset is not None
    assert times.sunrise < noon < times.sunset
    assert compute_solar_position(lat, lng, noon, eph).polar_angle < math.pi / 2
    assert is_night(lat, lng, noon, eph) is False
