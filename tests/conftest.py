import math
import os
from datetime import datetime, timedelta

import pytest
from pytz import utc

# Headless matplotlib for renderer tests
os.environ.setdefault("MPLBACKEND", "Agg")

from sunshadows.models import RawSunPosition, ShadowFrame, SunTimes  # noqa: E402


class FakeEphemeris:
    """Scripted ephemeris. Counts queries so tests can assert on re-use."""

    def __init__(
        self,
        altitude: float = 0.6,
        azimuth: float = 0.3,
        sunrise: datetime | None = datetime(2024, 6, 21, 9, 25, tzinfo=utc),
        sunset: datetime | None = datetime(2024, 6, 22, 0, 31, tzinfo=utc),
    ):
        self.altitude = altitude
        self.azimuth = azimuth
        self.sunrise = sunrise
        self.sunset = sunset
        self.position_calls = 0
        self.times_calls = 0

    def position_of(self, instant, latitude, longitude) -> RawSunPosition:
        self.position_calls += 1
        return RawSunPosition(altitude=self.altitude, azimuth=self.azimuth)

    def times_of(self, instant, latitude, longitude) -> SunTimes:
        self.times_calls += 1
        return SunTimes(sunrise=self.sunrise, sunset=self.sunset)


class FakeSurface:
    def __init__(self, ready: bool = True):
        self.ready = ready
        self.frames: list[ShadowFrame] = []

    def is_ready(self) -> bool:
        return self.ready

    def apply_frame(self, frame: ShadowFrame) -> None:
        self.frames.append(frame)


class StepClock:
    """Deterministic clock advanced by hand."""

    def __init__(self, start: datetime = datetime(2024, 6, 21, 16, 0, tzinfo=utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def fake_ephemeris() -> FakeEphemeris:
    return FakeEphemeris()


@pytest.fixture
def fake_surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


def is_nan(value: float) -> bool:
    return isinstance(value, float) and math.isnan(value)
