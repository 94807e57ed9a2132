"""Ephemeris layer: skyfield sun position and sunrise/sunset queries.

The rest of the package only sees the ``Ephemeris`` protocol, so tests and
alternative backends can stand in for skyfield.
"""

import logging
import math
from datetime import datetime, timedelta
from pathlib import Path
from typing import Protocol

from pytz import FixedOffset, timezone, utc
from skyfield import almanac
from skyfield.api import Loader, wgs84
from timezonefinder import TimezoneFinder

from sunshadows.models import RawSunPosition, SunTimes

logger = logging.getLogger(__name__)

_ROOT = Path(__file__).parent.parent.parent
_EPHEMERIS_FILE = "de421.bsp"


class Ephemeris(Protocol):
    """The two query shapes the core consumes."""

    def position_of(
        self, instant: datetime, latitude: float, longitude: float
    ) -> RawSunPosition: ...

    def times_of(
        self, instant: datetime, latitude: float, longitude: float
    ) -> SunTimes: ...


def as_utc(instant: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if instant.tzinfo is None:
        return utc.localize(instant)
    return instant.astimezone(utc)


class SkyfieldEphemeris:
    """Ephemeris backed by skyfield and the JPL DE421 kernel.

    The kernel is loaded on first query, not at import, so importing the
    package never touches the network.
    """

    def __init__(
        self,
        directory: Path | None = None,
        filename: str = _EPHEMERIS_FILE,
        timezone_finder: TimezoneFinder | None = None,
    ):
        self._loader = Loader(str(directory or _ROOT / "resources"))
        self._filename = filename
        self._eph = None
        self._tf = timezone_finder

    def _ephemeris(self):
        if self._eph is None:
            logger.info("Loading ephemeris kernel %s", self._filename)
            self._eph = self._loader(self._filename)
        return self._eph

    def position_of(
        self, instant: datetime, latitude: float, longitude: float
    ) -> RawSunPosition:
        """Apparent sun altitude/azimuth for a ground observer.

        skyfield measures azimuth clockwise from north; it is shifted by π here
        so callers receive the south-zero convention.
        """
        eph = self._ephemeris()
        ts = self._loader.timescale()
        t = ts.from_datetime(as_utc(instant))

        ground = eph["earth"] + wgs84.latlon(
            latitude_degrees=latitude, longitude_degrees=longitude
        )
        alt, az, _ = ground.at(t).observe(eph["sun"]).apparent().altaz()
        return RawSunPosition(
            altitude=float(alt.radians), azimuth=float(az.radians) - math.pi
        )

    def times_of(
        self, instant: datetime, latitude: float, longitude: float
    ) -> SunTimes:
        """First sunrise of the local calendar day of ``instant`` and the sunset after it.

        The sunset may fall after local midnight, e.g. high latitudes in
        summer. Either field is None when the sun does not rise or set
        (polar day or polar night).
        """
        eph = self._ephemeris()
        ts = self._loader.timescale()
        start, end = self.local_day_bounds(instant, latitude, longitude)

        topos = wgs84.latlon(latitude_degrees=latitude, longitude_degrees=longitude)
        times, events = almanac.find_discrete(
            ts.from_datetime(start),
            ts.from_datetime(end + timedelta(days=1)),
            almanac.sunrise_sunset(eph, topos),
        )

        sunrise: datetime | None = None
        sunset: datetime | None = None
        for t, is_up in zip(times, events):
            # find_discrete reports the new state: 1 = sun came up, 0 = went down
            when = t.utc_datetime()
            if is_up:
                if sunrise is None and when < end:
                    sunrise = when
            elif sunrise is not None:
                sunset = when
                break
        if sunrise is None:
            # No rising today: report the day's setting, if any, on its own
            sunset = next(
                (
                    t.utc_datetime()
                    for t, is_up in zip(times, events)
                    if not is_up and t.utc_datetime() < end
                ),
                None,
            )
        return SunTimes(sunrise=sunrise, sunset=sunset)

    def local_day_bounds(
        self, instant: datetime, latitude: float, longitude: float
    ) -> tuple[datetime, datetime]:
        """UTC start/end of the local calendar day containing ``instant``."""
        if self._tf is None:
            self._tf = _timezone_finder()
        local_tz = local_timezone(latitude, longitude, self._tf)

        day = as_utc(instant).astimezone(local_tz).date()
        next_day = day + timedelta(days=1)
        start = local_tz.localize(datetime(day.year, day.month, day.day))
        end = local_tz.localize(datetime(next_day.year, next_day.month, next_day.day))
        return start.astimezone(utc), end.astimezone(utc)


_tf: TimezoneFinder | None = None


def _timezone_finder() -> TimezoneFinder:
    global _tf
    if _tf is None:
        _tf = TimezoneFinder()
    return _tf


def local_timezone(
    latitude: float, longitude: float, finder: TimezoneFinder | None = None
):
    """pytz zone for a location.

    Uses the IANA zone at the location; open ocean and other zone-less points
    get a fixed offset of one hour per 15° of longitude.
    """
    tz_str = (finder or _timezone_finder()).timezone_at(lat=latitude, lng=longitude)
    if tz_str is None:
        return FixedOffset(int(round(longitude / 15.0)) * 60)
    return timezone(tz_str)


def localize_at(local_dt: datetime, latitude: float, longitude: float) -> datetime:
    """Interpret a naive wall-clock time at the location and return it in UTC."""
    local_tz = local_timezone(latitude, longitude)
    return local_tz.localize(local_dt).astimezone(utc)


_default: SkyfieldEphemeris | None = None


def default_ephemeris() -> SkyfieldEphemeris:
    """Process-wide skyfield ephemeris, created on first use."""
    global _default
    if _default is None:
        _default = SkyfieldEphemeris()
    return _default
