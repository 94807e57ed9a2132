"""Solar computation layer: sun position for the lighting model and day/night state."""

import logging
import math
from datetime import datetime

from sunshadows.config import DEFAULT_TUNING, ShadowTuning
from sunshadows.ephemeris import Ephemeris, as_utc, default_ephemeris
from sunshadows.models import SolarPosition

logger = logging.getLogger(__name__)

TWO_PI = 2 * math.pi

# Used when no location is available: light from the west, ~54° above the horizon.
DEFAULT_SOLAR_POSITION = SolarPosition(
    r=1.0, azimuthal_angle=math.pi * 1.5, polar_angle=math.pi * 0.3
)


def normalize_azimuth(angle: float) -> float:
    """Wrap an angle into [0, 2π).

    Truncated remainder first, then a single ``+2π`` for negative results.
    Non-finite input returns NaN.
    """
    if not math.isfinite(angle):
        return math.nan
    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0:
        wrapped += TWO_PI
    # -1e-17 + 2π rounds to exactly 2π
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


def solar_position_from_raw(
    altitude: float, azimuth: float, radius: float = DEFAULT_TUNING.radial_distance
) -> SolarPosition:
    """Reshape ephemeris altitude/azimuth into the lighting model's frame.

    Args:
        altitude: Elevation above the horizon in radians (negative below).
        azimuth: Radians from south, positive toward west.
        radius: Radial distance of the light.

    Returns:
        SolarPosition with a north-zero azimuthal angle and zenith-distance polar angle.
    """
    return SolarPosition(
        r=radius,
        azimuthal_angle=normalize_azimuth(azimuth + math.pi),
        polar_angle=math.pi / 2 - altitude,
    )


def compute_solar_position(
    latitude: float,
    longitude: float,
    instant: datetime,
    ephemeris: Ephemeris | None = None,
    tuning: ShadowTuning = DEFAULT_TUNING,
) -> SolarPosition:
    """Light vector for an observer at (latitude, longitude) at ``instant``.

    Out-of-range coordinates produce whatever the ephemeris yields; NaN passes
    through untouched.
    """
    eph = ephemeris or default_ephemeris()
    raw = eph.position_of(instant, latitude, longitude)
    return solar_position_from_raw(
        raw.altitude, raw.azimuth, radius=tuning.radial_distance
    )


def is_night(
    latitude: float,
    longitude: float,
    instant: datetime,
    ephemeris: Ephemeris | None = None,
) -> bool:
    """True when ``instant`` is before sunrise or after sunset at the location.

    When the sun does not rise or set on that date (polar day/night) the state
    cannot be classified and ``False`` (day) is returned.
    """
    eph = ephemeris or default_ephemeris()
    times = eph.times_of(instant, latitude, longitude)
    if not isinstance(times.sunrise, datetime) or not isinstance(
        times.sunset, datetime
    ):
        logger.debug(
            "No sunrise/sunset at lat=%s lng=%s on %s; assuming day",
            latitude,
            longitude,
            instant,
        )
        return False
    now = as_utc(instant)
    return now < as_utc(times.sunrise) or now > as_utc(times.sunset)
