"""Data model definitions. Explicit boundaries between the ephemeris, compute and render layers."""

import math
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RawSunPosition:
    """Ephemeris output for one instant. Not yet reshaped for the lighting model."""

    altitude: float  # Elevation above horizon (radians, negative below)
    azimuth: float  # Radians from south, positive toward west


@dataclass(frozen=True)
class SunTimes:
    """Sunrise/sunset for the local calendar day. None when the event does not occur."""

    sunrise: datetime | None  # UTC, tz-aware
    sunset: datetime | None  # UTC, tz-aware


@dataclass(frozen=True)
class Location:
    """Observer position."""

    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]


@dataclass(frozen=True)
class Viewport:
    """Map camera state reported by the rendering surface."""

    longitude: float
    latitude: float
    zoom: float


@dataclass(frozen=True)
class SolarPosition:
    """Spherical light vector consumed by the 3D lighting model."""

    r: float  # Radial distance (intensity falloff only)
    azimuthal_angle: float  # Radians in [0, 2π), clockwise from north
    polar_angle: float  # Radians, 0 = zenith, π/2 = horizon, > π/2 below horizon

    def as_light_position(self, degrees: bool = False) -> list[float]:
        """Return the [r, azimuthal, polar] triple.

        Mapbox GL's ``light.position`` expects degrees; pass ``degrees=True``
        when handing the triple to it.
        """
        if degrees:
            return [
                self.r,
                math.degrees(self.azimuthal_angle),
                math.degrees(self.polar_angle),
            ]
        return [self.r, self.azimuthal_angle, self.polar_angle]


@dataclass(frozen=True)
class ShadowParams:
    """Screen-space shadow treatment applied to the building layer."""

    offset_x: float  # Pixels
    offset_y: float  # Pixels
    opacity: float
    blur: float  # Pixels

    @property
    def offset(self) -> tuple[float, float]:
        return (self.offset_x, self.offset_y)

    def scaled(
        self, offset_scale: float, opacity_scale: float, blur_scale: float
    ) -> "ShadowParams":
        return ShadowParams(
            offset_x=self.offset_x * offset_scale,
            offset_y=self.offset_y * offset_scale,
            opacity=self.opacity * opacity_scale,
            blur=self.blur * blur_scale,
        )


@dataclass(frozen=True)
class ShadowFrame:
    """Everything the rendering surface needs for one redraw. Fully computed state."""

    sun: SolarPosition
    is_night: bool
    primary: ShadowParams
    outer: ShadowParams  # Always derived from primary
    viewport: Viewport
    instant: datetime  # Instant the sun was computed for
    location: Location
    fallback: bool  # True when the location provider failed
