"""Shadow projection and styling: screen-space shadow parameters from a sun position.

All functions are pure. NaN inputs produce NaN outputs instead of raising.
"""

import math

from sunshadows.config import DEFAULT_TUNING, ShadowTuning
from sunshadows.models import ShadowParams, SolarPosition

DEFAULT_BUILDING_HEIGHT = 20.0


def _clamp(value: float, low: float, high: float) -> float:
    # Written so NaN falls through both comparisons unchanged
    if value < low:
        return low
    if value > high:
        return high
    return value


def project_shadow(
    sun: SolarPosition,
    zoom_level: float,
    building_height: float = DEFAULT_BUILDING_HEIGHT,
    tuning: ShadowTuning = DEFAULT_TUNING,
) -> tuple[float, float]:
    """Screen-space displacement of a building's shadow.

    Shadow length grows with the zenith distance and shrinks geometrically as
    the camera zooms out, then is capped at ``tuning.max_shadow_length`` pixels.

    Args:
        sun: Current light vector.
        zoom_level: Map zoom. Clamped to the map's zoom range.
        building_height: Reference building height.
        tuning: Shadow constants.

    Returns:
        (offset_x, offset_y) in pixels. (0, 0) when the sun is at or below
        ``tuning.horizon_threshold``.
    """
    if sun.polar_angle >= tuning.horizon_threshold:
        return (0.0, 0.0)

    shadow_length = math.tan(sun.polar_angle) * building_height
    zoom = _clamp(zoom_level, tuning.min_zoom, tuning.max_zoom)
    zoom_scale = tuning.zoom_decay ** (zoom - tuning.zoom_reference)
    adjusted = _clamp(
        shadow_length * zoom_scale, -tuning.max_shadow_length, tuning.max_shadow_length
    )

    return (
        math.sin(sun.azimuthal_angle) * adjusted,
        math.cos(sun.azimuthal_angle) * adjusted,
    )


def sun_height(sun: SolarPosition) -> float:
    """0 at the horizon, 1 at the zenith. Negative below the horizon; not clamped."""
    return 1 - sun.polar_angle / (math.pi / 2)


def shadow_opacity(sun: SolarPosition, tuning: ShadowTuning = DEFAULT_TUNING) -> float:
    """Faint near the horizon, strongest with the sun overhead."""
    return tuning.opacity_base + sun_height(sun) * tuning.opacity_range


def shadow_blur(
    sun: SolarPosition, zoom_level: float, tuning: ShadowTuning = DEFAULT_TUNING
) -> float:
    """Softer shadows for a low sun and for zoomed-out views."""
    excess = tuning.blur_zoom_pivot - zoom_level
    # Not max(): NaN has to survive
    zoom_blur = (0.0 if excess < 0 else excess) / 2
    return (tuning.blur_base - sun_height(sun) * tuning.blur_range) + zoom_blur


def compute_shadow_params(
    sun: SolarPosition,
    zoom_level: float,
    building_height: float = DEFAULT_BUILDING_HEIGHT,
    tuning: ShadowTuning = DEFAULT_TUNING,
) -> ShadowParams:
    """Primary shadow treatment for the given sun and camera."""
    offset_x, offset_y = project_shadow(sun, zoom_level, building_height, tuning)
    return ShadowParams(
        offset_x=offset_x,
        offset_y=offset_y,
        opacity=shadow_opacity(sun, tuning),
        blur=shadow_blur(sun, zoom_level, tuning),
    )


def outer_shadow(
    primary: ShadowParams, tuning: ShadowTuning = DEFAULT_TUNING
) -> ShadowParams:
    """Secondary, wider and fainter treatment. Always derived from the primary."""
    return primary.scaled(
        tuning.outer_offset_scale, tuning.outer_opacity_scale, tuning.outer_blur_scale
    )
