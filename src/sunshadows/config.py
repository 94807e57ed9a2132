"""Runtime settings and shadow tuning constants.

Values come from the process environment; entry points call ``load_dotenv()``
first so a local ``.env`` file is honoured.
"""

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sunshadows.models import Location

_ROOT = Path(__file__).parent.parent.parent

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ConfigError(ValueError):
    """An environment variable holds a value that cannot be used."""


@dataclass(frozen=True)
class ShadowTuning:
    """Aesthetic constants of the shadow model.

    None of these come from a physical model; they were picked so shadows look
    plausible on a Mapbox building layer.
    """

    radial_distance: float = 1.5
    horizon_threshold: float = 0.49 * math.pi  # No shadow at or beyond this polar angle
    max_shadow_length: float = 300.0  # Pixels
    zoom_decay: float = 0.8
    zoom_reference: float = 10.0
    min_zoom: float = 0.0
    max_zoom: float = 24.0
    opacity_base: float = 0.1
    opacity_range: float = 0.3
    blur_base: float = 6.0
    blur_range: float = 4.0
    blur_zoom_pivot: float = 18.0
    outer_offset_scale: float = 1.25
    outer_opacity_scale: float = 0.6
    outer_blur_scale: float = 1.5


DEFAULT_TUNING = ShadowTuning()


@dataclass(frozen=True)
class Settings:
    """Application settings. Build with ``Settings.from_env()``."""

    mapbox_token: str | None = None
    refresh_seconds: float = 60.0
    default_location: Location = Location(latitude=40.7128, longitude=-74.0060)
    initial_zoom: float = 15.0
    fallback_zoom: float = 13.0
    building_height: float = 20.0
    location_url: str = "https://ipapi.co/json/"
    ephemeris_dir: Path = _ROOT / "resources"
    log_level: str = "INFO"
    tuning: ShadowTuning = field(default_factory=ShadowTuning)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Read settings from ``environ`` (``os.environ`` by default).

        Raises:
            ConfigError: When a numeric variable cannot be parsed or is out of range.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        refresh = _float(env, "SUNSHADOWS_REFRESH_SECONDS", defaults.refresh_seconds)
        if refresh <= 0:
            raise ConfigError(f"SUNSHADOWS_REFRESH_SECONDS must be positive: {refresh}")

        lat = _float(
            env, "SUNSHADOWS_DEFAULT_LAT", defaults.default_location.latitude
        )
        lng = _float(
            env, "SUNSHADOWS_DEFAULT_LNG", defaults.default_location.longitude
        )
        if not -90.0 <= lat <= 90.0:
            raise ConfigError(f"SUNSHADOWS_DEFAULT_LAT out of range: {lat}")
        if not -180.0 <= lng <= 180.0:
            raise ConfigError(f"SUNSHADOWS_DEFAULT_LNG out of range: {lng}")

        height = _float(env, "SUNSHADOWS_BUILDING_HEIGHT", defaults.building_height)
        if height < 0:
            raise ConfigError(f"SUNSHADOWS_BUILDING_HEIGHT must be >= 0: {height}")

        ephemeris_dir = env.get("SUNSHADOWS_EPHEMERIS_DIR")

        return cls(
            mapbox_token=env.get("MAPBOX_TOKEN") or None,
            refresh_seconds=refresh,
            default_location=Location(latitude=lat, longitude=lng),
            initial_zoom=_float(env, "SUNSHADOWS_INITIAL_ZOOM", defaults.initial_zoom),
            fallback_zoom=_float(
                env, "SUNSHADOWS_FALLBACK_ZOOM", defaults.fallback_zoom
            ),
            building_height=height,
            location_url=env.get("SUNSHADOWS_LOCATION_URL", defaults.location_url),
            ephemeris_dir=(
                Path(ephemeris_dir) if ephemeris_dir else defaults.ephemeris_dir
            ),
            log_level=env.get("SUNSHADOWS_LOG_LEVEL", defaults.log_level).upper(),
        )


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} is not a number: {raw!r}") from e
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be finite: {raw!r}")
    return value


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(level=level, format=_LOG_FORMAT, force=True)
