"""Refresh scheduling: keeps the sun, day/night state and shadows current.

``RefreshScheduler`` is the single owner of derived state. It recomputes on
three triggers and pushes a ``ShadowFrame`` to the rendering surface:

- periodic tick: fresh ephemeris query for the last known location
- location change: full recompute
- viewport change: shadows only, reusing the current sun

Everything runs on one asyncio loop. Viewport changes are queued and flushed
with ``call_soon``; a tick in the same loop turn consumes the queued viewport
after updating the sun, so shadows always use the newest sun.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from pytz import utc

from sunshadows.compute import (
    DEFAULT_SOLAR_POSITION,
    compute_solar_position,
    is_night,
)
from sunshadows.config import Settings
from sunshadows.ephemeris import Ephemeris, SkyfieldEphemeris, as_utc
from sunshadows.location import LocationProvider, acquire_location
from sunshadows.models import Location, ShadowFrame, SolarPosition, Viewport
from sunshadows.shadows import compute_shadow_params, outer_shadow

logger = logging.getLogger(__name__)


class RenderSurface(Protocol):
    """Consumer of computed frames. The scheduler never builds one itself."""

    def is_ready(self) -> bool: ...

    def apply_frame(self, frame: ShadowFrame) -> None: ...


def _utc_now() -> datetime:
    return datetime.now(utc)


class RefreshScheduler:
    """Owns the current SolarPosition, day/night flag and shadow parameters."""

    def __init__(
        self,
        surface: RenderSurface,
        location_provider: LocationProvider | None = None,
        ephemeris: Ephemeris | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._surface = surface
        self._provider = location_provider
        self._settings = settings or Settings()
        self._ephemeris = ephemeris or SkyfieldEphemeris(self._settings.ephemeris_dir)
        self._clock = clock

        self._location: Location | None = None
        self._fallback = False
        self._sun: SolarPosition | None = None
        self._is_night = False
        self._instant: datetime | None = None
        self._pinned: datetime | None = None
        self._viewport: Viewport | None = None
        self._pending_viewport: Viewport | None = None
        self._flush_scheduled = False
        self._building_height = self._settings.building_height
        self._frame: ShadowFrame | None = None
        self._queued: ShadowFrame | None = None
        self._timer: asyncio.Task | None = None
        self._stopped = False

    # --- State accessors ---

    @property
    def frame(self) -> ShadowFrame | None:
        return self._frame

    @property
    def sun(self) -> SolarPosition | None:
        return self._sun

    @property
    def is_night(self) -> bool:
        return self._is_night

    @property
    def location(self) -> Location | None:
        return self._location

    @property
    def viewport(self) -> Viewport | None:
        return self._pending_viewport or self._viewport

    @property
    def fallback(self) -> bool:
        return self._fallback

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # --- Lifecycle ---

    async def start(self) -> None:
        """Acquire the location once, compute the first frame, start the timer."""
        if self._provider is None:
            self.use_fallback()
        else:
            location, used_fallback = await acquire_location(
                self._provider, self._settings.default_location
            )
            if used_fallback:
                self.use_fallback()
            else:
                self.set_location(location.latitude, location.longitude)

        if self._timer is None and not self._stopped:
            self._timer = asyncio.create_task(self._run_timer())

    async def stop(self) -> None:
        """Cancel the periodic timer. Safe to call more than once."""
        self._stopped = True
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Refresh timer ended with an error")
        logger.debug("Refresh timer stopped")

    async def __aenter__(self) -> "RefreshScheduler":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._settings.refresh_seconds)
            try:
                self.tick()
            except Exception:
                # Keep the last frame; the next tick retries
                logger.exception("Periodic refresh failed")

    # --- Triggers ---

    def tick(self) -> None:
        """Periodic recompute: sun and day/night first, then shadows."""
        if self._stopped:
            return
        self._recompute_sun()
        if self._pending_viewport is not None:
            self._viewport = self._pending_viewport
            self._pending_viewport = None
        self._recompute_shadows()

    def set_location(self, latitude: float, longitude: float) -> None:
        """New location fix: recompute everything immediately."""
        leaving_fallback = self._fallback
        self._location = Location(latitude=latitude, longitude=longitude)
        self._fallback = False
        if self._viewport is None or leaving_fallback:
            # Fallback view is centred on the default location
            self._pending_viewport = None
            self._viewport = Viewport(
                longitude=longitude, latitude=latitude, zoom=self._settings.initial_zoom
            )
        self._recompute_sun()
        self._log_sun_times()
        self._recompute_shadows()

    def use_fallback(self) -> None:
        """No location: fixed default sun over the default location, daytime."""
        location = self._settings.default_location
        self._location = location
        self._fallback = True
        self._sun = DEFAULT_SOLAR_POSITION
        self._is_night = False
        self._instant = self._now()
        if self._viewport is None:
            self._viewport = Viewport(
                longitude=location.longitude,
                latitude=location.latitude,
                zoom=self._settings.fallback_zoom,
            )
        self._recompute_shadows()

    def on_viewport_change(self, viewport: Viewport) -> None:
        """Pan/zoom from the surface. Shadows only; the sun is not re-queried."""
        self._pending_viewport = viewport
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._flush_viewport()
            return
        if not self._flush_scheduled:
            self._flush_scheduled = True
            loop.call_soon(self._flush_viewport)

    def set_building_height(self, height: float) -> None:
        self._building_height = height
        self._recompute_shadows()

    def set_instant(self, instant: datetime | None) -> None:
        """Pin the clock to ``instant``; ``None`` returns to live time."""
        self._pinned = as_utc(instant) if instant is not None else None
        if not self._fallback and self._location is not None:
            self._recompute_sun()
            self._recompute_shadows()

    def surface_ready(self) -> None:
        """The surface finished loading; apply any frame held back meanwhile."""
        queued, self._queued = self._queued, None
        if queued is not None:
            self._push(queued)

    # --- Internals ---

    def _now(self) -> datetime:
        return self._pinned if self._pinned is not None else self._clock()

    def _flush_viewport(self) -> None:
        self._flush_scheduled = False
        if self._pending_viewport is None:
            return
        self._viewport = self._pending_viewport
        self._pending_viewport = None
        self._recompute_shadows()

    def _recompute_sun(self) -> None:
        if self._fallback or self._location is None:
            return
        eph = self._ephemeris
        instant = self._now()
        lat, lng = self._location.latitude, self._location.longitude
        self._sun = compute_solar_position(
            lat, lng, instant, ephemeris=eph, tuning=self._settings.tuning
        )
        self._is_night = is_night(lat, lng, instant, ephemeris=eph)
        self._instant = instant
        logger.debug(
            "Sun at %s: azimuthal=%.4f polar=%.4f night=%s",
            instant.isoformat(),
            self._sun.azimuthal_angle,
            self._sun.polar_angle,
            self._is_night,
        )

    def _log_sun_times(self) -> None:
        if self._location is None:
            return
        eph = self._ephemeris
        times = eph.times_of(
            self._now(), self._location.latitude, self._location.longitude
        )
        logger.info("Sunrise: %s", times.sunrise)
        logger.info("Sunset: %s", times.sunset)

    def _recompute_shadows(self) -> None:
        if self._stopped or self._sun is None or self._viewport is None:
            return
        tuning = self._settings.tuning
        primary = compute_shadow_params(
            self._sun, self._viewport.zoom, self._building_height, tuning
        )
        frame = ShadowFrame(
            sun=self._sun,
            is_night=self._is_night,
            primary=primary,
            outer=outer_shadow(primary, tuning),
            viewport=self._viewport,
            instant=self._instant or self._now(),
            location=self._location or self._settings.default_location,
            fallback=self._fallback,
        )
        self._frame = frame
        self._push(frame)

    def _push(self, frame: ShadowFrame) -> None:
        if not self._surface.is_ready():
            self._queued = frame
            return
        self._surface.apply_frame(frame)
