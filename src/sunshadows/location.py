"""Location acquisition: one-shot observer position with a local fallback."""

import logging
from typing import Any, Protocol

import httpx

from sunshadows.models import Location

logger = logging.getLogger(__name__)

_USER_AGENT = "SunShadows/1.0"


class LocationUnavailable(Exception):
    """Location provider failed, was denied, or is unsupported."""


class LocationProvider(Protocol):
    async def locate(self) -> Location: ...


def _validated(latitude: Any, longitude: Any) -> Location:
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError) as e:
        raise LocationUnavailable(f"Invalid coordinates: {latitude!r}, {longitude!r}") from e
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise LocationUnavailable(f"Coordinates out of range: lat={lat}, lng={lng}")
    return Location(latitude=lat, longitude=lng)


class IpLocationProvider:
    """Coarse location from an IP geolocation JSON endpoint.

    The endpoint must return ``latitude`` and ``longitude`` fields
    (ipapi.co and compatible services do).
    """

    def __init__(
        self,
        url: str = "https://ipapi.co/json/",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def locate(self) -> Location:
        """Query the endpoint once.

        Raises:
            LocationUnavailable: On transport error, HTTP error, or malformed payload.
        """
        headers = {"User-Agent": _USER_AGENT}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.get(self._url, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LocationUnavailable(f"IP geolocation failed: {e}") from e

        if not isinstance(data, dict) or data.get("error"):
            raise LocationUnavailable(f"IP geolocation error: {data!r}")
        return _validated(data.get("latitude"), data.get("longitude"))


class StaticLocationProvider:
    """Fixed location. ``None`` behaves like a device without geolocation support."""

    def __init__(self, location: Location | None):
        self._location = location

    async def locate(self) -> Location:
        if self._location is None:
            raise LocationUnavailable("Geolocation is not supported")
        return self._location


def location_from_browser(payload: Any) -> Location:
    """Parse the ``streamlit_js_eval.get_geolocation()`` result.

    The browser returns ``{"coords": {"latitude": ..., "longitude": ...}}`` on
    success and ``{"error": {...}}`` when permission is denied.

    Raises:
        LocationUnavailable: When the payload carries an error or no coordinates.
    """
    if not isinstance(payload, dict):
        raise LocationUnavailable("No geolocation result")
    if "error" in payload:
        error = payload["error"] or {}
        message = error.get("message") if isinstance(error, dict) else error
        raise LocationUnavailable(f"Geolocation denied: {message}")
    coords = payload.get("coords")
    if not isinstance(coords, dict):
        raise LocationUnavailable("Geolocation result has no coordinates")
    return _validated(coords.get("latitude"), coords.get("longitude"))


async def acquire_location(
    provider: LocationProvider, fallback: Location
) -> tuple[Location, bool]:
    """Ask ``provider`` once; on failure return ``fallback``.

    Returns:
        (location, used_fallback)
    """
    try:
        location = await provider.locate()
    except LocationUnavailable as e:
        logger.warning("Location unavailable (%s); using %s", e, fallback)
        return fallback, True
    logger.info("Location fix: lat=%.4f lng=%.4f", location.latitude, location.longitude)
    return location, False
