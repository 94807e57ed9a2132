"""Tests for location providers and the fallback path."""

from __future__ import annotations

import httpx
import pytest

from sunshadows.location import (
    IpLocationProvider,
    LocationUnavailable,
    StaticLocationProvider,
    acquire_location,
    location_from_browser,
)
from sunshadows.models import Location

FALLBACK = Location(latitude=40.7128, longitude=-74.006)


def _provider(handler) -> IpLocationProvider:
    return IpLocationProvider(
        url="https://geo.test/json/", transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_ip_provider_parses_coordinates() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["User-Agent"].startswith("SunShadows")
        return httpx.Response(200, json={"latitude": 35.1, "longitude": 129.04})

    location = await _provider(handler).locate()

    assert location == Location(latitude=35.1, longitude=129.04)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="busy"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"error": True, "reason": "RateLimited"}),
        httpx.Response(200, json={"latitude": None, "longitude": 2.0}),
        httpx.Response(200, json={"latitude": 120.0, "longitude": 2.0}),
        httpx.Response(200, json=[1, 2]),
    ],
)
async def test_ip_provider_failures_raise_location_unavailable(response) -> None:
    with pytest.raises(LocationUnavailable):
        await _provider(lambda request: response).locate()


@pytest.mark.asyncio
async def test_ip_provider_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(LocationUnavailable):
        await _provider(handler).locate()


@pytest.mark.asyncio
async def test_acquire_location_falls_back() -> None:
    location, used_fallback = await acquire_location(
        StaticLocationProvider(None), FALLBACK
    )

    assert location == FALLBACK
    assert used_fallback is True


@pytest.mark.asyncio
async def test_acquire_location_returns_fix() -> None:
    fix = Location(latitude=51.5, longitude=-0.12)
    location, used_fallback = await acquire_location(StaticLocationProvider(fix), FALLBACK)

    assert location == fix
    assert used_fallback is False


def test_browser_payload_success() -> None:
    payload = {"coords": {"latitude": 37.57, "longitude": 126.98, "accuracy": 20}}

    assert location_from_browser(payload) == Location(latitude=37.57, longitude=126.98)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"error": {"code": 1, "message": "User denied Geolocation"}},
        {"error": "unsupported"},
        {"coords": None},
        {"coords": {"latitude": "north", "longitude": 1.0}},
    ],
)
def test_browser_payload_failures(payload) -> None:
    with pytest.raises(LocationUnavailable):
        location_from_browser(payload)
