"""CLI entry point for a one-off shadow preview.

Locates the machine by IP (falling back to the configured default location),
computes the current frame and saves a PNG, plus the map page when
MAPBOX_TOKEN is set:
    uv run python src/sunshadows/preview.py
"""

import asyncio

from dotenv import load_dotenv

load_dotenv()

from sunshadows.config import Settings, configure_logging  # noqa: E402
from sunshadows.location import IpLocationProvider  # noqa: E402
from sunshadows.renderers.mapbox_html import MapboxSurface  # noqa: E402
from sunshadows.renderers.static import save_static_chart  # noqa: E402
from sunshadows.scheduler import RefreshScheduler  # noqa: E402


async def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    surface = MapboxSurface(settings.mapbox_token, settings.building_height, settings.tuning)
    scheduler = RefreshScheduler(
        surface,
        location_provider=IpLocationProvider(settings.location_url),
        ephemeris=None,
        settings=settings,
    )
    async with scheduler:
        frame = scheduler.frame

    assert frame is not None
    path = save_static_chart(frame)
    print(f"Saved: {path}")

    if settings.mapbox_token:
        html_path = path.with_suffix(".html")
        html_path.write_text(surface.render_html(), encoding="utf-8")
        print(f"Saved: {html_path}")


if __name__ == "__main__":
    asyncio.run(main())
