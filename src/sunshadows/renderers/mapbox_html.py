"""Mapbox GL rendering surface.

Produces a self-contained HTML string (Mapbox GL JS + inline script) for
embedding via st.components.v1.html(). The page draws, bottom to top:

  ground fill  →  outer shadow  →  primary shadow (+ blurred halo)
  →  footprint mask  →  extruded buildings

Shadow parameters are computed in Python. Because the page pans and zooms on
its own, a table of shadow parameters per zoom step is embedded and the
page picks the nearest entry on every ``move`` event.
"""

from __future__ import annotations

import json

import numpy as np

from sunshadows.config import DEFAULT_TUNING, ShadowTuning
from sunshadows.models import ShadowFrame, ShadowParams, SolarPosition
from sunshadows.shadows import compute_shadow_params, outer_shadow

_STYLE = "mapbox://styles/mapbox/light-v11"
_GROUND_COLOR = "#F7F9FA"
_SHADOW_COLOR = "#000000"
_DAY_LIGHT = {"color": "#ffffff", "intensity": 0.5}
_NIGHT_LIGHT = {"color": "#8fa3c7", "intensity": 0.15}
_MIN_LAYER_ZOOM = 13
_TABLE_ZOOM_RANGE = (0.0, 22.0)
_TABLE_ZOOM_STEP = 0.25


def paint_values(params: ShadowParams, is_night: bool = False) -> dict[str, object]:
    """Clamp shadow parameters into values Mapbox paint properties accept."""
    opacity = 0.0 if is_night else min(1.0, max(0.0, params.opacity))
    return {
        "translate": [round(params.offset_x, 3), round(params.offset_y, 3)],
        "opacity": round(opacity, 4),
        "blur": round(max(0.0, params.blur), 3),
    }


def shadow_table(
    sun: SolarPosition,
    building_height: float,
    is_night: bool = False,
    tuning: ShadowTuning = DEFAULT_TUNING,
) -> list[dict[str, object]]:
    """Primary/outer paint values for each zoom step of the page."""
    start, stop = _TABLE_ZOOM_RANGE
    rows: list[dict[str, object]] = []
    for zoom in np.arange(start, stop + _TABLE_ZOOM_STEP, _TABLE_ZOOM_STEP):
        primary = compute_shadow_params(sun, float(zoom), building_height, tuning)
        rows.append(
            {
                "zoom": round(float(zoom), 2),
                "primary": paint_values(primary, is_night),
                "outer": paint_values(outer_shadow(primary, tuning), is_night),
            }
        )
    return rows


class MapboxSurface:
    """Rendering surface that keeps the latest frame and renders it as HTML.

    ``ready`` mirrors the map's load lifecycle; while False the scheduler holds
    frames back.
    """

    def __init__(
        self,
        token: str | None,
        building_height: float = 20.0,
        tuning: ShadowTuning = DEFAULT_TUNING,
        ready: bool = True,
    ):
        self.token = token
        self.building_height = building_height
        self.tuning = tuning
        self.ready = ready
        self.frame: ShadowFrame | None = None
        self.frames_applied = 0

    def is_ready(self) -> bool:
        return self.ready

    def apply_frame(self, frame: ShadowFrame) -> None:
        self.frame = frame
        self.frames_applied += 1

    def render_html(self, height_px: int = 600) -> str:
        if self.frame is None:
            raise RuntimeError("No frame has been applied to the surface yet")
        return render_map_html(
            self.frame,
            token=self.token,
            building_height=self.building_height,
            tuning=self.tuning,
            height_px=height_px,
        )


def _layers(frame: ShadowFrame) -> list[dict[str, object]]:
    primary = paint_values(frame.primary, frame.is_night)
    outer = paint_values(frame.outer, frame.is_night)
    building = {
        "source": "composite",
        "source-layer": "building",
        "filter": ["==", "extrude", "true"],
        "minzoom": _MIN_LAYER_ZOOM,
    }
    return [
        {
            "id": "ground",
            "source": "composite",
            "source-layer": "landuse",
            "type": "fill",
            "paint": {"fill-color": _GROUND_COLOR, "fill-opacity": 1},
        },
        {
            "id": "building-shadows-outer",
            "type": "fill",
            **building,
            "paint": {
                "fill-color": _SHADOW_COLOR,
                "fill-opacity": outer["opacity"],
                "fill-translate": outer["translate"],
                "fill-translate-anchor": "map",
            },
        },
        {
            "id": "building-shadows",
            "type": "fill",
            **building,
            "paint": {
                "fill-color": _SHADOW_COLOR,
                "fill-opacity": primary["opacity"],
                "fill-translate": primary["translate"],
                "fill-translate-anchor": "map",
            },
        },
        {
            "id": "building-shadows-halo",
            "type": "line",
            **building,
            "paint": {
                "line-color": _SHADOW_COLOR,
                "line-opacity": outer["opacity"],
                "line-width": primary["blur"],
                "line-blur": primary["blur"],
                "line-translate": primary["translate"],
                "line-translate-anchor": "map",
            },
        },
        {
            "id": "building-footprints",
            "type": "fill",
            **building,
            "paint": {"fill-color": _GROUND_COLOR, "fill-opacity": 1},
        },
        {
            "id": "3d-buildings",
            "type": "fill-extrusion",
            **building,
            "paint": {
                "fill-extrusion-color": [
                    "interpolate",
                    ["linear"],
                    ["get", "height"],
                    0, "#DCE2E9",
                    50, "#CBD2DB",
                    100, "#B9C3CC",
                    200, "#A7B3BE",
                ],
                "fill-extrusion-height": [
                    "interpolate", ["linear"], ["zoom"], 15, 0, 16, ["get", "height"]
                ],
                "fill-extrusion-base": [
                    "interpolate", ["linear"], ["zoom"], 15, 0, 16, ["get", "min_height"]
                ],
                "fill-extrusion-opacity": 0.9,
            },
        },
    ]


def render_map_html(
    frame: ShadowFrame,
    token: str | None,
    building_height: float = 20.0,
    tuning: ShadowTuning = DEFAULT_TUNING,
    height_px: int = 600,
) -> str:
    """Return a self-contained HTML page with a Mapbox GL 3D building map.

    Args:
        frame: Latest computed shadow frame.
        token: Mapbox access token. Without one the page shows a notice instead of a map.
        building_height: Reference height used for the per-zoom shadow table.
        tuning: Shadow constants.
        height_px: Map container height.

    Returns:
        HTML string suitable for st.components.v1.html().
    """
    if not token:
        return (
            "<div style='padding:1rem;font-family:sans-serif;color:#555'>"
            "MAPBOX_TOKEN is not set.</div>"
        )

    light = dict(_NIGHT_LIGHT if frame.is_night else _DAY_LIGHT)
    light["anchor"] = "map"
    light["position"] = [round(v, 4) for v in frame.sun.as_light_position(degrees=True)]

    config = {
        "token": token,
        "style": _STYLE,
        "center": [frame.viewport.longitude, frame.viewport.latitude],
        "zoom": frame.viewport.zoom,
        "pitch": 45,
        "light": light,
        "layers": _layers(frame),
        "table": shadow_table(frame.sun, building_height, frame.is_night, tuning),
    }
    config_js = json.dumps(config).replace("</", "<\\/")

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<link href="https://api.mapbox.com/mapbox-gl-js/v3.4.0/mapbox-gl.css" rel="stylesheet">
<script src="https://api.mapbox.com/mapbox-gl-js/v3.4.0/mapbox-gl.js"></script>
<style>
  html, body {{ margin: 0; padding: 0; }}
  #map {{ width: 100%; height: {height_px}px; }}
  #status {{ position: absolute; bottom: 0; left: 0; right: 0; text-align: center;
             font: 12px sans-serif; background: rgba(255,255,255,0.8); }}
</style>
</head>
<body>
<div id="map"></div>
<div id="status"></div>
<script>
const cfg = {config_js};
mapboxgl.accessToken = cfg.token;
const map = new mapboxgl.Map({{
  container: "map", style: cfg.style, center: cfg.center,
  zoom: cfg.zoom, pitch: cfg.pitch, antialias: true
}});
map.addControl(new mapboxgl.NavigationControl());

function nearestRow(zoom) {{
  let best = cfg.table[0];
  for (const row of cfg.table) {{
    if (Math.abs(row.zoom - zoom) < Math.abs(best.zoom - zoom)) best = row;
  }}
  return best;
}}

function applyShadows() {{
  // Layers exist only after the load handler ran
  if (!map.getLayer("building-shadows")) return;
  const row = nearestRow(map.getZoom());
  map.setPaintProperty("building-shadows", "fill-translate", row.primary.translate);
  map.setPaintProperty("building-shadows", "fill-opacity", row.primary.opacity);
  map.setPaintProperty("building-shadows-outer", "fill-translate", row.outer.translate);
  map.setPaintProperty("building-shadows-outer", "fill-opacity", row.outer.opacity);
  map.setPaintProperty("building-shadows-halo", "line-translate", row.primary.translate);
  map.setPaintProperty("building-shadows-halo", "line-blur", row.primary.blur);
  map.setPaintProperty("building-shadows-halo", "line-width", row.primary.blur);
}}

function updateStatus() {{
  const c = map.getCenter();
  document.getElementById("status").textContent =
    "Longitude: " + c.lng.toFixed(4) + " | Latitude: " + c.lat.toFixed(4) +
    " | Zoom: " + map.getZoom().toFixed(2);
}}

map.on("load", () => {{
  map.setLight(cfg.light);
  for (const layer of cfg.layers) map.addLayer(layer);
  applyShadows();
  updateStatus();
}});
map.on("move", () => {{
  applyShadows();
  updateStatus();
}});
</script>
</body>
</html>
"""
