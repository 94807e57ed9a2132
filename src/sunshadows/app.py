"""SunShadows: Streamlit app showing 3D buildings whose shadows follow the sun."""

import datetime
import logging
import math

import streamlit as st
import streamlit.components.v1 as components
from dotenv import load_dotenv
from streamlit_js_eval import get_geolocation, streamlit_js_eval

load_dotenv()

from sunshadows.config import Settings, configure_logging  # noqa: E402
from sunshadows.ephemeris import localize_at  # noqa: E402
from sunshadows.i18n import t  # noqa: E402
from sunshadows.location import LocationUnavailable, location_from_browser  # noqa: E402
from sunshadows.models import Viewport  # noqa: E402
from sunshadows.renderers.mapbox_html import MapboxSurface  # noqa: E402
from sunshadows.scheduler import RefreshScheduler  # noqa: E402

logger = logging.getLogger(__name__)

_MAP_HEIGHT = 600
_DAYS_AHEAD = 8
_MINUTES = (0, 15, 30, 45)

# --- Language detection (browser-first via streamlit-js-eval) ---
# navigator.language is read once and cached in session_state.
# On the first run the JS call returns None; the rerun triggered by
# streamlit_js_eval fills it in.
if "lang" not in st.session_state:
    _browser_lang: str | None = streamlit_js_eval(
        js_expressions="navigator.language", key="_lang_detect", height=0
    )
    if _browser_lang is not None:
        st.session_state.lang = "ko" if _browser_lang.lower().startswith("ko") else "en"

_lang: str = st.session_state.get("lang", "en")

st.set_page_config(
    page_title=t("page_title", _lang),
    page_icon="☀",
    layout="wide",
)

# --- Session state initialization ---
# The scheduler lives in session_state so its current sun survives reruns.
if "scheduler" not in st.session_state:
    _settings = Settings.from_env()
    configure_logging(_settings.log_level)
    _surface = MapboxSurface(
        _settings.mapbox_token, _settings.building_height, _settings.tuning
    )
    st.session_state.settings = _settings
    st.session_state.surface = _surface
    st.session_state.scheduler = RefreshScheduler(_surface, settings=_settings)
if "location_error" not in st.session_state:
    st.session_state.location_error = None

settings: Settings = st.session_state.settings
surface: MapboxSurface = st.session_state.surface
scheduler: RefreshScheduler = st.session_state.scheduler

# --- One-shot location acquisition ---
# get_geolocation() returns None until the browser answers.
if scheduler.location is None:
    _payload = get_geolocation()
    if _payload is None:
        st.info(t("locating", _lang))
        st.stop()
    try:
        _loc = location_from_browser(_payload)
    except LocationUnavailable as e:
        logger.warning("Browser location unavailable: %s", e)
        st.session_state.location_error = str(e)
        scheduler.use_fallback()
    else:
        scheduler.set_location(_loc.latitude, _loc.longitude)

if st.session_state.location_error:
    st.warning(t("fallback_notice", _lang).format(error=st.session_state.location_error))

# --- Controls ---
with st.sidebar:
    mode = st.radio(
        t("label_time_mode", _lang),
        options=("now", "pinned"),
        format_func=lambda m: t("time_now" if m == "now" else "time_pinned", _lang),
        horizontal=True,
    )
    if mode == "pinned":
        today = datetime.date.today()
        days = [today + datetime.timedelta(days=i) for i in range(_DAYS_AHEAD)]
        day = st.selectbox(
            t("label_day", _lang), days, format_func=lambda d: d.strftime("%b %d")
        )
        col1, col2, col3 = st.columns(3)
        with col1:
            hour = st.selectbox(t("label_hour", _lang), list(range(1, 13)), index=11)
        with col2:
            minute = st.selectbox(
                t("label_minute", _lang), _MINUTES, format_func=lambda m: f"{m:02d}"
            )
        with col3:
            period = st.selectbox(t("label_period", _lang), ("AM", "PM"))
        hour24 = hour % 12 + (12 if period == "PM" else 0)
        loc = scheduler.location
        assert loc is not None
        scheduler.set_instant(
            localize_at(
                datetime.datetime(day.year, day.month, day.day, hour24, minute),
                loc.latitude,
                loc.longitude,
            )
        )
    else:
        scheduler.set_instant(None)

    current = scheduler.viewport
    assert current is not None
    zoom = st.slider(t("label_zoom", _lang), 13.0, 20.0, float(current.zoom), 0.25)
    if zoom != current.zoom:
        scheduler.on_viewport_change(
            Viewport(longitude=current.longitude, latitude=current.latitude, zoom=zoom)
        )

    height = st.slider(
        t("label_height", _lang), 5.0, 150.0, float(settings.building_height), 5.0
    )
    if height != surface.building_height:
        surface.building_height = height
        scheduler.set_building_height(height)


# --- Map area (refreshed on the scheduler's period) ---
@st.fragment(run_every=datetime.timedelta(seconds=settings.refresh_seconds))
def _map_view() -> None:
    scheduler.tick()
    frame = scheduler.frame
    if frame is None:
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric(
        t("metric_azimuth", _lang), f"{math.degrees(frame.sun.azimuthal_angle):.1f}°"
    )
    col2.metric(
        t("metric_elevation", _lang), f"{90 - math.degrees(frame.sun.polar_angle):.1f}°"
    )
    col3.metric(
        t("metric_shadow", _lang),
        f"{math.hypot(frame.primary.offset_x, frame.primary.offset_y):.0f} px",
    )
    status = "status_night" if frame.is_night else "status_day"
    col4.metric(t("metric_status", _lang), t(status, _lang))

    components.html(surface.render_html(_MAP_HEIGHT), height=_MAP_HEIGHT + 20)


_map_view()
