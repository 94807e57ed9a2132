"""Simple two-language (ko/en) translation helper."""

_STRINGS: dict[str, dict[str, str]] = {
    "page_title": {
        "ko": "햇빛 그림자 지도",
        "en": "SunShadows",
    },
    "label_time_mode": {
        "ko": "시각",
        "en": "Time",
    },
    "time_now": {
        "ko": "지금",
        "en": "Now",
    },
    "time_pinned": {
        "ko": "직접 선택",
        "en": "Pick a time",
    },
    "label_day": {
        "ko": "날짜",
        "en": "Day",
    },
    "label_hour": {
        "ko": "시",
        "en": "Hour",
    },
    "label_minute": {
        "ko": "분",
        "en": "Minute",
    },
    "label_period": {
        "ko": "오전/오후",
        "en": "AM/PM",
    },
    "label_zoom": {
        "ko": "확대",
        "en": "Zoom",
    },
    "label_height": {
        "ko": "건물 높이 (m)",
        "en": "Building height (m)",
    },
    "locating": {
        "ko": "위치를 확인하는 중",
        "en": "Finding your location",
    },
    "fallback_notice": {
        "ko": "위치를 사용할 수 없어 기본 위치와 기본 태양 위치를 사용해요. ({error})",
        "en": "Location unavailable; showing the default location and sun. ({error})",
    },
    "status_day": {
        "ko": "낮",
        "en": "Day",
    },
    "status_night": {
        "ko": "밤",
        "en": "Night",
    },
    "metric_azimuth": {
        "ko": "태양 방위각",
        "en": "Sun azimuth",
    },
    "metric_elevation": {
        "ko": "태양 고도",
        "en": "Sun elevation",
    },
    "metric_shadow": {
        "ko": "그림자 길이",
        "en": "Shadow length",
    },
    "metric_status": {
        "ko": "상태",
        "en": "Status",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
