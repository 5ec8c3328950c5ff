from datetime import datetime, timezone

from markupsafe import escape

from models import WeatherSnapshot

# Polling behaviour of the card script, in seconds.
REFRESH_INTERVAL = 900
DEDUPE_INTERVAL = 300
FALLBACK_AFTER = 3

# Shown before the first successful fetch and whenever a fetch fails or stalls.
FALLBACK_WEATHER = {
    "location": {"city": "Philadelphia", "country": "US"},
    "temperature": {"current": 72, "feelsLike": 73, "min": 68, "max": 75},
    "weather": {"main": "Clear", "description": "clear sky", "icon": "01d"},
    "wind": {"speed": 5, "deg": 220},
    "humidity": 65,
}

# Ordered (keywords, day icon, night icon); the first rule whose keyword appears in `main` wins.
ICON_RULES = [
    (["clear"], "day-sunny", "night-clear"),
    (["broken", "overcast"], "cloudy", "cloudy"),
    (["cloud"], "cloud", "cloud"),
    (["rain", "drizzle"], "rain", "rain"),
    (["snow"], "snow", "snow"),
    (["thunder"], "thunderstorm", "thunderstorm"),
    (["fog", "mist", "haze"], "fog", "fog"),
]
DEFAULT_ICON = "day-sunny"

ICON_GLYPHS = {
    "day-sunny": "☀",
    "night-clear": "☾",
    "cloud": "⛅",
    "cloudy": "☁",
    "rain": "\U0001F327",
    "snow": "❄",
    "thunderstorm": "⛈",
    "fog": "\U0001F32B",
}


def fallback_snapshot():
    data = dict(FALLBACK_WEATHER)
    data["timestamp"] = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return WeatherSnapshot.from_dict(data)


def is_daytime(icon):
    # Provider icon codes end in "d" for day and "n" for night, e.g. "01d".
    return not (icon or "").endswith("n")


def weather_icon(main, icon):
    """Pick the card icon name from the condition group and the provider icon code."""
    condition = (main or "").lower()
    day = is_daytime(icon)
    for keywords, day_icon, night_icon in ICON_RULES:
        if any(word in condition for word in keywords):
            return day_icon if day else night_icon
    return DEFAULT_ICON


def compass_direction(deg):
    if deg is None:
        return ""
    points = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
    return points[int((float(deg) % 360) / 45 + 0.5) % 8]


def widget_context(snapshot=None):
    """Template variables for the weather card."""
    snapshot = snapshot or fallback_snapshot()
    icon_name = weather_icon(snapshot.main, snapshot.icon)
    return {
        "weather": snapshot.to_dict(),
        "icon_name": icon_name,
        "icon_glyph": ICON_GLYPHS[icon_name],
        "wind_direction": compass_direction(snapshot.wind_deg),
        "fallback": FALLBACK_WEATHER,
        "widget_settings": {
            "endpoint": "/api/weather",
            "refreshInterval": REFRESH_INTERVAL * 1000,
            "dedupeInterval": DEDUPE_INTERVAL * 1000,
            "fallbackAfter": FALLBACK_AFTER * 1000,
            "iconRules": [
                {"keywords": keywords, "day": day_icon, "night": night_icon}
                for keywords, day_icon, night_icon in ICON_RULES
            ],
            "defaultIcon": DEFAULT_ICON,
            "glyphs": ICON_GLYPHS,
        },
    }


def render_plain(context):
    """Bare HTML card used when the template is unavailable."""
    w = context["weather"]
    return (
        f"<div class=\"weather-card\"><h2>{escape(w['location']['city'])}, {escape(w['location']['country'])}</h2>"
        f"<p>{context['icon_glyph']} {w['temperature']['current']}&deg;F, {escape(w['weather']['description'])}</p>"
        f"<p>Feels like {w['temperature']['feelsLike']}&deg;F &middot; "
        f"L {w['temperature']['min']}&deg; H {w['temperature']['max']}&deg;</p>"
        f"<p>Wind {w['wind']['speed']} mph {context['wind_direction']} &middot; Humidity {w['humidity']}%</p></div>"
    )
