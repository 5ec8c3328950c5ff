import math
from dataclasses import dataclass
from datetime import datetime, timezone

import requests
import structlog
from requests import RequestException

from config import OPENWEATHER_URL, GEOCODE_URL, GEOCODE_USER_AGENT
from errors import UpstreamError
from models import WeatherSnapshot

logger = structlog.get_logger()


# Half-up rounding: 72.5 -> 73, -2.5 -> -2.
def _round(value):
    if value is None:
        return None
    return int(math.floor(float(value) + 0.5))


def _first(values):
    if not values:
        return None
    return values[0]


# Normalizes a provider's current-conditions body into a WeatherSnapshot.
def transform_current(data, fetched_at=None):
    """
    Raises UpstreamError when any of `main`, `weather[0]`, `wind`, `sys` or `name` is missing.
    `timestamp` is the local transformation time, never the provider's `dt`.
    """
    if not isinstance(data, dict):
        raise UpstreamError("Weather API returned an unexpected body")

    main = data.get("main")
    condition = _first(data.get("weather"))
    wind = data.get("wind")
    sys_info = data.get("sys")
    name = data.get("name")
    missing = [
        label for label, value in (
            ("main", main), ("weather[0]", condition), ("wind", wind), ("sys", sys_info), ("name", name),
        ) if value is None
    ]
    if missing:
        raise UpstreamError(f"Weather API response missing fields: {', '.join(missing)}")

    fetched_at = fetched_at or datetime.now(timezone.utc)
    try:
        return WeatherSnapshot(
            city=name,
            country=sys_info.get("country"),
            temp_current=_round(main["temp"]),
            temp_feels_like=_round(main["feels_like"]),
            temp_min=_round(main["temp_min"]),
            temp_max=_round(main["temp_max"]),
            main=condition.get("main"),
            description=condition.get("description"),
            icon=condition.get("icon"),
            wind_speed=_round(wind["speed"]),
            wind_deg=wind.get("deg"),
            humidity=_round(main["humidity"]),
            timestamp=fetched_at.isoformat(timespec="milliseconds"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(f"Weather API response has an unexpected shape: {e}") from e


class WeatherClient:
    """Current conditions by coordinate from OpenWeatherMap, in imperial units."""

    def __init__(self, api_key, base_url=OPENWEATHER_URL, timeout=10.0):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    def fetch_current(self, lat, lon):
        params = {"lat": lat, "lon": lon, "units": "imperial", "appid": self.api_key}
        try:
            response = requests.get(
                self.base_url,
                params=params,
                headers={"Cache-Control": "no-cache"},
                timeout=self.timeout,
            )
        except RequestException as e:
            raise UpstreamError(f"Weather request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamError(f"Weather API returned {response.status_code}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Weather API returned invalid JSON: {e}") from e

        snapshot = transform_current(data)
        logger.info("weather_fetched", lat=lat, lon=lon, city=snapshot.city, temp=snapshot.temp_current)
        return snapshot


@dataclass
class GeocodeResult:
    city: str
    latitude: float
    longitude: float
    state: str = ""
    country: str = ""

    def to_location(self) -> dict:
        return {
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


class GeocodeClient:
    """Free-text place lookup against OpenStreetMap Nominatim; top match only."""

    def __init__(self, base_url=GEOCODE_URL, user_agent=GEOCODE_USER_AGENT, timeout=10.0):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout

    def lookup(self, place_name):
        """
        Return the top GeocodeResult for `place_name`, or None when nothing matches.
        Raises UpstreamError on transport failure, a non-success status or an unreadable body.
        """
        params = {"format": "json", "q": place_name, "limit": 1, "addressdetails": 1}
        try:
            response = requests.get(
                self.base_url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
        except RequestException as e:
            raise UpstreamError(f"Geocoding request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamError(f"Geocoding API returned status: {response.status_code}",
                                status_code=response.status_code)

        try:
            results = response.json()
        except ValueError as e:
            raise UpstreamError(f"Geocoding API returned invalid JSON: {e}") from e

        top = _first(results if isinstance(results, list) else None)
        if top is None:
            return None

        try:
            latitude = float(top["lat"])
            longitude = float(top["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Geocoding result has no usable coordinates: {e}") from e

        address = top.get("address") or {}
        city = top.get("name") or (top.get("display_name") or place_name).split(",")[0].strip()
        return GeocodeResult(
            city=city,
            latitude=latitude,
            longitude=longitude,
            state=address.get("state") or "",
            country=(address.get("country_code") or "").upper(),
        )

    def resolve(self, place_name):
        """Like lookup(), but every failure is logged and reported as None."""
        try:
            result = self.lookup(place_name)
        except UpstreamError as e:
            logger.error("geocoding_failed", place=place_name, error=str(e), status_code=e.status_code)
            return None
        if result is None:
            logger.warning("geocoding_no_results", place=place_name)
        return result
