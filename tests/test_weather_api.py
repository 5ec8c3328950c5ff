import copy
from datetime import datetime, timezone

import pytest
import requests

import weather_api as wa
from conftest import PROVIDER_BODY
from errors import UpstreamError

def _client():
    return wa.WeatherClient("test-key", base_url="https://weather.test/data/2.5/weather", timeout=5)

def test_fetch_current_rounds_and_reshapes(provider):
    snap = _client().fetch_current(39.9526, -75.1652)
    assert snap.temp_current == 72
    assert snap.temp_feels_like == 73
    assert snap.temp_min == 68
    assert snap.temp_max == 76
    assert snap.wind_speed == 5
    assert snap.wind_deg == 220
    assert snap.humidity == 65
    assert (snap.main, snap.description, snap.icon) == ("Clear", "clear sky", "01d")
    assert (snap.city, snap.country) == ("Philadelphia", "US")

def test_fetch_current_sends_imperial_units_and_key(provider):
    _client().fetch_current(48.8566, 2.3522)
    call = provider.calls[-1]
    assert call["url"] == "https://weather.test/data/2.5/weather"
    assert call["params"] == {"lat": 48.8566, "lon": 2.3522, "units": "imperial", "appid": "test-key"}
    assert call["headers"]["Cache-Control"] == "no-cache"
    assert call["timeout"] == 5

def test_timestamp_is_local_fetch_time(provider):
    snap = _client().fetch_current(1.0, 2.0)
    stamp = datetime.fromisoformat(snap.timestamp)
    assert abs((datetime.now(timezone.utc) - stamp).total_seconds()) < 60

def test_half_values_round_up():
    body = copy.deepcopy(PROVIDER_BODY)
    body["main"]["temp"] = 70.5
    body["wind"]["speed"] = 2.5
    snap = wa.transform_current(body)
    assert snap.temp_current == 71
    assert snap.wind_speed == 3

def test_non_success_status_carries_code(provider):
    provider.status_code = 401
    provider.body = {"cod": 401, "message": "Invalid API key"}
    with pytest.raises(UpstreamError) as excinfo:
        _client().fetch_current(1.0, 2.0)
    assert excinfo.value.status_code == 401

@pytest.mark.parametrize("field", ["main", "weather", "wind", "sys", "name"])
def test_missing_fields_raise(provider, field):
    body = copy.deepcopy(PROVIDER_BODY)
    del body[field]
    provider.body = body
    with pytest.raises(UpstreamError):
        _client().fetch_current(1.0, 2.0)

def test_empty_condition_list_raises(provider):
    body = copy.deepcopy(PROVIDER_BODY)
    body["weather"] = []
    provider.body = body
    with pytest.raises(UpstreamError):
        _client().fetch_current(1.0, 2.0)

def test_invalid_json_raises(provider):
    provider.body = ValueError("Expecting value")
    with pytest.raises(UpstreamError):
        _client().fetch_current(1.0, 2.0)

def test_transport_error_raises_without_status(provider):
    provider.error = requests.ConnectionError("connection refused")
    with pytest.raises(UpstreamError) as excinfo:
        _client().fetch_current(1.0, 2.0)
    assert excinfo.value.status_code is None


NOMINATIM_PARIS = [{
    "lat": "48.8588897",
    "lon": "2.3200410",
    "name": "Paris",
    "display_name": "Paris, Île-de-France, France métropolitaine, France",
    "address": {"city": "Paris", "state": "Île-de-France", "country": "France", "country_code": "fr"},
}]

def _geocoder():
    return wa.GeocodeClient(base_url="https://geo.test/search", user_agent="Portfolio Weather Widget", timeout=5)

def test_resolve_parses_top_result(provider):
    provider.body = NOMINATIM_PARIS
    result = _geocoder().resolve("Paris, France")
    assert result.city == "Paris"
    assert result.latitude == pytest.approx(48.8588897)
    assert result.longitude == pytest.approx(2.3200410)
    assert result.state == "Île-de-France"
    assert result.country == "FR"

def test_resolve_sends_single_result_query_with_user_agent(provider):
    provider.body = NOMINATIM_PARIS
    _geocoder().resolve("Paris, France")
    call = provider.calls[-1]
    assert call["params"]["q"] == "Paris, France"
    assert call["params"]["limit"] == 1
    assert call["params"]["format"] == "json"
    assert call["headers"]["User-Agent"] == "Portfolio Weather Widget"

def test_resolve_without_address_uses_display_name(provider):
    provider.body = [{"lat": "40.7127", "lon": "-74.0060", "display_name": "New York, United States"}]
    result = _geocoder().resolve("New York")
    assert result.city == "New York"
    assert result.state == ""
    assert result.country == ""

def test_resolve_no_results_returns_none(provider):
    provider.body = []
    assert _geocoder().resolve("Nonexistent Place Zzzqx") is None

def test_resolve_error_status_returns_none(provider):
    provider.status_code = 503
    provider.body = {"error": "unavailable"}
    assert _geocoder().resolve("Paris") is None

def test_lookup_distinguishes_errors_from_no_results(provider):
    provider.body = []
    assert _geocoder().lookup("Nonexistent Place Zzzqx") is None

    provider.status_code = 503
    with pytest.raises(UpstreamError) as excinfo:
        _geocoder().lookup("Paris")
    assert excinfo.value.status_code == 503

def test_to_location_has_required_fields():
    result = wa.GeocodeResult(city="Paris", latitude=48.85, longitude=2.35, state="", country="FR")
    assert result.to_location() == {"city": "Paris", "state": "", "country": "FR", "latitude": 48.85, "longitude": 2.35}

@pytest.mark.parametrize("section, field", [("main", "humidity"), ("wind", "speed"), ("main", "temp")])
def test_missing_nested_values_raise(section, field):
    body = copy.deepcopy(PROVIDER_BODY)
    del body[section][field]
    with pytest.raises(UpstreamError):
        wa.transform_current(body)
