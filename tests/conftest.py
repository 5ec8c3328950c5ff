import types

import pytest

import weather_api as wa
from app import create_app
from logging_config import configure_logging

# A current-conditions body in the provider's shape.
PROVIDER_BODY = {
    "name": "Philadelphia",
    "sys": {"country": "US"},
    "main": {"temp": 72.4, "feels_like": 73.1, "temp_min": 68.2, "temp_max": 75.6, "humidity": 65},
    "weather": [{"main": "Clear", "description": "clear sky", "icon": "01d"}],
    "wind": {"speed": 4.9, "deg": 220},
    "dt": 1700000000,
}


class FakeResponse:
    def __init__(self, json_data, status_code=200):
        self._json = json_data
        self.status_code = status_code

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


class FakeProvider:
    """Stands in for `requests` inside weather_api; records every call."""

    def __init__(self, body=None, status_code=200, error=None):
        self.body = PROVIDER_BODY if body is None else body
        self.status_code = status_code
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {}), "timeout": timeout})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.body, status_code=self.status_code)


@pytest.fixture(autouse=True)
def _fresh_logging():
    # Rebind structlog to the current test's captured stderr; a stream bound by an
    # earlier test is closed once that test finishes.
    configure_logging()


@pytest.fixture()
def provider(monkeypatch):
    fake = FakeProvider()
    monkeypatch.setattr(wa, "requests", types.SimpleNamespace(get=fake.get))
    return fake


@pytest.fixture()
def location_file(tmp_path):
    return tmp_path / "location.json"


# Creates a Flask app backed by a temporary location file for tests.
@pytest.fixture()
def app(location_file, monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-key")
    monkeypatch.setenv("LOCATION_FILE", str(location_file))
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    app = create_app()
    app.config.update(TESTING=True)
    with app.app_context():
        yield app

@pytest.fixture()
def client(app):
    return app.test_client()
