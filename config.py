import os
from dataclasses import dataclass

from errors import ConfigError

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
GEOCODE_URL = "https://nominatim.openstreetmap.org/search"
GEOCODE_USER_AGENT = "Portfolio Weather Widget"


@dataclass(frozen=True)
class Config:
    """Process-wide settings, read once at startup and handed to each component."""

    openweather_api_key: str | None
    location_file: str
    openweather_url: str = OPENWEATHER_URL
    geocode_url: str = GEOCODE_URL
    geocode_user_agent: str = GEOCODE_USER_AGENT
    http_timeout: float = 10.0
    secret_key: str = "dev-secret"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        timeout_str = env.get("HTTP_TIMEOUT", "10")
        try:
            http_timeout = float(timeout_str)
        except ValueError:
            raise ConfigError(f"HTTP_TIMEOUT must be numeric, got {timeout_str!r}")
        return cls(
            openweather_api_key=env.get("OPENWEATHER_API_KEY") or None,
            location_file=env.get("LOCATION_FILE") or os.path.join(os.getcwd(), "location.json"),
            openweather_url=env.get("OPENWEATHER_URL", OPENWEATHER_URL),
            geocode_url=env.get("GEOCODE_URL", GEOCODE_URL),
            geocode_user_agent=env.get("GEOCODE_USER_AGENT", GEOCODE_USER_AGENT),
            http_timeout=http_timeout,
            secret_key=env.get("SECRET_KEY", "dev-secret"),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )

    def require_api_key(self):
        if not self.openweather_api_key:
            raise ConfigError("OPENWEATHER_API_KEY is not set; the weather endpoint cannot start without it.")
        return self.openweather_api_key
