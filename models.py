from dataclasses import dataclass, field

DEFAULT_CITY = "Philadelphia"
DEFAULT_STATE = "PA"
DEFAULT_COUNTRY = "US"
DEFAULT_LATITUDE = 39.9526
DEFAULT_LONGITUDE = -75.1652

REQUIRED_LOCATION_FIELDS = ("city", "latitude", "longitude")


@dataclass
class LocationRecord:
    city: str
    latitude: float
    longitude: float
    state: str | None = None
    country: str | None = None
    last_updated: str | None = None
    # Keys a writer supplied beyond the known fields, kept verbatim.
    extra: dict = field(default_factory=dict)
    # Known keys the source document carried, echoed back even when null.
    present: set = field(default_factory=set, repr=False)

    @classmethod
    def default(cls):
        return cls(
            city=DEFAULT_CITY,
            state=DEFAULT_STATE,
            country=DEFAULT_COUNTRY,
            latitude=DEFAULT_LATITUDE,
            longitude=DEFAULT_LONGITUDE,
        )

    @classmethod
    def from_dict(cls, data: dict):
        known = {"city", "state", "country", "latitude", "longitude", "lastUpdated"}
        return cls(
            city=data.get("city"),
            state=data.get("state"),
            country=data.get("country"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            last_updated=data.get("lastUpdated"),
            extra={k: v for k, v in data.items() if k not in known},
            present={k for k in known if k in data},
        )

    def to_dict(self) -> dict:
        out = dict(self.extra)
        for key, value in (
            ("city", self.city),
            ("state", self.state),
            ("country", self.country),
            ("latitude", self.latitude),
            ("longitude", self.longitude),
            ("lastUpdated", self.last_updated),
        ):
            if key in self.present or value is not None:
                out[key] = value
        return out

    def __repr__(self):
        return f"<LocationRecord {self.city}, {self.state} {self.country} ({self.latitude}, {self.longitude})>"


@dataclass
class WeatherSnapshot:
    city: str
    country: str
    temp_current: int
    temp_feels_like: int
    temp_min: int
    temp_max: int
    main: str
    description: str
    icon: str
    wind_speed: int
    wind_deg: float | None
    humidity: int
    timestamp: str

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            city=data["location"]["city"],
            country=data["location"]["country"],
            temp_current=data["temperature"]["current"],
            temp_feels_like=data["temperature"]["feelsLike"],
            temp_min=data["temperature"]["min"],
            temp_max=data["temperature"]["max"],
            main=data["weather"]["main"],
            description=data["weather"]["description"],
            icon=data["weather"]["icon"],
            wind_speed=data["wind"]["speed"],
            wind_deg=data["wind"].get("deg"),
            humidity=data["humidity"],
            timestamp=data["timestamp"],
        )

    def to_dict(self) -> dict:
        return {
            "location": {"city": self.city, "country": self.country},
            "temperature": {
                "current": self.temp_current,
                "feelsLike": self.temp_feels_like,
                "min": self.temp_min,
                "max": self.temp_max,
            },
            "weather": {"main": self.main, "description": self.description, "icon": self.icon},
            "wind": {"speed": self.wind_speed, "deg": self.wind_deg},
            "humidity": self.humidity,
            "timestamp": self.timestamp,
        }

    def __repr__(self):
        return f"<WeatherSnapshot {self.city}, {self.country} {self.temp_current}F {self.main}>"
