from dataclasses import replace

import structlog
from flask import Flask, jsonify, render_template, request

from jinja2 import TemplateNotFound

from config import Config
from errors import StorageError, ValidationError, WidgetError
from location_store import LocationStore, missing_required_fields
from logging_config import configure_logging
from models import DEFAULT_LATITUDE, DEFAULT_LONGITUDE
import weather_api as weather_api
import widget as widget

logger = structlog.get_logger()

LOCATION_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=60"
WEATHER_CACHE_CONTROL = "public, max-age=900, stale-while-revalidate=300"


# Helper: a query value as float, or None when absent or not numeric.
def _float_arg(name):
    value = (request.args.get(name) or "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# Helper: resolve coordinates for a weather call, falling back to the stored then the default location.
def _weather_coordinates(store):
    lat = _float_arg("lat")
    lon = _float_arg("lon")
    if lat is not None and lon is not None:
        return lat, lon

    try:
        record = store.get()
        return float(record.latitude), float(record.longitude)
    except (StorageError, TypeError, ValueError) as e:
        logger.warning("weather_location_fallback", error=str(e),
                       latitude=DEFAULT_LATITUDE, longitude=DEFAULT_LONGITUDE)
        return DEFAULT_LATITUDE, DEFAULT_LONGITUDE


# App factory: reads configuration, prepares the location file and registers routes.
def create_app(overrides=None):
    config = Config.from_env()
    if overrides:
        config = replace(config, **overrides)
    api_key = config.require_api_key()

    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["LOCATION_FILE"] = config.location_file

    store = LocationStore(config.location_file)
    try:
        store.initialize()
    except StorageError as e:
        # Reads fall back to the default coordinates until the file becomes usable.
        logger.error("location_store_init_failed", path=config.location_file, error=str(e))

    weather_client = weather_api.WeatherClient(api_key, base_url=config.openweather_url,
                                               timeout=config.http_timeout)
    app.extensions["location_store"] = store
    app.extensions["weather_client"] = weather_client

    @app.route("/api/location", methods=["GET"])
    def get_location():
        try:
            record = store.get()
        except WidgetError as e:
            logger.error("location_read_failed", error=str(e))
            return jsonify({"error": "Error fetching location data"}), 500

        response = jsonify(record.to_dict())
        response.headers["Cache-Control"] = LOCATION_CACHE_CONTROL
        return response

    # Replaces the stored location wholesale with the posted JSON object.
    @app.route("/api/location", methods=["POST"])
    def update_location():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        missing = missing_required_fields(data)
        if missing:
            return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400

        try:
            record = store.set(data)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except WidgetError as e:
            logger.error("location_update_failed", error=str(e))
            return jsonify({"error": "Error updating location data"}), 500

        return jsonify(record.to_dict())

    # Proxies current conditions for the given or stored coordinates; never writes the store.
    @app.route("/api/weather", methods=["GET"])
    def get_weather():
        try:
            lat, lon = _weather_coordinates(store)
            snapshot = weather_client.fetch_current(lat, lon)
        except Exception as e:
            logger.error("weather_fetch_failed", error=str(e),
                         status_code=getattr(e, "status_code", None))
            return jsonify({"error": "Error fetching weather data"}), 500

        response = jsonify(snapshot.to_dict())
        response.headers["Cache-Control"] = WEATHER_CACHE_CONTROL
        return response

    # Weather card; rendered with fallback data, then refreshed client-side from /api/weather.
    @app.route("/", methods=["GET"])
    def index():
        context = widget.widget_context()
        try:
            return render_template("widget.html", **context)
        except TemplateNotFound:
            return widget.render_plain(context), 200

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
