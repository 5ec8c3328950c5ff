"""
Interactive updater for the stored current location.

Prompts for a place name, looks it up with the geocoding service and
overwrites the location file the weather widget reads from.
"""
import sys

from config import Config
from errors import StorageError, UpstreamError, ValidationError
from location_store import LocationStore
from logging_config import configure_logging
import weather_api as weather_api

PROMPT = '\nEnter your new location (e.g., "New York, NY" or "Paris, France"): '


def _describe(record):
    return f"{record.city}, {record.state or ''} {record.country or ''}".rstrip()


def update_location(store, geocoder, read_input=input, out=print):
    """Run one prompt, lookup and write cycle. Returns the process exit code."""
    out("=== Update Your Location ===")

    try:
        current = store.get()
        out(f"Current location: {_describe(current)}")
    except StorageError:
        out("No current location found or error reading file.")

    try:
        place = read_input(PROMPT).strip()
    except EOFError:
        place = ""
    if not place:
        out("No location entered. Exiting...")
        return 0

    out(f"Fetching coordinates for {place} ...")
    try:
        result = geocoder.lookup(place)
    except UpstreamError as e:
        out(f"Geocoding service error: {e}")
        out("Failed to get coordinates. Please try again later.")
        return 1
    if result is None:
        out(f"No results found for {place!r}.")
        out("Failed to get coordinates. Please try again with a different location name.")
        return 1

    try:
        record = store.set(result.to_location())
    except ValidationError as e:
        out(f"Geocoding result is not a usable location: {e}")
        out("Failed to update location. Please try again with a different location name.")
        return 1
    except StorageError as e:
        out(f"Could not save the new location: {e}")
        return 1

    out("\nLocation updated successfully!")
    out(f"New location: {_describe(record)}")
    out(f"Coordinates: {record.latitude}, {record.longitude}")
    out("\nYour weather widget will update with the new location.")
    return 0


def main():
    config = Config.from_env()
    configure_logging(config.log_level)
    store = LocationStore(config.location_file)
    geocoder = weather_api.GeocodeClient(
        base_url=config.geocode_url,
        user_agent=config.geocode_user_agent,
        timeout=config.http_timeout,
    )
    return update_location(store, geocoder)


if __name__ == "__main__":
    sys.exit(main())
