import json
import os
import tempfile
from datetime import datetime, timedelta, timezone

import structlog

from errors import StorageError, ValidationError
from models import LocationRecord, REQUIRED_LOCATION_FIELDS

logger = structlog.get_logger()


def _now():
    return datetime.now(timezone.utc)


def _format_timestamp(moment):
    return moment.isoformat(timespec="microseconds")


# Returns None for anything that is not an ISO-8601 timestamp.
def _parse_timestamp(value):
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def missing_required_fields(data):
    """Names of required location fields that are absent or falsy in `data`."""
    return [name for name in REQUIRED_LOCATION_FIELDS if not data.get(name)]


class LocationStore:
    """
    Holds the single current-location record in a pretty-printed JSON file.
    Reads and writes are whole-file; concurrent writers race and the last one wins.
    """

    def __init__(self, path):
        self.path = os.fspath(path)

    def initialize(self):
        """Write the default record if no file exists yet, then return the stored record."""
        if os.path.exists(self.path):
            return self.get()
        record = LocationRecord.default()
        record.last_updated = _format_timestamp(_now())
        self._write(record.to_dict())
        logger.info("location_store_initialized", path=self.path, city=record.city)
        return record

    def get(self):
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = fh.read()
        except OSError as e:
            raise StorageError(f"Could not read location file {self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Location file {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Location file {self.path} does not hold a JSON object.")
        return LocationRecord.from_dict(data)

    def set(self, data):
        """
        Replace the stored record with `data` (a dict or LocationRecord).
        `lastUpdated` is always re-stamped and is strictly later than the previous stamp.
        """
        if isinstance(data, LocationRecord):
            data = data.to_dict()
        if not isinstance(data, dict):
            raise ValidationError("Location must be a JSON object.")

        missing = missing_required_fields(data)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing=missing)

        stamp = _now()
        previous = self._previous_timestamp()
        if previous is not None and stamp <= previous:
            stamp = previous + timedelta(microseconds=1)

        payload = dict(data)
        payload["lastUpdated"] = _format_timestamp(stamp)
        self._write(payload)
        logger.info("location_updated", city=payload.get("city"),
                    latitude=payload.get("latitude"), longitude=payload.get("longitude"))
        return LocationRecord.from_dict(payload)

    def _previous_timestamp(self):
        try:
            return _parse_timestamp(self.get().last_updated)
        except StorageError:
            return None

    # Writes to a sibling temp file and renames it over the target.
    def _write(self, data):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".location-", suffix=".json", dir=directory)
        except OSError as e:
            raise StorageError(f"Could not write location file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
                fh.write("\n")
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise StorageError(f"Could not write location file {self.path}: {e}") from e
