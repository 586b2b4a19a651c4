"""Persisted user preferences.

``LocationPreferenceStore`` keeps the coordinate of the last successful weather
lookup in one slot of a flat key-value store.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from weather_lookup.logging_config import get_logger, log_with_context
from weather_lookup.models.location import Coordinate

logger = get_logger(__name__)

LAST_LOCATION_KEY = "LastSearchedCityLocation"


class KeyValueStore(Protocol):
    """Flat string-keyed store of string values."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local key-value store."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileKeyValueStore:
    """Key-value store persisted as a single JSON object on disk.

    Writes go through a temporary file and ``os.replace`` so a crash never leaves
    a half-written file behind. An unreadable file reads as empty.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        values = self._read()
        values[key] = value
        self._write(values)

    def remove(self, key: str) -> None:
        values = self._read()
        if values.pop(key, None) is not None:
            self._write(values)

    def _read(self) -> dict[str, object]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            log_with_context(
                logger,
                "warning",
                "Preferences file unreadable, treating as empty",
                path=str(self._path),
                error=str(e),
                event_type="preferences_read_failed",
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, values: dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".prefs-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(values, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class LocationPreferenceStore:
    """Single-slot store for the last successfully viewed coordinate.

    Every ``save`` overwrites the previous value. Storage failures are logged and
    swallowed: ``load`` then returns None and ``save``/``clear`` do nothing.
    """

    def __init__(self, store: KeyValueStore, key: str = LAST_LOCATION_KEY):
        self._store = store
        self._key = key

    def save(self, coordinate: Coordinate) -> None:
        try:
            self._store.set(self._key, coordinate.model_dump_json())
        except OSError as e:
            log_with_context(
                logger,
                "warning",
                "Failed to persist last location",
                error=str(e),
                event_type="preferences_save_failed",
            )
            return
        log_with_context(
            logger,
            "debug",
            "Last location saved",
            lat=coordinate.lat,
            lon=coordinate.lon,
            event_type="preferences_saved",
        )

    def load(self) -> Coordinate | None:
        try:
            payload = self._store.get(self._key)
        except OSError as e:
            log_with_context(
                logger,
                "warning",
                "Failed to read last location",
                error=str(e),
                event_type="preferences_load_failed",
            )
            return None
        if payload is None:
            return None
        try:
            return Coordinate.model_validate_json(payload)
        except ValidationError:
            log_with_context(
                logger,
                "warning",
                "Stored last location is malformed, ignoring",
                event_type="preferences_malformed",
            )
            return None

    def clear(self) -> None:
        try:
            self._store.remove(self._key)
        except OSError as e:
            log_with_context(
                logger,
                "warning",
                "Failed to clear last location",
                error=str(e),
                event_type="preferences_clear_failed",
            )
