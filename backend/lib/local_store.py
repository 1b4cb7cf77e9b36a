"""
=============================================================================
LOCAL READING STORE - JSON file storage (used when DynamoDB is disabled)
=============================================================================
All readings live in one JSON file, the same array format used for
export/import:

[
    {"id": "3f2a...", "date": "2024-01-01", "value": 1520.4, "type": "electricity"},
    {"id": "9bc1...", "date": "2024-01-01", "value": 802.0, "type": "gas"}
]

The file is read completely on every request and rewritten completely on
every change. A household has a few hundred readings at most, so this is
fast enough and keeps the file easy to inspect and back up by hand.
=============================================================================
"""

import json
import threading
from pathlib import Path
from typing import Dict, List, Optional

from backend.lib.meter_core.io import readings_from_list
from backend.lib.meter_core.models import Reading
from backend.lib.store_errors import StoreDataError


class LocalReadingStore:
    """
    File based reading store with the same methods as DynamoDBService.

    Usage:
        store = LocalReadingStore(Path("backend/data/readings.json"))
        store.put_reading(Reading(date=date(2024, 1, 1), value=100.0, type="gas"))
        gas = store.get_readings("gas")
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        # Flask serves requests from several threads
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Reading]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            text = f.read()
        if not text.strip():
            return {}
        try:
            readings = readings_from_list(json.loads(text))
        except ValueError as e:
            raise StoreDataError(f"Corrupt readings file {self.path}: {e}")
        # Keyed by id, later duplicates replace earlier ones
        return {r.id: r for r in readings}

    def _save(self, readings: Dict[str, Reading]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # temp file + rename, readers never see a half-written file
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in readings.values()], f, indent=2)
        tmp_path.replace(self.path)

    def get_readings(self, meter_type: Optional[str] = None) -> List[Reading]:
        with self._lock:
            readings = list(self._load().values())
        if meter_type is not None:
            readings = [r for r in readings if r.type == meter_type]
        return readings

    def get_reading(self, reading_id: str) -> Optional[Reading]:
        with self._lock:
            return self._load().get(reading_id)

    def put_reading(self, reading: Reading) -> bool:
        """Create or replace the reading with this id."""
        with self._lock:
            readings = self._load()
            readings[reading.id] = reading
            self._save(readings)
        return True

    def put_readings_batch(self, readings: List[Reading]) -> int:
        """Upsert by id. Returns the number of readings written."""
        with self._lock:
            stored = self._load()
            for reading in readings:
                stored[reading.id] = reading
            self._save(stored)
        return len(readings)

    def delete_reading(self, reading_id: str) -> int:
        """Returns the number of deleted readings (0 or 1)."""
        with self._lock:
            readings = self._load()
            if reading_id not in readings:
                return 0
            del readings[reading_id]
            self._save(readings)
        return 1
