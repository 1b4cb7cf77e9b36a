import csv
import json
from typing import Iterable, List, Optional
from .models import Reading
from io import StringIO


def parse_readings_json(text: str) -> List[Reading]:
    """
    Parse an export/backup file: a JSON array of
    {"id": "...", "date": "2024-01-31", "value": 1234.5, "type": "electricity"}

    The whole import is rejected if a single record is invalid.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")
    return readings_from_list(data)


def readings_from_list(data) -> List[Reading]:
    if not isinstance(data, list):
        raise ValueError("Expected an array of readings")
    readings = []
    for index, item in enumerate(data):
        try:
            readings.append(Reading.from_dict(item))
        except ValueError as e:
            raise ValueError(f"Invalid reading at index {index}: {e}")
    return readings


def parse_csv_string(csv_text: str) -> List[Reading]:
    """
    Parse CSV text with header: id,date,value,type
    Date must be ISO, e.g. 2024-01-31. An empty id gets a generated one.
    """
    # Excel writes a byte order mark in front of the header
    f = StringIO(csv_text.lstrip("\ufeff").strip())
    reader = csv.DictReader(f)
    readings = []
    for row in reader:
        # Basic validation
        if not row.get('date') or not row.get('value') or not row.get('type'):
            raise ValueError(f"Missing field in row: {row}")
        readings.append(Reading.from_dict({
            "id": (row.get('id') or "").strip(),
            "date": row['date'],
            "value": row['value'],
            "type": row['type'].strip(),
        }))
    return readings


def dump_readings_json(readings: Iterable[Reading]) -> str:
    ordered = sorted(readings, key=lambda r: (r.date, r.id))
    return json.dumps([r.to_dict() for r in ordered], indent=2)


def filter_by_type(readings: Iterable[Reading], meter_type: Optional[str]) -> List[Reading]:
    if meter_type is None:
        return list(readings)
    return [r for r in readings if r.type == meter_type]
