import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Union
from uuid import uuid4

METER_TYPES = ("electricity", "gas")


def parse_date(value: Union[str, date]) -> date:
    """
    Normalise a reading date. Accepts a date, a datetime (time is dropped)
    or an ISO 'YYYY-MM-DD' string. Raises ValueError for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        parsed = datetime.strptime(text, "%Y-%m-%d").date()
        # strptime also takes '2024-1-1'
        if parsed.isoformat() != text:
            raise ValueError(f"Invalid reading date: {value!r}, expected YYYY-MM-DD")
        return parsed
    raise ValueError(f"Invalid reading date: {value!r}")


def new_reading_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class Reading:
    date: date
    value: float
    type: str
    id: str = field(default_factory=new_reading_id)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "value": self.value,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Reading":
        """
        Build a Reading from its stored shape:
        {"id": str, "date": "YYYY-MM-DD", "value": number, "type": "electricity"|"gas"}

        'id' may be missing for new readings, a fresh one is generated.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Reading must be an object, got {type(data).__name__}")
        for key in ("date", "value", "type"):
            if data.get(key) is None or data.get(key) == "":
                raise ValueError(f"Missing field '{key}' in reading: {data}")

        reading_date = parse_date(data["date"])

        raw_value = data["value"]
        # JSON true/false would pass float()
        if isinstance(raw_value, bool):
            raise ValueError(f"Invalid value in reading: {data}")
        try:
            value = float(raw_value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value in reading: {data}")
        if not math.isfinite(value):
            raise ValueError(f"Invalid value in reading: {data}")
        if value < 0:
            raise ValueError("value must be >= 0")

        meter_type = data["type"]
        if meter_type not in METER_TYPES:
            raise ValueError(f"Unknown meter type '{meter_type}', expected one of {METER_TYPES}")

        reading_id = data.get("id")
        if reading_id is None or reading_id == "":
            reading_id = new_reading_id()
        return cls(date=reading_date, value=value, type=meter_type, id=str(reading_id))


@dataclass
class MonthlyStat:
    month: str  # YYYY-MM
    consumption: float
    days: int = 0  # not tracked, always 0

    def to_dict(self) -> Dict:
        return {"month": self.month, "consumption": self.consumption, "days": self.days}
