from backend.lib.dynamodb_service import DynamoDBService
from backend.lib.meter_core.models import Reading
from backend.lib.store_errors import StoreDataError
from datetime import date
from decimal import Decimal
import pytest

def make_reading(reading_id, day, value, meter_type="electricity"):
    return Reading(date=date.fromisoformat(day), value=value, type=meter_type, id=reading_id)

def test_put_reading_stores_decimal(fake_table):
    db = DynamoDBService(table_name="Test", table=fake_table)
    assert db.put_reading(make_reading("e1", "2024-01-01", 100.1))
    item = fake_table.items["e1"]
    assert item["value"] == Decimal("100.1")
    assert item["date"] == "2024-01-01"
    assert "created_at" in item

    reading = db.get_reading("e1")
    assert reading.value == 100.1
    assert reading.date == date(2024, 1, 1)
    assert db.get_reading("missing") is None

def test_batch_write_overwrites_by_id(fake_table):
    db = DynamoDBService(table_name="Test", table=fake_table)
    readings = [make_reading(f"e{i}", f"2024-01-{i + 1:02d}", float(i)) for i in range(30)]
    assert db.put_readings_batch(readings) == 30
    # 25 per batch
    assert fake_table.batch_calls == [["id"], ["id"]]
    assert len(fake_table.items) == 30

def test_get_readings_follows_pagination(fake_table):
    db = DynamoDBService(table_name="Test", table=fake_table)
    db.put_readings_batch([
        make_reading("e1", "2024-01-01", 100.0),
        make_reading("e2", "2024-02-01", 131.0),
        make_reading("e3", "2024-03-01", 160.0),
        make_reading("g1", "2024-01-01", 2500.0, "gas"),
        make_reading("g2", "2024-02-01", 2590.0, "gas"),
    ])
    readings = db.get_readings()
    assert sorted(r.id for r in readings) == ["e1", "e2", "e3", "g1", "g2"]
    assert len(fake_table.scan_calls) == 3
    assert "FilterExpression" not in fake_table.scan_calls[0]

def test_get_readings_passes_type_filter(fake_table):
    db = DynamoDBService(table_name="Test", table=fake_table)
    db.get_readings("gas")
    assert "FilterExpression" in fake_table.scan_calls[0]

def test_delete_reading_reports_changes(fake_table):
    db = DynamoDBService(table_name="Test", table=fake_table)
    db.put_reading(make_reading("e1", "2024-01-01", 100.0))
    assert db.delete_reading("e1") == 1
    assert db.delete_reading("e1") == 0

def test_corrupt_item_raises_store_error(fake_table):
    db = DynamoDBService(table_name="Test", table=fake_table)
    fake_table.items["e1"] = {"id": "e1", "date": "2024-01-01", "value": Decimal("1"), "type": "water"}
    with pytest.raises(StoreDataError):
        db.get_readings()
