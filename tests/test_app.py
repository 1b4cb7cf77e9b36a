from backend import app as app_module
from backend.lib.local_store import LocalReadingStore
import io
import json
import pytest

@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(app_module, "store", LocalReadingStore(tmp_path / "readings.json"))
    app_module.app.config["TESTING"] = True
    return app_module.app.test_client()

def add(client, reading_id, day, value, meter_type="electricity"):
    return client.post("/api/readings", json={
        "id": reading_id, "date": day, "value": value, "type": meter_type
    })

def test_create_and_list_readings(client):
    res = add(client, "e1", "2024-01-01", 100)
    assert res.status_code == 201
    assert res.get_json() == {"id": "e1", "date": "2024-01-01", "value": 100.0, "type": "electricity"}
    add(client, "e2", "2024-02-01", 131)
    add(client, "g1", "2024-01-15", 2500, "gas")

    data = client.get("/api/readings").get_json()
    assert len(data) == 3

    # newest first
    data = client.get("/api/readings?type=electricity").get_json()
    assert [r["id"] for r in data] == ["e2", "e1"]

def test_create_generates_id(client):
    res = client.post("/api/readings", json={"date": "2024-01-01", "value": 5, "type": "gas"})
    assert res.status_code == 201
    assert res.get_json()["id"]

def test_create_rejects_invalid_and_duplicate(client):
    assert add(client, "e1", "2024-01-32", 100).status_code == 400
    assert add(client, "e1", "2024-01-01", -3).status_code == 400
    assert client.post("/api/readings", data="nope").status_code == 400
    assert add(client, "e1", "2024-01-01", 100).status_code == 201
    assert add(client, "e1", "2024-01-02", 101).status_code == 409

def test_unknown_type_filter(client):
    res = client.get("/api/readings?type=water")
    assert res.status_code == 400
    assert "error" in res.get_json()

def test_delete_reading(client):
    add(client, "e1", "2024-01-01", 100)
    assert client.delete("/api/readings/e1").get_json() == {"message": "Deleted", "changes": 1}
    assert client.delete("/api/readings/e1").get_json() == {"message": "Deleted", "changes": 0}

def test_import_json_upserts_by_id(client):
    add(client, "e1", "2024-01-01", 90)
    res = client.post("/api/import", json=[
        {"id": "e1", "date": "2024-01-01", "value": 100, "type": "electricity"},
        {"id": "e2", "date": "2024-02-01", "value": 131, "type": "electricity"},
    ])
    assert res.status_code == 200
    assert res.get_json() == {"message": "Import successful", "count": 2}

    data = {r["id"]: r for r in client.get("/api/readings").get_json()}
    assert len(data) == 2
    assert data["e1"]["value"] == 100.0

def test_import_rejects_invalid_payload(client):
    assert client.post("/api/import", json={"id": "e1"}).status_code == 400
    res = client.post("/api/import", json=[
        {"id": "e1", "date": "2024-01-01", "value": 100, "type": "electricity"},
        {"id": "e2", "date": "bad", "value": 131, "type": "electricity"},
    ])
    assert res.status_code == 400
    # nothing written
    assert client.get("/api/readings").get_json() == []

def test_import_csv_file(client):
    csv_bytes = b"id,date,value,type\ne1,2024-01-20,100,electricity\ne2,2024-02-05,116,electricity\n"
    res = client.post(
        "/api/import",
        data={"file": (io.BytesIO(csv_bytes), "readings.csv")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 200
    assert res.get_json()["count"] == 2

def test_export(client):
    add(client, "e2", "2024-02-01", 131)
    add(client, "e1", "2024-01-01", 100)
    add(client, "g1", "2024-01-01", 2500, "gas")

    res = client.get("/api/export?type=electricity")
    assert res.status_code == 200
    assert "attachment" in res.headers["Content-Disposition"]
    data = json.loads(res.get_data(as_text=True))
    assert [r["id"] for r in data] == ["e1", "e2"]

def test_monthly_stats(client):
    add(client, "e1", "2024-01-20", 100)
    add(client, "e2", "2024-02-05", 116)
    add(client, "g1", "2024-01-01", 2500, "gas")

    res = client.get("/api/stats/monthly?type=electricity")
    assert res.status_code == 200
    body = res.get_json()
    assert body["type"] == "electricity"
    assert body["range"] == "all"
    assert [(r["month"], r["current"]) for r in body["data"]] == [("2024-01", 12.0), ("2024-02", 4.0)]
    assert body["data"][0]["previous_year"] is None

    res = client.get("/api/stats/monthly?type=electricity&range=3")
    assert len(res.get_json()["data"]) == 2

def test_monthly_stats_not_enough_data(client):
    add(client, "g1", "2024-01-01", 2500, "gas")
    res = client.get("/api/stats/monthly?type=gas")
    assert res.status_code == 200
    assert res.get_json()["data"] == []

def test_monthly_stats_bad_parameters(client):
    assert client.get("/api/stats/monthly").status_code == 400
    assert client.get("/api/stats/monthly?type=electricity&range=5").status_code == 400

def test_yearly_comparison(client):
    add(client, "g1", "2023-06-01", 0, "gas")
    add(client, "g2", "2023-07-01", 30, "gas")

    body = client.get("/api/stats/comparison?type=gas&month=2024-06").get_json()
    assert body["month"] == "2024-06"
    assert body["previous_year_month"] == "2023-06"
    assert body["previous_year"] == pytest.approx(30.0)

    body = client.get("/api/stats/comparison?type=gas&month=2024-07").get_json()
    assert body["previous_year"] is None

def test_yearly_comparison_bad_parameters(client):
    assert client.get("/api/stats/comparison?type=gas").status_code == 400
    assert client.get("/api/stats/comparison?type=gas&month=2024-13").status_code == 400

def test_status(client):
    body = client.get("/api/status").get_json()
    assert body["storage"] == "local"

def test_corrupt_storage_is_a_json_server_error(client):
    app_module.store.path.write_text("not json")
    for url in ("/api/readings", "/api/export", "/api/stats/monthly?type=gas",
                "/api/stats/comparison?type=gas&month=2024-06"):
        res = client.get(url)
        assert res.status_code == 500
        assert "error" in res.get_json()
