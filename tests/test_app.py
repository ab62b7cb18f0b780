from datetime import datetime, timedelta

import pytest

from psychrometer.app import create_app, parse_range_param
from psychrometer.config import Config


class StubRecorder:

    def __init__(self, latest=None, running=True):
        self.latest = latest
        self.running = running

    def stats(self):
        return {"readings": 1, "rejected": 0, "running": self.running}


@pytest.fixture
def client(db):
    app = create_app(Config(db_file=db.db_file), db=db)
    app.testing = True
    return app.test_client()


def test_parse_range_param():
    now = datetime(2024, 5, 1, 12, 0, 0)
    assert parse_range_param("15m", now) == (now - timedelta(minutes=15), now)
    assert parse_range_param("6h", now) == (now - timedelta(hours=6), now)
    assert parse_range_param("7d", now) == (now - timedelta(days=7), now)
    assert parse_range_param("all", now) == (None, now)
    assert parse_range_param("", now) == (now - timedelta(minutes=1), now)
    assert parse_range_param("2024-05-01T10:00:00", now) == (datetime(2024, 5, 1, 10), now)
    assert parse_range_param("garbage", now) == (now - timedelta(hours=1), now)


def test_calculate_get(client, db):
    response = client.get("/api/calculate?dryBulb=25&wetBulb=18")
    assert response.status_code == 200
    data = response.get_json()
    assert data["relativeHumidity"] == pytest.approx(50.0, abs=1.0)
    assert data["dewPoint"] == pytest.approx(14.0, abs=0.5)
    # manual entries are never persisted
    assert db.get_counts() == 0


def test_calculate_post_json(client):
    response = client.post("/api/calculate", json={"dryBulb": 30, "wetBulb": 22})
    assert response.status_code == 200
    assert response.get_json()["dryBulb"] == 30.0


@pytest.mark.parametrize("query, kind", [
    ("dryBulb=25&wetBulb=30", "invalid_input"),
    ("dryBulb=25", "invalid_input"),
    ("dryBulb=abc&wetBulb=18", "invalid_input"),
    ("dryBulb=nan&wetBulb=18", "invalid_input"),
    ("dryBulb=40&wetBulb=10", "domain_error"),
])
def test_calculate_rejections(client, query, kind):
    response = client.get(f"/api/calculate?{query}")
    assert response.status_code == 400
    assert response.get_json()["error"] == kind


def test_latest_empty(client):
    assert client.get("/api/latest").status_code == 404


def test_latest_from_database(client, db, make_state):
    db.insert(make_state(22.0, 16.0))
    response = client.get("/api/latest")
    assert response.status_code == 200
    assert response.get_json()["dryBulb"] == 22.0


def test_latest_prefers_recorder(db, make_state):
    db.insert(make_state(22.0, 16.0))
    app = create_app(Config(db_file=db.db_file), db=db,
                     recorder=StubRecorder(make_state(27.0, 19.0)))
    assert app.test_client().get("/api/latest").get_json()["dryBulb"] == 27.0


def test_readings_and_average(client, db, make_state):
    now = datetime.now().replace(microsecond=0)
    db.insert_bulk([
        make_state(20.0, 15.0, now - timedelta(minutes=30)),
        make_state(24.0, 17.0, now - timedelta(minutes=5)),
    ])

    recent = client.get("/api/readings?range=15m").get_json()["readings"]
    assert [r["dryBulb"] for r in recent] == [24.0]

    everything = client.get("/api/readings?range=all").get_json()["readings"]
    assert [r["dryBulb"] for r in everything] == [20.0, 24.0]

    average = client.get("/api/average?range=1h").get_json()
    assert average["count"] == 2
    assert average["avgDryBulb"] == pytest.approx(22.0)


def test_rh_lines(client):
    lines = client.get("/api/chart/rh-lines").get_json()["lines"]
    assert [l["relativeHumidity"] for l in lines] == [10, 20, 30, 40, 50, 60, 70, 80, 90]
    for line in lines:
        ys = [p["y"] for p in line["points"]]
        assert len(ys) == 11
        assert ys == sorted(ys)
    # 50 % at 25 degC is close to 10 g/kg
    fifty = lines[4]["points"][5]
    assert fifty["x"] == 25
    assert fifty["y"] == pytest.approx(9.9, abs=0.3)


def test_health(client, db, make_state):
    body = client.get("/api/health").get_json()
    assert body == {"status": "ok", "count": 0}

    app = create_app(Config(db_file=db.db_file), db=db, recorder=StubRecorder(running=False))
    body = app.test_client().get("/api/health").get_json()
    assert body["status"] == "degraded"
    assert body["recorder"]["readings"] == 1
