from datetime import datetime, timedelta


def test_insert_and_read_back(db, make_state):
    state = make_state()
    db.insert(state)
    assert db.get_counts() == 1
    assert db.get_readings() == [state]


def test_bulk_insert_empty(db):
    assert db.insert_bulk([]) == 0
    assert db.get_counts() == 0
    assert db.get_latest() is None


def test_time_range_and_order(db, make_state):
    base = datetime(2024, 5, 1, 12, 0, 0)
    states = [make_state(20.0 + i, 15.0, base + timedelta(minutes=i)) for i in range(5)]
    assert db.insert_bulk(list(reversed(states))) == 5

    rows = db.get_readings(start_time=base + timedelta(minutes=1),
                           end_time=base + timedelta(minutes=3))
    assert [r.dry_bulb for r in rows] == [21.0, 22.0, 23.0]

    assert [r.dry_bulb for r in db.get_readings(limit=2)] == [23.0, 24.0]
    assert db.get_latest().dry_bulb == 24.0


def test_delete_older_than(db, make_state):
    base = datetime(2024, 5, 1, 12, 0, 0)
    db.insert_bulk([make_state(timestamp=base + timedelta(hours=i)) for i in range(3)])
    assert db.delete_readings_older_than(base + timedelta(hours=1)) == 1
    assert db.get_counts() == 2
