from datetime import datetime

import pytest

from psychrometer.models import (
    SOURCE_MANUAL,
    PsychrometricState,
    Reading,
    celsius_to_kelvin,
    fraction_to_percent,
    percent_to_fraction,
)


def test_unit_conversions():
    assert fraction_to_percent(0.5) == 50.0
    assert percent_to_fraction(50.0) == 0.5
    assert celsius_to_kelvin(0.0) == 273.15


def test_reading_defaults_to_now_and_sensor_source():
    before = datetime.now()
    reading = Reading(20.0, 15.0)
    assert reading.source == "sensor"
    assert reading.timestamp >= before


def test_reading_is_immutable():
    reading = Reading(20.0, 15.0, source=SOURCE_MANUAL)
    with pytest.raises(AttributeError):
        reading.dry_bulb = 30.0


def test_to_dict_reports_percent(make_state):
    state = make_state()
    data = state.to_dict()
    assert data["relativeHumidity"] == pytest.approx(state.relative_humidity * 100)
    assert data["timestamp"] == "2024-05-01T12:00:00"
    assert set(data) == {
        "dryBulb", "wetBulb", "relativeHumidity", "dewPoint", "absoluteHumidity",
        "partialPressure", "specificVolume", "enthalpy", "timestamp",
    }


def test_row_keeps_fraction(make_state):
    state = make_state()
    row = state.to_row()
    assert row[0] == "2024-05-01 12:00:00"
    assert row[3] == state.relative_humidity
    assert PsychrometricState.from_row(row) == state
