from datetime import datetime

import pytest

from psychrometer.database import ReadingDatabase
from psychrometer.engine import PsychrometricEngine
from psychrometer.models import Reading


@pytest.fixture
def engine():
    return PsychrometricEngine()


@pytest.fixture
def db(tmp_path):
    return ReadingDatabase(str(tmp_path / "measurements.db"))


@pytest.fixture
def make_state(engine):
    def make(dry=25.0, wet=18.0, timestamp=None):
        reading = Reading(dry, wet, timestamp=timestamp or datetime(2024, 5, 1, 12, 0, 0))
        return engine.compute(reading)
    return make
