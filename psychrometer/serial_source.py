"""Serial psychrometer source.

The firmware prints one comma separated line per reading. Depending on the
revision a line carries:

    dry,wet
    dry,wet,rh%,dew,abs
    dry,wet,rh%,dew,abs,pp,sv,h

Only the two temperatures are used; everything else is recomputed. Debug
chatter printed by the firmware between readings is skipped.
"""

import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime

import serial

from .engine import validate_relative_humidity
from .errors import InvalidInput
from .models import SOURCE_SENSOR, Reading, percent_to_fraction

logger = logging.getLogger(__name__)

FIRMWARE_FIELDS = ("relative_humidity", "dew_point", "absolute_humidity",
                   "partial_pressure", "specific_volume", "enthalpy")
FIELD_COUNTS = (2, 5, 8)


@dataclass(frozen=True)
class RawLine:
    dry_bulb: float
    wet_bulb: float
    firmware: dict | None = None    # values the firmware computed itself

    def to_reading(self, timestamp: datetime | None = None) -> Reading:
        return Reading(
            dry_bulb=self.dry_bulb,
            wet_bulb=self.wet_bulb,
            timestamp=timestamp or datetime.now(),
            source=SOURCE_SENSOR,
        )


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def parse_line(line: str) -> RawLine | None:
    """Parse one sensor line.

    Returns None for blank lines and firmware chatter, raises InvalidInput for
    lines that start like data but are malformed.
    """
    line = line.strip()
    if not line:
        return None
    fields = [f.strip() for f in line.split(",")]
    if not _is_number(fields[0]):
        return None
    if len(fields) not in FIELD_COUNTS:
        raise InvalidInput(f"expected {FIELD_COUNTS} fields, got {len(fields)}: {line!r}")
    try:
        values = [float(f) for f in fields]
    except ValueError:
        raise InvalidInput(f"non-numeric field in {line!r}")

    firmware = None
    if len(values) > 2:
        firmware = dict(zip(FIRMWARE_FIELDS, values[2:]))
        firmware["relative_humidity"] = validate_relative_humidity(
            percent_to_fraction(firmware["relative_humidity"]))
    return RawLine(values[0], values[1], firmware)


class SerialSensor:
    """Psychrometer attached to a serial port."""

    def __init__(self, port: str, baudrate: int = 9600, timeout: float = 2.0):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self._serial: serial.Serial | None = None

    def init(self) -> bool:
        """Open the serial port."""
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.timeout,
            )
            logger.info("Connected to psychrometer on %s @ %d baud", self.port, self.baudrate)
            return True
        except serial.SerialException as e:
            logger.error("Failed to open %s: %s", self.port, e)
            self._serial = None
            return False

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def read_line(self) -> str | None:
        """Next line from the port, or None on timeout or a lost port."""
        if not self.is_open:
            return None
        try:
            raw = self._serial.readline()
        except serial.SerialException as e:
            logger.error("Serial error on %s: %s", self.port, e)
            self.cleanup()
            return None
        if not raw:
            return None
        return raw.decode("ascii", errors="ignore").strip()

    def cleanup(self) -> None:
        if self._serial is not None and self._serial.is_open:
            self._serial.close()
            logger.info("Serial connection closed")
        self._serial = None


class DummySensor:
    """Simulated psychrometer for running without hardware."""

    def __init__(self, base_dry: float = 24.0, base_wet: float = 17.0,
                 interval: float = 2.0, seed: int | None = None):
        self.dry = base_dry
        self.wet = base_wet
        self.interval = interval
        self._rng = random.Random(seed)
        self._open = False

    def init(self) -> bool:
        logger.info("Using DummySensor (no hardware)")
        self._open = True
        return True

    @property
    def is_open(self) -> bool:
        return self._open

    def read_line(self) -> str | None:
        if not self._open:
            return None
        if self.interval:
            time.sleep(self.interval)
        self.dry += self._rng.uniform(-0.05, 0.05)
        self.wet = min(self.dry, self.wet + self._rng.uniform(-0.05, 0.05))
        return f"{self.dry:.2f},{self.wet:.2f}"

    def cleanup(self) -> None:
        self._open = False
