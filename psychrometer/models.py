from dataclasses import dataclass, field
from datetime import datetime


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SOURCE_SENSOR = "sensor"
SOURCE_MANUAL = "manual"


def fraction_to_percent(value: float) -> float:
    """Relative humidity fraction (0-1) to percent (0-100)."""
    return value * 100.0


def percent_to_fraction(value: float) -> float:
    """Relative humidity percent (0-100) to fraction (0-1)."""
    return value / 100.0


def celsius_to_kelvin(temperature: float) -> float:
    return temperature + 273.15


@dataclass(frozen=True)
class Reading:
    """Raw dry-bulb/wet-bulb pair as delivered by the sensor or a user."""
    dry_bulb: float
    wet_bulb: float
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = SOURCE_SENSOR


@dataclass(frozen=True)
class PsychrometricState:
    """Complete psychrometric state derived from a single reading.

    relative_humidity is kept as a fraction (0-1); to_dict() is where it
    becomes a percent for the dashboard.
    """
    dry_bulb: float
    wet_bulb: float
    relative_humidity: float        # fraction, 0-1
    dew_point: float                # degC
    absolute_humidity: float        # kg water / kg dry air
    partial_pressure: float         # Pa
    specific_volume: float          # m3 / kg dry air
    enthalpy: float                 # kJ / kg dry air
    timestamp: datetime

    @property
    def relative_humidity_percent(self) -> float:
        return fraction_to_percent(self.relative_humidity)

    def to_dict(self) -> dict:
        return {
            "dryBulb": self.dry_bulb,
            "wetBulb": self.wet_bulb,
            "relativeHumidity": self.relative_humidity_percent,
            "dewPoint": self.dew_point,
            "absoluteHumidity": self.absolute_humidity,
            "partialPressure": self.partial_pressure,
            "specificVolume": self.specific_volume,
            "enthalpy": self.enthalpy,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_row(self) -> tuple:
        return (
            self.timestamp.strftime(TIMESTAMP_FORMAT),
            self.dry_bulb,
            self.wet_bulb,
            self.relative_humidity,
            self.dew_point,
            self.absolute_humidity,
            self.partial_pressure,
            self.specific_volume,
            self.enthalpy,
        )

    @classmethod
    def from_row(cls, row) -> "PsychrometricState":
        """Rebuild a state from a `measurements` row (column order of to_row)."""
        ts, dry, wet, rh, dew, ah, pp, sv, h = row
        return cls(
            dry_bulb=dry,
            wet_bulb=wet,
            relative_humidity=rh,
            dew_point=dew,
            absolute_humidity=ah,
            partial_pressure=pp,
            specific_volume=sv,
            enthalpy=h,
            timestamp=datetime.strptime(ts, TIMESTAMP_FORMAT),
        )
