"""Psychrometric calculations for a dry-bulb/wet-bulb psychrometer.

Every function here is pure: no I/O, no logging, no shared state. The module
level functions work on plain floats (degC, Pa); PsychrometricEngine adds input
validation and assembles the full PsychrometricState record.
"""

import math
from dataclasses import dataclass

from .errors import ConvergenceError, DomainError, InvalidInput, PsychrometricError
from .models import PsychrometricState, Reading, celsius_to_kelvin


P_ATM = 101325.0                # Pa, fixed atmospheric pressure
EPSILON = 0.622                 # molar mass ratio water / dry air
PSYCHROMETER_CONSTANT = 0.000662  # 1/K, ventilated psychrometer
R_DRY_AIR = 287.055             # J/(kg K)

# Hyland-Wexler (ASHRAE) saturation pressure correlation, C1..C7
WATER_COEFFICIENTS = (-5800.2206, 1.3914993, -0.048640239, 4.1764768e-5,
                      -1.4452093e-8, 0.0, 6.5459673)
ICE_COEFFICIENTS = (-5674.5359, 6.3925247, -9.677843e-3, 6.2215701e-7,
                    2.0747825e-9, -9.484024e-13, 4.1635019)

MIN_SATURATION_TEMPERATURE = -100.0
MAX_SATURATION_TEMPERATURE = 200.0

DEFAULT_MAX_ITERATIONS = 100
DEFAULT_TOLERANCE = 0.001


def _coefficients(t: float) -> tuple:
    if not math.isfinite(t) or not MIN_SATURATION_TEMPERATURE <= t <= MAX_SATURATION_TEMPERATURE:
        raise DomainError(
            f"saturation pressure undefined at {t} degC "
            f"(valid {MIN_SATURATION_TEMPERATURE} to {MAX_SATURATION_TEMPERATURE} degC)"
        )
    return WATER_COEFFICIENTS if t >= 0 else ICE_COEFFICIENTS


def saturation_pressure(t: float) -> float:
    """Saturation vapour pressure in Pa at t degC (over ice below 0 degC)."""
    c1, c2, c3, c4, c5, c6, c7 = _coefficients(t)
    tk = celsius_to_kelvin(t)
    return math.exp(c1 / tk + c2 + c3 * tk + c4 * tk ** 2 + c5 * tk ** 3
                    + c6 * tk ** 4 + c7 * math.log(tk))


def saturation_pressure_slope(t: float) -> float:
    """dPws/dT in Pa/K at t degC."""
    c1, _, c3, c4, c5, c6, c7 = _coefficients(t)
    tk = celsius_to_kelvin(t)
    dlog = -c1 / tk ** 2 + c3 + 2 * c4 * tk + 3 * c5 * tk ** 2 + 4 * c6 * tk ** 3 + c7 / tk
    return saturation_pressure(t) * dlog


def humidity_ratio(tdb: float, twb: float) -> float:
    """Humidity ratio (kg/kg) from the psychrometer equation."""
    pws_wet = saturation_pressure(twb)
    if pws_wet >= P_ATM:
        raise DomainError(f"wet bulb {twb} degC is at or above the boiling point")
    return EPSILON * (pws_wet - P_ATM * (tdb - twb) * PSYCHROMETER_CONSTANT) / (P_ATM - pws_wet)


def vapour_pressure(tdb: float, twb: float) -> float:
    """Actual partial pressure of water vapour in Pa."""
    w = humidity_ratio(tdb, twb)
    pw = P_ATM * w / (EPSILON + w)
    if not pw > 0:
        raise DomainError(
            f"wet-bulb depression {tdb - twb:.2f} K too large at {tdb} degC: "
            f"vapour pressure {pw:.1f} Pa"
        )
    return pw


def relative_humidity(tdb: float, twb: float) -> float:
    """Relative humidity as a fraction; may stray marginally outside [0, 1]."""
    return vapour_pressure(tdb, twb) / saturation_pressure(tdb)


def clamp_fraction(value: float) -> float:
    return min(1.0, max(0.0, value))


def dew_point_from_vapour_pressure(pw: float, start: float,
                                   max_iterations: int = DEFAULT_MAX_ITERATIONS,
                                   tolerance: float = DEFAULT_TOLERANCE) -> float:
    """Solve saturation_pressure(td) == pw by Newton iteration from start.

    Evaluated points bracket the root; a Newton step leaving the bracket is
    replaced by bisection. The water and ice curves do not meet exactly at
    0 degC, so a pw in that gap has no exact root and ends as a bracket
    narrower than tolerance around 0 degC.
    """
    if not (math.isfinite(pw) and pw > 0):
        raise DomainError(f"no dew point for vapour pressure {pw} Pa")
    lo = hi = None
    td = start
    for _ in range(max_iterations):
        excess = saturation_pressure(td) - pw
        if excess == 0:
            return td
        if excess > 0:
            hi = td
        else:
            lo = td
        bracketed = lo is not None and hi is not None
        if bracketed and hi - lo < tolerance:
            return (lo + hi) / 2
        step = td - excess / saturation_pressure_slope(td)
        if bracketed and not lo < step < hi:
            step = (lo + hi) / 2
        if abs(step - td) < tolerance:
            return step
        td = step
    raise ConvergenceError(
        f"dew point did not converge within {max_iterations} iterations",
        iterations=max_iterations,
        last_estimate=td,
    )


def dew_point(tdb: float, twb: float,
              max_iterations: int = DEFAULT_MAX_ITERATIONS,
              tolerance: float = DEFAULT_TOLERANCE) -> float:
    td = dew_point_from_vapour_pressure(vapour_pressure(tdb, twb), tdb,
                                        max_iterations, tolerance)
    # rounding can leave a saturated reading a hair above the dry bulb
    return min(td, tdb)


def absolute_humidity(pw: float) -> float:
    return EPSILON * pw / (P_ATM - pw)


def specific_volume(tdb: float, w: float) -> float:
    """m3 per kg of dry air."""
    return R_DRY_AIR * celsius_to_kelvin(tdb) * (1 + 1.6078 * w) / P_ATM


def enthalpy(tdb: float, w: float) -> float:
    """kJ per kg of dry air."""
    return 1.006 * tdb + w * (2501 + 1.805 * tdb)


def humidity_ratio_from_rh(t: float, rh: float) -> float:
    """Humidity ratio at temperature t and relative humidity fraction rh."""
    pw = rh * saturation_pressure(t)
    return EPSILON * pw / (P_ATM - pw)


@dataclass(frozen=True)
class ValidationLimits:
    """Plausible sensor range in degC."""
    min_temperature: float = -50.0
    max_temperature: float = 100.0


def validate_relative_humidity(fraction: float) -> float:
    """Check a relative humidity reported directly by a sensor."""
    if not math.isfinite(fraction) or not 0.0 <= fraction <= 1.0:
        raise InvalidInput(f"relative humidity {fraction} outside [0, 1]")
    return fraction


@dataclass(frozen=True)
class Outcome:
    """Result value for callers that prefer not to handle exceptions."""
    state: PsychrometricState | None = None
    error: PsychrometricError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PsychrometricEngine:
    limits: ValidationLimits = ValidationLimits()
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    tolerance: float = DEFAULT_TOLERANCE

    def validate(self, reading: Reading) -> None:
        for name, value in (("dry bulb", reading.dry_bulb), ("wet bulb", reading.wet_bulb)):
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidInput(f"{name} temperature {value!r} is not a finite number")
            if not self.limits.min_temperature <= value <= self.limits.max_temperature:
                raise InvalidInput(
                    f"{name} temperature {value} outside "
                    f"[{self.limits.min_temperature}, {self.limits.max_temperature}] degC"
                )
        if reading.wet_bulb > reading.dry_bulb:
            raise InvalidInput(
                f"wet bulb {reading.wet_bulb} degC exceeds dry bulb {reading.dry_bulb} degC"
            )

    def compute(self, reading: Reading) -> PsychrometricState:
        """Derive the full state, or raise a PsychrometricError subclass."""
        self.validate(reading)
        tdb, twb = float(reading.dry_bulb), float(reading.wet_bulb)
        pw = vapour_pressure(tdb, twb)
        rh = clamp_fraction(pw / saturation_pressure(tdb))
        td = min(dew_point_from_vapour_pressure(pw, tdb, self.max_iterations, self.tolerance), tdb)
        w = absolute_humidity(pw)
        return PsychrometricState(
            dry_bulb=tdb,
            wet_bulb=twb,
            relative_humidity=rh,
            dew_point=td,
            absolute_humidity=w,
            partial_pressure=pw,
            specific_volume=specific_volume(tdb, w),
            enthalpy=enthalpy(tdb, w),
            timestamp=reading.timestamp,
        )

    def evaluate(self, reading: Reading) -> Outcome:
        try:
            return Outcome(state=self.compute(reading))
        except PsychrometricError as e:
            return Outcome(error=e)
