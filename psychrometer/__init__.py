"""Psychrometer logging dashboard."""

from .config import Config
from .engine import Outcome, PsychrometricEngine, ValidationLimits
from .errors import ConvergenceError, DomainError, InvalidInput, PsychrometricError
from .models import PsychrometricState, Reading

# Serial, MQTT and Flask pieces are imported from their modules when needed

__all__ = [
    "Config",
    "ConvergenceError",
    "DomainError",
    "InvalidInput",
    "Outcome",
    "PsychrometricEngine",
    "PsychrometricError",
    "PsychrometricState",
    "Reading",
    "ValidationLimits",
]
