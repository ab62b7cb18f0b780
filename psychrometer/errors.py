"""Typed rejections raised by the psychrometric engine."""


class PsychrometricError(Exception):
    """Base class for every reading the engine refuses to compute."""
    kind = "psychrometric_error"

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": str(self)}


class InvalidInput(PsychrometricError):
    """Non-finite, out-of-range or physically impossible temperatures."""
    kind = "invalid_input"


class DomainError(PsychrometricError):
    """A correlation was evaluated outside its valid domain."""
    kind = "domain_error"


class ConvergenceError(PsychrometricError):
    """The dew point solver hit its iteration cap."""
    kind = "convergence_error"

    def __init__(self, message: str, iterations: int, last_estimate: float):
        super().__init__(message)
        self.iterations = iterations
        self.last_estimate = last_estimate
