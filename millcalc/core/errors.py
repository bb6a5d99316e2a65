"""
Hard errors of the calculation pipeline.

A request either succeeds (possibly with warnings) or fails with one of these.
"""
from typing import List, Dict, Any, Optional


class CalculationError(ValueError):
    """Base class for every hard error raised by the pipeline."""


class InvalidGeometry(CalculationError):
    pass


class InvalidRPM(CalculationError):
    pass


class InvalidWidth(CalculationError):
    pass


class InvalidFeed(CalculationError):
    pass


class InvalidAggressiveness(CalculationError):
    pass


class InvalidTarget(CalculationError):
    """Optimizer target deflection is not a positive number."""


class NoChiploadData(CalculationError):
    pass


class UnknownToolType(CalculationError):
    pass


class UnknownCutType(CalculationError):
    pass


class InputValidationError(CalculationError):
    """Request failed structural or cross-reference validation."""

    def __init__(self, errors: List[Dict[str, Any]], message: Optional[str] = None):
        self.errors = list(errors)
        if message is None:
            message = "; ".join(f"{e['field']}: {e['message']}" for e in self.errors) or "Invalid inputs"
        super().__init__(message)


class EntityNotFound(InputValidationError):
    """A referenced material/machine/spindle/tool id is not in the library."""


class ConfigError(ValueError):
    """Bad policy or reference-data file."""
