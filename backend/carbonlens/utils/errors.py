"""
Custom exceptions for CarbonLens.

Numerically undefined outcomes (missing market cap, empty portfolios, zero
intensity differential) are not errors: they propagate as ``None`` and are
skipped. Exceptions are reserved for structurally invalid input.
"""

from typing import Optional, Dict, Any


class CarbonLensError(Exception):
    """Base exception for all CarbonLens errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for callers that report errors as data."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(CarbonLensError):
    """Analysis configuration is structurally invalid (e.g. unknown methodology)."""
    pass


# ============================================================================
# Validation Errors
# ============================================================================

class ValidationError(CarbonLensError):
    """Input data validation failed."""
    pass


class DatasetError(ValidationError):
    """Company / observation collections are inconsistent."""
    pass


class DuplicateObservationError(DatasetError):
    """More than one observation for the same (company, date) pair."""
    pass


class UnknownCompanyError(DatasetError):
    """Observation references a company that is not in the dataset."""
    pass
