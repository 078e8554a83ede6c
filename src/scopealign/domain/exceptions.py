"""Domain exceptions for scopealign."""


class ScopeAlignError(Exception):
    """Base exception for all scopealign errors."""

    pass


class CalibrationError(ScopeAlignError):
    """Raised when calibration input is invalid or calibration is incomplete."""

    pass


class ConfigurationError(ScopeAlignError):
    """Raised when configuration is invalid or missing."""

    pass


class DegenerateGeometryWarning(UserWarning):
    """Issued when calibration stars are too close together or antipodal.

    The calibration is still returned, but its matrices are built from an
    epsilon-guarded basis and give poor conversions.
    """

    pass
