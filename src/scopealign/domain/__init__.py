"""Domain layer: Pure alignment and conversion math with no I/O dependencies."""

from scopealign.domain.calibration import CalibrationState, calibrate
from scopealign.domain.exceptions import (
    CalibrationError,
    ConfigurationError,
    DegenerateGeometryWarning,
    ScopeAlignError,
)
from scopealign.domain.models import (
    AZIMUTH_UNDEFINED,
    MechanicalOffsets,
    Position,
    UniversalTime,
)
from scopealign.domain.precession import precess, precess_to_base_epoch
from scopealign.domain.time_system import civil_to_sidereal_chain
from scopealign.domain.tracking import TrackingDirection, TrackingLoop, run_tracking
from scopealign.domain.transform import equatorial_to_mount, mount_to_equatorial

__all__ = [
    "AZIMUTH_UNDEFINED",
    "CalibrationError",
    "CalibrationState",
    "ConfigurationError",
    "DegenerateGeometryWarning",
    "MechanicalOffsets",
    "Position",
    "ScopeAlignError",
    "TrackingDirection",
    "TrackingLoop",
    "UniversalTime",
    "calibrate",
    "civil_to_sidereal_chain",
    "equatorial_to_mount",
    "mount_to_equatorial",
    "precess",
    "precess_to_base_epoch",
    "run_tracking",
]
