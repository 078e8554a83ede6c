"""Domain models for positions, mount offsets and universal time.

Angles are in degrees unless a name says otherwise. Azimuth is stored
increasing counter-clockwise; use :func:`azimuth_cw_to_ccw` and
:func:`azimuth_ccw_to_cw` when reading from or writing to a clockwise scale.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field

# Azimuth reported when the direction points at the zenith or nadir
AZIMUTH_UNDEFINED = 1000.0

# Epoch the engine works in once coordinates have been precessed
BASE_EPOCH_YEAR = 2000.0

# coordinate_epoch_year value meaning "coordinates not entered yet"
EPOCH_NOT_SET = 0.0


def azimuth_cw_to_ccw(azimuth_cw: float) -> float:
    """Convert a clockwise-increasing azimuth to the internal CCW scale."""
    return 360.0 - azimuth_cw


def azimuth_ccw_to_cw(azimuth_ccw: float) -> float:
    """Convert an internal CCW azimuth to the clockwise scale.

    The undefined-azimuth sentinel passes through unchanged.
    """
    if azimuth_ccw == AZIMUTH_UNDEFINED:
        return AZIMUTH_UNDEFINED
    return 360.0 - azimuth_ccw


class MechanicalOffsets(BaseModel, frozen=True):
    """Fabrication errors of the mount, fixed for an alignment session.

    The corrections are applied as first-order terms, so they are only
    meaningful for small angles.
    """

    z1: float = Field(
        default=0.0,
        gt=-10,
        lt=10,
        description="Elevation-axis perpendicularity error (degrees)",
    )
    z2: float = Field(
        default=0.0,
        gt=-10,
        lt=10,
        description="Optical-axis error orthogonal to elevation (degrees)",
    )
    z3: float = Field(
        default=0.0,
        gt=-10,
        lt=10,
        description="Elevation readout zero-point correction (degrees)",
    )


class Position(BaseModel, frozen=True):
    """Snapshot of one sky/mount state at one instant.

    Derived fields are ``None`` until the step that computes them has run
    (:func:`~scopealign.domain.precession.precess_to_base_epoch` for the
    J2000 fields, :func:`~scopealign.domain.time_system.civil_to_sidereal_chain`
    for the Julian and sidereal fields).
    """

    name: str = "unknown"

    # Equatorial, as entered. Both declination parts carry the sign.
    ra_hours: float = 0.0
    ra_minutes: float = 0.0
    ra_seconds: float = 0.0
    dec_degrees: float = 0.0
    dec_minutes: float = 0.0
    coordinate_epoch_year: float = EPOCH_NOT_SET
    ra_degrees_j2000: float | None = None
    dec_j2000: float | None = None

    # Mount frame
    elevation_degrees: float = 0.0
    azimuth_degrees_ccw: float = 0.0

    # Civil time; timezone_offset_hours is added to get UT
    hour: float = 0.0
    minute: float = 0.0
    second: float = 0.0
    year: float = 2000.0
    month: float = 1.0
    day: float = 1.0
    timezone_offset_hours: float = 0.0
    julian_date: float | None = None
    julian_date_0h_ut: float | None = None
    sidereal_time_hours: float | None = None

    @property
    def azimuth_degrees_cw(self) -> float:
        """Azimuth on the clockwise-increasing display scale."""
        return azimuth_ccw_to_cw(self.azimuth_degrees_ccw)

    def with_civil_time(self, moment: datetime) -> Position:
        """Return a copy whose civil time fields are taken from ``moment``."""
        return self.model_copy(
            update={
                "hour": float(moment.hour),
                "minute": float(moment.minute),
                "second": moment.second + moment.microsecond / 1e6,
                "year": float(moment.year),
                "month": float(moment.month),
                "day": float(moment.day),
            }
        )


@dataclass(frozen=True)
class UniversalTime:
    """Calendar date and time of day in UT."""

    year: float
    month: float
    day: float
    hour: float
    minute: float
    second: float

    @property
    def decimal_hours(self) -> float:
        return self.hour + self.minute / 60 + self.second / 3600
