"""Conversion between equatorial and mount-frame coordinates.

Both directions vectorize the input, rotate it with a calibration matrix and
decode the resulting direction back into two angles. Without a calibration
the identity matrix is used (raw pointing).
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

from scopealign.domain.calibration import (
    CalibrationState,
    equatorial_vector,
    mount_reading_vector,
    uncorrected_mount_vector,
)
from scopealign.domain.exceptions import CalibrationError
from scopealign.domain.models import (
    AZIMUTH_UNDEFINED,
    BASE_EPOCH_YEAR,
    MechanicalOffsets,
    Position,
)

_IDENTITY = np.eye(3)


def wrap_degrees(angle_deg: float) -> float:
    """Reduce an angle into [0, 360)."""
    while angle_deg >= 360:
        angle_deg -= 360
    while angle_deg < 0:
        angle_deg += 360
    # A tiny negative angle rounds up to exactly 360 above
    if angle_deg >= 360:
        angle_deg = 0.0
    return angle_deg


def decode_angles(vector: NDArray[np.float64]) -> tuple[float, float]:
    """Decode a direction vector into (elevation_deg, azimuth_deg).

    The vector need not be normalized. Azimuth increases from +x towards +y
    and lies in [0, 360). Along the z axis azimuth has no meaning and
    :data:`AZIMUTH_UNDEFINED` is returned in its place, with elevation
    +90 or -90 (0 for the zero vector).
    """
    x, y, z = (float(c) for c in vector)
    horizontal = math.sqrt(x * x + y * y)

    if horizontal == 0:
        if z > 0:
            return 90.0, AZIMUTH_UNDEFINED
        if z < 0:
            return -90.0, AZIMUTH_UNDEFINED
        return 0.0, AZIMUTH_UNDEFINED

    elevation = math.degrees(math.atan(z / horizontal))

    if x == 0:
        azimuth = 90.0 if y > 0 else 270.0
    else:
        azimuth = math.degrees(math.atan(y / x))
        if x < 0:
            azimuth += 180

    return elevation, wrap_degrees(azimuth)


def decode_ra_dec(
    ra_deg: float,
    dec_deg: float,
) -> tuple[float, float, float, float, float]:
    """Split RA/Dec degrees into (ra_h, ra_m, ra_s, dec_d, dec_m).

    Hours, minutes and whole degrees are truncated toward zero; the
    declination minutes carry the sign of the declination.
    """
    ra_hours_decimal = ra_deg / 15
    ra_h = float(int(ra_hours_decimal))
    ra_m = float(int((ra_hours_decimal - ra_h) * 60))
    ra_s = (ra_hours_decimal - ra_h - ra_m / 60) * 3600

    dec_d = float(int(dec_deg))
    dec_m = (dec_deg - dec_d) * 60
    return ra_h, ra_m, ra_s, dec_d, dec_m


def _matrix(
    calibration: CalibrationState | None,
    attribute: str,
) -> NDArray[np.float64]:
    if calibration is None:
        return _IDENTITY
    matrix = getattr(calibration, attribute)
    if matrix is None:
        raise CalibrationError(
            "Alignment incomplete: both calibration stars must be set before converting"
        )
    return matrix


def equatorial_to_mount(
    position: Position,
    offsets: MechanicalOffsets,
    calibration: CalibrationState | None,
) -> Position:
    """Compute the mount reading that points at the sky position of ``position``.

    ``position`` needs its J2000 and sidereal fields. The returned copy has
    ``elevation_degrees`` and ``azimuth_degrees_ccw`` set; azimuth is
    :data:`AZIMUTH_UNDEFINED` at the mount pole.

    Raises:
        CalibrationError: If ``calibration`` is incomplete
    """
    sky_to_mount = _matrix(calibration, "sky_to_mount")
    elevation, azimuth = decode_angles(sky_to_mount @ equatorial_vector(position))

    # At the pole the azimuth is arbitrary; undo the offsets about azimuth 0
    azimuth_rad = 0.0 if azimuth == AZIMUTH_UNDEFINED else math.radians(azimuth)
    corrected = uncorrected_mount_vector(azimuth_rad, math.radians(elevation), offsets)
    elevation, azimuth = decode_angles(corrected)

    return position.model_copy(
        update={
            "elevation_degrees": elevation - offsets.z3,
            "azimuth_degrees_ccw": azimuth,
        }
    )


def mount_to_equatorial(
    position: Position,
    offsets: MechanicalOffsets,
    calibration: CalibrationState | None,
    base_epoch_year: float = BASE_EPOCH_YEAR,
) -> Position:
    """Compute the sky position the mount reading of ``position`` points at.

    ``position`` needs its sidereal field. The returned copy is named
    "unknown", carries J2000 RA/Dec plus their h/m/s and d/m parts, and is
    stamped with ``base_epoch_year``. At the celestial pole the hour angle is
    taken as zero, so RA equals the local sidereal time.

    Raises:
        CalibrationError: If ``calibration`` is incomplete
    """
    if position.sidereal_time_hours is None:
        raise CalibrationError(f"{position.name!r} has no sidereal time")

    mount_to_sky = _matrix(calibration, "mount_to_sky")
    vector = mount_to_sky @ mount_reading_vector(position, offsets)
    dec, longitude = decode_angles(vector)
    if longitude == AZIMUTH_UNDEFINED:
        longitude = 0.0

    ra = wrap_degrees(longitude + 15 * position.sidereal_time_hours)
    ra_h, ra_m, ra_s, dec_d, dec_m = decode_ra_dec(ra, dec)

    return position.model_copy(
        update={
            "name": "unknown",
            "ra_degrees_j2000": ra,
            "dec_j2000": dec,
            "coordinate_epoch_year": base_epoch_year,
            "ra_hours": ra_h,
            "ra_minutes": ra_m,
            "ra_seconds": ra_s,
            "dec_degrees": dec_d,
            "dec_minutes": dec_m,
        }
    )
