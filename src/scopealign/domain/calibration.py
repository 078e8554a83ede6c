"""Two-star alignment of the mount frame against the sky.

Each calibration slot pairs the direction of a star in the equatorial frame
with the direction the mount reads when pointed at it. A third, synthetic
direction (the normalized cross product of the first two) completes a basis
in each frame, and the 3x3 matrix mapping one basis onto the other is the
alignment.

Example:
    >>> state = calibrate(1, vega, offsets)
    >>> state = calibrate(2, arcturus, offsets, state)
    >>> state.is_complete
    True
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from scopealign.domain.exceptions import CalibrationError, DegenerateGeometryWarning
from scopealign.domain.linalg import NEXT_TO_NOTHING, determinant_3x3, invert_3x3
from scopealign.domain.models import MechanicalOffsets, Position

logger = logging.getLogger(__name__)

CALIBRATION_SLOTS = (1, 2)

DEFAULT_DEGENERACY_TOLERANCE = 1e-6

Matrix = NDArray[np.float64]


def _frozen(array: NDArray[np.float64]) -> NDArray[np.float64]:
    array = np.array(array, dtype=np.float64)
    array.setflags(write=False)
    return array


# ──────────────────────────────────────────────────────────────────────────
# Direction-cosine vectors
# ──────────────────────────────────────────────────────────────────────────


def equatorial_vector(position: Position) -> NDArray[np.float64]:
    """Unit vector of a sky position relative to the local meridian.

    The longitude is ``ra - 15 * sidereal_time``, the negated hour angle.
    """
    if position.ra_degrees_j2000 is None or position.dec_j2000 is None:
        raise CalibrationError(f"{position.name!r} has no J2000 coordinates")
    if position.sidereal_time_hours is None:
        raise CalibrationError(f"{position.name!r} has no sidereal time")

    dec_rad = math.radians(position.dec_j2000)
    lon_rad = math.radians(
        position.ra_degrees_j2000 - 15 * position.sidereal_time_hours
    )
    return np.array(
        [
            math.cos(dec_rad) * math.cos(lon_rad),
            math.cos(dec_rad) * math.sin(lon_rad),
            math.sin(dec_rad),
        ],
        dtype=np.float64,
    )


def mount_vector(
    azimuth_ccw_rad: float,
    elevation_rad: float,
    offsets: MechanicalOffsets,
) -> NDArray[np.float64]:
    """Direction of a mount reading with the Z1/Z2 errors folded in.

    ``elevation_rad`` must already include Z3. The Z1/Z2 terms are first-order
    only; see :func:`uncorrected_mount_vector` for the reverse direction.
    """
    cf, sf = math.cos(azimuth_ccw_rad), math.sin(azimuth_ccw_rad)
    ch, sh = math.cos(elevation_rad), math.sin(elevation_rad)
    z1 = math.radians(offsets.z1)
    z2 = math.radians(offsets.z2)
    return np.array(
        [
            cf * ch - sf * z2 + sf * ch * z1,
            sf * ch + cf * z2 - cf * sh * z1,
            sh,
        ],
        dtype=np.float64,
    )


def uncorrected_mount_vector(
    azimuth_ccw_rad: float,
    elevation_rad: float,
    offsets: MechanicalOffsets,
) -> NDArray[np.float64]:
    """First-order inverse of :func:`mount_vector`: removes the Z1/Z2 errors."""
    cf, sf = math.cos(azimuth_ccw_rad), math.sin(azimuth_ccw_rad)
    ch, sh = math.cos(elevation_rad), math.sin(elevation_rad)
    z1 = math.radians(offsets.z1)
    z2 = math.radians(offsets.z2)
    return np.array(
        [
            cf * ch + sf * z2 - sf * ch * z1,
            sf * ch - cf * z2 + cf * sh * z1,
            sh,
        ],
        dtype=np.float64,
    )


def mount_reading_vector(
    position: Position,
    offsets: MechanicalOffsets,
) -> NDArray[np.float64]:
    """Vector for the elevation/azimuth reading stored in ``position``."""
    return mount_vector(
        math.radians(position.azimuth_degrees_ccw),
        math.radians(position.elevation_degrees + offsets.z3),
        offsets,
    )


def _normalized_cross(
    a: NDArray[np.float64],
    b: NDArray[np.float64],
) -> tuple[NDArray[np.float64], float]:
    cross = np.cross(a, b)
    magnitude = float(np.sqrt(np.sum(cross**2)))
    if magnitude == 0:
        return cross / NEXT_TO_NOTHING, 0.0
    return cross / magnitude, magnitude


# ──────────────────────────────────────────────────────────────────────────
# Calibration state
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, eq=False)
class CalibrationState:
    """Alignment built up from the two calibration slots.

    ``sky_basis`` and ``mount_basis`` hold one direction per column: slot 1,
    slot 2 and the synthetic third axis. Columns of unfilled slots are zero.
    The matrices are ``None`` until both slots are filled. Instances are
    never modified; :func:`calibrate` returns a new one.
    """

    sky_basis: NDArray[np.float64] = field(
        default_factory=lambda: _frozen(np.zeros((3, 3)))
    )
    mount_basis: NDArray[np.float64] = field(
        default_factory=lambda: _frozen(np.zeros((3, 3)))
    )
    filled_slots: frozenset[int] = frozenset()
    sky_to_mount: NDArray[np.float64] | None = None
    mount_to_sky: NDArray[np.float64] | None = None
    degenerate: bool = False

    @property
    def is_complete(self) -> bool:
        return self.sky_to_mount is not None and self.mount_to_sky is not None


def _solve(
    sky_basis: NDArray[np.float64],
    mount_basis: NDArray[np.float64],
    tolerance: float,
) -> tuple[Matrix, Matrix, Matrix, Matrix, bool]:
    """Complete both bases and solve for the two alignment matrices."""
    sky_basis = sky_basis.copy()
    mount_basis = mount_basis.copy()

    sky_basis[:, 2], sky_cross = _normalized_cross(sky_basis[:, 0], sky_basis[:, 1])
    mount_basis[:, 2], mount_cross = _normalized_cross(
        mount_basis[:, 0], mount_basis[:, 1]
    )

    sky_to_mount = mount_basis @ invert_3x3(sky_basis)
    mount_to_sky = invert_3x3(sky_to_mount)

    degenerate = (
        sky_cross < tolerance
        or mount_cross < tolerance
        or abs(determinant_3x3(sky_to_mount)) < tolerance
    )
    return sky_basis, mount_basis, sky_to_mount, mount_to_sky, degenerate


def calibrate(
    slot: int,
    position: Position,
    offsets: MechanicalOffsets,
    state: CalibrationState | None = None,
    tolerance: float = DEFAULT_DEGENERACY_TOLERANCE,
) -> CalibrationState:
    """Record one calibration star and return the updated alignment.

    Args:
        slot: Calibration slot, 1 or 2
        position: Star with J2000 coordinates, sidereal time and mount reading
        offsets: Mechanical offsets of the mount
        state: Alignment to extend; a new one is started if None
        tolerance: Smallest cross-product magnitude (sine of the star
            separation in either frame) accepted as well-conditioned

    Returns:
        New CalibrationState. Matrices are set once both slots are filled.

    Raises:
        CalibrationError: If ``slot`` is not 1 or 2, or ``position`` lacks
            its J2000 or sidereal fields

    Warns:
        DegenerateGeometryWarning: If the two stars are (nearly) the same
            direction or opposite directions in either frame
    """
    if slot not in CALIBRATION_SLOTS:
        raise CalibrationError(f"Calibration slot must be 1 or 2, got {slot}")

    state = state or CalibrationState()
    column = slot - 1

    sky_basis = np.array(state.sky_basis)
    mount_basis = np.array(state.mount_basis)
    sky_basis[:, column] = equatorial_vector(position)
    mount_basis[:, column] = mount_reading_vector(position, offsets)
    filled = state.filled_slots | {slot}

    logger.debug(
        "Calibration slot %d set from %r (elevation %.4f, azimuth %.4f)",
        slot,
        position.name,
        position.elevation_degrees,
        position.azimuth_degrees_ccw,
    )

    if filled != set(CALIBRATION_SLOTS):
        return CalibrationState(
            sky_basis=_frozen(sky_basis),
            mount_basis=_frozen(mount_basis),
            filled_slots=frozenset(filled),
        )

    sky_basis, mount_basis, sky_to_mount, mount_to_sky, degenerate = _solve(
        sky_basis, mount_basis, tolerance
    )
    if degenerate:
        message = (
            "Calibration stars are too close together or opposite each other; "
            "conversions will be unreliable. Choose well-separated stars."
        )
        logger.warning(message)
        warnings.warn(message, DegenerateGeometryWarning, stacklevel=2)
    else:
        logger.debug("Alignment complete")

    return CalibrationState(
        sky_basis=_frozen(sky_basis),
        mount_basis=_frozen(mount_basis),
        filled_slots=frozenset(filled),
        sky_to_mount=_frozen(sky_to_mount),
        mount_to_sky=_frozen(mount_to_sky),
        degenerate=degenerate,
    )
