"""Shared pytest fixtures for scopealign tests."""

from collections.abc import Iterator

import pytest

from scopealign.config import get_settings
from scopealign.domain.calibration import CalibrationState, calibrate
from scopealign.domain.models import MechanicalOffsets, Position
from scopealign.domain.precession import precess_to_base_epoch
from scopealign.domain.time_system import civil_to_sidereal_chain
from scopealign.domain.transform import wrap_degrees

# Mount frame used by the synthetic observations: the sky frame turned
# about the polar axis by this many degrees.
MOUNT_ROTATION_DEG = 37.0

OBSERVATION_TIME = {
    "year": 2024.0,
    "month": 3.0,
    "day": 15.0,
    "hour": 21.0,
    "minute": 30.0,
    "second": 0.0,
    "timezone_offset_hours": 1.0,
}


def make_star(
    name: str,
    ra: tuple[float, float, float],
    dec: tuple[float, float],
    **overrides: float,
) -> Position:
    """Build an epoch-2000 star observed at OBSERVATION_TIME."""
    fields = {
        "name": name,
        "ra_hours": ra[0],
        "ra_minutes": ra[1],
        "ra_seconds": ra[2],
        "dec_degrees": dec[0],
        "dec_minutes": dec[1],
        "coordinate_epoch_year": 2000.0,
        **OBSERVATION_TIME,
        **overrides,
    }
    return Position(**fields)


def prepare(position: Position) -> Position:
    """Fill the J2000 and sidereal fields."""
    return civil_to_sidereal_chain(precess_to_base_epoch(position))


def rotated_mount_reading(
    position: Position,
    offsets: MechanicalOffsets | None = None,
    rotation_deg: float = MOUNT_ROTATION_DEG,
) -> Position:
    """Give a prepared star the reading of a mount turned by ``rotation_deg``.

    Only the Z3 offset is honoured; Z1/Z2 must be zero for an exact reading.
    """
    offsets = offsets or MechanicalOffsets()
    assert position.ra_degrees_j2000 is not None
    assert position.dec_j2000 is not None
    assert position.sidereal_time_hours is not None
    azimuth = wrap_degrees(
        position.ra_degrees_j2000 - 15 * position.sidereal_time_hours + rotation_deg
    )
    return position.model_copy(
        update={
            "elevation_degrees": position.dec_j2000 - offsets.z3,
            "azimuth_degrees_ccw": azimuth,
        }
    )


@pytest.fixture
def fresh_settings() -> Iterator[None]:
    """Settings are cached; reload them for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def vega() -> Position:
    return make_star("Vega", (18, 36, 56), (38, 47))


@pytest.fixture
def arcturus() -> Position:
    return make_star("Arcturus", (14, 15, 40), (19, 11))


@pytest.fixture
def deneb() -> Position:
    return make_star("Deneb", (20, 41, 26), (45, 16.8))


@pytest.fixture
def offsets() -> MechanicalOffsets:
    """Mount with only an elevation zero-point error."""
    return MechanicalOffsets(z3=0.75)


@pytest.fixture
def calibration(
    vega: Position,
    arcturus: Position,
    offsets: MechanicalOffsets,
) -> CalibrationState:
    """Complete alignment from Vega and Arcturus on the rotated mount."""
    state = calibrate(1, rotated_mount_reading(prepare(vega), offsets), offsets)
    second = rotated_mount_reading(prepare(arcturus), offsets)
    return calibrate(2, second, offsets, state)
