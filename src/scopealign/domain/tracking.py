"""Real-time conversion loop.

The loop re-samples the clock and re-runs one conversion until a
cancellation token is set. It yields every new position to the caller, which
owns the display.

Example:
    >>> cancel = threading.Event()
    >>> for update in run_tracking(
    ...     TrackingDirection.EQUATORIAL_TO_MOUNT, star, offsets, state, cancel
    ... ):
    ...     show(update)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import datetime
from enum import Enum
from typing import Protocol

from scopealign.domain.calibration import CalibrationState
from scopealign.domain.exceptions import CalibrationError
from scopealign.domain.models import BASE_EPOCH_YEAR, MechanicalOffsets, Position
from scopealign.domain.time_system import civil_to_sidereal_chain
from scopealign.domain.transform import equatorial_to_mount, mount_to_equatorial

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class CancellationToken(Protocol):
    """Anything that can report cancellation, such as ``threading.Event``."""

    def is_set(self) -> bool: ...

    def wait(self, timeout: float | None = None) -> bool: ...


class TrackingDirection(Enum):
    EQUATORIAL_TO_MOUNT = "equatorial_to_mount"
    MOUNT_TO_EQUATORIAL = "mount_to_equatorial"


class TrackingState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class TrackingLoop:
    """Continuous conversion for one direction and one alignment.

    The loop holds no state between runs; each call to :meth:`run` starts
    from the position it is given.
    """

    def __init__(
        self,
        direction: TrackingDirection,
        offsets: MechanicalOffsets,
        calibration: CalibrationState | None,
        clock: Clock | None = None,
        interval_seconds: float = 0.0,
        base_epoch_year: float = BASE_EPOCH_YEAR,
    ) -> None:
        """Initialize the loop.

        Args:
            direction: Which conversion to run on every update.
            offsets: Mechanical offsets of the mount.
            calibration: Completed alignment, or None for raw pointing.
            clock: Returns the current local civil time. Uses the host
                clock if None.
            interval_seconds: Pause between updates. 0 runs back to back.
            base_epoch_year: Epoch stamped on computed sky positions.

        Raises:
            CalibrationError: If ``calibration`` is not complete.
        """
        if calibration is not None and not calibration.is_complete:
            raise CalibrationError("Alignment must be complete before tracking")

        self.direction = direction
        self.offsets = offsets
        self.calibration = calibration
        self.clock = clock or datetime.now
        self.interval_seconds = interval_seconds
        self.base_epoch_year = base_epoch_year
        self.state = TrackingState.STOPPED

    def update(self, position: Position) -> Position:
        """Run one iteration: sample the clock and convert."""
        position = civil_to_sidereal_chain(position.with_civil_time(self.clock()))
        if self.direction is TrackingDirection.EQUATORIAL_TO_MOUNT:
            return equatorial_to_mount(position, self.offsets, self.calibration)
        return mount_to_equatorial(
            position, self.offsets, self.calibration, self.base_epoch_year
        )

    def run(self, position: Position, cancel: CancellationToken) -> Iterator[Position]:
        """Yield converted positions until ``cancel`` is set."""
        self.state = TrackingState.RUNNING
        logger.info("Tracking started (%s)", self.direction.value)
        try:
            while not cancel.is_set():
                position = self.update(position)
                logger.debug(
                    "Tracking update: sidereal %.6f h, elevation %.4f, azimuth %.4f",
                    position.sidereal_time_hours,
                    position.elevation_degrees,
                    position.azimuth_degrees_ccw,
                )
                yield position
                if self.interval_seconds > 0:
                    cancel.wait(self.interval_seconds)
        finally:
            self.state = TrackingState.STOPPED
            logger.info("Tracking stopped (%s)", self.direction.value)


def run_tracking(
    direction: TrackingDirection,
    position: Position,
    offsets: MechanicalOffsets,
    calibration: CalibrationState | None,
    cancel: CancellationToken,
    clock: Clock | None = None,
    interval_seconds: float = 0.0,
) -> Iterator[Position]:
    """Convert ``position`` continuously until ``cancel`` is set.

    The returned iterator cannot be resumed once cancelled; call again to
    start a new run.

    Raises:
        CalibrationError: If ``calibration`` is not complete.
    """
    loop = TrackingLoop(
        direction,
        offsets,
        calibration,
        clock=clock,
        interval_seconds=interval_seconds,
    )
    return loop.run(position, cancel)
