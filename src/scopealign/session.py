"""Alignment session: one initialize cycle and the conversions that use it."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from scopealign.config import Settings, get_settings
from scopealign.domain.calibration import CalibrationState, calibrate
from scopealign.domain.exceptions import CalibrationError
from scopealign.domain.models import MechanicalOffsets, Position
from scopealign.domain.precession import precess_to_base_epoch
from scopealign.domain.time_system import civil_to_sidereal_chain
from scopealign.domain.tracking import (
    CancellationToken,
    Clock,
    TrackingDirection,
    TrackingLoop,
)
from scopealign.domain.transform import equatorial_to_mount, mount_to_equatorial

logger = logging.getLogger(__name__)


class AlignmentSession:
    """Owns the mount offsets and the alignment of one session.

    Positions passed in only need their entered fields (RA/Dec parts and
    epoch, or the mount reading, plus civil time); the session fills in the
    J2000 and sidereal fields before using them.

    Example:
        >>> session = AlignmentSession(MechanicalOffsets(z3=0.5))
        >>> session.calibrate(1, vega)
        >>> session.calibrate(2, arcturus)
        >>> session.equatorial_to_mount(deneb).elevation_degrees
    """

    def __init__(
        self,
        offsets: MechanicalOffsets | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.offsets = offsets or MechanicalOffsets()
        self.settings = settings or get_settings()
        self._state = CalibrationState()

    @property
    def calibration(self) -> CalibrationState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state.is_complete

    def reset(self) -> None:
        """Discard the alignment and start a new initialize cycle."""
        logger.info("Alignment reset")
        self._state = CalibrationState()

    def prepare_equatorial(self, position: Position) -> Position:
        """Precess to the base epoch and compute sidereal time."""
        position = precess_to_base_epoch(position, self.settings.base_epoch_year)
        return civil_to_sidereal_chain(position)

    def prepare_mount(self, position: Position) -> Position:
        """Compute sidereal time for a mount reading."""
        return civil_to_sidereal_chain(position)

    def calibrate(self, slot: int, position: Position) -> CalibrationState:
        """Record calibration star ``slot`` (1 or 2) and return the alignment."""
        self._state = calibrate(
            slot,
            self.prepare_equatorial(position),
            self.offsets,
            self._state,
            tolerance=self.settings.degeneracy_tolerance,
        )
        return self._state

    def _require_initialized(self) -> CalibrationState:
        if not self.is_initialized:
            raise CalibrationError(
                "Initialize with two calibration stars before converting"
            )
        return self._state

    def equatorial_to_mount(self, position: Position) -> Position:
        state = self._require_initialized()
        return equatorial_to_mount(
            self.prepare_equatorial(position), self.offsets, state
        )

    def mount_to_equatorial(self, position: Position) -> Position:
        state = self._require_initialized()
        return mount_to_equatorial(
            self.prepare_mount(position),
            self.offsets,
            state,
            self.settings.base_epoch_year,
        )

    def track(
        self,
        direction: TrackingDirection,
        position: Position,
        cancel: CancellationToken,
        clock: Clock | None = None,
    ) -> Iterator[Position]:
        """Start a real-time loop with the current alignment.

        A later :meth:`calibrate` or :meth:`reset` does not affect a loop
        already started.
        """
        state = self._require_initialized()
        if direction is TrackingDirection.EQUATORIAL_TO_MOUNT:
            position = precess_to_base_epoch(position, self.settings.base_epoch_year)
        loop = TrackingLoop(
            direction,
            self.offsets,
            state,
            clock=clock,
            interval_seconds=self.settings.tracking_interval_seconds,
            base_epoch_year=self.settings.base_epoch_year,
        )
        return loop.run(position, cancel)
