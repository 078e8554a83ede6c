"""Tests for the real-time tracking loop."""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta

import pytest
from conftest import prepare, rotated_mount_reading

from scopealign.domain.calibration import CalibrationState, calibrate
from scopealign.domain.exceptions import CalibrationError
from scopealign.domain.models import MechanicalOffsets, Position
from scopealign.domain.tracking import (
    TrackingDirection,
    TrackingLoop,
    TrackingState,
    run_tracking,
)


def stepping_clock(start: datetime, step: timedelta) -> Callable[[], datetime]:
    """Clock that advances by ``step`` on every reading."""
    readings = iter(start + i * step for i in range(10_000))
    return lambda: next(readings)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return stepping_clock(datetime(2024, 3, 15, 21, 30), timedelta(minutes=1))


class TestTrackingLoop:
    """Tests for TrackingLoop."""

    def test_yields_until_cancelled(
        self,
        deneb: Position,
        offsets: MechanicalOffsets,
        calibration: CalibrationState,
        clock: Callable[[], datetime],
    ) -> None:
        cancel = threading.Event()
        updates = []
        for update in run_tracking(
            TrackingDirection.EQUATORIAL_TO_MOUNT,
            prepare(deneb),
            offsets,
            calibration,
            cancel,
            clock=clock,
        ):
            updates.append(update)
            if len(updates) == 3:
                cancel.set()

        assert len(updates) == 3

    def test_updates_follow_the_clock(
        self,
        deneb: Position,
        offsets: MechanicalOffsets,
        calibration: CalibrationState,
        clock: Callable[[], datetime],
    ) -> None:
        """Each update re-samples time, so sidereal time and azimuth advance."""
        cancel = threading.Event()
        stream = run_tracking(
            TrackingDirection.EQUATORIAL_TO_MOUNT,
            prepare(deneb),
            offsets,
            calibration,
            cancel,
            clock=clock,
        )
        first = next(stream)
        second = next(stream)
        cancel.set()

        assert (first.hour, first.minute) == (21, 30)
        assert (second.hour, second.minute) == (21, 31)
        assert first.sidereal_time_hours is not None
        assert second.sidereal_time_hours is not None
        assert second.sidereal_time_hours - first.sidereal_time_hours == pytest.approx(
            1.002737908 / 60
        )
        assert second.azimuth_degrees_ccw != pytest.approx(first.azimuth_degrees_ccw)
        assert second.dec_j2000 == first.dec_j2000

    def test_first_update_matches_single_conversion(
        self,
        deneb: Position,
        offsets: MechanicalOffsets,
        calibration: CalibrationState,
        clock: Callable[[], datetime],
    ) -> None:
        """At the fixture time the loop reproduces the mount's reading."""
        cancel = threading.Event()
        prepared = prepare(deneb)
        expected = rotated_mount_reading(prepared, offsets)

        first = next(
            run_tracking(
                TrackingDirection.EQUATORIAL_TO_MOUNT,
                prepared,
                offsets,
                calibration,
                cancel,
                clock=clock,
            )
        )

        assert first.elevation_degrees == pytest.approx(
            expected.elevation_degrees, abs=1e-6
        )
        assert first.azimuth_degrees_ccw == pytest.approx(
            expected.azimuth_degrees_ccw, abs=1e-6
        )

    def test_mount_to_equatorial_direction(
        self,
        offsets: MechanicalOffsets,
        calibration: CalibrationState,
        clock: Callable[[], datetime],
    ) -> None:
        """A fixed mount reading drifts in RA as the sky turns."""
        cancel = threading.Event()
        reading = Position(
            elevation_degrees=40.0,
            azimuth_degrees_ccw=120.0,
            timezone_offset_hours=1.0,
        )
        stream = run_tracking(
            TrackingDirection.MOUNT_TO_EQUATORIAL,
            reading,
            offsets,
            calibration,
            cancel,
            clock=clock,
        )
        first = next(stream)
        second = next(stream)

        assert first.name == "unknown"
        assert first.ra_degrees_j2000 is not None
        assert second.ra_degrees_j2000 is not None
        assert second.ra_degrees_j2000 - first.ra_degrees_j2000 == pytest.approx(
            15 * 1.002737908 / 60, abs=1e-6
        )
        assert second.dec_j2000 == pytest.approx(first.dec_j2000)

    def test_state_transitions(
        self,
        deneb: Position,
        offsets: MechanicalOffsets,
        calibration: CalibrationState,
        clock: Callable[[], datetime],
    ) -> None:
        cancel = threading.Event()
        loop = TrackingLoop(
            TrackingDirection.EQUATORIAL_TO_MOUNT, offsets, calibration, clock=clock
        )
        assert loop.state is TrackingState.STOPPED

        stream = loop.run(prepare(deneb), cancel)
        next(stream)
        assert loop.state is TrackingState.RUNNING

        cancel.set()
        with pytest.raises(StopIteration):
            next(stream)
        assert loop.state is TrackingState.STOPPED

    def test_restarts_cleanly(
        self,
        deneb: Position,
        offsets: MechanicalOffsets,
        calibration: CalibrationState,
        clock: Callable[[], datetime],
    ) -> None:
        """A cancelled run is finished; a new run starts from scratch."""
        cancel = threading.Event()
        loop = TrackingLoop(
            TrackingDirection.EQUATORIAL_TO_MOUNT, offsets, calibration, clock=clock
        )
        cancel.set()
        assert list(loop.run(prepare(deneb), cancel)) == []

        cancel.clear()
        stream = loop.run(prepare(deneb), cancel)
        assert next(stream).azimuth_degrees_ccw is not None
        assert loop.state is TrackingState.RUNNING
        stream.close()
        assert loop.state is TrackingState.STOPPED

    def test_interval_wait_is_cut_short_by_cancel(
        self,
        deneb: Position,
        offsets: MechanicalOffsets,
        calibration: CalibrationState,
        clock: Callable[[], datetime],
    ) -> None:
        cancel = threading.Event()
        stream = run_tracking(
            TrackingDirection.EQUATORIAL_TO_MOUNT,
            prepare(deneb),
            offsets,
            calibration,
            cancel,
            clock=clock,
            interval_seconds=3600,
        )
        next(stream)
        cancel.set()
        assert list(stream) == []

    def test_incomplete_calibration_raises(
        self, vega: Position, offsets: MechanicalOffsets
    ) -> None:
        state = calibrate(1, rotated_mount_reading(prepare(vega), offsets), offsets)
        with pytest.raises(CalibrationError, match="complete"):
            TrackingLoop(TrackingDirection.EQUATORIAL_TO_MOUNT, offsets, state)

    def test_host_clock_by_default(
        self, offsets: MechanicalOffsets, calibration: CalibrationState
    ) -> None:
        loop = TrackingLoop(TrackingDirection.MOUNT_TO_EQUATORIAL, offsets, calibration)
        before = datetime.now()
        assert loop.clock() >= before
