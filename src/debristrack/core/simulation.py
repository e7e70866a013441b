"""Simulation clock and tracker session state.

The session holds everything the display layer needs between frames: the
current epoch, the latest rendered positions, the latest risk report and the
selected row. It owns this state explicitly; nothing is kept at module level.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from debristrack.core.catalog import OrbitalElementRecord
from debristrack.core.detection import DetectionAlgorithm
from debristrack.core.epoch import (
    CalendarTime,
    InvalidDateError,
    advance,
    format_calendar,
    from_calendar,
    parse_calendar_fields,
    to_calendar,
)
from debristrack.core.propagation import propagate
from debristrack.core.report import ConjunctionRecord, RiskReport, SortKey
from debristrack.utils.constants import (
    DEFAULT_ITERATIONS,
    DEFAULT_TOLERANCE,
    MAX_TOLERANCE,
    MIN_SPEED_EXPONENT,
    MIN_TOLERANCE,
    RISK_TABLE_ROWS,
    SECONDS_PER_DAY,
)

logger = logging.getLogger(__name__)

_DEFAULT_START = CalendarTime(2000, 1, 1)


@dataclass
class SimulationClock:
    """Simulated time driven by wall-clock frame durations.

    Attributes:
        base_epoch: Epoch the clock was last set to.
        elapsed_seconds: Simulated seconds since ``base_epoch``.
        paused: Whether frames advance simulated time.
        speed_exponent: Simulated seconds per real second, as a power of ten.
    """

    base_epoch: float
    elapsed_seconds: float = 0.0
    paused: bool = True
    speed_exponent: int = 0

    @property
    def speed_multiplier(self) -> float:
        return 10.0 ** self.speed_exponent

    @property
    def epoch(self) -> float:
        return advance(self.base_epoch, self.elapsed_seconds / SECONDS_PER_DAY)

    def tick(self, frame_seconds: float) -> float:
        """Account for one frame of ``frame_seconds`` real time and return the epoch."""
        if not self.paused:
            self.elapsed_seconds += frame_seconds * self.speed_multiplier
        return self.epoch

    def toggle(self) -> bool:
        """Flip between paused and running; returns True when now running."""
        self.paused = not self.paused
        return not self.paused

    def faster(self) -> None:
        self.speed_exponent += 1

    def slower(self) -> None:
        if self.speed_exponent > MIN_SPEED_EXPONENT:
            self.speed_exponent -= 1

    def jump_to(self, epoch: float) -> None:
        self.base_epoch = epoch
        self.elapsed_seconds = 0.0


@dataclass
class TrackerSession:
    """Control-layer state for one tracking session.

    Attributes:
        catalog: Loaded records, never modified.
        clock: Simulation clock.
        tolerance: Detection tolerance in Earth radii.
        iterations: Pass budget for the iterative scanner.
        algorithm: Detector used by :meth:`run`.
        report: Latest risk report, replaced whole by each run.
        selected: Index of the selected report row, if any.
        date_error: Set when the last date edit was rejected.
        positions: Latest rendered positions, shape (m, 3).
    """

    catalog: Sequence[OrbitalElementRecord]
    clock: SimulationClock
    tolerance: float = DEFAULT_TOLERANCE
    iterations: int = DEFAULT_ITERATIONS
    algorithm: DetectionAlgorithm = DetectionAlgorithm.OCTREE
    report: RiskReport = field(default_factory=RiskReport)
    selected: int | None = None
    date_error: bool = False
    positions: NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 3), dtype=np.float64))

    def __post_init__(self) -> None:
        self.set_tolerance(self.tolerance)
        self.set_iterations(self.iterations)

    @classmethod
    def start(cls, catalog: Sequence[OrbitalElementRecord], epoch: float | None = None) -> TrackerSession:
        """Open a paused session at ``epoch``, or at the newest record epoch."""
        if epoch is None:
            epoch = max((r.epoch for r in catalog), default=from_calendar(_DEFAULT_START))
        session = cls(catalog=tuple(catalog), clock=SimulationClock(base_epoch=epoch))
        session._refresh_positions()
        logger.info("Session started with %d records at %s", len(session.catalog), to_calendar(epoch))
        return session

    @property
    def epoch(self) -> float:
        return self.clock.epoch

    def _refresh_positions(self) -> None:
        self.positions = propagate(self.clock.epoch, self.catalog).positions

    def _clear_results(self) -> None:
        self.report = RiskReport()
        self.selected = None

    def tick(self, frame_seconds: float) -> NDArray[np.float64]:
        """Advance the clock by one frame and repropagate the rendered positions.

        While paused the epoch does not move, so the cached positions are returned.
        """
        self.clock.tick(frame_seconds)
        if self.clock.paused:
            return self.positions
        self._refresh_positions()
        return self.positions

    def set_date(
        self,
        day: str | int,
        month: str | int,
        year: str | int,
        hour: str | int = 0,
        minute: str | int = 0,
        second: str | int = 0,
    ) -> bool:
        """Jump to a calendar time typed by the user.

        Invalid input keeps the previous epoch and sets :attr:`date_error`.

        Returns:
            True if the new time was accepted.
        """
        try:
            epoch = from_calendar(parse_calendar_fields(day, month, year, hour, minute, second))
        except InvalidDateError as exc:
            logger.info("Date edit rejected: %s", exc)
            self.date_error = True
            return False

        self.date_error = False
        self.clock.jump_to(epoch)
        self._refresh_positions()
        return True

    def toggle_play(self) -> bool:
        """Pause or resume; resuming discards the report, which no longer matches the positions."""
        running = self.clock.toggle()
        if running:
            self._clear_results()
        return running

    def set_tolerance(self, tolerance: float) -> float:
        self.tolerance = min(max(float(tolerance), MIN_TOLERANCE), MAX_TOLERANCE)
        return self.tolerance

    def set_iterations(self, iterations: int) -> int:
        self.iterations = max(int(iterations), 1)
        return self.iterations

    def run(self) -> RiskReport:
        """Pause, propagate the full catalog at the current epoch and detect risks."""
        self.clock.paused = True
        result = propagate(self.clock.epoch, self.catalog)
        self.positions = result.positions
        report = self.algorithm.detect(result.states, self.tolerance, self.iterations)
        self.report = report
        self.selected = None
        return report

    def sort_report(self, key: SortKey, descending: bool = False) -> RiskReport:
        self.report = self.report.sorted(key, descending)
        self.selected = None
        return self.report

    def select(self, row: int) -> ConjunctionRecord:
        if not 0 <= row < len(self.report):
            raise IndexError(f"Row {row} out of range for report of {len(self.report)}")
        self.selected = row
        return self.report[row]

    @property
    def selected_point(self) -> NDArray[np.float64] | None:
        if self.selected is None:
            return None
        r = self.report[self.selected]
        return np.array([r.x, r.y, r.z], dtype=np.float64)

    @property
    def risky_points(self) -> NDArray[np.float64]:
        return self.report.risky_points()

    def table_rows(self, limit: int = RISK_TABLE_ROWS) -> tuple[ConjunctionRecord, ...]:
        return self.report.top(limit)

    def display_time(self) -> str:
        return format_calendar(to_calendar(self.clock.epoch))
