"""Conjunction detection strategies.

Three detectors share one contract: given states, a tolerance and an
iteration budget, return every object whose nearest neighbour lies within
the tolerance, one record per object.
"""
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from enum import Enum
from typing import Sequence

from scipy.spatial import cKDTree

from debristrack.core.iterative import find_local_optimum
from debristrack.core.octree import Octree
from debristrack.core.propagation import TrackedObjectState
from debristrack.core.report import ConjunctionRecord, RiskReport
from debristrack.core.snapshot import StateSnapshot, check_tolerance
from debristrack.utils.constants import DEFAULT_ITERATIONS

logger = logging.getLogger(__name__)


def find_nearest_kdtree(
    states: Sequence[TrackedObjectState] | StateSnapshot,
    tolerance: float,
) -> list[ConjunctionRecord]:
    """Reference detector built on scipy's cKDTree.

    Candidate neighbours come from a ball query; the final choice uses the
    same distance and tie rules as the other detectors.

    Args:
        states: Propagated states (or a snapshot of them).
        tolerance: Maximum separation in Earth radii.

    Returns:
        One record per qualifying object, in index order.
    """
    tolerance = check_tolerance(tolerance)
    snapshot = StateSnapshot.from_states(states)
    if len(snapshot) < 2:
        return []

    tree = cKDTree(snapshot.xyz)
    # Slightly wider ball so boundary pairs are decided by StateSnapshot.distances.
    neighbours = tree.query_ball_point(snapshot.xyz, r=tolerance * (1 + 1e-9) + 1e-15)

    records = []
    for i, candidates in enumerate(neighbours):
        found = snapshot.closest(i, candidates, tolerance)
        if found is not None:
            records.append(snapshot.record(i, found[1], found[0]))

    logger.info("KD-tree: %d of %d objects within %.5f", len(records), len(snapshot), tolerance)
    return records


class DetectionAlgorithm(Enum):
    """Selectable risk detection algorithm."""

    OCTREE = "octree"
    ITERATIVE = "iterative"
    KDTREE = "kdtree"

    def detect(
        self,
        states: Sequence[TrackedObjectState] | StateSnapshot,
        tolerance: float,
        iterations: int = DEFAULT_ITERATIONS,
    ) -> RiskReport:
        """Run this detector over ``states``.

        ``iterations`` only affects the iterative scanner.
        """
        snapshot = StateSnapshot.from_states(states)
        logger.debug("Running %s detection over %d objects (tolerance %.5f)",
                     self.value, len(snapshot), tolerance)

        if self is DetectionAlgorithm.OCTREE:
            records = Octree.build(snapshot).find_risky_debris(tolerance)
        elif self is DetectionAlgorithm.ITERATIVE:
            records = find_local_optimum(snapshot, tolerance, iterations)
        else:
            records = find_nearest_kdtree(snapshot, tolerance)
        return RiskReport(records)


def detect(
    states: Sequence[TrackedObjectState] | StateSnapshot,
    tolerance: float,
    iterations: int = DEFAULT_ITERATIONS,
    algorithm: DetectionAlgorithm | str = DetectionAlgorithm.OCTREE,
) -> RiskReport:
    """Detect risky objects with the chosen algorithm (name or enum member)."""
    return DetectionAlgorithm(algorithm).detect(states, tolerance, iterations)


def detect_async(
    executor: Executor,
    states: Sequence[TrackedObjectState] | StateSnapshot,
    tolerance: float,
    iterations: int = DEFAULT_ITERATIONS,
    algorithm: DetectionAlgorithm | str = DetectionAlgorithm.OCTREE,
) -> Future[RiskReport]:
    """Submit a detection pass to ``executor``.

    The states are copied into a snapshot before submission, so the caller
    may keep propagating while the pass runs. To abandon a pass, drop the
    future (or cancel it if it has not started).
    """
    snapshot = StateSnapshot.from_states(states)
    algorithm = DetectionAlgorithm(algorithm)
    return executor.submit(algorithm.detect, snapshot, tolerance, iterations)
