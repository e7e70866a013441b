"""Iterative nearest-neighbour scanner.

Slower alternative to the octree for small catalogs and for cross-checking
it. Points are ordered along the x axis; every pass widens the window of
neighbours each still-active point is compared against, doubling it each
time. A point retires as soon as the next unseen neighbour on both sides is
farther along x than its current best distance (or the tolerance), since no
later candidate can then beat it.
"""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from debristrack.core.propagation import TrackedObjectState
from debristrack.core.report import ConjunctionRecord
from debristrack.core.snapshot import StateSnapshot, check_tolerance
from debristrack.utils.constants import DEFAULT_ITERATIONS

logger = logging.getLogger(__name__)


def find_local_optimum(
    states: Sequence[TrackedObjectState] | StateSnapshot,
    tolerance: float,
    max_iterations: int = DEFAULT_ITERATIONS,
) -> list[ConjunctionRecord]:
    """Find each object's nearest neighbour within ``tolerance`` by repeated passes.

    With a single pass only the immediate neighbours along x are compared,
    which gives a local optimum. After ``ceil(log2(n)) + 1`` passes every
    candidate has been considered and the result matches the octree's.

    A pass that improves no distance does not end the scan: a nearer
    neighbour may still sit beyond the current window. Scanning stops once
    every point has retired, meaning the next unseen neighbour on each side
    is farther along x than its best distance (or ``tolerance``), or when
    ``max_iterations`` passes have run.

    Args:
        states: Propagated states (or a snapshot of them).
        tolerance: Maximum separation in Earth radii.
        max_iterations: Upper bound on refinement passes.

    Returns:
        One record per qualifying object, in index order.

    Raises:
        ValueError: If ``tolerance`` is negative or ``max_iterations`` < 1.
    """
    tolerance = check_tolerance(tolerance)
    if max_iterations < 1:
        logger.error("Invalid iteration budget: %r", max_iterations)
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

    snapshot = StateSnapshot.from_states(states)
    n = len(snapshot)
    if n < 2:
        return []

    order = np.argsort(snapshot.xyz[:, 0], kind="stable")
    xs = snapshot.xyz[order, 0]

    best: list[tuple[float, int] | None] = [None] * n
    seen = np.zeros(n, dtype=np.intp)  # window half-width already compared, per sorted position
    active = np.ones(n, dtype=bool)

    for iteration in range(max_iterations):
        window = 1 << iteration
        improved = 0

        for pos in np.flatnonzero(active).tolist():
            i = int(order[pos])
            reach = int(seen[pos])
            lo = max(0, pos - window)
            hi = min(n, pos + window + 1)

            fresh = np.concatenate((order[lo:max(lo, pos - reach)], order[pos + reach + 1:hi]))
            found = snapshot.closest(i, fresh, tolerance)
            if found is not None and snapshot.beats(found, best[i]):
                best[i] = found
                improved += 1
            seen[pos] = window

            bound = tolerance if best[i] is None else best[i][0]
            left_done = lo == 0 or xs[pos] - xs[lo - 1] > bound
            right_done = hi == n or xs[hi] - xs[pos] > bound
            if left_done and right_done:
                active[pos] = False

        remaining = int(active.sum())
        logger.debug("Iterative pass %d: window %d, %d improved, %d still active",
                     iteration + 1, window, improved, remaining)
        if remaining == 0:
            break

    records = [
        snapshot.record(i, found[1], found[0])
        for i, found in enumerate(best)
        if found is not None
    ]
    logger.info("Iterative: %d of %d objects within %.5f", len(records), n, tolerance)
    return records
