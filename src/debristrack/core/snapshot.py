"""Immutable copies of propagated states for detection passes.

Every detector measures separations through :meth:`StateSnapshot.distances`
so that the same pair is classified the same way whichever algorithm runs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from debristrack.core.propagation import TrackedObjectState
from debristrack.core.report import ConjunctionRecord

logger = logging.getLogger(__name__)


def check_tolerance(tolerance: float) -> float:
    """Return ``tolerance`` as a float, rejecting negative or NaN values."""
    tolerance = float(tolerance)
    if math.isnan(tolerance) or tolerance < 0.0:
        logger.error("Invalid tolerance: %r", tolerance)
        raise ValueError(f"Tolerance must be a non-negative number, got {tolerance!r}")
    return tolerance


@dataclass(frozen=True, eq=False)
class StateSnapshot:
    """Read-only arrays of catalog ids and positions.

    Attributes:
        ids: Catalog ids, shape (n,).
        xyz: Positions in Earth radii, shape (n, 3).
    """

    ids: NDArray[np.int64]
    xyz: NDArray[np.float64]

    @classmethod
    def from_states(cls, states: Sequence[TrackedObjectState] | StateSnapshot) -> StateSnapshot:
        if isinstance(states, StateSnapshot):
            return states
        ids = np.array([s.catalog_id for s in states], dtype=np.int64)
        xyz = np.array([[s.x, s.y, s.z] for s in states], dtype=np.float64).reshape(-1, 3)
        ids.setflags(write=False)
        xyz.setflags(write=False)
        return cls(ids=ids, xyz=xyz)

    def __len__(self) -> int:
        return len(self.ids)

    def distances(self, i: int, candidates: NDArray[np.intp]) -> NDArray[np.float64]:
        """Euclidean distances from point ``i`` to each index in ``candidates``."""
        d = self.xyz[candidates] - self.xyz[i]
        dx = d[:, 0]
        dy = d[:, 1]
        dz = d[:, 2]
        return np.sqrt(dx * dx + dy * dy + dz * dz)

    def closest(
        self,
        i: int,
        candidates: NDArray[np.intp],
        tolerance: float,
    ) -> tuple[float, int] | None:
        """Best ``(distance, index)`` among ``candidates`` within ``tolerance``.

        Ties on distance go to the lower catalog id. Candidates sharing the
        subject's catalog id (including ``i`` itself) are ignored.
        """
        if len(candidates) == 0:
            return None
        candidates = np.asarray(candidates, dtype=np.intp)
        keep = self.ids[candidates] != self.ids[i]
        candidates = candidates[keep]
        if len(candidates) == 0:
            return None
        dist = self.distances(i, candidates)
        within = dist <= tolerance
        if not within.any():
            return None
        candidates = candidates[within]
        dist = dist[within]
        best = np.lexsort((self.ids[candidates], dist))[0]
        return float(dist[best]), int(candidates[best])

    def beats(self, candidate: tuple[float, int], current: tuple[float, int] | None) -> bool:
        """Whether ``candidate`` (distance, index) is nearer than ``current``, id breaking ties."""
        if current is None:
            return True
        return (candidate[0], self.ids[candidate[1]]) < (current[0], self.ids[current[1]])

    def record(self, i: int, j: int, distance: float) -> ConjunctionRecord:
        x, y, z = self.xyz[i]
        return ConjunctionRecord(
            subject_id=int(self.ids[i]),
            other_id=int(self.ids[j]),
            distance=float(distance),
            x=float(x),
            y=float(y),
            z=float(z),
        )
