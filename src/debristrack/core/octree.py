"""Octree proximity index for conjunction detection.

Nodes are stored in an arena and addressed by integer handle. A node is
either a leaf holding point indices or an interior node with exactly eight
children; the children's cubes tile the parent's cube. A coordinate lying on
a splitting plane belongs to the lower octant, so each point lands in exactly
one leaf.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from debristrack.core.propagation import TrackedObjectState
from debristrack.core.report import ConjunctionRecord
from debristrack.core.snapshot import StateSnapshot, check_tolerance
from debristrack.utils.constants import OCTREE_CAPACITY, OCTREE_MAX_DEPTH

logger = logging.getLogger(__name__)

_NO_PARENT = -1


def _slack(bound: float) -> float:
    # Box distances and point distances round differently; never prune a tie.
    return bound + bound * 1e-12 + 1e-15


class Octree:
    """Spatial partition over a snapshot of object positions.

    Build one per detection request with :meth:`build`; the tree is never
    updated after construction.

    Args:
        snapshot: Positions to index.
        capacity: Points a leaf may hold before it splits.
        max_depth: Depth at which splitting stops regardless of occupancy.
    """

    def __init__(
        self,
        snapshot: StateSnapshot,
        capacity: int = OCTREE_CAPACITY,
        max_depth: int = OCTREE_MAX_DEPTH,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")

        self.snapshot = snapshot
        self.capacity = capacity
        self.max_depth = max_depth

        self._centers: list[tuple[float, float, float]] = []
        self._halves: list[float] = []
        self._parents: list[int] = []
        self._depths: list[int] = []
        self._children: list[list[int] | None] = []
        self._members: list[NDArray[np.intp] | None] = []
        self._leaf_of = np.full(len(snapshot), _NO_PARENT, dtype=np.intp)

    @classmethod
    def build(
        cls,
        states: Sequence[TrackedObjectState] | StateSnapshot,
        capacity: int = OCTREE_CAPACITY,
        max_depth: int = OCTREE_MAX_DEPTH,
    ) -> Octree:
        """Index ``states`` in a cube centered at the origin that encloses them all.

        Args:
            states: Propagated states (or an existing snapshot of them).
            capacity: Points a leaf may hold before it splits.
            max_depth: Depth at which splitting stops.

        Returns:
            The built tree.
        """
        snapshot = StateSnapshot.from_states(states)
        tree = cls(snapshot, capacity=capacity, max_depth=max_depth)

        n = len(snapshot)
        half = float(np.abs(snapshot.xyz).max()) if n else 0.0
        if half == 0.0:
            half = 1.0

        root = tree._new_node((0.0, 0.0, 0.0), half, _NO_PARENT, 0, np.arange(n, dtype=np.intp))
        pending = [root]
        while pending:
            handle = pending.pop()
            members = tree._members[handle]
            if len(members) <= capacity or tree._depths[handle] >= max_depth:
                tree._leaf_of[members] = handle
                continue
            pending.extend(tree._split(handle))

        logger.debug("Built octree over %d points: %d nodes, depth %d",
                     n, tree.node_count, tree.depth)
        return tree

    def _new_node(
        self,
        center: tuple[float, float, float],
        half: float,
        parent: int,
        depth: int,
        members: NDArray[np.intp],
    ) -> int:
        self._centers.append(center)
        self._halves.append(half)
        self._parents.append(parent)
        self._depths.append(depth)
        self._children.append(None)
        self._members.append(members)
        return len(self._centers) - 1

    def _split(self, handle: int) -> list[int]:
        cx, cy, cz = self._centers[handle]
        quarter = self._halves[handle] / 2.0
        members = self._members[handle]
        pts = self.snapshot.xyz[members]

        codes = (
            (pts[:, 0] > cx).astype(np.intp)
            | ((pts[:, 1] > cy).astype(np.intp) << 1)
            | ((pts[:, 2] > cz).astype(np.intp) << 2)
        )

        depth = self._depths[handle] + 1
        children = []
        for code in range(8):
            center = (
                cx + (quarter if code & 1 else -quarter),
                cy + (quarter if code & 2 else -quarter),
                cz + (quarter if code & 4 else -quarter),
            )
            children.append(self._new_node(center, quarter, handle, depth, members[codes == code]))

        self._children[handle] = children
        self._members[handle] = None
        return children

    # --- introspection ---

    def __len__(self) -> int:
        return len(self.snapshot)

    @property
    def root(self) -> int:
        return 0

    @property
    def node_count(self) -> int:
        return len(self._centers)

    @property
    def depth(self) -> int:
        return max(self._depths)

    def is_leaf(self, handle: int) -> bool:
        return self._children[handle] is None

    def children(self, handle: int) -> list[int]:
        return list(self._children[handle] or ())

    def points(self, handle: int) -> list[int]:
        """Point indices stored directly in ``handle`` (empty for interior nodes)."""
        members = self._members[handle]
        return [] if members is None else members.tolist()

    def parent(self, handle: int) -> int | None:
        p = self._parents[handle]
        return None if p == _NO_PARENT else p

    def leaf_of(self, index: int) -> int:
        return int(self._leaf_of[index])

    def bounds(self, handle: int) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Lower and upper corners of the node's cube."""
        center = np.array(self._centers[handle], dtype=np.float64)
        half = self._halves[handle]
        return center - half, center + half

    # --- queries ---

    def _box_distance(self, handle: int, p: NDArray[np.float64]) -> float:
        cx, cy, cz = self._centers[handle]
        h = self._halves[handle]
        dx = max(abs(p[0] - cx) - h, 0.0)
        dy = max(abs(p[1] - cy) - h, 0.0)
        dz = max(abs(p[2] - cz) - h, 0.0)
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def _encloses_ball(self, handle: int, p: NDArray[np.float64], radius: float) -> bool:
        cx, cy, cz = self._centers[handle]
        limit = self._halves[handle] - _slack(radius)
        return abs(p[0] - cx) < limit and abs(p[1] - cy) < limit and abs(p[2] - cz) < limit

    def _search(
        self,
        start: int,
        i: int,
        tolerance: float,
        best: tuple[float, int] | None,
    ) -> tuple[float, int] | None:
        p = self.snapshot.xyz[i]
        stack = [start]
        while stack:
            handle = stack.pop()
            bound = tolerance if best is None else best[0]
            if self._box_distance(handle, p) > _slack(bound):
                continue
            children = self._children[handle]
            if children is None:
                members = self._members[handle]
                if len(members) == 0:
                    continue
                found = self.snapshot.closest(i, members, tolerance)
                if found is not None and self.snapshot.beats(found, best):
                    best = found
            else:
                # Nearest child ends up on top of the stack.
                stack.extend(sorted(children, key=lambda c: self._box_distance(c, p), reverse=True))
        return best

    def nearest(self, index: int, tolerance: float) -> tuple[float, int] | None:
        """Closest other point to ``index`` within ``tolerance``.

        Starts in the point's own leaf and climbs toward the root, visiting a
        sibling region only while its cube could still hold a point no
        farther than the best candidate so far.

        Returns:
            ``(distance, other_index)``, or None if no point qualifies.
        """
        p = self.snapshot.xyz[index]
        leaf = int(self._leaf_of[index])
        best = self.snapshot.closest(index, self._members[leaf], tolerance)

        came_from = leaf
        node = self._parents[leaf]
        while node != _NO_PARENT:
            bound = tolerance if best is None else best[0]
            if self._encloses_ball(came_from, p, bound):
                break
            for child in self._children[node]:
                if child != came_from:
                    best = self._search(child, index, tolerance, best)
            came_from = node
            node = self._parents[node]
        return best

    def find_risky_debris(self, tolerance: float) -> list[ConjunctionRecord]:
        """Report every object whose nearest neighbour lies within ``tolerance``.

        Args:
            tolerance: Maximum separation in Earth radii.

        Returns:
            One record per qualifying object, in index order (unsorted by distance).

        Raises:
            ValueError: If ``tolerance`` is negative.
        """
        tolerance = check_tolerance(tolerance)
        records = []
        for i in range(len(self.snapshot)):
            best = self.nearest(i, tolerance)
            if best is not None:
                records.append(self.snapshot.record(i, best[1], best[0]))

        logger.info("Octree: %d of %d objects within %.5f", len(records), len(self.snapshot), tolerance)
        return records
