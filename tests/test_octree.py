"""Tests for the octree proximity index."""
from __future__ import annotations

import numpy as np
import pytest

from debristrack.core.octree import Octree
from debristrack.core.propagation import TrackedObjectState
from debristrack.core.snapshot import StateSnapshot


def _states(points, ids=None) -> list[TrackedObjectState]:
    if ids is None:
        ids = range(1, len(points) + 1)
    return [TrackedObjectState(int(i), float(x), float(y), float(z)) for i, (x, y, z) in zip(ids, points)]


def _brute_force(states, tolerance) -> dict[int, tuple[int, float]]:
    snapshot = StateSnapshot.from_states(states)
    everyone = np.arange(len(snapshot))
    result = {}
    for i in range(len(snapshot)):
        found = snapshot.closest(i, everyone, tolerance)
        if found is not None:
            result[int(snapshot.ids[i])] = (int(snapshot.ids[found[1]]), found[0])
    return result


@pytest.fixture
def cloud() -> list[TrackedObjectState]:
    """400 points scattered through a shell between LEO and GEO-ish radii."""
    rng = np.random.default_rng(42)
    directions = rng.normal(size=(400, 3))
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)
    radii = rng.uniform(1.05, 1.3, size=(400, 1))
    return _states(directions * radii, ids=rng.permutation(np.arange(1000, 1400)))


def test_two_close_points():
    """Two points 1e-4 apart pair with each other; the distant third does not qualify."""
    states = _states([(0, 0, 0), (0, 0, 0.0001), (10, 10, 10)], ids=[1, 2, 3])
    records = Octree.build(states).find_risky_debris(0.01)

    assert len(records) == 2
    pairs = {(r.subject_id, r.other_id) for r in records}
    assert pairs == {(1, 2), (2, 1)}
    for r in records:
        assert r.distance == pytest.approx(0.0001)


def test_record_carries_subject_position():
    states = _states([(0.5, 0.25, -0.125), (0.5, 0.25, -0.1249)], ids=[7, 8])
    records = Octree.build(states).find_risky_debris(0.001)
    subject = next(r for r in records if r.subject_id == 7)
    assert (subject.x, subject.y, subject.z) == (0.5, 0.25, -0.125)


def test_no_self_pairing(cloud):
    records = Octree.build(cloud).find_risky_debris(0.2)
    assert records
    assert all(r.subject_id != r.other_id for r in records)


def test_matches_brute_force(cloud):
    tolerance = 0.08
    records = Octree.build(cloud).find_risky_debris(tolerance)
    found = {r.subject_id: (r.other_id, r.distance) for r in records}
    assert found == _brute_force(cloud, tolerance)
    assert all(r.distance <= tolerance for r in records)


@pytest.mark.parametrize("capacity", [1, 2, 8])
def test_capacity_does_not_change_result(cloud, capacity):
    reference = Octree.build(cloud).find_risky_debris(0.05)
    records = Octree.build(cloud, capacity=capacity).find_risky_debris(0.05)
    assert records == reference


def test_tie_goes_to_lower_id():
    states = _states([(0, 0, 0), (0.5, 0, 0), (-0.5, 0, 0)], ids=[10, 7, 3])
    records = {r.subject_id: r for r in Octree.build(states).find_risky_debris(1.0)}
    assert records[10].other_id == 3
    assert records[7].other_id == 10
    assert records[3].other_id == 10


def test_tolerance_is_inclusive():
    states = _states([(0, 0, 0), (0.5, 0, 0)], ids=[1, 2])
    assert len(Octree.build(states).find_risky_debris(0.5)) == 2
    assert Octree.build(states).find_risky_debris(0.4999) == []


def test_duplicate_catalog_ids_never_pair():
    states = _states([(0, 0, 0), (0, 0, 0)], ids=[5, 5])
    assert Octree.build(states).find_risky_debris(0.1) == []


def test_coincident_points_hit_depth_cap():
    """Coincident points cannot be separated; the depth cap stops splitting."""
    n = 25
    states = _states([(0, 0, 0)] * n, ids=range(100, 100 + n))
    tree = Octree.build(states, capacity=1, max_depth=12)

    assert tree.depth == 12
    leaf = tree.leaf_of(0)
    assert sorted(tree.points(leaf)) == list(range(n))

    records = tree.find_risky_debris(0.001)
    assert len(records) == n
    assert all(r.distance == 0.0 for r in records)
    others = {r.subject_id: r.other_id for r in records}
    assert others[100] == 101
    assert all(others[i] == 100 for i in range(101, 100 + n))


def test_empty_and_single():
    assert Octree.build([]).find_risky_debris(0.1) == []
    assert Octree.build(_states([(1, 2, 3)])).find_risky_debris(100.0) == []


def test_negative_tolerance_rejected():
    tree = Octree.build(_states([(0, 0, 0), (0, 0, 1)]))
    with pytest.raises(ValueError, match="Tolerance"):
        tree.find_risky_debris(-0.1)


def test_invalid_parameters_rejected():
    with pytest.raises(ValueError):
        Octree.build([], capacity=0)
    with pytest.raises(ValueError):
        Octree.build([], max_depth=-1)


class TestStructure:
    def test_root_encloses_all_points(self, cloud):
        tree = Octree.build(cloud)
        lo, hi = tree.bounds(tree.root)
        xyz = tree.snapshot.xyz
        assert np.all(xyz >= lo) and np.all(xyz <= hi)
        np.testing.assert_allclose(lo, -hi)
        assert hi[0] == pytest.approx(np.abs(xyz).max())

    def test_all_at_origin_gets_unit_cube(self):
        tree = Octree.build(_states([(0, 0, 0)]))
        lo, hi = tree.bounds(tree.root)
        np.testing.assert_array_equal(hi, [1.0, 1.0, 1.0])

    def test_every_point_in_exactly_one_leaf(self, cloud):
        tree = Octree.build(cloud)
        seen = []
        for handle in range(tree.node_count):
            if tree.is_leaf(handle):
                assert len(tree.points(handle)) <= tree.capacity
                seen.extend(tree.points(handle))
                for p in tree.points(handle):
                    assert tree.leaf_of(p) == handle
        assert sorted(seen) == list(range(len(cloud)))

    def test_points_inside_their_leaf(self, cloud):
        tree = Octree.build(cloud)
        for i, point in enumerate(tree.snapshot.xyz):
            lo, hi = tree.bounds(tree.leaf_of(i))
            assert np.all(point >= lo) and np.all(point <= hi)

    def test_children_tile_parent(self, cloud):
        tree = Octree.build(cloud)
        for handle in range(tree.node_count):
            if tree.is_leaf(handle):
                continue
            assert tree.points(handle) == []
            children = tree.children(handle)
            assert len(children) == 8
            plo, phi = tree.bounds(handle)
            mid = (plo + phi) / 2
            corners = set()
            for child in children:
                assert tree.parent(child) == handle
                clo, chi = tree.bounds(child)
                np.testing.assert_allclose(chi - clo, (phi - plo) / 2)
                corners.add(tuple(bool(v) for v in np.isclose(clo, mid)))
            assert len(corners) == 8

    def test_point_on_splitting_plane_goes_low(self):
        states = _states([(0, 0, 0), (1, 1, 1), (0, 0.5, -0.5)], ids=[1, 2, 3])
        tree = Octree.build(states)
        octants = tree.children(tree.root)
        assert tree.leaf_of(0) == octants[0]
        assert tree.leaf_of(1) == octants[7]
        # y above the plane, x on it, z below
        assert tree.leaf_of(2) == octants[2]
