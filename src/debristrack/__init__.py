"""
debristrack — Orbital debris tracking and conjunction risk detection.

Propagates a catalog of orbital element records to any simulation epoch
and finds objects whose nearest neighbour sits within a chosen distance,
using an octree or an iterative scanner that agree on the result.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from debristrack.core.epoch import (
    CalendarTime, InvalidDateError, advance, from_calendar, to_calendar,
)
from debristrack.core.catalog import ObjectClass, OrbitalElementRecord, parse_catalog
from debristrack.core.propagation import (
    propagate, propagate_record, PropagationDegeneracy, PropagationResult, TrackedObjectState,
)
from debristrack.core.report import ConjunctionRecord, RiskReport, SortKey
from debristrack.core.octree import Octree
from debristrack.core.iterative import find_local_optimum
from debristrack.core.detection import DetectionAlgorithm, detect, detect_async, find_nearest_kdtree
from debristrack.core.simulation import SimulationClock, TrackerSession

__all__ = [
    "__version__",
    "CalendarTime",
    "InvalidDateError",
    "advance",
    "from_calendar",
    "to_calendar",
    "ObjectClass",
    "OrbitalElementRecord",
    "parse_catalog",
    "propagate",
    "propagate_record",
    "PropagationDegeneracy",
    "PropagationResult",
    "TrackedObjectState",
    "ConjunctionRecord",
    "RiskReport",
    "SortKey",
    "Octree",
    "find_local_optimum",
    "DetectionAlgorithm",
    "detect",
    "detect_async",
    "find_nearest_kdtree",
    "SimulationClock",
    "TrackerSession",
]
