from __future__ import annotations

"""Physical constants and default tracker settings.

Distances handed to the detectors are in Earth radii unless noted otherwise.
"""

# --- Earth parameters (WGS-72, the SGP4 gravity model) ---
EARTH_RADIUS_KM: float = 6378.135
"""Equatorial radius of Earth in km; one normalized distance unit."""

EARTH_MU_KM3_S2: float = 398600.8
"""Earth gravitational parameter (GM) in km³/s²."""

# --- Time scale ---
SECONDS_PER_DAY: float = 86400.0

MINUTES_PER_DAY: float = 1440.0

DS50_JULIAN_DATE: float = 2433281.5
"""Julian date of 1949-12-31 00:00:00 UTC, epoch zero."""

MIN_SUPPORTED_YEAR: int = 1950
"""Earliest calendar year accepted when setting the simulation time."""

MAX_SUPPORTED_YEAR: int = 2100
"""Latest calendar year accepted when setting the simulation time."""

# --- Risk detection defaults ---
DEFAULT_TOLERANCE: float = 0.001
"""Default separation (Earth radii) below which a pair counts as risky."""

MIN_TOLERANCE: float = 0.00001
"""Smallest tolerance the tracker session accepts."""

MAX_TOLERANCE: float = 0.1
"""Largest tolerance the tracker session accepts."""

DEFAULT_ITERATIONS: int = 1
"""Default pass budget for the iterative scanner."""

OCTREE_CAPACITY: int = 1
"""Points a leaf may hold before it splits."""

OCTREE_MAX_DEPTH: int = 21
"""Depth at which leaves stop splitting regardless of occupancy."""

# --- Simulation controls ---
MIN_SPEED_EXPONENT: int = -1
"""Slowest simulation speed as a power of ten (0.1x)."""

RISK_TABLE_ROWS: int = 10
"""Rows of the risk report shown in the display table."""

# --- Catalog classification ---
DEBRIS_NAME_MARKERS: tuple[str, ...] = ("DEB", "R/B")
"""Name fragments marking an object as debris rather than an active satellite."""
