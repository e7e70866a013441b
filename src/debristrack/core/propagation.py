"""Orbital propagation via SGP4."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np

logger = logging.getLogger(__name__)
from numpy.typing import NDArray
from sgp4.api import SatrecArray
from debristrack.core.catalog import OrbitalElementRecord
from debristrack.core.epoch import epoch_to_jd
from debristrack.utils.constants import EARTH_RADIUS_KM


class PropagationDegeneracy(ValueError):
    """A record's elements cannot be propagated to the requested epoch."""


@dataclass(frozen=True)
class TrackedObjectState:
    """Position of one object in the TEME frame, in Earth radii.

    Attributes:
        catalog_id: NORAD catalog number.
        x: X coordinate.
        y: Y coordinate.
        z: Z coordinate.
    """

    catalog_id: int
    x: float
    y: float
    z: float

    @property
    def position(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


class PropagationResult(NamedTuple):
    """Output of one propagation call.

    Attributes:
        positions: Array of shape (m, 3) for the renderable (active) records.
        states: One state per propagated record, active and debris alike.
    """

    positions: NDArray[np.float64]
    states: list[TrackedObjectState]


def _state_from_km(catalog_id: int, pos_km) -> TrackedObjectState:
    return TrackedObjectState(
        catalog_id=catalog_id,
        x=float(pos_km[0]) / EARTH_RADIUS_KM,
        y=float(pos_km[1]) / EARTH_RADIUS_KM,
        z=float(pos_km[2]) / EARTH_RADIUS_KM,
    )


def propagate_record(record: OrbitalElementRecord, epoch: float) -> TrackedObjectState:
    """Propagate a single record to an epoch.

    Args:
        record: Catalog record to propagate.
        epoch: Days since 1949-12-31 00:00 UTC.

    Returns:
        The record's normalized position at ``epoch``.

    Raises:
        PropagationDegeneracy: If the elements are unusable or SGP4 reports an error.
    """
    reason = record.degeneracy()
    if reason is not None:
        logger.warning("Cannot propagate NORAD %d: %s", record.catalog_id, reason)
        raise PropagationDegeneracy(f"Cannot propagate NORAD {record.catalog_id}: {reason}")

    jd, fr = epoch_to_jd(epoch)
    error_code, pos, _vel = record.satrec.sgp4(jd, fr)

    if error_code != 0 or not all(math.isfinite(c) for c in pos):
        logger.warning("SGP4 propagation failed for NORAD %d at epoch %.6f: error code %d",
                       record.catalog_id, epoch, error_code)
        raise PropagationDegeneracy(
            f"SGP4 propagation failed for NORAD {record.catalog_id} at epoch {epoch}: error code {error_code}"
        )

    return _state_from_km(record.catalog_id, pos)


def propagate(epoch: float, catalog: Sequence[OrbitalElementRecord]) -> PropagationResult:
    """Propagate a whole catalog to a single epoch using vectorized SGP4.

    Records whose elements are degenerate, or for which SGP4 reports an error
    at this epoch, are logged and left out of this call's output only.

    Args:
        epoch: Days since 1949-12-31 00:00 UTC.
        catalog: Records to propagate.

    Returns:
        PropagationResult with the rendered positions and the full state list.
    """
    if not catalog:
        return PropagationResult(np.empty((0, 3), dtype=np.float64), [])

    usable = []
    for record in catalog:
        reason = record.degeneracy()
        if reason is not None:
            logger.warning("Skipping NORAD %d: %s", record.catalog_id, reason)
            continue
        usable.append(record)

    if not usable:
        return PropagationResult(np.empty((0, 3), dtype=np.float64), [])

    satrec_array = SatrecArray([record.satrec for record in usable])

    jd, fr = epoch_to_jd(epoch)
    jd_array = np.array([jd], dtype=np.float64)
    fr_array = np.array([fr], dtype=np.float64)

    # Output shape: errors (n,1), positions (n,1,3), velocities (n,1,3)
    errors, positions_km, _velocities = satrec_array.sgp4(jd_array, fr_array)

    valid_mask = (errors[:, 0] == 0) & np.all(np.isfinite(positions_km[:, 0, :]), axis=1)

    states: list[TrackedObjectState] = []
    rendered: list[TrackedObjectState] = []
    for record, ok, code, pos in zip(usable, valid_mask, errors[:, 0], positions_km[:, 0, :]):
        if not ok:
            logger.warning("Skipping NORAD %d at epoch %.6f: SGP4 error code %d",
                           record.catalog_id, epoch, code)
            continue
        state = _state_from_km(record.catalog_id, pos)
        states.append(state)
        if record.is_renderable:
            rendered.append(state)

    positions = np.array([[s.x, s.y, s.z] for s in rendered], dtype=np.float64).reshape(-1, 3)

    logger.debug("Propagated %d/%d records to epoch %.6f (%d rendered)",
                 len(states), len(catalog), epoch, len(rendered))
    return PropagationResult(positions, states)
