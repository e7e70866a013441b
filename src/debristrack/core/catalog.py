"""Orbital element catalog records.

Records are loaded once and never modified. Each carries the mean elements
needed to build an SGP4 satellite record, plus the active/debris flag that
decides whether the object is drawn or only screened.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from functools import cached_property

from sgp4.api import Satrec, WGS72

from debristrack.utils.constants import (
    DEBRIS_NAME_MARKERS,
    DS50_JULIAN_DATE,
    MINUTES_PER_DAY,
)

logger = logging.getLogger(__name__)


class ObjectClass(Enum):
    ACTIVE = "active"
    DEBRIS = "debris"


def classify_name(name: str) -> ObjectClass:
    """Guess the object class from a catalog name (``COSMOS 1408 DEB`` is debris)."""
    tokens = name.upper().split()
    if any(marker in tokens for marker in DEBRIS_NAME_MARKERS):
        return ObjectClass.DEBRIS
    return ObjectClass.ACTIVE


@dataclass(frozen=True)
class OrbitalElementRecord:
    """Mean orbital elements for one tracked object.

    Attributes:
        catalog_id: NORAD catalog number.
        object_class: Whether the object is an active satellite or debris.
        inclination_deg: Orbital inclination in degrees.
        raan_deg: Right ascension of ascending node in degrees.
        eccentricity: Orbital eccentricity (dimensionless).
        arg_perigee_deg: Argument of perigee in degrees.
        mean_anomaly_deg: Mean anomaly in degrees.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        epoch: Reference epoch in days since 1949-12-31 00:00 UTC.
        bstar: BSTAR drag term (1/earth radii).
        name: Catalog name, if known.
    """

    catalog_id: int
    object_class: ObjectClass
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    epoch: float
    bstar: float = 0.0
    name: str = ""

    @property
    def is_renderable(self) -> bool:
        return self.object_class is ObjectClass.ACTIVE

    def degeneracy(self) -> str | None:
        """Describe why these elements cannot be propagated, or None if they can."""
        values = (
            self.inclination_deg, self.raan_deg, self.eccentricity,
            self.arg_perigee_deg, self.mean_anomaly_deg,
            self.mean_motion_rev_per_day, self.epoch, self.bstar,
        )
        if not all(math.isfinite(v) for v in values):
            return "non-finite orbital element"
        if not 0.0 <= self.eccentricity < 1.0:
            return f"eccentricity {self.eccentricity} outside [0, 1)"
        if self.mean_motion_rev_per_day <= 0.0:
            return f"non-positive mean motion {self.mean_motion_rev_per_day}"
        return None

    @cached_property
    def satrec(self) -> Satrec:
        """SGP4 satellite record initialized from these elements (WGS-72)."""
        deg = math.pi / 180.0
        sat = Satrec()
        sat.sgp4init(
            WGS72,
            "i",
            0,  # satellite number; ids above 339999 are not encodable
            self.epoch,
            self.bstar,
            0.0,
            0.0,
            self.eccentricity,
            self.arg_perigee_deg * deg,
            self.inclination_deg * deg,
            self.mean_anomaly_deg * deg,
            self.mean_motion_rev_per_day * 2 * math.pi / MINUTES_PER_DAY,
            self.raan_deg * deg,
        )
        return sat

    @classmethod
    def from_tle_lines(
        cls,
        line1: str,
        line2: str,
        name: str = "",
        object_class: ObjectClass | None = None,
    ) -> OrbitalElementRecord:
        """Build a record from a Two-Line Element set.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional satellite name (line 0).
            object_class: Classification; inferred from ``name`` when omitted.

        Returns:
            A catalog record.

        Raises:
            ValueError: If the TLE lines are malformed.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != 69 or not line1.startswith("1"):
            logger.error("Invalid TLE line 1: %r", line1)
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != 69 or not line2.startswith("2"):
            logger.error("Invalid TLE line 2: %r", line2)
            raise ValueError(f"Invalid TLE line 2: {line2!r}")

        sat = Satrec.twoline2rv(line1, line2, WGS72)
        name = name.strip()
        if object_class is None:
            object_class = classify_name(name)

        epoch = (sat.jdsatepoch - DS50_JULIAN_DATE) + sat.jdsatepochF
        rad = 180.0 / math.pi

        record = cls(
            catalog_id=int(line1[2:7].strip()),
            object_class=object_class,
            inclination_deg=sat.inclo * rad,
            raan_deg=sat.nodeo * rad,
            eccentricity=sat.ecco,
            arg_perigee_deg=sat.argpo * rad,
            mean_anomaly_deg=sat.mo * rad,
            mean_motion_rev_per_day=sat.no_kozai * MINUTES_PER_DAY / (2 * math.pi),
            epoch=epoch,
            bstar=sat.bstar,
            name=name,
        )
        logger.debug("Parsed %s record %d (epoch %.6f)", object_class.value, record.catalog_id, epoch)
        return record


def parse_catalog(text: str, object_class: ObjectClass | None = None) -> list[OrbitalElementRecord]:
    """Parse TLE text into catalog records.

    Handles both 2-line and 3-line (with name) formats; unrecognized lines
    are skipped.

    Args:
        text: Raw TLE text, one or more sets separated by newlines.
        object_class: Class applied to every record; inferred per name when omitted.

    Returns:
        Records in the order they appear in ``text``.
    """
    lines = [l.rstrip() for l in text.strip().splitlines() if l.strip()]
    records: list[OrbitalElementRecord] = []
    i = 0

    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            records.append(
                OrbitalElementRecord.from_tle_lines(lines[i], lines[i + 1], object_class=object_class)
            )
            i += 2
        elif (
            not lines[i].startswith("1 ")
            and not lines[i].startswith("2 ")
            and i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            records.append(
                OrbitalElementRecord.from_tle_lines(
                    lines[i + 1], lines[i + 2], name=lines[i], object_class=object_class
                )
            )
            i += 3
        else:
            i += 1

    logger.debug("Parsed %d catalog records from text", len(records))
    return records
