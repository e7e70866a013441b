"""Risk reports produced by a detection pass."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, overload

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConjunctionRecord:
    """An object whose nearest neighbour lies within the tolerance.

    Attributes:
        subject_id: Catalog id of the object at risk.
        other_id: Catalog id of its nearest qualifying neighbour.
        distance: Separation in Earth radii.
        x: Subject X coordinate.
        y: Subject Y coordinate.
        z: Subject Z coordinate.
    """

    subject_id: int
    other_id: int
    distance: float
    x: float
    y: float
    z: float


class SortKey(Enum):
    ID = "id"
    DISTANCE = "distance"


_SORT_FIELDS = {
    SortKey.ID: lambda r: r.subject_id,
    SortKey.DISTANCE: lambda r: r.distance,
}


class RiskReport:
    """Read-only list of conjunction records from one detection pass.

    Records keep the order the detector produced them in until a sorted copy
    is requested; a report is replaced as a whole, never edited in place.
    """

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[ConjunctionRecord] = ()) -> None:
        self._records: tuple[ConjunctionRecord, ...] = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ConjunctionRecord]:
        return iter(self._records)

    @overload
    def __getitem__(self, index: int) -> ConjunctionRecord: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[ConjunctionRecord, ...]: ...

    def __getitem__(self, index):
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RiskReport):
            return NotImplemented
        return self._records == other._records

    def __hash__(self) -> int:
        return hash(self._records)

    def __repr__(self) -> str:
        return f"RiskReport({len(self._records)} records)"

    @property
    def records(self) -> tuple[ConjunctionRecord, ...]:
        return self._records

    def sorted(self, key: SortKey = SortKey.DISTANCE, descending: bool = False) -> RiskReport:
        """Return a new report ordered by ``key``; equal keys keep their order."""
        ordered = sorted(self._records, key=_SORT_FIELDS[key], reverse=descending)
        logger.debug("Sorted %d records by %s (%s)", len(ordered), key.value,
                     "descending" if descending else "ascending")
        return RiskReport(ordered)

    def top(self, n: int) -> tuple[ConjunctionRecord, ...]:
        return self._records[:max(n, 0)]

    def subject_ids(self) -> set[int]:
        return {r.subject_id for r in self._records}

    def risky_points(self) -> NDArray[np.float64]:
        """Subject positions as an (n, 3) array for drawing."""
        return np.array([[r.x, r.y, r.z] for r in self._records], dtype=np.float64).reshape(-1, 3)
