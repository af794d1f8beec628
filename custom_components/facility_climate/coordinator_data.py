"""
CoordinatorData: immutable snapshot of the facility state shared with entities.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses

from .models import Facility


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Typed, copy-on-write snapshot of the facility collection.

    Always replace via dataclasses.replace(), never mutate in place.
    """

    # All tracked facilities, in creation order
    facilities: list[Facility] = dataclasses.field(default_factory=list)

    # True while the session's initialisation is running
    loading: bool = False

    # Last user-visible failure, cleared when the next user operation starts
    error: Exception | None = None

    def get(self, facility_id: str) -> Facility | None:
        """Return the facility with this id, or None."""
        for facility in self.facilities:
            if facility.id == facility_id:
                return facility
        return None

    @property
    def facility_ids(self) -> list[str]:
        return [f.id for f in self.facilities]
