"""
Incident Store Module
Holds the classified crime points for one fetch cycle and the user's
category filter.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional

import pandas as pd

from .categories import IncidentCategory


@dataclass(frozen=True)
class IncidentPoint:
    """A single classified incident at a geographic point"""

    lat: float
    lng: float
    category: IncidentCategory
    description: str = ""
    occurred_on: Optional[date] = None

    def to_dict(self) -> dict:
        """Wire format served to the map: {lat, lng, type, desc, date}"""
        return {
            "lat": self.lat,
            "lng": self.lng,
            "type": self.category.value,
            "desc": self.description,
            "date": self.occurred_on.isoformat() if self.occurred_on else "",
        }


class CategoryFilter:
    """
    Set of categories the user currently wants to see.

    An empty filter means nothing is visible, not everything.
    """

    def __init__(self, categories: Iterable[IncidentCategory] = ()):
        self._active = set(categories)

    @classmethod
    def all(cls) -> "CategoryFilter":
        """Every category switched on (initial state of the map)"""
        return cls(IncidentCategory)

    @classmethod
    def parse(cls, value: Optional[str]) -> "CategoryFilter":
        """
        Build a filter from a comma-separated list of category names.
        Unknown names are ignored; None means every category.
        """
        if value is None:
            return cls.all()
        categories = [IncidentCategory.from_name(name) for name in value.split(",") if name.strip()]
        return cls(c for c in categories if c is not None)

    def toggle(self, category: IncidentCategory) -> bool:
        """Flip one category. Returns True if it is now active."""
        if category in self._active:
            self._active.discard(category)
            return False
        self._active.add(category)
        return True

    def set_active(self, category: IncidentCategory, active: bool):
        if active:
            self._active.add(category)
        else:
            self._active.discard(category)

    def enable(self, category: IncidentCategory):
        self.set_active(category, True)

    def disable(self, category: IncidentCategory):
        self.set_active(category, False)

    def snapshot(self) -> FrozenSet[IncidentCategory]:
        """Immutable copy to hand to one score/assess call"""
        return frozenset(self._active)

    def __contains__(self, category) -> bool:
        return category in self._active

    def __iter__(self) -> Iterator[IncidentCategory]:
        return iter(sorted(self._active, key=lambda c: c.value))

    def __len__(self) -> int:
        return len(self._active)

    def __repr__(self) -> str:
        return f"CategoryFilter({[c.value for c in self]})"


class IncidentStore:
    """In-memory incident points, replaced wholesale on every refresh"""

    def __init__(self, points: Iterable[IncidentPoint] = ()):
        self._points: List[IncidentPoint] = list(points)

    def replace(self, points: Iterable[IncidentPoint]):
        """Swap in a new full set of points (no incremental update)"""
        self._points = list(points)

    def filtered(self, active_categories) -> List[IncidentPoint]:
        """
        Points whose category is in active_categories.

        Args:
            active_categories: set of IncidentCategory or a CategoryFilter

        Returns:
            List of points, empty if no category is active
        """
        if not active_categories:
            return []
        points = self._points
        return [p for p in points if p.category in active_categories]

    def counts_by_category(self) -> Dict[str, int]:
        counts = {c.value: 0 for c in IncidentCategory}
        for p in self._points:
            counts[p.category.value] += 1
        return counts

    def to_dataframe(self, active_categories=None) -> pd.DataFrame:
        """Points as a DataFrame (lat, lng, category, description, occurred_on)"""
        points = self._points if active_categories is None else self.filtered(active_categories)
        return pd.DataFrame(
            [
                {
                    "lat": p.lat,
                    "lng": p.lng,
                    "category": p.category.value,
                    "description": p.description,
                    "occurred_on": p.occurred_on,
                }
                for p in points
            ],
            columns=["lat", "lng", "category", "description", "occurred_on"],
        )

    def __iter__(self) -> Iterator[IncidentPoint]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)
