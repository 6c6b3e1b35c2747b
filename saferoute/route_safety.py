"""
Route Safety Module
Samples a routed path, sums danger field scores along it and rates the
result SAFE / MODERATE / HIGH_RISK.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

from . import config
from .danger_field import DangerField

LngLat = Tuple[float, float]
LatLng = Tuple[float, float]


class SafetyRating(str, Enum):
    SAFE = "SAFE"
    MODERATE = "MODERATE"
    HIGH_RISK = "HIGH_RISK"

    @property
    def label(self) -> str:
        return _RATING_LABELS[self]


_RATING_LABELS = {
    SafetyRating.SAFE: "Safe ✓",
    SafetyRating.MODERATE: "Moderate ⚠",
    SafetyRating.HIGH_RISK: "High Risk ⚠⚠",
}


def lnglat_to_latlng(coord: Sequence[float]) -> LatLng:
    """Route geometry is (lng, lat); everything else in the app is (lat, lng)."""
    lng, lat = coord[0], coord[1]
    return (float(lat), float(lng))


@dataclass(frozen=True)
class RoutePath:
    """Path geometry returned by the routing service"""

    coordinates: Tuple[LngLat, ...]
    distance_meters: float = 0.0
    duration_seconds: float = 0.0

    @classmethod
    def from_osrm(cls, route: dict) -> "RoutePath":
        """Build from one entry of an OSRM `routes` array (geojson geometry)"""
        coords = route.get("geometry", {}).get("coordinates", [])
        return cls(
            coordinates=tuple((float(c[0]), float(c[1])) for c in coords),
            distance_meters=float(route.get("distance", 0.0)),
            duration_seconds=float(route.get("duration", 0.0)),
        )

    @property
    def distance_km(self) -> float:
        return round(self.distance_meters / 1000, 1)

    @property
    def duration_minutes(self) -> int:
        return int(round(self.duration_seconds / 60))

    def latlngs(self) -> List[LatLng]:
        return [lnglat_to_latlng(c) for c in self.coordinates]

    def __len__(self) -> int:
        return len(self.coordinates)


@dataclass(frozen=True)
class RouteAssessment:
    danger_score: float
    rating: SafetyRating
    samples: int = 0

    def to_dict(self) -> dict:
        return {
            "danger_score": self.danger_score,
            "crime_score": round(self.danger_score),
            "rating": self.rating.value,
            "label": self.rating.label,
            "samples": self.samples,
        }


def rate(danger_score: float) -> SafetyRating:
    """Lower bound of each band is inclusive: 20 is MODERATE, 50 is HIGH_RISK."""
    if danger_score < config.SAFE_THRESHOLD:
        return SafetyRating.SAFE
    if danger_score < config.HIGH_RISK_THRESHOLD:
        return SafetyRating.MODERATE
    return SafetyRating.HIGH_RISK


def sample_indices(n: int, max_samples: int = config.MAX_ROUTE_SAMPLES) -> List[int]:
    """
    Systematic sample of coordinate indices along a path of n points.

    Walks with a fixed stride of n // min(n, max_samples) from index 0, and
    always ends on the last coordinate even when the stride would skip it.
    """
    if n <= 0:
        return []
    sample_count = min(n, max_samples)
    step = max(1, n // sample_count)
    indices = list(range(0, n, step))
    if indices[-1] != n - 1:
        indices.append(n - 1)
    return indices


@dataclass
class RouteSafetyEvaluator:
    danger_field: DangerField
    max_samples: int = field(default=config.MAX_ROUTE_SAMPLES)

    def assess(self, path: RoutePath, active_categories) -> RouteAssessment:
        """
        Aggregate danger along a path into one assessment.

        An empty path is vacuously SAFE with score 0.
        """
        indices = sample_indices(len(path.coordinates), self.max_samples)
        # One snapshot of the active incidents for every sample
        points = self.danger_field.store.filtered(active_categories)
        total = 0.0
        for i in indices:
            lat, lng = lnglat_to_latlng(path.coordinates[i])
            total += self.danger_field.score_points(lat, lng, points)
        return RouteAssessment(danger_score=total, rating=rate(total), samples=len(indices))
