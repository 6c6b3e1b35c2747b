"""
Danger Field Module
Scores how risky an arbitrary point is given nearby incidents.
"""
import numpy as np
from typing import Dict, Optional

from . import config
from .categories import IncidentCategory
from .incidents import IncidentStore


class DangerField:
    """
    Linear-falloff danger score around each active incident.

    Distance is planar Euclidean in degree space, not geodesic. That is only
    valid at city scale, where one degree of latitude and longitude distort
    roughly uniformly.
    """

    def __init__(
        self,
        store: IncidentStore,
        radius: float = config.DANGER_RADIUS,
        weights: Optional[Dict[str, float]] = None,
        default_weight: float = config.DEFAULT_WEIGHT,
    ):
        self.store = store
        self.radius = radius
        self.weights = dict(config.CATEGORY_WEIGHTS if weights is None else weights)
        self.default_weight = default_weight

    def weight(self, category) -> float:
        """Weight of one category; unknown categories get the default"""
        key = category.value if isinstance(category, IncidentCategory) else str(category)
        return self.weights.get(key, self.default_weight)

    def score(self, lat: float, lng: float, active_categories) -> float:
        """
        Danger score at (lat, lng).

        Each active incident closer than `radius` contributes
        weight * (1 - distance / radius); incidents at or beyond the radius
        contribute nothing. The sum is not capped.

        Args:
            lat, lng: Query point
            active_categories: Categories to consider (empty -> score 0)

        Returns:
            Score >= 0
        """
        return self.score_points(lat, lng, self.store.filtered(active_categories))

    def score_points(self, lat: float, lng: float, points) -> float:
        """Danger score at (lat, lng) against an already-filtered point list"""
        if not points:
            return 0.0

        lats = np.fromiter((p.lat for p in points), dtype=float, count=len(points))
        lngs = np.fromiter((p.lng for p in points), dtype=float, count=len(points))
        weights = np.fromiter(
            (self.weight(p.category) for p in points), dtype=float, count=len(points)
        )

        distance = np.sqrt((lat - lats) ** 2 + (lng - lngs) ** 2)
        inside = distance < self.radius
        if not inside.any():
            return 0.0

        contributions = weights[inside] * (1 - distance[inside] / self.radius)
        return float(contributions.sum())
