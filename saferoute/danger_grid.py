"""
H3 Danger Grid Module
Evaluates the danger field on Uber's H3 hexagonal grid around incidents,
for heatmap overlays.
"""
import h3
import pandas as pd
import geopandas as gpd
from shapely.geometry import Polygon
from typing import List, Optional

from . import config
from .categories import heat_intensity
from .danger_field import DangerField
from .incidents import IncidentStore
from .route_safety import rate


class DangerGrid:
    """Danger scores sampled at H3 cell centres"""

    # H3 Resolution guide:
    # 8 = ~0.74 km² (neighborhood blocks)
    # 9 = ~0.10 km² (street level) - RECOMMENDED, edge ~200 m vs 300 m danger radius
    # 10 = ~0.015 km² (intersection level)

    def __init__(self, danger_field: DangerField, resolution: int = 9):
        self.danger_field = danger_field
        self.resolution = resolution
        self.grid_data: Optional[pd.DataFrame] = None
        self.grid_geo: Optional[gpd.GeoDataFrame] = None

    def calculate(self, active_categories, ring: int = 1) -> pd.DataFrame:
        """
        Score every cell holding an active incident plus `ring` rings of
        neighbours around it.

        Args:
            active_categories: Categories to consider
            ring: Neighbour ring size (k of h3.grid_disk)

        Returns:
            DataFrame: h3_cell, center_lat, center_lng, incident_count,
            danger_score, rating
        """
        active = frozenset(active_categories)
        points = self.danger_field.store.filtered(active)

        counts = {}
        for p in points:
            cell = h3.latlng_to_cell(p.lat, p.lng, self.resolution)
            counts[cell] = counts.get(cell, 0) + 1

        cells = set()
        for cell in counts:
            cells.update(h3.grid_disk(cell, ring))

        rows = []
        for cell in sorted(cells):
            lat, lng = h3.cell_to_latlng(cell)
            score = self.danger_field.score(lat, lng, active)
            rows.append({
                "h3_cell": cell,
                "center_lat": lat,
                "center_lng": lng,
                "incident_count": counts.get(cell, 0),
                "danger_score": round(score, 3),
                "rating": rate(score).value,
            })

        self.grid_data = pd.DataFrame(rows, columns=[
            "h3_cell", "center_lat", "center_lng",
            "incident_count", "danger_score", "rating",
        ])
        self.grid_geo = None
        return self.grid_data

    def create_grid_geodataframe(self) -> gpd.GeoDataFrame:
        """GeoDataFrame with H3 hexagon polygons for visualization"""
        if self.grid_data is None:
            raise ValueError("No grid data. Call calculate() first.")

        def h3_to_polygon(h3_cell):
            boundary = h3.cell_to_boundary(h3_cell)
            # h3 returns (lat, lng), shapely needs (lng, lat)
            return Polygon([(lng, lat) for lat, lng in boundary])

        self.grid_geo = gpd.GeoDataFrame(
            self.grid_data.copy(),
            geometry=[h3_to_polygon(cell) for cell in self.grid_data["h3_cell"]],
            crs="EPSG:4326"
        )
        return self.grid_geo

    def get_dangerous_cells(self, threshold: float = config.SAFE_THRESHOLD) -> pd.DataFrame:
        if self.grid_data is None:
            raise ValueError("No grid data. Call calculate() first.")
        return self.grid_data[self.grid_data["danger_score"] >= threshold]


def heatmap_points(store: IncidentStore, active_categories) -> List[List[float]]:
    """[lat, lng, intensity] triples for a Leaflet.heat layer"""
    return [
        [p.lat, p.lng, heat_intensity(p.category)]
        for p in store.filtered(active_categories)
    ]
