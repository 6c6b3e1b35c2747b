"""
Safe Route Export Module
Writes incidents, danger grids and route assessments to disk for
map layers and offline inspection
"""
import json
import geopandas as gpd
from pathlib import Path
from shapely.geometry import LineString, Point, mapping
from typing import Optional
from datetime import datetime

from .categories import CATEGORY_COLORS, IncidentCategory
from .incidents import IncidentStore
from .route_safety import RouteAssessment, RoutePath


class SafeRouteExporter:
    """Export incident and safety data in formats for the map front-end"""

    def __init__(self, output_dir: str = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_incidents_geojson(
        self,
        store: IncidentStore,
        active_categories=None,
        filename: str = "incidents.geojson"
    ) -> str:
        """
        Export incident points as GeoJSON

        Args:
            store: Current incident store
            active_categories: Only export these categories (None = all)
            filename: Output filename

        Returns:
            Path to exported file
        """
        output_path = self.output_dir / filename

        df = store.to_dataframe(active_categories)
        df["occurred_on"] = df["occurred_on"].map(lambda d: d.isoformat() if hasattr(d, "isoformat") else "")
        df["color"] = df["category"].map(lambda c: CATEGORY_COLORS.get(IncidentCategory(c), "#999"))
        gdf = gpd.GeoDataFrame(
            df,
            geometry=[Point(lng, lat) for lat, lng in zip(df["lat"], df["lng"])],
            crs="EPSG:4326"
        )

        output_path.write_text(gdf.to_json())
        print(f"Exported incidents GeoJSON: {output_path}")
        return str(output_path)

    def export_grid_geojson(
        self,
        grid_gdf: gpd.GeoDataFrame,
        filename: str = "danger_grid.geojson"
    ) -> str:
        """Export H3 danger grid hexagons as GeoJSON"""
        output_path = self.output_dir / filename
        output_path.write_text(grid_gdf.to_json())
        print(f"Exported danger grid GeoJSON: {output_path}")
        return str(output_path)

    def export_assessment_json(
        self,
        path: RoutePath,
        assessment: RouteAssessment,
        label: str = "Recommended Route",
        active_categories=None,
        filename: str = "route_assessment.json"
    ) -> str:
        """
        Export one route and its safety verdict

        The route line is written as GeoJSON (lng, lat order) alongside the
        distance, duration and score summary shown in the route popup.
        """
        output_path = self.output_dir / filename

        output_data = {
            "metadata": {
                "type": "route_assessment",
                "generated_at": datetime.now().isoformat(),
                "active_categories": sorted(c.value for c in active_categories) if active_categories else [],
            },
            "label": label,
            "distance_km": path.distance_km,
            "duration_min": path.duration_minutes,
            "assessment": assessment.to_dict(),
            "geometry": _line_geometry(path),
        }

        with open(output_path, "w") as f:
            json.dump(output_data, f, indent=2, ensure_ascii=False)

        print(f"Exported route assessment JSON: {output_path}")
        return str(output_path)


def _line_geometry(path: RoutePath) -> Optional[dict]:
    if len(path.coordinates) < 2:
        return None
    return mapping(LineString(path.coordinates))
