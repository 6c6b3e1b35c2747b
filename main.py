#!/usr/bin/env python3
"""
Chicago Safe Route - Incident Danger Pipeline
=============================================

Fetches recent Chicago crimes, classifies them, builds an H3 danger grid
and optionally scores a driving route between two addresses.

Usage:
    python main.py                                   # Fetch + grid + exports
    python main.py --types THEFT,ROBBERY             # Only some categories
    python main.py --start "Navy Pier" --end "Wrigley Field"
    python main.py --no-cache                        # Force fresh data fetch
"""

import argparse
import sys
from pathlib import Path

import requests

sys.path.insert(0, str(Path(__file__).parent))

from saferoute.config import Config
from saferoute.crime_ingestion import ChicagoCrimeIngestion
from saferoute.danger_field import DangerField
from saferoute.danger_grid import DangerGrid
from saferoute.errors import AddressNotFound, NoRouteFound
from saferoute.export import SafeRouteExporter
from saferoute.geocoding_service import GeocodingService
from saferoute.incidents import CategoryFilter, IncidentStore
from saferoute.route_safety import RouteSafetyEvaluator
from saferoute.routing_service import RoutingService


def run_pipeline(
    limit: int = Config.CRIME_FEED_LIMIT,
    since: str = Config.CRIME_FEED_SINCE,
    use_cache: bool = True,
    types: str = None,
    start: str = None,
    end: str = None,
    h3_resolution: int = Config.H3_RESOLUTION,
    output_dir: str = Config.OUTPUT_DIR
):
    print("=" * 60)
    print("CHICAGO SAFE ROUTE - INCIDENT DANGER ANALYSIS")
    print("=" * 60)

    ingestion = ChicagoCrimeIngestion()
    store = IncidentStore()
    category_filter = CategoryFilter.parse(types)
    danger_field = DangerField(store)
    exporter = SafeRouteExporter(output_dir=output_dir)

    # STEP 1: Crime data
    print("\n[1/4] INGESTING CHICAGO CRIME DATA...")
    print("-" * 40)

    ingestion.fetch_crimes(limit=limit, since=since, use_cache=use_cache)
    store.replace(ingestion.to_incidents())

    stats = ingestion.get_stats()
    if stats:
        print(f"Date range: {stats['date_range']['start']} to {stats['date_range']['end']}")
        for category, count in stats["by_category"].items():
            print(f"  {category}: {count}")
    print(f"Active categories: {', '.join(c.value for c in category_filter) or '(none)'}")

    # STEP 2: Danger grid
    print("\n[2/4] CALCULATING H3 DANGER GRID...")
    print("-" * 40)

    active = category_filter.snapshot()
    grid = DangerGrid(danger_field, resolution=h3_resolution)
    grid_df = grid.calculate(active)
    print(f"Scored {len(grid_df)} cells at resolution {h3_resolution}")
    if len(grid_df) > 0:
        print(f"Max cell danger: {grid_df['danger_score'].max():.1f}")
        print(f"Cells rated MODERATE or worse: {len(grid.get_dangerous_cells())}")

    # STEP 3: Route
    print("\n[3/4] ASSESSING ROUTE...")
    print("-" * 40)

    route_result = None
    if start and end:
        try:
            geocoder = GeocodingService()
            start_coords = geocoder.geocode(start)
            end_coords = geocoder.geocode(end)
            path = RoutingService().get_route(start_coords, end_coords)
        except AddressNotFound as e:
            print(f"Could not find '{e.address}'. Try being more specific.")
        except NoRouteFound as e:
            print(f"Could not calculate route: {e}")
        except requests.RequestException as e:
            print(f"WARNING: Geocoding service unavailable ({e.__class__.__name__}): {e}")
        else:
            assessment = RouteSafetyEvaluator(danger_field).assess(path, active)
            route_result = (path, assessment)
            print(f"Distance: {path.distance_km} km")
            print(f"Time: {path.duration_minutes} min")
            print(f"Safety: {assessment.rating.label}")
            print(f"Crime Score: {round(assessment.danger_score)}")
    else:
        print("No --start/--end given, skipping")

    # STEP 4: Export
    print("\n[4/4] EXPORTING DATA...")
    print("-" * 40)

    exports = {
        "incidents_geojson": exporter.export_incidents_geojson(store, active),
        "grid_geojson": exporter.export_grid_geojson(grid.create_grid_geodataframe()),
    }
    if route_result is not None:
        path, assessment = route_result
        exports["route_assessment"] = exporter.export_assessment_json(
            path, assessment, active_categories=active
        )

    print("\n" + "=" * 60)
    print("PIPELINE COMPLETE")
    print("=" * 60)
    for name, filepath in exports.items():
        print(f"  {name}: {filepath}")

    return {
        "store": store,
        "grid": grid_df,
        "route": route_result,
        "exports": exports,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Chicago Safe Route - Incident Danger Analysis"
    )
    parser.add_argument("--limit", type=int, default=Config.CRIME_FEED_LIMIT,
                        help="Max crime records to fetch (default: %(default)s)")
    parser.add_argument("--since", default=Config.CRIME_FEED_SINCE,
                        help="Only crimes after this ISO date (default: %(default)s)")
    parser.add_argument("--no-cache", action="store_true",
                        help="Force fresh data fetch")
    parser.add_argument("--types", default=None,
                        help="Comma-separated categories to include (default: all)")
    parser.add_argument("--start", default=None, help="Route start address")
    parser.add_argument("--end", default=None, help="Route destination address")
    parser.add_argument("--resolution", type=int, default=Config.H3_RESOLUTION,
                        help="H3 resolution (default: %(default)s)")
    parser.add_argument("--output-dir", default=Config.OUTPUT_DIR,
                        help="Output directory (default: %(default)s)")

    args = parser.parse_args()

    try:
        run_pipeline(
            limit=args.limit,
            since=args.since,
            use_cache=not args.no_cache,
            types=args.types,
            start=args.start,
            end=args.end,
            h3_resolution=args.resolution,
            output_dir=args.output_dir
        )
    except KeyboardInterrupt:
        print("\nPipeline interrupted")
        sys.exit(1)


if __name__ == "__main__":
    main()
