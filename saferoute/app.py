"""
Flask HTTP layer: serves crime points, danger scores and safety-scored
routes to the map front-end.
"""
import os
import threading
import time

import requests
from flask import Flask, Blueprint, current_app, request, jsonify, send_from_directory
from flask_cors import CORS

from .config import Config
from .crime_ingestion import ChicagoCrimeIngestion
from .danger_field import DangerField
from .danger_grid import DangerGrid, heatmap_points
from .errors import AddressNotFound, IncidentFeedError, NoRouteFound
from .geocoding_service import GeocodingService
from .incidents import CategoryFilter, IncidentStore
from .route_safety import RouteSafetyEvaluator
from .routing_service import RoutingService

api = Blueprint('api', __name__)


class MapState:
    """
    Incident store plus the collaborators that feed it. One per app.

    The store is refreshed wholesale once `ttl` seconds have passed since the
    last successful fetch.
    """

    def __init__(self, ingestion, geocoder, router, ttl=Config.INCIDENT_CACHE_TTL):
        self.ingestion = ingestion
        self.geocoder = geocoder
        self.router = router
        self.ttl = ttl
        self.store = IncidentStore()
        self.danger_field = DangerField(self.store)
        self.evaluator = RouteSafetyEvaluator(self.danger_field)
        self._loaded_at = None
        self._lock = threading.Lock()

    def refresh(self, force=False):
        with self._lock:
            now = time.time()
            if not force and self._loaded_at is not None and (now - self._loaded_at) < self.ttl:
                return self.store
            self.ingestion.fetch_crimes(use_cache=False)
            self.store.replace(self.ingestion.to_incidents())
            self._loaded_at = now
            return self.store


def _state() -> MapState:
    return current_app.extensions['saferoute']


def _active_from_args():
    return CategoryFilter.parse(request.args.get('types')).snapshot()


def _error(error_type, message, status):
    return jsonify({"status": "error", "error_type": error_type, "message": message}), status


@api.route('/crime', methods=['GET'])
def get_crime():
    """Returns classified crime points, optionally filtered by ?types=A,B"""
    state = _state()
    try:
        store = state.refresh(force=request.args.get('refresh') == '1')
    except IncidentFeedError as e:
        print(f"ERROR fetching crime data: {e}")
        return jsonify({"error": "Failed to fetch crime data"}), 500

    if 'types' in request.args:
        points = store.filtered(_active_from_args())
    else:
        points = list(store)
    return jsonify({"points": [p.to_dict() for p in points]})


@api.route('/danger', methods=['GET'])
def get_danger():
    """Danger score at one point: ?lat=&lng=[&types=]"""
    try:
        lat = float(request.args['lat'])
        lng = float(request.args['lng'])
    except (KeyError, ValueError):
        return _error("bad_request", "lat and lng query parameters are required numbers", 400)

    state = _state()
    try:
        state.refresh()
    except IncidentFeedError:
        return jsonify({"error": "Failed to fetch crime data"}), 500

    score = state.danger_field.score(lat, lng, _active_from_args())
    return jsonify({"lat": lat, "lng": lng, "score": score})


@api.route('/heatmap', methods=['GET'])
def get_heatmap():
    """Returns [lat, lng, intensity] heat points for the active categories"""
    state = _state()
    try:
        store = state.refresh()
    except IncidentFeedError:
        return jsonify({"error": "Failed to fetch crime data"}), 500
    return jsonify({"points": heatmap_points(store, _active_from_args())})


@api.route('/grid', methods=['GET'])
def get_grid():
    """Returns the H3 danger grid as a GeoJSON FeatureCollection"""
    state = _state()
    try:
        state.refresh()
    except IncidentFeedError:
        return jsonify({"error": "Failed to fetch crime data"}), 500

    resolution = request.args.get('resolution', Config.H3_RESOLUTION, type=int)
    grid = DangerGrid(state.danger_field, resolution=resolution)
    grid.calculate(_active_from_args())
    return current_app.response_class(
        grid.create_grid_geodataframe().to_json(), mimetype='application/geo+json'
    )


@api.route('/route', methods=['POST'])
def get_route():
    req = request.get_json(silent=True) or {}
    # Expects: {"start": "address", "end": "address", "types": ["THEFT", ...]}
    start = (req.get('start') or '').strip()
    end = (req.get('end') or '').strip()
    if not start or not end:
        return _error("missing_address", "Enter both start and end addresses.", 400)

    types = req.get('types')
    if types is None:
        active = CategoryFilter.all().snapshot()
    elif isinstance(types, str):
        active = CategoryFilter.parse(types).snapshot()
    elif isinstance(types, list) and all(isinstance(t, str) for t in types):
        active = CategoryFilter.parse(",".join(types)).snapshot()
    else:
        return _error(
            "bad_request",
            "types must be a list of category names or a comma-separated string",
            400,
        )

    state = _state()
    print(f'Finding route from "{start}" to "{end}"')

    try:
        start_coords = state.geocoder.geocode(start)
        end_coords = state.geocoder.geocode(end)
    except AddressNotFound as e:
        return _error(
            "geocode_failed",
            f"Could not find '{e.address}'. Try being more specific (include street name and city).",
            404,
        )
    except requests.RequestException as e:
        return _error("geocode_failed", f"Geocoding service unavailable: {e}", 502)

    try:
        path = state.router.get_route(start_coords, end_coords)
    except NoRouteFound as e:
        return _error("routing_failed", f"Could not calculate route. Try different addresses. ({e})", 422)

    try:
        state.refresh()
    except IncidentFeedError:
        return jsonify({"error": "Failed to fetch crime data"}), 500

    assessment = state.evaluator.assess(path, active)
    print(f"Route with {len(path)} points, safety score: {assessment.danger_score:.1f} "
          f"({assessment.rating.value})")

    return jsonify({
        "status": "success",
        "start": list(start_coords),
        "end": list(end_coords),
        "route": {
            "label": "Recommended Route",
            "coordinates": [list(c) for c in path.latlngs()],
            "distance_km": path.distance_km,
            "duration_min": path.duration_minutes,
        },
        "assessment": assessment.to_dict(),
    })


def create_app(ingestion=None, geocoder=None, router=None, public_dir=Config.PUBLIC_DIR):
    app = Flask(__name__)
    CORS(app)

    app.extensions['saferoute'] = MapState(
        ingestion or ChicagoCrimeIngestion(),
        geocoder or GeocodingService(),
        router or RoutingService(),
    )
    app.register_blueprint(api, url_prefix='/api')

    # Serve the map frontend (HTML, CSS, JS)
    if os.path.exists(public_dir):
        @app.route('/', defaults={'path': ''})
        @app.route('/<path:path>')
        def serve_frontend(path):
            file_path = os.path.join(public_dir, path)
            if path and os.path.isfile(file_path):
                return send_from_directory(public_dir, path)
            return send_from_directory(public_dir, 'index.html')

    return app


if __name__ == '__main__':
    app = create_app()
    print(f"Server running on http://localhost:{Config.PORT}")
    print(f"Serving files from: {Config.PUBLIC_DIR}")
    app.run(debug=True, port=Config.PORT)
