"""
Routing service using the public OSRM demo server.
Returns the driving path between two points as a RoutePath.
"""
import requests
from typing import Sequence

from .config import Config
from .errors import NoRouteFound
from .route_safety import RoutePath


class RoutingService:
    def __init__(self, base_url: str = Config.OSRM_URL, timeout: float = Config.HTTP_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def get_route(self, start: Sequence[float], end: Sequence[float]) -> RoutePath:
        """
        start, end: [lat, lng]

        Raises:
            NoRouteFound: request failed or OSRM had no route
        """
        # OSRM wants lng,lat
        url = f"{self.base_url}/{start[1]},{start[0]};{end[1]},{end[0]}"
        try:
            resp = requests.get(url, params={
                "overview": "full",
                "geometries": "geojson",
                "steps": "true",
            }, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            print(f"Routing error: {e}")
            raise NoRouteFound(f"Routing request failed: {e}") from e

        if data.get("code") != "Ok" or not data.get("routes"):
            raise NoRouteFound(data.get("message") or "No route found")

        route = RoutePath.from_osrm(data["routes"][0])
        if not route.coordinates:
            raise NoRouteFound("Route has no geometry")
        return route
