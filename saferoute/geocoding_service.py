"""
Geocoding service using OpenStreetMap Nominatim (free, no API key needed).
Resolves free-text Chicago addresses to (lat, lng).
"""
import requests
from typing import Dict, Tuple

from .config import Config
from .errors import AddressNotFound


class GeocodingService:
    def __init__(
        self,
        base_url: str = Config.NOMINATIM_URL,
        suffix: str = Config.GEOCODE_SUFFIX,
        timeout: float = Config.HTTP_TIMEOUT,
    ):
        self.base_url = base_url
        self.suffix = suffix
        self.timeout = timeout
        self._cache: Dict[str, Tuple[float, float]] = {}

    def geocode(self, address: str) -> Tuple[float, float]:
        """
        Convert an address to (lat, lng). Results are cached per address.

        Raises:
            AddressNotFound: blank address or no match
        """
        if not address or not address.strip():
            raise AddressNotFound(address or "")

        normalized = address.strip().lower()
        if normalized in self._cache:
            return self._cache[normalized]

        resp = requests.get(self.base_url, params={
            "format": "json",
            "q": f"{address.strip()}{self.suffix}",
            "limit": 1,
        }, headers={"User-Agent": Config.USER_AGENT}, timeout=self.timeout)
        resp.raise_for_status()
        results = resp.json()
        if not results:
            raise AddressNotFound(address)

        coords = (float(results[0]["lat"]), float(results[0]["lon"]))
        self._cache[normalized] = coords
        return coords
