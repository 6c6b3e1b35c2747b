"""
Configuration for Chicago Safe Route.

Scoring constants are plain module attributes so the danger field and the
route evaluator can be tuned and tested independently. Service settings are
read from the environment (and a local .env file) by Config.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

# Danger field: ~300 meters at Chicago's latitude, measured in raw degrees
DANGER_RADIUS = 0.003

# Per-category weights, keyed by category name
CATEGORY_WEIGHTS = {
    "HATE_CRIME": 10,
    "ROBBERY": 8,
    "ASSAULT": 7,
    "BATTERY": 5,
    "THEFT": 3,
}
DEFAULT_WEIGHT = 3

# Route evaluation
MAX_ROUTE_SAMPLES = 50
SAFE_THRESHOLD = 20        # score below this is SAFE
HIGH_RISK_THRESHOLD = 50   # score at or above this is HIGH_RISK

# Default map centre (downtown Chicago)
CHICAGO_CENTER = (41.8781, -87.6298)


class Config:
    # Chicago Data Portal (Socrata) crime feed
    CRIME_FEED_URL = os.environ.get(
        "CRIME_FEED_URL", "https://data.cityofchicago.org/resource/ijzp-q8t2.json"
    )
    SOCRATA_APP_TOKEN = os.environ.get("SOCRATA_APP_TOKEN", "")
    CRIME_FEED_LIMIT = int(os.environ.get("CRIME_FEED_LIMIT", "500"))
    CRIME_FEED_SINCE = os.environ.get("CRIME_FEED_SINCE", "2024-11-01")
    CACHE_DIR = os.environ.get("CACHE_DIR", str(BASE_DIR / "cache"))
    INCIDENT_CACHE_TTL = int(os.environ.get("INCIDENT_CACHE_TTL", "600"))  # 10 minutes

    # Third-party geocoding / routing
    NOMINATIM_URL = os.environ.get(
        "NOMINATIM_URL", "https://nominatim.openstreetmap.org/search"
    )
    GEOCODE_SUFFIX = os.environ.get("GEOCODE_SUFFIX", ", Chicago, IL")
    OSRM_URL = os.environ.get(
        "OSRM_URL", "https://router.project-osrm.org/route/v1/driving"
    )
    USER_AGENT = os.environ.get("USER_AGENT", "chicago-safe-route/1.0")
    HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "10"))

    # Web server
    PORT = int(os.environ.get("PORT", "5000"))
    PUBLIC_DIR = os.environ.get("PUBLIC_DIR", str(BASE_DIR / "public"))
    OUTPUT_DIR = os.environ.get("OUTPUT_DIR", "output")
    H3_RESOLUTION = int(os.environ.get("H3_RESOLUTION", "9"))
