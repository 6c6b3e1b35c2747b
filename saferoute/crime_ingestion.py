"""
Chicago Crime Data Ingestion Module
Fetches recent crime records from the Chicago Data Portal (Socrata API)
and turns them into classified incident points for the map.
"""
import requests
import pandas as pd
from pathlib import Path
from typing import List, Optional

from .categories import classify
from .config import Config
from .errors import IncidentFeedError
from .incidents import IncidentPoint


class ChicagoCrimeIngestion:
    """Fetches and processes Chicago crime data"""

    RAW_COLUMNS = ["primary_type", "description", "latitude", "longitude", "date"]

    def __init__(
        self,
        cache_dir: str = Config.CACHE_DIR,
        base_url: str = Config.CRIME_FEED_URL,
        app_token: str = Config.SOCRATA_APP_TOKEN,
        timeout: float = Config.HTTP_TIMEOUT,
    ):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url
        self.app_token = app_token
        self.timeout = timeout
        self.raw_data: Optional[pd.DataFrame] = None
        self.incidents: Optional[List[IncidentPoint]] = None
        self.dropped_count = 0

    def fetch_crimes(
        self,
        limit: int = Config.CRIME_FEED_LIMIT,
        since: str = Config.CRIME_FEED_SINCE,
        use_cache: bool = True,
    ) -> pd.DataFrame:
        """
        Fetch raw crime records newer than `since`.

        Args:
            limit: Max records to request
            since: ISO date, only crimes after it are returned
            use_cache: Reuse a previously cached response for the same query

        Returns:
            DataFrame of raw records (primary_type, description, latitude,
            longitude, date)
        """
        cache_file = self.cache_dir / f"chicago_crimes_{since}_{limit}.parquet"

        if use_cache and cache_file.exists():
            print(f"Loading cached Chicago crime data from {cache_file}")
            self.raw_data = pd.read_parquet(cache_file)
            return self.raw_data

        print(f"Fetching up to {limit} Chicago crime records since {since}...")

        params = {
            "$limit": limit,
            "$where": f"date>'{since}'",
        }
        headers = {"X-App-Token": self.app_token} if self.app_token else {}

        try:
            response = requests.get(
                self.base_url, params=params, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            records = response.json()
        except (requests.ConnectionError, requests.Timeout, requests.HTTPError) as e:
            fallback = self._find_fallback_cache("chicago_crimes_*.parquet")
            if fallback is not None:
                print(f"WARNING: API request failed ({e.__class__.__name__}). "
                      f"Using fallback cache: {fallback}")
                self.raw_data = pd.read_parquet(fallback)
                return self.raw_data
            raise IncidentFeedError(
                f"Cannot fetch Chicago crime data and no cached files found. Error: {e}"
            ) from e

        self.raw_data = self._records_to_frame(records)
        self.raw_data.to_parquet(cache_file)
        print(f"Cached {len(self.raw_data)} crime records to {cache_file}")

        return self.raw_data

    def load_records(self, records: List[dict]) -> pd.DataFrame:
        """Use already-fetched raw records instead of calling the API"""
        self.raw_data = self._records_to_frame(records)
        return self.raw_data

    def _records_to_frame(self, records: List[dict]) -> pd.DataFrame:
        df = pd.DataFrame(records)
        for col in self.RAW_COLUMNS:
            if col not in df.columns:
                df[col] = None
        df = df[self.RAW_COLUMNS].copy()
        # Socrata sends strings; keep one type per column so parquet can store it
        for col in self.RAW_COLUMNS:
            df[col] = df[col].map(lambda v: None if pd.isna(v) else str(v))
        return df

    def _find_fallback_cache(self, pattern: str) -> Optional[Path]:
        candidates = sorted(
            self.cache_dir.glob(pattern),
            key=lambda p: p.stat().st_mtime,
            reverse=True
        )
        return candidates[0] if candidates else None

    def to_incidents(self) -> List[IncidentPoint]:
        """
        Classify raw records into incident points.

        Records whose latitude/longitude are missing or not numeric are
        dropped without error.
        """
        if self.raw_data is None:
            raise ValueError("No data loaded. Call fetch_crimes() first.")

        df = self.raw_data.copy()
        total = len(df)

        df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce")
        df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce")
        df = df[df["latitude"].notna() & df["longitude"].notna()].copy()
        self.dropped_count = total - len(df)

        df["primary_type"] = df["primary_type"].fillna("").astype(str)
        df["description"] = df["description"].fillna("").astype(str)
        df["crime_datetime"] = pd.to_datetime(df["date"], errors="coerce")

        incidents = []
        for row in df.itertuples(index=False):
            occurred = row.crime_datetime
            incidents.append(IncidentPoint(
                lat=float(row.latitude),
                lng=float(row.longitude),
                category=classify(row.primary_type, row.description),
                description=row.description or row.primary_type,
                occurred_on=None if pd.isna(occurred) else occurred.date(),
            ))

        self.incidents = incidents
        print(f"Fetched {len(incidents)} crime points "
              f"({self.dropped_count} records without coordinates dropped)")
        return incidents

    def get_incidents(self, use_cache: bool = True) -> List[IncidentPoint]:
        if self.incidents is None:
            self.fetch_crimes(use_cache=use_cache)
            self.to_incidents()
        return self.incidents

    def get_stats(self) -> dict:
        if not self.incidents:
            return {}
        dates = [p.occurred_on for p in self.incidents if p.occurred_on is not None]
        by_category = pd.Series([p.category.value for p in self.incidents]).value_counts()
        return {
            "total_crimes": len(self.incidents),
            "dropped_records": self.dropped_count,
            "date_range": {
                "start": str(min(dates)) if dates else None,
                "end": str(max(dates)) if dates else None,
            },
            "by_category": {k: int(v) for k, v in by_category.items()},
        }
