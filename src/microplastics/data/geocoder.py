"""Reverse-geocoding client: sample coordinates -> ZIP code.

Archived step used once to attach ZIP codes to sampling sites so the
ZIP population table could be joined. The API key is read from the
environment; it is never stored in source.

Handles:
- Retry logic with exponential backoff
- HTTP 429 rate limiting with Retry-After
- Per-coordinate response caching

Key Classes:
    ReverseGeocoder - HTTP client for the geocoding endpoint

Usage:
    from microplastics.data.geocoder import ReverseGeocoder

    geocoder = ReverseGeocoder()  # MICROPLASTICS_GEOCODER_API_KEY must be set
    sites = geocoder.geocode_frame(sites)
"""

from __future__ import annotations

import logging
import os
import random
import time
from typing import Dict, Optional, Tuple

import pandas as pd
import requests

from microplastics.config import (
    GEOCODER_API_KEY_ENV,
    GEOCODER_URL,
    MAX_RETRIES,
    REQUEST_DELAY,
)
from microplastics.features.definitions import ZIP_KEY

logger = logging.getLogger(__name__)

MAX_DELAY = 60  # Maximum backoff delay in seconds
RATE_LIMIT_STATUS = 429  # HTTP "Too Many Requests"


class ReverseGeocoder:
    """Latitude/longitude -> postal code lookups with caching and retries."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = GEOCODER_URL,
        request_delay: float = REQUEST_DELAY,
        max_retries: int = MAX_RETRIES,
    ):
        self.api_key = api_key or os.environ.get(GEOCODER_API_KEY_ENV)
        if not self.api_key:
            raise RuntimeError(
                f"No geocoder API key. Set {GEOCODER_API_KEY_ENV} or pass api_key."
            )
        self.base_url = base_url
        self.request_delay = request_delay
        self.max_retries = max_retries
        self.session = requests.Session()
        self._cache: Dict[Tuple[float, float], Optional[str]] = {}

    def _get(self, params: Dict) -> Dict:
        """GET with retry logic and rate-limit handling.

        Raises:
            RuntimeError: If all attempts fail.
        """
        for attempt in range(self.max_retries):
            try:
                time.sleep(self.request_delay)
                resp = self.session.get(self.base_url, params=params, timeout=30)

                if resp.status_code == RATE_LIMIT_STATUS:
                    retry_after = int(resp.headers.get("Retry-After", 5))
                    logger.warning(f"Rate limited (429). Waiting {retry_after}s")
                    time.sleep(min(retry_after, MAX_DELAY))
                    continue

                resp.raise_for_status()
                return resp.json()

            except requests.RequestException as e:
                wait_time = min(2 ** attempt + random.uniform(0, 1), MAX_DELAY)
                logger.warning(
                    f"Geocode request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                    f"Retrying in {wait_time:.1f}s"
                )
                if attempt < self.max_retries - 1:
                    time.sleep(wait_time)

        raise RuntimeError(f"All {self.max_retries} geocode attempts failed")

    @staticmethod
    def parse_postal_code(payload: Dict) -> Optional[str]:
        """First postal_code component in a geocoding response."""
        for result in payload.get("results", []):
            for component in result.get("address_components", []):
                if "postal_code" in component.get("types", []):
                    return str(component.get("short_name") or component.get("long_name"))[:5]
        return None

    def lookup_zip(self, lat: float, lon: float) -> Optional[str]:
        """ZIP code for a coordinate pair, or None if the service has none."""
        key = (round(float(lat), 6), round(float(lon), 6))
        if key in self._cache:
            return self._cache[key]

        payload = self._get({
            "latlng": f"{key[0]},{key[1]}",
            "result_type": "postal_code",
            "key": self.api_key,
        })
        status = payload.get("status", "OK")
        if status not in ("OK", "ZERO_RESULTS"):
            raise RuntimeError(f"Geocoder returned status {status} for {key}")

        zip_code = self.parse_postal_code(payload)
        if zip_code is None:
            logger.warning(f"No postal code for {key}")
        self._cache[key] = zip_code
        return zip_code

    def geocode_frame(
        self,
        df: pd.DataFrame,
        lat_col: str = "latitude",
        lon_col: str = "longitude",
    ) -> pd.DataFrame:
        """Return a copy of `df` with a ZIP column from each row's coordinates."""
        df = df.copy()
        logger.info(f"Geocoding {len(df):,} rows...")
        df[ZIP_KEY] = [
            self.lookup_zip(lat, lon) for lat, lon in zip(df[lat_col], df[lon_col])
        ]
        found = df[ZIP_KEY].notna().sum()
        logger.info(f"Resolved {found:,} / {len(df):,} ZIP codes")
        return df
