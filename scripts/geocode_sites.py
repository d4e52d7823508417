#!/usr/bin/env python3
"""Attach ZIP codes to sampling sites (archived step).

Reads a cached frame with latitude/longitude, looks up each coordinate's
ZIP code through the reverse-geocoding API, and caches the result.

Usage:
    MICROPLASTICS_GEOCODER_API_KEY=... python scripts/geocode_sites.py --dataset sites
    python scripts/geocode_sites.py --dataset sites --out sites_zip

Environment:
    MICROPLASTICS_GEOCODER_API_KEY: API key (required)
    MICROPLASTICS_GEOCODER_URL: Endpoint override
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add src to path if running as script
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microplastics.data import DataReader, ReverseGeocoder

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Reverse-geocode sampling sites to ZIP codes")
    parser.add_argument("--dataset", required=True, help="Cached frame with latitude/longitude")
    parser.add_argument("--out", default=None, help="Name for the output frame (default: <dataset>_zip)")
    parser.add_argument("--data-dir", default=None, help="Cached data directory")
    args = parser.parse_args()

    reader = DataReader(args.data_dir)
    sites = reader.load_dataset(args.dataset)

    try:
        geocoder = ReverseGeocoder()
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    # One lookup per distinct site location
    unique = sites.drop_duplicates(subset=["latitude", "longitude"])
    coded = geocoder.geocode_frame(unique)
    sites = sites.merge(coded[["latitude", "longitude", "zip"]], on=["latitude", "longitude"], how="left")

    path = reader.save_dataset(sites, args.out or f"{args.dataset}_zip")
    logger.info(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
