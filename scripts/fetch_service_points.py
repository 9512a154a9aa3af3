#!/usr/bin/env python3
"""
SafePath emergency service fetcher

Fetches police stations, hospitals and fire stations inside a bounding box
from the OpenStreetMap Overpass API and writes them into the `services`
section of a signals YAML file. Crime and lighting signals already in the
file are kept.

Usage:
    python scripts/fetch_service_points.py --bbox -122.45,37.75,-122.39,37.80
    python scripts/fetch_service_points.py --bbox ... --output config/signals.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import requests
import yaml

from safepath.config import CONFIG_DIR
from safepath.signals import ServiceCategory, build_signal_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================

OVERPASS_URL = "https://overpass-api.de/api/interpreter"

# OSM amenity tag for each service category
AMENITY_TAGS = {
    ServiceCategory.POLICE: "police",
    ServiceCategory.HOSPITAL: "hospital",
    ServiceCategory.FIRE_STATION: "fire_station",
}

OVERPASS_QUERY = """
[out:json][timeout:120];
(
  node["amenity"="{amenity}"]({south},{west},{north},{east});
  way["amenity"="{amenity}"]({south},{west},{north},{east});
  relation["amenity"="{amenity}"]({south},{west},{north},{east});
);
out center;
"""


# =============================================================================
# Data Fetching Functions
# =============================================================================

def build_query(amenity: str, bbox: tuple[float, float, float, float]) -> str:
    west, south, east, north = bbox
    return (
        OVERPASS_QUERY
        .replace("{amenity}", amenity)
        .replace("{south}", str(south))
        .replace("{west}", str(west))
        .replace("{north}", str(north))
        .replace("{east}", str(east))
    )


def fetch_services(category: ServiceCategory, bbox: tuple[float, float, float, float]) -> list[dict[str, Any]]:
    """Fetch one service category from Overpass as signal records."""
    amenity = AMENITY_TAGS[category]
    logger.info(f"Fetching {category.value} from Overpass API...")

    response = requests.post(
        OVERPASS_URL,
        data={"data": build_query(amenity, bbox)},
        timeout=180
    )
    response.raise_for_status()
    data = response.json()

    records = []
    for element in data.get("elements", []):
        if element["type"] == "node":
            lat, lng = element["lat"], element["lon"]
        else:
            center = element.get("center", {})
            lat, lng = center.get("lat"), center.get("lon")
            if lat is None or lng is None:
                continue

        tags = element.get("tags", {})
        records.append({
            "lat": lat,
            "lng": lng,
            "category": category.value,
            "name": tags.get("name", "Unnamed"),
        })

    logger.info(f"  Found {len(records)} {category.value} locations")
    return records


# =============================================================================
# Signals File Functions
# =============================================================================

def read_signals_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def write_signals_file(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)


def run_fetch(bbox: tuple[float, float, float, float], base: Path, output: Path) -> dict[str, int]:
    """Fetch every category and merge the services into the signals file."""
    data = read_signals_file(base)
    services: list[dict[str, Any]] = []
    results = {}

    for category in ServiceCategory:
        try:
            records = fetch_services(category, bbox)
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Failed to fetch {category.value}: {e}")
            results[category.value] = 0
            continue
        services.extend(records)
        results[category.value] = len(records)

    # Validate with the same parser the scorer uses before writing
    store = build_signal_store({"services": services})
    logger.info(f"Validated {len(store.services)} of {len(services)} service records")

    data["services"] = services
    write_signals_file(output, data)

    logger.info("=" * 60)
    logger.info(f"Wrote {output}")
    for category, count in results.items():
        logger.info(f"  {category.upper()}: {count} records")
    logger.info(f"  TOTAL: {sum(results.values())} records")
    return results


def parse_bbox_arg(value: str) -> tuple[float, float, float, float]:
    try:
        west, south, east, north = (float(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError("bbox must be 'minLng,minLat,maxLng,maxLat'")
    if west > east or south > north:
        raise argparse.ArgumentTypeError("bbox minimums must not exceed maximums")
    return west, south, east, north


def main():
    parser = argparse.ArgumentParser(description="Fetch emergency services into a SafePath signals file")
    parser.add_argument(
        "--bbox",
        type=parse_bbox_arg,
        required=True,
        help="Bounding box as 'minLng,minLat,maxLng,maxLat'"
    )
    parser.add_argument(
        "--base",
        type=Path,
        default=CONFIG_DIR / "signals.yaml",
        help="Signals file whose crime/lighting sections are kept"
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Output signals file (defaults to --base)"
    )

    args = parser.parse_args()
    results = run_fetch(args.bbox, args.base, args.output or args.base)
    if not any(results.values()):
        sys.exit(1)


if __name__ == "__main__":
    main()
