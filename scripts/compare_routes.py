#!/usr/bin/env python3
"""
Compare candidate routes between two points by safety score.

Usage:
    python scripts/compare_routes.py 37.7749,-122.4194 37.7699,-122.4130
    python scripts/compare_routes.py 37.7749,-122.4194 37.7699,-122.4130 --local-only
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from safepath.config import get_crime_data_settings, get_settings
from safepath.crime_data import build_crime_estimator
from safepath.geo import GeoPoint
from safepath.pipeline import RoutePlan, plan_routes
from safepath.scoring import safety_level
from safepath.signals import RiskSignalStore, load_signal_store, services_near_path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_point(value: str) -> GeoPoint:
    """Parse 'lat,lng' into a GeoPoint."""
    try:
        lat, lng = (float(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected 'lat,lng', got {value!r}")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise argparse.ArgumentTypeError(f"coordinates out of range: {value!r}")
    return GeoPoint(lat=lat, lng=lng)


def display_plan(plan: RoutePlan, store: RiskSignalStore) -> None:
    """Print the results table and the final recommendation."""
    if not plan.candidates:
        print("\nNo routes could be generated.")
        return

    header = "| Route               | Duration | Distance | Overall | Crime | Lighting | Level    | Services |"
    divider = "-" * len(header)
    print()
    print(header)
    print(divider)

    for c in plan.candidates:
        score = c.safety_score
        services = services_near_path(c.path, store)
        print(f"| {c.name:<19} | {c.duration:<8} | {c.distance:<8} | "
              f"{score.overall:>7} | {score.crime:>5} | {score.lighting:>8} | "
              f"{safety_level(score.overall):<8} | {len(services):>8} |")

    print(divider)

    missing = [c.name for c in plan.candidates if c.crime_data is None]
    if missing:
        print("NOTE: No crime data service estimate for: " + ", ".join(missing) + " (local score only).")

    best = plan.selected
    print(f"\nSafest option: {best.name} (score {best.safety_score.overall}, {best.duration}, {best.distance})")

    if plan.recommendations:
        print("\nRecommendations:")
        for advice in plan.recommendations:
            print(f"  - {advice}")


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    signals_path = args.signals or settings.signals_path
    store = load_signal_store(signals_path)

    estimator = None if args.local_only else build_crime_estimator(get_crime_data_settings())
    if estimator is not None:
        logger.info(f"Using {estimator.mode} crime estimator")

    plan = await plan_routes(
        args.origin,
        args.destination,
        store=store,
        estimator=estimator,
        timeout=args.timeout,
    )
    display_plan(plan, store)
    return 0 if plan.candidates else 1


def main() -> None:
    parser = argparse.ArgumentParser(
        description="SafePath: compare candidate routes by safety score."
    )
    parser.add_argument("origin", type=parse_point, help="Origin as 'lat,lng'")
    parser.add_argument("destination", type=parse_point, help="Destination as 'lat,lng'")
    parser.add_argument("--signals", type=Path, help="Signals YAML file (default from settings)")
    parser.add_argument("--timeout", type=float, help="Deadline in seconds for crime data lookups")
    parser.add_argument("--local-only", action="store_true", help="Skip the crime data service")

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
