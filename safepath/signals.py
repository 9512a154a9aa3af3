"""Risk signal store: crime, lighting and emergency service points."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import yaml

from safepath.config import get_scoring_config, get_settings
from safepath.database import fetch_service_rows
from safepath.geo import GeoPath, GeoPoint, degree_distance

logger = logging.getLogger(__name__)


class LightingLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ServiceCategory(str, Enum):
    POLICE = "police"
    HOSPITAL = "hospital"
    FIRE_STATION = "fire_station"


# poi.type values in the PostGIS table
POI_TYPE_CATEGORIES = {
    "fire": ServiceCategory.FIRE_STATION,
    "hospital": ServiceCategory.HOSPITAL,
    "police": ServiceCategory.POLICE,
}


@dataclass(frozen=True)
class CrimeSignalPoint:
    """Crime density proxy; higher weight means more crime."""

    location: GeoPoint
    weight: float


@dataclass(frozen=True)
class LightingSignalPoint:
    """Known street lighting level at a location."""

    location: GeoPoint
    level: LightingLevel


@dataclass(frozen=True)
class ServiceSignalPoint:
    """Emergency service location (police, hospital, fire station)."""

    location: GeoPoint
    category: ServiceCategory
    name: str


@dataclass(frozen=True)
class RiskSignalStore:
    """Immutable collection of signal points injected into the scorer."""

    crime: tuple[CrimeSignalPoint, ...] = field(default_factory=tuple)
    lighting: tuple[LightingSignalPoint, ...] = field(default_factory=tuple)
    services: tuple[ServiceSignalPoint, ...] = field(default_factory=tuple)

    def counts(self) -> dict[str, int]:
        return {
            "crime": len(self.crime),
            "lighting": len(self.lighting),
            "services": len(self.services),
        }


@dataclass(frozen=True)
class NearbyService:
    """A service point together with its closest distance to a path."""

    service: ServiceSignalPoint
    distance_deg: float


def parse_crime_point(record: dict[str, Any]) -> CrimeSignalPoint:
    weight = float(record["weight"])
    if not 0.0 <= weight <= 1.0:
        raise ValueError(f"crime weight {weight} outside [0, 1]")
    return CrimeSignalPoint(location=GeoPoint.from_mapping(record), weight=weight)


def parse_lighting_point(record: dict[str, Any]) -> LightingSignalPoint:
    return LightingSignalPoint(
        location=GeoPoint.from_mapping(record),
        level=LightingLevel(record["level"]),
    )


def parse_service_point(record: dict[str, Any]) -> ServiceSignalPoint:
    category = record.get("category", record.get("type"))
    return ServiceSignalPoint(
        location=GeoPoint.from_mapping(record),
        category=ServiceCategory(category),
        name=str(record.get("name") or "Unnamed"),
    )


def _parse_records(records: Iterable[Any] | None, parser, kind: str) -> tuple:
    """Parse records, skipping malformed ones so one bad row can't break scoring."""
    parsed = []
    for index, record in enumerate(records or []):
        try:
            parsed.append(parser(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {kind} signal #{index}: {e}")
    return tuple(parsed)


def build_signal_store(data: dict[str, Any] | None) -> RiskSignalStore:
    """
    Build a store from a plain mapping with crime/lighting/services lists.

    Each record carries lat/lng plus weight (crime), level (lighting) or
    category and name (services).
    """
    data = data or {}
    return RiskSignalStore(
        crime=_parse_records(data.get("crime"), parse_crime_point, "crime"),
        lighting=_parse_records(data.get("lighting"), parse_lighting_point, "lighting"),
        services=_parse_records(data.get("services"), parse_service_point, "service"),
    )


def load_signal_store(path: Path) -> RiskSignalStore:
    """Load a signal store from a YAML file. A missing file gives an empty store."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"Signals file not found: {path}; using an empty signal store")
        return RiskSignalStore()

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, dict):
        logger.warning(f"Signals file {path} is not a mapping; using an empty signal store")
        return RiskSignalStore()

    store = build_signal_store(data)
    logger.info(f"Loaded signals from {path}: {store.counts()}")
    return store


def load_service_points_from_db() -> tuple[ServiceSignalPoint, ...]:
    """Read emergency service locations from the PostGIS poi table."""
    records = [
        {
            "lat": row["lat"],
            "lng": row["lng"],
            "category": POI_TYPE_CATEGORIES[row["type"]].value,
            "name": row["name"],
        }
        for row in fetch_service_rows()
        if row.get("type") in POI_TYPE_CATEGORIES
    ]
    return _parse_records(records, parse_service_point, "service")


@lru_cache
def get_signal_store() -> RiskSignalStore:
    """Get the cached application signal store."""
    settings = get_settings()
    store = load_signal_store(settings.signals_path)

    if settings.services_from_database:
        try:
            services = load_service_points_from_db()
        except Exception as e:
            logger.warning(f"Could not load services from database, keeping file services: {e}")
        else:
            store = replace(store, services=services)

    return store


def services_near_path(
    path: GeoPath | None,
    store: RiskSignalStore,
    radius: float | None = None,
) -> list[NearbyService]:
    """
    Find emergency services within `radius` degrees of any point on a path.

    Each service is reported once, with its closest distance to the path,
    nearest first.
    """
    if not path:
        return []
    if radius is None:
        radius = get_scoring_config().proximity.service

    nearby = []
    for service in store.services:
        closest = min(degree_distance(point, service.location) for point in path)
        if closest < radius:
            nearby.append(NearbyService(service=service, distance_deg=closest))

    nearby.sort(key=lambda n: n.distance_deg)
    return nearby
