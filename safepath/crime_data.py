"""
Crime statistics estimates for coordinates.

Two estimators share one contract: `await estimator.estimate(lat, lng, radius)`
returns a CrimeEstimate, or None when no estimate could be produced. Failures
are logged here and never reach the caller.
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx

from safepath.config import CrimeDataSettings, get_crime_data_settings
from safepath.geo import GeoPoint, degree_distance
from safepath.scoring import round_half_up

logger = logging.getLogger(__name__)

# Upper bound of the simulated rate for each category
CRIME_CATEGORY_MAXIMA = {
    "violent-crime": 10.0,
    "property-crime": 25.0,
    "homicide": 1.0,
    "robbery": 8.0,
    "aggravated-assault": 15.0,
}

# Total rate at which the derived safety score reaches zero
MAX_EXPECTED_CRIME_RATE = 100.0

JITTER_RANGE = (0.7, 1.3)


@dataclass(frozen=True)
class HighCrimeArea:
    location: GeoPoint
    weight: float


HIGH_CRIME_AREAS = (
    HighCrimeArea(GeoPoint(37.774, -122.419), 0.8),
    HighCrimeArea(GeoPoint(37.776, -122.418), 0.9),
    HighCrimeArea(GeoPoint(37.775, -122.417), 0.7),
)


@dataclass(frozen=True)
class CrimeEstimate:
    """Crime statistics around a coordinate."""

    coordinates: GeoPoint
    crime_stats: dict[str, float]
    total_crime_rate: float
    safety_score: int
    radius: float = 1.0
    source: str = field(default="simulated", compare=False)

    def as_dict(self) -> dict[str, Any]:
        return {
            "coordinates": self.coordinates.as_dict(),
            "crimeStats": dict(self.crime_stats),
            "totalCrimeRate": self.total_crime_rate,
            "safetyScore": self.safety_score,
            "radius": self.radius,
        }


def crime_safety_score(total_crime_rate: float) -> int:
    """Safety score 0-100 from a total crime rate; higher rate, lower score."""
    raw = 100 - (total_crime_rate / MAX_EXPECTED_CRIME_RATE) * 100
    return max(0, min(100, round_half_up(raw)))


def _category_rates_from_results(results: Iterable[Any]) -> dict[str, float]:
    """Sum offense counts from a list of {offense, count|rate|actual} records."""
    rates: dict[str, float] = {}
    for item in results:
        category = item.get("offense") or item.get("offense_type")
        if not category:
            raise ValueError(f"offense record without a category: {item!r}")
        value = item.get("rate", item.get("count", item.get("actual")))
        rates[str(category)] = rates.get(str(category), 0.0) + float(value)
    return rates


def estimate_from_payload(
    payload: Any,
    lat: float,
    lng: float,
    radius: float = 1.0,
    source: str = "remote",
) -> CrimeEstimate:
    """
    Convert a crime data service response into a CrimeEstimate.

    Accepts either a category mapping under "crimeStats" or a list of
    category-keyed offense records under "results". Raises ValueError,
    KeyError or TypeError on payloads that fit neither shape.
    """
    if not isinstance(payload, dict):
        raise ValueError("crime payload is not an object")

    if isinstance(payload.get("crimeStats"), dict):
        rates = {str(k): float(v) for k, v in payload["crimeStats"].items()}
    elif isinstance(payload.get("results"), list):
        rates = _category_rates_from_results(payload["results"])
    else:
        raise ValueError("crime payload has neither crimeStats nor results")

    total = payload.get("totalCrimeRate")
    total = float(total) if total is not None else sum(rates.values())

    score = payload.get("safetyScore")
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        score = max(0, min(100, round_half_up(score)))
    else:
        score = crime_safety_score(total)

    return CrimeEstimate(
        coordinates=GeoPoint(lat=lat, lng=lng),
        crime_stats=rates,
        total_crime_rate=total,
        safety_score=score,
        radius=radius,
        source=source,
    )


def merge_estimates(estimates: Iterable[CrimeEstimate | None]) -> CrimeEstimate | None:
    """
    Average the available estimates for one route into a single estimate.

    Missing categories count as zero; None entries are ignored. Returns
    None when nothing is left.
    """
    valid = [e for e in estimates if e is not None]
    if not valid:
        return None
    if len(valid) == 1:
        return valid[0]

    n = len(valid)
    categories: list[str] = []
    for estimate in valid:
        categories.extend(c for c in estimate.crime_stats if c not in categories)

    return CrimeEstimate(
        coordinates=GeoPoint(
            lat=sum(e.coordinates.lat for e in valid) / n,
            lng=sum(e.coordinates.lng for e in valid) / n,
        ),
        crime_stats={c: sum(e.crime_stats.get(c, 0.0) for e in valid) / n for c in categories},
        total_crime_rate=sum(e.total_crime_rate for e in valid) / n,
        safety_score=round_half_up(sum(e.safety_score for e in valid) / n),
        radius=max(e.radius for e in valid),
        source=valid[0].source,
    )


class CrimeEstimator(ABC):
    """Base class for crime estimate providers."""

    mode = "abstract"

    def __init__(self, default_radius: float = 1.0):
        self.default_radius = default_radius

    async def estimate(
        self,
        lat: float,
        lng: float,
        radius: float | None = None,
    ) -> CrimeEstimate | None:
        """Estimate crime around a coordinate; None on any failure."""
        radius = self.default_radius if radius is None else radius
        try:
            return await self._fetch_estimate(lat, lng, radius)
        except httpx.TimeoutException as e:
            logger.warning(f"Crime estimate timed out for ({lat}, {lng}): {e}")
        except httpx.HTTPStatusError as e:
            logger.warning(f"Crime data service returned {e.response.status_code} for ({lat}, {lng})")
        except httpx.HTTPError as e:
            logger.warning(f"Crime data service unreachable for ({lat}, {lng}): {e}")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed crime data for ({lat}, {lng}): {e}")
        except Exception:
            logger.exception(f"Crime estimate failed for ({lat}, {lng})")
        return None

    async def check_health(self) -> bool:
        return True

    @abstractmethod
    async def _fetch_estimate(self, lat: float, lng: float, radius: float) -> CrimeEstimate:
        """Produce an estimate or raise."""


class SimulatedCrimeEstimator(CrimeEstimator):
    """
    Local stand-in for the crime data service.

    Category rates grow with proximity to a few known high-crime areas,
    with a bounded random jitter of 0.7x-1.3x.
    """

    mode = "simulated"

    def __init__(
        self,
        rng: random.Random | None = None,
        latency_s: float = 0.0,
        areas: tuple[HighCrimeArea, ...] = HIGH_CRIME_AREAS,
        default_radius: float = 1.0,
    ):
        super().__init__(default_radius=default_radius)
        self.rng = rng or random.Random()
        self.latency_s = latency_s
        self.areas = areas

    def weighted_rate(self, point: GeoPoint, max_value: float) -> float:
        """Rate for one category, scaled by the closest high-crime area."""
        if not self.areas:
            return 0.0
        closest = min(self.areas, key=lambda area: degree_distance(point, area.location))
        distance = degree_distance(point, closest.location)
        proximity = max(0.0, 1 - distance * 100)
        jitter = self.rng.uniform(*JITTER_RANGE)
        return min(max_value, max_value * closest.weight * proximity * jitter)

    async def _fetch_estimate(self, lat: float, lng: float, radius: float) -> CrimeEstimate:
        if self.latency_s > 0:
            await asyncio.sleep(self.latency_s)

        point = GeoPoint(lat=lat, lng=lng)
        rates = {
            category: self.weighted_rate(point, max_value)
            for category, max_value in CRIME_CATEGORY_MAXIMA.items()
        }
        total = sum(rates.values())
        return CrimeEstimate(
            coordinates=point,
            crime_stats=rates,
            total_crime_rate=total,
            safety_score=crime_safety_score(total),
            radius=radius,
            source=self.mode,
        )


class HttpCrimeEstimator(CrimeEstimator):
    """
    Client for the crime data proxy service.

    The FBI proxy only serves health, location and national lookups.
    Coordinate estimates come from ESTIMATE_PATH, which a separate
    estimate service (or an extended proxy) has to provide; against the
    plain proxy every estimate 404s and resolves to None.
    """

    mode = "remote"
    ESTIMATE_PATH = "/api/crime/estimate"
    LOCATION_PATH = "/api/fbi/crime/location"
    NATIONAL_PATH = "/api/fbi/crime/national"
    HEALTH_PATH = "/api/health"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_s: float = 5.0,
        default_radius: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(default_radius=default_radius)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._client = client

    def _params(self, **params: Any) -> dict[str, Any]:
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            response = await self._client.get(url, params=params)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def _fetch_estimate(self, lat: float, lng: float, radius: float) -> CrimeEstimate:
        payload = await self._get_json(
            self.ESTIMATE_PATH, self._params(lat=lat, lng=lng, radius=radius)
        )
        return estimate_from_payload(payload, lat, lng, radius, source=self.mode)

    async def check_health(self) -> bool:
        """True when the proxy is up and has an API key configured."""
        try:
            data = await self._get_json(self.HEALTH_PATH, {})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Crime data service health check failed: {e}")
            return False
        return isinstance(data, dict) and data.get("status") == "ok" and data.get("apiConfigured") is True

    async def crime_stats_by_location(self, state: str, city: str) -> Any | None:
        """Raw offense statistics for a state/city pair, or None."""
        try:
            return await self._get_json(self.LOCATION_PATH, self._params(state=state, city=city))
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Crime stats lookup failed for {city}, {state}: {e}")
            return None

    async def national_trends(self, years_back: int = 5) -> Any | None:
        """Raw national crime estimates for the last `years_back` years, or None."""
        try:
            return await self._get_json(self.NATIONAL_PATH, self._params(years=years_back))
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"National crime trends lookup failed: {e}")
            return None


def build_crime_estimator(settings: CrimeDataSettings | None = None) -> CrimeEstimator:
    """HTTP estimator when a service URL is configured, simulated otherwise."""
    settings = settings or get_crime_data_settings()
    if settings.base_url:
        return HttpCrimeEstimator(
            base_url=settings.base_url,
            api_key=settings.api_key,
            timeout_s=settings.timeout_s,
            default_radius=settings.default_radius,
        )
    return SimulatedCrimeEstimator(
        latency_s=settings.simulated_latency_s,
        default_radius=settings.default_radius,
    )
