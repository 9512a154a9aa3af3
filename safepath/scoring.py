"""Route safety score calculation service."""

import math
from dataclasses import dataclass

from safepath.config import ScoringConfig, get_scoring_config
from safepath.geo import GeoPath, GeoPoint, degree_distance
from safepath.signals import LightingLevel, RiskSignalStore


@dataclass(frozen=True)
class SafetyScore:
    """Composite route safety score; every field is in 0-100."""

    overall: int
    crime: int
    lighting: int

    def as_dict(self) -> dict[str, int]:
        return {"overall": self.overall, "crime": self.crime, "lighting": self.lighting}


ZERO_SCORE = SafetyScore(overall=0, crime=0, lighting=0)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 always going up (62.5 -> 63)."""
    return int(math.floor(value + 0.5))


def combine_subscores(crime: int, lighting: int, config: ScoringConfig | None = None) -> int:
    """Overall score from already-rounded crime and lighting sub-scores."""
    config = config or get_scoring_config()
    return round_half_up(crime * config.weights.crime + lighting * config.weights.lighting)


def point_crime_exposure(
    point: GeoPoint,
    store: RiskSignalStore,
    threshold: float,
) -> float:
    """
    Cumulative crime exposure at one path point.

    Every crime signal closer than `threshold` degrees contributes
    weight * (1 - distance * 100); nearby signals add up.
    """
    exposure = 0.0
    for signal in store.crime:
        distance = degree_distance(point, signal.location)
        if distance < threshold:
            exposure += signal.weight * (1 - distance * 100)
    return exposure


def point_lighting_level(
    point: GeoPoint,
    store: RiskSignalStore,
    config: ScoringConfig,
) -> float:
    """
    Estimated lighting (0-1) at one path point.

    Starts at the baseline and is raised to the floor of any nearby light
    source; a dimmer source never lowers a better estimate.
    """
    floors = {
        LightingLevel.HIGH: config.lighting.high,
        LightingLevel.MEDIUM: config.lighting.medium,
        LightingLevel.LOW: config.lighting.low,
    }
    level = config.lighting.baseline
    for signal in store.lighting:
        if degree_distance(point, signal.location) < config.proximity.lighting:
            level = max(level, floors[signal.level])
    return level


def calculate_crime_subscore(
    path: GeoPath,
    store: RiskSignalStore,
    config: ScoringConfig | None = None,
) -> float:
    """Crime safety (0-100, higher is safer) averaged over path points."""
    config = config or get_scoring_config()
    if not path:
        return 0.0
    total = sum(point_crime_exposure(p, store, config.proximity.crime) for p in path)
    return clamp(100 - (total / len(path)) * 100)


def calculate_lighting_subscore(
    path: GeoPath,
    store: RiskSignalStore,
    config: ScoringConfig | None = None,
) -> float:
    """Lighting quality (0-100) averaged over path points."""
    config = config or get_scoring_config()
    if not path:
        return 0.0
    total = sum(point_lighting_level(p, store, config) for p in path)
    return clamp((total / len(path)) * 100)


def score_route(
    path: GeoPath | None,
    store: RiskSignalStore,
    config: ScoringConfig | None = None,
) -> SafetyScore:
    """
    Calculate the safety score of a route from nearby risk signals.

    Args:
        path: Ordered route points (origin first, destination last)
        store: Crime and lighting signals to score against
        config: Scoring constants (defaults to the loaded configuration)

    Returns:
        SafetyScore with overall = crime * 0.6 + lighting * 0.4 rounded half up;
        an empty or missing path scores zero everywhere
    """
    if not path:
        return ZERO_SCORE
    config = config or get_scoring_config()

    crime = round_half_up(calculate_crime_subscore(path, store, config))
    lighting = round_half_up(calculate_lighting_subscore(path, store, config))

    return SafetyScore(
        overall=combine_subscores(crime, lighting, config),
        crime=crime,
        lighting=lighting,
    )


def safety_level(score: int, config: ScoringConfig | None = None) -> str:
    """Qualitative band for a 0-100 score: safe, moderate or unsafe."""
    config = config or get_scoring_config()
    if score >= config.bands.safe:
        return "safe"
    if score >= config.bands.moderate:
        return "moderate"
    return "unsafe"
