"""Shared fixtures for SafePath tests."""

import asyncio

import pytest

from safepath.config import ScoringConfig
from safepath.crime_data import CrimeEstimate, CrimeEstimator
from safepath.geo import GeoPoint
from safepath.signals import RiskSignalStore, build_signal_store

SF_SIGNALS = {
    "crime": [
        {"lat": 37.774, "lng": -122.419, "weight": 0.8},
        {"lat": 37.775, "lng": -122.417, "weight": 0.7},
        {"lat": 37.776, "lng": -122.418, "weight": 0.9},
        {"lat": 37.773, "lng": -122.415, "weight": 0.5},
        {"lat": 37.772, "lng": -122.416, "weight": 0.4},
        {"lat": 37.771, "lng": -122.414, "weight": 0.6},
        {"lat": 37.770, "lng": -122.413, "weight": 0.2},
        {"lat": 37.769, "lng": -122.412, "weight": 0.1},
        {"lat": 37.768, "lng": -122.410, "weight": 0.3},
    ],
    "lighting": [
        {"lat": 37.774, "lng": -122.419, "level": "low"},
        {"lat": 37.772, "lng": -122.416, "level": "medium"},
        {"lat": 37.770, "lng": -122.413, "level": "high"},
    ],
    "services": [
        {"lat": 37.773, "lng": -122.415, "category": "police", "name": "Central Police Station"},
        {"lat": 37.769, "lng": -122.412, "category": "hospital", "name": "City Hospital"},
        {"lat": 37.775, "lng": -122.417, "category": "fire_station", "name": "Fire Station 3"},
    ],
}


def make_estimate(
    crime_stats: dict[str, float] | None = None,
    total: float | None = None,
    safety_score: int = 80,
    lat: float = 37.774,
    lng: float = -122.419,
) -> CrimeEstimate:
    crime_stats = crime_stats or {}
    return CrimeEstimate(
        coordinates=GeoPoint(lat, lng),
        crime_stats=crime_stats,
        total_crime_rate=sum(crime_stats.values()) if total is None else total,
        safety_score=safety_score,
    )


class FixedEstimator(CrimeEstimator):
    """Returns the same statistics for every coordinate, optionally after a delay."""

    mode = "fixed"

    def __init__(self, crime_stats=None, safety_score=100, delay_s=0.0):
        super().__init__()
        self.crime_stats = crime_stats or {"robbery": 8.0}
        self.safety_score = safety_score
        self.delay_s = delay_s
        self.calls = []

    async def _fetch_estimate(self, lat, lng, radius):
        self.calls.append((lat, lng, radius))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return CrimeEstimate(
            coordinates=GeoPoint(lat, lng),
            crime_stats=dict(self.crime_stats),
            total_crime_rate=sum(self.crime_stats.values()),
            safety_score=self.safety_score,
            radius=radius,
        )


class FailingEstimator(CrimeEstimator):
    mode = "failing"

    async def _fetch_estimate(self, lat, lng, radius):
        raise RuntimeError("crime service exploded")

    async def check_health(self):
        return False


@pytest.fixture
def config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def store() -> RiskSignalStore:
    return build_signal_store(SF_SIGNALS)


@pytest.fixture
def empty_store() -> RiskSignalStore:
    return RiskSignalStore()
