import asyncio
import time

from safepath.blending import blend
from safepath.geo import GeoPoint
from safepath.pipeline import gather_estimates, plan_routes
from safepath.recommendations import BASELINE_ADVICE, EXPENSIVE_ITEMS_ADVICE
from safepath.scoring import score_route
from tests.conftest import FailingEstimator, FixedEstimator

ORIGIN = GeoPoint(37.7749, -122.4194)
DESTINATION = GeoPoint(37.7699, -122.4130)


def test_gather_estimates_keeps_order_and_drops_late_calls():
    fast = FixedEstimator()
    points = [GeoPoint(1.0, 1.0), GeoPoint(2.0, 2.0)]

    assert asyncio.run(gather_estimates(fast, [])) == []

    results = asyncio.run(gather_estimates(fast, points, timeout=1.0))
    assert [r.coordinates for r in results] == points

    slow = FixedEstimator(delay_s=5.0)
    started = time.monotonic()
    results = asyncio.run(gather_estimates(slow, points, timeout=0.05))
    assert results == [None, None]
    assert time.monotonic() - started < 2.0


def test_missing_endpoint_gives_empty_plan(store):
    plan = asyncio.run(plan_routes(None, DESTINATION, store=store))

    assert plan.candidates == []
    assert plan.selected is None
    assert plan.recommendations == []


def test_local_only_plan_uses_local_scores(store):
    plan = asyncio.run(plan_routes(ORIGIN, DESTINATION, store=store))

    assert len(plan.candidates) == 3
    for candidate in plan.candidates:
        assert candidate.safety_score == score_route(candidate.path, store)
        assert candidate.crime_data is None
    assert plan.selected.safety_score.overall == max(c.safety_score.overall for c in plan.candidates)
    assert plan.recommendations == []


def test_remote_estimates_are_blended(store):
    estimator = FixedEstimator(crime_stats={"robbery": 8.0}, safety_score=100)
    plan = asyncio.run(plan_routes(ORIGIN, DESTINATION, store=store, estimator=estimator, sample_size=3))

    assert len(estimator.calls) == 9
    for candidate in plan.candidates:
        local = score_route(candidate.path, store)
        assert candidate.crime_data is not None
        assert candidate.crime_data.safety_score == 100
        assert candidate.safety_score == blend(local, candidate.crime_data)
    assert plan.recommendations[0] == BASELINE_ADVICE
    assert EXPENSIVE_ITEMS_ADVICE in plan.recommendations


def test_failing_estimator_falls_back_to_local(store):
    plan = asyncio.run(plan_routes(ORIGIN, DESTINATION, store=store, estimator=FailingEstimator()))

    for candidate in plan.candidates:
        assert candidate.crime_data is None
        assert candidate.safety_score == score_route(candidate.path, store)


def test_hung_estimator_is_cut_off_by_deadline(store):
    estimator = FixedEstimator(delay_s=10.0)
    started = time.monotonic()
    plan = asyncio.run(plan_routes(ORIGIN, DESTINATION, store=store, estimator=estimator, timeout=0.05))

    assert time.monotonic() - started < 5.0
    assert len(plan.candidates) == 3
    assert all(c.crime_data is None for c in plan.candidates)
