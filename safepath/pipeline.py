"""Route query orchestration: generate, score, estimate, blend, select."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence

from safepath.blending import blend
from safepath.config import ScoringConfig, get_settings
from safepath.crime_data import CrimeEstimate, CrimeEstimator, merge_estimates
from safepath.geo import GeoPoint
from safepath.recommendations import recommendations
from safepath.routes import RouteCandidate, generate_candidates, sample_path, select_safest
from safepath.scoring import score_route
from safepath.signals import RiskSignalStore, get_signal_store

logger = logging.getLogger(__name__)


@dataclass
class RoutePlan:
    """Scored candidates for one origin/destination query."""

    candidates: list[RouteCandidate] = field(default_factory=list)
    selected: RouteCandidate | None = None
    recommendations: list[str] = field(default_factory=list)


async def gather_estimates(
    estimator: CrimeEstimator,
    points: Sequence[GeoPoint],
    timeout: float | None = None,
    radius: float | None = None,
) -> list[CrimeEstimate | None]:
    """
    Run one estimate per point concurrently under a shared deadline.

    Calls still running at the deadline are cancelled and count as None.
    Results keep the order of `points`.
    """
    if not points:
        return []

    tasks = [asyncio.create_task(estimator.estimate(p.lat, p.lng, radius)) for p in points]
    done, pending = await asyncio.wait(tasks, timeout=timeout)

    if pending:
        logger.warning(f"{len(pending)} of {len(tasks)} crime estimates missed the {timeout}s deadline")
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    results: list[CrimeEstimate | None] = []
    for task in tasks:
        if task not in done or task.cancelled() or task.exception() is not None:
            results.append(None)
        else:
            results.append(task.result())
    return results


async def score_candidates(
    candidates: Sequence[RouteCandidate],
    store: RiskSignalStore,
    estimator: CrimeEstimator | None = None,
    timeout: float | None = None,
    sample_size: int = 3,
    config: ScoringConfig | None = None,
) -> list[RouteCandidate]:
    """
    Attach blended safety scores and crime data to each candidate.

    All remote lookups for the query share one deadline; a candidate whose
    lookups all fail keeps its local score and gets no crime data.
    """
    local_scores = [score_route(c.path, store, config) for c in candidates]

    samples = [sample_path(c.path, sample_size) if estimator else [] for c in candidates]
    flat_points = [point for sample in samples for point in sample]
    flat_estimates = (
        await gather_estimates(estimator, flat_points, timeout) if estimator else []
    )

    offset = 0
    for candidate, local, sample in zip(candidates, local_scores, samples):
        estimate = merge_estimates(flat_estimates[offset:offset + len(sample)])
        offset += len(sample)
        candidate.attach_safety(blend(local, estimate, config), estimate)

    return list(candidates)


async def plan_routes(
    origin: GeoPoint | None,
    destination: GeoPoint | None,
    store: RiskSignalStore | None = None,
    estimator: CrimeEstimator | None = None,
    timeout: float | None = None,
    sample_size: int | None = None,
    config: ScoringConfig | None = None,
) -> RoutePlan:
    """
    Build, score and rank the candidate routes for a query.

    Without an estimator only local scoring is used. The safest route is
    selected and its crime data drives the recommendations.
    """
    candidates = generate_candidates(origin, destination)
    if not candidates:
        return RoutePlan()

    settings = get_settings()
    store = store if store is not None else get_signal_store()
    timeout = settings.estimate_timeout_s if timeout is None else timeout
    sample_size = settings.sample_points if sample_size is None else sample_size

    await score_candidates(candidates, store, estimator, timeout, sample_size, config)

    selected = select_safest(candidates)
    advice = recommendations(selected.crime_data, config) if selected else []

    logger.info(
        f"Scored {len(candidates)} routes from ({origin.lat}, {origin.lng}) "
        f"to ({destination.lat}, {destination.lng}); selected {selected.id}"
    )
    return RoutePlan(candidates=candidates, selected=selected, recommendations=advice)
