"""SafePath FastAPI Application."""

import logging
from functools import lru_cache

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from safepath.config import get_crime_data_settings, get_scoring_config, get_settings
from safepath.crime_data import CrimeEstimator, build_crime_estimator
from safepath.database import check_connection
from safepath.geo import GeoPoint
from safepath.pipeline import plan_routes
from safepath.recommendations import recommendations
from safepath.schemas import (
    CrimeEstimateResponse,
    EstimateResponse,
    HealthResponse,
    RouteCandidateResponse,
    RoutesResponse,
    SafetyScoreResponse,
    ScoreRequest,
    ServiceListResponse,
    ServiceResponse,
)
from safepath.scoring import score_route
from safepath.signals import RiskSignalStore, ServiceCategory, get_signal_store, services_near_path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@lru_cache
def get_crime_estimator() -> CrimeEstimator:
    """Get the cached crime estimator for the configured data service."""
    return build_crime_estimator(get_crime_data_settings())


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    description="Route safety scores from crime density and street lighting",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def parse_bbox(bbox: str) -> tuple[float, float, float, float]:
    """Parse 'minLng,minLat,maxLng,maxLat'."""
    parts = bbox.split(",")
    if len(parts) != 4:
        raise ValueError("bbox must have 4 comma-separated values")
    min_lng, min_lat, max_lng, max_lat = map(float, parts)
    if min_lng > max_lng or min_lat > max_lat:
        raise ValueError("bbox minimums must not exceed maximums")
    return min_lng, min_lat, max_lng, max_lat


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    store: RiskSignalStore = Depends(get_signal_store),
    estimator: CrimeEstimator = Depends(get_crime_estimator),
):
    """Check signal data, crime data service and (optional) database health."""
    estimator_ok = await estimator.check_health()
    db_ok = check_connection() if get_settings().services_from_database else None

    return HealthResponse(
        status="ok" if estimator_ok and db_ok is not False else "degraded",
        estimator=estimator.mode,
        estimator_ok=estimator_ok,
        database=db_ok,
        signals=store.counts(),
        version=get_scoring_config().model_version,
    )


@app.get("/", tags=["Health"])
async def root():
    """API root - basic info."""
    return {
        "name": settings.app_name,
        "docs": "/docs",
        "health": "/health",
    }


# =============================================================================
# Route Endpoints
# =============================================================================

@app.get("/routes", response_model=RoutesResponse, tags=["Routes"])
async def get_routes(
    origin_lat: float = Query(..., ge=-90, le=90, description="Origin latitude"),
    origin_lng: float = Query(..., ge=-180, le=180, description="Origin longitude"),
    dest_lat: float = Query(..., ge=-90, le=90, description="Destination latitude"),
    dest_lng: float = Query(..., ge=-180, le=180, description="Destination longitude"),
    store: RiskSignalStore = Depends(get_signal_store),
    estimator: CrimeEstimator = Depends(get_crime_estimator),
):
    """
    Score the candidate routes between two points.

    Each route gets a 0-100 safety score combining:
    - Crime proximity (60% weight), adjusted by the crime data service
    - Street lighting (40% weight)

    The safest route is selected and comes with safety recommendations.
    """
    try:
        plan = await plan_routes(
            GeoPoint(origin_lat, origin_lng),
            GeoPoint(dest_lat, dest_lng),
            store=store,
            estimator=estimator,
        )
        return RoutesResponse(
            candidates=[
                RouteCandidateResponse.from_candidate(c, services_near_path(c.path, store))
                for c in plan.candidates
            ],
            selected_id=plan.selected.id if plan.selected else None,
            recommendations=plan.recommendations,
            model_version=get_scoring_config().model_version,
        )
    except Exception as e:
        logger.exception("Route scoring failed")
        raise HTTPException(status_code=500, detail=f"Error scoring routes: {str(e)}")


@app.post("/score", response_model=SafetyScoreResponse, tags=["Routes"])
async def post_score(
    request: ScoreRequest = Body(...),
    store: RiskSignalStore = Depends(get_signal_store),
):
    """Local safety score for an arbitrary path (no crime data service)."""
    try:
        score = score_route([p.to_point() for p in request.path], store)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating score: {str(e)}")
    return SafetyScoreResponse.from_score(score)


# =============================================================================
# Crime Data Endpoints
# =============================================================================

@app.get("/crime/estimate", response_model=EstimateResponse, tags=["Crime"])
async def get_crime_estimate(
    lat: float = Query(..., ge=-90, le=90, description="Latitude (WGS84)"),
    lng: float = Query(..., ge=-180, le=180, description="Longitude (WGS84)"),
    radius: float | None = Query(None, gt=0, description="Search radius in miles"),
    estimator: CrimeEstimator = Depends(get_crime_estimator),
):
    """Crime statistics around a point; estimate is null when unavailable."""
    estimate = await estimator.estimate(lat, lng, radius)
    return EstimateResponse(
        estimate=CrimeEstimateResponse.from_estimate(estimate),
        recommendations=recommendations(estimate),
    )


# =============================================================================
# Service Endpoints
# =============================================================================

@app.get("/services", response_model=ServiceListResponse, tags=["Services"])
async def list_services(
    category: ServiceCategory | None = Query(None, description="Filter by category"),
    bbox: str | None = Query(None, description="Bounding box as 'minLng,minLat,maxLng,maxLat'"),
    store: RiskSignalStore = Depends(get_signal_store),
):
    """List emergency services, optionally filtered by category and/or bounding box."""
    services = list(store.services)

    if category:
        services = [s for s in services if s.category == category]

    if bbox:
        try:
            min_lng, min_lat, max_lng, max_lat = parse_bbox(bbox)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid bbox format: {e}")
        services = [
            s for s in services
            if min_lng <= s.location.lng <= max_lng and min_lat <= s.location.lat <= max_lat
        ]

    return ServiceListResponse(
        services=[ServiceResponse.from_service(s) for s in services],
        count=len(services),
        category=category.value if category else None,
    )


# =============================================================================
# Run with: uvicorn safepath.main:app --reload
# =============================================================================
