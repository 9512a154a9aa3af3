"""Pydantic schemas for API request/response models."""

from pydantic import BaseModel, Field

from safepath.crime_data import CrimeEstimate
from safepath.geo import GeoPoint
from safepath.routes import RouteCandidate
from safepath.scoring import SafetyScore, safety_level
from safepath.signals import NearbyService, ServiceSignalPoint


class GeoPointModel(BaseModel):
    """
    A coordinate in a response.

    Generated waypoints are offset from the straight line between the
    endpoints and may sit slightly past the poles or the antimeridian,
    so response coordinates are not range-checked.
    """

    lat: float = Field(..., description="Latitude (WGS84)")
    lng: float = Field(..., description="Longitude (WGS84)")

    def to_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)

    @classmethod
    def from_point(cls, point: GeoPoint) -> "GeoPointModel":
        return cls(lat=point.lat, lng=point.lng)


class PathPointModel(GeoPointModel):
    """A caller-supplied WGS84 coordinate."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude (WGS84)")
    lng: float = Field(..., ge=-180, le=180, description="Longitude (WGS84)")


class SafetyScoreResponse(BaseModel):
    """Route safety score breakdown."""

    overall: int = Field(..., ge=0, le=100, description="Composite safety score (0-100)")
    crime: int = Field(..., ge=0, le=100, description="Crime safety sub-score (0-100)")
    lighting: int = Field(..., ge=0, le=100, description="Lighting sub-score (0-100)")
    level: str = Field(..., description="Qualitative band: safe, moderate or unsafe")

    @classmethod
    def from_score(cls, score: SafetyScore) -> "SafetyScoreResponse":
        return cls(
            overall=score.overall,
            crime=score.crime,
            lighting=score.lighting,
            level=safety_level(score.overall),
        )


class CrimeEstimateResponse(BaseModel):
    """Crime statistics around a coordinate."""

    coordinates: GeoPointModel
    crime_stats: dict[str, float] = Field(..., description="Rate per crime category")
    total_crime_rate: float
    safety_score: int = Field(..., ge=0, le=100)
    radius: float

    @classmethod
    def from_estimate(cls, estimate: CrimeEstimate | None) -> "CrimeEstimateResponse | None":
        if estimate is None:
            return None
        return cls(
            coordinates=GeoPointModel.from_point(estimate.coordinates),
            crime_stats=dict(estimate.crime_stats),
            total_crime_rate=round(estimate.total_crime_rate, 2),
            safety_score=estimate.safety_score,
            radius=estimate.radius,
        )


class ServiceResponse(BaseModel):
    """An emergency service location."""

    category: str = Field(..., description="police, hospital or fire_station")
    name: str
    lat: float
    lng: float
    distance_deg: float | None = Field(None, description="Closest distance to the route in degrees")

    @classmethod
    def from_service(cls, service: ServiceSignalPoint, distance_deg: float | None = None) -> "ServiceResponse":
        return cls(
            category=service.category.value,
            name=service.name,
            lat=service.location.lat,
            lng=service.location.lng,
            distance_deg=distance_deg,
        )

    @classmethod
    def from_nearby(cls, nearby: NearbyService) -> "ServiceResponse":
        return cls.from_service(nearby.service, round(nearby.distance_deg, 6))


class RouteCandidateResponse(BaseModel):
    """A scored candidate route."""

    id: str
    name: str
    duration: str
    distance: str
    length_m: float = Field(..., description="Great-circle length of the path in meters")
    path: list[GeoPointModel]
    safety_score: SafetyScoreResponse | None
    crime_data: CrimeEstimateResponse | None
    services: list[ServiceResponse] = Field(default_factory=list, description="Emergency services along the route")

    @classmethod
    def from_candidate(
        cls,
        candidate: RouteCandidate,
        services: list[NearbyService] | None = None,
    ) -> "RouteCandidateResponse":
        return cls(
            id=candidate.id,
            name=candidate.name,
            duration=candidate.duration,
            distance=candidate.distance,
            length_m=round(candidate.length_m, 1),
            path=[GeoPointModel.from_point(p) for p in candidate.path],
            safety_score=(
                SafetyScoreResponse.from_score(candidate.safety_score)
                if candidate.safety_score is not None
                else None
            ),
            crime_data=CrimeEstimateResponse.from_estimate(candidate.crime_data),
            services=[ServiceResponse.from_nearby(s) for s in services or []],
        )


class RoutesResponse(BaseModel):
    """Scored candidates for an origin/destination query."""

    candidates: list[RouteCandidateResponse]
    selected_id: str | None = Field(None, description="Id of the safest candidate")
    recommendations: list[str]
    model_version: str


class ScoreRequest(BaseModel):
    """Request body for scoring an arbitrary path."""

    path: list[PathPointModel] = Field(default_factory=list, description="Ordered route points")


class EstimateResponse(BaseModel):
    """Crime estimate for a point, null when the data service gave nothing."""

    estimate: CrimeEstimateResponse | None
    recommendations: list[str]


class ServiceListResponse(BaseModel):
    """Response for list of emergency services."""

    services: list[ServiceResponse]
    count: int
    category: str | None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    estimator: str
    estimator_ok: bool
    database: bool | None
    signals: dict[str, int]
    version: str
