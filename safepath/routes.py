"""Candidate route generation between two points."""

from dataclasses import dataclass, field
from typing import Sequence

from safepath.crime_data import CrimeEstimate
from safepath.geo import GeoPath, GeoPoint, interpolate, path_length_m
from safepath.scoring import SafetyScore

# Waypoint positions along the straight origin -> destination line
WAYPOINT_FRACTIONS = (0.25, 0.5, 0.75)

MIN_SAMPLE_POINTS = 3
MAX_SAMPLE_POINTS = 5


@dataclass(frozen=True)
class CandidateTemplate:
    """Fixed per-slot metadata and waypoint offsets (lat, lng degrees)."""

    id: str
    name: str
    duration: str
    distance: str
    offsets: tuple[tuple[float, float], ...]


CANDIDATE_TEMPLATES = (
    CandidateTemplate(
        id="route-1",
        name="Recommended Route",
        duration="12 min",
        distance="1.2 mi",
        offsets=((0.003, 0.002), (0.005, 0.005), (-0.002, -0.003)),
    ),
    CandidateTemplate(
        id="route-2",
        name="Alternative Route 1",
        duration="15 min",
        distance="1.4 mi",
        offsets=((0.002, 0.004), (0.006, 0.003), (-0.001, -0.005)),
    ),
    CandidateTemplate(
        id="route-3",
        name="Alternative Route 2",
        duration="10 min",
        distance="1.1 mi",
        offsets=((0.004, 0.001), (0.007, 0.002), (-0.003, -0.001)),
    ),
)


@dataclass
class RouteCandidate:
    """One synthetic route offered between an origin and a destination."""

    id: str
    name: str
    duration: str
    distance: str
    path: tuple[GeoPoint, ...]
    safety_score: SafetyScore | None = None
    crime_data: CrimeEstimate | None = None
    _scored: bool = field(default=False, repr=False, compare=False)

    @property
    def origin(self) -> GeoPoint:
        return self.path[0]

    @property
    def destination(self) -> GeoPoint:
        return self.path[-1]

    @property
    def length_m(self) -> float:
        return path_length_m(self.path)

    @property
    def is_scored(self) -> bool:
        return self._scored

    def attach_safety(
        self,
        safety_score: SafetyScore,
        crime_data: CrimeEstimate | None = None,
    ) -> None:
        """Attach scores once; candidates are read-only afterwards."""
        if self._scored:
            raise RuntimeError(f"Route {self.id} has already been scored")
        self.safety_score = safety_score
        self.crime_data = crime_data
        self._scored = True


def build_candidate_path(
    origin: GeoPoint,
    destination: GeoPoint,
    offsets: Sequence[tuple[float, float]],
) -> tuple[GeoPoint, ...]:
    waypoints = tuple(
        interpolate(origin, destination, fraction).offset(d_lat, d_lng)
        for fraction, (d_lat, d_lng) in zip(WAYPOINT_FRACTIONS, offsets)
    )
    return (origin, *waypoints, destination)


def generate_candidates(
    origin: GeoPoint | None,
    destination: GeoPoint | None,
) -> list[RouteCandidate]:
    """
    Generate the three candidate routes between two points.

    Waypoints are interpolated between the endpoints and perturbed by fixed
    per-slot offsets, so the paths are deterministic and pairwise distinct.
    Slot 0 is the default selection. Either endpoint missing gives [].
    """
    if origin is None or destination is None:
        return []

    return [
        RouteCandidate(
            id=template.id,
            name=template.name,
            duration=template.duration,
            distance=template.distance,
            path=build_candidate_path(origin, destination, template.offsets),
        )
        for template in CANDIDATE_TEMPLATES
    ]


def sample_path(path: GeoPath | None, sample_size: int = MIN_SAMPLE_POINTS) -> list[GeoPoint]:
    """
    Evenly spaced points along a path for remote crime lookups.

    The sample size is clamped to 3-5 and never exceeds the path length.
    """
    if not path:
        return []
    size = max(MIN_SAMPLE_POINTS, min(MAX_SAMPLE_POINTS, sample_size))
    size = min(size, len(path))
    return [path[int(i * len(path) / size)] for i in range(size)]


def select_safest(candidates: Sequence[RouteCandidate]) -> RouteCandidate | None:
    """Highest overall score wins; ties keep slot order, unscored routes rank last."""
    if not candidates:
        return None
    return max(
        candidates,
        key=lambda c: c.safety_score.overall if c.safety_score is not None else -1,
    )
