"""Geographic primitives: points, paths and distances."""

import math
from dataclasses import dataclass
from typing import Any, Sequence

COORD_TOLERANCE = 1e-9
EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True, eq=False)
class GeoPoint:
    """A WGS84 latitude/longitude pair."""

    lat: float
    lng: float

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GeoPoint):
            return NotImplemented
        return (
            math.isclose(self.lat, other.lat, rel_tol=0.0, abs_tol=COORD_TOLERANCE)
            and math.isclose(self.lng, other.lng, rel_tol=0.0, abs_tol=COORD_TOLERANCE)
        )

    # Tolerance equality is not transitive, so no hash can agree with it.
    # Key collections by as_dict() values or by candidate/slot id instead.
    __hash__ = None

    def offset(self, d_lat: float, d_lng: float) -> "GeoPoint":
        return GeoPoint(lat=self.lat + d_lat, lng=self.lng + d_lng)

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_mapping(cls, data: Any) -> "GeoPoint":
        """Build a point from a mapping with lat/lng (or lat/lon) keys."""
        if isinstance(data, GeoPoint):
            return data
        lng = data["lng"] if "lng" in data else data["lon"]
        return cls(lat=float(data["lat"]), lng=float(lng))


# An ordered route: origin, ...waypoints..., destination
GeoPath = Sequence[GeoPoint]


def degree_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Euclidean distance in coordinate-degree space."""
    return math.sqrt((a.lat - b.lat) ** 2 + (a.lng - b.lng) ** 2)


def interpolate(a: GeoPoint, b: GeoPoint, fraction: float) -> GeoPoint:
    """Linear interpolation between two points (fraction 0 -> a, 1 -> b)."""
    return GeoPoint(
        lat=a.lat + (b.lat - a.lat) * fraction,
        lng=a.lng + (b.lng - a.lng) * fraction,
    )


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def path_length_m(path: GeoPath) -> float:
    """Total great-circle length of a path in meters."""
    return sum(haversine_m(a, b) for a, b in zip(path, path[1:]))
