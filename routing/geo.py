"""
Purpose: Geographic value types and straight-line math shared by every layer.
What it does:
- GeoPoint (lat, lng) value type, validated at construction
- Polyline alias (ordered list of GeoPoints)
- haversine distance in meters
- point-to-polyline projection on a local equirectangular plane
  (distance to the line + fraction along it)

Rule: No HTTP, no store access. Wire formats (WKT/GeoJSON) are parsed by
whoever owns the wire, never here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

EARTH_RADIUS_M = 6_371_000.0


class InvalidCoordinatesError(ValueError):
    """Raised when a coordinate pair is not a valid WGS84 point."""
    pass


@dataclass(frozen=True)
class GeoPoint:
    """
    A WGS84 point. Internal order is always (lat, lng);
    OSRM-style (lng, lat) formatting happens in the routing adapter.
    """
    lat: float
    lng: float

    def __post_init__(self) -> None:
        for name, value in (("lat", self.lat), ("lng", self.lng)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidCoordinatesError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidCoordinatesError(f"{name} must be finite, got {value!r}")
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidCoordinatesError(f"lat out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise InvalidCoordinatesError(f"lng out of range: {self.lng}")

    def location_key(self, decimals: int = 6) -> str:
        """Stable key used to merge stops sitting on the same spot."""
        return f"{self.lat:.{decimals}f},{self.lng:.{decimals}f}"


Polyline = List[GeoPoint]


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters. Straight line only, not road distance."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dl = math.radians(b.lng - a.lng)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dl / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, h)))


@dataclass(frozen=True)
class LineProjection:
    """Where a point falls relative to a polyline."""
    distance_m: float   # shortest distance from the point to the line
    fraction: float     # 0 = first vertex, 1 = last vertex (by length)


def project_onto_polyline(point: GeoPoint, line: Sequence[GeoPoint]) -> LineProjection:
    """
    Project `point` onto `line` and report distance + fraction along it.

    Uses a local equirectangular plane centred on the point, which is accurate
    to well under a percent at detour-threshold scales (a few km).
    """
    if not line:
        raise ValueError("cannot project onto an empty polyline")

    if len(line) == 1:
        return LineProjection(distance_m=haversine_m(point, line[0]), fraction=0.0)

    cos_lat = math.cos(math.radians(point.lat))
    meters_per_deg = math.radians(1.0) * EARTH_RADIUS_M

    def to_xy(p: GeoPoint) -> Tuple[float, float]:
        return ((p.lng - point.lng) * meters_per_deg * cos_lat,
                (p.lat - point.lat) * meters_per_deg)

    # the point itself sits at the origin of the plane
    xy = [to_xy(p) for p in line]

    best_dist = math.inf
    best_along = 0.0
    travelled = 0.0

    for (x1, y1), (x2, y2) in zip(xy[:-1], xy[1:]):
        dx, dy = x2 - x1, y2 - y1
        seg_len_sq = dx * dx + dy * dy
        seg_len = math.sqrt(seg_len_sq)

        if seg_len_sq == 0.0:
            t = 0.0
        else:
            t = max(0.0, min(1.0, -(x1 * dx + y1 * dy) / seg_len_sq))

        px, py = x1 + t * dx, y1 + t * dy
        dist = math.hypot(px, py)
        if dist < best_dist:
            best_dist = dist
            best_along = travelled + t * seg_len

        travelled += seg_len

    fraction = best_along / travelled if travelled > 0 else 0.0
    return LineProjection(distance_m=best_dist, fraction=min(1.0, max(0.0, fraction)))
