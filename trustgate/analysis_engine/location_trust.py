"""
Location trust: score the current coordinate against the user's learned
location clusters.

Inside a trusted cluster earns points; otherwise the penalty grows with the
great-circle distance to the nearest known cluster center. Cluster formation
(visits, dwell time) is handled by whoever populates the cluster store.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt
from typing import Iterable

from trustgate.signals.baselines import LocationCluster
from trustgate.signals.models import GeoPoint

EARTH_RADIUS_M = 6_371_000.0

IN_TRUSTED_CLUSTER_POINTS = 15
NO_LOCATION_POINTS = -10
NO_CLUSTERS_POINTS = -15

# (upper bound in metres, exclusive; points). Beyond the last bound: FAR_AWAY_POINTS.
DISTANCE_BANDS: tuple[tuple[float, int], ...] = (
    (1_000.0, -2),
    (5_000.0, -5),
    (50_000.0, -10),
    (500_000.0, -15),
)
FAR_AWAY_POINTS = -20


@dataclass(frozen=True)
class LocationTrustResult:
    points: int
    reason: str
    nearest_distance_m: float | None = None
    in_trusted_cluster: bool = False


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in metres."""
    lat1, lon1, lat2, lon2 = map(radians, (a.latitude, a.longitude, b.latitude, b.longitude))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * asin(sqrt(h))


def points_for_distance(distance_m: float) -> int:
    """Penalty for being distance_m away from the nearest cluster center."""
    for upper_m, points in DISTANCE_BANDS:
        if distance_m < upper_m:
            return points
    return FAR_AWAY_POINTS


def _distance_reason(distance_m: float, points: int) -> str:
    if points == -2:
        return f"Near trusted area ({int(distance_m)}m away) - learning phase"
    if points == -5:
        return f"{int(distance_m / 1000)}km from trusted area"
    if points == -10:
        return f"{int(distance_m / 1000)}km from any trusted area"
    if points == -15:
        return "Different city detected"
    return "CRITICAL: Different country/region detected"


def evaluate_location_trust(
    location: GeoPoint | None,
    clusters: Iterable[LocationCluster],
) -> LocationTrustResult:
    """
    Score a coordinate against known clusters.

    Args:
        location: Current coordinate, or None when the device reported none.
        clusters: The evaluating user's clusters (trusted and still-forming).

    Returns:
        LocationTrustResult with signed points and a reason.
    """
    if location is None:
        return LocationTrustResult(NO_LOCATION_POINTS, "No location available")

    measured = [(haversine_m(location, c.center), c) for c in clusters]

    for distance, cluster in measured:
        if cluster.is_trusted and distance <= cluster.radius_m:
            return LocationTrustResult(
                IN_TRUSTED_CLUSTER_POINTS,
                "Within trusted location cluster (3+ visits, 45+ min)",
                nearest_distance_m=distance,
                in_trusted_cluster=True,
            )

    if not measured:
        return LocationTrustResult(NO_CLUSTERS_POINTS, "No location clusters established yet")

    nearest = min(distance for distance, _ in measured)
    points = points_for_distance(nearest)
    return LocationTrustResult(points, _distance_reason(nearest, points), nearest_distance_m=nearest)
