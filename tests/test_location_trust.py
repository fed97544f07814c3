"""
Tests for location trust scoring (location_trust.evaluate_location_trust).
"""

from __future__ import annotations

import pytest

from conftest import HOME, build_cluster
from trustgate.analysis_engine.location_trust import (
    evaluate_location_trust,
    haversine_m,
    points_for_distance,
)
from trustgate.signals.models import GeoPoint


@pytest.mark.parametrize(
    "distance_m,points",
    [
        (0.0, -2),
        (999.0, -2),
        (1_000.0, -5),
        (4_999.0, -5),
        (5_000.0, -10),
        (49_999.0, -10),
        (50_000.0, -15),
        (499_999.0, -15),
        (500_000.0, -20),
        (9_000_000.0, -20),
    ],
)
def test_distance_bands(distance_m, points):
    """Band bounds are exclusive upper limits."""
    assert points_for_distance(distance_m) == points


def test_haversine_known_distance():
    """Berlin to Paris is roughly 878 km."""
    paris = GeoPoint(48.8566, 2.3522)
    assert 870_000 < haversine_m(HOME, paris) < 885_000
    assert haversine_m(HOME, HOME) == 0.0


def test_no_location():
    result = evaluate_location_trust(None, [build_cluster()])
    assert result.points == -10
    assert result.reason == "No location available"


def test_no_clusters():
    result = evaluate_location_trust(HOME, [])
    assert result.points == -15
    assert result.nearest_distance_m is None


def test_inside_trusted_cluster():
    near_home = GeoPoint(52.5220, 13.4050)  # ~220 m north
    result = evaluate_location_trust(near_home, [build_cluster()])
    assert result.points == 15
    assert result.in_trusted_cluster is True


def test_inside_untrusted_cluster_uses_distance_band():
    """A cluster with too few visits is not trusted; distance banding applies."""
    forming = build_cluster(visit_count=2)
    result = evaluate_location_trust(HOME, [forming])
    assert result.points == -2
    assert result.in_trusted_cluster is False
    assert result.nearest_distance_m == 0.0


def test_short_dwell_cluster_not_trusted():
    assert build_cluster(total_duration_minutes=44.0).is_trusted is False
    assert build_cluster(visit_count=3, total_duration_minutes=45.0).is_trusted is True


def test_nearest_cluster_wins():
    far = build_cluster(cluster_id="far", center=GeoPoint(48.8566, 2.3522))
    near = build_cluster(cluster_id="near", center=GeoPoint(52.5200, 13.4800), visit_count=1)
    # ~5.1 km east of HOME to "near"
    result = evaluate_location_trust(HOME, [far, near])
    assert result.points == -10
    assert 5_000 < result.nearest_distance_m < 5_200


def test_different_city_and_country():
    hamburg = GeoPoint(53.5511, 9.9937)  # ~255 km
    assert evaluate_location_trust(hamburg, [build_cluster()]).points == -15
    tokyo = GeoPoint(35.6762, 139.6503)
    result = evaluate_location_trust(tokyo, [build_cluster()])
    assert result.points == -20
    assert result.reason.startswith("CRITICAL")
