"""
Tests for the danger field and route safety evaluation.
Uses synthetic incidents and hand-built paths — no routing service needed.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from saferoute.categories import IncidentCategory
from saferoute.danger_field import DangerField
from saferoute.incidents import CategoryFilter, IncidentPoint, IncidentStore
from saferoute.route_safety import (
    RouteAssessment, RoutePath, RouteSafetyEvaluator, SafetyRating,
    lnglat_to_latlng, rate, sample_indices,
)

LOOP = (41.8781, -87.6298)
ALL = CategoryFilter.all().snapshot()


def make_field(*points) -> DangerField:
    return DangerField(IncidentStore(points))


def hate_crime_at(lat, lng, n=1):
    return [IncidentPoint(lat, lng, IncidentCategory.HATE_CRIME) for _ in range(n)]


def path_at(lat, lng, n=1) -> RoutePath:
    """A path of n identical points, stored (lng, lat) like OSRM"""
    return RoutePath(coordinates=tuple((lng, lat) for _ in range(n)))


# ---------------------------------------------------------------------------
# Tests — Danger Field
# ---------------------------------------------------------------------------

class TestDangerField:

    def test_empty_filter_scores_zero(self):
        field = make_field(*hate_crime_at(*LOOP))
        assert field.score(LOOP[0], LOOP[1], set()) == 0

    def test_empty_store_scores_zero(self):
        assert make_field().score(LOOP[0], LOOP[1], ALL) == 0

    def test_full_weight_at_incident(self):
        field = make_field(*hate_crime_at(*LOOP))
        assert field.score(LOOP[0], LOOP[1], {IncidentCategory.HATE_CRIME}) == 10

    def test_radius_boundary_is_exclusive(self):
        field = make_field(*hate_crime_at(0.0, 0.0))
        assert field.score(0.003, 0.0, ALL) == 0

    def test_radius_boundary_chicago(self):
        # 41.8781 + 0.003 is not exactly representable, so the offset lands a
        # hair inside or outside the radius; at most a 1e-12 sliver remains
        field = make_field(*hate_crime_at(*LOOP))
        score = field.score(LOOP[0] + 0.003, LOOP[1], ALL)
        assert 0 <= score < 1e-9

    def test_linear_falloff_halfway(self):
        field = make_field(*hate_crime_at(0.0, 0.0))
        assert field.score(0.0015, 0.0, ALL) == pytest.approx(5.0)

    def test_distance_is_planar_in_degrees(self):
        """3-4-5 triangle: distance 0.0025 in degree space"""
        field = make_field(IncidentPoint(0.0, 0.0, IncidentCategory.THEFT))
        expected = 3 * (1 - 0.0025 / 0.003)
        assert field.score(0.0015, 0.002, ALL) == pytest.approx(expected)

    def test_inactive_categories_are_ignored(self):
        field = make_field(*hate_crime_at(*LOOP))
        assert field.score(LOOP[0], LOOP[1], {IncidentCategory.THEFT}) == 0

    def test_weights(self):
        field = make_field()
        assert field.weight(IncidentCategory.HATE_CRIME) == 10
        assert field.weight(IncidentCategory.ROBBERY) == 8
        assert field.weight(IncidentCategory.ASSAULT) == 7
        assert field.weight(IncidentCategory.BATTERY) == 5
        assert field.weight(IncidentCategory.THEFT) == 3
        assert field.weight("SOMETHING_ELSE") == 3

    def test_contributions_sum_without_cap(self):
        field = make_field(*hate_crime_at(*LOOP, n=30))
        assert field.score(LOOP[0], LOOP[1], ALL) == 300

    def test_mixed_categories_sum(self):
        field = make_field(
            IncidentPoint(LOOP[0], LOOP[1], IncidentCategory.ROBBERY),
            IncidentPoint(LOOP[0], LOOP[1], IncidentCategory.BATTERY),
            IncidentPoint(LOOP[0] + 1, LOOP[1], IncidentCategory.ASSAULT),
        )
        assert field.score(LOOP[0], LOOP[1], ALL) == 13

    def test_score_is_never_negative(self):
        field = make_field(*hate_crime_at(*LOOP))
        for dlat in (0.0, 0.001, 0.003, 0.01, 1.0):
            assert field.score(LOOP[0] + dlat, LOOP[1], ALL) >= 0


# ---------------------------------------------------------------------------
# Tests — Sampling
# ---------------------------------------------------------------------------

class TestSampling:

    def test_empty_path(self):
        assert sample_indices(0) == []

    def test_short_path_visits_every_point(self):
        assert sample_indices(3) == [0, 1, 2]

    def test_exactly_max_samples(self):
        assert sample_indices(50) == list(range(50))

    def test_stride_for_long_path(self):
        indices = sample_indices(149)
        assert indices[:3] == [0, 2, 4]
        assert indices[-1] == 148

    def test_last_point_always_included(self):
        """Stride 2 over 120 points ends on 118; 119 is appended"""
        indices = sample_indices(120)
        assert indices[-2:] == [118, 119]
        assert len(indices) == 61

    def test_stride_never_zero(self):
        assert sample_indices(1) == [0]
        assert sample_indices(7, max_samples=50) == list(range(7))

    def test_lnglat_swap(self):
        assert lnglat_to_latlng((-87.6298, 41.8781)) == (41.8781, -87.6298)


# ---------------------------------------------------------------------------
# Tests — Rating
# ---------------------------------------------------------------------------

class TestRating:

    @pytest.mark.parametrize("score,expected", [
        (0, SafetyRating.SAFE),
        (19.999, SafetyRating.SAFE),
        (20, SafetyRating.MODERATE),
        (49.999, SafetyRating.MODERATE),
        (50, SafetyRating.HIGH_RISK),
        (1000, SafetyRating.HIGH_RISK),
    ])
    def test_thresholds(self, score, expected):
        assert rate(score) == expected

    def test_labels(self):
        assert SafetyRating.SAFE.label == "Safe ✓"
        assert SafetyRating.MODERATE.label == "Moderate ⚠"
        assert SafetyRating.HIGH_RISK.label == "High Risk ⚠⚠"


# ---------------------------------------------------------------------------
# Tests — Route Safety Evaluator
# ---------------------------------------------------------------------------

class TestRouteSafetyEvaluator:

    def test_empty_path_is_safe(self):
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP)))
        result = evaluator.assess(RoutePath(coordinates=()), ALL)
        assert result == RouteAssessment(danger_score=0.0, rating=SafetyRating.SAFE, samples=0)

    def test_far_path_is_safe(self):
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP)))
        path = path_at(LOOP[0] + 0.1, LOOP[1] + 0.1, n=20)
        result = evaluator.assess(path, ALL)
        assert result.danger_score == 0
        assert result.rating == SafetyRating.SAFE

    def test_coordinates_are_swapped_before_scoring(self):
        """Path stores (lng, lat); an unswapped lookup would land far away"""
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP)))
        result = evaluator.assess(path_at(*LOOP), ALL)
        assert result.danger_score == 10

    def test_score_of_exactly_20_is_moderate(self):
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP, n=2)))
        result = evaluator.assess(path_at(*LOOP), ALL)
        assert result.danger_score == 20
        assert result.rating == SafetyRating.MODERATE

    def test_score_of_exactly_50_is_high_risk(self):
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP, n=5)))
        result = evaluator.assess(path_at(*LOOP), ALL)
        assert result.danger_score == 50
        assert result.rating == SafetyRating.HIGH_RISK

    def test_samples_are_summed(self):
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP)))
        result = evaluator.assess(path_at(*LOOP, n=3), ALL)
        assert result.samples == 3
        assert result.danger_score == 30

    def test_long_path_is_sampled(self):
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP)))
        result = evaluator.assess(path_at(*LOOP, n=100), ALL)
        assert result.samples == 51
        assert result.danger_score == 510

    def test_filter_narrows_score(self):
        field = make_field(
            *hate_crime_at(*LOOP),
            IncidentPoint(LOOP[0], LOOP[1], IncidentCategory.THEFT),
        )
        evaluator = RouteSafetyEvaluator(field)
        assert evaluator.assess(path_at(*LOOP), {IncidentCategory.THEFT}).danger_score == 3
        assert evaluator.assess(path_at(*LOOP), set()).danger_score == 0

    def test_assess_is_idempotent(self):
        evaluator = RouteSafetyEvaluator(make_field(*hate_crime_at(*LOOP, n=3)))
        path = RoutePath(coordinates=tuple(
            (LOOP[1] + i * 0.0005, LOOP[0]) for i in range(75)
        ))
        assert evaluator.assess(path, ALL) == evaluator.assess(path, ALL)

    def test_assessment_to_dict(self):
        d = RouteAssessment(danger_score=23.6, rating=SafetyRating.MODERATE, samples=4).to_dict()
        assert d["crime_score"] == 24
        assert d["rating"] == "MODERATE"
        assert d["label"] == "Moderate ⚠"


# ---------------------------------------------------------------------------
# Tests — RoutePath
# ---------------------------------------------------------------------------

def test_route_path_from_osrm():
    route = {
        "geometry": {"coordinates": [[-87.63, 41.88], [-87.62, 41.89]]},
        "distance": 12345.0,
        "duration": 600.0,
    }
    path = RoutePath.from_osrm(route)
    assert path.coordinates == ((-87.63, 41.88), (-87.62, 41.89))
    assert path.distance_km == 12.3
    assert path.duration_minutes == 10
    assert path.latlngs() == [(41.88, -87.63), (41.89, -87.62)]


class RefreshingStore(IncidentStore):
    """Empties itself right after being read, like a refresh landing mid-request"""

    def filtered(self, active_categories):
        points = super().filtered(active_categories)
        self.replace([])
        return points


def test_assess_scores_one_snapshot_of_the_store():
    store = RefreshingStore(hate_crime_at(*LOOP))
    evaluator = RouteSafetyEvaluator(DangerField(store))
    result = evaluator.assess(path_at(*LOOP, n=4), ALL)
    assert result.samples == 4
    assert result.danger_score == 40
    assert len(store) == 0


def test_score_points_matches_score():
    field = make_field(*hate_crime_at(*LOOP, n=2))
    points = field.store.filtered(ALL)
    assert field.score_points(LOOP[0], LOOP[1], points) == field.score(LOOP[0], LOOP[1], ALL)
    assert field.score_points(LOOP[0], LOOP[1], []) == 0
