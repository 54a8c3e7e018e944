"""
tests/test_health_scoring.py
────────────────────────────
Factor, aggregation and prediction rules of the health scorer (no database).
"""
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from core.health_scoring import (
    WEIGHTS,
    HealthAssessment,
    HealthFactors,
    add_years,
    assess_health,
    build_contributing_factors,
    calculate_age_factor,
    calculate_maintenance_compliance,
    calculate_usage_factor,
    classify_risk,
    condition_score,
    confidence_pct,
    criticality_score,
    determine_failure_type,
    determine_trend,
    draft_failure_prediction,
    estimate_cost_if_ignored,
    estimate_days_until_failure,
    estimate_repair_cost,
    failure_probability,
    generate_recommendation,
    round_half_up,
    summarize_alert,
    weighted_score,
)


def make_asset(**fields):
    values = {
        "installation_date": None,
        "expected_lifespan_years": None,
        "condition_rating": "good",
        "criticality_level": "low",
        "purchase_cost": None,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def record(condition_after=None, unplanned=False):
    return SimpleNamespace(condition_after=condition_after, was_unplanned=unplanned)


def schedule(next_due):
    return SimpleNamespace(next_due=next_due)


def assessment_for(factors: HealthFactors) -> HealthAssessment:
    score = weighted_score(factors)
    return HealthAssessment(
        factors=factors,
        score=score,
        risk_level=classify_risk(score),
        failure_probability=failure_probability(score),
        days_until_predicted_failure=None,
        trend="stable",
        contributing_factors=build_contributing_factors(factors),
    )


class TestWeights:
    def test_weights_sum_to_one(self):
        assert sum(WEIGHTS.values()) == pytest.approx(1.0)

    def test_single_factor_change_moves_score_by_its_weight(self):
        base = HealthFactors(age=80, condition=60, maintenance=90, usage=70, environment=85)
        bumped = HealthFactors(age=80, condition=100, maintenance=90, usage=70, environment=85)
        delta = weighted_score(bumped) - weighted_score(base)
        assert abs(delta - 40 * WEIGHTS["condition"]) <= 1

    def test_score_is_integer_within_bounds(self):
        for value in (0, 13.7, 50, 99.9, 100):
            factors = HealthFactors(age=value, condition=value, maintenance=value, usage=value, environment=value)
            score = weighted_score(factors)
            assert isinstance(score, int)
            assert 0 <= score <= 100


class TestRiskLevel:
    @pytest.mark.parametrize("score,expected", [
        (0, "critical"),
        (39, "critical"),
        (40, "high"),
        (54, "high"),
        (55, "medium"),
        (69, "medium"),
        (70, "low"),
        (100, "low"),
    ])
    def test_thresholds_are_strict(self, score, expected):
        assert classify_risk(score) == expected

    def test_failure_probability_is_inverse_of_score(self):
        assert failure_probability(94) == pytest.approx(0.06)
        assert failure_probability(0) == 1.0
        assert failure_probability(100) == 0.0


class TestAgeFactor:
    def test_unknown_age_is_healthy(self, now):
        assert calculate_age_factor(None, 10, now) == 100
        assert calculate_age_factor(date(2020, 1, 1), None, now) == 100

    def test_half_life_costs_forty_points(self, now):
        installed = now - timedelta(days=365.25 * 5)
        assert calculate_age_factor(installed, 10, now) == pytest.approx(60.0)

    def test_far_past_lifespan_floors_at_zero(self, now):
        assert calculate_age_factor(date(1990, 1, 1), 5, now) == 0.0


class TestLookupFactors:
    def test_condition_table(self):
        assert condition_score("excellent") == 100
        assert condition_score("poor") == 30
        assert condition_score("critical") == 10

    def test_condition_missing_or_unknown_is_neutral(self):
        assert condition_score(None) == 70
        assert condition_score("") == 70
        assert condition_score("mint") == 70
        assert condition_score("GOOD") == 70

    def test_criticality_table_and_default(self):
        assert criticality_score("low") == 100
        assert criticality_score("critical") == 55
        assert criticality_score(None) == 85
        assert criticality_score("unknown") == 85
        assert criticality_score("Low") == 85


class TestMaintenanceCompliance:
    def test_no_schedules_is_full_compliance(self, now):
        assert calculate_maintenance_compliance([], now) == 100

    def test_overdue_fraction_costs_up_to_fifty_points(self, now):
        schedules = [
            schedule(date(2025, 5, 1)),
            schedule(date(2025, 7, 1)),
            schedule(date(2025, 8, 1)),
            schedule(None),
        ]
        assert calculate_maintenance_compliance(schedules, now) == pytest.approx(87.5)

    def test_all_overdue_bottoms_at_fifty(self, now):
        schedules = [schedule(date(2024, 1, 1)), schedule(date(2025, 1, 1))]
        assert calculate_maintenance_compliance(schedules, now) == 50

    def test_due_today_counts_as_overdue_after_midnight(self, now):
        assert calculate_maintenance_compliance([schedule(now.date())], now) == 50


class TestUsageFactor:
    def test_no_history_is_healthy(self):
        assert calculate_usage_factor([]) == 100

    def test_unplanned_ratio(self):
        history = [record(unplanned=i % 2 == 0) for i in range(10)]
        assert calculate_usage_factor(history) == pytest.approx(70.0)

    def test_all_unplanned(self):
        history = [record(unplanned=True) for _ in range(4)]
        assert calculate_usage_factor(history) == pytest.approx(40.0)


class TestTrend:
    def test_needs_two_rated_records(self):
        assert determine_trend([]) == "stable"
        assert determine_trend([record("good")]) == "stable"
        assert determine_trend([record("good"), record(None), record(None)]) == "stable"

    def test_improving(self):
        history = [record("excellent"), record("excellent"), record("fair"), record("poor"), record("poor")]
        assert determine_trend(history) == "improving"

    def test_declining(self):
        history = [record("poor"), record(None), record("fair"), record("good"), record("excellent")]
        assert determine_trend(history) == "declining"

    def test_small_difference_is_stable(self):
        history = [record("good"), record("good"), record("good"), record("good")]
        assert determine_trend(history) == "stable"

    def test_only_five_most_recent_rated_records_count(self):
        history = [record("good")] * 5 + [record("critical")] * 2
        assert determine_trend(history) == "stable"

    @pytest.mark.parametrize("conditions, expected", [
        # unknown ratings count as 70
        (["excellent", "good", "mint", "excellent"], "stable"),
        (["mint", "excellent", "excellent", "good"], "stable"),
        (["excellent", "good", "fair", "excellent"], "improving"),
        (["fair", "excellent", "excellent", "good"], "declining"),
    ])
    def test_five_point_margin_is_exclusive(self, conditions, expected):
        assert determine_trend([record(c) for c in conditions]) == expected


class TestDaysUntilFailure:
    def test_unknown_without_age_data(self, now):
        assert estimate_days_until_failure(None, None, 80, now) is None

    def test_remaining_life_scaled_by_score(self, now):
        # 2025-06-01 12:00 -> 2030-06-01 00:00 is 1825.5 days
        assert estimate_days_until_failure(date(2020, 6, 1), 10, 50, now) == 913

    def test_past_end_of_life_is_zero(self, now):
        assert estimate_days_until_failure(date(2000, 1, 1), 10, 80, now) == 0

    def test_end_of_life_beyond_calendar_range(self, now):
        # 8000 * 365.25 days less 1978.5 days elapsed, at score 80
        assert estimate_days_until_failure(date(2020, 1, 1), 8000, 80, now) == 2336017

    def test_add_years_handles_leap_day(self):
        start = datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert add_years(start, 1) == datetime(2025, 3, 1, tzinfo=timezone.utc)


class TestAssessHealth:
    def test_documented_healthy_example(self, now):
        assessment = assess_health(make_asset(), [], [], now)

        assert assessment.factors.as_dict() == {
            "age": 100, "condition": 80, "maintenance": 100, "usage": 100, "environment": 100,
        }
        assert assessment.score == 94
        assert assessment.risk_level == "low"
        assert assessment.days_until_predicted_failure is None
        assert assessment.trend == "stable"
        assert not assessment.requires_prediction

    def test_contributing_factors_breakdown(self, now):
        assessment = assess_health(make_asset(), [], [], now)
        condition = assessment.contributing_factors["condition"]
        assert condition["value"] == 80
        assert condition["weight"] == 0.30
        assert condition["contribution"] == pytest.approx(24.0)
        assert set(assessment.contributing_factors) == set(WEIGHTS)

    def test_identical_inputs_give_identical_results(self, now):
        asset = make_asset(installation_date=date(2018, 3, 1), expected_lifespan_years=12, condition_rating="fair")
        history = [record("fair", True), record("good")]
        first = assess_health(asset, history, [schedule(date(2025, 1, 1))], now)
        second = assess_health(asset, history, [schedule(date(2025, 1, 1))], now)
        assert (first.score, first.risk_level, first.trend) == (second.score, second.risk_level, second.trend)


class TestFailurePrediction:
    def test_critical_condition_is_component_degradation(self, now):
        factors = HealthFactors(age=20, condition=10, maintenance=40, usage=100, environment=100)
        assessment = assessment_for(factors)

        assert assessment.score == 41
        assert assessment.risk_level == "high"

        draft = draft_failure_prediction(assessment, 10000, now)
        assert draft.predicted_failure_type == "component_degradation"
        assert draft.priority == 2
        assert draft.confidence_pct == 67
        assert draft.predicted_date == date(2025, 8, 30)
        assert draft.recommended_action.startswith("Asset condition deteriorating")
        assert draft.estimated_repair_cost == 2500
        assert draft.cost_if_ignored == 8000
        assert draft.model_inputs == assessment.contributing_factors

    @pytest.mark.parametrize("condition,age,maintenance,expected", [
        (30, 10, 10, "component_degradation"),
        (60, 30, 10, "end_of_life"),
        (60, 50, 45, "maintenance_neglect"),
        (60, 50, 60, "wear_and_tear"),
    ])
    def test_failure_type_cascade(self, condition, age, maintenance, expected):
        assert determine_failure_type(condition, age, maintenance) == expected

    def test_recommendation_cascade(self):
        assert generate_recommendation("critical", 90, 90).startswith("Immediate inspection required")
        assert generate_recommendation("high", 40, 90).startswith("Asset condition deteriorating")
        assert generate_recommendation("high", 60, 50).startswith("Maintenance schedule overdue")
        assert generate_recommendation("high", 60, 80).startswith("Monitor closely")

    def test_cost_estimates_for_critical_risk(self):
        assert estimate_repair_cost(10000, "critical") == 4000
        assert estimate_cost_if_ignored(10000, "critical") == 12000

    def test_cost_estimates_need_purchase_cost(self):
        assert estimate_repair_cost(None, "high") is None
        assert estimate_cost_if_ignored(0, "high") is None

    def test_confidence(self):
        assert confidence_pct(0) == 100
        assert confidence_pct(100) == 20
        assert confidence_pct(25) == 80

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.49) == 2


class TestAlertSummary:
    def test_title_counts_and_overflow(self):
        assets = [
            {"id": str(i), "name": f"Asset {i}", "score": 30 + i, "risk_level": "critical" if i < 3 else "high"}
            for i in range(12)
        ]
        content = summarize_alert(assets, list_limit=10)

        assert content["title"] == "Asset Health Alert: 3 Critical, 9 High Risk"
        assert "• Asset 0 (Score: 30, Risk: critical)" in content["body"]
        assert "Asset 11" not in content["body"]
        assert content["body"].endswith("...and 2 more")
