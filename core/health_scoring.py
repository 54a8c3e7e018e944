"""
Asset Health Scoring for the HSSE platform.
Weighted five-factor heuristic over an asset record, its recent maintenance
history and its active maintenance schedules. Pure functions, no database access.
"""
import math
from datetime import date, datetime, timedelta, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

DAYS_PER_YEAR = 365.25

WEIGHTS = {
    "age": 0.25,
    "condition": 0.30,
    "maintenance": 0.20,
    "usage": 0.15,
    "environment": 0.10,
}

CONDITION_SCORES = {
    "excellent": 100,
    "good": 80,
    "fair": 60,
    "poor": 30,
    "critical": 10,
}
DEFAULT_CONDITION_SCORE = 70

CRITICALITY_SCORES = {
    "low": 100,
    "medium": 85,
    "high": 70,
    "critical": 55,
}
DEFAULT_CRITICALITY_SCORE = CRITICALITY_SCORES["medium"]

# Checked worst to best, first match wins
RISK_THRESHOLDS = [
    (40, "critical"),
    (55, "high"),
    (70, "medium"),
]

REPAIR_COST_MULTIPLIERS = {
    "critical": 0.4,
    "high": 0.25,
    "medium": 0.15,
    "low": 0.05,
}

IGNORED_COST_MULTIPLIERS = {
    "critical": 1.2,
    "high": 0.8,
    "medium": 0.4,
    "low": 0.1,
}

PREDICTION_RISK_LEVELS = ("high", "critical")
DEFAULT_PREDICTION_HORIZON_DAYS = 90
TREND_WINDOW = 5
TREND_DELTA = 5


@dataclass
class HealthFactors:
    age: float
    condition: float
    maintenance: float
    usage: float
    environment: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "age": self.age,
            "condition": self.condition,
            "maintenance": self.maintenance,
            "usage": self.usage,
            "environment": self.environment,
        }


@dataclass
class HealthAssessment:
    factors: HealthFactors
    score: int
    risk_level: str
    failure_probability: float
    days_until_predicted_failure: Optional[int]
    trend: str
    contributing_factors: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def requires_prediction(self) -> bool:
        return self.risk_level in PREDICTION_RISK_LEVELS


@dataclass
class FailurePredictionDraft:
    predicted_failure_type: str
    predicted_date: date
    confidence_pct: int
    severity: str
    priority: int
    recommended_action: str
    estimated_repair_cost: Optional[int]
    cost_if_ignored: Optional[int]
    model_inputs: Dict[str, Any]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def as_utc_datetime(value) -> Optional[datetime]:
    """Dates are taken as midnight UTC; naive datetimes are assumed UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def add_years(start: datetime, years: float) -> datetime:
    whole = int(years)
    try:
        shifted = start.replace(year=start.year + whole)
    except ValueError:
        # Feb 29 rolls over to Mar 1 in a non-leap target year
        shifted = start.replace(year=start.year + whole, month=3, day=1)
    return shifted + timedelta(days=(years - whole) * DAYS_PER_YEAR)


def condition_score(rating: Optional[str]) -> int:
    if not rating:
        return DEFAULT_CONDITION_SCORE
    return CONDITION_SCORES.get(rating, DEFAULT_CONDITION_SCORE)


def criticality_score(level: Optional[str]) -> int:
    if not level:
        return DEFAULT_CRITICALITY_SCORE
    return CRITICALITY_SCORES.get(level, DEFAULT_CRITICALITY_SCORE)


# ── Factors ───────────────────────────────────────────────────────────────────

def calculate_age_factor(installation_date, expected_lifespan_years, now: datetime) -> float:
    """Unknown age counts as healthy; age alone never costs more than 80 points."""
    if not installation_date or not expected_lifespan_years:
        return 100.0
    elapsed = now - as_utc_datetime(installation_date)
    age_years = elapsed.total_seconds() / (DAYS_PER_YEAR * 86400)
    age_ratio = age_years / float(expected_lifespan_years)
    return clamp(100 - age_ratio * 80)


def calculate_maintenance_compliance(schedules: Sequence[Any], now: datetime) -> float:
    if not schedules:
        return 100.0
    overdue = [s for s in schedules if s.next_due and as_utc_datetime(s.next_due) < now]
    return clamp(100 - (len(overdue) / len(schedules)) * 50)


def calculate_usage_factor(history: Sequence[Any]) -> float:
    if not history:
        return 100.0
    unplanned = [m for m in history if m.was_unplanned]
    unplanned_ratio = len(unplanned) / len(history)
    return max(20.0, 100 - unplanned_ratio * 60)


def calculate_factors(asset, history: Sequence[Any], schedules: Sequence[Any], now: datetime) -> HealthFactors:
    return HealthFactors(
        age=calculate_age_factor(asset.installation_date, asset.expected_lifespan_years, now),
        condition=float(condition_score(asset.condition_rating)),
        maintenance=calculate_maintenance_compliance(schedules, now),
        usage=calculate_usage_factor(history),
        environment=float(criticality_score(asset.criticality_level)),
    )


# ── Aggregation ───────────────────────────────────────────────────────────────

def weighted_score(factors: HealthFactors) -> int:
    values = factors.as_dict()
    total = sum(values[name] * weight for name, weight in WEIGHTS.items())
    return int(clamp(round_half_up(total)))


def classify_risk(score: float) -> str:
    for threshold, level in RISK_THRESHOLDS:
        if score < threshold:
            return level
    return "low"


def failure_probability(score: float) -> float:
    return clamp(100 - score) / 100


def estimate_days_until_failure(installation_date, expected_lifespan_years, score: int, now: datetime) -> Optional[int]:
    """Remaining nominal life, scaled by health: a healthier asset keeps more of it."""
    if not installation_date or not expected_lifespan_years:
        return None
    installed = as_utc_datetime(installation_date)
    years = float(expected_lifespan_years)
    try:
        remaining = (add_years(installed, years) - now).total_seconds() / 86400
    except (ValueError, OverflowError):
        # End of life lies beyond the calendar range; count plain days instead
        remaining = years * DAYS_PER_YEAR - (now - installed).total_seconds() / 86400
    days_remaining = max(0.0, remaining)
    return round_half_up(days_remaining * (score / 100))


def determine_trend(history: Sequence[Any]) -> str:
    """Compare the two most recent post-maintenance conditions against the two oldest of the last five."""
    if len(history) < 2:
        return "stable"
    recent_conditions = [
        condition_score(m.condition_after) for m in history if m.condition_after
    ][:TREND_WINDOW]
    if len(recent_conditions) < 2:
        return "stable"
    avg_recent = sum(recent_conditions[:2]) / 2
    avg_older = sum(recent_conditions[-2:]) / 2
    if avg_recent > avg_older + TREND_DELTA:
        return "improving"
    if avg_recent < avg_older - TREND_DELTA:
        return "declining"
    return "stable"


def build_contributing_factors(factors: HealthFactors) -> Dict[str, Dict[str, float]]:
    values = factors.as_dict()
    return {
        name: {
            "value": values[name],
            "weight": weight,
            "contribution": values[name] * weight,
        }
        for name, weight in WEIGHTS.items()
    }


def assess_health(asset, history: Sequence[Any], schedules: Sequence[Any], now: Optional[datetime] = None) -> HealthAssessment:
    """
    Score one asset.

    `history` must be ordered newest first; `schedules` holds the active ones only.
    """
    now = now or datetime.now(timezone.utc)
    factors = calculate_factors(asset, history, schedules, now)
    score = weighted_score(factors)

    return HealthAssessment(
        factors=factors,
        score=score,
        risk_level=classify_risk(score),
        failure_probability=failure_probability(score),
        days_until_predicted_failure=estimate_days_until_failure(
            asset.installation_date, asset.expected_lifespan_years, score, now
        ),
        trend=determine_trend(history),
        contributing_factors=build_contributing_factors(factors),
    )


# ── Prediction ────────────────────────────────────────────────────────────────

def determine_failure_type(condition: float, age: float, maintenance: float) -> str:
    if condition < 40:
        return "component_degradation"
    if age < 40:
        return "end_of_life"
    if maintenance < 50:
        return "maintenance_neglect"
    return "wear_and_tear"


def generate_recommendation(risk_level: str, condition: float, maintenance: float) -> str:
    if risk_level == "critical":
        return "Immediate inspection required. Schedule emergency maintenance or consider replacement."
    if condition < 50:
        return "Asset condition deteriorating. Schedule comprehensive maintenance soon."
    if maintenance < 60:
        return "Maintenance schedule overdue. Complete pending maintenance tasks."
    return "Monitor closely. Schedule preventive maintenance within the next month."


def estimate_repair_cost(purchase_cost: Optional[float], risk_level: str) -> Optional[int]:
    if not purchase_cost:
        return None
    return round_half_up(float(purchase_cost) * REPAIR_COST_MULTIPLIERS[risk_level])


def estimate_cost_if_ignored(purchase_cost: Optional[float], risk_level: str) -> Optional[int]:
    if not purchase_cost:
        return None
    return round_half_up(float(purchase_cost) * IGNORED_COST_MULTIPLIERS[risk_level])


def confidence_pct(score: int) -> int:
    return round_half_up((100 - score) * 0.8 + 20)


def draft_failure_prediction(assessment: HealthAssessment, purchase_cost: Optional[float], now: datetime) -> FailurePredictionDraft:
    factors = assessment.factors
    horizon = assessment.days_until_predicted_failure
    if horizon is None:
        horizon = DEFAULT_PREDICTION_HORIZON_DAYS

    return FailurePredictionDraft(
        predicted_failure_type=determine_failure_type(factors.condition, factors.age, factors.maintenance),
        predicted_date=(now + timedelta(days=horizon)).date(),
        confidence_pct=confidence_pct(assessment.score),
        severity=assessment.risk_level,
        priority=1 if assessment.risk_level == "critical" else 2,
        recommended_action=generate_recommendation(assessment.risk_level, factors.condition, factors.maintenance),
        estimated_repair_cost=estimate_repair_cost(purchase_cost, assessment.risk_level),
        cost_if_ignored=estimate_cost_if_ignored(purchase_cost, assessment.risk_level),
        model_inputs=assessment.contributing_factors,
    )


def summarize_alert(assets: List[Dict[str, Any]], list_limit: int = 10) -> Dict[str, str]:
    """Title and body of a per-tenant at-risk asset alert."""
    critical_count = len([a for a in assets if a["risk_level"] == "critical"])
    high_count = len([a for a in assets if a["risk_level"] == "high"])

    lines = [
        f"• {a['name']} (Score: {a['score']}, Risk: {a['risk_level']})"
        for a in assets[:list_limit]
    ]
    body = "Daily health check identified at-risk assets:\n\n" + "\n".join(lines)
    if len(assets) > list_limit:
        body += f"\n...and {len(assets) - list_limit} more"

    return {
        "title": f"Asset Health Alert: {critical_count} Critical, {high_count} High Risk",
        "body": body,
    }
