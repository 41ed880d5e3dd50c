"""
Pure dimension scoring functions.
Each readiness axis is a weighted combination of checklist flags, tiered
ratios and scaled categorical codes. All weights and thresholds are named
constants so a score can be audited by hand.
"""

import logging
from typing import Any, Dict, Sequence, Tuple

from exit_engine.core.benchmarks import MATURITY_AGE_YEARS, clamp, get_industry_benchmarks
from exit_engine.utils.data_models import DimensionScores, NormalizedFeatures

logger = logging.getLogger(__name__)

Tiers = Sequence[Tuple[float, float]]

# (threshold, points) pairs; first threshold the value reaches wins
MARGIN_TIERS: Tiers = ((20, 100), (15, 85), (10, 70), (5, 50), (0, 30))
MARGIN_FLOOR = 0

GROWTH_TIERS: Tiers = ((25, 100), (15, 85), (5, 65), (0, 40))
GROWTH_FLOOR = 10

REVENUE_SCALE_TIERS: Tiers = ((10_000_000, 100), (5_000_000, 85), (1_000_000, 65), (250_000, 40))
REVENUE_SCALE_FLOOR = 20

REVENUE_PER_EMPLOYEE_TIERS: Tiers = ((200_000, 100), (150_000, 85), (100_000, 70), (50_000, 50))
REVENUE_PER_EMPLOYEE_FLOOR = 30

TEAM_SIZE_TIERS: Tiers = ((50, 100), (20, 85), (10, 70), (5, 50))
TEAM_SIZE_FLOOR = 25

# Young companies earn maturity credit linearly up to this ceiling
IMMATURE_MAX_POINTS = 60

IP_MISSING_POINTS_INTENSIVE = 0
IP_MISSING_POINTS_OTHER = 50

EXIT_TIMING_POINTS: Dict[float, float] = {0.5: 40, 1.0: 70, 2.0: 100, 3.0: 90}
EXIT_TIMING_DEFAULT = 70

DIMENSION_WEIGHTS: Dict[str, Dict[str, float]] = {
    "financial": {
        "financial_records": 0.30,
        "profit_margin": 0.30,
        "revenue_growth": 0.25,
        "revenue_scale": 0.15,
    },
    "operational": {
        "documented_processes": 0.40,
        "revenue_per_employee": 0.25,
        "maturity": 0.20,
        "team_size": 0.15,
    },
    "strategic": {
        "market_position": 0.35,
        "competitive_advantage": 0.30,
        "customer_diversification": 0.25,
        "revenue_growth": 0.10,
    },
    "legal": {
        "legal_compliance": 0.45,
        "ip_protection": 0.35,
        "financial_records": 0.10,
        "maturity": 0.10,
    },
    "market": {
        "market_position": 0.30,
        "revenue_growth": 0.30,
        "industry_attractiveness": 0.25,
        "exit_timing": 0.15,
    },
    "management": {
        "documented_processes": 0.30,
        "team_size": 0.30,
        "maturity": 0.25,
        "market_position": 0.15,
    },
}


def tier_points(value: float, tiers: Tiers, floor: float) -> float:
    """Points for the first tier whose threshold the value reaches, else the floor"""
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return floor


def flag_points(flag: bool) -> float:
    return 100.0 if flag else 0.0


def maturity_points(features: NormalizedFeatures) -> float:
    if features.maturity_flag:
        return 100.0
    return clamp(features.company_age_years / MATURITY_AGE_YEARS * IMMATURE_MAX_POINTS)


def ip_protection_points(features: NormalizedFeatures) -> float:
    if features.checklist.intellectual_property:
        return 100.0
    if get_industry_benchmarks(features.industry)["ip_intensive"]:
        return IP_MISSING_POINTS_INTENSIVE
    return IP_MISSING_POINTS_OTHER


def market_position_points(features: NormalizedFeatures) -> float:
    return features.market_position_code / 3 * 100


def component_points(features: NormalizedFeatures) -> Dict[str, float]:
    """Every scoring component on a 0-100 scale"""
    return {
        "financial_records": flag_points(features.checklist.financial_records),
        "documented_processes": flag_points(features.checklist.documented_processes),
        "legal_compliance": flag_points(features.checklist.legal_compliance),
        "ip_protection": ip_protection_points(features),
        "profit_margin": tier_points(features.profit_margin_pct, MARGIN_TIERS, MARGIN_FLOOR),
        "revenue_growth": tier_points(features.revenue_growth_pct, GROWTH_TIERS, GROWTH_FLOOR),
        "revenue_scale": tier_points(features.annual_revenue, REVENUE_SCALE_TIERS, REVENUE_SCALE_FLOOR),
        "revenue_per_employee": tier_points(
            features.revenue_per_employee, REVENUE_PER_EMPLOYEE_TIERS, REVENUE_PER_EMPLOYEE_FLOOR
        ),
        "team_size": tier_points(features.employee_count, TEAM_SIZE_TIERS, TEAM_SIZE_FLOOR),
        "maturity": maturity_points(features),
        "market_position": market_position_points(features),
        "competitive_advantage": features.competitive_advantage_strength * 10.0,
        "customer_diversification": (2 - features.customer_concentration_code) / 2 * 100,
        "industry_attractiveness": float(get_industry_benchmarks(features.industry)["attractiveness"]),
        "exit_timing": EXIT_TIMING_POINTS.get(features.timeframe_years, EXIT_TIMING_DEFAULT),
    }


def score_dimension(dimension: str, components: Dict[str, float]) -> Dict[str, Any]:
    """
    Weighted score for one axis.

    Returns:
        Dict with the clamped score and the weighted contribution of each component
    """
    weights = DIMENSION_WEIGHTS[dimension]
    contributions = {name: round(weight * components[name], 2) for name, weight in weights.items()}
    final_score = clamp(sum(contributions.values()))

    return {
        "score": round(final_score, 1),
        "contributions": contributions,
    }


def score_dimensions(features: NormalizedFeatures) -> DimensionScores:
    """Score all six readiness dimensions from normalized features"""
    components = component_points(features)
    results = {dimension: score_dimension(dimension, components) for dimension in DIMENSION_WEIGHTS}

    for dimension, result in results.items():
        logger.debug(f"{dimension}: {result['score']}/100 from {result['contributions']}")

    return DimensionScores(**{dimension: result["score"] for dimension, result in results.items()})
