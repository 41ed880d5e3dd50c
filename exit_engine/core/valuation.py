"""
Blended business valuation.

Four independent methodologies each produce a value and a declared
confidence. The blend is a confidence-weighted average; the range is
min x 0.9 to max x 1.1, which signals how far the methods disagree rather
than a statistical interval.
"""

import logging
from typing import List, Sequence

from exit_engine.core.benchmarks import clamp, get_industry_benchmarks
from exit_engine.utils.data_models import MethodEstimate, NormalizedFeatures, ValuationEstimate

logger = logging.getLogger(__name__)

DISCOUNTED_EARNINGS = "Discounted Earnings"
MARKET_MULTIPLES = "Market Multiples"
ASSET_BASED = "Asset-Based"
GROWTH_REVENUE_MULTIPLE = "Growth-Adjusted Revenue Multiple"

METHOD_CONFIDENCE = {
    DISCOUNTED_EARNINGS: 85.0,
    MARKET_MULTIPLES: 75.0,
    ASSET_BASED: 60.0,
    GROWTH_REVENUE_MULTIPLE: 70.0,
}
UNPROFITABLE_EARNINGS_CONFIDENCE = 40.0
MISSING_RECORDS_CONFIDENCE_CUT = 15.0

# Risk adjustments applied to the earnings multiple
CONCENTRATION_DISCOUNT_PER_STEP = 0.08
POSITION_BASE_FACTOR = 0.85
POSITION_FACTOR_PER_STEP = 0.05
IMMATURE_FACTOR = 0.90

ASSET_RATIO_MATURE = 0.40
ASSET_RATIO_YOUNG = 0.25

GROWTH_MULTIPLE_BASE = 1.10
GROWTH_MULTIPLE_DIVISOR = 200
GROWTH_CLAMP_LOW = -50
GROWTH_CLAMP_HIGH = 100
RECURRING_PREMIUM = 1.15

RANGE_LOW_FACTOR = 0.9
RANGE_HIGH_FACTOR = 1.1

DISPERSION_THRESHOLD = 0.40
DISPERSION_PENALTY_PER_POINT = 0.5
DISPERSION_PENALTY_CAP = 30.0


def risk_adjusted_earnings_multiple(features: NormalizedFeatures) -> float:
    base_multiple = get_industry_benchmarks(features.industry)["earnings_multiple"]
    concentration_factor = 1 - CONCENTRATION_DISCOUNT_PER_STEP * features.customer_concentration_code
    position_factor = POSITION_BASE_FACTOR + POSITION_FACTOR_PER_STEP * features.market_position_code
    maturity_factor = 1.0 if features.maturity_flag else IMMATURE_FACTOR
    return base_multiple * concentration_factor * position_factor * maturity_factor


def growth_sensitive_revenue_multiple(features: NormalizedFeatures) -> float:
    base_multiple = get_industry_benchmarks(features.industry)["revenue_multiple"]
    growth = clamp(features.revenue_growth_pct, GROWTH_CLAMP_LOW, GROWTH_CLAMP_HIGH)
    multiple = base_multiple * (GROWTH_MULTIPLE_BASE + growth / GROWTH_MULTIPLE_DIVISOR)
    if features.recurring_revenue_flag:
        multiple *= RECURRING_PREMIUM
    return multiple


def compute_method_estimates(features: NormalizedFeatures) -> List[MethodEstimate]:
    """Run each valuation methodology independently"""
    revenue = features.annual_revenue
    benchmarks = get_industry_benchmarks(features.industry)

    earnings_confidence = METHOD_CONFIDENCE[DISCOUNTED_EARNINGS]
    if features.profit_absolute <= 0:
        earnings_confidence = UNPROFITABLE_EARNINGS_CONFIDENCE

    raw = [
        (
            DISCOUNTED_EARNINGS,
            max(0.0, features.profit_absolute) * risk_adjusted_earnings_multiple(features),
            earnings_confidence,
        ),
        (
            MARKET_MULTIPLES,
            revenue * benchmarks["revenue_multiple"],
            METHOD_CONFIDENCE[MARKET_MULTIPLES],
        ),
        (
            ASSET_BASED,
            revenue * (ASSET_RATIO_MATURE if features.maturity_flag else ASSET_RATIO_YOUNG),
            METHOD_CONFIDENCE[ASSET_BASED],
        ),
        (
            GROWTH_REVENUE_MULTIPLE,
            revenue * growth_sensitive_revenue_multiple(features),
            METHOD_CONFIDENCE[GROWTH_REVENUE_MULTIPLE],
        ),
    ]

    estimates = []
    for method, value, confidence in raw:
        if not features.checklist.financial_records:
            confidence -= MISSING_RECORDS_CONFIDENCE_CUT
        estimates.append(
            MethodEstimate(method=method, value=round(max(0.0, value)), confidence_pct=clamp(confidence))
        )
    return estimates


def dispersion_penalty(values: Sequence[float]) -> float:
    """Confidence points lost when the methods disagree by more than the threshold"""
    highest = max(values)
    if highest <= 0:
        return 0.0
    dispersion = (highest - min(values)) / highest
    if dispersion <= DISPERSION_THRESHOLD:
        return 0.0
    return min(DISPERSION_PENALTY_CAP, (dispersion - DISPERSION_THRESHOLD) * 100 * DISPERSION_PENALTY_PER_POINT)


def blend_estimates(estimates: Sequence[MethodEstimate]) -> ValuationEstimate:
    """
    Blend per-method estimates into one valuation.

    point      = sum(value * confidence) / sum(confidence)
    low / high = min * 0.9 / max * 1.1
    confidence = confidence-weighted mean of the method confidences,
                 less the dispersion penalty
    """
    if not estimates:
        raise ValueError("at least one valuation estimate is required")

    values = [estimate.value for estimate in estimates]
    confidences = [estimate.confidence_pct for estimate in estimates]
    total_confidence = sum(confidences)

    if total_confidence > 0:
        point = sum(v * c for v, c in zip(values, confidences)) / total_confidence
        confidence = sum(c * c for c in confidences) / total_confidence
    else:
        point = sum(values) / len(values)
        confidence = 0.0

    penalty = dispersion_penalty(values)
    if penalty:
        logger.info(f"Valuation methods diverge - confidence reduced by {penalty:.1f} points")

    low = round(min(values) * RANGE_LOW_FACTOR)
    high = round(max(values) * RANGE_HIGH_FACTOR)
    point = round(clamp(point, low, high))

    return ValuationEstimate(
        low=low,
        point=point,
        high=high,
        confidence_pct=round(clamp(confidence - penalty), 1),
        methodology="Blended (" + ", ".join(estimate.method for estimate in estimates) + ")",
        methods=tuple(estimates),
    )


def estimate_valuation(features: NormalizedFeatures) -> ValuationEstimate:
    """Point estimate, range and confidence for a normalized business"""
    valuation = blend_estimates(compute_method_estimates(features))
    logger.debug(
        f"Valuation: {valuation.low:,.0f} / {valuation.point:,.0f} / {valuation.high:,.0f} "
        f"({valuation.confidence_pct}% confidence)"
    )
    return valuation
