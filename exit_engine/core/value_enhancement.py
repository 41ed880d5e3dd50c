"""
Projected valuation uplift from executing the improvement plan.
Re-runs the valuation estimator on adjusted features instead of
duplicating any valuation math.
"""

import logging
from typing import Dict, Sequence

from exit_engine.core.benchmarks import clamp
from exit_engine.core.valuation import estimate_valuation
from exit_engine.utils.data_models import (
    ImprovementPhase,
    NormalizedFeatures,
    ValuationEstimate,
    ValueEnhancement,
)

logger = logging.getLogger(__name__)

MARGIN_UPLIFT_PER_FINANCIAL_POINT = 0.10
MARGIN_UPLIFT_PER_OPERATIONAL_POINT = 0.05
CONCENTRATION_RELIEF_PER_POINT = 2 / 100
POSITION_GAIN_PER_POINT = 3 / 100
GROWTH_UPLIFT_PER_MANAGEMENT_POINT = 0.20


def project_features(features: NormalizedFeatures, plan: Sequence[ImprovementPhase]) -> NormalizedFeatures:
    """
    Copy of the features with each improved dimension's valuation proxy moved
    upward in proportion to its score delta. Legal has no valuation proxy.
    """
    deltas: Dict[str, float] = {phase.dimension: phase.target_score - phase.current_score for phase in plan}

    margin = features.profit_margin_pct
    margin += deltas.get("financial", 0) * MARGIN_UPLIFT_PER_FINANCIAL_POINT
    margin += deltas.get("operational", 0) * MARGIN_UPLIFT_PER_OPERATIONAL_POINT
    margin = clamp(margin, -100, 100)

    concentration = clamp(
        features.customer_concentration_code - deltas.get("strategic", 0) * CONCENTRATION_RELIEF_PER_POINT, 0, 2
    )
    position = clamp(features.market_position_code + deltas.get("market", 0) * POSITION_GAIN_PER_POINT, 0, 3)
    growth = clamp(
        features.revenue_growth_pct + deltas.get("management", 0) * GROWTH_UPLIFT_PER_MANAGEMENT_POINT, -100, 1000
    )

    return features.model_copy(
        update={
            "profit_margin_pct": margin,
            "profit_absolute": features.annual_revenue * margin / 100,
            "customer_concentration_code": concentration,
            "market_position_code": position,
            "revenue_growth_pct": growth,
        }
    )


def estimate_value_enhancement(
    features: NormalizedFeatures,
    current: ValuationEstimate,
    plan: Sequence[ImprovementPhase],
) -> ValueEnhancement:
    """
    Compare the current point valuation with the valuation after the plan.

    The uplift is the ratio of the projected to the baseline local
    estimate, applied to the current point, so a remotely sourced valuation
    is scaled consistently. Potential value never falls below current value.
    """
    current_value = current.point
    potential_value = current_value
    if plan:
        baseline = estimate_valuation(features)
        projected = estimate_valuation(project_features(features, plan))
        if baseline.point > 0:
            potential_value = max(current_value, current_value * projected.point / baseline.point)

    increase = potential_value - current_value
    percentage = increase / current_value * 100 if current_value > 0 else 0.0

    logger.info(f"Value enhancement: {current_value:,.0f} -> {potential_value:,.0f} (+{percentage:.1f}%)")
    return ValueEnhancement(
        current_value=round(current_value),
        potential_value=round(potential_value),
        value_increase=round(increase),
        percentage_increase=round(percentage, 1),
    )
