"""
Improvement plan scheduling.
One phase per dimension below target, worst first, with actions pulled from
a fixed catalog and a timeframe sized to the score gap.
"""

import logging
from typing import Dict, List, Tuple

from exit_engine.utils.data_models import DIMENSIONS, DimensionScores, ImprovementPhase

logger = logging.getLogger(__name__)

DEFAULT_TARGET_SCORE = 90.0

# (gap strictly greater than, timeframe); anything smaller fits in 30 days
GAP_TIMEFRAMES: Tuple[Tuple[float, str], ...] = (
    (30, "6+ months"),
    (20, "3-6 months"),
    (10, "60-90 days"),
)
SHORT_TIMEFRAME = "30 days"

# Upper bound of each timeframe bucket, in months
TIMEFRAME_MONTHS: Dict[str, int] = {
    SHORT_TIMEFRAME: 1,
    "60-90 days": 3,
    "3-6 months": 6,
    "6+ months": 12,
}

# (gap up to and including, number of catalog actions)
GAP_ACTION_COUNTS: Tuple[Tuple[float, int], ...] = ((10, 2), (20, 3))

ACTION_CATALOG: Dict[str, Tuple[str, ...]] = {
    "financial": (
        "Prepare three years of reviewed or audited financial statements",
        "Normalize EBITDA and document owner add-backs",
        "Implement monthly management reporting with KPIs",
        "Engage a quality-of-earnings provider ahead of sale",
    ),
    "operational": (
        "Document standard operating procedures for core workflows",
        "Map and remove single points of failure in delivery",
        "Introduce operational KPIs and weekly reviews",
        "Automate repetitive back-office processes",
    ),
    "strategic": (
        "Define and evidence the company's competitive advantage",
        "Reduce revenue share of the top five customers",
        "Develop a documented three-year growth plan",
        "Secure strategic partnerships or long-term contracts",
    ),
    "legal": (
        "Complete a legal and compliance audit",
        "Organize contracts and corporate records in a data room",
        "Register trademarks, patents and key domains",
        "Resolve outstanding disputes and licensing gaps",
    ),
    "market": (
        "Benchmark valuation multiples against recent comparable deals",
        "Build a buyer landscape of strategic and financial acquirers",
        "Strengthen market positioning and brand messaging",
        "Time the sale process around favourable sector conditions",
    ),
    "management": (
        "Identify and develop successors for owner-held responsibilities",
        "Put retention and incentive plans in place for key staff",
        "Delegate major customer and supplier relationships",
        "Establish an advisory board or formal leadership meetings",
    ),
}


def timeframe_for_gap(gap: float) -> str:
    for threshold, timeframe in GAP_TIMEFRAMES:
        if gap > threshold:
            return timeframe
    return SHORT_TIMEFRAME


def actions_for_gap(dimension: str, gap: float) -> Tuple[str, ...]:
    catalog = ACTION_CATALOG[dimension]
    for limit, count in GAP_ACTION_COUNTS:
        if gap <= limit:
            return catalog[:count]
    return catalog


def build_improvement_plan(
    scores: DimensionScores,
    target_score: float = DEFAULT_TARGET_SCORE,
) -> List[ImprovementPhase]:
    """
    Build the roadmap for every dimension scoring below target.

    Phases are ordered by current score ascending; ties keep dimension
    declaration order.

    Raises:
        ValueError: if target_score is outside (0, 100]
    """
    if not 0 < target_score <= 100:
        raise ValueError(f"target_score must be in (0, 100], got {target_score}")

    below_target = [name for name in DIMENSIONS if scores.get(name) < target_score]
    below_target.sort(key=scores.get)

    plan = []
    for dimension in below_target:
        current = scores.get(dimension)
        gap = target_score - current
        plan.append(
            ImprovementPhase(
                dimension=dimension,
                current_score=current,
                target_score=target_score,
                actions=actions_for_gap(dimension, gap),
                timeframe=timeframe_for_gap(gap),
            )
        )

    logger.info(f"Improvement plan: {len(plan)} phase(s) toward {target_score:g}")
    return plan


def time_to_readiness_months(plan: List[ImprovementPhase]) -> int:
    """Months until every phase is done: phases run in parallel, so the longest one decides. 0 when already ready."""
    return max((TIMEFRAME_MONTHS[phase.timeframe] for phase in plan), default=0)
