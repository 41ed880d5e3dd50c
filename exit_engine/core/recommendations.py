"""
Rule-driven recommendation generator.

A fixed, ordered rule table maps trigger conditions to recommendation
templates. Ordering is priority (high > medium > low), then estimated
impact descending; Python's stable sort keeps rule-table order on ties, so
the same inputs always give the same list.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from exit_engine.core.risk import KEY_PERSON_DEPENDENCY, MARKET_TIMING
from exit_engine.utils.data_models import (
    BusinessProfile,
    DimensionScores,
    Recommendation,
    RiskAssessment,
    ValuationEstimate,
)

logger = logging.getLogger(__name__)

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}

LOW_SCORE_THRESHOLDS: Dict[str, float] = {
    "financial": 60,
    "operational": 60,
    "strategic": 60,
    "legal": 60,
    "market": 60,
    "management": 60,
}
CRITICAL_SCORE_THRESHOLD = 40

KEY_PERSON_RISK_TRIGGER = 55
MARKET_TIMING_RISK_TRIGGER = 60

# Share of current value attributed to one readiness point
VALUE_PER_POINT = 0.005


@dataclass(frozen=True)
class RuleContext:
    scores: DimensionScores
    risk: RiskAssessment
    profile: BusinessProfile


@dataclass(frozen=True)
class RecommendationRule:
    key: str
    category: str
    title: str
    description: str
    impact_range: Tuple[int, int]
    impact_dimension: str
    timeframe: str
    pillar: str
    trigger: Callable[[RuleContext], bool]
    priority: str = "medium"
    hard_gate: bool = False
    # Dimension whose score drives severity; None uses the declared priority
    severity_dimension: Optional[str] = None


def _below_threshold(dimension: str) -> Callable[[RuleContext], bool]:
    return lambda ctx: ctx.scores.get(dimension) < LOW_SCORE_THRESHOLDS[dimension]


def _risk_at_least(category: str, threshold: float) -> Callable[[RuleContext], bool]:
    def trigger(ctx: RuleContext) -> bool:
        level = ctx.risk.level_for(category)
        return level is not None and level >= threshold
    return trigger


RULES: Tuple[RecommendationRule, ...] = (
    RecommendationRule(
        key="organize-financial-records",
        category="Financial",
        title="Organize Financial Records",
        description="Ensure all financial statements are accurate, audited, and up-to-date for the past 3-5 years.",
        impact_range=(10, 20),
        impact_dimension="financial",
        timeframe="60-90 days",
        pillar="execute",
        trigger=lambda ctx: not ctx.profile.checklist.financial_records,
        hard_gate=True,
    ),
    RecommendationRule(
        key="restore-profitability",
        category="Financial",
        title="Restore Profitability",
        description="Buyers discount loss-making businesses heavily. Cut unprofitable lines and reprice before going to market.",
        impact_range=(15, 25),
        impact_dimension="financial",
        timeframe="6+ months",
        pillar="coach",
        trigger=lambda ctx: ctx.profile.profit_margin_pct < 0,
        hard_gate=True,
    ),
    RecommendationRule(
        key="document-business-processes",
        category="Operational",
        title="Document Business Processes",
        description="Create comprehensive documentation of all key business processes and procedures.",
        impact_range=(10, 15),
        impact_dimension="operational",
        timeframe="60-90 days",
        pillar="execute",
        trigger=lambda ctx: not ctx.profile.checklist.documented_processes,
        hard_gate=True,
    ),
    RecommendationRule(
        key="resolve-legal-compliance",
        category="Legal",
        title="Resolve Legal Compliance Gaps",
        description="Commission a legal audit and close outstanding compliance issues before buyers find them in diligence.",
        impact_range=(10, 20),
        impact_dimension="legal",
        timeframe="60-90 days",
        pillar="collaborate",
        trigger=lambda ctx: not ctx.profile.checklist.legal_compliance,
        hard_gate=True,
    ),
    RecommendationRule(
        key="improve-financial-metrics",
        category="Financial",
        title="Improve Financial Metrics",
        description="Focus on increasing profitability and revenue growth to enhance business attractiveness.",
        impact_range=(15, 25),
        impact_dimension="financial",
        timeframe="3-6 months",
        pillar="coach",
        trigger=_below_threshold("financial"),
        severity_dimension="financial",
    ),
    RecommendationRule(
        key="strengthen-operations",
        category="Operational",
        title="Strengthen Operational Efficiency",
        description="Standardize delivery, raise revenue per employee and remove single points of failure in operations.",
        impact_range=(10, 20),
        impact_dimension="operational",
        timeframe="3-6 months",
        pillar="execute",
        trigger=_below_threshold("operational"),
        severity_dimension="operational",
    ),
    RecommendationRule(
        key="sharpen-strategic-position",
        category="Strategic",
        title="Sharpen Competitive Differentiation",
        description="Articulate and evidence what makes the business defensible so buyers can price it as a strategic asset.",
        impact_range=(10, 15),
        impact_dimension="strategic",
        timeframe="3-6 months",
        pillar="coach",
        trigger=_below_threshold("strategic"),
        severity_dimension="strategic",
    ),
    RecommendationRule(
        key="strengthen-legal-foundation",
        category="Legal",
        title="Strengthen Legal Foundation",
        description="Organize contracts, corporate records and IP filings into a diligence-ready data room.",
        impact_range=(10, 15),
        impact_dimension="legal",
        timeframe="60-90 days",
        pillar="collaborate",
        trigger=_below_threshold("legal"),
        severity_dimension="legal",
    ),
    RecommendationRule(
        key="improve-market-readiness",
        category="Market",
        title="Improve Market Readiness",
        description="Build the growth story and buyer evidence that justify a premium multiple in your sector.",
        impact_range=(5, 15),
        impact_dimension="market",
        timeframe="3-6 months",
        pillar="learn",
        trigger=_below_threshold("market"),
        severity_dimension="market",
    ),
    RecommendationRule(
        key="develop-management-team",
        category="Management",
        title="Develop the Management Team",
        description="Build a second layer of leadership so the business can run without the owner through a transition.",
        impact_range=(10, 20),
        impact_dimension="management",
        timeframe="6+ months",
        pillar="coach",
        trigger=_below_threshold("management"),
        severity_dimension="management",
    ),
    RecommendationRule(
        key="diversify-customer-base",
        category="Strategic",
        title="Diversify Customer Base",
        description="Reduce dependency on major customers to minimize business risk.",
        impact_range=(5, 10),
        impact_dimension="strategic",
        timeframe="6+ months",
        pillar="execute",
        trigger=lambda ctx: ctx.profile.customer_concentration == "concentrated",
        priority="medium",
    ),
    RecommendationRule(
        key="broaden-customer-relationships",
        category="Strategic",
        title="Broaden Key Customer Relationships",
        description="Put multi-year agreements in place with your largest customers and widen contacts beyond the owner.",
        impact_range=(3, 8),
        impact_dimension="strategic",
        timeframe="3-6 months",
        pillar="collaborate",
        trigger=lambda ctx: ctx.profile.customer_concentration == "moderate",
        priority="low",
    ),
    RecommendationRule(
        key="protect-intellectual-property",
        category="Legal",
        title="Protect Intellectual Property",
        description="File patents, trademarks, and copyrights to protect your competitive advantages.",
        impact_range=(5, 15),
        impact_dimension="legal",
        timeframe="60-90 days",
        pillar="collaborate",
        trigger=lambda ctx: ctx.profile.industry == "technology" and not ctx.profile.checklist.intellectual_property,
        priority="medium",
    ),
    RecommendationRule(
        key="register-intellectual-property",
        category="Legal",
        title="Register Brand and Know-How",
        description="Register trademarks and capture proprietary know-how so it transfers cleanly with the business.",
        impact_range=(3, 8),
        impact_dimension="legal",
        timeframe="60-90 days",
        pillar="learn",
        trigger=lambda ctx: ctx.profile.industry != "technology" and not ctx.profile.checklist.intellectual_property,
        priority="low",
    ),
    RecommendationRule(
        key="reduce-key-person-dependency",
        category="Management",
        title="Reduce Key-Person Dependency",
        description="Delegate key relationships and decisions so value does not walk out the door with one person.",
        impact_range=(10, 15),
        impact_dimension="management",
        timeframe="6+ months",
        pillar="coach",
        trigger=_risk_at_least(KEY_PERSON_DEPENDENCY, KEY_PERSON_RISK_TRIGGER),
        priority="medium",
    ),
    RecommendationRule(
        key="revisit-exit-timing",
        category="Market",
        title="Revisit Exit Timing",
        description="Current growth, position and timeframe point to a weak negotiating window. Consider a longer runway.",
        impact_range=(5, 10),
        impact_dimension="market",
        timeframe="30 days",
        pillar="learn",
        trigger=_risk_at_least(MARKET_TIMING, MARKET_TIMING_RISK_TRIGGER),
        priority="medium",
    ),
)


def rule_priority(rule: RecommendationRule, ctx: RuleContext) -> str:
    """Hard gates are always high; score-driven rules escalate when the score is critical"""
    if rule.hard_gate:
        return "high"
    if rule.severity_dimension:
        if ctx.scores.get(rule.severity_dimension) < CRITICAL_SCORE_THRESHOLD:
            return "high"
        return "medium"
    return rule.priority


def build_recommendation(
    rule: RecommendationRule,
    ctx: RuleContext,
    valuation: Optional[ValuationEstimate] = None,
) -> Recommendation:
    low, high = rule.impact_range
    impact_score = (low + high) / 2
    estimated_value = None
    if valuation is not None:
        estimated_value = round(valuation.point * impact_score * VALUE_PER_POINT)

    return Recommendation(
        id=f"rec-{rule.key}",
        category=rule.category,
        priority=rule_priority(rule, ctx),
        title=rule.title,
        description=rule.description,
        estimated_impact=f"+{low}-{high} points to {rule.impact_dimension} score",
        impact_score=impact_score,
        estimated_value=estimated_value,
        timeframe=rule.timeframe,
        pillar=rule.pillar,
    )


def sort_recommendations(recommendations: List[Recommendation]) -> List[Recommendation]:
    return sorted(
        recommendations,
        key=lambda rec: (PRIORITY_RANK[rec.priority], -rec.impact_score),
    )


def generate_recommendations(
    scores: DimensionScores,
    risk: RiskAssessment,
    profile: BusinessProfile,
    valuation: Optional[ValuationEstimate] = None,
) -> List[Recommendation]:
    """
    Evaluate every rule in table order and return the triggered recommendations, ranked.

    Args:
        scores: the six dimension scores (local or remote)
        risk: the local risk assessment
        profile: the validated business profile
        valuation: when given, each recommendation carries a currency delta
    """
    ctx = RuleContext(scores=scores, risk=risk, profile=profile)
    triggered = [build_recommendation(rule, ctx, valuation) for rule in RULES if rule.trigger(ctx)]

    ranked = sort_recommendations(triggered)
    logger.info(
        f"Generated {len(ranked)} recommendations "
        f"({sum(1 for rec in ranked if rec.priority == 'high')} high priority)"
    )
    return ranked
