"""
Risk assessment across five exit-risk categories.
Levels are 0-100 with fixed breakpoints; the overall bucket is driven by the
single worst category.
"""

import logging
from typing import List, Tuple

from exit_engine.core.benchmarks import clamp, get_industry_benchmarks
from exit_engine.utils.data_models import NormalizedFeatures, RiskAssessment, RiskFactor

logger = logging.getLogger(__name__)

CUSTOMER_CONCENTRATION = "customer concentration"
KEY_PERSON_DEPENDENCY = "key-person dependency"
DOCUMENTATION = "documentation completeness"
LEGAL_IP_EXPOSURE = "legal/IP exposure"
MARKET_TIMING = "market timing"

RISK_CATEGORIES = (
    CUSTOMER_CONCENTRATION,
    KEY_PERSON_DEPENDENCY,
    DOCUMENTATION,
    LEGAL_IP_EXPOSURE,
    MARKET_TIMING,
)

HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40

BASE_LEVEL = 10

CONCENTRATION_LEVELS = {0: 15, 1: 45, 2: 75}

# (max employees exclusive, level); larger teams fall through to the default
KEY_PERSON_TEAM_LEVELS = ((5, 70), (10, 55), (20, 40))
KEY_PERSON_DEFAULT_LEVEL = 25
DOCUMENTED_PROCESS_RELIEF = -10
UNDOCUMENTED_PROCESS_PENALTY = 15

MISSING_PROCESSES_PENALTY = 45
MISSING_RECORDS_PENALTY = 40

MISSING_COMPLIANCE_PENALTY = 50
MISSING_IP_PENALTY_INTENSIVE = 30
MISSING_IP_PENALTY_OTHER = 10

NEGATIVE_GROWTH_PENALTY = 35
FLAT_GROWTH_THRESHOLD = 5
FLAT_GROWTH_PENALTY = 20
RUSHED_TIMEFRAME_PENALTIES = {0.5: 30, 1.0: 10}
POSITION_PENALTIES = {0: 25, 1: 10}


def _concentration_risk(features: NormalizedFeatures) -> Tuple[float, List[str]]:
    code = int(round(features.customer_concentration_code))
    level = CONCENTRATION_LEVELS[code]
    drivers = []
    if code == 2:
        drivers.append("Revenue concentrated in a few customers")
    elif code == 1:
        drivers.append("Moderate reliance on key customers")
    return level, drivers


def _key_person_risk(features: NormalizedFeatures) -> Tuple[float, List[str]]:
    level = KEY_PERSON_DEFAULT_LEVEL
    drivers = []
    for limit, team_level in KEY_PERSON_TEAM_LEVELS:
        if features.employee_count < limit:
            level = team_level
            drivers.append(f"Small team ({features.employee_count} employees)")
            break

    if features.checklist.documented_processes:
        level += DOCUMENTED_PROCESS_RELIEF
    else:
        level += UNDOCUMENTED_PROCESS_PENALTY
        drivers.append("Knowledge is not captured in documented processes")
    return level, drivers


def _documentation_risk(features: NormalizedFeatures) -> Tuple[float, List[str]]:
    level = BASE_LEVEL
    drivers = []
    if not features.checklist.documented_processes:
        level += MISSING_PROCESSES_PENALTY
        drivers.append("No documented operating processes")
    if not features.checklist.financial_records:
        level += MISSING_RECORDS_PENALTY
        drivers.append("Financial records not diligence-ready")
    return level, drivers


def _legal_ip_risk(features: NormalizedFeatures) -> Tuple[float, List[str]]:
    level = BASE_LEVEL
    drivers = []
    if not features.checklist.legal_compliance:
        level += MISSING_COMPLIANCE_PENALTY
        drivers.append("Legal compliance gaps")
    if not features.checklist.intellectual_property:
        if get_industry_benchmarks(features.industry)["ip_intensive"]:
            level += MISSING_IP_PENALTY_INTENSIVE
            drivers.append("Unprotected IP in an IP-intensive industry")
        else:
            level += MISSING_IP_PENALTY_OTHER
            drivers.append("No registered intellectual property")
    return level, drivers


def _market_timing_risk(features: NormalizedFeatures) -> Tuple[float, List[str]]:
    level = BASE_LEVEL
    drivers = []
    if features.revenue_growth_pct < 0:
        level += NEGATIVE_GROWTH_PENALTY
        drivers.append("Revenue is declining")
    elif features.revenue_growth_pct < FLAT_GROWTH_THRESHOLD:
        level += FLAT_GROWTH_PENALTY
        drivers.append("Revenue growth is flat")

    timeframe_penalty = RUSHED_TIMEFRAME_PENALTIES.get(features.timeframe_years, 0)
    if timeframe_penalty:
        level += timeframe_penalty
        drivers.append(f"Short exit window ({features.timeframe_years:g} years)")

    position_penalty = POSITION_PENALTIES.get(int(round(features.market_position_code)), 0)
    if position_penalty:
        level += position_penalty
        drivers.append("Weak competitive position")
    return level, drivers


RISK_EVALUATORS = {
    CUSTOMER_CONCENTRATION: _concentration_risk,
    KEY_PERSON_DEPENDENCY: _key_person_risk,
    DOCUMENTATION: _documentation_risk,
    LEGAL_IP_EXPOSURE: _legal_ip_risk,
    MARKET_TIMING: _market_timing_risk,
}


def overall_risk_level(levels: List[float]) -> str:
    """High if any category >= 70, Medium if any >= 40, else Low"""
    if any(level >= HIGH_RISK_THRESHOLD for level in levels):
        return "High"
    if any(level >= MEDIUM_RISK_THRESHOLD for level in levels):
        return "Medium"
    return "Low"


def assess_risk(features: NormalizedFeatures) -> RiskAssessment:
    """Evaluate every risk category in fixed order"""
    factors = []
    for category in RISK_CATEGORIES:
        level, drivers = RISK_EVALUATORS[category](features)
        factors.append(RiskFactor(category=category, level=clamp(level), drivers=tuple(drivers)))

    overall = overall_risk_level([factor.level for factor in factors])
    logger.debug(f"Risk levels: {[(f.category, f.level) for f in factors]} -> {overall}")
    return RiskAssessment(categories=tuple(factors), overall_level=overall)
