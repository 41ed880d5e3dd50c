"""
Profile validation and feature normalization.
Turns a raw business profile into the bounded feature set every scorer reads.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

from pydantic import ValidationError

from exit_engine.core.benchmarks import (
    CONCENTRATION_CODES,
    MATURITY_AGE_YEARS,
    MARKET_POSITION_CODES,
    TIMEFRAME_YEARS,
)
from exit_engine.errors import ProfileValidationError
from exit_engine.utils.data_models import BusinessProfile, FieldError, NormalizedFeatures

logger = logging.getLogger(__name__)


ADVANTAGE_KEY_TERMS = (
    "unique",
    "patent",
    "proprietary",
    "technology",
    "market",
    "brand",
    "customer",
)
ADVANTAGE_CHARS_PER_POINT = 50
ADVANTAGE_POINTS_PER_TERM = 2
ADVANTAGE_MAX_SCORE = 10

RECURRING_REVENUE_TERMS = (
    "subscription",
    "recurring",
    "saas",
    "retainer",
    "contract",
    "licens",
    "membership",
)


def _format_location(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    return ".".join(parts) if parts else "profile"


def _clean_message(message: str) -> str:
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


def validation_errors_from(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic ValidationError into field-level errors, keeping all of them"""
    return [
        FieldError(field=_format_location(error.get("loc", ())), message=_clean_message(error.get("msg", "")))
        for error in exc.errors()
    ]


def validate_profile(payload: Union[BusinessProfile, Mapping[str, Any]]) -> BusinessProfile:
    """
    Validate a raw profile payload.

    Every violation is collected before failing, never just the first.

    Returns:
        The validated, immutable BusinessProfile

    Raises:
        ProfileValidationError: with one FieldError per offending field
    """
    if isinstance(payload, BusinessProfile):
        return payload

    if not isinstance(payload, Mapping):
        raise ProfileValidationError([
            FieldError(field="profile", message=f"Expected an object, got {type(payload).__name__}")
        ])

    try:
        return BusinessProfile.model_validate(dict(payload))
    except ValidationError as e:
        errors = validation_errors_from(e)
        logger.warning(f"Profile validation failed with {len(errors)} error(s)")
        raise ProfileValidationError(errors) from e


def score_competitive_advantage(text: str) -> int:
    """
    Heuristic strength of a free-text competitive advantage, 0-10.

    This is an approximation, not a measurement: one point per 50
    characters of text plus two points per distinct key term found
    (case-insensitive substring match), rounded and capped at 10.
    """
    if not text:
        return 0
    lowered = text.lower()
    term_count = sum(1 for term in ADVANTAGE_KEY_TERMS if term in lowered)
    raw = len(text) / ADVANTAGE_CHARS_PER_POINT + term_count * ADVANTAGE_POINTS_PER_TERM
    return min(ADVANTAGE_MAX_SCORE, round(raw))


def detect_recurring_revenue(business_model: str, revenue_sources: Iterable[str] = ()) -> bool:
    """Heuristic: does the business model or any revenue source describe recurring income?"""
    texts = [business_model, *revenue_sources]
    return any(term in text.lower() for text in texts for term in RECURRING_REVENUE_TERMS)


def normalize_profile(profile: BusinessProfile) -> NormalizedFeatures:
    """
    Derive the canonical feature set from a validated profile.

    Categorical answers go through fixed lookup tables; BusinessProfile
    validation guarantees every value has an entry.
    """
    revenue = profile.annual_revenue
    features = NormalizedFeatures(
        industry=profile.industry,
        customer_concentration_code=CONCENTRATION_CODES[profile.customer_concentration],
        market_position_code=MARKET_POSITION_CODES[profile.market_position],
        timeframe_years=TIMEFRAME_YEARS[profile.desired_timeframe],
        annual_revenue=revenue,
        profit_margin_pct=profile.profit_margin_pct,
        revenue_growth_pct=profile.revenue_growth_pct,
        employee_count=profile.employee_count,
        company_age_years=profile.company_age_years,
        revenue_per_employee=revenue / profile.employee_count,
        profit_absolute=revenue * profile.profit_margin_pct / 100,
        maturity_flag=profile.company_age_years > MATURITY_AGE_YEARS,
        competitive_advantage_strength=score_competitive_advantage(profile.competitive_advantage_text),
        recurring_revenue_flag=detect_recurring_revenue(
            profile.business_model, profile.primary_revenue_sources
        ),
        checklist=profile.checklist,
    )

    logger.debug(
        f"Normalized {profile.industry} profile: revenue/employee={features.revenue_per_employee:.0f}, "
        f"profit={features.profit_absolute:.0f}, advantage={features.competitive_advantage_strength}"
    )
    return features


def feature_payload(features: NormalizedFeatures) -> Dict[str, Any]:
    """Flat snake_case feature dict in the shape the remote predictive service expects"""
    checklist = features.checklist
    return {
        "company_age_years": features.company_age_years,
        "employee_count": features.employee_count,
        "industry": features.industry,
        "annual_revenue": features.annual_revenue,
        "profit_margin": features.profit_margin_pct / 100,
        "revenue_growth_rate": features.revenue_growth_pct / 100,
        "customer_concentration": features.customer_concentration_code,
        "has_documented_processes": int(checklist.documented_processes),
        "has_financial_records": int(checklist.financial_records),
        "has_legal_compliance": int(checklist.legal_compliance),
        "has_intellectual_property": int(checklist.intellectual_property),
        "market_position": features.market_position_code,
        "competitive_advantage_strength": features.competitive_advantage_strength,
        "desired_timeframe": features.timeframe_years,
        "revenue_per_employee": features.revenue_per_employee,
        "company_maturity": int(features.maturity_flag),
        "profit_absolute": features.profit_absolute,
        "recurring_revenue": int(features.recurring_revenue_flag),
    }
