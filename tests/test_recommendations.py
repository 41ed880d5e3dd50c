"""Tests for the rule-driven recommendation generator."""

import pytest

from exit_engine.core.normalizer import normalize_profile, validate_profile
from exit_engine.core.recommendations import (
    PRIORITY_RANK,
    RULES,
    generate_recommendations,
    sort_recommendations,
)
from exit_engine.core.risk import assess_risk
from exit_engine.core.scoring_logic import score_dimensions
from exit_engine.core.valuation import estimate_valuation
from exit_engine.utils.data_models import DimensionScores, Recommendation


@pytest.fixture
def recommend(make_profile):
    """Run the local pipeline pieces and return the recommendations for a profile"""
    def _recommend(with_valuation=False, **overrides):
        profile = validate_profile(make_profile(**overrides))
        features = normalize_profile(profile)
        valuation = estimate_valuation(features) if with_valuation else None
        return generate_recommendations(score_dimensions(features), assess_risk(features), profile, valuation)
    return _recommend


def _by_id(recommendations):
    return {rec.id: rec for rec in recommendations}


def test_rule_keys_are_unique():
    keys = [rule.key for rule in RULES]
    assert len(keys) == len(set(keys))


def test_prepared_business_gets_no_recommendations(recommend):
    assert recommend() == []


def test_missing_financial_records(recommend):
    recs = _by_id(recommend(checklist={"financialRecords": False}))

    organize = recs["rec-organize-financial-records"]
    assert organize.priority == "high"
    assert "Financial Records" in organize.title
    assert organize.pillar == "execute"

    # financial score 59.5 is low but not critical
    assert recs["rec-improve-financial-metrics"].priority == "medium"


def test_concentrated_customers(recommend):
    recs = _by_id(recommend(customerConcentration="concentrated"))

    diversify = recs["rec-diversify-customer-base"]
    assert diversify.priority == "medium"
    assert diversify.title == "Diversify Customer Base"


def test_moderate_concentration_is_low_priority(recommend):
    recs = _by_id(recommend(customerConcentration="moderate"))

    assert "rec-diversify-customer-base" not in recs
    assert recs["rec-broaden-customer-relationships"].priority == "low"


def test_technology_without_ip(recommend):
    recs = _by_id(recommend(checklist={"intellectualProperty": False}))

    assert recs["rec-protect-intellectual-property"].priority == "medium"
    assert "rec-register-intellectual-property" not in recs


def test_other_industry_without_ip(recommend):
    recs = _by_id(recommend(industry="retail", checklist={"intellectualProperty": False}))

    assert "rec-protect-intellectual-property" not in recs
    assert recs["rec-register-intellectual-property"].priority == "low"


def test_key_person_and_timing_risks(recommend):
    recs = _by_id(recommend(employeeCount=3, revenueGrowthPct=-5, desiredTimeframe="6-months"))

    assert "rec-reduce-key-person-dependency" in recs
    assert "rec-revisit-exit-timing" in recs


def test_critical_scores_escalate_to_high(recommend):
    recs = recommend(
        profitMarginPct=-5,
        revenueGrowthPct=-10,
        annualRevenue=100_000,
        checklist={"financialRecords": False},
    )
    by_id = _by_id(recs)

    assert by_id["rec-improve-financial-metrics"].priority == "high"
    assert by_id["rec-restore-profitability"].priority == "high"


def test_ordering_is_priority_then_impact(recommend):
    recs = recommend(
        employeeCount=3,
        customerConcentration="concentrated",
        revenueGrowthPct=-5,
        desiredTimeframe="6-months",
        checklist={"financialRecords": False, "documentedProcesses": False, "intellectualProperty": False},
    )

    keys = [(PRIORITY_RANK[rec.priority], -rec.impact_score) for rec in recs]
    assert keys == sorted(keys)
    assert recs[0].priority == "high"


def test_ties_keep_rule_table_order():
    def rec(rec_id, priority, impact):
        return Recommendation(
            id=rec_id, category="Test", priority=priority, title=rec_id, description="",
            estimated_impact="", impact_score=impact, timeframe="30 days", pillar="coach",
        )

    ordered = sort_recommendations([rec("a", "medium", 10), rec("b", "high", 5), rec("c", "medium", 10)])
    assert [r.id for r in ordered] == ["b", "a", "c"]


def test_estimated_value_uses_valuation(recommend):
    recs = recommend(with_valuation=True, checklist={"financialRecords": False})
    assert all(rec.estimated_value is not None and rec.estimated_value > 0 for rec in recs)

    without = recommend(checklist={"financialRecords": False})
    assert all(rec.estimated_value is None for rec in without)


def test_remote_scores_drive_dimension_rules(make_profile):
    profile = validate_profile(make_profile())
    features = normalize_profile(profile)
    low_market = DimensionScores(
        financial=90, operational=90, strategic=90, legal=90, market=35, management=90
    )

    recs = _by_id(generate_recommendations(low_market, assess_risk(features), profile))

    assert recs["rec-improve-market-readiness"].priority == "high"


def test_deterministic(recommend):
    kwargs = dict(customerConcentration="concentrated", checklist={"documentedProcesses": False})
    assert recommend(**kwargs) == recommend(**kwargs)
