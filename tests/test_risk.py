"""Tests for the five-category risk assessor."""

import pytest

from exit_engine.core.risk import (
    CUSTOMER_CONCENTRATION,
    DOCUMENTATION,
    KEY_PERSON_DEPENDENCY,
    LEGAL_IP_EXPOSURE,
    MARKET_TIMING,
    RISK_CATEGORIES,
    assess_risk,
    overall_risk_level,
)


def test_categories_in_fixed_order(features):
    risk = assess_risk(features)
    assert tuple(factor.category for factor in risk.categories) == RISK_CATEGORIES


def test_well_prepared_business_is_low_risk(features):
    risk = assess_risk(features)

    assert risk.overall_level == "Low"
    assert risk.level_for(CUSTOMER_CONCENTRATION) == 15
    assert risk.level_for(KEY_PERSON_DEPENDENCY) == 15
    assert risk.level_for(DOCUMENTATION) == 10
    assert risk.level_for(LEGAL_IP_EXPOSURE) == 10
    assert risk.level_for(MARKET_TIMING) == 10


def test_concentrated_customers(make_features):
    risk = assess_risk(make_features(customerConcentration="concentrated"))

    assert risk.level_for(CUSTOMER_CONCENTRATION) >= 60
    assert risk.overall_level == "High"


def test_small_undocumented_team(make_features):
    risk = assess_risk(make_features(employeeCount=3, checklist={"documentedProcesses": False}))

    assert risk.level_for(KEY_PERSON_DEPENDENCY) == 85
    assert risk.level_for(DOCUMENTATION) == 55
    factor = next(f for f in risk.categories if f.category == KEY_PERSON_DEPENDENCY)
    assert len(factor.drivers) == 2


def test_missing_records_raise_documentation_risk(make_features):
    risk = assess_risk(make_features(checklist={"financialRecords": False}))

    assert risk.level_for(DOCUMENTATION) == 50
    assert risk.overall_level == "Medium"


def test_unprotected_ip_depends_on_industry(make_features):
    tech = assess_risk(make_features(checklist={"intellectualProperty": False}))
    retail = assess_risk(make_features(industry="retail", checklist={"intellectualProperty": False}))

    assert tech.level_for(LEGAL_IP_EXPOSURE) == 40
    assert retail.level_for(LEGAL_IP_EXPOSURE) == 20


def test_rushed_exit_in_declining_market(make_features):
    risk = assess_risk(make_features(revenueGrowthPct=-5, desiredTimeframe="6-months", marketPosition="weak"))

    # 10 base + 35 declining + 30 rushed + 25 weak position
    assert risk.level_for(MARKET_TIMING) == 100


def test_levels_are_bounded(make_features):
    worst = make_features(
        employeeCount=1,
        customerConcentration="concentrated",
        revenueGrowthPct=-50,
        desiredTimeframe="6-months",
        marketPosition="weak",
        checklist={
            "documentedProcesses": False,
            "financialRecords": False,
            "legalCompliance": False,
            "intellectualProperty": False,
        },
    )
    for factor in assess_risk(worst).categories:
        assert 0 <= factor.level <= 100


@pytest.mark.parametrize("levels,expected", [
    ([10, 20, 39], "Low"),
    ([10, 40, 20], "Medium"),
    ([69, 69], "Medium"),
    ([10, 70], "High"),
])
def test_overall_level_buckets(levels, expected):
    assert overall_risk_level(levels) == expected


def test_unknown_category_has_no_level(features):
    assert assess_risk(features).level_for("currency exposure") is None
