"""Tests for the weighted dimension scorer."""

import pytest

from exit_engine.core.scoring_logic import (
    DIMENSION_WEIGHTS,
    GROWTH_FLOOR,
    GROWTH_TIERS,
    component_points,
    maturity_points,
    score_dimension,
    score_dimensions,
    tier_points,
)
from exit_engine.utils.data_models import DIMENSIONS


def test_weights_sum_to_one():
    for dimension, weights in DIMENSION_WEIGHTS.items():
        assert sum(weights.values()) == pytest.approx(1.0), dimension


def test_every_dimension_has_weights():
    assert set(DIMENSION_WEIGHTS) == set(DIMENSIONS)


@pytest.mark.parametrize("value,expected", [
    (30, 100),
    (25, 100),
    (20, 85),
    (5, 65),
    (0, 40),
    (-3, GROWTH_FLOOR),
])
def test_tier_points(value, expected):
    assert tier_points(value, GROWTH_TIERS, GROWTH_FLOOR) == expected


def test_young_company_earns_partial_maturity(make_features):
    assert maturity_points(make_features(companyAgeYears=2.5)) == pytest.approx(30)
    assert maturity_points(make_features(companyAgeYears=12)) == 100


def test_reference_profile_scores(features):
    scores = score_dimensions(features)

    assert scores.financial == pytest.approx(89.5)
    assert scores.operational == pytest.approx(90.25, abs=0.1)
    assert scores.strategic == pytest.approx(86.8)
    assert scores.legal == pytest.approx(100)
    assert scores.market == pytest.approx(83.0)
    assert scores.management == pytest.approx(90.5)


def test_missing_financial_records_lowers_financial(make_features):
    complete = score_dimensions(make_features())
    missing = score_dimensions(make_features(checklist={"financialRecords": False}))

    assert missing.financial == pytest.approx(59.5)
    assert missing.financial < complete.financial
    assert missing.legal < complete.legal


def test_missing_ip_hits_ip_intensive_industries_harder(make_features):
    tech = score_dimensions(make_features(checklist={"intellectualProperty": False}))
    services = score_dimensions(make_features(
        industry="professional-services", checklist={"intellectualProperty": False}
    ))

    assert tech.legal == pytest.approx(65)
    assert services.legal == pytest.approx(82.5)


def test_scores_bounded_for_extreme_profiles(make_features):
    worst = make_features(
        annualRevenue=0,
        profitMarginPct=-100,
        revenueGrowthPct=-100,
        companyAgeYears=0,
        employeeCount=1,
        customerConcentration="concentrated",
        marketPosition="weak",
        competitiveAdvantageText="",
        desiredTimeframe="6-months",
        checklist={
            "documentedProcesses": False,
            "financialRecords": False,
            "legalCompliance": False,
            "intellectualProperty": False,
        },
    )
    best = make_features(
        annualRevenue=50_000_000,
        profitMarginPct=100,
        revenueGrowthPct=1000,
        employeeCount=200,
        marketPosition="leader",
    )

    for features in (worst, best):
        for item in score_dimensions(features).as_list():
            assert 0 <= item.score <= 100


def test_score_dimension_reports_contributions(features):
    result = score_dimension("financial", component_points(features))

    assert result["contributions"] == {
        "financial_records": 30.0,
        "profit_margin": 25.5,
        "revenue_growth": 21.25,
        "revenue_scale": 12.75,
    }
    assert result["score"] == pytest.approx(89.5)


def test_overall_is_mean_of_dimensions(features):
    scores = score_dimensions(features)
    expected = round(sum(item.score for item in scores.as_list()) / 6, 1)
    assert scores.overall == expected
