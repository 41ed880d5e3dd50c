"""Tests for the projected valuation uplift."""

import pytest

from exit_engine.core.improvement_plan import build_improvement_plan
from exit_engine.core.scoring_logic import score_dimensions
from exit_engine.core.valuation import estimate_valuation
from exit_engine.core.value_enhancement import estimate_value_enhancement, project_features
from exit_engine.utils.data_models import DimensionScores, ImprovementPhase, ValuationEstimate


def _phase(dimension, current, target=90):
    return ImprovementPhase(
        dimension=dimension, current_score=current, target_score=target, actions=("Act",), timeframe="30 days"
    )


def test_projection_moves_each_proxy(make_features):
    features = make_features(customerConcentration="concentrated", marketPosition="average")
    projected = project_features(features, [
        _phase("financial", 70),
        _phase("operational", 80),
        _phase("strategic", 65),
        _phase("market", 60),
        _phase("management", 80),
    ])

    assert projected.profit_margin_pct == pytest.approx(15 + 20 * 0.10 + 10 * 0.05)
    assert projected.profit_absolute == pytest.approx(5_000_000 * projected.profit_margin_pct / 100)
    assert projected.customer_concentration_code == pytest.approx(2 - 25 * 0.02)
    assert projected.market_position_code == pytest.approx(1 + 30 * 0.03)
    assert projected.revenue_growth_pct == pytest.approx(20 + 10 * 0.20)


def test_projection_is_clamped(make_features):
    features = make_features(customerConcentration="diversified", marketPosition="leader")
    projected = project_features(features, [_phase("strategic", 10), _phase("market", 10)])

    assert projected.customer_concentration_code == 0
    assert projected.market_position_code == 3


def test_legal_has_no_valuation_proxy(features):
    assert project_features(features, [_phase("legal", 50)]) == features


def test_original_features_are_untouched(features):
    project_features(features, [_phase("financial", 50)])
    assert features.profit_margin_pct == 15


def test_local_valuation_enhancement(make_features):
    features = make_features(customerConcentration="concentrated", checklist={"financialRecords": False})
    current = estimate_valuation(features)
    plan = build_improvement_plan(score_dimensions(features))

    enhancement = estimate_value_enhancement(features, current, plan)

    assert enhancement.current_value == current.point
    assert enhancement.potential_value > enhancement.current_value
    assert enhancement.value_increase == pytest.approx(
        enhancement.potential_value - enhancement.current_value, abs=1
    )
    assert enhancement.percentage_increase == pytest.approx(
        enhancement.value_increase / enhancement.current_value * 100, abs=0.1
    )


def test_empty_plan_means_no_uplift(features):
    current = estimate_valuation(features)
    enhancement = estimate_value_enhancement(features, current, [])

    assert enhancement.potential_value == enhancement.current_value
    assert enhancement.value_increase == 0
    assert enhancement.percentage_increase == 0


def test_zero_current_value(make_features):
    features = make_features(annualRevenue=0)
    plan = build_improvement_plan(DimensionScores(
        financial=50, operational=50, strategic=50, legal=50, market=50, management=50
    ))

    enhancement = estimate_value_enhancement(features, estimate_valuation(features), plan)

    assert enhancement.current_value == 0
    assert enhancement.percentage_increase == 0


def test_remote_valuation_scales_by_local_ratio(make_features):
    features = make_features(customerConcentration="concentrated")
    plan = [_phase("strategic", 60)]
    remote = ValuationEstimate(low=1_000_000, point=2_000_000, high=3_000_000, confidence_pct=80, methodology="Remote")

    enhancement = estimate_value_enhancement(features, remote, plan)

    ratio = estimate_valuation(project_features(features, plan)).point / estimate_valuation(features).point
    assert enhancement.current_value == 2_000_000
    assert enhancement.potential_value == pytest.approx(2_000_000 * ratio, abs=1)
