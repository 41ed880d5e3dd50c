"""Tests for the valuation methodologies and the confidence-weighted blend."""

import pytest

from exit_engine.core.valuation import (
    ASSET_BASED,
    DISCOUNTED_EARNINGS,
    GROWTH_REVENUE_MULTIPLE,
    MARKET_MULTIPLES,
    blend_estimates,
    compute_method_estimates,
    dispersion_penalty,
    estimate_valuation,
)
from exit_engine.utils.data_models import MethodEstimate


def _estimates(values, confidences):
    names = [DISCOUNTED_EARNINGS, MARKET_MULTIPLES, ASSET_BASED, GROWTH_REVENUE_MULTIPLE]
    return [
        MethodEstimate(method=name, value=value, confidence_pct=confidence)
        for name, value, confidence in zip(names, values, confidences)
    ]


class TestBlend:
    def test_confidence_weighted_blend(self):
        values = [8_500_000, 9_000_000, 9_200_000, 9_600_000]
        confidences = [85, 75, 90, 70]

        valuation = blend_estimates(_estimates(values, confidences))

        expected_point = sum(v * c for v, c in zip(values, confidences)) / sum(confidences)
        assert valuation.point == pytest.approx(expected_point, abs=1)
        assert valuation.low == pytest.approx(8_500_000 * 0.9)
        assert valuation.high == pytest.approx(9_600_000 * 1.1)
        assert valuation.confidence_pct == pytest.approx(80.8)
        assert len(valuation.methods) == 4

    def test_range_is_ordered(self):
        valuation = blend_estimates(_estimates([1_000_000, 5_000_000], [90, 10]))
        assert valuation.low <= valuation.point <= valuation.high

    def test_no_estimates(self):
        with pytest.raises(ValueError):
            blend_estimates([])

    def test_zero_confidence_falls_back_to_mean(self):
        valuation = blend_estimates(_estimates([100, 300], [0, 0]))
        assert valuation.point == 200
        assert valuation.confidence_pct == 0

    def test_methodology_names_every_method(self):
        valuation = blend_estimates(_estimates([100, 200, 300, 400], [50, 50, 50, 50]))
        for name in (DISCOUNTED_EARNINGS, MARKET_MULTIPLES, ASSET_BASED, GROWTH_REVENUE_MULTIPLE):
            assert name in valuation.methodology


class TestDispersion:
    def test_agreeing_methods_have_no_penalty(self):
        assert dispersion_penalty([8_500_000, 9_600_000]) == 0

    def test_penalty_grows_with_disagreement(self):
        # dispersion 0.6 -> (0.6 - 0.4) * 100 * 0.5 = 10 points
        assert dispersion_penalty([400, 1000]) == pytest.approx(10)

    def test_penalty_is_capped(self):
        assert dispersion_penalty([0, 1000]) == 30

    def test_all_zero(self):
        assert dispersion_penalty([0, 0]) == 0

    def test_penalty_reduces_blended_confidence(self):
        agreeing = blend_estimates(_estimates([900, 1000], [80, 80]))
        diverging = blend_estimates(_estimates([400, 1000], [80, 80]))
        assert diverging.confidence_pct == pytest.approx(agreeing.confidence_pct - 10)


class TestMethods:
    def test_four_methods(self, features):
        estimates = compute_method_estimates(features)

        assert [estimate.method for estimate in estimates] == [
            DISCOUNTED_EARNINGS, MARKET_MULTIPLES, ASSET_BASED, GROWTH_REVENUE_MULTIPLE,
        ]
        assert all(estimate.value > 0 for estimate in estimates)

    def test_market_multiple_uses_industry_benchmark(self, features):
        by_method = {estimate.method: estimate for estimate in compute_method_estimates(features)}
        assert by_method[MARKET_MULTIPLES].value == pytest.approx(5_000_000 * 1.8)
        assert by_method[ASSET_BASED].value == pytest.approx(5_000_000 * 0.40)

    def test_unprofitable_business(self, make_features):
        by_method = {
            estimate.method: estimate
            for estimate in compute_method_estimates(make_features(profitMarginPct=-10))
        }
        assert by_method[DISCOUNTED_EARNINGS].value == 0
        assert by_method[DISCOUNTED_EARNINGS].confidence_pct == 40

    def test_missing_records_cut_confidence(self, make_features):
        complete = estimate_valuation(make_features())
        missing = estimate_valuation(make_features(checklist={"financialRecords": False}))
        assert missing.confidence_pct < complete.confidence_pct

    def test_valuation_bounds(self, features):
        valuation = estimate_valuation(features)

        assert 0 <= valuation.low <= valuation.point <= valuation.high
        assert 0 <= valuation.confidence_pct <= 100

    def test_zero_revenue_values_at_zero(self, make_features):
        valuation = estimate_valuation(make_features(annualRevenue=0))
        assert valuation.point == 0
        assert valuation.high == 0
