"""
Tests for the timeframe aggregator.

Tests cover:
- Neutral result with no applicable metric
- Hand-computed weighted averages
- Metric applicability per timeframe
- Presence rules for optional fields
- Configurable weight tables
"""

import pytest

from valuation_risk.aggregator import METRIC_SPECS, TimeframeAggregator
from valuation_risk.config import TimeframeWeights, ValuationRiskConfig
from valuation_risk.types import (
    AssetCategory,
    MetricName,
    SentimentSnapshot,
    ValuationInput,
    ValuationRiskLevel,
    ValuationTimeframe,
)


@pytest.fixture
def aggregator():
    return TimeframeAggregator()


@pytest.fixture
def btc_input():
    return ValuationInput(
        symbol="BTC",
        current_price=50000,
        mvrv=1.8,
        nvt=55,
        ma50=48000,
        ma200=40000,
    )


def _names(assessment):
    return [m.name for m in assessment.metrics]


# =============================================================
# TEST: Empty input
# =============================================================

class TestNoMetrics:

    @pytest.mark.parametrize("timeframe", ValuationTimeframe.all_timeframes())
    def test_price_only_is_neutral(self, aggregator, timeframe):
        result = aggregator.assess(
            timeframe,
            ValuationInput(symbol="BTC", current_price=50000),
            AssetCategory.CORE,
        )
        assert result.overvaluation_score == 0.5
        assert result.confidence == 0.0
        assert result.metrics == []
        assert result.risk_level == ValuationRiskLevel.ELEVATED


# =============================================================
# TEST: Weighted average
# =============================================================

class TestWeightedAverage:

    def test_medium_term_by_hand(self, aggregator, btc_input):
        # mvrv 1.8 -> 0.39, ma200 +25% -> 0.5625, nvt 55 -> 0.35
        expected = (0.22 * 0.39 + 0.18 * 0.5625 + 0.15 * 0.35) / 0.55
        result = aggregator.assess(ValuationTimeframe.MEDIUM, btc_input, AssetCategory.CORE)

        assert result.overvaluation_score == pytest.approx(expected)
        assert result.overvaluation_score == pytest.approx(0.435545, abs=1e-6)
        assert result.risk_level == ValuationRiskLevel.ELEVATED
        assert result.confidence == pytest.approx(1.0)

    def test_long_term_by_hand(self, aggregator, btc_input):
        expected = (0.28 * 0.39 + 0.18 * 0.35 + 0.14 * 0.5625) / 0.60
        result = aggregator.assess(ValuationTimeframe.LONG, btc_input, AssetCategory.CORE)
        assert result.overvaluation_score == pytest.approx(expected)

    def test_short_term_uses_ma50(self, aggregator, btc_input):
        result = aggregator.assess(ValuationTimeframe.SHORT, btc_input, AssetCategory.CORE)
        assert _names(result) == ["price_vs_ma50"]
        assert result.overvaluation_score == pytest.approx(0.40625)

    def test_weights_attached(self, aggregator, btc_input):
        result = aggregator.assess(ValuationTimeframe.MEDIUM, btc_input, AssetCategory.CORE)
        weights = {m.name: m.weight for m in result.metrics}
        assert weights == {"mvrv": 0.22, "nvt": 0.15, "price_vs_ma200": 0.18}

    def test_confidence_weighted(self, aggregator):
        data = ValuationInput(
            symbol="BTC",
            current_price=100,
            sentiment=SentimentSnapshot(social_sentiment=0, news_score=0),
        )
        result = aggregator.assess(ValuationTimeframe.MEDIUM, data, AssetCategory.CORE)
        # social: 0.10 * 1.0, news: 0.10 * 0.8
        assert result.confidence == pytest.approx((0.10 + 0.08) / 0.20)
        assert result.overvaluation_score == pytest.approx((0.5 * 0.10 + 0.5 * 0.08) / 0.20)

    def test_category_changes_score(self, aggregator, btc_input):
        data = btc_input.with_overrides(mvrv=2.8)
        core = aggregator.assess(ValuationTimeframe.MEDIUM, data, AssetCategory.CORE)
        spec = aggregator.assess(ValuationTimeframe.MEDIUM, data, AssetCategory.SPECULATIVE)
        # mvrv 2.8 -> 0.69 for core, 0.94 for speculative
        assert spec.overvaluation_score - core.overvaluation_score == pytest.approx(0.22 * 0.25 / 0.55)


# =============================================================
# TEST: Applicability
# =============================================================

class TestApplicability:

    def test_metrics_follow_weight_tables(self, aggregator):
        data = ValuationInput(
            symbol="BTC",
            current_price=50000,
            mvrv=2.0,
            nvt=60,
            realized_price=30000,
            exchange_netflow=-2000,
            active_addresses=900000,
            active_addresses_30d_avg=1000000,
            ma50=48000,
            ma200=40000,
            ath=69000,
            cycle_low=15500,
            fear_greed=60,
            kimchi_premium=1.5,
            sentiment=SentimentSnapshot(social_sentiment=20, news_score=10, funding_rate=0.01),
        )

        short = aggregator.assess(ValuationTimeframe.SHORT, data, AssetCategory.CORE)
        medium = aggregator.assess(ValuationTimeframe.MEDIUM, data, AssetCategory.CORE)
        long = aggregator.assess(ValuationTimeframe.LONG, data, AssetCategory.CORE)

        assert set(_names(short)) == {
            "price_vs_ma50", "exchange_netflow", "fear_greed", "kimchi_premium",
            "active_address_ratio", "social_sentiment", "funding_rate",
        }
        assert set(_names(medium)) == {
            "mvrv", "price_vs_ma200", "nvt", "exchange_netflow", "fear_greed",
            "social_sentiment", "news_sentiment",
        }
        assert set(_names(long)) == {
            "mvrv", "nvt", "cycle_position", "price_vs_ma200",
            "realized_price_ratio", "social_sentiment",
        }

    def test_zero_divisors_treated_as_absent(self, aggregator):
        data = ValuationInput(
            symbol="BTC",
            current_price=50000,
            ma200=0,
            realized_price=0,
            ath=0,
            cycle_low=0,
        )
        result = aggregator.assess(ValuationTimeframe.LONG, data, AssetCategory.CORE)
        assert result.metrics == []
        assert result.overvaluation_score == 0.5

    def test_zero_indicator_values_still_count(self, aggregator):
        data = ValuationInput(symbol="BTC", current_price=1, exchange_netflow=0, fear_greed=0)
        result = aggregator.assess(ValuationTimeframe.SHORT, data, AssetCategory.CORE)
        assert set(_names(result)) == {"exchange_netflow", "fear_greed"}

    def test_invalid_cycle_range_keeps_metric_without_confidence(self, aggregator):
        data = ValuationInput(symbol="BTC", current_price=100, ath=50, cycle_low=80)
        result = aggregator.assess(ValuationTimeframe.LONG, data, AssetCategory.CORE)
        assert _names(result) == ["cycle_position"]
        assert result.confidence == 0.0
        assert not result.metrics[0].has_data

    def test_every_metric_declared_once(self):
        names = [spec.name for spec in METRIC_SPECS]
        assert sorted(n.value for n in names) == sorted(m.value for m in MetricName)


# =============================================================
# TEST: Configuration
# =============================================================

class TestConfiguredWeights:

    def test_custom_table(self):
        config = ValuationRiskConfig(
            timeframe_weights=TimeframeWeights(short={"fear_greed": 1.0})
        )
        aggregator = TimeframeAggregator(config)
        data = ValuationInput(symbol="BTC", current_price=1, fear_greed=80, kimchi_premium=12)

        result = aggregator.assess(ValuationTimeframe.SHORT, data, AssetCategory.CORE)

        assert _names(result) == ["fear_greed"]
        assert result.overvaluation_score == pytest.approx(0.8)
