"""
Tests for the valuation metric normalizers.

Tests cover:
- Exact scores at every breakpoint
- Category-parameterized thresholds
- Degraded-input branches (neutral 0.5, confidence 0)
- Score range over each input domain
"""

import pytest

from valuation_risk.config import get_default_config
from valuation_risk.normalizers import (
    clamp01,
    normalize_active_address_ratio,
    normalize_cycle_position,
    normalize_exchange_netflow,
    normalize_fear_greed,
    normalize_funding_rate,
    normalize_kimchi_premium,
    normalize_mvrv,
    normalize_news_sentiment,
    normalize_nvt,
    normalize_price_vs_ma,
    normalize_realized_price_ratio,
    normalize_social_sentiment,
)
from valuation_risk.types import AssetCategory


@pytest.fixture
def core():
    return get_default_config().thresholds_for(AssetCategory.CORE)


@pytest.fixture
def speculative():
    return get_default_config().thresholds_for(AssetCategory.SPECULATIVE)


# =============================================================
# TEST: MVRV
# =============================================================

class TestMvrv:

    @pytest.mark.parametrize("mvrv,expected", [
        (0.5, 0.0),
        (1.0, 0.0),     # oversold exactly: start of the linear band
        (1.25, 0.15),
        (1.5, 0.3),
        (2.0, 0.45),
        (2.5, 0.6),
        (3.0, 0.75),
        (3.5, 0.9),     # overbought exactly
        (4.5, 0.95),
        (5.5, 1.0),
        (20.0, 1.0),
    ])
    def test_core_breakpoints(self, core, mvrv, expected):
        result = normalize_mvrv(mvrv, core)
        assert result.normalized_score == pytest.approx(expected)
        assert result.confidence == 1.0

    def test_speculative_overheats_earlier(self, core, speculative):
        # Past 2.5 the speculative overbought level (2.0) is already exceeded
        assert normalize_mvrv(2.6, speculative).normalized_score == pytest.approx(0.93)
        assert normalize_mvrv(2.6, core).normalized_score == pytest.approx(0.63)

    def test_speculative_oversold_band(self, speculative):
        # oversold 0.5: (1.0 - 0.5) / (1.5 - 0.5) * 0.3
        assert normalize_mvrv(1.0, speculative).normalized_score == pytest.approx(0.15)

    def test_reason_mentions_value(self, core):
        assert "MVRV 1.80" in normalize_mvrv(1.8, core).reason

    def test_weight_left_for_aggregator(self, core):
        assert normalize_mvrv(2.0, core).weight == 0.0


# =============================================================
# TEST: NVT
# =============================================================

class TestNvt:

    @pytest.mark.parametrize("nvt,expected", [
        (0.0, 0.0),
        (22.5, 0.1),
        (45.0, 0.2),
        (55.0, 0.35),
        (65.0, 0.5),
        (80.0, 0.675),
        (95.0, 0.85),
        (125.0, 1.0),
        (300.0, 1.0),
    ])
    def test_core_breakpoints(self, core, nvt, expected):
        assert normalize_nvt(nvt, core).normalized_score == pytest.approx(expected)

    def test_speculative_overbought_at_65(self, speculative):
        assert normalize_nvt(65.0, speculative).normalized_score == pytest.approx(0.85)


# =============================================================
# TEST: PRICE VS MOVING AVERAGE
# =============================================================

class TestPriceVsMa:

    @pytest.mark.parametrize("price,expected", [
        (40.0, 0.0),     # -60%
        (50.0, 0.0),     # -50%
        (60.0, 0.05),    # -40%
        (70.0, 0.1),     # -30%
        (80.0, 0.2),     # -20%
        (90.0, 0.3),     # -10%
        (110.0, 0.45),   # +10%
        (130.0, 0.6),    # +30%
        (155.0, 0.75),   # +55%
        (180.0, 0.9),    # +80% = core max deviation
        (230.0, 1.0),    # +130%
    ])
    def test_core_breakpoints(self, core, price, expected):
        result = normalize_price_vs_ma(price, 100.0, 200, core)
        assert result.normalized_score == pytest.approx(expected)

    def test_value_is_deviation_percent(self, core):
        result = normalize_price_vs_ma(125.0, 100.0, 50, core)
        assert result.value == pytest.approx(25.0)

    def test_metric_name_follows_period(self, core):
        assert normalize_price_vs_ma(100, 100, 50, core).name == "price_vs_ma50"
        assert normalize_price_vs_ma(100, 100, 200, core).name == "price_vs_ma200"

    def test_zero_ma_is_neutral(self, core):
        result = normalize_price_vs_ma(100.0, 0.0, 200, core)
        assert result.normalized_score == 0.5
        assert result.confidence == 0.0
        assert result.reason == "No data"
        assert not result.has_data

    def test_wider_band_for_speculative(self, core, speculative):
        # +80% is extreme for core but mid-band for speculative
        assert normalize_price_vs_ma(180, 100, 200, core).normalized_score == pytest.approx(0.9)
        assert normalize_price_vs_ma(180, 100, 200, speculative).normalized_score == pytest.approx(0.725)


# =============================================================
# TEST: PIECEWISE-CONSTANT METRICS
# =============================================================

class TestBandedMetrics:

    @pytest.mark.parametrize("netflow,expected", [
        (-20000, 0.1),
        (-10000, 0.25),
        (-5000, 0.5),
        (0, 0.5),
        (5000, 0.75),
        (10000, 0.9),
        (50000, 0.9),
    ])
    def test_exchange_netflow(self, netflow, expected):
        assert normalize_exchange_netflow(netflow).normalized_score == expected

    @pytest.mark.parametrize("premium,expected", [
        (-3.0, 0.1),
        (-2.0, 0.4),
        (0.0, 0.4),
        (2.0, 0.6),
        (5.0, 0.8),
        (10.0, 0.95),
    ])
    def test_kimchi_premium(self, premium, expected):
        assert normalize_kimchi_premium(premium).normalized_score == expected

    @pytest.mark.parametrize("current,expected", [
        (60, 0.2),
        (70, 0.35),
        (100, 0.5),
        (110, 0.65),
        (130, 0.8),
        (200, 0.8),
    ])
    def test_active_address_ratio(self, current, expected):
        assert normalize_active_address_ratio(current, 100).normalized_score == expected

    def test_active_address_zero_average(self):
        result = normalize_active_address_ratio(500, 0)
        assert result.normalized_score == 0.5
        assert result.confidence == 0.0

    @pytest.mark.parametrize("price,expected", [
        (70, 0.05),
        (80, 0.15),
        (100, 0.35),
        (150, 0.55),
        (250, 0.75),
        (350, 0.9),
    ])
    def test_realized_price_ratio(self, price, expected):
        assert normalize_realized_price_ratio(price, 100).normalized_score == expected

    def test_realized_price_zero(self):
        result = normalize_realized_price_ratio(100, 0)
        assert result.normalized_score == 0.5
        assert result.confidence == 0.0

    @pytest.mark.parametrize("rate,expected", [
        (-0.1, 0.1),
        (-0.05, 0.3),
        (-0.01, 0.3),
        (0.0, 0.5),
        (0.03, 0.75),
        (0.08, 0.9),
    ])
    def test_funding_rate(self, rate, expected):
        assert normalize_funding_rate(rate).normalized_score == expected

    def test_funding_rate_reason_in_percent(self):
        result = normalize_funding_rate(0.0005)
        assert result.reason.startswith("Funding rate 0.050% - ")
        assert result.value == 0.0005


# =============================================================
# TEST: LINEAR METRICS
# =============================================================

class TestLinearMetrics:

    def test_fear_greed_is_direct(self):
        assert normalize_fear_greed(0).normalized_score == 0.0
        assert normalize_fear_greed(62).normalized_score == pytest.approx(0.62)
        assert normalize_fear_greed(100).normalized_score == 1.0

    def test_fear_greed_out_of_range_is_clamped(self):
        assert normalize_fear_greed(130).normalized_score == 1.0
        assert normalize_fear_greed(-10).normalized_score == 0.0

    def test_fear_greed_reason_inclusive_bounds(self):
        assert "extreme fear" in normalize_fear_greed(25).reason
        assert "extreme fear" not in normalize_fear_greed(26).reason

    def test_social_sentiment(self):
        assert normalize_social_sentiment(-100).normalized_score == 0.0
        assert normalize_social_sentiment(0).normalized_score == 0.5
        assert normalize_social_sentiment(100).normalized_score == 1.0
        assert normalize_social_sentiment(40).confidence == 1.0

    def test_news_sentiment_lower_confidence(self):
        result = normalize_news_sentiment(50)
        assert result.normalized_score == pytest.approx(0.75)
        assert result.confidence == 0.8

    def test_cycle_position(self):
        result = normalize_cycle_position(60, ath=100, cycle_low=20)
        assert result.value == pytest.approx(50.0)
        assert result.normalized_score == pytest.approx(0.5)
        assert result.confidence == 0.8

    def test_cycle_position_clamped(self):
        assert normalize_cycle_position(10, 100, 20).normalized_score == 0.0
        assert normalize_cycle_position(150, 100, 20).normalized_score == 1.0

    @pytest.mark.parametrize("ath,low", [(0, 20), (100, 0), (100, 100), (50, 100)])
    def test_cycle_position_invalid_range(self, ath, low):
        result = normalize_cycle_position(60, ath, low)
        assert result.normalized_score == 0.5
        assert result.confidence == 0.0


# =============================================================
# TEST: RANGE
# =============================================================

class TestScoreRange:

    def test_clamp01(self):
        assert clamp01(-0.1) == 0.0
        assert clamp01(1.7) == 1.0
        assert clamp01(0.42) == 0.42

    def test_all_scores_within_unit_interval(self, core, speculative):
        values = [x / 4 for x in range(-400, 1600)]
        for thresholds in (core, speculative):
            for v in values:
                for result in (
                    normalize_mvrv(v / 100, thresholds),
                    normalize_nvt(v, thresholds),
                    normalize_price_vs_ma(v, 100, 200, thresholds),
                    normalize_exchange_netflow(v * 100),
                    normalize_fear_greed(v),
                    normalize_kimchi_premium(v / 10),
                    normalize_active_address_ratio(v, 100),
                    normalize_realized_price_ratio(v, 100),
                    normalize_social_sentiment(v - 100),
                    normalize_news_sentiment(v - 100),
                    normalize_funding_rate(v / 1000),
                    normalize_cycle_position(v, 300, 50),
                ):
                    assert 0.0 <= result.normalized_score <= 1.0, result
                    assert 0.0 <= result.confidence <= 1.0
