"""
Tests for the Cash Allocation Engine.

Tests cover:
- Weighted average over supplied indicators only
- Neutral result without data
- Half-up score rounding vs. raw-score bucketing
- Bucket boundaries
- Configuration loading and validation
"""

import pytest

from cash_allocation.config import (
    CashAllocationConfig,
    CashBucket,
    CashWeights,
    get_default_config,
)
from cash_allocation.engine import CashAllocationEngine, calculate_recommended_cash_allocation
from cash_allocation.types import CashIndicators, CashRiskLevel, Indicator
from core.exceptions import InvalidConfigError, MissingConfigError


@pytest.fixture
def engine():
    return CashAllocationEngine()


@pytest.fixture
def overheated():
    return CashIndicators(
        fear_greed=90,
        mvrv=4.5,
        kimchi_premium=12,
        exchange_flow=15000,
        current_price=200,
        ma200=100,
    )


# =============================================================
# TEST: Scoring
# =============================================================

class TestRecommend:

    def test_overheated_market(self, engine, overheated):
        rec = engine.recommend(overheated)

        # (90*0.20 + 95*0.15 + 95*0.10 + 90*0.15 + 90*0.15) / 0.75
        assert rec.raw_score == pytest.approx(68.75 / 0.75)
        assert rec.score == 92
        assert rec.recommended_cash == 55.0
        assert rec.risk_level == CashRiskLevel.PRESERVATION
        assert len(rec.breakdown) == 5
        assert Indicator.VOLATILITY not in rec.analyses

    def test_extreme_greed_with_high_volatility(self, engine):
        rec = engine.recommend(CashIndicators(
            fear_greed=90, mvrv=4.5, kimchi_premium=12, exchange_flow=15000, vix=45,
        ))
        assert rec.risk_level == CashRiskLevel.PRESERVATION
        assert rec.recommended_cash == 55.0

    def test_no_data_is_neutral(self, engine):
        rec = engine.recommend(CashIndicators())
        assert rec.score == 50
        assert rec.raw_score == 50.0
        assert rec.risk_level == CashRiskLevel.BALANCED
        assert rec.recommended_cash == 25.0
        assert rec.breakdown == []

    def test_single_indicator(self, engine):
        rec = engine.recommend(CashIndicators(fear_greed=90))
        assert rec.score == 90
        assert rec.risk_level == CashRiskLevel.PRESERVATION

    def test_nvt_reported_without_moving_score(self, engine):
        rec = engine.recommend(CashIndicators(fear_greed=90, nvt=30))

        assert rec.raw_score == pytest.approx(90.0)
        assert rec.risk_level == CashRiskLevel.PRESERVATION
        nvt = rec.analyses[Indicator.NVT]
        assert nvt.score == 25
        assert nvt.weight == 0.0
        assert nvt.contribution == 0.0

    def test_active_addresses_reported_without_moving_score(self, engine):
        rec = engine.recommend(CashIndicators(
            mvrv=1.5, active_addresses=200, active_addresses_30d_avg=100,
        ))

        assert rec.raw_score == pytest.approx(30.0)
        assert rec.risk_level == CashRiskLevel.GROWTH
        assert rec.analyses[Indicator.ACTIVE_ADDRESSES].score == 70
        assert rec.analyses[Indicator.ACTIVE_ADDRESSES].weight == 0.0

    def test_unweighted_indicators_alone_are_neutral(self, engine):
        rec = engine.recommend(CashIndicators(nvt=120))
        assert rec.raw_score == 50.0
        assert rec.risk_level == CashRiskLevel.BALANCED
        assert len(rec.breakdown) == 1

    def test_configured_nvt_weight_enters_average(self):
        config = CashAllocationConfig(weights=CashWeights(nvt=0.10))
        rec = CashAllocationEngine(config).recommend(CashIndicators(fear_greed=90, nvt=30))
        # (90*0.20 + 25*0.10) / 0.30
        assert rec.raw_score == pytest.approx(20.5 / 0.3)
        assert rec.risk_level == CashRiskLevel.CAUTIOUS

    def test_market_trend_needs_both_fields(self, engine):
        rec = engine.recommend(CashIndicators(current_price=100))
        assert rec.breakdown == []

    def test_active_addresses_need_average(self, engine):
        rec = engine.recommend(CashIndicators(active_addresses=1000))
        assert rec.breakdown == []

    def test_half_up_rounding(self):
        config = CashAllocationConfig(weights=CashWeights(fear_greed=1.0, volatility=1.0))
        # (20 + 65) / 2 = 42.5
        rec = CashAllocationEngine(config).recommend(CashIndicators(fear_greed=10, vix=25))
        assert rec.raw_score == pytest.approx(42.5)
        assert rec.score == 43

    def test_breakdown_entries(self, engine):
        rec = engine.recommend(CashIndicators(mvrv=1.5))
        entry = rec.analyses[Indicator.MVRV]
        assert entry.score == 30
        assert entry.weight == 0.15
        assert entry.contribution == pytest.approx(4.5)
        assert entry.to_dict()["label"] == "MVRV Ratio"

    def test_one_shot_function(self, overheated):
        rec = calculate_recommended_cash_allocation(overheated)
        assert rec.risk_level == CashRiskLevel.PRESERVATION
        assert rec.to_dict()["risk_level"] == "PRESERVATION"


# =============================================================
# TEST: Buckets
# =============================================================

class TestBuckets:

    @pytest.mark.parametrize("score,cash,level", [
        (0, 10.0, CashRiskLevel.AGGRESSIVE),
        (25, 10.0, CashRiskLevel.AGGRESSIVE),
        (25.1, 20.0, CashRiskLevel.GROWTH),
        (40, 20.0, CashRiskLevel.GROWTH),
        (55, 25.0, CashRiskLevel.BALANCED),
        (70, 35.0, CashRiskLevel.CAUTIOUS),
        (85, 45.0, CashRiskLevel.DEFENSIVE),
        (85.1, 55.0, CashRiskLevel.PRESERVATION),
        (100, 55.0, CashRiskLevel.PRESERVATION),
    ])
    def test_bucket_for(self, score, cash, level):
        bucket = get_default_config().bucket_for(score)
        assert bucket.cash_percent == cash
        assert bucket.risk_level == level

    def test_cash_percent_monotonic(self):
        percents = [b.cash_percent for b in get_default_config().buckets]
        assert percents == sorted(percents)


# =============================================================
# TEST: Configuration
# =============================================================

class TestConfig:

    def test_empty_buckets(self):
        with pytest.raises(MissingConfigError):
            CashAllocationConfig(buckets=[])

    def test_last_bucket_open_ended(self):
        with pytest.raises(InvalidConfigError):
            CashAllocationConfig(buckets=[
                CashBucket(50, 10.0, CashRiskLevel.AGGRESSIVE, ""),
            ])

    def test_bounds_ascending(self):
        with pytest.raises(InvalidConfigError):
            CashAllocationConfig(buckets=[
                CashBucket(60, 10.0, CashRiskLevel.AGGRESSIVE, ""),
                CashBucket(40, 20.0, CashRiskLevel.GROWTH, ""),
                CashBucket(None, 30.0, CashRiskLevel.BALANCED, ""),
            ])

    def test_negative_weight(self):
        with pytest.raises(InvalidConfigError):
            CashWeights(mvrv=-0.1)

    def test_negative_tolerance(self):
        with pytest.raises(InvalidConfigError):
            CashAllocationConfig(rebalance_tolerance=-1)

    def test_missing_risk_multipliers(self):
        with pytest.raises(MissingConfigError):
            CashAllocationConfig.from_dict({"targets": {"risk_multipliers": {}}})

    def test_tables_read_only(self):
        config = get_default_config()
        with pytest.raises(TypeError):
            config.targets.category_weights["core"] = 10.0
        with pytest.raises(TypeError):
            config.targets.risk_multipliers["BALANCED"]["core"] = 3.0
        with pytest.raises(AttributeError):
            config.buckets.append(config.buckets[0])
        assert config.targets.risk_multipliers["BALANCED"]["core"] == 1.0

    def test_round_trip(self):
        config = get_default_config()
        assert CashAllocationConfig.from_dict(config.to_dict()) == config

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "cash.yaml"
        path.write_text(
            "weights:\n"
            "  fear_greed: 0.5\n"
            "rebalance_tolerance: 5\n"
        )
        config = CashAllocationConfig.from_yaml(path)
        assert config.weights.fear_greed == 0.5
        assert config.weights.mvrv == 0.15
        assert config.rebalance_tolerance == 5.0

    def test_from_yaml_bad_bucket(self, tmp_path):
        path = tmp_path / "cash.yaml"
        path.write_text(
            "buckets:\n"
            "  - max_score: null\n"
            "    cash_percent: 30\n"
            "    risk_level: RELAXED\n"
        )
        with pytest.raises(InvalidConfigError):
            CashAllocationConfig.from_yaml(path)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CASH_WEIGHT_FEAR_GREED", "0.4")
        monkeypatch.setenv("CASH_REBALANCE_TOLERANCE", "3.5")
        config = CashAllocationConfig.from_env()
        assert config.weights.fear_greed == 0.4
        assert config.rebalance_tolerance == 3.5

    def test_from_env_non_numeric(self, monkeypatch):
        monkeypatch.setenv("CASH_REBALANCE_TOLERANCE", "lots")
        with pytest.raises(InvalidConfigError):
            CashAllocationConfig.from_env()
