"""
Tests for Valuation Risk Engine configuration loading and validation.
"""

import pytest

from core.exceptions import InvalidConfigError, MissingConfigError
from valuation_risk.config import (
    CompositeWeights,
    TimeframeWeights,
    ValuationRiskConfig,
    get_default_config,
    load_config,
)
from valuation_risk.types import AssetCategory, ValuationTimeframe


ENV_KEYS = [
    "VALUATION_COMPOSITE_WEIGHT_SHORT",
    "VALUATION_COMPOSITE_WEIGHT_MEDIUM",
    "VALUATION_COMPOSITE_WEIGHT_LONG",
    "VALUATION_MAX_DRIVERS",
    "VALUATION_REFERENCE_SYMBOL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


# =============================================================
# TEST: Defaults and validation
# =============================================================

class TestValidation:

    def test_default_tables(self):
        config = get_default_config()
        assert config.composite_weights.to_dict() == {"short": 0.20, "medium": 0.35, "long": 0.45}
        assert config.timeframe_weights.total(ValuationTimeframe.LONG) == pytest.approx(1.0)
        assert set(config.category_thresholds) == set(AssetCategory)

    def test_composite_must_sum_to_one(self):
        with pytest.raises(InvalidConfigError) as exc:
            CompositeWeights(short=0.5, medium=0.35, long=0.45)
        assert exc.value.config_key == "composite_weights"

    def test_negative_metric_weight_rejected(self):
        with pytest.raises(InvalidConfigError):
            TimeframeWeights(short={"fear_greed": -0.1})

    def test_unknown_metric_rejected(self):
        with pytest.raises(InvalidConfigError) as exc:
            TimeframeWeights(medium={"hash_rate": 0.2})
        assert exc.value.reason == "unknown metric"

    def test_weight_tables_read_only(self):
        config = get_default_config()
        with pytest.raises(TypeError):
            config.timeframe_weights.short["mvrv"] = 9
        with pytest.raises(TypeError):
            config.category_thresholds[AssetCategory.CORE] = None
        assert "mvrv" not in config.timeframe_weights.short

    def test_caller_dict_not_aliased(self):
        table = {"fear_greed": 1.0}
        weights = TimeframeWeights(short=table)
        table["fear_greed"] = 5.0
        assert weights.short["fear_greed"] == 1.0

    def test_missing_category_thresholds(self):
        with pytest.raises(MissingConfigError) as exc:
            ValuationRiskConfig(category_thresholds={})
        assert "category_thresholds" in exc.value.message


# =============================================================
# TEST: from_dict / from_yaml
# =============================================================

class TestFromDict:

    def test_round_trip_defaults(self):
        config = get_default_config()
        assert ValuationRiskConfig.from_dict(config.to_dict()) == config

    def test_partial_merge(self):
        config = ValuationRiskConfig.from_dict({
            "drivers": {"max_drivers": 3},
            "category_thresholds": {"core": {"mvrv_overbought": 4.0}},
        })
        assert config.drivers.max_drivers == 3
        assert config.drivers.high_severity_above == 0.15
        assert config.category_thresholds[AssetCategory.CORE].mvrv_overbought == 4.0
        assert config.category_thresholds[AssetCategory.CORE].nvt_overbought == 95.0
        assert config.category_thresholds[AssetCategory.MAJOR].mvrv_overbought == 3.0

    def test_invalid_composite_in_dict(self):
        with pytest.raises(InvalidConfigError):
            ValuationRiskConfig.from_dict({"composite_weights": {"short": 0.5}})

    def test_section_must_be_mapping(self):
        with pytest.raises(InvalidConfigError):
            ValuationRiskConfig.from_dict({"drivers": [1, 2]})

    def test_unknown_category_ignored(self):
        config = ValuationRiskConfig.from_dict({"category_thresholds": {"meme": {}}})
        assert config.category_thresholds == get_default_config().category_thresholds


class TestFromYaml:

    def test_load(self, tmp_path):
        path = tmp_path / "valuation.yaml"
        path.write_text(
            "composite_weights:\n"
            "  short: 0.3\n"
            "  medium: 0.3\n"
            "  long: 0.4\n"
            "estimator:\n"
            "  reference_symbol: ETH\n"
        )
        config = ValuationRiskConfig.from_yaml(path)
        assert config.composite_weights.short == 0.3
        assert config.estimator.reference_symbol == "ETH"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ValuationRiskConfig.from_yaml(path) == get_default_config()

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfigError):
            ValuationRiskConfig.from_yaml(tmp_path / "nope.yaml")

    def test_list_document_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(InvalidConfigError):
            ValuationRiskConfig.from_yaml(path)

    def test_load_config_falls_back(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml") == get_default_config()
        assert load_config() == get_default_config()


# =============================================================
# TEST: from_env
# =============================================================

class TestFromEnv:

    def test_no_env_gives_defaults(self, clean_env):
        assert ValuationRiskConfig.from_env() == get_default_config()

    def test_max_drivers(self, clean_env):
        clean_env.setenv("VALUATION_MAX_DRIVERS", "3")
        assert ValuationRiskConfig.from_env().drivers.max_drivers == 3

    def test_reference_symbol(self, clean_env):
        clean_env.setenv("VALUATION_REFERENCE_SYMBOL", " eth ")
        config = ValuationRiskConfig.from_env()
        assert config.estimator.reference_symbol == "ETH"
        assert config.estimator.estimation_method == "ETH correlation estimate"

    def test_composite_weights(self, clean_env):
        clean_env.setenv("VALUATION_COMPOSITE_WEIGHT_SHORT", "0.1")
        clean_env.setenv("VALUATION_COMPOSITE_WEIGHT_LONG", "0.55")
        config = ValuationRiskConfig.from_env()
        assert config.composite_weights.short == 0.1
        assert config.composite_weights.long == 0.55

    def test_non_numeric_rejected(self, clean_env):
        clean_env.setenv("VALUATION_MAX_DRIVERS", "many")
        with pytest.raises(InvalidConfigError):
            ValuationRiskConfig.from_env()
