"""
Valuation Risk Engine - Configuration.

============================================================
PURPOSE
============================================================
Defines all configuration dataclasses, weight tables and
threshold values for the Valuation Risk Engine.

Every table the engine uses is owned by an immutable
configuration object handed to the components at
construction time. Tests override a table by building a
new config, never by mutating module state.

============================================================
TABLES
============================================================
- Category thresholds (MVRV / NVT / MA deviation / beta)
- Per-timeframe metric weights (short / medium / long)
- Composite timeframe weights (0.20 / 0.35 / 0.45)
- Driver extraction cut-offs
- Recommendation score bands
- Cross-asset estimation bounds

============================================================
LOADING
============================================================
- Defaults:   get_default_config()
- YAML file:  ValuationRiskConfig.from_yaml(path)
- Env vars:   ValuationRiskConfig.from_env()

============================================================
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from dotenv import load_dotenv

from core.config_utils import env_float, load_yaml_mapping, read_only
from core.exceptions import InvalidConfigError, MissingConfigError
from .types import AssetCategory, MetricName, ValuationTimeframe


logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================
# CATEGORY THRESHOLDS
# ============================================================


@dataclass(frozen=True)
class CategoryThresholds:
    """
    Valuation thresholds for one asset category.

    ============================================================
    THRESHOLD RATIONALE
    ============================================================
    Riskier categories overheat at lower MVRV / NVT levels
    and tolerate a wider deviation from their 200-day MA.
    `beta_to_reference` scales reference-asset metrics when
    the asset has no on-chain data of its own.

    ============================================================
    """

    mvrv_overbought: float
    mvrv_oversold: float
    nvt_overbought: float
    ma_deviation_max: float           # percent above MA treated as extreme
    beta_to_reference: float
    rebalance_tolerance_pct: float    # allowed drift before rebalancing

    def __post_init__(self) -> None:
        if self.beta_to_reference < 0:
            raise InvalidConfigError(
                "beta_to_reference", self.beta_to_reference, "must be >= 0"
            )
        if self.mvrv_oversold > 1.5:
            raise InvalidConfigError(
                "mvrv_oversold", self.mvrv_oversold, "must be at most 1.5"
            )
        if self.nvt_overbought < 65:
            raise InvalidConfigError(
                "nvt_overbought", self.nvt_overbought, "must be at least 65"
            )
        if self.ma_deviation_max < 30:
            raise InvalidConfigError(
                "ma_deviation_max", self.ma_deviation_max, "must be at least 30"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mvrv_overbought": self.mvrv_overbought,
            "mvrv_oversold": self.mvrv_oversold,
            "nvt_overbought": self.nvt_overbought,
            "ma_deviation_max": self.ma_deviation_max,
            "beta_to_reference": self.beta_to_reference,
            "rebalance_tolerance_pct": self.rebalance_tolerance_pct,
        }


def _default_category_thresholds() -> Dict[AssetCategory, CategoryThresholds]:
    return {
        AssetCategory.CORE: CategoryThresholds(
            mvrv_overbought=3.5,
            mvrv_oversold=1.0,
            nvt_overbought=95.0,
            ma_deviation_max=80.0,
            beta_to_reference=1.0,
            rebalance_tolerance_pct=3.0,
        ),
        AssetCategory.MAJOR: CategoryThresholds(
            mvrv_overbought=3.0,
            mvrv_oversold=0.8,
            nvt_overbought=85.0,
            ma_deviation_max=100.0,
            beta_to_reference=1.3,
            rebalance_tolerance_pct=2.5,
        ),
        AssetCategory.GROWTH: CategoryThresholds(
            mvrv_overbought=2.5,
            mvrv_oversold=0.6,
            nvt_overbought=75.0,
            ma_deviation_max=120.0,
            beta_to_reference=1.6,
            rebalance_tolerance_pct=2.0,
        ),
        AssetCategory.SPECULATIVE: CategoryThresholds(
            mvrv_overbought=2.0,
            mvrv_oversold=0.5,
            nvt_overbought=65.0,
            ma_deviation_max=150.0,
            beta_to_reference=2.0,
            rebalance_tolerance_pct=1.5,
        ),
    }


# ============================================================
# TIMEFRAME WEIGHTS
# ============================================================


def _short_weights() -> Dict[str, float]:
    # Momentum and sentiment dominate the 1-7 day view
    return {
        MetricName.PRICE_VS_MA50.value: 0.20,
        MetricName.EXCHANGE_NETFLOW.value: 0.15,
        MetricName.FEAR_GREED.value: 0.15,
        MetricName.KIMCHI_PREMIUM.value: 0.10,
        MetricName.ACTIVE_ADDRESS_RATIO.value: 0.10,
        MetricName.SOCIAL_SENTIMENT.value: 0.15,
        MetricName.FUNDING_RATE.value: 0.15,
    }


def _medium_weights() -> Dict[str, float]:
    return {
        MetricName.MVRV.value: 0.22,
        MetricName.PRICE_VS_MA200.value: 0.18,
        MetricName.NVT.value: 0.15,
        MetricName.EXCHANGE_NETFLOW.value: 0.12,
        MetricName.FEAR_GREED.value: 0.13,
        MetricName.SOCIAL_SENTIMENT.value: 0.10,
        MetricName.NEWS_SENTIMENT.value: 0.10,
    }


def _long_weights() -> Dict[str, float]:
    # Fundamentals and cycle position dominate the 1-6 month view
    return {
        MetricName.MVRV.value: 0.28,
        MetricName.NVT.value: 0.18,
        MetricName.CYCLE_POSITION.value: 0.18,
        MetricName.PRICE_VS_MA200.value: 0.14,
        MetricName.REALIZED_PRICE_RATIO.value: 0.14,
        MetricName.SOCIAL_SENTIMENT.value: 0.08,
    }


@dataclass(frozen=True)
class TimeframeWeights:
    """
    Metric weights per timeframe.

    A metric missing from a timeframe's table does not apply
    to that timeframe. Metrics absent from the input are
    skipped and the remaining weights renormalize through the
    aggregator's division by total weight.
    """

    short: Mapping[str, float] = field(default_factory=_short_weights)
    medium: Mapping[str, float] = field(default_factory=_medium_weights)
    long: Mapping[str, float] = field(default_factory=_long_weights)

    def __post_init__(self) -> None:
        for name in ("short", "medium", "long"):
            object.__setattr__(self, name, read_only(getattr(self, name)))

        known = {m.value for m in MetricName}
        for timeframe in ValuationTimeframe.all_timeframes():
            for metric, weight in self.for_timeframe(timeframe).items():
                if metric not in known:
                    raise InvalidConfigError(
                        f"timeframe_weights.{timeframe.value}", metric, "unknown metric"
                    )
                if weight < 0:
                    raise InvalidConfigError(
                        f"timeframe_weights.{timeframe.value}.{metric}", weight, "must be >= 0"
                    )

    def for_timeframe(self, timeframe: ValuationTimeframe) -> Mapping[str, float]:
        return {
            ValuationTimeframe.SHORT: self.short,
            ValuationTimeframe.MEDIUM: self.medium,
            ValuationTimeframe.LONG: self.long,
        }[timeframe]

    def total(self, timeframe: ValuationTimeframe) -> float:
        return sum(self.for_timeframe(timeframe).values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "short": dict(self.short),
            "medium": dict(self.medium),
            "long": dict(self.long),
        }


# ============================================================
# COMPOSITE WEIGHTS
# ============================================================


@dataclass(frozen=True)
class CompositeWeights:
    """
    Blend of the three timeframe scores into the composite.

    Independent of the per-metric weights. Must sum to 1.0.
    The same blend is applied to the timeframe confidences.
    """

    short: float = 0.20
    medium: float = 0.35
    long: float = 0.45

    def __post_init__(self) -> None:
        for name in ("short", "medium", "long"):
            if getattr(self, name) < 0:
                raise InvalidConfigError(
                    f"composite_weights.{name}", getattr(self, name), "must be >= 0"
                )
        total = self.short + self.medium + self.long
        if abs(total - 1.0) > 1e-9:
            raise InvalidConfigError("composite_weights", total, "must sum to 1.0")

    def for_timeframe(self, timeframe: ValuationTimeframe) -> float:
        return {
            ValuationTimeframe.SHORT: self.short,
            ValuationTimeframe.MEDIUM: self.medium,
            ValuationTimeframe.LONG: self.long,
        }[timeframe]

    def to_dict(self) -> Dict[str, Any]:
        return {"short": self.short, "medium": self.medium, "long": self.long}


# ============================================================
# DRIVERS AND RECOMMENDATION
# ============================================================


@dataclass(frozen=True)
class DriverConfig:
    """
    Key driver extraction settings.

    contribution = |normalized_score - 0.5| * weight * confidence
    """

    max_drivers: int = 5
    high_severity_above: float = 0.15
    medium_severity_above: float = 0.08
    bullish_below: float = 0.4     # normalized score below = bullish
    bearish_above: float = 0.6     # normalized score above = bearish

    def __post_init__(self) -> None:
        if self.max_drivers < 0:
            raise InvalidConfigError("drivers.max_drivers", self.max_drivers, "must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_drivers": self.max_drivers,
            "high_severity_above": self.high_severity_above,
            "medium_severity_above": self.medium_severity_above,
            "bullish_below": self.bullish_below,
            "bearish_above": self.bearish_above,
        }


@dataclass(frozen=True)
class RecommendationConfig:
    """
    Composite score bands for the action recommendation.

    | score       | action     | urgency                    |
    |-------------|------------|----------------------------|
    | < 0.15      | ACCUMULATE | high                       |
    | < 0.25      | ACCUMULATE | medium                     |
    | < 0.45      | ACCUMULATE | low                        |
    | < 0.60      | HOLD       | low                        |
    | < 0.75      | REDUCE     | high if escalated else med |
    | otherwise   | EXIT       | high                       |
    """

    strong_accumulate_below: float = 0.15
    accumulate_below: float = 0.25
    gradual_accumulate_below: float = 0.45
    hold_below: float = 0.60
    reduce_below: float = 0.75

    # High-severity bearish drivers needed to escalate REDUCE
    escalation_driver_count: int = 2

    def __post_init__(self) -> None:
        bands = [
            self.strong_accumulate_below,
            self.accumulate_below,
            self.gradual_accumulate_below,
            self.hold_below,
            self.reduce_below,
        ]
        if bands != sorted(bands):
            raise InvalidConfigError("recommendation", bands, "bands must be ascending")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strong_accumulate_below": self.strong_accumulate_below,
            "accumulate_below": self.accumulate_below,
            "gradual_accumulate_below": self.gradual_accumulate_below,
            "hold_below": self.hold_below,
            "reduce_below": self.reduce_below,
            "escalation_driver_count": self.escalation_driver_count,
        }


# ============================================================
# CROSS-ASSET ESTIMATION
# ============================================================


@dataclass(frozen=True)
class EstimatorConfig:
    """
    Settings for deriving metrics from a reference asset.

    ============================================================
    ESTIMATION RULES
    ============================================================
    - MVRV: pushed away from the midpoint of [mvrv_min, mvrv_max]
      by beta, then clamped
    - NVT: ref_nvt * (1 + (beta - 1) * nvt_beta_damping)
    - Netflow: ref_netflow * beta
    - Fear & Greed, Kimchi premium: passed through unchanged

    ============================================================
    """

    reference_symbol: str = "BTC"
    mvrv_min: float = 0.5
    mvrv_max: float = 5.0
    nvt_beta_damping: float = 0.3
    fallback_fear_greed: float = 50.0
    estimation_method: str = "BTC correlation estimate"

    def __post_init__(self) -> None:
        if self.mvrv_min >= self.mvrv_max:
            raise InvalidConfigError(
                "estimator.mvrv_min", self.mvrv_min, "must be below mvrv_max"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference_symbol": self.reference_symbol,
            "mvrv_min": self.mvrv_min,
            "mvrv_max": self.mvrv_max,
            "nvt_beta_damping": self.nvt_beta_damping,
            "fallback_fear_greed": self.fallback_fear_greed,
            "estimation_method": self.estimation_method,
        }


# ============================================================
# MASTER CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class ValuationRiskConfig:
    """
    Master configuration for the Valuation Risk Engine.

    Aggregates all tables and engine settings.
    """

    category_thresholds: Mapping[AssetCategory, CategoryThresholds] = field(
        default_factory=_default_category_thresholds
    )
    timeframe_weights: TimeframeWeights = field(default_factory=TimeframeWeights)
    composite_weights: CompositeWeights = field(default_factory=CompositeWeights)
    drivers: DriverConfig = field(default_factory=DriverConfig)
    recommendation: RecommendationConfig = field(default_factory=RecommendationConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)

    engine_version: str = "1.0.0"

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_thresholds", read_only(self.category_thresholds))
        for category in AssetCategory:
            if category not in self.category_thresholds:
                raise MissingConfigError(f"category_thresholds.{category.value}")

    def thresholds_for(self, category: AssetCategory) -> CategoryThresholds:
        return self.category_thresholds[category]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_thresholds": {
                category.value: thresholds.to_dict()
                for category, thresholds in self.category_thresholds.items()
            },
            "timeframe_weights": self.timeframe_weights.to_dict(),
            "composite_weights": self.composite_weights.to_dict(),
            "drivers": self.drivers.to_dict(),
            "recommendation": self.recommendation.to_dict(),
            "estimator": self.estimator.to_dict(),
            "engine_version": self.engine_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValuationRiskConfig":
        """
        Build a configuration from a (partial) mapping.

        Sections and keys that are not given keep their defaults.
        Unknown keys are ignored.
        """
        defaults = cls()
        kwargs: Dict[str, Any] = {}

        if "category_thresholds" in data:
            thresholds = dict(defaults.category_thresholds)
            for name, values in (data["category_thresholds"] or {}).items():
                try:
                    category = AssetCategory(name)
                except ValueError:
                    logger.warning(f"Ignoring thresholds for unknown category '{name}'")
                    continue
                thresholds[category] = _merge(CategoryThresholds, thresholds[category], values)
            kwargs["category_thresholds"] = thresholds

        if "timeframe_weights" in data:
            tw = data["timeframe_weights"] or {}
            kwargs["timeframe_weights"] = TimeframeWeights(
                short=dict(tw.get("short", defaults.timeframe_weights.short)),
                medium=dict(tw.get("medium", defaults.timeframe_weights.medium)),
                long=dict(tw.get("long", defaults.timeframe_weights.long)),
            )

        sections = {
            "composite_weights": CompositeWeights,
            "drivers": DriverConfig,
            "recommendation": RecommendationConfig,
            "estimator": EstimatorConfig,
        }
        for key, section_cls in sections.items():
            if key in data:
                kwargs[key] = _merge(section_cls, getattr(defaults, key), data[key])

        if "engine_version" in data:
            kwargs["engine_version"] = str(data["engine_version"])

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "ValuationRiskConfig":
        """Load configuration from a YAML file."""
        return cls.from_dict(load_yaml_mapping(path))

    @classmethod
    def from_env(cls) -> "ValuationRiskConfig":
        """
        Load configuration from environment variables.

        Environment variables (a .env file is honoured):
        - VALUATION_COMPOSITE_WEIGHT_SHORT
        - VALUATION_COMPOSITE_WEIGHT_MEDIUM
        - VALUATION_COMPOSITE_WEIGHT_LONG
        - VALUATION_MAX_DRIVERS
        - VALUATION_REFERENCE_SYMBOL
        """
        load_dotenv()
        defaults = cls()
        data: Dict[str, Any] = {}

        composite = {}
        for name in ("short", "medium", "long"):
            value = env_float(f"VALUATION_COMPOSITE_WEIGHT_{name.upper()}")
            if value is not None:
                composite[name] = value
        if composite:
            data["composite_weights"] = composite

        max_drivers = env_float("VALUATION_MAX_DRIVERS")
        if max_drivers is not None:
            data["drivers"] = {"max_drivers": int(max_drivers)}

        reference = os.getenv("VALUATION_REFERENCE_SYMBOL")
        if reference:
            data["estimator"] = {
                "reference_symbol": reference.strip().upper(),
                "estimation_method": f"{reference.strip().upper()} correlation estimate",
            }

        if not data:
            return defaults
        return cls.from_dict(data)


# ============================================================
# HELPERS
# ============================================================


def _merge(section_cls: Type[T], current: T, values: Any) -> T:
    """Overlay known keys from `values` onto a config section."""
    if values is None:
        return current
    if not isinstance(values, dict):
        raise InvalidConfigError(section_cls.__name__, values, "section must be a mapping")

    names = {f.name for f in fields(section_cls)}
    merged = {name: getattr(current, name) for name in names}
    for key, value in values.items():
        if key in names:
            merged[key] = value
        else:
            logger.warning(f"Ignoring unknown {section_cls.__name__} key '{key}'")

    try:
        return section_cls(**merged)
    except (TypeError, ValueError) as e:
        raise InvalidConfigError(section_cls.__name__, values, str(e)) from e


# ============================================================
# DEFAULT CONFIGURATION
# ============================================================


def get_default_config() -> ValuationRiskConfig:
    """Return the default Valuation Risk Engine configuration."""
    return ValuationRiskConfig()


def load_config(path: Optional[Path] = None) -> ValuationRiskConfig:
    """
    Load configuration from file or return defaults.

    Args:
        path: Optional path to YAML config file

    Returns:
        ValuationRiskConfig instance
    """
    if path and Path(path).exists():
        return ValuationRiskConfig.from_yaml(path)
    return get_default_config()
