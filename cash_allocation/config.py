"""
Cash Allocation Engine - Configuration.

============================================================
PURPOSE
============================================================
Indicator weights, score buckets and rebalancing settings
for the Cash Allocation Engine.

============================================================
BUCKETS
============================================================
| score  | cash | risk level   |
|--------|------|--------------|
| <= 25  | 10%  | AGGRESSIVE   |
| <= 40  | 20%  | GROWTH       |
| <= 55  | 25%  | BALANCED     |
| <= 70  | 35%  | CAUTIOUS     |
| <= 85  | 45%  | DEFENSIVE    |
| else   | 55%  | PRESERVATION |

============================================================
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from dotenv import load_dotenv

from core.config_utils import env_float, load_yaml_mapping, read_only
from core.exceptions import InvalidConfigError, MissingConfigError
from .types import CashRiskLevel, Indicator


logger = logging.getLogger(__name__)


# ============================================================
# INDICATOR WEIGHTS
# ============================================================


@dataclass(frozen=True)
class CashWeights:
    """
    Weight per indicator.

    Only the indicators actually supplied enter the average,
    and the denominator is the sum of their weights. NVT and
    active addresses are reported in the breakdown but carry
    no weight unless configured.
    """

    fear_greed: float = 0.20
    mvrv: float = 0.15
    kimchi_premium: float = 0.10
    exchange_flow: float = 0.15
    market_trend: float = 0.15
    volatility: float = 0.15
    nvt: float = 0.0
    active_addresses: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise InvalidConfigError(f"weights.{f.name}", getattr(self, f.name), "must be >= 0")

    def for_indicator(self, indicator: Indicator) -> float:
        return getattr(self, indicator.value)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# ============================================================
# SCORE BUCKETS
# ============================================================


@dataclass(frozen=True)
class CashBucket:
    """Scores up to and including `max_score` map to this bucket."""

    max_score: Optional[float]
    cash_percent: float
    risk_level: CashRiskLevel
    strategy: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_score": self.max_score,
            "cash_percent": self.cash_percent,
            "risk_level": self.risk_level.value,
            "strategy": self.strategy,
        }


def _default_buckets() -> List[CashBucket]:
    return [
        CashBucket(25, 10.0, CashRiskLevel.AGGRESSIVE,
                   "Aggressive - minimize cash, buy actively"),
        CashBucket(40, 20.0, CashRiskLevel.GROWTH,
                   "Growth - buy gradually, capture opportunities"),
        CashBucket(55, 25.0, CashRiskLevel.BALANCED,
                   "Balanced - maintain current positions"),
        CashBucket(70, 35.0, CashRiskLevel.CAUTIOUS,
                   "Cautious - consider taking profits, build cash"),
        CashBucket(85, 45.0, CashRiskLevel.DEFENSIVE,
                   "Defensive - reduce risk, raise cash weight"),
        CashBucket(None, 55.0, CashRiskLevel.PRESERVATION,
                   "Preservation - maximum cash, wait on the sidelines"),
    ]


# ============================================================
# TARGET ALLOCATION
# ============================================================


def _default_category_weights() -> Dict[str, float]:
    return {"core": 4.0, "major": 2.0, "growth": 1.5, "speculative": 0.5}


def _default_risk_multipliers() -> Dict[str, Dict[str, float]]:
    return {
        "AGGRESSIVE": {"core": 0.8, "major": 1.2, "growth": 1.5, "speculative": 1.3},
        "GROWTH": {"core": 0.9, "major": 1.1, "growth": 1.3, "speculative": 1.1},
        "BALANCED": {"core": 1.0, "major": 1.0, "growth": 1.0, "speculative": 1.0},
        "CAUTIOUS": {"core": 1.2, "major": 1.0, "growth": 0.8, "speculative": 0.6},
        "DEFENSIVE": {"core": 1.4, "major": 0.9, "growth": 0.6, "speculative": 0.4},
        "PRESERVATION": {"core": 1.6, "major": 0.8, "growth": 0.4, "speculative": 0.2},
    }


@dataclass(frozen=True)
class TargetAllocationConfig:
    """
    Dynamic target weights.

    weight = category_weight * max(1, 5 - log10(rank)) * risk_multiplier
    """

    category_weights: Mapping[str, float] = field(default_factory=_default_category_weights)
    risk_multipliers: Mapping[str, Mapping[str, float]] = field(default_factory=_default_risk_multipliers)
    unknown_symbol_weight: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_weights", read_only(self.category_weights))
        object.__setattr__(self, "risk_multipliers", read_only({
            level: read_only(multipliers) for level, multipliers in self.risk_multipliers.items()
        }))
        for level in CashRiskLevel:
            if level.value not in self.risk_multipliers:
                raise MissingConfigError(f"targets.risk_multipliers.{level.value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_weights": dict(self.category_weights),
            "risk_multipliers": {k: dict(v) for k, v in self.risk_multipliers.items()},
            "unknown_symbol_weight": self.unknown_symbol_weight,
        }


# ============================================================
# MASTER CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class CashAllocationConfig:
    """Master configuration for the Cash Allocation Engine."""

    weights: CashWeights = field(default_factory=CashWeights)
    buckets: Sequence[CashBucket] = field(default_factory=_default_buckets)
    targets: TargetAllocationConfig = field(default_factory=TargetAllocationConfig)

    # Score used when no indicator is supplied
    neutral_score: float = 50.0

    # Cash drift (percentage points) tolerated before rebalancing
    rebalance_tolerance: float = 2.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "buckets", tuple(self.buckets))
        if not self.buckets:
            raise MissingConfigError("buckets")
        if self.buckets[-1].max_score is not None:
            raise InvalidConfigError(
                "buckets", self.buckets[-1].max_score, "last bucket must be open-ended"
            )
        bounds = [b.max_score for b in self.buckets[:-1]]
        if None in bounds:
            raise InvalidConfigError("buckets", bounds, "only the last bucket may be open-ended")
        if bounds != sorted(bounds):
            raise InvalidConfigError("buckets", bounds, "bounds must be ascending")
        if self.rebalance_tolerance < 0:
            raise InvalidConfigError("rebalance_tolerance", self.rebalance_tolerance, "must be >= 0")

    def bucket_for(self, score: float) -> CashBucket:
        for bucket in self.buckets:
            if bucket.max_score is None or score <= bucket.max_score:
                return bucket
        return self.buckets[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": self.weights.to_dict(),
            "buckets": [b.to_dict() for b in self.buckets],
            "targets": self.targets.to_dict(),
            "neutral_score": self.neutral_score,
            "rebalance_tolerance": self.rebalance_tolerance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CashAllocationConfig":
        """Build a configuration from a (partial) mapping."""
        defaults = cls()
        kwargs: Dict[str, Any] = {}

        if data.get("weights") is not None:
            weights = defaults.weights.to_dict()
            for key, value in data["weights"].items():
                if key in weights:
                    weights[key] = float(value)
                else:
                    logger.warning(f"Ignoring unknown cash weight '{key}'")
            kwargs["weights"] = CashWeights(**weights)

        if data.get("buckets") is not None:
            try:
                kwargs["buckets"] = [
                    CashBucket(
                        max_score=b.get("max_score"),
                        cash_percent=float(b["cash_percent"]),
                        risk_level=CashRiskLevel(b["risk_level"]),
                        strategy=str(b.get("strategy", "")),
                    )
                    for b in data["buckets"]
                ]
            except (KeyError, ValueError, AttributeError) as e:
                raise InvalidConfigError("buckets", data["buckets"], str(e)) from e

        if data.get("targets") is not None:
            targets = data["targets"]
            kwargs["targets"] = TargetAllocationConfig(
                category_weights=dict(
                    targets.get("category_weights", defaults.targets.category_weights)
                ),
                risk_multipliers=dict(
                    targets.get("risk_multipliers", defaults.targets.risk_multipliers)
                ),
                unknown_symbol_weight=float(
                    targets.get("unknown_symbol_weight", defaults.targets.unknown_symbol_weight)
                ),
            )

        for key in ("neutral_score", "rebalance_tolerance"):
            if key in data:
                kwargs[key] = float(data[key])

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "CashAllocationConfig":
        """Load configuration from a YAML file."""
        return cls.from_dict(load_yaml_mapping(path))

    @classmethod
    def from_env(cls) -> "CashAllocationConfig":
        """
        Load configuration from environment variables.

        Environment variables (a .env file is honoured):
        - CASH_WEIGHT_<INDICATOR> (e.g. CASH_WEIGHT_FEAR_GREED)
        - CASH_REBALANCE_TOLERANCE
        """
        load_dotenv()
        data: Dict[str, Any] = {}

        weights = {}
        for indicator in Indicator:
            value = env_float(f"CASH_WEIGHT_{indicator.value.upper()}")
            if value is not None:
                weights[indicator.value] = value
        if weights:
            data["weights"] = weights

        tolerance = env_float("CASH_REBALANCE_TOLERANCE")
        if tolerance is not None:
            data["rebalance_tolerance"] = tolerance

        return cls.from_dict(data)


# ============================================================
# DEFAULT CONFIGURATION
# ============================================================


def get_default_config() -> CashAllocationConfig:
    """Return the default Cash Allocation Engine configuration."""
    return CashAllocationConfig()


def load_config(path: Optional[Path] = None) -> CashAllocationConfig:
    """Load configuration from file or return defaults."""
    if path and Path(path).exists():
        return CashAllocationConfig.from_yaml(path)
    return get_default_config()
