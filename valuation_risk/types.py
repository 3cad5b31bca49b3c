"""
Valuation Risk Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the Valuation Risk Engine.

This module defines all enums and dataclasses used by the
multi-timeframe overvaluation scoring system: the per-asset
input bundle, the per-metric analysis, the per-timeframe
assessment and the final valuation result.

============================================================
DESIGN PRINCIPLES
============================================================
- All types are immutable
- Enums for discrete state values
- Every indicator is independently optional
- Absence of an indicator means "skip", never zero

============================================================
SCORE SCALE
============================================================
All scores in this package live on [0, 1]:

    0.0 = strong undervaluation signal
    0.5 = neutral
    1.0 = strong overvaluation signal

============================================================
LIFECYCLE
============================================================
Every output is created fresh on each refresh from the
current inputs. Nothing is carried between refreshes.

============================================================
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# ENUMS
# ============================================================


class AssetCategory(str, Enum):
    """
    Asset classification driving category-specific thresholds.

    Ordered from most established to most speculative.
    """

    CORE = "core"
    MAJOR = "major"
    GROWTH = "growth"
    SPECULATIVE = "speculative"


class ValuationTimeframe(str, Enum):
    """Assessment horizons."""

    SHORT = "short"      # 1-7 days
    MEDIUM = "medium"    # 1-4 weeks
    LONG = "long"        # 1-6 months

    @classmethod
    def all_timeframes(cls) -> List["ValuationTimeframe"]:
        """Return all timeframes in evaluation order."""
        return [cls.SHORT, cls.MEDIUM, cls.LONG]

    @property
    def label(self) -> str:
        return {
            "short": "Short term (1-7 days)",
            "medium": "Medium term (1-4 weeks)",
            "long": "Long term (1-6 months)",
        }[self.value]


class ValuationRiskLevel(str, Enum):
    """
    Risk bucket for an overvaluation score.

    Shared by every timeframe and by the composite score:
    - UNDERVALUED: score < 0.2
    - FAIR_VALUE:  score < 0.4
    - ELEVATED:    score < 0.6
    - OVERVALUED:  score < 0.8
    - EXTREME:     otherwise
    """

    UNDERVALUED = "UNDERVALUED"
    FAIR_VALUE = "FAIR_VALUE"
    ELEVATED = "ELEVATED"
    OVERVALUED = "OVERVALUED"
    EXTREME = "EXTREME"

    @classmethod
    def from_score(cls, score: float) -> "ValuationRiskLevel":
        """
        Classify an overvaluation score.

        Boundaries belong to the upper bucket: exactly 0.2 is
        FAIR_VALUE, exactly 0.6 is OVERVALUED.
        """
        if score < 0.2:
            return cls.UNDERVALUED
        elif score < 0.4:
            return cls.FAIR_VALUE
        elif score < 0.6:
            return cls.ELEVATED
        elif score < 0.8:
            return cls.OVERVALUED
        else:
            return cls.EXTREME

    @property
    def severity_order(self) -> int:
        """Numeric ordering for severity comparison."""
        return {
            "UNDERVALUED": 0,
            "FAIR_VALUE": 1,
            "ELEVATED": 2,
            "OVERVALUED": 3,
            "EXTREME": 4,
        }[self.value]


class MetricName(str, Enum):
    """Identifiers of the metrics the normalizers produce."""

    MVRV = "mvrv"
    NVT = "nvt"
    PRICE_VS_MA50 = "price_vs_ma50"
    PRICE_VS_MA200 = "price_vs_ma200"
    EXCHANGE_NETFLOW = "exchange_netflow"
    FEAR_GREED = "fear_greed"
    KIMCHI_PREMIUM = "kimchi_premium"
    ACTIVE_ADDRESS_RATIO = "active_address_ratio"
    CYCLE_POSITION = "cycle_position"
    REALIZED_PRICE_RATIO = "realized_price_ratio"
    SOCIAL_SENTIMENT = "social_sentiment"
    NEWS_SENTIMENT = "news_sentiment"
    FUNDING_RATE = "funding_rate"


class DriverDirection(str, Enum):
    """Signal direction of a key driver."""

    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"


class DriverSeverity(str, Enum):
    """How strongly a driver moved the composite."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendedAction(str, Enum):
    """Action derived from the composite score."""

    ACCUMULATE = "ACCUMULATE"
    HOLD = "HOLD"
    REDUCE = "REDUCE"
    EXIT = "EXIT"


class Urgency(str, Enum):
    """Urgency attached to a recommendation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ============================================================
# INPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class SentimentSnapshot:
    """
    Sentiment and derivatives readings for one asset.

    Only the first three fields feed the scoring engine;
    the rest are carried for display.
    """

    social_sentiment: Optional[float] = None   # -100 .. +100
    news_score: Optional[float] = None         # -100 .. +100
    funding_rate: Optional[float] = None       # percent per period

    social_volume: Optional[float] = None
    open_interest: Optional[float] = None
    long_short_ratio: Optional[float] = None


@dataclass(frozen=True)
class ValuationInput:
    """
    Per-asset bundle of indicator values supplied by external fetchers.

    Missing fields are legal and simply suppress the
    corresponding metric.
    """

    symbol: str
    current_price: float = 0.0

    # On-chain valuation
    mvrv: Optional[float] = None
    nvt: Optional[float] = None
    realized_price: Optional[float] = None
    exchange_netflow: Optional[float] = None

    # Network activity
    active_addresses: Optional[float] = None
    active_addresses_30d_avg: Optional[float] = None

    # Technicals
    ma50: Optional[float] = None
    ma200: Optional[float] = None
    ath: Optional[float] = None
    cycle_low: Optional[float] = None

    # Market-wide
    fear_greed: Optional[float] = None
    kimchi_premium: Optional[float] = None

    # Sentiment
    sentiment: Optional[SentimentSnapshot] = None

    # Set when the on-chain metrics were derived from a reference asset
    estimation_method: Optional[str] = None

    @property
    def is_estimated(self) -> bool:
        return self.estimation_method is not None

    def with_overrides(self, **changes: Any) -> "ValuationInput":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


# ============================================================
# OUTPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class MetricAnalysis:
    """
    Output of a single metric normalizer.

    `weight` is left at 0.0 by the normalizer and filled
    in by the timeframe aggregator.
    """

    name: str
    value: float
    normalized_score: float
    confidence: float
    reason: str
    weight: float = 0.0

    def with_weight(self, weight: float) -> "MetricAnalysis":
        return replace(self, weight=weight)

    @property
    def has_data(self) -> bool:
        return self.confidence > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "normalized_score": self.normalized_score,
            "weight": self.weight,
            "confidence": self.confidence,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TimeframeAssessment:
    """Overvaluation assessment for one timeframe."""

    timeframe: ValuationTimeframe
    overvaluation_score: float
    risk_level: ValuationRiskLevel
    metrics: List[MetricAnalysis] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def label(self) -> str:
        return self.timeframe.label

    @property
    def has_metrics(self) -> bool:
        return len(self.metrics) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeframe": self.timeframe.value,
            "label": self.label,
            "overvaluation_score": self.overvaluation_score,
            "risk_level": self.risk_level.value,
            "confidence": self.confidence,
            "metrics": [m.to_dict() for m in self.metrics],
        }


@dataclass(frozen=True)
class ValuationDriver:
    """A metric that contributed most to the composite verdict."""

    metric: str
    timeframe: ValuationTimeframe
    contribution: float
    direction: DriverDirection
    reason: str
    severity: DriverSeverity

    @property
    def label(self) -> str:
        return f"{self.metric} ({self.timeframe.value})"

    @property
    def is_high_severity_bearish(self) -> bool:
        return (
            self.direction == DriverDirection.BEARISH
            and self.severity == DriverSeverity.HIGH
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "timeframe": self.timeframe.value,
            "contribution": self.contribution,
            "direction": self.direction.value,
            "reason": self.reason,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ValuationConfidence:
    overall: float
    data_completeness: float
    is_estimated: bool
    estimation_method: Optional[str] = None


@dataclass(frozen=True)
class ValuationRecommendation:
    action: RecommendedAction
    reason: str
    urgency: Urgency


@dataclass(frozen=True)
class ValuationResult:
    """
    Complete output from the Valuation Risk Engine for one asset.

    ============================================================
    OUTPUT GUARANTEES
    ============================================================
    - composite_score: Always within [0, 1]
    - All three timeframe assessments always present
    - key_drivers: At most five, sorted by contribution desc
    - recommendation: Always set, even with no input data

    ============================================================
    """

    symbol: str
    composite_score: float
    risk_level: ValuationRiskLevel
    short_term: TimeframeAssessment
    medium_term: TimeframeAssessment
    long_term: TimeframeAssessment
    key_drivers: List[ValuationDriver]
    confidence: ValuationConfidence
    recommendation: ValuationRecommendation
    category: AssetCategory = AssetCategory.SPECULATIVE
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_assessment(self, timeframe: ValuationTimeframe) -> TimeframeAssessment:
        """Get assessment for a specific timeframe."""
        mapping = {
            ValuationTimeframe.SHORT: self.short_term,
            ValuationTimeframe.MEDIUM: self.medium_term,
            ValuationTimeframe.LONG: self.long_term,
        }
        return mapping[timeframe]

    @property
    def all_assessments(self) -> List[TimeframeAssessment]:
        return [self.short_term, self.medium_term, self.long_term]

    @property
    def all_metrics(self) -> List[MetricAnalysis]:
        return [m for a in self.all_assessments for m in a.metrics]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the presentation layer."""
        return {
            "symbol": self.symbol,
            "category": self.category.value,
            "composite_score": self.composite_score,
            "risk_level": self.risk_level.value,
            "short_term": self.short_term.to_dict(),
            "medium_term": self.medium_term.to_dict(),
            "long_term": self.long_term.to_dict(),
            "key_drivers": [d.to_dict() for d in self.key_drivers],
            "confidence": {
                "overall": self.confidence.overall,
                "data_completeness": self.confidence.data_completeness,
                "is_estimated": self.confidence.is_estimated,
                "estimation_method": self.confidence.estimation_method,
            },
            "recommendation": {
                "action": self.recommendation.action.value,
                "reason": self.recommendation.reason,
                "urgency": self.recommendation.urgency.value,
            },
            "evaluated_at": self.evaluated_at.isoformat(),
        }
