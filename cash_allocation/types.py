"""
Cash Allocation Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the portfolio-wide cash allocation
recommendation.

============================================================
SCORE SCALE
============================================================
Scores here live on [0, 100], distinct from the [0, 1]
scale of the valuation engine:

    0   = risk-on, hold little cash
    50  = neutral
    100 = risk-off, hold maximum cash

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# ENUMS
# ============================================================


class CashRiskLevel(str, Enum):
    """Market posture implied by the cash score."""

    AGGRESSIVE = "AGGRESSIVE"
    GROWTH = "GROWTH"
    BALANCED = "BALANCED"
    CAUTIOUS = "CAUTIOUS"
    DEFENSIVE = "DEFENSIVE"
    PRESERVATION = "PRESERVATION"


class CashAction(str, Enum):
    """Direction an individual indicator pushes the cash weight."""

    REDUCE_CASH = "REDUCE_CASH"
    NEUTRAL = "NEUTRAL"
    INCREASE_CASH = "INCREASE_CASH"
    MAX_CASH = "MAX_CASH"


class Indicator(str, Enum):
    """Indicators the cash engine can weigh."""

    FEAR_GREED = "fear_greed"
    MVRV = "mvrv"
    KIMCHI_PREMIUM = "kimchi_premium"
    EXCHANGE_FLOW = "exchange_flow"
    MARKET_TREND = "market_trend"
    VOLATILITY = "volatility"
    NVT = "nvt"
    ACTIVE_ADDRESSES = "active_addresses"

    @property
    def label(self) -> str:
        return {
            "fear_greed": "Fear & Greed",
            "mvrv": "MVRV Ratio",
            "kimchi_premium": "Kimchi Premium",
            "exchange_flow": "Exchange Flow",
            "market_trend": "vs 200MA",
            "volatility": "VIX Volatility",
            "nvt": "NVT Ratio",
            "active_addresses": "Active Addresses",
        }[self.value]


class RebalanceActionType(str, Enum):
    INCREASE_CASH = "INCREASE_CASH"
    DECREASE_CASH = "DECREASE_CASH"
    HOLD = "HOLD"


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


# ============================================================
# INPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class CashIndicators:
    """
    Latest macro and on-chain readings.

    Every field is optional. An absent indicator is left out
    of the weighted average entirely.
    """

    fear_greed: Optional[float] = None
    mvrv: Optional[float] = None
    kimchi_premium: Optional[float] = None
    exchange_flow: Optional[float] = None
    current_price: Optional[float] = None
    ma200: Optional[float] = None
    vix: Optional[float] = None
    nvt: Optional[float] = None
    active_addresses: Optional[float] = None
    active_addresses_30d_avg: Optional[float] = None


# ============================================================
# OUTPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class IndicatorAnalysis:
    """Output of one cash indicator scorer."""

    score: float
    action: CashAction
    reason: str
    value: float


@dataclass(frozen=True)
class BreakdownEntry:
    indicator: Indicator
    score: float
    weight: float
    contribution: float
    action: CashAction
    reason: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indicator": self.indicator.value,
            "label": self.indicator.label,
            "score": self.score,
            "weight": self.weight,
            "contribution": self.contribution,
            "action": self.action.value,
            "reason": self.reason,
            "value": self.value,
        }


@dataclass(frozen=True)
class CashRecommendation:
    """
    Portfolio-wide cash recommendation.

    `score` is the rounded score shown to users; bucketing
    uses `raw_score`.
    """

    score: int
    raw_score: float
    recommended_cash: float
    risk_level: CashRiskLevel
    strategy: str
    breakdown: List[BreakdownEntry] = field(default_factory=list)

    @property
    def analyses(self) -> Dict[Indicator, BreakdownEntry]:
        return {entry.indicator: entry for entry in self.breakdown}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "raw_score": self.raw_score,
            "recommended_cash": self.recommended_cash,
            "risk_level": self.risk_level.value,
            "strategy": self.strategy,
            "breakdown": [entry.to_dict() for entry in self.breakdown],
        }


@dataclass(frozen=True)
class RebalanceAction:
    type: RebalanceActionType
    amount: float
    description: str
    suggestion: str


@dataclass(frozen=True)
class RebalancePlan:
    """Cash rebalancing suggestion for the whole portfolio."""

    current_cash_percent: float
    recommended_cash_percent: float
    difference: float
    actions: List[RebalanceAction] = field(default_factory=list)

    @property
    def needs_rebalance(self) -> bool:
        return any(a.type != RebalanceActionType.HOLD for a in self.actions)


@dataclass(frozen=True)
class TargetFactor:
    factor: str
    impact: str        # positive / neutral / negative
    description: str


@dataclass(frozen=True)
class AssetTargetRationale:
    """Human-readable explanation of an asset's target weight."""

    symbol: str
    target_percent: float
    category: str
    rationale: str
    factors: List[TargetFactor] = field(default_factory=list)
