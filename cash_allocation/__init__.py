"""
Cash Allocation Engine - Package.

============================================================
PURPOSE
============================================================
Portfolio-wide recommended cash percentage from the latest
macro and on-chain readings, plus rebalancing suggestions.

============================================================
INDICATORS
============================================================
| indicator        | weight | note                    |
|------------------|--------|-------------------------|
| fear_greed       | 0.20   |                         |
| mvrv             | 0.15   |                         |
| kimchi_premium   | 0.10   |                         |
| exchange_flow    | 0.15   |                         |
| market_trend     | 0.15   | price vs 200-day MA     |
| volatility       | 0.15   | VIX                     |
| nvt              | 0.00   | breakdown only          |
| active_addresses | 0.00   | breakdown only          |

Score 0-100, averaged over the supplied indicators only.

============================================================
USAGE
============================================================
    from cash_allocation import (
        CashAllocationEngine,
        CashIndicators,
        generate_rebalance_actions,
    )

    rec = CashAllocationEngine().recommend(CashIndicators(
        fear_greed=90,
        mvrv=4.5,
        kimchi_premium=12,
        exchange_flow=15000,
        vix=45,
    ))
    # rec.risk_level == CashRiskLevel.PRESERVATION, 55% cash

    plan = generate_rebalance_actions(
        current_cash=20000,
        total_value=100000,
        recommended_cash_percent=rec.recommended_cash,
    )

============================================================
"""

# Types
from .types import (
    # Enums
    CashRiskLevel,
    CashAction,
    Indicator,
    RebalanceActionType,
    TradeAction,

    # Input types
    CashIndicators,

    # Output types
    IndicatorAnalysis,
    BreakdownEntry,
    CashRecommendation,
    RebalanceAction,
    RebalancePlan,
    TargetFactor,
    AssetTargetRationale,
)

# Configuration
from .config import (
    CashWeights,
    CashBucket,
    TargetAllocationConfig,
    CashAllocationConfig,
    get_default_config,
    load_config,
)

# Scorers
from .scorers import (
    score_fear_greed,
    score_mvrv,
    score_nvt,
    score_kimchi_premium,
    score_exchange_flow,
    score_active_addresses,
    score_market_trend,
    score_volatility,
)

# Engine
from .engine import (
    CashAllocationEngine,
    calculate_recommended_cash_allocation,
)

# Rebalancing
from .rebalance import (
    generate_rebalance_actions,
    asset_trade_action,
    calculate_dynamic_targets,
    asset_target_rationale,
)


__all__ = [
    # Enums
    "CashRiskLevel",
    "CashAction",
    "Indicator",
    "RebalanceActionType",
    "TradeAction",

    # Input types
    "CashIndicators",

    # Output types
    "IndicatorAnalysis",
    "BreakdownEntry",
    "CashRecommendation",
    "RebalanceAction",
    "RebalancePlan",
    "TargetFactor",
    "AssetTargetRationale",

    # Configuration
    "CashWeights",
    "CashBucket",
    "TargetAllocationConfig",
    "CashAllocationConfig",
    "get_default_config",
    "load_config",

    # Scorers
    "score_fear_greed",
    "score_mvrv",
    "score_nvt",
    "score_kimchi_premium",
    "score_exchange_flow",
    "score_active_addresses",
    "score_market_trend",
    "score_volatility",

    # Engine
    "CashAllocationEngine",
    "calculate_recommended_cash_allocation",

    # Rebalancing
    "generate_rebalance_actions",
    "asset_trade_action",
    "calculate_dynamic_targets",
    "asset_target_rationale",
]


__version__ = "1.0.0"
