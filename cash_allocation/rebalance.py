"""
Cash Allocation Engine - Rebalancing.

============================================================
PURPOSE
============================================================
Translates a cash recommendation into concrete suggestions:

1. Cash rebalancing (raise / lower / hold the cash weight)
2. Per-asset BUY / SELL / HOLD against a target weight,
   using the category rebalance tolerance
3. Dynamic per-asset target weights for a cash risk level
4. Plain-language rationale for a target weight

Nothing here places orders; the execution layer consumes
the suggestions.

============================================================
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

from valuation_risk.classifier import (
    category_allocation_range,
    known_profile,
    profile_for,
    rebalance_tolerance,
)
from valuation_risk.types import AssetCategory

from .config import CashAllocationConfig, get_default_config
from .types import (
    AssetTargetRationale,
    CashRiskLevel,
    RebalanceAction,
    RebalanceActionType,
    RebalancePlan,
    TargetFactor,
    TradeAction,
)


logger = logging.getLogger(__name__)

CASH_KEY = "CASH"


# ============================================================
# CASH REBALANCING
# ============================================================


def generate_rebalance_actions(
    current_cash: float,
    total_value: float,
    recommended_cash_percent: float,
    tolerance: Optional[float] = None,
) -> RebalancePlan:
    """
    Compare the current cash weight with the recommendation.

    Args:
        current_cash: Cash held, in portfolio currency
        total_value: Total portfolio value including cash
        recommended_cash_percent: Target cash weight (percent)
        tolerance: Drift in percentage points tolerated before
                   acting. Defaults to the configured 2.0.

    Returns:
        RebalancePlan with exactly one action
    """
    if tolerance is None:
        tolerance = get_default_config().rebalance_tolerance

    if total_value <= 0:
        logger.warning(f"Rebalance requested with non-positive portfolio value {total_value}")
        return RebalancePlan(
            current_cash_percent=0.0,
            recommended_cash_percent=recommended_cash_percent,
            difference=recommended_cash_percent,
            actions=[RebalanceAction(
                type=RebalanceActionType.HOLD,
                amount=0.0,
                description="Portfolio value unavailable",
                suggestion="Keep current positions",
            )],
        )

    current_percent = (current_cash / total_value) * 100
    difference = recommended_cash_percent - current_percent
    value_change = (difference / 100) * total_value

    if abs(difference) > tolerance:
        if difference > 0:
            action = RebalanceAction(
                type=RebalanceActionType.INCREASE_CASH,
                amount=value_change,
                description=(
                    f"Raise cash from {current_percent:.1f}% to {recommended_cash_percent}%"
                ),
                suggestion="Take partial profits, starting with the best performers",
            )
        else:
            action = RebalanceAction(
                type=RebalanceActionType.DECREASE_CASH,
                amount=abs(value_change),
                description=(
                    f"Lower cash from {current_percent:.1f}% to {recommended_cash_percent}%"
                ),
                suggestion="Buy undervalued assets",
            )
    else:
        action = RebalanceAction(
            type=RebalanceActionType.HOLD,
            amount=0.0,
            description="Cash weight is on target",
            suggestion="Keep current positions",
        )

    return RebalancePlan(
        current_cash_percent=current_percent,
        recommended_cash_percent=recommended_cash_percent,
        difference=difference,
        actions=[action],
    )


def asset_trade_action(symbol: str, current_percent: float, target_percent: float) -> TradeAction:
    """BUY / SELL / HOLD using the symbol's category tolerance."""
    tolerance = rebalance_tolerance(symbol)
    diff = target_percent - current_percent
    if diff > tolerance:
        return TradeAction.BUY
    if diff < -tolerance:
        return TradeAction.SELL
    return TradeAction.HOLD


# ============================================================
# DYNAMIC TARGETS
# ============================================================


def calculate_dynamic_targets(
    symbols: Sequence[str],
    risk_level: CashRiskLevel,
    cash_percent: float,
    config: Optional[CashAllocationConfig] = None,
) -> Dict[str, float]:
    """
    Target weight per symbol for the non-cash part of the portfolio.

    Each symbol gets category_weight * rank_weight * risk_multiplier
    (unknown symbols a flat weight). Shares of the remainder are
    clamped to the category band and rounded, so the total may not
    be exactly 100.

    Returns:
        {"CASH": cash_percent, symbol: target_percent, ...}
    """
    cfg = (config or get_default_config()).targets
    targets: Dict[str, float] = {CASH_KEY: cash_percent}
    remaining = 100 - cash_percent

    weights: Dict[str, float] = {}
    for symbol in symbols:
        profile = known_profile(symbol)
        if profile is None:
            weights[symbol] = cfg.unknown_symbol_weight
            continue
        category = profile.category.value
        rank_weight = max(1.0, 5 - math.log10(profile.market_cap_rank))
        weights[symbol] = (
            cfg.category_weights[category]
            * rank_weight
            * cfg.risk_multipliers[risk_level.value][category]
        )

    total_weight = sum(weights.values())
    for symbol in symbols:
        band = category_allocation_range(profile_for(symbol).category)
        share = (weights[symbol] / total_weight) * remaining if total_weight > 0 else 0.0
        share = max(band["min"], min(band["max"], share))
        targets[symbol] = float(math.floor(share + 0.5))

    return targets


# ============================================================
# RATIONALE
# ============================================================


_VOLATILITY_FACTORS = {
    "low": ("positive", "Low volatility, steadier returns expected"),
    "medium": ("neutral", "Moderate volatility"),
    "high": ("negative", "High volatility, manage risk"),
    "very_high": ("negative", "Very high volatility, keep the position small"),
}

_ENVIRONMENT_NOTES = {
    CashRiskLevel.AGGRESSIVE: "Aggressive environment, growth assets may be increased",
    CashRiskLevel.GROWTH: "Growth environment, keep a balanced mix",
    CashRiskLevel.BALANCED: "Balanced environment, centre on core assets",
    CashRiskLevel.CAUTIOUS: "Cautious environment, shift towards safer assets",
    CashRiskLevel.DEFENSIVE: "Defensive environment, concentrate on core, trim risk assets",
    CashRiskLevel.PRESERVATION: "Preservation environment, minimal risk exposure",
}

_CATEGORY_DESCRIPTIONS = {
    AssetCategory.CORE: "core asset, the portfolio's stable base",
    AssetCategory.MAJOR: "major asset, proven project at a medium weight",
    AssetCategory.GROWTH: "growth asset, high potential that needs risk control",
    AssetCategory.SPECULATIVE: "speculative asset, high risk kept at a minimal weight",
}


def asset_target_rationale(
    symbol: str,
    target_percent: float,
    risk_level: CashRiskLevel,
) -> AssetTargetRationale:
    """Explain a target weight from the asset profile and market posture."""
    profile = profile_for(symbol)
    band = category_allocation_range(profile.category)
    factors: List[TargetFactor] = []

    rank = profile.market_cap_rank
    if rank <= 2:
        factors.append(TargetFactor(
            "Market cap rank", "positive",
            f"Rank {rank} - dominant and highly liquid",
        ))
    elif rank <= 10:
        factors.append(TargetFactor(
            "Market cap rank", "neutral",
            f"Rank {rank} - established but volatile",
        ))
    else:
        factors.append(TargetFactor(
            "Market cap rank", "negative",
            f"Rank {rank} - thinner liquidity, watch volatility",
        ))

    impact, description = _VOLATILITY_FACTORS.get(profile.volatility, _VOLATILITY_FACTORS["high"])
    factors.append(TargetFactor("Volatility", impact, description))

    if profile.adoption == "institutional":
        factors.append(TargetFactor(
            "Institutional adoption", "positive",
            "Institutional participation supports the price",
        ))
    elif profile.adoption == "retail":
        factors.append(TargetFactor(
            "Institutional adoption", "neutral",
            "Retail-driven, more volatile",
        ))

    if risk_level in (CashRiskLevel.AGGRESSIVE, CashRiskLevel.GROWTH):
        environment_impact = "positive"
    elif risk_level == CashRiskLevel.BALANCED:
        environment_impact = "neutral"
    else:
        environment_impact = "negative"
    factors.append(TargetFactor("Market environment", environment_impact, _ENVIRONMENT_NOTES[risk_level]))

    factors.append(TargetFactor("Utility", "neutral", profile.use_case))

    rationale = (
        f"{symbol} is a {_CATEGORY_DESCRIPTIONS[profile.category]} "
        f"(market cap rank {rank}, {profile.use_case}). "
        f"Recommended band is {band['min']:.0f}-{band['max']:.0f}%. "
        f"Given the {risk_level.value} environment the target is {target_percent}%."
    )

    return AssetTargetRationale(
        symbol=symbol,
        target_percent=target_percent,
        category=profile.category.value,
        rationale=rationale,
        factors=factors,
    )
