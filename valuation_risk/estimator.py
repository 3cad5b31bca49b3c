"""
Valuation Risk Engine - Cross-Asset Estimator.

============================================================
PURPOSE
============================================================
Derives plausible on-chain style metrics for assets that
have no direct data, by scaling a reference asset's metrics
(BTC by default) through the target category's beta.

============================================================
ESTIMATION RULES
============================================================
- MVRV:     adjust_by_beta(ref, beta, 0.5, 5.0)
- NVT:      ref * (1 + (beta - 1) * 0.3)
- Netflow:  ref * beta
- Fear & Greed, Kimchi premium: passed through (market-wide)
- MA200:    the target's own value, when known

No reference data at all -> minimal input carrying only the
price and Fear & Greed; confidence is low by construction.

============================================================
"""

import logging
from typing import Optional

from .classifier import classify
from .config import ValuationRiskConfig, get_default_config
from .types import AssetCategory, ValuationInput


logger = logging.getLogger(__name__)

FALLBACK_ESTIMATION_METHOD = "market sentiment fallback"


def adjust_by_beta(value: float, beta: float, min_value: float, max_value: float) -> float:
    """
    Push a value away from the midpoint of [min_value, max_value].

    The deviation from the midpoint is multiplied by beta and the
    result is clamped to the range.

    Example:
        adjust_by_beta(2.0, 2.0, 0.5, 5.0) -> 1.25
        (midpoint 2.75, deviation -0.75, doubled to -1.5)
    """
    neutral = (min_value + max_value) / 2
    adjusted = neutral + (value - neutral) * beta
    return max(min_value, min(max_value, adjusted))


class CrossAssetEstimator:
    """Builds estimated ValuationInputs from a reference asset."""

    def __init__(self, config: Optional[ValuationRiskConfig] = None):
        self.config = config or get_default_config()

    @property
    def reference_symbol(self) -> str:
        return self.config.estimator.reference_symbol

    def has_reference_data(self, reference: Optional[ValuationInput]) -> bool:
        """Estimation needs at least the reference MVRV or NVT."""
        return reference is not None and (reference.mvrv is not None or reference.nvt is not None)

    def estimate(
        self,
        symbol: str,
        reference: ValuationInput,
        price: float,
        ma200: Optional[float] = None,
        category: Optional[AssetCategory] = None,
    ) -> ValuationInput:
        """
        Estimate a target asset's input from the reference asset.

        Args:
            symbol: Target symbol
            reference: Reference asset's indicator bundle
            price: Target's current price
            ma200: Target's own 200-day moving average
            category: Category override, looked up when None

        Returns:
            ValuationInput flagged with the estimation method
        """
        cfg = self.config.estimator
        if category is None:
            category = classify(symbol)
        beta = self.config.thresholds_for(category).beta_to_reference

        mvrv = None
        if reference.mvrv is not None:
            mvrv = adjust_by_beta(reference.mvrv, beta, cfg.mvrv_min, cfg.mvrv_max)

        nvt = None
        if reference.nvt is not None:
            nvt = reference.nvt * (1 + (beta - 1) * cfg.nvt_beta_damping)

        netflow = None
        if reference.exchange_netflow is not None:
            netflow = reference.exchange_netflow * beta

        logger.debug(
            f"Estimated {symbol} from {reference.symbol} (beta={beta}): "
            f"mvrv={mvrv} nvt={nvt} netflow={netflow}"
        )

        return ValuationInput(
            symbol=symbol,
            current_price=price,
            mvrv=mvrv,
            nvt=nvt,
            exchange_netflow=netflow,
            ma200=ma200,
            fear_greed=reference.fear_greed,
            kimchi_premium=reference.kimchi_premium,
            estimation_method=cfg.estimation_method,
        )

    def fallback(
        self,
        symbol: str,
        price: float,
        fear_greed: Optional[float] = None,
    ) -> ValuationInput:
        """Minimal input used when no reference data exists."""
        if fear_greed is None:
            fear_greed = self.config.estimator.fallback_fear_greed
        return ValuationInput(
            symbol=symbol,
            current_price=price,
            fear_greed=fear_greed,
            estimation_method=FALLBACK_ESTIMATION_METHOD,
        )


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


def estimate_altcoin_valuation(
    symbol: str,
    reference: ValuationInput,
    price: float,
    ma200: Optional[float] = None,
    config: Optional[ValuationRiskConfig] = None,
) -> ValuationInput:
    return CrossAssetEstimator(config).estimate(symbol, reference, price, ma200)


def default_altcoin_valuation(
    symbol: str,
    price: float,
    fear_greed: Optional[float] = None,
    config: Optional[ValuationRiskConfig] = None,
) -> ValuationInput:
    return CrossAssetEstimator(config).fallback(symbol, price, fear_greed)
