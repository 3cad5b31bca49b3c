"""
Cash Allocation Engine - Main Orchestrator.

============================================================
PURPOSE
============================================================
Turns the latest macro and on-chain readings into one
portfolio-wide recommended cash percentage.

============================================================
SCORING
============================================================
    score = sum(indicator_score * weight) / sum(weight)

Both sums run over the indicators actually supplied. NVT and
active addresses appear in the breakdown with a default weight
of 0, so they never move the score unless configured. No
weighted indicator at all -> neutral 50.

The unrounded score selects the bucket; the score rounded
half-up is reported alongside it.

============================================================
USAGE
============================================================
    from cash_allocation import CashAllocationEngine, CashIndicators

    engine = CashAllocationEngine()
    rec = engine.recommend(CashIndicators(
        fear_greed=72,
        mvrv=2.4,
        vix=18,
    ))

    print(f"{rec.recommended_cash}% cash ({rec.risk_level.value})")

============================================================
"""

import logging
import math
from typing import Callable, List, Optional, Tuple

from .config import CashAllocationConfig, get_default_config
from .scorers import (
    score_active_addresses,
    score_exchange_flow,
    score_fear_greed,
    score_kimchi_premium,
    score_market_trend,
    score_mvrv,
    score_nvt,
    score_volatility,
)
from .types import BreakdownEntry, CashIndicators, CashRecommendation, Indicator, IndicatorAnalysis


logger = logging.getLogger(__name__)

Extractor = Callable[[CashIndicators], Optional[IndicatorAnalysis]]


def _fear_greed(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    return None if ind.fear_greed is None else score_fear_greed(ind.fear_greed)


def _mvrv(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    return None if ind.mvrv is None else score_mvrv(ind.mvrv)


def _kimchi_premium(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    return None if ind.kimchi_premium is None else score_kimchi_premium(ind.kimchi_premium)


def _exchange_flow(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    return None if ind.exchange_flow is None else score_exchange_flow(ind.exchange_flow)


def _market_trend(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    if ind.current_price is None or ind.ma200 is None:
        return None
    return score_market_trend(ind.current_price, ind.ma200)


def _volatility(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    return None if ind.vix is None else score_volatility(ind.vix)


def _nvt(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    return None if ind.nvt is None else score_nvt(ind.nvt)


def _active_addresses(ind: CashIndicators) -> Optional[IndicatorAnalysis]:
    if ind.active_addresses is None or ind.active_addresses_30d_avg is None:
        return None
    return score_active_addresses(ind.active_addresses, ind.active_addresses_30d_avg)


INDICATOR_SPECS: List[Tuple[Indicator, Extractor]] = [
    (Indicator.FEAR_GREED, _fear_greed),
    (Indicator.MVRV, _mvrv),
    (Indicator.KIMCHI_PREMIUM, _kimchi_premium),
    (Indicator.EXCHANGE_FLOW, _exchange_flow),
    (Indicator.MARKET_TREND, _market_trend),
    (Indicator.VOLATILITY, _volatility),
    (Indicator.NVT, _nvt),
    (Indicator.ACTIVE_ADDRESSES, _active_addresses),
]


class CashAllocationEngine:
    """Weighted average of the supplied cash indicators."""

    def __init__(self, config: Optional[CashAllocationConfig] = None):
        self.config = config or get_default_config()

    def analyze(self, indicators: CashIndicators) -> List[BreakdownEntry]:
        """Score every supplied indicator and attach its weight."""
        breakdown: List[BreakdownEntry] = []
        for indicator, extract in INDICATOR_SPECS:
            analysis = extract(indicators)
            if analysis is None:
                continue
            weight = self.config.weights.for_indicator(indicator)
            breakdown.append(BreakdownEntry(
                indicator=indicator,
                score=analysis.score,
                weight=weight,
                contribution=analysis.score * weight,
                action=analysis.action,
                reason=analysis.reason,
                value=analysis.value,
            ))
        return breakdown

    def recommend(self, indicators: CashIndicators) -> CashRecommendation:
        """
        Recommend a cash percentage.

        Args:
            indicators: Latest readings; any subset may be present

        Returns:
            CashRecommendation with the bucket and per-indicator breakdown
        """
        breakdown = self.analyze(indicators)

        total_weight = sum(entry.weight for entry in breakdown)
        if total_weight > 0:
            raw_score = sum(entry.contribution for entry in breakdown) / total_weight
        else:
            raw_score = self.config.neutral_score

        bucket = self.config.bucket_for(raw_score)

        logger.debug(
            f"Cash score {raw_score:.2f} from {len(breakdown)} indicators -> "
            f"{bucket.cash_percent}% ({bucket.risk_level.value})"
        )

        return CashRecommendation(
            score=int(math.floor(raw_score + 0.5)),
            raw_score=raw_score,
            recommended_cash=bucket.cash_percent,
            risk_level=bucket.risk_level,
            strategy=bucket.strategy,
            breakdown=breakdown,
        )


def calculate_recommended_cash_allocation(
    indicators: CashIndicators,
    config: Optional[CashAllocationConfig] = None,
) -> CashRecommendation:
    """One-shot recommendation with a throwaway engine."""
    return CashAllocationEngine(config).recommend(indicators)
