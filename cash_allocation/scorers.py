"""
Cash Allocation Engine - Indicator Scorers.

============================================================
PURPOSE
============================================================
Bucketed scorers mapping one raw indicator to a cash score
on [0, 100] with a suggested direction for the cash weight.

Each scorer:
- Takes the raw value
- Walks a fixed band table
- Returns an IndicatorAnalysis (score, action, reason, value)

Ratio scorers return a neutral 50 when the divisor is zero.

============================================================
"""

from typing import List, Optional, Tuple

from .types import CashAction, IndicatorAnalysis


# (upper bound, score, action, reason); last bound is None
Band = Tuple[Optional[float], float, CashAction, str]

NO_DATA = IndicatorAnalysis(score=50, action=CashAction.NEUTRAL, reason="No data", value=0)


def _score_bands(value: float, bands: List[Band], inclusive: bool = False) -> IndicatorAnalysis:
    for upper, score, action, reason in bands:
        if upper is None or value < upper or (inclusive and value == upper):
            return IndicatorAnalysis(score=score, action=action, reason=reason, value=value)
    upper, score, action, reason = bands[-1]
    return IndicatorAnalysis(score=score, action=action, reason=reason, value=value)


# ============================================================
# SENTIMENT AND VALUATION
# ============================================================


def score_fear_greed(value: float) -> IndicatorAnalysis:
    return _score_bands(value, [
        (25, 20, CashAction.REDUCE_CASH, "Extreme fear - buying opportunity"),
        (45, 40, CashAction.NEUTRAL, "Fear - consider gradual buying"),
        (55, 50, CashAction.NEUTRAL, "Neutral - keep cash steady"),
        (75, 70, CashAction.INCREASE_CASH, "Greed - consider taking profits"),
        (None, 90, CashAction.MAX_CASH, "Extreme greed - risk management needed"),
    ], inclusive=True)


def score_mvrv(value: float) -> IndicatorAnalysis:
    return _score_bands(value, [
        (1, 10, CashAction.REDUCE_CASH, "MVRV below 1 - historical bottom"),
        (2, 30, CashAction.REDUCE_CASH, "MVRV undervalued zone"),
        (3, 50, CashAction.NEUTRAL, "MVRV fair zone"),
        (4, 75, CashAction.INCREASE_CASH, "MVRV overvalued - consider taking profits"),
        (None, 95, CashAction.MAX_CASH, "MVRV extremely overvalued - cycle top signal"),
    ])


def score_nvt(nvt: float) -> IndicatorAnalysis:
    return _score_bands(nvt, [
        (45, 25, CashAction.REDUCE_CASH, "NVT undervalued relative to network activity"),
        (65, 50, CashAction.NEUTRAL, "NVT fair zone"),
        (90, 70, CashAction.INCREASE_CASH, "NVT overvalued - caution"),
        (None, 85, CashAction.MAX_CASH, "NVT overheated relative to network activity"),
    ])


def score_kimchi_premium(value: float) -> IndicatorAnalysis:
    return _score_bands(value, [
        (-2, 20, CashAction.REDUCE_CASH, "Reverse premium - domestic buying opportunity"),
        (2, 50, CashAction.NEUTRAL, "Premium in normal range"),
        (5, 60, CashAction.NEUTRAL, "Slight premium"),
        (10, 80, CashAction.INCREASE_CASH, "Overheating signal - caution"),
        (None, 95, CashAction.MAX_CASH, "Extreme overheating - consider domestic selling"),
    ])


# ============================================================
# FLOWS AND ACTIVITY
# ============================================================


def score_exchange_flow(net_flow: float) -> IndicatorAnalysis:
    """Positive net flow = coins moving onto exchanges = selling pressure."""
    return _score_bands(net_flow, [
        (-10000, 20, CashAction.REDUCE_CASH, "Large exchange outflow - strong accumulation"),
        (-5000, 35, CashAction.REDUCE_CASH, "Exchange outflow - accumulation signal"),
        (5000, 50, CashAction.NEUTRAL, "Balanced exchange flows"),
        (10000, 70, CashAction.INCREASE_CASH, "Exchange inflow - selling pressure"),
        (None, 90, CashAction.MAX_CASH, "Large exchange inflow - strong selling pressure"),
    ])


def score_active_addresses(current: float, average_30d: float) -> IndicatorAnalysis:
    if average_30d == 0:
        return NO_DATA

    ratio = (current / average_30d) * 100
    if ratio > 130:
        return IndicatorAnalysis(70, CashAction.INCREASE_CASH, "Active addresses surging - possible overheating", ratio)
    if ratio > 90:
        return IndicatorAnalysis(50, CashAction.NEUTRAL, "Active addresses in normal range", ratio)
    return IndicatorAnalysis(35, CashAction.REDUCE_CASH, "Active addresses declining - accumulation opportunity", ratio)


# ============================================================
# TREND AND VOLATILITY
# ============================================================


def score_market_trend(current_price: float, ma200: float) -> IndicatorAnalysis:
    """Deviation of the price from its 200-day moving average."""
    if ma200 == 0:
        return NO_DATA

    deviation = ((current_price - ma200) / ma200) * 100
    return _score_bands(deviation, [
        (-30, 15, CashAction.REDUCE_CASH, "More than 30% below 200MA - extreme undervaluation"),
        (-10, 30, CashAction.REDUCE_CASH, "Below 200MA - undervalued zone"),
        (30, 50, CashAction.NEUTRAL, "Near 200MA - fair zone"),
        (60, 70, CashAction.INCREASE_CASH, "Overheated relative to 200MA"),
        (None, 90, CashAction.MAX_CASH, "Extremely overheated relative to 200MA"),
    ])


def score_volatility(vix: float) -> IndicatorAnalysis:
    return _score_bands(vix, [
        (15, 40, CashAction.NEUTRAL, "Low volatility - stable"),
        (20, 50, CashAction.NEUTRAL, "Normal volatility"),
        (30, 65, CashAction.INCREASE_CASH, "High volatility - caution"),
        (40, 80, CashAction.INCREASE_CASH, "Very high volatility"),
        (None, 90, CashAction.MAX_CASH, "Extreme volatility - risk management first"),
    ])
