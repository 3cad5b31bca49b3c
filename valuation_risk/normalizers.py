"""
Valuation Risk Engine - Metric Normalizers.

============================================================
PURPOSE
============================================================
Individual normalizers mapping one raw indicator value to
a normalized overvaluation score on [0, 1].

Each normalizer:
1. Takes the raw value (and category thresholds if needed)
2. Applies a fixed piecewise mapping
3. Returns a MetricAnalysis with score, confidence, reason

============================================================
DESIGN PRINCIPLES
============================================================
- Pure functions: same input = same output
- Never raise on degraded input
- Division guards return neutral 0.5 with confidence 0
- Emitted weight is always 0.0 (set by the aggregator)

============================================================
MAPPING PATTERN
============================================================
Piecewise-constant metrics walk an ascending band table:

    for upper, score, label in bands:
        if value < upper:
            return score

Piecewise-linear metrics interpolate inside each band and
saturate towards 1.0 beyond the last breakpoint.

============================================================
"""

import logging
from typing import List, Optional, Tuple

from .config import CategoryThresholds
from .types import MetricAnalysis, MetricName


logger = logging.getLogger(__name__)

# (exclusive upper bound, normalized score, label); last bound is None
Band = Tuple[Optional[float], float, str]

NEUTRAL_SCORE = 0.5
NO_DATA_REASON = "No data"


# ============================================================
# HELPERS
# ============================================================


def clamp01(value: float) -> float:
    """Clamp a value to [0, 1]."""
    return min(1.0, max(0.0, value))


def _walk_bands(value: float, bands: List[Band]) -> Tuple[float, str]:
    for upper, score, label in bands:
        if upper is None or value < upper:
            return score, label
    # Unreachable with a terminating None band
    return bands[-1][1], bands[-1][2]


def _analysis(
    name: MetricName,
    value: float,
    score: float,
    reason: str,
    confidence: float = 1.0,
) -> MetricAnalysis:
    return MetricAnalysis(
        name=name.value,
        value=value,
        normalized_score=clamp01(score),
        confidence=confidence,
        reason=reason,
    )


def _neutral(name: MetricName, detail: str) -> MetricAnalysis:
    logger.warning(f"{name.value}: degraded input ({detail}), using neutral score")
    return MetricAnalysis(
        name=name.value,
        value=0.0,
        normalized_score=NEUTRAL_SCORE,
        confidence=0.0,
        reason=NO_DATA_REASON,
    )


def _label_at_most(value: float, bands: List[Tuple[Optional[float], str]]) -> str:
    # Inclusive upper bounds
    for upper, label in bands:
        if upper is None or value <= upper:
            return label
    return bands[-1][1]


# ============================================================
# ON-CHAIN VALUATION
# ============================================================


def normalize_mvrv(mvrv: float, thresholds: CategoryThresholds) -> MetricAnalysis:
    """
    MVRV ratio, parameterized by the category's oversold/overbought levels.

    < oversold          -> 0
    oversold .. 1.5     -> 0.0 .. 0.3
    1.5 .. 2.5          -> 0.3 .. 0.6
    2.5 .. overbought   -> 0.6 .. 0.9
    > overbought        -> 0.9 .. 1.0 (saturating)
    """
    oversold = thresholds.mvrv_oversold
    overbought = thresholds.mvrv_overbought

    if mvrv < oversold:
        score = 0.0
        label = "extreme undervaluation vs realized value"
    elif mvrv < 1.5:
        score = ((mvrv - oversold) / (1.5 - oversold)) * 0.3
        label = "undervalued zone"
    elif mvrv < 2.5:
        score = 0.3 + ((mvrv - 1.5) / 1.0) * 0.3
        label = "fair value zone"
    elif mvrv < overbought:
        score = 0.6 + ((mvrv - 2.5) / (overbought - 2.5)) * 0.3
        label = "overvaluation warning"
    else:
        score = 0.9 + min(0.1, ((mvrv - overbought) / 2) * 0.1)
        label = "extreme overvaluation, cycle top signal"

    return _analysis(MetricName.MVRV, mvrv, score, f"MVRV {mvrv:.2f} - {label}")


def normalize_nvt(nvt: float, thresholds: CategoryThresholds) -> MetricAnalysis:
    """
    NVT ratio.

    < 45               -> 0.0 .. 0.2
    45 .. 65           -> 0.2 .. 0.5
    65 .. overbought   -> 0.5 .. 0.85
    > overbought       -> 0.85 .. 1.0 (saturating)
    """
    overbought = thresholds.nvt_overbought

    if nvt < 45:
        score = (nvt / 45) * 0.2
        label = "undervalued relative to network activity"
    elif nvt < 65:
        score = 0.2 + ((nvt - 45) / 20) * 0.3
        label = "fair value zone"
    elif nvt < overbought:
        score = 0.5 + ((nvt - 65) / (overbought - 65)) * 0.35
        label = "overvaluation warning"
    else:
        score = 0.85 + min(0.15, ((nvt - overbought) / 30) * 0.15)
        label = "extreme overvaluation relative to network activity"

    return _analysis(MetricName.NVT, nvt, score, f"NVT {nvt:.1f} - {label}")


def normalize_realized_price_ratio(current_price: float, realized_price: float) -> MetricAnalysis:
    """Price relative to the realized (cost basis) price."""
    if realized_price == 0:
        return _neutral(MetricName.REALIZED_PRICE_RATIO, "realized price is zero")

    ratio = current_price / realized_price
    score, label = _walk_bands(ratio, [
        (0.8, 0.05, "extreme undervaluation"),
        (1.0, 0.15, "undervalued"),
        (1.5, 0.35, "fair value zone"),
        (2.5, 0.55, "premium"),
        (3.5, 0.75, "overvalued"),
        (None, 0.9, "extreme overvaluation"),
    ])
    return _analysis(
        MetricName.REALIZED_PRICE_RATIO,
        ratio,
        score,
        f"{ratio * 100:.0f}% of realized price - {label}",
    )


def normalize_exchange_netflow(netflow: float) -> MetricAnalysis:
    """
    Exchange netflow.

    Positive = inflow = selling pressure = bearish.
    Negative = outflow = accumulation = bullish.
    """
    score, label = _walk_bands(netflow, [
        (-10000, 0.1, "large exchange outflow, strong accumulation"),
        (-5000, 0.25, "exchange outflow, accumulation"),
        (5000, 0.5, "balanced exchange flows"),
        (10000, 0.75, "exchange inflow, selling pressure"),
        (None, 0.9, "large exchange inflow, strong selling pressure"),
    ])
    return _analysis(
        MetricName.EXCHANGE_NETFLOW,
        netflow,
        score,
        f"Netflow {netflow / 1000:.1f}K - {label}",
    )


def normalize_active_address_ratio(current: float, average_30d: float) -> MetricAnalysis:
    """Active addresses relative to their 30-day average, in percent."""
    if average_30d == 0:
        return _neutral(MetricName.ACTIVE_ADDRESS_RATIO, "30d average is zero")

    ratio = (current / average_30d) * 100
    score, label = _walk_bands(ratio, [
        (70, 0.2, "interest fading, accumulation opportunity"),
        (90, 0.35, "below average"),
        (110, 0.5, "normal range"),
        (130, 0.65, "rising interest"),
        (None, 0.8, "surging, possible overheating"),
    ])
    return _analysis(
        MetricName.ACTIVE_ADDRESS_RATIO,
        ratio,
        score,
        f"Active addresses {ratio:.0f}% of 30d average - {label}",
    )


# ============================================================
# TECHNICALS
# ============================================================


def normalize_price_vs_ma(
    current_price: float,
    ma: float,
    ma_period: int,
    thresholds: CategoryThresholds,
) -> MetricAnalysis:
    """
    Price deviation from a moving average, in percent.

    < -30%                 -> ~0 .. 0.1
    -30% .. -10%           -> 0.1 .. 0.3
    -10% .. +30%           -> 0.3 .. 0.6
    +30% .. max deviation  -> 0.6 .. 0.9
    beyond                 -> 0.9 .. 1.0 (saturating)
    """
    name = MetricName.PRICE_VS_MA50 if ma_period == 50 else MetricName.PRICE_VS_MA200
    if ma == 0:
        return _neutral(name, f"MA{ma_period} is zero")

    deviation = ((current_price - ma) / ma) * 100
    max_deviation = thresholds.ma_deviation_max

    if deviation < -30:
        score = max(0.0, (deviation + 50) / 20) * 0.1
        label = "extreme undervaluation"
    elif deviation < -10:
        score = 0.1 + ((deviation + 30) / 20) * 0.2
        label = "undervalued zone"
    elif deviation < 30:
        score = 0.3 + ((deviation + 10) / 40) * 0.3
        label = "fair zone"
    elif deviation < max_deviation:
        score = 0.6 + ((deviation - 30) / (max_deviation - 30)) * 0.3
        label = "overheated zone"
    else:
        score = 0.9 + min(0.1, ((deviation - max_deviation) / 50) * 0.1)
        label = "extremely overheated"

    return _analysis(
        name,
        deviation,
        score,
        f"{deviation:+.1f}% vs MA{ma_period} - {label}",
    )


def normalize_cycle_position(current_price: float, ath: float, cycle_low: float) -> MetricAnalysis:
    """
    Placement of the price between the cycle low and the ATH.

    Confidence is 0.8: the cycle range is itself a rough estimate.
    """
    if ath == 0 or cycle_low == 0 or ath <= cycle_low:
        return _neutral(MetricName.CYCLE_POSITION, "invalid cycle range")

    position = ((current_price - cycle_low) / (ath - cycle_low)) * 100
    position = min(100.0, max(0.0, position))
    if position < 20:
        label = "early accumulation"
    elif position < 40:
        label = "early uptrend"
    elif position < 60:
        label = "mid cycle"
    elif position < 80:
        label = "late uptrend"
    else:
        label = "near ATH, caution"
    return _analysis(
        MetricName.CYCLE_POSITION,
        position,
        position / 100,
        f"{position:.0f}% of cycle range - {label}",
        confidence=0.8,
    )


# ============================================================
# MARKET-WIDE SENTIMENT
# ============================================================


def normalize_fear_greed(value: float) -> MetricAnalysis:
    """Fear & Greed index (0-100), mapped linearly."""
    label = _label_at_most(value, [
        (25, "extreme fear, possible undervaluation"),
        (45, "fear"),
        (55, "neutral"),
        (75, "greed, caution"),
        (None, "extreme greed, overvaluation risk"),
    ])
    return _analysis(MetricName.FEAR_GREED, value, value / 100, f"Fear & Greed {value:.0f} - {label}")


def normalize_kimchi_premium(premium: float) -> MetricAnalysis:
    """Korean exchange premium over the global price, in percent."""
    score, label = _walk_bands(premium, [
        (-2, 0.1, "reverse premium, domestic discount"),
        (2, 0.4, "normal range"),
        (5, 0.6, "mild overheating"),
        (10, 0.8, "overheating signal"),
        (None, 0.95, "extreme overheating"),
    ])
    return _analysis(
        MetricName.KIMCHI_PREMIUM,
        premium,
        score,
        f"Kimchi premium {premium:.1f}% - {label}",
    )


def normalize_social_sentiment(sentiment: float) -> MetricAnalysis:
    """Social sentiment (-100..+100), mapped linearly."""
    label = _label_at_most(sentiment, [
        (-60, "extreme fear, accumulation opportunity"),
        (-20, "negative mood"),
        (20, "neutral"),
        (60, "positive mood, caution"),
        (None, "extreme greed, overvaluation risk"),
    ])
    return _analysis(
        MetricName.SOCIAL_SENTIMENT,
        sentiment,
        (sentiment + 100) / 200,
        f"Social sentiment {sentiment:.0f} - {label}",
    )


def normalize_news_sentiment(news_score: float) -> MetricAnalysis:
    """News sentiment (-100..+100), trusted less than social sentiment."""
    label = _label_at_most(news_score, [
        (-50, "very negative"),
        (-20, "negative"),
        (20, "neutral"),
        (50, "positive"),
        (None, "very positive, overheating risk"),
    ])
    return _analysis(
        MetricName.NEWS_SENTIMENT,
        news_score,
        (news_score + 100) / 200,
        f"News sentiment {news_score:.0f} - {label}",
        confidence=0.8,
    )


def normalize_funding_rate(funding_rate: float) -> MetricAnalysis:
    """
    Perpetual funding rate.

    Positive = longs paying shorts = overheated.
    Negative = shorts paying longs = bearish positioning.
    """
    score, label = _walk_bands(funding_rate, [
        (-0.05, 0.1, "extreme short positioning, rebound possible"),
        (0, 0.3, "bearish positioning"),
        (0.03, 0.5, "normal range"),
        (0.08, 0.75, "longs overheated"),
        (None, 0.9, "extreme long overheating, correction risk"),
    ])
    return _analysis(
        MetricName.FUNDING_RATE,
        funding_rate,
        score,
        f"Funding rate {funding_rate * 100:.3f}% - {label}",
    )
