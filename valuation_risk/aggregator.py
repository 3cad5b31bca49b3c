"""
Valuation Risk Engine - Timeframe Aggregator.

============================================================
PURPOSE
============================================================
Combines the applicable normalizer outputs for one timeframe
into a single overvaluation score and confidence.

============================================================
AGGREGATION
============================================================
For each metric that has a weight in the timeframe's table
and is present in the input:

    weighted_score      += score * weight * confidence
    weighted_confidence += weight * confidence
    total_weight        += weight

    overvaluation_score = weighted_score / total_weight
    confidence          = weighted_confidence / total_weight

No metrics at all -> score 0.5, confidence 0.

============================================================
METRIC TABLE
============================================================
Metrics are declared once in METRIC_SPECS as
(name, extractor, normalizer). Adding a metric is a new
row plus a weight entry in the configuration.

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import CategoryThresholds, ValuationRiskConfig, get_default_config
from .normalizers import (
    normalize_active_address_ratio,
    normalize_cycle_position,
    normalize_exchange_netflow,
    normalize_fear_greed,
    normalize_funding_rate,
    normalize_kimchi_premium,
    normalize_mvrv,
    normalize_news_sentiment,
    normalize_nvt,
    normalize_price_vs_ma,
    normalize_realized_price_ratio,
    normalize_social_sentiment,
)
from .types import (
    AssetCategory,
    MetricAnalysis,
    MetricName,
    TimeframeAssessment,
    ValuationInput,
    ValuationRiskLevel,
    ValuationTimeframe,
)


logger = logging.getLogger(__name__)

# Extractor returns a zero-argument normalizer call, or None when the
# metric is absent from the input.
Extractor = Callable[[ValuationInput, CategoryThresholds], Optional[Callable[[], MetricAnalysis]]]


@dataclass(frozen=True)
class MetricSpec:
    name: MetricName
    extract: Extractor


# ============================================================
# EXTRACTORS
# ============================================================
# Fields used as divisors or ranges (moving averages, realized
# price, the 30d address average, the cycle range) are treated
# as absent when zero. Plain indicator values only when None.


def _mvrv(data: ValuationInput, thresholds: CategoryThresholds):
    if data.mvrv is None:
        return None
    return lambda: normalize_mvrv(data.mvrv, thresholds)


def _nvt(data: ValuationInput, thresholds: CategoryThresholds):
    if data.nvt is None:
        return None
    return lambda: normalize_nvt(data.nvt, thresholds)


def _price_vs_ma50(data: ValuationInput, thresholds: CategoryThresholds):
    if not data.ma50:
        return None
    return lambda: normalize_price_vs_ma(data.current_price, data.ma50, 50, thresholds)


def _price_vs_ma200(data: ValuationInput, thresholds: CategoryThresholds):
    if not data.ma200:
        return None
    return lambda: normalize_price_vs_ma(data.current_price, data.ma200, 200, thresholds)


def _exchange_netflow(data: ValuationInput, thresholds: CategoryThresholds):
    if data.exchange_netflow is None:
        return None
    return lambda: normalize_exchange_netflow(data.exchange_netflow)


def _fear_greed(data: ValuationInput, thresholds: CategoryThresholds):
    if data.fear_greed is None:
        return None
    return lambda: normalize_fear_greed(data.fear_greed)


def _kimchi_premium(data: ValuationInput, thresholds: CategoryThresholds):
    if data.kimchi_premium is None:
        return None
    return lambda: normalize_kimchi_premium(data.kimchi_premium)


def _active_address_ratio(data: ValuationInput, thresholds: CategoryThresholds):
    if not data.active_addresses or not data.active_addresses_30d_avg:
        return None
    return lambda: normalize_active_address_ratio(
        data.active_addresses, data.active_addresses_30d_avg
    )


def _cycle_position(data: ValuationInput, thresholds: CategoryThresholds):
    if not data.ath or not data.cycle_low:
        return None
    return lambda: normalize_cycle_position(data.current_price, data.ath, data.cycle_low)


def _realized_price_ratio(data: ValuationInput, thresholds: CategoryThresholds):
    if not data.realized_price:
        return None
    return lambda: normalize_realized_price_ratio(data.current_price, data.realized_price)


def _social_sentiment(data: ValuationInput, thresholds: CategoryThresholds):
    if data.sentiment is None or data.sentiment.social_sentiment is None:
        return None
    return lambda: normalize_social_sentiment(data.sentiment.social_sentiment)


def _news_sentiment(data: ValuationInput, thresholds: CategoryThresholds):
    if data.sentiment is None or data.sentiment.news_score is None:
        return None
    return lambda: normalize_news_sentiment(data.sentiment.news_score)


def _funding_rate(data: ValuationInput, thresholds: CategoryThresholds):
    if data.sentiment is None or data.sentiment.funding_rate is None:
        return None
    return lambda: normalize_funding_rate(data.sentiment.funding_rate)


METRIC_SPECS: List[MetricSpec] = [
    MetricSpec(MetricName.MVRV, _mvrv),
    MetricSpec(MetricName.NVT, _nvt),
    MetricSpec(MetricName.PRICE_VS_MA50, _price_vs_ma50),
    MetricSpec(MetricName.PRICE_VS_MA200, _price_vs_ma200),
    MetricSpec(MetricName.EXCHANGE_NETFLOW, _exchange_netflow),
    MetricSpec(MetricName.FEAR_GREED, _fear_greed),
    MetricSpec(MetricName.KIMCHI_PREMIUM, _kimchi_premium),
    MetricSpec(MetricName.ACTIVE_ADDRESS_RATIO, _active_address_ratio),
    MetricSpec(MetricName.CYCLE_POSITION, _cycle_position),
    MetricSpec(MetricName.REALIZED_PRICE_RATIO, _realized_price_ratio),
    MetricSpec(MetricName.SOCIAL_SENTIMENT, _social_sentiment),
    MetricSpec(MetricName.NEWS_SENTIMENT, _news_sentiment),
    MetricSpec(MetricName.FUNDING_RATE, _funding_rate),
]


# ============================================================
# AGGREGATOR
# ============================================================


class TimeframeAggregator:
    """
    Weighted aggregation of metric analyses for one timeframe.

    Stateless apart from its configuration; safe to share.
    """

    def __init__(
        self,
        config: Optional[ValuationRiskConfig] = None,
        metric_specs: Optional[List[MetricSpec]] = None,
    ):
        self.config = config or get_default_config()
        self._specs = metric_specs if metric_specs is not None else METRIC_SPECS

    def collect_metrics(
        self,
        timeframe: ValuationTimeframe,
        data: ValuationInput,
        category: AssetCategory,
    ) -> List[MetricAnalysis]:
        """Run every applicable normalizer and attach its timeframe weight."""
        weights = self.config.timeframe_weights.for_timeframe(timeframe)
        thresholds = self.config.thresholds_for(category)

        metrics: List[MetricAnalysis] = []
        for spec in self._specs:
            weight = weights.get(spec.name.value)
            if not weight:
                continue
            run = spec.extract(data, thresholds)
            if run is None:
                continue
            metrics.append(run().with_weight(weight))
        return metrics

    def assess(
        self,
        timeframe: ValuationTimeframe,
        data: ValuationInput,
        category: AssetCategory,
    ) -> TimeframeAssessment:
        """
        Assess one timeframe.

        Args:
            timeframe: Horizon whose weight table applies
            data: Per-asset indicator bundle
            category: Category selecting the thresholds

        Returns:
            TimeframeAssessment; neutral (0.5, confidence 0) when
            no metric applies
        """
        metrics = self.collect_metrics(timeframe, data, category)

        weighted_score = 0.0
        weighted_confidence = 0.0
        total_weight = 0.0
        for metric in metrics:
            weighted_score += metric.normalized_score * metric.weight * metric.confidence
            weighted_confidence += metric.weight * metric.confidence
            total_weight += metric.weight

        if total_weight > 0:
            score = weighted_score / total_weight
            confidence = weighted_confidence / total_weight
        else:
            score = 0.5
            confidence = 0.0

        logger.debug(
            f"{data.symbol} {timeframe.value}: score={score:.4f} "
            f"confidence={confidence:.4f} metrics={len(metrics)}"
        )

        return TimeframeAssessment(
            timeframe=timeframe,
            overvaluation_score=score,
            risk_level=ValuationRiskLevel.from_score(score),
            metrics=metrics,
            confidence=confidence,
        )
