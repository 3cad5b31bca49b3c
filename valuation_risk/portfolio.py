"""
Valuation Risk Engine - Portfolio Evaluation.

============================================================
PURPOSE
============================================================
Batch evaluation of a set of assets against one reference
asset, and a value-weighted summary of the results.

============================================================
FLOW
============================================================
1. Evaluate the reference asset from its direct data
2. For every other asset with a positive price:
   - reference has MVRV or NVT -> cross-asset estimate
   - otherwise                 -> minimal fallback input
   - add the asset's own MA50 (and MA200) and sentiment
3. Evaluate each input

============================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import ValuationRiskConfig, get_default_config
from .engine import ValuationRiskEngine
from .estimator import CrossAssetEstimator
from .types import SentimentSnapshot, ValuationInput, ValuationResult, ValuationRiskLevel


logger = logging.getLogger(__name__)

TOP_RISKS = 5


@dataclass(frozen=True)
class AssetQuote:
    """Market data for one non-reference asset."""

    price: float
    ma50: Optional[float] = None
    ma200: Optional[float] = None
    sentiment: Optional[SentimentSnapshot] = None


@dataclass(frozen=True)
class PortfolioHolding:
    symbol: str
    value: float


@dataclass(frozen=True)
class PortfolioValuationSummary:
    """Value-weighted view over a set of valuation results."""

    weighted_score: float
    average_confidence: float
    risk_distribution: Dict[str, float] = field(default_factory=dict)
    top_risks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def risk_level(self) -> ValuationRiskLevel:
        return ValuationRiskLevel.from_score(self.weighted_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weighted_score": self.weighted_score,
            "risk_level": self.risk_level.value,
            "average_confidence": self.average_confidence,
            "risk_distribution": dict(self.risk_distribution),
            "top_risks": list(self.top_risks),
        }


def _empty_distribution() -> Dict[str, float]:
    return {level.value: 0.0 for level in ValuationRiskLevel}


def evaluate_portfolio(
    reference: ValuationInput,
    assets: Mapping[str, AssetQuote],
    config: Optional[ValuationRiskConfig] = None,
) -> Dict[str, ValuationResult]:
    """
    Evaluate the reference asset and every other quoted asset.

    Args:
        reference: Direct data for the reference asset (BTC)
        assets: Quotes keyed by symbol; the reference symbol is skipped
        config: Engine configuration

    Returns:
        Results keyed by symbol. Assets without a positive price
        are omitted.
    """
    config = config or get_default_config()
    engine = ValuationRiskEngine(config)
    estimator = CrossAssetEstimator(config)

    results: Dict[str, ValuationResult] = {}
    if reference.current_price > 0 or reference.symbol in assets:
        results[reference.symbol] = engine.evaluate(reference)

    use_reference = estimator.has_reference_data(reference)

    for symbol, quote in assets.items():
        if symbol == reference.symbol:
            continue
        if not quote.price or quote.price <= 0:
            logger.debug(f"Skipping {symbol}: no price")
            continue

        if use_reference:
            data = estimator.estimate(symbol, reference, quote.price, quote.ma200)
            data = data.with_overrides(ma50=quote.ma50)
        else:
            data = estimator.fallback(symbol, quote.price, reference.fear_greed)
            data = data.with_overrides(ma50=quote.ma50, ma200=quote.ma200)

        if quote.sentiment is not None:
            data = data.with_overrides(sentiment=quote.sentiment)

        results[symbol] = engine.evaluate(data)

    logger.info(
        f"Evaluated {len(results)} assets against {reference.symbol} "
        f"({'estimated' if use_reference else 'fallback'} mode for non-reference assets)"
    )
    return results


def summarize_portfolio(
    results: Mapping[str, ValuationResult],
    holdings: Sequence[PortfolioHolding],
) -> PortfolioValuationSummary:
    """
    Value-weighted summary of per-asset valuation results.

    Holdings without a result contribute nothing. Top risks are
    the held assets with the highest composite scores.
    """
    if not results or not holdings:
        return PortfolioValuationSummary(
            weighted_score=0.5,
            average_confidence=0.0,
            risk_distribution=_empty_distribution(),
            top_risks=[],
        )

    total_value = sum(h.value or 0 for h in holdings)
    weighted_score = 0.0
    total_confidence = 0.0
    distribution = _empty_distribution()

    for holding in holdings:
        result = results.get(holding.symbol)
        if result is None:
            continue
        weight = (holding.value or 0) / total_value if total_value > 0 else 0.0
        weighted_score += result.composite_score * weight
        total_confidence += result.confidence.overall * weight
        distribution[result.risk_level.value] += weight * 100

    held = {h.symbol for h in holdings}
    ranked = sorted(
        (r for symbol, r in results.items() if symbol in held),
        key=lambda r: r.composite_score,
        reverse=True,
    )
    top_risks = [
        {"symbol": r.symbol, "score": r.composite_score, "risk_level": r.risk_level.value}
        for r in ranked[:TOP_RISKS]
    ]

    logger.info(
        f"Portfolio valuation: weighted score {weighted_score:.3f}, "
        f"confidence {total_confidence:.2f}, {len(held)} holdings"
    )

    return PortfolioValuationSummary(
        weighted_score=weighted_score,
        average_confidence=total_confidence,
        risk_distribution=distribution,
        top_risks=top_risks,
    )
