"""
Valuation Risk Engine - Main Orchestrator.

============================================================
PURPOSE
============================================================
The ValuationRiskEngine is the main entry point for
per-asset overvaluation assessment.

It orchestrates:
1. Category lookup
2. Three timeframe assessments
3. Composite score blending
4. Key driver extraction
5. Recommendation generation
6. Result packaging

============================================================
DESIGN PRINCIPLES
============================================================
- Single responsibility: orchestration only
- Delegates to the timeframe aggregator
- Deterministic and stateless per call
- Never raises for missing data

============================================================
USAGE
============================================================
    from valuation_risk import ValuationRiskEngine, ValuationInput

    engine = ValuationRiskEngine()

    result = engine.evaluate(ValuationInput(
        symbol="BTC",
        current_price=50000,
        mvrv=1.8,
        nvt=55,
        ma50=48000,
        ma200=40000,
    ))

    print(f"Risk Level: {result.risk_level.value}")
    print(f"Action: {result.recommendation.action.value}")

============================================================
"""

import logging
from typing import Dict, List, Optional

from .aggregator import TimeframeAggregator
from .classifier import AssetClassifier
from .config import ValuationRiskConfig, get_default_config
from .types import (
    AssetCategory,
    DriverDirection,
    DriverSeverity,
    MetricAnalysis,
    RecommendedAction,
    TimeframeAssessment,
    Urgency,
    ValuationConfidence,
    ValuationDriver,
    ValuationInput,
    ValuationRecommendation,
    ValuationResult,
    ValuationRiskLevel,
    ValuationTimeframe,
)


logger = logging.getLogger(__name__)


class ValuationRiskEngine:
    """
    Main orchestrator for the Valuation Risk Engine.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    1. Resolve the asset category
    2. Run the aggregator for short / medium / long
    3. Blend the timeframe scores and confidences
    4. Rank metrics into key drivers
    5. Map the composite score to an action
    6. Package output

    ============================================================
    """

    def __init__(self, config: Optional[ValuationRiskConfig] = None):
        """
        Initialize the Valuation Risk Engine.

        Args:
            config: Engine configuration. Uses defaults if not provided.
        """
        self.config = config or get_default_config()
        self._classifier = AssetClassifier(self.config)
        self._aggregator = TimeframeAggregator(self.config)

    def evaluate(
        self,
        data: ValuationInput,
        category: Optional[AssetCategory] = None,
    ) -> ValuationResult:
        """
        Perform a complete valuation assessment for one asset.

        Args:
            data: Indicator bundle; only current_price is required
            category: Category override. Looked up from the symbol
                      when not provided.

        Returns:
            ValuationResult with all three timeframes populated
        """
        # --------------------------------------------------
        # Step 1: Resolve category
        # --------------------------------------------------
        if category is None:
            category = self._classifier.classify(data.symbol)

        # --------------------------------------------------
        # Step 2: Assess each timeframe
        # --------------------------------------------------
        assessments: Dict[ValuationTimeframe, TimeframeAssessment] = {
            timeframe: self._aggregator.assess(timeframe, data, category)
            for timeframe in ValuationTimeframe.all_timeframes()
        }

        # --------------------------------------------------
        # Step 3: Composite score and confidence
        # --------------------------------------------------
        composite_score = self._blend(
            {tf: a.overvaluation_score for tf, a in assessments.items()}
        )
        overall_confidence = self._blend(
            {tf: a.confidence for tf, a in assessments.items()}
        )
        risk_level = ValuationRiskLevel.from_score(composite_score)

        all_metrics = [m for a in assessments.values() for m in a.metrics]
        data_completeness = self._data_completeness(all_metrics)

        # --------------------------------------------------
        # Step 4: Drivers and recommendation
        # --------------------------------------------------
        drivers = self.extract_key_drivers(list(assessments.values()))
        recommendation = self.generate_recommendation(composite_score, drivers)

        logger.debug(
            f"{data.symbol} ({category.value}): composite={composite_score:.4f} "
            f"level={risk_level.value} action={recommendation.action.value} "
            f"urgency={recommendation.urgency.value}"
        )

        return ValuationResult(
            symbol=data.symbol,
            composite_score=composite_score,
            risk_level=risk_level,
            short_term=assessments[ValuationTimeframe.SHORT],
            medium_term=assessments[ValuationTimeframe.MEDIUM],
            long_term=assessments[ValuationTimeframe.LONG],
            key_drivers=drivers,
            confidence=ValuationConfidence(
                overall=overall_confidence,
                data_completeness=data_completeness,
                is_estimated=data.is_estimated,
                estimation_method=data.estimation_method,
            ),
            recommendation=recommendation,
            category=category,
        )

    # --------------------------------------------------
    # Composite
    # --------------------------------------------------

    def _blend(self, values: Dict[ValuationTimeframe, float]) -> float:
        weights = self.config.composite_weights
        return sum(values[tf] * weights.for_timeframe(tf) for tf in values)

    @staticmethod
    def _data_completeness(metrics: List[MetricAnalysis]) -> float:
        if not metrics:
            return 0.0
        return sum(1 for m in metrics if m.has_data) / len(metrics)

    # --------------------------------------------------
    # Drivers
    # --------------------------------------------------

    def extract_key_drivers(
        self,
        assessments: List[TimeframeAssessment],
    ) -> List[ValuationDriver]:
        """
        Rank every metric of every timeframe by its pull on the composite.

        contribution = |score - 0.5| * weight * confidence

        Returns at most `max_drivers` entries, largest first. Ties
        keep timeframe order (short, medium, long).
        """
        cfg = self.config.drivers
        drivers: List[ValuationDriver] = []

        for assessment in assessments:
            for metric in assessment.metrics:
                contribution = abs(metric.normalized_score - 0.5) * metric.weight * metric.confidence

                if metric.normalized_score < cfg.bullish_below:
                    direction = DriverDirection.BULLISH
                elif metric.normalized_score > cfg.bearish_above:
                    direction = DriverDirection.BEARISH
                else:
                    direction = DriverDirection.NEUTRAL

                if contribution > cfg.high_severity_above:
                    severity = DriverSeverity.HIGH
                elif contribution > cfg.medium_severity_above:
                    severity = DriverSeverity.MEDIUM
                else:
                    severity = DriverSeverity.LOW

                drivers.append(ValuationDriver(
                    metric=metric.name,
                    timeframe=assessment.timeframe,
                    contribution=contribution,
                    direction=direction,
                    reason=metric.reason,
                    severity=severity,
                ))

        drivers.sort(key=lambda d: d.contribution, reverse=True)
        return drivers[:cfg.max_drivers]

    # --------------------------------------------------
    # Recommendation
    # --------------------------------------------------

    def generate_recommendation(
        self,
        composite_score: float,
        drivers: List[ValuationDriver],
    ) -> ValuationRecommendation:
        """Map the composite score to an action and urgency."""
        cfg = self.config.recommendation
        bearish_high = sum(1 for d in drivers if d.is_high_severity_bearish)

        if composite_score < cfg.strong_accumulate_below:
            return ValuationRecommendation(
                action=RecommendedAction.ACCUMULATE,
                reason="Strong undervaluation across timeframes, aggressive accumulation window",
                urgency=Urgency.HIGH,
            )
        elif composite_score < cfg.accumulate_below:
            return ValuationRecommendation(
                action=RecommendedAction.ACCUMULATE,
                reason="Undervalued, accumulate on a schedule",
                urgency=Urgency.MEDIUM,
            )
        elif composite_score < cfg.gradual_accumulate_below:
            return ValuationRecommendation(
                action=RecommendedAction.ACCUMULATE,
                reason="Fair value zone, gradual accumulation is reasonable",
                urgency=Urgency.LOW,
            )
        elif composite_score < cfg.hold_below:
            return ValuationRecommendation(
                action=RecommendedAction.HOLD,
                reason="Valuation is neutral, hold current position",
                urgency=Urgency.LOW,
            )
        elif composite_score < cfg.reduce_below:
            escalated = bearish_high >= cfg.escalation_driver_count
            reason = "Overvaluation signals building, consider partial profit taking"
            if escalated:
                reason += f" ({bearish_high} strong bearish drivers)"
            return ValuationRecommendation(
                action=RecommendedAction.REDUCE,
                reason=reason,
                urgency=Urgency.HIGH if escalated else Urgency.MEDIUM,
            )
        else:
            return ValuationRecommendation(
                action=RecommendedAction.EXIT,
                reason="Extreme overvaluation, reduce exposure substantially",
                urgency=Urgency.HIGH,
            )


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


def get_valuation_risk_level(score: float) -> ValuationRiskLevel:
    """Bucket a [0, 1] overvaluation score."""
    return ValuationRiskLevel.from_score(score)


def evaluate_valuation(
    data: ValuationInput,
    category: Optional[AssetCategory] = None,
    config: Optional[ValuationRiskConfig] = None,
) -> ValuationResult:
    """One-shot evaluation with a throwaway engine."""
    return ValuationRiskEngine(config).evaluate(data, category)


def format_valuation_summary(result: ValuationResult) -> str:
    """Multi-line plain-text summary for logs and CLIs."""
    lines = [
        f"{result.symbol} [{result.category.value}] "
        f"{result.risk_level.value} ({result.composite_score * 100:.0f}/100)",
    ]
    for assessment in result.all_assessments:
        lines.append(
            f"  {assessment.label}: {assessment.overvaluation_score * 100:.0f} "
            f"{assessment.risk_level.value} (confidence {assessment.confidence * 100:.0f}%)"
        )
    lines.append(
        f"  Action: {result.recommendation.action.value} "
        f"[{result.recommendation.urgency.value}] - {result.recommendation.reason}"
    )
    if result.key_drivers:
        lines.append("  Key drivers:")
        for driver in result.key_drivers:
            lines.append(f"    - {driver.label} {driver.direction.value}: {driver.reason}")
    if result.confidence.is_estimated:
        lines.append(f"  Estimated: {result.confidence.estimation_method}")
    return "\n".join(lines)
