"""
Valuation Risk Engine - Package.

============================================================
PURPOSE
============================================================
Multi-timeframe overvaluation scoring for crypto assets.
Turns market, on-chain and sentiment indicators into one
explainable [0, 1] score per asset with an action.

============================================================
WHAT IT IS
============================================================
- Pure, synchronous computation over the latest snapshot
- Category-aware thresholds (core / major / growth / speculative)
- Three horizons blended into one composite score
- Explainable: every score carries its key drivers

============================================================
WHAT IT IS NOT
============================================================
- NOT a data fetcher (inputs come from external collaborators)
- NOT a backtester or model fitter
- NOT an order executor

============================================================
SCORING
============================================================
0.0 = strong undervaluation signal, 1.0 = strong overvaluation

Composite = 0.20 * short + 0.35 * medium + 0.45 * long

- UNDERVALUED (< 0.2)
- FAIR_VALUE  (< 0.4)
- ELEVATED    (< 0.6)
- OVERVALUED  (< 0.8)
- EXTREME     (otherwise)

============================================================
USAGE
============================================================
    from valuation_risk import (
        ValuationRiskEngine,
        ValuationInput,
        SentimentSnapshot,
    )

    engine = ValuationRiskEngine()

    result = engine.evaluate(ValuationInput(
        symbol="BTC",
        current_price=50000,
        mvrv=1.8,
        nvt=55,
        ma50=48000,
        ma200=40000,
        fear_greed=62,
        sentiment=SentimentSnapshot(social_sentiment=25, funding_rate=0.01),
    ))

    print(f"Risk Level: {result.risk_level.value}")
    print(f"Composite: {result.composite_score:.2f}")
    for driver in result.key_drivers:
        print(f"  {driver.label}: {driver.reason}")

============================================================
"""

# Types
from .types import (
    # Enums
    AssetCategory,
    ValuationTimeframe,
    ValuationRiskLevel,
    MetricName,
    DriverDirection,
    DriverSeverity,
    RecommendedAction,
    Urgency,

    # Input types
    SentimentSnapshot,
    ValuationInput,

    # Output types
    MetricAnalysis,
    TimeframeAssessment,
    ValuationDriver,
    ValuationConfidence,
    ValuationRecommendation,
    ValuationResult,
)

# Configuration
from .config import (
    CategoryThresholds,
    TimeframeWeights,
    CompositeWeights,
    DriverConfig,
    RecommendationConfig,
    EstimatorConfig,
    ValuationRiskConfig,
    get_default_config,
    load_config,
)

# Classifier
from .classifier import (
    AssetProfile,
    AssetClassifier,
    ASSET_PROFILES,
    classify,
    known_profile,
    profile_for,
    thresholds_for,
    rebalance_tolerance,
    category_allocation_range,
)

# Aggregation
from .aggregator import (
    MetricSpec,
    METRIC_SPECS,
    TimeframeAggregator,
)

# Engine
from .engine import (
    ValuationRiskEngine,
    evaluate_valuation,
    get_valuation_risk_level,
    format_valuation_summary,
)

# Estimation
from .estimator import (
    CrossAssetEstimator,
    adjust_by_beta,
    estimate_altcoin_valuation,
    default_altcoin_valuation,
)

# Portfolio
from .portfolio import (
    AssetQuote,
    PortfolioHolding,
    PortfolioValuationSummary,
    evaluate_portfolio,
    summarize_portfolio,
)


__all__ = [
    # Enums
    "AssetCategory",
    "ValuationTimeframe",
    "ValuationRiskLevel",
    "MetricName",
    "DriverDirection",
    "DriverSeverity",
    "RecommendedAction",
    "Urgency",

    # Input types
    "SentimentSnapshot",
    "ValuationInput",

    # Output types
    "MetricAnalysis",
    "TimeframeAssessment",
    "ValuationDriver",
    "ValuationConfidence",
    "ValuationRecommendation",
    "ValuationResult",

    # Configuration
    "CategoryThresholds",
    "TimeframeWeights",
    "CompositeWeights",
    "DriverConfig",
    "RecommendationConfig",
    "EstimatorConfig",
    "ValuationRiskConfig",
    "get_default_config",
    "load_config",

    # Classifier
    "AssetProfile",
    "AssetClassifier",
    "ASSET_PROFILES",
    "classify",
    "known_profile",
    "profile_for",
    "thresholds_for",
    "rebalance_tolerance",
    "category_allocation_range",

    # Aggregation
    "MetricSpec",
    "METRIC_SPECS",
    "TimeframeAggregator",

    # Engine
    "ValuationRiskEngine",
    "evaluate_valuation",
    "get_valuation_risk_level",
    "format_valuation_summary",

    # Estimation
    "CrossAssetEstimator",
    "adjust_by_beta",
    "estimate_altcoin_valuation",
    "default_altcoin_valuation",

    # Portfolio
    "AssetQuote",
    "PortfolioHolding",
    "PortfolioValuationSummary",
    "evaluate_portfolio",
    "summarize_portfolio",
]


__version__ = "1.0.0"
