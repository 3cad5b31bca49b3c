"""
Valuation Risk Engine - Asset Classifier.

============================================================
PURPOSE
============================================================
Maps a symbol to its asset category and exposes the
category-specific thresholds derived from it.

============================================================
RULES
============================================================
- Exactly one category per symbol
- Unknown symbols default to SPECULATIVE (most conservative)
- classify() is total: it never raises

============================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import CategoryThresholds, ValuationRiskConfig, get_default_config
from .types import AssetCategory


# ============================================================
# ASSET PROFILES
# ============================================================


@dataclass(frozen=True)
class AssetProfile:
    """Static characteristics of a tracked asset."""

    category: AssetCategory
    market_cap_rank: int
    volatility: str          # low / medium / high / very_high
    adoption: str            # institutional / retail / emerging
    use_case: str = ""


ASSET_PROFILES: Dict[str, AssetProfile] = {
    "BTC": AssetProfile(AssetCategory.CORE, 1, "medium", "institutional", "Store of value"),
    "ETH": AssetProfile(AssetCategory.CORE, 2, "medium", "institutional", "Smart contract platform"),
    "XRP": AssetProfile(AssetCategory.MAJOR, 5, "high", "institutional", "Cross-border payments"),
    "ADA": AssetProfile(AssetCategory.MAJOR, 8, "high", "retail", "Research-driven smart contracts"),
    "LINK": AssetProfile(AssetCategory.MAJOR, 13, "high", "institutional", "Oracle data feeds"),
    "SOL": AssetProfile(AssetCategory.GROWTH, 6, "high", "retail", "High-throughput smart contracts"),
    "AVAX": AssetProfile(AssetCategory.GROWTH, 12, "high", "retail", "Subnet scalability"),
    "MATIC": AssetProfile(AssetCategory.GROWTH, 14, "high", "retail", "Ethereum L2 scaling"),
    "DOT": AssetProfile(AssetCategory.GROWTH, 15, "high", "retail", "Cross-chain interoperability"),
    "DOGE": AssetProfile(AssetCategory.SPECULATIVE, 10, "very_high", "retail", "Community meme coin"),
}

UNKNOWN_PROFILE = AssetProfile(AssetCategory.SPECULATIVE, 100, "high", "retail", "Unknown")

# Target weight band (percent of portfolio) per category
CATEGORY_ALLOCATION_RANGES: Dict[AssetCategory, Dict[str, float]] = {
    AssetCategory.CORE: {"min": 15.0, "max": 30.0},
    AssetCategory.MAJOR: {"min": 5.0, "max": 15.0},
    AssetCategory.GROWTH: {"min": 3.0, "max": 10.0},
    AssetCategory.SPECULATIVE: {"min": 1.0, "max": 5.0},
}


def _normalize_symbol(symbol: Any) -> str:
    if not isinstance(symbol, str):
        return ""
    return symbol.strip().upper()


def known_profile(symbol: Any) -> Optional[AssetProfile]:
    return ASSET_PROFILES.get(_normalize_symbol(symbol))


def profile_for(symbol: Any) -> AssetProfile:
    """Return the profile for a symbol, or the speculative default."""
    return known_profile(symbol) or UNKNOWN_PROFILE


def classify(symbol: Any) -> AssetCategory:
    """
    Classify a symbol.

    Args:
        symbol: Ticker such as "BTC". Case and surrounding
                whitespace are ignored.

    Returns:
        The symbol's AssetCategory, SPECULATIVE when unmapped
    """
    return profile_for(symbol).category


def category_allocation_range(category: AssetCategory) -> Dict[str, float]:
    return dict(CATEGORY_ALLOCATION_RANGES[category])


# ============================================================
# CLASSIFIER
# ============================================================


class AssetClassifier:
    """
    Category lookup bound to a configuration.

    The symbol table is static; the thresholds come from the
    configuration so tests can override them.
    """

    def __init__(self, config: Optional[ValuationRiskConfig] = None):
        self.config = config or get_default_config()

    def classify(self, symbol: Any) -> AssetCategory:
        return classify(symbol)

    def thresholds_for(self, category: AssetCategory) -> CategoryThresholds:
        return self.config.thresholds_for(category)

    def thresholds_for_symbol(self, symbol: Any) -> CategoryThresholds:
        return self.thresholds_for(self.classify(symbol))

    def rebalance_tolerance(self, symbol: Any) -> float:
        """
        Allowed allocation drift (percent) before rebalancing.

        core 3.0, major 2.5, growth 2.0, speculative 1.5. Used by
        the rebalancing layer, not by the scoring engine.
        """
        return self.thresholds_for_symbol(symbol).rebalance_tolerance_pct


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


def thresholds_for(
    category: AssetCategory,
    config: Optional[ValuationRiskConfig] = None,
) -> CategoryThresholds:
    """Category thresholds from the given or default configuration."""
    return AssetClassifier(config).thresholds_for(category)


def rebalance_tolerance(symbol: Any, config: Optional[ValuationRiskConfig] = None) -> float:
    """Rebalance tolerance (percent) for a symbol."""
    return AssetClassifier(config).rebalance_tolerance(symbol)
