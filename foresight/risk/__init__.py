"""
Kelly position sizing.

Contains:
- kelly_allocator: Single-market Kelly sizing with validation
- portfolio_allocator: Simultaneous-bet sizing under portfolio caps
"""

from foresight.risk.kelly_allocator import (
    BetSide,
    EdgeResult,
    KellyAllocator,
    KellyMultiplier,
    KellyResult,
    KellyValidationError,
    describe_multiplier,
    format_recommendation,
)
from foresight.risk.portfolio_allocator import (
    MarketInput,
    PortfolioAllocator,
    PortfolioPosition,
    PortfolioResult,
)

__all__ = [
    # Single market
    "BetSide",
    "EdgeResult",
    "KellyAllocator",
    "KellyMultiplier",
    "KellyResult",
    "KellyValidationError",
    "describe_multiplier",
    "format_recommendation",
    # Portfolio
    "MarketInput",
    "PortfolioAllocator",
    "PortfolioPosition",
    "PortfolioResult",
]
