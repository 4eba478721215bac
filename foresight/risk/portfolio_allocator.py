"""
Portfolio Kelly allocation across simultaneous markets.

Full Kelly fractions computed independently per market overstate the
combined exposure when several bets are open at once. The allocator
applies fractional Kelly to the whole set, scales it down to a portfolio
cap, and then caps each position individually.
"""

from dataclasses import dataclass, field
from typing import Iterable

from foresight.infrastructure.logging import get_logger
from foresight.risk.kelly_allocator import (
    BetSide,
    KellyAllocator,
    KellyValidationError,
)

logger = get_logger(__name__)


DEFAULT_PORTFOLIO_MULTIPLIER = 0.5  # Half Kelly
DEFAULT_PORTFOLIO_MAX_POSITION = 0.15
DEFAULT_MAX_TOTAL_ALLOCATION = 0.8


@dataclass(frozen=True)
class MarketInput:
    """Our belief about one market and its YES price."""
    market_id: str
    estimated_probability: float
    yes_price: float
    question: str | None = None


@dataclass
class PortfolioPosition:
    """Recommended position in one market."""

    market_id: str
    side: BetSide
    edge: float
    raw_fraction: float  # Full Kelly, uncapped
    adjusted_fraction: float  # After multiplier, scaling and cap
    dollar_amount: float
    expected_value: float = 0.0
    question: str | None = None


@dataclass
class PortfolioResult:
    """Allocation across all markets."""

    total_allocation: float
    was_scaled: bool
    scale_factor: float
    positions: list[PortfolioPosition] = field(default_factory=list)

    @property
    def total_dollar_amount(self) -> float:
        return sum(p.dollar_amount for p in self.positions)

    @property
    def active_positions(self) -> list[PortfolioPosition]:
        return [p for p in self.positions if p.adjusted_fraction > 0]


class PortfolioAllocator:
    """
    Sizes simultaneous bets under portfolio and per-position caps.

    1. Full (uncapped) Kelly per market.
    2. Sum the positive-edge fractions and apply the fraction multiplier.
    3. If that target exceeds max_total_allocation, scale every position
       by max_total_allocation / target.
    4. Cap each position at max_position_size.

    Because step 4 runs after step 3, the final total can end up below
    max_total_allocation when individual caps bind.

    Usage:
        allocator = PortfolioAllocator()
        result = allocator.optimize(
            bankroll=10_000,
            markets=[MarketInput("m1", estimated_probability=0.7, yes_price=0.5)],
        )
        for position in result.active_positions:
            print(position.market_id, position.side.value, position.dollar_amount)
    """

    def __init__(self, kelly: KellyAllocator | None = None):
        self.kelly = kelly or KellyAllocator()

    def optimize(
        self,
        bankroll: float,
        markets: Iterable[MarketInput],
        fraction_multiplier: float = DEFAULT_PORTFOLIO_MULTIPLIER,
        max_position_size: float = DEFAULT_PORTFOLIO_MAX_POSITION,
        max_total_allocation: float = DEFAULT_MAX_TOTAL_ALLOCATION,
    ) -> PortfolioResult:
        """
        Allocate a bankroll across markets.

        Args:
            bankroll: Capital in dollars
            markets: Markets to size, one position returned per market in order
            fraction_multiplier: Fractional Kelly multiplier for the portfolio
            max_position_size: Cap per position as fraction of bankroll
            max_total_allocation: Cap on the pre-clamp portfolio total

        Returns:
            PortfolioResult with one position per market

        Raises:
            KellyValidationError: If a market's probability or price is invalid
        """
        raw_positions: list[PortfolioPosition] = []
        for market in markets:
            try:
                result = self.kelly.calculate(
                    estimated_probability=market.estimated_probability,
                    market_price=market.yes_price,
                    fraction_multiplier=1.0,
                    max_position_size=1.0,
                )
            except KellyValidationError as e:
                logger.warning(
                    "Portfolio market rejected",
                    market_id=market.market_id,
                    field=e.field,
                    value=e.value,
                )
                raise

            raw_positions.append(
                PortfolioPosition(
                    market_id=market.market_id,
                    side=result.side,
                    edge=result.edge,
                    raw_fraction=result.recommended_fraction,
                    adjusted_fraction=0.0,
                    dollar_amount=0.0,
                    expected_value=result.expected_value,
                    question=market.question,
                )
            )

        total_raw = sum(
            p.raw_fraction for p in raw_positions
            if p.side is not BetSide.NONE and p.raw_fraction > 0
        )
        target = total_raw * fraction_multiplier

        was_scaled = target > max_total_allocation
        scale_factor = max_total_allocation / target if was_scaled else 1.0

        if was_scaled:
            logger.info(
                "Portfolio allocation scaled down",
                target_allocation=f"{target:.4f}",
                max_total_allocation=max_total_allocation,
                scale_factor=f"{scale_factor:.4f}",
            )

        total_allocation = 0.0
        for position in raw_positions:
            if position.side is BetSide.NONE or position.raw_fraction <= 0:
                continue

            adjusted = position.raw_fraction * fraction_multiplier * scale_factor
            if adjusted > max_position_size:
                logger.info(
                    "Position capped by max position size",
                    market_id=position.market_id,
                    requested_fraction=f"{adjusted:.4f}",
                    max_position_size=max_position_size,
                )
                adjusted = max_position_size

            position.adjusted_fraction = adjusted
            position.dollar_amount = adjusted * bankroll
            total_allocation += adjusted

        return PortfolioResult(
            total_allocation=total_allocation,
            was_scaled=was_scaled,
            scale_factor=scale_factor,
            positions=raw_positions,
        )
