"""
Kelly Criterion allocator for binary prediction markets.

For a contract bought at price P that pays $1:
    b  = (1 - P) / P            net odds
    f* = (p * b - q) / b        Kelly fraction, q = 1 - p
       = (p - P) / (1 - P)

The better of the YES and NO sides is chosen; the NO contract is priced at
1 - P and wins with probability 1 - p. Fractional Kelly scales f* by a
multiplier in (0, 1] and the result is capped at a maximum position size.
"""

from dataclasses import dataclass
from enum import Enum

from foresight.infrastructure.logging import get_logger

logger = get_logger(__name__)


DEFAULT_FRACTION_MULTIPLIER = 1.0
DEFAULT_MAX_POSITION_SIZE = 0.25


class BetSide(Enum):
    """Side to bet on."""
    YES = "YES"
    NO = "NO"
    NONE = "NONE"


class KellyMultiplier(Enum):
    """Common fractional Kelly presets."""
    FULL = 1.0
    THREE_QUARTER = 0.75
    HALF = 0.5
    QUARTER = 0.25
    CONSERVATIVE = 0.1


class KellyValidationError(ValueError):
    """Raised when a Kelly input is outside its domain."""

    def __init__(self, field: str, value: float, expected: str):
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(f"{field} must be in {expected}, got {value}")


@dataclass
class EdgeResult:
    """Edge on each side and the side worth betting."""
    yes_edge: float
    no_edge: float
    best_side: BetSide
    best_edge: float


@dataclass
class KellyResult:
    """Result of Kelly sizing for one market."""

    side: BetSide
    edge: float  # Chosen side's probability minus its price
    recommended_fraction: float  # Fraction of bankroll, within [0, max_position_size]
    was_capped: bool = False

    raw_kelly: float = 0.0  # Full Kelly before multiplier and cap
    kelly_multiplier: float = DEFAULT_FRACTION_MULTIPLIER
    expected_value: float = 0.0  # Per dollar staked
    edge_percentage: float = 0.0  # Edge relative to the side's price, in %

    @property
    def has_positive_edge(self) -> bool:
        return self.side is not BetSide.NONE

    def dollar_amount(self, bankroll: float) -> float:
        return self.recommended_fraction * bankroll


def _validate(
    estimated_probability: float,
    market_price: float,
    fraction_multiplier: float,
) -> None:
    if not 0 <= estimated_probability <= 1:
        raise KellyValidationError("estimated_probability", estimated_probability, "[0, 1]")
    if not 0 < market_price < 1:
        raise KellyValidationError("market_price", market_price, "(0, 1) exclusive")
    if not 0 < fraction_multiplier <= 1:
        raise KellyValidationError("fraction_multiplier", fraction_multiplier, "(0, 1]")


class KellyAllocator:
    """
    Kelly Criterion position sizing for a single binary market.

    Inputs outside their domain raise KellyValidationError. A market with
    no positive edge on either side is not an error: it yields a NONE
    result with a zero fraction.

    Usage:
        allocator = KellyAllocator()
        result = allocator.calculate(
            estimated_probability=0.70,
            market_price=0.50,
            fraction_multiplier=KellyMultiplier.HALF.value,
        )
        stake = result.dollar_amount(bankroll=1000)
    """

    def calculate_edge(self, estimated_probability: float, market_price: float) -> EdgeResult:
        """
        Pick the side with positive edge.

        YES is taken only when its edge is positive and strictly beats NO;
        otherwise NO is taken if its edge is positive. With neither positive the side is NONE and
        best_edge is the larger (non-positive) of the two.
        """
        yes_edge = estimated_probability - market_price
        no_price = 1 - market_price
        no_edge = (1 - estimated_probability) - no_price

        if yes_edge > no_edge and yes_edge > 0:
            return EdgeResult(yes_edge, no_edge, BetSide.YES, yes_edge)
        if no_edge > 0:
            return EdgeResult(yes_edge, no_edge, BetSide.NO, no_edge)
        return EdgeResult(yes_edge, no_edge, BetSide.NONE, max(yes_edge, no_edge))

    def calculate(
        self,
        estimated_probability: float,
        market_price: float,
        fraction_multiplier: float = DEFAULT_FRACTION_MULTIPLIER,
        max_position_size: float = DEFAULT_MAX_POSITION_SIZE,
    ) -> KellyResult:
        """
        Calculate the recommended bankroll fraction.

        Args:
            estimated_probability: Our probability of the YES outcome, in [0, 1]
            market_price: Current YES price, in (0, 1)
            fraction_multiplier: Fractional Kelly multiplier, in (0, 1]
            max_position_size: Cap on the recommended fraction

        Returns:
            KellyResult with side, edge and capped fraction

        Raises:
            KellyValidationError: If any input is outside its domain
        """
        try:
            _validate(estimated_probability, market_price, fraction_multiplier)
        except KellyValidationError as e:
            logger.warning(
                "Kelly input rejected",
                field=e.field,
                value=e.value,
                expected=e.expected,
            )
            raise

        edge = self.calculate_edge(estimated_probability, market_price)

        if edge.best_side is BetSide.NONE:
            logger.debug(
                "No positive edge",
                estimated_probability=estimated_probability,
                market_price=market_price,
            )
            return KellyResult(
                side=BetSide.NONE,
                edge=edge.best_edge,
                recommended_fraction=0.0,
                was_capped=False,
                kelly_multiplier=fraction_multiplier,
            )

        if edge.best_side is BetSide.YES:
            p = estimated_probability
            price = market_price
        else:
            p = 1 - estimated_probability
            price = 1 - market_price

        raw_kelly = (p - price) / (1 - price)
        adjusted = raw_kelly * fraction_multiplier

        was_capped = adjusted > max_position_size
        adjusted = max(0.0, min(adjusted, max_position_size))

        logger.debug(
            "Kelly sizing calculated",
            side=edge.best_side.value,
            edge=f"{edge.best_edge:.4f}",
            raw_kelly=f"{raw_kelly:.4f}",
            recommended_fraction=f"{adjusted:.4f}",
            was_capped=was_capped,
        )

        return KellyResult(
            side=edge.best_side,
            edge=edge.best_edge,
            recommended_fraction=adjusted,
            was_capped=was_capped,
            raw_kelly=raw_kelly,
            kelly_multiplier=fraction_multiplier,
            # EV per dollar = p * (1 - P) - (1 - p) * P = p - P
            expected_value=edge.best_edge,
            edge_percentage=edge.best_edge / price * 100,
        )


def describe_multiplier(multiplier: float) -> str:
    """Human-readable name for a Kelly multiplier."""
    if multiplier >= 1.0:
        return "Full Kelly (aggressive)"
    if multiplier >= 0.75:
        return "Three-quarter Kelly"
    if multiplier >= 0.5:
        return "Half Kelly (recommended)"
    if multiplier >= 0.25:
        return "Quarter Kelly (conservative)"
    return "Very conservative"


def format_recommendation(result: KellyResult, bankroll: float | None = None) -> str:
    """One-line summary of a Kelly result."""
    if not result.has_positive_edge:
        return "No edge - do not bet"

    text = (
        f"{result.side.value}: {result.recommended_fraction * 100:.1f}% of bankroll "
        f"({result.edge_percentage:.1f}% edge)"
    )
    if bankroll:
        text += f" = ${result.dollar_amount(bankroll):.2f}"
    if result.was_capped:
        text += " (capped)"
    return text
