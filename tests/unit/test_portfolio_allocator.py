"""Tests for portfolio Kelly allocation."""

import pytest
from structlog.testing import capture_logs

from foresight.risk.kelly_allocator import BetSide, KellyValidationError
from foresight.risk.portfolio_allocator import MarketInput, PortfolioAllocator


@pytest.fixture
def allocator():
    return PortfolioAllocator()


def _strong_markets(n: int) -> list[MarketInput]:
    """Markets with full Kelly 0.8 each (p=0.9 at 0.5)."""
    return [MarketInput(f"m{i}", estimated_probability=0.9, yes_price=0.5) for i in range(n)]


class TestOptimize:
    """Tests for optimize()."""

    def test_empty_portfolio(self, allocator):
        result = allocator.optimize(10_000, [])

        assert result.total_allocation == 0
        assert result.positions == []
        assert not result.was_scaled
        assert result.scale_factor == 1.0
        assert result.total_dollar_amount == 0

    def test_single_market_half_kelly_clamped(self, allocator):
        market = MarketInput("btc-100k", estimated_probability=0.7, yes_price=0.5, question="BTC > 100k?")
        result = allocator.optimize(10_000, [market])

        position = result.positions[0]
        assert position.side == BetSide.YES
        assert position.raw_fraction == pytest.approx(0.4)
        assert position.adjusted_fraction == pytest.approx(0.15)
        assert position.dollar_amount == pytest.approx(1500)
        assert position.question == "BTC > 100k?"
        assert position.expected_value == pytest.approx(0.2)
        assert not result.was_scaled
        assert result.total_allocation == pytest.approx(0.15)

    def test_uncapped_half_kelly(self, allocator):
        result = allocator.optimize(
            1_000,
            [MarketInput("m", estimated_probability=0.6, yes_price=0.5)],
        )

        assert result.positions[0].adjusted_fraction == pytest.approx(0.1)
        assert result.positions[0].dollar_amount == pytest.approx(100)

    def test_scaled_when_over_allocated(self, allocator):
        result = allocator.optimize(10_000, _strong_markets(5))

        # 5 * 0.8 * 0.5 = 2.0 target, scaled by 0.4
        assert result.was_scaled
        assert result.scale_factor == pytest.approx(0.4)
        assert result.total_allocation <= 0.8

    def test_position_caps_bind_after_scaling(self, allocator):
        result = allocator.optimize(10_000, _strong_markets(5))

        # Each scaled position is 0.16, then clamped to 0.15
        for position in result.positions:
            assert position.adjusted_fraction == pytest.approx(0.15)
        assert result.total_allocation == pytest.approx(0.75)
        assert result.total_allocation < 0.8

    def test_scaled_total_reaches_cap_without_position_cap(self, allocator):
        result = allocator.optimize(10_000, _strong_markets(5), max_position_size=1.0)

        assert result.total_allocation == pytest.approx(0.8)
        assert result.total_dollar_amount == pytest.approx(8_000)

    def test_custom_total_cap(self, allocator):
        result = allocator.optimize(
            10_000, _strong_markets(4),
            fraction_multiplier=1.0,
            max_position_size=1.0,
            max_total_allocation=0.5,
        )

        assert result.was_scaled
        assert result.total_allocation == pytest.approx(0.5)

    def test_no_edge_markets_get_zero(self, allocator):
        markets = [
            MarketInput("fair", estimated_probability=0.5, yes_price=0.5),
            MarketInput("edge", estimated_probability=0.6, yes_price=0.5),
        ]
        result = allocator.optimize(10_000, markets)

        fair, edge = result.positions
        assert fair.side == BetSide.NONE
        assert fair.adjusted_fraction == 0
        assert fair.dollar_amount == 0
        assert edge.adjusted_fraction == pytest.approx(0.1)
        assert [p.market_id for p in result.active_positions] == ["edge"]

    def test_no_side_positions(self, allocator):
        result = allocator.optimize(
            10_000,
            [MarketInput("m", estimated_probability=0.2, yes_price=0.5)],
        )

        position = result.positions[0]
        assert position.side == BetSide.NO
        assert position.raw_fraction == pytest.approx(0.6)
        assert position.adjusted_fraction == pytest.approx(0.15)

    def test_positions_keep_input_order(self, allocator):
        markets = [
            MarketInput(f"m{i}", estimated_probability=p, yes_price=0.5)
            for i, p in enumerate((0.55, 0.45, 0.5, 0.8))
        ]
        result = allocator.optimize(5_000, markets)

        assert [p.market_id for p in result.positions] == ["m0", "m1", "m2", "m3"]

    def test_invalid_market_propagates_validation_error(self, allocator):
        markets = [
            MarketInput("ok", estimated_probability=0.6, yes_price=0.5),
            MarketInput("bad", estimated_probability=0.6, yes_price=1.0),
        ]

        with capture_logs() as logs:
            with pytest.raises(KellyValidationError, match="market_price"):
                allocator.optimize(10_000, markets)

        rejected = [e for e in logs if e["event"] == "Portfolio market rejected"]
        assert rejected[0]["market_id"] == "bad"

    def test_scaling_is_logged(self, allocator):
        with capture_logs() as logs:
            allocator.optimize(10_000, _strong_markets(5))

        events = {e["event"] for e in logs}
        assert "Portfolio allocation scaled down" in events
        assert "Position capped by max position size" in events

    def test_calls_do_not_share_positions(self, allocator):
        first = allocator.optimize(10_000, _strong_markets(1))
        second = allocator.optimize(20_000, _strong_markets(1))

        assert first.positions[0] is not second.positions[0]
        assert first.positions[0].dollar_amount == pytest.approx(1_500)
        assert second.positions[0].dollar_amount == pytest.approx(3_000)
