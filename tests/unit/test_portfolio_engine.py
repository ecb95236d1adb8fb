"""
Unit tests for the portfolio engine.

Tests cover:
- Weighted-average cost holdings from BUY/SELL/DIVIDEND/SPLIT
- Live price fallback and target allocations
- Share residue clamping and malformed records
- Valuation timeline replay and the trailing "now" point
- Idempotence of both folds
"""

import pytest
from datetime import date
from decimal import Decimal

from folio.domain.models import AssetClass
from folio.services import aggregate_holdings, build_timeline

from tests.conftest import (
    make_buy,
    make_sell,
    make_dividend,
    make_split,
    make_deposit,
    make_withdraw,
    assert_decimal_equal,
)


def _by_symbol(holdings):
    return {h.symbol: h for h in holdings}


# =============================================================================
# HOLDINGS - COST BASIS
# =============================================================================


class TestHoldingsCostBasis:
    """Tests for the weighted-average cost fold."""

    def test_empty_ledger_has_no_holdings(self):
        """
        GIVEN an empty ledger
        WHEN I aggregate holdings
        THEN the result is empty
        """
        assert aggregate_holdings([], {}) == []

    def test_none_ledger_raises_type_error(self):
        """
        GIVEN no ledger at all
        WHEN I aggregate holdings
        THEN a TypeError is raised
        """
        with pytest.raises(TypeError):
            aggregate_holdings(None, {})

    def test_buy_with_fee_overdraws_cash_without_blocking(self):
        """
        GIVEN a deposit of 1000 and a buy of 10 @ 100 with fee 5
        WHEN I aggregate holdings
        THEN the fee is part of the cost basis
        """
        ledger = [
            make_deposit("1000"),
            make_buy("AAPL", "10", "100", fee="5"),
        ]

        holding = _by_symbol(aggregate_holdings(ledger, {}))["AAPL"]

        assert holding.shares == Decimal("10")
        assert holding.total_cost == Decimal("1005")
        assert holding.avg_cost == Decimal("100.5")

    def test_partial_sell_realizes_against_average_cost(self):
        """
        GIVEN buy 10 @ 100 then sell 5 @ 120
        WHEN I aggregate holdings
        THEN realized P/L is 100 and the remaining basis is 500
        """
        ledger = [
            make_deposit("2000", txn_date=date(2024, 1, 1)),
            make_buy("AAPL", "10", "100", txn_date=date(2024, 1, 2)),
            make_sell("AAPL", "5", "120", txn_date=date(2024, 1, 3)),
        ]

        holding = _by_symbol(aggregate_holdings(ledger, {}))["AAPL"]

        assert holding.realized_pl == Decimal("100")
        assert holding.shares == Decimal("5")
        assert holding.total_cost == Decimal("500")
        assert holding.avg_cost == Decimal("100")

    def test_multiple_buys_average_cost(self):
        """
        GIVEN buys of 10 @ 100 and 10 @ 200
        WHEN I aggregate holdings
        THEN average cost is 150
        """
        ledger = [
            make_buy("AAPL", "10", "100", txn_date=date(2024, 1, 1)),
            make_buy("AAPL", "10", "200", txn_date=date(2024, 1, 2)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.avg_cost == Decimal("150")
        assert holding.total_cost == Decimal("3000")

    def test_cost_basis_equals_shares_times_average(self):
        """
        GIVEN an open position after several trades
        WHEN I aggregate holdings
        THEN total cost equals shares × average cost
        """
        ledger = [
            make_buy("AAPL", "7", "101.37", fee="1.25", txn_date=date(2024, 1, 1)),
            make_buy("AAPL", "3", "99.10", fee="0.75", txn_date=date(2024, 1, 5)),
            make_sell("AAPL", "4", "110", fee="1", txn_date=date(2024, 2, 1)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert_decimal_equal(holding.total_cost, holding.shares * holding.avg_cost, Decimal("0.000001"))

    def test_sell_fee_reduces_realized_pl(self):
        """
        GIVEN a sell at cost with a fee
        WHEN I aggregate holdings
        THEN realized P/L is minus the fee
        """
        ledger = [
            make_buy("AAPL", "10", "100", txn_date=date(2024, 1, 1)),
            make_sell("AAPL", "10", "100", fee="5", txn_date=date(2024, 1, 2)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.realized_pl == Decimal("-5")
        assert holding.shares == Decimal("0")

    def test_sell_below_average_cost_lowers_realized_pl(self):
        """
        GIVEN 10 shares at an average cost of 100
        WHEN I sell 4 at 90 with no fee
        THEN realized P/L drops by 40
        """
        ledger = [
            make_buy("AAPL", "10", "100", txn_date=date(2024, 1, 1)),
            make_sell("AAPL", "4", "90", txn_date=date(2024, 1, 2)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.realized_pl == Decimal("-40")
        assert holding.shares == Decimal("6")
        assert holding.total_cost == Decimal("600")

    def test_sell_at_average_cost_without_fee_leaves_realized_pl(self):
        """
        GIVEN 10 shares bought at 100 and 120 (average 110)
        WHEN I sell 5 at 110 with no fee
        THEN realized P/L stays at zero
        """
        ledger = [
            make_buy("AAPL", "5", "100", txn_date=date(2024, 1, 1)),
            make_buy("AAPL", "5", "120", txn_date=date(2024, 1, 2)),
            make_sell("AAPL", "5", "110", txn_date=date(2024, 1, 3)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.realized_pl == Decimal("0")
        assert holding.shares == Decimal("5")
        assert holding.avg_cost == Decimal("110")

    def test_oversell_is_not_blocked(self):
        """
        GIVEN a sell of more shares than were bought
        WHEN I aggregate holdings
        THEN no error is raised and the negative remainder is clamped

        Any share count under the 1e-6 residue threshold closes the
        position, a negative one included, so shares and cost basis read 0
        while the sell still realizes 1100 - 10 x 100.
        """
        ledger = [
            make_buy("AAPL", "5", "100", txn_date=date(2024, 1, 1)),
            make_sell("AAPL", "10", "110", txn_date=date(2024, 1, 2)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.shares == Decimal("0")
        assert holding.total_cost == Decimal("0")
        assert holding.realized_pl == Decimal("100")


# =============================================================================
# HOLDINGS - DIVIDENDS / SPLITS / RESIDUE
# =============================================================================


class TestHoldingsEvents:
    """Tests for dividends, splits and closed positions."""

    def test_split_keeps_cost_basis(self):
        """
        GIVEN buy 10 @ 50 then a 2-for-1 split
        WHEN I aggregate holdings
        THEN shares double, average cost halves and total cost is unchanged
        """
        ledger = [
            make_buy("X", "10", "50", txn_date=date(2024, 1, 1)),
            make_split("X", "2", txn_date=date(2024, 2, 1)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.shares == Decimal("20")
        assert holding.avg_cost == Decimal("25")
        assert holding.total_cost == Decimal("500")

    def test_split_adjusts_fallback_price(self):
        """
        GIVEN a split after the last trade and no live price
        WHEN I aggregate holdings
        THEN the fallback price is split-adjusted so value is unchanged
        """
        ledger = [
            make_buy("X", "10", "50", txn_date=date(2024, 1, 1)),
            make_split("X", "2", txn_date=date(2024, 2, 1)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.current_price == Decimal("25")
        assert holding.market_value == Decimal("500")

    def test_non_positive_split_ratio_is_ignored(self):
        """
        GIVEN a split with ratio 0
        WHEN I aggregate holdings
        THEN the position is unchanged
        """
        ledger = [
            make_buy("X", "10", "50", txn_date=date(2024, 1, 1)),
            make_split("X", "0", txn_date=date(2024, 2, 1)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.shares == Decimal("10")
        assert holding.avg_cost == Decimal("50")

    def test_dividend_net_of_fee(self):
        """
        GIVEN a dividend of 20 with a 3 withholding fee
        WHEN I aggregate holdings
        THEN total dividends is 17 and feeds total return
        """
        ledger = [
            make_buy("KO", "10", "60", txn_date=date(2024, 1, 1)),
            make_dividend("KO", "20", fee="3", txn_date=date(2024, 3, 1)),
        ]

        holding = aggregate_holdings(ledger, {"KO": Decimal("60")})[0]

        assert holding.total_dividends == Decimal("17")
        assert holding.total_return == Decimal("17")

    def test_dividend_only_symbol_is_kept(self):
        """
        GIVEN a dividend for a symbol never bought
        WHEN I aggregate holdings
        THEN the symbol is listed with zero shares
        """
        holdings = aggregate_holdings([make_dividend("T", "4")], {})

        assert len(holdings) == 1
        assert holdings[0].shares == Decimal("0")
        assert holdings[0].total_dividends == Decimal("4")

    def test_tiny_residue_closes_position(self):
        """
        GIVEN a sell that leaves less than 1e-6 shares
        WHEN I aggregate holdings
        THEN shares and total cost are exactly zero
        """
        ledger = [
            make_buy("BTC", "1", "10", txn_date=date(2024, 1, 1)),
            make_sell("BTC", "0.9999995", "12", txn_date=date(2024, 1, 2)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        assert holding.shares == Decimal("0")
        assert holding.total_cost == Decimal("0")
        assert holding.realized_pl > 0

    def test_flat_round_trip_position_is_dropped(self):
        """
        GIVEN a buy and sell at the same price with no fees
        WHEN I aggregate holdings
        THEN the symbol has no history and is dropped
        """
        ledger = [
            make_buy("AAPL", "10", "100", txn_date=date(2024, 1, 1)),
            make_sell("AAPL", "10", "100", txn_date=date(2024, 1, 2)),
        ]

        assert aggregate_holdings(ledger, {}) == []

    def test_missing_symbol_is_skipped(self):
        """
        GIVEN a BUY without a symbol
        WHEN I aggregate holdings
        THEN it is ignored
        """
        ledger = [make_buy(None, "10", "100"), make_buy("AAPL", "1", "100")]

        holdings = aggregate_holdings(ledger, {})

        assert [h.symbol for h in holdings] == ["AAPL"]


# =============================================================================
# HOLDINGS - PRICES / TARGETS / ORDERING
# =============================================================================


class TestHoldingsValuation:
    """Tests for valuation inputs and ordering."""

    def test_live_price_overrides_last_trade(self):
        """
        GIVEN a live price for a held symbol
        WHEN I aggregate holdings
        THEN market value and unrealized P/L use it
        """
        ledger = [make_buy("AAPL", "10", "100")]

        holding = aggregate_holdings(ledger, {"AAPL": Decimal("120")})[0]

        assert holding.current_price == Decimal("120")
        assert holding.market_value == Decimal("1200")
        assert holding.unrealized_pl == Decimal("200")
        assert holding.unrealized_pl_percent == Decimal("20")

    def test_zero_live_price_falls_back_to_last_trade(self):
        """
        GIVEN a live price of 0
        WHEN I aggregate holdings
        THEN the last traded price is used
        """
        ledger = [make_buy("AAPL", "10", "100")]

        holding = aggregate_holdings(ledger, {"AAPL": 0})[0]

        assert holding.current_price == Decimal("100")

    def test_unusable_live_price_is_ignored(self):
        """
        GIVEN a NaN live price
        WHEN I aggregate holdings
        THEN the last traded price is used and nothing is NaN
        """
        ledger = [make_buy("AAPL", "10", "100")]

        holding = aggregate_holdings(ledger, {"AAPL": float("nan")})[0]

        assert holding.current_price == Decimal("100")
        assert holding.market_value.is_finite()

    def test_zero_cost_position_has_zero_percent(self):
        """
        GIVEN shares received at price 0
        WHEN I aggregate holdings
        THEN unrealized P/L percent is 0 rather than a division error
        """
        ledger = [make_buy("GIFT", "5", "0")]

        holding = aggregate_holdings(ledger, {"GIFT": Decimal("10")})[0]

        assert holding.unrealized_pl == Decimal("50")
        assert holding.unrealized_pl_percent == Decimal("0")

    def test_targets_are_attached(self):
        """
        GIVEN a target map
        WHEN I aggregate holdings
        THEN each holding carries its target, defaulting to 0
        """
        ledger = [make_buy("AAPL", "1", "100"), make_buy("MSFT", "1", "100")]

        holdings = _by_symbol(aggregate_holdings(ledger, {}, {"AAPL": Decimal("60")}))

        assert holdings["AAPL"].target_allocation == Decimal("60")
        assert holdings["MSFT"].target_allocation == Decimal("0")

    def test_asset_class_from_first_record(self):
        """
        GIVEN a crypto buy
        WHEN I aggregate holdings
        THEN the holding is tagged Crypto
        """
        ledger = [make_buy("BTC", "1", "30000", asset_class=AssetClass.CRYPTO)]

        assert aggregate_holdings(ledger, {})[0].asset_class == AssetClass.CRYPTO

    def test_replay_is_chronological_with_stable_ties(self):
        """
        GIVEN a ledger entered out of order with a same-day buy and sell
        WHEN I aggregate holdings
        THEN records replay by date, same-day records in ledger order
        """
        ledger = [
            make_sell("AAPL", "5", "120", txn_date=date(2024, 2, 1)),
            make_buy("AAPL", "10", "100", txn_date=date(2024, 2, 1)),
            make_buy("AAPL", "10", "90", txn_date=date(2024, 1, 1)),
        ]

        holding = aggregate_holdings(ledger, {})[0]

        # Jan buy @ 90, then sell 5 @ 120 against avg 90, then buy 10 @ 100
        assert holding.realized_pl == Decimal("150")
        assert holding.shares == Decimal("15")

    def test_aggregation_is_idempotent(self, sample_ledger):
        """
        GIVEN the same ledger
        WHEN I aggregate twice
        THEN results are equal and the ledger is untouched
        """
        snapshot = list(sample_ledger)

        first = aggregate_holdings(sample_ledger, {"AAPL": Decimal("190")})
        second = aggregate_holdings(sample_ledger, {"AAPL": Decimal("190")})

        assert first == second
        assert sample_ledger == snapshot


# =============================================================================
# TIMELINE
# =============================================================================


class TestValuationTimeline:
    """Tests for the valuation timeline builder."""

    def test_empty_ledger_has_no_points(self):
        """
        GIVEN an empty ledger
        WHEN I build the timeline
        THEN there are no points, not even "now"
        """
        assert build_timeline([], {}) == []

    def test_deposits_only(self):
        """
        GIVEN deposits of 1000 then 500
        WHEN I build the timeline
        THEN invested and value step 1000, 1500, then the "now" point
        """
        ledger = [
            make_deposit("1000", txn_date=date(2024, 1, 1)),
            make_deposit("500", txn_date=date(2024, 2, 1)),
        ]

        points = build_timeline(ledger, {})

        assert len(points) == 3
        assert (points[0].invested, points[0].value) == (Decimal("1000"), Decimal("1000"))
        assert (points[1].invested, points[1].value) == (Decimal("1500"), Decimal("1500"))
        assert points[2].is_now
        assert points[2].label == "Now"
        assert points[0].label == "2024-01-01"

    def test_buy_marks_at_trade_price(self):
        """
        GIVEN a deposit then a buy
        WHEN I build the timeline
        THEN value is cash plus shares at the last trade price
        """
        ledger = [
            make_deposit("1000", txn_date=date(2024, 1, 1)),
            make_buy("AAPL", "10", "50", fee="2", txn_date=date(2024, 1, 2)),
        ]

        points = build_timeline(ledger, {"AAPL": Decimal("60")})

        assert points[1].value == Decimal("998")
        assert points[1].invested == Decimal("1000")
        # Now: 498 cash + 10 × 60
        assert points[-1].value == Decimal("1098")

    def test_invested_moves_only_on_funding(self):
        """
        GIVEN trades, a dividend and a withdrawal
        WHEN I build the timeline
        THEN invested changes only on DEPOSIT and WITHDRAW
        """
        ledger = [
            make_deposit("1000", txn_date=date(2024, 1, 1)),
            make_buy("AAPL", "5", "100", txn_date=date(2024, 1, 2)),
            make_dividend("AAPL", "10", fee="1", txn_date=date(2024, 1, 3)),
            make_sell("AAPL", "5", "110", txn_date=date(2024, 1, 4)),
            make_withdraw("200", txn_date=date(2024, 1, 5)),
        ]

        points = build_timeline(ledger, {})

        assert [p.invested for p in points] == [
            Decimal("1000"),
            Decimal("1000"),
            Decimal("1000"),
            Decimal("1000"),
            Decimal("800"),
            Decimal("800"),
        ]
        # Dividend fee is ignored on the timeline
        assert points[2].value == Decimal("1010")
        assert points[4].value == Decimal("860")

    def test_split_is_value_neutral(self):
        """
        GIVEN a split after a buy
        WHEN I build the timeline
        THEN value is the same before and after the split
        """
        ledger = [
            make_buy("X", "10", "50", txn_date=date(2024, 1, 1)),
            make_split("X", "2", txn_date=date(2024, 2, 1)),
        ]

        points = build_timeline(ledger, {})

        assert points[0].value == points[1].value == points[2].value

    def test_zero_ratio_split_treated_as_one(self):
        """
        GIVEN a split with ratio 0
        WHEN I build the timeline
        THEN value is unchanged
        """
        ledger = [
            make_buy("X", "10", "50", txn_date=date(2024, 1, 1)),
            make_split("X", "0", txn_date=date(2024, 2, 1)),
        ]

        points = build_timeline(ledger, {})

        assert points[1].value == points[0].value

    def test_zero_price_trade_keeps_last_price(self):
        """
        GIVEN a buy at price 0 after a priced buy
        WHEN I build the timeline
        THEN the position is still marked at the earlier price
        """
        ledger = [
            make_buy("X", "10", "50", txn_date=date(2024, 1, 1)),
            make_buy("X", "5", "0", txn_date=date(2024, 1, 2)),
        ]

        points = build_timeline(ledger, {})

        # cash -500, 15 shares @ 50
        assert points[1].value == Decimal("250")

    def test_malformed_records_still_emit_points(self):
        """
        GIVEN a dividend without a symbol
        WHEN I build the timeline
        THEN its cash is ignored but a point is still emitted
        """
        ledger = [
            make_deposit("100", txn_date=date(2024, 1, 1)),
            make_dividend(None, "10", txn_date=date(2024, 1, 2)),
        ]

        points = build_timeline(ledger, {})

        assert len(points) == 3
        assert points[1].value == Decimal("100")

    def test_timeline_is_chronological(self):
        """
        GIVEN a ledger entered out of order
        WHEN I build the timeline
        THEN dated points are in date order
        """
        ledger = [
            make_deposit("500", txn_date=date(2024, 3, 1)),
            make_deposit("1000", txn_date=date(2024, 1, 1)),
        ]

        points = build_timeline(ledger, {})

        assert [p.point_date for p in points] == [date(2024, 1, 1), date(2024, 3, 1), None]

    def test_timeline_is_idempotent(self, sample_ledger):
        """
        GIVEN the same ledger and prices
        WHEN I build the timeline twice
        THEN both results are equal
        """
        prices = {"AAPL": Decimal("200")}

        assert build_timeline(sample_ledger, prices) == build_timeline(sample_ledger, prices)
