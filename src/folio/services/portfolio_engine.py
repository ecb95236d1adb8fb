"""Portfolio engine for deriving holdings and the valuation timeline from the ledger.

Both folds replay the ledger from scratch on every call. Per-symbol running
state lives in a mapping owned by the call and discarded on return; the input
transactions are never mutated, so repeated calls return identical results.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from folio.core.numeric import ZERO, ONE, HUNDRED, SHARE_EPSILON, Number, to_decimal, safe_divide
from folio.domain.models import AssetClass, Transaction, TransactionType, sort_chronologically
from folio.domain.views import Holding, ValuationPoint

logger = logging.getLogger(__name__)

PriceMap = Mapping[str, Number]


def _lookup(mapping: PriceMap, symbol: str) -> Decimal:
    """Read a side-input value; missing or unusable entries count as 0."""
    try:
        return to_decimal(mapping.get(symbol))
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unusable side-input for {symbol}: {mapping.get(symbol)!r}")
        return ZERO


@dataclass
class _PositionAccumulator:
    """Running weighted-average-cost state for one symbol."""

    asset_class: AssetClass
    shares: Decimal = ZERO
    avg_cost: Decimal = ZERO
    total_cost: Decimal = ZERO
    realized_pl: Decimal = ZERO
    total_dividends: Decimal = ZERO
    last_price: Decimal = ZERO

    def buy(self, shares: Decimal, price: Decimal, fee: Decimal) -> None:
        self.total_cost += price * shares + fee
        self.shares += shares
        self.avg_cost = safe_divide(self.total_cost, self.shares)
        if price > ZERO:
            self.last_price = price

    def sell(self, shares: Decimal, price: Decimal, fee: Decimal) -> None:
        proceeds = price * shares - fee
        cost_basis = self.avg_cost * shares
        self.realized_pl += proceeds - cost_basis
        self.shares -= shares
        self.total_cost -= cost_basis
        # Absorb rounding residue left by a sell that closes the position
        if self.shares < SHARE_EPSILON:
            self.shares = ZERO
            self.total_cost = ZERO
        if price > ZERO:
            self.last_price = price

    def dividend(self, net_amount: Decimal) -> None:
        self.total_dividends += net_amount

    def split(self, ratio: Decimal) -> None:
        if ratio > ZERO:
            self.shares *= ratio
            self.avg_cost /= ratio
            self.last_price /= ratio

    @property
    def has_history(self) -> bool:
        return self.shares > ZERO or self.realized_pl != ZERO or self.total_dividends != ZERO

    def to_holding(self, symbol: str, live_price: Decimal, target: Decimal) -> Holding:
        current_price = live_price or self.last_price
        market_value = self.shares * current_price
        unrealized_pl = market_value - self.total_cost
        unrealized_pl_percent = (
            unrealized_pl / self.total_cost * HUNDRED if self.total_cost > ZERO else ZERO
        )
        return Holding(
            symbol=symbol,
            asset_class=self.asset_class,
            shares=self.shares,
            avg_cost=self.avg_cost,
            total_cost=self.total_cost,
            current_price=current_price,
            market_value=market_value,
            unrealized_pl=unrealized_pl,
            unrealized_pl_percent=unrealized_pl_percent,
            realized_pl=self.realized_pl,
            total_dividends=self.total_dividends,
            total_return=unrealized_pl + self.realized_pl + self.total_dividends,
            target_allocation=target,
        )


@dataclass
class _PriceMark:
    """Shares held and last traded price for one symbol on the timeline."""

    shares: Decimal = ZERO
    last_price: Decimal = ZERO


def aggregate_holdings(
    transactions: Iterable[Transaction],
    current_prices: Optional[PriceMap] = None,
    targets: Optional[PriceMap] = None,
) -> list[Holding]:
    """
    Fold the ledger into per-symbol holdings.

    Replays transactions oldest first (same-day records keep ledger order):
    - BUY adds price × shares + fee to the cost basis and recomputes avg cost
    - SELL realizes proceeds − avg cost × shares and releases that basis
    - DIVIDEND accumulates amount − fee
    - SPLIT multiplies shares and divides avg cost by the ratio

    current_price is the live price when one is supplied, else the last
    traded price adjusted for later splits (0 for a symbol never traded at a
    price). Symbols with no
    shares, no realized P/L and no dividends are dropped. Records without a
    symbol are skipped, and oversells are not validated.

    Returns holdings in order of first appearance.
    """
    ordered = sort_chronologically(transactions)
    current_prices = current_prices or {}
    targets = targets or {}

    positions: dict[str, _PositionAccumulator] = {}
    for txn in ordered:
        if not txn.txn_type.needs_symbol:
            continue
        if txn.is_malformed:
            logger.debug(f"Skipping {txn.txn_type.value} {txn.txn_id}: missing symbol")
            continue

        position = positions.get(txn.symbol)
        if position is None:
            position = positions[txn.symbol] = _PositionAccumulator(asset_class=txn.asset_class)

        if txn.txn_type == TransactionType.BUY:
            position.buy(txn.shares, txn.price_per_share, txn.fee)
        elif txn.txn_type == TransactionType.SELL:
            position.sell(txn.shares, txn.price_per_share, txn.fee)
        elif txn.txn_type == TransactionType.DIVIDEND:
            position.dividend(txn.net_amount)
        elif txn.txn_type == TransactionType.SPLIT:
            position.split(txn.ratio)

    return [
        position.to_holding(
            symbol,
            live_price=_lookup(current_prices, symbol),
            target=_lookup(targets, symbol),
        )
        for symbol, position in positions.items()
        if position.has_history
    ]


def build_timeline(
    transactions: Iterable[Transaction],
    current_prices: Optional[PriceMap] = None,
) -> list[ValuationPoint]:
    """
    Fold the ledger into a chronological series of valuation points.

    One point per transaction: invested is net deposits minus withdrawals,
    value is cash plus each position marked at its last traded price. Splits
    divide the last price by the ratio so the mark stays continuous. A final
    point (point_date=None) re-marks positions at current_prices, falling
    back to the last traded price.

    Values between trades are step changes driven only by the investor's own
    recorded prices, not a market-price history.
    """
    ordered = sort_chronologically(transactions)
    if not ordered:
        return []
    current_prices = current_prices or {}

    invested = ZERO
    cash = ZERO
    marks: dict[str, _PriceMark] = {}
    points: list[ValuationPoint] = []

    for txn in ordered:
        if txn.is_malformed:
            logger.debug(f"Skipping {txn.txn_type.value} {txn.txn_id}: missing symbol")
        elif txn.txn_type == TransactionType.DEPOSIT:
            cash += txn.amount
            invested += txn.amount
        elif txn.txn_type == TransactionType.WITHDRAW:
            cash -= txn.amount
            invested -= txn.amount
        elif txn.txn_type == TransactionType.DIVIDEND:
            cash += txn.amount
        else:
            mark = marks.setdefault(txn.symbol, _PriceMark())
            if txn.txn_type == TransactionType.SPLIT:
                ratio = txn.ratio if txn.ratio > ZERO else ONE
                mark.shares *= ratio
                if mark.last_price > ZERO:
                    mark.last_price /= ratio
            else:
                if txn.price_per_share > ZERO:
                    mark.last_price = txn.price_per_share
                cash += txn.net_cash_impact
                if txn.txn_type == TransactionType.BUY:
                    mark.shares += txn.shares
                else:
                    mark.shares -= txn.shares

        stock_value = sum((m.shares * m.last_price for m in marks.values()), ZERO)
        points.append(ValuationPoint(point_date=txn.txn_date, invested=invested, value=cash + stock_value))

    live_value = sum(
        (
            mark.shares * (_lookup(current_prices, symbol) or mark.last_price)
            for symbol, mark in marks.items()
        ),
        ZERO,
    )
    points.append(ValuationPoint(point_date=None, invested=invested, value=cash + live_value))
    return points
