"""Scalar reductions over the ledger and holdings used app-wide."""

from decimal import Decimal
from typing import Iterable

from folio.core.numeric import ZERO, Number, to_decimal
from folio.domain.models import Transaction, TransactionType
from folio.domain.views import Holding


def cash_balance(transactions: Iterable[Transaction]) -> Decimal:
    """
    Cash left in the account after every ledger event.

    Deposits, sells and dividends add cash; withdrawals and buys remove it.
    Records without a required symbol are skipped, matching the replay
    engine. May be negative for an overdrawn ledger.
    """
    return sum(
        (txn.net_cash_impact for txn in transactions if not txn.is_malformed),
        ZERO,
    )


def invested_capital(transactions: Iterable[Transaction]) -> Decimal:
    """Net contributed capital: total deposits minus total withdrawals."""
    total = ZERO
    for txn in transactions:
        if txn.txn_type == TransactionType.DEPOSIT:
            total += txn.amount
        elif txn.txn_type == TransactionType.WITHDRAW:
            total -= txn.amount
    return total


def portfolio_value(holdings: Iterable[Holding]) -> Decimal:
    """Market value of all holdings (cash excluded)."""
    return sum((h.market_value for h in holdings), ZERO)


def net_worth(holdings: Iterable[Holding], transactions: Iterable[Transaction]) -> Decimal:
    """Market value of holdings plus cash balance."""
    return portfolio_value(holdings) + cash_balance(transactions)


def to_display_amount(amount: Number, rate: Number) -> Decimal:
    """
    Convert a base-currency amount for display.

    Presentation only: never feed the result back into ledger arithmetic.
    """
    return to_decimal(amount) * to_decimal(rate)
