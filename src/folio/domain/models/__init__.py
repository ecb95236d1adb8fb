"""Domain models package."""

from folio.domain.models.enums import TransactionType, AssetClass
from folio.domain.models.transaction import (
    Transaction,
    Trade,
    Buy,
    Sell,
    Dividend,
    Split,
    CashFlow,
    Deposit,
    Withdraw,
    sort_chronologically,
)
from folio.domain.models.goal import FinancialGoal
from folio.domain.models.portfolio import Portfolio

__all__ = [
    "TransactionType",
    "AssetClass",
    "Transaction",
    "Trade",
    "Buy",
    "Sell",
    "Dividend",
    "Split",
    "CashFlow",
    "Deposit",
    "Withdraw",
    "sort_chronologically",
    "FinancialGoal",
    "Portfolio",
]
