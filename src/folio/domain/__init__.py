"""Domain layer - pure business models and derived views."""

from folio.domain.models import (
    Transaction,
    Buy,
    Sell,
    Dividend,
    Split,
    Deposit,
    Withdraw,
    FinancialGoal,
    TransactionType,
    AssetClass,
)

__all__ = [
    "Transaction",
    "Buy",
    "Sell",
    "Dividend",
    "Split",
    "Deposit",
    "Withdraw",
    "FinancialGoal",
    "TransactionType",
    "AssetClass",
]
