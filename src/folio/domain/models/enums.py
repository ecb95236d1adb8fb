"""Enumerations for domain models."""

from enum import Enum


class TransactionType(str, Enum):
    """Types of ledger transactions."""

    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    DIVIDEND = "DIVIDEND"
    SPLIT = "SPLIT"

    @property
    def needs_symbol(self) -> bool:
        """Return True for types that refer to a holding."""
        return self not in (TransactionType.DEPOSIT, TransactionType.WITHDRAW)


class AssetClass(str, Enum):
    """Informational category tag for a holding."""

    STOCK = "Stock"
    CRYPTO = "Crypto"
    FUND = "Fund"
    ETF = "ETF"
    BOND = "Bond"
    REAL_ESTATE = "Real Estate"
    GOLD = "Gold"
    CASH = "Cash"
