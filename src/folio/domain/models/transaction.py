"""Ledger transaction domain models."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Iterable, Optional

from folio.core.numeric import ZERO, ONE, to_decimal
from folio.core.timezone import parse_calendar_date
from folio.domain.models.enums import TransactionType, AssetClass


@dataclass(frozen=True, kw_only=True)
class Transaction:
    """
    Ledger transaction entry (source of truth).

    One immutable variant per transaction type, each with its own named fields:
    - Buy/Sell: symbol, shares, price_per_share, fee
    - Dividend: symbol, amount (total cash received), fee, exchange_rate
    - Split: symbol, ratio (2 = 2-for-1)
    - Deposit/Withdraw: amount, exchange_rate

    All amounts are in the base currency. exchange_rate converts a flow to the
    secondary (local) currency at the time it happened.
    """

    txn_type: ClassVar[TransactionType]
    _decimal_fields: ClassVar[tuple[str, ...]] = ()

    txn_id: str
    txn_date: date
    asset_class: AssetClass = AssetClass.STOCK
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "txn_date", parse_calendar_date(self.txn_date))
        object.__setattr__(self, "asset_class", AssetClass(self.asset_class))
        for name in self._decimal_fields:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if "symbol" in self.__dataclass_fields__:
            symbol = (getattr(self, "symbol") or "").strip().upper()
            object.__setattr__(self, "symbol", symbol or None)

    @property
    def is_malformed(self) -> bool:
        """Return True if a holding-type record has no symbol."""
        return self.txn_type.needs_symbol and not getattr(self, "symbol", None)

    @property
    def net_cash_impact(self) -> Decimal:
        """
        Net cash impact of this transaction.

        Positive = cash added, Negative = cash removed.
        """
        return ZERO

    def to_flat(self) -> dict[str, Any]:
        """Return the flat (shares, price, fee) record shape used by CSV files."""
        return {
            "id": self.txn_id,
            "date": self.txn_date,
            "type": self.txn_type,
            "symbol": None,
            "shares": None,
            "price": None,
            "fee": None,
            "asset_class": self.asset_class,
            "exchange_rate": None,
            "notes": self.notes,
        }

    @staticmethod
    def from_flat(
        *,
        txn_id: str,
        txn_date: date | str,
        txn_type: TransactionType | str,
        symbol: Optional[str] = None,
        shares: Any = None,
        price: Any = None,
        fee: Any = None,
        asset_class: Optional[AssetClass | str] = None,
        exchange_rate: Any = None,
        notes: Optional[str] = None,
    ) -> "Transaction":
        """
        Build the right variant from the flat record shape.

        In the flat shape `price` is the per-share price for BUY/SELL and the
        total amount for DEPOSIT/WITHDRAW/DIVIDEND; `shares` is the ratio for
        SPLIT. A missing or zero exchange rate means 1.

        Raises:
            ValueError: if txn_type is not a known transaction type.
        """
        txn_type = TransactionType(txn_type)
        common: dict[str, Any] = {"txn_id": txn_id, "txn_date": txn_date, "notes": notes or None}
        if asset_class:
            common["asset_class"] = asset_class
        rate = to_decimal(exchange_rate) or ONE

        if txn_type == TransactionType.BUY:
            return Buy(**common, symbol=symbol, shares=shares, price_per_share=price, fee=fee)
        if txn_type == TransactionType.SELL:
            return Sell(**common, symbol=symbol, shares=shares, price_per_share=price, fee=fee)
        if txn_type == TransactionType.DIVIDEND:
            return Dividend(**common, symbol=symbol, amount=price, fee=fee, exchange_rate=rate)
        if txn_type == TransactionType.SPLIT:
            return Split(**common, symbol=symbol, ratio=shares)
        if txn_type == TransactionType.DEPOSIT:
            return Deposit(**common, amount=price, exchange_rate=rate)
        return Withdraw(**common, amount=price, exchange_rate=rate)


@dataclass(frozen=True, kw_only=True)
class Trade(Transaction):
    """Common shape of BUY and SELL."""

    _decimal_fields = ("shares", "price_per_share", "fee")

    symbol: Optional[str]
    shares: Decimal
    price_per_share: Decimal
    fee: Decimal = ZERO

    @property
    def gross_amount(self) -> Decimal:
        """Trade value before fees (shares × price)."""
        return self.shares * self.price_per_share

    def to_flat(self) -> dict[str, Any]:
        flat = super().to_flat()
        flat.update(
            symbol=self.symbol,
            shares=self.shares,
            price=self.price_per_share,
            fee=self.fee,
        )
        return flat


@dataclass(frozen=True, kw_only=True)
class Buy(Trade):
    txn_type = TransactionType.BUY

    @property
    def net_cash_impact(self) -> Decimal:
        return -(self.gross_amount + self.fee)


@dataclass(frozen=True, kw_only=True)
class Sell(Trade):
    txn_type = TransactionType.SELL

    @property
    def net_cash_impact(self) -> Decimal:
        return self.gross_amount - self.fee


@dataclass(frozen=True, kw_only=True)
class Dividend(Transaction):
    """Cash distribution; amount is the total received, not per share."""

    txn_type = TransactionType.DIVIDEND
    _decimal_fields = ("amount", "fee", "exchange_rate")

    symbol: Optional[str]
    amount: Decimal
    fee: Decimal = ZERO
    exchange_rate: Decimal = ONE

    @property
    def net_amount(self) -> Decimal:
        """Dividend after withholding/fees."""
        return self.amount - self.fee

    @property
    def net_cash_impact(self) -> Decimal:
        return self.amount

    def to_flat(self) -> dict[str, Any]:
        flat = super().to_flat()
        flat.update(
            symbol=self.symbol,
            price=self.amount,
            fee=self.fee,
            exchange_rate=self.exchange_rate,
        )
        return flat


@dataclass(frozen=True, kw_only=True)
class Split(Transaction):
    """Stock split; value-neutral by construction."""

    txn_type = TransactionType.SPLIT
    _decimal_fields = ("ratio",)

    symbol: Optional[str]
    ratio: Decimal

    def to_flat(self) -> dict[str, Any]:
        flat = super().to_flat()
        flat.update(symbol=self.symbol, shares=self.ratio, price=ZERO)
        return flat


@dataclass(frozen=True, kw_only=True)
class CashFlow(Transaction):
    """Common shape of DEPOSIT and WITHDRAW (external capital flows)."""

    _decimal_fields = ("amount", "exchange_rate")

    asset_class: AssetClass = AssetClass.CASH
    amount: Decimal
    exchange_rate: Decimal = ONE

    @property
    def local_amount(self) -> Decimal:
        """Amount converted at the flow's own exchange rate."""
        return self.amount * self.exchange_rate

    def to_flat(self) -> dict[str, Any]:
        flat = super().to_flat()
        flat.update(price=self.amount, exchange_rate=self.exchange_rate)
        return flat


@dataclass(frozen=True, kw_only=True)
class Deposit(CashFlow):
    txn_type = TransactionType.DEPOSIT

    @property
    def net_cash_impact(self) -> Decimal:
        return self.amount


@dataclass(frozen=True, kw_only=True)
class Withdraw(CashFlow):
    txn_type = TransactionType.WITHDRAW

    @property
    def net_cash_impact(self) -> Decimal:
        return -self.amount


def sort_chronologically(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Sort transactions by date, oldest first.

    The sort is stable, so same-day records keep their ledger order.

    Raises:
        TypeError: if transactions is None.
    """
    if transactions is None:
        raise TypeError("transactions must be an iterable of Transaction, not None")
    return sorted(transactions, key=lambda txn: txn.txn_date)
