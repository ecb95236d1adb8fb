"""Ledger service for transaction management."""

import logging
import uuid
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from folio.config.settings import Settings, get_settings
from folio.core.exceptions import (
    InsufficientCashError,
    InsufficientSharesError,
    NotFoundError,
    ValidationError,
)
from folio.core.numeric import ZERO
from folio.core.timezone import today_eastern
from folio.domain.models import AssetClass, Transaction, TransactionType
from folio.services.metrics import cash_balance
from folio.services.portfolio_engine import aggregate_holdings

logger = logging.getLogger(__name__)

# Types whose flat `price` is a total amount rather than a per-share price
_AMOUNT_TYPES = (TransactionType.DEPOSIT, TransactionType.WITHDRAW, TransactionType.DIVIDEND)


@dataclass
class TransactionCreate:
    """
    Input data for creating a transaction.

    - BUY/SELL use symbol, shares, price (per share) and fee
    - DIVIDEND uses symbol, amount (total received) and fee
    - SPLIT uses symbol and ratio
    - DEPOSIT/WITHDRAW use amount
    """

    txn_type: TransactionType
    txn_date: Optional[date] = None
    symbol: Optional[str] = None
    shares: Optional[Decimal] = None
    price: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    ratio: Optional[Decimal] = None
    fee: Decimal = Decimal("0")
    asset_class: Optional[AssetClass] = None
    exchange_rate: Optional[Decimal] = None
    notes: Optional[str] = None


@dataclass
class TransactionUpdate:
    """Partial update data for editing a transaction."""

    txn_date: Optional[date] = None
    symbol: Optional[str] = None
    shares: Optional[Decimal] = None
    price: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    ratio: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    asset_class: Optional[AssetClass] = None
    exchange_rate: Optional[Decimal] = None
    notes: Optional[str] = None


class LedgerService:
    """
    In-memory transaction ledger (the single source of truth).

    This is the admission layer: every record is validated here before it
    joins the ledger, because the derivation engine accepts whatever it is
    given. Storage is the caller's concern; snapshots handed to the engine
    are immutable tuples.
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        settings: Optional[Settings] = None,
    ):
        self._transactions: list[Transaction] = list(transactions or [])
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def __len__(self) -> int:
        return len(self._transactions)

    def transactions(self) -> tuple[Transaction, ...]:
        """Return a snapshot of the ledger in insertion order."""
        return tuple(self._transactions)

    def get_transaction(self, txn_id: str) -> Transaction:
        """Get transaction by ID."""
        return self._find(txn_id)[1]

    def add_transaction(self, data: TransactionCreate) -> Transaction:
        """
        Add a new transaction to the ledger.

        Validates input based on transaction type, then checks balances:
        - SELL may not exceed shares held (Settings.enforce_share_balance)
        - BUY/WITHDRAW may not overdraw cash (Settings.enforce_cash_balance)
        """
        self._validate_transaction_create(data)
        transaction = self._build(str(uuid.uuid4()), data)
        self._check_balances(transaction, self._transactions)

        self._transactions.append(transaction)
        logger.info(f"Added {transaction.txn_type.value} {transaction.txn_id} on {transaction.txn_date}")
        return transaction

    def edit_transaction(self, txn_id: str, patch: TransactionUpdate) -> Transaction:
        """
        Edit an existing transaction.

        The record is replaced by a new immutable one with the same ID and
        position in the ledger. Balance checks ignore the record being edited,
        so a SELL can keep the shares it already consumed.
        """
        index, existing = self._find(txn_id)
        data = self._to_create(existing)
        for patch_field in fields(patch):
            value = getattr(patch, patch_field.name)
            if value is not None:
                setattr(data, patch_field.name, value)

        self._validate_transaction_create(data)
        updated = self._build(existing.txn_id, data)
        others = self._transactions[:index] + self._transactions[index + 1:]
        self._check_balances(updated, others)

        self._transactions[index] = updated
        logger.info(f"Edited {updated.txn_type.value} {updated.txn_id}")
        return updated

    def delete_transaction(self, txn_id: str) -> None:
        """Remove a transaction from the ledger."""
        index, transaction = self._find(txn_id)
        del self._transactions[index]
        logger.info(f"Deleted {transaction.txn_type.value} {txn_id}")

    def import_transactions(self, transactions: Iterable[Transaction]) -> tuple[int, int]:
        """
        Merge already-built transactions (e.g. from a CSV import) by ID.

        A record whose ID is already in the ledger replaces that record in
        place; any other record is appended. Re-importing an exported backup
        therefore leaves the ledger unchanged. Balance checks are skipped: an
        imported history is taken as-is.

        Returns (added, updated) counts.
        """
        positions = {txn.txn_id: index for index, txn in enumerate(self._transactions)}
        added = updated = 0
        for transaction in transactions:
            index = positions.get(transaction.txn_id)
            if index is None:
                positions[transaction.txn_id] = len(self._transactions)
                self._transactions.append(transaction)
                added += 1
            else:
                self._transactions[index] = transaction
                updated += 1

        logger.info(f"Imported transactions: {added} added, {updated} updated")
        return added, updated

    def _find(self, txn_id: str) -> tuple[int, Transaction]:
        for index, transaction in enumerate(self._transactions):
            if transaction.txn_id == txn_id:
                return index, transaction
        raise NotFoundError("Transaction", txn_id)

    @staticmethod
    def _validate_transaction_create(data: TransactionCreate) -> None:
        """Validate transaction creation input."""
        txn_type = TransactionType(data.txn_type)
        label = txn_type.value

        if txn_type.needs_symbol and not (data.symbol or "").strip():
            raise ValidationError(f"{label} requires a symbol")

        if txn_type in (TransactionType.BUY, TransactionType.SELL):
            if data.shares is None or data.shares <= 0:
                raise ValidationError(f"{label} requires shares > 0")
            if data.price is None or data.price < 0:
                raise ValidationError(f"{label} requires price >= 0")
        elif txn_type == TransactionType.SPLIT:
            if data.ratio is None or data.ratio <= 0:
                raise ValidationError("SPLIT requires ratio > 0")
        elif data.amount is None or data.amount <= 0:
            raise ValidationError(f"{label} requires amount > 0")

        if data.fee is not None and data.fee < 0:
            raise ValidationError("Fees cannot be negative")
        if data.exchange_rate is not None and data.exchange_rate <= 0:
            raise ValidationError("Exchange rate must be > 0")

    def _check_balances(self, transaction: Transaction, others: list[Transaction]) -> None:
        settings = self.settings

        if transaction.txn_type == TransactionType.SELL and settings.enforce_share_balance:
            held = next(
                (h.shares for h in aggregate_holdings(others) if h.symbol == transaction.symbol),
                ZERO,
            )
            if transaction.shares > held:
                logger.warning(f"Rejected SELL of {transaction.shares} {transaction.symbol}: {held} held")
                raise InsufficientSharesError(transaction.symbol, str(transaction.shares), str(held))

        if (
            transaction.txn_type in (TransactionType.BUY, TransactionType.WITHDRAW)
            and settings.enforce_cash_balance
        ):
            available = cash_balance(others)
            if available + transaction.net_cash_impact < ZERO:
                logger.warning(f"Rejected {transaction.txn_type.value}: {available} cash available")
                raise InsufficientCashError(str(-transaction.net_cash_impact), str(available))

    @staticmethod
    def _build(txn_id: str, data: TransactionCreate) -> Transaction:
        txn_type = TransactionType(data.txn_type)
        return Transaction.from_flat(
            txn_id=txn_id,
            txn_date=data.txn_date or today_eastern(),
            txn_type=txn_type,
            symbol=data.symbol,
            shares=data.ratio if txn_type == TransactionType.SPLIT else data.shares,
            price=data.amount if txn_type in _AMOUNT_TYPES else data.price,
            fee=data.fee,
            asset_class=data.asset_class,
            exchange_rate=data.exchange_rate,
            notes=data.notes,
        )

    @staticmethod
    def _to_create(transaction: Transaction) -> TransactionCreate:
        flat = transaction.to_flat()
        is_split = transaction.txn_type == TransactionType.SPLIT
        uses_amount = transaction.txn_type in _AMOUNT_TYPES
        return TransactionCreate(
            txn_type=transaction.txn_type,
            txn_date=transaction.txn_date,
            symbol=flat["symbol"],
            shares=None if is_split else flat["shares"],
            ratio=flat["shares"] if is_split else None,
            price=None if (uses_amount or is_split) else flat["price"],
            amount=flat["price"] if uses_amount else None,
            fee=flat["fee"] or ZERO,
            asset_class=transaction.asset_class,
            exchange_rate=flat["exchange_rate"],
            notes=transaction.notes,
        )
