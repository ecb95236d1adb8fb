"""CSV import functionality."""

import csv
import io
import logging
import re
import uuid
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from folio.core.exceptions import AppError, ValidationError
from folio.core.timezone import parse_calendar_date, today_eastern
from folio.domain.models import AssetClass, Transaction, TransactionType
from folio.domain.views import ImportSummary

if TYPE_CHECKING:
    from folio.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

# Export column order; the importer also accepts the aliases below
CSV_COLUMNS = [
    "ID",
    "Date",
    "Type",
    "Symbol",
    "Shares",
    "Price",
    "Fee",
    "Asset Class",
    "Exchange Rate",
    "Notes",
    "Total Value",
]

# Lower-cased header -> canonical field
HEADER_ALIASES = {
    "qty": "shares",
    "quantity": "shares",
    "units": "shares",
    "count": "shares",
    "cost": "price",
    "rate": "price",
    "price per share": "price",
    "unit price": "price",
    "amount": "total value",
    "total": "total value",
    "value": "total value",
    "total amount": "total value",
    "market value": "total value",
    "ticker": "symbol",
    "stock": "symbol",
    "asset": "symbol",
    "transaction type": "type",
    "action": "type",
    "operation": "type",
    "time": "date",
    "timestamp": "date",
    "commission": "fee",
    "note": "notes",
}

_NON_NUMERIC = re.compile(r"[^0-9.\-]")

# Types whose flat price column holds the total amount
_AMOUNT_TYPES = (TransactionType.DEPOSIT, TransactionType.WITHDRAW, TransactionType.DIVIDEND)


def normalize_header(header: str) -> str:
    """Map a raw CSV header to its canonical field name."""
    lower = header.strip().strip("\"'").lower()
    return HEADER_ALIASES.get(lower, lower)


class CsvImporter:
    """
    CSV importer for bulk transaction loading.

    Accepts the exporter's own format as well as hand-made files using common
    header aliases (Qty, Ticker, Action, Amount, ...). Numbers may carry
    currency symbols and thousands separators.
    """

    def __init__(self, ledger_service: Optional["LedgerService"] = None):
        self._ledger = ledger_service

    def import_csv(self, path: str) -> tuple[list[Transaction], ImportSummary]:
        """
        Import transactions from a CSV file.

        When the importer was given a LedgerService, the parsed transactions
        are merged into it by ID; updated_count reports rows that replaced an
        existing record.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise ValidationError(f"File not found: {path}")

        text = file_path.read_text(encoding="utf-8")
        transactions, summary = self.parse_text(text)

        if self._ledger is not None and transactions:
            _, summary.updated_count = self._ledger.import_transactions(transactions)
        logger.info(
            f"Imported {summary.imported_count} rows from {file_path.name} "
            f"({summary.updated_count} updated, {summary.skipped_count} skipped, {summary.error_count} errors)"
        )
        return transactions, summary

    def parse_text(self, text: str) -> tuple[list[Transaction], ImportSummary]:
        """
        Parse CSV text into transactions.

        Rows without a date or type are skipped; rows that cannot be turned
        into a transaction are reported as errors. Nothing here raises for
        bad rows.
        """
        summary = ImportSummary(import_batch_id=str(uuid.uuid4()))
        transactions: list[Transaction] = []

        reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
        rows = [(line_num, row) for line_num, row in enumerate(reader, start=1) if any(c.strip() for c in row)]
        if not rows:
            return transactions, summary

        headers = [normalize_header(h) for h in rows[0][1]]

        for row_num, values in rows[1:]:
            record = {
                header: value.strip()
                for header, value in zip(headers, values)
                if value.strip()
            }
            if "date" not in record or "type" not in record:
                summary.skipped_count += 1
                continue
            try:
                transactions.append(self._build_row(record))
                summary.imported_count += 1
            except (AppError, ValueError, TypeError) as e:
                summary.error_count += 1
                summary.errors.append(f"Row {row_num}: {str(e)}")

        return transactions, summary

    def _build_row(self, record: dict[str, str]) -> Transaction:
        """Build a single transaction from a normalized CSV row."""
        try:
            txn_type = TransactionType(record["type"].upper())
        except ValueError:
            raise ValidationError(f"Invalid transaction type: {record['type']}")

        shares = self._parse_number(record.get("shares"))
        price = self._parse_number(record.get("price"))
        total = self._parse_number(record.get("total value")) or Decimal("0")

        # Hand-made files often carry only a total
        if not price and total > 0:
            if txn_type in (TransactionType.BUY, TransactionType.SELL):
                if shares and shares > 0:
                    price = total / shares
            elif txn_type in _AMOUNT_TYPES:
                price = total

        return Transaction.from_flat(
            txn_id=record.get("id") or str(uuid.uuid4()),
            txn_date=self._parse_date(record["date"]),
            txn_type=txn_type,
            symbol=record.get("symbol"),
            shares=shares,
            price=price,
            fee=self._parse_number(record.get("fee")),
            asset_class=self._parse_asset_class(record.get("asset class")),
            exchange_rate=self._parse_number(record.get("exchange rate")),
            notes=record.get("notes"),
        )

    @staticmethod
    def _parse_number(value: Optional[str]) -> Optional[Decimal]:
        """
        Parse a lenient decimal value, returning None for missing cells.

        Currency symbols, thousands separators and spaces are dropped; text
        that still is not a number reads as 0.
        """
        if not value:
            return None
        clean = _NON_NUMERIC.sub("", value)
        try:
            return Decimal(clean)
        except InvalidOperation:
            return Decimal("0")

    @staticmethod
    def _parse_date(value: str):
        try:
            return parse_calendar_date(value)
        except ValueError:
            logger.warning(f"Unreadable date {value!r}, using today")
            return today_eastern()

    @staticmethod
    def _parse_asset_class(value: Optional[str]) -> Optional[AssetClass]:
        if not value:
            return None
        for asset_class in AssetClass:
            if asset_class.value.lower() == value.lower():
                return asset_class
        raise ValidationError(f"Invalid asset class: {value}")
