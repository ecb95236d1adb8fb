"""CSV export functionality."""

import csv
import io
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, TextIO

from folio.domain.models import Transaction, TransactionType
from folio.csv.importer import CSV_COLUMNS

logger = logging.getLogger(__name__)


class CsvExporter:
    """
    CSV exporter for transaction data.

    Writes the flat (shares, price, fee) record shape, one row per
    transaction in the order given, for backup or transfer. The output
    reads back through CsvImporter unchanged.
    """

    def export_csv(self, path: str, transactions: Iterable[Transaction]) -> int:
        """
        Export transactions to a CSV file.

        Returns the number of rows written.
        """
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", newline="", encoding="utf-8") as csvfile:
            count = self._write(csvfile, transactions)

        logger.info(f"Exported {count} transactions to {file_path}")
        return count

    def to_csv_text(self, transactions: Iterable[Transaction]) -> str:
        """Render transactions as CSV text."""
        buffer = io.StringIO()
        self._write(buffer, transactions)
        return buffer.getvalue()

    def _write(self, stream: TextIO, transactions: Iterable[Transaction]) -> int:
        writer = csv.DictWriter(stream, fieldnames=CSV_COLUMNS, lineterminator="\n")
        writer.writeheader()

        count = 0
        for txn in transactions:
            writer.writerow(self._to_row(txn))
            count += 1
        return count

    @staticmethod
    def _to_row(txn: Transaction) -> dict[str, str]:
        flat = txn.to_flat()
        price = flat["price"] or Decimal("0")
        if txn.txn_type in (TransactionType.BUY, TransactionType.SELL):
            total_value = flat["shares"] * price
        else:
            total_value = price

        return {
            "ID": flat["id"],
            "Date": flat["date"].isoformat(),
            "Type": flat["type"].value,
            "Symbol": _cell(flat["symbol"]),
            "Shares": _cell(flat["shares"]),
            "Price": _cell(flat["price"]),
            "Fee": _cell(flat["fee"]),
            "Asset Class": flat["asset_class"].value,
            "Exchange Rate": _cell(flat["exchange_rate"]),
            "Notes": _cell(flat["notes"]),
            "Total Value": _cell(total_value),
        }


def _cell(value: Any) -> str:
    if value is None:
        return ""
    # Fixed-point so tiny share counts never render as 1E-7
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)
