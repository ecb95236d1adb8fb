"""CSV template generation."""

import csv
from pathlib import Path

from folio.csv.importer import CSV_COLUMNS

EXAMPLE_ROWS = [
    {
        "Date": "2024-01-02",
        "Type": "DEPOSIT",
        "Price": "10000.00",
        "Asset Class": "Cash",
        "Exchange Rate": "1",
        "Notes": "Initial deposit",
        "Total Value": "10000.00",
    },
    {
        "Date": "2024-01-15",
        "Type": "BUY",
        "Symbol": "AAPL",
        "Shares": "10",
        "Price": "185.50",
        "Fee": "1.00",
        "Asset Class": "Stock",
        "Notes": "Initial AAPL position",
        "Total Value": "1855.00",
    },
    {
        "Date": "2024-02-15",
        "Type": "DIVIDEND",
        "Symbol": "AAPL",
        "Price": "2.40",
        "Fee": "0",
        "Asset Class": "Stock",
        "Total Value": "2.40",
    },
    {
        "Date": "2024-03-01",
        "Type": "SELL",
        "Symbol": "AAPL",
        "Shares": "5",
        "Price": "190.00",
        "Fee": "1.00",
        "Asset Class": "Stock",
        "Notes": "Partial sale",
        "Total Value": "950.00",
    },
    {
        "Date": "2024-06-10",
        "Type": "SPLIT",
        "Symbol": "AAPL",
        "Shares": "4",
        "Price": "0",
        "Asset Class": "Stock",
        "Notes": "4-for-1 split",
        "Total Value": "0",
    },
    {
        "Date": "2024-07-01",
        "Type": "WITHDRAW",
        "Price": "500.00",
        "Asset Class": "Cash",
        "Exchange Rate": "1",
        "Total Value": "500.00",
    },
]


class CsvTemplateGenerator:
    """Generator for blank CSV import templates."""

    def generate_template(self, path: str) -> None:
        """
        Generate a CSV template with headers and example rows.

        Args:
            path: Output file path for the template
        """
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=CSV_COLUMNS, restval="", lineterminator="\n")
            writer.writeheader()
            writer.writerows(EXAMPLE_ROWS)
