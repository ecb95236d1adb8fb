"""CSV import/export utilities."""

from folio.csv.importer import CsvImporter, CSV_COLUMNS
from folio.csv.exporter import CsvExporter
from folio.csv.template import CsvTemplateGenerator

__all__ = [
    "CsvImporter",
    "CsvExporter",
    "CsvTemplateGenerator",
    "CSV_COLUMNS",
]
