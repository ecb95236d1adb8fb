"""
Pytest configuration and fixtures for portfolio tracker tests.

This module provides:
- Fixed calendar dates for deterministic tests
- Factory helpers for ledger transactions
- Service and context fixtures with fresh settings
- Temp file fixtures for CSV tests
"""

import os
import tempfile
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from folio.app_context import AppContext
from folio.portfolio_registry import PortfolioRegistry
from folio.config.settings import Settings, reset_settings
from folio.csv import CsvImporter, CsvExporter, CsvTemplateGenerator
from folio.domain.models import (
    AssetClass,
    Buy,
    Deposit,
    Dividend,
    Sell,
    Split,
    TransactionType,
    Withdraw,
)
from folio.services import GoalService, LedgerService
from folio.services.ledger_service import TransactionCreate


# =============================================================================
# SETTINGS / TIME FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings():
    """Reset global settings around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fixed_today() -> date:
    """Fixed 'today' for deterministic tests."""
    return date(2024, 6, 15)


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults, independent of the environment."""
    return Settings(_env_file=None)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def ledger_service(settings) -> LedgerService:
    """Provide an empty LedgerService."""
    return LedgerService(settings=settings)


@pytest.fixture
def goal_service(settings) -> GoalService:
    """Provide an empty GoalService."""
    return GoalService(settings=settings)


@pytest.fixture
def app_context(settings) -> AppContext:
    """Provide a fresh AppContext."""
    return AppContext(settings=settings)


@pytest.fixture
def portfolio_registry(settings) -> PortfolioRegistry:
    """Provide a registry holding only the default portfolio."""
    return PortfolioRegistry(settings=settings)


@pytest.fixture
def csv_importer(ledger_service) -> CsvImporter:
    """Provide test CsvImporter bound to the test ledger."""
    return CsvImporter(ledger_service=ledger_service)


@pytest.fixture
def csv_exporter() -> CsvExporter:
    """Provide test CsvExporter."""
    return CsvExporter()


@pytest.fixture
def csv_template_generator() -> CsvTemplateGenerator:
    """Provide test CsvTemplateGenerator."""
    return CsvTemplateGenerator()


# =============================================================================
# PRESET DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_ledger() -> list:
    """
    A small ledger spanning three months.

    Jan: deposit 10000, buy 10 AAPL @ 150 (fee 5)
    Feb: buy 20 MSFT @ 100, dividend 12 from AAPL
    Mar: sell 5 AAPL @ 180 (fee 5)
    """
    return [
        make_deposit("10000", txn_date=date(2024, 1, 2)),
        make_buy("AAPL", "10", "150", fee="5", txn_date=date(2024, 1, 10)),
        make_buy("MSFT", "20", "100", txn_date=date(2024, 2, 5)),
        make_dividend("AAPL", "12", txn_date=date(2024, 2, 20)),
        make_sell("AAPL", "5", "180", fee="5", txn_date=date(2024, 3, 15)),
    ]


# =============================================================================
# TEMP FILE FIXTURES
# =============================================================================


@pytest.fixture
def temp_csv_file():
    """Provide a temporary CSV file path that is cleaned up after test."""
    with tempfile.NamedTemporaryFile(
        mode="w",
        suffix=".csv",
        delete=False,
        encoding="utf-8",
    ) as f:
        tmp_path = f.name

    yield tmp_path

    # Cleanup
    if os.path.exists(tmp_path):
        os.unlink(tmp_path)


@pytest.fixture
def sample_csv_content() -> str:
    """Sample CSV content in the exporter's own format."""
    return """ID,Date,Type,Symbol,Shares,Price,Fee,Asset Class,Exchange Rate,Notes,Total Value
d1,2024-01-02,DEPOSIT,,,10000,,Cash,1.35,Initial deposit,10000
b1,2024-01-10,BUY,AAPL,10,150,5,Stock,,First buy,1500
v1,2024-02-20,DIVIDEND,AAPL,,12,0,Stock,1,,12
"""


@pytest.fixture
def alias_csv_content() -> str:
    """Hand-made CSV content using header aliases and formatted numbers."""
    return """Timestamp,Action,Ticker,Qty,Amount,Commission
01/15/2024,buy,msft,4,"$1,200.00",$1.50
2024-02-01,Deposit,,,"5,000",
2024-02-02,,AAPL,1,100,
,SELL,AAPL,1,100,
2024-03-01,TRANSFER,AAPL,1,100,
"""


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(Decimal(actual) - Decimal(expected))
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def _new_id() -> str:
    return uuid.uuid4().hex[:8]


def make_buy(
    symbol: Optional[str],
    shares,
    price,
    fee="0",
    txn_date: date = date(2024, 1, 1),
    asset_class: AssetClass = AssetClass.STOCK,
) -> Buy:
    """Build a BUY record directly (bypassing admission checks)."""
    return Buy(
        txn_id=_new_id(),
        txn_date=txn_date,
        symbol=symbol,
        shares=Decimal(shares),
        price_per_share=Decimal(price),
        fee=Decimal(fee),
        asset_class=asset_class,
    )


def make_sell(
    symbol: Optional[str],
    shares,
    price,
    fee="0",
    txn_date: date = date(2024, 1, 1),
) -> Sell:
    """Build a SELL record directly (bypassing admission checks)."""
    return Sell(
        txn_id=_new_id(),
        txn_date=txn_date,
        symbol=symbol,
        shares=Decimal(shares),
        price_per_share=Decimal(price),
        fee=Decimal(fee),
    )


def make_dividend(symbol: Optional[str], amount, fee="0", txn_date: date = date(2024, 1, 1)) -> Dividend:
    return Dividend(
        txn_id=_new_id(),
        txn_date=txn_date,
        symbol=symbol,
        amount=Decimal(amount),
        fee=Decimal(fee),
    )


def make_split(symbol: Optional[str], ratio, txn_date: date = date(2024, 1, 1)) -> Split:
    return Split(txn_id=_new_id(), txn_date=txn_date, symbol=symbol, ratio=Decimal(ratio))


def make_deposit(amount, exchange_rate="1", txn_date: date = date(2024, 1, 1)) -> Deposit:
    return Deposit(
        txn_id=_new_id(),
        txn_date=txn_date,
        amount=Decimal(amount),
        exchange_rate=Decimal(exchange_rate),
    )


def make_withdraw(amount, exchange_rate="1", txn_date: date = date(2024, 1, 1)) -> Withdraw:
    return Withdraw(
        txn_id=_new_id(),
        txn_date=txn_date,
        amount=Decimal(amount),
        exchange_rate=Decimal(exchange_rate),
    )


def create_buy_transaction_data(
    symbol: str,
    shares: Decimal,
    price: Decimal,
    fee: Decimal = Decimal("0"),
    txn_date: Optional[date] = None,
) -> TransactionCreate:
    """Helper to create BUY transaction data."""
    return TransactionCreate(
        txn_type=TransactionType.BUY,
        symbol=symbol,
        shares=shares,
        price=price,
        fee=fee,
        txn_date=txn_date,
    )


def create_sell_transaction_data(
    symbol: str,
    shares: Decimal,
    price: Decimal,
    fee: Decimal = Decimal("0"),
    txn_date: Optional[date] = None,
) -> TransactionCreate:
    """Helper to create SELL transaction data."""
    return TransactionCreate(
        txn_type=TransactionType.SELL,
        symbol=symbol,
        shares=shares,
        price=price,
        fee=fee,
        txn_date=txn_date,
    )


def create_deposit_data(
    amount: Decimal,
    txn_date: Optional[date] = None,
    exchange_rate: Optional[Decimal] = None,
) -> TransactionCreate:
    """Helper to create DEPOSIT transaction data."""
    return TransactionCreate(
        txn_type=TransactionType.DEPOSIT,
        amount=amount,
        txn_date=txn_date,
        exchange_rate=exchange_rate,
    )


def create_withdraw_data(
    amount: Decimal,
    txn_date: Optional[date] = None,
) -> TransactionCreate:
    """Helper to create WITHDRAW transaction data."""
    return TransactionCreate(
        txn_type=TransactionType.WITHDRAW,
        amount=amount,
        txn_date=txn_date,
    )
