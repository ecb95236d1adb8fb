"""View models for holdings, valuation and allocation outputs."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from folio.domain.models.enums import AssetClass

NOW_LABEL = "Now"


@dataclass
class Holding:
    """Derived per-symbol position snapshot (weighted-average cost model)."""

    symbol: str
    asset_class: AssetClass
    shares: Decimal
    avg_cost: Decimal
    total_cost: Decimal
    current_price: Decimal
    market_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percent: Decimal
    realized_pl: Decimal
    total_dividends: Decimal
    total_return: Decimal
    target_allocation: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def is_open(self) -> bool:
        """Return True if shares are still held."""
        return self.shares > 0


@dataclass(frozen=True)
class ValuationPoint:
    """
    Portfolio valuation after one ledger event.

    point_date is None for the trailing point valued at live prices.
    """

    point_date: Optional[date]
    invested: Decimal
    value: Decimal

    @property
    def is_now(self) -> bool:
        return self.point_date is None

    @property
    def label(self) -> str:
        """ISO date, or "Now" for the trailing point."""
        return NOW_LABEL if self.point_date is None else self.point_date.isoformat()


@dataclass
class AllocationItem:
    """Single row of an allocation-vs-target breakdown."""

    name: str
    value: Decimal
    target_pct: Decimal
    actual_pct: Decimal
    drift_pct: Decimal
    # Amount to buy (positive) or sell (negative) to reach the target
    action_value: Decimal


@dataclass
class PortfolioSummary:
    """Headline numbers for the whole portfolio."""

    cash_balance: Decimal
    invested_capital: Decimal
    market_value: Decimal
    net_worth: Decimal
    total_cost: Decimal
    unrealized_pl: Decimal
    realized_pl: Decimal
    total_dividends: Decimal
    total_return: Decimal
    goal_target: Decimal
    goal_progress: Decimal


@dataclass
class ImportSummary:
    """Summary of CSV import operation."""

    imported_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)
    import_batch_id: Optional[str] = None
