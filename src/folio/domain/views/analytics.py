"""View models for performance analytics outputs."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from folio.domain.models.transaction import Transaction


@dataclass
class FundingStats:
    """Deposit/withdrawal totals in base and local (FX-weighted) currency."""

    net_funding: Decimal
    net_funding_local: Decimal
    total_deposits: Decimal
    total_withdrawals: Decimal
    total_deposits_local: Decimal
    avg_fx_cost: Decimal
    funding_transactions: list[Transaction] = field(default_factory=list)


@dataclass
class MonthlyActivity:
    """Per-month rollup of ledger activity."""

    year_month: str  # YYYY-MM
    buy_volume: Decimal = field(default_factory=lambda: Decimal("0"))
    sell_volume: Decimal = field(default_factory=lambda: Decimal("0"))
    dividend_income: Decimal = field(default_factory=lambda: Decimal("0"))
    deposit: Decimal = field(default_factory=lambda: Decimal("0"))
    withdraw: Decimal = field(default_factory=lambda: Decimal("0"))
    transaction_count: int = 0


@dataclass(frozen=True)
class PeriodAmount:
    """Amount summed over a period label (YYYY or YYYY-MM)."""

    period: str
    amount: Decimal


@dataclass(frozen=True)
class MonthlyReturn:
    """Modified Dietz return for one calendar month."""

    year_month: str
    value: Decimal  # percent
    pnl: Decimal


@dataclass(frozen=True)
class BenchmarkPoint:
    """Valuation point alongside invested capital compounded at a fixed rate."""

    point_date: Optional[date]
    invested: Decimal
    value: Decimal
    benchmark: Decimal


@dataclass
class PerformanceSummary:
    """Headline performance KPIs."""

    total_roi: Decimal
    cagr: Decimal
    max_drawdown: Decimal
    win_rate: Decimal
    years_in_market: Decimal
    average_monthly_return: Decimal
    monthly_returns: list[MonthlyReturn] = field(default_factory=list)
