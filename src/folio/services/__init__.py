"""Service layer - ledger admission, derivation engine and analytics."""

from folio.services.ledger_service import LedgerService, TransactionCreate, TransactionUpdate
from folio.services.goal_service import GoalService
from folio.services.portfolio_engine import aggregate_holdings, build_timeline
from folio.services.metrics import (
    cash_balance,
    invested_capital,
    portfolio_value,
    net_worth,
    to_display_amount,
)
from folio.services.analysis_service import (
    funding_stats,
    fx_gain,
    monthly_activity,
    monthly_dividends,
    yearly_dividends,
    monthly_returns,
    average_monthly_return,
    win_rate,
    max_drawdown,
    total_roi,
    cagr,
    years_in_market,
    benchmark_series,
    performance_summary,
    allocation_analysis,
    drift_alert,
)

__all__ = [
    "LedgerService",
    "TransactionCreate",
    "TransactionUpdate",
    "GoalService",
    "aggregate_holdings",
    "build_timeline",
    "cash_balance",
    "invested_capital",
    "portfolio_value",
    "net_worth",
    "to_display_amount",
    "funding_stats",
    "fx_gain",
    "monthly_activity",
    "monthly_dividends",
    "yearly_dividends",
    "monthly_returns",
    "average_monthly_return",
    "win_rate",
    "max_drawdown",
    "total_roi",
    "cagr",
    "years_in_market",
    "benchmark_series",
    "performance_summary",
    "allocation_analysis",
    "drift_alert",
]
