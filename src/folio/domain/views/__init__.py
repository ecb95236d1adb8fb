"""View models for service outputs."""

from folio.domain.views.portfolio import (
    NOW_LABEL,
    Holding,
    ValuationPoint,
    AllocationItem,
    PortfolioSummary,
    ImportSummary,
)
from folio.domain.views.analytics import (
    FundingStats,
    MonthlyActivity,
    PeriodAmount,
    MonthlyReturn,
    BenchmarkPoint,
    PerformanceSummary,
)

__all__ = [
    "NOW_LABEL",
    "Holding",
    "ValuationPoint",
    "AllocationItem",
    "PortfolioSummary",
    "ImportSummary",
    "FundingStats",
    "MonthlyActivity",
    "PeriodAmount",
    "MonthlyReturn",
    "BenchmarkPoint",
    "PerformanceSummary",
]
