"""Analytics over the ledger and the valuation timeline.

Every function here is a read-only reduction: funding statistics, monthly
rollups, Modified Dietz monthly returns, drawdown, win rate, ROI/CAGR,
benchmark comparison and allocation drift.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Sequence

from folio.config.settings import get_settings
from folio.core.numeric import ZERO, ONE, HUNDRED, Number, to_decimal
from folio.core.timezone import today_eastern
from folio.domain.models import AssetClass, Transaction, TransactionType
from folio.domain.views import (
    AllocationItem,
    BenchmarkPoint,
    FundingStats,
    Holding,
    MonthlyActivity,
    MonthlyReturn,
    PerformanceSummary,
    PeriodAmount,
    ValuationPoint,
)

DAYS_PER_YEAR = Decimal("365.25")
CASH_ROW = AssetClass.CASH.value


# =============================================================================
# FUNDING & ACTIVITY
# =============================================================================


def funding_stats(transactions: Iterable[Transaction]) -> FundingStats:
    """
    Totals of external capital flows.

    net_funding_local converts each deposit/withdrawal at its own exchange
    rate; avg_fx_cost is the deposit-weighted average rate paid (0 without
    deposits).
    """
    funding = [
        txn
        for txn in transactions
        if txn.txn_type in (TransactionType.DEPOSIT, TransactionType.WITHDRAW)
    ]
    total_deposits = ZERO
    total_withdrawals = ZERO
    total_deposits_local = ZERO
    total_withdrawals_local = ZERO

    for txn in funding:
        if txn.txn_type == TransactionType.DEPOSIT:
            total_deposits += txn.amount
            total_deposits_local += txn.local_amount
        else:
            total_withdrawals += txn.amount
            total_withdrawals_local += txn.local_amount

    avg_fx_cost = total_deposits_local / total_deposits if total_deposits > ZERO else ZERO

    return FundingStats(
        net_funding=total_deposits - total_withdrawals,
        net_funding_local=total_deposits_local - total_withdrawals_local,
        total_deposits=total_deposits,
        total_withdrawals=total_withdrawals,
        total_deposits_local=total_deposits_local,
        avg_fx_cost=avg_fx_cost,
        funding_transactions=funding,
    )


def fx_gain(stats: FundingStats, current_rate: Optional[Number]) -> Optional[Decimal]:
    """
    Local-currency gain on contributed capital from exchange-rate moves.

    Net funding valued at current_rate minus what it cost in local currency
    at the historical rates. None when no usable rate or no net funding.
    """
    if current_rate is None:
        return None
    rate = to_decimal(current_rate)
    if rate <= ZERO or stats.net_funding == ZERO:
        return None
    return stats.net_funding * rate - stats.net_funding_local


def monthly_activity(transactions: Iterable[Transaction]) -> list[MonthlyActivity]:
    """Per-month rollup of ledger activity, newest month first."""
    groups: dict[str, MonthlyActivity] = {}

    for txn in transactions:
        year_month = _year_month(txn.txn_date)
        group = groups.get(year_month)
        if group is None:
            group = groups[year_month] = MonthlyActivity(year_month=year_month)

        group.transaction_count += 1
        if txn.txn_type == TransactionType.BUY:
            group.buy_volume += txn.gross_amount
        elif txn.txn_type == TransactionType.SELL:
            group.sell_volume += txn.gross_amount
        elif txn.txn_type == TransactionType.DIVIDEND:
            group.dividend_income += txn.amount
        elif txn.txn_type == TransactionType.DEPOSIT:
            group.deposit += txn.amount
        elif txn.txn_type == TransactionType.WITHDRAW:
            group.withdraw += txn.amount

    return sorted(groups.values(), key=lambda g: g.year_month, reverse=True)


def monthly_dividends(transactions: Iterable[Transaction]) -> list[PeriodAmount]:
    """Dividend amounts summed per YYYY-MM, oldest first."""
    return _sum_dividends(transactions, _year_month)


def yearly_dividends(transactions: Iterable[Transaction]) -> list[PeriodAmount]:
    """Dividend amounts summed per YYYY, oldest first."""
    return _sum_dividends(transactions, lambda d: f"{d.year:04d}")


def _sum_dividends(transactions: Iterable[Transaction], period_of) -> list[PeriodAmount]:
    grouped: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.txn_type == TransactionType.DIVIDEND:
            grouped[period_of(txn.txn_date)] += txn.amount
    return [PeriodAmount(period=period, amount=amount) for period, amount in sorted(grouped.items())]


# =============================================================================
# RETURNS
# =============================================================================


def monthly_returns(
    timeline: Sequence[ValuationPoint],
    today: Optional[date] = None,
) -> list[MonthlyReturn]:
    """
    Modified Dietz return for every calendar month the timeline spans.

    Each month is snapshotted at its last valuation point; months without a
    point carry the previous snapshot forward. For month i:

        net_flow    = invested[i] - invested[i-1]
        pnl         = value[i] - value[i-1] - net_flow
        denominator = value[i-1] + net_flow / 2

    The first month is measured against an empty portfolio. Months where both
    denominator and pnl are 0 (nothing invested yet) are omitted. The
    trailing "now" point is dated today.
    """
    if not timeline:
        return []
    today = today or today_eastern()

    dated = sorted(
        ((point.point_date or today, point) for point in timeline),
        key=lambda item: item[0],
    )

    snapshots: list[tuple[str, Decimal, Decimal]] = []
    cursor = 0
    value = ZERO
    invested = ZERO
    for year, month in _month_range(dated[0][0], dated[-1][0]):
        while cursor < len(dated) and (dated[cursor][0].year, dated[cursor][0].month) <= (year, month):
            point = dated[cursor][1]
            value, invested = point.value, point.invested
            cursor += 1
        snapshots.append((f"{year:04d}-{month:02d}", value, invested))

    returns: list[MonthlyReturn] = []
    previous_value = ZERO
    previous_invested = ZERO
    for year_month, value, invested in snapshots:
        net_flow = invested - previous_invested
        pnl = value - previous_value - net_flow
        denominator = previous_value + net_flow / 2

        percent = pnl / denominator * HUNDRED if denominator != ZERO else ZERO
        if denominator != ZERO or pnl != ZERO:
            returns.append(MonthlyReturn(year_month=year_month, value=percent, pnl=pnl))

        previous_value, previous_invested = value, invested

    return returns


def average_monthly_return(returns: Sequence[MonthlyReturn], last_n: Optional[int] = None) -> Decimal:
    """Mean monthly return, optionally over the most recent last_n months."""
    window = returns[-last_n:] if last_n else returns
    if not window:
        return ZERO
    return sum((r.value for r in window), ZERO) / len(window)


def win_rate(returns: Sequence[MonthlyReturn]) -> Decimal:
    """Percentage of months with a positive return."""
    if not returns:
        return ZERO
    wins = sum(1 for r in returns if r.value > ZERO)
    return Decimal(wins) / len(returns) * HUNDRED


def max_drawdown(timeline: Iterable[ValuationPoint]) -> Decimal:
    """
    Largest peak-to-trough decline of portfolio value, as a percentage.

    0 while the running peak has never been positive. Capped at 100 (a value
    that falls below zero cannot lose more than the whole peak).
    """
    peak: Optional[Decimal] = None
    worst = ZERO
    for point in timeline:
        if peak is None or point.value > peak:
            peak = point.value
        if peak > ZERO:
            drawdown = (peak - point.value) / peak
            if drawdown > worst:
                worst = drawdown
    return min(worst * HUNDRED, HUNDRED)


def total_roi(current_value: Number, net_funding: Number) -> Decimal:
    """Simple return on contributed capital, as a percentage (0 without funding)."""
    current_value = to_decimal(current_value)
    net_funding = to_decimal(net_funding)
    if net_funding <= ZERO:
        return ZERO
    return (current_value - net_funding) / net_funding * HUNDRED


def cagr(current_value: Number, net_funding: Number, years: Number) -> Decimal:
    """
    Compound annual growth rate on contributed capital, as a percentage.

    Less than a year in the market, or no positive net funding, falls back to
    total ROI. A non-positive current value is a total loss (-100).
    """
    current_value = to_decimal(current_value)
    net_funding = to_decimal(net_funding)
    years = to_decimal(years)
    if years < ONE or net_funding <= ZERO:
        return total_roi(current_value, net_funding)

    ratio = current_value / net_funding
    if ratio <= ZERO:
        return -HUNDRED
    return (ratio ** (ONE / years) - ONE) * HUNDRED


def years_in_market(transactions: Iterable[Transaction], today: Optional[date] = None) -> Decimal:
    """Years elapsed since the first ledger entry (0 for an empty ledger)."""
    dates = [txn.txn_date for txn in transactions]
    if not dates:
        return ZERO
    today = today or today_eastern()
    return Decimal(abs((today - min(dates)).days)) / DAYS_PER_YEAR


def benchmark_series(
    timeline: Sequence[ValuationPoint],
    annual_rate: Optional[Number] = None,
    today: Optional[date] = None,
) -> list[BenchmarkPoint]:
    """
    Pair each valuation point with invested capital compounded at annual_rate.

    benchmark = invested × (1 + annual_rate) ^ years_since_first_point. The
    rate defaults to Settings.benchmark_annual_rate.
    """
    if not timeline:
        return []
    rate = to_decimal(annual_rate if annual_rate is not None else get_settings().benchmark_annual_rate)
    today = today or today_eastern()
    start = min(point.point_date or today for point in timeline)
    growth = ONE + rate

    series = []
    for point in timeline:
        elapsed_days = ((point.point_date or today) - start).days
        years = Decimal(elapsed_days) / DAYS_PER_YEAR
        series.append(
            BenchmarkPoint(
                point_date=point.point_date,
                invested=point.invested,
                value=point.value,
                benchmark=point.invested * growth ** years,
            )
        )
    return series


def performance_summary(
    transactions: Sequence[Transaction],
    timeline: Sequence[ValuationPoint],
    current_value: Number,
    today: Optional[date] = None,
) -> PerformanceSummary:
    """
    Headline KPIs for the growth report.

    current_value is the portfolio's net worth (holdings plus cash).
    """
    today = today or today_eastern()
    net_funding = funding_stats(transactions).net_funding
    returns = monthly_returns(timeline, today=today)
    years = years_in_market(transactions, today=today)

    return PerformanceSummary(
        total_roi=total_roi(current_value, net_funding),
        cagr=cagr(current_value, net_funding, years),
        max_drawdown=max_drawdown(timeline),
        win_rate=win_rate(returns),
        years_in_market=years,
        average_monthly_return=average_monthly_return(returns),
        monthly_returns=returns,
    )


# =============================================================================
# ALLOCATION
# =============================================================================


def allocation_analysis(
    holdings: Sequence[Holding],
    cash: Number,
    by: str = "symbol",
) -> list[AllocationItem]:
    """
    Compare actual allocation against targets, by symbol or by asset class.

    Percentages are of net worth (holdings plus cash). Cash carries the
    implied target max(0, 100 - sum of holding targets) and is listed when
    it holds money or has a target. Sorted by value, largest first.

    Raises:
        ValueError: if `by` is not "symbol" or "asset_class".
    """
    cash = to_decimal(cash)
    total_target = sum((h.target_allocation for h in holdings), ZERO)
    implied_cash_target = max(ZERO, HUNDRED - total_target)
    total_value = sum((h.market_value for h in holdings), ZERO) + cash

    rows: list[tuple[str, Decimal, Decimal]]
    if by == "asset_class":
        groups: dict[str, list[Decimal]] = {
            asset_class.value: [ZERO, ZERO] for asset_class in AssetClass if asset_class != AssetClass.CASH
        }
        for h in holdings:
            group = groups.setdefault(h.asset_class.value, [ZERO, ZERO])
            group[0] += h.market_value
            group[1] += h.target_allocation
        cash_group = groups.setdefault(CASH_ROW, [ZERO, ZERO])
        cash_group[0] += cash
        cash_group[1] += implied_cash_target
        rows = [
            (name, value, target)
            for name, (value, target) in groups.items()
            if value > ZERO or target > ZERO
        ]
    elif by == "symbol":
        rows = [(h.symbol, h.market_value, h.target_allocation) for h in holdings]
        if cash > ZERO or implied_cash_target > ZERO:
            rows.append((CASH_ROW, cash, implied_cash_target))
    else:
        raise ValueError(f"Unknown allocation grouping: {by}")

    items = []
    for name, value, target in rows:
        actual = value / total_value * HUNDRED if total_value > ZERO else ZERO
        items.append(
            AllocationItem(
                name=name,
                value=value,
                target_pct=target,
                actual_pct=actual,
                drift_pct=actual - target,
                action_value=(target - actual) / HUNDRED * total_value,
            )
        )
    items.sort(key=lambda item: item.value, reverse=True)
    return items


def drift_alert(items: Iterable[AllocationItem], threshold: Optional[Number] = None) -> bool:
    """True when any row has drifted from its target by more than threshold points."""
    limit = to_decimal(threshold if threshold is not None else get_settings().drift_alert_threshold)
    return any(abs(item.drift_pct) > limit for item in items)


# =============================================================================
# HELPERS
# =============================================================================


def _year_month(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def _month_range(first: date, last: date) -> Iterator[tuple[int, int]]:
    """Yield (year, month) for every calendar month from first to last inclusive."""
    year, month = first.year, first.month
    while (year, month) <= (last.year, last.month):
        yield year, month
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
