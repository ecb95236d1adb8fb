"""Application context for in-process service management.

Owns the ledger, the goals and the mutable side-inputs (manual prices and
target allocations) and hands immutable snapshots of them to the derivation
engine and analytics.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from folio.config.settings import Settings, get_settings
from folio.core.exceptions import ValidationError
from folio.core.numeric import ZERO, HUNDRED, Number, to_decimal
from folio.core.timezone import today_eastern
from folio.domain.models import FinancialGoal, Transaction, TransactionType
from folio.domain.views import (
    AllocationItem,
    Holding,
    PerformanceSummary,
    PortfolioSummary,
    ValuationPoint,
)
from folio.services import (
    GoalService,
    LedgerService,
    TransactionCreate,
    TransactionUpdate,
    aggregate_holdings,
    allocation_analysis,
    build_timeline,
    cash_balance,
    drift_alert,
    invested_capital,
    performance_summary,
    portfolio_value,
    to_display_amount,
)
from folio.csv import CsvImporter, CsvExporter, CsvTemplateGenerator


class AppContext:
    """
    Application context providing in-process access to all services.

    Services are created lazily and share this context's settings.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings

        # Service instances (lazy initialized)
        self._ledger_service: Optional[LedgerService] = None
        self._goal_service: Optional[GoalService] = None
        self._csv_importer: Optional[CsvImporter] = None
        self._csv_exporter: Optional[CsvExporter] = None
        self._csv_template: Optional[CsvTemplateGenerator] = None

        # Side-inputs keyed by upper-case symbol
        self._prices: dict[str, Decimal] = {}
        self._targets: dict[str, Decimal] = {}

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    # Service accessors
    @property
    def ledger(self) -> LedgerService:
        """Get the LedgerService instance."""
        if self._ledger_service is None:
            self._ledger_service = LedgerService(settings=self._settings)
        return self._ledger_service

    @property
    def goals(self) -> GoalService:
        """Get the GoalService instance."""
        if self._goal_service is None:
            self._goal_service = GoalService(settings=self._settings)
        return self._goal_service

    # CSV utilities
    @property
    def csv_importer(self) -> CsvImporter:
        """Get the CsvImporter instance."""
        if self._csv_importer is None:
            self._csv_importer = CsvImporter(ledger_service=self.ledger)
        return self._csv_importer

    @property
    def csv_exporter(self) -> CsvExporter:
        """Get the CsvExporter instance."""
        if self._csv_exporter is None:
            self._csv_exporter = CsvExporter()
        return self._csv_exporter

    @property
    def csv_template(self) -> CsvTemplateGenerator:
        """Get the CsvTemplateGenerator instance."""
        if self._csv_template is None:
            self._csv_template = CsvTemplateGenerator()
        return self._csv_template

    # Ledger writes
    def add_transaction(self, data: TransactionCreate) -> Transaction:
        """
        Add a transaction through the ledger.

        A priced BUY/SELL also becomes the symbol's current price, so the
        newest trade replaces any earlier manual price.
        """
        transaction = self.ledger.add_transaction(data)
        self._refresh_price(transaction)
        return transaction

    def edit_transaction(self, txn_id: str, patch: TransactionUpdate) -> Transaction:
        """Edit a transaction through the ledger, refreshing the price like add_transaction."""
        transaction = self.ledger.edit_transaction(txn_id, patch)
        self._refresh_price(transaction)
        return transaction

    def _refresh_price(self, transaction: Transaction) -> None:
        if transaction.txn_type not in (TransactionType.BUY, TransactionType.SELL):
            return
        if transaction.symbol and transaction.price_per_share > ZERO:
            self._prices[transaction.symbol] = transaction.price_per_share

    # Side-inputs
    def set_price(self, symbol: str, price: Optional[Number]) -> None:
        """
        Set the manual current price for a symbol.

        A price of None or 0 clears it, so the last traded price is used.
        """
        key = self._symbol_key(symbol)
        value = to_decimal(price)
        if value < ZERO:
            raise ValidationError(f"Price for {key} cannot be negative")
        if value == ZERO:
            self._prices.pop(key, None)
        else:
            self._prices[key] = value

    def set_target(self, symbol: str, percent: Optional[Number]) -> None:
        """Set the target allocation (0-100) for a symbol. None or 0 clears it."""
        key = self._symbol_key(symbol)
        value = to_decimal(percent)
        if value < ZERO or value > HUNDRED:
            raise ValidationError(f"Target allocation for {key} must be between 0 and 100")
        if value == ZERO:
            self._targets.pop(key, None)
        else:
            self._targets[key] = value

    def prices(self) -> dict[str, Decimal]:
        return dict(self._prices)

    def targets(self) -> dict[str, Decimal]:
        return dict(self._targets)

    # Derived state
    def holdings(self) -> list[Holding]:
        return aggregate_holdings(self.ledger.transactions(), self.prices(), self.targets())

    def timeline(self) -> list[ValuationPoint]:
        return build_timeline(self.ledger.transactions(), self.prices())

    def summary(self, today: Optional[date] = None) -> PortfolioSummary:
        """Headline totals plus progress towards the active goal."""
        transactions = self.ledger.transactions()
        holdings = aggregate_holdings(transactions, self.prices(), self.targets())

        cash = cash_balance(transactions)
        market_value = portfolio_value(holdings)
        net_worth = market_value + cash
        goal = self.goals.active_goal(today=today)
        unrealized_pl = sum((h.unrealized_pl for h in holdings), ZERO)

        return PortfolioSummary(
            cash_balance=cash,
            invested_capital=invested_capital(transactions),
            market_value=market_value,
            net_worth=net_worth,
            total_cost=sum((h.total_cost for h in holdings), ZERO),
            unrealized_pl=unrealized_pl,
            realized_pl=sum((h.realized_pl for h in holdings), ZERO),
            total_dividends=sum((h.total_dividends for h in holdings), ZERO),
            total_return=sum((h.total_return for h in holdings), ZERO),
            goal_target=goal.target_amount,
            goal_progress=GoalService.goal_progress(goal, net_worth),
        )

    def performance(self, today: Optional[date] = None) -> PerformanceSummary:
        transactions = self.ledger.transactions()
        holdings = aggregate_holdings(transactions, self.prices(), self.targets())
        current_value = portfolio_value(holdings) + cash_balance(transactions)
        return performance_summary(
            transactions,
            build_timeline(transactions, self.prices()),
            current_value,
            today=today,
        )

    def allocation(self, by: str = "symbol") -> list[AllocationItem]:
        transactions = self.ledger.transactions()
        return allocation_analysis(self.holdings(), cash_balance(transactions), by=by)

    def needs_rebalance(self, by: str = "symbol") -> bool:
        """True when allocation has drifted past Settings.drift_alert_threshold."""
        return drift_alert(self.allocation(by=by), self.settings.drift_alert_threshold)

    def start_new_goal(
        self,
        target_amount: Number,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> FinancialGoal:
        """Close the active goal against the current net worth and open a new one."""
        net_worth = self.summary(today=today).net_worth
        return self.goals.set_new_goal(
            target_amount,
            net_worth=net_worth,
            notes=notes,
            today=today or today_eastern(),
        )

    def display(self, amount: Number) -> Decimal:
        """Convert a base-currency amount to the configured display currency."""
        return to_display_amount(amount, self.settings.display_exchange_rate)

    @staticmethod
    def _symbol_key(symbol: str) -> str:
        key = (symbol or "").strip().upper()
        if not key:
            raise ValidationError("Symbol is required")
        return key


# Global application context
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: AppContext) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
