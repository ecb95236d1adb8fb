"""Registry of portfolios, each with its own application context."""

import logging
import uuid
from dataclasses import replace
from typing import Optional

from folio.app_context import AppContext
from folio.config.settings import Settings
from folio.core.exceptions import NotFoundError, ValidationError
from folio.core.timezone import now_eastern
from folio.domain.models import Portfolio

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO_NAME = "My First Portfolio"


class PortfolioRegistry:
    """
    Manages several independent portfolios and tracks the active one.

    Every portfolio owns a separate AppContext, so ledgers, prices, targets
    and goals never leak between portfolios. The registry always holds at
    least one portfolio.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._portfolios: dict[str, Portfolio] = {}
        self._contexts: dict[str, AppContext] = {}
        self._active_id = self.create_portfolio(DEFAULT_PORTFOLIO_NAME).portfolio_id

    def portfolios(self) -> list[Portfolio]:
        """Return copies of all portfolios in creation order."""
        return [replace(p) for p in self._portfolios.values()]

    @property
    def active_portfolio_id(self) -> str:
        return self._active_id

    @property
    def active(self) -> AppContext:
        """Context of the active portfolio."""
        return self._contexts[self._active_id]

    def get_portfolio(self, portfolio_id: str) -> Portfolio:
        """Get portfolio by ID."""
        return replace(self._get(portfolio_id))

    def context(self, portfolio_id: str) -> AppContext:
        """Context of any portfolio, active or not."""
        self._get(portfolio_id)
        return self._contexts[portfolio_id]

    def create_portfolio(self, name: str) -> Portfolio:
        """
        Create an empty portfolio and make it active.

        Raises:
            ValidationError: if the name is blank or already used
        """
        name = self._validate_name(name)
        portfolio = Portfolio(
            portfolio_id=str(uuid.uuid4()),
            name=name,
            created_at_est=now_eastern(),
        )
        self._portfolios[portfolio.portfolio_id] = portfolio
        self._contexts[portfolio.portfolio_id] = AppContext(settings=self._settings)
        self._active_id = portfolio.portfolio_id
        logger.info(f"Created portfolio {portfolio.portfolio_id} ({name})")
        return replace(portfolio)

    def rename_portfolio(self, portfolio_id: str, name: str) -> Portfolio:
        portfolio = self._get(portfolio_id)
        portfolio.name = self._validate_name(name, exclude_id=portfolio_id)
        logger.info(f"Renamed portfolio {portfolio_id} to {portfolio.name}")
        return replace(portfolio)

    def switch_portfolio(self, portfolio_id: str) -> AppContext:
        """Make a portfolio active and return its context."""
        self._get(portfolio_id)
        self._active_id = portfolio_id
        return self._contexts[portfolio_id]

    def delete_portfolio(self, portfolio_id: str) -> None:
        """
        Delete a portfolio with all of its data.

        Deleting the active portfolio activates the first remaining one.

        Raises:
            ValidationError: if it is the last portfolio
        """
        self._get(portfolio_id)
        if len(self._portfolios) <= 1:
            raise ValidationError("Cannot delete the last portfolio")

        del self._portfolios[portfolio_id]
        del self._contexts[portfolio_id]
        if self._active_id == portfolio_id:
            self._active_id = next(iter(self._portfolios))
        logger.info(f"Deleted portfolio {portfolio_id}")

    def _get(self, portfolio_id: str) -> Portfolio:
        portfolio = self._portfolios.get(portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)
        return portfolio

    def _validate_name(self, name: str, exclude_id: Optional[str] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Portfolio name is required")
        if any(
            p.name == name and p.portfolio_id != exclude_id for p in self._portfolios.values()
        ):
            raise ValidationError(f"Portfolio with name '{name}' already exists")
        return name
