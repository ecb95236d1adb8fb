"""Portfolio domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Portfolio:
    """
    Named container for one independent set of books.

    Each portfolio has its own ledger, manual prices, targets and goals.
    """

    portfolio_id: str
    name: str
    created_at_est: Optional[datetime] = field(default=None)
