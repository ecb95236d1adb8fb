"""Financial goal domain model."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass
class FinancialGoal:
    """
    A net-worth target the investor is working towards.

    A goal with no end_date is the active one; at most one goal is active
    at a time.
    """

    goal_id: str
    target_amount: Decimal
    start_date: date
    end_date: Optional[date] = None
    is_achieved: bool = False
    notes: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Return True if the goal has not been closed."""
        return self.end_date is None
