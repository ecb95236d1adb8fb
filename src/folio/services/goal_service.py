"""Goal service for net-worth targets."""

import logging
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from folio.config.settings import Settings, get_settings
from folio.core.exceptions import NotFoundError, ValidationError
from folio.core.numeric import ZERO, HUNDRED, Number, to_decimal
from folio.core.timezone import today_eastern
from folio.domain.models import FinancialGoal

logger = logging.getLogger(__name__)


class GoalService:
    """
    In-memory store of financial goals.

    At most one goal is active (no end_date). Starting a new goal closes the
    active one and records whether it was reached.
    """

    def __init__(
        self,
        goals: Optional[Iterable[FinancialGoal]] = None,
        settings: Optional[Settings] = None,
    ):
        self._goals: list[FinancialGoal] = [replace(g) for g in goals or []]
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def goals(self) -> list[FinancialGoal]:
        """Return copies of all goals, oldest first."""
        return [replace(g) for g in sorted(self._goals, key=lambda g: g.start_date)]

    def active_goal(self, today: Optional[date] = None) -> FinancialGoal:
        """
        Return the active goal.

        With no active goal, returns an unsaved placeholder targeting
        Settings.default_goal_amount.
        """
        for goal in self._goals:
            if goal.is_active:
                return replace(goal)
        return FinancialGoal(
            goal_id="default",
            target_amount=self.settings.default_goal_amount,
            start_date=today or today_eastern(),
            notes="Initial Goal",
        )

    def set_new_goal(
        self,
        target_amount: Number,
        net_worth: Number,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> FinancialGoal:
        """
        Close the active goal and start a new one.

        The closed goal is marked achieved when net_worth has reached its
        target.
        """
        target = to_decimal(target_amount)
        if target <= ZERO:
            raise ValidationError("Goal target must be > 0")
        today = today or today_eastern()
        net_worth = to_decimal(net_worth)

        for index, goal in enumerate(self._goals):
            if goal.is_active:
                self._goals[index] = replace(
                    goal,
                    end_date=today,
                    is_achieved=net_worth >= goal.target_amount,
                )
                logger.info(f"Closed goal {goal.goal_id} (achieved={net_worth >= goal.target_amount})")

        goal = FinancialGoal(
            goal_id=str(uuid.uuid4()),
            target_amount=target,
            start_date=today,
            notes=notes or None,
        )
        self._goals.append(goal)
        logger.info(f"Started goal {goal.goal_id} targeting {target}")
        return replace(goal)

    def edit_goal(self, updated: FinancialGoal) -> FinancialGoal:
        """Replace a goal by ID with a copy of the given goal."""
        index = self._index_of(updated.goal_id)
        if to_decimal(updated.target_amount) <= ZERO:
            raise ValidationError("Goal target must be > 0")
        if updated.end_date is not None and updated.end_date < updated.start_date:
            raise ValidationError("Goal cannot end before it starts")
        if updated.is_active and any(
            g.is_active and g.goal_id != updated.goal_id for g in self._goals
        ):
            raise ValidationError("Another goal is already active")

        stored = replace(updated)
        self._goals[index] = stored
        logger.info(f"Edited goal {stored.goal_id}")
        return replace(stored)

    def delete_goal(self, goal_id: str) -> None:
        """Delete a goal."""
        del self._goals[self._index_of(goal_id)]
        logger.info(f"Deleted goal {goal_id}")

    @staticmethod
    def goal_progress(goal: FinancialGoal, net_worth: Number) -> Decimal:
        """Progress towards the goal as a percentage, clamped to [0, 100]."""
        target = to_decimal(goal.target_amount)
        if target <= ZERO:
            return ZERO
        progress = to_decimal(net_worth) / target * HUNDRED
        return max(ZERO, min(progress, HUNDRED))

    def _index_of(self, goal_id: str) -> int:
        for index, goal in enumerate(self._goals):
            if goal.goal_id == goal_id:
                return index
        raise NotFoundError("Goal", goal_id)
