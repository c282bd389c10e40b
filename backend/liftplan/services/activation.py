# backend/liftplan/services/activation.py
from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from liftplan.models.workout_plan import WorkoutPlan
from liftplan.repositories import WorkoutPlanRepository
from liftplan.services.errors import PlanNotFoundError

logger = logging.getLogger(__name__)

# one retry is enough: the competing activation has committed by then
ACTIVATION_ATTEMPTS = 2


class PlanActivationService:
    """Keeps at most one active plan per user."""

    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.today = today
        self.plans = WorkoutPlanRepository(db)

    def activate(self, plan_id: int, user_id: int) -> WorkoutPlan:
        for attempt in range(1, ACTIVATION_ATTEMPTS + 1):
            try:
                self._activate_once(plan_id, user_id)
                self.db.commit()
                break
            except IntegrityError:
                # another activation for this user committed between our two writes
                self.db.rollback()
                if attempt == ACTIVATION_ATTEMPTS:
                    raise
                logger.warning(f"[activation] user {user_id}: concurrent activation detected, retrying plan {plan_id}")

        self._repair_extra_active(plan_id, user_id)
        plan = self.plans.get_by_id_and_user(plan_id, user_id)
        self.db.refresh(plan)
        logger.info(f"[activation] user {user_id}: plan {plan_id} is now active")
        return plan

    def _activate_once(self, plan_id: int, user_id: int) -> None:
        owned = self.plans.lock_user_plans(user_id)
        if plan_id not in owned:
            raise PlanNotFoundError(plan_id)
        self.plans.deactivate_where(WorkoutPlan.user_id == user_id, WorkoutPlan.id != plan_id)
        self.plans.set_active(plan_id, user_id)

    def _repair_extra_active(self, plan_id: int, user_id: int) -> None:
        # stores without the partial unique index can still end up with two
        active = [p.id for p in self.plans.list_active_by_user(user_id)]
        if plan_id not in active:
            # a later activation already won
            return
        others = [pid for pid in active if pid != plan_id]
        if not others:
            return
        logger.warning(
            f"[activation] user {user_id}: found extra active plans {others} after activating {plan_id}; deactivating"
        )
        self.plans.deactivate_where(WorkoutPlan.user_id == user_id, WorkoutPlan.id.in_(others))
        self.db.commit()

    def deactivate(self, plan_id: int, user_id: int) -> WorkoutPlan:
        plan = self.plans.get_by_id_and_user(plan_id, user_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        self.plans.deactivate_where(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id)
        self.db.commit()
        self.db.refresh(plan)
        logger.info(f"[activation] user {user_id}: plan {plan_id} deactivated")
        return plan

    def deactivate_expired(self, today: date | None = None) -> int:
        """Deactivate every active dated plan whose end_date has passed."""
        today = today or self.today()
        expired = [p.id for p in self.plans.list_expired(today)]
        if not expired:
            return 0
        count = self.plans.deactivate_where(WorkoutPlan.id.in_(expired))
        self.db.commit()
        logger.info(f"[activation] deactivated {count} expired dated plan(s): {expired}")
        return count
