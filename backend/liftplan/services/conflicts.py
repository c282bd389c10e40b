# backend/liftplan/services/conflicts.py
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from liftplan.models.workout_plan import WorkoutPlan
from liftplan.repositories import WorkoutPlanRepository
from liftplan.schemas.conflicts import ConflictResolution
from liftplan.services.calendar import to_calendar_date
from liftplan.services.errors import PlanNotFoundError

logger = logging.getLogger(__name__)

RESOLUTION_STRATEGIES = ("replace", "keep_existing", "merge")


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Closed intervals [a_start, a_end] and [b_start, b_end] share at least one day."""
    return a_start <= b_end and b_start <= a_end


def find_conflicts(
    db: Session,
    user_id: int,
    start_date,
    end_date,
    exclude_plan_id: Optional[int] = None,
) -> List[WorkoutPlan]:
    """Dated plans of this user whose window overlaps [start_date, end_date]."""
    start = to_calendar_date(start_date)
    end = to_calendar_date(end_date)
    if end < start:
        raise ValueError(f"end date {end} is before start date {start}")
    return WorkoutPlanRepository(db).list_dated_overlapping(user_id, start, end, exclude_plan_id)


def check_conflicts(
    db: Session,
    plan_id: int,
    user_id: int,
    start_date=None,
    end_date=None,
) -> List[WorkoutPlan]:
    """Other plans that clash with plan_id, using its own window unless one is given."""
    plan = WorkoutPlanRepository(db).get_by_id_and_user(plan_id, user_id)
    if plan is None:
        raise PlanNotFoundError(plan_id)

    start = start_date if start_date is not None else plan.start_date
    end = end_date if end_date is not None else plan.end_date
    if start is None or end is None:
        # ongoing plans have no window to clash with
        return []
    return find_conflicts(db, user_id, start, end, exclude_plan_id=plan_id)


def resolve_conflicts(
    db: Session,
    plan_id: int,
    user_id: int,
    conflict_ids: Iterable[int],
    strategy: str,
) -> ConflictResolution:
    repo = WorkoutPlanRepository(db)
    conflict_ids = [cid for cid in conflict_ids if cid != plan_id]

    if strategy not in RESOLUTION_STRATEGIES:
        return ConflictResolution(
            success=False,
            resolved_count=0,
            method="unknown",
            message=f"Unsupported resolution strategy {strategy!r}; expected one of {', '.join(RESOLUTION_STRATEGIES)}",
        )

    if strategy == "merge":
        # TODO: merging needs a per-day rule for which plan's exercises win before it can be built
        return ConflictResolution(
            success=False,
            resolved_count=0,
            method="merge_not_implemented",
            message="Merging overlapping plans is not supported yet",
        )

    if repo.get_by_id_and_user(plan_id, user_id) is None:
        raise PlanNotFoundError(plan_id)

    if strategy == "replace":
        # already-inactive conflicts need nothing and are not counted
        active = repo.ids_owned_by(user_id, conflict_ids, active_only=True)
        repo.deactivate_where(WorkoutPlan.user_id == user_id, WorkoutPlan.id.in_(active))
        db.commit()
        logger.info(f"[conflicts] plan {plan_id}: deactivated conflicting plans {active}")
        return ConflictResolution(
            success=True,
            resolved_count=len(active),
            method="deactivated",
            message=f"Deactivated {len(active)} conflicting plan(s)",
        )

    # keep_existing
    repo.deactivate_where(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id)
    db.commit()
    logger.info(f"[conflicts] plan {plan_id}: kept existing plans, target deactivated")
    return ConflictResolution(
        success=True,
        resolved_count=1,
        method="new_plan_deactivated",
        message="Kept existing plans; this plan was deactivated",
    )
