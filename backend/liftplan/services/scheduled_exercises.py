# backend/liftplan/services/scheduled_exercises.py
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from liftplan.models.scheduled_exercise import ScheduledExercise
from liftplan.repositories import ExerciseRepository, ScheduledExerciseRepository
from liftplan.schemas.scheduled_exercise import ScheduledExerciseCreate, ScheduledExerciseUpdate
from liftplan.services.calendar import format_iso_date
from liftplan.services.errors import ExerciseNotFoundError, ScheduledExerciseNotFoundError

logger = logging.getLogger(__name__)

# edits that change what the plan prescribed for a slot
PRESCRIPTION_FIELDS = ("sets", "reps", "weight", "weight_plates", "notes", "order_index")


class ScheduledExerciseService:
    def __init__(self, db: Session, now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.db = db
        self.now = now
        self.instances = ScheduledExerciseRepository(db)
        self.exercises = ExerciseRepository(db)

    def _get(self, instance_id: int, user_id: int) -> ScheduledExercise:
        row = self.instances.get_by_id_and_user(instance_id, user_id)
        if row is None:
            raise ScheduledExerciseNotFoundError(instance_id)
        return row

    def list_for_date(
        self,
        user_id: int,
        day: date,
        plan_id: Optional[int] = None,
        include_completed: bool = True,
        include_hidden: bool = False,
    ) -> List[ScheduledExercise]:
        return self.instances.find_by_user_and_date(
            user_id, format_iso_date(day), plan_id, include_completed, include_hidden
        )

    def list_for_range(self, user_id: int, start: date, end: date, plan_id: Optional[int] = None) -> List[ScheduledExercise]:
        if end < start:
            raise ValueError(f"end date {end} is before start date {start}")
        return self.instances.find_by_user_and_date_range(
            user_id, format_iso_date(start), format_iso_date(end), plan_id
        )

    def create_manual(self, user_id: int, payload: ScheduledExerciseCreate) -> ScheduledExercise:
        category_id = payload.category_id
        if category_id is None:
            category_id = self.exercises.category_for(payload.exercise_id)
        if category_id is None:
            raise ExerciseNotFoundError(payload.exercise_id)

        row = self.instances.add(
            user_id=user_id,
            exercise_id=payload.exercise_id,
            category_id=category_id,
            workout_plan_id=None,
            date=format_iso_date(payload.date),
            sets=payload.sets,
            reps=payload.reps,
            weight=payload.weight,
            weight_plates=dict(payload.weight_plates),
            notes=payload.notes,
            order_index=payload.order_index,
            is_manual=True,
        )
        self.db.commit()
        self.db.refresh(row)
        return row

    def update(self, instance_id: int, user_id: int, changes: ScheduledExerciseUpdate) -> ScheduledExercise:
        row = self._get(instance_id, user_id)
        values = changes.model_dump(exclude_unset=True, exclude_none=True)

        completed = values.pop("completed", None)
        if completed is not None and completed != row.completed:
            row.completed = completed
            # completed_at tracks the false -> true transition only
            row.completed_at = self.now() if completed else None

        edited = False
        for key, value in values.items():
            if getattr(row, key) != value:
                setattr(row, key, value)
                edited = edited or key in PRESCRIPTION_FIELDS
        if edited and not row.is_manual:
            row.modified_by_user = True

        self.db.commit()
        self.db.refresh(row)
        return row

    def hide(self, instance_id: int, user_id: int) -> ScheduledExercise:
        """Suppress a plan-authored instance; regeneration will not bring it back."""
        row = self._get(instance_id, user_id)
        row.is_hidden = True
        row.modified_by_user = True
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, instance_id: int, user_id: int) -> None:
        row = self._get(instance_id, user_id)
        self.db.delete(row)
        self.db.commit()

    def clear_date(self, user_id: int, day: date) -> int:
        removed = self.instances.delete_by_user_and_date(user_id, format_iso_date(day))
        self.db.commit()
        logger.info(f"[scheduled-exercises] user {user_id}: cleared {removed} exercises on {format_iso_date(day)}")
        return removed
