# backend/liftplan/repositories/scheduled_exercises.py
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select, insert, delete, and_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from liftplan.models.scheduled_exercise import ScheduledExercise


class ScheduledExerciseRepository:
    """Scheduled-instance store. Flushes only; the caller commits."""

    def __init__(self, db: Session):
        self.db = db

    # ---- reads ---------------------------------------------------------------

    def get_by_id_and_user(self, instance_id: int, user_id: int) -> Optional[ScheduledExercise]:
        return self.db.execute(
            select(ScheduledExercise).where(
                ScheduledExercise.id == instance_id,
                ScheduledExercise.user_id == user_id,
            )
        ).scalar_one_or_none()

    def find_by_user_exercise_plan_date(
        self,
        user_id: int,
        exercise_id: int,
        plan_id: int,
        day: str,
        include_hidden: bool = False,
    ) -> Optional[ScheduledExercise]:
        """The plan-authored instance for one slot, if any (visible ones only by default)."""
        q = select(ScheduledExercise).where(
            and_(
                ScheduledExercise.user_id == user_id,
                ScheduledExercise.exercise_id == exercise_id,
                ScheduledExercise.workout_plan_id == plan_id,
                ScheduledExercise.date == day,
            )
        )
        if not include_hidden:
            q = q.where(ScheduledExercise.is_hidden.is_(False))
        return self.db.execute(q.limit(1)).scalar_one_or_none()

    def find_by_user_and_date(
        self,
        user_id: int,
        day: str,
        plan_id: Optional[int] = None,
        include_completed: bool = True,
        include_hidden: bool = False,
    ) -> List[ScheduledExercise]:
        q = select(ScheduledExercise).where(
            ScheduledExercise.user_id == user_id,
            ScheduledExercise.date == day,
        )
        if plan_id is not None:
            q = q.where(ScheduledExercise.workout_plan_id == plan_id)
        if not include_completed:
            q = q.where(ScheduledExercise.completed.is_(False))
        if not include_hidden:
            q = q.where(ScheduledExercise.is_hidden.is_(False))
        q = q.order_by(ScheduledExercise.order_index, ScheduledExercise.id)
        return list(self.db.execute(q).scalars().all())

    def find_by_user_and_date_range(
        self,
        user_id: int,
        start: str,
        end: str,
        plan_id: Optional[int] = None,
        include_hidden: bool = False,
    ) -> List[ScheduledExercise]:
        # YYYY-MM-DD strings sort chronologically
        q = select(ScheduledExercise).where(
            ScheduledExercise.user_id == user_id,
            ScheduledExercise.date >= start,
            ScheduledExercise.date <= end,
        )
        if plan_id is not None:
            q = q.where(ScheduledExercise.workout_plan_id == plan_id)
        if not include_hidden:
            q = q.where(ScheduledExercise.is_hidden.is_(False))
        q = q.order_by(ScheduledExercise.date, ScheduledExercise.order_index, ScheduledExercise.id)
        return list(self.db.execute(q).scalars().all())

    def find_by_batch(self, plan_id: int, batch_id: str) -> List[ScheduledExercise]:
        return list(
            self.db.execute(
                select(ScheduledExercise).where(
                    ScheduledExercise.workout_plan_id == plan_id,
                    ScheduledExercise.generation_batch_id == batch_id,
                )
            ).scalars().all()
        )

    # ---- writes --------------------------------------------------------------

    def delete_many(
        self,
        user_id: int,
        plan_id: Optional[int] = None,
        exercise_id: Optional[int] = None,
        day: Optional[str] = None,
        batch_id: Optional[str] = None,
        include_hidden: bool = False,
        include_user_modified: bool = True,
        include_completed: bool = True,
    ) -> int:
        criteria = [ScheduledExercise.user_id == user_id]
        if plan_id is not None:
            criteria.append(ScheduledExercise.workout_plan_id == plan_id)
        if exercise_id is not None:
            criteria.append(ScheduledExercise.exercise_id == exercise_id)
        if day is not None:
            criteria.append(ScheduledExercise.date == day)
        if batch_id is not None:
            criteria.append(ScheduledExercise.generation_batch_id == batch_id)
        if not include_hidden:
            criteria.append(ScheduledExercise.is_hidden.is_(False))
        if not include_user_modified:
            criteria.append(ScheduledExercise.modified_by_user.is_(False))
        if not include_completed:
            criteria.append(ScheduledExercise.completed.is_(False))

        res = self.db.execute(
            delete(ScheduledExercise)
            .where(and_(*criteria))
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount or 0

    def delete_by_user_and_date(self, user_id: int, day: str) -> int:
        return self.delete_many(user_id=user_id, day=day, include_hidden=True)

    def add(self, **values) -> ScheduledExercise:
        row = ScheduledExercise(**values)
        self.db.add(row)
        self.db.flush()
        return row

    def insert_many(self, rows: List[dict]) -> int:
        if not rows:
            return 0
        self.db.execute(insert(ScheduledExercise), rows)
        return len(rows)

    def insert_generated(self, values: dict) -> Optional[int]:
        """
        Insert one plan-authored instance unless its slot is already taken.

        Returns the new id, or None when the unique slot index rejected it
        (a concurrent generator got there first).
        """
        stmt = self._insert_ignoring_conflicts().values(**values).returning(ScheduledExercise.id)
        return self.db.execute(stmt).scalar_one_or_none()

    def _insert_ignoring_conflicts(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(ScheduledExercise).on_conflict_do_nothing()
        if dialect == "sqlite":
            return sqlite.insert(ScheduledExercise).on_conflict_do_nothing()
        # other backends surface duplicates as IntegrityError
        return insert(ScheduledExercise)
