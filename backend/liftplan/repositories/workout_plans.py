# backend/liftplan/repositories/workout_plans.py
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import select, update, delete, and_
from sqlalchemy.orm import Session

from liftplan.models.workout_plan import WorkoutPlan
from liftplan.models.scheduled_exercise import ScheduledExercise

# fields a caller may never overwrite through update()
_PROTECTED = {"id", "user_id", "created_at"}


class WorkoutPlanRepository:
    """Plan store. Methods flush but never commit; the caller owns the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, plan_id: int) -> Optional[WorkoutPlan]:
        return self.db.get(WorkoutPlan, plan_id)

    def get_by_id_and_user(self, plan_id: int, user_id: int) -> Optional[WorkoutPlan]:
        return self.db.execute(
            select(WorkoutPlan).where(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id)
        ).scalar_one_or_none()

    def list_by_user(
        self,
        user_id: int,
        mode: Optional[str] = None,
        level: Optional[str] = None,
    ) -> List[WorkoutPlan]:
        q = select(WorkoutPlan).where(WorkoutPlan.user_id == user_id)
        if mode is not None:
            q = q.where(WorkoutPlan.mode == mode)
        if level is not None:
            q = q.where(WorkoutPlan.level == level)
        # active plans first, then newest
        q = q.order_by(WorkoutPlan.is_active.desc(), WorkoutPlan.created_at.desc(), WorkoutPlan.id.desc())
        return list(self.db.execute(q).scalars().all())

    def list_active_by_user(self, user_id: int) -> List[WorkoutPlan]:
        return list(
            self.db.execute(
                select(WorkoutPlan)
                .where(WorkoutPlan.user_id == user_id, WorkoutPlan.is_active.is_(True))
                .order_by(WorkoutPlan.updated_at.desc(), WorkoutPlan.id.desc())
            ).scalars().all()
        )

    def list_active_for_generation(self) -> List[WorkoutPlan]:
        # auto_generation_enabled lives inside the policy JSON, filtered in Python
        return list(
            self.db.execute(
                select(WorkoutPlan).where(WorkoutPlan.is_active.is_(True)).order_by(WorkoutPlan.id)
            ).scalars().all()
        )

    def list_all(self) -> List[WorkoutPlan]:
        return list(
            self.db.execute(select(WorkoutPlan).order_by(WorkoutPlan.created_at.desc(), WorkoutPlan.id.desc()))
            .scalars().all()
        )

    def list_dated_overlapping(
        self,
        user_id: int,
        start: date,
        end: date,
        exclude_plan_id: Optional[int] = None,
    ) -> List[WorkoutPlan]:
        q = select(WorkoutPlan).where(
            and_(
                WorkoutPlan.user_id == user_id,
                WorkoutPlan.mode == "dated",
                WorkoutPlan.start_date <= end,
                WorkoutPlan.end_date >= start,
            )
        )
        if exclude_plan_id is not None:
            q = q.where(WorkoutPlan.id != exclude_plan_id)
        return list(self.db.execute(q.order_by(WorkoutPlan.start_date, WorkoutPlan.id)).scalars().all())

    def list_expired(self, today: date) -> List[WorkoutPlan]:
        return list(
            self.db.execute(
                select(WorkoutPlan).where(
                    WorkoutPlan.mode == "dated",
                    WorkoutPlan.is_active.is_(True),
                    WorkoutPlan.end_date < today,
                )
            ).scalars().all()
        )

    def create(self, **values) -> WorkoutPlan:
        plan = WorkoutPlan(**values)
        self.db.add(plan)
        self.db.flush()
        return plan

    def update(self, plan: WorkoutPlan, **values) -> WorkoutPlan:
        for key, value in values.items():
            if key in _PROTECTED:
                continue
            setattr(plan, key, value)
        self.db.flush()
        return plan

    def delete(self, plan: WorkoutPlan, delete_instances: bool = False) -> None:
        if delete_instances:
            self.db.execute(
                delete(ScheduledExercise).where(ScheduledExercise.workout_plan_id == plan.id)
            )
        else:
            # instances outlive their plan
            self.db.execute(
                update(ScheduledExercise)
                .where(ScheduledExercise.workout_plan_id == plan.id)
                .values(workout_plan_id=None)
            )
        self.db.delete(plan)
        self.db.flush()

    def duplicate(self, plan: WorkoutPlan, name: Optional[str] = None) -> WorkoutPlan:
        policy = dict(plan.generation_policy or {})
        # the copy has generated nothing yet
        policy.pop("furthest_generated_date", None)
        policy.pop("last_generation_time", None)
        return self.create(
            user_id=plan.user_id,
            name=name or f"{plan.name} (Copy)",
            description=plan.description,
            level=plan.level,
            duration=plan.duration,
            mode=plan.mode,
            start_date=plan.start_date,
            end_date=plan.end_date,
            weekly_template=list(plan.weekly_template),
            generation_policy=policy,
            is_active=False,
            created_by=plan.created_by,
        )

    def deactivate_where(self, *criteria) -> int:
        res = self.db.execute(
            update(WorkoutPlan)
            .where(WorkoutPlan.is_active.is_(True), *criteria)
            .values(is_active=False, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount or 0

    def set_active(self, plan_id: int, user_id: int) -> int:
        res = self.db.execute(
            update(WorkoutPlan)
            .where(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id)
            .values(is_active=True, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount or 0

    def lock_user_plans(self, user_id: int) -> List[int]:
        # row locks on PostgreSQL; SQLite serialises writers on its own
        return list(
            self.db.execute(
                select(WorkoutPlan.id).where(WorkoutPlan.user_id == user_id).with_for_update()
            ).scalars().all()
        )

    def ids_owned_by(self, user_id: int, plan_ids: Iterable[int], active_only: bool = False) -> List[int]:
        plan_ids = list(plan_ids)
        if not plan_ids:
            return []
        q = select(WorkoutPlan.id).where(WorkoutPlan.user_id == user_id, WorkoutPlan.id.in_(plan_ids))
        if active_only:
            q = q.where(WorkoutPlan.is_active.is_(True))
        return list(self.db.execute(q).scalars().all())
