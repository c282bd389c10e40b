# backend/liftplan/models/scheduled_exercise.py
from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import (
    String, Integer, Float, Boolean, DateTime, JSON, ForeignKey, Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from liftplan.db import Base


class ScheduledExercise(Base):
    __tablename__ = "scheduled_exercises"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    exercise_id: Mapped[int] = mapped_column(ForeignKey("exercises.id"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    workout_plan_id: Mapped[int | None] = mapped_column(
        ForeignKey("workout_plans.id", ondelete="SET NULL"), nullable=True
    )

    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    sets: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    weight: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    weight_plates: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    notes: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_manual: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_temporary_change: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # provenance
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    modified_by_user: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    generation_batch_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __table_args__ = (
        # one visible plan-authored instance per (user, plan, exercise, day)
        Index(
            "uq_scheduled_exercises_plan_slot",
            "user_id", "workout_plan_id", "exercise_id", "date",
            unique=True,
            sqlite_where=text("is_hidden = 0 AND workout_plan_id IS NOT NULL"),
            postgresql_where=text("NOT is_hidden AND workout_plan_id IS NOT NULL"),
        ),
        Index("ix_scheduled_exercises_user_date", "user_id", "date"),
        Index("ix_scheduled_exercises_user_plan_date", "user_id", "workout_plan_id", "date"),
    )

    exercise = relationship("Exercise")
