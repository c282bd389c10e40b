# backend/liftplan/models/workout_plan.py
from __future__ import annotations

from datetime import datetime, date, timezone
from sqlalchemy import String, Date, DateTime, Boolean, Integer, JSON, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from liftplan.db import Base


class WorkoutPlan(Base):
    __tablename__ = "workout_plans"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    level: Mapped[str] = mapped_column(String(16), nullable=False)  # beginner | intermediate | advanced
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # weeks

    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    mode: Mapped[str] = mapped_column(String(16), nullable=False)  # ongoing | dated
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # 7 DayTemplate dicts, see schemas.workout_plan.DayTemplate
    weekly_template: Mapped[list] = mapped_column(JSON, nullable=False)
    # see schemas.workout_plan.GenerationPolicy; defaults applied on read
    generation_policy: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
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
        # at most one active plan per user, even under concurrent activation
        Index(
            "uq_workout_plans_one_active_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        Index("ix_workout_plans_user_active", "user_id", "is_active"),
        Index("ix_workout_plans_user_mode_range", "user_id", "mode", "start_date", "end_date"),
    )

    @property
    def is_dated(self) -> bool:
        return self.mode == "dated"
