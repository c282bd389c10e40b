# backend/liftplan/schemas/scheduled_exercise.py
from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from liftplan.services.calendar import to_calendar_date


class ScheduledExerciseCreate(BaseModel):
    exercise_id: int
    category_id: Optional[int] = None  # resolved from the exercise when omitted
    date: dt.date
    sets: int = Field(3, ge=1, le=20)
    reps: int = Field(10, ge=1, le=100)
    weight: float = Field(0, ge=0)
    weight_plates: Dict[str, float] = Field(default_factory=dict)
    notes: str = Field("", max_length=500)
    order_index: int = Field(0, ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return to_calendar_date(v)


class ScheduledExerciseUpdate(BaseModel):
    sets: Optional[int] = Field(None, ge=1, le=20)
    reps: Optional[int] = Field(None, ge=1, le=100)
    weight: Optional[float] = Field(None, ge=0)
    weight_plates: Optional[Dict[str, float]] = None
    notes: Optional[str] = Field(None, max_length=500)
    order_index: Optional[int] = Field(None, ge=0)
    completed: Optional[bool] = None
    is_temporary_change: Optional[bool] = None


class ScheduledExerciseOut(BaseModel):
    id: int
    user_id: int
    exercise_id: int
    category_id: int
    workout_plan_id: Optional[int] = None
    date: str
    sets: int
    reps: int
    weight: float
    weight_plates: Dict[str, float] = Field(default_factory=dict)
    notes: str = ""
    order_index: int
    completed: bool
    completed_at: Optional[datetime] = None
    is_manual: bool
    is_temporary_change: bool
    is_hidden: bool
    generated_at: Optional[datetime] = None
    modified_by_user: bool
    generation_batch_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
