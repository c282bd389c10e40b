# backend/liftplan/schemas/workout_plan.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict

from liftplan.services.calendar import to_calendar_date

PlanMode = Literal["ongoing", "dated"]
PlanLevel = Literal["beginner", "intermediate", "advanced"]


def _calendar_date_or_none(value):
    # accept "2024-01-01T08:30:00Z" and datetimes, keep only the day
    if value is None or value == "":
        return None
    return to_calendar_date(value)


class ExerciseTemplate(BaseModel):
    exercise_id: int
    sets: int = Field(..., ge=1, le=20)
    reps: int = Field(..., ge=1, le=100)
    weight: float = Field(..., ge=0)
    weight_plates: Dict[str, float] = Field(default_factory=dict)
    notes: str = Field("", max_length=500)
    order_index: int = Field(..., ge=0)


class DayTemplate(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6)  # Sunday = 0
    name: Optional[str] = Field(None, max_length=50)
    exercise_templates: List[ExerciseTemplate] = Field(default_factory=list)

    @property
    def is_rest_day(self) -> bool:
        return not self.exercise_templates


def validate_weekly_template(days: List[DayTemplate]) -> List[DayTemplate]:
    seen = [d.day_of_week for d in days]
    if len(seen) != 7 or set(seen) != set(range(7)):
        raise ValueError("Weekly template must contain exactly 7 days (0-6)")
    return sorted(days, key=lambda d: d.day_of_week)


class GenerationPolicy(BaseModel):
    advance_days: int = Field(14, ge=1, le=90)
    batch_size: int = Field(7, ge=1, le=14)
    last_generation_time: Optional[datetime] = None
    furthest_generated_date: Optional[date] = None
    preserve_user_modifications: bool = True
    auto_generation_enabled: bool = True

    @field_validator("furthest_generated_date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return _calendar_date_or_none(v)


class GenerationPolicyUpdate(BaseModel):
    advance_days: Optional[int] = Field(None, ge=1, le=90)
    batch_size: Optional[int] = Field(None, ge=1, le=14)
    preserve_user_modifications: Optional[bool] = None
    auto_generation_enabled: Optional[bool] = None


class WorkoutPlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    level: PlanLevel
    duration: Optional[int] = Field(None, ge=1, le=52)
    mode: PlanMode
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name required")
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return _calendar_date_or_none(v)


def check_plan_dates(mode: str, start: Optional[date], end: Optional[date], duration: Optional[int]) -> None:
    if mode != "dated":
        return
    if start is None or end is None:
        raise ValueError("Start date and end date are required for dated workout plans")
    if end <= start:
        raise ValueError("End date must be after start date")
    if duration:
        expected_end = start + timedelta(weeks=duration)
        if abs((expected_end - end).days) > 1:
            raise ValueError("Duration does not match the date range")


class WorkoutPlanCreate(WorkoutPlanBase):
    is_active: bool = False
    weekly_template: List[DayTemplate]
    generation_policy: Optional[GenerationPolicyUpdate] = None
    created_by: Optional[str] = Field(None, max_length=100)

    @field_validator("weekly_template")
    @classmethod
    def _seven_days(cls, v: List[DayTemplate]) -> List[DayTemplate]:
        return validate_weekly_template(v)

    @model_validator(mode="after")
    def _dates_match_mode(self):
        check_plan_dates(self.mode, self.start_date, self.end_date, self.duration)
        if self.mode == "ongoing":
            self.start_date = None
            self.end_date = None
        return self


class WorkoutPlanUpdate(BaseModel):
    # partial update; date/mode consistency is re-checked against the merged plan
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    level: Optional[PlanLevel] = None
    duration: Optional[int] = Field(None, ge=1, le=52)
    mode: Optional[PlanMode] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekly_template: Optional[List[DayTemplate]] = None
    generation_policy: Optional[GenerationPolicyUpdate] = None
    updated_by: Optional[str] = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name required")
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return _calendar_date_or_none(v)

    @field_validator("weekly_template")
    @classmethod
    def _seven_days(cls, v):
        if v is None:
            return v
        return validate_weekly_template(v)


class WorkoutPlanDuplicate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class WorkoutPlanOut(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    level: str
    duration: Optional[int] = None
    is_active: bool
    mode: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekly_template: List[DayTemplate]
    generation_policy: GenerationPolicy
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("generation_policy", mode="before")
    @classmethod
    def _defaults(cls, v):
        return v or {}
