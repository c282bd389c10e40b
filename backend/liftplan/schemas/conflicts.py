# backend/liftplan/schemas/conflicts.py
from datetime import date
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from liftplan.schemas.workout_plan import WorkoutPlanOut
from liftplan.services.calendar import to_calendar_date

ResolutionStrategy = Literal["replace", "keep_existing", "merge"]


def _calendar_date_or_none(v):
    return None if v in (None, "") else to_calendar_date(v)


class CheckConflictsRequest(BaseModel):
    workout_plan_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return _calendar_date_or_none(v)


class CheckConflictsResponse(BaseModel):
    has_conflicts: bool
    conflict_count: int
    conflicts: List[WorkoutPlanOut]


class ResolveConflictsRequest(BaseModel):
    workout_plan_id: int
    conflict_ids: List[int] = Field(..., min_length=1)
    # plain str so unsupported strategies reach the resolver and get a structured answer
    resolution: str


class ConflictResolution(BaseModel):
    success: bool
    resolved_count: int
    method: str
    message: Optional[str] = None
