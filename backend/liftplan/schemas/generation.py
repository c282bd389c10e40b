# backend/liftplan/schemas/generation.py
from datetime import date
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from liftplan.services.calendar import to_calendar_date


class GenerationResult(BaseModel):
    success: bool
    count: int = 0
    message: Optional[str] = None
    batch_id: Optional[str] = None
    start_date: Optional[str] = None  # YYYY-MM-DD
    end_date: Optional[str] = None
    batches_processed: int = 0
    cancelled: bool = False


class GenerationStatus(BaseModel):
    needs_generation: bool
    latest_generated_date: Optional[str] = None
    next_target_date: str
    days_to_generate: int


class PlanGenerationOutcome(BaseModel):
    plan_id: int
    user_id: int
    result: GenerationResult


class BulkGenerationResult(BaseModel):
    success: bool
    plans_processed: int
    exercises_generated: int
    results: List[PlanGenerationOutcome]


class GenerateRequest(BaseModel):
    workout_plan_id: int
    start_date: date
    end_date: date
    replace_existing: bool = False

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return to_calendar_date(v)


class EnsureGeneratedRequest(BaseModel):
    workout_plan_id: int
    min_days_in_advance: Optional[int] = Field(None, ge=0, le=365)
