# backend/liftplan/routers/scheduled_exercises.py
from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from liftplan.db import get_db
from liftplan.deps import current_user_id
from liftplan.schemas.scheduled_exercise import (
    ScheduledExerciseCreate,
    ScheduledExerciseOut,
    ScheduledExerciseUpdate,
)
from liftplan.services.calendar import parse_iso_date
from liftplan.services.scheduled_exercises import ScheduledExerciseService

router = APIRouter(prefix="/scheduled-exercises", tags=["scheduled-exercises"])


def _parse_day(day: str) -> date:
    try:
        return parse_iso_date(day)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid day format, expected YYYY-MM-DD")


@router.get("", response_model=List[ScheduledExerciseOut])
def list_scheduled_exercises(
    start: str = Query(..., description="YYYY-MM-DD"),
    end: str = Query(..., description="YYYY-MM-DD"),
    workout_plan_id: Optional[int] = Query(None),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    start_d, end_d = _parse_day(start), _parse_day(end)
    if end_d < start_d:
        raise HTTPException(status_code=400, detail="end must not be before start")
    return ScheduledExerciseService(db).list_for_range(user_id, start_d, end_d, plan_id=workout_plan_id)


@router.post("", response_model=ScheduledExerciseOut, status_code=201)
def create_scheduled_exercise(
    payload: ScheduledExerciseCreate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        return ScheduledExerciseService(db).create_manual(user_id, payload)
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Scheduled exercise violates a constraint") from e


@router.get("/date/{day}", response_model=List[ScheduledExerciseOut])
def list_for_day(
    day: str,
    workout_plan_id: Optional[int] = Query(None),
    include_completed: bool = Query(True),
    include_hidden: bool = Query(False),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return ScheduledExerciseService(db).list_for_date(
        user_id,
        _parse_day(day),
        plan_id=workout_plan_id,
        include_completed=include_completed,
        include_hidden=include_hidden,
    )


@router.delete("/date/{day}")
def clear_day(day: str, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    removed = ScheduledExerciseService(db).clear_date(user_id, _parse_day(day))
    return {"deleted": removed, "day": day}


@router.patch("/{instance_id}", response_model=ScheduledExerciseOut)
def update_scheduled_exercise(
    instance_id: int,
    changes: ScheduledExerciseUpdate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        return ScheduledExerciseService(db).update(instance_id, user_id, changes)
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Scheduled exercise violates a constraint") from e


@router.post("/{instance_id}/hide", response_model=ScheduledExerciseOut)
def hide_scheduled_exercise(instance_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return ScheduledExerciseService(db).hide(instance_id, user_id)


@router.delete("/{instance_id}", status_code=204)
def delete_scheduled_exercise(instance_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    ScheduledExerciseService(db).delete(instance_id, user_id)
    return None
