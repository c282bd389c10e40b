# backend/liftplan/routers/workout_plans.py
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from liftplan import config
from liftplan.db import get_db
from liftplan.deps import current_user_id
from liftplan.models.workout_plan import WorkoutPlan
from liftplan.repositories import WorkoutPlanRepository
from liftplan.schemas.conflicts import (
    CheckConflictsRequest,
    CheckConflictsResponse,
    ConflictResolution,
    ResolveConflictsRequest,
)
from liftplan.schemas.generation import (
    EnsureGeneratedRequest,
    GenerateRequest,
    GenerationResult,
    GenerationStatus,
)
from liftplan.schemas.workout_plan import (
    PlanLevel,
    PlanMode,
    WorkoutPlanCreate,
    WorkoutPlanDuplicate,
    WorkoutPlanOut,
    WorkoutPlanUpdate,
    check_plan_dates,
)
from liftplan.services.activation import PlanActivationService
from liftplan.services.conflicts import check_conflicts, resolve_conflicts
from liftplan.services.generation import ExerciseGenerationService
from liftplan.services.generation_policy import apply_policy_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workout-plans", tags=["workout-plans"])


def _get_plan_or_404(db: Session, plan_id: int, user_id: int) -> WorkoutPlan:
    plan = WorkoutPlanRepository(db).get_by_id_and_user(plan_id, user_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Workout plan not found")
    return plan


@router.get("", response_model=List[WorkoutPlanOut])
def list_plans(
    mode: Optional[PlanMode] = Query(None),
    level: Optional[PlanLevel] = Query(None),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return WorkoutPlanRepository(db).list_by_user(user_id, mode=mode, level=level)


@router.post("", response_model=WorkoutPlanOut, status_code=201)
def create_plan(
    payload: WorkoutPlanCreate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    repo = WorkoutPlanRepository(db)
    try:
        plan = repo.create(
            user_id=user_id,
            name=payload.name,
            description=payload.description,
            level=payload.level,
            duration=payload.duration,
            mode=payload.mode,
            start_date=payload.start_date,
            end_date=payload.end_date,
            weekly_template=[d.model_dump(mode="json") for d in payload.weekly_template],
            generation_policy=apply_policy_update(None, payload.generation_policy),
            is_active=False,
            created_by=payload.created_by,
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Workout plan violates a constraint") from e

    if payload.is_active:
        # activation goes through the manager so other plans are switched off
        return PlanActivationService(db).activate(plan.id, user_id)
    db.refresh(plan)
    return plan


@router.get("/active", response_model=Optional[WorkoutPlanOut])
def get_active_plan(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    active = WorkoutPlanRepository(db).list_active_by_user(user_id)
    return active[0] if active else None


@router.post("/check-conflicts", response_model=CheckConflictsResponse)
def check_plan_conflicts(
    body: CheckConflictsRequest,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    if body.start_date and body.end_date and body.end_date < body.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    conflicts = check_conflicts(db, body.workout_plan_id, user_id, body.start_date, body.end_date)
    return CheckConflictsResponse(
        has_conflicts=bool(conflicts),
        conflict_count=len(conflicts),
        conflicts=[WorkoutPlanOut.model_validate(p) for p in conflicts],
    )


@router.post("/resolve-conflicts", response_model=ConflictResolution)
def resolve_plan_conflicts(
    body: ResolveConflictsRequest,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return resolve_conflicts(db, body.workout_plan_id, user_id, body.conflict_ids, body.resolution)


@router.post("/generate-exercises", response_model=GenerationResult)
def generate_exercises(
    body: GenerateRequest,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    if body.end_date < body.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    svc = ExerciseGenerationService(db)
    plan = svc.get_plan(body.workout_plan_id, user_id)
    return svc.generate(plan, body.start_date, body.end_date, replace_existing=body.replace_existing)


@router.post("/ensure-exercises-generated", response_model=GenerationResult)
def ensure_exercises_generated(
    body: EnsureGeneratedRequest,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    svc = ExerciseGenerationService(db)
    plan = svc.get_plan(body.workout_plan_id, user_id)
    days = body.min_days_in_advance
    if days is None:
        days = config.DEFAULT_MIN_DAYS_IN_ADVANCE
    return svc.ensure_generated(plan, days)


@router.get("/{plan_id}", response_model=WorkoutPlanOut)
def get_plan(plan_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return _get_plan_or_404(db, plan_id, user_id)


@router.patch("/{plan_id}", response_model=WorkoutPlanOut)
def update_plan(
    plan_id: int,
    changes: WorkoutPlanUpdate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    plan = _get_plan_or_404(db, plan_id, user_id)
    values = changes.model_dump(exclude_unset=True, exclude={"weekly_template", "generation_policy"})

    # mode/date rules apply to the plan as it will look after the patch
    mode = values.get("mode", plan.mode)
    start = values.get("start_date", plan.start_date)
    end = values.get("end_date", plan.end_date)
    duration = values.get("duration", plan.duration)
    try:
        check_plan_dates(mode, start, end, duration)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if mode == "ongoing":
        values["start_date"] = None
        values["end_date"] = None

    if changes.weekly_template is not None:
        values["weekly_template"] = [d.model_dump(mode="json") for d in changes.weekly_template]
    if changes.generation_policy is not None:
        values["generation_policy"] = apply_policy_update(plan.generation_policy, changes.generation_policy)

    try:
        WorkoutPlanRepository(db).update(plan, **values)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Workout plan violates a constraint") from e
    db.refresh(plan)
    return plan


@router.delete("/{plan_id}", status_code=204)
def delete_plan(
    plan_id: int,
    delete_instances: bool = Query(False),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    plan = _get_plan_or_404(db, plan_id, user_id)
    WorkoutPlanRepository(db).delete(plan, delete_instances=delete_instances)
    db.commit()
    logger.info(f"[plans] user {user_id}: deleted plan {plan_id} (delete_instances={delete_instances})")
    return None


@router.post("/{plan_id}/duplicate", response_model=WorkoutPlanOut, status_code=201)
def duplicate_plan(
    plan_id: int,
    body: Optional[WorkoutPlanDuplicate] = None,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    plan = _get_plan_or_404(db, plan_id, user_id)
    copy = WorkoutPlanRepository(db).duplicate(plan, name=body.name if body else None)
    db.commit()
    db.refresh(copy)
    return copy


@router.post("/{plan_id}/activate", response_model=WorkoutPlanOut)
def activate_plan(plan_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return PlanActivationService(db).activate(plan_id, user_id)


@router.post("/{plan_id}/deactivate", response_model=WorkoutPlanOut)
def deactivate_plan(plan_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return PlanActivationService(db).deactivate(plan_id, user_id)


@router.get("/{plan_id}/generation-status", response_model=GenerationStatus)
def generation_status(
    plan_id: int,
    min_days_in_advance: Optional[int] = Query(None, ge=0, le=365),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    plan = _get_plan_or_404(db, plan_id, user_id)
    if min_days_in_advance is None:
        min_days_in_advance = config.DEFAULT_MIN_DAYS_IN_ADVANCE
    return ExerciseGenerationService(db).check_generation_status(plan, min_days_in_advance)


@router.delete("/{plan_id}/batches/{batch_id}")
def rollback_generation_batch(
    plan_id: int,
    batch_id: str,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    plan = _get_plan_or_404(db, plan_id, user_id)
    removed = ExerciseGenerationService(db).rollback_batch(plan, batch_id)
    return {"deleted": removed, "batch_id": batch_id}
