# backend/liftplan/services/generation.py
"""
Materialise dated scheduled exercises from a plan's weekly template.

Generation is batched (policy.batch_size days per transaction), idempotent
(an existing visible instance for the same user/plan/exercise/day is never
duplicated) and incremental (policy.furthest_generated_date records how far
a plan has been generated so ensure_generated only fills the gap).
"""
from __future__ import annotations

import logging
import threading
import uuid
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, List, Optional, Set, Tuple
from zoneinfo import ZoneInfo

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from liftplan import config
from liftplan.models.workout_plan import WorkoutPlan
from liftplan.repositories import ExerciseRepository, ScheduledExerciseRepository, WorkoutPlanRepository
from liftplan.schemas.generation import (
    BulkGenerationResult,
    GenerationResult,
    GenerationStatus,
    PlanGenerationOutcome,
)
from liftplan.schemas.workout_plan import DayTemplate, GenerationPolicy, validate_weekly_template
from liftplan.services.calendar import (
    add_days,
    days_between,
    format_iso_date,
    local_calendar_date,
    to_calendar_date,
)
from liftplan.services.errors import PlanNotFoundError
from liftplan.services.generation_policy import (
    dump_policy,
    ensure_default_generation_policy,
    record_progress,
    split_into_batches,
)
from liftplan.services.template_expander import expand_weekly_template, parse_weekly_template

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def configured_zone() -> Optional[tzinfo]:
    """The zone calendar days are read in; None means the server's local zone."""
    return ZoneInfo(config.TIMEZONE) if config.TIMEZONE else None


def creation_day(plan: WorkoutPlan, tz: Optional[tzinfo] = None) -> Optional[date]:
    # created_at is stored in UTC; "today" is read in tz, so compare in tz
    return local_calendar_date(plan.created_at, tz) if plan.created_at else None


def plan_window(plan: WorkoutPlan, tz: Optional[tzinfo] = None) -> Tuple[Optional[date], Optional[date]]:
    """Earliest and latest day a plan may generate for (None = unbounded)."""
    if plan.is_dated:
        return plan.start_date, plan.end_date
    return creation_day(plan, tz), None


def validate_range_for_plan(plan: WorkoutPlan, start: date, end: date, tz: Optional[tzinfo] = None) -> Optional[str]:
    """None when [start, end] is a legal generation range for this plan, else the reason."""
    if end < start:
        return f"End date {format_iso_date(end)} is before start date {format_iso_date(start)}"
    if plan.mode == "ongoing":
        # no retroactive generation before the plan existed
        created = creation_day(plan, tz)
        if created is not None and start < created:
            return f"Ongoing plan was created on {format_iso_date(created)}; cannot generate from {format_iso_date(start)}"
        return None
    if plan.mode == "dated":
        if plan.start_date is None or plan.end_date is None:
            return "Dated plan has no start/end date"
        if start < plan.start_date or end > plan.end_date:
            return (
                f"Date range {format_iso_date(start)}..{format_iso_date(end)} is outside the plan window "
                f"{format_iso_date(plan.start_date)}..{format_iso_date(plan.end_date)}"
            )
        return None
    return f"Unknown plan mode {plan.mode!r}"


class ExerciseGenerationService:
    def __init__(
        self,
        db: Session,
        today: Optional[Callable[[], date]] = None,
        now: Callable[[], datetime] = _utcnow,
        tz: Optional[tzinfo] = None,
    ):
        self.db = db
        self.tz = tz if tz is not None else configured_zone()
        self.today = today or (lambda: datetime.now(self.tz).date())
        self.now = now
        self.plans = WorkoutPlanRepository(db)
        self.instances = ScheduledExerciseRepository(db)
        self.exercises = ExerciseRepository(db)

    # ---- lookups -------------------------------------------------------------

    def get_plan(self, plan_id: int, user_id: Optional[int] = None) -> WorkoutPlan:
        if user_id is None:
            plan = self.plans.get_by_id(plan_id)
        else:
            plan = self.plans.get_by_id_and_user(plan_id, user_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    # ---- generate --------------------------------------------------------------

    def generate(
        self,
        plan: WorkoutPlan,
        start_date,
        end_date,
        replace_existing: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> GenerationResult:
        start = to_calendar_date(start_date)
        end = to_calendar_date(end_date)
        start_s, end_s = format_iso_date(start), format_iso_date(end)

        reason = validate_range_for_plan(plan, start, end, self.tz)
        if reason:
            logger.info(f"[generation] plan {plan.id}: rejected range {start_s}..{end_s}: {reason}")
            return GenerationResult(
                success=False,
                count=0,
                message=f"Date range is not valid for this workout plan: {reason}",
                start_date=start_s,
                end_date=end_s,
            )

        try:
            weekly_template = validate_weekly_template(parse_weekly_template(plan.weekly_template))
        except (ValidationError, ValueError) as e:
            logger.warning(f"[generation] plan {plan.id}: malformed weekly template: {e}")
            return GenerationResult(
                success=False,
                count=0,
                message=f"Workout plan has an invalid weekly template: {e}",
                start_date=start_s,
                end_date=end_s,
            )

        batch_id = str(uuid.uuid4())
        policy = ensure_default_generation_policy(plan.generation_policy)
        batches = split_into_batches(start, end, policy.batch_size)

        total = 0
        processed = 0
        seen: Set[Tuple[str, int]] = set()
        for chunk_start, chunk_end in batches:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"[generation] plan {plan.id}: cancelled after {processed}/{len(batches)} batches")
                return GenerationResult(
                    success=False,
                    count=total,
                    message=f"Generation cancelled after {processed} of {len(batches)} batches",
                    batch_id=batch_id,
                    start_date=start_s,
                    end_date=end_s,
                    batches_processed=processed,
                    cancelled=True,
                )
            try:
                created = self._generate_chunk(
                    plan, weekly_template, policy, chunk_start, chunk_end, batch_id, replace_existing, seen
                )
                # progress markers land in the same transaction as the chunk
                policy = record_progress(policy, chunk_end, self.now())
                plan.generation_policy = dump_policy(policy)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.exception(
                    f"[generation] plan {plan.id}: batch {format_iso_date(chunk_start)}..{format_iso_date(chunk_end)} failed"
                )
                return GenerationResult(
                    success=False,
                    count=total,
                    message=f"Storage error after {total} exercises: {e.__class__.__name__}",
                    batch_id=batch_id,
                    start_date=start_s,
                    end_date=end_s,
                    batches_processed=processed,
                )
            total += created
            processed += 1

        logger.info(f"[generation] plan {plan.id}: {total} exercises for {start_s}..{end_s} (batch {batch_id})")
        return GenerationResult(
            success=True,
            count=total,
            message=f"Successfully generated {total} exercises",
            batch_id=batch_id,
            start_date=start_s,
            end_date=end_s,
            batches_processed=processed,
        )

    def _generate_chunk(
        self,
        plan: WorkoutPlan,
        weekly_template: List[DayTemplate],
        policy: GenerationPolicy,
        start: date,
        end: date,
        batch_id: str,
        replace_existing: bool,
        seen: Set[Tuple[str, int]],
    ) -> int:
        created = 0
        for day, template in expand_weekly_template(weekly_template, start, end):
            day_s = format_iso_date(day)
            slot = (day_s, template.exercise_id)
            if slot in seen:
                # same exercise twice on one template day: one instance per slot
                continue
            seen.add(slot)

            category_id = self.exercises.category_for(template.exercise_id)
            if category_id is None:
                logger.warning(
                    f"[generation] plan {plan.id}: exercise {template.exercise_id} not found, skipping {day_s}"
                )
                continue

            if replace_existing:
                self.instances.delete_many(
                    user_id=plan.user_id,
                    plan_id=plan.id,
                    exercise_id=template.exercise_id,
                    day=day_s,
                    include_hidden=False,
                    include_user_modified=not policy.preserve_user_modifications,
                )

            # a hidden instance still claims its slot so the user's hide sticks
            existing = self.instances.find_by_user_exercise_plan_date(
                plan.user_id, template.exercise_id, plan.id, day_s, include_hidden=True
            )
            if existing is not None:
                continue

            new_id = self.instances.insert_generated({
                "user_id": plan.user_id,
                "workout_plan_id": plan.id,
                "exercise_id": template.exercise_id,
                "category_id": category_id,
                "date": day_s,
                "sets": template.sets,
                "reps": template.reps,
                "weight": template.weight,
                "weight_plates": dict(template.weight_plates),
                "notes": template.notes or "",
                "order_index": template.order_index,
                "completed": False,
                "is_hidden": False,
                "is_manual": False,
                "is_temporary_change": False,
                "generated_at": self.now(),
                "modified_by_user": False,
                "generation_batch_id": batch_id,
            })
            if new_id is not None:
                created += 1
        return created

    # ---- status / ensure -----------------------------------------------------------

    def check_generation_status(self, plan: WorkoutPlan, min_days_in_advance: int = 7) -> GenerationStatus:
        policy = ensure_default_generation_policy(plan.generation_policy)
        today = self.today()
        target = add_days(today, min_days_in_advance)
        furthest = policy.furthest_generated_date

        needs = furthest is None or furthest < target
        start = add_days(furthest, 1) if furthest else today
        return GenerationStatus(
            needs_generation=needs,
            latest_generated_date=format_iso_date(furthest) if furthest else None,
            next_target_date=format_iso_date(target),
            days_to_generate=max(days_between(start, target), 0) if needs else 0,
        )

    def ensure_generated(self, plan: WorkoutPlan, min_days_in_advance: int = 7) -> GenerationResult:
        policy = ensure_default_generation_policy(plan.generation_policy)
        today = self.today()
        target = add_days(today, min_days_in_advance)
        furthest = policy.furthest_generated_date

        if furthest is not None and furthest >= target:
            return GenerationResult(
                success=True,
                count=0,
                message="Exercises already generated beyond target date",
            )

        start = add_days(furthest, 1) if furthest else today
        end = target
        # keep the gap inside the range the plan accepts
        window_start, window_end = plan_window(plan, self.tz)
        if window_start is not None and start < window_start:
            start = window_start
        if window_end is not None and end > window_end:
            end = window_end
        if end < start:
            return GenerationResult(
                success=True,
                count=0,
                message="Nothing to generate inside the plan's date window",
            )
        return self.generate(plan, start, end, replace_existing=False)

    def generate_for_all_active_plans(self) -> BulkGenerationResult:
        plans = self.plans.list_active_for_generation()
        outcomes = []
        total = 0
        processed = 0
        for plan in plans:
            policy = ensure_default_generation_policy(plan.generation_policy)
            if not policy.auto_generation_enabled:
                continue
            processed += 1
            try:
                result = self.ensure_generated(plan, policy.advance_days)
            except Exception as e:
                # one bad plan must not stop the sweep
                self.db.rollback()
                logger.exception(f"[generation] plan {plan.id}: ensure_generated failed")
                result = GenerationResult(success=False, count=0, message=str(e) or e.__class__.__name__)
            total += result.count
            outcomes.append(PlanGenerationOutcome(plan_id=plan.id, user_id=plan.user_id, result=result))

        logger.info(f"[generation] sweep: {processed} plans, {total} exercises")
        return BulkGenerationResult(
            success=True,
            plans_processed=processed,
            exercises_generated=total,
            results=outcomes,
        )

    # ---- rollback ----------------------------------------------------------------

    def rollback_batch(self, plan: WorkoutPlan, batch_id: str) -> int:
        """Delete what one generation run created, keeping anything the user touched."""
        removed = self.instances.delete_many(
            user_id=plan.user_id,
            plan_id=plan.id,
            batch_id=batch_id,
            include_hidden=True,
            include_user_modified=False,
            include_completed=False,
        )
        self.db.commit()
        logger.info(f"[generation] plan {plan.id}: rolled back {removed} exercises from batch {batch_id}")
        return removed
