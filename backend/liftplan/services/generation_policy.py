# backend/liftplan/services/generation_policy.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Tuple

from liftplan.schemas.workout_plan import GenerationPolicy, GenerationPolicyUpdate
from liftplan.services.calendar import add_days, to_calendar_date


def ensure_default_generation_policy(raw: Optional[dict]) -> GenerationPolicy:
    """Stored policies may be missing or partial; fill in the defaults."""
    return GenerationPolicy.model_validate(raw or {})


def dump_policy(policy: GenerationPolicy) -> dict:
    # JSON column: dates as YYYY-MM-DD, datetimes as ISO strings
    return policy.model_dump(mode="json")


def apply_policy_update(raw: Optional[dict], update: Optional[GenerationPolicyUpdate]) -> dict:
    policy = ensure_default_generation_policy(raw)
    if update is not None:
        changes = update.model_dump(exclude_none=True)
        policy = GenerationPolicy.model_validate({**policy.model_dump(), **changes})
    return dump_policy(policy)


def split_into_batches(start: date, end: date, batch_size: int) -> List[Tuple[date, date]]:
    """Consecutive [chunk_start, chunk_end] ranges of at most batch_size days."""
    start = to_calendar_date(start)
    end = to_calendar_date(end)
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    if end < start:
        raise ValueError(f"end date {end} is before start date {start}")

    batches: List[Tuple[date, date]] = []
    current = start
    while current <= end:
        chunk_end = min(add_days(current, batch_size - 1), end)
        batches.append((current, chunk_end))
        current = add_days(chunk_end, 1)
    return batches


def advance_furthest(current: Optional[date], candidate: date) -> date:
    # never moves backwards
    if current is None or candidate > current:
        return candidate
    return current


def record_progress(policy: GenerationPolicy, through: date, now: datetime) -> GenerationPolicy:
    return policy.model_copy(update={
        "last_generation_time": now,
        "furthest_generated_date": advance_furthest(policy.furthest_generated_date, through),
    })
