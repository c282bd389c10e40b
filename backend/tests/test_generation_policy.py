from datetime import date, datetime

import pytest
from pydantic import ValidationError

from liftplan.schemas.workout_plan import GenerationPolicy, GenerationPolicyUpdate
from liftplan.services.generation_policy import (
    advance_furthest,
    apply_policy_update,
    ensure_default_generation_policy,
    record_progress,
    split_into_batches,
)


def test_defaults_fill_missing_and_partial_policies():
    p = ensure_default_generation_policy(None)
    assert (p.advance_days, p.batch_size) == (14, 7)
    assert p.preserve_user_modifications and p.auto_generation_enabled
    assert p.furthest_generated_date is None

    p = ensure_default_generation_policy({"batch_size": 3, "furthest_generated_date": "2024-01-14"})
    assert p.batch_size == 3
    assert p.advance_days == 14
    assert p.furthest_generated_date == date(2024, 1, 14)


def test_policy_ranges_are_enforced():
    with pytest.raises(ValidationError):
        GenerationPolicy(advance_days=91)
    with pytest.raises(ValidationError):
        GenerationPolicy(batch_size=0)
    with pytest.raises(ValidationError):
        GenerationPolicyUpdate(batch_size=15)


def test_apply_update_keeps_progress_markers():
    stored = {"furthest_generated_date": "2024-02-01", "advance_days": 14}
    out = apply_policy_update(stored, GenerationPolicyUpdate(advance_days=30))
    assert out["advance_days"] == 30
    assert out["furthest_generated_date"] == "2024-02-01"


def test_split_into_batches():
    assert split_into_batches(date(2024, 1, 1), date(2024, 1, 14), 7) == [
        (date(2024, 1, 1), date(2024, 1, 7)),
        (date(2024, 1, 8), date(2024, 1, 14)),
    ]
    assert split_into_batches(date(2024, 1, 1), date(2024, 1, 10), 4) == [
        (date(2024, 1, 1), date(2024, 1, 4)),
        (date(2024, 1, 5), date(2024, 1, 8)),
        (date(2024, 1, 9), date(2024, 1, 10)),
    ]
    assert split_into_batches(date(2024, 1, 1), date(2024, 1, 1), 7) == [(date(2024, 1, 1), date(2024, 1, 1))]


def test_split_rejects_bad_input():
    with pytest.raises(ValueError):
        split_into_batches(date(2024, 1, 2), date(2024, 1, 1), 7)
    with pytest.raises(ValueError):
        split_into_batches(date(2024, 1, 1), date(2024, 1, 2), 0)


def test_furthest_date_never_moves_backwards():
    assert advance_furthest(None, date(2024, 1, 5)) == date(2024, 1, 5)
    assert advance_furthest(date(2024, 1, 10), date(2024, 1, 5)) == date(2024, 1, 10)

    now = datetime(2024, 1, 1, 12, 0)
    p = record_progress(GenerationPolicy(furthest_generated_date=date(2024, 1, 10)), date(2024, 1, 3), now)
    assert p.furthest_generated_date == date(2024, 1, 10)
    assert p.last_generation_time == now
