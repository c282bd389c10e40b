import threading
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from conftest import exercise_template, week
from liftplan.models import ScheduledExercise
from liftplan.services.generation import ExerciseGenerationService
from liftplan.services.errors import PlanNotFoundError


def _rows(db, plan_id, include_hidden=False):
    db.expire_all()
    q = select(ScheduledExercise).where(ScheduledExercise.workout_plan_id == plan_id)
    if not include_hidden:
        q = q.where(ScheduledExercise.is_hidden.is_(False))
    return list(db.execute(q.order_by(ScheduledExercise.date, ScheduledExercise.id)).scalars().all())


@pytest.fixture
def monday_plan(make_plan, exercise):
    return make_plan(weekly_template=week({1: [exercise_template(exercise.id, sets=3, reps=8)]}))


@pytest.fixture
def svc(db):
    return ExerciseGenerationService(db, today=lambda: date(2024, 1, 1), tz=timezone.utc)


def test_monday_template_covers_exactly_the_mondays(svc, db, monday_plan, exercise):
    result = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))

    assert result.success
    assert result.count == 2
    assert result.batches_processed == 2
    rows = _rows(db, monday_plan.id)
    assert [r.date for r in rows] == ["2024-01-01", "2024-01-08"]
    r = rows[0]
    assert (r.sets, r.reps, r.category_id) == (3, 8, exercise.category_id)
    assert r.is_manual is False
    assert r.modified_by_user is False
    assert r.generated_at is not None
    assert {x.generation_batch_id for x in rows} == {result.batch_id}


def test_generation_is_idempotent(svc, db, monday_plan):
    first = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))
    second = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))

    assert first.count == 2
    assert second.success and second.count == 0
    assert len(_rows(db, monday_plan.id)) == 2


def test_overlapping_ranges_do_not_duplicate(svc, db, monday_plan):
    svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 10))
    svc.generate(monday_plan, date(2024, 1, 5), date(2024, 1, 20))
    assert [r.date for r in _rows(db, monday_plan.id)] == ["2024-01-01", "2024-01-08", "2024-01-15"]


def test_rest_days_generate_nothing(svc, db, make_plan):
    plan = make_plan(weekly_template=week())
    result = svc.generate(plan, date(2024, 1, 1), date(2024, 1, 31))
    assert result.success and result.count == 0
    assert _rows(db, plan.id) == []


def test_dated_plan_rejects_range_outside_window(svc, db, make_plan, exercise):
    plan = make_plan(
        mode="dated",
        start_date=date(2024, 2, 1),
        end_date=date(2024, 2, 29),
        weekly_template=week({d: [exercise_template(exercise.id)] for d in range(7)}),
    )
    result = svc.generate(plan, date(2024, 3, 1), date(2024, 3, 5))
    assert result.success is False
    assert result.count == 0
    assert _rows(db, plan.id) == []


def test_ongoing_plan_rejects_days_before_creation(svc, db, monday_plan):
    result = svc.generate(monday_plan, date(2023, 12, 25), date(2024, 1, 7))
    assert result.success is False
    assert _rows(db, monday_plan.id) == []


def test_reversed_range_is_a_validation_failure(svc, monday_plan):
    result = svc.generate(monday_plan, date(2024, 1, 14), date(2024, 1, 1))
    assert result.success is False
    assert result.count == 0


def test_replace_existing_is_not_additive(svc, db, monday_plan):
    svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))
    result = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14), replace_existing=True)
    assert result.count == 2
    assert len(_rows(db, monday_plan.id)) == 2


def test_replace_preserves_user_modifications_by_default(svc, db, monday_plan):
    svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))
    edited = _rows(db, monday_plan.id)[0]
    edited.sets = 5
    edited.modified_by_user = True
    db.commit()

    result = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14), replace_existing=True)

    assert result.count == 1
    rows = _rows(db, monday_plan.id)
    assert len(rows) == 2
    assert rows[0].id == edited.id and rows[0].sets == 5


def test_replace_overwrites_modifications_when_policy_allows(svc, db, make_plan, exercise):
    plan = make_plan(
        weekly_template=week({1: [exercise_template(exercise.id, sets=3)]}),
        generation_policy={"preserve_user_modifications": False},
    )
    svc.generate(plan, date(2024, 1, 1), date(2024, 1, 7))
    edited = _rows(db, plan.id)[0]
    edited.sets = 5
    edited.modified_by_user = True
    db.commit()

    svc.generate(plan, date(2024, 1, 1), date(2024, 1, 7), replace_existing=True)

    rows = _rows(db, plan.id)
    assert len(rows) == 1
    assert rows[0].sets == 3
    assert rows[0].modified_by_user is False


def test_hidden_instance_is_not_resurrected(svc, db, monday_plan):
    svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 7))
    row = _rows(db, monday_plan.id)[0]
    row.is_hidden = True
    db.commit()

    again = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 7))
    replaced = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 7), replace_existing=True)

    assert again.count == 0 and replaced.count == 0
    assert _rows(db, monday_plan.id) == []
    assert len(_rows(db, monday_plan.id, include_hidden=True)) == 1


def test_duplicate_exercise_in_one_day_collapses(svc, db, make_plan, exercise):
    plan = make_plan(weekly_template=week({1: [
        exercise_template(exercise.id, order_index=0),
        exercise_template(exercise.id, order_index=1),
    ]}))
    result = svc.generate(plan, date(2024, 1, 1), date(2024, 1, 7))
    assert result.count == 1
    assert len(_rows(db, plan.id)) == 1


def test_missing_exercise_is_skipped(svc, db, make_plan, exercise):
    plan = make_plan(weekly_template=week({1: [
        exercise_template(999_999, order_index=0),
        exercise_template(exercise.id, order_index=1),
    ]}))
    result = svc.generate(plan, date(2024, 1, 1), date(2024, 1, 7))
    assert result.success
    assert result.count == 1
    assert [r.exercise_id for r in _rows(db, plan.id)] == [exercise.id]


def test_storage_layer_rejects_a_racing_duplicate(svc, db, monday_plan, monkeypatch):
    svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))

    # simulate a second generator whose existence check ran before our insert committed
    monkeypatch.setattr(svc.instances, "find_by_user_exercise_plan_date", lambda *a, **kw: None)
    result = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))

    assert result.success
    assert result.count == 0
    assert len(_rows(db, monday_plan.id)) == 2


def test_progress_markers_follow_committed_batches(svc, db, monday_plan):
    svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))
    policy = monday_plan.generation_policy
    assert policy["furthest_generated_date"] == "2024-01-14"
    assert policy["last_generation_time"] is not None

    # an earlier range never moves the marker back
    svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 3))
    assert monday_plan.generation_policy["furthest_generated_date"] == "2024-01-14"


def test_cancellation_stops_between_batches(svc, db, monday_plan, monkeypatch):
    cancel = threading.Event()
    run_chunk = svc._generate_chunk

    def chunk_then_cancel(*args, **kwargs):
        created = run_chunk(*args, **kwargs)
        cancel.set()
        return created

    monkeypatch.setattr(svc, "_generate_chunk", chunk_then_cancel)
    result = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 21), cancel_event=cancel)

    assert result.cancelled is True
    assert result.success is False
    assert result.batches_processed == 1
    assert result.count == 1
    assert [r.date for r in _rows(db, monday_plan.id)] == ["2024-01-01"]
    assert monday_plan.generation_policy["furthest_generated_date"] == "2024-01-07"


def test_storage_failure_keeps_committed_batches(svc, db, monday_plan, monkeypatch):
    real_insert = svc.instances.insert_generated

    def failing_insert(values):
        if values["date"] >= "2024-01-08":
            raise SQLAlchemyError("disk full")
        return real_insert(values)

    monkeypatch.setattr(svc.instances, "insert_generated", failing_insert)
    result = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 14))

    assert result.success is False
    assert result.count == 1
    assert result.batches_processed == 1
    assert [r.date for r in _rows(db, monday_plan.id)] == ["2024-01-01"]


def test_get_plan_scopes_by_user(svc, monday_plan):
    assert svc.get_plan(monday_plan.id, monday_plan.user_id).id == monday_plan.id
    with pytest.raises(PlanNotFoundError):
        svc.get_plan(monday_plan.id, user_id=monday_plan.user_id + 1)


# ---- status / ensure ------------------------------------------------------------

def test_generation_status_for_fresh_plan(svc, monday_plan):
    status = svc.check_generation_status(monday_plan, min_days_in_advance=7)
    assert status.needs_generation is True
    assert status.latest_generated_date is None
    assert status.next_target_date == "2024-01-08"
    assert status.days_to_generate == 8


def test_ensure_generated_fills_only_the_gap(db, monday_plan):
    svc = ExerciseGenerationService(db, today=lambda: date(2024, 1, 1), tz=timezone.utc)
    first = svc.ensure_generated(monday_plan, min_days_in_advance=7)
    assert first.success and first.count == 2
    assert (first.start_date, first.end_date) == ("2024-01-01", "2024-01-08")

    again = svc.ensure_generated(monday_plan, min_days_in_advance=7)
    assert again.success and again.count == 0
    assert svc.check_generation_status(monday_plan, 7).needs_generation is False

    later = ExerciseGenerationService(db, today=lambda: date(2024, 1, 12), tz=timezone.utc)
    step = later.ensure_generated(monday_plan, min_days_in_advance=7)
    assert (step.start_date, step.end_date) == ("2024-01-09", "2024-01-19")
    assert step.count == 1
    assert [r.date for r in _rows(db, monday_plan.id)] == ["2024-01-01", "2024-01-08", "2024-01-15"]


def test_ensure_generated_stays_inside_dated_window(db, make_plan, exercise):
    plan = make_plan(
        mode="dated",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 10),
        weekly_template=week({1: [exercise_template(exercise.id)]}),
    )
    svc = ExerciseGenerationService(db, today=lambda: date(2024, 1, 5), tz=timezone.utc)
    result = svc.ensure_generated(plan, min_days_in_advance=30)
    assert result.success
    assert result.end_date == "2024-01-10"
    assert [r.date for r in _rows(db, plan.id)] == ["2024-01-08"]

    expired = ExerciseGenerationService(db, today=lambda: date(2024, 2, 1), tz=timezone.utc)
    assert expired.ensure_generated(plan, 7).count == 0


def test_sweep_isolates_failing_plans(db, make_plan, exercise):
    good = make_plan(user_id=1, is_active=True, weekly_template=week({1: [exercise_template(exercise.id)]}))
    broken = make_plan(user_id=2, is_active=True, weekly_template=[{"day_of_week": 9, "exercise_templates": []}])
    make_plan(
        user_id=3,
        is_active=True,
        weekly_template=week({1: [exercise_template(exercise.id)]}),
        generation_policy={"auto_generation_enabled": False},
    )
    make_plan(user_id=1, is_active=False, weekly_template=week({1: [exercise_template(exercise.id)]}))

    svc = ExerciseGenerationService(db, today=lambda: date(2024, 1, 1), tz=timezone.utc)
    bulk = svc.generate_for_all_active_plans()

    assert bulk.success
    assert bulk.plans_processed == 2
    by_plan = {o.plan_id: o.result for o in bulk.results}
    assert by_plan[good.id].success and by_plan[good.id].count == 3  # advance_days=14
    assert by_plan[broken.id].success is False
    assert bulk.exercises_generated == 3


def test_rollback_batch_keeps_touched_instances(svc, db, monday_plan):
    result = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 21))
    rows = _rows(db, monday_plan.id)
    rows[0].completed = True
    rows[1].modified_by_user = True
    db.commit()

    removed = svc.rollback_batch(monday_plan, result.batch_id)

    assert removed == 1
    assert [r.date for r in _rows(db, monday_plan.id)] == ["2024-01-01", "2024-01-08"]
    assert len(svc.instances.find_by_batch(monday_plan.id, result.batch_id)) == 2


def test_concurrent_generators_never_duplicate(session_factory, monday_plan):
    plan_id = monday_plan.id
    results = []
    start = threading.Barrier(2)

    def run():
        s = session_factory()
        try:
            svc = ExerciseGenerationService(s, tz=timezone.utc)
            plan = svc.get_plan(plan_id)
            start.wait()
            results.append(svc.generate(plan, date(2024, 1, 1), date(2024, 1, 28)))
        finally:
            s.close()

    threads = [threading.Thread(target=run) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    check = session_factory()
    try:
        dates = [r.date for r in _rows(check, plan_id)]
    finally:
        check.close()
    assert any(r.success for r in results)
    assert len(dates) == len(set(dates))
    assert sum(r.count for r in results) == len(dates) <= 4


def test_malformed_template_fails_without_writes(svc, db, make_plan, exercise):
    out_of_range = make_plan(weekly_template=[{"day_of_week": 9, "exercise_templates": []}])
    result = svc.generate(out_of_range, date(2024, 1, 1), date(2024, 1, 14))
    assert result.success is False and result.count == 0
    assert "weekly template" in result.message

    # Saturday missing
    six_days = make_plan(weekly_template=week({1: [exercise_template(exercise.id)]})[:6])
    result = svc.generate(six_days, date(2024, 1, 1), date(2024, 1, 14))
    assert result.success is False and result.count == 0
    assert _rows(db, six_days.id) == []
    db.refresh(six_days)
    assert six_days.generation_policy is None


def test_evening_creation_keeps_the_local_day(db, monday_plan):
    # 21:00 on Monday Jan 1 at UTC-5 is already Jan 2 in UTC
    monday_plan.created_at = datetime(2024, 1, 2, 2, 0)
    db.commit()
    svc = ExerciseGenerationService(db, today=lambda: date(2024, 1, 1), tz=timezone(timedelta(hours=-5)))

    result = svc.ensure_generated(monday_plan, min_days_in_advance=7)
    assert result.success
    assert result.start_date == "2024-01-01"
    assert [r.date for r in _rows(db, monday_plan.id)] == ["2024-01-01", "2024-01-08"]

    direct = svc.generate(monday_plan, date(2024, 1, 1), date(2024, 1, 1))
    assert direct.success
