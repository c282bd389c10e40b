# backend/tests/conftest.py
import os

# db.py builds its module engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from liftplan.db import get_db, make_engine, make_sessionmaker
from liftplan.models import Base, Category, Exercise, WorkoutPlan


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_sessionmaker(engine)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client(session_factory):
    from liftplan.main import build_app

    app = build_app()

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c


# ---- factories ---------------------------------------------------------------

def exercise_template(exercise_id: int, order_index: int = 0, **overrides) -> dict:
    t = {
        "exercise_id": exercise_id,
        "sets": 3,
        "reps": 10,
        "weight": 20.0,
        "weight_plates": {},
        "notes": "",
        "order_index": order_index,
    }
    t.update(overrides)
    return t


def week(days: Optional[Dict[int, List[dict]]] = None) -> List[dict]:
    """Seven DayTemplate dicts; `days` maps day_of_week (Sunday=0) to exercise templates."""
    days = days or {}
    return [
        {"day_of_week": d, "name": None, "exercise_templates": days.get(d, [])}
        for d in range(7)
    ]


@pytest.fixture
def exercise(db):
    category = Category(name="Legs")
    db.add(category)
    db.flush()
    ex = Exercise(name="Back Squat", category_id=category.id)
    db.add(ex)
    db.commit()
    return ex


@pytest.fixture
def second_exercise(db, exercise):
    ex = Exercise(name="Leg Press", category_id=exercise.category_id)
    db.add(ex)
    db.commit()
    return ex


@pytest.fixture
def make_plan(db):
    def _make(
        user_id: int = 1,
        name: str = "Plan",
        mode: str = "ongoing",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        weekly_template: Optional[List[dict]] = None,
        generation_policy: Optional[dict] = None,
        is_active: bool = False,
        created_at: datetime = datetime(2024, 1, 1, 9, 30),
    ) -> WorkoutPlan:
        plan = WorkoutPlan(
            user_id=user_id,
            name=name,
            level="beginner",
            mode=mode,
            start_date=start_date,
            end_date=end_date,
            weekly_template=weekly_template if weekly_template is not None else week(),
            generation_policy=generation_policy,
            is_active=is_active,
            created_at=created_at,
        )
        db.add(plan)
        db.commit()
        return plan

    return _make
