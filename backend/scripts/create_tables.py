# backend/scripts/create_tables.py
# Local bootstrap without alembic: create every table and seed a few exercises.
import os
os.environ.setdefault("DATABASE_URL", "sqlite:///./liftplan.db")

from sqlalchemy import inspect, select

from liftplan.db import engine, Base, SessionLocal
# IMPORTANT: import the models package so the tables are registered on Base.metadata
from liftplan.models import Category
from liftplan.repositories import ExerciseRepository

SEED = {
    "Chest": ["Bench Press", "Incline Dumbbell Press"],
    "Back": ["Deadlift", "Barbell Row", "Pull Up"],
    "Legs": ["Back Squat", "Romanian Deadlift"],
}

Base.metadata.create_all(bind=engine)

with SessionLocal() as s:
    if s.execute(select(Category.id).limit(1)).first() is None:
        repo = ExerciseRepository(s)
        for category_name, exercises in SEED.items():
            category = repo.create_category(category_name)
            for name in exercises:
                repo.create(name, category.id)
        s.commit()

# Show what was actually created
insp = inspect(engine)
print("tables:", insp.get_table_names(schema=None))
