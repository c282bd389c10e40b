# backend/liftplan/models/__init__.py
# IMPORTANT: Use Base from liftplan.db since all models import from there
from liftplan.db import Base

# import all model modules so tables get registered on Base.metadata
from .category import Category
from .exercise import Exercise
from .workout_plan import WorkoutPlan
from .scheduled_exercise import ScheduledExercise


__all__ = [
    "Base",
    "Category",
    "Exercise",
    "WorkoutPlan",
    "ScheduledExercise",
]
