from .workout_plans import WorkoutPlanRepository
from .scheduled_exercises import ScheduledExerciseRepository
from .exercises import ExerciseRepository

__all__ = [
    "WorkoutPlanRepository",
    "ScheduledExerciseRepository",
    "ExerciseRepository",
]
