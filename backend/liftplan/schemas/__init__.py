# backend/liftplan/schemas/__init__.py

# Workout plans
from .workout_plan import (
    DayTemplate,
    ExerciseTemplate,
    GenerationPolicy,
    WorkoutPlanCreate,
    WorkoutPlanUpdate,
    WorkoutPlanOut,
)

# Generation
from .generation import (
    GenerationResult,
    GenerationStatus,
    BulkGenerationResult,
)

# Conflicts
from .conflicts import (
    ConflictResolution,
    ResolutionStrategy,
)

# Scheduled exercises
from .scheduled_exercise import (
    ScheduledExerciseCreate,
    ScheduledExerciseUpdate,
    ScheduledExerciseOut,
)

__all__ = [
    "DayTemplate", "ExerciseTemplate", "GenerationPolicy",
    "WorkoutPlanCreate", "WorkoutPlanUpdate", "WorkoutPlanOut",
    "GenerationResult", "GenerationStatus", "BulkGenerationResult",
    "ConflictResolution", "ResolutionStrategy",
    "ScheduledExerciseCreate", "ScheduledExerciseUpdate", "ScheduledExerciseOut",
]
