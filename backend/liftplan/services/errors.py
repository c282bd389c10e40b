"""Error types raised by the plan services.

Routers translate these into HTTP responses; the generation and conflict
services convert everything else into structured results.
"""


class NotFoundError(LookupError):
    """A referenced plan, exercise or scheduled exercise does not exist for this user."""

    entity = "Resource"

    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found")


class PlanNotFoundError(NotFoundError):
    entity = "Workout plan"


class ExerciseNotFoundError(NotFoundError):
    entity = "Exercise"


class ScheduledExerciseNotFoundError(NotFoundError):
    entity = "Scheduled exercise"
