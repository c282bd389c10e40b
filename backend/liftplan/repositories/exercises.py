# backend/liftplan/repositories/exercises.py
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from liftplan.models.category import Category
from liftplan.models.exercise import Exercise


class ExerciseRepository:
    """Exercise lookup; generation only needs the category of each exercise."""

    def __init__(self, db: Session):
        self.db = db
        self._category_cache: Dict[int, Optional[int]] = {}

    def get_by_id(self, exercise_id: int) -> Optional[Exercise]:
        return self.db.get(Exercise, exercise_id)

    def category_for(self, exercise_id: int) -> Optional[int]:
        if exercise_id not in self._category_cache:
            self._category_cache[exercise_id] = self.db.execute(
                select(Exercise.category_id).where(Exercise.id == exercise_id)
            ).scalar_one_or_none()
        return self._category_cache[exercise_id]

    def create_category(self, name: str) -> Category:
        category = Category(name=name.strip())
        self.db.add(category)
        self.db.flush()
        return category

    def create(self, name: str, category_id: int) -> Exercise:
        exercise = Exercise(name=name.strip(), category_id=category_id)
        self.db.add(exercise)
        self.db.flush()
        return exercise
