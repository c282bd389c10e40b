# backend/liftplan/services/template_expander.py
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Iterator, List, NamedTuple, Union

from liftplan.schemas.workout_plan import DayTemplate, ExerciseTemplate
from liftplan.services.calendar import day_of_week, iterate_dates


class ExpandedExercise(NamedTuple):
    date: date
    template: ExerciseTemplate


def parse_weekly_template(raw: Iterable[Union[dict, DayTemplate]]) -> List[DayTemplate]:
    """Stored JSON (or already-parsed days) -> DayTemplate list."""
    return [d if isinstance(d, DayTemplate) else DayTemplate.model_validate(d) for d in raw or []]


def expand_weekly_template(
    weekly_template: Iterable[Union[dict, DayTemplate]],
    start: date,
    end: date,
) -> Iterator[ExpandedExercise]:
    """
    Yield every (date, exercise template) the weekly pattern produces in [start, end].

    Chronological across days, order_index within a day (ties keep template order).
    Rest days and days missing from the template produce nothing.
    """
    dates = iterate_dates(start, end)  # raises before any output on a reversed range

    by_weekday: Dict[int, List[ExerciseTemplate]] = {}
    for day in parse_weekly_template(weekly_template):
        if not day.is_rest_day:
            by_weekday[day.day_of_week] = sorted(day.exercise_templates, key=lambda t: t.order_index)

    return _expand(dates, by_weekday)


def _expand(dates: Iterator[date], by_weekday: Dict[int, List[ExerciseTemplate]]) -> Iterator[ExpandedExercise]:
    for d in dates:
        for template in by_weekday.get(day_of_week(d), []):
            yield ExpandedExercise(d, template)
