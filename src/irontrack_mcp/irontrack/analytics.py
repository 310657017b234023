"""Derived statistics over completed workout history.

All functions are pure: they read the workouts they are given and build new
result objects, so repeated calls on the same input give the same output.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo

from irontrack_mcp.irontrack.models import (
    DailyVolume, ExerciseHistoryEntry, MuscleCount, ProgressPoint, Workout, WorkoutExercise,
)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _local_date(moment: datetime, tz: tzinfo | None) -> date:
    return moment.astimezone(tz).date()


def _first_instance(workout: Workout, exercise_id: str) -> WorkoutExercise | None:
    for exercise in workout.exercises:
        if exercise.exercise_id == exercise_id:
            return exercise
    return None


def muscle_distribution(workouts: Iterable[Workout]) -> list[MuscleCount]:
    """Completed sets per muscle group, most trained first."""
    counts: Counter = Counter()
    for workout in workouts:
        for exercise in workout.exercises:
            done = len(exercise.completed_sets)
            if done:
                counts[exercise.muscle] += done

    return [MuscleCount(muscle=muscle, sets=sets) for muscle, sets in counts.most_common()]


def weekly_volume(
    workouts: Iterable[Workout],
    today: date | None = None,
    tz: tzinfo | None = None,
) -> list[DailyVolume]:
    """Completed volume for today and the six days before it, oldest first.

    Days are calendar days in ``tz`` (local time when omitted).
    """
    if today is None:
        today = datetime.now(tz).date()

    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    totals = {day: 0.0 for day in days}

    for workout in workouts:
        day = _local_date(workout.start_time, tz)
        if day in totals:
            totals[day] += workout.live_volume

    return [
        DailyVolume(day=DAY_NAMES[day.weekday()], date=day, volume=totals[day])
        for day in days
    ]


def progress_from_history(
    entries: Iterable[ExerciseHistoryEntry],
    tz: tzinfo | None = None,
) -> list[ProgressPoint]:
    """One point per past performance with completed volume, oldest first.

    Points are dated by calendar day in ``tz`` (local time when omitted).
    """
    points = []
    for entry in sorted(entries, key=lambda e: e.start_time):
        volume = entry.exercise.completed_volume
        if volume <= 0:
            continue
        points.append(ProgressPoint(
            date=_local_date(entry.start_time, tz),
            max_weight=entry.exercise.max_completed_weight,
            total_volume=volume,
        ))
    return points


def history_entries(workouts: Iterable[Workout], exercise_id: str) -> list[ExerciseHistoryEntry]:
    entries = []
    for workout in workouts:
        found = _first_instance(workout, exercise_id)
        if found:
            entries.append(ExerciseHistoryEntry(start_time=workout.start_time, exercise=found))
    return entries


def exercise_progress(
    workouts: Iterable[Workout],
    exercise_id: str,
    tz: tzinfo | None = None,
) -> list[ProgressPoint]:
    """Max weight and volume of one exercise across workouts, oldest first."""
    return progress_from_history(history_entries(workouts, exercise_id), tz=tz)


def last_performances(
    workouts: Iterable[Workout],
    exercise_ids: Iterable[str],
) -> dict[str, WorkoutExercise]:
    """Latest performance per exercise id from a local workout list.

    The newest workout by start time wins; within a workout the first
    instance of the exercise is used.
    """
    wanted = set(exercise_ids)
    result: dict[str, WorkoutExercise] = {}
    if not wanted:
        return result

    for workout in sorted(workouts, key=lambda w: w.start_time, reverse=True):
        for exercise_id in wanted - result.keys():
            found = _first_instance(workout, exercise_id)
            if found:
                result[exercise_id] = found
        if len(result) == len(wanted):
            break

    return result
