"""Editing of the single in-progress workout."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field

from irontrack_mcp.irontrack.drafts import DraftStore
from irontrack_mcp.irontrack.exceptions import (
    EmptyWorkoutError, SessionClosedError, WorkoutNotSavedError,
)
from irontrack_mcp.irontrack.models import Exercise, Workout, WorkoutExercise, WorkoutSet

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def workout_name_for(moment: datetime) -> str:
    """Name a workout by the local hour it starts in."""
    hour = moment.astimezone().hour
    if hour < 12:
        return "Morning Workout"
    if hour < 17:
        return "Afternoon Workout"
    return "Evening Workout"


def format_elapsed(delta: timedelta) -> str:
    seconds = max(int(delta.total_seconds()), 0)
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}:{seconds:02d}"


class SetWeight(BaseModel):
    """Replace the weight of a set."""
    model_config = ConfigDict(frozen=True)
    __match_args__ = ("value",)

    value: float = Field(ge=0)

    def __init__(self, value: float, **data):
        super().__init__(value=value, **data)


class SetReps(BaseModel):
    """Replace the rep count of a set."""
    model_config = ConfigDict(frozen=True)
    __match_args__ = ("value",)

    value: int = Field(ge=0)

    def __init__(self, value: int, **data):
        super().__init__(value=value, **data)


SetUpdate = SetWeight | SetReps


class SessionEditor:
    """Owns one active workout and mirrors it to a draft store.

    Every mutation writes the whole workout to the store before returning.
    A failed autosave is logged and retried implicitly by the next mutation;
    ``finish`` never hides a failed save.
    """

    def __init__(self, workout: Workout, store: DraftStore):
        if not workout.is_active:
            raise SessionClosedError(f"Workout {workout.id} is already completed")
        self._workout = workout
        self._store = store
        self._closed = False

    @classmethod
    def open(cls, store: DraftStore, now: datetime | None = None) -> "SessionEditor":
        """Resume the stored draft or start a new workout."""
        existing = store.get()
        if existing is not None and existing.is_active:
            logger.info("Resuming workout %s", existing.id)
            return cls(existing, store)

        now = now or datetime.now(timezone.utc)
        workout = Workout(
            id=new_id(),
            name=workout_name_for(now),
            start_time=now,
            exercises=[],
            volume=0,
            status="active",
        )
        logger.info("Starting workout %s", workout.id)
        editor = cls(workout, store)
        editor._autosave()
        return editor

    @property
    def workout(self) -> Workout:
        return self._workout

    @property
    def is_open(self) -> bool:
        return not self._closed

    def elapsed(self, now: datetime | None = None) -> timedelta:
        now = now or datetime.now(timezone.utc)
        return now - self._workout.start_time

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Workout {self._workout.id} is no longer active")

    def _autosave(self) -> None:
        try:
            self._store.put(self._workout)
        except OSError as e:
            logger.warning("Autosave of workout %s failed: %s", self._workout.id, e)

    def _find_set(self, instance_id: str, set_id: str) -> WorkoutSet | None:
        exercise = self._workout.find_exercise(instance_id)
        if exercise is None:
            return None
        for workout_set in exercise.sets:
            if workout_set.id == set_id:
                return workout_set
        return None

    def add_exercise(self, exercise: Exercise) -> WorkoutExercise:
        self._check_open()
        instance = WorkoutExercise(
            id=new_id(),
            exercise_id=exercise.id,
            name=exercise.name,
            muscle=exercise.muscle,
            sets=[WorkoutSet(id=new_id())],
        )
        self._workout.exercises.append(instance)
        self._autosave()
        return instance

    def add_set(self, instance_id: str) -> WorkoutSet | None:
        self._check_open()
        exercise = self._workout.find_exercise(instance_id)
        if exercise is None:
            return None

        new_set = WorkoutSet(id=new_id())
        if exercise.sets:
            last = exercise.sets[-1]
            new_set.weight = last.weight
            new_set.reps = last.reps
        exercise.sets.append(new_set)
        self._autosave()
        return new_set

    def update_set(self, instance_id: str, set_id: str, update: SetUpdate) -> bool:
        self._check_open()
        workout_set = self._find_set(instance_id, set_id)
        if workout_set is None:
            return False

        match update:
            case SetWeight(value):
                workout_set.weight = value
            case SetReps(value):
                workout_set.reps = value
            case _:
                raise TypeError(f"Unsupported set update: {update!r}")
        self._autosave()
        return True

    def toggle_set_complete(self, instance_id: str, set_id: str) -> bool:
        self._check_open()
        workout_set = self._find_set(instance_id, set_id)
        if workout_set is None:
            return False
        workout_set.completed = not workout_set.completed
        self._autosave()
        return True

    def remove_set(self, instance_id: str, set_id: str) -> bool:
        self._check_open()
        exercise = self._workout.find_exercise(instance_id)
        if exercise is None:
            return False
        before = len(exercise.sets)
        exercise.sets = [s for s in exercise.sets if s.id != set_id]
        if len(exercise.sets) == before:
            return False
        self._autosave()
        return True

    def remove_exercise(self, instance_id: str) -> bool:
        self._check_open()
        before = len(self._workout.exercises)
        self._workout.exercises = [e for e in self._workout.exercises if e.id != instance_id]
        if len(self._workout.exercises) == before:
            return False
        self._autosave()
        return True

    async def finish(self, gateway, now: datetime | None = None) -> Workout:
        """Freeze volume, store the workout as completed and drop the draft.

        ``gateway`` needs an async ``create_completed_workout(workout)``
        returning whether the workout was stored.
        """
        self._check_open()
        if not self._workout.exercises:
            raise EmptyWorkoutError("Add at least one exercise before finishing")

        completed = self._workout.model_copy(
            deep=True,
            update={
                "end_time": now or datetime.now(timezone.utc),
                "volume": self._workout.live_volume,
                "status": "completed",
            },
        )

        if not await gateway.create_completed_workout(completed):
            raise WorkoutNotSavedError(
                f"Workout {completed.id} was not saved; the draft is kept"
            )

        try:
            self._store.clear()
        except OSError as e:
            logger.warning("Could not clear draft of saved workout %s: %s", completed.id, e)
        self._workout = completed
        self._closed = True
        logger.info("Finished workout %s with volume %.0f", completed.id, completed.volume)
        return completed

    def discard(self) -> None:
        """Drop the draft without saving. Callers confirm with the user first."""
        self._check_open()
        self._store.clear()
        self._closed = True
        logger.info("Discarded workout %s", self._workout.id)
