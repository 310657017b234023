"""IronTrack data models."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MuscleGroup(str, Enum):
    CHEST = "Chest"
    BACK = "Back"
    LEGS = "Legs"
    SHOULDERS = "Shoulders"
    ARMS = "Arms"
    CORE = "Core"
    CARDIO = "Cardio"
    OTHER = "Other"


class Exercise(BaseModel):
    """An exercise in the catalog, built-in or custom."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    muscle: MuscleGroup
    equipment: str | None = None


class WorkoutSet(BaseModel):
    """A single set within a workout exercise."""
    model_config = ConfigDict(validate_assignment=True)

    id: str
    weight: float = Field(default=0, ge=0)
    reps: int = Field(default=0, ge=0)
    completed: bool = False
    rpe: float | None = None

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class WorkoutExercise(BaseModel):
    """One exercise instance inside a workout.

    ``name`` and ``muscle`` are copied from the catalog when the exercise is
    added, so history keeps rendering after the catalog entry changes.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    exercise_id: str = Field(alias="exerciseId")
    name: str
    muscle: MuscleGroup
    sets: list[WorkoutSet] = []

    @property
    def completed_sets(self) -> list[WorkoutSet]:
        return [s for s in self.sets if s.completed]

    @property
    def completed_volume(self) -> float:
        return sum(s.volume for s in self.completed_sets)

    @property
    def max_completed_weight(self) -> float:
        return max((s.weight for s in self.completed_sets), default=0)


class Workout(BaseModel):
    """A workout session, active or completed."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    start_time: datetime = Field(alias="startTime")
    end_time: datetime | None = Field(default=None, alias="endTime")
    exercises: list[WorkoutExercise] = []
    volume: float = 0
    status: Literal["active", "completed"] = "active"

    @field_validator("start_time", "end_time")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        return _aware(value)

    @model_validator(mode="after")
    def _end_time_only_when_completed(self) -> "Workout":
        if self.status == "active" and self.end_time is not None:
            raise ValueError("an active workout cannot have an end time")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def duration_minutes(self) -> int | None:
        if self.end_time:
            return int((self.end_time - self.start_time).total_seconds() / 60)
        return None

    @property
    def completed_sets(self) -> list[WorkoutSet]:
        return [s for e in self.exercises for s in e.completed_sets]

    @property
    def live_volume(self) -> float:
        return sum(e.completed_volume for e in self.exercises)

    def find_exercise(self, instance_id: str) -> WorkoutExercise | None:
        for exercise in self.exercises:
            if exercise.id == instance_id:
                return exercise
        return None

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Profile(BaseModel):
    """The signed-in user's profile row."""
    id: str
    email: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    height: float | None = None
    weight: float | None = None
    age: int | None = None
    gender: str | None = None


class ExerciseHistoryEntry(BaseModel):
    """One past performance of an exercise with the workout's start time."""
    start_time: datetime
    exercise: WorkoutExercise

    @field_validator("start_time")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return _aware(value)


class MuscleCount(BaseModel):
    muscle: MuscleGroup
    sets: int


class DailyVolume(BaseModel):
    day: str
    date: date
    volume: float = 0


class ProgressPoint(BaseModel):
    date: date
    max_weight: float
    total_volume: float
