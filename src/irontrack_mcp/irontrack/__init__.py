from irontrack_mcp.irontrack.client import IronTrackClient
from irontrack_mcp.irontrack.drafts import DraftStore
from irontrack_mcp.irontrack.session import SessionEditor, SetReps, SetWeight
from irontrack_mcp.irontrack.models import (
    Exercise, MuscleGroup, Workout, WorkoutExercise, WorkoutSet, Profile,
)
from irontrack_mcp.irontrack.exceptions import (
    IronTrackError, AuthenticationError, APIError, ConfigurationError,
    SessionError, EmptyWorkoutError, SessionClosedError, WorkoutNotSavedError,
)

__all__ = [
    "IronTrackClient", "DraftStore",
    "SessionEditor", "SetWeight", "SetReps",
    "Exercise", "MuscleGroup", "Workout", "WorkoutExercise", "WorkoutSet", "Profile",
    "IronTrackError", "AuthenticationError", "APIError", "ConfigurationError",
    "SessionError", "EmptyWorkoutError", "SessionClosedError", "WorkoutNotSavedError",
]
