from datetime import datetime, timedelta, timezone

import httpx
import pytest

from irontrack_mcp.irontrack.client import IronTrackClient
from irontrack_mcp.irontrack.drafts import DraftStore
from irontrack_mcp.irontrack.models import Workout

BASE_URL = "https://demo.supabase.co"


def make_workout(
    start: datetime,
    exercises: list[dict],
    workout_id: str = "w1",
    status: str = "completed",
) -> Workout:
    return Workout.model_validate({
        "id": workout_id,
        "name": "Test Workout",
        "startTime": start.isoformat(),
        "exercises": exercises,
        "status": status,
    })


def exercise_entry(instance_id: str, exercise_id: str, muscle: str, sets: list[tuple]) -> dict:
    """Build a WorkoutExercise payload from (weight, reps, completed) tuples."""
    return {
        "id": instance_id,
        "exerciseId": exercise_id,
        "name": exercise_id,
        "muscle": muscle,
        "sets": [
            {"id": f"{instance_id}-{i}", "weight": w, "reps": r, "completed": c}
            for i, (w, r, c) in enumerate(sets)
        ],
    }


@pytest.fixture
def store(tmp_path):
    return DraftStore(tmp_path / "draft.json")


def make_client(handler, authenticated: bool = True) -> IronTrackClient:
    client = IronTrackClient(url=BASE_URL, anon_key="anon", transport=httpx.MockTransport(handler))
    if authenticated:
        client.restore_auth_state({
            "access_token": "token",
            "refresh_token": "refresh",
            "user_id": "user-1",
            "token_expiry": (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat(),
        })
    return client
