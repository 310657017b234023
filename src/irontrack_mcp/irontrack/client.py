"""IronTrack backend client."""

import json
import logging
import mimetypes
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

import httpx
from pydantic import TypeAdapter, ValidationError

from irontrack_mcp.irontrack.auth import SupabaseAuth
from irontrack_mcp.irontrack.catalog import SEED_EXERCISES
from irontrack_mcp.irontrack.models import (
    Exercise, ExerciseHistoryEntry, Profile, Workout, WorkoutExercise,
)
from irontrack_mcp.irontrack.exceptions import APIError

logger = logging.getLogger(__name__)

AVATAR_BUCKET = "avatars"
PROFILE_FIELDS = {"full_name", "height", "weight", "age", "gender", "avatar_url"}

_timestamp = TypeAdapter(datetime)


class IronTrackClient:
    """Client for the IronTrack Supabase backend.

    Reads made without a signed-in user return empty results and writes
    return ``False``; no session is not an error.
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._transport = transport
        self._auth = SupabaseAuth(url=url, anon_key=anon_key, transport=transport)

    @property
    def is_authenticated(self) -> bool:
        return self._auth.is_authenticated

    @property
    def user_id(self) -> str | None:
        return self._auth.user_id

    async def login(self, email: str, password: str) -> None:
        await self._auth.login(email, password)

    async def sign_up(self, email: str, password: str) -> bool:
        return await self._auth.sign_up(email, password)

    async def logout(self) -> None:
        await self._auth.logout()

    async def _ensure_authenticated(self) -> bool:
        if not self._auth.is_authenticated:
            return False
        if self._auth.is_token_expired:
            await self._auth.refresh()
        return True

    async def _request(self, method: str, path: str, headers: dict | None = None, **kwargs):
        url = f"{self._auth.url}{path}"

        async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
            response = await client.request(
                method,
                url,
                headers={**self._auth.get_auth_header(), **(headers or {})},
                **kwargs,
            )

            if response.status_code == 401:
                await self._auth.refresh()
                response = await client.request(
                    method,
                    url,
                    headers={**self._auth.get_auth_header(), **(headers or {})},
                    **kwargs,
                )

            if response.status_code >= 400:
                raise APIError(
                    f"API request failed: {response.text}",
                    status_code=response.status_code,
                )

            if not response.content:
                return None
            return response.json()

    # --- Exercises ---

    async def get_exercises(self) -> list[Exercise]:
        """Return the built-in catalog followed by the user's custom exercises."""
        exercises = list(SEED_EXERCISES)
        if not await self._ensure_authenticated():
            return exercises

        try:
            rows = await self._request(
                "GET", "/rest/v1/custom_exercises", params={"select": "*"},
            )
        except APIError as e:
            logger.error("Error fetching custom exercises: %s", e)
            return exercises

        for row in rows or []:
            exercise = self._parse_exercise(row)
            if exercise:
                exercises.append(exercise)

        return exercises

    async def create_exercise(self, exercise: Exercise) -> bool:
        """Save a custom exercise for the signed-in user."""
        if not await self._ensure_authenticated():
            logger.warning("Not signed in, custom exercise %s not saved", exercise.name)
            return False

        payload = {
            "id": exercise.id,
            "user_id": self._auth.user_id,
            "name": exercise.name,
            "muscle": exercise.muscle.value,
        }
        if exercise.equipment:
            payload["equipment"] = exercise.equipment

        await self._request(
            "POST",
            "/rest/v1/custom_exercises",
            json=payload,
            headers={"Prefer": "return=minimal"},
        )
        return True

    # --- Workouts ---

    async def get_workouts(self, limit: int = 50) -> list[Workout]:
        """Fetch completed workouts, newest first."""
        if not await self._ensure_authenticated():
            return []

        try:
            rows = await self._request(
                "GET",
                "/rest/v1/workouts",
                params={"select": "*", "order": "start_time.desc", "limit": limit},
            )
        except APIError as e:
            logger.error("Error fetching workouts: %s", e)
            return []

        workouts = []
        for row in rows or []:
            workout = self._parse_workout(row)
            if workout:
                workouts.append(workout)

        return sorted(workouts, key=lambda w: w.start_time, reverse=True)[:limit]

    async def create_completed_workout(self, workout: Workout) -> bool:
        """Store a finished workout. Raises APIError if the backend rejects it."""
        if workout.status != "completed":
            raise ValueError("Only completed workouts can be stored")
        if not await self._ensure_authenticated():
            logger.warning("Not signed in, workout %s not saved", workout.id)
            return False

        data = workout.to_json()
        await self._request(
            "POST",
            "/rest/v1/workouts",
            json={
                "user_id": self._auth.user_id,
                "name": data["name"],
                "start_time": data["startTime"],
                "end_time": data.get("endTime"),
                "volume": data["volume"],
                "exercises": data["exercises"],
                "status": "completed",
            },
            headers={"Prefer": "return=minimal"},
        )
        return True

    # --- Last performance ---

    async def resolve_last_performances(
        self, exercise_ids: Iterable[str],
    ) -> dict[str, WorkoutExercise]:
        """Most recent recorded performance per exercise id, in one RPC call.

        Ids without history are left out of the result.
        """
        ids = list(dict.fromkeys(exercise_ids))
        if not ids:
            return {}
        if not await self._ensure_authenticated():
            return {}

        try:
            rows = await self._request(
                "POST",
                "/rest/v1/rpc/get_last_performances_batch",
                json={"p_exercise_ids": ids},
            )
        except APIError as e:
            logger.error("Error fetching last performances: %s", e)
            return {}

        wanted = set(ids)
        result: dict[str, WorkoutExercise] = {}
        for row in sorted(rows or [], key=self._row_start_time, reverse=True):
            exercise_id = row.get("exercise_id")
            if exercise_id not in wanted or exercise_id in result:
                continue
            found = self._find_instance(row.get("workout_data"), exercise_id)
            if found:
                result[exercise_id] = found

        return result

    async def get_last_performance(self, exercise_id: str) -> WorkoutExercise | None:
        result = await self.resolve_last_performances([exercise_id])
        return result.get(exercise_id)

    async def get_exercise_history(self, exercise_id: str) -> list[ExerciseHistoryEntry]:
        """Past performances of one exercise, oldest first."""
        if not await self._ensure_authenticated():
            return []

        try:
            rows = await self._request(
                "GET",
                "/rest/v1/workouts",
                params={
                    "select": "exercises,start_time",
                    "exercises": "cs." + json.dumps([{"exerciseId": exercise_id}]),
                    "order": "start_time.asc",
                },
            )
        except APIError as e:
            logger.error("Error fetching history for %s: %s", exercise_id, e)
            return []

        history = []
        for row in rows or []:
            found = self._find_instance(row.get("exercises"), exercise_id)
            if found:
                history.append(ExerciseHistoryEntry(start_time=row["start_time"], exercise=found))

        return sorted(history, key=lambda h: h.start_time)

    # --- Profile ---

    async def get_profile(self) -> Profile | None:
        if not await self._ensure_authenticated():
            return None

        try:
            rows = await self._request(
                "GET",
                "/rest/v1/profiles",
                params={"select": "*", "id": f"eq.{self._auth.user_id}"},
            )
        except APIError as e:
            logger.error("Error loading profile: %s", e)
            return None

        if rows:
            return Profile.model_validate(rows[0])
        return Profile(id=self._auth.user_id, email=self._auth.email)

    async def update_profile(self, **fields) -> bool:
        """Upsert profile fields. Raises APIError if the backend rejects it."""
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        if not await self._ensure_authenticated():
            return False

        await self._request(
            "POST",
            "/rest/v1/profiles",
            json={
                "id": self._auth.user_id,
                **fields,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        return True

    async def upload_avatar(self, path: str | Path) -> str | None:
        """Upload an image to the avatars bucket and point the profile at it."""
        if not await self._ensure_authenticated():
            return None

        path = Path(path)
        content = path.read_bytes()
        file_name = f"{self._auth.user_id}-{uuid.uuid4().hex}{path.suffix}"
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        await self._request(
            "POST",
            f"/storage/v1/object/{AVATAR_BUCKET}/{file_name}",
            content=content,
            headers={"Content-Type": content_type},
        )

        public_url = f"{self._auth.url}/storage/v1/object/public/{AVATAR_BUCKET}/{file_name}"
        await self.update_profile(avatar_url=public_url)
        return public_url

    # --- Parsing helpers ---

    @staticmethod
    def _parse_exercise(row: dict) -> Exercise | None:
        try:
            return Exercise.model_validate(row)
        except ValidationError:
            logger.warning("Skipping malformed custom exercise %r", row.get("id"))
            return None

    @staticmethod
    def _parse_workout(row: dict) -> Workout | None:
        exercises = row.get("exercises") or []
        if isinstance(exercises, str):
            exercises = json.loads(exercises)
        try:
            return Workout.model_validate({
                "id": str(row["id"]),
                "name": row.get("name") or "Workout",
                "start_time": row["start_time"],
                "end_time": row.get("end_time"),
                "exercises": exercises,
                "volume": row.get("volume") or 0,
                "status": row.get("status") or "completed",
            })
        except (KeyError, ValidationError):
            logger.warning("Skipping malformed workout %r", row.get("id"))
            return None

    @staticmethod
    def _find_instance(exercises, exercise_id: str) -> WorkoutExercise | None:
        if isinstance(exercises, str):
            exercises = json.loads(exercises)
        for data in exercises or []:
            if data.get("exerciseId") == exercise_id:
                try:
                    return WorkoutExercise.model_validate(data)
                except ValidationError:
                    logger.warning("Skipping malformed exercise entry for %s", exercise_id)
                    return None
        return None

    @staticmethod
    def _row_start_time(row: dict) -> datetime:
        try:
            value = _timestamp.validate_python(row.get("start_time"))
        except ValidationError:
            return datetime.min.replace(tzinfo=timezone.utc)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def get_auth_state(self) -> dict:
        return self._auth.to_dict()

    def restore_auth_state(self, state: dict) -> None:
        self._auth = SupabaseAuth.from_dict(
            state,
            url=self._auth.url,
            anon_key=self._auth.anon_key,
            transport=self._transport,
        )
