"""IronTrack MCP Server."""

import os
import sys
import logging

from mcp.server.fastmcp import FastMCP

from irontrack_mcp.irontrack import analytics
from irontrack_mcp.irontrack.catalog import find_exercise, search_exercises
from irontrack_mcp.irontrack.client import IronTrackClient
from irontrack_mcp.irontrack.drafts import DraftStore
from irontrack_mcp.irontrack.exceptions import APIError, SessionError
from irontrack_mcp.irontrack.models import Exercise, MuscleGroup, Workout, WorkoutExercise
from irontrack_mcp.irontrack.session import (
    SessionEditor, SetReps, SetWeight, format_elapsed, new_id,
)

logger = logging.getLogger(__name__)

mcp = FastMCP("irontrack")
client = IronTrackClient()
drafts = DraftStore()

_editor: SessionEditor | None = None
_last_performances: dict[str, WorkoutExercise] = {}
_auto_login = True


async def _ensure_login() -> None:
    """Auto-login using env vars; without them the tools run signed out."""
    if client.is_authenticated or not _auto_login:
        return

    email = os.environ.get("IRONTRACK_EMAIL")
    password = os.environ.get("IRONTRACK_PASSWORD")
    if not email or not password:
        logger.debug("IRONTRACK_EMAIL/IRONTRACK_PASSWORD not set, running signed out")
        return
    await client.login(email, password)


def _active_editor() -> SessionEditor:
    global _editor
    if _editor is not None and _editor.is_open:
        return _editor
    if drafts.get() is None:
        raise SessionError("No active workout. Call start_workout first.")
    _editor = SessionEditor.open(drafts)
    return _editor


def _parse_muscle(muscle: str) -> MuscleGroup:
    try:
        return MuscleGroup(muscle.strip().capitalize())
    except ValueError:
        valid = ", ".join(m.value for m in MuscleGroup)
        raise ValueError(f"Unknown muscle group '{muscle}'. Choose one of: {valid}") from None


def _format_sets(exercise: WorkoutExercise) -> str:
    return ", ".join(f"{s.weight:g}kg x {s.reps}" for s in exercise.completed_sets)


def _render_session(editor: SessionEditor) -> str:
    w = editor.workout
    lines = [f"## {w.name} — {format_elapsed(editor.elapsed())} elapsed"]
    lines.append(f"Workout id: {w.id} | Live volume: {w.live_volume:.0f} kg")

    if not w.exercises:
        lines.append("No exercises added yet.")
        return "\n".join(lines)

    for ex in w.exercises:
        lines.append(f"\n### {ex.name} [{ex.muscle.value}] (instance: {ex.id})")
        last = _last_performances.get(ex.exercise_id)
        if last and last.completed_sets:
            lines.append(f"  Last time: {_format_sets(last)}")
        if not ex.sets:
            lines.append("  No sets.")
        for idx, s in enumerate(ex.sets):
            mark = "x" if s.completed else " "
            prev = "-"
            if last and idx < len(last.sets) and last.sets[idx].completed:
                prev = f"{last.sets[idx].weight:g}x{last.sets[idx].reps}"
            lines.append(
                f"  {idx + 1}. [{mark}] {s.weight:g}kg x {s.reps} (set: {s.id}, previous: {prev})"
            )

    return "\n".join(lines)


def _render_workout(w: Workout) -> list[str]:
    duration = f" ({w.duration_minutes}min)" if w.duration_minutes is not None else ""
    date_str = w.start_time.astimezone().strftime("%Y-%m-%d %H:%M")
    lines = [f"## {w.name} — {date_str}{duration}"]
    lines.append(f"Total volume: {w.volume:.0f} kg | Completed sets: {len(w.completed_sets)}")
    for ex in w.exercises:
        sets = _format_sets(ex)
        if sets:
            lines.append(f"  {ex.name}: {sets}")
    lines.append("")
    return lines


# --- Account ---

@mcp.tool()
async def sign_up(email: str, password: str) -> str:
    """Create an IronTrack account.

    Args:
        email: Account email address.
        password: Account password.
    """
    global _auto_login
    signed_in = await client.sign_up(email, password)
    if not signed_in:
        return "Account created! Confirm your email, then call login."
    _auto_login = True
    return f"Account created and signed in as {email}."


@mcp.tool()
async def login(email: str, password: str) -> str:
    """Sign in with email and password.

    Args:
        email: Account email address.
        password: Account password.
    """
    global _auto_login
    await client.login(email, password)
    _auto_login = True
    return f"Signed in as {email}."


@mcp.tool()
async def logout() -> str:
    """Sign out. Cloud history is unavailable until the next login."""
    global _auto_login
    await client.logout()
    _auto_login = False
    return "Signed out."


# --- Exercises ---

@mcp.tool()
async def get_exercises(query: str | None = None, muscle: str | None = None) -> str:
    """List the exercise catalog, including custom exercises.

    Args:
        query: Case-insensitive text matched against exercise name and muscle.
        muscle: Only return exercises for this muscle group (e.g. "Chest").
    """
    await _ensure_login()

    exercises = await client.get_exercises()
    group = _parse_muscle(muscle) if muscle else None
    exercises = search_exercises(exercises, query=query, muscle=group)

    if not exercises:
        return "No exercises found."

    lines = [f"Found {len(exercises)} exercises:\n"]
    for ex in exercises:
        equipment = f", {ex.equipment}" if ex.equipment else ""
        lines.append(f"- **{ex.name}** (id: {ex.id}, {ex.muscle.value}{equipment})")

    return "\n".join(lines)


@mcp.tool()
async def create_exercise(name: str, muscle: str, equipment: str | None = None) -> str:
    """Add a custom exercise to the catalog.

    Args:
        name: Exercise name.
        muscle: Muscle group: Chest, Back, Legs, Shoulders, Arms, Core, Cardio or Other.
        equipment: Optional equipment description.
    """
    await _ensure_login()

    if not name.strip():
        return "Exercise name must not be empty."

    exercise = Exercise(
        id=f"custom_{new_id()}",
        name=name.strip(),
        muscle=_parse_muscle(muscle),
        equipment=equipment,
    )
    try:
        saved = await client.create_exercise(exercise)
    except APIError as e:
        logger.error("Error saving exercise: %s", e)
        return f"Failed to save exercise to cloud: {e}"

    if not saved:
        return "Not signed in, cannot save custom exercises."
    return f"Created **{exercise.name}** (id: {exercise.id})."


# --- Active workout ---

@mcp.tool()
async def start_workout() -> str:
    """Start a new workout, or resume the one in progress."""
    global _editor
    await _ensure_login()

    if _editor is None or not _editor.is_open:
        _editor = SessionEditor.open(drafts)
    ids = {ex.exercise_id for ex in _editor.workout.exercises} - _last_performances.keys()
    _last_performances.update(await client.resolve_last_performances(ids))

    return _render_session(_editor)


@mcp.tool()
async def get_active_workout() -> str:
    """Show the workout in progress with set ids and last-time references."""
    return _render_session(_active_editor())


@mcp.tool()
async def add_exercise(exercise_id: str) -> str:
    """Add a catalog exercise to the active workout with one empty set.

    Args:
        exercise_id: Catalog id (from get_exercises).
    """
    await _ensure_login()
    editor = _active_editor()

    exercise = find_exercise(await client.get_exercises(), exercise_id)
    if exercise is None:
        return f"Unknown exercise id '{exercise_id}'."

    editor.add_exercise(exercise)
    if exercise.id not in _last_performances:
        _last_performances.update(await client.resolve_last_performances([exercise.id]))

    return _render_session(editor)


@mcp.tool()
async def add_set(instance_id: str) -> str:
    """Append a set, copying weight and reps from the previous set.

    Args:
        instance_id: Exercise instance id within the workout.
    """
    editor = _active_editor()
    if editor.add_set(instance_id) is None:
        return f"No exercise '{instance_id}' in this workout."
    return _render_session(editor)


@mcp.tool()
async def update_set(
    instance_id: str,
    set_id: str,
    weight: float | None = None,
    reps: int | None = None,
) -> str:
    """Change the weight and/or reps of a set.

    Args:
        instance_id: Exercise instance id within the workout.
        set_id: Set id.
        weight: New weight in kg.
        reps: New rep count.
    """
    editor = _active_editor()
    updates = []
    if weight is not None:
        updates.append(SetWeight(weight))
    if reps is not None:
        updates.append(SetReps(reps))
    if not updates:
        return "Nothing to update: pass weight and/or reps."

    for update in updates:
        if not editor.update_set(instance_id, set_id, update):
            return f"No set '{set_id}' in exercise '{instance_id}'."
    return _render_session(editor)


@mcp.tool()
async def toggle_set(instance_id: str, set_id: str) -> str:
    """Mark a set as completed, or back to not completed."""
    editor = _active_editor()
    if not editor.toggle_set_complete(instance_id, set_id):
        return f"No set '{set_id}' in exercise '{instance_id}'."
    return _render_session(editor)


@mcp.tool()
async def remove_set(instance_id: str, set_id: str) -> str:
    """Remove a set from an exercise."""
    editor = _active_editor()
    if not editor.remove_set(instance_id, set_id):
        return f"No set '{set_id}' in exercise '{instance_id}'."
    return _render_session(editor)


@mcp.tool()
async def remove_exercise(instance_id: str) -> str:
    """Remove an exercise and its sets from the active workout."""
    editor = _active_editor()
    if not editor.remove_exercise(instance_id):
        return f"No exercise '{instance_id}' in this workout."
    return _render_session(editor)


@mcp.tool()
async def finish_workout() -> str:
    """Finish the active workout and save it to history."""
    await _ensure_login()
    editor = _active_editor()

    workout = await editor.finish(client)
    _last_performances.clear()

    lines = ["Workout saved.\n"]
    lines.extend(_render_workout(workout))
    return "\n".join(lines)


@mcp.tool()
async def discard_workout(confirm: bool = False) -> str:
    """Throw away the active workout without saving. Cannot be undone.

    Args:
        confirm: Must be true; ask the user before discarding.
    """
    if not confirm:
        return "Discarding deletes the workout in progress. Call again with confirm=true."

    _active_editor().discard()
    _last_performances.clear()
    return "Workout discarded."


# --- History and analytics ---

@mcp.tool()
async def get_workouts(limit: int = 50) -> str:
    """Fetch completed workouts, newest first.

    Args:
        limit: Maximum number of workouts to return (default 50).
    """
    await _ensure_login()

    workouts = await client.get_workouts(limit=limit)
    if not workouts:
        return "No workouts found."

    lines = []
    for w in workouts:
        lines.extend(_render_workout(w))
    return "\n".join(lines)


@mcp.tool()
async def get_muscle_distribution(limit: int = 50) -> str:
    """Completed sets per muscle group over recent workouts.

    Args:
        limit: Number of recent workouts to include (default 50).
    """
    await _ensure_login()

    counts = analytics.muscle_distribution(await client.get_workouts(limit=limit))
    if not counts:
        return "No completed sets yet."

    total = sum(c.sets for c in counts)
    lines = ["Completed sets by muscle group:\n"]
    for c in counts:
        lines.append(f"- {c.muscle.value}: {c.sets} sets ({c.sets / total:.0%})")
    return "\n".join(lines)


@mcp.tool()
async def get_weekly_volume() -> str:
    """Completed volume per day for the last 7 days."""
    await _ensure_login()

    days = analytics.weekly_volume(await client.get_workouts())
    lines = ["Volume, last 7 days:\n"]
    for d in days:
        lines.append(f"- {d.day} {d.date.isoformat()}: {d.volume:.0f} kg")
    return "\n".join(lines)


@mcp.tool()
async def get_exercise_progress(exercise_id: str) -> str:
    """Max weight and volume per workout for one exercise, oldest first.

    Args:
        exercise_id: Catalog id (from get_exercises).
    """
    await _ensure_login()

    points = analytics.progress_from_history(await client.get_exercise_history(exercise_id))
    if not points:
        return "No completed sets recorded for this exercise."

    lines = [f"Progress for {exercise_id}:\n"]
    for p in points:
        lines.append(
            f"- {p.date.strftime('%b %d')}: max {p.max_weight:g} kg, volume {p.total_volume:.0f} kg"
        )
    return "\n".join(lines)


# --- Profile ---

@mcp.tool()
async def get_profile() -> str:
    """Show the signed-in user's profile."""
    await _ensure_login()

    profile = await client.get_profile()
    if profile is None:
        return "Not signed in."

    lines = [f"# {profile.full_name or 'Unnamed athlete'}"]
    for label, value, unit in [
        ("Email", profile.email, ""),
        ("Height", profile.height, " cm"),
        ("Weight", profile.weight, " kg"),
        ("Age", profile.age, ""),
        ("Gender", profile.gender, ""),
        ("Avatar", profile.avatar_url, ""),
    ]:
        if value is not None:
            lines.append(f"- {label}: {value}{unit}")
    return "\n".join(lines)


@mcp.tool()
async def update_profile(
    full_name: str | None = None,
    height: float | None = None,
    weight: float | None = None,
    age: int | None = None,
    gender: str | None = None,
) -> str:
    """Update profile fields; omitted fields are left unchanged."""
    await _ensure_login()

    fields = {
        k: v for k, v in {
            "full_name": full_name, "height": height, "weight": weight,
            "age": age, "gender": gender,
        }.items() if v is not None
    }
    if not fields:
        return "Nothing to update."

    try:
        saved = await client.update_profile(**fields)
    except APIError as e:
        logger.error("Error saving profile: %s", e)
        return f"Failed to update profile: {e}"

    return "Profile updated successfully!" if saved else "Not signed in."


@mcp.tool()
async def upload_avatar(file_path: str) -> str:
    """Upload an image file as the profile avatar.

    Args:
        file_path: Path to a local image file.
    """
    await _ensure_login()

    try:
        url = await client.upload_avatar(file_path)
    except FileNotFoundError:
        return f"No such file: {file_path}"
    except APIError as e:
        logger.error("Error uploading avatar: %s", e)
        return f"Failed to upload avatar: {e}"

    return f"Avatar uploaded: {url}" if url else "Not signed in."


def main():
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("IRONTRACK_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
