"""Built-in exercise catalog."""

from irontrack_mcp.irontrack.models import Exercise, MuscleGroup

SEED_EXERCISES: tuple[Exercise, ...] = (
    Exercise(id="ex_1", name="Barbell Bench Press", muscle=MuscleGroup.CHEST),
    Exercise(id="ex_2", name="Incline Dumbbell Press", muscle=MuscleGroup.CHEST),
    Exercise(id="ex_3", name="Pec Deck Fly", muscle=MuscleGroup.CHEST),
    Exercise(id="ex_4", name="Pull Up", muscle=MuscleGroup.BACK),
    Exercise(id="ex_5", name="Barbell Row", muscle=MuscleGroup.BACK),
    Exercise(id="ex_6", name="Lat Pulldown", muscle=MuscleGroup.BACK),
    Exercise(id="ex_7", name="Barbell Squat", muscle=MuscleGroup.LEGS),
    Exercise(id="ex_8", name="Leg Press", muscle=MuscleGroup.LEGS),
    Exercise(id="ex_9", name="Romanian Deadlift", muscle=MuscleGroup.LEGS),
    Exercise(id="ex_10", name="Overhead Press", muscle=MuscleGroup.SHOULDERS),
    Exercise(id="ex_11", name="Lateral Raise", muscle=MuscleGroup.SHOULDERS),
    Exercise(id="ex_12", name="Bicep Curl", muscle=MuscleGroup.ARMS),
    Exercise(id="ex_13", name="Tricep Extension", muscle=MuscleGroup.ARMS),
    Exercise(id="ex_14", name="Plank", muscle=MuscleGroup.CORE),
)


def search_exercises(
    exercises: list[Exercise],
    query: str | None = None,
    muscle: MuscleGroup | None = None,
) -> list[Exercise]:
    """Filter by case-insensitive name/muscle substring and exact muscle group."""
    needle = (query or "").strip().lower()
    result = []
    for ex in exercises:
        if muscle is not None and ex.muscle != muscle:
            continue
        if needle and needle not in ex.name.lower() and needle not in ex.muscle.value.lower():
            continue
        result.append(ex)
    return result


def find_exercise(exercises: list[Exercise], exercise_id: str) -> Exercise | None:
    for ex in exercises:
        if ex.id == exercise_id:
            return ex
    return None
