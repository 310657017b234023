from datetime import date, datetime, timedelta, timezone

from conftest import exercise_entry, make_workout

from irontrack_mcp.irontrack import analytics
from irontrack_mcp.irontrack.models import MuscleGroup

UTC = timezone.utc
TODAY = date(2026, 10, 18)


def _at(day: date, hour: int = 10) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=UTC)


def test_muscle_distribution_counts_completed_sets_only():
    workouts = [
        make_workout(_at(TODAY), [
            exercise_entry("i1", "ex_1", "Chest", [(60, 5, True)] * 3 + [(60, 5, False)] * 2),
            exercise_entry("i2", "ex_5", "Back", [(50, 8, True)]),
        ]),
    ]
    result = analytics.muscle_distribution(workouts)
    assert [(c.muscle, c.sets) for c in result] == [(MuscleGroup.CHEST, 3), (MuscleGroup.BACK, 1)]


def test_muscle_distribution_merges_across_workouts_and_skips_zero():
    workouts = [
        make_workout(_at(TODAY), [exercise_entry("i1", "ex_5", "Back", [(50, 8, True)])], "w1"),
        make_workout(_at(TODAY), [
            exercise_entry("i2", "ex_5", "Back", [(50, 8, True)] * 2),
            exercise_entry("i3", "ex_7", "Legs", [(100, 5, False)]),
        ], "w2"),
    ]
    result = analytics.muscle_distribution(workouts)
    assert [(c.muscle, c.sets) for c in result] == [(MuscleGroup.BACK, 3)]


def test_weekly_volume_buckets_trailing_seven_days():
    workouts = [
        make_workout(_at(TODAY), [
            exercise_entry("i1", "ex_1", "Chest", [(20, 5, True), (10, 8, True), (99, 9, False)]),
        ], "today"),
        make_workout(_at(TODAY - timedelta(days=10)), [
            exercise_entry("i2", "ex_1", "Chest", [(500, 10, True)]),
        ], "old"),
        make_workout(_at(TODAY - timedelta(days=7)), [
            exercise_entry("i3", "ex_1", "Chest", [(300, 10, True)]),
        ], "week-ago"),
        make_workout(_at(TODAY - timedelta(days=2)), [
            exercise_entry("i4", "ex_7", "Legs", [(100, 5, True)]),
        ], "two-days"),
    ]

    result = analytics.weekly_volume(workouts, today=TODAY, tz=UTC)

    assert len(result) == 7
    assert [d.date for d in result] == [TODAY - timedelta(days=i) for i in range(6, -1, -1)]
    assert result[-1].volume == 180
    assert result[-1].day == "Sun"
    assert result[-3].volume == 500
    assert sum(d.volume for d in result) == 680


def test_weekly_volume_of_empty_history_is_all_zero():
    result = analytics.weekly_volume([], today=TODAY, tz=UTC)
    assert [d.volume for d in result] == [0] * 7
    assert [d.day for d in result] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def test_exercise_progress_is_chronological_and_skips_incomplete():
    workouts = [
        make_workout(_at(TODAY), [
            exercise_entry("i3", "ex_1", "Chest", [(70, 5, False)]),
        ], "third"),
        make_workout(_at(TODAY - timedelta(days=3)), [
            exercise_entry("i2", "ex_1", "Chest", [(65, 3, True), (80, 1, False)]),
        ], "second"),
        make_workout(_at(TODAY - timedelta(days=6)), [
            exercise_entry("i1", "ex_1", "Chest", [(60, 5, True), (50, 1, False)]),
            exercise_entry("ix", "ex_5", "Back", [(90, 5, True)]),
        ], "first"),
    ]

    points = analytics.exercise_progress(workouts, "ex_1")

    assert [(p.max_weight, p.total_volume) for p in points] == [(60, 300), (65, 195)]
    assert points[0].date < points[1].date


def test_last_performances_picks_newest_workout_and_first_instance():
    older = make_workout(_at(TODAY - timedelta(days=5)), [
        exercise_entry("old", "ex_1", "Chest", [(50, 5, True)]),
    ], "older")
    newer = make_workout(_at(TODAY), [
        exercise_entry("first", "ex_1", "Chest", [(60, 5, True)]),
        exercise_entry("second", "ex_1", "Chest", [(70, 5, True)]),
    ], "newer")

    result = analytics.last_performances([older, newer], {"ex_1", "ex_2"})

    assert list(result) == ["ex_1"]
    assert result["ex_1"].id == "first"


def test_last_performances_singleton_matches_batch():
    workouts = [
        make_workout(_at(TODAY), [exercise_entry("a", "ex_1", "Chest", [(60, 5, True)])], "w1"),
        make_workout(_at(TODAY), [exercise_entry("b", "ex_4", "Back", [(0, 8, True)])], "w2"),
    ]
    batch = analytics.last_performances(workouts, ["ex_1", "ex_4"])
    for exercise_id in ("ex_1", "ex_4"):
        assert analytics.last_performances(workouts, [exercise_id])[exercise_id] == batch[exercise_id]


def test_empty_inputs_give_empty_results():
    assert analytics.muscle_distribution([]) == []
    assert analytics.exercise_progress([], "ex_1") == []
    assert analytics.last_performances([], ["ex_1"]) == {}
    assert analytics.last_performances([make_workout(_at(TODAY), [])], []) == {}


def test_aggregations_are_idempotent():
    workouts = [
        make_workout(_at(TODAY), [
            exercise_entry("i1", "ex_1", "Chest", [(60, 5, True), (60, 5, True)]),
        ]),
    ]
    assert analytics.muscle_distribution(workouts) == analytics.muscle_distribution(workouts)
    assert analytics.weekly_volume(workouts, today=TODAY, tz=UTC) == \
        analytics.weekly_volume(workouts, today=TODAY, tz=UTC)
    assert analytics.exercise_progress(workouts, "ex_1") == analytics.exercise_progress(workouts, "ex_1")


def test_progress_dates_follow_requested_timezone():
    late_evening_utc = datetime(2026, 10, 10, 23, 30, tzinfo=UTC)
    workouts = [
        make_workout(late_evening_utc, [exercise_entry("i1", "ex_1", "Chest", [(60, 5, True)])]),
    ]

    in_utc = analytics.exercise_progress(workouts, "ex_1", tz=UTC)
    east = analytics.exercise_progress(workouts, "ex_1", tz=timezone(timedelta(hours=3)))

    assert in_utc[0].date == date(2026, 10, 10)
    assert east[0].date == date(2026, 10, 11)
