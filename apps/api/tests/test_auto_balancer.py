"""
Tests for the Auto-Balancer

Covers readiness seeding, region boosts, normalization, the default
profile, and the sport/difficulty presentation helpers.
"""

import pytest
from datetime import date, timedelta
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from services.auto_balancer import (
    CARDIO,
    CORE,
    DEFAULT_TARGETS,
    LOWER,
    UPPER,
    AutoBalancerService,
    calculate_difficulty_range,
    calculate_sport_targets,
    classify_exercise_categories,
    compute_balanced_targets,
    default_balanced_targets,
    get_available_sports,
    recent_training_categories,
)
from services.muscle_groups import MUSCLE_GROUPS, MuscleVector
from services.muscle_readiness import MuscleReadinessService
from services.training_load import FitnessMetricsService
from services.workout_records import ExerciseLog, SportSessionRecord, WorkoutRecord
from workout_factories import add_workout, make_lifting_workout, make_sport_workout

D0 = date(2024, 3, 4)
UPPER_MUSCLES = ("Chest", "Deltoids", "Triceps", "Lats", "Biceps", "Trapezius", "Forearm")
LOWER_MUSCLES = ("Quads", "Hams", "Glutes", "Calfs")


class TestComputeBalancedTargets:

    def test_nothing_trained_flat_readiness(self):
        result = compute_balanced_targets(MuscleVector.filled(70), 0.0, set())

        for muscle in UPPER_MUSCLES + LOWER_MUSCLES:
            assert result.targets[muscle] == 100
        # 70 x 1.3 = 91, rescaled by 100/98
        assert result.targets["Abs"] == 93
        assert result.targets["Lumbar"] == 93

    def test_everything_trained_only_normalizes(self):
        result = compute_balanced_targets(MuscleVector.filled(70), 0.0, {UPPER, LOWER, CORE})
        assert result.targets.values() == [100] * 13

    def test_only_upper_trained(self):
        result = compute_balanced_targets(MuscleVector.filled(70), 0.0, {UPPER})
        assert result.targets["Chest"] == 71
        assert result.targets["Quads"] == 100
        assert result.targets["Abs"] == 93

    def test_floor_at_fifteen(self):
        readiness = MuscleVector.from_dict({"Chest": 0}, default=100)
        result = compute_balanced_targets(readiness, 0.0, {UPPER, LOWER, CORE})
        assert result.targets["Chest"] == 15

    def test_boosts_capped_at_hundred(self):
        result = compute_balanced_targets(MuscleVector.filled(90), 0.0, set())
        assert result.targets.values() == [100] * 13

    @pytest.mark.parametrize("readiness", [
        MuscleVector.filled(1),
        MuscleVector.from_dict({"Forearm": 3, "Quads": 55}),
        MuscleVector.from_dict({"Abs": 100}, default=40),
    ])
    def test_max_target_is_always_hundred(self, readiness):
        result = compute_balanced_targets(readiness, 5.0, {CARDIO})
        assert result.targets.max() == 100

    def test_carries_readiness_and_form(self):
        readiness = MuscleVector.filled(55)
        result = compute_balanced_targets(readiness, -12.5, set())
        assert result.readiness == readiness
        assert result.form_score == -12.5
        assert result.is_default is False


class TestDefaultTargets:

    def test_default_profile(self):
        result = default_balanced_targets()
        assert result.is_default is True
        assert result.targets == DEFAULT_TARGETS
        assert result.targets["Quads"] == 80
        assert result.targets["Forearm"] == 30
        assert result.readiness == MuscleVector.filled(70)
        assert result.form_score == 0


class TestCategoryDetection:

    @pytest.mark.parametrize("name,expected", [
        ("Bench Press", {UPPER}),
        ("Barbell Row", {UPPER}),
        ("Back Squat", {LOWER}),
        ("Romanian Deadlift", {LOWER}),
        ("Plank", {CORE}),
        ("Ab Wheel Rollout", {CORE}),
        ("Cable Fly", {UPPER}),
        ("Cable Crunch", {CORE}),
        ("Leg Press", {UPPER, LOWER}),
        ("Farmer Carry", set()),
        (None, set()),
    ])
    def test_exercise_names(self, name, expected):
        assert classify_exercise_categories(name) == expected

    def test_recent_workouts(self):
        workouts = [
            make_lifting_workout(D0, name="Bench Press"),
            make_sport_workout(D0, "Run"),
        ]
        assert recent_training_categories(workouts) == {UPPER, CARDIO}

    def test_mixed_workout_counts_exercises_not_cardio(self):
        workout = WorkoutRecord(
            workout_date=D0,
            exercises=[ExerciseLog(exercise_id="2", exercise_name="Goblet Squat")],
            sports=[SportSessionRecord(activity_name="Yoga", duration_minutes=20)],
        )
        assert recent_training_categories([workout]) == {LOWER}

    def test_stored_tag_is_used(self):
        workout = make_lifting_workout(D0, name="Plank", activity_type="weightlifting")
        assert recent_training_categories([workout]) == {CORE}


class TestDifficultyRange:

    def test_fresh_athlete_pushed_up(self):
        assert calculate_difficulty_range(25) == (3, 4)

    def test_fatigued_athlete_pulled_down(self):
        assert calculate_difficulty_range(-25) == (2, 3)

    def test_neutral_form(self):
        assert calculate_difficulty_range(0) == (2, 4)

    def test_uses_recent_average_and_clamps(self):
        assert calculate_difficulty_range(25, [4, 5]) == (4, 5)


class TestSportTargets:

    def test_available_sports_sorted(self):
        sports = get_available_sports()
        assert len(sports) == 16
        assert sports == sorted(sports)

    def test_single_sport(self):
        targets = calculate_sport_targets(["Running / Track & Field"])
        assert targets["Quads"] == 100
        assert targets["Abs"] == 60
        assert targets["Chest"] == 0

    def test_sports_accumulate(self):
        targets = calculate_sport_targets(["Running / Track & Field", "Cycling / BMX"])
        assert targets["Quads"] == 100
        assert targets["Hams"] == 80
        assert targets["Abs"] == 60

    def test_unknown_or_empty_is_none(self):
        assert calculate_sport_targets(["Quidditch"]) is None
        assert calculate_sport_targets([]) is None


class TestAutoBalancerService:

    def test_unknown_athlete_gets_defaults(self, db_session):
        assert AutoBalancerService(db_session).compute_balanced_targets(None).is_default is True

    def test_no_history_gets_defaults(self, db_session, athlete_id):
        result = AutoBalancerService(db_session).compute_balanced_targets(athlete_id, as_of=D0)
        assert result.is_default is True
        assert result.targets == DEFAULT_TARGETS

    def test_database_failure_gets_defaults(self, db_session, athlete_id):
        error = OperationalError("SELECT", {}, Exception("connection lost"))
        with patch.object(MuscleReadinessService, "get_muscle_readiness", side_effect=error):
            result = AutoBalancerService(db_session).compute_balanced_targets(athlete_id, as_of=D0)
        assert result.is_default is True

    def test_targets_from_history(self, db_session, athlete_id, catalog):
        add_workout(db_session, athlete_id, D0, exercises=[("1", "Bench Press", [(100, 10)])])
        FitnessMetricsService(db_session, catalog=catalog).recompute(athlete_id, as_of=D0)

        result = AutoBalancerService(db_session).compute_balanced_targets(athlete_id, as_of=D0)

        assert result.is_default is False
        # Freshly loaded pressing muscles sit at the floor; upper was trained, so no boost
        assert result.targets["Chest"] == 15
        assert result.targets["Triceps"] == 15
        assert result.targets["Lats"] == 100
        assert result.targets["Quads"] == 100
        assert result.targets.max() == 100

    def test_old_workouts_do_not_count_as_trained(self, db_session, athlete_id, catalog):
        add_workout(db_session, athlete_id, D0, exercises=[("1", "Bench Press", [(100, 10)])])
        FitnessMetricsService(db_session, catalog=catalog).recompute(athlete_id, as_of=D0)

        result = AutoBalancerService(db_session).compute_balanced_targets(
            athlete_id, as_of=D0 + timedelta(days=10)
        )

        # Upper not trained in the last 7 days: 15 x 1.4
        assert result.targets["Chest"] == 21
        assert set(result.targets.to_dict()) == set(MUSCLE_GROUPS)
