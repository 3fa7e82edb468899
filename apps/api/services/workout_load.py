"""
Workout Load Calculator

Turns one workout into a per-muscle load vector and a scalar total load:
- Weightlifting: volume (weight x reps) spread by exercise activation
- Cardio: training stress (duration x RPE x 10) spread by a sport profile
- Mixed: the sum of both
- Generic fallback: duration x RPE x 10 spread evenly over all muscles

Nothing here raises. Missing activation data or malformed set numbers
contribute zero load.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple
import logging

from services.exercise_activation import ExerciseActivationCatalog
from services.muscle_groups import MUSCLE_GROUPS, MuscleVector
from services.workout_records import ExerciseLog, SportSessionRecord, WorkoutRecord

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    WEIGHTLIFTING = "weightlifting"
    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    MIXED = "mixed"
    CARDIO = "cardio"


CARDIO_ACTIVITY_TYPES = {ActivityType.RUNNING, ActivityType.CYCLING, ActivityType.SWIMMING}

# Training stress per minute per RPE point
STRESS_PER_MINUTE_RPE = 10

# Fraction of a cardio session's stress landing on each muscle (sums to 1.0)
SPORT_MUSCLE_PROFILES: Dict[ActivityType, MuscleVector] = {
    ActivityType.RUNNING: MuscleVector.from_dict({
        "Quads": 0.30, "Hams": 0.25, "Glutes": 0.20,
        "Calfs": 0.15, "Lumbar": 0.05, "Abs": 0.05,
    }),
    ActivityType.CYCLING: MuscleVector.from_dict({
        "Quads": 0.35, "Hams": 0.20, "Glutes": 0.25,
        "Calfs": 0.10, "Lumbar": 0.05, "Abs": 0.05,
    }),
    ActivityType.SWIMMING: MuscleVector.from_dict({
        "Lats": 0.25, "Chest": 0.15, "Deltoids": 0.20, "Triceps": 0.10,
        "Biceps": 0.10, "Abs": 0.10, "Quads": 0.05, "Glutes": 0.05,
    }),
}

# Substrings (lower-case) that identify each sport in free-text activity names
SPORT_NAME_KEYWORDS: Tuple[Tuple[ActivityType, Tuple[str, ...]], ...] = (
    (ActivityType.RUNNING, ("run", "jog")),
    (ActivityType.CYCLING, ("cycl", "bike")),
    (ActivityType.SWIMMING, ("swim",)),
)


@dataclass(frozen=True)
class WorkoutLoad:
    """Load produced by one workout."""
    activity_type: ActivityType
    muscle_loads: MuscleVector
    total_load: float

    def __add__(self, other: "WorkoutLoad") -> "WorkoutLoad":
        return WorkoutLoad(
            activity_type=self.activity_type,
            muscle_loads=self.muscle_loads + other.muscle_loads,
            total_load=self.total_load + other.total_load,
        )


def match_sport(activity_name: Optional[str]) -> Optional[ActivityType]:
    """Recognized sport for an activity name, or None."""
    name = (activity_name or "").lower()
    for sport, keywords in SPORT_NAME_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return sport
    return None


def classify_activity_type(
    exercises: Sequence[ExerciseLog],
    sports: Sequence[SportSessionRecord],
) -> ActivityType:
    """
    Classify a workout from its contents.

    Sport names are checked in priority order (running, cycling, swimming)
    across all sessions, so a workout with any run is "running" even when it
    also has weights. Empty workouts are "mixed".
    """
    if exercises and not sports:
        return ActivityType.WEIGHTLIFTING

    if sports:
        for sport, _keywords in SPORT_NAME_KEYWORDS:
            if any(match_sport(s.activity_name) == sport for s in sports):
                return sport
        if exercises:
            return ActivityType.MIXED
        return ActivityType.CARDIO

    return ActivityType.MIXED


def calculate_weightlifting_load(
    exercises: Sequence[ExerciseLog],
    catalog: ExerciseActivationCatalog,
) -> Tuple[MuscleVector, float]:
    """
    Volume-based load: each exercise's weight x reps, distributed across
    muscles by its activation coefficients.

    Exercises missing from the catalog are skipped entirely.
    """
    muscle_loads = MuscleVector.zeros()
    total_volume = 0.0

    for exercise in exercises:
        activation = catalog.get_activation(exercise.exercise_id)
        if activation is None:
            logger.debug(f"No activation data for exercise {exercise.exercise_id}; skipping")
            continue

        volume = exercise.volume
        total_volume += volume
        muscle_loads = muscle_loads + activation.scale(volume)

    return muscle_loads, total_volume


def calculate_cardio_load(
    duration_minutes: float,
    intensity_rpe: float,
    sport: Optional[ActivityType],
) -> Tuple[MuscleVector, float]:
    """
    Training stress score (duration x RPE x 10) spread by sport profile.
    Unknown sports use the running profile.
    """
    profile = SPORT_MUSCLE_PROFILES.get(sport, SPORT_MUSCLE_PROFILES[ActivityType.RUNNING])
    training_stress_score = duration_minutes * intensity_rpe * STRESS_PER_MINUTE_RPE
    return profile.scale(training_stress_score), training_stress_score


def calculate_generic_load(duration_minutes: float, intensity_rpe: float) -> Tuple[MuscleVector, float]:
    total = duration_minutes * intensity_rpe * STRESS_PER_MINUTE_RPE
    return MuscleVector.filled(total / len(MUSCLE_GROUPS)), total


def calculate_workout_load(
    workout: WorkoutRecord,
    catalog: ExerciseActivationCatalog,
) -> WorkoutLoad:
    """
    Compute the activity type, per-muscle load and total load of a workout.

    Weightlifting-only workouts use volume load. Anything with sport
    sessions sums every session's cardio load (each at the workout's RPE)
    plus the volume load of any exercises. Workouts with neither fall back
    to duration x RPE spread evenly.
    """
    activity_type = classify_activity_type(workout.exercises, workout.sports)

    if activity_type == ActivityType.WEIGHTLIFTING:
        muscle_loads, total_load = calculate_weightlifting_load(workout.exercises, catalog)
    elif workout.sports:
        muscle_loads = MuscleVector.zeros()
        total_load = 0.0
        for session in workout.sports:
            loads, stress = calculate_cardio_load(
                session.duration_minutes,
                workout.intensity_rpe,
                match_sport(session.activity_name),
            )
            muscle_loads = muscle_loads + loads
            total_load += stress

        if workout.exercises:
            lifting_loads, volume = calculate_weightlifting_load(workout.exercises, catalog)
            muscle_loads = muscle_loads + lifting_loads
            total_load += volume
    else:
        muscle_loads, total_load = calculate_generic_load(
            workout.duration_minutes, workout.intensity_rpe
        )

    return WorkoutLoad(
        activity_type=activity_type,
        muscle_loads=muscle_loads,
        total_load=total_load,
    )
