"""
Auto-Balancer

Proposes next-session muscle emphasis (0-100, most-prioritized muscle = 100)
from current readiness, boosting whole body regions that have not been
trained in the last week.

Body-region detection from exercise names is a keyword policy, not a
taxonomy; the pattern tables below are meant to be swapped out.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
from uuid import UUID
import logging
import math
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from services.muscle_groups import MUSCLE_CATEGORY_MAP, MUSCLE_GROUPS, MuscleVector
from services.muscle_readiness import MuscleReadinessService
from services.training_history import TrainingHistoryRepository
from services.workout_load import ActivityType, CARDIO_ACTIVITY_TYPES, classify_activity_type
from services.workout_records import WorkoutRecord

logger = logging.getLogger(__name__)


# Training categories tracked over the lookback window
UPPER = "upper"
LOWER = "lower"
CORE = "core"
CARDIO = "cardio"

CATEGORY_PATTERNS: Dict[str, re.Pattern] = {
    UPPER: re.compile(r"bench|press|pull|row|curl|extension|dip|pushup|fly|raise|shrug", re.IGNORECASE),
    LOWER: re.compile(r"squat|lunge|deadlift|leg|calf|glute|hip", re.IGNORECASE),
    CORE: re.compile(r"plank|crunch|situp|\bab|core|twist|woodchop", re.IGNORECASE),
}

# (category, muscle groups boosted when it was skipped, multiplier)
CATEGORY_BOOSTS: Tuple[Tuple[str, Tuple[str, ...], float], ...] = (
    (UPPER, MUSCLE_CATEGORY_MAP["upper_push"] + MUSCLE_CATEGORY_MAP["upper_pull"], 1.4),
    (LOWER, MUSCLE_CATEGORY_MAP["lower"], 1.4),
    (CORE, MUSCLE_CATEGORY_MAP["core"], 1.3),
)

MIN_TARGET = 15
MAX_TARGET = 100
DEFAULT_READINESS = 70

DEFAULT_TARGETS = MuscleVector.from_dict({
    "Chest": 70,
    "Lats": 70,
    "Deltoids": 60,
    "Biceps": 50,
    "Triceps": 50,
    "Abs": 50,
    "Forearm": 30,
    "Quads": 80,
    "Hams": 70,
    "Glutes": 70,
    "Calfs": 40,
    "Lumbar": 50,
    "Trapezius": 40,
})


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class BalancedTargets:
    targets: MuscleVector  # 0-100
    readiness: MuscleVector  # 0-100
    form_score: float
    is_default: bool = False


def classify_exercise_categories(exercise_name: Optional[str]) -> Set[str]:
    name = exercise_name or ""
    return {category for category, pattern in CATEGORY_PATTERNS.items() if pattern.search(name)}


def recent_training_categories(workouts: Iterable[WorkoutRecord]) -> Set[str]:
    """
    Categories (upper, lower, core, cardio) trained across `workouts`.

    Exercise names only count for weightlifting/mixed workouts; running,
    cycling and swimming workouts count as cardio.
    """
    categories: Set[str] = set()
    for workout in workouts:
        activity_type = workout.activity_type or classify_activity_type(workout.exercises, workout.sports).value

        if activity_type in (ActivityType.WEIGHTLIFTING.value, ActivityType.MIXED.value):
            for exercise in workout.exercises:
                categories |= classify_exercise_categories(exercise.exercise_name)

        if activity_type in {t.value for t in CARDIO_ACTIVITY_TYPES}:
            categories.add(CARDIO)

    return categories


def compute_balanced_targets(
    readiness: MuscleVector,
    form_score: float,
    trained_categories: Iterable[str],
) -> BalancedTargets:
    """
    Readiness-seeded targets (floored at 15), x1.4 for upper or lower body
    and x1.3 for core when that region was not trained, each capped at 100,
    then rescaled so the highest target is exactly 100.
    """
    trained = set(trained_categories)
    targets = readiness.to_dict()
    for muscle in MUSCLE_GROUPS:
        targets[muscle] = max(MIN_TARGET, targets[muscle])

    for category, muscles, multiplier in CATEGORY_BOOSTS:
        if category in trained:
            continue
        for muscle in muscles:
            targets[muscle] = min(MAX_TARGET, targets[muscle] * multiplier)

    max_target = max(targets.values())
    if max_target > 0:
        for muscle in MUSCLE_GROUPS:
            targets[muscle] = _round_half_up(targets[muscle] / max_target * 100)

    return BalancedTargets(
        targets=MuscleVector.from_dict(targets),
        readiness=readiness,
        form_score=form_score or 0.0,
    )


def default_balanced_targets() -> BalancedTargets:
    return BalancedTargets(
        targets=DEFAULT_TARGETS,
        readiness=MuscleVector.filled(DEFAULT_READINESS),
        form_score=0.0,
        is_default=True,
    )


def calculate_difficulty_range(form_score: float, recent_difficulties: Sequence[float] = ()) -> Tuple[int, int]:
    """
    Suggested (min, max) exercise difficulty on a 1-5 scale.

    Fresh athletes (form > 20) are pushed up, fatigued ones (form < -20)
    pulled down, around their recent average difficulty (3 without history).
    """
    average = sum(recent_difficulties) / len(recent_difficulties) if recent_difficulties else 3.0

    if form_score > 20:
        low = max(1, math.floor(average))
        high = min(5, math.ceil(average + 1))
    elif form_score < -20:
        low = max(1, math.floor(average - 1))
        high = max(2, math.ceil(average))
    else:
        low = max(1, math.floor(average - 0.5))
        high = min(5, math.ceil(average + 0.5))

    return low, high


# Sport -> (primary muscles, secondary muscles)
SPORT_PROFILES: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "Swimming": (("Lats", "Deltoids", "Triceps", "Abs"), ("Chest", "Trapezius", "Forearm")),
    "Running / Track & Field": (("Quads", "Hams", "Calfs", "Glutes"), ("Abs", "Lumbar")),
    "Cycling / BMX": (("Quads", "Glutes", "Calfs"), ("Hams", "Lumbar", "Abs")),
    "MMA / Boxing / Kickboxing / Muay Thai": (("Deltoids", "Chest", "Abs", "Quads"), ("Triceps", "Biceps", "Hams", "Calfs")),
    "Basketball / Volleyball": (("Quads", "Calfs", "Deltoids", "Abs"), ("Hams", "Glutes", "Triceps")),
    "Soccer / Football / Rugby": (("Quads", "Hams", "Glutes", "Calfs", "Abs"), ("Deltoids", "Lumbar")),
    "Tennis / Badminton / Squash": (("Deltoids", "Forearm", "Quads", "Calfs"), ("Abs", "Lumbar", "Triceps")),
    "Rowing / Canoeing / Kayaking": (("Lats", "Trapezius", "Quads", "Abs"), ("Biceps", "Deltoids", "Lumbar", "Hams")),
    "Rock Climbing / Bouldering": (("Forearm", "Lats", "Biceps", "Abs"), ("Deltoids", "Trapezius", "Quads")),
    "Gymnastics / Artistic Gymnastics": (("Abs", "Deltoids", "Triceps", "Chest"), ("Lats", "Biceps", "Forearm", "Quads")),
    "Powerlifting / Weightlifting / Bodybuilding": (("Chest", "Lats", "Quads", "Hams", "Deltoids"), ("Triceps", "Biceps", "Glutes", "Trapezius")),
    "CrossFit / Functional Fitness": (("Quads", "Hams", "Chest", "Lats", "Abs", "Deltoids"), ("Triceps", "Biceps", "Glutes", "Calfs")),
    "Yoga / Pilates": (("Abs", "Lumbar", "Deltoids"), ("Quads", "Hams", "Glutes")),
    "Golf": (("Abs", "Lumbar", "Forearm", "Deltoids"), ("Quads", "Hams", "Chest")),
    "Skiing / Snowboarding": (("Quads", "Glutes", "Abs", "Lumbar"), ("Hams", "Calfs", "Deltoids")),
    "Surfing / Skateboarding": (("Abs", "Lumbar", "Deltoids", "Quads"), ("Chest", "Triceps", "Calfs", "Glutes")),
}

PRIMARY_SPORT_WEIGHT = 100
SECONDARY_SPORT_WEIGHT = 60


def get_available_sports() -> List[str]:
    return sorted(SPORT_PROFILES)


def calculate_sport_targets(selected_sports: Iterable[str]) -> Optional[MuscleVector]:
    """
    Muscle emphasis for sport-specific training, normalized to a 100 max.
    None when no known sport is selected.
    """
    scores = dict.fromkeys(MUSCLE_GROUPS, 0)
    for sport in selected_sports or ():
        profile = SPORT_PROFILES.get(sport)
        if profile is None:
            continue
        primary, secondary = profile
        for muscle in primary:
            scores[muscle] += PRIMARY_SPORT_WEIGHT
        for muscle in secondary:
            scores[muscle] += SECONDARY_SPORT_WEIGHT

    max_score = max(scores.values())
    if max_score == 0:
        return None
    return MuscleVector.from_dict({m: _round_half_up(v / max_score * 100) for m, v in scores.items()})


class AutoBalancerService:
    """Entry point for dashboards: always returns something renderable."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = TrainingHistoryRepository(db)
        self.readiness_service = MuscleReadinessService(db)

    def compute_balanced_targets(self, athlete_id: Optional[UUID], as_of: Optional[date] = None) -> BalancedTargets:
        """
        Balanced targets for the athlete's next session.

        Unknown athletes, athletes without any snapshot, and history read
        failures get the default profile.
        """
        if athlete_id is None:
            return default_balanced_targets()
        if as_of is None:
            as_of = date.today()

        try:
            readiness = self.readiness_service.get_muscle_readiness(athlete_id, as_of=as_of)
            if readiness is None:
                return default_balanced_targets()

            since = as_of - timedelta(days=settings.BALANCER_LOOKBACK_DAYS)
            workouts = self.repository.get_recent_workouts(athlete_id, since, as_of)
        except SQLAlchemyError as e:
            logger.warning(f"Falling back to default targets for athlete {athlete_id}: {e}")
            return default_balanced_targets()

        categories = recent_training_categories(workouts)
        logger.debug(f"Athlete {athlete_id} trained {sorted(categories)} in the last {settings.BALANCER_LOOKBACK_DAYS} days")

        return compute_balanced_targets(readiness.readiness, readiness.form_score, categories)
