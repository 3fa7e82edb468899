"""
Training Load Engine (fitness / fatigue EWMA)

Replays an athlete's trailing window of workouts, oldest first, and produces
one snapshot per training day:
- fitness_score: chronic (42-day) EWMA of total load
- fatigue_score: acute (7-day) EWMA of total load
- form_score: fitness - fatigue
- acwr: acute / chronic, capped at 2.5
- muscle_group_fatigue: per-muscle acute EWMA, recovery-aware

Design:
- Full replay, never incremental. Every recompute starts from an all-zero
  state at the beginning of the window, so the same history always yields
  the same snapshots and a failed write is fixed by recomputing again.
- Workouts sharing a date are merged into one daily stimulus before the
  EWMA step (one training stimulus per day).
- All history is read once up front; replay itself is pure.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from itertools import groupby
from typing import Dict, List, Mapping, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from core.config import settings
from services.exercise_activation import ExerciseActivationCatalog, load_catalog
from services.muscle_groups import MuscleVector
from services.recovery_coefficient import calculate_recovery_coefficient
from services.training_history import TrainingHistoryRepository
from services.workout_load import ActivityType, calculate_workout_load
from services.workout_records import CheckInRecord, FitnessMetricSnapshot, WorkoutRecord

logger = logging.getLogger(__name__)


ACUTE_WINDOW_DAYS = 7  # fatigue
CHRONIC_WINDOW_DAYS = 42  # fitness
ROLLING_WINDOW_DAYS = 42
ACWR_CAP = 2.5
NEUTRAL_ACWR = 1.0


def ewma_alpha(window_days: int) -> float:
    """Smoothing factor for an N-day EWMA."""
    return 2.0 / (window_days + 1)


ALPHA_ACUTE = ewma_alpha(ACUTE_WINDOW_DAYS)
ALPHA_CHRONIC = ewma_alpha(CHRONIC_WINDOW_DAYS)


def clamp_acwr(acwr: float) -> float:
    return max(0.0, min(ACWR_CAP, acwr))


def calculate_acwr(acute_load: float, chronic_load: float) -> float:
    """Acute:chronic ratio; 1.0 when there is no chronic load yet."""
    if chronic_load > 0:
        return clamp_acwr(acute_load / chronic_load)
    return NEUTRAL_ACWR


def blend_muscle_fitness(muscle_loads: MuscleVector, previous: MuscleVector) -> MuscleVector:
    """
    Long-window per-muscle EWMA. A muscle's first loaded session seeds its
    fitness with the raw load.
    """
    def blend(_muscle: str, prev: float, load: float) -> float:
        if prev == 0 and load > 0:
            return load
        return load * ALPHA_CHRONIC + prev * (1 - ALPHA_CHRONIC)

    return previous.combine(muscle_loads, blend)


def blend_muscle_fatigue(
    muscle_loads: MuscleVector,
    previous: MuscleVector,
    recovery_coefficient: float,
) -> MuscleVector:
    """
    Short-window per-muscle EWMA with the previous value scaled by the day's
    recovery coefficient before blending.
    """
    def blend(_muscle: str, prev: float, load: float) -> float:
        if prev == 0 and load > 0:
            return load
        decayed_previous = prev * recovery_coefficient
        return load * ALPHA_ACUTE + decayed_previous * (1 - ALPHA_ACUTE)

    return previous.combine(muscle_loads, blend)


@dataclass(frozen=True)
class DailyTrainingLoad:
    """All workouts of one date folded into a single stimulus."""
    date: date
    muscle_loads: MuscleVector
    total_load: float
    activity_types: Dict[Optional[UUID], ActivityType] = field(default_factory=dict)
    workout_count: int = 0


@dataclass
class ReplayResult:
    snapshots: List[FitnessMetricSnapshot] = field(default_factory=list)
    # Computed tag per workout id
    activity_types: Dict[UUID, ActivityType] = field(default_factory=dict)
    # Coefficient used on each training day
    recovery_coefficients: Dict[date, float] = field(default_factory=dict)
    muscle_fitness: MuscleVector = field(default_factory=MuscleVector.zeros)
    muscle_fatigue: MuscleVector = field(default_factory=MuscleVector.zeros)
    acute_load: float = 0.0
    chronic_load: float = 0.0

    @property
    def latest(self) -> Optional[FitnessMetricSnapshot]:
        return self.snapshots[-1] if self.snapshots else None


def merge_same_day(
    workouts: Sequence[WorkoutRecord],
    catalog: ExerciseActivationCatalog,
) -> List[DailyTrainingLoad]:
    """Compute each workout's load and sum loads per date, oldest first."""
    ordered = sorted(workouts, key=lambda w: w.workout_date)
    days: List[DailyTrainingLoad] = []

    for day, day_workouts in groupby(ordered, key=lambda w: w.workout_date):
        muscle_loads = MuscleVector.zeros()
        total_load = 0.0
        activity_types: Dict[Optional[UUID], ActivityType] = {}
        count = 0
        for workout in day_workouts:
            load = calculate_workout_load(workout, catalog)
            muscle_loads = muscle_loads + load.muscle_loads
            total_load += load.total_load
            activity_types[workout.id] = load.activity_type
            count += 1
        days.append(DailyTrainingLoad(
            date=day,
            muscle_loads=muscle_loads,
            total_load=total_load,
            activity_types=activity_types,
            workout_count=count,
        ))

    return days


def replay_training_load(
    workouts: Sequence[WorkoutRecord],
    check_ins: Mapping[date, CheckInRecord],
    catalog: ExerciseActivationCatalog,
) -> ReplayResult:
    """
    Replay a window of workouts from a cold state.

    Returns one snapshot per distinct workout date, ascending. No history
    yields an empty result.
    """
    result = ReplayResult()

    acute_load = 0.0
    chronic_load = 0.0
    muscle_fitness = MuscleVector.zeros()
    muscle_fatigue = MuscleVector.zeros()

    for index, day in enumerate(merge_same_day(workouts, catalog)):
        recovery_coefficient = calculate_recovery_coefficient(check_ins.get(day.date))
        result.recovery_coefficients[day.date] = recovery_coefficient

        if index == 0:
            acute_load = day.total_load
            chronic_load = day.total_load
        else:
            acute_load = day.total_load * ALPHA_ACUTE + acute_load * (1 - ALPHA_ACUTE)
            chronic_load = day.total_load * ALPHA_CHRONIC + chronic_load * (1 - ALPHA_CHRONIC)

        muscle_fitness = blend_muscle_fitness(day.muscle_loads, muscle_fitness)
        muscle_fatigue = blend_muscle_fatigue(day.muscle_loads, muscle_fatigue, recovery_coefficient)

        result.snapshots.append(FitnessMetricSnapshot(
            metric_date=day.date,
            fitness_score=chronic_load,
            fatigue_score=acute_load,
            form_score=chronic_load - acute_load,
            acwr=calculate_acwr(acute_load, chronic_load),
            muscle_group_fatigue=muscle_fatigue,
        ))

        for workout_id, activity_type in day.activity_types.items():
            if workout_id is not None:
                result.activity_types[workout_id] = activity_type

    result.muscle_fitness = muscle_fitness
    result.muscle_fatigue = muscle_fatigue
    result.acute_load = acute_load
    result.chronic_load = chronic_load
    return result


@dataclass
class RecomputeSummary:
    """What a recompute wrote."""
    athlete_id: UUID
    as_of: date
    window_start: date
    workouts_replayed: int
    snapshots_written: int
    snapshots_failed: int
    activity_types_corrected: int
    snapshots_pruned: int = 0
    latest: Optional[FitnessMetricSnapshot] = None


class FitnessMetricsService:
    """
    Recomputes and serves persisted fitness metric snapshots.

    Triggered whenever a workout or check-in is saved. Each snapshot upsert
    is atomic on its own; write-back failures are logged and skipped since
    the next recompute rewrites everything.
    """

    def __init__(
        self,
        db: Session,
        catalog: Optional[ExerciseActivationCatalog] = None,
        window_days: Optional[int] = None,
    ):
        self.db = db
        self.repository = TrainingHistoryRepository(db)
        self._catalog = catalog
        self.window_days = window_days or settings.TRAINING_LOAD_WINDOW_DAYS or ROLLING_WINDOW_DAYS

    @property
    def catalog(self) -> ExerciseActivationCatalog:
        if self._catalog is None:
            self._catalog = load_catalog(self.db, settings.EXERCISE_CATALOG_PATH)
        return self._catalog

    def recompute(self, athlete_id: UUID, as_of: Optional[date] = None) -> RecomputeSummary:
        """Replay the trailing window ending at `as_of` and persist the results."""
        if as_of is None:
            as_of = date.today()
        window_start = as_of - timedelta(days=self.window_days)

        workouts = self.repository.get_recent_workouts(athlete_id, window_start, as_of)
        check_ins = self.repository.get_check_ins(athlete_id, window_start, as_of)
        check_ins_by_date = {c.check_in_date: c for c in check_ins}

        result = replay_training_load(workouts, check_ins_by_date, self.catalog)

        written = 0
        failed = 0
        for snapshot in result.snapshots:
            if self.repository.upsert_fitness_snapshot(athlete_id, snapshot):
                written += 1
            else:
                failed += 1

        pruned = self.repository.prune_snapshots(
            athlete_id, window_start, as_of, keep=(s.metric_date for s in result.snapshots)
        )

        corrected = 0
        for workout in workouts:
            computed = result.activity_types.get(workout.id)
            if computed is None or workout.activity_type == computed.value:
                continue
            if self.repository.update_activity_type(workout.id, computed.value):
                corrected += 1

        for check_in in check_ins:
            if check_in.recovery_coefficient is None and check_in.check_in_date in result.recovery_coefficients:
                self.repository.cache_recovery_coefficient(
                    check_in.id, result.recovery_coefficients[check_in.check_in_date]
                )

        logger.info(
            f"Recomputed training load for athlete {athlete_id} as of {as_of}",
            extra={
                "extra_fields": {
                    "athlete_id": str(athlete_id),
                    "workouts": len(workouts),
                    "snapshots_written": written,
                    "snapshots_failed": failed,
                    "snapshots_pruned": pruned,
                    "activity_types_corrected": corrected,
                }
            },
        )

        return RecomputeSummary(
            athlete_id=athlete_id,
            as_of=as_of,
            window_start=window_start,
            workouts_replayed=len(workouts),
            snapshots_written=written,
            snapshots_failed=failed,
            activity_types_corrected=corrected,
            snapshots_pruned=pruned,
            latest=result.latest,
        )

    def get_metrics(self, athlete_id: UUID, days: int = 42, as_of: Optional[date] = None) -> List[FitnessMetricSnapshot]:
        """Persisted snapshots for the last `days` days, oldest first."""
        if as_of is None:
            as_of = date.today()
        return self.repository.get_snapshots(athlete_id, as_of - timedelta(days=days), as_of)

    def get_latest_snapshot(self, athlete_id: UUID) -> Optional[FitnessMetricSnapshot]:
        return self.repository.get_latest_snapshot(athlete_id)
