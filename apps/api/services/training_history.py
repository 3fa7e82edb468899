"""
Training History

Read/write access to the rows the training load engine consumes and
produces, plus history statistics (volume totals, streaks).

Reads return engine records (services.workout_records), never ORM rows.
Write-backs run inside a SAVEPOINT each and report success as a bool:
a failed snapshot or tag write is logged and left at its prior value.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from models import DailyCheckin, FitnessMetric, Workout
from services.workout_records import CheckInRecord, FitnessMetricSnapshot, WorkoutRecord

logger = logging.getLogger(__name__)


class TrainingHistoryRepository:
    """Athlete history as seen by the engine."""

    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # READS
    # =========================================================================

    def get_recent_workouts(
        self,
        athlete_id: UUID,
        since: date,
        until: Optional[date] = None,
    ) -> List[WorkoutRecord]:
        """Workouts with exercises and sport sessions, ascending by date."""
        query = self.db.query(Workout).options(
            selectinload(Workout.exercises),
            selectinload(Workout.sport_sessions),
        ).filter(
            Workout.athlete_id == athlete_id,
            Workout.workout_date >= since,
        )
        if until is not None:
            query = query.filter(Workout.workout_date <= until)

        rows = query.order_by(Workout.workout_date, Workout.created_at).all()
        return [WorkoutRecord.from_orm(w) for w in rows]

    def get_check_ins(self, athlete_id: UUID, since: date, until: date) -> List[CheckInRecord]:
        rows = self.db.query(DailyCheckin).filter(
            DailyCheckin.athlete_id == athlete_id,
            DailyCheckin.date >= since,
            DailyCheckin.date <= until,
        ).order_by(DailyCheckin.date).all()
        return [CheckInRecord.from_orm(c) for c in rows]

    def get_check_in(self, athlete_id: UUID, day: date) -> Optional[CheckInRecord]:
        row = self.db.query(DailyCheckin).filter(
            DailyCheckin.athlete_id == athlete_id,
            DailyCheckin.date == day,
        ).first()
        return CheckInRecord.from_orm(row) if row else None

    def get_snapshots(self, athlete_id: UUID, since: date, until: Optional[date] = None) -> List[FitnessMetricSnapshot]:
        query = self.db.query(FitnessMetric).filter(
            FitnessMetric.athlete_id == athlete_id,
            FitnessMetric.metric_date >= since,
        )
        if until is not None:
            query = query.filter(FitnessMetric.metric_date <= until)
        rows = query.order_by(FitnessMetric.metric_date).all()
        return [FitnessMetricSnapshot.from_orm(m) for m in rows]

    def get_latest_snapshot(self, athlete_id: UUID, until: Optional[date] = None) -> Optional[FitnessMetricSnapshot]:
        query = self.db.query(FitnessMetric).filter(FitnessMetric.athlete_id == athlete_id)
        if until is not None:
            query = query.filter(FitnessMetric.metric_date <= until)
        row = query.order_by(FitnessMetric.metric_date.desc()).first()
        return FitnessMetricSnapshot.from_orm(row) if row else None

    def get_latest_workout_date(self, athlete_id: UUID) -> Optional[date]:
        row = self.db.query(Workout.workout_date).filter(
            Workout.athlete_id == athlete_id
        ).order_by(Workout.workout_date.desc()).first()
        return row[0] if row else None

    # =========================================================================
    # WRITE-BACKS
    # =========================================================================

    def upsert_fitness_snapshot(self, athlete_id: UUID, snapshot: FitnessMetricSnapshot) -> bool:
        """Replace (or create) the snapshot for (athlete, date), all fields at once."""
        values = {
            "fitness_score": round(snapshot.fitness_score, 2),
            "fatigue_score": round(snapshot.fatigue_score, 2),
            "form_score": round(snapshot.form_score, 2),
            "acwr": round(snapshot.acwr, 4),
            "muscle_group_fatigue": snapshot.muscle_group_fatigue.to_dict(),
        }
        try:
            with self.db.begin_nested():
                existing = self.db.query(FitnessMetric).filter(
                    FitnessMetric.athlete_id == athlete_id,
                    FitnessMetric.metric_date == snapshot.metric_date,
                ).first()
                if existing:
                    for key, value in values.items():
                        setattr(existing, key, value)
                else:
                    self.db.add(FitnessMetric(
                        athlete_id=athlete_id,
                        metric_date=snapshot.metric_date,
                        **values,
                    ))
            return True
        except SQLAlchemyError as e:
            logger.warning(
                f"Failed to store fitness snapshot for athlete {athlete_id} on {snapshot.metric_date}: {e}"
            )
            return False

    def prune_snapshots(self, athlete_id: UUID, since: date, until: date, keep: Iterable[date]) -> int:
        """
        Drop snapshots in [since, until] whose date is not in `keep`, e.g. the
        snapshot of a day whose only workout was deleted. Returns rows removed.
        """
        keep = set(keep)
        try:
            with self.db.begin_nested():
                stale = [
                    row for row in self.db.query(FitnessMetric).filter(
                        FitnessMetric.athlete_id == athlete_id,
                        FitnessMetric.metric_date >= since,
                        FitnessMetric.metric_date <= until,
                    ).all()
                    if row.metric_date not in keep
                ]
                for row in stale:
                    self.db.delete(row)
            return len(stale)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to prune stale snapshots for athlete {athlete_id}: {e}")
            return 0

    def update_activity_type(self, workout_id: UUID, activity_type: str) -> bool:
        try:
            with self.db.begin_nested():
                workout = self.db.get(Workout, workout_id)
                if workout is None:
                    return False
                workout.activity_type = activity_type
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Failed to correct activity type for workout {workout_id}: {e}")
            return False

    def cache_recovery_coefficient(self, check_in_id: UUID, coefficient: float) -> bool:
        try:
            with self.db.begin_nested():
                checkin = self.db.get(DailyCheckin, check_in_id)
                if checkin is None:
                    return False
                checkin.recovery_coefficient = coefficient
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Failed to cache recovery coefficient for check-in {check_in_id}: {e}")
            return False


# =============================================================================
# HISTORY STATISTICS
# =============================================================================

@dataclass
class WorkoutStats:
    total_workouts: int = 0
    total_volume: int = 0  # kg, rounded
    total_duration: float = 0.0  # minutes
    average_intensity: float = 0.0
    exercise_frequency: Dict[str, int] = field(default_factory=dict)
    current_streak: int = 0
    longest_streak: int = 0


def calculate_streaks(workout_dates: Iterable[date], today: Optional[date] = None) -> Tuple[int, int]:
    """
    (current, longest) runs of consecutive training days.

    The current streak is the run ending at the most recent workout, and only
    counts while that workout was today or yesterday.
    """
    dates = sorted(set(workout_dates))
    if not dates:
        return 0, 0
    if today is None:
        today = date.today()

    longest = 1
    run = 1
    for previous, current in zip(dates, dates[1:]):
        if current - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    current_streak = run if (today - dates[-1]).days <= 1 else 0
    return current_streak, longest


def summarize_workouts(workouts: Sequence[WorkoutRecord], today: Optional[date] = None) -> WorkoutStats:
    """Totals and streaks over a list of workouts."""
    if not workouts:
        return WorkoutStats()

    total_volume = 0.0
    total_duration = 0.0
    total_intensity = 0.0
    frequency: Dict[str, int] = {}

    for workout in workouts:
        total_duration += workout.duration_minutes
        total_intensity += workout.intensity_rpe
        for exercise in workout.exercises:
            total_volume += exercise.volume
            name = exercise.exercise_name or "Unknown"
            frequency[name] = frequency.get(name, 0) + 1

    current_streak, longest_streak = calculate_streaks(
        (w.workout_date for w in workouts), today=today
    )

    return WorkoutStats(
        total_workouts=len(workouts),
        total_volume=round(total_volume),
        total_duration=total_duration,
        average_intensity=round(total_intensity / len(workouts), 1),
        exercise_frequency=frequency,
        current_streak=current_streak,
        longest_streak=longest_streak,
    )
