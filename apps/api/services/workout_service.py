"""
Workout Service

Persists workouts and daily check-ins, keeps personal records current, and
triggers a training load recompute after every change.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Mapping, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session, selectinload

from core.exceptions import NotFoundError, ValidationError
from models import DailyCheckin, SportSession, Workout, WorkoutExercise
from schemas import CheckInCreate, WorkoutCreate
from services.exercise_activation import ExerciseActivationCatalog
from services.muscle_groups import safe_float, safe_int
from services.personal_records import PersonalRecordService
from services.recovery_coefficient import calculate_recovery_coefficient, survey_answer
from services.training_history import TrainingHistoryRepository, WorkoutStats, summarize_workouts
from services.training_load import FitnessMetricsService, RecomputeSummary
from services.workout_load import classify_activity_type
from services.workout_records import CheckInRecord, SetEntry, WorkoutRecord

logger = logging.getLogger(__name__)

DEFAULT_INTENSITY_RPE = 5
MIN_INTENSITY_RPE = 1
MAX_INTENSITY_RPE = 10
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_EXERCISE_HISTORY_LIMIT = 20
DEFAULT_CHECK_IN_HISTORY_DAYS = 42
DEFAULT_STATS_DAYS = 30


@dataclass
class WorkoutHistoryPage:
    workouts: List[Workout]
    total: int


@dataclass
class ExerciseHistoryEntry:
    workout_id: UUID
    workout_date: date
    exercise_id: str
    exercise_name: Optional[str]
    sets: List[SetEntry]
    volume: float


def _coerce_rpe(value) -> int:
    rpe = safe_int(value) or DEFAULT_INTENSITY_RPE
    return max(MIN_INTENSITY_RPE, min(MAX_INTENSITY_RPE, rpe))


class WorkoutService:
    """Write path for workout history."""

    def __init__(self, db: Session, catalog: Optional[ExerciseActivationCatalog] = None):
        self.db = db
        self.repository = TrainingHistoryRepository(db)
        self.personal_records = PersonalRecordService(db)
        self.fitness_metrics = FitnessMetricsService(db, catalog=catalog)

    def _recompute_through(self, athlete_id: UUID, day: date) -> RecomputeSummary:
        """Recompute as of `day`, or the latest workout date if that is later."""
        latest = self.repository.get_latest_workout_date(athlete_id)
        as_of = max(day, latest) if latest else day
        return self.fitness_metrics.recompute(athlete_id, as_of=as_of)

    def save_workout(self, athlete_id: UUID, payload: WorkoutCreate) -> Workout:
        """
        Store a workout with its exercise logs and sport sessions.

        Numbers are coerced leniently (malformed -> 0); RPE defaults to 5.
        Personal records are updated and the training load recomputed before
        returning.
        """
        duration = safe_int(payload.duration_minutes)
        if duration < 0:
            raise ValidationError("Duration cannot be negative", field="duration_minutes")

        workout = Workout(
            athlete_id=athlete_id,
            workout_date=payload.workout_date,
            duration_minutes=duration,
            intensity_rpe=_coerce_rpe(payload.intensity_rpe),
            notes=payload.notes,
        )

        for position, exercise in enumerate(payload.exercises):
            if any(safe_float(s.weight) < 0 or safe_int(s.reps) < 0 for s in exercise.sets):
                raise ValidationError(f"Negative weight or reps for exercise {exercise.exercise_id}", field="sets")
            workout.exercises.append(WorkoutExercise(
                athlete_id=athlete_id,
                position=position,
                exercise_id=str(exercise.exercise_id),
                exercise_name=exercise.exercise_name,
                sets_data=[
                    {
                        "weight": safe_float(s.weight),
                        "reps": safe_int(s.reps),
                        "time": safe_float(s.time) if s.time not in (None, "") else None,
                    }
                    for s in exercise.sets
                ],
            ))

        for position, session in enumerate(payload.sport_sessions):
            workout.sport_sessions.append(SportSession(
                athlete_id=athlete_id,
                position=position,
                activity_name=session.activity_name,
                duration_minutes=safe_int(session.duration_minutes),
            ))

        self.db.add(workout)
        self.db.flush()

        record = WorkoutRecord.from_orm(workout)
        workout.activity_type = classify_activity_type(record.exercises, record.sports).value
        self.personal_records.update_from_exercises(athlete_id, record.exercises, workout.workout_date)

        logger.info(
            f"Saved workout {workout.id} for athlete {athlete_id} on {workout.workout_date}",
            extra={
                "extra_fields": {
                    "athlete_id": str(athlete_id),
                    "exercises": len(workout.exercises),
                    "sport_sessions": len(workout.sport_sessions),
                }
            },
        )

        self._recompute_through(athlete_id, workout.workout_date)
        self.db.refresh(workout)
        return workout

    def save_check_in(self, athlete_id: UUID, payload: CheckInCreate) -> DailyCheckin:
        """
        Create or replace the check-in for (athlete, date).

        Unanswered survey questions are stored as 3 (neutral). The recovery
        coefficient is computed and cached on the row.
        """
        checkin = self.db.query(DailyCheckin).filter(
            DailyCheckin.athlete_id == athlete_id,
            DailyCheckin.date == payload.date,
        ).first()

        if checkin is None:
            checkin = DailyCheckin(athlete_id=athlete_id, date=payload.date)
            self.db.add(checkin)

        checkin.sleep_quality_1_5 = survey_answer(payload.sleep_quality_1_5)
        checkin.stress_1_5 = survey_answer(payload.stress_1_5)
        checkin.nutrition_quality_1_5 = survey_answer(payload.nutrition_quality_1_5)
        checkin.resting_hr = payload.resting_hr
        checkin.recovery_coefficient = calculate_recovery_coefficient(CheckInRecord(
            check_in_date=payload.date,
            sleep_quality=checkin.sleep_quality_1_5,
            stress_level=checkin.stress_1_5,
            nutrition_quality=checkin.nutrition_quality_1_5,
        ))
        self.db.flush()

        logger.info(
            f"Saved check-in for athlete {athlete_id} on {payload.date} "
            f"(recovery coefficient {checkin.recovery_coefficient:.3f})"
        )

        if self.repository.get_latest_workout_date(athlete_id) is not None:
            self._recompute_through(athlete_id, payload.date)
        return checkin

    def get_check_in(self, athlete_id: UUID, day: date) -> DailyCheckin:
        checkin = self.db.query(DailyCheckin).filter(
            DailyCheckin.athlete_id == athlete_id,
            DailyCheckin.date == day,
        ).first()
        if checkin is None:
            raise NotFoundError("Check-in", day.isoformat())
        return checkin

    def delete_workout(self, athlete_id: UUID, workout_id: UUID) -> RecomputeSummary:
        """Delete a workout (and its logs) and recompute the training load."""
        workout = self.db.query(Workout).filter(
            Workout.id == workout_id,
            Workout.athlete_id == athlete_id,
        ).first()
        if workout is None:
            raise NotFoundError("Workout", str(workout_id))

        workout_date = workout.workout_date
        self.db.delete(workout)
        self.db.flush()

        logger.info(f"Deleted workout {workout_id} for athlete {athlete_id}")
        return self._recompute_through(athlete_id, workout_date)

    def get_workout_history(
        self,
        athlete_id: UUID,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        activity_type: Optional[str] = None,
    ) -> WorkoutHistoryPage:
        """
        Most recent workouts first, one page at a time.

        `total` counts every workout matching the filters, not just the page.
        """
        query = self.db.query(Workout).filter(Workout.athlete_id == athlete_id)
        if start_date is not None:
            query = query.filter(Workout.workout_date >= start_date)
        if end_date is not None:
            query = query.filter(Workout.workout_date <= end_date)
        if activity_type:
            query = query.filter(Workout.activity_type == activity_type)

        total = query.count()
        workouts = query.options(
            selectinload(Workout.exercises),
            selectinload(Workout.sport_sessions),
        ).order_by(
            Workout.workout_date.desc(), Workout.created_at.desc()
        ).offset(offset).limit(limit).all()
        return WorkoutHistoryPage(workouts=workouts, total=total)

    def get_exercise_history(
        self,
        athlete_id: UUID,
        exercise_id,
        limit: int = DEFAULT_EXERCISE_HISTORY_LIMIT,
    ) -> List[ExerciseHistoryEntry]:
        """Past logs of one exercise, most recent workout first."""
        rows = self.db.query(WorkoutExercise, Workout.workout_date).join(
            Workout, WorkoutExercise.workout_id == Workout.id
        ).filter(
            WorkoutExercise.athlete_id == athlete_id,
            WorkoutExercise.exercise_id == str(exercise_id),
        ).order_by(
            Workout.workout_date.desc(), Workout.created_at.desc(), WorkoutExercise.position
        ).limit(limit).all()

        entries = []
        for log, workout_date in rows:
            sets = [SetEntry.from_raw(s) for s in (log.sets_data or []) if isinstance(s, Mapping)]
            entries.append(ExerciseHistoryEntry(
                workout_id=log.workout_id,
                workout_date=workout_date,
                exercise_id=log.exercise_id,
                exercise_name=log.exercise_name,
                sets=sets,
                volume=sum(s.volume for s in sets),
            ))
        return entries

    def get_check_in_history(
        self,
        athlete_id: UUID,
        days: int = DEFAULT_CHECK_IN_HISTORY_DAYS,
        today: Optional[date] = None,
    ) -> List[DailyCheckin]:
        """Check-ins from the last `days` days through `today`, oldest first."""
        today = today or date.today()
        return self.db.query(DailyCheckin).filter(
            DailyCheckin.athlete_id == athlete_id,
            DailyCheckin.date >= today - timedelta(days=days),
            DailyCheckin.date <= today,
        ).order_by(DailyCheckin.date).all()

    def get_workout_stats(
        self,
        athlete_id: UUID,
        days: int = DEFAULT_STATS_DAYS,
        today: Optional[date] = None,
    ) -> WorkoutStats:
        """Totals and streaks over the last `days` days through `today`."""
        today = today or date.today()
        workouts = self.repository.get_recent_workouts(
            athlete_id, since=today - timedelta(days=days), until=today
        )
        return summarize_workouts(workouts, today=today)
