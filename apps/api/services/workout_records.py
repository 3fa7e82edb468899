"""
Engine-side records for workout history.

The training load engine never touches ORM rows directly: history is read
once, converted into these plain dataclasses, and replayed. Conversion is
lenient; malformed numbers in stored set data coerce to zero.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Mapping, Optional
from uuid import UUID

from services.muscle_groups import MuscleVector, safe_float, safe_int


@dataclass(frozen=True)
class SetEntry:
    weight: float
    reps: int
    time: Optional[float] = None

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "SetEntry":
        time = raw.get("time")
        return cls(
            weight=safe_float(raw.get("weight")),
            reps=safe_int(raw.get("reps")),
            time=safe_float(time) if time not in (None, "") else None,
        )


@dataclass(frozen=True)
class ExerciseLog:
    exercise_id: str
    exercise_name: str = ""
    sets: List[SetEntry] = field(default_factory=list)

    @property
    def volume(self) -> float:
        return sum(s.volume for s in self.sets)


@dataclass(frozen=True)
class SportSessionRecord:
    activity_name: str
    duration_minutes: float


@dataclass(frozen=True)
class WorkoutRecord:
    """One calendar day's session as the engine sees it."""
    workout_date: date
    duration_minutes: float = 0.0
    intensity_rpe: float = 0.0
    notes: str = ""
    exercises: List[ExerciseLog] = field(default_factory=list)
    sports: List[SportSessionRecord] = field(default_factory=list)
    id: Optional[UUID] = None
    activity_type: Optional[str] = None  # last tag stored for this workout

    @classmethod
    def from_orm(cls, workout) -> "WorkoutRecord":
        exercises = [
            ExerciseLog(
                exercise_id=str(ex.exercise_id),
                exercise_name=ex.exercise_name or "",
                sets=[
                    SetEntry.from_raw(s)
                    for s in (ex.sets_data or [])
                    if isinstance(s, Mapping)
                ],
            )
            for ex in (workout.exercises or [])
        ]
        sports = [
            SportSessionRecord(
                activity_name=s.activity_name or "",
                duration_minutes=safe_float(s.duration_minutes),
            )
            for s in (workout.sport_sessions or [])
        ]
        return cls(
            id=workout.id,
            workout_date=workout.workout_date,
            duration_minutes=safe_float(workout.duration_minutes),
            intensity_rpe=safe_float(workout.intensity_rpe),
            notes=workout.notes or "",
            exercises=exercises,
            sports=sports,
            activity_type=workout.activity_type,
        )


@dataclass(frozen=True)
class CheckInRecord:
    """Daily readiness survey; each answer on a 1-5 scale."""
    check_in_date: date
    sleep_quality: Optional[int] = None
    stress_level: Optional[int] = None
    nutrition_quality: Optional[int] = None
    resting_heart_rate: Optional[int] = None
    recovery_coefficient: Optional[float] = None
    id: Optional[UUID] = None

    @classmethod
    def from_orm(cls, checkin) -> "CheckInRecord":
        return cls(
            id=checkin.id,
            check_in_date=checkin.date,
            sleep_quality=checkin.sleep_quality_1_5,
            stress_level=checkin.stress_1_5,
            nutrition_quality=checkin.nutrition_quality_1_5,
            resting_heart_rate=checkin.resting_hr,
            recovery_coefficient=checkin.recovery_coefficient,
        )


@dataclass(frozen=True)
class FitnessMetricSnapshot:
    """Training load state after the last workout on `metric_date`."""
    metric_date: date
    fitness_score: float
    fatigue_score: float
    form_score: float
    acwr: float
    muscle_group_fatigue: MuscleVector

    @classmethod
    def from_orm(cls, metric) -> "FitnessMetricSnapshot":
        return cls(
            metric_date=metric.metric_date,
            fitness_score=safe_float(metric.fitness_score),
            fatigue_score=safe_float(metric.fatigue_score),
            form_score=safe_float(metric.form_score),
            acwr=safe_float(metric.acwr, 1.0),
            muscle_group_fatigue=MuscleVector.from_dict(metric.muscle_group_fatigue),
        )
