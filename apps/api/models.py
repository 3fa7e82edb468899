from sqlalchemy import Column, Integer, Float, Date, DateTime, ForeignKey, Text, Index, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from core.database import Base
import uuid

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Workout(Base):
    """
    One logged training session.

    `activity_type` is derived by the training load engine and written back
    on every recompute; everything else is immutable once saved.
    """
    __tablename__ = "workout"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    workout_date = Column(Date, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=0)
    intensity_rpe = Column(Integer, nullable=False, default=5)  # 1-10
    notes = Column(Text, nullable=True)
    activity_type = Column(Text, nullable=True)  # weightlifting, running, cycling, swimming, mixed, cardio
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exercises = relationship(
        "WorkoutExercise",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="WorkoutExercise.position",
    )
    sport_sessions = relationship(
        "SportSession",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="SportSession.position",
    )

    __table_args__ = (
        Index("ix_workout_athlete_date", "athlete_id", "workout_date"),
    )


class WorkoutExercise(Base):
    __tablename__ = "workout_exercise"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workout_id = Column(Uuid(as_uuid=True), ForeignKey("workout.id", ondelete="CASCADE"), nullable=False, index=True)
    athlete_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    exercise_id = Column(Text, nullable=False)
    exercise_name = Column(Text, nullable=True)
    # [{"weight": 100, "reps": 10, "time": null}, ...]
    sets_data = Column(JSONType, nullable=False, default=list)

    workout = relationship("Workout", back_populates="exercises")


class SportSession(Base):
    __tablename__ = "sport_session"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workout_id = Column(Uuid(as_uuid=True), ForeignKey("workout.id", ondelete="CASCADE"), nullable=False, index=True)
    athlete_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    activity_name = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=0)

    workout = relationship("Workout", back_populates="sport_sessions")


class DailyCheckin(Base):
    __tablename__ = "daily_checkin"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    date = Column(Date, nullable=False)
    sleep_quality_1_5 = Column(Integer, nullable=True)
    stress_1_5 = Column(Integer, nullable=True)
    nutrition_quality_1_5 = Column(Integer, nullable=True)
    resting_hr = Column(Integer, nullable=True)  # Resting heart rate (bpm)
    # Cached once computed; clamped to [0.5, 1.5]
    recovery_coefficient = Column(Float, nullable=True)

    __table_args__ = (
        Index("uq_checkin_athlete_date", "athlete_id", "date", unique=True),
    )


class FitnessMetric(Base):
    """
    Per-day training load snapshot, replaced wholesale on every recompute.
    """
    __tablename__ = "fitness_metric"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    metric_date = Column(Date, nullable=False)
    fitness_score = Column(Float, nullable=False)  # chronic EWMA of total load
    fatigue_score = Column(Float, nullable=False)  # acute EWMA of total load
    form_score = Column(Float, nullable=False)  # fitness - fatigue
    acwr = Column(Float, nullable=False)  # clamped to [0, 2.5]
    muscle_group_fatigue = Column(JSONType, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("uq_fitness_metric_athlete_date", "athlete_id", "metric_date", unique=True),
    )


class ExercisePersonalRecord(Base):
    __tablename__ = "exercise_personal_record"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    exercise_id = Column(Text, nullable=False)
    exercise_name = Column(Text, nullable=True)
    max_weight = Column(Float, nullable=False, default=0)
    max_reps = Column(Integer, nullable=False, default=0)
    max_volume = Column(Float, nullable=False, default=0)
    max_one_rep_max = Column(Float, nullable=False, default=0)
    last_performed = Column(Date, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("uq_pr_athlete_exercise", "athlete_id", "exercise_id", unique=True),
    )


class Exercise(Base):
    """Exercise catalog row. Read-only to the training load engine."""
    __tablename__ = "exercise"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    # {"Chest": 1.0, "Triceps": 0.6, ...}; coefficients in [0, 1]
    muscle_activation = Column(JSONType, nullable=False, default=dict)
