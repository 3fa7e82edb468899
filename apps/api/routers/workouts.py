"""
Workouts Router

Workout logging, paged history, per-exercise history, statistics and
personal records.
Every write recomputes the athlete's training load before responding.
"""

from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel

from core.database import get_db
from models import Workout
from schemas import (
    ExerciseLogResponse,
    PersonalRecordResponse,
    SetEntryResponse,
    SportSessionResponse,
    WorkoutCreate,
    WorkoutResponse,
)
from services.personal_records import PersonalRecordService
from services.workout_load import ActivityType
from services.workout_service import WorkoutService

router = APIRouter(prefix="/v1/athletes/{athlete_id}", tags=["Workouts"])


# ============ Response Models ============

class WorkoutHistoryResponse(BaseModel):
    workouts: List[WorkoutResponse]
    total: int
    limit: int
    offset: int


class ExerciseHistoryResponse(BaseModel):
    workout_id: UUID
    workout_date: date
    exercise_id: str
    exercise_name: Optional[str] = None
    sets: List[SetEntryResponse]
    volume: float


class WorkoutStatsResponse(BaseModel):
    days: int
    total_workouts: int
    total_volume: int
    total_duration: float
    average_intensity: float
    exercise_frequency: Dict[str, int]
    current_streak: int
    longest_streak: int


class DeleteWorkoutResponse(BaseModel):
    deleted: bool
    workout_id: UUID
    snapshots_written: int


def workout_to_response(workout: Workout) -> WorkoutResponse:
    return WorkoutResponse(
        id=workout.id,
        athlete_id=workout.athlete_id,
        workout_date=workout.workout_date,
        duration_minutes=workout.duration_minutes or 0,
        intensity_rpe=workout.intensity_rpe or 0,
        notes=workout.notes,
        activity_type=workout.activity_type,
        created_at=workout.created_at,
        exercises=[
            ExerciseLogResponse(
                exercise_id=ex.exercise_id,
                exercise_name=ex.exercise_name,
                sets=[SetEntryResponse(**s) for s in (ex.sets_data or [])],
            )
            for ex in workout.exercises
        ],
        sport_sessions=[
            SportSessionResponse(activity_name=s.activity_name, duration_minutes=s.duration_minutes or 0)
            for s in workout.sport_sessions
        ],
    )


# ============ Endpoints ============

@router.post("/workouts", response_model=WorkoutResponse, status_code=status.HTTP_201_CREATED)
async def create_workout(
    athlete_id: UUID,
    workout: WorkoutCreate,
    db: Session = Depends(get_db),
):
    """
    Log a workout.

    Updates personal records and recomputes fitness/fatigue snapshots.
    """
    saved = WorkoutService(db).save_workout(athlete_id, workout)
    return workout_to_response(saved)


@router.get("/workouts", response_model=WorkoutHistoryResponse)
async def list_workouts(
    athlete_id: UUID,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    activity_type: Optional[ActivityType] = None,
    db: Session = Depends(get_db),
):
    """Workout history, newest first, with optional date and activity filters."""
    page = WorkoutService(db).get_workout_history(
        athlete_id,
        limit=limit,
        offset=offset,
        start_date=start_date,
        end_date=end_date,
        activity_type=activity_type.value if activity_type else None,
    )
    return WorkoutHistoryResponse(
        workouts=[workout_to_response(w) for w in page.workouts],
        total=page.total,
        limit=limit,
        offset=offset,
    )


@router.get("/workouts/stats", response_model=WorkoutStatsResponse)
async def get_workout_stats(
    athlete_id: UUID,
    days: int = Query(default=30, ge=1, le=365),
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Totals, exercise frequency and training streaks over the trailing window."""
    stats = WorkoutService(db).get_workout_stats(athlete_id, days=days, today=as_of)
    return WorkoutStatsResponse(
        days=days,
        total_workouts=stats.total_workouts,
        total_volume=stats.total_volume,
        total_duration=stats.total_duration,
        average_intensity=stats.average_intensity,
        exercise_frequency=stats.exercise_frequency,
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
    )


@router.get("/exercises/{exercise_id}/history", response_model=List[ExerciseHistoryResponse])
async def get_exercise_history(
    athlete_id: UUID,
    exercise_id: str,
    limit: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    entries = WorkoutService(db).get_exercise_history(athlete_id, exercise_id, limit=limit)
    return [
        ExerciseHistoryResponse(
            workout_id=e.workout_id,
            workout_date=e.workout_date,
            exercise_id=e.exercise_id,
            exercise_name=e.exercise_name,
            sets=[SetEntryResponse(weight=s.weight, reps=s.reps, time=s.time) for s in e.sets],
            volume=e.volume,
        )
        for e in entries
    ]


@router.delete("/workouts/{workout_id}", response_model=DeleteWorkoutResponse)
async def delete_workout(
    athlete_id: UUID,
    workout_id: UUID,
    db: Session = Depends(get_db),
):
    summary = WorkoutService(db).delete_workout(athlete_id, workout_id)
    return DeleteWorkoutResponse(
        deleted=True,
        workout_id=workout_id,
        snapshots_written=summary.snapshots_written,
    )


@router.get("/personal-records", response_model=List[PersonalRecordResponse])
async def list_personal_records(
    athlete_id: UUID,
    exercise_id: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    records = PersonalRecordService(db).get_personal_records(athlete_id, exercise_id=exercise_id, limit=limit)
    return [PersonalRecordResponse.model_validate(r) for r in records]
