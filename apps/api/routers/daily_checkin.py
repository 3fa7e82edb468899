"""
Daily Check-in API Router

One survey per athlete per day (sleep, stress, nutrition). Feeds the
recovery coefficient used by the training load engine.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
from uuid import UUID

from core.database import get_db
from schemas import CheckInCreate, CheckInResponse
from services.workout_service import WorkoutService

router = APIRouter(prefix="/v1/athletes/{athlete_id}/check-ins", tags=["Daily Check-in"])


@router.post("", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def create_or_update_checkin(
    athlete_id: UUID,
    checkin: CheckInCreate,
    db: Session = Depends(get_db),
):
    """
    Create or update the check-in for a date.

    If a check-in already exists for this date, it is replaced. Unanswered
    questions count as 3 (neutral).
    """
    saved = WorkoutService(db).save_check_in(athlete_id, checkin)
    return CheckInResponse.model_validate(saved)


@router.get("", response_model=List[CheckInResponse])
async def list_checkins(
    athlete_id: UUID,
    days: int = Query(default=42, ge=1, le=365),
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Check-ins over the trailing window, oldest first."""
    checkins = WorkoutService(db).get_check_in_history(athlete_id, days=days, today=as_of)
    return [CheckInResponse.model_validate(c) for c in checkins]


@router.get("/{checkin_date}", response_model=CheckInResponse)
async def get_checkin(
    athlete_id: UUID,
    checkin_date: date,
    db: Session = Depends(get_db),
):
    return CheckInResponse.model_validate(WorkoutService(db).get_check_in(athlete_id, checkin_date))
