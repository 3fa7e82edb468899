from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, date
from uuid import UUID
from typing import Optional, List, Union

# Numbers typed into workout forms arrive as numbers or strings ("80", "12.5")
LooseNumber = Optional[Union[float, str]]


class SetEntryCreate(BaseModel):
    weight: LooseNumber = None
    reps: LooseNumber = None
    time: LooseNumber = None  # seconds, for timed holds


class ExerciseLogCreate(BaseModel):
    exercise_id: Union[int, str]
    exercise_name: Optional[str] = None
    sets: List[SetEntryCreate] = Field(default_factory=list)


class SportSessionCreate(BaseModel):
    activity_name: str
    duration_minutes: LooseNumber = None


class WorkoutCreate(BaseModel):
    """Schema for logging a workout"""
    workout_date: date
    duration_minutes: LooseNumber = None
    intensity_rpe: LooseNumber = None  # 1-10, defaults to 5
    notes: Optional[str] = None
    exercises: List[ExerciseLogCreate] = Field(default_factory=list)
    sport_sessions: List[SportSessionCreate] = Field(default_factory=list)


class SetEntryResponse(BaseModel):
    weight: float = 0
    reps: int = 0
    time: Optional[float] = None


class ExerciseLogResponse(BaseModel):
    exercise_id: str
    exercise_name: Optional[str] = None
    sets: List[SetEntryResponse] = Field(default_factory=list)


class SportSessionResponse(BaseModel):
    activity_name: str
    duration_minutes: float


class WorkoutResponse(BaseModel):
    id: UUID
    athlete_id: UUID
    workout_date: date
    duration_minutes: float
    intensity_rpe: float
    notes: Optional[str] = None
    activity_type: Optional[str] = None
    created_at: Optional[datetime] = None
    exercises: List[ExerciseLogResponse] = Field(default_factory=list)
    sport_sessions: List[SportSessionResponse] = Field(default_factory=list)


class CheckInCreate(BaseModel):
    date: date
    sleep_quality_1_5: Optional[int] = Field(default=None, ge=0, le=5)
    stress_1_5: Optional[int] = Field(default=None, ge=0, le=5)
    nutrition_quality_1_5: Optional[int] = Field(default=None, ge=0, le=5)
    resting_hr: Optional[int] = None


class CheckInResponse(BaseModel):
    id: UUID
    athlete_id: UUID
    date: date
    sleep_quality_1_5: Optional[int] = None
    stress_1_5: Optional[int] = None
    nutrition_quality_1_5: Optional[int] = None
    resting_hr: Optional[int] = None
    recovery_coefficient: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class PersonalRecordResponse(BaseModel):
    exercise_id: str
    exercise_name: Optional[str] = None
    max_weight: float
    max_reps: int
    max_volume: float
    max_one_rep_max: float
    last_performed: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)
