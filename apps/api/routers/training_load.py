"""
Training Load Router

Exposes the training load engine:
- Fitness/fatigue/form/ACWR snapshots for charting
- Manual recompute
- Per-muscle readiness and ACWR zone
- Balanced next-session targets
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from uuid import UUID
from datetime import date
from pydantic import BaseModel

from core.database import get_db
from core.exceptions import NotFoundError
from services.auto_balancer import (
    AutoBalancerService,
    calculate_difficulty_range,
    calculate_sport_targets,
    get_available_sports,
)
from services.muscle_readiness import (
    MuscleReadinessService,
    classify_acwr,
    classify_form_score,
    get_readiness_color,
)
from services.training_load import FitnessMetricsService
from services.workout_records import FitnessMetricSnapshot

router = APIRouter(prefix="/v1/athletes/{athlete_id}/training-load", tags=["Training Load"])


# ============ Response Models ============

class FitnessMetricResponse(BaseModel):
    metric_date: date
    fitness_score: float
    fatigue_score: float
    form_score: float
    acwr: float
    muscle_group_fatigue: Dict[str, float]


class ACWRZoneResponse(BaseModel):
    zone: str
    label: str
    description: str
    color: str


class MetricsSummaryResponse(BaseModel):
    latest: Optional[FitnessMetricResponse] = None
    form_status: Optional[str] = None
    acwr_zone: Optional[ACWRZoneResponse] = None


class MetricsHistoryResponse(BaseModel):
    history: List[FitnessMetricResponse]
    summary: MetricsSummaryResponse


class RecomputeResponse(BaseModel):
    as_of: date
    window_start: date
    workouts_replayed: int
    snapshots_written: int
    snapshots_failed: int
    snapshots_pruned: int
    activity_types_corrected: int
    latest: Optional[FitnessMetricResponse] = None


class ReadinessResponse(BaseModel):
    as_of: date
    snapshot_date: date
    days_since_last_workout: int
    readiness: Dict[str, float]
    muscle_fatigue: Dict[str, float]
    muscle_fitness: Dict[str, float]
    form_score: float
    form_status: str
    acwr: float
    acwr_zone: ACWRZoneResponse


class BalancedTargetsResponse(BaseModel):
    targets: Dict[str, float]
    readiness: Dict[str, float]
    form_score: float
    is_default: bool
    difficulty_min: int
    difficulty_max: int
    sport_targets: Optional[Dict[str, float]] = None
    available_sports: List[str]


class ReadinessColorResponse(BaseModel):
    score: float
    color: str
    label: str


def snapshot_to_response(snapshot: FitnessMetricSnapshot) -> FitnessMetricResponse:
    return FitnessMetricResponse(
        metric_date=snapshot.metric_date,
        fitness_score=round(snapshot.fitness_score, 2),
        fatigue_score=round(snapshot.fatigue_score, 2),
        form_score=round(snapshot.form_score, 2),
        acwr=round(snapshot.acwr, 2),
        muscle_group_fatigue={m: round(v, 2) for m, v in snapshot.muscle_group_fatigue.items()},
    )


def zone_to_response(acwr: float) -> ACWRZoneResponse:
    info = classify_acwr(acwr)
    return ACWRZoneResponse(zone=info.zone.value, label=info.label, description=info.description, color=info.color)


# ============ Endpoints ============

@router.get("/metrics", response_model=MetricsHistoryResponse)
async def get_metrics(
    athlete_id: UUID,
    days: int = 42,
    db: Session = Depends(get_db),
):
    """
    Stored daily snapshots for charting, plus the latest form and ACWR zone.
    """
    if days < 7:
        days = 7
    if days > 365:
        days = 365

    service = FitnessMetricsService(db)
    history = service.get_metrics(athlete_id, days=days)
    latest = service.get_latest_snapshot(athlete_id)

    summary = MetricsSummaryResponse()
    if latest is not None:
        summary = MetricsSummaryResponse(
            latest=snapshot_to_response(latest),
            form_status=classify_form_score(latest.form_score),
            acwr_zone=zone_to_response(latest.acwr),
        )

    return MetricsHistoryResponse(
        history=[snapshot_to_response(s) for s in history],
        summary=summary,
    )


@router.post("/recompute", response_model=RecomputeResponse)
async def recompute_training_load(
    athlete_id: UUID,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Replay the trailing window and rewrite every snapshot in it."""
    summary = FitnessMetricsService(db).recompute(athlete_id, as_of=as_of)
    return RecomputeResponse(
        as_of=summary.as_of,
        window_start=summary.window_start,
        workouts_replayed=summary.workouts_replayed,
        snapshots_written=summary.snapshots_written,
        snapshots_failed=summary.snapshots_failed,
        snapshots_pruned=summary.snapshots_pruned,
        activity_types_corrected=summary.activity_types_corrected,
        latest=snapshot_to_response(summary.latest) if summary.latest else None,
    )


@router.get("/readiness", response_model=ReadinessResponse)
async def get_readiness(
    athlete_id: UUID,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """
    Per-muscle readiness (0-100) with fatigue decayed across rest days.
    """
    readiness = MuscleReadinessService(db).get_muscle_readiness(athlete_id, as_of=as_of)
    if readiness is None:
        raise NotFoundError("Training history", str(athlete_id))

    return ReadinessResponse(
        as_of=readiness.as_of,
        snapshot_date=readiness.snapshot_date,
        days_since_last_workout=readiness.days_since_last_workout,
        readiness={m: round(v, 1) for m, v in readiness.readiness.items()},
        muscle_fatigue={m: round(v, 2) for m, v in readiness.muscle_fatigue.items()},
        muscle_fitness={m: round(v, 2) for m, v in readiness.muscle_fitness.items()},
        form_score=round(readiness.form_score, 2),
        form_status=classify_form_score(readiness.form_score),
        acwr=round(readiness.acwr, 2),
        acwr_zone=zone_to_response(readiness.acwr),
    )


@router.get("/balanced-targets", response_model=BalancedTargetsResponse)
async def get_balanced_targets(
    athlete_id: UUID,
    as_of: Optional[date] = None,
    sports: List[str] = Query(default=[]),
    db: Session = Depends(get_db),
):
    """
    Next-session muscle emphasis. Always answers: athletes without history
    get the default profile.
    """
    balanced = AutoBalancerService(db).compute_balanced_targets(athlete_id, as_of=as_of)
    difficulty_min, difficulty_max = calculate_difficulty_range(balanced.form_score)
    sport_targets = calculate_sport_targets(sports)

    return BalancedTargetsResponse(
        targets=balanced.targets.to_dict(),
        readiness={m: round(v, 1) for m, v in balanced.readiness.items()},
        form_score=round(balanced.form_score, 2),
        is_default=balanced.is_default,
        difficulty_min=difficulty_min,
        difficulty_max=difficulty_max,
        sport_targets=sport_targets.to_dict() if sport_targets else None,
        available_sports=get_available_sports(),
    )


@router.get("/readiness-color/{score}", response_model=ReadinessColorResponse)
async def readiness_color(
    athlete_id: UUID,
    score: float = Path(..., ge=0, le=100),
):
    color = get_readiness_color(score)
    return ReadinessColorResponse(score=score, color=color.color, label=color.label)
