"""
Muscle Readiness & ACWR

Derives per-muscle readiness (0-100) from the fatigue-to-fitness ratio and
bands the global Acute:Chronic Workload Ratio into injury-risk zones.

Readiness "fitness" is not the engine's fitness vector: it is a 42-day EWMA
of the per-muscle fatigue stored in recent snapshots, used as a proxy for
the load each muscle is used to handling.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from services.muscle_groups import MuscleVector
from services.recovery_coefficient import apply_muscle_fatigue_decay, calculate_recovery_coefficient
from services.training_history import TrainingHistoryRepository
from services.training_load import ALPHA_CHRONIC, CHRONIC_WINDOW_DAYS, clamp_acwr

logger = logging.getLogger(__name__)


ACWR_OPTIMAL_MIN = 0.8
ACWR_OPTIMAL_MAX = 1.3
ACWR_DETRAINING_BELOW = 0.5
ACWR_HIGH_RISK_ABOVE = 1.5


class ACWRZone(str, Enum):
    DETRAINING = "detraining"
    OPTIMAL = "optimal"
    MONITOR = "monitor"  # approaching limits on either side
    HIGH_RISK = "high_risk"


@dataclass
class ACWRZoneInfo:
    zone: ACWRZone
    label: str
    description: str
    color: str  # For UI display


@dataclass
class ReadinessColor:
    color: str
    label: str


def calculate_muscle_readiness(fitness: MuscleVector, fatigue: MuscleVector) -> MuscleVector:
    """100 - fatigue/fitness x 100, clamped to [0, 100]; untrained muscles are 100."""
    def readiness(_muscle: str, muscle_fitness: float, muscle_fatigue: float) -> float:
        if muscle_fitness == 0:
            return 100.0
        ratio = muscle_fatigue / muscle_fitness
        return max(0.0, min(100.0, 100 - ratio * 100))

    return fitness.combine(fatigue, readiness)


def calculate_fitness_from_history(fatigue_history: Sequence[MuscleVector]) -> MuscleVector:
    """42-day EWMA over historical per-muscle fatigue, oldest first, from zero."""
    fitness = MuscleVector.zeros()
    for fatigue in fatigue_history:
        fitness = fitness.combine(
            fatigue,
            lambda _m, prev, load: load * ALPHA_CHRONIC + prev * (1 - ALPHA_CHRONIC),
        )
    return fitness


def classify_acwr(acwr: float) -> ACWRZoneInfo:
    """
    Band the global ACWR.

    - [0.8, 1.3]: optimal
    - below 0.5: detraining
    - above 1.5: high injury risk
    - anything else: approaching limits
    """
    if ACWR_OPTIMAL_MIN <= acwr <= ACWR_OPTIMAL_MAX:
        return ACWRZoneInfo(
            zone=ACWRZone.OPTIMAL,
            label="Optimal",
            description=f"Your ACWR is {acwr:.2f} - You're in the optimal training zone!",
            color="green",
        )
    if acwr < ACWR_DETRAINING_BELOW:
        return ACWRZoneInfo(
            zone=ACWRZone.DETRAINING,
            label="Detraining",
            description=f"Your ACWR is {acwr:.2f} - You may be detraining. Consider increasing workload gradually.",
            color="red",
        )
    if acwr > ACWR_HIGH_RISK_ABOVE:
        return ACWRZoneInfo(
            zone=ACWRZone.HIGH_RISK,
            label="High Injury Risk",
            description=f"Your ACWR is {acwr:.2f} - High injury risk. Reduce training intensity or volume.",
            color="red",
        )
    return ACWRZoneInfo(
        zone=ACWRZone.MONITOR,
        label="Monitor",
        description=f"Your ACWR is {acwr:.2f} - Approaching limits. Monitor carefully.",
        color="yellow",
    )


def get_readiness_color(score: float) -> ReadinessColor:
    if score >= 80:
        return ReadinessColor(color="#10b981", label="Fully Recovered")
    if score >= 60:
        return ReadinessColor(color="#fbbf24", label="Moderate Fatigue")
    if score >= 40:
        return ReadinessColor(color="#f97316", label="Elevated Fatigue")
    return ReadinessColor(color="#ef4444", label="High Fatigue")


def classify_form_score(form_score: float) -> str:
    if form_score > 20:
        return "Peak Performance"
    if form_score > 0:
        return "Good Condition"
    if form_score > -20:
        return "Fatigued"
    return "Overtrained - Rest Needed"


@dataclass
class MuscleReadiness:
    """Readiness state for an athlete as of a given day."""
    as_of: date
    snapshot_date: date
    readiness: MuscleVector
    muscle_fatigue: MuscleVector  # decayed to as_of
    muscle_fitness: MuscleVector
    form_score: float
    acwr: float
    acwr_zone: ACWRZoneInfo
    days_since_last_workout: int


class MuscleReadinessService:
    """On-demand readiness from persisted snapshots. Read-only."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = TrainingHistoryRepository(db)

    def get_muscle_readiness(self, athlete_id: UUID, as_of: Optional[date] = None) -> Optional[MuscleReadiness]:
        """
        Readiness from the latest snapshot on or before `as_of`.

        Fatigue is decayed across the rest days since that snapshot using the
        as-of day's check-in (neutral without one). Returns None when the
        athlete has no snapshots.
        """
        if as_of is None:
            as_of = date.today()

        latest = self.repository.get_latest_snapshot(athlete_id, until=as_of)
        if latest is None:
            return None

        history = self.repository.get_snapshots(
            athlete_id, as_of - timedelta(days=CHRONIC_WINDOW_DAYS), as_of
        )
        muscle_fitness = calculate_fitness_from_history([s.muscle_group_fatigue for s in history])

        days_since = (as_of - latest.metric_date).days
        muscle_fatigue = latest.muscle_group_fatigue
        if days_since > 0:
            coefficient = calculate_recovery_coefficient(self.repository.get_check_in(athlete_id, as_of))
            muscle_fatigue = apply_muscle_fatigue_decay(muscle_fatigue, coefficient, days_since)

        acwr = clamp_acwr(latest.acwr)

        return MuscleReadiness(
            as_of=as_of,
            snapshot_date=latest.metric_date,
            readiness=calculate_muscle_readiness(muscle_fitness, muscle_fatigue),
            muscle_fatigue=muscle_fatigue,
            muscle_fitness=muscle_fitness,
            form_score=latest.form_score,
            acwr=acwr,
            acwr_zone=classify_acwr(acwr),
            days_since_last_workout=days_since,
        )
