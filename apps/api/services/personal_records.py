"""
Personal Record (PR) Tracking Service

Tracks best-ever lifting performances per exercise. Every field only ever
goes up: a weaker session never lowers a stored record.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import ExercisePersonalRecord
from services.workout_records import ExerciseLog, SetEntry

logger = logging.getLogger(__name__)


def estimate_one_rep_max(weight: float, reps: int) -> float:
    """Epley estimate: weight x (1 + reps / 30)."""
    return weight * (1 + reps / 30)


@dataclass
class ExerciseBests:
    max_weight: float = 0.0
    max_reps: int = 0
    max_volume: float = 0.0
    max_one_rep_max: float = 0.0


def compute_exercise_bests(sets: Sequence[SetEntry]) -> ExerciseBests:
    """Best single-set numbers across one exercise's sets."""
    bests = ExerciseBests()
    for s in sets:
        bests.max_weight = max(bests.max_weight, s.weight)
        bests.max_reps = max(bests.max_reps, s.reps)
        bests.max_volume = max(bests.max_volume, s.volume)
        bests.max_one_rep_max = max(bests.max_one_rep_max, estimate_one_rep_max(s.weight, s.reps))
    return bests


def merge_personal_record(
    record: ExercisePersonalRecord,
    bests: ExerciseBests,
    performed_on: date,
) -> ExercisePersonalRecord:
    """Fold a session's bests into a stored record without lowering anything."""
    record.max_weight = max(record.max_weight or 0, bests.max_weight)
    record.max_reps = max(record.max_reps or 0, bests.max_reps)
    record.max_volume = max(record.max_volume or 0, bests.max_volume)
    record.max_one_rep_max = max(record.max_one_rep_max or 0, bests.max_one_rep_max)
    if record.last_performed is None or performed_on > record.last_performed:
        record.last_performed = performed_on
    return record


class PersonalRecordService:

    def __init__(self, db: Session):
        self.db = db

    def update_from_exercises(
        self,
        athlete_id: UUID,
        exercises: Sequence[ExerciseLog],
        performed_on: date,
    ) -> List[ExercisePersonalRecord]:
        """
        Upsert one record per exercise with logged sets, keyed by (athlete, exercise).

        An exercise logged more than once in the same workout folds into a
        single record before the lookup.
        """
        grouped: Dict[str, List[SetEntry]] = {}
        names: Dict[str, str] = {}
        for exercise in exercises:
            if not exercise.sets:
                continue
            grouped.setdefault(exercise.exercise_id, []).extend(exercise.sets)
            if exercise.exercise_name:
                names[exercise.exercise_id] = exercise.exercise_name

        updated = []
        for exercise_id, sets in grouped.items():
            bests = compute_exercise_bests(sets)
            record = self.db.query(ExercisePersonalRecord).filter(
                ExercisePersonalRecord.athlete_id == athlete_id,
                ExercisePersonalRecord.exercise_id == exercise_id,
            ).first()

            if record is None:
                record = ExercisePersonalRecord(
                    athlete_id=athlete_id,
                    exercise_id=exercise_id,
                    max_weight=0,
                    max_reps=0,
                    max_volume=0,
                    max_one_rep_max=0,
                )
                self.db.add(record)

            if exercise_id in names:
                record.exercise_name = names[exercise_id]
            merge_personal_record(record, bests, performed_on)
            updated.append(record)

        if updated:
            self.db.flush()
            logger.info(f"Updated {len(updated)} personal records for athlete {athlete_id}")
        return updated

    def get_personal_records(
        self,
        athlete_id: UUID,
        exercise_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ExercisePersonalRecord]:
        query = self.db.query(ExercisePersonalRecord).filter(
            ExercisePersonalRecord.athlete_id == athlete_id
        )
        if exercise_id is not None:
            query = query.filter(ExercisePersonalRecord.exercise_id == str(exercise_id))
        query = query.order_by(ExercisePersonalRecord.updated_at.desc(), ExercisePersonalRecord.exercise_id)
        if limit:
            query = query.limit(limit)
        return query.all()
