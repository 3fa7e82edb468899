"""
Exercise Activation Lookup

Maps an exercise identifier to its per-muscle activation coefficients (0..1).
The catalog is owned elsewhere (the `exercise` table, or an exercises.json
export with one column per muscle); the load calculator only reads it.
"""

from typing import Any, Dict, Iterable, Mapping, Optional
import json
import logging

from sqlalchemy.orm import Session

from models import Exercise
from services.muscle_groups import MUSCLE_GROUPS, MUSCLE_ALIASES, MuscleVector

logger = logging.getLogger(__name__)


def _clamp_activation(vector: MuscleVector) -> MuscleVector:
    return vector.map(lambda _m, v: max(0.0, min(1.0, v)))


class ExerciseActivationCatalog:
    """Read-only exercise_id -> activation MuscleVector lookup."""

    def __init__(self, activations: Optional[Mapping[Any, MuscleVector]] = None):
        self._activations: Dict[str, MuscleVector] = {
            str(exercise_id): _clamp_activation(vector)
            for exercise_id, vector in (activations or {}).items()
        }

    def __len__(self) -> int:
        return len(self._activations)

    def __contains__(self, exercise_id: Any) -> bool:
        return str(exercise_id) in self._activations

    def get_activation(self, exercise_id: Any) -> Optional[MuscleVector]:
        """Activation vector for an exercise, or None if it is not catalogued."""
        if exercise_id is None:
            return None
        return self._activations.get(str(exercise_id))

    def merged_with(self, other: "ExerciseActivationCatalog") -> "ExerciseActivationCatalog":
        """New catalog; entries in `other` win."""
        combined = dict(self._activations)
        combined.update(other._activations)
        return ExerciseActivationCatalog(combined)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "ExerciseActivationCatalog":
        """
        Build from exercises.json-style rows:
        {"id": 12, "name": "Bench Press", "Chest": "1.0", "Triceps": 0.6, ...}
        """
        activations: Dict[str, MuscleVector] = {}
        muscle_keys = set(MUSCLE_GROUPS) | set(MUSCLE_ALIASES)
        for record in records:
            exercise_id = record.get("id")
            if exercise_id is None:
                continue
            columns = {k: v for k, v in record.items() if k in muscle_keys}
            activations[str(exercise_id)] = MuscleVector.from_dict(columns)
        return cls(activations)

    @classmethod
    def from_json_file(cls, path: str) -> "ExerciseActivationCatalog":
        with open(path, encoding="utf-8") as fh:
            records = json.load(fh)
        if not isinstance(records, list):
            raise ValueError(f"Exercise catalog {path} must contain a JSON list")
        return cls.from_records(r for r in records if isinstance(r, Mapping))


def load_catalog(db: Session, catalog_path: Optional[str] = None) -> ExerciseActivationCatalog:
    """
    Load the activation catalog from the exercise table, optionally merged
    with a JSON export (table rows win on conflicts).

    A missing or unreadable JSON file is logged and ignored; exercises that
    cannot be found simply contribute no load.
    """
    catalog = ExerciseActivationCatalog()

    if catalog_path:
        try:
            catalog = ExerciseActivationCatalog.from_json_file(catalog_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load exercise catalog from {catalog_path}: {e}")

    rows = db.query(Exercise).all()
    if rows:
        table_catalog = ExerciseActivationCatalog({
            row.id: MuscleVector.from_dict(row.muscle_activation) for row in rows
        })
        catalog = catalog.merged_with(table_catalog)

    logger.debug(f"Exercise activation catalog loaded: {len(catalog)} exercises")
    return catalog
