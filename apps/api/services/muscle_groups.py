"""
Muscle Vocabulary

The fixed, ordered set of 13 muscle groups every load, fatigue and readiness
number is keyed on, plus MuscleVector: an immutable record with exactly one
value per muscle.

Display names ("Lats", "Hams", "Calfs") are the wire/storage keys; the
dataclass attributes are their lower-cased forms.
"""

from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple
import math


MUSCLE_GROUPS: Tuple[str, ...] = (
    "Lats", "Chest", "Deltoids", "Biceps", "Triceps",
    "Abs", "Forearm", "Quads", "Hams", "Calfs",
    "Glutes", "Lumbar", "Trapezius",
)

# Common alternate spellings seen in exercise catalogs
MUSCLE_ALIASES: Dict[str, str] = {
    "Obliques": "Abs",
    "Lower Back": "Lumbar",
    "Traps": "Trapezius",
    "Shoulders": "Deltoids",
    "Delts": "Deltoids",
    "Hamstrings": "Hams",
    "Calves": "Calfs",
    "Forearms": "Forearm",
}

MUSCLE_CATEGORY_MAP: Dict[str, Tuple[str, ...]] = {
    "upper_push": ("Chest", "Deltoids", "Triceps"),
    "upper_pull": ("Lats", "Biceps", "Trapezius", "Forearm"),
    "core": ("Abs", "Lumbar"),
    "lower": ("Quads", "Hams", "Glutes", "Calfs"),
}


def safe_float(value: Any, default: float = 0.0) -> float:
    """Coerce user-entered numbers; anything malformed becomes `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def safe_int(value: Any, default: int = 0) -> int:
    """Like safe_float, truncating toward zero ("10.7" -> 10)."""
    result = safe_float(value, default=float("nan"))
    if math.isnan(result):
        return default
    return int(result)


def canonical_muscle(name: str) -> Optional[str]:
    """Resolve a muscle name or alias to its vocabulary entry."""
    if name in MUSCLE_GROUPS:
        return name
    if name in MUSCLE_ALIASES:
        return MUSCLE_ALIASES[name]
    for muscle in MUSCLE_GROUPS:
        if muscle.lower() == str(name).lower():
            return muscle
    return None


def get_muscle_category(muscle: str) -> Optional[str]:
    canonical = canonical_muscle(muscle)
    for category, muscles in MUSCLE_CATEGORY_MAP.items():
        if canonical in muscles:
            return category
    return None


@dataclass(frozen=True)
class MuscleVector:
    """One non-negative number per muscle group, in vocabulary order."""
    lats: float = 0.0
    chest: float = 0.0
    deltoids: float = 0.0
    biceps: float = 0.0
    triceps: float = 0.0
    abs: float = 0.0
    forearm: float = 0.0
    quads: float = 0.0
    hams: float = 0.0
    calfs: float = 0.0
    glutes: float = 0.0
    lumbar: float = 0.0
    trapezius: float = 0.0

    @classmethod
    def zeros(cls) -> "MuscleVector":
        return cls()

    @classmethod
    def filled(cls, value: float) -> "MuscleVector":
        return cls(*([float(value)] * len(MUSCLE_GROUPS)))

    @classmethod
    def from_dict(
        cls,
        values: Optional[Mapping[str, Any]],
        default: float = 0.0,
    ) -> "MuscleVector":
        """
        Build a vector from a {muscle name: number} mapping.

        Missing muscles take `default`; unknown keys are ignored; malformed
        numbers also fall back to `default`. A canonical key beats an alias
        for the same muscle.
        """
        resolved: Dict[str, float] = {}
        for key, raw in (values or {}).items():
            muscle = canonical_muscle(key)
            if muscle is None:
                continue
            if muscle in resolved and key != muscle:
                continue
            resolved[muscle] = safe_float(raw, default)
        return cls(*(resolved.get(m, default) for m in MUSCLE_GROUPS))

    def get(self, muscle: str) -> float:
        canonical = canonical_muscle(muscle)
        if canonical is None:
            raise KeyError(muscle)
        return getattr(self, canonical.lower())

    def __getitem__(self, muscle: str) -> float:
        return self.get(muscle)

    def values(self) -> List[float]:
        return [getattr(self, f.name) for f in fields(self)]

    def items(self) -> Iterator[Tuple[str, float]]:
        return iter(zip(MUSCLE_GROUPS, self.values()))

    def to_dict(self) -> Dict[str, float]:
        return dict(self.items())

    def map(self, fn: Callable[[str, float], float]) -> "MuscleVector":
        return MuscleVector(*(fn(m, v) for m, v in self.items()))

    def combine(
        self,
        other: "MuscleVector",
        fn: Callable[[str, float, float], float],
    ) -> "MuscleVector":
        return MuscleVector(*(
            fn(m, a, b) for m, a, b in zip(MUSCLE_GROUPS, self.values(), other.values())
        ))

    def __add__(self, other: "MuscleVector") -> "MuscleVector":
        return self.combine(other, lambda _m, a, b: a + b)

    def scale(self, factor: float) -> "MuscleVector":
        return self.map(lambda _m, v: v * factor)

    def max(self) -> float:
        return max(self.values())

    def total(self) -> float:
        return sum(self.values())
