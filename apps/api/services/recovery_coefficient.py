"""
Recovery Coefficient Calculator

Turns a daily check-in (sleep, stress, nutrition on 1-5 scales) into a
multiplier on fatigue decay. 1.0 is baseline; above 1 means faster recovery.
"""

from typing import Optional

from services.muscle_groups import MuscleVector, safe_int
from services.workout_records import CheckInRecord

MIN_RECOVERY_COEFFICIENT = 0.5
MAX_RECOVERY_COEFFICIENT = 1.5
NEUTRAL_RECOVERY_COEFFICIENT = 1.0
NEUTRAL_SURVEY_ANSWER = 3

SLEEP_WEIGHT = 0.4
STRESS_WEIGHT = 0.3
NUTRITION_WEIGHT = 0.3

# Fraction of remaining fatigue shed per rest day at coefficient 1.0
MUSCLE_RECOVERY_RATES = MuscleVector.from_dict({
    "Chest": 0.15,
    "Lats": 0.15,
    "Deltoids": 0.14,
    "Biceps": 0.18,
    "Triceps": 0.18,
    "Abs": 0.20,
    "Forearm": 0.25,
    "Quads": 0.12,
    "Hams": 0.13,
    "Calfs": 0.16,
    "Glutes": 0.13,
    "Lumbar": 0.14,
    "Trapezius": 0.16,
})


def survey_answer(value) -> int:
    # Unanswered (or zero) questions count as neutral
    return safe_int(value) or NEUTRAL_SURVEY_ANSWER


def calculate_recovery_coefficient(check_in: Optional[CheckInRecord]) -> float:
    """
    Recovery multiplier for a day, clamped to [0.5, 1.5].

    sleep/3 x 0.4 + (6 - stress)/3 x 0.3 + nutrition/3 x 0.3

    Stress is inverted: a higher stress answer lowers the coefficient.
    No check-in means neutral (1.0).
    """
    if check_in is None:
        return NEUTRAL_RECOVERY_COEFFICIENT

    sleep = survey_answer(check_in.sleep_quality)
    stress = survey_answer(check_in.stress_level)
    nutrition = survey_answer(check_in.nutrition_quality)

    sleep_factor = (sleep / 3) * SLEEP_WEIGHT
    stress_factor = ((6 - stress) / 3) * STRESS_WEIGHT
    nutrition_factor = (nutrition / 3) * NUTRITION_WEIGHT

    coefficient = sleep_factor + stress_factor + nutrition_factor
    return max(MIN_RECOVERY_COEFFICIENT, min(MAX_RECOVERY_COEFFICIENT, coefficient))


def apply_muscle_fatigue_decay(
    fatigue: MuscleVector,
    recovery_coefficient: float,
    days_since_last_workout: int = 1,
) -> MuscleVector:
    """
    Decay per-muscle fatigue across rest days:
    fatigue x (1 - rate x recovery_coefficient) ^ days
    """
    days = max(0, days_since_last_workout)

    def decay(muscle: str, value: float) -> float:
        rate = MUSCLE_RECOVERY_RATES.get(muscle) * recovery_coefficient
        return max(0.0, value * (1 - rate) ** days)

    return fatigue.map(decay)
