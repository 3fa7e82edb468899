"""
Tests for the muscle vocabulary and MuscleVector.
"""

import pytest
from services.muscle_groups import (
    MUSCLE_CATEGORY_MAP,
    MUSCLE_GROUPS,
    MuscleVector,
    canonical_muscle,
    get_muscle_category,
    safe_float,
    safe_int,
)


class TestVocabulary:

    def test_thirteen_muscles_in_fixed_order(self):
        assert len(MUSCLE_GROUPS) == 13
        assert MUSCLE_GROUPS[0] == "Lats"
        assert MUSCLE_GROUPS[-1] == "Trapezius"

    def test_categories_cover_every_muscle_once(self):
        covered = [m for muscles in MUSCLE_CATEGORY_MAP.values() for m in muscles]
        assert sorted(covered) == sorted(MUSCLE_GROUPS)

    def test_aliases_resolve(self):
        assert canonical_muscle("Hamstrings") == "Hams"
        assert canonical_muscle("Lower Back") == "Lumbar"
        assert canonical_muscle("chest") == "Chest"
        assert canonical_muscle("Neck") is None

    def test_category_lookup(self):
        assert get_muscle_category("Triceps") == "upper_push"
        assert get_muscle_category("Traps") == "upper_pull"
        assert get_muscle_category("Calves") == "lower"
        assert get_muscle_category("Neck") is None


class TestSafeNumbers:

    @pytest.mark.parametrize("raw,expected", [
        ("12.5", 12.5),
        (80, 80.0),
        ("abc", 0.0),
        (None, 0.0),
        ("", 0.0),
        (float("nan"), 0.0),
    ])
    def test_safe_float(self, raw, expected):
        assert safe_float(raw) == expected

    def test_safe_int_truncates(self):
        assert safe_int("10.7") == 10
        assert safe_int("ten") == 0


class TestMuscleVector:

    def test_zeros_and_filled(self):
        assert MuscleVector.zeros().total() == 0
        assert MuscleVector.filled(70).values() == [70.0] * 13

    def test_from_dict_defaults_missing_and_ignores_unknown(self):
        vector = MuscleVector.from_dict({"Chest": 1.0, "Neck": 5}, default=0.5)
        assert vector["Chest"] == 1.0
        assert vector["Quads"] == 0.5
        assert len(vector.to_dict()) == 13

    def test_from_dict_malformed_values_use_default(self):
        vector = MuscleVector.from_dict({"Chest": "n/a", "Lats": "0.8"})
        assert vector["Chest"] == 0.0
        assert vector["Lats"] == 0.8

    def test_canonical_key_beats_alias(self):
        vector = MuscleVector.from_dict({"Hams": 0.9, "Hamstrings": 0.2})
        assert vector["Hams"] == 0.9
        vector = MuscleVector.from_dict({"Hamstrings": 0.2, "Hams": 0.9})
        assert vector["Hams"] == 0.9

    def test_to_dict_uses_display_names_in_order(self):
        assert list(MuscleVector.zeros().to_dict()) == list(MUSCLE_GROUPS)

    def test_arithmetic(self):
        a = MuscleVector.from_dict({"Chest": 2, "Abs": 1})
        b = MuscleVector.from_dict({"Chest": 3})
        assert (a + b)["Chest"] == 5
        assert a.scale(10)["Abs"] == 10
        assert a.max() == 2
        assert a.combine(b, lambda _m, x, y: x * y)["Chest"] == 6

    def test_unknown_muscle_lookup_raises(self):
        with pytest.raises(KeyError):
            MuscleVector.zeros()["Neck"]

    def test_immutable(self):
        vector = MuscleVector.zeros()
        with pytest.raises(Exception):
            vector.chest = 1.0
