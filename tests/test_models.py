import pytest

from backend.models import (
    FieldKind,
    PreviousPerformance,
    WorkoutSet,
    is_blank,
    parse_reps,
    parse_weight,
)


@pytest.mark.parametrize("text", ["", "   ", None, "\t\n"])
def test_blank_text(text):
    assert is_blank(text)


def test_parse_weight_accepts_decimals():
    assert parse_weight(" 102.5 ") == 102.5
    assert parse_weight("abc") is None
    assert parse_weight("inf") is None
    assert parse_weight("nan") is None


def test_parse_reps_requires_whole_number():
    assert parse_reps("8") == 8
    assert parse_reps("8.5") is None
    assert parse_reps("") is None


def test_workout_set_fill_state():
    s = WorkoutSet()
    assert s.is_empty and not s.is_filled
    s.set_value(FieldKind.WEIGHT, "100")
    assert not s.is_empty and not s.is_filled
    s.set_value(FieldKind.REPS, " ")
    assert not s.is_filled
    s.set_value(FieldKind.REPS, "5")
    assert s.is_filled
    assert s.value(FieldKind.WEIGHT) == "100"


def test_workout_set_ids_are_unique():
    assert WorkoutSet().id != WorkoutSet().id


def test_previous_performance_text():
    prev = PreviousPerformance(weight=100, reps=5)
    assert prev.weight_text == "100.0"
    assert prev.reps_text == "5"
