import pytest

from backend.input_surface import (
    NO_SURFACE,
    REST_CONTROLS,
    InputSurfaceArbiter,
    NumericSurface,
)
from backend.models import FieldKind, FocusTarget, WorkoutSet
from backend.rest_timer import RestTimer
from backend.set_tracker import SetCompletionModel


@pytest.fixture
def parts(clock, bench, squat):
    sets = SetCompletionModel()
    sets.add_exercise(bench, [WorkoutSet(), WorkoutSet()])
    sets.add_exercise(squat)
    timer = RestTimer(clock)
    arbiter = InputSurfaceArbiter(sets, timer, increment_step=2.5)
    return sets, timer, arbiter


def set_ids(sets, exercise):
    return [s.id for s in sets.get(exercise.id).sets]


def test_starts_with_no_surface(parts):
    _sets, _timer, arbiter = parts
    assert arbiter.surface == NO_SURFACE
    assert arbiter.focus is None


def test_request_focus_binds_keypad_and_stops_timer(parts, bench):
    sets, timer, arbiter = parts
    first, second = set_ids(sets, bench)
    timer.start(bench.id, first)
    arbiter.request_focus(bench.id, second, FieldKind.WEIGHT)
    assert arbiter.surface == NumericSurface(FocusTarget(bench.id, second, FieldKind.WEIGHT))
    assert sets.scroll_target == second
    assert not timer.active
    assert timer.completed_rests == {}


def test_request_focus_on_unknown_set_is_noop(parts, bench):
    _sets, _timer, arbiter = parts
    arbiter.request_focus(bench.id, "missing", FieldKind.WEIGHT)
    assert arbiter.surface == NO_SURFACE


def test_next_field_moves_weight_to_reps_then_closes(parts, bench):
    sets, _timer, arbiter = parts
    first = set_ids(sets, bench)[0]
    arbiter.request_focus(bench.id, first, FieldKind.WEIGHT)
    arbiter.next_field()
    assert arbiter.focus == FocusTarget(bench.id, first, FieldKind.REPS)
    arbiter.next_field()
    assert arbiter.surface == NO_SURFACE


def test_rest_surface_requires_active_timer(parts, bench):
    sets, timer, arbiter = parts
    arbiter.switch_to_rest_surface()
    assert arbiter.surface == NO_SURFACE
    timer.start(bench.id, set_ids(sets, bench)[0])
    arbiter.switch_to_rest_surface()
    assert arbiter.surface == REST_CONTROLS
    timer.stop()
    assert arbiter.surface == NO_SURFACE


def test_switch_to_numeric_surface_keeps_timer(parts, bench):
    sets, timer, arbiter = parts
    first = set_ids(sets, bench)[0]
    timer.start(bench.id, first)
    arbiter.switch_to_rest_surface()
    target = FocusTarget(bench.id, first, FieldKind.REPS)
    arbiter.switch_to_numeric_surface(target)
    assert arbiter.focus == target
    assert timer.active


def test_advance_after_rest(parts, bench, squat):
    sets, _timer, arbiter = parts
    first, second = set_ids(sets, bench)
    arbiter.advance_focus_after_rest(bench.id, first)
    assert arbiter.focus == FocusTarget(bench.id, second, FieldKind.WEIGHT)
    arbiter.advance_focus_after_rest(bench.id, second)
    assert arbiter.focus == FocusTarget(squat.id, set_ids(sets, squat)[0], FieldKind.WEIGHT)
    arbiter.advance_focus_after_rest(squat.id, set_ids(sets, squat)[0])
    assert arbiter.surface == NO_SURFACE


def test_increment_weight_uses_step(parts, bench):
    sets, _timer, arbiter = parts
    first = set_ids(sets, bench)[0]
    arbiter.request_focus(bench.id, first, FieldKind.WEIGHT)
    arbiter.increment()
    assert sets.find(bench.id, first).weight == "2.5"
    arbiter.decrement(10)
    assert sets.find(bench.id, first).weight == "0.0"


def test_increment_reps_rounds_and_clamps(parts, bench):
    sets, _timer, arbiter = parts
    first = set_ids(sets, bench)[0]
    arbiter.request_focus(bench.id, first, FieldKind.REPS)
    arbiter.increment()
    assert sets.find(bench.id, first).reps == "3"
    arbiter.decrement(5)
    assert sets.find(bench.id, first).reps == "0"


def test_increment_on_unparseable_text_starts_from_zero(parts, bench):
    sets, _timer, arbiter = parts
    first = set_ids(sets, bench)[0]
    sets.update_field(bench.id, first, FieldKind.WEIGHT, "abc")
    arbiter.request_focus(bench.id, first, FieldKind.WEIGHT)
    arbiter.increment(1)
    assert sets.find(bench.id, first).weight == "1.0"


def test_keypad_typing(parts, bench):
    sets, _timer, arbiter = parts
    first = set_ids(sets, bench)[0]
    arbiter.request_focus(bench.id, first, FieldKind.WEIGHT)
    for char in "1x0..5":
        arbiter.type_character(char)
    assert sets.find(bench.id, first).weight == "10.5"
    arbiter.backspace()
    assert arbiter.focused_text() == "10."
    arbiter.next_field()
    arbiter.type_character(".")
    arbiter.type_character("8")
    assert sets.find(bench.id, first).reps == "8"


def test_editing_without_focus_is_noop(parts, bench):
    sets, _timer, arbiter = parts
    arbiter.increment()
    arbiter.type_character("1")
    arbiter.backspace()
    assert all(s.is_empty for _sel, s in sets.iter_sets())


def test_clear(parts, bench):
    sets, _timer, arbiter = parts
    arbiter.request_focus(bench.id, set_ids(sets, bench)[0], FieldKind.WEIGHT)
    arbiter.clear()
    assert arbiter.surface == NO_SURFACE


def test_rest_controls_return_to_last_keypad_field(parts, bench):
    sets, timer, arbiter = parts
    first = set_ids(sets, bench)[0]
    arbiter.request_focus(bench.id, first, FieldKind.REPS)
    timer.start(bench.id, first)
    arbiter.switch_to_rest_surface()
    assert arbiter.surface == REST_CONTROLS
    arbiter.switch_to_numeric_surface()
    assert arbiter.focus == FocusTarget(bench.id, first, FieldKind.REPS)
    assert timer.active


def test_return_target_defaults_to_resting_set(parts, bench):
    sets, timer, arbiter = parts
    second = set_ids(sets, bench)[1]
    assert arbiter.return_target is None
    timer.start(bench.id, second)
    arbiter.switch_to_rest_surface()
    assert arbiter.return_target == FocusTarget(bench.id, second, FieldKind.WEIGHT)
    arbiter.clear()
    timer.stop()
    arbiter.switch_to_numeric_surface()
    assert arbiter.surface == NO_SURFACE
