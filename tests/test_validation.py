# tests/test_validation.py
import pytest

from vsmb_designer.core.machine_model import StateMachineModel
from vsmb_designer.core.validation import (
    validate_model, require_valid_model, is_valid_identifier, ModelValidationError,
)
from conftest import make_model


def messages(result):
    return [e.message for e in result.errors]


def test_valid_model(async_fetch_model):
    result = validate_model(async_fetch_model)
    assert result.valid is True
    assert result.errors == []
    assert result.first_error is None


def test_empty_default_model_reports_states_and_initial():
    result = validate_model(StateMachineModel())
    assert not result.valid
    assert "At least one state is required" in messages(result)
    assert "Initial state must be set" in messages(result)


def test_blank_name_is_reported_first():
    model = make_model(["idle"], name="   ")
    result = validate_model(model)
    assert result.first_error.path == "name"
    assert result.first_error.message == "Machine name is required"


def test_initial_state_must_exist():
    model = make_model(["idle"], initial="ghost")
    result = validate_model(model)
    assert messages(result) == ["Initial state must reference an existing state"]


def test_dangling_transition_endpoints():
    model = make_model(["idle"], [("t1", "nowhere", "missing", "GO")])
    result = validate_model(model)
    assert result.error_count == 2
    assert all(e.path == "transitions.t1" for e in result.errors)
    assert "Transition from unknown state: nowhere" in messages(result)
    assert "Transition to unknown state: missing" in messages(result)


def test_bad_event_name_is_not_a_duplicate():
    model = make_model(["idle", "loading"], [("t1", "idle", "loading", "bad event!")])
    result = validate_model(model)
    assert not result.valid
    assert result.errors[0].path == "transitions.t1"
    assert 'Invalid event name: "bad event!"' in result.errors[0].message
    assert not any("Duplicate" in m for m in messages(result))


def test_duplicate_from_event_pair_reports_later_occurrence_only():
    model = make_model(
        ["idle", "a", "b"],
        [("t1", "idle", "a", "GO"), ("t2", "idle", "b", "GO"), ("t3", "a", "b", "GO")],
    )
    result = validate_model(model)
    assert result.error_count == 1
    assert result.first_error.path == "transitions.t2"
    assert result.first_error.message == (
        'Duplicate transition: from "idle" on event "GO". Machine should be deterministic.'
    )


def test_same_event_from_different_states_is_allowed(async_fetch_model):
    assert validate_model(async_fetch_model).valid


@pytest.mark.parametrize("text, expected", [
    ("FETCH", True),
    ("fetch_success", True),
    ("_private", True),
    ("RETRY2", True),
    ("2FAST", False),
    ("bad event!", False),
    ("A:B", False),
    ("", False),
    ("FETCH\n", False),
    (None, False),
])
def test_is_valid_identifier(text, expected):
    assert is_valid_identifier(text) is expected


def test_require_valid_model():
    model = make_model(["idle"], initial="")
    with pytest.raises(ModelValidationError, match="Initial state must be set") as excinfo:
        require_valid_model(model)
    assert excinfo.value.result.valid is False

    good = make_model(["idle"])
    assert require_valid_model(good) is good
