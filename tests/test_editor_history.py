# tests/test_editor_history.py
import pytest

from vsmb_designer.core.machine_model import (
    StateMachineModel, Position, StateNodeType, OutputFormat, OutputLanguage,
)
from vsmb_designer.core.editor_history import (
    MachineEditor, AddStateCommand, SetNameCommand, UpdateStateCommand, UpdateTransitionCommand,
    duplicate_states,
)
from vsmb_designer.managers.settings_manager import SettingsManager
from vsmb_designer.managers.storage import InMemoryStore
from vsmb_designer.services.serialization import build_file_payload
from vsmb_designer.utils.config import AUTOSAVE_STORAGE_KEY


@pytest.fixture
def editor():
    return MachineEditor()


def test_starts_with_default_empty_model(editor):
    assert editor.model == StateMachineModel()
    assert not editor.can_undo()
    assert not editor.can_redo()


def test_first_state_becomes_initial(editor):
    editor.add_state(state_id="a", label="idle", type=StateNodeType.IDLE)
    editor.add_state(state_id="b")
    model = editor.model
    assert model.initial_state_id == "a"
    assert model.states[1].label == "new_state"
    assert model.states[1].type == StateNodeType.CUSTOM


def test_generated_state_ids_are_unique(editor):
    editor.add_state()
    editor.add_state()
    ids = [s.id for s in editor.model.states]
    assert len(set(ids)) == 2


def test_snapshots_are_not_mutated(editor):
    editor.add_state(state_id="a", label="idle")
    before = editor.model
    editor.update_state("a", label="waiting")
    assert before.states[0].label == "idle"
    assert editor.model.states[0].label == "waiting"


def test_undo_redo(editor):
    editor.set_name("First")
    editor.set_name("Second")
    assert editor.undo().name == "First"
    assert editor.can_redo()
    assert editor.redo().name == "Second"
    assert not editor.can_redo()


def test_new_edit_discards_redo(editor):
    editor.set_name("First")
    editor.undo()
    editor.set_name("Other")
    assert not editor.can_redo()
    assert editor.model.name == "Other"


def test_undo_at_start_is_a_no_op(editor):
    model = editor.model
    assert editor.undo() is model


def test_history_is_bounded():
    editor = MachineEditor(capacity=3)
    for i in range(10):
        editor.set_name(f"name-{i}")
    assert editor.history_size == 3
    editor.undo()
    editor.undo()
    assert not editor.can_undo()
    assert editor.model.name == "name-7"


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        MachineEditor(capacity=0)


def test_remove_state_removes_transitions_and_repoints_initial(editor):
    editor.add_state(state_id="a")
    editor.add_state(state_id="b")
    editor.add_state(state_id="c")
    editor.add_transition("a", "b", "GO", transition_id="t1")
    editor.add_transition("b", "c", "NEXT", transition_id="t2")
    editor.remove_state("a")
    model = editor.model
    assert [s.id for s in model.states] == ["b", "c"]
    assert [t.id for t in model.transitions] == ["t2"]
    assert model.initial_state_id == "b"

    editor.remove_state("b")
    editor.remove_state("c")
    assert editor.model.initial_state_id == ""


def test_transition_edits(editor):
    editor.add_state(state_id="a")
    editor.add_state(state_id="b")
    editor.add_transition("a", "b", "GO", transition_id="t1")
    editor.update_transition("t1", event="START", to_state_id="a")
    t = editor.model.transitions[0]
    assert (t.from_state_id, t.to_state_id, t.event) == ("a", "a", "START")
    editor.remove_transition("t1")
    assert editor.model.transitions == ()


def test_unknown_update_fields_are_rejected():
    with pytest.raises(ValueError, match="colour"):
        UpdateStateCommand("a", colour="red")
    with pytest.raises(ValueError, match="label"):
        UpdateTransitionCommand("t1", label="x")


def test_settings_commands(editor):
    editor.set_output_format("XState")
    editor.set_output_language(OutputLanguage.JS)
    editor.add_state(state_id="a")
    editor.add_state(state_id="b")
    editor.set_initial_state("b")
    model = editor.model
    assert model.output_format == OutputFormat.XSTATE
    assert model.output_language == OutputLanguage.JS
    assert model.initial_state_id == "b"


def test_apply_layout_moves_only_named_states(editor):
    editor.add_state(state_id="a", position=Position(1, 1))
    editor.add_state(state_id="b", position=Position(2, 2))
    editor.apply_layout({"a": Position(100, 200)})
    assert editor.model.states[0].position == Position(100, 200)
    assert editor.model.states[1].position == Position(2, 2)


def test_duplicate_states(editor):
    editor.add_state(state_id="a", label="idle", position=Position(10, 10), context_schema={"n": "number"})
    editor.add_state(state_id="b", label="done")
    editor.add_state(state_id="c", label="other")
    editor.add_transition("a", "b", "GO", transition_id="t1")
    editor.add_transition("b", "c", "NEXT", transition_id="t2")

    editor.duplicate(["a", "b"])
    model = editor.model
    assert len(model.states) == 5
    copy_a, copy_b = model.states[3], model.states[4]
    assert copy_a.id not in ("a", "b", "c")
    assert copy_a.label == "idle"
    assert copy_a.context_schema == {"n": "number"}
    assert copy_a.position == Position(70, 70)
    assert copy_b.position == Position(60, 60)
    # Only the transition inside the selection is copied
    assert len(model.transitions) == 3
    copied = model.transitions[2]
    assert (copied.from_state_id, copied.to_state_id, copied.event) == (copy_a.id, copy_b.id, "GO")


def test_duplicate_states_is_pure(editor):
    editor.add_state(state_id="a")
    before = editor.model
    states, transitions = duplicate_states(before, ["a"], offset=5)
    assert len(states) == 1 and transitions == []
    assert editor.model is before


def test_load_model_resets_history(editor, async_fetch_model):
    editor.set_name("Scratch")
    editor.load_model(async_fetch_model)
    assert editor.model == async_fetch_model
    assert not editor.can_undo()
    assert editor.reset() == StateMachineModel()


def test_execute_accepts_command_objects(editor):
    editor.execute(AddStateCommand(state_id="x", label="x"))
    editor.execute(SetNameCommand("Commanded"))
    assert editor.model.name == "Commanded"
    assert editor.history_size == 3


def test_autosave_round_trip(async_fetch_model):
    store = InMemoryStore()
    editor = MachineEditor(store=store)
    editor.load_model(async_fetch_model)
    editor.set_name("Saved")
    assert store.get(AUTOSAVE_STORAGE_KEY)["model"]["name"] == "Saved"

    reopened = MachineEditor(store=store)
    assert reopened.model.name == "Saved"
    assert reopened.model.states == async_fetch_model.states


def test_autosave_tolerates_garbage():
    store = InMemoryStore({AUTOSAVE_STORAGE_KEY: {"version": 99}})
    assert MachineEditor(store=store).model == StateMachineModel()


def test_autosave_accepts_legacy_shape(idle_fetch_model):
    store = InMemoryStore({AUTOSAVE_STORAGE_KEY: build_file_payload(idle_fetch_model)["model"]})
    assert MachineEditor(store=store).model == idle_fetch_model


def test_editor_from_settings():
    settings = SettingsManager(InMemoryStore())
    settings.set("history_capacity", 2)
    settings.set("default_machine_name", "Checkout")
    settings.set("default_output_format", "Zustand")
    settings.set("default_output_language", "js")

    editor = MachineEditor.from_settings(settings)
    assert editor.capacity == 2
    assert editor.model.name == "Checkout"
    assert editor.model.output_format == OutputFormat.ZUSTAND
    assert editor.model.output_language == OutputLanguage.JS


def test_editor_follows_setting_changes():
    settings = SettingsManager(InMemoryStore())
    store = InMemoryStore()
    editor = MachineEditor.from_settings(settings, store=store)
    for label in ("a", "b", "c", "d"):
        editor.add_state(label=label)
    assert editor.history_size == 5

    settings.set("history_capacity", 2)
    assert editor.capacity == 2
    assert editor.history_size == 2
    assert [s.label for s in editor.model.states] == ["a", "b", "c", "d"]

    settings.set("autosave_enabled", False)
    editor.set_name("Not saved")
    assert store.get(AUTOSAVE_STORAGE_KEY)["model"]["name"] != "Not saved"

    settings.set("default_machine_name", "Fresh")
    assert editor.reset().name == "Fresh"


def test_set_capacity_keeps_the_current_snapshot(editor):
    for label in ("a", "b", "c"):
        editor.add_state(label=label)
    editor.undo()
    editor.undo()
    editor.undo()
    # At the first snapshot with three redo snapshots ahead
    editor.set_capacity(2)
    assert editor.history_size == 2
    assert editor.model.states == ()
    assert [s.label for s in editor.redo().states] == ["a"]
    assert not editor.can_redo()
    with pytest.raises(ValueError):
        editor.set_capacity(0)
