# tests/conftest.py
import logging

import pytest

from vsmb_designer.core.machine_model import (
    StateMachineModel, StateNode, Transition, StateNodeType, OutputFormat, OutputLanguage,
)


def make_model(states, transitions=(), initial=None, name="Fetch",
               output_format=OutputFormat.USE_REDUCER, output_language=OutputLanguage.TS):
    """
    Builds a model from short tuples.

    states: (id, label) or (id, label, context_schema); transitions:
    (id, from, to, event). Labels double as ids when only one is given.
    """
    nodes = []
    for entry in states:
        if isinstance(entry, str):
            entry = (entry, entry)
        state_id, label = entry[0], entry[1]
        schema = entry[2] if len(entry) > 2 else None
        nodes.append(StateNode(id=state_id, label=label, context_schema=schema))
    edges = tuple(Transition(*t) for t in transitions)
    if initial is None:
        initial = nodes[0].id if nodes else ""
    return StateMachineModel(
        name=name,
        initial_state_id=initial,
        states=tuple(nodes),
        transitions=edges,
        output_format=output_format,
        output_language=output_language,
    )


@pytest.fixture
def idle_fetch_model():
    """idle --[FETCH]--> loading"""
    return make_model(["idle", "loading"], [("t1", "idle", "loading", "FETCH")], initial="idle")


@pytest.fixture
def load_success_model():
    """idle --[LOAD]--> success, success carries `data: string` and is initial."""
    return make_model(
        ["idle", ("success", "success", {"data": "string"})],
        [("t1", "idle", "success", "LOAD")],
        initial="success",
        name="Loader",
    )


@pytest.fixture
def async_fetch_model():
    return StateMachineModel(
        name="Async Fetch",
        initial_state_id="s-idle",
        states=(
            StateNode("s-idle", "idle", StateNodeType.IDLE),
            StateNode("s-loading", "loading", StateNodeType.LOADING),
            StateNode("s-success", "success", StateNodeType.SUCCESS, {"data": "string"}),
            StateNode("s-error", "error", StateNodeType.ERROR, {"error": "string"}),
        ),
        transitions=(
            Transition("t1", "s-idle", "s-loading", "FETCH"),
            Transition("t2", "s-loading", "s-success", "SUCCESS"),
            Transition("t3", "s-loading", "s-error", "ERROR"),
            Transition("t4", "s-error", "s-loading", "RETRY"),
            Transition("t5", "s-success", "s-loading", "FETCH"),
        ),
    )


@pytest.fixture
def restore_root_logger():
    """setup_global_logging replaces the root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
