# vsmb_designer/codegen/unit_test_generator.py
"""
Vitest suite for the useReducer module of a machine.

The suite imports the reducer and the initial constant by name, so every
naming rule comes from codegen.common, exactly as the reducer generator uses
them.
"""
import logging
from typing import Dict, List, Optional

from ..core.machine_model import StateMachineModel, OutputLanguage
from .common import (
    render_template, is_ts, machine_name, reducer_name, initial_constant_name,
    js_string, status_literal, object_literal, default_context_fields,
    payload_type_for_event, first_transition_for_event,
)

logger = logging.getLogger(__name__)

NO_INITIAL_STATE = '// No initial state'


def _action_literal(model: StateMachineModel, event: str, language) -> str:
    """The action dispatched for `event`, with a default-valued payload if it carries one."""
    if payload_type_for_event(model, event) is None:
        return f"{{ type: {js_string(event)} }}"
    payload_source = model.get_state(first_transition_for_event(model, event).to_state_id)
    fields = default_context_fields(payload_source, language)
    payload = object_literal(fields) if fields else 'undefined'
    return f"{{ type: {js_string(event)}, payload: {payload} }}"


def _prepare_cases(model: StateMachineModel, language) -> List[Dict[str, str]]:
    cases = []
    for t in model.transitions:
        source = model.get_state(t.from_state_id)
        target = model.get_state(t.to_state_id)
        if source is None or target is None:
            logger.warning(f"Test export: skipping transition '{t.id}' with unresolved endpoints.")
            continue
        cases.append({
            'title': js_string(f"transitions from {source.label} to {target.label} on {t.event}"),
            'from_status': status_literal(source),
            'to_status': status_literal(target),
            'action': _action_literal(model, t.event, language),
        })
    return cases


def export_tests(model: StateMachineModel, language: Optional[OutputLanguage] = None) -> str:
    """
    Builds the test file for the machine's generated reducer.

    Args:
        model: The machine to test.
        language: Dialect of the test file, defaults to the model's own.

    Returns:
        The test source, or a one-line comment when the initial state does
        not resolve.
    """
    language = language or model.output_language
    initial = model.get_initial_state()
    if initial is None:
        return NO_INITIAL_STATE

    name = machine_name(model)
    ts = is_ts(language)
    imports = [reducer_name(model), initial_constant_name(model)]
    if ts:
        imports.append(f"type {name}State")

    context = {
        'imports': imports,
        'module_name': name,
        'suite_name': js_string(name),
        'initial_name': initial_constant_name(model),
        'initial_status': status_literal(initial),
        'reducer_name': reducer_name(model),
        'state_cast': f" as {name}State" if ts else '',
        'cases': _prepare_cases(model, language),
    }
    return render_template("unit_test.j2", context)


def test_filename(model: StateMachineModel) -> str:
    return f"{machine_name(model)}.test.{model.output_language.value}"
