# vsmb_designer/codegen/use_reducer_generator.py
import logging
from typing import Dict, List

from ..core.machine_model import StateMachineModel, OutputLanguage
from .common import (
    render_template, is_ts, machine_name, reducer_name, initial_constant_name,
    comment_text, js_string, object_key, member_access, status_literal, context_items,
    object_literal, initial_state_literal, state_union_members, action_union_members,
    union_block, distinct_events, first_transition_for_event,
)

logger = logging.getLogger(__name__)


def _prepare_cases(model: StateMachineModel) -> List[Dict[str, str]]:
    """
    One switch case per distinct event.

    The case uses the first transition carrying the event, whatever its
    source state: the reducer is a flat switch, not a per-status table.
    """
    cases = []
    for event in distinct_events(model):
        transition = first_transition_for_event(model, event)
        target = model.get_state(transition.to_state_id)
        if target is None:
            logger.warning(f"useReducer: skipping event '{event}', target '{transition.to_state_id}' does not exist.")
            continue
        parts = [f"status: {status_literal(target)}"]
        parts.extend(f"{object_key(k)}: {member_access('action.payload', k)}" for k, _ in context_items(target))
        cases.append({'event_literal': js_string(event), 'result': object_literal(parts)})
    return cases


def generate_use_reducer(model: StateMachineModel, language=OutputLanguage.TS) -> str:
    """Generates a React `useReducer` state machine module."""
    name = machine_name(model)
    context = {
        'model_name': comment_text(model.name),
        'state_type': f"{name}State",
        'action_type': f"{name}Action",
        'state_union': union_block(state_union_members(model)),
        'action_union': union_block(action_union_members(model)),
        'reducer_name': reducer_name(model),
        'initial_name': initial_constant_name(model),
        'initial_state': initial_state_literal(model, language),
        'cases': _prepare_cases(model),
    }
    template = "use_reducer.ts.j2" if is_ts(language) else "use_reducer.js.j2"
    return render_template(template, context)
