# vsmb_designer/codegen/xstate_generator.py
import logging
from typing import Dict, List, Tuple

from ..core.machine_model import StateMachineModel, OutputLanguage
from .common import (
    render_template, is_ts, machine_name, comment_text, js_string, object_key,
    status_literal, context_items, zero_value, object_literal, action_union_members,
    union_block,
)

logger = logging.getLogger(__name__)


def flattened_context(model: StateMachineModel) -> List[Tuple[str, str]]:
    """
    Merges the context schemas of every state into one shape.

    A field declared by several states keeps the position of its first
    declaration and the type of its last one.
    """
    merged: Dict[str, str] = {}
    for state in model.states:
        for key, type_name in context_items(state):
            merged[key] = type_name
    return list(merged.items())


def _prepare_nodes(model: StateMachineModel) -> List[Dict]:
    nodes = []
    for state in model.states:
        on = []
        for t in model.transitions_from(state.id):
            target = model.get_state(t.to_state_id)
            if target is None:
                logger.warning(f"XState: dropping transition '{t.id}', target '{t.to_state_id}' does not exist.")
                continue
            on.append((object_key(t.event), status_literal(target)))
        nodes.append({'key': status_literal(state), 'on': on})
    return nodes


def generate_xstate(model: StateMachineModel, language=OutputLanguage.TS) -> str:
    """Generates an XState v5 `createMachine` definition."""
    ts = is_ts(language)
    fields = flattened_context(model)
    initial = model.get_initial_state()

    context_init = object_literal([f"{object_key(k)}: {zero_value(v, language)}" for k, v in fields])
    if ts and fields:
        context_init += ' as Context'

    context = {
        'model_name': comment_text(model.name),
        'machine_var': f"{machine_name(model)}Machine",
        'machine_id': js_string(model.name or ''),
        'initial': status_literal(initial) if initial else "'idle'",
        'context_fields': [(object_key(k), v) for k, v in fields],
        'context_init': context_init,
        'events_union': union_block(action_union_members(model)),
        'nodes': _prepare_nodes(model),
    }
    template = "xstate.ts.j2" if ts else "xstate.js.j2"
    return render_template(template, context)
