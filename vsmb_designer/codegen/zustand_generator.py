# vsmb_designer/codegen/zustand_generator.py
import logging
from typing import Dict, List

from ..core.machine_model import StateMachineModel, OutputLanguage
from .common import (
    render_template, is_ts, machine_name, comment_text, lower_first, object_key,
    member_access, status_literal, context_items, type_literal, object_literal,
    initial_state_literal, state_union_members, union_block, distinct_events,
    first_transition_for_event,
)

logger = logging.getLogger(__name__)


def _prepare_actions(model: StateMachineModel, language) -> List[Dict[str, str]]:
    """
    One store action per distinct event. Like the reducer, each action jumps
    to the target of the first transition carrying the event.
    """
    ts = is_ts(language)
    actions = []
    for event in distinct_events(model):
        transition = first_transition_for_event(model, event)
        target = model.get_state(transition.to_state_id)
        if target is None:
            logger.warning(f"Zustand: skipping action for '{event}', target '{transition.to_state_id}' does not exist.")
            continue
        items = context_items(target)
        parts = [f"status: {status_literal(target)}"]
        parts.extend(f"{object_key(k)}: {member_access('payload', k)}" for k, _ in items)
        if items:
            params = f"payload: {type_literal(items)}" if ts else 'payload'
        else:
            params = ''
        actions.append({
            'name': object_key(lower_first(event)),
            'params': params,
            'signature': f"({params}) => void",
            'result': object_literal(parts),
        })
    return actions


def generate_zustand(model: StateMachineModel, language=OutputLanguage.TS) -> str:
    """Generates a Zustand store whose `status` field simulates the machine."""
    name = machine_name(model)
    context = {
        'model_name': comment_text(model.name),
        'state_type': f"{name}State",
        'store_type': f"{name}Store",
        'hook_name': f"use{name}Store",
        'state_union': union_block(state_union_members(model)),
        'initial_state': initial_state_literal(model, language),
        'actions': _prepare_actions(model, language),
    }
    template = "zustand.ts.j2" if is_ts(language) else "zustand.js.j2"
    return render_template(template, context)
