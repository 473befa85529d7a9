# vsmb_designer/codegen/common.py
"""
Derivations shared by every generator and by the unit-test generator.

All naming conventions live here so that the generated module and the
generated tests importing it always agree.
"""
import os
import re
from functools import lru_cache
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from ..core.machine_model import StateMachineModel, StateNode, OutputLanguage
from ..utils.config import DEFAULT_MACHINE_FALLBACK_NAME

IDENTIFIER_REGEX = re.compile(r'[A-Za-z_$][A-Za-z0-9_$]*')


@lru_cache(maxsize=1)
def get_template_environment() -> Environment:
    """Jinja2 environment over the bundled assets/templates directory."""
    templates_dir = os.path.join(os.path.dirname(__file__), '..', 'assets', 'templates')
    return Environment(
        loader=FileSystemLoader(templates_dir),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_template(template_name: str, context: dict) -> str:
    return get_template_environment().get_template(template_name).render(context)


def is_ts(language) -> bool:
    return OutputLanguage(language) == OutputLanguage.TS


def machine_name(model: StateMachineModel) -> str:
    """Model name with all whitespace removed, `StateMachine` when empty."""
    return re.sub(r'\s+', '', model.name or '') or DEFAULT_MACHINE_FALLBACK_NAME


def lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def reducer_name(model: StateMachineModel) -> str:
    return lower_first(machine_name(model)) + 'Reducer'


def initial_constant_name(model: StateMachineModel) -> str:
    return f"initial{machine_name(model)}State"


def comment_text(text: str) -> str:
    """Flattens text so it can sit on a single `//` comment line."""
    return ' '.join((text or '').splitlines())


def js_string(text: str) -> str:
    """Single-quoted JS string literal with backslashes, quotes and newlines escaped."""
    escaped = (text.replace('\\', '\\\\')
                   .replace("'", "\\'")
                   .replace('\n', '\\n')
                   .replace('\r', '\\r'))
    return f"'{escaped}'"


def status_literal(state: StateNode) -> str:
    """The discriminant value used for a state in every generated representation."""
    return js_string(state.label)


def object_key(name: str) -> str:
    """Bare key when `name` is an identifier, quoted key otherwise."""
    return name if IDENTIFIER_REGEX.fullmatch(name or '') else js_string(name or '')


def member_access(target: str, name: str) -> str:
    return f"{target}.{name}" if IDENTIFIER_REGEX.fullmatch(name or '') else f"{target}[{js_string(name or '')}]"


def context_items(state: Optional[StateNode]) -> List[Tuple[str, str]]:
    if state is None or not state.context_schema:
        return []
    return list(state.context_schema.items())


def zero_value(type_name: str, language) -> str:
    """Type-appropriate default for a context field."""
    if type_name == 'string':
        return "''"
    if type_name == 'number':
        return '0'
    if type_name == 'boolean':
        return 'false'
    return f"undefined as {type_name}" if is_ts(language) else 'undefined'


def default_context_fields(state: Optional[StateNode], language) -> List[str]:
    return [f"{object_key(k)}: {zero_value(v, language)}" for k, v in context_items(state)]


def object_literal(parts: List[str]) -> str:
    return '{ ' + ', '.join(parts) + ' }' if parts else '{}'


def initial_state_literal(model: StateMachineModel, language) -> str:
    """
    The initial state object, e.g. `{ status: 'idle' }`.

    Falls back to a literal `'idle'` placeholder when the initial state does
    not resolve.
    """
    initial = model.get_initial_state()
    if initial is None:
        return "{ status: 'idle' }"
    return object_literal([f"status: {status_literal(initial)}"] + default_context_fields(initial, language))


def type_literal(items: List[Tuple[str, str]]) -> str:
    """`{ data: string; page: number }` for a schema."""
    return '{ ' + '; '.join(f"{object_key(k)}: {v}" for k, v in items) + ' }'


def state_union_members(model: StateMachineModel) -> List[str]:
    members = []
    for state in model.states:
        parts = [f"status: {status_literal(state)}"]
        parts.extend(f"{object_key(k)}: {v}" for k, v in context_items(state))
        members.append('{ ' + '; '.join(parts) + ' }')
    # A union needs at least one member; mirror the 'idle' placeholder.
    return members or ["{ status: 'idle' }"]


def union_block(members: List[str]) -> str:
    """Renders union members one per line, `never` when there are none."""
    if not members:
        return '  never'
    return '\n'.join(f"  | {m}" for m in members)


def distinct_events(model: StateMachineModel) -> List[str]:
    """Distinct event names in order of first occurrence."""
    seen = []
    for t in model.transitions:
        if t.event not in seen:
            seen.append(t.event)
    return seen


def first_transition_for_event(model: StateMachineModel, event: str):
    return next((t for t in model.transitions if t.event == event), None)


def payload_type_for_event(model: StateMachineModel, event: str) -> Optional[str]:
    """
    Payload type of an event, or None when the event carries no payload.

    An event carries a payload if any of its transitions targets a state with
    a non-empty context schema. The type itself comes from the target of the
    first transition on that event (`void` if that target has no schema).
    """
    transitions = [t for t in model.transitions if t.event == event]
    carries_payload = any(
        context_items(model.get_state(t.to_state_id)) for t in transitions
    )
    if not carries_payload:
        return None
    items = context_items(model.get_state(transitions[0].to_state_id))
    return type_literal(items) if items else 'void'


def action_union_members(model: StateMachineModel) -> List[str]:
    members = []
    for event in distinct_events(model):
        payload_type = payload_type_for_event(model, event)
        if payload_type is None:
            members.append(f"{{ type: {js_string(event)} }}")
        else:
            members.append(f"{{ type: {js_string(event)}; payload: {payload_type} }}")
    return members
