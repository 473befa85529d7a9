# vsmb_designer/core/source_importer.py
"""
Best-effort import of a state machine from React component source.

This is a pattern scan, not a parser: it looks for status-like string
literals and dispatched action types and chains what it finds. The result
is a candidate model that still has to go through validation.
"""
import re
import logging
import uuid
from dataclasses import replace
from typing import List, Optional

from .machine_model import StateMachineModel, StateNode, Transition, StateNodeType, OutputFormat
from ..utils.config import DEFAULT_IMPORTED_MACHINE_NAME
from ..utils.layout import compute_level_layout

logger = logging.getLogger(__name__)

_LITERAL = r"""(?:'([^'\\\n]*)'|"([^"\\\n]*)")"""

# Regex patterns
call_pattern = re.compile(
    r"\b(?P<callee>useState|set[A-Za-z0-9_$]*|dispatch)\s*(?:<[^>()]*>)?\s*\(\s*"
    r"(?:\{\s*type\s*:\s*)?" + _LITERAL
)
compare_right_pattern = re.compile(r"(?<![!=<>])={2,3}\s*" + _LITERAL)
compare_left_pattern = re.compile(_LITERAL + r"\s*={2,3}(?!=)")
dispatch_pattern = re.compile(r"\bdispatch\s*\(\s*\{\s*type\s*:\s*" + _LITERAL)

FALLBACK_EVENT = "NEXT"

_LOADING_LABELS = {"loading", "pending", "submitting"}
_DIRECT_TYPES = {"idle", "success", "error", "empty"}


def _literal(match, first_group: int) -> str:
    single, double = match.group(first_group), match.group(first_group + 1)
    return single if single is not None else double


def infer_state_type(label: str) -> StateNodeType:
    lowered = label.lower()
    if lowered in _LOADING_LABELS:
        return StateNodeType.LOADING
    if lowered in _DIRECT_TYPES:
        return StateNodeType(lowered)
    return StateNodeType.CUSTOM


def _add(candidates: List[str], value: str):
    if value not in candidates:
        candidates.append(value)


def parse_react_component(source: str) -> Optional[StateMachineModel]:
    """
    Scans component source for `useState('x')`, `setX('y')`,
    `dispatch({ type: 'E' })` and `=== 'z'` comparisons.

    States are chained in discovery order, once per discovered event (or
    with a single `NEXT` event when none is found). The first `useState`
    literal becomes the initial state.

    Returns:
        A laid-out candidate model, or None if no state was found.
    """
    if not isinstance(source, str) or not source.strip():
        return None

    candidates: List[str] = []
    events: List[str] = []
    initial_label = None

    # First pass: calls, in source order
    for match in call_pattern.finditer(source):
        callee = match.group('callee')
        value = _literal(match, 2)
        if callee == 'dispatch':
            # Only object-literal actions carry an event; a string argument is not one
            if dispatch_pattern.match(source, match.start()):
                _add(events, value)
            continue
        _add(candidates, value)
        if callee == 'useState' and initial_label is None:
            initial_label = value

    # Second pass: literals compared against a status
    comparisons = [(m.start(), _literal(m, 1)) for m in compare_right_pattern.finditer(source)]
    comparisons += [(m.start(), _literal(m, 1)) for m in compare_left_pattern.finditer(source)]
    for _, value in sorted(comparisons):
        _add(candidates, value)

    if not candidates:
        logger.info("Source import: no state candidates found.")
        return None

    states = [StateNode(id=str(uuid.uuid4()), label=label, type=infer_state_type(label))
              for label in candidates]
    by_label = {s.label: s.id for s in states}

    transitions = []
    for event in events or [FALLBACK_EVENT]:
        for source_state, target_state in zip(states, states[1:]):
            transitions.append(Transition(str(uuid.uuid4()), source_state.id, target_state.id, event))

    model = StateMachineModel(
        name=DEFAULT_IMPORTED_MACHINE_NAME,
        initial_state_id=by_label.get(initial_label) or states[0].id,
        states=tuple(states),
        transitions=tuple(transitions),
        output_format=OutputFormat.USE_REDUCER,
    )

    positions = compute_level_layout(model)
    logger.info(f"Source import: found {len(states)} state(s) and {len(events)} event(s).")
    return replace(model, states=tuple(replace(s, position=positions.get(s.id)) for s in model.states))
