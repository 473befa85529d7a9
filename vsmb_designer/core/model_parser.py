# vsmb_designer/core/model_parser.py
"""
Parses the raw JSON diagram data into the structured StateMachineModel
defined in machine_model.py, and serializes it back.

This module acts as the bridge between the stored/shared JSON shape and the
application's internal logic. Parsing is tolerant: it never validates
references (that is the validator's job) and keeps unknown keys in the
`properties` bag of each object so that nothing is lost on a round trip.
"""
import logging
from typing import Dict, Any, Optional

from .machine_model import (
    StateMachineModel, StateNode, Transition, Position,
    StateNodeType, OutputFormat, OutputLanguage,
)
from ..utils.config import DEFAULT_MACHINE_NAME

logger = logging.getLogger(__name__)

_STATE_KEYS = ('id', 'label', 'type', 'contextSchema', 'position')
_TRANSITION_KEYS = ('id', 'fromStateId', 'toStateId', 'event')
_MODEL_KEYS = ('name', 'initialStateId', 'states', 'transitions', 'outputFormat', 'outputLanguage')


def _parse_enum(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _parse_position(raw: Any) -> Optional[Position]:
    if not isinstance(raw, dict):
        return None
    try:
        extra = {k: v for k, v in raw.items() if k not in ('x', 'y')}
        return Position(x=raw['x'], y=raw['y'], properties=extra)
    except KeyError:
        logger.warning(f"Ignoring incomplete position data: {raw}")
        return None


def parse_state_dict(state_data: Dict[str, Any]) -> StateNode:
    """Converts one state dictionary into a StateNode."""
    properties = {k: v for k, v in state_data.items() if k not in _STATE_KEYS}

    state_type = None
    raw_type = state_data.get('type')
    if raw_type is not None:
        state_type = _parse_enum(StateNodeType, raw_type, None)
        if state_type is None:
            # Keep the unknown tag so it survives a save
            properties['type'] = raw_type

    schema = state_data.get('contextSchema')
    if schema is not None and not isinstance(schema, dict):
        properties['contextSchema'] = schema
        schema = None

    position = None
    if 'position' in state_data:
        position = _parse_position(state_data['position'])
        if position is None:
            properties['position'] = state_data['position']

    return StateNode(
        id=str(state_data.get('id', '')),
        label=str(state_data.get('label', '')),
        type=state_type,
        context_schema=dict(schema) if schema is not None else None,
        position=position,
        properties=properties,
    )


def parse_transition_dict(trans_data: Dict[str, Any]) -> Transition:
    """Converts one transition dictionary into a Transition."""
    return Transition(
        id=str(trans_data.get('id', '')),
        from_state_id=str(trans_data.get('fromStateId', '')),
        to_state_id=str(trans_data.get('toStateId', '')),
        event=str(trans_data.get('event', '')),
        properties={k: v for k, v in trans_data.items() if k not in _TRANSITION_KEYS},
    )


def parse_model_dict(diagram_data: Dict[str, Any]) -> StateMachineModel:
    """
    Parses a model dictionary (as found inside a file/link envelope) into
    the StateMachineModel.

    Args:
        diagram_data: The raw dictionary, camelCase keys.

    Returns:
        A StateMachineModel instance. It may be structurally invalid.
    """
    states = []
    for state_data in diagram_data.get('states') or []:
        if not isinstance(state_data, dict):
            logger.warning(f"Skipping invalid state data entry: {state_data}")
            continue
        states.append(parse_state_dict(state_data))

    transitions = []
    for trans_data in diagram_data.get('transitions') or []:
        if not isinstance(trans_data, dict):
            logger.warning(f"Skipping invalid transition data entry: {trans_data}")
            continue
        transitions.append(parse_transition_dict(trans_data))

    properties = {k: v for k, v in diagram_data.items() if k not in _MODEL_KEYS}

    raw_format = diagram_data.get('outputFormat', OutputFormat.USE_REDUCER.value)
    output_format = _parse_enum(OutputFormat, raw_format, None)
    if output_format is None:
        logger.warning(f"Unknown output format '{raw_format}', falling back to useReducer.")
        output_format = OutputFormat.USE_REDUCER

    raw_language = diagram_data.get('outputLanguage', OutputLanguage.TS.value)
    output_language = _parse_enum(OutputLanguage, raw_language, None)
    if output_language is None:
        logger.warning(f"Unknown output language '{raw_language}', falling back to ts.")
        output_language = OutputLanguage.TS

    name = diagram_data.get('name')
    if name is None:
        name = DEFAULT_MACHINE_NAME
    return StateMachineModel(
        name=name if isinstance(name, str) else str(name),
        initial_state_id=str(diagram_data.get('initialStateId') or ''),
        states=tuple(states),
        transitions=tuple(transitions),
        output_format=output_format,
        output_language=output_language,
        properties=properties,
    )


def state_to_dict(state: StateNode) -> Dict[str, Any]:
    data: Dict[str, Any] = {'id': state.id, 'label': state.label}
    if state.type is not None:
        data['type'] = state.type.value
    if state.context_schema is not None:
        data['contextSchema'] = dict(state.context_schema)
    if state.position is not None:
        data['position'] = state.position.to_dict()
    for key, value in state.properties.items():
        data.setdefault(key, value)
    return data


def transition_to_dict(transition: Transition) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        'id': transition.id,
        'fromStateId': transition.from_state_id,
        'toStateId': transition.to_state_id,
        'event': transition.event,
    }
    for key, value in transition.properties.items():
        data.setdefault(key, value)
    return data


def model_to_dict(model: StateMachineModel) -> Dict[str, Any]:
    """Serializes a StateMachineModel into its camelCase JSON shape."""
    data: Dict[str, Any] = {
        'name': model.name,
        'initialStateId': model.initial_state_id,
        'states': [state_to_dict(s) for s in model.states],
        'transitions': [transition_to_dict(t) for t in model.transitions],
        'outputFormat': model.output_format.value,
        'outputLanguage': model.output_language.value,
    }
    for key, value in model.properties.items():
        data.setdefault(key, value)
    return data
