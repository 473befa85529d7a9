# vsmb_designer/core/machine_model.py
"""
Defines the data model for a state machine diagram.

These data classes are the single source of truth for the validator, the code
generators and every exporter. Instances are frozen snapshots: the editor
engine builds a new snapshot for each edit and never mutates one in place.
The model is allowed to be structurally invalid while it is being edited;
checking references and event names is the validator's job.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, Tuple

from ..utils.config import DEFAULT_MACHINE_NAME

# ==============================================================================
# Enumerations
# ==============================================================================

class StateNodeType(str, Enum):
    """Semantic tag of a state. Advisory only, never changes generated code."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
    EMPTY = "empty"
    CUSTOM = "custom"


class OutputFormat(str, Enum):
    """Which state-management idiom the code generator targets."""
    USE_REDUCER = "useReducer"
    XSTATE = "XState"
    ZUSTAND = "Zustand"
    TANSTACK_QUERY = "TanStack Query"


class OutputLanguage(str, Enum):
    """Dialect of the generated source."""
    TS = "ts"
    JS = "js"

# ==============================================================================
# Structural Components
# ==============================================================================

@dataclass(frozen=True)
class Position:
    """Canvas coordinates, persisted so the diagram layout survives reloads."""
    x: float
    y: float
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"x": self.x, "y": self.y}
        for key, value in self.properties.items():
            data.setdefault(key, value)
        return data


@dataclass(frozen=True)
class StateNode:
    """Represents a single state in the machine."""
    id: str
    label: str
    type: Optional[StateNodeType] = None
    # Ordered mapping of field name -> type expression ("string", "number", "T[]", ...)
    context_schema: Optional[Dict[str, str]] = None
    position: Optional[Position] = None
    # Unknown keys found while parsing, kept so round trips are lossless.
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_context(self) -> bool:
        return bool(self.context_schema)


@dataclass(frozen=True)
class Transition:
    """Represents a transition between two states."""
    id: str
    from_state_id: str
    to_state_id: str
    event: str
    properties: Dict[str, Any] = field(default_factory=dict)

# ==============================================================================
# Root Model
# ==============================================================================

@dataclass(frozen=True)
class StateMachineModel:
    """
    The root container for a state machine diagram.

    Array order of `states` and `transitions` is significant: it drives the
    default layout, union member order and first-match event resolution.
    """
    name: str = DEFAULT_MACHINE_NAME
    initial_state_id: str = ""
    states: Tuple[StateNode, ...] = ()
    transitions: Tuple[Transition, ...] = ()
    output_format: OutputFormat = OutputFormat.USE_REDUCER
    output_language: OutputLanguage = OutputLanguage.TS
    properties: Dict[str, Any] = field(default_factory=dict)

    def get_state(self, state_id: str) -> Optional[StateNode]:
        """Convenience method to retrieve a state by its id."""
        for state in self.states:
            if state.id == state_id:
                return state
        return None

    def get_initial_state(self) -> Optional[StateNode]:
        """
        Returns the state referenced by `initial_state_id`.

        Unlike a diagram editor there is no fallback to the first state here;
        generators decide how to degrade when this returns None.
        """
        if not self.initial_state_id:
            return None
        return self.get_state(self.initial_state_id)

    def state_ids(self) -> set:
        return {s.id for s in self.states}

    def transitions_from(self, state_id: str) -> Tuple[Transition, ...]:
        return tuple(t for t in self.transitions if t.from_state_id == state_id)
