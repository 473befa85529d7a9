# vsmb_designer/core/editor_history.py
"""
The editor engine: the only component that mutates a machine.

Each edit is a command object whose `apply` maps one frozen snapshot to a
new one. MachineEditor runs the commands and keeps a bounded list of
snapshots for undo/redo.
"""
import logging
import uuid
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .machine_model import (
    StateMachineModel, StateNode, Transition, Position, StateNodeType, OutputFormat, OutputLanguage,
)
from ..services.serialization import decode_payload, build_file_payload
from ..utils.config import (
    MAX_HISTORY, DEFAULT_NEW_STATE_LABEL, DUPLICATE_OFFSET, AUTOSAVE_STORAGE_KEY,
)

logger = logging.getLogger(__name__)

_STATE_FIELDS = ('label', 'type', 'context_schema', 'position')
_TRANSITION_FIELDS = ('from_state_id', 'to_state_id', 'event')


def new_id() -> str:
    return str(uuid.uuid4())


class EditorCommand:
    """Base class. Subclasses set `description` and implement `apply`."""
    description = "Edit"

    def apply(self, model: StateMachineModel) -> StateMachineModel:
        raise NotImplementedError


class SetNameCommand(EditorCommand):
    description = "Rename Machine"

    def __init__(self, name: str):
        self.name = name

    def apply(self, model):
        return replace(model, name=self.name)


class SetOutputFormatCommand(EditorCommand):
    description = "Change Output Format"

    def __init__(self, output_format):
        self.output_format = OutputFormat(output_format)

    def apply(self, model):
        return replace(model, output_format=self.output_format)


class SetOutputLanguageCommand(EditorCommand):
    description = "Change Output Language"

    def __init__(self, output_language):
        self.output_language = OutputLanguage(output_language)

    def apply(self, model):
        return replace(model, output_language=self.output_language)


class SetInitialStateCommand(EditorCommand):
    description = "Set Initial State"

    def __init__(self, state_id: str):
        self.state_id = state_id

    def apply(self, model):
        return replace(model, initial_state_id=self.state_id)


class AddStateCommand(EditorCommand):
    """
    Appends a state. Missing fields get a fresh id, the `new_state` label
    and the `custom` type. The first state added becomes the initial state.
    """
    description = "Add State"

    def __init__(self, state_id: Optional[str] = None, label: Optional[str] = None,
                 type: Optional[StateNodeType] = None, context_schema: Optional[Dict[str, str]] = None,
                 position: Optional[Position] = None):
        self.state = StateNode(
            id=state_id or new_id(),
            label=label if label is not None else DEFAULT_NEW_STATE_LABEL,
            type=StateNodeType(type) if type is not None else StateNodeType.CUSTOM,
            context_schema=dict(context_schema) if context_schema is not None else None,
            position=position,
        )

    def apply(self, model):
        initial = self.state.id if not model.states else model.initial_state_id
        return replace(model, states=model.states + (self.state,), initial_state_id=initial)


class UpdateStateCommand(EditorCommand):
    description = "Edit State"

    def __init__(self, state_id: str, **changes: Any):
        unknown = set(changes) - set(_STATE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown state field(s): {', '.join(sorted(unknown))}")
        self.state_id = state_id
        self.changes = changes

    def apply(self, model):
        states = tuple(replace(s, **self.changes) if s.id == self.state_id else s for s in model.states)
        return replace(model, states=states)


class RemoveStateCommand(EditorCommand):
    """
    Removes a state with every transition touching it. If it was the
    initial state, the first remaining state (or none) becomes initial.
    """
    description = "Remove State"

    def __init__(self, state_id: str):
        self.state_id = state_id

    def apply(self, model):
        states = tuple(s for s in model.states if s.id != self.state_id)
        transitions = tuple(t for t in model.transitions
                            if t.from_state_id != self.state_id and t.to_state_id != self.state_id)
        initial = model.initial_state_id
        if initial == self.state_id:
            initial = states[0].id if states else ""
        return replace(model, states=states, transitions=transitions, initial_state_id=initial)


class AddTransitionCommand(EditorCommand):
    description = "Add Transition"

    def __init__(self, from_state_id: str, to_state_id: str, event: str, transition_id: Optional[str] = None):
        self.transition = Transition(transition_id or new_id(), from_state_id, to_state_id, event)

    def apply(self, model):
        return replace(model, transitions=model.transitions + (self.transition,))


class UpdateTransitionCommand(EditorCommand):
    description = "Edit Transition"

    def __init__(self, transition_id: str, **changes: Any):
        unknown = set(changes) - set(_TRANSITION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown transition field(s): {', '.join(sorted(unknown))}")
        self.transition_id = transition_id
        self.changes = changes

    def apply(self, model):
        transitions = tuple(replace(t, **self.changes) if t.id == self.transition_id else t
                            for t in model.transitions)
        return replace(model, transitions=transitions)


class RemoveTransitionCommand(EditorCommand):
    description = "Remove Transition"

    def __init__(self, transition_id: str):
        self.transition_id = transition_id

    def apply(self, model):
        return replace(model, transitions=tuple(t for t in model.transitions if t.id != self.transition_id))


class ApplyLayoutCommand(EditorCommand):
    """Moves the states named in `positions`; the others keep their position."""
    description = "Auto-Layout Diagram"

    def __init__(self, positions: Mapping[str, Position]):
        self.positions = dict(positions)

    def apply(self, model):
        states = tuple(replace(s, position=self.positions[s.id]) if s.id in self.positions else s
                       for s in model.states)
        return replace(model, states=states)


class ApplyDuplicateCommand(EditorCommand):
    description = "Duplicate States"

    def __init__(self, states: Iterable[StateNode], transitions: Iterable[Transition]):
        self.states = tuple(states)
        self.transitions = tuple(transitions)

    def apply(self, model):
        return replace(model, states=model.states + self.states,
                       transitions=model.transitions + self.transitions)


def duplicate_states(model: StateMachineModel, state_ids: Sequence[str],
                     offset: float = DUPLICATE_OFFSET) -> Tuple[List[StateNode], List[Transition]]:
    """
    Copies the selected states under fresh ids, shifted by `offset`, plus
    the transitions whose both ends are selected. Returns the payload for
    ApplyDuplicateCommand.
    """
    selected = [s for s in model.states if s.id in set(state_ids)]
    id_map: Dict[str, str] = {}
    new_states = []
    for state in selected:
        id_map[state.id] = new_id()
        base = state.position or Position(0, 0)
        new_states.append(replace(state, id=id_map[state.id],
                                  position=Position(base.x + offset, base.y + offset)))
    new_transitions = [
        replace(t, id=new_id(), from_state_id=id_map[t.from_state_id], to_state_id=id_map[t.to_state_id])
        for t in model.transitions
        if t.from_state_id in id_map and t.to_state_id in id_map
    ]
    return new_states, new_transitions


class MachineEditor:
    """
    Holds the current snapshot and its undo/redo history.

    With a `store`, the current machine is read from it at construction and
    written back after every change while `autosave_enabled` is set.
    `blank_model` is the machine used at startup without an autosave and
    after `reset`.
    """

    def __init__(self, model: Optional[StateMachineModel] = None, capacity: int = MAX_HISTORY,
                 store=None, storage_key: str = AUTOSAVE_STORAGE_KEY,
                 blank_model: Optional[StateMachineModel] = None):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self.store = store
        self.storage_key = storage_key
        self.autosave_enabled = True
        self.blank_model = blank_model or StateMachineModel()
        if model is None:
            model = self._load_autosave() or self.blank_model
        self._history: List[StateMachineModel] = [model]
        self._index = 0

    @classmethod
    def from_settings(cls, settings, store=None, model: Optional[StateMachineModel] = None) -> 'MachineEditor':
        """
        Builds an editor from a SettingsManager and keeps it in sync with
        later changes to the history, autosave and new-machine settings.
        """
        blank_model = StateMachineModel(
            name=settings.get("default_machine_name"),
            output_format=OutputFormat(settings.get("default_output_format")),
            output_language=OutputLanguage(settings.get("default_output_language")),
        )
        editor = cls(model, capacity=settings.get("history_capacity"), store=store, blank_model=blank_model)
        editor.autosave_enabled = settings.get("autosave_enabled")
        settings.add_listener(editor.on_setting_changed)
        return editor

    def on_setting_changed(self, key: str, value: Any):
        if key == "history_capacity":
            self.set_capacity(value)
        elif key == "autosave_enabled":
            self.autosave_enabled = value
        elif key == "default_machine_name":
            self.blank_model = replace(self.blank_model, name=value)
        elif key == "default_output_format":
            self.blank_model = replace(self.blank_model, output_format=OutputFormat(value))
        elif key == "default_output_language":
            self.blank_model = replace(self.blank_model, output_language=OutputLanguage(value))

    def set_capacity(self, capacity: int):
        """Changes the snapshot limit, dropping the oldest snapshots first, then redo snapshots."""
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        excess = len(self._history) - capacity
        if excess <= 0:
            return
        drop_old = min(excess, self._index)
        self._history = self._history[drop_old:][:capacity]
        self._index -= drop_old
        logger.debug(f"MachineEditor: History capacity set to {capacity}.")

    @property
    def model(self) -> StateMachineModel:
        return self._history[self._index]

    @property
    def history_size(self) -> int:
        return len(self._history)

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._history) - 1

    def execute(self, command: EditorCommand) -> StateMachineModel:
        """Applies `command` to the current snapshot and records the result."""
        new_model = command.apply(self.model)
        # Anything after the current position is no longer redoable
        self._history = self._history[:self._index + 1] + [new_model]
        if len(self._history) > self.capacity:
            self._history = self._history[-self.capacity:]
        self._index = len(self._history) - 1
        logger.debug(f"MachineEditor: '{command.description}' applied ({len(self._history)} snapshot(s)).")
        self._autosave()
        return new_model

    def undo(self) -> StateMachineModel:
        if self.can_undo():
            self._index -= 1
            logger.debug(f"MachineEditor: Undo, now at snapshot {self._index}.")
            self._autosave()
        return self.model

    def redo(self) -> StateMachineModel:
        if self.can_redo():
            self._index += 1
            logger.debug(f"MachineEditor: Redo, now at snapshot {self._index}.")
            self._autosave()
        return self.model

    def load_model(self, model: StateMachineModel) -> StateMachineModel:
        """Replaces the machine wholesale and starts a fresh history."""
        self._history = [model]
        self._index = 0
        logger.info(f"MachineEditor: Loaded '{model.name}' ({len(model.states)} states).")
        self._autosave()
        return model

    def reset(self) -> StateMachineModel:
        return self.load_model(self.blank_model)

    # Convenience wrappers
    def set_name(self, name: str):
        return self.execute(SetNameCommand(name))

    def set_output_format(self, output_format):
        return self.execute(SetOutputFormatCommand(output_format))

    def set_output_language(self, output_language):
        return self.execute(SetOutputLanguageCommand(output_language))

    def set_initial_state(self, state_id: str):
        return self.execute(SetInitialStateCommand(state_id))

    def add_state(self, **fields):
        return self.execute(AddStateCommand(**fields))

    def update_state(self, state_id: str, **changes):
        return self.execute(UpdateStateCommand(state_id, **changes))

    def remove_state(self, state_id: str):
        return self.execute(RemoveStateCommand(state_id))

    def add_transition(self, from_state_id: str, to_state_id: str, event: str, transition_id: Optional[str] = None):
        return self.execute(AddTransitionCommand(from_state_id, to_state_id, event, transition_id))

    def update_transition(self, transition_id: str, **changes):
        return self.execute(UpdateTransitionCommand(transition_id, **changes))

    def remove_transition(self, transition_id: str):
        return self.execute(RemoveTransitionCommand(transition_id))

    def apply_layout(self, positions: Mapping[str, Position]):
        return self.execute(ApplyLayoutCommand(positions))

    def duplicate(self, state_ids: Sequence[str], offset: float = DUPLICATE_OFFSET):
        states, transitions = duplicate_states(self.model, state_ids, offset)
        return self.execute(ApplyDuplicateCommand(states, transitions))

    def _load_autosave(self) -> Optional[StateMachineModel]:
        if self.store is None:
            return None
        data = self.store.get(self.storage_key)
        if data is None:
            return None
        result = decode_payload(data, strict=False, allow_legacy=True)
        if not result.ok:
            logger.warning(f"MachineEditor: Ignoring unreadable autosave: {result.reason}")
        return result.model

    def _autosave(self):
        if self.store is None or not self.autosave_enabled:
            return
        self.store.set(self.storage_key, build_file_payload(self.model))
