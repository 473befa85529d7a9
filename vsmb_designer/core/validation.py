# vsmb_designer/core/validation.py
"""
Structural validation of a StateMachineModel.

Validation never raises. It returns every finding as a list so the editor can
keep an invalid model around while the user fixes it, and so code-producing
operations can refuse to run on it.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .machine_model import StateMachineModel

EVENT_IDENTIFIER_REGEX = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


class VsmbError(Exception):
    """Base class for errors raised by the state machine builder."""
    pass


class ModelValidationError(VsmbError):
    """Raised by require_valid_model when a model fails validation."""

    def __init__(self, result: 'ValidationResult'):
        self.result = result
        first = result.first_error
        super().__init__(first.message if first else "Model is invalid")


@dataclass(frozen=True)
class ValidationError:
    path: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def first_error(self) -> Optional[ValidationError]:
        return self.errors[0] if self.errors else None

    @property
    def error_count(self) -> int:
        return len(self.errors)


def is_valid_identifier(text: str) -> bool:
    """True if `text` can be used as an event name."""
    return isinstance(text, str) and bool(EVENT_IDENTIFIER_REGEX.fullmatch(text))


def validate_model(model: StateMachineModel) -> ValidationResult:
    """
    Checks a model against the structural rules, in reporting order:
    name, states, initial state, per-transition references and event names,
    then duplicate (from, event) pairs.

    Returns:
        A ValidationResult; `valid` is True only when no error was found.
    """
    errors: List[ValidationError] = []

    if not (model.name or '').strip():
        errors.append(ValidationError('name', 'Machine name is required'))

    state_ids = model.state_ids()
    if not model.states:
        errors.append(ValidationError('states', 'At least one state is required'))

    if not model.initial_state_id:
        errors.append(ValidationError('initialStateId', 'Initial state must be set'))
    elif model.initial_state_id not in state_ids:
        errors.append(ValidationError(
            'initialStateId', 'Initial state must reference an existing state'))

    for t in model.transitions:
        path = f"transitions.{t.id}"
        if t.from_state_id not in state_ids:
            errors.append(ValidationError(path, f"Transition from unknown state: {t.from_state_id}"))
        if t.to_state_id not in state_ids:
            errors.append(ValidationError(path, f"Transition to unknown state: {t.to_state_id}"))
        if not is_valid_identifier(t.event):
            errors.append(ValidationError(
                path,
                f'Invalid event name: "{t.event}". Use a valid identifier (e.g. FETCH_SUCCESS, RETRY).'
            ))

    # Only later occurrences of a (from, event) pair are reported.
    seen_pairs = set()
    for t in model.transitions:
        key = (t.from_state_id, t.event)
        if key in seen_pairs:
            errors.append(ValidationError(
                f"transitions.{t.id}",
                f'Duplicate transition: from "{t.from_state_id}" on event "{t.event}". '
                f'Machine should be deterministic.'
            ))
        seen_pairs.add(key)

    return ValidationResult(valid=not errors, errors=errors)


def require_valid_model(model: StateMachineModel) -> StateMachineModel:
    """Returns the model unchanged, or raises ModelValidationError."""
    result = validate_model(model)
    if not result.valid:
        raise ModelValidationError(result)
    return model
