# vsmb_designer/core/analysis.py
"""
Local advisory heuristics over a machine: reachability, dead ends, issue
analysis, improvement suggestions and a markdown explanation.

Nothing here affects data correctness. The results are guidance for the
user and for the agent snippet exporter.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set

from .machine_model import StateMachineModel
from ..utils.config import MAX_SUGGESTIONS

logger = logging.getLogger(__name__)


class IssueSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class AnalysisIssue:
    type: IssueSeverity
    message: str
    state_id: Optional[str] = None


@dataclass(frozen=True)
class Suggestion:
    id: str
    title: str
    description: str


def labels_containing(model: StateMachineModel, word: str) -> bool:
    """True if any state label contains `word`, ignoring case."""
    word = word.lower()
    return any(word in (s.label or '').lower() for s in model.states)


def reachable_state_ids(model: StateMachineModel) -> Set[str]:
    """
    Forward fixpoint from the initial state: keep marking the target of any
    transition whose source is already marked until a pass adds nothing.
    """
    if not model.initial_state_id:
        return set()
    reachable = {model.initial_state_id}
    changed = True
    while changed:
        changed = False
        for t in model.transitions:
            if t.from_state_id in reachable and t.to_state_id not in reachable:
                reachable.add(t.to_state_id)
                changed = True
    return reachable & model.state_ids()


def dead_end_state_ids(model: StateMachineModel) -> List[str]:
    """Ids of states without any outgoing transition, in state order."""
    has_outgoing = {t.from_state_id for t in model.transitions}
    return [s.id for s in model.states if s.id not in has_outgoing]


def analyze_model(model: StateMachineModel) -> List[AnalysisIssue]:
    """
    Dead ends are warnings and unreachable states are errors. Two more
    warnings cover a loading state with no timeout/abort event and an error
    state with no retry event.
    """
    issues: List[AnalysisIssue] = []
    dead_ends = set(dead_end_state_ids(model))
    reachable = reachable_state_ids(model)

    for state in model.states:
        if state.id in dead_ends:
            issues.append(AnalysisIssue(
                IssueSeverity.WARNING,
                f'State "{state.label}" has no outgoing transitions (dead-end).',
                state.id,
            ))
        if state.id not in reachable:
            issues.append(AnalysisIssue(
                IssueSeverity.ERROR,
                f'State "{state.label}" is unreachable from the initial state.',
                state.id,
            ))

    events = [t.event.lower() for t in model.transitions]
    if labels_containing(model, 'loading') and not any('timeout' in e or 'abort' in e for e in events):
        issues.append(AnalysisIssue(IssueSeverity.WARNING, 'Consider adding a loading timeout or abort handling.'))
    if labels_containing(model, 'error') and not any('retry' in e for e in events):
        issues.append(AnalysisIssue(IssueSeverity.WARNING, 'Consider adding a retry transition from the error state.'))

    logger.debug(f"Analysis of '{model.name}' found {len(issues)} issue(s).")
    return issues


def suggest_improvements(model: StateMachineModel, limit: int = MAX_SUGGESTIONS) -> List[Suggestion]:
    suggestions: List[Suggestion] = []
    has_loading = labels_containing(model, 'loading')

    if not has_loading and (labels_containing(model, 'idle') or labels_containing(model, 'success')):
        suggestions.append(Suggestion(
            'add-loading',
            'Add loading state',
            'Insert a loading state between idle and success/error for async flows.',
        ))
    if has_loading and not labels_containing(model, 'error'):
        suggestions.append(Suggestion(
            'add-error',
            'Add error state',
            'Handle failures with a dedicated error state and retry.',
        ))
    for state_id in dead_end_state_ids(model):
        state = model.get_state(state_id)
        suggestions.append(Suggestion(
            f'outgoing-{state.id}',
            f'Add outgoing transition from "{state.label}"',
            'This state has no outgoing transitions; consider adding one (e.g. reset, retry).',
        ))
    return suggestions[:limit]


def transition_line(model: StateMachineModel, transition) -> str:
    """`- from --[EVENT]--> to`, falling back to raw ids for dangling endpoints."""
    source = model.get_state(transition.from_state_id)
    target = model.get_state(transition.to_state_id)
    from_label = source.label if source else transition.from_state_id
    to_label = target.label if target else transition.to_state_id
    return f"- {from_label} --[{transition.event}]--> {to_label}"


def explain_model(model: StateMachineModel) -> str:
    lines = [
        f"# {model.name}",
        "",
        "## Overview",
        f"This state machine has {len(model.states)} states and {len(model.transitions)} transitions.",
        "",
        "## States",
    ]
    for state in model.states:
        marker = " (initial)" if state.id == model.initial_state_id else ""
        lines.append(f"- **{state.label}**{marker}")
    lines.extend(["", "## Transitions"])
    lines.extend(transition_line(model, t) for t in model.transitions)
    return "\n".join(lines)
