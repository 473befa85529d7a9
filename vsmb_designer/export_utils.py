# vsmb_designer/export_utils.py
import logging
import re  # For Mermaid sanitization
from typing import List

from .core.machine_model import StateMachineModel
from .core.analysis import labels_containing, reachable_state_ids, dead_end_state_ids, transition_line
from .codegen.code_generator import generate_code
from .codegen.common import machine_name

logger = logging.getLogger(__name__)

_MERMAID_SPECIAL_CHARS = re.compile(r'[\[\]:]')

AGENT_PREAMBLE = (
    "You are refactoring or implementing a React component. Below is the state machine "
    "design and the generated code. Use it to implement or improve the UI state handling."
)

EDGE_CASE_HINTS = (
    ('loading', 'Consider adding a loading timeout and abort handling.'),
    ('error', 'Consider retry/backoff and user-facing error messages.'),
    ('empty', 'Consider a refresh or CTA to trigger a new load.'),
    ('success', 'Consider cache invalidation or refetch on window focus if data can go stale.'),
)


def _mermaid_label(label: str) -> str:
    """
    Returns a label usable as a Mermaid state reference.
    Labels with spaces or brackets/colons get the `["..."]` form.
    """
    if ' ' in label or _MERMAID_SPECIAL_CHARS.search(label):
        escaped = label.replace('"', '\\"')
        return f'["{escaped}"]'
    return label


def _mermaid_event(event: str) -> str:
    return _MERMAID_SPECIAL_CHARS.sub('_', event)


def export_to_mermaid(model: StateMachineModel) -> str:
    """
    Generates Mermaid stateDiagram-v2 text for the machine.

    Transitions whose endpoints do not resolve are left out.
    """
    lines = ["stateDiagram-v2", "    direction LR"]

    initial = model.get_initial_state()
    if initial is not None:
        lines.append(f"    [*] --> {_mermaid_label(initial.label)}")

    for t in model.transitions:
        source = model.get_state(t.from_state_id)
        target = model.get_state(t.to_state_id)
        if source is None or target is None:
            logger.warning(f"Mermaid export: skipping transition '{t.id}' with unresolved endpoints.")
            continue
        lines.append(f"    {_mermaid_label(source.label)} --> {_mermaid_label(target.label)} : {_mermaid_event(t.event)}")

    mermaid_text = "\n".join(lines)
    logger.debug("Generated Mermaid text: \n%s", mermaid_text)
    return mermaid_text


def mermaid_markdown(model: StateMachineModel) -> str:
    """Wraps the Mermaid diagram in a Markdown document with a title."""
    return f"# {model.name}\n\n```mermaid\n{export_to_mermaid(model)}\n```\n"


def mermaid_filename(model: StateMachineModel) -> str:
    return f"{machine_name(model)}.md"


def edge_case_hints(model: StateMachineModel) -> List[str]:
    return [hint for word, hint in EDGE_CASE_HINTS if labels_containing(model, word)]


def snippet_suggestions(model: StateMachineModel) -> List[str]:
    """Sink and unreachable state notes, in state order."""
    suggestions = []
    dead_ends = set(dead_end_state_ids(model))
    reachable = reachable_state_ids(model)
    for state in model.states:
        if state.id in dead_ends:
            suggestions.append(f'State "{state.label}" has no outgoing transitions (possible sink state).')
        if state.id not in reachable:
            suggestions.append(f'State "{state.label}" is unreachable from the initial state.')
    return suggestions


def generate_snippet_for_agent(model: StateMachineModel) -> str:
    """
    Builds the agent-facing bundle: preamble, states, transitions, initial
    state, heuristic notes and the generated code for the model's format.
    """
    initial = model.get_initial_state()
    sections = [
        AGENT_PREAMBLE,
        "",
        f"## State machine: {model.name}",
        "",
        "### States",
    ]
    for state in model.states:
        marker = " (initial)" if state.id == model.initial_state_id else ""
        sections.append(f"- {state.label}{marker}")
    sections.extend(["", "### Transitions"])
    sections.extend(transition_line(model, t) for t in model.transitions)
    sections.extend(["", "### Initial state", initial.label if initial else "", ""])

    hints = edge_case_hints(model)
    if hints:
        sections.extend(["### Edge cases to consider", ""])
        sections.extend(f"- {h}" for h in hints)
        sections.extend(["", ""])

    suggestions = snippet_suggestions(model)
    if suggestions:
        sections.extend(["### Suggestions", ""])
        sections.extend(f"- {s}" for s in suggestions)
        sections.extend(["", ""])

    sections.extend([
        "### Generated code",
        "",
        f"```{model.output_language.value}",
        generate_code(model),
        "```",
    ])
    return "\n".join(sections)
