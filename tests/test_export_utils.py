# tests/test_export_utils.py
from vsmb_designer.export_utils import (
    export_to_mermaid, mermaid_markdown, mermaid_filename, generate_snippet_for_agent,
    snippet_suggestions, edge_case_hints, AGENT_PREAMBLE,
)
from conftest import make_model


def sink_and_unreachable_model():
    # A --GO--> B (sink); C is never reached but has an outgoing edge
    return make_model(["A", "B", "C"], [("t1", "A", "B", "GO"), ("t2", "C", "A", "BACK")], initial="A")


def test_mermaid_basic(idle_fetch_model):
    text = export_to_mermaid(idle_fetch_model)
    assert text == (
        "stateDiagram-v2\n"
        "    direction LR\n"
        "    [*] --> idle\n"
        "    idle --> loading : FETCH"
    )


def test_mermaid_sanitizes_event_names():
    model = make_model(["idle", "done"], [("t1", "idle", "done", "A:B")])
    assert "    idle --> done : A_B" in export_to_mermaid(model)


def test_mermaid_quotes_labels_with_spaces_or_brackets():
    model = make_model([("a", "Waiting room"), ("b", "x[1]")], [("t1", "a", "b", "GO")])
    text = export_to_mermaid(model)
    assert '    [*] --> ["Waiting room"]' in text
    assert '    ["Waiting room"] --> ["x[1]"] : GO' in text


def test_mermaid_skips_dangling_transitions_and_missing_initial():
    model = make_model(["idle"], [("t1", "idle", "ghost", "GO")], initial="")
    assert export_to_mermaid(model) == "stateDiagram-v2\n    direction LR"


def test_mermaid_markdown(idle_fetch_model):
    doc = mermaid_markdown(idle_fetch_model)
    assert doc.startswith("# Fetch\n\n```mermaid\nstateDiagram-v2\n")
    assert doc.endswith("idle --> loading : FETCH\n```\n")
    assert mermaid_filename(idle_fetch_model) == "Fetch.md"


def test_snippet_flags_sink_and_unreachable_states():
    snippet = generate_snippet_for_agent(sink_and_unreachable_model())
    assert '- State "B" has no outgoing transitions (possible sink state).' in snippet
    assert '- State "C" is unreachable from the initial state.' in snippet
    assert 'State "C" has no outgoing' not in snippet
    assert 'State "B" is unreachable' not in snippet


def test_snippet_structure(idle_fetch_model):
    snippet = generate_snippet_for_agent(idle_fetch_model)
    assert snippet.startswith(AGENT_PREAMBLE)
    assert "## State machine: Fetch" in snippet
    assert "### States\n- idle (initial)\n- loading\n" in snippet
    assert "### Transitions\n- idle --[FETCH]--> loading\n" in snippet
    assert "### Initial state\nidle\n" in snippet
    assert "### Edge cases to consider\n\n- Consider adding a loading timeout and abort handling." in snippet
    assert "### Generated code\n\n```ts\n// Generated State Machine: Fetch" in snippet
    assert snippet.endswith("```")


def test_snippet_without_issues_has_no_suggestions_and_is_stable():
    model = make_model(["on", "off"], [("t1", "on", "off", "TOGGLE"), ("t2", "off", "on", "TOGGLE")])
    assert snippet_suggestions(model) == []
    first = generate_snippet_for_agent(model)
    assert "### Suggestions" not in first
    assert "### Edge cases" not in first
    assert generate_snippet_for_agent(model) == first


def test_edge_case_hints_match_substrings_ignoring_case():
    model = make_model([("a", "isLoading"), ("b", "Fetch Error"), ("c", "emptyList")])
    hints = edge_case_hints(model)
    assert hints == [
        'Consider adding a loading timeout and abort handling.',
        'Consider retry/backoff and user-facing error messages.',
        'Consider a refresh or CTA to trigger a new load.',
    ]
