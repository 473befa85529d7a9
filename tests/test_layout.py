# tests/test_layout.py
import asyncio
import threading
import time
from dataclasses import replace

import pytest

from vsmb_designer.core.machine_model import Position
from vsmb_designer.utils import layout
from vsmb_designer.utils.layout import (
    default_position, resolve_positions, compute_level_layout, compute_layout, graphviz_layout,
    LAYOUT_THREAD_NAME,
)
from conftest import make_model


def test_default_grid():
    assert default_position(0) == Position(100, 80)
    assert default_position(2) == Position(540, 80)
    assert default_position(4) == Position(320, 220)


def test_resolve_positions_prefers_stored(idle_fetch_model):
    model = replace(idle_fetch_model, states=(
        replace(idle_fetch_model.states[0], position=Position(5, 6)),
        idle_fetch_model.states[1],
    ))
    assert resolve_positions(model) == {"idle": Position(5, 6), "loading": Position(320, 80)}


def test_level_layout_single_chain(idle_fetch_model):
    assert compute_level_layout(idle_fetch_model) == {
        "idle": Position(80, 60),
        "loading": Position(420, 60),
    }


def test_level_layout_stacks_states_of_one_level(async_fetch_model):
    positions = compute_level_layout(async_fetch_model)
    assert positions["s-idle"] == Position(80, 60)
    assert positions["s-loading"] == Position(420, 60)
    assert positions["s-success"] == Position(760, -44)
    assert positions["s-error"] == Position(760, 164)


def test_level_layout_puts_unreached_states_last():
    model = make_model(["a", "b", "c"], [("t1", "a", "b", "GO")])
    positions = compute_level_layout(model)
    assert positions["c"].x == 760


def test_level_layout_empty_model():
    assert compute_level_layout(make_model([])) == {}


def test_falls_back_when_primary_fails(idle_fetch_model):
    async def broken(model):
        raise RuntimeError("layout engine crashed")

    positions = asyncio.run(compute_layout(idle_fetch_model, broken))
    assert positions == compute_level_layout(idle_fetch_model)


def test_falls_back_when_primary_times_out(idle_fetch_model):
    async def slow(model):
        await asyncio.sleep(5)
        return {}

    positions = asyncio.run(compute_layout(idle_fetch_model, slow, timeout=0.01))
    assert positions == compute_level_layout(idle_fetch_model)


def test_uses_primary_result(idle_fetch_model):
    expected = {"idle": Position(1, 2), "loading": Position(3, 4)}

    async def primary(model):
        return expected

    assert asyncio.run(compute_layout(idle_fetch_model, primary)) == expected


def test_graphviz_errors_fall_back(monkeypatch, idle_fetch_model):
    def broken(model):
        raise ImportError("No module named 'pygraphviz'")

    monkeypatch.setattr(layout, "_graphviz_positions", broken)
    positions = asyncio.run(compute_layout(idle_fetch_model, graphviz_layout, timeout=1))
    assert positions == compute_level_layout(idle_fetch_model)


def test_timed_out_graphviz_worker_does_not_hold_the_loop(monkeypatch, idle_fetch_model):
    release = threading.Event()

    def blocking(model):
        release.wait(5)
        return {}

    monkeypatch.setattr(layout, "_graphviz_positions", blocking)
    started = time.monotonic()
    try:
        positions = asyncio.run(compute_layout(idle_fetch_model, graphviz_layout, timeout=0.05))
        assert time.monotonic() - started < 2
        assert positions == compute_level_layout(idle_fetch_model)
        workers = [t for t in threading.enumerate() if t.name == LAYOUT_THREAD_NAME]
        assert workers and all(t.daemon for t in workers)
    finally:
        release.set()


def test_graphviz_layout(async_fetch_model):
    pytest.importorskip("pygraphviz")
    positions = asyncio.run(graphviz_layout(async_fetch_model))
    assert set(positions) == {s.id for s in async_fetch_model.states}
    assert min(p.x for p in positions.values()) == pytest.approx(50)
    assert min(p.y for p in positions.values()) == pytest.approx(50)
    # Left to right: the initial state is the leftmost node
    assert positions["s-idle"].x == pytest.approx(50)
