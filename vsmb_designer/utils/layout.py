# vsmb_designer/utils/layout.py
"""
Diagram positions for the states of a machine.

`compute_layout` runs a two-step strategy: it awaits the primary
(asynchronous) provider and, if that raises or times out, applies the
deterministic level layout once. There is no retry and no partial
application of a failed result.
"""
import asyncio
import logging
import threading
from collections import deque
from typing import Awaitable, Callable, Dict, List

from ..core.machine_model import StateMachineModel, Position
from .config import (
    NODE_WIDTH, NODE_HEIGHT, HORIZONTAL_GAP, VERTICAL_GAP,
    GRID_ORIGIN_X, GRID_ORIGIN_Y, GRID_STEP_X, GRID_STEP_Y, GRID_COLUMNS,
    LEVEL_ORIGIN_X, LEVEL_ORIGIN_Y, DEFAULT_LAYOUT_TIMEOUT_S, GRAPHVIZ_PADDING,
)

logger = logging.getLogger(__name__)

Positions = Dict[str, Position]
LayoutProvider = Callable[[StateMachineModel], Awaitable[Positions]]

POINTS_PER_INCH = 72.0
LAYOUT_THREAD_NAME = "vsmb-graphviz-layout"


def default_position(index: int) -> Position:
    """Grid slot for the state at `index` when it has no stored position."""
    return Position(
        x=GRID_ORIGIN_X + (index % GRID_COLUMNS) * GRID_STEP_X,
        y=GRID_ORIGIN_Y + (index // GRID_COLUMNS) * GRID_STEP_Y,
    )


def resolve_positions(model: StateMachineModel) -> Positions:
    return {s.id: s.position or default_position(i) for i, s in enumerate(model.states)}


def compute_level_layout(model: StateMachineModel) -> Positions:
    """
    Left-to-right layout by breadth-first distance from the initial state
    (or the first state when none is set). States the search never reaches
    share one extra level after the deepest one. Within a level, states are
    stacked vertically in model order and centred on the origin row.
    """
    if not model.states:
        return {}

    out_edges: Dict[str, List[str]] = {}
    for t in model.transitions:
        out_edges.setdefault(t.from_state_id, []).append(t.to_state_id)

    start = model.initial_state_id or model.states[0].id
    level = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for target in out_edges.get(current, []):
            if target in level:
                continue
            level[target] = level[current] + 1
            queue.append(target)

    max_level = max(level.values())
    by_level: Dict[int, List[str]] = {}
    for state in model.states:
        by_level.setdefault(level.get(state.id, max_level + 1), []).append(state.id)

    positions: Positions = {}
    for column, lvl in enumerate(sorted(by_level)):
        ids = by_level[lvl]
        x = LEVEL_ORIGIN_X + column * (NODE_WIDTH + HORIZONTAL_GAP)
        total_height = len(ids) * NODE_HEIGHT + (len(ids) - 1) * VERTICAL_GAP
        y = LEVEL_ORIGIN_Y - total_height / 2 + NODE_HEIGHT / 2
        for state_id in ids:
            positions[state_id] = Position(x=x, y=y)
            y += NODE_HEIGHT + VERTICAL_GAP
    return positions


def _graphviz_positions(model: StateMachineModel) -> Positions:
    # Imported here so the package works without Graphviz installed
    import pygraphviz as pgv

    G = pgv.AGraph(directed=True, strict=False, rankdir='LR')
    G.graph_attr.update(nodesep=str(VERTICAL_GAP / POINTS_PER_INCH), ranksep=str(HORIZONTAL_GAP / POINTS_PER_INCH))
    G.node_attr.update(shape='box', fixedsize='true',
                       width=str(NODE_WIDTH / POINTS_PER_INCH), height=str(NODE_HEIGHT / POINTS_PER_INCH))

    state_ids = model.state_ids()
    for state in model.states:
        G.add_node(state.id)
    for t in model.transitions:
        if t.from_state_id in state_ids and t.to_state_id in state_ids:
            G.add_edge(t.from_state_id, t.to_state_id, key=t.id)

    G.layout(prog='dot')

    raw = {}
    for node in G.nodes():
        gv_x, gv_y = [float(p) for p in node.attr['pos'].split(',')]
        # Graphviz y grows upwards
        raw[str(node)] = (gv_x - NODE_WIDTH / 2, -gv_y - NODE_HEIGHT / 2)

    min_x = min(x for x, _ in raw.values())
    min_y = min(y for _, y in raw.values())
    return {
        state_id: Position(x=x - min_x + GRAPHVIZ_PADDING, y=y - min_y + GRAPHVIZ_PADDING)
        for state_id, (x, y) in raw.items()
    }


def _run_in_daemon_thread(func, *args) -> "asyncio.Future":
    """
    Runs `func(*args)` on a daemon thread and returns a future for its result.

    A call abandoned after a timeout keeps running, but it holds neither the
    event loop nor the interpreter open, so `asyncio.run` returns at once.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def resolve(result, error):
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def worker():
        result, error = None, None
        try:
            result = func(*args)
        except Exception as e:
            error = e
        try:
            loop.call_soon_threadsafe(resolve, result, error)
        except RuntimeError:
            logger.debug("Layout worker finished after its event loop closed; result dropped.")

    threading.Thread(target=worker, name=LAYOUT_THREAD_NAME, daemon=True).start()
    return future


async def graphviz_layout(model: StateMachineModel) -> Positions:
    """Primary provider: Graphviz `dot`, run in a daemon worker thread."""
    if not model.states:
        return {}
    return await _run_in_daemon_thread(_graphviz_positions, model)


async def compute_layout(model: StateMachineModel,
                         primary: LayoutProvider = graphviz_layout,
                         timeout: float = DEFAULT_LAYOUT_TIMEOUT_S) -> Positions:
    """
    Awaits `primary`; on any exception or timeout returns the level layout.
    """
    try:
        return await asyncio.wait_for(primary(model), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Layout provider timed out after {timeout}s, using level layout.")
    except Exception as e:
        logger.warning(f"Layout provider failed ({e}), using level layout.")
    return compute_level_layout(model)
