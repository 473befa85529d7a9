# tests/test_diagram_library.py
from dataclasses import replace

import pytest

from vsmb_designer.managers.diagram_library import DiagramHistory, UserTemplateLibrary
from vsmb_designer.managers.settings_manager import SettingsManager
from vsmb_designer.managers.storage import InMemoryStore
from vsmb_designer.utils.config import DIAGRAM_HISTORY_STORAGE_KEY, USER_TEMPLATES_STORAGE_KEY


class FakeClock:
    def __init__(self, start=1_000_000):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


def test_history_newest_first(store, clock, idle_fetch_model):
    history = DiagramHistory(store, clock=clock)
    history.add(replace(idle_fetch_model, name="One"))
    clock.now += 5000
    history.add(replace(idle_fetch_model, name="Two"))
    assert [e.name for e in history.entries()] == ["Two", "One"]


def test_history_dedupes_same_name_within_a_second(store, clock, idle_fetch_model):
    history = DiagramHistory(store, clock=clock)
    history.add(idle_fetch_model)
    clock.now += 500
    latest = history.add(replace(idle_fetch_model, initial_state_id="loading"))
    entries = history.entries()
    assert len(entries) == 1
    assert entries[0].id == latest.id
    assert entries[0].model.initial_state_id == "loading"

    clock.now += 2000
    history.add(idle_fetch_model)
    assert len(history.entries()) == 2


def test_history_is_capped(store, clock, idle_fetch_model):
    history = DiagramHistory(store, max_entries=3, clock=clock)
    for i in range(5):
        clock.now += 2000
        history.add(replace(idle_fetch_model, name=f"m{i}"))
    assert [e.name for e in history.entries()] == ["m4", "m3", "m2"]


def test_blank_names_become_untitled(store, clock, idle_fetch_model):
    entry = DiagramHistory(store, clock=clock).add(replace(idle_fetch_model, name="  "))
    assert entry.name == "Untitled"
    assert entry.id.startswith(f"h-{clock.now}-")


def test_history_limit_comes_from_settings(store, clock, idle_fetch_model):
    settings = SettingsManager(InMemoryStore())
    settings.set("diagram_history_limit", 2)
    history = DiagramHistory.from_settings(settings, store, clock=clock)
    for name in ("a", "b", "c"):
        clock.now += 5000
        history.add(replace(idle_fetch_model, name=name))
    assert [e.name for e in history.entries()] == ["c", "b"]


def test_history_get_remove_clear(store, clock, idle_fetch_model):
    history = DiagramHistory(store, clock=clock)
    entry = history.add(idle_fetch_model)
    assert history.get(entry.id).model == idle_fetch_model
    history.remove(entry.id)
    assert history.get(entry.id) is None
    history.add(idle_fetch_model)
    history.clear()
    assert history.entries() == []


def test_history_skips_corrupt_entries(clock, idle_fetch_model):
    store = InMemoryStore({DIAGRAM_HISTORY_STORAGE_KEY: [{"id": "broken"}]})
    history = DiagramHistory(store, clock=clock)
    assert history.entries() == []
    history.add(idle_fetch_model)
    assert len(history.entries()) == 1


@pytest.mark.parametrize("model_value", ["oops", None, [1, 2], 42])
def test_history_skips_entries_whose_model_is_not_an_object(clock, model_value):
    store = InMemoryStore({DIAGRAM_HISTORY_STORAGE_KEY: [
        {"id": "h1", "name": "x", "model": model_value, "updatedAt": 1},
    ]})
    assert DiagramHistory(store, clock=clock).entries() == []


def test_user_templates_skip_entries_whose_model_is_not_an_object(clock, async_fetch_model):
    store = InMemoryStore({USER_TEMPLATES_STORAGE_KEY: [
        {"id": "u1", "name": "bad", "model": "oops", "createdAt": 1},
    ]})
    library = UserTemplateLibrary(store, clock=clock)
    assert library.templates() == []
    library.save("Good", async_fetch_model)
    assert [t.name for t in library.templates()] == ["Good"]


def test_user_templates(store, clock, async_fetch_model):
    library = UserTemplateLibrary(store, clock=clock)
    first = library.save("Mine", async_fetch_model)
    second = library.save("Also mine", async_fetch_model)
    assert first.id.startswith("user-")
    assert [t.name for t in library.templates()] == ["Mine", "Also mine"]
    assert library.get(second.id).model == async_fetch_model
    library.remove(first.id)
    assert [t.id for t in library.templates()] == [second.id]
