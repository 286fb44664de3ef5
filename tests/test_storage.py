import itertools
import json
from dataclasses import replace

import pytest

from tennis_score import config
from tennis_score.engine import ScoreEngine
from tennis_score.models import Side
from tennis_score.storage import MatchStore


def create_engine():
    counter = itertools.count(1)
    return ScoreEngine(clock=lambda: 1_000, id_factory=lambda: f"m-{next(counter)}")


def started_match(engine, points=3):
    state = engine.start_match(engine.create_match("Ana", "Bia"))
    for _ in range(points):
        state = engine.apply_point(state, Side.LEFT)
    return state


@pytest.fixture
def store(tmp_path):
    return MatchStore(tmp_path, clock=lambda: 9_999)


# ---------------------------------------------------------
# Current match
# ---------------------------------------------------------

def test_load_without_file_returns_none(store):
    assert store.load() is None


def test_save_then_load(store):
    state = started_match(create_engine())

    store.save(state)

    assert store.load() == state


def test_corrupt_file_is_cleared(store):
    store.match_path.write_text("{not json", encoding="utf-8")

    assert store.load() is None
    assert not store.match_path.exists()


def test_invalid_snapshot_is_cleared(store):
    store.match_path.write_text(json.dumps({"id": "x"}), encoding="utf-8")

    assert store.load() is None
    assert not store.match_path.exists()


def test_clear_is_idempotent(store):
    store.save(started_match(create_engine()))

    store.clear()
    store.clear()

    assert store.load() is None


def test_default_data_dir_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TENNIS_SCORE_DATA_DIR", str(tmp_path / "data"))

    assert MatchStore().data_dir == tmp_path / "data"


def test_default_data_dir_without_env(monkeypatch):
    monkeypatch.delenv("TENNIS_SCORE_DATA_DIR", raising=False)

    assert MatchStore().data_dir == config.MATCHES_DIR


# ---------------------------------------------------------
# History
# ---------------------------------------------------------

def test_history_is_newest_first(store):
    engine = create_engine()
    first = started_match(engine)
    second = started_match(engine)

    store.save_to_history(first)
    archived = store.save_to_history(second)

    history = store.load_history()

    assert archived.finished_at == 9_999
    assert [m.id for m in history] == [second.id, first.id]
    assert history[0].finished_at == 9_999


def test_history_keeps_newest_fifty(store):
    engine = create_engine()
    base = started_match(engine, points=0)

    for i in range(config.HISTORY_LIMIT + 5):
        store.save_to_history(replace(base, id=f"match-{i}"))

    history = store.load_history()

    assert len(history) == config.HISTORY_LIMIT
    assert history[0].id == f"match-{config.HISTORY_LIMIT + 4}"
    assert history[-1].id == "match-5"


def test_delete_from_history(store):
    engine = create_engine()
    first = started_match(engine)
    second = started_match(engine)
    store.save_to_history(first)
    store.save_to_history(second)

    assert store.delete_from_history(first.id) is True
    assert store.delete_from_history("missing") is False
    assert [m.id for m in store.load_history()] == [second.id]


def test_clear_history(store):
    store.save_to_history(started_match(create_engine()))

    store.clear_history()

    assert store.load_history() == []


def test_unreadable_history_entries_are_skipped(store):
    good = started_match(create_engine())
    store.save_to_history(good)

    data = json.loads(store.history_path.read_text(encoding="utf-8"))
    data.append({"id": "broken"})
    store.history_path.write_text(json.dumps(data), encoding="utf-8")

    assert [m.id for m in store.load_history()] == [good.id]


def test_history_that_is_not_a_list_is_ignored(store):
    store.history_path.write_text(json.dumps({"matches": []}), encoding="utf-8")

    assert store.load_history() == []


def test_archiving_same_match_replaces_entry(store):
    engine = create_engine()
    first = started_match(engine)
    other = started_match(engine)
    store.save_to_history(first)
    store.save_to_history(other)

    store.save_to_history(engine.apply_point(first, Side.RIGHT))

    history = store.load_history()

    assert [m.id for m in history] == [first.id, other.id]
    assert len(history[0].point_history) == 4
