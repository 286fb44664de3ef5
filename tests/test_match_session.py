import itertools

import pytest

from tennis_score.engine import ScoreEngine
from tennis_score.exceptions import NoActiveMatchError
from tennis_score.match_session import MatchSession
from tennis_score.models import Score, Side
from tennis_score.storage import MatchStore


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def make_session(tmp_path):
    counter = itertools.count(1)
    engine = ScoreEngine(clock=lambda: 2_000, id_factory=lambda: f"id-{next(counter)}")
    store = MatchStore(tmp_path, clock=lambda: 3_000)
    return MatchSession(store, engine), store


def award(session, side, count):
    for _ in range(count):
        session.point(side)
    return session.state


# ---------------------------------------------------------
# Validation branches
# ---------------------------------------------------------

@pytest.mark.parametrize("action", [
    lambda s: s.start(),
    lambda s: s.point(Side.LEFT),
    lambda s: s.undo(),
    lambda s: s.stats(),
    lambda s: s.finish(),
])
def test_transitions_require_a_match(tmp_path, action):
    session, _ = make_session(tmp_path)

    with pytest.raises(NoActiveMatchError):
        action(session)


# ---------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------

def test_new_match_is_persisted(tmp_path):
    session, store = make_session(tmp_path)

    state = session.new_match("Ana", "Bia", left_color="#3B82F6")

    assert store.load() == state
    assert state.left_team.color == "#3B82F6"
    assert state.is_match_started is False


def test_new_doubles_match(tmp_path):
    session, _ = make_session(tmp_path)

    state = session.new_match("Ana", "Bia", doubles_partners=("Carla", "Dora"))

    assert state.left_team.player2.name == "Carla"
    assert state.right_team.player2.name == "Dora"


def test_points_before_start_are_ignored(tmp_path):
    session, _ = make_session(tmp_path)
    session.new_match("Ana", "Bia")

    state = award(session, Side.LEFT, 4)

    assert state.point_history == ()
    assert state.sets == (Score(),)


def test_start_then_score(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")

    started = session.start()
    state = award(session, Side.LEFT, 4)

    assert started.match_start_time == 2_000
    assert state.sets == (Score(1, 0),)
    assert store.load() == state


def test_undo_is_persisted(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    award(session, Side.RIGHT, 2)

    state = session.undo()

    assert state.game_score == Score(0, 1)
    assert store.load() == state


def test_rename_and_tick(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()

    session.rename("Carla", "Dora")
    state = session.tick(30_000)

    assert state.left_team.player1.name == "Carla"
    assert state.elapsed_time == 30_000
    assert store.load() == state


def test_stats(tmp_path):
    session, _ = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    session.point(Side.LEFT)
    session.point(Side.RIGHT)
    session.point(Side.RIGHT)

    stats = session.stats()

    assert stats.total_points == 3
    assert stats.right_points == 2


# ---------------------------------------------------------
# Finishing
# ---------------------------------------------------------

def test_winning_point_archives_match(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()

    state = award(session, Side.LEFT, 48)

    history = store.load_history()

    assert state.is_match_finished
    assert state.finished_at == 3_000
    assert [m.id for m in history] == [state.id]


def test_points_after_finish_do_not_archive_again(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    award(session, Side.LEFT, 48)

    session.point(Side.RIGHT)

    assert len(store.load_history()) == 1


def test_finish_archives_started_match_and_clears(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    award(session, Side.LEFT, 5)

    state = session.finish()

    assert state.finished_at == 3_000
    assert session.state is None
    assert store.load() is None
    assert len(store.load_history()) == 1


def test_finish_unstarted_match_is_not_archived(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")

    session.finish()

    assert store.load_history() == []


def test_discard(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")

    session.discard()

    assert session.state is None
    assert store.load() is None


# ---------------------------------------------------------
# Resume
# ---------------------------------------------------------

def test_resume_restores_saved_match(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    saved = award(session, Side.RIGHT, 3)

    other, _ = make_session(tmp_path)

    assert other.resume() == saved
    assert other.state == saved


def test_resume_skips_finished_match(tmp_path):
    session, _ = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    finished = award(session, Side.LEFT, 48)

    other, _ = make_session(tmp_path)

    assert other.resume() is None
    assert other.resume(include_finished=True) == finished


def test_rewinning_after_undo_keeps_one_history_entry(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    award(session, Side.LEFT, 48)

    reopened = session.undo()
    assert reopened.is_match_finished is False

    state = session.point(Side.LEFT)

    assert state.is_match_finished
    assert [m.id for m in store.load_history()] == [state.id]


def test_finish_after_undo_keeps_one_history_entry(tmp_path):
    session, store = make_session(tmp_path)
    session.new_match("Ana", "Bia")
    session.start()
    award(session, Side.LEFT, 48)
    session.undo()

    state = session.finish()

    history = store.load_history()

    assert [m.id for m in history] == [state.id]
    assert history[0].is_match_finished is False


def test_rename_keeps_doubles_partners(tmp_path):
    session, _ = make_session(tmp_path)
    session.new_match("Ana", "Bia", left_color="#3B82F6", doubles_partners=("Carla", "Dora"))

    state = session.rename("Eva", "Fia")

    assert state.left_team.player1.name == "Eva"
    assert state.left_team.player2.name == "Carla"
    assert state.left_team.color == "#3B82F6"
    assert state.right_team.player2.name == "Dora"
