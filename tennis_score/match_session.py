import logging
import threading
from dataclasses import replace
from typing import Optional, Tuple

from tennis_score.config import DEFAULT_SETS_TO_WIN
from tennis_score.engine import ScoreEngine
from tennis_score.exceptions import NoActiveMatchError
from tennis_score.models import MatchState, MatchStats, Player, Side
from tennis_score.storage import MatchStore

logger = logging.getLogger(__name__)


class MatchSession:
    """
    Single local match session.

    Responsibilities:
    - Own the current MatchState
    - Serialize every transition through one lock
    - Persist the state after each transition
    - Archive the match into history when it ends
    """

    def __init__(self, store: MatchStore, engine: Optional[ScoreEngine] = None):
        self._store = store
        self._engine = engine or ScoreEngine()
        self._lock = threading.Lock()
        self._state: Optional[MatchState] = None

    @property
    def state(self) -> Optional[MatchState]:
        return self._state

    # ---------------------------------------------------------
    # Core API
    # ---------------------------------------------------------

    def new_match(
        self,
        left_name: str,
        right_name: str,
        sets_to_win: int = DEFAULT_SETS_TO_WIN,
        left_color: Optional[str] = None,
        right_color: Optional[str] = None,
        doubles_partners: Optional[Tuple[str, str]] = None,
    ) -> MatchState:
        with self._lock:
            state = self._engine.create_match(left_name, right_name, sets_to_win)

            left_team = replace(state.left_team, color=left_color)
            right_team = replace(state.right_team, color=right_color)
            if doubles_partners:
                left_team = replace(left_team, player2=Player(doubles_partners[0]))
                right_team = replace(right_team, player2=Player(doubles_partners[1]))

            return self._commit(replace(state, left_team=left_team, right_team=right_team))

    def resume(self, include_finished: bool = False) -> Optional[MatchState]:
        """
        Load the saved match, if any.
        Finished matches are skipped unless include_finished is set.
        """
        with self._lock:
            saved = self._store.load()
            if saved is not None and saved.is_match_finished and not include_finished:
                saved = None
            self._state = saved
            return saved

    def start(self) -> MatchState:
        with self._lock:
            state = self._require()
            started = self._engine.start_match(state)
            if started is not state:
                logger.info("Match %s started", started.id)
            return self._commit(started)

    def point(self, side: Side) -> MatchState:
        with self._lock:
            state = self._engine.apply_point(self._require(), side)

            if state.is_match_finished and not self._state.is_match_finished:
                logger.info("Match %s won by %s", state.id, state.winner.value)
                state = self._store.save_to_history(state)

            return self._commit(state)

    def undo(self) -> MatchState:
        with self._lock:
            state = self._require()
            undone = self._engine.undo_last_point(state)
            if undone is not state:
                logger.info("Undid point %d of match %s", len(state.point_history), state.id)
            return self._commit(undone)

    def rename(self, left_name: str, right_name: str) -> MatchState:
        with self._lock:
            return self._commit(
                self._engine.rename_teams(self._require(), left_name, right_name)
            )

    def tick(self, elapsed_ms: int) -> MatchState:
        with self._lock:
            return self._commit(self._engine.update_elapsed(self._require(), elapsed_ms))

    def stats(self) -> MatchStats:
        return self._engine.compute_stats(self._require())

    def finish(self) -> MatchState:
        """
        End the session: archive the match (if it was started) and clear it.
        """
        with self._lock:
            state = self._require()
            if state.is_match_started and not state.is_match_finished:
                state = self._store.save_to_history(state)
            self._store.clear()
            self._state = None
            return state

    def discard(self) -> None:
        with self._lock:
            self._store.clear()
            self._state = None

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------

    def _require(self) -> MatchState:
        if self._state is None:
            raise NoActiveMatchError("No active match")
        return self._state

    def _commit(self, state: MatchState) -> MatchState:
        self._state = state
        self._store.save(state)
        return state
