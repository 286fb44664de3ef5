import time
import uuid
from dataclasses import replace
from typing import Callable, Optional

from tennis_score.config import (
    DEFAULT_SETS_TO_WIN,
    GAMES_PER_SET,
    MIN_MARGIN,
    POINTS_TO_WIN_GAME,
    TIEBREAK_POINTS,
)
from tennis_score.display import format_minute, get_point_display
from tennis_score.models import (
    MatchState,
    MatchStats,
    Player,
    PointEvent,
    PointStat,
    Score,
    Side,
    Team,
)
from tennis_score.timeline import replay_points

Clock = Callable[[], int]
IdFactory = Callable[[], str]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return uuid.uuid4().hex


def _primary_name(name: str) -> str:
    # "A / B" comes from the doubles entry form; only player one is kept.
    if " / " in name:
        return name.split(" / ")[0]
    return name


class ScoreEngine:
    """
    Tennis score engine.

    Responsibilities:
    - Apply points to an immutable MatchState
    - Handle game, set, tiebreak and match lifecycle
    - Undo the last point by replaying the point history
    - Remain deterministic: time and ids come from injected callables

    Every public method returns a new MatchState; the input is never
    modified. Invalid calls (finished or unstarted match, empty history)
    return the state unchanged.
    """

    def __init__(self, clock: Optional[Clock] = None, id_factory: Optional[IdFactory] = None):
        self.clock = clock or wall_clock_ms
        self.id_factory = id_factory or new_id

    # =========================================================
    # LIFECYCLE
    # =========================================================

    def create_match(
        self,
        left_name: str,
        right_name: str,
        sets_to_win: int = DEFAULT_SETS_TO_WIN,
    ) -> MatchState:
        return MatchState(
            id=self.id_factory(),
            left_team=Team(player1=Player(_primary_name(left_name))),
            right_team=Team(player1=Player(_primary_name(right_name))),
            sets_to_win=sets_to_win,
            games_per_set=GAMES_PER_SET,
        )

    def start_match(self, state: MatchState) -> MatchState:
        if state.is_match_started or state.is_match_finished:
            return state

        return replace(state, is_match_started=True, match_start_time=self.clock())

    def update_elapsed(self, state: MatchState, elapsed_ms: int) -> MatchState:
        return replace(state, elapsed_time=elapsed_ms)

    def rename_teams(self, state: MatchState, left_name: str, right_name: str) -> MatchState:
        return replace(
            state,
            left_team=replace(state.left_team, player1=Player(left_name or "Player 1")),
            right_team=replace(state.right_team, player1=Player(right_name or "Player 2")),
        )

    # =========================================================
    # PUBLIC API
    # =========================================================

    def apply_point(self, state: MatchState, side: Side) -> MatchState:
        """
        Award one point to `side` and return the resulting state.
        """
        side = Side(side)

        if state.is_match_finished or not state.is_match_started:
            return state

        state = replace(
            state,
            point_history=state.point_history + (self._build_event(state, side),),
        )

        if state.is_tiebreak:
            return self._apply_tiebreak_point(state, side)

        return self._apply_game_point(state, side)

    def undo_last_point(self, state: MatchState) -> MatchState:
        """
        Remove the last point by rebuilding the match from scratch.

        Only the primary player names and sets_to_win survive the rebuild;
        doubles partners and team colors are not carried over.
        """
        if not state.point_history or not state.is_match_started:
            return state

        history = state.point_history[:-1]

        base = self.create_match(
            state.left_team.player1.name,
            state.right_team.player1.name,
            state.sets_to_win,
        )
        base = replace(
            base,
            id=state.id,
            is_match_started=True,
            match_start_time=state.match_start_time,
            elapsed_time=state.elapsed_time,
        )

        rebuilt = replay_points(self, base, [event.side for event in history])

        # Keep the recorded events, not the ones produced by the replay.
        return replace(rebuilt, point_history=history)

    def compute_stats(self, state: MatchState) -> MatchStats:
        history = state.point_history

        return MatchStats(
            total_points=len(history),
            left_points=sum(1 for p in history if p.side is Side.LEFT),
            right_points=sum(1 for p in history if p.side is Side.RIGHT),
            points_by_minute=tuple(
                PointStat(event=p, minute=format_minute(p.timestamp or 0))
                for p in history
            ),
        )

    # =========================================================
    # EVENT LOG
    # =========================================================

    def _build_event(self, state: MatchState, side: Side) -> PointEvent:
        score = state.tiebreak_score if state.is_tiebreak else state.game_score

        return PointEvent(
            id=self.id_factory(),
            side=side,
            timestamp=state.elapsed_time,
            game_score=(
                get_point_display(score.left, score.right, state.is_tiebreak),
                get_point_display(score.right, score.left, state.is_tiebreak),
            ),
            set_score=state.current_set_score,
        )

    # =========================================================
    # GAME LOGIC
    # =========================================================

    def _apply_game_point(self, state: MatchState, side: Side) -> MatchState:
        game_score = state.game_score.incremented(side)

        if not self._is_game_won(game_score, side):
            return replace(state, game_score=game_score)

        state = self._add_game(state, side)
        state = replace(state, game_score=Score())
        set_score = state.current_set_score

        if set_score.left == state.games_per_set and set_score.right == state.games_per_set:
            return replace(state, is_tiebreak=True, tiebreak_score=Score())

        if self._is_set_won(set_score, side, state.games_per_set):
            return self._finalize_set(state, side)

        return state

    @staticmethod
    def _is_game_won(game_score: Score, side: Side) -> bool:
        return (
            game_score.get(side) >= POINTS_TO_WIN_GAME
            and game_score.margin(side) >= MIN_MARGIN
        )

    # =========================================================
    # TIEBREAK LOGIC
    # =========================================================

    def _apply_tiebreak_point(self, state: MatchState, side: Side) -> MatchState:
        tiebreak_score = state.tiebreak_score.incremented(side)

        if not (
            tiebreak_score.get(side) >= TIEBREAK_POINTS
            and tiebreak_score.margin(side) >= MIN_MARGIN
        ):
            return replace(state, tiebreak_score=tiebreak_score)

        # The tiebreak counts as one game: the set ends 7-6.
        state = self._add_game(state, side)
        state = self._finalize_set(state, side)

        return replace(
            state,
            is_tiebreak=False,
            tiebreak_score=Score(),
            game_score=Score(),
        )

    # =========================================================
    # SET LOGIC
    # =========================================================

    @staticmethod
    def _add_game(state: MatchState, side: Side) -> MatchState:
        sets = list(state.sets)
        sets[state.current_set] = sets[state.current_set].incremented(side)
        return replace(state, sets=tuple(sets))

    @staticmethod
    def _is_set_won(set_score: Score, side: Side, games_per_set: int) -> bool:
        return set_score.get(side) >= games_per_set and set_score.margin(side) >= MIN_MARGIN

    def _finalize_set(self, state: MatchState, side: Side) -> MatchState:
        if self._count_sets(state, side) >= state.sets_to_win:
            return replace(
                state,
                is_match_finished=True,
                winner=side,
                match_end_time=self.clock(),
            )

        # Prepare next set
        return replace(
            state,
            sets=state.sets + (Score(),),
            current_set=state.current_set + 1,
        )

    # =========================================================
    # MATCH LOGIC
    # =========================================================

    @staticmethod
    def _count_sets(state: MatchState, side: Side) -> int:
        return sum(
            1
            for s in state.sets
            if s.get(side) > s.get(side.opponent) and s.get(side) >= state.games_per_set
        )


default_engine = ScoreEngine()


def create_match(left_name: str, right_name: str, sets_to_win: int = DEFAULT_SETS_TO_WIN) -> MatchState:
    return default_engine.create_match(left_name, right_name, sets_to_win)


def start_match(state: MatchState) -> MatchState:
    return default_engine.start_match(state)


def apply_point(state: MatchState, side: Side) -> MatchState:
    return default_engine.apply_point(state, side)


def undo_last_point(state: MatchState) -> MatchState:
    return default_engine.undo_last_point(state)


def compute_stats(state: MatchState) -> MatchStats:
    return default_engine.compute_stats(state)


def update_elapsed(state: MatchState, elapsed_ms: int) -> MatchState:
    return default_engine.update_elapsed(state, elapsed_ms)


def rename_teams(state: MatchState, left_name: str, right_name: str) -> MatchState:
    return default_engine.rename_teams(state, left_name, right_name)
