from typing import Iterable, List

from tennis_score.config import DEFAULT_SETS_TO_WIN
from tennis_score.models import MatchState, Side


def replay_points(engine, base: MatchState, sides: Iterable[Side]) -> MatchState:
    """
    Apply `sides` to `base` in order and return the final state.
    """
    state = base
    for side in sides:
        state = engine.apply_point(state, side)
    return state


def build_match_timeline(
    sides: Iterable[Side],
    sets_to_win: int = DEFAULT_SETS_TO_WIN,
    engine=None,
    left_name: str = "Player 1",
    right_name: str = "Player 2",
) -> List[MatchState]:
    """
    Replays a match from scratch using a sequence of point winners.
    Returns the state after each point, stopping once the match is won.
    Does NOT mutate external state.
    """
    if engine is None:
        from tennis_score.engine import ScoreEngine
        engine = ScoreEngine()

    state = engine.create_match(left_name, right_name, sets_to_win)
    state = engine.start_match(state)

    timeline: List[MatchState] = []

    for side in sides:
        state = engine.apply_point(state, side)
        timeline.append(state)

        if state.is_match_finished:
            break

    return timeline
