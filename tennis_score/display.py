from typing import Optional, Tuple

from tennis_score.models import MatchState, Team

POINT_DISPLAY = {0: "0", 1: "15", 2: "30", 3: "40"}


def get_point_display(points: int, opponent_points: int, is_tiebreak: bool) -> str:
    """
    Label for one side's points in the current game.

    Tiebreak points are shown as plain numbers. From 3-3 on the game is in
    deuce: level or trailing shows "40", leading shows "AD".
    """
    if is_tiebreak:
        return str(points)

    if points >= 3 and opponent_points >= 3:
        if points > opponent_points:
            return "AD"
        return "40"

    return POINT_DISPLAY.get(points, str(points))


def current_point_labels(state: MatchState) -> Tuple[str, str]:
    score = state.tiebreak_score if state.is_tiebreak else state.game_score
    return (
        get_point_display(score.left, score.right, state.is_tiebreak),
        get_point_display(score.right, score.left, state.is_tiebreak),
    )


def format_time(milliseconds: int) -> str:
    total_seconds = milliseconds // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_minute(milliseconds: int) -> str:
    return f"{milliseconds // 60000}'"


def team_display_name(team: Optional[Team]) -> str:
    if team is None:
        return "Player"
    first = team.player1.name or "Player 1"
    if team.player2 is not None and team.player2.name:
        return f"{first} / {team.player2.name}"
    return team.player1.name or "Player"


def is_doubles_match(state: Optional[MatchState]) -> bool:
    if state is None:
        return False
    return state.left_team.player2 is not None and state.right_team.player2 is not None
