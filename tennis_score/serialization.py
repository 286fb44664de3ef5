from typing import Any, Dict, Optional

from tennis_score.config import SCHEMA_VERSION
from tennis_score.exceptions import InvalidSideError, MatchValidationError
from tennis_score.models import MatchState, Player, PointEvent, Score, Side, Team

REQUIRED_FIELDS = {
    "id",
    "leftTeam",
    "rightTeam",
    "gameScore",
    "sets",
    "currentSet",
    "pointHistory",
    "setsToWin",
}


# =============================================================================
# MatchState -> dict
# =============================================================================

def _score_to_dict(score: Score) -> Dict[str, int]:
    return {"left": score.left, "right": score.right}


def _team_to_dict(team: Team) -> Dict[str, Any]:
    d: Dict[str, Any] = {"player1": {"name": team.player1.name}}
    if team.player2 is not None:
        d["player2"] = {"name": team.player2.name}
    if team.color is not None:
        d["color"] = team.color
    return d


def _event_to_dict(event: PointEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "team": event.side.value,
        "timestamp": event.timestamp,
        "gameScore": {"left": event.game_score[0], "right": event.game_score[1]},
        "setScore": _score_to_dict(event.set_score),
    }


def match_to_dict(state: MatchState) -> Dict[str, Any]:
    d = {
        "schemaVersion": SCHEMA_VERSION,
        "id": state.id,
        "leftTeam": _team_to_dict(state.left_team),
        "rightTeam": _team_to_dict(state.right_team),
        "gameScore": _score_to_dict(state.game_score),
        "sets": [_score_to_dict(s) for s in state.sets],
        "currentSet": state.current_set,
        "isMatchStarted": state.is_match_started,
        "isMatchFinished": state.is_match_finished,
        "matchStartTime": state.match_start_time,
        "matchEndTime": state.match_end_time,
        "elapsedTime": state.elapsed_time,
        "pointHistory": [_event_to_dict(e) for e in state.point_history],
        "winner": state.winner.value if state.winner is not None else None,
        "setsToWin": state.sets_to_win,
        "gamesPerSet": state.games_per_set,
        "isTiebreak": state.is_tiebreak,
        "tiebreakScore": _score_to_dict(state.tiebreak_score),
    }
    if state.finished_at is not None:
        d["finishedAt"] = state.finished_at
    return d


# =============================================================================
# dict -> MatchState (schema-checked)
# =============================================================================

def _side(value: Any) -> Side:
    try:
        return Side(value)
    except ValueError:
        raise InvalidSideError(f"Invalid side: {value!r}") from None


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _score_from_dict(d: Any, name: str) -> Score:
    if not isinstance(d, dict) or "left" not in d or "right" not in d:
        raise MatchValidationError(f"{name} must contain left and right")

    left, right = int(d["left"]), int(d["right"])
    if left < 0 or right < 0:
        raise MatchValidationError(f"{name} must be non-negative")
    return Score(left=left, right=right)


def _team_from_dict(d: Any, name: str) -> Team:
    if not isinstance(d, dict):
        raise MatchValidationError(f"{name} must be an object")

    player1 = d.get("player1") or {}
    if not player1.get("name"):
        raise MatchValidationError(f"{name}.player1.name is required")

    player2 = d.get("player2")
    return Team(
        player1=Player(str(player1["name"])),
        player2=Player(str(player2.get("name", ""))) if player2 else None,
        color=d.get("color"),
    )


def _event_from_dict(d: Dict[str, Any]) -> PointEvent:
    if "team" not in d:
        raise MatchValidationError("point event is missing team")

    game_score = d.get("gameScore") or {}
    return PointEvent(
        id=str(d.get("id", "")),
        side=_side(d["team"]),
        timestamp=int(d.get("timestamp") or 0),
        game_score=(str(game_score.get("left", "0")), str(game_score.get("right", "0"))),
        set_score=_score_from_dict(d.get("setScore", {"left": 0, "right": 0}), "setScore"),
    )


def validate_schema(data: Dict[str, Any]) -> None:
    missing = REQUIRED_FIELDS - set(data.keys())
    if missing:
        raise MatchValidationError(f"Missing field(s): {sorted(missing)}")

    version = data.get("schemaVersion", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise MatchValidationError(f"Unsupported schemaVersion: {version}")

    if not isinstance(data["sets"], list) or not data["sets"]:
        raise MatchValidationError("sets must be a non-empty list")

    if not isinstance(data["pointHistory"], list):
        raise MatchValidationError("pointHistory must be list")

    if len(data["sets"]) != int(data["currentSet"]) + 1:
        raise MatchValidationError("sets must hold exactly currentSet + 1 entries")

    if bool(data.get("isMatchFinished")) != (data.get("winner") is not None):
        raise MatchValidationError("winner must be set iff the match is finished")

    if data.get("isTiebreak"):
        game_score = data["gameScore"]
        if int(game_score.get("left", 0)) or int(game_score.get("right", 0)):
            raise MatchValidationError("gameScore must be 0-0 during a tiebreak")


def match_from_dict(data: Dict[str, Any]) -> MatchState:
    """
    Build a MatchState from its stored form.

    Raises MatchValidationError when required fields are missing or the
    invariants of a match do not hold, so partially populated data never
    reaches the engine.
    """
    if not isinstance(data, dict):
        raise MatchValidationError("match must be an object")

    try:
        validate_schema(data)
        winner = data.get("winner")

        return MatchState(
            id=str(data["id"]),
            left_team=_team_from_dict(data["leftTeam"], "leftTeam"),
            right_team=_team_from_dict(data["rightTeam"], "rightTeam"),
            sets_to_win=int(data["setsToWin"]),
            game_score=_score_from_dict(data["gameScore"], "gameScore"),
            sets=tuple(_score_from_dict(s, "sets[]") for s in data["sets"]),
            current_set=int(data["currentSet"]),
            is_match_started=bool(data.get("isMatchStarted", False)),
            is_match_finished=bool(data.get("isMatchFinished", False)),
            match_start_time=_optional_int(data.get("matchStartTime")),
            match_end_time=_optional_int(data.get("matchEndTime")),
            elapsed_time=int(data.get("elapsedTime") or 0),
            point_history=tuple(_event_from_dict(e) for e in data["pointHistory"]),
            winner=_side(winner) if winner is not None else None,
            games_per_set=int(data.get("gamesPerSet", 6)),
            is_tiebreak=bool(data.get("isTiebreak", False)),
            tiebreak_score=_score_from_dict(
                data.get("tiebreakScore", {"left": 0, "right": 0}), "tiebreakScore"
            ),
            finished_at=_optional_int(data.get("finishedAt")),
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise MatchValidationError(f"Malformed match data: {e}") from e
