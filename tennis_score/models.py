from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def opponent(self) -> "Side":
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


@dataclass(frozen=True)
class Player:
    name: str


@dataclass(frozen=True)
class Team:
    player1: Player
    player2: Optional[Player] = None  # doubles partner
    color: Optional[str] = None  # hex, e.g. "#3B82F6"


@dataclass(frozen=True)
class Score:
    """
    A (left, right) pair of counters.

    Used for the points of the current game, the games of a set and the
    points of a tiebreak.
    """
    left: int = 0
    right: int = 0

    def get(self, side: Side) -> int:
        return self.left if side is Side.LEFT else self.right

    def incremented(self, side: Side) -> "Score":
        if side is Side.LEFT:
            return replace(self, left=self.left + 1)
        return replace(self, right=self.right + 1)

    def margin(self, side: Side) -> int:
        return self.get(side) - self.get(side.opponent)


# --- EVENT LOG ---

@dataclass(frozen=True)
class PointEvent:
    id: str
    side: Side
    timestamp: int  # ms of elapsed match time
    game_score: Tuple[str, str]  # display labels (left, right) before the point
    set_score: Score


@dataclass(frozen=True)
class MatchState:
    id: str
    left_team: Team
    right_team: Team
    sets_to_win: int
    game_score: Score = Score()
    sets: Tuple[Score, ...] = (Score(),)
    current_set: int = 0
    is_match_started: bool = False
    is_match_finished: bool = False
    match_start_time: Optional[int] = None
    match_end_time: Optional[int] = None
    elapsed_time: int = 0
    point_history: Tuple[PointEvent, ...] = ()
    winner: Optional[Side] = None
    games_per_set: int = 6
    is_tiebreak: bool = False
    tiebreak_score: Score = Score()
    finished_at: Optional[int] = None

    def team(self, side: Side) -> Team:
        return self.left_team if side is Side.LEFT else self.right_team

    @property
    def current_set_score(self) -> Score:
        return self.sets[self.current_set]


# --- DERIVED VIEWS ---

@dataclass(frozen=True)
class PointStat:
    event: PointEvent
    minute: str


@dataclass(frozen=True)
class MatchStats:
    total_points: int
    left_points: int
    right_points: int
    points_by_minute: Tuple[PointStat, ...] = field(default_factory=tuple)
