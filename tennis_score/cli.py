import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tennis_score.config import DEFAULT_SETS_TO_WIN
from tennis_score.display import current_point_labels, format_time, team_display_name
from tennis_score.engine import ScoreEngine
from tennis_score.exceptions import TennisScoreError
from tennis_score.match_session import MatchSession
from tennis_score.models import MatchState, Side
from tennis_score.storage import MatchStore

logger = logging.getLogger(__name__)


def render_scoreboard(state: MatchState) -> str:
    left_points, right_points = current_point_labels(state)
    left_name = team_display_name(state.left_team)
    right_name = team_display_name(state.right_team)
    width = max(len(left_name), len(right_name), 6)

    def row(name: str, side: Side, points: str) -> str:
        games = " ".join(f"{s.get(side):>2}" for s in state.sets)
        marker = "*" if state.winner is side else " "
        return f"{marker} {name:<{width}}  {games}  | {points:>3}"

    lines = [
        row(left_name, Side.LEFT, left_points),
        row(right_name, Side.RIGHT, right_points),
    ]

    if state.is_match_finished:
        status = f"Finished, won by {team_display_name(state.team(state.winner))}"
    elif not state.is_match_started:
        status = "Not started"
    elif state.is_tiebreak:
        status = f"Tiebreak, set {state.current_set + 1}"
    else:
        status = f"Set {state.current_set + 1}"

    lines.append(f"{status}  [{format_time(state.elapsed_time)}]")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tennis-score", description="Score a tennis match")
    ap.add_argument("--data-dir", type=Path, default=None, help="Directory for saved matches")
    ap.add_argument("-v", "--verbose", action="store_true")

    sub = ap.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Create a new match")
    new.add_argument("left")
    new.add_argument("right")
    new.add_argument("--sets-to-win", type=int, default=DEFAULT_SETS_TO_WIN)
    new.add_argument("--left-color")
    new.add_argument("--right-color")
    new.add_argument("--partners", nargs=2, metavar=("LEFT2", "RIGHT2"), help="Doubles partners")

    sub.add_parser("start", help="Start the match clock")

    point = sub.add_parser("point", help="Award a point")
    point.add_argument("side", choices=[s.value for s in Side])

    sub.add_parser("undo", help="Remove the last point")
    sub.add_parser("show", help="Print the scoreboard")
    sub.add_parser("stats", help="Print point statistics")

    rename = sub.add_parser("rename", help="Rename both sides")
    rename.add_argument("left")
    rename.add_argument("right")

    sub.add_parser("finish", help="Archive the match and clear it")
    sub.add_parser("discard", help="Drop the current match without archiving")
    sub.add_parser("history", help="List archived matches")

    return ap


def _print_stats(session: MatchSession) -> None:
    state = session.state
    stats = session.stats()
    print(f"Total points: {stats.total_points}")
    print(f"{team_display_name(state.left_team)}: {stats.left_points}")
    print(f"{team_display_name(state.right_team)}: {stats.right_points}")
    for p in stats.points_by_minute:
        left, right = p.event.game_score
        print(f"{p.minute:>5} {p.event.side.value:<5} ({left}-{right})")


def _print_history(store: MatchStore) -> None:
    history = store.load_history()
    if not history:
        print("No archived matches")
        return

    for m in history:
        sets = ", ".join(f"{s.left}-{s.right}" for s in m.sets)
        print(
            f"{m.id}  {team_display_name(m.left_team)} vs "
            f"{team_display_name(m.right_team)}  {sets}  [{format_time(m.elapsed_time)}]"
        )


def run(args: argparse.Namespace, engine: Optional[ScoreEngine] = None) -> int:
    engine = engine or ScoreEngine()
    store = MatchStore(args.data_dir, clock=engine.clock)
    session = MatchSession(store, engine)

    if args.command == "history":
        _print_history(store)
        return 0

    if args.command == "new":
        partners = tuple(args.partners) if args.partners else None
        state = session.new_match(
            args.left,
            args.right,
            args.sets_to_win,
            left_color=args.left_color,
            right_color=args.right_color,
            doubles_partners=partners,
        )
        print(render_scoreboard(state))
        return 0

    state = session.resume(include_finished=True)
    if state is None:
        print("No active match", file=sys.stderr)
        return 1

    # The match clock keeps running between invocations.
    if state.is_match_started and not state.is_match_finished and state.match_start_time:
        session.tick(max(0, engine.clock() - state.match_start_time))

    if args.command == "start":
        state = session.start()
    elif args.command == "point":
        state = session.point(Side(args.side))
    elif args.command == "undo":
        state = session.undo()
    elif args.command == "rename":
        state = session.rename(args.left, args.right)
    elif args.command == "stats":
        _print_stats(session)
        return 0
    elif args.command == "finish":
        state = session.finish()
        print(render_scoreboard(state))
        print("Match archived")
        return 0
    elif args.command == "discard":
        session.discard()
        print("Match discarded")
        return 0
    else:
        state = session.state

    print(render_scoreboard(state))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except TennisScoreError as e:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
