import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, List, Optional

from tennis_score.config import CURRENT_MATCH_FILE, HISTORY_FILE, HISTORY_LIMIT, get_data_dir
from tennis_score.engine import wall_clock_ms
from tennis_score.exceptions import MatchValidationError
from tennis_score.models import MatchState
from tennis_score.serialization import match_from_dict, match_to_dict

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    tmp.replace(path)


class MatchStore:
    """
    JSON file persistence for the current match and the match history.

    A snapshot that cannot be read back as a valid MatchState is discarded
    and reported as "no saved match".
    """

    def __init__(self, data_dir: Optional[Path] = None, clock: Optional[Callable[[], int]] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else get_data_dir()
        self.clock = clock or wall_clock_ms

    @property
    def match_path(self) -> Path:
        return self.data_dir / CURRENT_MATCH_FILE

    @property
    def history_path(self) -> Path:
        return self.data_dir / HISTORY_FILE

    # ---------------------------------------------------------
    # Current match
    # ---------------------------------------------------------

    def save(self, state: MatchState) -> None:
        _write_json(self.match_path, match_to_dict(state))

    def load(self) -> Optional[MatchState]:
        if not self.match_path.exists():
            return None

        try:
            return match_from_dict(_read_json(self.match_path))
        except (OSError, ValueError, MatchValidationError) as e:
            logger.warning("Invalid saved match in %s, clearing: %s", self.match_path, e)
            self.clear()
            return None

    def clear(self) -> None:
        try:
            self.match_path.unlink()
        except FileNotFoundError:
            pass

    # ---------------------------------------------------------
    # History
    # ---------------------------------------------------------

    def save_to_history(self, state: MatchState) -> MatchState:
        """
        Prepend `state` to the history, stamped with finished_at.
        Only the newest HISTORY_LIMIT matches are kept.
        """
        archived = replace(state, finished_at=self.clock())

        history = [match_to_dict(archived)]
        # Re-archiving a reopened match replaces its earlier entry.
        history.extend(match_to_dict(m) for m in self.load_history() if m.id != state.id)

        _write_json(self.history_path, history[:HISTORY_LIMIT])
        logger.info("Archived match %s (%d in history)", state.id, min(len(history), HISTORY_LIMIT))
        return archived

    def load_history(self) -> List[MatchState]:
        if not self.history_path.exists():
            return []

        try:
            data = _read_json(self.history_path)
        except (OSError, ValueError) as e:
            logger.warning("Cannot read match history %s: %s", self.history_path, e)
            return []

        if not isinstance(data, list):
            logger.warning("Match history %s is not a list, ignoring", self.history_path)
            return []

        matches: List[MatchState] = []
        for i, item in enumerate(data):
            try:
                matches.append(match_from_dict(item))
            except MatchValidationError as e:
                logger.warning("Skipping history entry %d: %s", i, e)
        return matches

    def delete_from_history(self, match_id: str) -> bool:
        history = self.load_history()
        remaining = [m for m in history if m.id != match_id]

        if len(remaining) == len(history):
            return False

        _write_json(self.history_path, [match_to_dict(m) for m in remaining])
        return True

    def clear_history(self) -> None:
        try:
            self.history_path.unlink()
        except FileNotFoundError:
            pass
