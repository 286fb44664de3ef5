import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
MATCHES_DIR = PROJECT_ROOT / "matches"

SCHEMA_VERSION = 1
DEFAULT_SETS_TO_WIN = 2
GAMES_PER_SET = 6
POINTS_TO_WIN_GAME = 4
TIEBREAK_POINTS = 7
MIN_MARGIN = 2

CURRENT_MATCH_FILE = "current_match.json"
HISTORY_FILE = "match_history.json"
HISTORY_LIMIT = 50


def get_data_dir() -> Path:
    """
    Directory holding the current match and the history files.
    TENNIS_SCORE_DATA_DIR overrides the default MATCHES_DIR.
    """
    val = (os.getenv("TENNIS_SCORE_DATA_DIR") or "").strip()
    if not val:
        return MATCHES_DIR
    return Path(val).expanduser()
