# survivor_pool/services/weeks.py
from __future__ import annotations

from typing import List, Tuple

__all__ = [
    "REGULAR_SEASON_WEEKS",
    "SEASON_TYPE_REGULAR",
    "SEASON_TYPE_POSTSEASON",
    "POSTSEASON_ROUNDS",
    "LAST_WEEK",
    "to_espn_week",
    "to_app_week",
    "weeks_range",
    "week_label",
]

# ---------------------------------------------------------------------------
# App week numbering
# - Weeks 1..18 are the regular season (ESPN seasontype=2, same week number)
# - Weeks 19..22 are the postseason (ESPN seasontype=3, rounds 1..4)
# ---------------------------------------------------------------------------

REGULAR_SEASON_WEEKS = 18
SEASON_TYPE_REGULAR = 2
SEASON_TYPE_POSTSEASON = 3

POSTSEASON_ROUNDS = {
    19: "Wild Card",
    20: "Divisional",
    21: "Conference",
    22: "Super Bowl",
}
LAST_WEEK = max(POSTSEASON_ROUNDS)


def to_espn_week(week: int) -> Tuple[int, int]:
    """
    App week -> (espn_week, season_type).
    """
    if week < 1 or week > LAST_WEEK:
        raise ValueError(f"Week {week} is outside 1..{LAST_WEEK}")
    if week <= REGULAR_SEASON_WEEKS:
        return week, SEASON_TYPE_REGULAR
    return week - REGULAR_SEASON_WEEKS, SEASON_TYPE_POSTSEASON


def to_app_week(espn_week: int, season_type: int) -> int:
    """
    Inverse of to_espn_week. Preseason (type 1) collapses to week 1.
    """
    if season_type == SEASON_TYPE_POSTSEASON:
        return min(REGULAR_SEASON_WEEKS + espn_week, LAST_WEEK)
    if season_type == SEASON_TYPE_REGULAR:
        return max(1, min(espn_week, REGULAR_SEASON_WEEKS))
    return 1


def weeks_range(start: int, end: int) -> List[int]:
    """
    Inclusive list of weeks from start..end (empty when end < start).
    """
    return list(range(start, end + 1))


def week_label(week: int) -> str:
    return POSTSEASON_ROUNDS.get(week, f"Week {week}")
