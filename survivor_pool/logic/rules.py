from pydantic import BaseModel, Field

from ..services.weeks import REGULAR_SEASON_WEEKS

# ---- League configuration bounds ----
MIN_STRIKES = 1
MAX_STRIKES = 5
MIN_START_WEEK = 1
MAX_START_WEEK = REGULAR_SEASON_WEEKS

MIN_LEAGUE_NAME = 3
MIN_PASSWORD = 4

PICK_SLOTS = (1, 2)


class PoolRules(BaseModel):
    strikes_range: tuple[int, int] = Field(..., description="Allowed max_strikes values (inclusive).")
    start_week_range: tuple[int, int] = Field(..., description="Allowed start_week values (inclusive).")
    double_pick_week_range: tuple[int, int] = Field(..., description="Weeks that may require two picks.")
    ties_count_as: str = Field("loss", description="How a tied game resolves for a pick.")

    @classmethod
    def fixed(cls) -> "PoolRules":
        return cls(
            strikes_range=(MIN_STRIKES, MAX_STRIKES),
            start_week_range=(MIN_START_WEEK, MAX_START_WEEK),
            double_pick_week_range=(1, REGULAR_SEASON_WEEKS),
        )


def get_pool_rules() -> PoolRules:
    """Public accessor for the project-wide pool rules."""
    return PoolRules.fixed()


def valid_max_strikes(value: int) -> bool:
    return MIN_STRIKES <= value <= MAX_STRIKES


def valid_start_week(value: int) -> bool:
    return MIN_START_WEEK <= value <= MAX_START_WEEK


def normalize_double_pick_weeks(weeks) -> list[int]:
    """Drop anything outside the regular season, dedupe, sort."""
    if not weeks:
        return []
    out: set[int] = set()
    for w in weeks:
        try:
            w = int(w)
        except (TypeError, ValueError):
            continue
        if 1 <= w <= REGULAR_SEASON_WEEKS:
            out.add(w)
    return sorted(out)


def is_double_pick_week(league, week: int) -> bool:
    return week in (league.double_pick_weeks or [])


def picks_required(league, week: int) -> int:
    return 2 if is_double_pick_week(league, week) else 1


def prize_pot(league, paid_members: int) -> float:
    """Commissioner override wins; otherwise entry fee times paid members."""
    if league.prize_pot_override is not None:
        return float(league.prize_pot_override)
    return float(league.entry_fee or 0.0) * paid_members
