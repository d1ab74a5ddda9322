# survivor_pool/logic/results.py
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping

from ..models import MemberStatus, PickResult
from ..services.schedule import Game, GameState

__all__ = [
    "Schedule",
    "resolve_effective_result",
    "slot_of",
    "group_picks_by_week",
    "newly_lost_picks",
    "effective_strikes",
    "effective_status",
]

# week -> team_id -> Game
Schedule = Mapping[int, Mapping[str, Game]]


def resolve_effective_result(stored_result: PickResult, team_id: str, game: Game | None) -> PickResult:
    """
    Stored terminal results are authoritative. Otherwise derive the outcome
    from the live game: only a final game resolves, and a tie is a loss.
    """
    if stored_result in (PickResult.WIN, PickResult.LOSS):
        return stored_result
    if game is None or game.status != GameState.FINAL or not game.involves(team_id):
        return PickResult.PENDING

    ours = game.score_for(team_id)
    theirs = game.score_for(game.opponent_of(team_id))
    if ours > theirs:
        return PickResult.WIN
    return PickResult.LOSS


def slot_of(pick) -> int:
    """Legacy rows carry no pick_number; they occupy slot 1."""
    return pick.pick_number or 1


def group_picks_by_week(picks: Iterable) -> Dict[int, List]:
    """
    week -> picks for that week ordered by slot. Every consumer sees a list
    of one or two picks whatever shape the row was stored in.
    """
    grouped: Dict[int, List] = defaultdict(list)
    for p in picks:
        grouped[p.week].append(p)
    for week_picks in grouped.values():
        week_picks.sort(key=slot_of)
    return dict(grouped)


def newly_lost_picks(picks: Iterable, schedule: Schedule, start_week: int, target_week: int) -> List:
    """
    Picks still stored as pending whose game has already been lost.
    """
    by_week = group_picks_by_week(picks)
    out: List = []
    for week in range(start_week, target_week + 1):
        games = schedule.get(week) or {}
        for p in by_week.get(week, []):
            if p.result != PickResult.PENDING:
                continue
            if resolve_effective_result(p.result, p.team_id, games.get(p.team_id)) == PickResult.LOSS:
                out.append(p)
    return out


def effective_strikes(member, league, target_week: int, picks: Iterable, schedule: Schedule) -> int:
    """
    Stored strikes plus one per pending pick that has effectively lost.
    Stored losses are already counted in member.strikes. The total is not
    capped at league.max_strikes. Missing schedule data adds nothing.
    """
    extra = newly_lost_picks(picks, schedule, league.start_week, target_week)
    return (member.strikes or 0) + len(extra)


def effective_status(member, league, strikes: int) -> MemberStatus:
    if member.status == MemberStatus.ELIMINATED or strikes >= league.max_strikes:
        return MemberStatus.ELIMINATED
    return MemberStatus.ACTIVE
