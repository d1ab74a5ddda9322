# survivor_pool/logic/standings.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List

from .. import schemas
from .results import Schedule, effective_status, effective_strikes, group_picks_by_week
from .rules import is_double_pick_week
from .visibility import visible_picks

__all__ = ["standings_sort_key", "sort_standings", "build_standings"]


def standings_sort_key(strikes: int, display_name: str) -> tuple[int, str]:
    return strikes, (display_name or "").casefold()


def sort_standings(
    rows: Iterable,
    league,
    target_week: int,
    schedule: Schedule,
    picks_by_member: Dict[int, List] | None = None,
) -> List:
    """
    Order members by effective strikes (fewest first), then by display name
    ignoring case. `rows` are LeagueMember-like objects; `picks_by_member`
    maps member id -> that member's picks (defaults to member.picks).

    sorted() is stable, so rows with equal keys keep their input order and
    repeated calls over unchanged input return the same sequence.
    """

    def _key(member):
        if picks_by_member is None:
            member_picks = list(member.picks)
        else:
            member_picks = picks_by_member.get(member.id, [])
        strikes = effective_strikes(member, league, target_week, member_picks, schedule)
        return standings_sort_key(strikes, member.display_name)

    return sorted(rows, key=_key)


def build_standings(
    league,
    members: Iterable,
    picks: Iterable,
    schedule: Schedule,
    target_week: int,
    viewer_user_id: int | None,
    now: datetime,
) -> List[schemas.StandingRow]:
    """
    Full standings table for one target week: effective strikes/status per
    member and every week's picks from start_week..target_week filtered
    for the viewer.
    """
    picks_by_member: Dict[int, List] = {}
    for p in picks:
        if p.week > target_week:
            continue
        picks_by_member.setdefault(p.member_id, []).append(p)

    # deterministic input order before the stable sort
    ordered = sort_standings(
        sorted(members, key=lambda m: m.id), league, target_week, schedule, picks_by_member
    )

    rows: List[schemas.StandingRow] = []
    for member in ordered:
        member_picks = picks_by_member.get(member.id, [])
        by_week = group_picks_by_week(member_picks)
        is_me = viewer_user_id is not None and member.user_id == viewer_user_id

        weeks: List[schemas.WeekCell] = []
        for week in range(league.start_week, target_week + 1):
            week_picks = by_week.get(week, [])
            cells = visible_picks(week_picks, week, target_week, is_me, schedule.get(week) or {}, now)
            weeks.append(
                schemas.WeekCell(
                    week=week,
                    is_double_pick=is_double_pick_week(league, week),
                    status="picked" if cells else "no_pick",
                    picks=cells,
                )
            )

        strikes = effective_strikes(member, league, target_week, member_picks, schedule)
        rows.append(
            schemas.StandingRow(
                member_id=member.id,
                user_id=member.user_id,
                display_name=member.display_name,
                strikes=member.strikes,
                effective_strikes=strikes,
                status=member.status,
                effective_status=effective_status(member, league, strikes),
                has_paid=bool(member.has_paid),
                is_me=is_me,
                weeks=weeks,
            )
        )

    return rows
