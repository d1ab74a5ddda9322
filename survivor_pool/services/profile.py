# survivor_pool/services/profile.py
from __future__ import annotations

from collections import Counter
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..logic.results import slot_of
from ..logic.rules import picks_required
from .schedule import SeasonInfo

__all__ = ["pending_picks", "pick_history", "user_stats"]


def pending_picks(db: Session, user: models.User, season: SeasonInfo) -> List[schemas.PendingPick]:
    """
    Active leagues of the current season where the user is still alive and
    has not filled every slot for the current week. Leagues that start
    later are skipped.
    """
    week = season.week
    memberships = (
        db.query(models.LeagueMember, models.League)
        .join(models.League, models.League.id == models.LeagueMember.league_id)
        .filter(
            models.LeagueMember.user_id == user.id,
            models.LeagueMember.status == models.MemberStatus.ACTIVE,
            models.League.status == models.LeagueStatus.ACTIVE,
            models.League.season == season.season,
        )
        .order_by(models.League.name.asc(), models.League.id.asc())
        .all()
    )
    if not memberships:
        return []

    made: Dict[int, int] = dict(
        db.query(models.Pick.member_id, func.count(models.Pick.id))
        .filter(
            models.Pick.member_id.in_([m.id for m, _ in memberships]),
            models.Pick.week == week,
        )
        .group_by(models.Pick.member_id)
        .all()
    )

    out: List[schemas.PendingPick] = []
    for member, league in memberships:
        if week < league.start_week:
            continue
        required = picks_required(league, week)
        count = int(made.get(member.id, 0))
        if count >= required:
            continue
        out.append(
            schemas.PendingPick(
                league_id=league.id,
                league_name=league.name,
                week=week,
                start_week=league.start_week,
                picks_made=count,
                picks_required=required,
            )
        )
    return out


def pick_history(db: Session, user: models.User) -> List[schemas.LeagueHistory]:
    """Every pick the user has made, newest week first, grouped by league."""
    rows = (
        db.query(models.Pick, models.League)
        .join(models.LeagueMember, models.LeagueMember.id == models.Pick.member_id)
        .join(models.League, models.League.id == models.Pick.league_id)
        .filter(models.LeagueMember.user_id == user.id)
        .order_by(
            models.Pick.week.desc(),
            models.League.name.asc(),
            models.League.id.asc(),
            models.Pick.pick_number.asc(),
        )
        .all()
    )

    grouped: Dict[int, schemas.LeagueHistory] = {}
    for pick, league in rows:
        entry = grouped.get(league.id)
        if entry is None:
            entry = grouped[league.id] = schemas.LeagueHistory(
                league_id=league.id, league_name=league.name, season=league.season, picks=[]
            )
        entry.picks.append(
            schemas.HistoryPick(
                week=pick.week, pick_number=slot_of(pick), team_id=pick.team_id, result=pick.result
            )
        )
    return list(grouped.values())


def user_stats(db: Session, user: models.User) -> schemas.UserStats:
    results = Counter(
        dict(
            db.query(models.Pick.result, func.count(models.Pick.id))
            .join(models.LeagueMember, models.LeagueMember.id == models.Pick.member_id)
            .filter(models.LeagueMember.user_id == user.id)
            .group_by(models.Pick.result)
            .all()
        )
    )
    statuses = Counter(
        dict(
            db.query(models.LeagueMember.status, func.count(models.LeagueMember.id))
            .filter(models.LeagueMember.user_id == user.id)
            .group_by(models.LeagueMember.status)
            .all()
        )
    )

    wins = results[models.PickResult.WIN]
    losses = results[models.PickResult.LOSS]
    decided = wins + losses
    return schemas.UserStats(
        leagues_joined=sum(statuses.values()),
        total_picks=sum(results.values()),
        wins=wins,
        losses=losses,
        active_leagues=statuses[models.MemberStatus.ACTIVE],
        eliminated_leagues=statuses[models.MemberStatus.ELIMINATED],
        win_rate=round(wins / decided * 100, 1) if decided else 0.0,
    )
