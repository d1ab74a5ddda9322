# survivor_pool/services/picks.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import Conflict, Forbidden, InvalidArgument
from ..logic.results import slot_of
from ..logic.rules import PICK_SLOTS, is_double_pick_week, picks_required
from .schedule import Game, ScheduleSource, load_week_schedule
from .time_rules import utcnow
from .weeks import LAST_WEEK

logger = logging.getLogger("survivor_pool.picks")

__all__ = [
    "pick_out",
    "picks_for_member",
    "check_week_and_slot",
    "check_team_unused",
    "member_picks",
    "slot_pick",
    "write_pick",
    "integrity_conflict",
    "submit_pick",
    "available_teams",
    "members_without_picks",
]


def pick_out(p: models.Pick) -> schemas.PickOut:
    return schemas.PickOut(
        id=p.id,
        week=p.week,
        team_id=p.team_id,
        pick_number=slot_of(p),
        result=p.result,
        game_id=p.game_id,
    )


def picks_for_member(db: Session, member: models.LeagueMember) -> List[models.Pick]:
    return (
        db.query(models.Pick)
        .filter(models.Pick.league_id == member.league_id, models.Pick.member_id == member.id)
        .order_by(models.Pick.week.asc(), models.Pick.pick_number.asc())
        .all()
    )


def member_picks(db: Session, member: models.LeagueMember) -> Tuple[List[models.Pick], List[str]]:
    """The member's picks by week and slot, plus every team id already spent."""
    picks = picks_for_member(db, member)
    return picks, sorted({p.team_id for p in picks})


def slot_pick(existing: List[models.Pick], week: int, pick_number: int) -> models.Pick | None:
    for p in existing:
        if p.week == week and slot_of(p) == pick_number:
            return p
    return None


def check_week_and_slot(league: models.League, week: int, pick_number: int) -> None:
    """Rules 2 and 3: week on or after start_week, slot 2 only in double-pick weeks."""
    if week < league.start_week:
        raise InvalidArgument(f"Picks start from week {league.start_week}")
    if week > LAST_WEEK:
        raise InvalidArgument(f"Week must be between {league.start_week} and {LAST_WEEK}")
    if pick_number not in PICK_SLOTS:
        raise InvalidArgument("Pick number must be 1 or 2")
    if pick_number == 2 and not is_double_pick_week(league, week):
        raise InvalidArgument("This week only requires one pick")


def check_team_unused(existing: List[models.Pick], week: int, team_id: str, pick_number: int) -> None:
    """Rules 6 and 7: a team is spent once used in any other week or the other slot."""
    for p in existing:
        if p.team_id != team_id:
            continue
        if p.week != week:
            raise Conflict(f"Team {team_id} was already used in Week {p.week}")
    for p in existing:
        if p.week == week and p.team_id == team_id and slot_of(p) != pick_number:
            raise Conflict("Cannot pick the same team twice in one week")


def write_pick(
    db: Session,
    member: models.LeagueMember,
    slot: models.Pick | None,
    week: int,
    team_id: str,
    pick_number: int,
    game_id: str | None,
    result: models.PickResult,
) -> Tuple[models.Pick, bool]:
    if slot is not None:
        slot.team_id = team_id
        slot.game_id = game_id
        slot.result = result
        slot.pick_number = pick_number
        return slot, False
    pick = models.Pick(
        league_id=member.league_id,
        member_id=member.id,
        week=week,
        team_id=team_id,
        pick_number=pick_number,
        game_id=game_id,
        result=result,
    )
    db.add(pick)
    return pick, True


def integrity_conflict(exc: IntegrityError, team_id: str, week: int, pick_number: int) -> Conflict:
    """Name the unique rule a racing write tripped over."""
    message = str(exc.orig)
    if "uq_pick_slot" in message or "pick_number" in message:
        return Conflict(f"Pick {pick_number} for Week {week} was just submitted; refresh and try again")
    return Conflict(f"Team {team_id} is already used by this member")



def submit_pick(
    db: Session,
    source: ScheduleSource,
    member: models.LeagueMember,
    league: models.League,
    week: int,
    team_id: str,
    pick_number: int = 1,
    now: datetime | None = None,
) -> Tuple[models.Pick, Game, bool]:
    """
    Member-initiated pick. Checks run in a fixed order and the first
    failure is raised. Returns (pick, game, created).
    """
    now = now or utcnow()
    team_id = str(team_id)

    if member.status == models.MemberStatus.ELIMINATED:
        raise Forbidden("You have been eliminated from this league")
    check_week_and_slot(league, week, pick_number)

    games = load_week_schedule(source, league.season, week, strict=True)
    game = games.get(team_id)
    if game is None or game.is_tbd():
        raise InvalidArgument("This team is on bye this week")
    if game.has_started(now):
        raise Conflict("Cannot pick a team whose game has already started")

    existing = picks_for_member(db, member)
    slot = slot_pick(existing, week, pick_number)
    if slot is not None and slot.team_id != team_id:
        current_game = games.get(slot.team_id)
        if current_game is not None and current_game.has_started(now):
            raise Conflict("Cannot change pick after game has started")

    check_team_unused(existing, week, team_id, pick_number)

    pick, created = write_pick(
        db, member, slot, week, team_id, pick_number, game.game_id, models.PickResult.PENDING
    )
    try:
        db.commit()
    except IntegrityError as exc:
        # uq_pick_member_team / uq_pick_slot caught a concurrent submission
        db.rollback()
        raise integrity_conflict(exc, team_id, week, pick_number) from exc
    db.refresh(pick)

    logger.info(
        "pick %s league=%s member=%s week=%s slot=%s team=%s",
        "created" if created else "updated",
        league.id,
        member.id,
        week,
        pick_number,
        team_id,
    )
    return pick, game, created


def available_teams(
    db: Session,
    source: ScheduleSource,
    member: models.LeagueMember,
    league: models.League,
    week: int,
    now: datetime | None = None,
) -> schemas.AvailableTeams:
    now = now or utcnow()
    existing = picks_for_member(db, member)
    used_elsewhere = {p.team_id for p in existing if p.week != week}
    this_week = {p.team_id: slot_of(p) for p in existing if p.week == week}

    games = load_week_schedule(source, league.season, week, strict=True)

    teams: List[schemas.AvailableTeam] = []
    for team_id, game in games.items():
        if game.is_tbd():
            continue
        opponent = game.opponent_of(team_id)
        teams.append(
            schemas.AvailableTeam(
                team_id=team_id,
                team_name=game.team_name(team_id),
                abbreviation=game.home_abbreviation if game.is_home(team_id) else game.away_abbreviation,
                game_id=game.game_id,
                kickoff=game.kickoff,
                status=game.status,
                is_home=game.is_home(team_id),
                opponent_id=opponent,
                opponent_name=game.team_name(opponent),
                is_locked=game.has_started(now),
                is_used=team_id in used_elsewhere,
                is_picked_this_week=team_id in this_week,
                current_pick_number=this_week.get(team_id),
            )
        )
    teams.sort(key=lambda t: (t.team_name or t.team_id).casefold())

    return schemas.AvailableTeams(
        week=week,
        is_double_pick=is_double_pick_week(league, week),
        picks_required=picks_required(league, week),
        double_pick_weeks=league.double_pick_weeks or [],
        current_picks=[pick_out(p) for p in existing if p.week == week],
        teams=teams,
    )


def members_without_picks(db: Session, league: models.League, week: int) -> List[models.LeagueMember]:
    """Active members with no pick recorded for `week`."""
    picked = {
        member_id
        for (member_id,) in db.query(models.Pick.member_id)
        .filter(models.Pick.league_id == league.id, models.Pick.week == week)
        .distinct()
        .all()
    }
    members = (
        db.query(models.LeagueMember)
        .filter(
            models.LeagueMember.league_id == league.id,
            models.LeagueMember.status == models.MemberStatus.ACTIVE,
        )
        .order_by(models.LeagueMember.id.asc())
        .all()
    )
    return [m for m in members if m.id not in picked]
