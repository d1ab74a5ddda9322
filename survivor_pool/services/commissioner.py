# survivor_pool/services/commissioner.py
from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import InvalidArgument
from ..logic.results import resolve_effective_result
from ..logic.rules import (
    MAX_START_WEEK,
    MAX_STRIKES,
    MIN_START_WEEK,
    MIN_STRIKES,
    normalize_double_pick_weeks,
    valid_max_strikes,
    valid_start_week,
)
from .picks import (
    check_team_unused,
    check_week_and_slot,
    integrity_conflict,
    picks_for_member,
    slot_pick,
    write_pick,
)
from .schedule import ScheduleSource, load_week_schedule
from .weeks import REGULAR_SEASON_WEEKS

logger = logging.getLogger("survivor_pool.commissioner")

__all__ = [
    "apply_strikes",
    "record_action",
    "set_member_pick",
    "set_member_strikes",
    "set_member_paid",
    "update_settings",
    "action_log",
]


def apply_strikes(member: models.LeagueMember, league: models.League, strikes: int) -> None:
    """Set stored strikes and keep status in step with the league cap."""
    member.strikes = max(0, strikes)
    if member.strikes >= league.max_strikes:
        member.status = models.MemberStatus.ELIMINATED
    else:
        member.status = models.MemberStatus.ACTIVE


def record_action(
    db: Session,
    league: models.League,
    actor: models.User,
    action: models.AuditAction,
    member: models.LeagueMember | None = None,
    week: int | None = None,
    team_id: str | None = None,
    reason: str | None = None,
) -> models.CommissionerAction | None:
    """
    Append an audit entry in its own transaction. The change being audited
    is already committed; a failed audit write is logged, never raised.
    """
    entry = models.CommissionerAction(
        league_id=league.id,
        performed_by=actor.id,
        action=action,
        target_user_id=member.user_id if member else None,
        target_user_name=member.display_name if member else None,
        week=week,
        team_id=team_id,
        reason=reason,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("audit write failed league=%s action=%s err=%s", league.id, action.value, exc)
        return None
    return entry


def set_member_pick(
    db: Session,
    source: ScheduleSource,
    commissioner: models.User,
    league: models.League,
    member: models.LeagueMember,
    week: int,
    team_id: str,
    pick_number: int = 1,
    reason: str | None = None,
) -> models.Pick:
    """
    Set or correct a member's pick at any time. Kickoff lock and bye checks
    do not apply; week/slot and team-reuse rules do. When the game is
    already final the result is stored immediately and the member's strikes
    move with it in the same transaction.
    """
    team_id = str(team_id)

    check_week_and_slot(league, week, pick_number)
    existing = picks_for_member(db, member)
    check_team_unused(existing, week, team_id, pick_number)

    games = load_week_schedule(source, league.season, week, strict=True)
    game = games.get(team_id)
    result = resolve_effective_result(models.PickResult.PENDING, team_id, game)

    slot = slot_pick(existing, week, pick_number)
    previous = slot.result if slot is not None else models.PickResult.PENDING

    pick, _ = write_pick(
        db, member, slot, week, team_id, pick_number, game.game_id if game else None, result
    )

    delta = 0
    if result == models.PickResult.LOSS and previous != models.PickResult.LOSS:
        delta = 1
    elif previous == models.PickResult.LOSS and result != models.PickResult.LOSS:
        delta = -1
    if delta:
        apply_strikes(member, league, min(member.strikes + delta, league.max_strikes))

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise integrity_conflict(exc, team_id, week, pick_number) from exc
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(pick)
    db.refresh(member)

    logger.info(
        "commissioner pick league=%s member=%s week=%s team=%s result=%s strikes=%s",
        league.id,
        member.id,
        week,
        team_id,
        result.value,
        member.strikes,
    )
    record_action(db, league, commissioner, models.AuditAction.PICK_SET, member, week, team_id, reason)
    return pick


def set_member_strikes(
    db: Session,
    commissioner: models.User,
    league: models.League,
    member: models.LeagueMember,
    action: schemas.StrikeAction,
    week: int | None = None,
    reason: str | None = None,
) -> models.LeagueMember:
    if action == schemas.StrikeAction.ADD:
        apply_strikes(member, league, min(member.strikes + 1, league.max_strikes))
        audit = models.AuditAction.STRIKE_ADDED
    elif action == schemas.StrikeAction.REMOVE:
        apply_strikes(member, league, max(member.strikes - 1, 0))
        audit = models.AuditAction.STRIKE_REMOVED
    else:
        raise InvalidArgument('Invalid action. Use "add" or "remove"')

    db.commit()
    db.refresh(member)
    record_action(db, league, commissioner, audit, member, week, None, reason)
    return member


def set_member_paid(
    db: Session,
    commissioner: models.User,
    league: models.League,
    member: models.LeagueMember,
    has_paid: bool,
) -> models.LeagueMember:
    if bool(member.has_paid) == has_paid:
        return member
    member.has_paid = has_paid
    db.commit()
    db.refresh(member)
    record_action(
        db,
        league,
        commissioner,
        models.AuditAction.PAYMENT_CHANGED,
        member,
        reason="Marked paid" if has_paid else "Marked unpaid",
    )
    return member


def update_settings(
    db: Session,
    commissioner: models.User,
    league: models.League,
    body: schemas.LeagueSettingsUpdate,
) -> List[str]:
    """
    Apply changed settings and return a human-readable list of changes
    (empty when nothing changed).
    """
    if body.max_strikes is not None and not valid_max_strikes(body.max_strikes):
        raise InvalidArgument(f"Max strikes must be between {MIN_STRIKES} and {MAX_STRIKES}")
    if body.start_week is not None and not valid_start_week(body.start_week):
        raise InvalidArgument(f"Start week must be between {MIN_START_WEEK} and {MAX_START_WEEK}")

    changes: List[str] = []

    if body.max_strikes is not None and body.max_strikes != league.max_strikes:
        changes.append(f"Max strikes: {league.max_strikes} → {body.max_strikes}")
        league.max_strikes = body.max_strikes
        members = db.query(models.LeagueMember).filter(models.LeagueMember.league_id == league.id).all()
        for m in members:
            apply_strikes(m, league, m.strikes)

    if body.start_week is not None and body.start_week != league.start_week:
        changes.append(f"Start week: {league.start_week} → {body.start_week}")
        league.start_week = body.start_week

    if body.double_pick_weeks is not None:
        weeks = normalize_double_pick_weeks(body.double_pick_weeks)
        if weeks != sorted(league.double_pick_weeks or []):
            league.double_pick_weeks = weeks
            if not weeks:
                changes.append("Double pick weeks: disabled")
            elif len(weeks) == REGULAR_SEASON_WEEKS:
                changes.append("Double pick weeks: all weeks")
            else:
                changes.append(f"Double pick weeks: {', '.join(str(w) for w in weeks)}")

    if body.entry_fee is not None and body.entry_fee != league.entry_fee:
        changes.append(f"Entry fee: {league.entry_fee:.2f} → {body.entry_fee:.2f}")
        league.entry_fee = body.entry_fee

    if body.clear_prize_pot_override and league.prize_pot_override is not None:
        changes.append("Prize pot override: cleared")
        league.prize_pot_override = None
    elif body.prize_pot_override is not None and body.prize_pot_override != league.prize_pot_override:
        changes.append(f"Prize pot override: {body.prize_pot_override:.2f}")
        league.prize_pot_override = body.prize_pot_override

    if not changes:
        return changes

    db.commit()
    db.refresh(league)
    record_action(
        db, league, commissioner, models.AuditAction.SETTINGS_CHANGED, reason=", ".join(changes)
    )
    return changes


def action_log(db: Session, league: models.League, limit: int = 50) -> List[Tuple[models.CommissionerAction, str | None]]:
    rows = (
        db.query(models.CommissionerAction, models.User.display_name)
        .outerjoin(models.User, models.User.id == models.CommissionerAction.performed_by)
        .filter(models.CommissionerAction.league_id == league.id)
        .order_by(models.CommissionerAction.created_at.desc(), models.CommissionerAction.id.desc())
        .limit(limit)
        .all()
    )
    return [(action, name) for action, name in rows]
