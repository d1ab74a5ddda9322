# annotations stay eager here: with_idempotency endpoints resolve them via the wrapper's globals
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user, load_league, load_member, membership_of, require_commissioner, require_member
from ..logic.rules import (
    MAX_START_WEEK,
    MAX_STRIKES,
    MIN_LEAGUE_NAME,
    MIN_PASSWORD,
    MIN_START_WEEK,
    MIN_STRIKES,
    PoolRules,
    get_pool_rules,
    normalize_double_pick_weeks,
    prize_pot,
    valid_max_strikes,
    valid_start_week,
)
from ..services import commissioner
from ..services.picks import pick_out
from ..services.schedule import ScheduleSource, get_schedule_source
from ..utils.idempotency import with_idempotency
from ..utils.passwords import hash_password, new_invite_code, verify_password

route = APIRouter(prefix="/leagues", tags=["leagues"])

_LIST_LIMIT = 50
_SEARCH_LIMIT = 20
_MIN_QUERY = 2


# ---------------- helpers ----------------


def _unique_invite_code(db: Session) -> str:
    for _ in range(10):
        code = new_invite_code()
        if not db.query(models.League.id).filter(models.League.invite_code == code).first():
            return code
    raise HTTPException(status_code=500, detail="Could not allocate an invite code")


def _member_counts(db: Session, league_ids: list[int]) -> dict[int, int]:
    if not league_ids:
        return {}
    rows = (
        db.query(models.LeagueMember.league_id, func.count(models.LeagueMember.id))
        .filter(models.LeagueMember.league_id.in_(league_ids))
        .group_by(models.LeagueMember.league_id)
        .all()
    )
    return {league_id: int(n) for league_id, n in rows}


def _summaries(db: Session, leagues: list[models.League]) -> list[schemas.LeagueSummary]:
    counts = _member_counts(db, [l.id for l in leagues])
    return [
        schemas.LeagueSummary(
            id=l.id,
            name=l.name,
            season=l.season,
            max_strikes=l.max_strikes,
            start_week=l.start_week,
            member_count=counts.get(l.id, 0),
            commissioner_name=l.commissioner.display_name if l.commissioner else "Unknown",
            has_password=bool(l.password_hash),
        )
        for l in leagues
    ]


def _member_out(member: models.LeagueMember, viewer: models.User) -> schemas.MemberOut:
    return schemas.MemberOut(
        id=member.id,
        user_id=member.user_id,
        display_name=member.display_name,
        strikes=member.strikes,
        status=member.status,
        has_paid=bool(member.has_paid),
        joined_at=member.joined_at,
        is_me=member.user_id == viewer.id,
    )


# ---------------- routes ----------------


@route.get("/rules", response_model=PoolRules)
def read_pool_rules():
    return get_pool_rules()


@route.post("/", response_model=schemas.LeagueOut)
def create_league(
    body: schemas.LeagueCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    name = body.name.strip()
    if len(name) < MIN_LEAGUE_NAME:
        raise HTTPException(status_code=400, detail=f"League name must be at least {MIN_LEAGUE_NAME} characters")
    if len(body.password) < MIN_PASSWORD:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD} characters")
    if not valid_max_strikes(body.max_strikes):
        raise HTTPException(status_code=400, detail=f"Max strikes must be between {MIN_STRIKES} and {MAX_STRIKES}")
    if not valid_start_week(body.start_week):
        raise HTTPException(
            status_code=400, detail=f"Start week must be between {MIN_START_WEEK} and {MAX_START_WEEK}"
        )

    league = models.League(
        name=name,
        password_hash=hash_password(body.password),
        commissioner_id=user.id,
        season=source.get_current_season().season,
        max_strikes=body.max_strikes,
        start_week=body.start_week,
        double_pick_weeks=normalize_double_pick_weeks(body.double_pick_weeks),
        entry_fee=body.entry_fee,
        prize_pot_override=body.prize_pot_override,
        invite_code=_unique_invite_code(db),
    )
    db.add(league)
    db.flush()
    # commissioner is the first member
    db.add(models.LeagueMember(league_id=league.id, user_id=user.id))
    db.commit()
    db.refresh(league)
    return schemas.LeagueOut.model_validate(league)


@route.get("/invite/{invite_code}", response_model=schemas.LeagueSummary)
def preview_by_invite(invite_code: str, db: Session = Depends(get_db)):
    league = (
        db.query(models.League)
        .filter(
            func.upper(models.League.invite_code) == invite_code.strip().upper(),
            models.League.status == models.LeagueStatus.ACTIVE,
        )
        .first()
    )
    if not league:
        raise HTTPException(status_code=404, detail="League not found or invite code is invalid")
    return _summaries(db, [league])[0]


@route.get("/available", response_model=list[schemas.LeagueSummary])
def list_available(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    joined = select(models.LeagueMember.league_id).where(models.LeagueMember.user_id == user.id)
    leagues = (
        db.query(models.League)
        .filter(models.League.status == models.LeagueStatus.ACTIVE, ~models.League.id.in_(joined))
        .order_by(models.League.id.asc())
        .all()
    )
    rows = _summaries(db, leagues)
    # busiest first; sorted() keeps id order among equals
    rows = sorted(rows, key=lambda r: -r.member_count)
    return rows[:_LIST_LIMIT]


@route.get("/search", response_model=list[schemas.LeagueSummary])
def search_leagues(
    query: str = Query(""),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    q = query.strip()
    if len(q) < _MIN_QUERY:
        raise HTTPException(status_code=400, detail=f"Search query must be at least {_MIN_QUERY} characters")
    leagues = (
        db.query(models.League)
        .filter(models.League.name.ilike(f"%{q}%"), models.League.status == models.LeagueStatus.ACTIVE)
        .order_by(models.League.id.asc())
        .limit(_SEARCH_LIMIT)
        .all()
    )
    return _summaries(db, leagues)


@route.post("/{league_id}/join", response_model=schemas.MemberOut)
def join_league(
    league_id: int,
    body: schemas.JoinLeague,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    league = load_league(db, league_id)
    if league.status != models.LeagueStatus.ACTIVE:
        raise HTTPException(status_code=400, detail="This league is no longer active")
    if not verify_password(body.password, league.password_hash):
        raise HTTPException(status_code=400, detail="Incorrect password")
    if membership_of(db, league.id, user.id):
        raise HTTPException(status_code=400, detail="You are already a member of this league")

    member = models.LeagueMember(league_id=league.id, user_id=user.id)
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="You are already a member of this league")
    db.refresh(member)
    return _member_out(member, user)


@route.get("/{league_id}", response_model=schemas.LeagueDetail)
def get_league(
    league_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    league = load_league(db, league_id)
    me = require_member(db, league, user)

    members = (
        db.query(models.LeagueMember)
        .filter(models.LeagueMember.league_id == league.id)
        .order_by(models.LeagueMember.joined_at.asc(), models.LeagueMember.id.asc())
        .all()
    )
    paid = sum(1 for m in members if m.has_paid)

    base = schemas.LeagueOut.model_validate(league).model_dump()
    return schemas.LeagueDetail(
        **base,
        commissioner_name=league.commissioner.display_name if league.commissioner else "Unknown",
        is_commissioner=league.commissioner_id == user.id,
        prize_pot=prize_pot(league, paid),
        paid_count=paid,
        my_strikes=me.strikes,
        my_status=me.status,
        members=[_member_out(m, user) for m in members],
    )


@route.put("/{league_id}/settings", response_model=schemas.Ok)
def update_league_settings(
    league_id: int,
    body: schemas.LeagueSettingsUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    league = load_league(db, league_id)
    require_commissioner(league, user, "update settings")
    changes = commissioner.update_settings(db, user, league, body)
    if not changes:
        return schemas.Ok(message="No changes")
    return schemas.Ok(message="Settings updated: " + ", ".join(changes))


@route.post("/{league_id}/regenerate-invite", response_model=schemas.InviteCodeOut)
def regenerate_invite(
    league_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    league = load_league(db, league_id)
    require_commissioner(league, user, "regenerate the invite code")
    league.invite_code = _unique_invite_code(db)
    db.commit()
    db.refresh(league)
    return schemas.InviteCodeOut(invite_code=league.invite_code)


@route.post("/{league_id}/members/{member_id}/strikes", response_model=schemas.StrikeResult)
@with_idempotency("member_strikes_v1")
async def update_member_strikes(
    league_id: int,
    member_id: int,
    body: schemas.StrikeUpdate,
    request: Request,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Add or remove one strike. Send an Idempotency-Key header to make
    client retries safe: a repeated key replays the first response.
    """
    league = load_league(db, league_id)
    require_commissioner(league, user, "modify strikes")
    member = load_member(db, league, member_id)

    member = commissioner.set_member_strikes(db, user, league, member, body.action, body.week, body.reason)
    verb = "added" if body.action == schemas.StrikeAction.ADD else "removed"
    return schemas.StrikeResult(
        member_id=member.id,
        strikes=member.strikes,
        status=member.status,
        week=body.week,
        message=f"Strike {verb}" + (f" for Week {body.week}" if body.week else ""),
    )


@route.post("/{league_id}/members/{member_id}/pick", response_model=schemas.MemberPickResult)
def set_member_pick(
    league_id: int,
    member_id: int,
    body: schemas.MemberPickOverride,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    league = load_league(db, league_id)
    require_commissioner(league, user, "set picks for members")
    member = load_member(db, league, member_id)

    pick = commissioner.set_member_pick(
        db, source, user, league, member, body.week, body.team_id, body.pick_number, body.reason
    )
    return schemas.MemberPickResult(
        message=f"Pick set to {pick.team_id} for Week {pick.week}",
        pick=pick_out(pick),
        strikes=member.strikes,
        status=member.status,
    )


@route.patch("/{league_id}/members/{member_id}/payment", response_model=schemas.MemberOut)
def update_member_payment(
    league_id: int,
    member_id: int,
    body: schemas.PaymentUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    league = load_league(db, league_id)
    require_commissioner(league, user, "update payment status")
    member = load_member(db, league, member_id)
    member = commissioner.set_member_paid(db, user, league, member, body.has_paid)
    return _member_out(member, user)


@route.get("/{league_id}/action-log", response_model=list[schemas.ActionOut])
def read_action_log(
    league_id: int,
    limit: int = Query(50, ge=1, le=200),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    league = load_league(db, league_id)
    require_commissioner(league, user, "view the action log")
    return [
        schemas.ActionOut(
            id=a.id,
            action=a.action,
            performed_by=name,
            target_user=a.target_user_name,
            week=a.week,
            team_id=a.team_id,
            reason=a.reason,
            timestamp=a.created_at,
        )
        for a, name in commissioner.action_log(db, league, limit)
    ]
