from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user, load_league, require_commissioner, require_member
from ..services import picks as pick_service
from ..services.reconcile import reconcile_pending_picks
from ..services.schedule import ScheduleSource, get_schedule_source
from ..services.weeks import LAST_WEEK

route = APIRouter(prefix="/picks", tags=["picks"])


def _check_week(week: int) -> None:
    if week < 1 or week > LAST_WEEK:
        raise HTTPException(status_code=400, detail=f"Week must be between 1 and {LAST_WEEK}")


@route.post("/", response_model=schemas.PickSubmitted)
def submit_pick(
    body: schemas.PickIn,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    league = load_league(db, body.league_id)
    member = require_member(db, league, user)

    pick, game, created = pick_service.submit_pick(
        db, source, member, league, body.week, body.team_id, body.pick_number
    )
    return schemas.PickSubmitted(
        message="Pick submitted" if created else "Pick updated",
        pick=pick_service.pick_out(pick),
        opponent_id=game.opponent_of(pick.team_id),
        kickoff=game.kickoff,
    )


@route.get("/league/{league_id}", response_model=schemas.MyPicks)
def my_picks(
    league_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    league = load_league(db, league_id)
    member = require_member(db, league, user)
    picks, used = pick_service.member_picks(db, member)
    return schemas.MyPicks(
        league_id=league.id,
        start_week=league.start_week,
        current_week=source.get_current_season().week,
        double_pick_weeks=league.double_pick_weeks or [],
        used_teams=used,
        picks=[pick_service.pick_out(p) for p in picks],
    )


@route.get("/available/{league_id}/{week}", response_model=schemas.AvailableTeams)
def available_teams(
    league_id: int,
    week: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    _check_week(week)
    league = load_league(db, league_id)
    member = require_member(db, league, user)
    return pick_service.available_teams(db, source, member, league, week)


@route.post("/update-results", response_model=schemas.ReconcileOut)
def update_results(
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    """
    Persist results for finished games across all leagues. Safe to call
    repeatedly and concurrently with the background job.
    """
    return schemas.ReconcileOut(updated=reconcile_pending_picks(db, source))


@route.get("/reminders/{league_id}/{week}", response_model=schemas.RemindersOut)
def reminders(
    league_id: int,
    week: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_week(week)
    league = load_league(db, league_id)
    require_commissioner(league, user, "view reminders")
    missing = pick_service.members_without_picks(db, league, week)
    return schemas.RemindersOut(
        week=week,
        members_without_picks=[
            schemas.MemberReminder(
                member_id=m.id,
                user_id=m.user_id,
                display_name=m.display_name,
                phone=m.user.phone if m.user else None,
            )
            for m in missing
        ],
    )
