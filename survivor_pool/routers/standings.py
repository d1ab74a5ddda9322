from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user, load_league, require_member
from ..logic.standings import build_standings
from ..services.schedule import ScheduleSource, get_schedule_source, load_week_schedule
from ..services.time_rules import utcnow
from ..services.weeks import LAST_WEEK, weeks_range

route = APIRouter(prefix="/standings", tags=["standings"])


@route.get("/{league_id}", response_model=schemas.StandingsOut)
def read_standings(
    league_id: int,
    week: int | None = Query(None, description="Target week; defaults to the current NFL week."),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    """
    Sorted standings as of a target week, with effective strikes/status
    and each pick filtered for the requesting member.

    Schedule failures never fail this read: affected weeks simply have no
    game data and their picks read as pending.
    """
    league = load_league(db, league_id)
    require_member(db, league, user)

    current_week = source.get_current_season().week
    latest_week = min(max(league.start_week, current_week), LAST_WEEK)
    target_week = week if week is not None else latest_week
    if target_week < league.start_week or target_week > latest_week:
        raise HTTPException(
            status_code=400, detail=f"Week must be between {league.start_week} and {latest_week}"
        )

    schedule = {
        w: load_week_schedule(source, league.season, w, strict=False)
        for w in weeks_range(league.start_week, target_week)
    }

    members = db.query(models.LeagueMember).filter(models.LeagueMember.league_id == league.id).all()
    picks = (
        db.query(models.Pick)
        .filter(models.Pick.league_id == league.id, models.Pick.week <= target_week)
        .order_by(models.Pick.week.asc(), models.Pick.pick_number.asc())
        .all()
    )

    rows = build_standings(league, members, picks, schedule, target_week, user.id, utcnow())
    return schemas.StandingsOut(
        league_id=league.id,
        season=league.season,
        start_week=league.start_week,
        current_week=current_week,
        target_week=target_week,
        max_strikes=league.max_strikes,
        double_pick_weeks=league.double_pick_weeks or [],
        standings=rows,
    )
