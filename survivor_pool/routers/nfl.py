from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from .. import schemas
from ..services.schedule import ScheduleSource, get_schedule_source
from ..services.weeks import LAST_WEEK, to_espn_week, week_label

route = APIRouter(prefix="/nfl", tags=["nfl"])


@route.get("/season", response_model=schemas.SeasonOut)
def current_season(source: ScheduleSource = Depends(get_schedule_source)):
    info = source.get_current_season()
    return schemas.SeasonOut(
        season=info.season,
        season_type=info.season_type,
        week=info.week,
        display_name=info.display_name or week_label(info.week),
    )


@route.get("/schedule/{week}", response_model=schemas.WeekScheduleOut)
def week_schedule(
    week: int,
    season: int | None = Query(None),
    source: ScheduleSource = Depends(get_schedule_source),
):
    """Games for an app week (1-18 regular season, 19-22 playoffs)."""
    if week < 1 or week > LAST_WEEK:
        raise HTTPException(status_code=400, detail=f"Week must be between 1 and {LAST_WEEK}")
    target_season = season if season is not None else source.get_current_season().season
    espn_week, season_type = to_espn_week(week)
    games = source.get_week_games(target_season, espn_week, season_type)
    return schemas.WeekScheduleOut(
        season=target_season,
        week=week,
        label=week_label(week),
        season_type=season_type,
        games=games,
    )
