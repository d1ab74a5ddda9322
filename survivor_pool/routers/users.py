from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user
from ..services import profile
from ..services.schedule import ScheduleSource, get_schedule_source

route = APIRouter(prefix="/users", tags=["users"])


@route.post("/", response_model=schemas.UserOut)
def create_user(body: schemas.UserCreate, db: Session = Depends(get_db)):
    name = body.display_name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Display name is required")
    email = body.email.strip().lower() if body.email else None
    if email and db.query(models.User).filter(models.User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = models.User(display_name=name, email=email, phone=body.phone)
    db.add(user)
    db.commit()
    db.refresh(user)
    return schemas.UserOut.model_validate(user)


@route.get("/me", response_model=schemas.UserOut)
def read_me(user: models.User = Depends(get_current_user)):
    return schemas.UserOut.model_validate(user)


@route.get("/me/leagues", response_model=list[schemas.MyLeague])
def my_leagues(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    memberships = (
        db.query(models.LeagueMember, models.League)
        .join(models.League, models.League.id == models.LeagueMember.league_id)
        .filter(models.LeagueMember.user_id == user.id)
        .order_by(models.League.created_at.desc(), models.League.id.desc())
        .all()
    )
    if not memberships:
        return []

    league_ids = [league.id for _, league in memberships]
    counts = dict(
        db.query(models.LeagueMember.league_id, func.count(models.LeagueMember.id))
        .filter(models.LeagueMember.league_id.in_(league_ids))
        .group_by(models.LeagueMember.league_id)
        .all()
    )

    return [
        schemas.MyLeague(
            id=league.id,
            name=league.name,
            season=league.season,
            max_strikes=league.max_strikes,
            start_week=league.start_week,
            status=league.status,
            strikes=member.strikes,
            member_status=member.status,
            member_count=int(counts.get(league.id, 0)),
            is_commissioner=league.commissioner_id == user.id,
        )
        for member, league in memberships
    ]


@route.put("/display-name", response_model=schemas.UserOut)
def update_display_name(
    body: schemas.DisplayNameUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    name = body.display_name.strip()
    if len(name) < 2:
        raise HTTPException(status_code=400, detail="Display name must be at least 2 characters")
    user.display_name = name
    db.commit()
    db.refresh(user)
    return schemas.UserOut.model_validate(user)


@route.put("/email", response_model=schemas.UserOut)
def update_email(
    body: schemas.EmailUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    email = body.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Please enter a valid email address")
    taken = (
        db.query(models.User)
        .filter(models.User.email == email, models.User.id != user.id)
        .first()
    )
    if taken:
        raise HTTPException(status_code=400, detail="Email already registered")
    user.email = email
    db.commit()
    db.refresh(user)
    return schemas.UserOut.model_validate(user)


@route.get("/pending-picks", response_model=schemas.PendingPicksOut)
def pending_picks(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: ScheduleSource = Depends(get_schedule_source),
):
    """Leagues where the caller still owes a pick for the current NFL week."""
    season = source.get_current_season()
    return schemas.PendingPicksOut(
        current_week=season.week, pending_picks=profile.pending_picks(db, user, season)
    )


@route.get("/history", response_model=list[schemas.LeagueHistory])
def pick_history(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile.pick_history(db, user)


@route.get("/stats", response_model=schemas.UserStats)
def user_stats(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile.user_stats(db, user)
