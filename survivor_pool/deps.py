# survivor_pool/deps.py
from __future__ import annotations

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from . import models
from .db import get_db
from .errors import Forbidden, NotFound


def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Resolve the acting user from the X-User-Id header. Authentication
    happens upstream; this only maps the id to a row.
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    user = db.get(models.User, x_user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def load_league(db: Session, league_id: int) -> models.League:
    league = db.get(models.League, league_id)
    if not league:
        raise NotFound("League not found")
    return league


def membership_of(db: Session, league_id: int, user_id: int) -> models.LeagueMember | None:
    return (
        db.query(models.LeagueMember)
        .filter(models.LeagueMember.league_id == league_id, models.LeagueMember.user_id == user_id)
        .first()
    )


def require_member(db: Session, league: models.League, user: models.User) -> models.LeagueMember:
    member = membership_of(db, league.id, user.id)
    if not member:
        raise Forbidden("You are not a member of this league")
    return member


def require_commissioner(league: models.League, user: models.User, what: str) -> None:
    if league.commissioner_id != user.id:
        raise Forbidden(f"Only the commissioner can {what}")


def load_member(db: Session, league: models.League, member_id: int) -> models.LeagueMember:
    member = db.get(models.LeagueMember, member_id)
    if not member or member.league_id != league.id:
        raise NotFound("Member not found")
    return member
