# survivor_pool/models.py
import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import (
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


# -----------------------
# Closed state spaces
# -----------------------
class PickResult(str, enum.Enum):
    PENDING = "pending"
    WIN = "win"
    LOSS = "loss"


class MemberStatus(str, enum.Enum):
    ACTIVE = "active"
    ELIMINATED = "eliminated"


class LeagueStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class AuditAction(str, enum.Enum):
    PICK_SET = "pick_set"
    STRIKE_ADDED = "strike_added"
    STRIKE_REMOVED = "strike_removed"
    SETTINGS_CHANGED = "settings_changed"
    PAYMENT_CHANGED = "payment_changed"


def _enum_values(cls):
    return [m.value for m in cls]


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    display_name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), unique=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    memberships = relationship("LeagueMember", back_populates="user")


class League(Base):
    __tablename__ = "leagues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    commissioner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)

    # Pool rules
    max_strikes: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    start_week: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    double_pick_weeks: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)

    # Money
    entry_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    prize_pot_override: Mapped[float | None] = mapped_column(Float, nullable=True)

    invite_code: Mapped[str] = mapped_column(String(12), unique=True, nullable=False)
    status: Mapped[LeagueStatus] = mapped_column(
        SAEnum(LeagueStatus, values_callable=_enum_values),
        nullable=False,
        default=LeagueStatus.ACTIVE,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    commissioner = relationship("User")
    members = relationship("LeagueMember", back_populates="league", cascade="all, delete-orphan")


class LeagueMember(Base):
    __tablename__ = "league_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)

    strikes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[MemberStatus] = mapped_column(
        SAEnum(MemberStatus, values_callable=_enum_values),
        nullable=False,
        default=MemberStatus.ACTIVE,
    )
    has_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    joined_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    league = relationship("League", back_populates="members")
    user = relationship("User", back_populates="memberships")
    picks = relationship("Pick", back_populates="member", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("league_id", "user_id", name="uq_member_league_user"),)

    @property
    def display_name(self) -> str:
        if self.user is not None and self.user.display_name:
            return self.user.display_name
        return f"User-{self.user_id}"


class Pick(Base):
    __tablename__ = "picks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("league_members.id", ondelete="CASCADE"), index=True
    )

    week: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    team_id: Mapped[str] = mapped_column(String(16), nullable=False)
    # NULL on rows written before double-pick weeks existed; read as slot 1
    pick_number: Mapped[int | None] = mapped_column(Integer, nullable=True, default=1)
    result: Mapped[PickResult] = mapped_column(
        SAEnum(PickResult, values_callable=_enum_values),
        nullable=False,
        default=PickResult.PENDING,
        index=True,
    )
    game_id: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    member = relationship("LeagueMember", back_populates="picks")

    __table_args__ = (
        UniqueConstraint("league_id", "member_id", "week", "pick_number", name="uq_pick_slot"),
        # a team is spent for the season once picked, in any week or slot
        UniqueConstraint("league_id", "member_id", "team_id", name="uq_pick_member_team"),
    )


class CommissionerAction(Base):
    """
    Audit trail of commissioner overrides. Written best-effort after the
    underlying state change has been committed.
    """

    __tablename__ = "commissioner_actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    performed_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        SAEnum(AuditAction, values_callable=_enum_values), nullable=False
    )

    target_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_user_name: Mapped[str | None] = mapped_column(String(80), nullable=True)
    week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    team_id: Mapped[str | None] = mapped_column(String(16), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    performer = relationship("User")
