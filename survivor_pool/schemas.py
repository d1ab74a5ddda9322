# survivor_pool/schemas.py
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .models import AuditAction, LeagueStatus, MemberStatus, PickResult
from .services.schedule import Game, GameState


# -----------------------
# Shared / Enums
# -----------------------
class StrikeAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


class Ok(BaseModel):
    success: bool = True
    message: str | None = None


# -----------------------
# Users
# -----------------------
class UserCreate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=80)
    email: str | None = None
    phone: str | None = None


class UserOut(BaseModel):
    id: int
    display_name: str
    email: str | None = None
    phone: str | None = None

    model_config = ConfigDict(from_attributes=True)


class MyLeague(BaseModel):
    id: int
    name: str
    season: int
    max_strikes: int
    start_week: int
    status: LeagueStatus
    strikes: int
    member_status: MemberStatus
    member_count: int
    is_commissioner: bool


# -----------------------
# League
# -----------------------
class LeagueCreate(BaseModel):
    name: str
    password: str
    max_strikes: int = 1
    start_week: int = 1
    double_pick_weeks: list[int] = Field(default_factory=list)
    entry_fee: float = Field(0.0, ge=0)
    prize_pot_override: float | None = Field(None, ge=0)


class LeagueOut(BaseModel):
    id: int
    name: str
    season: int
    commissioner_id: int
    max_strikes: int
    start_week: int
    double_pick_weeks: list[int] | None = None
    entry_fee: float
    prize_pot_override: float | None = None
    invite_code: str
    status: LeagueStatus

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class LeagueSummary(BaseModel):
    """Public listing shape (search, invite preview, available)."""

    id: int
    name: str
    season: int
    max_strikes: int
    start_week: int
    member_count: int
    commissioner_name: str
    has_password: bool = True


class JoinLeague(BaseModel):
    password: str


class MemberOut(BaseModel):
    id: int
    user_id: int
    display_name: str
    strikes: int
    status: MemberStatus
    has_paid: bool
    joined_at: datetime | None = None
    is_me: bool = False


class LeagueDetail(LeagueOut):
    commissioner_name: str
    is_commissioner: bool
    prize_pot: float
    paid_count: int
    my_strikes: int
    my_status: MemberStatus
    members: list[MemberOut]


class LeagueSettingsUpdate(BaseModel):
    max_strikes: int | None = None
    start_week: int | None = None
    double_pick_weeks: list[int] | None = None
    entry_fee: float | None = Field(None, ge=0)
    prize_pot_override: float | None = Field(None, ge=0)
    clear_prize_pot_override: bool = False


class InviteCodeOut(BaseModel):
    success: bool = True
    invite_code: str


# -----------------------
# Picks
# -----------------------
class PickIn(BaseModel):
    league_id: int
    week: int = Field(..., ge=1)
    team_id: str = Field(..., min_length=1, max_length=16)
    pick_number: int = 1


class PickOut(BaseModel):
    id: int
    week: int
    team_id: str
    pick_number: int
    result: PickResult
    game_id: str | None = None


class PickSubmitted(BaseModel):
    success: bool = True
    message: str
    pick: PickOut
    opponent_id: str | None = None
    kickoff: datetime | None = None


class MyPicks(BaseModel):
    league_id: int
    start_week: int
    current_week: int
    double_pick_weeks: list[int]
    used_teams: list[str]
    picks: list[PickOut]


class AvailableTeam(BaseModel):
    team_id: str
    team_name: str | None = None
    abbreviation: str | None = None
    game_id: str
    kickoff: datetime | None = None
    status: GameState
    is_home: bool
    opponent_id: str
    opponent_name: str | None = None
    is_locked: bool
    is_used: bool
    is_picked_this_week: bool
    current_pick_number: int | None = None


class AvailableTeams(BaseModel):
    week: int
    is_double_pick: bool
    picks_required: int
    double_pick_weeks: list[int]
    current_picks: list[PickOut]
    teams: list[AvailableTeam]


class ReconcileOut(BaseModel):
    success: bool = True
    updated: int


class MemberReminder(BaseModel):
    member_id: int
    user_id: int
    display_name: str
    phone: str | None = None


class RemindersOut(BaseModel):
    week: int
    members_without_picks: list[MemberReminder]


# -----------------------
# Standings
# -----------------------
class PickCell(BaseModel):
    """
    One pick as a viewer may see it. Hidden picks carry only pick_number.
    """

    pick_number: int
    hidden: bool = False
    team_id: str | None = None
    team_name: str | None = None
    result: PickResult | None = None
    effective_result: PickResult | None = None
    game_status: GameState | None = None


class WeekCell(BaseModel):
    week: int
    is_double_pick: bool
    status: str  # "no_pick" | "picked"
    picks: list[PickCell]


class StandingRow(BaseModel):
    member_id: int
    user_id: int
    display_name: str
    strikes: int
    effective_strikes: int
    status: MemberStatus
    effective_status: MemberStatus
    has_paid: bool
    is_me: bool
    weeks: list[WeekCell]


class StandingsOut(BaseModel):
    league_id: int
    season: int
    start_week: int
    current_week: int
    target_week: int
    max_strikes: int
    double_pick_weeks: list[int]
    standings: list[StandingRow]


# -----------------------
# Commissioner
# -----------------------
class StrikeUpdate(BaseModel):
    action: StrikeAction
    week: int | None = None
    reason: str | None = None


class StrikeResult(BaseModel):
    success: bool = True
    member_id: int
    strikes: int
    status: MemberStatus
    week: int | None = None
    message: str


class MemberPickOverride(BaseModel):
    week: int = Field(..., ge=1)
    team_id: str = Field(..., min_length=1, max_length=16)
    pick_number: int = 1
    reason: str | None = None


class MemberPickResult(BaseModel):
    success: bool = True
    message: str
    pick: PickOut
    strikes: int
    status: MemberStatus


class PaymentUpdate(BaseModel):
    has_paid: bool


class ActionOut(BaseModel):
    id: int
    action: AuditAction
    performed_by: str | None = None
    target_user: str | None = None
    week: int | None = None
    team_id: str | None = None
    reason: str | None = None
    timestamp: datetime


# -----------------------
# NFL data
# -----------------------
class SeasonOut(BaseModel):
    season: int
    season_type: int
    week: int
    display_name: str = ""


class WeekScheduleOut(BaseModel):
    season: int
    week: int
    label: str
    season_type: int
    games: list[Game]


class DisplayNameUpdate(BaseModel):
    display_name: str = Field(..., max_length=80)


class EmailUpdate(BaseModel):
    email: str = Field(..., max_length=200)


class PendingPick(BaseModel):
    league_id: int
    league_name: str
    week: int
    start_week: int
    picks_made: int
    picks_required: int


class PendingPicksOut(BaseModel):
    current_week: int
    pending_picks: list[PendingPick]


class HistoryPick(BaseModel):
    week: int
    pick_number: int
    team_id: str
    result: PickResult


class LeagueHistory(BaseModel):
    league_id: int
    league_name: str
    season: int
    picks: list[HistoryPick]


class UserStats(BaseModel):
    leagues_joined: int
    total_picks: int
    wins: int
    losses: int
    active_leagues: int
    eliminated_leagues: int
    win_rate: float
