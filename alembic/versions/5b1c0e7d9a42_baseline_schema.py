"""baseline schema

Revision ID: 5b1c0e7d9a42
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5b1c0e7d9a42"
down_revision = None
branch_labels = None
depends_on = None

PICK_RESULT = sa.Enum("pending", "win", "loss", name="pickresult")
MEMBER_STATUS = sa.Enum("active", "eliminated", name="memberstatus")
LEAGUE_STATUS = sa.Enum("active", "completed", name="leaguestatus")
AUDIT_ACTION = sa.Enum(
    "pick_set",
    "strike_added",
    "strike_removed",
    "settings_changed",
    "payment_changed",
    name="auditaction",
)


def upgrade() -> None:
    # users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True, unique=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])

    # leagues
    op.create_table(
        "leagues",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=128), nullable=False),
        sa.Column("commissioner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("season", sa.Integer(), nullable=False),
        sa.Column("max_strikes", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("start_week", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("double_pick_weeks", sa.JSON(), nullable=True),
        sa.Column("entry_fee", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("prize_pot_override", sa.Float(), nullable=True),
        sa.Column("invite_code", sa.String(length=12), nullable=False, unique=True),
        sa.Column("status", LEAGUE_STATUS, nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_leagues_id", "leagues", ["id"])
    op.create_index("ix_leagues_name", "leagues", ["name"])
    op.create_index("ix_leagues_commissioner_id", "leagues", ["commissioner_id"])

    # league_members
    op.create_table(
        "league_members",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("strikes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", MEMBER_STATUS, nullable=False, server_default="active"),
        sa.Column("has_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("league_id", "user_id", name="uq_member_league_user"),
    )
    op.create_index("ix_league_members_id", "league_members", ["id"])
    op.create_index("ix_league_members_league_id", "league_members", ["league_id"])
    op.create_index("ix_league_members_user_id", "league_members", ["user_id"])

    # picks
    op.create_table(
        "picks",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True),
        sa.Column(
            "member_id", sa.Integer(), sa.ForeignKey("league_members.id", ondelete="CASCADE"), nullable=True
        ),
        sa.Column("week", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.String(length=16), nullable=False),
        sa.Column("pick_number", sa.Integer(), nullable=True),
        sa.Column("result", PICK_RESULT, nullable=False, server_default="pending"),
        sa.Column("game_id", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("league_id", "member_id", "week", "pick_number", name="uq_pick_slot"),
        sa.UniqueConstraint("league_id", "member_id", "team_id", name="uq_pick_member_team"),
    )
    op.create_index("ix_picks_id", "picks", ["id"])
    op.create_index("ix_picks_league_id", "picks", ["league_id"])
    op.create_index("ix_picks_member_id", "picks", ["member_id"])
    op.create_index("ix_picks_week", "picks", ["week"])
    op.create_index("ix_picks_result", "picks", ["result"])

    # commissioner_actions
    op.create_table(
        "commissioner_actions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True),
        sa.Column("performed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", AUDIT_ACTION, nullable=False),
        sa.Column("target_user_id", sa.Integer(), nullable=True),
        sa.Column("target_user_name", sa.String(length=80), nullable=True),
        sa.Column("week", sa.Integer(), nullable=True),
        sa.Column("team_id", sa.String(length=16), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_commissioner_actions_id", "commissioner_actions", ["id"])
    op.create_index("ix_commissioner_actions_league_id", "commissioner_actions", ["league_id"])


def downgrade() -> None:
    op.drop_table("commissioner_actions")
    op.drop_table("picks")
    op.drop_table("league_members")
    op.drop_table("leagues")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in (AUDIT_ACTION, PICK_RESULT, MEMBER_STATUS, LEAGUE_STATUS):
        enum.drop(bind, checkfirst=True)
