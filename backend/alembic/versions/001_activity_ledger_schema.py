"""Activity ledger schema

Creates the tables for platform handles, daily snapshots, the activity
ledger, monthly goals, streak records and milestone completions.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def _flag(name: str) -> sa.Column:
    return sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.false())


def upgrade() -> None:
    # ===========================================
    # Platform handles
    # ===========================================
    op.create_table(
        "platform_profiles",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("leetcode_handle", sa.String(100), nullable=True),
        sa.Column("codechef_handle", sa.String(100), nullable=True),
        sa.Column("codeforces_handle", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # ===========================================
    # Daily cumulative snapshots
    # ===========================================
    op.create_table(
        "platform_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        _counter("leetcode_total"),
        _counter("codechef_total"),
        _counter("codeforces_total"),
        _counter("codeforces_contest_total"),
        _counter("codechef_contest_total"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "snapshot_date", name="uq_snapshot_user_date"),
    )
    op.create_index("ix_platform_snapshots_user_id", "platform_snapshots", ["user_id"])

    # ===========================================
    # Activity ledger
    # ===========================================
    op.create_table(
        "activity_ledger",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("activity_date", sa.Date(), nullable=False),
        _counter("study_minutes"),
        _counter("leetcode_solved"),
        _counter("codechef_solved"),
        _counter("codeforces_solved"),
        _counter("contests_participated"),
        _counter("career_milestones_completed"),
        _counter("total_problems_solved"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "activity_date", name="uq_ledger_user_date"),
        sa.CheckConstraint(
            "total_problems_solved = leetcode_solved + codechef_solved + codeforces_solved",
            name="ck_ledger_total_is_sum",
        ),
    )
    op.create_index("ix_activity_ledger_user_id", "activity_ledger", ["user_id"])

    # ===========================================
    # Monthly goals
    # ===========================================
    op.create_table(
        "monthly_goals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        _counter("daily_study_minutes"),
        _counter("leetcode_problems"),
        _counter("codechef_problems"),
        _counter("codeforces_problems"),
        _counter("contest_participation"),
        _counter("career_milestones"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "month", "year", name="uq_goal_user_month"),
    )
    op.create_index("ix_monthly_goals_user_id", "monthly_goals", ["user_id"])

    # ===========================================
    # Streak records
    # ===========================================
    op.create_table(
        "streak_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("streak_date", sa.Date(), nullable=False),
        _counter("leetcode_streak"),
        _counter("codechef_streak"),
        _counter("codeforces_streak"),
        _counter("coding_streak"),
        _counter("career_streak"),
        _counter("study_streak"),
        _counter("overall_streak"),
        _flag("had_leetcode_activity"),
        _flag("had_codechef_activity"),
        _flag("had_codeforces_activity"),
        _flag("had_coding_activity"),
        _flag("had_career_activity"),
        _flag("had_study_activity"),
        _flag("had_any_activity"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "streak_date", name="uq_streak_user_date"),
    )
    op.create_index("ix_streak_records_user_id", "streak_records", ["user_id"])

    # ===========================================
    # Milestone completions
    # ===========================================
    op.create_table(
        "milestone_completions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("roadmap_id", sa.String(100), nullable=False),
        sa.Column("milestone_id", sa.String(100), nullable=False),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("completion_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "user_id", "roadmap_id", "milestone_id", name="uq_milestone_user"
        ),
    )
    op.create_index(
        "ix_milestone_completions_user_id", "milestone_completions", ["user_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_milestone_completions_user_id")
    op.drop_table("milestone_completions")
    op.drop_index("ix_streak_records_user_id")
    op.drop_table("streak_records")
    op.drop_index("ix_monthly_goals_user_id")
    op.drop_table("monthly_goals")
    op.drop_index("ix_activity_ledger_user_id")
    op.drop_table("activity_ledger")
    op.drop_index("ix_platform_snapshots_user_id")
    op.drop_table("platform_snapshots")
    op.drop_table("platform_profiles")
