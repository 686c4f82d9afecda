"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TASK_PRIORITY = ("low", "medium", "high", "critical")
_TASK_STATUS = ("pending", "in_progress", "complete", "skipped", "blocked")
_TIMELINE_PHASE = ("onboarding", "building", "active", "maintaining", "archived")
_NOTIFICATION_TYPE = ("nudge", "reminder", "critical", "achievement", "seasonal")


def upgrade() -> None:
    # --- ENUM types ---
    for values, name in (
        (_TASK_PRIORITY, "task_priority_enum"),
        (_TASK_STATUS, "task_status_enum"),
        (_TIMELINE_PHASE, "timeline_phase_enum"),
        (_NOTIFICATION_TYPE, "notification_type_enum"),
    ):
        sa.Enum(*values, name=name).create(op.get_bind(), checkfirst=True)

    # --- athlete_profiles (owned by the profile subsystem; created here for standalone deploys) ---
    op.create_table(
        "athlete_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("role", sa.String(50), nullable=False, server_default="high_school"),
        sa.Column("sport", sa.String(32), nullable=True),
        sa.Column("position", sa.String(100), nullable=True),
        sa.Column("high_school_name", sa.String(200), nullable=True),
        sa.Column("graduation_year", sa.Integer(), nullable=True),
        sa.Column("gpa", sa.Numeric(3, 2), nullable=True),
        sa.Column("profile_image_url", sa.String(500), nullable=True),
        sa.Column("height_inches", sa.Integer(), nullable=True),
        sa.Column("weight_lbs", sa.Integer(), nullable=True),
        sa.Column("forty_yard_dash", sa.Numeric(4, 2), nullable=True),
        sa.Column("vertical_jump_inches", sa.Numeric(4, 1), nullable=True),
        sa.Column("contact_email", sa.String(200), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("highlight_video_url", sa.String(500), nullable=True),
        sa.Column("transcript_url", sa.String(500), nullable=True),
        sa.Column("ncaa_id", sa.String(32), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_athlete_profiles_id", "athlete_profiles", ["id"])

    # --- task_definitions ---
    op.create_table(
        "task_definitions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_key", sa.String(100), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("why_it_matters", sa.Text(), nullable=False, server_default=""),
        sa.Column("how_to_complete", sa.Text(), nullable=False, server_default=""),
        sa.Column("estimated_minutes", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("base_priority", sa.Enum(
            *_TASK_PRIORITY, name="task_priority_enum", create_type=False,
        ), nullable=False, server_default="medium"),
        sa.Column("dependencies", sa.JSON(), nullable=False),
        sa.Column("triggers", sa.JSON(), nullable=False),
        sa.Column("blocks_sharing", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("applicable_sports", sa.JSON(), nullable=False),
        sa.Column("applicable_roles", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("task_key"),
    )
    op.create_index("ix_task_definitions_id", "task_definitions", ["id"])
    op.create_index("ix_task_definitions_is_active", "task_definitions", ["is_active"])

    # --- seasonal_events ---
    op.create_table(
        "seasonal_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_key", sa.String(100), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("start_month", sa.Integer(), nullable=False),
        sa.Column("start_day", sa.Integer(), nullable=False),
        sa.Column("end_month", sa.Integer(), nullable=True),
        sa.Column("end_day", sa.Integer(), nullable=True),
        sa.Column("sport", sa.String(32), nullable=False),
        sa.Column("priority_boost", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_key"),
    )
    op.create_index("ix_seasonal_events_id", "seasonal_events", ["id"])
    op.create_index("ix_seasonal_events_sport", "seasonal_events", ["sport"])

    # --- user_timelines ---
    op.create_table(
        "user_timelines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("current_phase", sa.Enum(
            *_TIMELINE_PHASE, name="timeline_phase_enum", create_type=False,
        ), nullable=False, server_default="onboarding"),
        sa.Column("sport", sa.String(32), nullable=False, server_default="football"),
        sa.Column("role", sa.String(50), nullable=True),
        sa.Column("graduation_year", sa.Integer(), nullable=True),
        sa.Column("position", sa.String(100), nullable=True),
        sa.Column("completion_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("has_blocking_tasks", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("generation_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_notification_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_timelines_id", "user_timelines", ["id"])
    op.create_index("ix_user_timelines_user_id", "user_timelines", ["user_id"])
    op.create_index(
        "uq_user_timelines_active_user",
        "user_timelines",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active = 1"),
    )

    # --- task_instances ---
    op.create_table(
        "task_instances",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("timeline_id", sa.Integer(), nullable=False),
        sa.Column("task_definition_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.Enum(
            *_TASK_STATUS, name="task_status_enum", create_type=False,
        ), nullable=False, server_default="pending"),
        sa.Column("priority", sa.Enum(
            *_TASK_PRIORITY, name="task_priority_enum", create_type=False,
        ), nullable=False, server_default="medium"),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("trigger_context", sa.JSON(), nullable=False),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["timeline_id"], ["user_timelines.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["task_definition_id"], ["task_definitions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("timeline_id", "task_definition_id", name="uq_task_instance_timeline_def"),
    )
    op.create_index("ix_task_instances_id", "task_instances", ["id"])
    op.create_index("ix_task_instances_timeline_id", "task_instances", ["timeline_id"])
    op.create_index("ix_task_instances_status", "task_instances", ["status"])

    # --- progress_events ---
    op.create_table(
        "progress_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("task_instance_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_data", sa.JSON(), nullable=False),
        sa.Column("trigger_source", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["task_instance_id"], ["task_instances.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_progress_events_id", "progress_events", ["id"])
    op.create_index("ix_progress_events_user_id", "progress_events", ["user_id"])
    op.create_index("ix_progress_events_event_type", "progress_events", ["event_type"])
    op.create_index("ix_progress_events_created_at", "progress_events", ["created_at"])

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("task_instance_id", sa.Integer(), nullable=True),
        sa.Column("notification_type", sa.Enum(
            *_NOTIFICATION_TYPE, name="notification_type_enum", create_type=False,
        ), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("cta_text", sa.String(100), nullable=True),
        sa.Column("cta_url", sa.String(500), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_cancelled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["task_instance_id"], ["task_instances.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_scheduled_for", "notifications", ["scheduled_for"])

    # --- achievements ---
    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("achievement_key", sa.String(100), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("trigger_task_id", sa.Integer(), nullable=True),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_new", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["trigger_task_id"], ["task_instances.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "achievement_key", name="uq_achievement_user_key"),
    )
    op.create_index("ix_achievements_id", "achievements", ["id"])
    op.create_index("ix_achievements_user_id", "achievements", ["user_id"])
    op.create_index("ix_achievements_achievement_key", "achievements", ["achievement_key"])


def downgrade() -> None:
    op.drop_table("achievements")
    op.drop_table("notifications")
    op.drop_table("progress_events")
    op.drop_table("task_instances")
    op.drop_index("uq_user_timelines_active_user", table_name="user_timelines")
    op.drop_table("user_timelines")
    op.drop_table("seasonal_events")
    op.drop_table("task_definitions")
    op.drop_table("athlete_profiles")

    for name in (
        "notification_type_enum",
        "timeline_phase_enum",
        "task_status_enum",
        "task_priority_enum",
    ):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
