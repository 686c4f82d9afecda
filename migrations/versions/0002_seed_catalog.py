"""seed task catalog and football recruiting calendar

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-01

Rows come from recruit_timeline/data/catalog_seed.py. Later catalog edits
ship as new revisions (bump `version` on the changed definitions).
"""
from alembic import op
import sqlalchemy as sa

from recruit_timeline.data.catalog_seed import SEASONAL_EVENTS, TASK_DEFINITIONS

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

SPORT = "football"

task_definitions = sa.table(
    "task_definitions",
    sa.column("task_key", sa.String),
    sa.column("title", sa.String),
    sa.column("description", sa.Text),
    sa.column("why_it_matters", sa.Text),
    sa.column("how_to_complete", sa.Text),
    sa.column("estimated_minutes", sa.Integer),
    sa.column("base_priority", sa.String),
    sa.column("dependencies", sa.JSON),
    sa.column("triggers", sa.JSON),
    sa.column("blocks_sharing", sa.Boolean),
    sa.column("applicable_sports", sa.JSON),
    sa.column("applicable_roles", sa.JSON),
    sa.column("version", sa.Integer),
    sa.column("is_active", sa.Boolean),
)

seasonal_events = sa.table(
    "seasonal_events",
    sa.column("event_key", sa.String),
    sa.column("title", sa.String),
    sa.column("description", sa.Text),
    sa.column("start_month", sa.Integer),
    sa.column("start_day", sa.Integer),
    sa.column("end_month", sa.Integer),
    sa.column("end_day", sa.Integer),
    sa.column("sport", sa.String),
    sa.column("priority_boost", sa.Integer),
    sa.column("is_active", sa.Boolean),
)


def upgrade() -> None:
    op.bulk_insert(
        task_definitions,
        [
            {
                **row,
                "base_priority": row["base_priority"].value,
                "applicable_sports": [SPORT],
                "version": 1,
                "is_active": True,
            }
            for row in TASK_DEFINITIONS
        ],
    )
    op.bulk_insert(
        seasonal_events,
        [{**row, "sport": SPORT, "is_active": True} for row in SEASONAL_EVENTS],
    )


def downgrade() -> None:
    event_keys = [row["event_key"] for row in SEASONAL_EVENTS]
    task_keys = [row["task_key"] for row in TASK_DEFINITIONS]
    op.execute(seasonal_events.delete().where(seasonal_events.c.event_key.in_(event_keys)))
    op.execute(task_definitions.delete().where(task_definitions.c.task_key.in_(task_keys)))
