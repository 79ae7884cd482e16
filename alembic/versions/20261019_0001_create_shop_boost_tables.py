"""create shop boost tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "shop_boost_intakes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("customers_file_path", sa.Text(), nullable=True),
        sa.Column("vehicles_file_path", sa.Text(), nullable=True),
        sa.Column("parts_file_path", sa.Text(), nullable=True),
        sa.Column("questionnaire", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shop_boost_intakes_shop_status", "shop_boost_intakes", ["shop_id", "status"], unique=False)
    op.create_index("ix_shop_boost_intakes_created_at", "shop_boost_intakes", ["created_at"], unique=False)

    op.create_table(
        "shop_import_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("intake_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=True),
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column("parsed_row_count", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["intake_id"], ["shop_boost_intakes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shop_import_files_intake_id", "shop_import_files", ["intake_id"], unique=False)

    op.create_table(
        "shop_import_rows",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("intake_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("row_number", sa.Integer(), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("raw", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("normalized", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("errors", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["intake_id"], ["shop_boost_intakes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["file_id"], ["shop_import_files.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shop_import_rows_intake_id", "shop_import_rows", ["intake_id"], unique=False)
    op.create_index("ix_shop_import_rows_file_id", "shop_import_rows", ["file_id"], unique=False)

    op.create_table(
        "shop_health_snapshots",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("intake_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metrics", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("scores", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("narrative_summary", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["intake_id"], ["shop_boost_intakes.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_shop_health_snapshots_shop_created",
        "shop_health_snapshots",
        ["shop_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "menu_item_suggestions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("intake_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("suggestion_key", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("price_suggestion", sa.Float(), nullable=True),
        sa.Column("labor_hours_suggestion", sa.Float(), nullable=True),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["intake_id"], ["shop_boost_intakes.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_menu_item_suggestions_shop_id", "menu_item_suggestions", ["shop_id"], unique=False)

    op.create_table(
        "inspection_template_suggestions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("intake_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("suggestion_key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("items", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("applies_to", sa.String(length=16), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["intake_id"], ["shop_boost_intakes.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_inspection_template_suggestions_shop_id",
        "inspection_template_suggestions",
        ["shop_id"],
        unique=False,
    )

    op.create_table(
        "shop_ai_profiles",
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("last_refreshed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("shop_id"),
    )

    op.create_table(
        "ai_training_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("vehicle_ymm", sa.String(length=128), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ai_training_events_shop_source",
        "ai_training_events",
        ["shop_id", "source"],
        unique=False,
    )

    op.create_table(
        "ai_training_data",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("source_event_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["source_event_id"], ["ai_training_events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ai_training_data_source_event_id",
        "ai_training_data",
        ["source_event_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_ai_training_data_source_event_id", table_name="ai_training_data")
    op.drop_table("ai_training_data")
    op.drop_index("ix_ai_training_events_shop_source", table_name="ai_training_events")
    op.drop_table("ai_training_events")
    op.drop_table("shop_ai_profiles")
    op.drop_index("ix_inspection_template_suggestions_shop_id", table_name="inspection_template_suggestions")
    op.drop_table("inspection_template_suggestions")
    op.drop_index("ix_menu_item_suggestions_shop_id", table_name="menu_item_suggestions")
    op.drop_table("menu_item_suggestions")
    op.drop_index("ix_shop_health_snapshots_shop_created", table_name="shop_health_snapshots")
    op.drop_table("shop_health_snapshots")
    op.drop_index("ix_shop_import_rows_file_id", table_name="shop_import_rows")
    op.drop_index("ix_shop_import_rows_intake_id", table_name="shop_import_rows")
    op.drop_table("shop_import_rows")
    op.drop_index("ix_shop_import_files_intake_id", table_name="shop_import_files")
    op.drop_table("shop_import_files")
    op.drop_index("ix_shop_boost_intakes_created_at", table_name="shop_boost_intakes")
    op.drop_index("ix_shop_boost_intakes_shop_status", table_name="shop_boost_intakes")
    op.drop_table("shop_boost_intakes")
