"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _inspector():
    from sqlalchemy import inspect as sa_inspect
    return sa_inspect(op.get_bind())


def upgrade() -> None:
    inspector = _inspector()
    existing_tables = set(inspector.get_table_names())

    def existing_indexes(table: str) -> set[str]:
        if table not in existing_tables:
            return set()
        return {idx["name"] for idx in inspector.get_indexes(table)}

    if "profiles" not in existing_tables:
        op.create_table(
            "profiles",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("role", sa.String(), nullable=False, server_default="user"),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
        )
    idxs = existing_indexes("profiles")
    if "ix_profiles_id" not in idxs:
        op.create_index("ix_profiles_id", "profiles", ["id"])
    if "ix_profiles_email" not in idxs:
        op.create_index("ix_profiles_email", "profiles", ["email"])
    if "ix_profiles_role" not in idxs:
        op.create_index("ix_profiles_role", "profiles", ["role"])

    if "time_logs" not in existing_tables:
        op.create_table(
            "time_logs",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("user_id", sa.String(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("hours", sa.Float(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
            sa.CheckConstraint("hours >= 0 AND hours <= 24", name="ck_time_logs_hours_range"),
            sa.UniqueConstraint("user_id", "date", name="uq_time_logs_user_date"),
        )
    idxs = existing_indexes("time_logs")
    if "ix_time_logs_user_id" not in idxs:
        op.create_index("ix_time_logs_user_id", "time_logs", ["user_id"])
    if "ix_time_logs_date" not in idxs:
        op.create_index("ix_time_logs_date", "time_logs", ["date"])

    if "audit_logs" not in existing_tables:
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("user_id", sa.String(), nullable=True),
            sa.Column("action", sa.String(), nullable=False),
            sa.Column("table_name", sa.String(), nullable=False),
            sa.Column("record_id", sa.String(), nullable=True),
            sa.Column("old_data", sa.JSON(), nullable=True),
            sa.Column("new_data", sa.JSON(), nullable=True),
            sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
            sa.Column("ip_address", sa.String(), nullable=True),
            sa.Column("user_agent", sa.String(), nullable=True),
        )
    idxs = existing_indexes("audit_logs")
    if "ix_audit_logs_user_id" not in idxs:
        op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    if "ix_audit_logs_action" not in idxs:
        op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    if "ix_audit_logs_record_id" not in idxs:
        op.create_index("ix_audit_logs_record_id", "audit_logs", ["record_id"])
    if "ix_audit_logs_changed_at" not in idxs:
        op.create_index("ix_audit_logs_changed_at", "audit_logs", ["changed_at"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_changed_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_record_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_user_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_time_logs_date", table_name="time_logs")
    op.drop_index("ix_time_logs_user_id", table_name="time_logs")
    op.drop_table("time_logs")

    op.drop_index("ix_profiles_role", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_index("ix_profiles_id", table_name="profiles")
    op.drop_table("profiles")
