"""postgres audit trigger and row level security

Revision ID: 0002_postgres_audit_trigger_rls
Revises: 0001_init
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_postgres_audit_trigger_rls"
down_revision = "0001_init"
branch_labels = None
depends_on = None


AUDIT_FUNCTION = """
CREATE OR REPLACE FUNCTION audit_time_logs() RETURNS trigger AS $$
BEGIN
    IF TG_OP = 'INSERT' THEN
        INSERT INTO audit_logs (id, user_id, action, table_name, record_id, old_data, new_data, changed_at)
        VALUES (gen_random_uuid()::text, NEW.user_id, 'create', TG_TABLE_NAME, NEW.id, NULL, to_json(NEW), now());
        RETURN NEW;
    ELSIF TG_OP = 'UPDATE' THEN
        INSERT INTO audit_logs (id, user_id, action, table_name, record_id, old_data, new_data, changed_at)
        VALUES (gen_random_uuid()::text, NEW.user_id, 'update', TG_TABLE_NAME, NEW.id, to_json(OLD), to_json(NEW), now());
        RETURN NEW;
    ELSIF TG_OP = 'DELETE' THEN
        INSERT INTO audit_logs (id, user_id, action, table_name, record_id, old_data, new_data, changed_at)
        VALUES (gen_random_uuid()::text, OLD.user_id, 'delete', TG_TABLE_NAME, OLD.id, to_json(OLD), NULL, now());
        RETURN OLD;
    END IF;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql SECURITY DEFINER;
"""

IS_ADMIN_FUNCTION = """
CREATE OR REPLACE FUNCTION is_admin() RETURNS boolean AS $$
    SELECT EXISTS (SELECT 1 FROM profiles WHERE id = auth.uid()::text AND role = 'admin');
$$ LANGUAGE sql STABLE SECURITY DEFINER;
"""

POLICIES = (
    ("profiles", "profiles_select_own_or_admin", "SELECT", "USING (id = auth.uid()::text OR is_admin())"),
    ("profiles", "profiles_insert_own", "INSERT", "WITH CHECK (id = auth.uid()::text AND role = 'user')"),
    ("time_logs", "time_logs_select_own_or_admin", "SELECT", "USING (user_id = auth.uid()::text OR is_admin())"),
    ("time_logs", "time_logs_insert_own", "INSERT", "WITH CHECK (user_id = auth.uid()::text)"),
    ("time_logs", "time_logs_update_own", "UPDATE", "USING (user_id = auth.uid()::text)"),
    ("time_logs", "time_logs_delete_own", "DELETE", "USING (user_id = auth.uid()::text)"),
    ("audit_logs", "audit_logs_select_admin", "SELECT", "USING (is_admin())"),
)


def _has_auth_schema(bind) -> bool:
    return bool(bind.execute(sa.text("SELECT to_regnamespace('auth') IS NOT NULL")).scalar())


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        # Elsewhere the ORM flush listeners write the audit rows.
        return

    op.execute(sa.text(AUDIT_FUNCTION))
    op.execute(sa.text("DROP TRIGGER IF EXISTS audit_time_logs ON time_logs"))
    op.execute(
        sa.text(
            "CREATE TRIGGER audit_time_logs AFTER INSERT OR UPDATE OR DELETE ON time_logs "
            "FOR EACH ROW EXECUTE FUNCTION audit_time_logs()"
        )
    )
    op.execute(
        sa.text(
            "CREATE OR REPLACE FUNCTION touch_updated_at() RETURNS trigger AS $$ "
            "BEGIN NEW.updated_at = now(); RETURN NEW; END; $$ LANGUAGE plpgsql"
        )
    )
    for table in ("profiles", "time_logs"):
        op.execute(sa.text(f"DROP TRIGGER IF EXISTS touch_{table}_updated_at ON {table}"))
        op.execute(
            sa.text(
                f"CREATE TRIGGER touch_{table}_updated_at BEFORE UPDATE ON {table} "
                "FOR EACH ROW EXECUTE FUNCTION touch_updated_at()"
            )
        )

    # Policies reference auth.uid(); only Supabase projects have the auth schema.
    if not _has_auth_schema(bind):
        return
    op.execute(sa.text(IS_ADMIN_FUNCTION))
    for table in ("profiles", "time_logs", "audit_logs"):
        op.execute(sa.text(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY"))
    for table, name, command, clause in POLICIES:
        op.execute(sa.text(f"DROP POLICY IF EXISTS {name} ON {table}"))
        op.execute(sa.text(f"CREATE POLICY {name} ON {table} FOR {command} {clause}"))


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return

    if _has_auth_schema(bind):
        for table, name, _command, _clause in POLICIES:
            op.execute(sa.text(f"DROP POLICY IF EXISTS {name} ON {table}"))
        for table in ("profiles", "time_logs", "audit_logs"):
            op.execute(sa.text(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY"))
        op.execute(sa.text("DROP FUNCTION IF EXISTS is_admin()"))

    for table in ("profiles", "time_logs"):
        op.execute(sa.text(f"DROP TRIGGER IF EXISTS touch_{table}_updated_at ON {table}"))
    op.execute(sa.text("DROP FUNCTION IF EXISTS touch_updated_at()"))
    op.execute(sa.text("DROP TRIGGER IF EXISTS audit_time_logs ON time_logs"))
    op.execute(sa.text("DROP FUNCTION IF EXISTS audit_time_logs()"))
