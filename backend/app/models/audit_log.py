from datetime import date, datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, String, event, inspect

from app.core.database import Base
from app.models.time_log import TimeLog


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, index=True)
    action = Column(String, index=True, nullable=False)  # create | update | delete
    table_name = Column(String, nullable=False)
    record_id = Column(String, index=True)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    changed_at = Column(DateTime(timezone=True), index=True, default=_utcnow)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)


# On PostgreSQL the audit_time_logs trigger (alembic 0002) writes these rows.
# Other dialects get the same rows from the flush listeners below.


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _snapshot(target, *, previous: bool = False) -> dict:
    state = inspect(target)
    data = {}
    for attr in state.mapper.column_attrs:
        value = state.dict.get(attr.key)
        if previous:
            history = state.attrs[attr.key].history
            if history.deleted:
                value = history.deleted[0]
        data[attr.key] = _jsonable(value)
    return data


def _write_audit(connection, target, action: str, old_data: dict | None, new_data: dict | None) -> None:
    if connection.dialect.name == "postgresql":
        return
    connection.execute(
        AuditLog.__table__.insert().values(
            id=str(uuid4()),
            user_id=target.user_id,
            action=action,
            table_name=TimeLog.__tablename__,
            record_id=target.id,
            old_data=old_data,
            new_data=new_data,
            changed_at=_utcnow(),
        )
    )


@event.listens_for(TimeLog, "after_insert")
def _audit_time_log_insert(mapper, connection, target) -> None:
    _write_audit(connection, target, "create", None, _snapshot(target))


@event.listens_for(TimeLog, "after_update")
def _audit_time_log_update(mapper, connection, target) -> None:
    _write_audit(connection, target, "update", _snapshot(target, previous=True), _snapshot(target))


@event.listens_for(TimeLog, "after_delete")
def _audit_time_log_delete(mapper, connection, target) -> None:
    _write_audit(connection, target, "delete", _snapshot(target), None)
