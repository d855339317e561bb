from datetime import date, datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import create_schema
from app.models.audit_log import AuditLog
from app.models.profile import Profile
from app.models.time_log import TimeLog


def memory_session_factory() -> sessionmaker:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_schema(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def add_profile(db: Session, user_id: str, email: str, role: str = "user") -> Profile:
    profile = Profile(id=user_id, email=email, role=role)
    db.add(profile)
    db.commit()
    return profile


def add_log(db: Session, user_id: str, day: date, hours: float) -> TimeLog:
    log = TimeLog(user_id=user_id, date=day, hours=hours)
    db.add(log)
    db.commit()
    return log


def add_audit(
    db: Session,
    user_id: str,
    action: str,
    *,
    changed_at: datetime,
    old_data: dict | None = None,
    new_data: dict | None = None,
) -> AuditLog:
    row = AuditLog(
        user_id=user_id,
        action=action,
        table_name="time_logs",
        record_id="rec-1",
        old_data=old_data,
        new_data=new_data,
        changed_at=changed_at,
    )
    db.add(row)
    db.commit()
    return row


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)
