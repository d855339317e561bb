from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, String, UniqueConstraint

from app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimeLog(Base):
    __tablename__ = "time_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_time_logs_user_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    hours = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow)
