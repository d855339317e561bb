from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, index=True, nullable=False)
    role = Column(String, index=True, nullable=False, default="user")  # admin | user
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow)
