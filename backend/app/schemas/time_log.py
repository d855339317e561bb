from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class JoinedProfile(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None


class ProfileOut(BaseModel):
    id: str
    email: str
    role: str = "user"
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return (self.role or "").strip().lower() == "admin"


class TimeLogOut(BaseModel):
    id: str
    user_id: str
    date: dt.date
    hours: float
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    profiles: Optional[JoinedProfile] = None

    class Config:
        from_attributes = True

    @property
    def email(self) -> str:
        return (self.profiles.email if self.profiles else None) or ""


class UpsertDayRequest(BaseModel):
    # Raw form value; "7.5" and 7.5 are both accepted and validated by the engine.
    hours: float | str


class DayDialog(BaseModel):
    date: dt.date
    hours: str
    has_log: bool
    can_delete: bool


class DayEntry(BaseModel):
    user_id: str
    email: str
    hours: float


class DayDetail(BaseModel):
    date: dt.date
    entries: List[DayEntry]
    total_hours: float


class CalendarCell(BaseModel):
    date: dt.date
    day: int
    in_month: bool
    is_today: bool
    is_sunday: bool
    hours: Optional[float] = None
    entries: List[DayEntry] = []
    total_hours: Optional[float] = None


class CalendarView(BaseModel):
    role: str
    month: str
    label: str
    previous_month: str
    next_month: str
    weekdays: List[str]
    weeks: List[List[CalendarCell]]
    stats: Dict[str, Any]


class TeamAggregates(BaseModel):
    total_hours: float
    days_logged: int
    total_members: int
