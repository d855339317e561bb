from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.schemas.time_log import JoinedProfile, TeamAggregates, TimeLogOut


class AuditLogOut(BaseModel):
    id: str
    user_id: Optional[str] = None
    action: str
    table_name: str
    record_id: Optional[str] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    changed_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    profiles: Optional[JoinedProfile] = None

    class Config:
        from_attributes = True

    @property
    def email(self) -> str:
        return (self.profiles.email if self.profiles else None) or ""


class AuditLogItem(BaseModel):
    log: AuditLogOut
    email: str
    summary: str


class AuditDetail(BaseModel):
    log: AuditLogOut
    email: str
    summary: str
    old_data_dump: Optional[str] = None
    new_data_dump: Optional[str] = None


class PageMeta(BaseModel):
    total: int
    page: int
    page_size: int
    page_count: int
    has_previous: bool
    has_next: bool


class AuditPageResponse(BaseModel):
    items: List[AuditLogItem]
    meta: PageMeta
    filters: Dict[str, Any]


class DashboardResponse(BaseModel):
    items: List[TimeLogOut]
    meta: PageMeta
    aggregates: TeamAggregates
    filters: Dict[str, Any]
