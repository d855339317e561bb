from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_data_store, require_page_profile
from app.schemas.audit import AuditDetail, AuditPageResponse
from app.schemas.time_log import ProfileOut
from app.services.audit_query import AUDIT_PAGE_SIZE, AuditFilters, AuditQueryEngine
from app.services.store.base import DataStore


router = APIRouter(prefix="/audit")


@router.get("", response_model=AuditPageResponse)
def audit_logs(
    email: str | None = None,
    action: str | None = None,
    page: int = 1,
    page_size: int = AUDIT_PAGE_SIZE,
    profile: ProfileOut = Depends(require_page_profile),
    store: DataStore = Depends(get_data_store),
):
    engine = AuditQueryEngine(store, filters=AuditFilters.parse(email=email, action=action), page_size=page_size)
    engine.state.go_to(page)
    paged = engine.refresh()
    return AuditPageResponse(items=paged.items, meta=paged.meta(), filters=engine.state.filters.as_dict())


@router.get("/{audit_id}", response_model=AuditDetail)
def audit_detail(
    audit_id: str,
    profile: ProfileOut = Depends(require_page_profile),
    store: DataStore = Depends(get_data_store),
):
    return AuditQueryEngine(store).get_detail(audit_id)
