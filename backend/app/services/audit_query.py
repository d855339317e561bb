from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from app.core.errors import NotFoundError, ValidationError
from app.schemas.audit import AuditDetail, AuditLogItem, AuditLogOut
from app.services.pagination import ListingState, PageRequest, Paged
from app.services.request_tracker import RequestTracker
from app.services.store.base import DataStore, Query, substring_pattern


logger = logging.getLogger(__name__)

TABLE = "audit_logs"
AUDIT_ACTIONS = ("create", "update", "delete")
ACTION_FILTERS = ("all",) + AUDIT_ACTIONS
AUDIT_PAGE_SIZE = 25
NO_SUMMARY = "-"


@dataclass(frozen=True)
class AuditFilters:
    email: str = ""
    action: str = "all"

    def __post_init__(self) -> None:
        if self.action not in ACTION_FILTERS:
            raise ValidationError("action must be one of all, create, update, delete", field="action")

    @classmethod
    def parse(cls, *, email: str | None = None, action: str | None = None) -> "AuditFilters":
        return cls(email=(email or "").strip(), action=(action or "all").strip().lower())

    def apply(self, query: Query) -> Query:
        if self.email:
            query.ilike("profiles.email", substring_pattern(self.email))
        if self.action != "all":
            query.eq("action", self.action)
        return query

    def as_dict(self) -> dict:
        return {"email": self.email, "action": self.action}


def _format_day(raw: Any) -> str:
    try:
        day = raw if isinstance(raw, date) else date.fromisoformat(str(raw)[:10])
    except ValueError:
        return str(raw)
    return day.strftime("%d/%m/%Y")


def _format_hours(raw: Any) -> str:
    try:
        return f"{float(raw):g}"
    except (TypeError, ValueError):
        return str(raw)


def format_change(action: str, old_data: dict | None, new_data: dict | None) -> str:
    """One-line, human readable description of a time log change."""
    if action == "create" and new_data:
        return f"Created {_format_hours(new_data.get('hours'))}h log for {_format_day(new_data.get('date'))}"
    if action == "update" and old_data and new_data:
        return (
            f"{_format_hours(old_data.get('hours'))}h → {_format_hours(new_data.get('hours'))}h "
            f"({_format_day(new_data.get('date'))})"
        )
    if action == "delete" and old_data:
        return f"Deleted {_format_hours(old_data.get('hours'))}h log for {_format_day(old_data.get('date'))}"
    return NO_SUMMARY


def dump_snapshot(data: dict | None) -> str | None:
    if data is None:
        return None
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def summarize(log: AuditLogOut) -> AuditLogItem:
    return AuditLogItem(log=log, email=log.email, summary=format_change(log.action, log.old_data, log.new_data))


def detail(log: AuditLogOut) -> AuditDetail:
    return AuditDetail(
        log=log,
        email=log.email,
        summary=format_change(log.action, log.old_data, log.new_data),
        old_data_dump=dump_snapshot(log.old_data),
        new_data_dump=dump_snapshot(log.new_data),
    )


class AuditQueryEngine:
    def __init__(
        self,
        store: DataStore,
        *,
        filters: AuditFilters | None = None,
        page_size: int = AUDIT_PAGE_SIZE,
        tracker: RequestTracker | None = None,
    ) -> None:
        self._store = store
        self._tracker = tracker or RequestTracker()
        self.state: ListingState[AuditFilters] = ListingState(filters=filters or AuditFilters(), page_size=page_size)
        self._current: Paged[AuditLogItem] | None = None

    @property
    def current(self) -> Paged[AuditLogItem] | None:
        return self._current

    def refresh(self) -> Paged[AuditLogItem]:
        paged = self.query_audit_logs(self.state.filters, self.state.request)
        self.state.record_total(paged.total)
        return paged

    def set_filters(self, filters: AuditFilters) -> Paged[AuditLogItem]:
        self.state.set_filters(filters)
        return self.refresh()

    def set_page_size(self, page_size: int) -> Paged[AuditLogItem]:
        self.state.set_page_size(page_size)
        return self.refresh()

    def go_to(self, page: int) -> Paged[AuditLogItem]:
        self.state.go_to(page)
        return self.refresh()

    def query_audit_logs(self, filters: AuditFilters, page: PageRequest | None = None) -> Paged[AuditLogItem]:
        page = page or PageRequest(page=1, page_size=AUDIT_PAGE_SIZE)
        tag = self._tracker.issue("audit", {"filters": filters.as_dict(), "page": [page.page, page.page_size]})
        query = (
            filters.apply(Query(TABLE).join_profiles("email"))
            .order("changed_at", descending=True)
            .range(page.offset, page.page_size)
            .with_count()
        )
        result = self._store.select(query)
        items = [summarize(AuditLogOut.model_validate(r)) for r in result.rows]
        total = int(result.total if result.total is not None else len(items))
        paged = Paged(items=items, total=total, page=page.page, page_size=page.page_size)
        if self._tracker.is_current(tag):
            self._current = paged
        else:
            logger.debug("audit.query.stale filters=%s page=%s", filters.as_dict(), page.page)
        return paged

    def get_detail(self, audit_id: str) -> AuditDetail:
        result = self._store.select(Query(TABLE).join_profiles("email").eq("id", audit_id).range(0, 1))
        if not result.rows:
            raise NotFoundError(f"Audit log {audit_id} not found")
        return detail(AuditLogOut.model_validate(result.rows[0]))
