from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Iterable

from app.core.errors import ValidationError
from app.schemas.time_log import DayEntry, TeamAggregates, TimeLogOut
from app.services.calendar_grid import month_end, month_start
from app.services.pagination import ListingState, PageRequest, Paged
from app.services.request_tracker import RequestTracker
from app.services.store.base import DataStore, Query, substring_pattern


logger = logging.getLogger(__name__)

TABLE = "time_logs"
MEMBER_ROLE = "user"
DASHBOARD_PAGE_SIZE = 10
AGGREGATE_BATCH_SIZE = 1000


class DateFilter(str, Enum):
    ALL = "all"
    GREATER = "greater"
    LESS = "less"
    BETWEEN = "between"


@dataclass(frozen=True)
class DashboardFilters:
    email: str = ""
    date_filter: DateFilter = DateFilter.ALL
    date_from: date | None = None
    date_to: date | None = None

    @classmethod
    def parse(
        cls,
        *,
        email: str | None = None,
        date_filter: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> "DashboardFilters":
        try:
            kind = DateFilter((date_filter or DateFilter.ALL.value).strip().lower())
        except ValueError as exc:
            raise ValidationError("date_filter must be one of all, greater, less, between", field="date_filter") from exc
        return cls(email=(email or "").strip(), date_filter=kind, date_from=date_from, date_to=date_to)

    @property
    def is_filtered(self) -> bool:
        return bool(self.email) or self.date_filter != DateFilter.ALL

    def apply(self, query: Query) -> Query:
        if self.email:
            query.ilike("profiles.email", substring_pattern(self.email))
        # A bound that has not been picked yet leaves that side open.
        if self.date_filter == DateFilter.GREATER and self.date_from:
            query.gte("date", self.date_from)
        elif self.date_filter == DateFilter.LESS and self.date_to:
            query.lte("date", self.date_to)
        elif self.date_filter == DateFilter.BETWEEN and self.date_from and self.date_to:
            query.gte("date", self.date_from).lte("date", self.date_to)
        return query

    def as_dict(self) -> dict:
        data = asdict(self)
        data["date_filter"] = self.date_filter.value
        data["date_from"] = self.date_from.isoformat() if self.date_from else None
        data["date_to"] = self.date_to.isoformat() if self.date_to else None
        return data


def aggregate(logs: Iterable[TimeLogOut]) -> TeamAggregates:
    logs = list(logs)
    return TeamAggregates(
        total_hours=float(sum(log.hours for log in logs)),
        days_logged=len({log.date for log in logs}),
        total_members=len({log.user_id for log in logs}),
    )


@dataclass
class DashboardPage:
    page: Paged[TimeLogOut]
    aggregates: TeamAggregates
    filters: DashboardFilters


class TeamAggregator:
    """Read-only team view: a month of every member's logs, and the filtered dashboard listing."""

    def __init__(
        self,
        store: DataStore,
        *,
        filters: DashboardFilters | None = None,
        page_size: int = DASHBOARD_PAGE_SIZE,
        tracker: RequestTracker | None = None,
        batch_size: int = AGGREGATE_BATCH_SIZE,
    ) -> None:
        self._store = store
        self._batch_size = max(1, int(batch_size))
        self._tracker = tracker or RequestTracker()
        self._month: date | None = None
        self._logs: list[TimeLogOut] = []
        self._dashboard: DashboardPage | None = None
        self.dashboard_state: ListingState[DashboardFilters] = ListingState(
            filters=filters or DashboardFilters(), page_size=page_size
        )

    def refresh_dashboard(self) -> DashboardPage:
        loaded = self.load_dashboard(self.dashboard_state.filters, self.dashboard_state.request)
        self.dashboard_state.record_total(loaded.page.total)
        return loaded

    def set_dashboard_filters(self, filters: DashboardFilters) -> DashboardPage:
        self.dashboard_state.set_filters(filters)
        return self.refresh_dashboard()

    def set_dashboard_page_size(self, page_size: int) -> DashboardPage:
        self.dashboard_state.set_page_size(page_size)
        return self.refresh_dashboard()

    def go_to_dashboard_page(self, page: int) -> DashboardPage:
        self.dashboard_state.go_to(page)
        return self.refresh_dashboard()

    @property
    def month(self) -> date | None:
        return self._month

    @property
    def logs(self) -> list[TimeLogOut]:
        return list(self._logs)

    @property
    def aggregates(self) -> TeamAggregates:
        return aggregate(self._logs)

    @property
    def total_hours(self) -> float:
        return self.aggregates.total_hours

    @property
    def days_logged(self) -> int:
        return self.aggregates.days_logged

    @property
    def total_members(self) -> int:
        return self.aggregates.total_members

    @property
    def dashboard(self) -> DashboardPage | None:
        return self._dashboard

    def load_team_month(self, month: date) -> list[TimeLogOut]:
        target = month_start(month)
        self._month = target
        tag = self._tracker.issue("team_month", target.isoformat())
        query = (
            Query(TABLE)
            .join_profiles("email", "role")
            .eq("profiles.role", MEMBER_ROLE)
            .gte("date", target)
            .lte("date", month_end(target))
            .order("date")
        )
        logs = [TimeLogOut.model_validate(r) for r in self._store.select(query).rows]
        if self._tracker.is_current(tag) and self._month == target:
            self._logs = logs
        else:
            logger.debug("team.load_month.stale month=%s", target.isoformat())
        return logs

    def logs_for_date(self, day: date) -> list[DayEntry]:
        return [
            DayEntry(user_id=log.user_id, email=log.email, hours=log.hours)
            for log in self._logs
            if log.date == day
        ]

    def _all_rows(self, filters: DashboardFilters) -> list[TimeLogOut]:
        """Every row matching ``filters``, fetched in ordered batches.

        The hosted API caps rows per response, so the offset advances by what
        actually came back until the counted total has been read.
        """
        rows: list[TimeLogOut] = []
        total: int | None = None
        while total is None or len(rows) < total:
            # Ordered by the primary key so batches neither overlap nor skip rows.
            query = filters.apply(Query(TABLE).join_profiles("email")).order("id")
            query.range(len(rows), self._batch_size)
            if total is None:
                query.with_count()
            result = self._store.select(query)
            if total is None:
                total = int(result.total if result.total is not None else len(result.rows))
            if not result.rows:
                break
            rows.extend(TimeLogOut.model_validate(r) for r in result.rows)
        if len(rows) < (total or 0):
            logger.warning("team.dashboard.aggregate_short read=%s total=%s", len(rows), total)
        return rows

    def load_dashboard(self, filters: DashboardFilters, page: PageRequest | None = None) -> DashboardPage:
        page = page or PageRequest(page=1, page_size=DASHBOARD_PAGE_SIZE)
        tag = self._tracker.issue("dashboard", {"filters": filters.as_dict(), "page": [page.page, page.page_size]})

        listing = filters.apply(Query(TABLE).join_profiles("email")).order("date", descending=True)
        listing.range(page.offset, page.page_size).with_count()
        result = self._store.select(listing)
        items = [TimeLogOut.model_validate(r) for r in result.rows]
        total = int(result.total if result.total is not None else len(items))

        # Aggregates cover the whole filtered set, not only the visible page.
        aggregates = aggregate(self._all_rows(filters))

        loaded = DashboardPage(
            page=Paged(items=items, total=total, page=page.page, page_size=page.page_size),
            aggregates=aggregates,
            filters=filters,
        )
        if self._tracker.is_current(tag):
            self._dashboard = loaded
        else:
            logger.debug("team.dashboard.stale filters=%s page=%s", filters.as_dict(), page.page)
        return loaded
