from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from app.api.deps import get_data_store, require_page_profile
from app.schemas.audit import DashboardResponse
from app.schemas.time_log import ProfileOut
from app.services.store.base import DataStore
from app.services.team_aggregator import DASHBOARD_PAGE_SIZE, DashboardFilters, TeamAggregator


router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    email: str | None = None,
    date_filter: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = 1,
    page_size: int = DASHBOARD_PAGE_SIZE,
    profile: ProfileOut = Depends(require_page_profile),
    store: DataStore = Depends(get_data_store),
):
    filters = DashboardFilters.parse(email=email, date_filter=date_filter, date_from=date_from, date_to=date_to)
    aggregator = TeamAggregator(store, filters=filters, page_size=page_size)
    aggregator.dashboard_state.go_to(page)
    loaded = aggregator.refresh_dashboard()
    return DashboardResponse(
        items=loaded.page.items,
        meta=loaded.page.meta(),
        aggregates=loaded.aggregates,
        filters=loaded.filters.as_dict(),
    )
