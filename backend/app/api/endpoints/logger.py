from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response

from app.api.deps import get_data_store, require_page_profile
from app.schemas.time_log import CalendarView, DayDetail, DayDialog, ProfileOut, TimeLogOut, UpsertDayRequest
from app.services.calendar_grid import parse_day, parse_month
from app.services.role_views import MemberView, role_view_for
from app.services.store.base import DataStore


router = APIRouter(prefix="/logger")


def _member_view(profile: ProfileOut, store: DataStore) -> MemberView:
    view = role_view_for(profile, store)
    if view.read_only or not isinstance(view, MemberView):
        raise HTTPException(status_code=403, detail="The team calendar is read-only")
    return view


@router.get("", response_model=CalendarView)
def calendar(
    month: str | None = None,
    profile: ProfileOut = Depends(require_page_profile),
    store: DataStore = Depends(get_data_store),
):
    view = role_view_for(profile, store)
    return view.calendar(parse_month(month, default=date.today()))


@router.get("/days/{day}", response_model=DayDialog | DayDetail)
def open_day(
    day: str,
    profile: ProfileOut = Depends(require_page_profile),
    store: DataStore = Depends(get_data_store),
):
    return role_view_for(profile, store).open_day(parse_day(day))


@router.put("/days/{day}", response_model=TimeLogOut)
def save_day(
    day: str,
    payload: UpsertDayRequest,
    profile: ProfileOut = Depends(require_page_profile),
    store: DataStore = Depends(get_data_store),
):
    target = parse_day(day)
    return _member_view(profile, store).save_day(target, payload.hours)


@router.delete("/days/{day}", status_code=204)
def delete_day(
    day: str,
    profile: ProfileOut = Depends(require_page_profile),
    store: DataStore = Depends(get_data_store),
):
    target = parse_day(day)
    _member_view(profile, store).delete_day(target)
    return Response(status_code=204)
