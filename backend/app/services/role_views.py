from __future__ import annotations

from datetime import date
from typing import Any

from app.schemas.time_log import CalendarCell, CalendarView, DayDetail, DayDialog, ProfileOut
from app.services.calendar_grid import (
    WEEKDAY_LABELS,
    add_months,
    grid_weeks,
    month_key,
    month_label,
    month_start,
    same_month,
)
from app.services.profiles import ADMIN_ROLE, DEFAULT_ROLE
from app.services.store.base import DataStore
from app.services.team_aggregator import TeamAggregator
from app.services.time_log_calendar import TimeLogCalendar, parse_hours


class RoleView:
    """Calendar page for one signed-in profile.

    The grid is shared; subclasses decide where the month's data comes from,
    what each cell shows and what opening a day yields.
    """

    role = ""
    read_only = True

    def __init__(self, profile: ProfileOut, store: DataStore, *, today: date | None = None) -> None:
        self.profile = profile
        self._store = store
        self._today = today or date.today()

    def load(self, month: date) -> None:
        raise NotImplementedError

    def fill_cell(self, cell: CalendarCell) -> None:
        raise NotImplementedError

    def stats(self) -> dict[str, Any]:
        raise NotImplementedError

    def open_day(self, day: date) -> DayDialog | DayDetail:
        raise NotImplementedError

    def calendar(self, month: date) -> CalendarView:
        month = month_start(month)
        self.load(month)
        weeks = []
        for week in grid_weeks(month):
            row = []
            for day in week:
                cell = CalendarCell(
                    date=day,
                    day=day.day,
                    in_month=same_month(day, month),
                    is_today=(day == self._today),
                    is_sunday=(day.weekday() == 6),
                )
                if cell.in_month:
                    self.fill_cell(cell)
                row.append(cell)
            weeks.append(row)
        return CalendarView(
            role=self.role,
            month=month_key(month),
            label=month_label(month),
            previous_month=month_key(add_months(month, -1)),
            next_month=month_key(add_months(month, 1)),
            weekdays=WEEKDAY_LABELS,
            weeks=weeks,
            stats=self.stats(),
        )


class MemberView(RoleView):
    role = DEFAULT_ROLE
    read_only = False

    def __init__(self, profile: ProfileOut, store: DataStore, *, today: date | None = None) -> None:
        super().__init__(profile, store, today=today)
        self.engine = TimeLogCalendar(store, profile.id, today=self._today)

    def load(self, month: date) -> None:
        self.engine.show_month(month)

    def fill_cell(self, cell: CalendarCell) -> None:
        log = self.engine.log_for_date(cell.date)
        if log is not None:
            cell.hours = log.hours

    def stats(self) -> dict[str, Any]:
        return {"total_hours": self.engine.total_hours, "days_logged": self.engine.days_logged}

    def open_day(self, day: date) -> DayDialog:
        self.engine.show_month(day)
        return self.engine.dialog_for(day)

    def save_day(self, day: date, hours: Any):
        value = parse_hours(hours)
        self.engine.show_month(day)
        return self.engine.upsert_day(day, value)

    def delete_day(self, day: date) -> None:
        self.engine.show_month(day)
        self.engine.delete_day(day)


class AdminView(RoleView):
    role = ADMIN_ROLE

    def __init__(self, profile: ProfileOut, store: DataStore, *, today: date | None = None) -> None:
        super().__init__(profile, store, today=today)
        self.aggregator = TeamAggregator(store)

    def load(self, month: date) -> None:
        self.aggregator.load_team_month(month)

    def fill_cell(self, cell: CalendarCell) -> None:
        entries = self.aggregator.logs_for_date(cell.date)
        if entries:
            cell.entries = entries
            cell.total_hours = float(sum(e.hours for e in entries))

    def stats(self) -> dict[str, Any]:
        return self.aggregator.aggregates.model_dump()

    def open_day(self, day: date) -> DayDetail:
        if self.aggregator.month is None or not same_month(day, self.aggregator.month):
            self.aggregator.load_team_month(day)
        entries = self.aggregator.logs_for_date(day)
        return DayDetail(date=day, entries=entries, total_hours=float(sum(e.hours for e in entries)))


def role_view_for(profile: ProfileOut, store: DataStore, *, today: date | None = None) -> RoleView:
    view_cls = AdminView if profile.is_admin else MemberView
    return view_cls(profile, store, today=today)
