from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any

from app.core.errors import NotFoundError, ValidationError
from app.schemas.time_log import DayDialog, TimeLogOut
from app.services.calendar_grid import add_months, month_end, month_start, same_month
from app.services.request_tracker import RequestTracker
from app.services.store.base import DataStore, Query


logger = logging.getLogger(__name__)

TABLE = "time_logs"
MIN_HOURS = 0.0
MAX_HOURS = 24.0


def parse_hours(raw: Any) -> float:
    """Validate a raw hours value from the log dialog (number or numeric string)."""
    if isinstance(raw, bool):
        raise ValidationError("Hours must be a number between 0 and 24", field="hours")
    try:
        value = float(str(raw).strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Hours must be a number between 0 and 24", field="hours") from exc
    if math.isnan(value) or value < MIN_HOURS or value > MAX_HOURS:
        raise ValidationError("Hours must be between 0 and 24", field="hours")
    return value


def format_hours(value: float) -> str:
    # 5.0 -> "5", 7.5 -> "7.5"
    return f"{float(value):g}"


class TimeLogCalendar:
    """One member's month of time logs plus single-day create/update/delete."""

    def __init__(
        self,
        store: DataStore,
        user_id: str,
        *,
        month: date | None = None,
        today: date | None = None,
        tracker: RequestTracker | None = None,
    ) -> None:
        self._store = store
        self.user_id = user_id
        self._today = today or date.today()
        self._month = month_start(month or self._today)
        self._tracker = tracker or RequestTracker()
        self._logs: list[TimeLogOut] = []

    @property
    def month(self) -> date:
        return self._month

    @property
    def logs(self) -> list[TimeLogOut]:
        return list(self._logs)

    @property
    def total_hours(self) -> float:
        return float(sum(log.hours for log in self._logs))

    @property
    def days_logged(self) -> int:
        return len(self._logs)

    def show_month(self, month: date) -> list[TimeLogOut]:
        self._month = month_start(month)
        return self.load_month(self._month)

    def previous_month(self) -> list[TimeLogOut]:
        return self.show_month(add_months(self._month, -1))

    def next_month(self) -> list[TimeLogOut]:
        return self.show_month(add_months(self._month, 1))

    def go_to_today(self) -> list[TimeLogOut]:
        return self.show_month(self._today)

    def _month_query(self, month: date) -> Query:
        return (
            Query(TABLE)
            .eq("user_id", self.user_id)
            .gte("date", month_start(month))
            .lte("date", month_end(month))
            .order("date")
        )

    def load_month(self, month: date | None = None) -> list[TimeLogOut]:
        target = month_start(month or self._month)
        tag = self._tracker.issue("month", {"user_id": self.user_id, "month": target.isoformat()})
        result = self._store.select(self._month_query(target))
        logs = [TimeLogOut.model_validate(r) for r in result.rows]
        if self._tracker.is_current(tag) and target == self._month:
            self._logs = logs
        else:
            logger.debug("time_logs.load.stale user_id=%s month=%s", self.user_id, target.isoformat())
        return logs

    def log_for_date(self, day: date) -> TimeLogOut | None:
        for log in self._logs:
            if log.date == day:
                return log
        return None

    def _existing_for(self, day: date) -> TimeLogOut | None:
        if same_month(day, self._month):
            return self.log_for_date(day)
        result = self._store.select(Query(TABLE).eq("user_id", self.user_id).eq("date", day).range(0, 1))
        return TimeLogOut.model_validate(result.rows[0]) if result.rows else None

    def dialog_for(self, day: date) -> DayDialog:
        existing = self._existing_for(day)
        return DayDialog(
            date=day,
            hours=(format_hours(existing.hours) if existing else ""),
            has_log=existing is not None,
            can_delete=existing is not None,
        )

    def upsert_day(self, day: date, hours: Any) -> TimeLogOut:
        value = parse_hours(hours)
        existing = self._existing_for(day)
        if existing is not None:
            row = self._store.update(TABLE, existing.id, {"hours": value})
            logger.info("time_logs.upsert.update user_id=%s date=%s hours=%s", self.user_id, day.isoformat(), value)
        else:
            row = self._store.insert(TABLE, {"user_id": self.user_id, "date": day.isoformat(), "hours": value})
            logger.info("time_logs.upsert.insert user_id=%s date=%s hours=%s", self.user_id, day.isoformat(), value)
        saved = TimeLogOut.model_validate(row)
        if same_month(saved.date, self._month):
            self._logs = [log for log in self._logs if log.date != saved.date] + [saved]
        self.load_month(self._month)
        return saved

    def delete_day(self, day: date) -> None:
        existing = self._existing_for(day)
        if existing is None:
            raise NotFoundError(f"No time log on {day.isoformat()}")
        self._store.delete(TABLE, existing.id)
        logger.info("time_logs.delete user_id=%s date=%s", self.user_id, day.isoformat())
        self._logs = [log for log in self._logs if log.id != existing.id]
        self.load_month(self._month)
