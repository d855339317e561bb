from __future__ import annotations

import calendar
from datetime import date, timedelta

from app.core.errors import ValidationError


WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def month_label(day: date) -> str:
    return f"{calendar.month_name[day.month]} {day.year}"


def parse_month(raw: str | None, *, default: date) -> date:
    """Parse ``YYYY-MM`` (or a full ``YYYY-MM-DD``) into the first day of that month."""
    value = (raw or "").strip()
    if not value:
        return month_start(default)
    try:
        if len(value) == 7:
            year, month = value.split("-")
            return date(int(year), int(month), 1)
        return month_start(date.fromisoformat(value))
    except ValueError as exc:
        raise ValidationError("month must look like YYYY-MM", field="month") from exc


def parse_day(raw: str, *, field: str = "date") -> date:
    try:
        return date.fromisoformat((raw or "").strip()[:10])
    except ValueError as exc:
        raise ValidationError(f"{field} must look like YYYY-MM-DD", field=field) from exc


def grid_days(month: date) -> list[date]:
    """Every day shown for ``month``: Sunday before the 1st through Saturday after the last day."""
    first = month_start(month)
    last = month_end(month)
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    end = last + timedelta(days=(5 - last.weekday()) % 7)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def grid_weeks(month: date) -> list[list[date]]:
    days = grid_days(month)
    return [days[i : i + 7] for i in range(0, len(days), 7)]
