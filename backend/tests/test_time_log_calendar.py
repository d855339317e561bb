import unittest
from datetime import date

from app.core.errors import NotFoundError, ValidationError
from app.models.time_log import TimeLog
from app.services.store.base import QueryResult
from app.services.store.sql import SqlStore
from app.services.time_log_calendar import TimeLogCalendar, format_hours, parse_hours

from db_helpers import add_log, add_profile, memory_session_factory


class SpyStore:
    """Records every call; used to prove validation never reaches the store."""

    def __init__(self):
        self.calls = []

    def select(self, query):
        self.calls.append(("select", query.table))
        return QueryResult(rows=[], total=None)

    def insert(self, table, values):
        self.calls.append(("insert", table))
        raise AssertionError("insert must not be called")

    def update(self, table, row_id, values):
        self.calls.append(("update", table))
        raise AssertionError("update must not be called")

    def delete(self, table, row_id):
        self.calls.append(("delete", table))
        raise AssertionError("delete must not be called")


class TestParseHours(unittest.TestCase):
    def test_accepts_bounds_and_numeric_strings(self):
        self.assertEqual(parse_hours(0), 0.0)
        self.assertEqual(parse_hours(24), 24.0)
        self.assertEqual(parse_hours(" 7.5 "), 7.5)

    def test_rejects_out_of_range_and_garbage(self):
        for raw in (-1, 24.5, 25, "abc", "", None, "nan", True):
            with self.subTest(raw=raw):
                with self.assertRaises(ValidationError) as ctx:
                    parse_hours(raw)
                self.assertEqual(ctx.exception.field, "hours")

    def test_format_hours(self):
        self.assertEqual(format_hours(5.0), "5")
        self.assertEqual(format_hours(7.5), "7.5")


class TestTimeLogCalendar(unittest.TestCase):
    def setUp(self):
        self.db = memory_session_factory()()
        add_profile(self.db, "u1", "alice@example.com")
        add_profile(self.db, "u2", "bob@example.com")
        self.store = SqlStore(self.db)
        self.calendar = TimeLogCalendar(self.store, "u1", today=date(2024, 3, 20))

    def tearDown(self):
        self.db.close()

    def _rows_for(self, user_id, day):
        return self.db.query(TimeLog).filter(TimeLog.user_id == user_id, TimeLog.date == day).all()

    def test_load_month_only_returns_own_logs_in_month(self):
        add_log(self.db, "u1", date(2024, 3, 1), 8)
        add_log(self.db, "u1", date(2024, 3, 31), 4)
        add_log(self.db, "u1", date(2024, 4, 1), 6)
        add_log(self.db, "u2", date(2024, 3, 5), 7)

        logs = self.calendar.load_month(date(2024, 3, 1))

        self.assertEqual([log.date for log in logs], [date(2024, 3, 1), date(2024, 3, 31)])
        self.assertEqual(self.calendar.total_hours, 12.0)
        self.assertEqual(self.calendar.days_logged, 2)

    def test_upsert_creates_then_updates_single_row(self):
        day = date(2024, 3, 15)
        self.calendar.load_month()
        self.calendar.upsert_day(day, "5")
        saved = self.calendar.upsert_day(day, 8)

        rows = self._rows_for("u1", day)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].hours, 8.0)
        self.assertEqual(saved.hours, 8.0)
        self.assertEqual(self.calendar.log_for_date(day).hours, 8.0)

    def test_upsert_is_idempotent(self):
        day = date(2024, 3, 15)
        self.calendar.load_month()
        self.calendar.upsert_day(day, 6)
        self.calendar.upsert_day(day, 6)

        self.assertEqual(len(self._rows_for("u1", day)), 1)
        self.assertEqual(self.calendar.total_hours, 6.0)

    def test_upsert_outside_loaded_month_updates_existing_row(self):
        add_log(self.db, "u1", date(2024, 2, 10), 3)
        self.calendar.load_month(date(2024, 3, 1))

        self.calendar.upsert_day(date(2024, 2, 10), 9)

        rows = self._rows_for("u1", date(2024, 2, 10))
        self.assertEqual([r.hours for r in rows], [9.0])

    def test_invalid_hours_never_reach_the_store(self):
        spy = SpyStore()
        calendar = TimeLogCalendar(spy, "u1", today=date(2024, 3, 20))
        for raw in (-1, 25, "abc"):
            with self.assertRaises(ValidationError):
                calendar.upsert_day(date(2024, 3, 15), raw)
        self.assertEqual(spy.calls, [])

    def test_delete_removes_row_and_reloads(self):
        add_log(self.db, "u1", date(2024, 3, 15), 8)
        self.calendar.load_month()

        self.calendar.delete_day(date(2024, 3, 15))

        self.assertEqual(self._rows_for("u1", date(2024, 3, 15)), [])
        self.assertIsNone(self.calendar.log_for_date(date(2024, 3, 15)))
        self.assertEqual(self.calendar.days_logged, 0)

    def test_delete_without_log_is_not_found(self):
        self.calendar.load_month()
        with self.assertRaises(NotFoundError):
            self.calendar.delete_day(date(2024, 3, 16))

    def test_dialog_prefills_existing_hours(self):
        add_log(self.db, "u1", date(2024, 3, 15), 5)
        self.calendar.load_month()

        dialog = self.calendar.dialog_for(date(2024, 3, 15))
        empty = self.calendar.dialog_for(date(2024, 3, 16))

        self.assertEqual(dialog.hours, "5")
        self.assertTrue(dialog.can_delete)
        self.assertEqual(empty.hours, "")
        self.assertFalse(empty.has_log)

    def test_month_navigation(self):
        self.calendar.previous_month()
        self.assertEqual(self.calendar.month, date(2024, 2, 1))
        self.calendar.next_month()
        self.calendar.next_month()
        self.assertEqual(self.calendar.month, date(2024, 4, 1))
        self.calendar.go_to_today()
        self.assertEqual(self.calendar.month, date(2024, 3, 1))

    def test_stale_month_load_is_discarded(self):
        add_log(self.db, "u1", date(2024, 2, 10), 3)
        add_log(self.db, "u1", date(2024, 3, 10), 7)
        inner = SqlStore(self.db)
        calendar = None

        class ReentrantStore:
            """Switches the month while the first load is still in flight."""

            switched = False

            def select(self, query):
                if not ReentrantStore.switched:
                    ReentrantStore.switched = True
                    calendar.show_month(date(2024, 3, 1))
                return inner.select(query)

        calendar = TimeLogCalendar(ReentrantStore(), "u1", today=date(2024, 3, 20))
        calendar.show_month(date(2024, 2, 1))

        self.assertEqual(calendar.month, date(2024, 3, 1))
        self.assertEqual([log.date for log in calendar.logs], [date(2024, 3, 10)])


if __name__ == "__main__":
    unittest.main()
