import json
import unittest
from datetime import date
from unittest import mock

from app.core.errors import NotFoundError, ValidationError
from app.models.audit_log import AuditLog
from app.services.audit_query import AuditFilters, AuditQueryEngine, format_change
from app.services.store.sql import SqlStore
from app.services.time_log_calendar import TimeLogCalendar

from db_helpers import add_audit, add_profile, memory_session_factory, utc


class TestFormatChange(unittest.TestCase):
    def test_create(self):
        self.assertEqual(
            format_change("create", None, {"date": "2024-03-15", "hours": 8}),
            "Created 8h log for 15/03/2024",
        )

    def test_update(self):
        self.assertEqual(
            format_change("update", {"date": "2024-03-15", "hours": 5}, {"date": "2024-03-15", "hours": 8.0}),
            "5h → 8h (15/03/2024)",
        )

    def test_delete(self):
        self.assertEqual(
            format_change("delete", {"date": "2024-03-15", "hours": 7.5}, None),
            "Deleted 7.5h log for 15/03/2024",
        )

    def test_missing_snapshot(self):
        self.assertEqual(format_change("update", None, {"hours": 1}), "-")
        self.assertEqual(format_change("create", None, None), "-")


class TestAuditFilters(unittest.TestCase):
    def test_unknown_action_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            AuditFilters.parse(action="archive")
        self.assertEqual(ctx.exception.field, "action")

    def test_parse_normalizes(self):
        self.assertEqual(AuditFilters.parse(email=" Al ", action="UPDATE"), AuditFilters(email="Al", action="update"))


class TestAuditQueryEngine(unittest.TestCase):
    def setUp(self):
        self.db = memory_session_factory()()
        add_profile(self.db, "u1", "alice@example.com")
        add_profile(self.db, "u2", "bob@example.com")
        self.store = SqlStore(self.db)
        self.engine = AuditQueryEngine(self.store)

    def tearDown(self):
        self.db.close()

    def _seed(self):
        add_audit(self.db, "u1", "create", changed_at=utc(2024, 3, 1), new_data={"date": "2024-03-01", "hours": 5})
        add_audit(
            self.db,
            "u1",
            "update",
            changed_at=utc(2024, 3, 2),
            old_data={"date": "2024-03-01", "hours": 5},
            new_data={"date": "2024-03-01", "hours": 8},
        )
        add_audit(
            self.db,
            "u2",
            "update",
            changed_at=utc(2024, 3, 3),
            old_data={"date": "2024-03-02", "hours": 2},
            new_data={"date": "2024-03-02", "hours": 3},
        )
        add_audit(self.db, "u1", "delete", changed_at=utc(2024, 3, 4), old_data={"date": "2024-03-01", "hours": 8})

    def test_newest_first(self):
        self._seed()
        paged = self.engine.query_audit_logs(AuditFilters())

        self.assertEqual([item.log.action for item in paged.items], ["delete", "update", "update", "create"])
        self.assertEqual(paged.total, 4)

    def test_action_and_email_filters_combine(self):
        self._seed()
        paged = self.engine.query_audit_logs(AuditFilters.parse(email="alice", action="update"))

        self.assertEqual(len(paged.items), 1)
        item = paged.items[0]
        self.assertEqual(item.email, "alice@example.com")
        self.assertEqual(item.summary, "5h → 8h (01/03/2024)")

    def test_filter_change_resets_page(self):
        for day in range(1, 28):
            add_audit(self.db, "u1", "create", changed_at=utc(2024, 3, day), new_data={"date": "2024-03-01", "hours": 1})
        self.engine.refresh()
        self.engine.go_to(2)
        self.assertEqual(self.engine.state.page, 2)
        self.assertEqual(len(self.engine.current.items), 2)

        self.engine.set_filters(AuditFilters.parse(action="create"))
        self.assertEqual(self.engine.state.page, 1)

    def test_detail_pretty_prints_snapshots(self):
        self._seed()
        newest = self.engine.query_audit_logs(AuditFilters.parse(action="update")).items[0]

        detail = self.engine.get_detail(newest.log.id)

        self.assertEqual(detail.email, "bob@example.com")
        self.assertEqual(json.loads(detail.old_data_dump), {"date": "2024-03-02", "hours": 2})
        self.assertIn("\n  ", detail.new_data_dump)

    def test_detail_missing(self):
        with self.assertRaises(NotFoundError):
            self.engine.get_detail("nope")

    def test_time_log_changes_are_audited(self):
        calendar = TimeLogCalendar(self.store, "u1", today=date(2024, 3, 20))
        calendar.load_month()
        calendar.upsert_day(date(2024, 3, 15), 5)
        calendar.upsert_day(date(2024, 3, 15), 8)
        calendar.delete_day(date(2024, 3, 15))

        rows = self.db.query(AuditLog).all()
        summaries = sorted(format_change(r.action, r.old_data, r.new_data) for r in rows)

        self.assertEqual(
            summaries,
            sorted(["Created 5h log for 15/03/2024", "5h → 8h (15/03/2024)", "Deleted 8h log for 15/03/2024"]),
        )
        self.assertTrue(all(r.user_id == "u1" and r.table_name == "time_logs" for r in rows))

    def test_superseded_query_keeps_the_newer_listing(self):
        self._seed()
        newer = AuditFilters.parse(action="delete")
        real_select = self.store.select
        calls = []

        def select(query):
            calls.append(query)
            if len(calls) == 1:
                # A newer query starts and finishes while the first is in flight.
                self.engine.query_audit_logs(newer)
            return real_select(query)

        with mock.patch.object(self.store, "select", side_effect=select):
            stale = self.engine.query_audit_logs(AuditFilters.parse(action="create"))

        self.assertEqual([item.log.action for item in stale.items], ["create"])
        self.assertEqual([item.log.action for item in self.engine.current.items], ["delete"])


if __name__ == "__main__":
    unittest.main()
