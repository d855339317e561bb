import unittest
from datetime import date
from unittest import mock

import requests

from app.core.errors import NotFoundError, RemoteCallError
from app.core.settings import settings
from app.services.store.base import Query, substring_pattern
from app.services.store.factory import open_data_store
from app.services.store.supabase import SupabaseStore, _parse_content_range, build_select_params


def _response(status=200, body=None, headers=None):
    resp = mock.Mock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else []
    resp.headers = headers or {}
    resp.text = ""
    return resp


class TestSelectParams(unittest.TestCase):
    def test_dashboard_query(self):
        query = (
            Query("time_logs")
            .join_profiles("email")
            .ilike("profiles.email", "%ali%")
            .gte("date", date(2024, 3, 1))
            .order("date", descending=True)
            .range(20, 10)
        )

        self.assertEqual(
            build_select_params(query),
            [
                ("select", "*,profiles!inner(email)"),
                ("profiles.email", "ilike.%ali%"),
                ("date", "gte.2024-03-01"),
                ("order", "date.desc"),
                ("offset", "20"),
                ("limit", "10"),
            ],
        )

    def test_plain_query(self):
        self.assertEqual(build_select_params(Query("profiles").eq("id", "u1")), [("select", "*"), ("id", "eq.u1")])

    def test_content_range(self):
        self.assertEqual(_parse_content_range("0-9/57"), 57)
        self.assertEqual(_parse_content_range("*/0"), 0)
        self.assertIsNone(_parse_content_range("0-9/*"))
        self.assertIsNone(_parse_content_range(None))


class TestSupabaseStore(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.store = SupabaseStore(
            supabase_url="https://demo.supabase.co/",
            api_key="anon",
            access_token="user-token",
            session=self.session,
        )

    def test_select_sends_caller_token_and_reads_count(self):
        self.session.request.return_value = _response(body=[{"id": "1"}], headers={"content-range": "0-0/42"})

        result = self.store.select(Query("time_logs").eq("user_id", "u1").with_count())

        self.assertEqual(result.total, 42)
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "https://demo.supabase.co/rest/v1/time_logs"))
        self.assertEqual(kwargs["headers"]["authorization"], "Bearer user-token")
        self.assertEqual(kwargs["headers"]["prefer"], "count=exact")

    def test_insert_returns_representation(self):
        self.session.request.return_value = _response(status=201, body=[{"id": "x", "hours": 8}])

        row = self.store.insert("time_logs", {"hours": 8})

        self.assertEqual(row["id"], "x")
        self.assertEqual(self.session.request.call_args.kwargs["headers"]["prefer"], "return=representation")

    def test_update_of_missing_row_is_not_found(self):
        self.session.request.return_value = _response(body=[])
        with self.assertRaises(NotFoundError):
            self.store.update("time_logs", "x", {"hours": 1})
        self.assertEqual(self.session.request.call_args.kwargs["params"], [("id", "eq.x")])

    def test_http_error_becomes_remote_call_error(self):
        self.session.request.return_value = _response(status=403, body={"message": "permission denied"})
        with self.assertRaises(RemoteCallError) as ctx:
            self.store.delete("time_logs", "x")
        self.assertEqual(ctx.exception.status_code, 403)

    def test_network_error_becomes_remote_call_error(self):
        self.session.request.side_effect = requests.ConnectionError("boom")
        with self.assertRaises(RemoteCallError):
            self.store.select(Query("profiles"))

    def test_email_wildcards_are_escaped(self):
        query = Query("time_logs").ilike("profiles.email", substring_pattern("a_b%c"))
        self.assertEqual(build_select_params(query)[1], ("profiles.email", "ilike.%a\\_b\\%c%"))


class TestSessionLifecycle(unittest.TestCase):
    def setUp(self):
        for name, value in (
            ("data_backend", "supabase"),
            ("supabase_url", "https://demo.supabase.co"),
            ("supabase_anon_key", "anon"),
        ):
            patcher = mock.patch.object(settings, name, value)
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_request_scoped_store_closes_its_session(self):
        with mock.patch("app.services.store.supabase.requests.Session") as session_cls:
            with open_data_store("user-token") as store:
                self.assertIsInstance(store, SupabaseStore)
                session_cls.return_value.close.assert_not_called()

        session_cls.return_value.close.assert_called_once_with()

    def test_session_is_closed_when_the_request_fails(self):
        with mock.patch("app.services.store.supabase.requests.Session") as session_cls:
            with self.assertRaises(RemoteCallError):
                with open_data_store("user-token"):
                    raise RemoteCallError("boom")

        session_cls.return_value.close.assert_called_once_with()

    def test_caller_session_is_left_open(self):
        session = mock.Mock()
        store = SupabaseStore(supabase_url="https://demo.supabase.co", api_key="anon", session=session)

        store.close()

        session.close.assert_not_called()


if __name__ == "__main__":
    unittest.main()
