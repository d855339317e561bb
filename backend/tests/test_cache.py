import unittest

from app.services.cache import RoleCache
from app.services.request_tracker import RequestTracker, params_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestRoleCache(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = RoleCache(max_items=3, ttl_s=30, clock=self.clock)

    def test_entries_expire(self):
        self.cache.remember("u1", "admin")
        self.clock.now += 29
        self.assertEqual(self.cache.get_role("u1"), "admin")

        self.clock.now += 1
        self.assertIsNone(self.cache.get_role("u1"))
        self.assertEqual(len(self.cache), 0)

    def test_full_cache_drops_expired_before_oldest(self):
        self.cache.remember("u1", "user")
        self.clock.now += 20
        self.cache.remember("u2", "user")
        self.cache.remember("u3", "user")
        self.clock.now += 15

        self.cache.remember("u4", "admin")

        self.assertIsNone(self.cache.get_role("u1"))
        self.assertEqual([self.cache.get_role(u) for u in ("u2", "u3", "u4")], ["user", "user", "admin"])

    def test_full_cache_drops_oldest(self):
        for user_id in ("u1", "u2", "u3"):
            self.cache.remember(user_id, "user")
        self.cache.remember("u1", "admin")

        self.cache.remember("u4", "user")

        self.assertIsNone(self.cache.get_role("u2"))
        self.assertEqual(self.cache.get_role("u1"), "admin")
        self.assertEqual(len(self.cache), 3)

    def test_forget_and_clear(self):
        self.cache.remember("u1", "admin")
        self.cache.remember("u2", "user")

        self.cache.forget("u1")
        self.cache.forget("missing")
        self.assertIsNone(self.cache.get_role("u1"))

        self.cache.clear()
        self.assertEqual(len(self.cache), 0)


class TestRequestTracker(unittest.TestCase):
    def test_params_key_ignores_dict_order(self):
        self.assertEqual(
            params_key("audit", {"page": [1, 25], "filters": {"email": "a", "action": "all"}}),
            params_key("audit", {"filters": {"action": "all", "email": "a"}, "page": [1, 25]}),
        )
        self.assertNotEqual(params_key("audit", {"page": [1, 25]}), params_key("dashboard", {"page": [1, 25]}))

    def test_only_latest_tag_per_category_is_current(self):
        tracker = RequestTracker()
        first = tracker.issue("dashboard", {"page": 1})
        other = tracker.issue("audit", {"page": 1})
        second = tracker.issue("dashboard", {"page": 1})

        self.assertFalse(tracker.is_current(first))
        self.assertTrue(tracker.is_current(second))
        self.assertTrue(tracker.is_current(other))


if __name__ == "__main__":
    unittest.main()
