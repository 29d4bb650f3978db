import unittest

from ensight.services.cache import TTLCache
from ensight.settings import CacheSettings


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TTLCacheTest(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = TTLCache(ttl_seconds=300, max_entries=3, clock=self.clock)

    def test_set_then_get(self):
        self.cache.set("resolve:vitalik.eth", "0xd8da6bf26964af9d7eed9e03e53415d37aa96045")
        self.assertEqual(self.cache.get("resolve:vitalik.eth"), "0xd8da6bf26964af9d7eed9e03e53415d37aa96045")
        self.assertTrue(self.cache.has("resolve:vitalik.eth"))

    def test_missing_key_is_none(self):
        self.assertIsNone(self.cache.get("reverse:0x00"))
        self.assertFalse(self.cache.has("reverse:0x00"))

    def test_entry_expires_after_ttl(self):
        self.cache.set("k", "v")
        self.clock.advance(299.5)
        self.assertEqual(self.cache.get("k"), "v")
        self.clock.advance(0.5)
        # visible only while strictly before expiry
        self.assertIsNone(self.cache.get("k"))

    def test_expired_read_evicts_entry(self):
        self.cache.set("k", "v")
        self.assertEqual(self.cache.size, 1)
        self.clock.advance(301)
        self.assertEqual(self.cache.size, 1)
        self.assertIsNone(self.cache.get("k"))
        self.assertEqual(self.cache.size, 0)

    def test_ttl_override(self):
        self.cache.set("short", 1, ttl_seconds=1)
        self.cache.set("long", 2)
        self.clock.advance(2)
        self.assertIsNone(self.cache.get("short"))
        self.assertEqual(self.cache.get("long"), 2)

    def test_eviction_is_insertion_ordered_not_recency(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key.upper())
        for _ in range(5):
            self.assertEqual(self.cache.get("a"), "A")
        self.cache.set("d", "D")
        self.assertIsNone(self.cache.get("a"))
        self.assertEqual(self.cache.get("b"), "B")
        self.assertEqual(self.cache.get("c"), "C")
        self.assertEqual(self.cache.get("d"), "D")
        self.assertEqual(len(self.cache), 3)

    def test_eviction_skips_already_removed_keys(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key)
        self.cache.delete("a")
        self.cache.set("d", "d")
        self.cache.set("e", "e")
        self.assertIsNone(self.cache.get("b"))
        self.assertEqual(self.cache.get("c"), "c")

    def test_overwrite_does_not_evict(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, 1)
        self.cache.set("b", 2)
        self.assertEqual(self.cache.size, 3)
        self.assertEqual(self.cache.get("a"), 1)
        self.assertEqual(self.cache.get("b"), 2)

    def test_overwrite_at_capacity_keeps_other_entries(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, 1)
        self.cache.set("c", 2)
        self.cache.set("a", 3)
        self.assertEqual(self.cache.size, 3)
        self.assertEqual([self.cache.get(k) for k in ("a", "b", "c")], [3, 1, 2])
        # "a" kept its original position, so it is still first out
        self.cache.set("d", 4)
        self.assertFalse(self.cache.has("a"))
        self.assertTrue(self.cache.has("b"))

    def test_has_sees_live_none_value(self):
        self.cache.set("text:nick.eth:url", None)
        self.assertTrue(self.cache.has("text:nick.eth:url"))
        self.assertIsNone(self.cache.get("text:nick.eth:url"))
        self.clock.advance(300)
        self.assertFalse(self.cache.has("text:nick.eth:url"))
        self.assertEqual(self.cache.size, 0)

    def test_overwrite_refreshes_expiry(self):
        self.cache.set("k", 1)
        self.clock.advance(200)
        self.cache.set("k", 2)
        self.clock.advance(200)
        self.assertEqual(self.cache.get("k"), 2)

    def test_delete_and_clear(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.cache.delete("a")
        self.cache.delete("missing")
        self.assertIsNone(self.cache.get("a"))
        self.cache.clear()
        self.assertEqual(self.cache.size, 0)
        self.assertIsNone(self.cache.get("b"))

    def test_defaults(self):
        cache = TTLCache()
        self.assertEqual(cache.ttl_seconds, 300)
        self.assertEqual(cache.max_entries, 10000)

    def test_from_settings(self):
        cache = TTLCache.from_settings(CacheSettings(ttl_seconds=12, max_entries=7), clock=self.clock)
        self.assertEqual(cache.ttl_seconds, 12)
        self.assertEqual(cache.max_entries, 7)

    def test_rejects_zero_capacity(self):
        with self.assertRaises(ValueError):
            TTLCache(max_entries=0)

    def test_small_cache_scenario(self):
        cache = TTLCache(ttl_seconds=0.05, max_entries=2, clock=self.clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        self.assertIsNone(cache.get("a"))
        self.assertEqual(cache.get("b"), 2)
        self.assertEqual(cache.get("c"), 3)
        self.clock.advance(0.08)
        self.assertIsNone(cache.get("b"))
        self.assertIsNone(cache.get("c"))


if __name__ == "__main__":
    unittest.main()
