"""
/**
 * @file translate_proxy/tests/test_cache_service.py
 * @description 缓存键确定性与 TTL 过期单元测试。
 */
"""

import hashlib
import json
import unittest

from translate_proxy.models.translation_models import CacheEntry
from translate_proxy.services.cache_service import InMemoryStore, KeyValueStore, TranslationCache, make_cache_key


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class DictStore(KeyValueStore):
    """Plain dict-backed KV, the shape an external backend would take."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def put(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def sweep(self, is_stale):
        stale = [k for k, v in self.data.items() if is_stale(v)]
        for k in stale:
            del self.data[k]
        return len(stale)

    def __len__(self):
        return len(self.data)


class TestCacheKey(unittest.TestCase):
    def test_same_tuple_same_key(self):
        a = make_cache_key("Hello world", "en", "vi", "gemini")
        b = make_cache_key("Hello world", "en", "vi", "gemini")
        self.assertEqual(a, b)
        self.assertEqual(len(a), 64)

    def test_every_component_changes_the_key(self):
        base = make_cache_key("Hello world", "en", "vi", "gemini")
        self.assertNotEqual(base, make_cache_key("Hello world!", "en", "vi", "gemini"))
        self.assertNotEqual(base, make_cache_key("Hello world", "ja", "vi", "gemini"))
        self.assertNotEqual(base, make_cache_key("Hello world", "en", "ko", "gemini"))
        self.assertNotEqual(base, make_cache_key("Hello world", "en", "vi", "other"))

    def test_stable_across_processes(self):
        # sha256 of the canonical JSON, fixed so a change in key derivation is noticed
        expected = make_cache_key("Hello world", "en", "vi", "gemini")
        canonical = json.dumps(
            {"provider": "gemini", "sourceLang": "en", "targetLang": "vi", "text": "Hello world"}
        )
        self.assertEqual(expected, hashlib.sha256(canonical.encode("utf-8")).hexdigest())


class TestTranslationCache(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = TranslationCache(store=InMemoryStore(), ttl_seconds=100, clock=self.clock)

    def test_miss_then_hit(self):
        self.assertIsNone(self.cache.lookup("k"))
        self.cache.store("k", "Xin chào")
        entry = self.cache.lookup("k")
        self.assertIsInstance(entry, CacheEntry)
        self.assertEqual(entry.translation, "Xin chào")
        self.assertEqual((self.cache.hits, self.cache.misses), (1, 1))
        self.assertAlmostEqual(self.cache.hit_rate, 0.5)

    def test_expires_at_ttl(self):
        self.cache.store("k", "v")
        self.clock.now += 99
        self.assertIsNotNone(self.cache.lookup("k"))
        self.clock.now += 1
        self.assertIsNone(self.cache.lookup("k"))
        self.assertEqual(self.cache.size, 0)

    def test_put_overwrites_and_resets_age(self):
        self.cache.store("k", "old")
        self.clock.now += 80
        self.cache.store("k", "new")
        self.clock.now += 80
        entry = self.cache.lookup("k")
        self.assertEqual(entry.translation, "new")

    def test_injected_empty_store_is_used(self):
        backend = DictStore()
        cache = TranslationCache(store=backend, ttl_seconds=10, clock=self.clock)
        self.assertIs(cache._store, backend)
        cache.store("k", "v")
        self.assertIn("k", backend.data)
        self.clock.now += 10
        self.assertIsNone(cache.lookup("k"))
        self.assertEqual(len(backend), 0)

    def test_raised_ttl_applies_to_existing_entries(self):
        self.cache.ttl_seconds = 3600
        self.cache.store("k", "v")
        self.cache.ttl_seconds = 72 * 3600
        self.clock.now += 2 * 3600
        self.assertEqual(self.cache.sweep(), 0)
        self.assertEqual(self.cache.lookup("k").translation, "v")

    def test_lowered_ttl_expires_existing_entries(self):
        self.cache.store("k", "v")
        self.clock.now += 50
        self.cache.ttl_seconds = 30
        self.assertEqual(self.cache.sweep(), 1)
        self.assertIsNone(self.cache.lookup("k"))

    def test_sweep_removes_only_expired(self):
        self.cache.store("old", "v")
        self.clock.now += 60
        self.cache.store("fresh", "v")
        self.clock.now += 50
        self.assertEqual(self.cache.sweep(), 1)
        self.assertEqual(self.cache.size, 1)
        self.assertIsNotNone(self.cache.lookup("fresh"))


if __name__ == "__main__":
    unittest.main()
