import threading
import unittest

from translate_proxy.services.rate_limit_service import InMemoryCounterStore, RateLimiter


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock(1000.0)
        self.store = InMemoryCounterStore()
        self.limiter = RateLimiter(max_requests=60, window_seconds=60, store=self.store, clock=self.clock)

    def test_injected_empty_store_is_used(self):
        self.assertIs(self.limiter._store, self.store)
        self.limiter.check("1.2.3.4")
        self.assertEqual(len(self.store), 1)

    def test_first_request_starts_window(self):
        decision = self.limiter.check("1.2.3.4")
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.remaining, 59)
        self.assertEqual(decision.retry_after_seconds, 0)
        self.assertEqual(decision.reset_after_seconds, 60)

    def test_rejects_request_over_cap(self):
        for i in range(60):
            self.assertTrue(self.limiter.check("1.2.3.4").allowed, i)
        decision = self.limiter.check("1.2.3.4")
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.remaining, 0)
        self.assertEqual(decision.retry_after_seconds, 60)

    def test_allows_again_after_window(self):
        for _ in range(61):
            self.limiter.check("1.2.3.4")
        self.clock.now += 59
        self.assertFalse(self.limiter.check("1.2.3.4").allowed)
        self.clock.now += 1
        decision = self.limiter.check("1.2.3.4")
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.remaining, 59)

    def test_clients_are_counted_separately(self):
        for _ in range(60):
            self.limiter.check("a")
        self.assertFalse(self.limiter.check("a").allowed)
        self.assertTrue(self.limiter.check("b").allowed)

    def test_trusted_clients_bypass(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60, trusted_clients=["10.0.0.1"], clock=self.clock)
        for _ in range(5):
            decision = limiter.check("10.0.0.1")
            self.assertTrue(decision.allowed)
            self.assertTrue(decision.bypassed)
        self.assertTrue(limiter.check("10.0.0.2").allowed)
        self.assertFalse(limiter.check("10.0.0.2").allowed)

    def test_fixed_window_allows_burst_across_boundary(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60, clock=self.clock)
        self.clock.now = 1059
        for _ in range(3):
            self.assertTrue(limiter.check("c").allowed)
        self.clock.now = 1119
        for _ in range(3):
            self.assertTrue(limiter.check("c").allowed)

    def test_sweep_drops_elapsed_windows(self):
        self.limiter.check("a")
        self.clock.now += 30
        self.limiter.check("b")
        self.clock.now += 30
        self.assertEqual(self.limiter.sweep(), 1)
        self.assertEqual(len(self.store), 1)

    def test_concurrent_hits_are_not_lost(self):
        limiter = RateLimiter(max_requests=10_000, window_seconds=60, store=self.store, clock=self.clock)

        def worker():
            for _ in range(50):
                limiter.check("shared")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        _, window = self.store.hit("shared", 10_000, 60, self.clock.now)
        self.assertEqual(window.count, 8 * 50 + 1)


if __name__ == "__main__":
    unittest.main()
