import threading
import time
import unittest

from secured.core.cache import ResolutionCache


class TestResolutionCache(unittest.TestCase):
    def test_hit_does_not_recompute(self) -> None:
        cache = ResolutionCache()
        calls = []

        def compute():
            calls.append(1)
            return frozenset({"A"})

        first = cache.get_or_compute("k", compute)
        second = cache.get_or_compute("k", compute)
        self.assertIs(first, second)
        self.assertEqual(len(calls), 1)
        self.assertIn("k", cache)
        self.assertEqual(len(cache), 1)

    def test_concurrent_first_access_computes_once(self) -> None:
        cache = ResolutionCache()
        calls = []
        calls_lock = threading.Lock()
        barrier = threading.Barrier(16)
        results = []

        def compute():
            with calls_lock:
                calls.append(1)
            time.sleep(0.05)
            return frozenset({"ROLE_ADMIN"})

        def worker():
            barrier.wait()
            results.append(cache.get_or_compute(("method", "type"), compute))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(calls), 1)
        self.assertEqual(len(results), 16)
        self.assertTrue(all(r is results[0] for r in results))

    def test_distinct_keys_compute_separately(self) -> None:
        cache = ResolutionCache()
        self.assertEqual(cache.get_or_compute("a", lambda: frozenset({"A"})), frozenset({"A"}))
        self.assertEqual(cache.get_or_compute("b", lambda: frozenset()), frozenset())
        self.assertEqual(len(cache), 2)

    def test_failed_computation_stores_nothing(self) -> None:
        cache = ResolutionCache()

        def boom():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            cache.get_or_compute("k", boom)
        self.assertNotIn("k", cache)
        self.assertEqual(cache.get_or_compute("k", lambda: frozenset({"A"})), frozenset({"A"}))


if __name__ == "__main__":
    unittest.main()
