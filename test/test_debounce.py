"""Tests for request coalescing of rapid search submissions."""

from __future__ import annotations

import asyncio
import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from MarketSearch.services.debounce import RequestCoalescer


class TestRequestCoalescer(unittest.IsolatedAsyncioTestCase):
    async def test_burst_runs_only_latest_intent(self) -> None:
        calls: list[str] = []

        async def search(term: str) -> str:
            calls.append(term)
            return term.upper()

        coalescer = RequestCoalescer(search, delay=0.02)
        futures = [coalescer.submit(f"t{i}") for i in range(10)]

        result = await asyncio.wait_for(futures[-1], timeout=1.0)

        self.assertEqual(result, "T9")
        self.assertEqual(calls, ["t9"])
        self.assertTrue(all(not future.done() for future in futures[:-1]))
        self.assertEqual(coalescer.generation, 10)
        self.assertFalse(coalescer.pending)

    async def test_spaced_submissions_inside_window_coalesce(self) -> None:
        calls: list[str] = []

        async def search(term: str) -> str:
            calls.append(term)
            return term

        coalescer = RequestCoalescer(search, delay=0.1)
        future = None
        for term in ("l", "la", "lam", "lamp"):
            future = coalescer.submit(term)
            await asyncio.sleep(0.01)

        assert future is not None
        self.assertEqual(await asyncio.wait_for(future, timeout=1.0), "lamp")
        self.assertEqual(calls, ["lamp"])

    async def test_superseded_in_flight_result_is_discarded(self) -> None:
        release = asyncio.Event()
        calls: list[str] = []

        async def search(term: str) -> str:
            calls.append(term)
            if term == "old":
                await release.wait()
            return term

        coalescer = RequestCoalescer(search, delay=0.0)
        stale = coalescer.submit("old")
        while not calls:
            await asyncio.sleep(0.001)

        fresh = coalescer.submit("new")
        self.assertEqual(await asyncio.wait_for(fresh, timeout=1.0), "new")

        release.set()
        await coalescer.drain()
        self.assertFalse(stale.done())
        self.assertEqual(calls, ["old", "new"])

    async def test_cancel_disarms_pending_timer(self) -> None:
        calls: list[str] = []

        async def search(term: str) -> str:
            calls.append(term)
            return term

        coalescer = RequestCoalescer(search, delay=0.02)
        future = coalescer.submit("x")
        self.assertTrue(coalescer.pending)
        coalescer.cancel()
        self.assertFalse(coalescer.pending)

        await asyncio.sleep(0.05)
        self.assertEqual(calls, [])
        self.assertFalse(future.done())

    async def test_failure_delivered_to_latest_caller(self) -> None:
        async def search(term: str) -> str:
            raise RuntimeError(f"failed {term}")

        coalescer = RequestCoalescer(search, delay=0.0)
        future = coalescer.submit("x")

        with self.assertRaisesRegex(RuntimeError, "failed x"):
            await asyncio.wait_for(future, timeout=1.0)

    async def test_independent_instances(self) -> None:
        async def echo(term: str) -> str:
            return term

        shops = RequestCoalescer(echo, delay=0.01)
        products = RequestCoalescer(echo, delay=0.01)
        a = shops.submit("shop")
        b = products.submit("product")

        self.assertEqual(await asyncio.wait_for(asyncio.gather(a, b), timeout=1.0), ["shop", "product"])

    def test_negative_delay_rejected(self) -> None:
        async def echo(term: str) -> str:
            return term

        with self.assertRaises(ValueError):
            RequestCoalescer(echo, delay=-1)


if __name__ == "__main__":
    unittest.main()
