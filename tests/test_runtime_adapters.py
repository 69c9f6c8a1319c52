"""Runtime adapter tests for thread and asyncio producers.

Each adapter must deliver cancellation to the producer, report completion
only after the producer has actually stopped, and surface its exception.
"""

from __future__ import annotations

import asyncio
import threading
import unittest

from livepager.runtime.adapters import AsyncioRuntime, CancelToken, ThreadRuntime


class CancelTokenTests(unittest.TestCase):
    def test_wait_returns_early_once_cancelled(self) -> None:
        token = CancelToken()

        self.assertFalse(token.wait(0.001))
        token.cancel()
        self.assertTrue(token.cancelled)
        self.assertTrue(token.wait(5.0))


class ThreadRuntimeTests(unittest.TestCase):
    def test_cancellation_stops_cooperative_producer(self) -> None:
        started = threading.Event()
        stopped = threading.Event()

        def producer(token: CancelToken) -> None:
            started.set()
            while not token.cancelled:
                token.wait(0.01)
            stopped.set()

        handle = ThreadRuntime().spawn(producer)
        self.assertTrue(started.wait(2.0))
        self.assertFalse(handle.done())

        handle.request_cancellation()

        self.assertTrue(handle.await_completion(2.0))
        self.assertTrue(stopped.is_set())
        self.assertIsNone(handle.exception())

    def test_producer_exception_is_recorded(self) -> None:
        def producer(_token: CancelToken) -> None:
            raise ValueError("bad input")

        with self.assertLogs("livepager.runtime.adapters", level="WARNING"):
            handle = ThreadRuntime().spawn(producer, name="failing")
            self.assertTrue(handle.await_completion(2.0))

        self.assertIsInstance(handle.exception(), ValueError)
        self.assertEqual(handle.name, "failing")

    def test_await_completion_times_out_for_stubborn_producer(self) -> None:
        release = threading.Event()
        self.addCleanup(release.set)

        handle = ThreadRuntime().spawn(lambda _token: release.wait(5.0))
        handle.request_cancellation()

        self.assertFalse(handle.await_completion(0.02))


class AsyncioRuntimeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runtime = AsyncioRuntime()
        self.addCleanup(self.runtime.close)

    def test_running_coroutine_stops_after_cancellation(self) -> None:
        started = threading.Event()

        async def producer(token: CancelToken) -> None:
            started.set()
            while not token.cancelled:
                await asyncio.sleep(0.005)

        handle = self.runtime.spawn(producer)
        self.assertTrue(started.wait(2.0))
        handle.request_cancellation()

        self.assertTrue(handle.await_completion(2.0))
        self.assertIsNone(handle.exception())

    def test_blocked_coroutine_is_cancelled_on_the_loop(self) -> None:
        async def producer(_token: CancelToken) -> None:
            await asyncio.sleep(30)

        handle = self.runtime.spawn(producer)
        handle.request_cancellation()

        self.assertTrue(handle.await_completion(2.0))
        self.assertIsNone(handle.exception())

    def test_coroutine_exception_is_recorded(self) -> None:
        async def producer(_token: CancelToken) -> None:
            raise ValueError("bad input")

        with self.assertLogs("livepager.runtime.adapters", level="WARNING"):
            handle = self.runtime.spawn(producer)
            self.assertTrue(handle.await_completion(2.0))

        self.assertIsInstance(handle.exception(), ValueError)

    def test_non_coroutine_work_fails_at_start(self) -> None:
        with self.assertLogs("livepager.runtime.adapters", level="WARNING"):
            handle = self.runtime.spawn(lambda _token: None)
            self.assertTrue(handle.await_completion(2.0))

        self.assertIsInstance(handle.exception(), TypeError)

    def test_close_stops_private_loop(self) -> None:
        runtime = AsyncioRuntime()
        runtime.close()

        self.assertTrue(runtime.loop.is_closed())
        runtime.close()


if __name__ == "__main__":
    unittest.main()
