"""Runtime adapters: how the producer's unit of work gets scheduled.

The pager loop only needs ``spawn`` plus a handle that can request
cancellation and wait for completion. ``ThreadRuntime`` runs the producer in
a daemon thread; ``AsyncioRuntime`` runs a coroutine function on an asyncio
event loop, either its own background loop or the host application's.
Every unit of work receives a ``CancelToken`` it is expected to observe.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation flag shared between the loop and a producer."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Sleep up to ``timeout`` seconds; return ``True`` once cancelled."""
        return self._event.wait(timeout)


class TaskHandle(Protocol):
    name: str

    def request_cancellation(self) -> None: ...

    def await_completion(self, timeout: float | None = None) -> bool: ...

    def done(self) -> bool: ...

    def exception(self) -> BaseException | None: ...


class RuntimeAdapter(Protocol):
    def spawn(self, work: Callable[[CancelToken], object], *, name: str = "livepager-producer") -> TaskHandle: ...


class ThreadTaskHandle:
    """Handle to a producer running on its own thread."""

    def __init__(self, name: str, token: CancelToken) -> None:
        self.name = name
        self.token = token
        self._finished = threading.Event()
        self._error: BaseException | None = None
        self._thread: threading.Thread | None = None

    def _run(self, work: Callable[[CancelToken], object]) -> None:
        try:
            work(self.token)
        except BaseException as exc:
            self._error = exc
            logger.warning("producer %s failed", self.name, exc_info=True)
        finally:
            self._finished.set()

    def request_cancellation(self) -> None:
        self.token.cancel()

    def await_completion(self, timeout: float | None = None) -> bool:
        return self._finished.wait(timeout)

    def done(self) -> bool:
        return self._finished.is_set()

    def exception(self) -> BaseException | None:
        return self._error


class ThreadRuntime:
    """Run each unit of work on a daemon thread."""

    def spawn(self, work: Callable[[CancelToken], object], *, name: str = "livepager-producer") -> ThreadTaskHandle:
        handle = ThreadTaskHandle(name, CancelToken())
        worker = threading.Thread(
            target=handle._run,
            args=(work,),
            name=name,
            daemon=True,
        )
        handle._thread = worker
        worker.start()
        logger.debug("spawned producer thread %s", name)
        return handle


class AsyncioTaskHandle:
    """Handle to a producer coroutine scheduled on an asyncio loop.

    Completion is tracked with a task done-callback, so ``await_completion``
    returns only after the coroutine has actually unwound, even when it was
    cancelled before its first step.
    """

    def __init__(self, name: str, token: CancelToken, loop: asyncio.AbstractEventLoop) -> None:
        self.name = name
        self.token = token
        self.loop = loop
        self._task: asyncio.Task | None = None
        self._finished = threading.Event()
        self._error: BaseException | None = None

    def _start(self, work: Callable[[CancelToken], Awaitable[object]]) -> None:
        try:
            task = self.loop.create_task(work(self.token), name=self.name)
        except Exception as exc:
            self._error = exc
            self._finished.set()
            logger.warning("producer %s could not start", self.name, exc_info=True)
            return
        task.add_done_callback(self._on_done)
        self._task = task

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug("producer %s cancelled", self.name)
        else:
            self._error = task.exception()
            if self._error is not None:
                logger.warning("producer %s failed", self.name, exc_info=self._error)
        self._finished.set()

    def _cancel_task(self) -> None:
        if self._task is not None:
            self._task.cancel()

    def request_cancellation(self) -> None:
        self.token.cancel()
        if not self._finished.is_set():
            self.loop.call_soon_threadsafe(self._cancel_task)

    def await_completion(self, timeout: float | None = None) -> bool:
        return self._finished.wait(timeout)

    def done(self) -> bool:
        return self._finished.is_set()

    def exception(self) -> BaseException | None:
        return self._error


class AsyncioRuntime:
    """Schedule producer coroutines on an asyncio event loop.

    Without an explicit ``loop`` a private loop is started on a daemon thread
    and stopped by ``close()``. When the host application already runs a loop,
    use ``for_running_loop()`` from inside it and run the blocking pager loop
    in a worker thread (see ``livepager.page_async``).
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._owns_loop = loop is None
        self._thread: threading.Thread | None = None
        if loop is None:
            loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=loop.run_forever,
                name="livepager-asyncio",
                daemon=True,
            )
            self._thread.start()
        self.loop = loop

    @classmethod
    def for_running_loop(cls) -> AsyncioRuntime:
        return cls(asyncio.get_running_loop())

    def spawn(
        self,
        work: Callable[[CancelToken], Awaitable[object]],
        *,
        name: str = "livepager-producer",
    ) -> AsyncioTaskHandle:
        handle = AsyncioTaskHandle(name, CancelToken(), self.loop)
        # Callbacks run in FIFO order, so a later cancel always sees the task.
        self.loop.call_soon_threadsafe(handle._start, work)
        logger.debug("scheduled producer coroutine %s", name)
        return handle

    def close(self) -> None:
        """Stop and close the private loop; no-op for a borrowed loop."""
        if not self._owns_loop or self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        if self._thread is not None:
            self._thread.join()
        self.loop.close()


__all__ = [
    "AsyncioRuntime",
    "AsyncioTaskHandle",
    "CancelToken",
    "RuntimeAdapter",
    "TaskHandle",
    "ThreadRuntime",
    "ThreadTaskHandle",
]
