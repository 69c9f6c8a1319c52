"""Producers that stream a file descriptor into a ``SharedPagerState``.

Reads are sliced with ``select`` so a producer notices cancellation within
``POLL_SECONDS`` even while its input is idle. Bytes are decoded
incrementally, so multi-byte characters split across reads survive.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import select

from .coordinator import SharedPagerState
from .runtime.adapters import CancelToken

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
POLL_SECONDS = 0.1


def read_chunk(fd: int, timeout: float) -> bytes | None:
    """Return the next chunk, ``b""`` at end of input, ``None`` when idle."""
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        return None
    return os.read(fd, CHUNK_SIZE)


class FdStreamer:
    """Feed bytes read from ``fd`` into ``shared`` until EOF or cancellation.

    With ``follow`` set, end of input is treated as "nothing yet" and reading
    resumes, like ``tail -f``.
    """

    def __init__(self, shared: SharedPagerState, fd: int, *, follow: bool = False) -> None:
        self.shared = shared
        self.fd = fd
        self.follow = follow
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def _feed(self, chunk: bytes) -> None:
        text = self._decoder.decode(chunk)
        if text:
            self.shared.append_content(text)

    def _finish(self) -> None:
        tail = self._decoder.decode(b"", final=True)
        if tail:
            self.shared.append_content(tail)
        logger.debug("end of input on fd %d", self.fd)

    def __call__(self, token: CancelToken) -> None:
        while not token.cancelled:
            chunk = read_chunk(self.fd, POLL_SECONDS)
            if chunk is None:
                continue
            if chunk:
                self._feed(chunk)
                continue
            if not self.follow:
                self._finish()
                return
            token.wait(POLL_SECONDS)

    async def run_async(self, token: CancelToken) -> None:
        """Coroutine flavor for ``AsyncioRuntime``; reads happen in a worker thread."""
        while not token.cancelled:
            chunk = await asyncio.to_thread(read_chunk, self.fd, POLL_SECONDS)
            if chunk is None:
                continue
            if chunk:
                self._feed(chunk)
                continue
            if not self.follow:
                self._finish()
                return
            await asyncio.sleep(POLL_SECONDS)
