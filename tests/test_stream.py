"""Tests for the fd-streaming producer used by the CLI."""

from __future__ import annotations

import asyncio
import os
import tempfile
import threading
import time
import unittest
from pathlib import Path

from livepager.coordinator import create_dynamic
from livepager.runtime.adapters import CancelToken
from livepager.stream import FdStreamer, read_chunk


class FdStreamerTests(unittest.TestCase):
    def test_pipe_is_streamed_until_end_of_input(self) -> None:
        shared = create_dynamic()
        read_fd, write_fd = os.pipe()
        os.write(write_fd, "héllo\nwor".encode("utf-8"))
        os.close(write_fd)
        try:
            FdStreamer(shared, read_fd)(CancelToken())
        finally:
            os.close(read_fd)

        self.assertEqual(shared.with_state(lambda state: state.lines), ["héllo", "wor"])

    def test_split_multibyte_character_is_reassembled(self) -> None:
        shared = create_dynamic()
        streamer = FdStreamer(shared, -1)

        streamer._feed(b"h\xc3")
        streamer._feed(b"\xa9\n")

        self.assertEqual(shared.with_state(lambda state: state.lines), ["hé"])

    def test_cancelled_token_stops_idle_reader(self) -> None:
        shared = create_dynamic()
        read_fd, write_fd = os.pipe()
        token = CancelToken()
        token.cancel()
        try:
            FdStreamer(shared, read_fd)(token)
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self.assertEqual(shared.line_count(), 0)

    def test_read_chunk_reports_idle_and_end_of_input(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            self.assertIsNone(read_chunk(read_fd, 0.01))
            os.close(write_fd)
            self.assertEqual(read_chunk(read_fd, 0.01), b"")
        finally:
            os.close(read_fd)

    def test_follow_picks_up_appended_file_content(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "grow.log"
            path.write_text("one\n", encoding="utf-8")
            shared = create_dynamic()
            token = CancelToken()
            fd = os.open(path, os.O_RDONLY)
            worker = threading.Thread(target=FdStreamer(shared, fd, follow=True), args=(token,))
            worker.start()
            try:
                with path.open("a", encoding="utf-8") as handle:
                    handle.write("two\n")
                deadline = time.monotonic() + 5.0
                while shared.line_count() < 2 and time.monotonic() < deadline:
                    time.sleep(0.01)
            finally:
                token.cancel()
                worker.join(timeout=5.0)
                os.close(fd)

        self.assertFalse(worker.is_alive())
        self.assertEqual(shared.with_state(lambda state: state.lines), ["one", "two"])

    def test_async_variant_streams_pipe(self) -> None:
        shared = create_dynamic()
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"a\nb\n")
        os.close(write_fd)
        try:
            asyncio.run(FdStreamer(shared, read_fd).run_async(CancelToken()))
        finally:
            os.close(read_fd)

        self.assertEqual(shared.line_count(), 2)


if __name__ == "__main__":
    unittest.main()
