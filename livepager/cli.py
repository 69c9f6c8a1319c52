"""Command-line front door for livepager.

Parses CLI options and decides between static and dynamic paging: a plain
file is read up front, while ``--follow`` or piped input is streamed into the
pager by a producer so the user can scroll before the input ends.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path

from .config import load_pager_config
from .coordinator import create_dynamic
from .errors import PagerError
from .runtime.adapters import AsyncioRuntime, ThreadRuntime
from .runtime.runners import page
from .state import LineNumbers, create_static
from .stream import FdStreamer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def read_text(path: Path) -> str:
    """Read text using tolerant encoding fallback order."""
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livepager",
        description="Page a file or piped output, scrolling and searching while it is still being written.",
    )
    parser.add_argument("path", nargs="?", default=None, help="File to page. Reads stdin when omitted.")
    parser.add_argument("-n", "--line-numbers", action="store_true", help="Show line numbers.")
    parser.add_argument("--follow", action="store_true", help="Keep reading the file as it grows.")
    parser.add_argument("--syntax", default=None, help="Pygments lexer name for syntax highlighting.")
    parser.add_argument("--style", default=None, help="Pygments style name (default from config).")
    parser.add_argument(
        "--runtime",
        choices=("thread", "asyncio"),
        default="thread",
        help="Where the input producer runs.",
    )
    parser.add_argument("--prompt", default=None, help="Status-line prompt text.")
    parser.add_argument("--log-file", default=None, help="Write debug logs to this file.")
    return parser


def _configure_logging(log_file: str | None) -> None:
    if log_file is None:
        return
    logging.basicConfig(filename=log_file, level=logging.DEBUG, format=LOG_FORMAT)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run the pager until the user quits."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_file)

    config = load_pager_config()
    if args.style:
        config = dataclasses.replace(config, syntax_style=args.style)
    line_numbers = LineNumbers.ENABLED if args.line_numbers else LineNumbers.DISABLED
    path = Path(args.path) if args.path is not None else None
    if path is not None and not path.is_file():
        raise SystemExit(f"Path not found: {path}")
    if path is None and os.isatty(sys.stdin.fileno()):
        raise SystemExit("Missing filename (\"livepager --help\" for help)")

    syntax = args.syntax or (path.name if path is not None else None)
    prompt = args.prompt if args.prompt is not None else (path.name if path is not None else "stdin")

    try:
        if path is not None and not args.follow:
            state = create_static(read_text(path), line_numbers)
            state.set_prompt(prompt)
            state.set_syntax(syntax)
            page(state, config=config)
            return
        _page_stream(path, line_numbers, prompt, syntax, args.follow, args.runtime, config)
    except PagerError as exc:
        logger.error("pager failed", exc_info=True)
        raise SystemExit(f"livepager: {exc}") from exc


def _page_stream(path, line_numbers, prompt, syntax, follow, runtime_name, config) -> None:
    shared = create_dynamic(line_numbers=line_numbers)
    shared.set_prompt(prompt)
    shared.with_state(lambda state: state.set_syntax(syntax))

    fd = os.open(path, os.O_RDONLY) if path is not None else sys.stdin.fileno()
    streamer = FdStreamer(shared, fd, follow=follow)
    try:
        if runtime_name == "asyncio":
            runtime = AsyncioRuntime()
            try:
                page(shared, streamer.run_async, runtime=runtime, config=config)
            finally:
                runtime.close()
        else:
            page(shared, streamer, runtime=ThreadRuntime(), config=config)
    finally:
        if path is not None:
            os.close(fd)


if __name__ == "__main__":
    main()
