"""
This module runs the external engine and turns its output into line events.

FFmpeg reports progress and structural events (a new segment being opened, the
muxer finishing, errors) only as free-form text on stderr. `run_engine` reads
that text line by line while the process runs and hands every line to a
`LineStream`, which calls its subscribers synchronously and in order. Nothing
is buffered or reordered: a handler sees line N before anyone sees line N+1.
"""

import collections
import subprocess
from typing import Callable, Deque, List, Optional

from loguru import logger

from ..config.common import DIAGNOSTIC_TAIL_LINES
from ..domain.exceptions import PackagingError, StreamPackException
from ..domain.invocation import EngineInvocation

LineHandler = Callable[[str], None]


class LineStream:
    """
    A synchronous publish/subscribe channel for engine output lines.

    Handlers are called in subscription order for every line. A handler that
    raises a `StreamPackException` (for example a failed key rotation) is
    logged and recorded in `errors`, and the remaining handlers still run;
    the packaging run itself continues. Any other exception propagates to the
    reader, which stops the engine.
    """

    def __init__(self):
        self._handlers: List[LineHandler] = []
        self.errors: List[StreamPackException] = []
        self.line_count = 0

    def subscribe(self, handler: LineHandler) -> LineHandler:
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: LineHandler):
        if handler in self._handlers:
            self._handlers.remove(handler)

    def feed(self, line: str):
        self.line_count += 1
        for handler in list(self._handlers):
            try:
                handler(line)
            except StreamPackException as e:
                logger.warning(f"Listener failed during {e.stage} on line {self.line_count}: {e}")
                self.errors.append(e)

    def __len__(self) -> int:
        return len(self._handlers)


def run_engine(
    invocation: EngineInvocation,
    line_stream: Optional[LineStream] = None,
    tail_size: int = DIAGNOSTIC_TAIL_LINES,
) -> List[str]:
    """
    Runs the engine to completion, feeding each stderr line to `line_stream`.

    The call blocks until the engine exits. stdout is discarded; FFmpeg writes
    all of its diagnostics and statistics to stderr. Statistic updates end with
    a carriage return, which text mode turns into a line break, so every update
    reaches the listeners as its own line.

    Args:
        invocation: The command to run.
        line_stream: Receives every output line. Optional.
        tail_size: How many trailing lines to keep for error reports.

    Returns:
        The last `tail_size` output lines.

    Raises:
        PackagingError: If the engine cannot be started or exits non-zero.
    """
    argv = invocation.argv()
    logger.debug(f"Starting engine: {invocation.command_line()}")

    try:
        process = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            cwd=invocation.working_directory,
        )
    except OSError as e:
        logger.error(f"Could not start engine '{invocation.executable}': {e}")
        raise PackagingError(
            f"Failed to start the engine '{invocation.executable}': {e}",
            command=argv,
        ) from e

    tail: Deque[str] = collections.deque(maxlen=tail_size)
    assert process.stderr is not None  # Guaranteed by stderr=PIPE
    try:
        for raw_line in iter(process.stderr.readline, ""):
            line = raw_line.rstrip("\r\n")
            if not line:
                continue
            tail.append(line)
            logger.trace(line)
            if line_stream is not None:
                line_stream.feed(line)
    except BaseException:
        # A listener blew up (or the caller was interrupted); do not leave the
        # engine running behind us.
        _terminate(process)
        raise
    finally:
        process.stderr.close()

    returncode = process.wait()
    if returncode != 0:
        diagnostics = "\n".join(tail)
        logger.error(f"Engine exited with code {returncode}. Last output:\n{diagnostics}")
        raise PackagingError(
            f"An error occurred while saving files (engine exit code {returncode}): "
            f"{tail[-1] if tail else 'no output'}",
            returncode=returncode,
            diagnostics=diagnostics,
            command=argv,
        )

    logger.debug(f"Engine finished after {line_stream.line_count if line_stream else len(tail)} lines")
    return list(tail)


def _terminate(process: subprocess.Popen, timeout: float = 5.0):
    if process.poll() is not None:
        return
    logger.warning(f"Terminating engine process {process.pid}")
    process.terminate()
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
