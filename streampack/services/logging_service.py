"""
Plain-text log of failed packaging sessions.

Console output goes through loguru. In addition, a stream given an
`error_log_dir` appends a human-readable record of every failed session
(command line, source, engine diagnostics) to a file in that directory, so
failures can be inspected after the console scrolled away.
"""
from datetime import datetime
from pathlib import Path

from loguru import logger

from ..config.common import ERROR_LOG_FILE_NAME
from ..domain.exceptions import StreamPackException


class ErrorLog:
    """
    Appends failure records to `<error_log_dir>/error.txt`.

    Each record ends with a separator line so consecutive failures stay
    distinguishable.
    """

    linesep_marker: str = "=" * 50

    def __init__(self, error_log_dir: Path, filename: str = ERROR_LOG_FILE_NAME):
        self.log_dir: Path = Path(error_log_dir).resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        if not error_messages:
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"
        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # The console still gets the record.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")

    def write_failure(self, error: StreamPackException, source: str, command_line: str = ""):
        """Writes one record describing a failed session."""
        lines = [
            f"time: {datetime.now().isoformat(timespec='seconds')}",
            f"stage: {error.stage}",
            f"source: {source}",
            f"error: {error}",
        ]
        if command_line:
            lines.append(f"command: {command_line}")
        diagnostics = getattr(error, "diagnostics", "")
        if diagnostics:
            lines.append("engine output:")
            lines.append(diagnostics)
        self.write(*lines)
