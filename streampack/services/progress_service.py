"""
Progress reporting from the engine's statistics lines.
"""
import re
from typing import Callable, Optional

from loguru import logger

from ..domain.media import parse_duration
from ..utils.format_utils import format_seconds

_TIME_PATTERN = re.compile(r"\btime=\s*(-?[\d:.]+)")
_SPEED_PATTERN = re.compile(r"\bspeed=\s*([\d.]+)x")


class ProgressListener:
    """
    Turns FFmpeg's `frame=... time=HH:MM:SS.ss ... speed=1.5x` lines into percentages.

    Meant to be subscribed to a `LineStream`. Progress is logged every
    `log_step` percent, and `callback(percent, seconds_done)` is invoked for
    every statistics line when given. Without a known duration (live input,
    capture devices) only the encoded time is reported.
    """

    def __init__(
        self,
        duration: float,
        callback: Optional[Callable[[float, float], None]] = None,
        log_step: int = 10,
    ):
        self.duration = duration
        self.callback = callback
        self.log_step = log_step
        self.percent = 0.0
        self.seconds_done = 0.0
        self.speed: Optional[float] = None
        self._last_logged = -1

    def __call__(self, line: str):
        match = _TIME_PATTERN.search(line)
        if not match or match.group(1).startswith("-"):
            return

        self.seconds_done = parse_duration(match.group(1))
        speed_match = _SPEED_PATTERN.search(line)
        if speed_match:
            self.speed = float(speed_match.group(1))

        if self.duration > 0:
            self.percent = min(100.0, round(self.seconds_done * 100 / self.duration, 2))
            bucket = int(self.percent // self.log_step)
            if bucket > self._last_logged:
                self._last_logged = bucket
                logger.info(
                    f"Packaging progress: {self.percent:.0f}% "
                    f"({format_seconds(self.seconds_done)} / {format_seconds(self.duration)})"
                    + (f" at {self.speed}x" if self.speed else "")
                )
        else:
            logger.debug(f"Packaged {format_seconds(self.seconds_done)}")

        if self.callback:
            self.callback(self.percent, self.seconds_done)
