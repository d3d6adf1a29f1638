"""
The source media descriptor handed to every packaging session.
"""
import re
from pathlib import Path
from pprint import pformat
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import ffmpeg
from loguru import logger

from ..config.capture import Platform, capture_input
from ..utils.engine_locator import Modules
from .exceptions import MediaProbeError

if TYPE_CHECKING:
    from ..services.cloud_service import CloudTarget


def parse_duration(duration_str: str) -> float:
    """
    Parses a duration string into total seconds.

    Accepts plain seconds ("3600.5") and timecodes ("01:00:00.500", "02:03.5").
    Returns 0.0 if the string cannot be parsed.
    """
    try:
        return float(duration_str)
    except ValueError:
        match = re.fullmatch(r"(?:(\d{1,2}):)?(\d{1,2}):(\d{1,2}(?:\.\d+)?)", duration_str.strip())
        if match:
            hours_str, minutes_str, seconds_str = match.groups()
            return int(hours_str or 0) * 3600 + int(minutes_str) * 60 + float(seconds_str)
        logger.warning(f"Could not parse duration string: {duration_str}")
    return 0.0


class Media:
    """
    A source for packaging: a file, a URL or a capture device.

    Besides the input name, a `Media` carries the input-level engine options that
    must precede it on the command line (e.g. `-f v4l2` for a camera) and a flag
    saying whether the source itself is temporary. A temporary source (such as a
    file downloaded from a cloud target) is deleted when the session that uses
    it is torn down.

    Metadata is obtained lazily with `ffmpeg.probe` the first time it is needed.
    A probe result can also be passed in directly, which is how capture devices
    and tests avoid running ffprobe.

    Attributes:
        path (str): The engine input (absolute file path, URL or device name).
        input_options (list): Engine options placed right before `-i path`.
        is_tmp (bool): Whether the source is deleted at session end.
    """

    def __init__(
        self,
        path,
        input_options: Sequence[str] = (),
        is_tmp: bool = False,
        probe: Optional[dict] = None,
    ):
        local_path = Path(path)
        self.path: str = str(local_path.resolve()) if local_path.exists() else str(path)
        self.input_options: List[str] = [str(o) for o in input_options]
        self.is_tmp = is_tmp
        self._probe: Optional[dict] = probe

    @classmethod
    def capture(
        cls,
        video: str,
        audio: Optional[str] = None,
        platform: Platform = Platform.LINUX,
        input_options: Sequence[str] = (),
    ) -> "Media":
        """
        Opens a camera/microphone through the platform's capture device.

        The platform is passed in explicitly; resolve it once at startup with
        `Platform.current()`.
        """
        options, name = capture_input(platform, video, audio)
        logger.debug(f"Capture input for {platform.value}: {options} {name}")
        return cls(name, input_options=[*options, *input_options], probe={"format": {}, "streams": []})

    @classmethod
    def open_from_cloud(cls, target: "CloudTarget", save_to: Optional[Path] = None) -> "Media":
        """
        Downloads a source from a cloud target.

        Without `save_to` the file lands in a temporary location and the
        resulting media is temporary: it is removed after packaging.
        """
        from ..utils import file_utils

        is_tmp = save_to is None
        destination = Path(save_to) if save_to is not None else file_utils.tmp_file()
        target.cloud.download(target.options, destination)
        logger.info(f"Downloaded source from {target.cloud} to {destination}")
        return cls(destination, is_tmp=is_tmp)

    # --- Probing ---

    def probe(self) -> dict:
        """
        Returns the ffprobe output for this media, running ffprobe on first use.

        Raises:
            MediaProbeError: If ffprobe fails or cannot be started.
        """
        if self._probe is None:
            try:
                self._probe = ffmpeg.probe(self.path, cmd=Modules.ffprobe())
            except ffmpeg.Error as e:
                stderr = e.stderr.decode("utf-8", "replace") if isinstance(e.stderr, bytes) else e.stderr
                raise MediaProbeError(f"Failed to probe media {self.path}: {stderr}") from e
            except OSError as e:
                raise MediaProbeError(f"Could not run ffprobe for {self.path}: {e}") from e
            logger.trace(f"Probe data for {self.path}:\n{pformat(self._probe)}")
        return self._probe

    def _safe_probe(self) -> dict:
        try:
            return self.probe()
        except MediaProbeError as e:
            logger.warning(f"{e}")
            return {}

    def get_format(self) -> dict:
        return dict(self._safe_probe().get("format") or {})

    def get_streams(self) -> List[dict]:
        return list(self._safe_probe().get("streams") or [])

    def get_video_streams(self) -> List[dict]:
        return [s for s in self.get_streams() if s.get("codec_type") == "video"]

    def get_audio_streams(self) -> List[dict]:
        return [s for s in self.get_streams() if s.get("codec_type") == "audio"]

    # --- Derived properties ---

    @property
    def duration(self) -> float:
        """Duration in seconds, 0.0 when unknown (live inputs, capture devices)."""
        duration_val = self.get_format().get("duration")
        if duration_val is None:
            for stream in self.get_streams():
                if "duration" in stream:
                    duration_val = stream["duration"]
                    break
        return parse_duration(str(duration_val)) if duration_val is not None else 0.0

    def get_dimensions(self) -> Optional[Tuple[int, int]]:
        for stream in self.get_video_streams():
            width, height = stream.get("width"), stream.get("height")
            if width and height:
                return int(width), int(height)
        return None

    def get_kilo_bitrate(self) -> Optional[int]:
        """Video bitrate of the first video stream in kbit/s, or the container bitrate."""
        candidates = [s.get("bit_rate") for s in self.get_video_streams()[:1]]
        candidates.append(self.get_format().get("bit_rate"))
        for value in candidates:
            try:
                if value and int(value) > 0:
                    return int(value) // 1024
            except (TypeError, ValueError):
                continue
        return None

    def get_audio_bitrate(self) -> int:
        """Bitrate of the first audio stream in bit/s, 0 if it cannot be determined."""
        audio_streams = self.get_audio_streams()
        if not audio_streams:
            return 0
        try:
            return int(audio_streams[0].get("bit_rate") or 0)
        except (TypeError, ValueError):
            logger.debug(f"Unparsable audio bit_rate for {self.path}: {audio_streams[0].get('bit_rate')!r}")
            return 0

    def __repr__(self) -> str:
        return f"Media(path={self.path!r}, is_tmp={self.is_tmp})"
