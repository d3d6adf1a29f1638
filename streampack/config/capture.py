"""
Capture device syntax per operating system.

FFmpeg reads cameras and microphones through a different input device on each
platform, and each device expects the source name in its own syntax. The
platform is resolved once at startup (see `Platform.current()`) and then passed
explicitly to `Media.capture`, so tests can inject any platform they like.
"""
import platform as _platform
from enum import Enum
from typing import List, Optional, Tuple


class Platform(Enum):
    LINUX = "linux"
    WINDOWS = "windows"
    MACOS = "macos"

    @classmethod
    def current(cls) -> "Platform":
        system = _platform.system().lower()
        if system == "windows":
            return cls.WINDOWS
        if system == "darwin":
            return cls.MACOS
        return cls.LINUX


CAPTURE_INPUT_FORMATS = {
    Platform.LINUX: "v4l2",
    Platform.WINDOWS: "dshow",
    Platform.MACOS: "avfoundation",
}


def capture_input(
    target_platform: Platform, video: str, audio: Optional[str] = None
) -> Tuple[List[str], str]:
    """
    Returns the input options and the input name for a capture device.

    Args:
        target_platform: The platform the engine runs on.
        video: The video device (e.g. "/dev/video0", "Integrated Camera", "0").
        audio: An optional audio device. Ignored on Linux, where v4l2 only
               captures video.

    Returns:
        A tuple of (input options, input name) ready for the command builder.
    """
    options = ["-f", CAPTURE_INPUT_FORMATS[target_platform]]

    if target_platform is Platform.WINDOWS:
        name = f"video={video}"
        if audio:
            name += f":audio={audio}"
        return options, name

    if target_platform is Platform.MACOS:
        return options, f"{video}:{audio}" if audio else video

    return options, video
