"""
Codec formats used for packaging.

A format names the video and audio encoders and carries two kinds of extra
engine parameters: `initial_parameters` are global and placed before the
inputs, `additional_parameters` are repeated in every output group.
"""
from typing import List, Optional, Sequence

from ..config.streaming import (
    DEFAULT_AUDIO_CODEC,
    DEFAULT_HEVC_VIDEO_CODEC,
    DEFAULT_VP9_AUDIO_CODEC,
    DEFAULT_VP9_VIDEO_CODEC,
    DEFAULT_X264_VIDEO_CODEC,
)


class Format:
    default_video_codec: str = ""
    default_audio_codec: Optional[str] = DEFAULT_AUDIO_CODEC

    def __init__(
        self,
        video_codec: Optional[str] = None,
        audio_codec: Optional[str] = None,
        initial_parameters: Sequence[str] = (),
        additional_parameters: Sequence[str] = (),
    ):
        self.video_codec: str = video_codec or self.default_video_codec
        self.audio_codec: Optional[str] = audio_codec or self.default_audio_codec
        self.initial_parameters: List[str] = [str(p) for p in initial_parameters]
        self.additional_parameters: List[str] = [str(p) for p in additional_parameters]

    def codec_args(self) -> List[str]:
        args = ["-c:v", self.video_codec] if self.video_codec else []
        if self.audio_codec:
            args += ["-c:a", self.audio_codec]
        return args

    @property
    def name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.name}(video_codec={self.video_codec!r}, audio_codec={self.audio_codec!r})"


class X264(Format):
    default_video_codec = DEFAULT_X264_VIDEO_CODEC


class HEVC(Format):
    default_video_codec = DEFAULT_HEVC_VIDEO_CODEC


class VP9(Format):
    default_video_codec = DEFAULT_VP9_VIDEO_CODEC
    default_audio_codec = DEFAULT_VP9_AUDIO_CODEC
