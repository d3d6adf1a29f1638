"""
Builds the exact engine call for one packaging run.

The builder never touches the filesystem and never starts anything; the same
inputs always produce the same `EngineInvocation`.
"""
import os
from typing import List, Optional

from loguru import logger

from ..config import common
from ..domain.exceptions import InvalidConfigurationError
from ..domain.formats import Format
from ..domain.invocation import EngineInvocation
from ..domain.media import Media
from ..domain.profiles import StreamMode
from ..utils.engine_locator import Modules
from .filters import StreamFilter


def is_url(target) -> bool:
    return "://" in str(target)


class CommandBuilder:
    """
    Turns a media source, a codec format and a stream filter into engine arguments.

    Argument order:
        1. global options (`-y`, `-loglevel`)
        2. the format's initial parameters
        3. the input options of the media, immediately followed by `-i input`
        4. one output group per representation (HLS), a single grouped output
           (DASH) or a single plain output (file), in ladder order
    """

    def __init__(self, media: Media, fmt: Format, executable: Optional[str] = None):
        self.media = media
        self.format = fmt
        self.executable = executable

    @staticmethod
    def validate(stream_filter: StreamFilter):
        """
        Checks a profile for missing or contradictory fields.

        Raises:
            InvalidConfigurationError: On an empty ladder for HLS/DASH, a
                                       missing segment duration, an HLS
                                       rendition without a size or two HLS
                                       renditions with the same height.
        """
        profile = stream_filter.profile
        mode = stream_filter.mode
        if mode == StreamMode.FILE:
            return

        ladder = profile.representations
        if ladder.is_empty():
            raise InvalidConfigurationError(
                f"{mode.value.upper()} packaging needs at least one representation"
            )

        if mode == StreamMode.HLS:
            if not profile.hls_time or profile.hls_time <= 0:
                raise InvalidConfigurationError(f"hls_time must be a positive number, got {profile.hls_time!r}")
            heights = []
            for rep in ladder:
                if rep.size2string() is None:
                    raise InvalidConfigurationError(f"HLS representation {rep} has no size")
                heights.append(rep.get_height())
            duplicates = sorted({h for h in heights if heights.count(h) > 1})
            if duplicates:
                # Media playlists are named after the height.
                raise InvalidConfigurationError(
                    f"HLS representations must have distinct heights; duplicated: {duplicates}"
                )
        elif mode == StreamMode.DASH:
            if not profile.seg_duration or profile.seg_duration <= 0:
                raise InvalidConfigurationError(
                    f"seg_duration must be a positive number, got {profile.seg_duration!r}"
                )

    def _global_options(self) -> List[str]:
        options = ["-y"]
        if common.ENGINE_LOG_LEVEL:
            options += ["-loglevel", common.ENGINE_LOG_LEVEL]
        return options

    def build(self, stream_filter: StreamFilter, output_path) -> EngineInvocation:
        self.validate(stream_filter)

        arguments: List[str] = self._global_options()
        arguments += self.format.initial_parameters
        arguments += self.media.input_options
        arguments += ["-i", self.media.path]
        target = str(output_path) if is_url(output_path) else os.path.abspath(output_path)
        for group in stream_filter.apply(self.format, target):
            arguments += group

        invocation = EngineInvocation(
            executable=self.executable or Modules.ffmpeg(),
            arguments=tuple(arguments),
            working_directory=None if is_url(target) else os.path.dirname(target),
        )
        logger.debug(f"Built {stream_filter.mode.value} command: {invocation.command_line()}")
        return invocation
