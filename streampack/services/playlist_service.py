"""
HLS master playlist generation.

The master playlist is regenerated from scratch every time it is written, from
the stream's representation ladder and the source media. It is never patched.
"""
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

from loguru import logger

from ..config.streaming import HLS_VERSION_FMP4, HLS_VERSION_TS
from ..domain.representation import Representation
from ..utils import file_utils
from .filters import HLSFilter

if TYPE_CHECKING:
    from .hls_stream import HLS

INDEPENDENT_SEGMENTS_TAG = "#EXT-X-INDEPENDENT-SEGMENTS"


class HLSPlaylist:
    """
    Renders the master playlist of an `HLS` stream.

    Example output for a two-rung transport-stream ladder:

        #EXTM3U
        #EXT-X-VERSION:3
        #EXT-X-STREAM-INF:BANDWIDTH=1155072,RESOLUTION=640x360,NAME="360"
        movie_360p.m3u8
        #EXT-X-STREAM-INF:BANDWIDTH=2228224,RESOLUTION=1280x720,NAME="720"
        movie_720p.m3u8
    """

    def __init__(self, hls: "HLS"):
        self.hls = hls

    def version(self) -> int:
        return HLS_VERSION_FMP4 if self.hls.profile.is_fragmented_mp4 else HLS_VERSION_TS

    def bandwidth(self, rep: Representation) -> int:
        """
        Video kbit/s times 1024 plus the audio bitrate in bit/s.

        Without an explicit audio bitrate the source's probed audio bitrate is
        used, and 0 when that is unknown too.
        """
        video = (rep.get_kilo_bitrate() or 0) * 1024
        if rep.get_audio_kilo_bitrate():
            audio = rep.get_audio_kilo_bitrate() * 1024
        else:
            audio = self.hls.media.get_audio_bitrate()
        return video + audio

    def stream_info(self, rep: Representation) -> str:
        attributes = [
            f"BANDWIDTH={self.bandwidth(rep)}",
            f"RESOLUTION={rep.size2string()}",
            f'NAME="{rep.get_height()}"',
        ]
        attributes += [f"{key}={value}" for key, value in rep.get_hls_stream_info().items()]
        return "#EXT-X-STREAM-INF:" + ",".join(attributes)

    def media_playlist_name(self, rep: Representation) -> str:
        # Relative to the master playlist, which sits next to the media playlists.
        target = self.hls.output_path() or self.hls.get_path(self.hls.media.path)
        return Path(HLSFilter.media_playlist_path(target, rep)).name

    def render(self, description: Optional[Sequence[str]] = None, independent_segments: bool = False) -> str:
        lines: List[str] = ["#EXTM3U", f"#EXT-X-VERSION:{self.version()}"]
        if independent_segments:
            lines.append(INDEPENDENT_SEGMENTS_TAG)
        lines += list(description or [])

        for rep in self.hls.profile.representations:
            lines.append(self.stream_info(rep))
            lines.append(self.media_playlist_name(rep))
        return "\n".join(lines) + "\n"

    def save(self, path, description: Optional[Sequence[str]] = None, independent_segments: bool = False) -> Path:
        """Writes the rendered playlist to `path`, creating parent directories."""
        target = file_utils.put(path, self.render(description, independent_segments))
        logger.debug(f"Wrote master playlist with {len(self.hls.profile.representations)} renditions to {target}")
        return target
