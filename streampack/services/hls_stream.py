"""
HLS packaging: one media playlist per representation plus a master playlist.
"""
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..config.streaming import (
    DEFAULT_KEY_LENGTH,
    HLS_MASTER_EXTENSION,
    HLS_SEGMENT_TYPE_FMP4,
    KEY_ROTATION_NEEDLE_TEMPLATE,
)
from ..domain.profiles import HLSProfile, StreamMode
from ..domain.representation import Representation
from ..utils import file_utils
from ..utils.ffmpeg_utils import LineStream
from .command_builder import is_url
from .filters import HLSFilter, output_stem
from .key_rotation import HLSKeyInfo
from .playlist_service import HLSPlaylist
from .resource_service import ResourceHandle
from .stream_base import Stream


class HLS(Stream):
    """
    Packages the source as HTTP Live Streaming.

    Usage:
        hls = HLS(media, X264())
        hls.add_representations([r360, r720]).set_hls_time(6)
        hls.encryption("/srv/keys/key", "https://example.com/keys/key", key_rotation_period=10)
        hls.save("/srv/media/movie.m3u8")
    """

    mode = StreamMode.HLS
    filter_class = HLSFilter
    profile: HLSProfile

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.key_info: Optional[HLSKeyInfo] = None
        self.key_rotation_period = 0
        self.search_needle: Optional[str] = None
        self.playlist_description: List[str] = []
        self.independent_segments = False
        self._session_key_info: Optional[Path] = None

    def _new_profile(self) -> HLSProfile:
        return HLSProfile()

    # --- Configuration ---

    def add_representation(self, representation: Representation) -> "HLS":
        self.profile.representations.add(representation)
        return self

    def add_representations(self, representations: Sequence[Representation]) -> "HLS":
        self.profile.representations.extend(representations)
        return self

    def set_hls_time(self, seconds: int) -> "HLS":
        self.profile.hls_time = seconds
        return self

    def set_hls_allow_cache(self, allow: bool) -> "HLS":
        self.profile.hls_allow_cache = allow
        return self

    def set_hls_list_size(self, size: int) -> "HLS":
        self.profile.hls_list_size = size
        return self

    def set_hls_base_url(self, url: str) -> "HLS":
        self.profile.hls_base_url = url
        return self

    def set_hls_playlist_type(self, playlist_type: str) -> "HLS":
        """Either "vod" or "event"."""
        self.profile.hls_playlist_type = playlist_type
        return self

    def set_seg_sub_directory(self, directory: str) -> "HLS":
        """Writes segments into a sub-directory next to the media playlists."""
        self.profile.seg_sub_directory = directory
        return self

    def set_flags(self, flags: Sequence[str]) -> "HLS":
        self.profile.flags = list(flags)
        return self

    def set_playlist_description(self, lines: Sequence[str], independent_segments: bool = False) -> "HLS":
        """Extra header lines written into the master playlist."""
        self.playlist_description = list(lines)
        self.independent_segments = independent_segments
        return self

    def fragmented_mp4(self, init_filename: Optional[str] = None) -> "HLS":
        self.profile.hls_segment_type = HLS_SEGMENT_TYPE_FMP4
        self.profile.hls_fmp4_init_filename = init_filename
        return self

    def encryption(
        self,
        save_to,
        url: str,
        key_rotation_period: int = 0,
        search_needle: Optional[str] = None,
        length: int = DEFAULT_KEY_LENGTH,
    ) -> "HLS":
        """
        Encrypts segments with AES-128, optionally rotating the key.

        Args:
            save_to: Local path of the key file.
            url: URI of the key as clients will fetch it.
            key_rotation_period: Segments per key. 0 keeps one key for the whole run.
            search_needle: Engine output text announcing a new segment. Derived
                           from the segment type when omitted.
            length: Key length in bytes.
        """
        self.key_info = HLSKeyInfo.create(save_to, url).set_length(length)
        self.key_rotation_period = key_rotation_period
        self.search_needle = search_needle
        return self

    # --- Mode-specific hooks ---

    def get_path(self, path) -> str:
        return output_stem(str(path)) + HLS_MASTER_EXTENSION

    def needle(self) -> str:
        return self.search_needle or KEY_ROTATION_NEEDLE_TEMPLATE.format(ext=self.profile.segment_extension)

    def _attach_listeners(self, line_stream: LineStream):
        if self.key_info is None:
            self.profile.hls_key_info_file = None
            return

        if self.key_info.key_info_path is None:
            self._session_key_info = self.key_info.get_key_info_path()
        self.key_info.generate()
        self.profile.hls_key_info_file = str(self.key_info.get_key_info_path())

        if self.key_rotation_period > 0:
            self.key_info.rotate_key(line_stream, self.key_rotation_period, self.needle())
            logger.debug(f"Key rotation every {self.key_rotation_period} segments on {self.needle()!r}")

    def _prepare_output(self, output_target: str):
        sub_directory = self.profile.seg_sub_directory
        if not sub_directory or is_url(output_target):
            return
        segments = Path(output_target).resolve().parent / sub_directory.strip("/")
        file_utils.make_dir(segments)
        logger.debug(f"Created segment directory {segments}")

    def _after_run(self, handle: ResourceHandle):
        self.playlist().save(handle.work_path, self.playlist_description, self.independent_segments)

    def _cleanup(self):
        if self._session_key_info is not None:
            file_utils.remove(self._session_key_info)
            self._session_key_info = None
            self.key_info.key_info_path = None

    # --- Introspection ---

    def playlist(self) -> HLSPlaylist:
        return HLSPlaylist(self)

    def media_playlists(self) -> Dict[int, str]:
        """Height to media playlist path, in ladder order."""
        target = self.final_path() or self.get_path(self.media.path)
        return {
            rep.get_height(): HLSFilter.media_playlist_path(target, rep)
            for rep in self.profile.representations
        }
