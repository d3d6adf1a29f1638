"""
Packaging profiles: the pure-data side of an HLS, DASH or file session.

Each profile is tagged with a `StreamMode`. The stream classes mutate their
profile while the caller configures them; the command builder and the filters
only read it.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..config.streaming import (
    DASH_ADAPTATION_SETS,
    DEFAULT_HLS_ALLOW_CACHE,
    DEFAULT_HLS_LIST_SIZE,
    DEFAULT_HLS_TIME,
    DEFAULT_SEG_DURATION,
    HLS_SEGMENT_EXTENSIONS,
    HLS_SEGMENT_TYPE_FMP4,
    HLS_SEGMENT_TYPE_TS,
)
from .representation import RepresentationLadder


class StreamMode(Enum):
    HLS = "hls"
    DASH = "dash"
    FILE = "file"


@dataclass
class HLSProfile:
    mode: StreamMode = field(default=StreamMode.HLS, init=False)
    representations: RepresentationLadder = field(default_factory=RepresentationLadder)
    hls_time: Optional[int] = DEFAULT_HLS_TIME
    hls_allow_cache: bool = DEFAULT_HLS_ALLOW_CACHE
    hls_list_size: int = DEFAULT_HLS_LIST_SIZE
    hls_base_url: str = ""
    seg_sub_directory: Optional[str] = None
    hls_segment_type: str = HLS_SEGMENT_TYPE_TS
    hls_fmp4_init_filename: Optional[str] = None
    hls_key_info_file: Optional[str] = None
    hls_playlist_type: Optional[str] = None
    flags: List[str] = field(default_factory=list)
    strict: Optional[str] = None
    additional_params: List[str] = field(default_factory=list)

    @property
    def is_fragmented_mp4(self) -> bool:
        return self.hls_segment_type == HLS_SEGMENT_TYPE_FMP4

    @property
    def segment_extension(self) -> str:
        return HLS_SEGMENT_EXTENSIONS[self.hls_segment_type]


@dataclass
class DASHProfile:
    mode: StreamMode = field(default=StreamMode.DASH, init=False)
    representations: RepresentationLadder = field(default_factory=RepresentationLadder)
    seg_duration: Optional[int] = DEFAULT_SEG_DURATION
    use_template: bool = True
    use_timeline: bool = True
    generate_hls_playlist: bool = False
    adaptation_sets: str = DASH_ADAPTATION_SETS
    strict: Optional[str] = None
    additional_params: List[str] = field(default_factory=list)


@dataclass
class FileProfile:
    mode: StreamMode = field(default=StreamMode.FILE, init=False)
    strict: Optional[str] = None
    additional_params: List[str] = field(default_factory=list)
