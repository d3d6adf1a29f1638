"""
DASH packaging: every representation goes into a single MPD manifest.
"""
from typing import Sequence

from ..config.streaming import DASH_MANIFEST_EXTENSION
from ..domain.profiles import DASHProfile, StreamMode
from ..domain.representation import Representation
from .filters import DASHFilter, output_stem
from .stream_base import Stream


class DASH(Stream):
    mode = StreamMode.DASH
    filter_class = DASHFilter
    profile: DASHProfile

    def _new_profile(self) -> DASHProfile:
        return DASHProfile()

    def add_representation(self, representation: Representation) -> "DASH":
        self.profile.representations.add(representation)
        return self

    def add_representations(self, representations: Sequence[Representation]) -> "DASH":
        self.profile.representations.extend(representations)
        return self

    def set_seg_duration(self, seconds: int) -> "DASH":
        self.profile.seg_duration = seconds
        return self

    def set_adaptation_sets(self, adaptation_sets: str) -> "DASH":
        self.profile.adaptation_sets = adaptation_sets
        return self

    def set_use_template(self, use_template: bool) -> "DASH":
        self.profile.use_template = use_template
        return self

    def set_use_timeline(self, use_timeline: bool) -> "DASH":
        self.profile.use_timeline = use_timeline
        return self

    def generate_hls_playlist(self, generate: bool = True) -> "DASH":
        """Lets the DASH muxer also write an HLS master playlist for the same segments."""
        self.profile.generate_hls_playlist = generate
        return self

    def get_path(self, path) -> str:
        return output_stem(str(path)) + DASH_MANIFEST_EXTENSION
