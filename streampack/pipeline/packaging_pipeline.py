import argparse
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.capture import Platform
from ..domain.exceptions import StreamPackException, ValidationError
from ..domain.formats import HEVC, VP9, X264, Format
from ..domain.media import Media
from ..domain.profiles import StreamMode
from ..domain.representation import Representation, auto_ladder, width_for_height
from ..services.cloud_service import CloudTarget, LocalDirectoryCloud
from ..services.dash_stream import DASH
from ..services.hls_stream import HLS
from ..services.packaging_service import create_stream
from ..services.stream_base import Stream
from ..utils import file_utils
from ..utils.format_utils import formatted_size

FORMATS = {
    "x264": X264,
    "hevc": HEVC,
    "vp9": VP9,
}


class PackagingPipeline:
    """
    Runs one packaging job described by parsed command-line arguments.

    The pipeline builds the source, the ladder and the stream, packages, and
    exports metadata when asked to. Errors are domain exceptions and are left
    to the caller (`main.py` turns them into an exit code).
    """

    def __init__(self, args: argparse.Namespace, platform: Platform = Platform.LINUX):
        self.args = args
        self.platform = platform
        self.stream: Optional[Stream] = None
        self.metadata_path: Optional[Path] = None

    def build_media(self) -> Media:
        if self.args.capture:
            return Media.capture(self.args.input, self.args.audio_device, platform=self.platform)
        return Media(self.args.input)

    def build_format(self) -> Format:
        return FORMATS[self.args.format]()

    def build_representations(self, media: Media) -> List[Representation]:
        if self.args.auto_reps:
            return auto_ladder(media).all()

        representations = []
        dimensions = media.get_dimensions() if any(w is None for w, *_ in self.args.reps) else None
        for width, height, kbps, audio_kbps in self.args.reps:
            if width is None:
                if not dimensions:
                    raise ValidationError(
                        f"Cannot derive a width for {height}p: the source has no known dimensions; use WxH:KBPS"
                    )
                width = width_for_height(dimensions[0], dimensions[1], height)
            representations.append(Representation(width, height, kbps, audio_kbps))
        return representations

    def build_stream(self) -> Stream:
        media = self.build_media()
        mode = StreamMode(self.args.mode)
        stream = create_stream(mode, media, self.build_format(), error_log_dir=self.args.error_log_dir)

        if isinstance(stream, (HLS, DASH)):
            stream.add_representations(self.build_representations(media))
        if isinstance(stream, HLS):
            if self.args.hls_time:
                stream.set_hls_time(self.args.hls_time)
            if self.args.hls_base_url:
                stream.set_hls_base_url(self.args.hls_base_url)
            if self.args.fmp4:
                stream.fragmented_mp4()
            if self.args.encrypt_key:
                stream.encryption(self.args.encrypt_key, self.args.encrypt_url, self.args.rotation_period)
        if isinstance(stream, DASH) and self.args.seg_duration:
            stream.set_seg_duration(self.args.seg_duration)
        if self.args.strict:
            stream.set_strict(self.args.strict)
        return stream

    def clouds(self) -> List[CloudTarget]:
        if not self.args.upload_dir:
            return []
        return [CloudTarget(LocalDirectoryCloud(self.args.upload_dir))]

    def run(self) -> Stream:
        self.stream = self.build_stream()

        if self.args.live:
            self.stream.live(self.args.live)
            return self.stream

        self.stream.save(self.args.output, self.clouds())
        for error in self.stream.listener_errors:
            logger.warning(f"Problem during packaging ({error.stage}): {error}")

        final_path = self.stream.final_path()
        if final_path and not self.stream.is_tmp_dir():
            size = file_utils.directory_size(Path(final_path).parent)
            logger.info(f"Output directory holds {formatted_size(size)}")

        if self.args.metadata is not None:
            self.export_metadata()
        return self.stream

    def export_metadata(self):
        save_to = self.args.metadata or None
        try:
            self.metadata_path = self.stream.metadata().export(save_to)
        except StreamPackException as e:
            # The output itself is fine at this point.
            logger.error(f"Metadata export failed: {e}")
