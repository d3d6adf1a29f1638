"""
Format-specific output mappings appended to the engine command.

Every filter turns a packaging profile, a codec format and the resolved output
path into a list of output groups. Each group is a complete FFmpeg output
(options followed by the output file), and groups are emitted in ladder order.
"""
from pathlib import Path
from typing import List, Optional, Union

from ..config.streaming import (
    BUFSIZE_FACTOR,
    HLS_MASTER_EXTENSION,
    HLS_PERIODIC_REKEY_FLAG,
    HLS_SEGMENT_NUMBER_PATTERN,
    MAXRATE_FACTOR,
)
from ..domain.formats import Format
from ..domain.profiles import DASHProfile, FileProfile, HLSProfile, StreamMode
from ..domain.representation import Representation

Profile = Union[HLSProfile, DASHProfile, FileProfile]


def output_stem(output_path: str) -> str:
    """The output path without its extension, using forward slashes."""
    path = str(output_path).replace("\\", "/")
    name = path.rsplit("/", 1)[-1]
    if "." in name:
        return path[: len(path) - len(name) + name.rindex(".")]
    return path


def rate_control_args(rep: Representation, stream_index: Optional[int] = None) -> List[str]:
    kbps = rep.get_kilo_bitrate()
    if kbps is None:
        return []
    specifier = "" if stream_index is None else f":{stream_index}"
    return [
        f"-b:v{specifier}", f"{kbps}k",
        f"-maxrate:v{specifier}", f"{int(kbps * MAXRATE_FACTOR)}k",
        f"-bufsize:v{specifier}", f"{int(kbps * BUFSIZE_FACTOR)}k",
    ]


def strict_args(strict: Optional[str]) -> List[str]:
    return ["-strict", strict] if strict else []


class StreamFilter:
    mode: StreamMode

    def __init__(self, profile: Profile):
        self.profile = profile

    def apply(self, fmt: Format, output_path: str) -> List[List[str]]:
        raise NotImplementedError("Subclasses must implement apply().")


class HLSFilter(StreamFilter):
    """One output group per representation, each writing its own media playlist."""

    mode = StreamMode.HLS
    profile: HLSProfile

    @staticmethod
    def rendition_stem(output_path: str, rep: Representation) -> str:
        return f"{output_stem(output_path)}_{rep.get_height()}p"

    @classmethod
    def media_playlist_path(cls, output_path: str, rep: Representation) -> str:
        return cls.rendition_stem(output_path, rep) + HLS_MASTER_EXTENSION

    def segment_filename(self, output_path: str, rep: Representation) -> str:
        stem = self.rendition_stem(output_path, rep)
        if self.profile.seg_sub_directory:
            directory, name = stem.rsplit("/", 1) if "/" in stem else ("", stem)
            sub = self.profile.seg_sub_directory.strip("/")
            stem = f"{directory}/{sub}/{name}" if directory else f"{sub}/{name}"
        return f"{stem}_{HLS_SEGMENT_NUMBER_PATTERN}.{self.profile.segment_extension}"

    def flags(self) -> List[str]:
        flags = list(self.profile.flags)
        if self.profile.hls_key_info_file and HLS_PERIODIC_REKEY_FLAG not in flags:
            flags.append(HLS_PERIODIC_REKEY_FLAG)
        return ["-hls_flags", "+".join(flags)] if flags else []

    def _group(self, fmt: Format, rep: Representation, output_path: str) -> List[str]:
        profile = self.profile
        group = fmt.codec_args()
        if rep.size2string():
            group += ["-s:v", rep.size2string()]
        group += rate_control_args(rep)
        if rep.get_audio_kilo_bitrate():
            group += ["-b:a", f"{rep.get_audio_kilo_bitrate()}k"]

        group += [
            "-f", "hls",
            "-hls_list_size", str(profile.hls_list_size),
            "-hls_time", str(profile.hls_time),
            "-hls_allow_cache", "1" if profile.hls_allow_cache else "0",
            "-hls_segment_type", profile.hls_segment_type,
            "-hls_segment_filename", self.segment_filename(output_path, rep),
        ]
        if profile.is_fragmented_mp4:
            init_name = profile.hls_fmp4_init_filename or f"{Path(self.rendition_stem(output_path, rep)).name}_init.mp4"
            group += ["-hls_fmp4_init_filename", init_name]
        if profile.hls_playlist_type:
            group += ["-hls_playlist_type", profile.hls_playlist_type]
        if profile.hls_base_url:
            group += ["-hls_base_url", profile.hls_base_url]
        if profile.hls_key_info_file:
            group += ["-hls_key_info_file", str(profile.hls_key_info_file)]
        group += self.flags()
        group += strict_args(profile.strict)
        group += fmt.additional_parameters
        group += profile.additional_params
        group.append(self.media_playlist_path(output_path, rep))
        return group

    def apply(self, fmt: Format, output_path: str) -> List[List[str]]:
        return [self._group(fmt, rep, output_path) for rep in self.profile.representations]


class DASHFilter(StreamFilter):
    """A single output group mapping every representation into one MPD."""

    mode = StreamMode.DASH
    profile: DASHProfile

    def apply(self, fmt: Format, output_path: str) -> List[List[str]]:
        profile = self.profile
        name = Path(output_stem(output_path)).name
        group: List[str] = []

        for _ in profile.representations:
            group += ["-map", "0:v:0", "-map", "0:a:0?"]
        group += fmt.codec_args()
        for index, rep in enumerate(profile.representations):
            if rep.size2string():
                group += [f"-s:v:{index}", rep.size2string()]
            group += rate_control_args(rep, index)
            if rep.get_audio_kilo_bitrate():
                group += [f"-b:a:{index}", f"{rep.get_audio_kilo_bitrate()}k"]

        group += [
            "-f", "dash",
            "-seg_duration", str(profile.seg_duration),
            "-use_template", "1" if profile.use_template else "0",
            "-use_timeline", "1" if profile.use_timeline else "0",
            "-init_seg_name", f"{name}_init_$RepresentationID$.$ext$",
            "-media_seg_name", f"{name}_chunk_$RepresentationID$_$Number%05d$.$ext$",
            "-adaptation_sets", profile.adaptation_sets,
        ]
        if profile.generate_hls_playlist:
            group += ["-hls_playlist", "1"]
        group += strict_args(profile.strict)
        group += fmt.additional_parameters
        group += profile.additional_params
        group.append(str(output_path))
        return [group]


class StreamToFileFilter(StreamFilter):
    mode = StreamMode.FILE
    profile: FileProfile

    def apply(self, fmt: Format, output_path: str) -> List[List[str]]:
        group = fmt.codec_args()
        group += strict_args(self.profile.strict)
        group += fmt.additional_parameters
        group += self.profile.additional_params
        group.append(str(output_path))
        return [group]
