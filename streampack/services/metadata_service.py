"""
Post-run description of a packaging session, as data or as a file.

The record has two parts: "video" holds the probed source (container format
and streams), "stream" describes the produced output (location, size,
renditions and the protocol settings that were used).
"""
import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import yaml
from loguru import logger

from ..config.common import METADATA_DEFAULT_PREFIX
from ..domain.exceptions import NoPersistentLocationError
from ..domain.profiles import StreamMode
from ..domain.representation import Representation
from ..utils import file_utils

if TYPE_CHECKING:
    from .stream_base import Stream

DELETED_MARKER = "The file has been deleted"
AUDIO_NOT_SPECIFIED = "Not specified"
YAML_SUFFIXES = (".yaml", ".yml")


class Metadata:
    def __init__(self, stream: "Stream"):
        self.stream = stream

    def get_format(self) -> dict:
        return self.stream.media.get_format()

    def get_streams(self) -> List[dict]:
        return self.stream.media.get_streams()

    @staticmethod
    def rep_to_dict(rep: Representation) -> Dict[str, Any]:
        size = rep.size2string()
        return {
            "dimension": size.upper() if size else None,
            "video_kilo_bitrate": rep.get_kilo_bitrate(),
            "audio_kilo_bitrate": rep.get_audio_kilo_bitrate() or AUDIO_NOT_SPECIFIED,
        }

    def resolutions(self) -> List[Dict[str, Any]]:
        ladder = getattr(self.stream.profile, "representations", None)
        if ladder is None:
            return []
        return [self.rep_to_dict(rep) for rep in ladder]

    def stream_metadata(self) -> Dict[str, Any]:
        info = self.stream.path_info()
        filename = str(Path(info["dirname"]) / info["basename"])
        output = Path(filename)

        if output.exists():
            created_at = datetime.fromtimestamp(output.stat().st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        else:
            created_at = DELETED_MARKER

        metadata = {
            "filename": filename,
            "size_of_stream_dir": file_utils.directory_size(info["dirname"]),
            "created_at": created_at,
            "resolutions": self.resolutions(),
            "format": self.stream.format.name,
            "streaming_technique": type(self.stream).__name__,
        }

        profile = self.stream.profile
        if self.stream.mode == StreamMode.DASH:
            metadata["seg_duration"] = profile.seg_duration
        elif self.stream.mode == StreamMode.HLS:
            metadata.update(
                {
                    "hls_time": int(profile.hls_time),
                    "hls_cache": bool(profile.hls_allow_cache),
                    "encrypted_hls": bool(profile.hls_key_info_file),
                    "ts_sub_directory": profile.seg_sub_directory,
                    "base_url": profile.hls_base_url,
                    "segment_type": profile.hls_segment_type,
                }
            )
        return metadata

    def describe(self) -> Dict[str, Any]:
        return {
            "video": {
                "format": self.get_format(),
                "streams": self.get_streams(),
            },
            "stream": self.stream_metadata(),
        }

    get = describe

    def get_json(self, indent: int = 4) -> str:
        return json.dumps(self.describe(), indent=indent, ensure_ascii=False)

    def get_yaml(self) -> str:
        return yaml.safe_dump(self.describe(), default_flow_style=False, sort_keys=False, allow_unicode=True)

    def _default_target(self) -> Path:
        if self.stream.is_tmp_dir():
            raise NoPersistentLocationError(
                "The output only existed in a temporary directory; pass an explicit path to export metadata"
            )
        info = self.stream.path_info()
        prefix = info["filename"] or METADATA_DEFAULT_PREFIX
        return Path(info["dirname"]) / f"{prefix}-{uuid.uuid4().hex[:13]}.json"

    def save_as_json(self, save_to: Optional[Path] = None) -> Path:
        target = Path(save_to) if save_to else self._default_target()
        return file_utils.put(target, self.get_json())

    def save_as_yaml(self, save_to: Path) -> Path:
        return file_utils.put(save_to, self.get_yaml())

    def export(self, save_to: Optional[Path] = None) -> Path:
        """
        Writes the record to `save_to` and returns the path written.

        A `.yaml`/`.yml` suffix selects YAML, anything else JSON. Without
        `save_to` a unique JSON file is created next to the output.

        Raises:
            NoPersistentLocationError: Without `save_to` when the output only
                                       lived in a temporary directory.
        """
        if save_to is not None and Path(save_to).suffix.lower() in YAML_SUFFIXES:
            target = self.save_as_yaml(save_to)
        else:
            target = self.save_as_json(save_to)
        logger.info(f"Exported metadata to {target}")
        return target
