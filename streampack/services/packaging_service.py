"""
Entry point to the packaging modes.

`HLS`, `DASH` and `StreamToFile` are the complete set of output modes. Use
`create_stream` to pick one from a `StreamMode` value (the command line does).
"""
from typing import Dict, Type

from ..domain.formats import Format
from ..domain.media import Media
from ..domain.profiles import StreamMode
from .dash_stream import DASH
from .file_stream import StreamToFile
from .hls_stream import HLS
from .stream_base import SessionState, Stream

STREAM_CLASSES: Dict[StreamMode, Type[Stream]] = {
    StreamMode.HLS: HLS,
    StreamMode.DASH: DASH,
    StreamMode.FILE: StreamToFile,
}


def create_stream(mode: StreamMode, media: Media, fmt: Format, **kwargs) -> Stream:
    return STREAM_CLASSES[mode](media, fmt, **kwargs)


__all__ = ["DASH", "HLS", "STREAM_CLASSES", "SessionState", "Stream", "StreamToFile", "create_stream"]
