"""
streampack: an adaptive bitrate packager driving FFmpeg.

The package turns a source media file (or a capture device) into HLS or DASH
renditions, or a plain re-encoded file, while taking care of everything around
the engine run: temporary storage, key rotation for encrypted HLS, master
playlist generation, optional upload and metadata export.

Convenience imports are provided so callers can write
`from streampack import HLS, Media, Representation` instead of reaching into
the subpackages.
"""

from .domain.exceptions import (
    InvalidConfigurationError,
    KeyGenerationError,
    MissingOutputPathError,
    NoPersistentLocationError,
    PackagingError,
    StreamPackException,
    ValidationError,
)
from .domain.formats import HEVC, VP9, X264, Format
from .domain.media import Media
from .domain.representation import Representation, RepresentationLadder, auto_ladder
from .services.packaging_service import DASH, HLS, Stream, StreamToFile

__all__ = [
    "DASH",
    "HEVC",
    "HLS",
    "Format",
    "InvalidConfigurationError",
    "KeyGenerationError",
    "Media",
    "MissingOutputPathError",
    "NoPersistentLocationError",
    "PackagingError",
    "Representation",
    "RepresentationLadder",
    "Stream",
    "StreamPackException",
    "StreamToFile",
    "VP9",
    "ValidationError",
    "X264",
    "auto_ladder",
]
