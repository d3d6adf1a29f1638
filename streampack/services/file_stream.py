"""
Plain re-encoding of the source into a single output file.
"""
from pathlib import Path

from ..domain.profiles import FileProfile, StreamMode
from .filters import StreamToFileFilter
from .stream_base import Stream


class StreamToFile(Stream):
    """Writes one output file. The output path is used as given."""

    mode = StreamMode.FILE
    filter_class = StreamToFileFilter
    profile: FileProfile

    def _new_profile(self) -> FileProfile:
        return FileProfile()

    def _default_path(self) -> str:
        # Next to the source, but never on top of it.
        source = Path(super()._default_path())
        return str(source.with_name(f"{source.stem}_packaged{source.suffix}"))
