"""
AES key generation and rotation for encrypted HLS output.

FFmpeg encrypts HLS segments with the key described by a "key info" file: three
lines holding the key URI written into the playlist, the local path of the key
file, and the IV. With `-hls_flags periodic_rekey` FFmpeg re-reads that file
before each segment, so replacing it while the engine runs switches the key
for every segment produced afterwards.

`HLSKeyInfo` writes those files and, when attached to the engine's line stream,
watches for new segments and issues a fresh key every `period` segments.
"""
import secrets
import uuid
from pathlib import Path
from typing import List, Optional, Set

from loguru import logger

from ..config.streaming import DEFAULT_KEY_LENGTH
from ..domain.exceptions import KeyGenerationError
from ..utils import file_utils
from ..utils.ffmpeg_utils import LineStream


class HLSKeyInfo:
    """
    Key rotation controller for one encrypted HLS session.

    State machine: idle until the first `generate()`, then each time `period`
    new segment lines have been observed the paths get a fresh suffix and a new
    key is generated. Observed segment lines are remembered for the whole
    session, so a line that shows up twice never counts twice.

    Attributes:
        path (Path): Local path of the current key.
        url (str): Public URI of the current key, as written in the playlist.
        key_info_path (Path): The key info file handed to the engine.
        rotation_count (int): How many rotations happened so far.
    """

    def __init__(self, path, url: str, key_info_path: Optional[Path] = None):
        self._base_path = Path(path)
        self._base_url = url
        self.path: Path = self._base_path
        self.url: str = url
        self.key_info_path: Optional[Path] = Path(key_info_path) if key_info_path else None
        self.length = DEFAULT_KEY_LENGTH
        self.suffix = ""
        self.rotation_count = 0
        self.generated = False

        self._segments: List[str] = []
        self._seen: Set[str] = set()
        self._since_rotation = 0

        try:
            file_utils.make_dir(self._base_path.parent)
        except OSError as e:
            raise KeyGenerationError(f"Cannot create key directory {self._base_path.parent}: {e}") from e

    @classmethod
    def create(cls, path, url: str) -> "HLSKeyInfo":
        return cls(path, url)

    def set_length(self, length: int) -> "HLSKeyInfo":
        if length <= 0:
            raise KeyGenerationError(f"Key length must be positive, got {length}")
        self.length = length
        return self

    def set_suffix(self, suffix: str) -> "HLSKeyInfo":
        """Fixed text appended after the unique part of every rotated key name (e.g. ".key")."""
        self.suffix = suffix
        return self

    def set_key_info_path(self, key_info_path) -> "HLSKeyInfo":
        self.key_info_path = Path(key_info_path)
        return self

    def get_segments(self) -> List[str]:
        return list(self._segments)

    def get_key_info_path(self) -> Path:
        """The key info file, allocated as a temporary file on first use."""
        if self.key_info_path is None:
            self.key_info_path = file_utils.tmp_file(".keyinfo")
        return self.key_info_path

    # --- Key material ---

    def _random_bytes(self, count: int) -> bytes:
        try:
            return secrets.token_bytes(count)
        except (NotImplementedError, OSError) as e:
            raise KeyGenerationError(f"No cryptographic random source available: {e}") from e

    def generate(self) -> Path:
        """
        Writes a new key to `path` and a matching key info file.

        Both random values are drawn before anything is written, and the key
        info file is replaced atomically, so a failure leaves the previous key
        info untouched.

        Returns:
            The key info path.

        Raises:
            KeyGenerationError: If randomness or the filesystem is unavailable.
        """
        key = self._random_bytes(self.length)
        iv = self._random_bytes(self.length)

        try:
            file_utils.put(self.path, key)
            file_utils.put_atomic(self.get_key_info_path(), "\n".join([self.url, str(self.path), iv.hex()]))
        except OSError as e:
            raise KeyGenerationError(f"Could not write key files for {self.path}: {e}") from e

        self.generated = True
        logger.debug(f"Generated {self.length * 8}-bit key at {self.path}")
        return self.get_key_info_path()

    def update_suffix(self):
        unique = f"_{uuid.uuid4().hex[:13]}{self.suffix}"
        self.path = self._base_path.with_name(self._base_path.name + unique)
        self.url = self._base_url + unique

    def rotate(self):
        """Switches to a freshly named key. On failure the previous key stays in effect."""
        previous_path, previous_url = self.path, self.url
        self.update_suffix()
        try:
            self.generate()
        except KeyGenerationError:
            self.path, self.url = previous_path, previous_url
            raise
        self.rotation_count += 1
        logger.info(f"Rotated HLS key (#{self.rotation_count}): {self.url}")

    # --- Line stream wiring ---

    def rotate_key(self, line_stream: LineStream, period: int, needle: str):
        """
        Subscribes to `line_stream` and rotates the key every `period` new segments.

        Args:
            line_stream: The engine's output line stream.
            period: Number of new, previously unseen segment lines per key.
            needle: Text identifying a segment creation line.
        """
        if period <= 0:
            raise KeyGenerationError(f"Key rotation period must be positive, got {period}")
        line_stream.subscribe(self._listener(needle, period))

    attach_to = rotate_key

    def _listener(self, needle: str, period: int):
        def on_line(line: str):
            if needle not in line or line in self._seen:
                return
            self._seen.add(line)
            self._segments.append(line)
            self._since_rotation += 1
            if self._since_rotation >= period:
                self._since_rotation = 0
                self.rotate()

        return on_line

    def __str__(self) -> str:
        return str(self.get_key_info_path())
