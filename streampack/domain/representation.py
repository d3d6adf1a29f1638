"""
Quality rungs of an adaptive bitrate ladder.

A `Representation` describes one rendition (resolution plus video and audio
bitrate); a `RepresentationLadder` keeps them in the order the caller added
them. That order drives both the engine command and the master playlist, so the
ladder never sorts or reorders its entries.
"""
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Sequence

from loguru import logger

from ..config.streaming import (
    DEFAULT_LADDER_HEIGHTS,
    FALLBACK_SOURCE_KILO_BITRATE,
    LADDER_BITRATE_DIVISOR,
)
from .exceptions import ValidationError

if TYPE_CHECKING:
    from .media import Media


def _positive_int(value, name: str) -> int:
    # bool is an int subclass; True is not a bitrate.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


class Representation:
    """
    A single quality rung: dimensions, video bitrate and optional audio bitrate.

    Setters validate immediately and return the instance, so representations
    can be built fluently:

        Representation().set_resize(1280, 720).set_kilo_bitrate(2048)

    Once a stream starts packaging, its representations are locked and any
    further change raises `ValidationError`.
    """

    def __init__(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        kilo_bitrate: Optional[int] = None,
        audio_kilo_bitrate: Optional[int] = None,
    ):
        self._width: Optional[int] = None
        self._height: Optional[int] = None
        self._kilo_bitrate: Optional[int] = None
        self._audio_kilo_bitrate: Optional[int] = None
        self._hls_stream_info: Dict[str, str] = {}
        self._locked = False

        if width is not None or height is not None:
            self.set_resize(width, height)
        if kilo_bitrate is not None:
            self.set_kilo_bitrate(kilo_bitrate)
        if audio_kilo_bitrate is not None:
            self.set_audio_kilo_bitrate(audio_kilo_bitrate)

    def _check_unlocked(self):
        if self._locked:
            raise ValidationError(
                f"Representation {self} is being packaged and can no longer be changed"
            )

    def set_resize(self, width: int, height: int) -> "Representation":
        self._check_unlocked()
        self._width = _positive_int(width, "width")
        self._height = _positive_int(height, "height")
        return self

    def set_kilo_bitrate(self, kilo_bitrate: int) -> "Representation":
        self._check_unlocked()
        self._kilo_bitrate = _positive_int(kilo_bitrate, "video kilo bitrate")
        return self

    def set_audio_kilo_bitrate(self, audio_kilo_bitrate: int) -> "Representation":
        self._check_unlocked()
        self._audio_kilo_bitrate = _positive_int(audio_kilo_bitrate, "audio kilo bitrate")
        return self

    def set_hls_stream_info(self, stream_info: Dict[str, str]) -> "Representation":
        """Extra attributes appended to this rendition's EXT-X-STREAM-INF line."""
        self._check_unlocked()
        self._hls_stream_info = {str(k): str(v) for k, v in stream_info.items()}
        return self

    def get_width(self) -> Optional[int]:
        return self._width

    def get_height(self) -> Optional[int]:
        return self._height

    def get_kilo_bitrate(self) -> Optional[int]:
        return self._kilo_bitrate

    def get_audio_kilo_bitrate(self) -> Optional[int]:
        return self._audio_kilo_bitrate

    def get_hls_stream_info(self) -> Dict[str, str]:
        return dict(self._hls_stream_info)

    def size2string(self) -> Optional[str]:
        if self._width is None or self._height is None:
            return None
        return f"{self._width}x{self._height}"

    def lock(self):
        self._locked = True

    def unlock(self):
        self._locked = False

    @property
    def is_locked(self) -> bool:
        return self._locked

    def __repr__(self) -> str:
        return (
            f"Representation(size={self.size2string()}, "
            f"kilo_bitrate={self._kilo_bitrate}, audio_kilo_bitrate={self._audio_kilo_bitrate})"
        )


class RepresentationLadder:
    """An append-only, insertion-ordered collection of representations."""

    def __init__(self, representations: Iterable[Representation] = ()):
        self._representations: List[Representation] = []
        self.extend(representations)

    def add(self, representation: Representation) -> "RepresentationLadder":
        if not isinstance(representation, Representation):
            raise ValidationError(
                f"Ladder entries must be Representation instances, got {type(representation).__name__}"
            )
        self._representations.append(representation)
        return self

    def extend(self, representations: Iterable[Representation]) -> "RepresentationLadder":
        for representation in representations:
            self.add(representation)
        return self

    def all(self) -> List[Representation]:
        return list(self._representations)

    def last(self) -> Optional[Representation]:
        return self._representations[-1] if self._representations else None

    def is_empty(self) -> bool:
        return not self._representations

    def lock(self):
        for representation in self._representations:
            representation.lock()

    def unlock(self):
        for representation in self._representations:
            representation.unlock()

    def __iter__(self) -> Iterator[Representation]:
        return iter(list(self._representations))

    def __len__(self) -> int:
        return len(self._representations)

    def __getitem__(self, index: int) -> Representation:
        return self._representations[index]


def _even(value: float) -> int:
    # Most encoders reject odd dimensions for 4:2:0 content.
    rounded = int(round(value))
    return rounded if rounded % 2 == 0 else rounded + 1


def width_for_height(source_width: int, source_height: int, height: int) -> int:
    """Width matching the source aspect ratio at `height`, rounded to an even number."""
    if height == source_height:
        return source_width
    return _even(height * source_width / source_height)


def auto_ladder(
    media: "Media",
    heights: Optional[Sequence[int]] = None,
    kilo_bitrates: Optional[Sequence[int]] = None,
) -> RepresentationLadder:
    """
    Builds a descending ladder from the source's resolution and bitrate.

    Heights above the source height are dropped so the source is never
    upscaled; the source height itself is always the top rung. The top rung
    gets the source video bitrate and every lower rung gets the previous one
    divided by `LADDER_BITRATE_DIVISOR`, unless explicit `kilo_bitrates` are
    given (one per resulting rung, top first).

    Args:
        media: The probed source media.
        heights: Candidate heights. Defaults to `DEFAULT_LADDER_HEIGHTS`.
        kilo_bitrates: Optional explicit bitrates, top rung first.

    Returns:
        A new `RepresentationLadder`.

    Raises:
        ValidationError: If the source has no video dimensions or the explicit
                         bitrates do not match the number of rungs.
    """
    dimensions = media.get_dimensions()
    if not dimensions:
        raise ValidationError(f"Cannot build a ladder: no video dimensions found for {media.path}")
    source_width, source_height = dimensions

    candidate_heights = sorted(set(heights or DEFAULT_LADDER_HEIGHTS), reverse=True)
    rung_heights = [source_height] + [h for h in candidate_heights if h < source_height]

    if kilo_bitrates is not None:
        if len(kilo_bitrates) != len(rung_heights):
            raise ValidationError(
                f"Expected {len(rung_heights)} bitrates for heights {rung_heights}, got {len(kilo_bitrates)}"
            )
        rung_bitrates = list(kilo_bitrates)
    else:
        source_kbps = media.get_kilo_bitrate() or FALLBACK_SOURCE_KILO_BITRATE
        rung_bitrates = []
        current = float(source_kbps)
        for _ in rung_heights:
            rung_bitrates.append(max(1, int(current)))
            current /= LADDER_BITRATE_DIVISOR

    ladder = RepresentationLadder()
    for height, kbps in zip(rung_heights, rung_bitrates):
        ladder.add(Representation(width_for_height(source_width, source_height, height), height, kbps))

    logger.debug(f"Auto ladder for {media.path}: {ladder.all()}")
    return ladder
