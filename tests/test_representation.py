import pytest

from streampack.domain.exceptions import ValidationError
from streampack.domain.media import Media
from streampack.domain.representation import (
    Representation,
    RepresentationLadder,
    auto_ladder,
    width_for_height,
)


@pytest.mark.parametrize("value", [0, -5])
def test_non_positive_bitrate_rejected(value):
    with pytest.raises(ValidationError):
        Representation().set_kilo_bitrate(value)


def test_positive_bitrate_stored():
    rep = Representation().set_kilo_bitrate(128)
    assert rep.get_kilo_bitrate() == 128


@pytest.mark.parametrize("value", [1.5, "720", True, None])
def test_non_integer_values_rejected(value):
    with pytest.raises(ValidationError):
        Representation().set_resize(1280, value)


def test_size2string():
    assert Representation().size2string() is None
    assert Representation(1280, 720).size2string() == "1280x720"


def test_audio_bitrate_validated():
    with pytest.raises(ValidationError):
        Representation().set_audio_kilo_bitrate(0)
    assert Representation(audio_kilo_bitrate=128).get_audio_kilo_bitrate() == 128


def test_locked_representation_cannot_change():
    rep = Representation(640, 360, 800)
    rep.lock()
    with pytest.raises(ValidationError):
        rep.set_kilo_bitrate(900)
    rep.unlock()
    rep.set_kilo_bitrate(900)
    assert rep.get_kilo_bitrate() == 900


def test_hls_stream_info_copied():
    info = {"CODECS": '"avc1.4d401f,mp4a.40.2"'}
    rep = Representation().set_hls_stream_info(info)
    info["CODECS"] = "changed"
    assert rep.get_hls_stream_info() == {"CODECS": '"avc1.4d401f,mp4a.40.2"'}


def test_ladder_keeps_insertion_order():
    reps = [Representation(1920, 1080, 4000), Representation(640, 360, 800), Representation(1280, 720, 2000)]
    ladder = RepresentationLadder(reps)
    assert [r.get_height() for r in ladder] == [1080, 360, 720]
    assert ladder.last() is reps[-1]
    assert len(ladder) == 3


def test_ladder_rejects_other_types():
    with pytest.raises(ValidationError):
        RepresentationLadder().add("720p")


def test_width_for_height_is_even():
    assert width_for_height(1920, 1080, 1080) == 1920
    assert width_for_height(1920, 1080, 720) == 1280
    assert width_for_height(1920, 1080, 360) == 640
    assert width_for_height(1920, 1080, 144) % 2 == 0


def test_auto_ladder_never_upscales(media):
    ladder = auto_ladder(media, heights=[2160, 720, 360])
    assert [r.get_height() for r in ladder] == [1080, 720, 360]
    assert ladder[0].get_kilo_bitrate() == 4096000 // 1024
    assert ladder[1].get_kilo_bitrate() == int(4000 / 1.5)
    assert ladder[1].size2string() == "1280x720"


def test_auto_ladder_explicit_bitrates(media):
    ladder = auto_ladder(media, heights=[720], kilo_bitrates=[5000, 2500])
    assert [r.get_kilo_bitrate() for r in ladder] == [5000, 2500]
    with pytest.raises(ValidationError):
        auto_ladder(media, heights=[720], kilo_bitrates=[5000])


def test_auto_ladder_needs_dimensions(source_file):
    audio_only = Media(source_file, probe={"format": {}, "streams": [{"codec_type": "audio"}]})
    with pytest.raises(ValidationError):
        auto_ladder(audio_only)
