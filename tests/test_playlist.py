from streampack.domain.formats import X264
from streampack.domain.media import Media
from streampack.domain.representation import Representation
from streampack.services.hls_stream import HLS


def stream_info_lines(text):
    return [line for line in text.splitlines() if line.startswith("#EXT-X-STREAM-INF")]


def test_ladder_order_preserved(media):
    hls = HLS(media, X264()).add_representations(
        [Representation(640, 360, 800), Representation(1280, 720, 2000), Representation(1920, 1080, 4000)]
    )
    text = hls.playlist().render()

    resolutions = [line.split("RESOLUTION=")[1].split(",")[0] for line in stream_info_lines(text)]
    assert resolutions == ["640x360", "1280x720", "1920x1080"]

    lines = text.splitlines()
    assert lines[0] == "#EXTM3U"
    assert lines[1] == "#EXT-X-VERSION:3"
    assert lines[3] == "movie_360p.m3u8"
    assert lines[-1] == "movie_1080p.m3u8"


def test_bandwidth_with_explicit_audio(media):
    hls = HLS(media, X264()).add_representation(Representation(1280, 720, 1000, 128))
    line = stream_info_lines(hls.playlist().render())[0]
    assert line == '#EXT-X-STREAM-INF:BANDWIDTH=1155072,RESOLUTION=1280x720,NAME="720"'


def test_bandwidth_falls_back_to_source_audio(media):
    hls = HLS(media, X264()).add_representation(Representation(1280, 720, 1000))
    line = stream_info_lines(hls.playlist().render())[0]
    assert f"BANDWIDTH={1000 * 1024 + 96000}," in line


def test_bandwidth_without_any_audio(source_file):
    silent = Media(source_file, probe={"format": {}, "streams": [{"codec_type": "video", "width": 640, "height": 360}]})
    hls = HLS(silent, X264()).add_representation(Representation(640, 360, 500))
    assert hls.playlist().bandwidth(hls.profile.representations[0]) == 500 * 1024


def test_extra_stream_info_and_version_for_fmp4(media):
    rep = Representation(1280, 720, 2000).set_hls_stream_info({"CODECS": '"avc1.64001f,mp4a.40.2"'})
    hls = HLS(media, X264()).add_representation(rep).fragmented_mp4()
    text = hls.playlist().render(["#EXT-X-SESSION-DATA:DATA-ID=\"title\",VALUE=\"Movie\""], independent_segments=True)
    lines = text.splitlines()

    assert lines[1] == "#EXT-X-VERSION:7"
    assert lines[2] == "#EXT-X-INDEPENDENT-SEGMENTS"
    assert lines[3].startswith("#EXT-X-SESSION-DATA")
    assert lines[4].endswith(',CODECS="avc1.64001f,mp4a.40.2"')


def test_save_creates_parent_directories(media, tmp_path):
    hls = HLS(media, X264()).add_representation(Representation(640, 360, 800))
    target = tmp_path / "nested" / "deeper" / "master.m3u8"
    written = hls.playlist().save(target)
    assert written == target
    assert target.read_text() == hls.playlist().render()
