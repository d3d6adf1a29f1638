import pytest

from streampack.domain.exceptions import KeyGenerationError
from streampack.services import key_rotation
from streampack.services.key_rotation import HLSKeyInfo
from streampack.utils.ffmpeg_utils import LineStream

NEEDLE = ".ts' for writing"


def segment_line(n: int) -> str:
    return f"[hls @ 0x55d0c8] Opening '/out/movie_720p_{n:04d}.ts' for writing"


@pytest.fixture
def key_info(tmp_path):
    return HLSKeyInfo(tmp_path / "keys" / "key", "https://example.com/keys/key", tmp_path / "key.info")


@pytest.fixture
def counted_generate(key_info, monkeypatch):
    calls = []
    original = key_info.generate

    def generate():
        calls.append(key_info.path)
        return original()

    monkeypatch.setattr(key_info, "generate", generate)
    return calls


def test_generate_writes_key_and_key_info(key_info, tmp_path):
    key_info.generate()

    key = (tmp_path / "keys" / "key").read_bytes()
    assert len(key) == 16
    url, path, iv = (tmp_path / "key.info").read_text().splitlines()
    assert url == "https://example.com/keys/key"
    assert path == str(tmp_path / "keys" / "key")
    assert len(iv) == 32
    int(iv, 16)


def test_key_length_configurable(key_info, tmp_path):
    key_info.set_length(32).generate()
    assert len((tmp_path / "keys" / "key").read_bytes()) == 32
    with pytest.raises(KeyGenerationError):
        key_info.set_length(0)


def test_repeated_line_counts_once(key_info, counted_generate):
    stream = LineStream()
    key_info.rotate_key(stream, 2, NEEDLE)

    stream.feed(segment_line(1))
    stream.feed(segment_line(1))
    assert counted_generate == []

    stream.feed(segment_line(2))
    assert len(counted_generate) == 1


@pytest.mark.parametrize("period", [1, 3, 5])
def test_rotation_count_follows_period(key_info, counted_generate, period):
    stream = LineStream()
    key_info.attach_to(stream, period, NEEDLE)

    for n in range(period):
        stream.feed(segment_line(n))
    assert len(counted_generate) == 1

    for n in range(period, 2 * period):
        stream.feed(segment_line(n))
        stream.feed(segment_line(n))
    assert len(counted_generate) == 2
    assert key_info.rotation_count == 2
    assert len(key_info.get_segments()) == 2 * period


def test_other_lines_are_ignored(key_info, counted_generate):
    stream = LineStream()
    key_info.rotate_key(stream, 1, NEEDLE)
    stream.feed("frame=  240 fps= 60 q=28.0 size=N/A time=00:00:10.00 bitrate=N/A speed=2.0x")
    stream.feed("[hls @ 0x55d0c8] Opening '/out/movie_720p.m3u8.tmp' for writing")
    assert counted_generate == []


def test_rotation_uses_fresh_suffix(key_info, tmp_path):
    key_info.set_suffix(".key").generate()
    key_info.rotate()
    first_path, first_url = key_info.path, key_info.url
    key_info.rotate()

    assert first_path != key_info.path
    assert first_path.name.startswith("key_") and first_path.name.endswith(".key")
    assert first_url.startswith("https://example.com/keys/key_")
    assert (tmp_path / "key.info").read_text().splitlines()[0] == key_info.url


def test_failed_rotation_keeps_previous_key(key_info, tmp_path, monkeypatch):
    key_info.generate()
    before = (tmp_path / "key.info").read_text()
    path, url = key_info.path, key_info.url

    def unavailable(count):
        raise NotImplementedError("no entropy source")

    monkeypatch.setattr(key_rotation.secrets, "token_bytes", unavailable)
    with pytest.raises(KeyGenerationError):
        key_info.rotate()

    assert (tmp_path / "key.info").read_text() == before
    assert (key_info.path, key_info.url) == (path, url)
    assert key_info.rotation_count == 0


def test_listener_failure_is_recorded_not_raised(key_info, monkeypatch):
    stream = LineStream()
    key_info.rotate_key(stream, 1, NEEDLE)

    def unavailable(count):
        raise OSError("entropy pool exhausted")

    monkeypatch.setattr(key_rotation.secrets, "token_bytes", unavailable)
    stream.feed(segment_line(1))

    assert len(stream.errors) == 1
    assert isinstance(stream.errors[0], KeyGenerationError)


def test_invalid_period(key_info):
    with pytest.raises(KeyGenerationError):
        key_info.rotate_key(LineStream(), 0, NEEDLE)


def test_key_info_path_allocated_lazily(tmp_path, isolated_tmp_root):
    info = HLSKeyInfo(tmp_path / "k" / "key", "https://example.com/key")
    assert info.key_info_path is None
    path = info.generate()
    assert path.parent == isolated_tmp_root
    assert str(info) == str(path)
