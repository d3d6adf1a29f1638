import copy
from pathlib import Path

import pytest

from streampack.config import common
from streampack.domain.exceptions import PackagingError
from streampack.domain.media import Media
from streampack.utils import ffmpeg_utils

SAMPLE_PROBE = {
    "format": {
        "filename": "movie.mp4",
        "format_name": "mov,mp4,m4a,3gp,3g2,mj2",
        "duration": "60.000000",
        "bit_rate": "4300000",
    },
    "streams": [
        {
            "index": 0,
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1920,
            "height": 1080,
            "bit_rate": "4096000",
        },
        {
            "index": 1,
            "codec_type": "audio",
            "codec_name": "aac",
            "bit_rate": "96000",
        },
    ],
}


@pytest.fixture(autouse=True)
def isolated_tmp_root(tmp_path, monkeypatch):
    """Every temporary directory and file of a test lands below tmp_path/scratch."""
    root = tmp_path / "scratch"
    monkeypatch.setattr(common, "TMP_ROOT", root)
    monkeypatch.setattr(common, "ENGINE_LOG_LEVEL", None)
    return root


@pytest.fixture
def probe():
    return copy.deepcopy(SAMPLE_PROBE)


@pytest.fixture
def source_file(tmp_path) -> Path:
    path = tmp_path / "library" / "movie.mp4"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"not really a movie")
    return path


@pytest.fixture
def media(source_file, probe) -> Media:
    return Media(source_file, probe=probe)


class FakeEngine:
    """Stands in for `run_engine`: replays canned output lines and writes the last output file."""

    def __init__(self):
        self.calls = []
        self.lines = []
        self.returncode = 0

    def __call__(self, invocation, line_stream=None, tail_size=30):
        self.calls.append(invocation)
        for line in self.lines:
            if line_stream is not None:
                line_stream.feed(line)
        if self.returncode:
            raise PackagingError(
                f"engine exit code {self.returncode}",
                returncode=self.returncode,
                diagnostics="\n".join(self.lines),
                command=invocation.argv(),
            )
        output = invocation.arguments[-1]
        if "://" not in output:
            Path(output).parent.mkdir(parents=True, exist_ok=True)
            Path(output).write_text("output")
        return list(self.lines)


@pytest.fixture
def fake_engine(monkeypatch) -> FakeEngine:
    engine = FakeEngine()
    monkeypatch.setattr(ffmpeg_utils, "run_engine", engine)
    return engine
