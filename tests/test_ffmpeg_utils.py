import io
import subprocess

import pytest

from streampack.domain.exceptions import KeyGenerationError, PackagingError
from streampack.domain.invocation import EngineInvocation
from streampack.utils import ffmpeg_utils
from streampack.utils.ffmpeg_utils import LineStream, run_engine

INVOCATION = EngineInvocation("ffmpeg", ("-y", "-i", "in.mp4", "out.m3u8"), working_directory="/work")


class FakeProcess:
    def __init__(self, stderr_text: str, returncode: int = 0):
        self.stderr = io.StringIO(stderr_text)
        self.returncode = returncode
        self.pid = 4242
        self.terminated = False
        self.finished = False

    def poll(self):
        return self.returncode if self.finished else None

    def wait(self, timeout=None):
        self.finished = True
        return self.returncode

    def terminate(self):
        self.terminated = True

    def kill(self):
        self.terminated = True


@pytest.fixture
def fake_popen(monkeypatch):
    created = []

    def install(stderr_text: str, returncode: int = 0):
        def popen(argv, **kwargs):
            process = FakeProcess(stderr_text, returncode)
            created.append((argv, kwargs, process))
            return process

        monkeypatch.setattr(ffmpeg_utils.subprocess, "Popen", popen)
        return created

    return install


def test_lines_reach_handlers_in_order(fake_popen):
    created = fake_popen("first\r\n\nsecond\nthird\n")
    first, second = [], []
    stream = LineStream()
    stream.subscribe(first.append)
    stream.subscribe(lambda line: second.append((len(first), line)))

    tail = run_engine(INVOCATION, stream)

    assert first == ["first", "second", "third"]
    assert second == [(1, "first"), (2, "second"), (3, "third")]
    assert tail == ["first", "second", "third"]
    argv, kwargs, _ = created[0]
    assert argv == ["ffmpeg", "-y", "-i", "in.mp4", "out.m3u8"]
    assert kwargs["cwd"] == "/work"
    assert kwargs["stderr"] == subprocess.PIPE


def test_non_zero_exit_raises_with_diagnostics(fake_popen):
    fake_popen("".join(f"line {n}\n" for n in range(50)) + "Conversion failed!\n", returncode=1)

    with pytest.raises(PackagingError) as exc_info:
        run_engine(INVOCATION, tail_size=5)

    error = exc_info.value
    assert error.returncode == 1
    assert error.stage == "invocation"
    assert error.diagnostics.splitlines() == ["line 46", "line 47", "line 48", "line 49", "Conversion failed!"]
    assert "Conversion failed!" in str(error)
    assert error.command[0] == "ffmpeg"


def test_spawn_failure_is_wrapped(monkeypatch):
    def popen(argv, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", argv[0])

    monkeypatch.setattr(ffmpeg_utils.subprocess, "Popen", popen)
    with pytest.raises(PackagingError) as exc_info:
        run_engine(INVOCATION)
    assert exc_info.value.returncode is None
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_domain_errors_from_handlers_do_not_abort(fake_popen):
    fake_popen("a\nb\n")
    seen = []

    def failing(line):
        raise KeyGenerationError(f"no key for {line}")

    stream = LineStream()
    stream.subscribe(failing)
    stream.subscribe(seen.append)

    run_engine(INVOCATION, stream)

    assert seen == ["a", "b"]
    assert [str(e) for e in stream.errors] == ["no key for a", "no key for b"]


def test_unexpected_handler_error_stops_engine(fake_popen):
    created = fake_popen("a\nb\n")

    def broken(line):
        raise ValueError("bug")

    stream = LineStream()
    stream.subscribe(broken)
    with pytest.raises(ValueError):
        run_engine(INVOCATION, stream)
    assert created[0][2].terminated


def test_unsubscribe():
    seen = []
    stream = LineStream()
    handler = stream.subscribe(seen.append)
    stream.feed("one")
    stream.unsubscribe(handler)
    stream.feed("two")
    assert seen == ["one"]
    assert stream.line_count == 2
    assert len(stream) == 0
