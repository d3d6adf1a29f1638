import os

import pytest

from streampack.config import common
from streampack.domain.exceptions import InvalidConfigurationError
from streampack.domain.formats import X264, Format
from streampack.domain.media import Media
from streampack.domain.profiles import DASHProfile, FileProfile, HLSProfile
from streampack.domain.representation import Representation
from streampack.services.command_builder import CommandBuilder
from streampack.services.filters import DASHFilter, HLSFilter, StreamToFileFilter, output_stem


def hls_profile(*reps, **kwargs) -> HLSProfile:
    profile = HLSProfile(**kwargs)
    profile.representations.extend(reps)
    return profile


def option(group, name):
    return group[group.index(name) + 1]


def test_output_stem():
    assert output_stem("/out/movie.m3u8") == "/out/movie"
    assert output_stem("C:\\out\\movie.mpd") == "C:/out/movie"
    assert output_stem("/out.d/movie") == "/out.d/movie"


def test_global_input_and_output_order(tmp_path, probe):
    media = Media("/dev/video0", input_options=["-f", "v4l2"], probe=probe)
    fmt = X264(initial_parameters=["-hwaccel", "auto"])
    profile = hls_profile(Representation(640, 360, 800), Representation(1280, 720, 2000))
    output = tmp_path / "out" / "movie.m3u8"

    invocation = CommandBuilder(media, fmt, executable="ffmpeg").build(HLSFilter(profile), output)
    args = list(invocation.arguments)

    assert args[:8] == ["-y", "-hwaccel", "auto", "-f", "v4l2", "-i", "/dev/video0", "-c:v"]
    first = args.index(str(tmp_path / "out" / "movie_360p.m3u8"))
    second = args.index(str(tmp_path / "out" / "movie_720p.m3u8"))
    assert first < args.index("1280x720") < second
    assert args[-1] == str(tmp_path / "out" / "movie_720p.m3u8")
    assert invocation.working_directory == str(tmp_path / "out")
    assert invocation.executable == "ffmpeg"


def test_loglevel_is_global(tmp_path, media, monkeypatch):
    monkeypatch.setattr(common, "ENGINE_LOG_LEVEL", "info")
    invocation = CommandBuilder(media, X264()).build(StreamToFileFilter(FileProfile()), tmp_path / "o.mp4")
    assert list(invocation.arguments[:3]) == ["-y", "-loglevel", "info"]


def test_build_is_deterministic(tmp_path, media):
    profile = hls_profile(Representation(640, 360, 800))
    builder = CommandBuilder(media, X264())
    first = builder.build(HLSFilter(profile), tmp_path / "a.m3u8")
    second = builder.build(HLSFilter(profile), tmp_path / "a.m3u8")
    assert first == second
    assert not (tmp_path / "a.m3u8").exists()


def test_relative_output_is_made_absolute(media, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    invocation = CommandBuilder(media, X264()).build(StreamToFileFilter(FileProfile()), "out/movie.mkv")
    assert invocation.arguments[-1] == os.path.join(os.getcwd(), "out", "movie.mkv")


def test_hls_group_contents(tmp_path, media):
    rep = Representation(1280, 720, 2000, 128)
    profile = hls_profile(rep, hls_time=6, hls_base_url="https://cdn.example.com/", hls_key_info_file="/k/info")
    groups = HLSFilter(profile).apply(X264(), str(tmp_path / "movie.m3u8"))

    assert len(groups) == 1
    group = groups[0]
    assert option(group, "-s:v") == "1280x720"
    assert option(group, "-b:v") == "2000k"
    assert option(group, "-maxrate:v") == "2400k"
    assert option(group, "-bufsize:v") == "4000k"
    assert option(group, "-b:a") == "128k"
    assert option(group, "-hls_time") == "6"
    assert option(group, "-hls_base_url") == "https://cdn.example.com/"
    assert option(group, "-hls_key_info_file") == "/k/info"
    assert option(group, "-hls_flags") == "periodic_rekey"
    assert option(group, "-hls_segment_filename") == f"{tmp_path.as_posix()}/movie_720p_%04d.ts"


def test_hls_fmp4_and_sub_directory(tmp_path, media):
    profile = hls_profile(Representation(640, 360, 800), hls_segment_type="fmp4", seg_sub_directory="segments")
    group = HLSFilter(profile).apply(X264(), "/out/movie.m3u8")[0]
    assert option(group, "-hls_segment_type") == "fmp4"
    assert option(group, "-hls_fmp4_init_filename") == "movie_360p_init.mp4"
    assert option(group, "-hls_segment_filename") == "/out/segments/movie_360p_%04d.m4s"
    assert "-hls_flags" not in group


def test_dash_single_group_in_ladder_order(tmp_path, media):
    profile = DASHProfile(seg_duration=4, generate_hls_playlist=True)
    profile.representations.extend([Representation(640, 360, 800), Representation(1280, 720, 2000, 96)])
    groups = DASHFilter(profile).apply(X264(), "/out/movie.mpd")

    assert len(groups) == 1
    group = groups[0]
    assert group.count("-map") == 4
    assert group.index("-s:v:0") < group.index("-s:v:1")
    assert group[group.index("-s:v:1") + 1] == "1280x720"
    assert group[group.index("-b:a:1") + 1] == "96k"
    assert "-b:a:0" not in group
    assert group[group.index("-seg_duration") + 1] == "4"
    assert group[group.index("-hls_playlist") + 1] == "1"
    assert group[-1] == "/out/movie.mpd"


def test_file_group(media):
    fmt = Format(video_codec="copy", audio_codec="copy", additional_parameters=["-movflags", "+faststart"])
    groups = StreamToFileFilter(FileProfile(strict="experimental")).apply(fmt, "/out/movie.mp4")
    assert groups == [["-c:v", "copy", "-c:a", "copy", "-strict", "experimental", "-movflags", "+faststart", "/out/movie.mp4"]]


def test_url_output_has_no_working_directory(media):
    invocation = CommandBuilder(media, X264()).build(
        StreamToFileFilter(FileProfile(additional_params=["-f", "flv"])), "rtmp://live.example.com/app/key"
    )
    assert invocation.working_directory is None
    assert invocation.arguments[-1] == "rtmp://live.example.com/app/key"


@pytest.mark.parametrize(
    "profile",
    [
        HLSProfile(),
        hls_profile(Representation(640, 360, 800), hls_time=None),
        hls_profile(Representation(640, 360, 800), hls_time=0),
        hls_profile(Representation(kilo_bitrate=800)),
        hls_profile(Representation(640, 360, 800), Representation(480, 360, 500)),
    ],
    ids=["empty-ladder", "no-hls-time", "zero-hls-time", "no-size", "duplicate-height"],
)
def test_invalid_hls_profiles(media, tmp_path, profile):
    with pytest.raises(InvalidConfigurationError):
        CommandBuilder(media, X264()).build(HLSFilter(profile), tmp_path / "movie.m3u8")


def test_invalid_dash_profiles(media, tmp_path):
    with pytest.raises(InvalidConfigurationError):
        CommandBuilder.validate(DASHFilter(DASHProfile()))
    profile = DASHProfile(seg_duration=0)
    profile.representations.add(Representation(640, 360, 800))
    with pytest.raises(InvalidConfigurationError):
        CommandBuilder.validate(DASHFilter(profile))


def test_file_profile_needs_no_ladder():
    CommandBuilder.validate(StreamToFileFilter(FileProfile()))
