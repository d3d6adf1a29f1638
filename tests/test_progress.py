from streampack.services.progress_service import ProgressListener


def test_percentage_from_time_stats():
    updates = []
    listener = ProgressListener(120.0, callback=lambda pct, secs: updates.append((pct, secs)))

    listener("frame=  240 fps= 60 q=28.0 size=1024kB time=00:00:30.00 bitrate=279.6kbits/s speed=2.5x")
    listener("frame=  960 fps= 60 q=28.0 size=4096kB time=00:02:00.00 bitrate=279.6kbits/s speed=2.5x")

    assert updates == [(25.0, 30.0), (100.0, 120.0)]
    assert listener.speed == 2.5


def test_non_stat_lines_are_ignored():
    updates = []
    listener = ProgressListener(60.0, callback=lambda pct, secs: updates.append(pct))
    listener("[hls @ 0x1] Opening 'movie_0001.ts' for writing")
    listener("frame=    0 fps=0.0 q=0.0 size=N/A time=-577014:32:22.77 bitrate=N/A speed=N/A")
    assert updates == []


def test_unknown_duration_reports_time_only():
    updates = []
    listener = ProgressListener(0.0, callback=lambda pct, secs: updates.append((pct, secs)))
    listener("frame=  30 fps=30 q=28.0 size=128kB time=00:00:01.00 bitrate=N/A speed=1.0x")
    assert updates == [(0.0, 1.0)]
