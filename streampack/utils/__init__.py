"""
Utilities Package for streampack.

Modules:
    - ffmpeg_utils.py: Runs the engine as a subprocess and publishes its output
      lines through a `LineStream`.
    - file_utils.py: Temporary directories and files, moving, copying and
      removing output.
    - engine_locator.py: Locates and verifies the ffmpeg/ffprobe executables.
    - format_utils.py: Human-readable durations and file sizes.
"""
