"""
Command-Line Interface (CLI) setup for streampack.

This module uses Python's `argparse` to define and parse the command-line
arguments that control a packaging run.
"""
import argparse
from pathlib import Path
from typing import Optional, Sequence

from .domain.profiles import StreamMode

FORMAT_CHOICES = ["x264", "hevc", "vp9"]


def parse_rep(value: str) -> tuple:
    """
    Parses a representation given as HEIGHT:KBPS[:AUDIO_KBPS] or WxH:KBPS[:AUDIO_KBPS].

    A bare height keeps the source aspect ratio; the width is filled in later.
    """
    parts = value.split(":")
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(f"Expected HEIGHT:KBPS[:AUDIO_KBPS], got '{value}'")
    try:
        if "x" in parts[0]:
            width, height = (int(v) for v in parts[0].lower().split("x", 1))
        else:
            width, height = None, int(parts[0])
        kbps = int(parts[1])
        audio_kbps = int(parts[2]) if len(parts) == 3 else None
    except ValueError:
        raise argparse.ArgumentTypeError(f"Representation values must be integers: '{value}'")
    return width, height, kbps, audio_kbps


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Adaptive bitrate packager for HLS, DASH and plain files.")
    parser.add_argument("input", help="Source file, URL, or capture device name with --capture.")
    parser.add_argument(
        "--mode", type=str, default=StreamMode.HLS.value, choices=[m.value for m in StreamMode],
        help="Output mode."
    )
    parser.add_argument("--output", type=str, default=None, help="Output path (master playlist, MPD or file).")
    parser.add_argument("--live", type=str, default=None, help="Package straight to this URL instead of a path.")
    parser.add_argument("--format", type=str, default="x264", choices=FORMAT_CHOICES, help="Codec format.")
    parser.add_argument(
        "--reps", type=parse_rep, nargs="+", default=None, metavar="HEIGHT:KBPS[:AUDIO_KBPS]",
        help="Representations in the order they should appear in the manifest."
    )
    parser.add_argument(
        "--auto-reps", action="store_true", help="Derive the representations from the probed source."
    )
    parser.add_argument("--hls-time", type=int, default=None, help="HLS segment duration in seconds.")
    parser.add_argument("--seg-duration", type=int, default=None, help="DASH segment duration in seconds.")
    parser.add_argument("--hls-base-url", type=str, default=None, help="Base URL written before segment names.")
    parser.add_argument("--fmp4", action="store_true", help="Use fragmented MP4 segments for HLS.")
    parser.add_argument("--encrypt-key", type=str, default=None, help="Local path of the HLS encryption key.")
    parser.add_argument("--encrypt-url", type=str, default=None, help="Public URL of the HLS encryption key.")
    parser.add_argument(
        "--rotation-period", type=int, default=0, help="Rotate the HLS key every N segments (0 disables)."
    )
    parser.add_argument(
        "--upload-dir", type=str, default=None,
        help="Upload the output to this directory (a mounted share, for example)."
    )
    parser.add_argument(
        "--metadata", type=str, nargs="?", const="", default=None,
        help="Export session metadata after packaging, optionally to the given path (.json or .yaml)."
    )
    parser.add_argument(
        "--capture", action="store_true", help="Treat the input as a camera name (use --audio-device for audio)."
    )
    parser.add_argument("--audio-device", type=str, default=None, help="Microphone name for --capture.")
    parser.add_argument("--strict", type=str, default=None, help="Engine strictness, e.g. 'experimental'.")
    parser.add_argument("--error-log-dir", type=str, default=None, help="Directory for the failure log.")
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )
    return parser


def get_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for streampack.

    Returns:
        argparse.Namespace: The parsed arguments. Path options are converted
                            to `Path` objects.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.reps and args.auto_reps:
        parser.error("--reps and --auto-reps are mutually exclusive")
    if args.mode != StreamMode.FILE.value and not (args.reps or args.auto_reps):
        parser.error(f"--mode {args.mode} needs --reps or --auto-reps")
    if bool(args.encrypt_key) != bool(args.encrypt_url):
        parser.error("--encrypt-key and --encrypt-url must be given together")
    if args.encrypt_key and args.mode != StreamMode.HLS.value:
        parser.error("Encryption is only supported for --mode hls")
    if args.live and (args.output or args.upload_dir):
        parser.error("--live cannot be combined with --output or --upload-dir")

    for name in ("output", "encrypt_key", "upload_dir", "error_log_dir"):
        value = getattr(args, name)
        if value:
            setattr(args, name, Path(value))
    if args.metadata:
        args.metadata = Path(args.metadata)

    return args
