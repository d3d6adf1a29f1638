"""
Configuration settings related to HLS and DASH packaging.

This module defines the defaults for segment durations, bitrate headroom,
playlist versions, key rotation and automatic ladder generation.
"""

# --- HLS Settings ---
DEFAULT_HLS_TIME = 10
DEFAULT_HLS_LIST_SIZE = 0  # 0 keeps every segment in the media playlist.
DEFAULT_HLS_ALLOW_CACHE = True
HLS_SEGMENT_TYPE_TS = "mpegts"
HLS_SEGMENT_TYPE_FMP4 = "fmp4"
HLS_SEGMENT_EXTENSIONS = {
    HLS_SEGMENT_TYPE_TS: "ts",
    HLS_SEGMENT_TYPE_FMP4: "m4s",
}
HLS_SEGMENT_NUMBER_PATTERN = "%04d"
HLS_MASTER_EXTENSION = ".m3u8"

# EXT-X-VERSION of the master playlist. fMP4 segments need EXT-X-MAP, which
# requires version 7; classic transport-stream segments are fine with 3.
HLS_VERSION_TS = 3
HLS_VERSION_FMP4 = 7

# ffmpeg re-reads the key info file on every segment when this flag is set.
HLS_PERIODIC_REKEY_FLAG = "periodic_rekey"

# --- Key Rotation Settings ---
DEFAULT_KEY_LENGTH = 16  # AES-128
# ffmpeg announces each new segment with "Opening '<name>.<ext>' for writing".
KEY_ROTATION_NEEDLE_TEMPLATE = ".{ext}' for writing"

# --- DASH Settings ---
DEFAULT_SEG_DURATION = 10
DASH_MANIFEST_EXTENSION = ".mpd"
DASH_ADAPTATION_SETS = "id=0,streams=v id=1,streams=a"

# --- Rate Control ---
# Applied to each representation's video bitrate to derive -maxrate/-bufsize.
MAXRATE_FACTOR = 1.2
BUFSIZE_FACTOR = 2.0

# --- Automatic Ladder Settings ---
DEFAULT_LADDER_HEIGHTS = (2160, 1440, 1080, 720, 480, 360, 240, 144)
# Each rung below the source gets the previous rung's bitrate divided by this.
LADDER_BITRATE_DIVISOR = 1.5
# Used when the probe exposes no usable video bitrate.
FALLBACK_SOURCE_KILO_BITRATE = 4000

# --- Default Codecs ---
DEFAULT_X264_VIDEO_CODEC = "libx264"
DEFAULT_HEVC_VIDEO_CODEC = "libx265"
DEFAULT_VP9_VIDEO_CODEC = "libvpx-vp9"
DEFAULT_AUDIO_CODEC = "aac"
DEFAULT_VP9_AUDIO_CODEC = "libopus"
