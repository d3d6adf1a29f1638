"""
Common configuration settings used throughout the application.

This module contains globally shared settings: the logging format, where
temporary files are created, where FFmpeg lives and how long teardown waits
before deleting a temporary source. User-specific values are loaded from an
optional `config.user.yaml` file at the project root, so a deployment can
point at its own FFmpeg build or scratch disk without modifying the code.

Example `config.user.yaml`:

    paths:
      ffmpeg_dir: /opt/ffmpeg/bin
      tmp_dir: /mnt/ramdisk/streampack
      error_log_dir: /var/log/streampack
    packaging:
      teardown_grace_seconds: 2
      engine_log_level: info
"""
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Configuration ---

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# Directory holding the ffmpeg/ffprobe executables. None means "use the PATH".
MODULE_PATH: Path | None = None

# Root for temporary directories and files. None means the system default.
TMP_ROOT: Path | None = None

# Where failed sessions are recorded by default. None disables the error log
# unless a stream is given an explicit directory.
ERROR_LOG_DIR: Path | None = None

# Seconds to wait after the engine exits before deleting a temporary source.
# The engine may still hold the file open for a short while after exit.
TEARDOWN_GRACE_SECONDS: float = 1.0

# Passed to the engine as `-loglevel` when set. Key rotation relies on the
# "Opening '...' for writing" lines, which need at least "info".
ENGINE_LOG_LEVEL: str | None = None


def _load_user_config(config_path: Path) -> dict:
    if not config_path.is_file():
        logger.debug(f"User config '{config_path}' not found. Using built-in defaults.")
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{config_path}': {e}")
        return {}


_user_config = _load_user_config(USER_CONFIG_PATH)
_paths_config = _user_config.get("paths") or {}
_packaging_config = _user_config.get("packaging") or {}

if _paths_config.get("ffmpeg_dir"):
    MODULE_PATH = Path(_paths_config["ffmpeg_dir"])
if _paths_config.get("tmp_dir"):
    TMP_ROOT = Path(_paths_config["tmp_dir"])
if _paths_config.get("error_log_dir"):
    ERROR_LOG_DIR = Path(_paths_config["error_log_dir"])
if _packaging_config.get("teardown_grace_seconds") is not None:
    TEARDOWN_GRACE_SECONDS = float(_packaging_config["teardown_grace_seconds"])
if _packaging_config.get("engine_log_level"):
    ENGINE_LOG_LEVEL = str(_packaging_config["engine_log_level"])


# --- Logging Configuration ---

LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{process} - <level>{message}</level>"
)

# Number of trailing engine output lines kept for error reports.
DIAGNOSTIC_TAIL_LINES = 30


# --- Temporary Storage ---

TMP_DIR_PREFIX = "streampack_"
TMP_FILE_PREFIX = "streampack_"

# Filename of the plain-text failure log written by ErrorLog.
ERROR_LOG_FILE_NAME = "error.txt"

# Prefix used for metadata exports when the output has no usable filename.
METADATA_DEFAULT_PREFIX = "meta"
