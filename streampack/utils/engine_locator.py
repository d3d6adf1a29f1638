"""
This module provides the Modules class, which locates and verifies the
external FFmpeg executables the packager drives.
"""
import subprocess
import sys

from loguru import logger

from ..config.common import MODULE_PATH


class Modules:
    """
    Resolves the ffmpeg and ffprobe executables.

    The directory configured as `paths.ffmpeg_dir` in `config.user.yaml` takes
    priority. Without it, or when the executable is missing there, the bare
    command name is returned and the system PATH is used.
    """

    @staticmethod
    def _get_executable(name: str) -> str:
        exe_name = f"{name}.exe" if sys.platform == "win32" else name

        if MODULE_PATH and MODULE_PATH.is_dir():
            configured_path = MODULE_PATH / exe_name
            if configured_path.is_file():
                return str(configured_path)
            logger.warning(
                f"`ffmpeg_dir` is configured, but '{exe_name}' was not found there. Falling back to system PATH."
            )

        return name

    @staticmethod
    def ffmpeg() -> str:
        return Modules._get_executable("ffmpeg")

    @staticmethod
    def ffprobe() -> str:
        return Modules._get_executable("ffprobe")

    @staticmethod
    def verify_ffmpeg() -> bool:
        """
        Checks that FFmpeg can be executed by running `ffmpeg -version`.

        Logs the first line of the version banner on success and an explanatory
        error otherwise. This is meant as a startup check; it never raises.

        Returns:
            True if FFmpeg answered, False otherwise.
        """
        ffmpeg_cmd = Modules.ffmpeg()
        try:
            result = subprocess.run(
                [ffmpeg_cmd, "-version"],
                check=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"FFmpeg version command failed (return code {e.returncode}):\n{e.stderr}")
            return False
        except FileNotFoundError:
            logger.error(
                "FFmpeg command not found. Please ensure FFmpeg is installed and accessible.\n"
                "You can either add it to your system's PATH or specify its location in the 'config.user.yaml' file."
            )
            return False

        version_output_lines = result.stdout.splitlines()
        logger.info(f"FFmpeg version check successful: {version_output_lines[0] if version_output_lines else '?'}")
        return True
