"""
Main entry point for streampack.

This script configures logging, checks that FFmpeg is available, parses the
command line and runs the packaging pipeline.
"""

import sys

from loguru import logger

from streampack.cli import get_args
from streampack.config.capture import Platform
from streampack.config.common import LOGGER_FORMAT
from streampack.domain.exceptions import StreamPackException
from streampack.pipeline.packaging_pipeline import PackagingPipeline
from streampack.utils.engine_locator import Modules


# Configure the logger for initial setup.
# The level is overridden once the command line has been parsed.
logger.remove()
logger.add(sys.stderr, level="INFO", format=LOGGER_FORMAT)


def main() -> int:
    """
    Runs one packaging job.

    Returns:
        0 on success, 1 if FFmpeg is missing or packaging failed.
    """
    args = get_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    if not Modules.verify_ffmpeg():
        return 1

    platform = Platform.current()
    try:
        stream = PackagingPipeline(args, platform=platform).run()
    except StreamPackException as e:
        logger.error(f"Packaging failed during {e.stage}: {e}")
        return 1

    logger.success(f"streampack finished: {stream.final_path()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
