"""
Tracks where a packaging session writes and what must be cleaned up afterwards.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from ..utils import file_utils


@dataclass
class ResourceHandle:
    """
    Output placement of one session.

    Attributes:
        final_path: Where the primary output ends up (or a URL for live output).
        is_temporary: True while the output only exists in a temporary directory.
        temporary_directory: Directory allocated for this session, if any.
        work_path: Where the engine writes; inside `temporary_directory` when
                   one was allocated, otherwise equal to `final_path`.
        local_destination: Directory the temporary output is moved to after
                           upload, when a local path was requested as well.
    """

    final_path: Optional[str]
    is_temporary: bool = False
    temporary_directory: Optional[Path] = None
    work_path: Optional[str] = None
    local_destination: Optional[Path] = None

    def __post_init__(self):
        if self.work_path is None:
            self.work_path = self.final_path

    def promote(self) -> Optional[str]:
        """Moves the temporary output into `local_destination` and updates the handle."""
        if self.temporary_directory is None or self.local_destination is None:
            return self.final_path
        file_utils.move(self.temporary_directory, self.local_destination)
        self.final_path = str(self.local_destination / Path(self.work_path).name)
        self.is_temporary = False
        logger.info(f"Moved packaged output to {self.local_destination}")
        return self.final_path

    def release(self) -> bool:
        """Removes the temporary directory. The handle keeps its paths for reporting."""
        if self.temporary_directory is None:
            return False
        removed = file_utils.remove(self.temporary_directory)
        if removed:
            logger.debug(f"Removed temporary directory {self.temporary_directory}")
        self.temporary_directory = None
        return removed
