"""
Remote targets that packaged output can be uploaded to (and sources fetched from).

The packager treats a cloud as opaque: it only needs "put this directory
there" and "fetch that file here". Concrete storage backends subclass `Cloud`.
`LocalDirectoryCloud` is a filesystem-backed implementation, handy for network
mounts and for tests.
"""
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from ..domain.exceptions import UploadError
from ..utils import file_utils


class Cloud:
    def upload_directory(self, directory: Path, options: Dict[str, Any]):
        raise NotImplementedError("Subclasses must implement upload_directory().")

    def download(self, options: Dict[str, Any], save_to: Path):
        raise NotImplementedError("Subclasses must implement download().")


class LocalDirectoryCloud(Cloud):
    """
    A cloud backed by a local (or mounted) directory.

    Options:
        folder: Sub-directory below `root` to upload into / download from.
        filename: For downloads, the file below `root`/`folder` to fetch.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _folder(self, options: Dict[str, Any]) -> Path:
        return self.root / options.get("folder", "")

    def upload_directory(self, directory: Path, options: Dict[str, Any]):
        destination = self._folder(options)
        try:
            file_utils.copy_tree(directory, destination)
        except OSError as e:
            raise UploadError(f"Could not upload {directory} to {destination}: {e}") from e
        logger.info(f"Uploaded {directory} to {destination}")

    def download(self, options: Dict[str, Any], save_to: Path):
        filename = options.get("filename")
        if not filename:
            raise UploadError("LocalDirectoryCloud.download needs a 'filename' option")
        source = self._folder(options) / filename
        try:
            file_utils.make_dir(Path(save_to).parent)
            shutil.copyfile(source, save_to)
        except OSError as e:
            raise UploadError(f"Could not download {source}: {e}") from e

    def __repr__(self) -> str:
        return f"LocalDirectoryCloud({str(self.root)!r})"


@dataclass
class CloudTarget:
    cloud: Cloud
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def filename(self):
        return self.options.get("filename")


def upload_to_clouds(targets, directory: Path):
    """Uploads `directory` to every target in order, stopping at the first failure."""
    for target in targets:
        try:
            target.cloud.upload_directory(directory, target.options)
        except UploadError:
            raise
        except Exception as e:
            raise UploadError(f"Upload to {target.cloud} failed: {e}") from e
