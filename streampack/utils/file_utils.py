"""
Filesystem helpers for the packager's temporary and final resources.

Streams allocate temporary directories for cloud uploads, the key rotation
controller writes key info files, and every session must clean up after itself.
All of that goes through the functions below so the behaviour (what happens
with missing paths, how directories are merged on move) is the same everywhere.
"""
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from ..config import common

PathLike = Union[str, Path]


def _tmp_root() -> Optional[str]:
    if common.TMP_ROOT is None:
        return None
    common.TMP_ROOT.mkdir(parents=True, exist_ok=True)
    return str(common.TMP_ROOT)


def tmp_dir() -> Path:
    """Creates a fresh, uniquely named temporary directory and returns its path."""
    path = Path(tempfile.mkdtemp(prefix=common.TMP_DIR_PREFIX, dir=_tmp_root()))
    logger.debug(f"Allocated temporary directory {path}")
    return path


def tmp_file(suffix: str = "") -> Path:
    """Creates an empty, uniquely named temporary file and returns its path."""
    fd, name = tempfile.mkstemp(prefix=common.TMP_FILE_PREFIX, suffix=suffix, dir=_tmp_root())
    os.close(fd)
    return Path(name)


def make_dir(path: PathLike) -> Path:
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def put(path: PathLike, content: Union[str, bytes]) -> Path:
    """Writes `content` to `path`, creating parent directories as needed."""
    target = Path(path)
    make_dir(target.parent)
    if isinstance(content, bytes):
        target.write_bytes(content)
    else:
        target.write_text(content, encoding="utf-8")
    return target


def put_atomic(path: PathLike, content: Union[str, bytes]) -> Path:
    """
    Writes `content` to `path` through a sibling temporary file and a rename.

    Readers (including a running engine) either see the old file or the new one,
    never a half-written file.
    """
    target = Path(path)
    make_dir(target.parent)
    staging = target.with_name(f".{target.name}.{uuid.uuid4().hex}.part")
    try:
        put(staging, content)
        os.replace(staging, target)
    finally:
        if staging.exists():
            staging.unlink()
    return target


def directory_size(path: PathLike) -> int:
    """Total size in bytes of all regular files below `path` (0 if it does not exist)."""
    root = Path(path)
    if not root.is_dir():
        return 0
    return sum(f.stat().st_size for f in root.rglob("*") if f.is_file())


def copy_tree(source: PathLike, destination: PathLike) -> Path:
    """Copies the contents of `source` into `destination`, merging with what is there."""
    destination_dir = make_dir(destination)
    shutil.copytree(str(source), str(destination_dir), dirs_exist_ok=True)
    return destination_dir


def move(source: PathLike, destination: PathLike) -> Path:
    """
    Moves the contents of directory `source` into directory `destination`.

    Existing files in the destination are overwritten; `source` is left empty.
    """
    source_dir = Path(source)
    destination_dir = make_dir(destination)
    for item in source_dir.iterdir():
        target = destination_dir / item.name
        if target.is_dir() and item.is_dir():
            move(item, target)
            item.rmdir()
            continue
        if target.exists():
            remove(target)
        shutil.move(str(item), str(target))
    logger.debug(f"Moved contents of {source_dir} to {destination_dir}")
    return destination_dir


def remove(path: Optional[PathLike]) -> bool:
    """
    Removes a file or a directory tree.

    Returns True if something was removed, False if the path was empty or did
    not exist. Errors other than "not found" propagate.
    """
    if not path:
        return False
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
        return True
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    return True
