"""
The packaging session shared by every output mode.

A `Stream` owns one source media, one codec format and one packaging profile.
`save()` walks a session through the states below and guarantees that
temporary resources are released on every exit path:

    CONFIGURING -> PATH_RESOLVED -> RUNNING -> COMPLETED | FAILED
                -> FINALIZING (upload / move) -> CLOSED

The concrete modes (`HLS`, `DASH`, `StreamToFile`) only decide which filter is
appended to the command, how the output path is shaped, and what happens right
before and after the engine runs.
"""
import time
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Sequence

from loguru import logger

from ..config import common
from ..domain.exceptions import MissingOutputPathError, PackagingError, StreamPackException
from ..domain.formats import Format
from ..domain.media import Media
from ..domain.profiles import StreamMode
from ..utils import ffmpeg_utils, file_utils
from .cloud_service import CloudTarget, upload_to_clouds
from .command_builder import CommandBuilder, is_url
from .filters import StreamFilter, output_stem
from .logging_service import ErrorLog
from .progress_service import ProgressListener
from .resource_service import ResourceHandle

if TYPE_CHECKING:
    from .metadata_service import Metadata


class SessionState(Enum):
    CONFIGURING = "configuring"
    PATH_RESOLVED = "path_resolved"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    FINALIZING = "finalizing"
    CLOSED = "closed"


class Stream:
    """
    Base class of the packaging modes.

    Attributes:
        media (Media): The source.
        format (Format): Codecs and extra engine parameters.
        profile: The mode-specific packaging profile, mutated by the setters.
        state (SessionState): Where the current (or last) session is.
        resource (ResourceHandle): Output placement of the last session.
        listener_errors (list): Domain errors raised by line listeners during
                                the last run (e.g. a failed key rotation).
    """

    mode: StreamMode
    filter_class: type = StreamFilter

    def __init__(
        self,
        media: Media,
        fmt: Format,
        error_log_dir: Optional[Path] = None,
        grace_seconds: Optional[float] = None,
    ):
        self.media = media
        self.format = fmt
        self.profile = self._new_profile()
        self.state = SessionState.CONFIGURING
        self.resource: Optional[ResourceHandle] = None
        self.invocation = None
        self.listener_errors: List[StreamPackException] = []
        self.progress_callback: Optional[Callable[[float, float], None]] = None

        log_dir = error_log_dir if error_log_dir is not None else common.ERROR_LOG_DIR
        self.error_log_dir: Optional[Path] = Path(log_dir) if log_dir else None
        self.grace_seconds = common.TEARDOWN_GRACE_SECONDS if grace_seconds is None else grace_seconds

    def _new_profile(self):
        raise NotImplementedError("Subclasses must implement _new_profile().")

    # --- Configuration ---

    def set_strict(self, strict: str) -> "Stream":
        """Engine strictness level, e.g. "experimental" for some encoders."""
        self.profile.strict = strict
        return self

    def set_additional_params(self, params: Sequence[str]) -> "Stream":
        self.profile.additional_params = [str(p) for p in params]
        return self

    def on_progress(self, callback: Callable[[float, float], None]) -> "Stream":
        """`callback(percent, seconds_done)` is called for every engine statistics line."""
        self.progress_callback = callback
        return self

    # --- Mode-specific hooks ---

    def get_filter(self) -> StreamFilter:
        return self.filter_class(self.profile)

    def get_path(self, path) -> str:
        """Shapes a requested output path into the primary output file of this mode."""
        return str(path)

    def _attach_listeners(self, line_stream: ffmpeg_utils.LineStream):
        """Called before the command is built. Subscribes mode-specific listeners."""

    def _prepare_output(self, output_target: str):
        """Called right before the engine starts. Creates directories the engine will not."""

    def _after_run(self, handle: ResourceHandle):
        """Called after a successful run, before upload and move."""

    def _cleanup(self):
        """Called during teardown to release mode-specific temporary files."""

    # --- Paths ---

    def output_path(self) -> Optional[str]:
        """Where the engine writes during the current session (or wrote in the last)."""
        return self.resource.work_path if self.resource else None

    def final_path(self) -> Optional[str]:
        return self.resource.final_path if self.resource else None

    def path_info(self) -> Dict[str, str]:
        """Directory, base name, name without extension and extension of the final output."""
        path = self.final_path() or self.media.path
        normalized = str(path).replace("\\", "/")
        dirname, _, basename = normalized.rpartition("/")
        return {
            "dirname": dirname or ".",
            "basename": basename,
            "filename": Path(output_stem(basename)).name,
            "extension": basename.rpartition(".")[2] if "." in basename else "",
        }

    def is_tmp_dir(self) -> bool:
        return bool(self.resource and self.resource.is_temporary)

    def _default_path(self) -> str:
        if self.media.is_tmp:
            raise MissingOutputPathError(
                "A path is required: the source is temporary and will be deleted after packaging"
            )
        if not Path(self.media.path).is_file():
            raise MissingOutputPathError(
                f"A path is required: no output location can be derived from {self.media.path!r}"
            )
        return self.media.path

    def _resolve(self, path, clouds: Sequence[CloudTarget]) -> ResourceHandle:
        if path is not None and is_url(path):
            raise MissingOutputPathError(f"{path!r} is a URL; use live() to stream to it")
        if clouds:
            name = clouds[0].filename or (Path(path).name if path else Path(self.media.path).name)
            temporary_directory = file_utils.tmp_dir()
            work_path = self.get_path(temporary_directory / Path(name).name)
            if path:
                final_path = str(Path(self.get_path(Path(path).resolve())))
                local_destination = Path(final_path).parent
            else:
                final_path, local_destination = work_path, None
            return ResourceHandle(
                final_path=final_path,
                is_temporary=True,
                temporary_directory=temporary_directory,
                work_path=work_path,
                local_destination=local_destination,
            )

        target = self.get_path(Path(path or self._default_path()).resolve())
        file_utils.make_dir(Path(target).parent)
        return ResourceHandle(final_path=target)

    # --- Session ---

    @contextmanager
    def session(self, path=None, clouds: Sequence[CloudTarget] = ()) -> Iterator[ResourceHandle]:
        """
        Resolves the output placement and guarantees teardown around the body.

        Nothing is allocated if path resolution fails. On exit, successful or
        not, the temporary directory is removed and a temporary source is
        deleted after `grace_seconds`.
        """
        handle = self._resolve(path, clouds)
        self.resource = handle
        self.state = SessionState.PATH_RESOLVED
        logger.debug(f"Output resolved to {handle.work_path} (temporary: {handle.is_temporary})")
        try:
            yield handle
        finally:
            self._teardown(handle)

    def _teardown(self, handle: ResourceHandle):
        try:
            self._guarded("temporary directory removal", handle.release)
            self._guarded("mode-specific cleanup", self._cleanup)
            if self.media.is_tmp:
                self._guarded("temporary source removal", self._remove_temporary_source)
        finally:
            self.state = SessionState.CLOSED

    def _guarded(self, step: str, action: Callable[[], object]):
        try:
            action()
        except OSError as e:
            logger.error(f"Cleanup after packaging {self.media.path} failed at {step}: {e}")

    def _remove_temporary_source(self):
        # The engine may not have released the source yet; see DESIGN.md.
        if self.grace_seconds > 0:
            time.sleep(self.grace_seconds)
        if file_utils.remove(self.media.path):
            logger.debug(f"Removed temporary source {self.media.path}")

    def _run(self, stream_filter: StreamFilter, output_target: str):
        ladder = getattr(self.profile, "representations", None)
        if ladder is not None:
            ladder.lock()
        self.state = SessionState.RUNNING
        line_stream = ffmpeg_utils.LineStream()
        try:
            line_stream.subscribe(ProgressListener(self.media.duration, self.progress_callback))
            self._attach_listeners(line_stream)
            self.invocation = CommandBuilder(self.media, self.format).build(stream_filter, output_target)
            self._prepare_output(output_target)
            logger.info(f"Packaging {self.media.path} as {self.mode.value} into {output_target}")
            ffmpeg_utils.run_engine(self.invocation, line_stream)
        except StreamPackException as e:
            self.state = SessionState.FAILED
            self._record_failure(e)
            raise
        finally:
            self.listener_errors = list(line_stream.errors)
            if ladder is not None:
                ladder.unlock()
        self.state = SessionState.COMPLETED

    def _record_failure(self, error: StreamPackException):
        logger.error(f"Packaging {self.media.path} failed during {error.stage}: {error}")
        if self.error_log_dir is None:
            return
        command_line = self.invocation.command_line() if self.invocation else ""
        ErrorLog(self.error_log_dir).write_failure(error, self.media.path, command_line)

    def save(self, path=None, clouds: Optional[Sequence[CloudTarget]] = None) -> "Stream":
        """
        Packages the media to `path` and/or uploads it to `clouds`.

        With cloud targets the engine writes into a temporary directory that is
        uploaded to every target; when a local `path` is given as well the
        output is then moved next to it. Without a path the output is written
        next to the source, which is not possible for a temporary source.

        Raises:
            InvalidConfigurationError: Before anything is allocated, if the
                                       profile is incomplete.
            MissingOutputPathError: If no destination can be determined.
            PackagingError: If the engine fails. Temporary resources are
                            still removed.
            UploadError: If a cloud target rejects the output.
        """
        clouds = list(clouds or [])
        stream_filter = self.get_filter()
        CommandBuilder.validate(stream_filter)
        self.invocation = None

        with self.session(path, clouds) as handle:
            self._run(stream_filter, handle.work_path)
            self._after_run(handle)
            if clouds:
                self.state = SessionState.FINALIZING
                try:
                    upload_to_clouds(clouds, handle.temporary_directory)
                    handle.promote()
                except StreamPackException as e:
                    self.state = SessionState.FAILED
                    self._record_failure(e)
                    raise

        logger.success(f"Packaged {self.media.path} to {handle.final_path}")
        return self

    def live(self, url: str) -> "Stream":
        """Packages straight to a URL (e.g. an ingest endpoint). Nothing is written locally."""
        if not is_url(url):
            raise MissingOutputPathError(f"Live output needs a URL, got {url!r}")
        stream_filter = self.get_filter()
        CommandBuilder.validate(stream_filter)
        self.invocation = None

        handle = ResourceHandle(final_path=url)
        self.resource = handle
        self.state = SessionState.PATH_RESOLVED
        try:
            self._run(stream_filter, url)
        finally:
            self._teardown(handle)
        return self

    def metadata(self) -> "Metadata":
        from .metadata_service import Metadata

        return Metadata(self)
