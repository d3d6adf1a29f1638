"""
Defines custom exception types for streampack.

Every failure the packager reports is one of these types, so callers can tell
"bad input" apart from "engine crashed" and from "disk or permission problem"
without parsing messages. Each exception carries a `stage` attribute naming the
part of the session that failed (configuration, invocation, rotation, export,
upload or probe).

All custom exceptions inherit from the base `StreamPackException`.
"""
from typing import Optional, Sequence


class StreamPackException(Exception):
    """Base class for all custom exceptions in streampack."""

    stage: str = "unknown"


# --- Configuration Stage ---
class ValidationError(StreamPackException):
    """
    Raised when a representation is given a malformed value.

    Non-positive bitrates and invalid dimensions are rejected at the call that
    sets them; values are never silently clamped.
    """

    stage = "configuration"


class InvalidConfigurationError(StreamPackException):
    """
    Raised when a packaging profile is missing fields or contradicts itself.

    This is detected before the engine is started, so no temporary resources
    have been allocated when it is raised.
    """

    stage = "configuration"


class MissingOutputPathError(StreamPackException):
    """
    Raised when a temporary source is saved without any destination.

    A temporary source is deleted at the end of the session, so the output must
    go to an explicit path or cloud target.
    """

    stage = "configuration"


# --- Invocation Stage ---
class PackagingError(StreamPackException):
    """
    Raised when the engine fails to start or exits with a non-zero code.

    The engine's diagnostic output is kept on the exception so operators can see
    why the run failed.
    """

    stage = "invocation"

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        diagnostics: str = "",
        command: Sequence[str] = (),
    ):
        super().__init__(message)
        self.returncode = returncode
        self.diagnostics = diagnostics
        self.command = list(command)


# --- Rotation Stage ---
class KeyGenerationError(StreamPackException):
    """
    Raised when an encryption key or key info file cannot be produced.

    The previously generated key stays valid when this is raised during a
    rotation.
    """

    stage = "rotation"


# --- Export Stage ---
class NoPersistentLocationError(StreamPackException):
    """Raised when metadata is exported from a temporary session without a path."""

    stage = "export"


# --- Upload Stage ---
class UploadError(StreamPackException):
    """Raised when packaged output cannot be transferred to a cloud target."""

    stage = "upload"


# --- Probe Stage ---
class MediaProbeError(StreamPackException):
    """Raised when the source media cannot be analysed by ffprobe."""

    stage = "probe"
