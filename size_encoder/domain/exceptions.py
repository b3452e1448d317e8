"""
Defines custom exception types for the Size Encoder application.

These exceptions allow for more specific and expressive error handling throughout
the encoding pipeline. Every fatal condition of a run is raised as one of these
types at the point where it is detected and handled once, at the top level, where
it is reported and turned into a nonzero exit code.

All custom exceptions inherit from the base `SizeEncoderException`.
"""


class SizeEncoderException(Exception):
    """Base class for all custom exceptions in the Size Encoder application."""

    pass


# --- Input Specific Exceptions ---
class InputException(SizeEncoderException):
    """
    Base class for problems with the user's request.

    Input errors are detected before any external tool is invoked.
    """

    pass


class InputFileNotFoundException(InputException):
    """Raised when the input media file does not exist."""

    pass


class InvalidTargetSizeException(InputException):
    """Raised when the target size is not a positive, finite number of megabytes."""

    pass


class TargetSizeTooSmallException(InputException):
    """
    Raised when the target size leaves less than the minimum video bitrate.

    Once audio and container overhead are taken out of the bitrate budget, the
    remaining video bitrate must be at least the quality floor. A smaller target
    is infeasible and the run aborts before the encoder is called.
    """

    pass


# --- MediaFile / Probe Specific Exceptions ---
class MediaFileException(SizeEncoderException):
    """
    Base class for exceptions related to media file analysis (e.g., probing with ffprobe).
    """

    pass


class ProbeFailedException(MediaFileException):
    """Raised when ffprobe cannot be started or exits with a nonzero status."""

    pass


class NoDurationFoundException(MediaFileException):
    """
    Raised when duration information cannot be obtained for a media file.

    Duration is required to turn a target size into a bitrate. A file without a
    determinable, positive duration cannot be processed.
    """

    pass


# --- Encoding Specific Exceptions ---
class EncodingException(SizeEncoderException):
    """Base class for exceptions raised during the FFmpeg encoding passes."""

    pass


class EncodePassFailedException(EncodingException):
    """
    Raised when one of the two FFmpeg passes fails.

    A process-level failure points at a tooling or environment problem, so it is
    never retried by the size convergence loop.

    Attributes:
        pass_number: 1 for the analysis pass, 2 for the final pass.
        returncode: The exit status of FFmpeg, or None if it could not be started.
    """

    def __init__(self, message: str, pass_number: int, returncode: int | None = None):
        super().__init__(message)
        self.pass_number = pass_number
        self.returncode = returncode


class EmptyOutputException(EncodingException):
    """Raised when FFmpeg reports success but the output file is missing or empty."""

    pass
