"""
Error taxonomy for dirbuf.

Every failure surfaced to the user is classified into an ErrorKind so that
callers can tell conflicts (eligible for overwrite/merge resolution) apart
from everything else.
"""

import errno
from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorKind(Enum):
    """Classification of failures."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    ALREADY_EXISTS = "already_exists"
    INVALID_NAME = "invalid_name"
    LINE_COUNT_MISMATCH = "line_count_mismatch"
    DUPLICATE_TARGET_NAMES = "duplicate_target_names"
    SESSION_BUSY = "session_busy"
    CACHE_MISS = "cache_miss"
    UNKNOWN = "unknown"


class DirbufError(Exception):
    """Base exception for dirbuf errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class NotFoundError(DirbufError):
    """The path does not exist (or is not a directory where one is required)."""

    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(DirbufError):
    """The filesystem refused access."""

    kind = ErrorKind.PERMISSION_DENIED


class AlreadyExistsError(DirbufError):
    """The destination already exists."""

    kind = ErrorKind.ALREADY_EXISTS


class InvalidNameError(DirbufError):
    """A file name failed validation.

    Attributes:
        line: 1-based line of the batch document holding the name, if any.
    """

    kind = ErrorKind.INVALID_NAME

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class LineCountMismatchError(DirbufError):
    """The edited name list does not have one line per selected entry."""

    kind = ErrorKind.LINE_COUNT_MISMATCH


class DuplicateTargetNamesError(DirbufError):
    """Two lines of a batch document resolve to the same name."""

    kind = ErrorKind.DUPLICATE_TARGET_NAMES


class SessionBusyError(DirbufError):
    """A batch session is already in progress."""

    kind = ErrorKind.SESSION_BUSY


class CacheMissError(DirbufError):
    """The directory is no longer cached and must be refreshed first."""

    kind = ErrorKind.CACHE_MISS


class UnknownFileError(DirbufError):
    """Unclassified filesystem failure."""

    kind = ErrorKind.UNKNOWN


_ALREADY_EXISTS_ERRNOS = frozenset({errno.EEXIST, errno.ENOTEMPTY})

_ERROR_TYPES: dict[ErrorKind, type[DirbufError]] = {
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.PERMISSION_DENIED: PermissionDeniedError,
    ErrorKind.ALREADY_EXISTS: AlreadyExistsError,
    ErrorKind.UNKNOWN: UnknownFileError,
}


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify an exception raised by a filesystem call.

    Args:
        error: Exception to classify

    Returns:
        Matching ErrorKind, UNKNOWN when nothing more specific applies
    """
    if isinstance(error, DirbufError):
        return error.kind
    if isinstance(error, FileExistsError):
        return ErrorKind.ALREADY_EXISTS
    if isinstance(error, (FileNotFoundError, NotADirectoryError)):
        return ErrorKind.NOT_FOUND
    if isinstance(error, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(error, OSError) and error.errno in _ALREADY_EXISTS_ERRNOS:
        return ErrorKind.ALREADY_EXISTS
    return ErrorKind.UNKNOWN


def error_message(error: BaseException) -> str:
    """Human-readable reason for an exception."""
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    message = str(error)
    return message or type(error).__name__


def error_from_os_error(error: OSError, path: Optional[Path] = None) -> DirbufError:
    """
    Convert a raw OSError into the matching DirbufError subclass.

    Args:
        error: The OSError raised by the filesystem
        path: Path the failing call operated on

    Returns:
        DirbufError carrying the classified kind and the original message
    """
    error_type = _ERROR_TYPES.get(classify_error(error), UnknownFileError)
    return error_type(error_message(error), path=path)
