"""
Core Layer - Models, ordering, selection, name validation, platform rules and configuration.
"""

from dirbuf.core.config import (
    BatchConfig,
    DirbufConfig,
    FilerConfig,
    LoggingConfig,
    PlatformConfig,
    ReplConfig,
    configure_logging,
    load_config,
)
from dirbuf.core.errors import (
    AlreadyExistsError,
    CacheMissError,
    DirbufError,
    DuplicateTargetNamesError,
    ErrorKind,
    InvalidNameError,
    LineCountMismatchError,
    NotFoundError,
    PermissionDeniedError,
    SessionBusyError,
    UnknownFileError,
    classify_error,
    error_from_os_error,
)
from dirbuf.core.models import (
    DirectoryListing,
    EntryKind,
    FileEntry,
    FileStat,
    OperationType,
    PendingOperation,
)
from dirbuf.core.name_validator import (
    NameValidationResult,
    make_name_validator,
    validate_name,
)
from dirbuf.core.path_compare import compare_entries, entry_sort_key, sort_entries
from dirbuf.core.platform import (
    MACOS,
    POSIX,
    WINDOWS,
    PlatformCapabilities,
    detect_platform,
)
from dirbuf.core.selection import (
    LineSelection,
    MarkMode,
    MarkUpdate,
    apply_marks,
    existing_names,
    focused_entry,
    focused_index,
    selected_entries,
)

__all__ = [
    # Config
    "DirbufConfig",
    "FilerConfig",
    "BatchConfig",
    "PlatformConfig",
    "ReplConfig",
    "LoggingConfig",
    "load_config",
    "configure_logging",
    # Errors
    "ErrorKind",
    "DirbufError",
    "NotFoundError",
    "PermissionDeniedError",
    "AlreadyExistsError",
    "InvalidNameError",
    "LineCountMismatchError",
    "DuplicateTargetNamesError",
    "SessionBusyError",
    "CacheMissError",
    "UnknownFileError",
    "classify_error",
    "error_from_os_error",
    # Models
    "EntryKind",
    "FileStat",
    "FileEntry",
    "DirectoryListing",
    "OperationType",
    "PendingOperation",
    # Ordering
    "compare_entries",
    "entry_sort_key",
    "sort_entries",
    # Platform
    "PlatformCapabilities",
    "POSIX",
    "MACOS",
    "WINDOWS",
    "detect_platform",
    # Names
    "NameValidationResult",
    "validate_name",
    "make_name_validator",
    # Selection
    "MarkMode",
    "LineSelection",
    "MarkUpdate",
    "apply_marks",
    "focused_index",
    "focused_entry",
    "selected_entries",
    "existing_names",
]
