"""
Platform capabilities.

Everything that differs between operating systems (file name rules, merge
copy availability, case sensitivity) is collected in one value that is
detected once and injected into the services that need it.
"""

import re
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

# Reference: https://en.wikipedia.org/wiki/Filename
WINDOWS_INVALID_FILE_CHARS = re.compile(r'[\\/:*?"<>|]')
UNIX_INVALID_FILE_CHARS = re.compile(r"[\\/]")
WINDOWS_FORBIDDEN_NAMES = re.compile(
    r"^(con|prn|aux|clock\$|nul|lpt[0-9]|com[0-9])(\.(.*?))?$", re.IGNORECASE
)


@dataclass(frozen=True)
class PlatformCapabilities:
    """
    Platform-dependent behaviour.

    Attributes:
        name: Short platform name ('posix', 'macos', 'windows')
        invalid_chars: Characters that may not appear in a file name
        forbidden_names: Reserved device names, None where there are none
        forbid_trailing_dot_space: Names may not end with '.' or whitespace
        supports_merge_copy: Recursive merge copy of directory trees is available
        case_insensitive_paths: Paths differing only in case are the same file
        max_name_length: Longest accepted file name
    """

    name: str
    invalid_chars: re.Pattern
    forbidden_names: Optional[re.Pattern] = None
    forbid_trailing_dot_space: bool = False
    supports_merge_copy: bool = True
    case_insensitive_paths: bool = False
    max_name_length: int = 255

    def normalize_name(self, name: str) -> str:
        """Normalize a name for equality checks."""
        return name.lower() if self.case_insensitive_paths else name

    def same_path(self, a: Path, b: Path) -> bool:
        """Check whether two paths designate the same location."""
        return self.normalize_name(a.as_posix()) == self.normalize_name(b.as_posix())


POSIX = PlatformCapabilities(name="posix", invalid_chars=UNIX_INVALID_FILE_CHARS)

MACOS = PlatformCapabilities(
    name="macos",
    invalid_chars=UNIX_INVALID_FILE_CHARS,
    case_insensitive_paths=True,
)

WINDOWS = PlatformCapabilities(
    name="windows",
    invalid_chars=WINDOWS_INVALID_FILE_CHARS,
    forbidden_names=WINDOWS_FORBIDDEN_NAMES,
    forbid_trailing_dot_space=True,
    supports_merge_copy=False,
    case_insensitive_paths=True,
)


def detect_platform(
    sys_platform: Optional[str] = None,
    merge_copy: Optional[bool] = None,
) -> PlatformCapabilities:
    """
    Detect the capabilities of the running platform.

    Args:
        sys_platform: Override for sys.platform (used by tests)
        merge_copy: Force merge copy availability; None keeps the platform default

    Returns:
        PlatformCapabilities for the platform
    """
    platform_name = sys_platform if sys_platform is not None else sys.platform
    if platform_name == "win32":
        capabilities = WINDOWS
    elif platform_name == "darwin":
        capabilities = MACOS
    else:
        capabilities = POSIX
    if merge_copy is not None:
        capabilities = replace(capabilities, supports_merge_copy=merge_copy)
    return capabilities
