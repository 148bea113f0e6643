"""
File name validation.

Checks a proposed base name against the platform's naming rules and against
the names that already exist in the target directory.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Optional

from dirbuf.core.platform import PlatformCapabilities, detect_platform


@dataclass
class NameValidationResult:
    """Result of name validation.

    Attributes:
        valid: True if the name can be used.
        error_message: Human-readable reason if validation failed.
    """
    valid: bool
    error_message: Optional[str] = None


def validate_name(
    name: Optional[str],
    existing_names: Iterable[str] = (),
    platform: Optional[PlatformCapabilities] = None,
) -> NameValidationResult:
    """
    Validate a file or folder base name.

    Checks, in order: blank names, invalid characters, reserved device names,
    '.' and '..', trailing dots and whitespace where the platform forbids
    them, length, collisions with existing names, and surrounding whitespace.

    Args:
        name: Proposed base name (without a trailing '/')
        existing_names: Names the new name must not collide with
        platform: Platform rules; detected when None

    Returns:
        NameValidationResult with the first violated rule
    """
    platform = platform or detect_platform()

    if not name or not name.strip():
        return NameValidationResult(False, "There are only whitespace characters in the name.")

    if platform.invalid_chars.search(name):
        return NameValidationResult(False, "The name contains invalid characters.")

    if platform.forbidden_names is not None and platform.forbidden_names.match(name):
        return NameValidationResult(False, f"Invalid file name on {platform.name}.")

    if name in (".", ".."):
        return NameValidationResult(False, "Reserved file name.")

    if platform.forbid_trailing_dot_space:
        if name.endswith("."):
            return NameValidationResult(False, f'The name cannot end with a "." on {platform.name}.')
        if name != name.rstrip():
            return NameValidationResult(False, f"The name cannot end with a whitespace on {platform.name}.")

    if len(name) > platform.max_name_length:
        return NameValidationResult(False, "The name is too long.")

    normalized = platform.normalize_name(name)
    if any(platform.normalize_name(existing) == normalized for existing in existing_names):
        return NameValidationResult(False, f"{name} already exists.")

    if name != name.strip():
        return NameValidationResult(
            False, "Leading or trailing whitespace detected in file or folder name."
        )

    return NameValidationResult(True)


def make_name_validator(
    existing_names: Iterable[str] = (),
    platform: Optional[PlatformCapabilities] = None,
) -> Callable[[Optional[str]], Optional[str]]:
    """
    Build a validator bound to a set of existing names.

    Returns:
        Callable returning the error message for an invalid name, or None
    """
    names = frozenset(existing_names)
    platform = platform or detect_platform()

    def validator(name: Optional[str]) -> Optional[str]:
        return validate_name(name, names, platform).error_message

    return validator
