"""
Service Layer - DirectoryCache, FileOperationExecutor, BatchEngine, ClipboardEngine, FilerController and ServicesContainer.
"""

from dirbuf.services.action_types import ActionResult, MessageLevel, UserMessage
from dirbuf.services.batch_service import (
    BatchEngine,
    BatchSession,
    BatchState,
    PlannedOperation,
)
from dirbuf.services.clipboard_service import ClipboardEngine, ConflictChoice
from dirbuf.services.container import ServicesContainer, create_services
from dirbuf.services.controller import FilerController, NavigationContext
from dirbuf.services.directory_cache import DirectoryCache
from dirbuf.services.file_operations import (
    FileOperationExecutor,
    OperationResult,
    gather_results,
    report_results,
)

__all__ = [
    # Container and factory
    "ServicesContainer",
    "create_services",
    # Results
    "ActionResult",
    "MessageLevel",
    "UserMessage",
    "OperationResult",
    # Services
    "DirectoryCache",
    "FileOperationExecutor",
    "gather_results",
    "report_results",
    "BatchEngine",
    "BatchSession",
    "BatchState",
    "PlannedOperation",
    "ClipboardEngine",
    "ConflictChoice",
    "FilerController",
    "NavigationContext",
]
