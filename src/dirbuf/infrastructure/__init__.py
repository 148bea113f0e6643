"""
Infrastructure Layer - Filesystem access, document host protocols and the batch workspace.
"""

from dirbuf.infrastructure.batch_workspace import BatchWorkspace
from dirbuf.infrastructure.documents import (
    DocumentHostInterface,
    FileTextDocument,
    SaveReason,
    TextDocumentInterface,
)
from dirbuf.infrastructure.filesystem import (
    DirectoryChild,
    FileSystemInterface,
    LocalFileSystem,
)

__all__ = [
    # Filesystem
    "DirectoryChild",
    "FileSystemInterface",
    "LocalFileSystem",
    # Documents
    "SaveReason",
    "TextDocumentInterface",
    "DocumentHostInterface",
    "FileTextDocument",
    # Batch workspace
    "BatchWorkspace",
]
