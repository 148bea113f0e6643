"""
Centralized services container module for dirbuf.

Wires the directory cache, the executor and the two engines around one
filesystem and one document host, so that the CLI commands and the REPL
share a single set of service instances.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dirbuf.core.config import DirbufConfig, load_config
from dirbuf.core.platform import PlatformCapabilities, detect_platform
from dirbuf.infrastructure import (
    BatchWorkspace,
    DocumentHostInterface,
    FileSystemInterface,
    LocalFileSystem,
)
from dirbuf.services.batch_service import BatchEngine
from dirbuf.services.clipboard_service import ClipboardEngine
from dirbuf.services.controller import FilerController
from dirbuf.services.directory_cache import DirectoryCache
from dirbuf.services.file_operations import FileOperationExecutor


@dataclass
class ServicesContainer:
    """
    Container holding all shared service instances.

    Attributes:
        config: Application configuration
        platform: Detected platform capabilities
        filesystem: Filesystem adapter
        cache: Directory cache
        executor: File operation executor
        workspace: Temporary directory for batch name lists
        batch: Batch operation engine
        clipboard: Pending operation engine
        controller: Entry points used by the host
    """

    config: DirbufConfig
    platform: PlatformCapabilities
    filesystem: FileSystemInterface
    cache: DirectoryCache
    executor: FileOperationExecutor
    workspace: BatchWorkspace
    batch: BatchEngine
    clipboard: ClipboardEngine
    controller: FilerController

    def close(self) -> None:
        """Release the batch workspace."""
        self.workspace.cleanup()


def create_services(
    host: DocumentHostInterface,
    config: Optional[DirbufConfig] = None,
    config_path: Optional[Path] = None,
    filesystem: Optional[FileSystemInterface] = None,
    workspace_dir: Optional[Path] = None,
    platform: Optional[PlatformCapabilities] = None,
) -> ServicesContainer:
    """
    Create and wire all services.

    Args:
        host: Environment hosting views and editable documents
        config: Configuration; loaded from config_path and the environment if None
        config_path: Optional path to a configuration file
        filesystem: Filesystem adapter; LocalFileSystem if None
        workspace_dir: Parent directory for the batch workspace; system temp if None
        platform: Platform capabilities; detected from the running platform if None

    Returns:
        ServicesContainer with all services initialized.
    """
    if config is None:
        config = load_config(config_path)

    if platform is None:
        platform = detect_platform(merge_copy=config.platform.merge_copy)
    filesystem = filesystem or LocalFileSystem()

    cache = DirectoryCache(filesystem, on_content_changed=host.notify_content_changed)
    executor = FileOperationExecutor(filesystem, platform)
    workspace = BatchWorkspace(config.batch, base_dir=workspace_dir)
    batch = BatchEngine(executor, cache, host, workspace, platform)
    clipboard = ClipboardEngine(executor, cache, host, platform)
    controller = FilerController(
        filesystem=filesystem,
        cache=cache,
        executor=executor,
        batch=batch,
        clipboard=clipboard,
        host=host,
        config=config.filer,
        platform=platform,
    )

    return ServicesContainer(
        config=config,
        platform=platform,
        filesystem=filesystem,
        cache=cache,
        executor=executor,
        workspace=workspace,
        batch=batch,
        clipboard=clipboard,
        controller=controller,
    )
