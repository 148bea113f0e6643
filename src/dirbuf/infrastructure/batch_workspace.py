"""
Temporary working directory for batch sessions.

Holds the two name-list files of a session: the immutable original names
and the user-editable current names, one entry per line in UTF-8.
"""

import logging
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from dirbuf.core.config import BatchConfig

logger = logging.getLogger(__name__)


class BatchWorkspace:
    """
    Owns the temporary directory used by batch sessions.

    The directory is created lazily on first use and reused by every
    following session.
    """

    def __init__(self, config: Optional[BatchConfig] = None, base_dir: Optional[Path] = None):
        """
        Initialize the workspace.

        Args:
            config: Batch configuration (file names, temp dir prefix)
            base_dir: Parent of the temporary directory; system temp dir if None
        """
        self._config = config or BatchConfig()
        self._base_dir = base_dir
        self._root: Optional[Path] = None

    @property
    def root(self) -> Path:
        """The temporary directory, created on first access."""
        if self._root is None:
            self._root = Path(
                tempfile.mkdtemp(
                    prefix=self._config.temp_dir_prefix,
                    dir=str(self._base_dir) if self._base_dir else None,
                )
            )
            logger.debug(f"Created batch workspace {self._root}")
        return self._root

    @property
    def original_names_path(self) -> Path:
        return self.root / self._config.original_names_file

    @property
    def editable_names_path(self) -> Path:
        return self.root / self._config.editable_names_file

    def write_names(self, names: Sequence[str], with_original: bool) -> tuple[Path, Optional[Path]]:
        """
        Materialize the name lists of a new session.

        Args:
            names: One name per line; directories carry a trailing '/'
            with_original: Also write the immutable original-names list

        Returns:
            Tuple of (editable names path, original names path or None)
        """
        content = "\n".join(names)
        editable = self.editable_names_path
        editable.write_text(content, encoding="utf-8")

        original: Optional[Path] = None
        if with_original:
            original = self.original_names_path
            original.write_text(content, encoding="utf-8")
        elif self.original_names_path.exists():
            self.original_names_path.unlink()

        return editable, original

    def cleanup(self) -> None:
        """Remove the temporary directory."""
        if self._root is not None:
            shutil.rmtree(self._root, ignore_errors=True)
            self._root = None
