"""
Configuration module for dirbuf.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section) or {}
    return section_defaults.get(key, fallback)


@dataclass
class FilerConfig:
    """Configuration for filer actions."""

    use_trash: bool = field(default_factory=lambda: _get_default("filer", "use_trash", True))
    resolve_symlinks: bool = field(
        default_factory=lambda: _get_default("filer", "resolve_symlinks", False)
    )


@dataclass
class BatchConfig:
    """Configuration for batch name-list sessions."""

    temp_dir_prefix: str = field(
        default_factory=lambda: _get_default("batch", "temp_dir_prefix", "dirbuf-")
    )
    original_names_file: str = field(
        default_factory=lambda: _get_default(
            "batch", "original_names_file", ".Original.dirbuf-batch"
        )
    )
    editable_names_file: str = field(
        default_factory=lambda: _get_default(
            "batch", "editable_names_file", ".FileNames.dirbuf-batch"
        )
    )


@dataclass
class PlatformConfig:
    """Platform overrides. None keeps the detected behaviour."""

    merge_copy: Optional[bool] = field(
        default_factory=lambda: _get_default("platform", "merge_copy", None)
    )


@dataclass
class ReplConfig:
    """Configuration for the interactive shell."""

    history_file: str = field(
        default_factory=lambda: _get_default("repl", "history_file", ".dirbuf/history")
    )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )


@dataclass
class DirbufConfig:
    """Main configuration class for dirbuf."""

    filer: FilerConfig = field(default_factory=FilerConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    platform: PlatformConfig = field(default_factory=PlatformConfig)
    repl: ReplConfig = field(default_factory=ReplConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "DirbufConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            DirbufConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the file format is unsupported
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "DirbufConfig":
        """Create DirbufConfig from a dictionary."""
        config = cls()

        if "filer" in data:
            config.filer = FilerConfig(**data["filer"])
        if "batch" in data:
            config.batch = BatchConfig(**data["batch"])
        if "platform" in data:
            config.platform = PlatformConfig(**data["platform"])
        if "repl" in data:
            config.repl = ReplConfig(**data["repl"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

        return config

    def apply_env_overrides(self) -> "DirbufConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: DIRBUF_<SECTION>_<KEY>
        Examples:
            - DIRBUF_FILER_USE_TRASH
            - DIRBUF_BATCH_TEMP_DIR_PREFIX
            - DIRBUF_PLATFORM_MERGE_COPY
            - DIRBUF_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # Filer config
            "DIRBUF_FILER_USE_TRASH": ("filer", "use_trash", _parse_bool),
            "DIRBUF_FILER_RESOLVE_SYMLINKS": ("filer", "resolve_symlinks", _parse_bool),
            # Batch config
            "DIRBUF_BATCH_TEMP_DIR_PREFIX": ("batch", "temp_dir_prefix", str),
            "DIRBUF_BATCH_ORIGINAL_NAMES_FILE": ("batch", "original_names_file", str),
            "DIRBUF_BATCH_EDITABLE_NAMES_FILE": ("batch", "editable_names_file", str),
            # Platform config
            "DIRBUF_PLATFORM_MERGE_COPY": ("platform", "merge_copy", _parse_bool),
            # REPL config
            "DIRBUF_REPL_HISTORY_FILE": ("repl", "history_file", str),
            # Logging config
            "DIRBUF_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def load_config(config_path: Optional[Path | str] = None, apply_env: bool = True) -> DirbufConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        DirbufConfig instance
    """
    if config_path:
        config = DirbufConfig.from_file(config_path)
    else:
        config = DirbufConfig()

    if apply_env:
        config.apply_env_overrides()

    return config


def configure_logging(config: LoggingConfig) -> None:
    """Configure the root logger from the logging section."""
    level = getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.format)
