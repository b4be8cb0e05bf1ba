# cheatsync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from cheatsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from cheatsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from cheatsync.config.schema import (
    AutoSyncConfig,
    BackendConfig,
    CheatsyncConfig,
    MergeMode,
    OutputConfig,
)

__all__ = [
    # Schema
    "CheatsyncConfig",
    "BackendConfig",
    "AutoSyncConfig",
    "OutputConfig",
    "MergeMode",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
