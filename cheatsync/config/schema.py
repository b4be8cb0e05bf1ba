# cheatsync Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class MergeMode(str, Enum):
    """How pulled and local snapshots are combined."""

    # Whole collections from whichever snapshot was captured later
    SNAPSHOT = "snapshot"
    # Union by item key, conflicting items settled by last-writer-wins
    ITEM = "item"


class BackendConfig(BaseModel):
    """Remote sync backend settings."""

    endpoint: str = Field(default="", description="Base URL of the sync backend")
    api_key: str = Field(default="", description="Bearer token for the backend")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    @field_validator("endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize endpoint URL."""
        return v.strip().rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint)


class AutoSyncConfig(BaseModel):
    """Background sync settings."""

    enabled: bool = Field(default=False, description="Run sync periodically in the background")
    interval_minutes: float = Field(default=15.0, gt=0, description="Minutes between background syncs")

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60.0


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_paths(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class CheatsyncConfig(BaseModel):
    """Root configuration model for cheatsync."""

    data_dir: str = Field(default="~/.config/cheatsync/data", description="Local data directory")
    backend: BackendConfig = Field(default_factory=BackendConfig, description="Backend settings")
    auto_sync: AutoSyncConfig = Field(default_factory=AutoSyncConfig, description="Background sync settings")
    merge_mode: MergeMode = Field(default=MergeMode.SNAPSHOT, description="Snapshot merge strategy")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)
