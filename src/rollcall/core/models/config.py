"""Configuration models using Pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """Persistence configuration."""

    backend: Literal["file", "memory"] = "file"
    path: Path = Path("./data/rollcall.json")
    quota_bytes: int = Field(default=5 * 1024 * 1024, ge=0)  # 0 = no limit


class RosterConfig(BaseModel):
    """Roster seeding configuration."""

    default_size: int = Field(default=40, ge=1, le=500)
    default_task_title: str = "Task 1"

    def default_students(self) -> list[str]:
        return [f"Student {n}" for n in range(1, self.default_size + 1)]


class LogConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    structured: bool = False


class UIConfig(BaseModel):
    """Console rendering configuration."""

    auto_render: bool = True
    toast_duration: float = Field(default=1.5, ge=0)
    columns: int = Field(default=8, ge=1, le=20)


class Settings(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ROLLCALL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    roster: RosterConfig = Field(default_factory=RosterConfig)
    logs: LogConfig = Field(default_factory=LogConfig)
    ui: UIConfig = Field(default_factory=UIConfig)

    # Raise instead of logging when a module fails to initialize
    strict_init: bool = False

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Load configuration from YAML file."""
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open() as f:
            data = yaml.safe_load(f)

        return cls(**data) if data else cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create configuration from dictionary."""
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode="json")

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with path.open("w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)
