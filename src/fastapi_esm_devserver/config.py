"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

HOST = "localhost"
PORT = 2333


class DevServerSettings(BaseSettings):
    """Dev server settings, read from ``DEVSERVER_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DEVSERVER_",
        env_file=".env",
        extra="ignore",
    )

    root: Path = Field(default_factory=Path.cwd, description="Project root")
    public_dir: str = Field(default="public", description="Public assets root")
    modules_dir: str = Field(default="node_modules", description="Dependency dir")
    store_dir: str = Field(default=".pnpm", description="Content-addressed store")
    lockfile: str = Field(default="pnpm-lock.yaml", description="Lock file name")
    source_segment: str = Field(
        default="/src/", description="Path segment gating asset inlining"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Record per-stage traces")

    @field_validator("root", mode="after")
    @classmethod
    def resolve_root(cls, v: Path) -> Path:
        return v.resolve()

    @property
    def search_roots(self) -> list[Path]:
        return [self.root, self.root / self.public_dir]

    @property
    def lockfile_path(self) -> Path:
        return self.root / self.lockfile
