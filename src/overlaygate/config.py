"""Application configuration models and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppPaths(BaseModel):
    """Resolved directories for overlaygate runtime files."""

    base_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("OVERLAYGATE_HOME", Path.home() / ".overlaygate"))
    )

    @property
    def config_dir(self) -> Path:
        return self.base_dir / "config"

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / "logs"

    @property
    def config_file(self) -> Path:
        return self.config_dir / "overlay.json"

    def ensure(self) -> None:
        for path in (self.base_dir, self.config_dir, self.logs_dir):
            path.mkdir(parents=True, exist_ok=True)


class GateSettings(BaseModel):
    app_name: str = "overlaygate"
    paths: AppPaths = Field(default_factory=AppPaths)
    desktop_shell: str = "explorer.exe"
    game_processes: list[str] = Field(default_factory=list)
    log_level: str = "INFO"


def _split_names(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings(env_path: Path | None = None) -> GateSettings:
    """Load runtime settings from environment variables and defaults."""

    env_file = env_path or Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    overrides: dict[str, Any] = {}

    if shell := os.getenv("OVERLAYGATE_DESKTOP_SHELL"):
        overrides["desktop_shell"] = shell.strip()

    if (games := _split_names(os.getenv("OVERLAYGATE_GAMES"))) is not None:
        overrides["game_processes"] = games

    if level := os.getenv("OVERLAYGATE_LOG_LEVEL"):
        overrides["log_level"] = level.upper()

    settings = GateSettings(**overrides)
    settings.paths.ensure()
    return settings
