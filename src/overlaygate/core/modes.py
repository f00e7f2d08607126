"""Overlay modes, the persisted config record and its invariants."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_OPACITY = 0.3
MAX_OPACITY = 1.0

# Security-sensitive processes. Always present in the blacklist and never removable.
DEFAULT_BLACKLIST: tuple[str, ...] = (
    "banking.exe",
    "wallet.exe",
    "password-manager.exe",
    "keepass.exe",
    "1password.exe",
    "bitwarden.exe",
    "lastpass.exe",
)
CRITICAL_BLACKLIST: frozenset[str] = frozenset(DEFAULT_BLACKLIST)


class OverlayMode(str, Enum):
    GAMES_ONLY = "games_only"
    ALL_APPLICATIONS = "all_applications"
    DESKTOP_MODE = "desktop_mode"
    CUSTOM_WHITELIST = "custom_whitelist"


class Position(BaseModel):
    x: int = 10
    y: int = 10


def is_security_critical(name: str) -> bool:
    return name in CRITICAL_BLACKLIST


def matches_any(process_name: str, patterns: Iterable[str]) -> bool:
    """Case-insensitive substring match of ``process_name`` against ``patterns``."""

    lowered = process_name.lower()
    return any(pattern.lower() in lowered for pattern in patterns)


def _unique_patterns(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        # a blank pattern is a substring of every process name
        if not value.strip() or value in seen:
            continue
        seen.add(value)
        cleaned.append(value)
    return cleaned


class OverlayConfig(BaseModel):
    """Single overlay configuration record, persisted under ``overlayConfig``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    mode: OverlayMode = OverlayMode.GAMES_ONLY
    enabled: bool = Field(default=True, strict=True)
    hotkey: str = "Shift+`"
    whitelist: list[str] = Field(default_factory=list)
    blacklist: list[str] = Field(default_factory=lambda: list(DEFAULT_BLACKLIST))
    opacity: float = Field(default=0.95, ge=MIN_OPACITY, le=MAX_OPACITY, strict=True)
    position: Position = Field(default_factory=Position)
    click_through: bool = Field(default=True, alias="clickThrough", strict=True)

    @field_validator("whitelist")
    @classmethod
    def _clean_whitelist(cls, value: list[str]) -> list[str]:
        return _unique_patterns(value)

    @field_validator("blacklist")
    @classmethod
    def _restore_critical(cls, value: list[str]) -> list[str]:
        cleaned = _unique_patterns(value)
        missing = [name for name in DEFAULT_BLACKLIST if name not in cleaned]
        return missing + cleaned

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def default_config() -> OverlayConfig:
    return OverlayConfig()
