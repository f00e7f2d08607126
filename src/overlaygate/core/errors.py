"""Error taxonomy for the overlay decision core."""

from __future__ import annotations


class OverlayGateError(Exception):
    """Base class for every overlaygate failure."""


class ConfigDecodeError(OverlayGateError):
    """Persisted configuration is missing a valid shape and cannot be used."""


class SecurityViolation(OverlayGateError):
    """A mutation tried to weaken the built-in blacklist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot remove {name} from blacklist (security)")
        self.name = name


class ConfigValidationError(OverlayGateError, ValueError):
    """A requested field value is outside what the config accepts."""


class PersistenceWriteError(OverlayGateError):
    """The config store could not write the snapshot."""
