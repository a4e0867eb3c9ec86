"""Domain-specific errors for hidpictl."""

from __future__ import annotations


class HidpictlError(Exception):
    """Base error for hidpictl."""


class FormatError(HidpictlError):
    """Raised when a resolution selection cannot be parsed or is unknown."""


class EncodingError(HidpictlError):
    """Raised when a resolution cannot be encoded into an override entry."""


class ConfigError(HidpictlError):
    """Raised when the settings file is unreadable or fails validation."""


class DisplayDiscoveryError(HidpictlError):
    """Raised when attached displays cannot be enumerated."""


class DisplaySelectionError(HidpictlError):
    """Raised when display matching cannot resolve a single target."""


class PreferenceError(HidpictlError):
    """Raised when a user preference cannot be read or written."""


class TransactionFailure(HidpictlError):
    """Raised when staging or the privileged transaction fails."""

    def __init__(
        self,
        message: str,
        *,
        exit_status: int | None = None,
        output: str = "",
        failed_step: str | None = None,
    ) -> None:
        super().__init__(message)
        self.exit_status = exit_status
        self.output = output
        self.failed_step = failed_step


class ElevationUnavailableError(TransactionFailure):
    """Raised when the elevation mechanism itself cannot be started."""
