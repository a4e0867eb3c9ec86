"""Stable public API for building tooling on top of hidpictl.

This module is the supported integration surface for third-party callers
(menu bar apps, scripts). Avoid importing from ``hidpictl.core`` unless
intentionally depending on non-stable internals.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from hidpictl.core.config import Settings
from hidpictl.core.errors import (
    ConfigError,
    DisplayDiscoveryError,
    DisplaySelectionError,
    ElevationUnavailableError,
    EncodingError,
    FormatError,
    HidpictlError,
    PreferenceError,
    TransactionFailure,
)
from hidpictl.core.model import (
    Action,
    DetectedDisplay,
    DisplayIdentity,
    NamedResolution,
    OperationResult,
    OverrideDescriptor,
    OverrideRequest,
    Size,
)
from hidpictl.core.service import HidpiService
from hidpictl.elevation.base import ElevationChannel

__all__ = [
    "HidpictlError",
    "ConfigError",
    "DisplayDiscoveryError",
    "DisplaySelectionError",
    "ElevationUnavailableError",
    "EncodingError",
    "FormatError",
    "PreferenceError",
    "TransactionFailure",
    "Action",
    "DetectedDisplay",
    "DisplayIdentity",
    "ElevationChannel",
    "NamedResolution",
    "OperationResult",
    "OverrideDescriptor",
    "OverrideRequest",
    "Settings",
    "Size",
    "Client",
]


class Client:
    """Public client for generating and applying display overrides.

    Blocking calls (`apply`, `remove`) return an `OperationResult` and never
    raise for request-level failures. `submit` runs a request on a single
    background worker, so requests issued from one client are applied one
    at a time in submission order.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        channel: ElevationChannel | None = None,
        config_path: Path | None = None,
    ) -> None:
        self._service = HidpiService(settings=settings, channel=channel, config_path=config_path)
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    def list_resolutions(self) -> list[tuple[str, tuple[Size, ...]]]:
        return self._service.list_resolutions()

    def list_displays(self) -> list[DetectedDisplay]:
        return self._service.list_displays()

    def resolve_display(
        self,
        *,
        display_hint: str | None = None,
        vendor: str | None = None,
        product: str | None = None,
    ) -> DetectedDisplay:
        return self._service.resolve_display(display_hint=display_hint, vendor=vendor, product=product)

    def preview(self, display: DetectedDisplay | DisplayIdentity, selection: str) -> OverrideDescriptor:
        return self._service.preview(display, selection)

    def apply(self, display: DetectedDisplay | DisplayIdentity, selection: str) -> OperationResult:
        return self._service.apply(display, selection)

    def remove(self, display: DetectedDisplay | DisplayIdentity) -> OperationResult:
        return self._service.remove(display)

    def submit(self, request: OverrideRequest) -> Future[OperationResult]:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="hidpictl")
        return self._executor.submit(self._service.run, request)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
