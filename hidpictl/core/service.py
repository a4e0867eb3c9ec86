"""Service layer used by CLI and the public API."""

from __future__ import annotations

import logging
import platform
from pathlib import Path

from hidpictl.core.applier import PrivilegedApplier
from hidpictl.core.catalog import ResolutionCatalog
from hidpictl.core.config import Settings, load_settings
from hidpictl.core.descriptor import build_descriptor, override_path
from hidpictl.core.displays import discover_displays, parse_hex_id
from hidpictl.core.errors import (
    DisplaySelectionError,
    FormatError,
    HidpictlError,
    TransactionFailure,
)
from hidpictl.core.model import (
    Action,
    DetectedDisplay,
    DisplayIdentity,
    OperationResult,
    OverrideDescriptor,
    OverrideRequest,
    Size,
)
from hidpictl.core.preferences import read_font_smoothing, write_font_smoothing
from hidpictl.elevation.base import ElevationChannel
from hidpictl.elevation.script import channel_for

LOGGER = logging.getLogger(__name__)

_REBOOT_HINT = "Please reboot to apply changes."


class HidpiService:
    def __init__(
        self,
        *,
        settings: Settings | None = None,
        channel: ElevationChannel | None = None,
        config_path: Path | None = None,
    ) -> None:
        if settings is None:
            loaded = load_settings(config_path)
            settings = loaded.settings
            self.load_warnings = loaded.warnings
        else:
            self.load_warnings = ()
        self.settings = settings
        self.runtime_warnings = _runtime_warnings()
        self.catalog = ResolutionCatalog(settings.presets)
        self.channel = channel or channel_for(settings.elevation, temp_dir=settings.temp_dir)
        self.applier = PrivilegedApplier(self.channel, settings)

    def list_resolutions(self) -> list[tuple[str, tuple[Size, ...]]]:
        return [(name, self.catalog.ladder(name)) for name in self.catalog.names()]

    def list_displays(self) -> list[DetectedDisplay]:
        return discover_displays()

    def resolve_display(
        self,
        display_hint: str | None = None,
        vendor: str | None = None,
        product: str | None = None,
    ) -> DetectedDisplay:
        if vendor or product:
            if not (vendor and product):
                raise DisplaySelectionError("Both --vendor and --product are required to target a display by id.")
            try:
                identity = DisplayIdentity(parse_hex_id(vendor), parse_hex_id(product))
            except ValueError as exc:
                raise DisplaySelectionError(str(exc)) from exc
            return DetectedDisplay(identity=identity, name=f"Display {identity}")

        displays = self.list_displays()
        if not displays:
            raise DisplaySelectionError("No displays found. Use --vendor and --product to target one explicitly.")

        candidates = displays
        if display_hint:
            hint = display_hint.lower()
            candidates = [
                d
                for d in displays
                if hint in d.name.lower() or hint == str(d.identity) or hint == str(d.index)
            ]
            if not candidates:
                raise DisplaySelectionError(f"No display found matching '{display_hint}'")

        if len(candidates) > 1:
            candidate_desc = ", ".join(f"{d.index}: {d.description}" for d in candidates)
            raise DisplaySelectionError(
                f"Multiple displays found: {candidate_desc}. Use --display to choose one."
            )
        return candidates[0]

    def preview(self, display: DetectedDisplay | DisplayIdentity, selection: str) -> OverrideDescriptor:
        identity = _as_display(display).identity
        return build_descriptor(identity, self.catalog.expand(selection))

    def target_path(self, display: DetectedDisplay | DisplayIdentity) -> str:
        return str(override_path(_as_display(display).identity, self.settings.overrides_root))

    def apply(self, display: DetectedDisplay | DisplayIdentity, selection: str) -> OperationResult:
        target = _as_display(display)
        try:
            descriptor = self.preview(target, selection)
            self.applier.enable(descriptor)
        except FormatError as exc:
            return OperationResult(Action.ENABLE, target, success=False, message=str(exc))
        except TransactionFailure as exc:
            return _failure(Action.ENABLE, target, exc)
        except HidpictlError as exc:
            return OperationResult(
                Action.ENABLE, target, success=False, message=f"Failed to enable HiDPI for {target.name}: {exc}"
            )
        LOGGER.info("Installed override for %s at %s", target.identity, self.target_path(target))
        return OperationResult(
            Action.ENABLE, target, success=True, message=f"HiDPI enabled for {target.name}. {_REBOOT_HINT}"
        )

    def remove(self, display: DetectedDisplay | DisplayIdentity) -> OperationResult:
        target = _as_display(display)
        try:
            self.applier.disable(target.identity)
        except TransactionFailure as exc:
            return _failure(Action.DISABLE, target, exc)
        LOGGER.info("Removed overrides for vendor %s", target.identity.vendor_id)
        return OperationResult(
            Action.DISABLE, target, success=True, message=f"HiDPI disabled for {target.name}. {_REBOOT_HINT}"
        )

    def run(self, request: OverrideRequest) -> OperationResult:
        if request.action is Action.ENABLE:
            if request.selection is None:
                return OperationResult(
                    Action.ENABLE, request.display, success=False, message="invalid resolution format"
                )
            return self.apply(request.display, request.selection)
        return self.remove(request.display)

    def font_smoothing(self) -> int | None:
        return read_font_smoothing()

    def set_font_smoothing(self, value: int) -> None:
        write_font_smoothing(value)


def _as_display(display: DetectedDisplay | DisplayIdentity) -> DetectedDisplay:
    if isinstance(display, DetectedDisplay):
        return display
    return DetectedDisplay(identity=display, name=f"Display {display}")


def _failure(action: Action, target: DetectedDisplay, exc: TransactionFailure) -> OperationResult:
    return OperationResult(
        action,
        target,
        success=False,
        message=f"Failed to {action.value} HiDPI for {target.name}: {exc}",
        failed_step=exc.failed_step,
    )


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if platform.system() != "Darwin":
        warnings.append("Not running on macOS; display overrides will have no effect on this system.")
    return tuple(warnings)
