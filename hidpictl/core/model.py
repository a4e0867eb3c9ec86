"""Core data models used across catalog, applier, service, and CLI."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Action(enum.Enum):
    ENABLE = "enable"
    DISABLE = "disable"


class NamedResolution(enum.Enum):
    """Built-in scaling ladders, keyed by the panel's native resolution."""

    FHD = "1920x1080"
    FHD_FIX_UNDERSCALED = "1920x1080 (fix underscaled)"
    WUXGA = "1920x1200"
    QHD = "2560x1440"
    QHD_PLUS_3_2 = "3000x2000"
    UWQHD = "3440x1440"


@dataclass(frozen=True)
class Size:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class NamedSelection:
    resolution: NamedResolution


@dataclass(frozen=True)
class PresetSelection:
    name: str
    sizes: tuple[Size, ...]


@dataclass(frozen=True)
class CustomSelection:
    sizes: tuple[Size, ...]


ResolutionSelection = NamedSelection | PresetSelection | CustomSelection


@dataclass(frozen=True)
class DisplayIdentity:
    """Vendor/product pair as 4-digit lowercase hex strings."""

    vendor_id: str
    product_id: str

    @classmethod
    def from_ints(cls, vendor: int, product: int) -> DisplayIdentity:
        return cls(vendor_id=f"{vendor:04x}", product_id=f"{product:04x}")

    @property
    def vendor_number(self) -> int:
        return int(self.vendor_id, 16)

    @property
    def product_number(self) -> int:
        return int(self.product_id, 16)

    def __str__(self) -> str:
        return f"{self.vendor_id}:{self.product_id}"


@dataclass(frozen=True)
class DetectedDisplay:
    identity: DisplayIdentity
    name: str
    index: int = 0

    @property
    def description(self) -> str:
        return f"{self.name} ({self.identity})"


@dataclass(frozen=True)
class ScaledEntry:
    """The two descriptor lines emitted for one logical resolution."""

    size: Size
    scale: str
    scale_flags: str

    @property
    def lines(self) -> tuple[str, str]:
        return self.scale, self.scale_flags


@dataclass(frozen=True)
class OverrideDescriptor:
    identity: DisplayIdentity
    entries: tuple[ScaledEntry, ...]
    text: str


@dataclass(frozen=True)
class ChannelOutput:
    exit_status: int
    output: str


@dataclass(frozen=True)
class OperationResult:
    action: Action
    display: DetectedDisplay
    success: bool
    message: str
    failed_step: str | None = None


@dataclass(frozen=True)
class OverrideRequest:
    action: Action
    display: DetectedDisplay
    selection: str | None = None
