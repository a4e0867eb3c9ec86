"""Resolution selection parsing and scaling ladders."""

from __future__ import annotations

import re
from collections.abc import Mapping

from hidpictl.core.errors import FormatError
from hidpictl.core.model import (
    CustomSelection,
    NamedResolution,
    NamedSelection,
    PresetSelection,
    ResolutionSelection,
    Size,
)

_DIGITS_RE = re.compile(r"^[0-9]+$")
_SEPARATOR_RE = re.compile(r"[, ]+")


def _ladder(*sizes: str) -> tuple[Size, ...]:
    return tuple(parse_size(size) for size in sizes)


def parse_size(token: str) -> Size:
    """Parse a single ``WIDTHxHEIGHT`` token into a positive :class:`Size`."""
    parts = token.split("x")
    if len(parts) != 2 or not all(_DIGITS_RE.match(part) for part in parts):
        raise FormatError(
            f"invalid resolution format in '{token}'. Use WIDTHxHEIGHT (e.g., 1856x1044)"
        )
    width, height = int(parts[0]), int(parts[1])
    if width <= 0 or height <= 0:
        raise FormatError(
            f"invalid resolution format in '{token}'. Use WIDTHxHEIGHT (e.g., 1856x1044)"
        )
    return Size(width, height)


BUILTIN_LADDERS: dict[NamedResolution, tuple[Size, ...]] = {
    NamedResolution.FHD: _ladder("1680x945", "1440x810", "1280x720", "1024x576"),
    NamedResolution.FHD_FIX_UNDERSCALED: _ladder("1680x945", "1424x802", "1280x720", "1024x576"),
    NamedResolution.WUXGA: _ladder("1920x1200", "1680x1050", "1440x900", "1280x800", "1024x640"),
    NamedResolution.QHD: _ladder(
        "2560x1440", "2048x1152", "1920x1080", "1680x945", "1440x810", "1280x720"
    ),
    NamedResolution.QHD_PLUS_3_2: _ladder(
        "3000x2000", "2880x1920", "2250x1500", "1920x1280", "1680x1050", "1440x900", "1280x800"
    ),
    NamedResolution.UWQHD: _ladder(
        "3440x1440", "2752x1152", "2580x1080", "2365x990", "1935x810", "1720x720"
    ),
}

_BUILTIN_BY_NAME = {member.value: member for member in NamedResolution}


def parse_custom(text: str) -> tuple[Size, ...]:
    tokens = [token.strip() for token in _SEPARATOR_RE.split(text)]
    tokens = [token for token in tokens if token]
    if not tokens:
        raise FormatError("invalid resolution format")
    return tuple(parse_size(token) for token in tokens)


class ResolutionCatalog:
    """Maps a user selection to the ordered list of logical resolutions.

    Built-in ladders always win; user presets from the settings file can only
    add new names.
    """

    def __init__(self, presets: Mapping[str, tuple[Size, ...]] | None = None) -> None:
        self.presets: dict[str, tuple[Size, ...]] = {
            name: sizes for name, sizes in (presets or {}).items() if name not in _BUILTIN_BY_NAME
        }

    def names(self) -> list[str]:
        return [member.value for member in NamedResolution] + sorted(self.presets)

    def ladder(self, name: str) -> tuple[Size, ...]:
        return self.expand(self.parse(name))

    def parse(self, text: str) -> ResolutionSelection:
        builtin = _BUILTIN_BY_NAME.get(text)
        if builtin is not None:
            return NamedSelection(builtin)
        preset = self.presets.get(text)
        if preset is not None:
            return PresetSelection(name=text, sizes=preset)
        if "x" in text:
            return CustomSelection(parse_custom(text))
        raise FormatError("invalid resolution format")

    def expand(self, selection: ResolutionSelection | str) -> tuple[Size, ...]:
        if isinstance(selection, str):
            selection = self.parse(selection)
        if isinstance(selection, NamedSelection):
            return BUILTIN_LADDERS[selection.resolution]
        return selection.sizes


def expand(selection: str) -> tuple[Size, ...]:
    """Expand a selection against the built-in catalog only."""
    return ResolutionCatalog().expand(selection)
