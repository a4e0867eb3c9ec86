"""Encoding of logical resolutions into scale-resolutions entries."""

from __future__ import annotations

import base64

from hidpictl.core.errors import EncodingError
from hidpictl.core.model import ScaledEntry, Size

SCALE_SUFFIX = "AAAAB"
SCALE_FLAGS_SUFFIX = "AAAABACAAAA=="
_MAX_FIELD = 0xFFFFFFFF


def scaled_payload(width: int, height: int) -> str:
    """Return the base64 of the doubled size as two big-endian 32-bit fields."""
    if width <= 0 or height <= 0:
        raise EncodingError(f"Resolution {width}x{height} must be positive")
    hidpi_width = width * 2
    hidpi_height = height * 2
    if hidpi_width > _MAX_FIELD or hidpi_height > _MAX_FIELD:
        raise EncodingError(
            f"Resolution {width}x{height} is too large to encode (doubled size exceeds 32 bits)"
        )
    raw = bytes.fromhex(f"{hidpi_width:08x}{hidpi_height:08x}")
    return base64.b64encode(raw).decode("ascii")


def encode(width: int, height: int) -> tuple[str, str]:
    payload = scaled_payload(width, height)
    return payload + SCALE_SUFFIX, payload + SCALE_FLAGS_SUFFIX


def encode_size(size: Size) -> ScaledEntry:
    scale, scale_flags = encode(size.width, size.height)
    return ScaledEntry(size=size, scale=scale, scale_flags=scale_flags)
