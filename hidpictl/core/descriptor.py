"""Display override document assembly and on-disk locations."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePath, PurePosixPath

from hidpictl.core.encoder import encode_size
from hidpictl.core.model import DisplayIdentity, OverrideDescriptor, ScaledEntry, Size

DEFAULT_OVERRIDES_ROOT = PurePosixPath("/Library/Displays/Contents/Resources/Overrides")
TARGET_DEFAULT_PPMM = "10.0699301"

_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
    '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
    '<plist version="1.0">\n'
)


def vendor_dir(identity: DisplayIdentity, root: PurePath = DEFAULT_OVERRIDES_ROOT) -> PurePath:
    return root / f"DisplayVendorID-{identity.vendor_id}"


def override_path(identity: DisplayIdentity, root: PurePath = DEFAULT_OVERRIDES_ROOT) -> PurePath:
    return vendor_dir(identity, root) / f"DisplayProductID-{identity.product_id}"


def build(identity: DisplayIdentity, entries: Iterable[ScaledEntry]) -> str:
    """Render the override plist for ``identity``.

    Keys are written in a fixed order. Each entry contributes its two data
    lines verbatim. The tags follow the base64 padding, which ``plistlib``
    cannot emit, so the document is rendered as text.
    """
    data_lines = [
        f"\t\t<data>{line}</data>\n" for entry in entries for line in entry.lines
    ]
    return "".join(
        [
            _HEADER,
            "<dict>\n",
            "\t<key>DisplayProductID</key>\n",
            f"\t<integer>{identity.product_number}</integer>\n",
            "\t<key>DisplayVendorID</key>\n",
            f"\t<integer>{identity.vendor_number}</integer>\n",
            "\t<key>scale-resolutions</key>\n",
            "\t<array>\n",
            *data_lines,
            "\t</array>\n",
            "\t<key>target-default-ppmm</key>\n",
            f"\t<real>{TARGET_DEFAULT_PPMM}</real>\n",
            "</dict>\n",
            "</plist>\n",
        ]
    )


def build_descriptor(identity: DisplayIdentity, sizes: Iterable[Size]) -> OverrideDescriptor:
    entries = tuple(encode_size(size) for size in sizes)
    return OverrideDescriptor(identity=identity, entries=entries, text=build(identity, entries))
