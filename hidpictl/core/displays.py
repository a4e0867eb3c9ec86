"""Enumeration of attached displays via ``system_profiler``."""

from __future__ import annotations

import json
import platform
import re
import subprocess
from collections.abc import Sequence
from typing import Any

from hidpictl.core.errors import DisplayDiscoveryError
from hidpictl.core.model import DetectedDisplay, DisplayIdentity

_HEX_ID_RE = re.compile(r"^(?:0x)?([0-9a-f]{1,4})$", re.IGNORECASE)
_SYSTEM_PROFILER = ["system_profiler", "SPDisplaysDataType", "-json"]


def is_apple_silicon() -> bool:
    return "arm64" in platform.machine()


def parse_hex_id(value: str) -> str:
    """Normalize a 16-bit id such as ``0x10AC`` or ``10ac`` to 4-digit lowercase hex."""
    match = _HEX_ID_RE.match(value.strip())
    if not match:
        raise ValueError(f"'{value}' is not a 16-bit hexadecimal id")
    return f"{int(match.group(1), 16):04x}"


def discover_displays() -> list[DetectedDisplay]:
    result = _run_profiler_command(_SYSTEM_PROFILER)
    if result is None:
        raise DisplayDiscoveryError("system_profiler not found; display discovery requires macOS")
    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise DisplayDiscoveryError(f"Display discovery failed: {stderr or 'exit status ' + str(result.returncode)}")

    try:
        report = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise DisplayDiscoveryError(f"Could not parse system_profiler output: {exc}") from exc
    return parse_profiler_report(report)


def parse_profiler_report(report: dict[str, Any]) -> list[DetectedDisplay]:
    displays: list[DetectedDisplay] = []
    seen: set[DisplayIdentity] = set()
    for gpu in report.get("SPDisplaysDataType", []):
        for entry in gpu.get("spdisplays_ndrvs", []):
            vendor = entry.get("_spdisplays_display-vendor-id")
            product = entry.get("_spdisplays_display-product-id")
            if not vendor or not product:
                continue
            try:
                identity = DisplayIdentity(parse_hex_id(vendor), parse_hex_id(product))
            except ValueError:
                continue
            if identity in seen:
                continue
            seen.add(identity)
            name = entry.get("_name") or f"Display {identity}"
            displays.append(DetectedDisplay(identity=identity, name=name, index=len(displays)))
    return displays


def _run_profiler_command(cmd: Sequence[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return None
