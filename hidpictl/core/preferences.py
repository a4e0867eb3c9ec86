"""Font smoothing preference, stored in the current host's global domain."""

from __future__ import annotations

import subprocess

from hidpictl.core.errors import PreferenceError

FONT_SMOOTHING_KEY = "AppleFontSmoothing"
FONT_SMOOTHING_VALUES = (-1, 0, 1, 2, 3)


def read_font_smoothing() -> int | None:
    """Return the current value, or ``None`` when the key is not set."""
    result = _run_defaults(["-currentHost", "read", "-g", FONT_SMOOTHING_KEY])
    if result.returncode != 0:
        return None
    try:
        return int(result.stdout.strip())
    except ValueError:
        return None


def write_font_smoothing(value: int) -> None:
    if value not in FONT_SMOOTHING_VALUES:
        allowed = ", ".join(str(v) for v in FONT_SMOOTHING_VALUES)
        raise PreferenceError(f"Font smoothing must be one of {allowed}")
    result = _run_defaults(["-currentHost", "write", "-g", FONT_SMOOTHING_KEY, "-int", str(value)])
    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise PreferenceError(f"Failed to set font smoothing: {stderr or 'defaults failed'}")


def _run_defaults(args: list[str]) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            ["defaults", *args],
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise PreferenceError("'defaults' not found; font smoothing requires macOS") from exc
