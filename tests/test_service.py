from __future__ import annotations

import shlex
import subprocess
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from hidpictl.core.config import Settings
from hidpictl.core.errors import DisplaySelectionError
from hidpictl.core.model import Action, ChannelOutput, DetectedDisplay, DisplayIdentity, OverrideRequest, Size
from hidpictl.core.service import HidpiService
from hidpictl.elevation.script import OsaScriptChannel


class FakeChannel:
    def __init__(self, exit_status: int = 0, output: str = "") -> None:
        self.exit_status = exit_status
        self.output = output
        self.scripts: list[str] = []
        self.documents: list[str] = []

    def run(self, script: str) -> ChannelOutput:
        self.scripts.append(script)
        for line in script.splitlines():
            if line.startswith("cp "):
                self.documents.append(Path(shlex.split(line)[1]).read_text(encoding="utf-8"))
        return ChannelOutput(exit_status=self.exit_status, output=self.output)


DELL = DetectedDisplay(identity=DisplayIdentity("10ac", "40a8"), name="DELL U2415", index=1)
BUILTIN = DetectedDisplay(identity=DisplayIdentity("0610", "a04f"), name="Color LCD", index=0)


def _service(tmp_path: Path, channel: FakeChannel) -> HidpiService:
    return HidpiService(
        settings=Settings(overrides_root=tmp_path / "Overrides", temp_dir=tmp_path),
        channel=channel,
    )


def test_apply_end_to_end_success(tmp_path: Path) -> None:
    channel = FakeChannel()
    service = _service(tmp_path, channel)

    result = service.apply(DisplayIdentity("10ac", "40a8"), "1920x1200")

    assert result.success is True
    assert result.action is Action.ENABLE
    assert "HiDPI enabled for Display 10ac:40a8" in result.message
    assert len(channel.scripts) == 1

    root = ET.fromstring(channel.documents[0].split("\n", 2)[2])
    values = list(root.find("dict"))
    assert int(values[1].text) == 16552
    assert int(values[3].text) == 4268
    data = [element.text for element in values[5]]
    assert len(data) == 10
    assert data[0] == "AAAPAAAACWA=AAAAB"
    assert data[1] == "AAAPAAAACWA=AAAABACAAAA=="
    assert data[-2] == "AAAIAAAABQA=AAAAB"
    assert values[7].text == "10.0699301"


def test_apply_end_to_end_failure_carries_output(tmp_path: Path) -> None:
    channel = FakeChannel(exit_status=1, output="mkdir: Permission denied")
    service = _service(tmp_path, channel)

    result = service.apply(DELL, "1920x1200")

    assert result.success is False
    assert "mkdir: Permission denied" in result.message
    assert "DELL U2415" in result.message


def test_apply_format_error_never_reaches_channel(tmp_path: Path) -> None:
    channel = FakeChannel()
    service = _service(tmp_path, channel)

    result = service.apply(DELL, "1856x1044,bad")

    assert result.success is False
    assert "'bad'" in result.message
    assert channel.scripts == []


def test_apply_encoding_error_is_reported(tmp_path: Path) -> None:
    channel = FakeChannel()
    service = _service(tmp_path, channel)

    result = service.apply(DELL, "4294967296x1")

    assert result.success is False
    assert "too large" in result.message
    assert channel.scripts == []


def test_apply_twice_writes_identical_documents(tmp_path: Path) -> None:
    channel = FakeChannel()
    service = _service(tmp_path, channel)

    assert service.apply(DELL, "2560x1440").success
    assert service.apply(DELL, "2560x1440").success
    assert channel.documents[0] == channel.documents[1]


def test_remove_reports_success(tmp_path: Path) -> None:
    channel = FakeChannel()
    service = _service(tmp_path, channel)

    result = service.remove(DELL)

    assert result.success is True
    assert result.message.startswith("HiDPI disabled for DELL U2415.")
    assert "rm -rf" in channel.scripts[0]


def test_remove_failure(tmp_path: Path) -> None:
    service = _service(tmp_path, FakeChannel(exit_status=1, output="Authorization was cancelled."))

    result = service.remove(DELL)

    assert result.success is False
    assert "Authorization was cancelled." in result.message


def test_run_dispatches_requests(tmp_path: Path) -> None:
    channel = FakeChannel()
    service = _service(tmp_path, channel)

    enabled = service.run(OverrideRequest(Action.ENABLE, DELL, "1920x1080"))
    disabled = service.run(OverrideRequest(Action.DISABLE, DELL))
    missing = service.run(OverrideRequest(Action.ENABLE, DELL))

    assert enabled.success and disabled.success
    assert missing.success is False
    assert len(channel.scripts) == 2


def test_preview_uses_user_presets(tmp_path: Path) -> None:
    service = HidpiService(
        settings=Settings(presets={"lite": (Size(1600, 900),)}),
        channel=FakeChannel(),
    )
    descriptor = service.preview(DELL, "lite")
    assert [entry.size for entry in descriptor.entries] == [Size(1600, 900)]
    assert service.target_path(DELL).endswith("DisplayVendorID-10ac/DisplayProductID-40a8")


def test_resolve_display_by_ids(tmp_path: Path) -> None:
    service = _service(tmp_path, FakeChannel())
    display = service.resolve_display(vendor="0x10AC", product="40a8")
    assert display.identity == DisplayIdentity("10ac", "40a8")


def test_resolve_display_requires_both_ids(tmp_path: Path) -> None:
    service = _service(tmp_path, FakeChannel())
    with pytest.raises(DisplaySelectionError):
        service.resolve_display(vendor="10ac")


def test_resolve_display_by_hint(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    service = _service(tmp_path, FakeChannel())
    monkeypatch.setattr(service, "list_displays", lambda: [BUILTIN, DELL])

    assert service.resolve_display(display_hint="dell") == DELL
    assert service.resolve_display(display_hint="10ac:40a8") == DELL
    assert service.resolve_display(display_hint="0") == BUILTIN


def test_resolve_display_ambiguous(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    service = _service(tmp_path, FakeChannel())
    monkeypatch.setattr(service, "list_displays", lambda: [BUILTIN, DELL])

    with pytest.raises(DisplaySelectionError) as exc:
        service.resolve_display()
    assert "Multiple displays" in str(exc.value)


def test_resolve_display_no_match(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    service = _service(tmp_path, FakeChannel())
    monkeypatch.setattr(service, "list_displays", lambda: [BUILTIN, DELL])

    with pytest.raises(DisplaySelectionError):
        service.resolve_display(display_hint="LG")


def test_list_resolutions_includes_builtins(tmp_path: Path) -> None:
    service = _service(tmp_path, FakeChannel())
    names = [name for name, _ in service.list_resolutions()]
    assert names[:6] == [
        "1920x1080",
        "1920x1080 (fix underscaled)",
        "1920x1200",
        "2560x1440",
        "3000x2000",
        "3440x1440",
    ]


def test_remove_with_missing_temp_dir_returns_failure(tmp_path: Path) -> None:
    service = HidpiService(
        settings=Settings(overrides_root=tmp_path / "Overrides", elevation="none", temp_dir=tmp_path / "missing")
    )

    result = service.remove(DELL)

    assert result.success is False
    assert "Could not create privileged script" in result.message


def test_apply_names_failed_step_through_osascript(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd, check, capture_output, text):
        return subprocess.CompletedProcess(
            cmd,
            1,
            stdout="",
            stderr=(
                "0:120: execution error: mkdir: Overrides: Permission denied\n"
                "hidpictl: step 1 (create directory Overrides) failed (101)\n"
            ),
        )

    monkeypatch.setattr(subprocess, "run", fake_run)
    service = HidpiService(
        settings=Settings(overrides_root=tmp_path / "Overrides", temp_dir=tmp_path),
        channel=OsaScriptChannel(temp_dir=tmp_path),
    )

    result = service.apply(DELL, "1920x1080")

    assert result.success is False
    assert result.failed_step is not None
    assert result.failed_step.startswith("create directory")
    assert "Permission denied" in result.message
