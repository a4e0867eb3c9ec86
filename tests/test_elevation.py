from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from hidpictl.core.errors import ConfigError, ElevationUnavailableError
from hidpictl.elevation.script import OsaScriptChannel, ScriptFileChannel, SudoChannel, channel_for


def _cp(cmd: list[str], rc: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(cmd, rc, stdout=stdout, stderr=stderr)


def test_osascript_channel_requests_administrator_privileges(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    seen: dict[str, object] = {}

    def fake_run(cmd, check, capture_output, text):
        seen["cmd"] = cmd
        script_path = Path(cmd[2].split('"')[1].split(" ", 1)[1])
        seen["script"] = script_path.read_text(encoding="utf-8")
        return _cp(cmd, 0, stdout="done\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    output = OsaScriptChannel(temp_dir=tmp_path).run("echo hi\n")

    cmd = seen["cmd"]
    assert cmd[:2] == ["/usr/bin/osascript", "-e"]
    assert cmd[2].startswith('do shell script "/bin/bash ')
    assert cmd[2].endswith('" with administrator privileges')
    assert seen["script"] == "echo hi\n"
    assert output.exit_status == 0
    assert output.output == "done"
    assert list(tmp_path.iterdir()) == []


def test_osascript_cancel_is_reported(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd, check, capture_output, text):
        return _cp(cmd, 1, stderr="0:81: execution error: User canceled. (-128)\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    output = OsaScriptChannel(temp_dir=tmp_path).run("true\n")
    assert output.exit_status == 1
    assert output.output == "Authorization was cancelled."


def test_combined_output_keeps_stdout_and_stderr(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd, check, capture_output, text):
        return _cp(cmd, 101, stdout="partial\n", stderr="mkdir: Permission denied\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    output = SudoChannel(temp_dir=tmp_path).run("mkdir /x\n")
    assert output.exit_status == 101
    assert output.output == "partial\nmkdir: Permission denied"


def test_sudo_channel_command(tmp_path: Path) -> None:
    script = tmp_path / "s.sh"
    assert SudoChannel().command(script) == ["sudo", "/bin/bash", str(script)]


def test_missing_launcher_raises_clean_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd, check, capture_output, text):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(ElevationUnavailableError):
        OsaScriptChannel(temp_dir=tmp_path).run("true\n")
    assert list(tmp_path.iterdir()) == []


def test_channel_for_known_and_unknown_names() -> None:
    assert isinstance(channel_for("osascript"), OsaScriptChannel)
    assert isinstance(channel_for("sudo"), SudoChannel)
    assert type(channel_for("none")) is ScriptFileChannel
    with pytest.raises(ConfigError):
        channel_for("pkexec")


def test_osascript_failure_reports_script_status(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd, check, capture_output, text):
        return _cp(
            cmd,
            1,
            stderr=(
                "0:120: execution error: mkdir: /Library/Displays/x: Permission denied\n"
                "hidpictl: step 1 (create directory /Library/Displays/x) failed (101)\n"
            ),
        )

    monkeypatch.setattr(subprocess, "run", fake_run)

    output = OsaScriptChannel(temp_dir=tmp_path).run("mkdir /x\n")
    assert output.exit_status == 101
    assert "Permission denied" in output.output


def test_missing_temp_dir_raises_clean_error(tmp_path: Path) -> None:
    with pytest.raises(ElevationUnavailableError) as exc:
        ScriptFileChannel(temp_dir=tmp_path / "missing").run("true\n")
    assert "Could not create privileged script" in str(exc.value)


def test_unlaunchable_shell_raises_clean_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd, check, capture_output, text):
        raise PermissionError(13, "Permission denied", cmd[0])

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(ElevationUnavailableError):
        SudoChannel(temp_dir=tmp_path).run("true\n")
    assert list(tmp_path.iterdir()) == []
