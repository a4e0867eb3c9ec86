"""Elevation channels that execute a bash script from a temporary file."""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import tempfile
from pathlib import Path

from hidpictl.core.errors import ConfigError, ElevationUnavailableError
from hidpictl.core.model import ChannelOutput
from hidpictl.elevation.base import ElevationChannel

LOGGER = logging.getLogger(__name__)

_USER_CANCELED = "(-128)"
# osascript exits 1; the script status is the trailing "(N)" of the error text
_EXECUTION_ERROR_RE = re.compile(r"execution error: .*\((-?\d+)\)\s*$", re.DOTALL)


class ScriptFileChannel:
    """Write the script to a private temp file and hand it to a launcher."""

    name = "none"

    def __init__(self, *, temp_dir: Path | None = None, shell: str = "/bin/bash") -> None:
        self.temp_dir = temp_dir
        self.shell = shell

    def command(self, script_path: Path) -> list[str]:
        return [self.shell, str(script_path)]

    def run(self, script: str) -> ChannelOutput:
        try:
            fd, raw_path = tempfile.mkstemp(prefix="hidpi_script_", suffix=".sh", dir=self.temp_dir)
        except OSError as exc:
            raise ElevationUnavailableError(f"Could not create privileged script: {exc}") from exc
        script_path = Path(raw_path)
        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(script)
            except OSError as exc:
                raise ElevationUnavailableError(f"Could not write privileged script: {exc}") from exc
            cmd = self.command(script_path)
            LOGGER.debug("Running %s", cmd[0])
            try:
                result = subprocess.run(cmd, check=False, capture_output=True, text=True)
            except FileNotFoundError as exc:
                raise ElevationUnavailableError(
                    f"Cannot run privileged operation: '{cmd[0]}' not found"
                ) from exc
            except OSError as exc:
                raise ElevationUnavailableError(
                    f"Cannot run privileged operation with '{cmd[0]}': {exc}"
                ) from exc
            LOGGER.debug("%s exited with status %d", cmd[0], result.returncode)
            output = "\n".join(
                part.strip() for part in (result.stdout, result.stderr) if part and part.strip()
            )
            return self.translate(ChannelOutput(exit_status=result.returncode, output=output))
        finally:
            try:
                script_path.unlink()
            except OSError as exc:
                LOGGER.debug("Could not remove script %s: %s", script_path, exc)

    def translate(self, output: ChannelOutput) -> ChannelOutput:
        return output


class SudoChannel(ScriptFileChannel):
    name = "sudo"

    def command(self, script_path: Path) -> list[str]:
        return ["sudo", self.shell, str(script_path)]


class OsaScriptChannel(ScriptFileChannel):
    """Run through ``osascript`` so macOS shows its native password prompt."""

    name = "osascript"

    def __init__(
        self,
        *,
        temp_dir: Path | None = None,
        shell: str = "/bin/bash",
        osascript: str = "/usr/bin/osascript",
    ) -> None:
        super().__init__(temp_dir=temp_dir, shell=shell)
        self.osascript = osascript

    def command(self, script_path: Path) -> list[str]:
        shell_command = f"{shlex.quote(self.shell)} {shlex.quote(str(script_path))}"
        escaped = shell_command.replace("\\", "\\\\").replace('"', '\\"')
        return [
            self.osascript,
            "-e",
            f'do shell script "{escaped}" with administrator privileges',
        ]

    def translate(self, output: ChannelOutput) -> ChannelOutput:
        if output.exit_status != 0 and _USER_CANCELED in output.output:
            return ChannelOutput(
                exit_status=output.exit_status,
                output="Authorization was cancelled.",
            )
        match = _EXECUTION_ERROR_RE.search(output.output)
        if output.exit_status != 0 and match:
            return ChannelOutput(exit_status=int(match.group(1)) or output.exit_status, output=output.output)
        return output


_CHANNELS: dict[str, type[ScriptFileChannel]] = {
    ScriptFileChannel.name: ScriptFileChannel,
    SudoChannel.name: SudoChannel,
    OsaScriptChannel.name: OsaScriptChannel,
}


def channel_for(name: str, *, temp_dir: Path | None = None) -> ElevationChannel:
    channel_cls = _CHANNELS.get(name)
    if channel_cls is None:
        allowed = ", ".join(sorted(_CHANNELS))
        raise ConfigError(f"Unknown elevation method '{name}'. Allowed: {allowed}")
    return channel_cls(temp_dir=temp_dir)
